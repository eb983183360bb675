"""
import_engine.field_map - Source header ↔ Instrument attribute mapping.

Headers are matched literally (case-sensitive).  Several source headers
may alias the same attribute.  Anything not listed here is either
ignored (EOS) or becomes a custom field (tab-delimited).
"""

# EOS CSV channel-section header  →  Instrument attribute
EOS_FIELDS: dict[str, str] = {
    "CHANNEL":      "channel",
    "ADDRESS":      "address",
    "FIXTURE_TYPE": "type",
    "LABEL":        "purpose",
    "GEL":          "color",
    "WATT":         "watt",
    "PROPORTION":   "proportion",
    "CURVE":        "curve",
    "NOTES":        "notes",
    **{f"TEXT{i}": f"text{i}" for i in range(1, 11)},
}

EOS_REQUIRED = "CHANNEL"

# Lightwright-style tab export header  →  Instrument attribute
TAB_FIELDS: dict[str, str] = {
    "Channel":          "channel",
    "Dimmer":           "address",
    "Address":          "address",
    "Instrument Type":  "type",
    "Device Type":      "type",
    "Wattage":          "watt",
    "Load":             "watt",
    "Weight":           "weight",
    "Purpose":          "purpose",
    "Use":              "purpose",
    "Position":         "position",
    "Unit#":            "unit",
    "Color":            "color",
    "Gobo":             "gobo",
    "Template":         "gobo",
    "Accessories":      "accessory",
    "Accessory":        "accessory",
    "Frame Size":       "gel_frame_size",
    "Footprint":        "dmx_footprint",
    "Focus Note":       "notes",
    "Focus Notes":      "notes",
    "Circuit Name":     "text3",
    "Circuit#":         "text4",
}

TAB_REQUIRED = "Channel"

# Human labels for the import wizard field list
FIELD_LABELS: dict[str, str] = {
    "channel": "Channel",
    "address": "Address",
    "type": "Type",
    "watt": "Wattage",
    "weight": "Weight",
    "purpose": "Purpose",
    "position": "Position",
    "unit": "Unit Number",
    "color": "Color",
    "gobo": "Gobo",
    "accessory": "Accessory",
    "gel_frame_size": "Frame Size",
    "dmx_footprint": "Footprint",
    "notes": "Notes",
    "proportion": "Proportion",
    "curve": "Curve",
    "text3": "Circuit Name",
    "text4": "Circuit Number",
}
