"""
patch.records - Canonical, in-memory record shapes.

Adapters produce PartialInstrument objects (every field optional);
the merge engine is the only place defaults get resolved before rows
reach the database.  FixtureTypeDefinition and friends describe a
parsed GDTF package before it is upserted into the fixture library.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Optional


# Plain-text descriptive columns on the instruments table
TEXT_FIELDS: tuple[str, ...] = (
    "address", "type", "watt", "weight", "purpose", "position", "unit",
    "color", "gobo", "accessory", "gel_frame_size", "fixture_type_id",
    "proportion", "curve", "notes",
    "text1", "text2", "text3", "text4", "text5",
    "text6", "text7", "text8", "text9", "text10",
)

TARGET_TYPES: dict[str, str] = {"2": "Sub", "4": "Preset", "5": "Group"}


def canonical_channel(value) -> str:
    """Numeric channels collapse to their integer text ("007" → "7")."""
    if value is None:
        return ""
    text = str(value).strip()
    if text.isdigit():
        return str(int(text))
    return text


@dataclass
class PartialInstrument:
    """One imported row.  None means "not present in the source"."""

    channel: Optional[str] = None
    part: Optional[int] = None
    dmx_footprint: Optional[int] = None

    address: Optional[str] = None
    type: Optional[str] = None
    watt: Optional[str] = None
    weight: Optional[str] = None
    purpose: Optional[str] = None
    position: Optional[str] = None
    unit: Optional[str] = None
    color: Optional[str] = None
    gobo: Optional[str] = None
    accessory: Optional[str] = None
    gel_frame_size: Optional[str] = None
    fixture_type_id: Optional[str] = None
    proportion: Optional[str] = None
    curve: Optional[str] = None
    notes: Optional[str] = None
    text1: Optional[str] = None
    text2: Optional[str] = None
    text3: Optional[str] = None
    text4: Optional[str] = None
    text5: Optional[str] = None
    text6: Optional[str] = None
    text7: Optional[str] = None
    text8: Optional[str] = None
    text9: Optional[str] = None
    text10: Optional[str] = None

    custom_fields: dict[str, str] = field(default_factory=dict)

    def present(self) -> dict:
        """Return only the fields that carry a value (custom_fields excluded)."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "custom_fields" and getattr(self, f.name) is not None
        }

    def resolved(self) -> dict:
        """All columns with defaults filled in, ready for a fresh insert."""
        row = {name: "" for name in TEXT_FIELDS}
        row.update(self.present())
        row["channel"] = canonical_channel(self.channel)
        row["part"] = self.part or 1
        row["dmx_footprint"] = self.dmx_footprint or 1
        return row


@dataclass
class TargetReference:
    target_type: str
    target_id: str
    label: str = ""
    channels: str = ""


@dataclass
class SideEffects:
    """Things an adapter found besides instrument rows."""

    custom_field_names: list[str] = field(default_factory=list)
    targets: list[TargetReference] = field(default_factory=list)
    # True for formats whose target set is authoritative (EOS CSV)
    replaces_targets: bool = False


@dataclass
class ParseResult:
    instruments: list[PartialInstrument] = field(default_factory=list)
    side_effects: SideEffects = field(default_factory=SideEffects)


# ── Fixture library shapes ─────────────────────────────────────────────

@dataclass
class ModeChannel:
    dmx_address: int
    attribute: str
    resolution: str = ""     # '', 'Coarse' or 'Fine'
    geometry: str = ""


@dataclass
class DmxMode:
    name: str
    description: str = ""
    channel_count: int = 0
    footprint: int = 0
    channels: list[ModeChannel] = field(default_factory=list)


@dataclass
class WheelSlot:
    name: str = ""
    color: str = ""
    media_file_name: str = ""
    image_data: Optional[str] = None     # data: URI


@dataclass
class Wheel:
    name: str
    slots: list[WheelSlot] = field(default_factory=list)


@dataclass
class FixtureTypeDefinition:
    fixture_type_id: str = ""
    name: str = ""
    short_name: str = ""
    long_name: str = ""
    manufacturer: str = ""
    description: str = ""
    thumbnail: str = ""
    wattage: float = 0.0
    weight: float = 0.0
    dmx_modes: list[DmxMode] = field(default_factory=list)
    wheels: list[Wheel] = field(default_factory=list)
    thumbnail_data: Optional[bytes] = None
    raw_xml: str = ""

    def modes_as_dicts(self) -> list[dict]:
        return [asdict(m) for m in self.dmx_modes]

    def wheels_as_dicts(self) -> list[dict]:
        return [asdict(w) for w in self.wheels]
