"""
import_engine.row_processor - Turn one mapped source row into a PartialInstrument.

Single-responsibility: given {attribute: raw text}, coerce the few typed
fields, drop empty cells, and assign the part number.  Adapters decide
which attributes a row carries; this module never looks at headers.
"""

from __future__ import annotations

from patch.records import PartialInstrument, canonical_channel

_INT_FIELDS = frozenset({"dmx_footprint"})


class PartCounter:
    """
    Running per-channel counter used within one parse run.

    The first row of a channel is part 1, every repeat increments.
    Formats without multi-part semantics simply do not use it.
    """

    def __init__(self):
        self._seen: dict[str, int] = {}    # canonical channel → last part

    def next(self, channel: str) -> int:
        key = canonical_channel(channel)
        self._seen[key] = self._seen.get(key, 0) + 1
        return self._seen[key]


def coerce_watt(value: str, strict: bool = False) -> str:
    """
    Keep the leading integer of a wattage cell ("575W" → "575").
    Cells with no leading digits are kept as written, or dropped to ""
    when strict.
    """
    digits = ""
    for ch in value.strip():
        if not ch.isdigit():
            break
        digits += ch
    if digits:
        return str(int(digits))
    return "" if strict else value.strip()


def build_instrument(
    values: dict[str, str],
    custom: dict[str, str] | None = None,
    strict_watt: bool = False,
) -> PartialInstrument:
    """
    Build a PartialInstrument from attribute → raw text.

    Empty cells are treated as absent.  Malformed typed cells fall back
    to absent instead of failing the row.  With strict_watt a wattage
    cell without a number is absent too.
    """
    inst = PartialInstrument()
    for attr, raw in values.items():
        val = (raw or "").strip()
        if not val:
            continue
        if attr == "channel":
            inst.channel = canonical_channel(val)
        elif attr == "watt":
            inst.watt = coerce_watt(val, strict=strict_watt) or None
        elif attr in _INT_FIELDS:
            try:
                size = int(val)
            except ValueError:
                continue
            if size > 0:
                setattr(inst, attr, size)
        else:
            setattr(inst, attr, val)

    if custom:
        inst.custom_fields = {k: v.strip() for k, v in custom.items() if v and v.strip()}
    return inst
