"""
patch.detect - Duplicate and DMX-overlap detection.

Both checks work on plain instrument dicts (Instrument.to_dict()) so
they can run against the database, an import batch, or test data.
"""

from __future__ import annotations

import json

from patch.address import UNIVERSE_SIZE, footprint_range

# Keys that identify a row rather than describe it
IDENTITY_KEYS = frozenset({"id", "created_at", "updated_at"})


def signature(instrument: dict) -> str:
    """Order-independent serialisation of every non-identity field."""
    body = {k: v for k, v in instrument.items() if k not in IDENTITY_KEYS}
    return json.dumps(body, sort_keys=True, default=str)


def find_duplicates(instruments: list[dict]) -> list:
    """
    Return the ids of rows that exactly repeat an earlier row.
    The first occurrence of each signature is kept.
    """
    seen: set[str] = set()
    duplicates = []
    for inst in instruments:
        sig = signature(inst)
        if sig in seen:
            duplicates.append(inst.get("id"))
        else:
            seen.add(sig)
    return duplicates


def _span(inst: dict):
    return footprint_range(inst.get("address"), inst.get("dmx_footprint") or 1)


def find_overlaps(target: dict, instruments: list[dict]) -> list[dict]:
    """
    Instruments whose DMX range intersects target's range in the same
    universe.  Unpatched addresses are never compared.
    """
    span = _span(target)
    if span is None:
        return []
    universe, (start, end) = span

    hits = []
    for other in instruments:
        if other is target:
            continue
        if target.get("id") is not None and other.get("id") == target.get("id"):
            continue
        other_span = _span(other)
        if other_span is None:
            continue
        o_universe, (o_start, o_end) = other_span
        if o_universe == universe and o_start <= end and start <= o_end:
            hits.append(other)
    return hits


def universe_map(instruments: list[dict], universe: int) -> dict[int, dict]:
    """
    Slot occupancy for one universe.

    Returns {slot: {"instruments": [ids], "type": "start"|"footprint",
    "overlap": bool}} for every occupied slot.  Footprints that run past
    slot 512 are cut off.
    """
    slots: dict[int, dict] = {}
    for inst in instruments:
        span = _span(inst)
        if span is None or span[0] != universe:
            continue
        start, end = span[1]
        for slot in range(start, min(end, UNIVERSE_SIZE) + 1):
            cell = slots.get(slot)
            if cell is None:
                slots[slot] = {
                    "instruments": [inst.get("id")],
                    "type": "start" if slot == start else "footprint",
                    "overlap": False,
                }
            else:
                cell["instruments"].append(inst.get("id"))
                cell["overlap"] = True
    return slots
