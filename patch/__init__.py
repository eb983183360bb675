"""
patch - Canonical patch model: addresses, record shapes, validation.

Public API:
    parse_address / format_address / footprint_range
    PartialInstrument, TargetReference, FixtureTypeDefinition, …
    find_duplicates / find_overlaps / universe_map
"""

from patch.address import (                         # noqa: F401
    DmxAddress,
    parse_address,
    format_address,
    footprint_range,
    to_absolute,
    is_unpatched,
)
from patch.records import (                         # noqa: F401
    PartialInstrument,
    TargetReference,
    SideEffects,
    ParseResult,
    FixtureTypeDefinition,
    DmxMode,
    ModeChannel,
    Wheel,
    WheelSlot,
    canonical_channel,
)
from patch.detect import find_duplicates, find_overlaps, universe_map   # noqa: F401
