"""
patch.address - DMX address parsing and formatting.

Textual forms
-------------
  "U:N" / "U/N"   explicit universe U, offset N (1-512)
  "N"             absolute linear address, universe derived from it

Every function here is pure.  Unparseable input is handed back verbatim
so callers can still display whatever the user typed.
"""

from __future__ import annotations

import re
from typing import NamedTuple, Optional, Union

UNIVERSE_SIZE = 512

_UNIVERSE_RE = re.compile(r"^\s*(\d+)\s*[:/]\s*(\d+)\s*$")
_UNPATCHED = frozenset({"", "0", "0:0", "0/0"})


class DmxAddress(NamedTuple):
    universe: int
    offset: int

    @property
    def absolute(self) -> int:
        return (self.universe - 1) * UNIVERSE_SIZE + self.offset


def from_absolute(absolute: int) -> DmxAddress:
    """Convert a linear address (1-based) into universe/offset."""
    return DmxAddress(
        universe=(absolute - 1) // UNIVERSE_SIZE + 1,
        offset=(absolute - 1) % UNIVERSE_SIZE + 1,
    )


def parse_address(text) -> Union[DmxAddress, str]:
    """
    Parse 'U:N', 'U/N' or a bare integer → DmxAddress.

    Returns the input string unchanged when it is not an address,
    including a bare "0" (empty input gives "").
    """
    if text is None:
        return ""
    raw = str(text).strip()
    if not raw:
        return ""

    m = _UNIVERSE_RE.match(raw)
    if m:
        return DmxAddress(int(m.group(1)), int(m.group(2)))

    if raw.isdigit() and int(raw) >= 1:
        return from_absolute(int(raw))

    return raw


def format_address(
    address,
    mode: str = "universe",
    show_universe1: bool = False,
    separator: str = ":",
) -> str:
    """
    Render an address for display.

    mode='absolute' → "513"; mode='universe' → "2:1", with universe 1
    shortened to "N" unless show_universe1 is set.
    """
    if not isinstance(address, DmxAddress):
        address = parse_address(address)
        if not isinstance(address, DmxAddress):
            return address

    if mode == "absolute":
        return str(address.absolute)
    if address.universe == 1 and not show_universe1:
        return str(address.offset)
    return f"{address.universe}{separator}{address.offset}"


def to_absolute(address) -> Optional[int]:
    parsed = address if isinstance(address, DmxAddress) else parse_address(address)
    return parsed.absolute if isinstance(parsed, DmxAddress) else None


def is_unpatched(address) -> bool:
    """True for empty / zero addresses, which never take part in overlap checks."""
    if address is None:
        return True
    return str(address).strip() in _UNPATCHED


def footprint_range(address, footprint=1) -> Optional[tuple[int, tuple[int, int]]]:
    """
    Return (universe, (start, end)) covered by a fixture, or None when the
    address is unpatched or not parseable.
    """
    if is_unpatched(address):
        return None
    parsed = address if isinstance(address, DmxAddress) else parse_address(address)
    if not isinstance(parsed, DmxAddress):
        return None
    size = coerce_footprint(footprint)
    return parsed.universe, (parsed.offset, parsed.offset + size - 1)


def coerce_footprint(value) -> int:
    """Footprint as a positive int; anything missing or malformed counts as 1."""
    try:
        size = int(value)
    except (TypeError, ValueError):
        return 1
    return size if size > 0 else 1
