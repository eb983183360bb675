"""
import_engine.eos_csv - ETC Eos show-file CSV export.

File layout
-----------
An Eos export is a series of independent sections.  Two matter here:

  START_CHANNELS            patch section; the next line is the header,
  CHANNEL,ADDRESS,...       every following line up to END_CHANNELS is
  ...                       one channel (repeated channel = extra part)
  END_CHANNELS

  5,Group,,12,<uuid>,,Front Wash,1-24,...    target rows (Sub / Preset /
                                             Group), found anywhere

Target rows are recognised purely by column shape: type code, matching
type name and a UUID in column 4.  The level sections of an export
reuse the same leading columns without a UUID, so those are skipped.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

from import_engine.errors import FormatError
from import_engine.field_map import EOS_FIELDS, EOS_REQUIRED
from import_engine.row_processor import PartCounter, build_instrument
from import_engine.text_reader import cell, split_csv_line, split_lines
from patch.records import TARGET_TYPES, ParseResult, TargetReference

logger = logging.getLogger(__name__)

START_MARKER = "START_CHANNELS"
END_MARKER = "END_CHANNELS"

UUID_RE = re.compile(
    r"^[0-9A-F]{8}-[0-9A-F]{4}-[0-9A-F]{4}-[0-9A-F]{4}-[0-9A-F]{12}$",
    re.IGNORECASE,
)

# Column positions of a target definition row
COL_TYPE, COL_TYPE_NAME, COL_ID, COL_UUID, COL_LABEL, COL_CHANNELS = 0, 1, 3, 4, 6, 7


class EosCsvAdapter:
    format_id = "csv"
    label = "EOS CSV (.csv)"

    def parse(
        self,
        raw: str | bytes,
        selected_fields: Optional[Iterable[str]] = None,
    ) -> ParseResult:
        lines = split_lines(raw)
        result = ParseResult()
        result.side_effects.replaces_targets = True

        section = self._find_channel_section(lines)
        if section is not None:
            start, end = section
            result.instruments = self._parse_channels(lines, start, end, selected_fields)

        result.side_effects.targets = list(self._parse_targets(lines))

        if section is None and not result.side_effects.targets:
            raise FormatError("No EOS channel section or target rows found")

        logger.info("EOS CSV: %d channel rows, %d targets",
                    len(result.instruments), len(result.side_effects.targets))
        return result

    # ── Channels ───────────────────────────────────────────────────────

    @staticmethod
    def _find_channel_section(lines: list[str]) -> Optional[tuple[int, int]]:
        start = next((i for i, ln in enumerate(lines) if START_MARKER in ln), None)
        if start is None:
            return None
        end = next((i for i in range(start + 1, len(lines)) if END_MARKER in lines[i]), None)
        if end is None:
            raise FormatError(f"{START_MARKER} without matching {END_MARKER}")
        if end == start + 1:
            raise FormatError("Channel section has no header row")
        return start, end

    @staticmethod
    def _parse_channels(lines, start, end, selected_fields):
        headers = [h.strip() for h in split_csv_line(lines[start + 1])]
        if EOS_REQUIRED not in headers:
            raise FormatError(f"Channel section header has no {EOS_REQUIRED} column")

        allowed = set(selected_fields) | {EOS_REQUIRED} if selected_fields is not None else None
        columns = [
            (idx, EOS_FIELDS[h]) for idx, h in enumerate(headers)
            if h in EOS_FIELDS and (allowed is None or h in allowed)
        ]

        counter = PartCounter()
        instruments = []
        for line in lines[start + 2:end]:
            if not line.strip():
                continue
            values = split_csv_line(line)
            inst = build_instrument(
                {attr: cell(values, idx) for idx, attr in columns}, strict_watt=True,
            )
            inst.part = counter.next(inst.channel or "")
            instruments.append(inst)
        return instruments

    # ── Targets ────────────────────────────────────────────────────────

    @staticmethod
    def _parse_targets(lines: list[str]):
        for lineno, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            values = split_csv_line(line)
            type_name = TARGET_TYPES.get(cell(values, COL_TYPE))
            if type_name is None or cell(values, COL_TYPE_NAME) != type_name:
                continue
            if not UUID_RE.match(cell(values, COL_UUID)):
                logger.debug("line %d: %s row without UUID, skipped", lineno, type_name)
                continue

            target_id = cell(values, COL_ID)
            try:
                float(target_id)
            except ValueError:
                logger.debug("line %d: non-numeric target id %r, skipped", lineno, target_id)
                continue

            yield TargetReference(
                target_type=type_name,
                target_id=target_id,
                label=cell(values, COL_LABEL),
                channels=cell(values, COL_CHANNELS),
            )
