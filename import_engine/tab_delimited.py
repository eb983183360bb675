"""
import_engine.tab_delimited - Lightwright-style tab-delimited export.

The first line is the header, every following non-blank line is one
instrument.  Known headers map through TAB_FIELDS; every other header
becomes a custom field and is reported so the show can register it.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from import_engine.errors import FormatError
from import_engine.field_map import TAB_FIELDS, TAB_REQUIRED
from import_engine.row_processor import PartCounter, build_instrument
from import_engine.text_reader import cell, split_lines, split_tab_line
from patch.records import ParseResult

logger = logging.getLogger(__name__)


class TabDelimitedAdapter:
    format_id = "txt"
    label = "Lightwright Text (.txt)"

    def parse(
        self,
        raw: str | bytes,
        selected_fields: Optional[Iterable[str]] = None,
    ) -> ParseResult:
        lines = split_lines(raw)
        if len(lines) < 2:
            raise FormatError("File too short: expected a header and at least one row")

        headers = [h.strip() for h in split_tab_line(lines[0])]
        if TAB_REQUIRED not in headers:
            raise FormatError(f"Header row has no {TAB_REQUIRED} column")

        allowed = set(selected_fields) if selected_fields is not None else None
        standard: list[tuple[int, str]] = []
        custom: list[tuple[int, str]] = []
        for idx, header in enumerate(headers):
            if not header:
                continue
            if allowed is not None and header not in allowed and header != TAB_REQUIRED:
                continue
            if header in TAB_FIELDS:
                standard.append((idx, TAB_FIELDS[header]))
            else:
                custom.append((idx, header))

        result = ParseResult()
        result.side_effects.custom_field_names = [name for _, name in custom]

        counter = PartCounter()
        for line in lines[1:]:
            if not line.strip():
                continue
            values = split_tab_line(line)

            mapped: dict[str, str] = {}
            for idx, attr in standard:
                val = cell(values, idx)
                # Aliased headers: first non-empty column wins
                if val and not mapped.get(attr):
                    mapped[attr] = val
            if "channel" in mapped:
                mapped["channel"] = mapped["channel"].replace("(", "").replace(")", "")

            inst = build_instrument(
                mapped,
                custom={name: cell(values, idx) for idx, name in custom},
            )
            inst.part = counter.next(inst.channel or "")
            result.instruments.append(inst)

        logger.info("Tab-delimited: %d rows, %d custom fields",
                    len(result.instruments), len(custom))
        return result
