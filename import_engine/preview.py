"""
import_engine.preview - Header discovery for the field-selection step.

Lists the columns of a tab or Eos CSV file, what each maps to, and
whether any row actually fills it, so the caller can offer a
pre-ticked allow-list before running the import.
"""

from __future__ import annotations

from import_engine.eos_csv import EosCsvAdapter
from import_engine.errors import FormatError
from import_engine.field_map import (
    EOS_FIELDS, EOS_REQUIRED, FIELD_LABELS, TAB_FIELDS, TAB_REQUIRED,
)
from import_engine.text_reader import cell, split_csv_line, split_lines, split_tab_line

# Eos exports can be long; a sample is enough to see which columns are used
EOS_SAMPLE_ROWS = 100


def _columns(headers, rows, field_map, required):
    present = {h: False for h in headers if h}
    for values in rows:
        for idx, header in enumerate(headers):
            if header and not present[header] and cell(values, idx):
                present[header] = True

    fields = []
    for header in headers:
        if not header:
            continue
        key = field_map.get(header)
        fields.append({
            "original_name": header,
            "mapped_key": key,
            "mapped_label": FIELD_LABELS.get(key, header) if key else None,
            "is_custom": key is None,
            "is_required": header == required,
            "has_data": present[header],
        })
    return fields


def preview_fields(raw: str | bytes, fmt: str) -> list[dict]:
    """
    Column descriptions for 'txt' and 'csv' files.  Formats without a
    field choice (xml, gdtf) and Eos files with no channel section
    return [].
    """
    lines = split_lines(raw)
    if fmt == "txt":
        if not lines:
            raise FormatError("File is empty")
        headers = [h.strip() for h in split_tab_line(lines[0])]
        rows = [split_tab_line(ln) for ln in lines[1:] if ln.strip()]
        return _columns(headers, rows, TAB_FIELDS, TAB_REQUIRED)

    if fmt == "csv":
        section = EosCsvAdapter._find_channel_section(lines)
        if section is None:
            return []
        start, end = section
        headers = [h.strip() for h in split_csv_line(lines[start + 1])]
        body = [ln for ln in lines[start + 2:end] if ln.strip()][:EOS_SAMPLE_ROWS]
        fields = _columns(headers, [split_csv_line(ln) for ln in body], EOS_FIELDS, EOS_REQUIRED)
        for f in fields:
            # Eos columns are only ever standard ones; unknown headers are ignored
            f["is_custom"] = False
        return fields

    return []
