"""
import_engine.text_reader - Low-level text reading and cleaning.

Responsibilities:
  • BOM removal (UTF-8 / UTF-8-SIG)
  • Line splitting that tolerates CRLF / LF
  • Delimited-row splitting via the csv module
"""

from __future__ import annotations

import csv
import io


def decode(raw: str | bytes) -> str:
    if isinstance(raw, bytes):
        # Strip UTF-8 BOM
        if raw.startswith(b"\xef\xbb\xbf"):
            raw = raw[3:]
        return raw.decode("utf-8", errors="replace")
    if raw.startswith("\ufeff"):
        return raw[1:]
    return raw


def split_lines(raw: str | bytes) -> list[str]:
    """Decode and split into lines, line endings removed."""
    return decode(raw).splitlines()


def split_csv_line(line: str) -> list[str]:
    """Split one comma-delimited line, honouring double quotes."""
    rows = list(csv.reader(io.StringIO(line)))
    return rows[0] if rows else []


def split_tab_line(line: str) -> list[str]:
    """Tab exports have no quoting."""
    return line.split("\t")


def cell(values: list[str], index: int) -> str:
    """Stripped cell value, "" when the row is short."""
    if index < len(values) and values[index] is not None:
        return values[index].strip()
    return ""
