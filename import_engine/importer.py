"""
import_engine.importer - Top-level orchestrator.

Coordinates adapter → merge engine → DB commit and produces a
structured ImportReport.  FormatError and PersistenceError are caught
here, once, and turned into a failed report; anything else is a bug
and propagates.
"""

from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from db.store import PatchStore
from import_engine.eos_csv import EosCsvAdapter
from import_engine.errors import FormatError, PersistenceError
from import_engine.gdtf import GdtfPackageParser
from import_engine.layer_xml import LayerXmlAdapter
from import_engine.merge import MergeEngine, Policy
from import_engine.report import ImportReport
from import_engine.tab_delimited import TabDelimitedAdapter
from services.library_service import LibraryService

logger = logging.getLogger(__name__)

# format id → adapter producing instrument batches
ADAPTERS = {
    adapter.format_id: adapter
    for adapter in (TabDelimitedAdapter(), EosCsvAdapter(), LayerXmlAdapter())
}

EXTENSIONS: dict[str, str] = {
    ".txt": "txt",
    ".tsv": "txt",
    ".csv": "csv",
    ".xml": "xml",
    ".gdtf": "gdtf",
}


def detect_format(filename: str) -> Optional[str]:
    """Format id from a file name's extension, or None."""
    return EXTENSIONS.get(PurePath(filename or "").suffix.lower())


def run_import(
    file_content: str | bytes,
    fmt: str,
    *,
    policy: Policy | str = Policy.MERGE,
    selected_fields: Optional[Iterable[str]] = None,
    show_info: Optional[dict] = None,
    store: Optional[PatchStore] = None,
) -> ImportReport:
    """
    Import one patch file into the database.

    Parameters
    ----------
    file_content : raw file (bytes or str)
    fmt : 'txt', 'csv' or 'xml'
    policy : 'replace' clears the patch first, 'merge' matches on channel/part
    selected_fields : optional header allow-list (channel is always kept)
    show_info : show identity written on replace imports

    Returns
    -------
    ImportReport with success flag and counts, or a failure reason
    """
    report = ImportReport(format=fmt or "")

    adapter = ADAPTERS.get(fmt)
    if adapter is None:
        report.fail(f"Unsupported import format: {fmt!r}")
        return report
    try:
        policy = Policy(policy)
    except ValueError:
        report.fail(f"Unknown import mode: {policy!r}")
        return report
    report.policy = policy.value

    try:
        parsed = adapter.parse(file_content, selected_fields=selected_fields)
        report.total_rows = len(parsed.instruments)
        report.custom_fields = list(parsed.side_effects.custom_field_names)

        result = MergeEngine(store).apply(
            parsed.instruments, policy, parsed.side_effects, show_info,
        )
    except (FormatError, PersistenceError) as exc:
        logger.warning("%s import failed: %s", adapter.label, exc)
        report.fail(str(exc))
        return report

    report.success = True
    report.inserted = result.inserted
    report.updated = result.updated
    report.removed = result.removed
    report.targets = result.targets
    return report


def run_gdtf_import(file_content: bytes, store: Optional[PatchStore] = None) -> ImportReport:
    """Parse a GDTF package and upsert it into the fixture library."""
    report = ImportReport(format="gdtf", policy="upsert")
    try:
        definition = GdtfPackageParser().parse(file_content)
        try:
            with (store or PatchStore()).transact() as tx:
                row, created = LibraryService.upsert(tx.session, definition)
                report.fixture_type_id = row.fixture_type_id
                report.library_id = row.id
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save fixture type: {exc}") from exc
    except (FormatError, PersistenceError) as exc:
        logger.warning("GDTF import failed: %s", exc)
        report.fail(str(exc))
        return report

    report.success = True
    report.total_rows = 1
    if created:
        report.inserted = 1
    else:
        report.updated = 1
    return report
