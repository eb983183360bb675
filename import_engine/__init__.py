"""
import_engine - Patch file import pipeline.

Public API:
    run_import(file_content, fmt, policy=…, selected_fields=…) → ImportReport
    run_gdtf_import(file_content) → ImportReport
    preview_fields(file_content, fmt) → [column info]
    MergeEngine, Policy, FormatError, PersistenceError
"""

from import_engine.errors import FormatError, PersistenceError       # noqa: F401
from import_engine.importer import (                                # noqa: F401
    ADAPTERS,
    detect_format,
    run_import,
    run_gdtf_import,
)
from import_engine.merge import MergeEngine, Policy                 # noqa: F401
from import_engine.preview import preview_fields                    # noqa: F401
from import_engine.report import ImportReport                       # noqa: F401
