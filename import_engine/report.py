"""
import_engine.report - Structured result of an import run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ImportReport:
    format: str = ""
    policy: str = ""
    success: bool = False
    reason: str = ""
    total_rows: int = 0
    inserted: int = 0
    updated: int = 0
    removed: int = 0
    targets: int = 0
    custom_fields: list[str] = field(default_factory=list)
    fixture_type_id: str = ""
    library_id: Optional[int] = None

    def fail(self, reason: str):
        self.success = False
        self.reason = reason

    def to_dict(self) -> dict:
        return {
            "format": self.format,
            "policy": self.policy,
            "success": self.success,
            "reason": self.reason,
            "total_rows": self.total_rows,
            "inserted": self.inserted,
            "updated": self.updated,
            "removed": self.removed,
            "targets": self.targets,
            "custom_fields": self.custom_fields,
            "fixture_type_id": self.fixture_type_id,
            "library_id": self.library_id,
        }
