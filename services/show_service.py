"""
services.show_service - Show identity and the canonical show snapshot.

Snapshot document
-----------------
    {"version": 1, "date": "<ISO-8601>",
     "metadata": {name, designer, venue, assistant, custom_field_definitions},
     "instruments": [Instrument.to_dict() without id, …]}

Loading a snapshot replaces the patch and the metadata in one
transaction.
"""

from __future__ import annotations

import json
import logging
from dataclasses import fields
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from db.models import ShowMetadata
from db.store import PatchStore
from import_engine.errors import FormatError, PersistenceError
from import_engine.merge import apply_show_info
from patch.records import PartialInstrument
from services.patch_service import PatchService

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


def _field_names(value) -> list[str]:
    """Ordered, de-duplicated custom field names.  Anything but a list is rejected."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise FormatError("custom_field_definitions must be a list of names")
    return list(dict.fromkeys(str(n) for n in value if n is not None))


class ShowService:

    def __init__(self, store: Optional[PatchStore] = None):
        self.store = store or PatchStore()

    def metadata(self) -> dict:
        with self.store.transact() as tx:
            meta = tx.metadata(create=False)
            return meta.to_dict() if meta else ShowMetadata().to_dict()

    def update_metadata(self, data: dict) -> dict:
        with self.store.transact() as tx:
            meta = tx.metadata()
            for key in ShowMetadata.IDENTITY_FIELDS:
                if key in data:
                    setattr(meta, key, str(data[key] or "").strip())
            if "custom_field_definitions" in data:
                meta.custom_field_definitions = _field_names(data["custom_field_definitions"])
            return meta.to_dict()

    def new_show(self, show_info: dict) -> dict:
        """Clear the patch, Eos targets and metadata; start a fresh show."""
        with self.store.transact() as tx:
            tx.clear()
            tx.clear_targets()
            tx.clear_metadata()
            meta = tx.metadata()
            apply_show_info(meta, show_info or {})
            logger.info("New show %r", meta.name)
            return meta.to_dict()

    def reset_patch(self) -> int:
        with self.store.transact() as tx:
            return tx.clear()

    # ── Snapshot ───────────────────────────────────────────────────────

    def export_snapshot(self) -> str:
        with self.store.transact() as tx:
            meta = tx.metadata(create=False)
            metadata = meta.to_dict() if meta else {}
            instruments = PatchService.all_dicts(tx.session)
        for inst in instruments:
            inst.pop("id", None)
        doc = {
            "version": SNAPSHOT_VERSION,
            "date": datetime.now(timezone.utc).isoformat(),
            "metadata": metadata,
            "instruments": instruments,
        }
        return json.dumps(doc, indent=2, ensure_ascii=False)

    def import_snapshot(self, text: str | bytes) -> int:
        """
        Replace the patch with a snapshot.  Raises FormatError on bad input
        and PersistenceError when the write fails.
        """
        try:
            doc = json.loads(text)
        except ValueError as exc:
            raise FormatError(f"Show file is not valid JSON: {exc}") from exc
        if not isinstance(doc, dict) or not isinstance(doc.get("instruments"), list):
            raise FormatError("Invalid show file format")

        batch = [self._instrument(raw) for raw in doc["instruments"] if isinstance(raw, dict)]
        metadata = doc.get("metadata") if isinstance(doc.get("metadata"), dict) else None
        names = _field_names(metadata.get("custom_field_definitions")) if metadata else []

        try:
            with self.store.transact() as tx:
                tx.clear()
                tx.bulk_insert((inst.resolved(), inst.custom_fields) for inst in batch)
                if metadata:
                    tx.clear_metadata()
                    meta = tx.metadata()
                    apply_show_info(meta, metadata)
                    meta.custom_field_definitions = names
        except SQLAlchemyError as exc:
            logger.error("Show snapshot rolled back: %s", exc)
            raise PersistenceError(f"Could not load show snapshot: {exc}") from exc
        logger.info("Loaded show snapshot with %d instruments", len(batch))
        return len(batch)

    @staticmethod
    def _instrument(raw: dict) -> PartialInstrument:
        inst = PartialInstrument()
        known = {f.name for f in fields(inst)} - {"custom_fields"}
        for key, val in raw.items():
            if key not in known or val is None:
                continue
            if key in ("part", "dmx_footprint"):
                try:
                    val = int(val)
                except (TypeError, ValueError):
                    continue
            else:
                val = str(val)
            setattr(inst, key, val)
        custom = raw.get("custom_fields")
        if isinstance(custom, dict):
            inst.custom_fields = {str(k): str(v) for k, v in custom.items() if v is not None}
        return inst
