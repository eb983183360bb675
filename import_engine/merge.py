"""
import_engine.merge - Reconcile an import batch with the stored patch.

Policies
--------
replace   wipe all instruments (and Eos targets for formats that carry
          them), insert the batch as-is
merge     match each incoming row on (channel, part), or on channel alone
          when part is absent; update present fields in place, insert
          when nothing matches

Show-metadata side effects are written first in their own transaction
and survive a failed batch.  Field names registered for nothing are
harmless, a half-written patch is not.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import asdict, dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from db.models import ShowMetadata
from db.store import PatchStore
from import_engine.errors import PersistenceError
from patch.records import PartialInstrument, SideEffects, canonical_channel

logger = logging.getLogger(__name__)


class Policy(str, enum.Enum):
    REPLACE = "replace"
    MERGE = "merge"


@dataclass
class MergeResult:
    inserted: int = 0
    updated: int = 0
    removed: int = 0
    targets: int = 0


def register_custom_fields(meta: ShowMetadata, names: list[str]) -> list[str]:
    """Append unseen names to the show's ordered custom field registry."""
    current = meta.custom_field_definitions
    added = [n for n in dict.fromkeys(names) if n not in current]
    if added:
        meta.custom_field_definitions = current + added
    return added


def apply_show_info(meta: ShowMetadata, show_info: dict) -> None:
    """Provided non-empty identity fields win, the rest keep their value."""
    for key in ShowMetadata.IDENTITY_FIELDS:
        val = str(show_info.get(key) or "").strip()
        if val:
            setattr(meta, key, val)
        elif getattr(meta, key) is None:
            setattr(meta, key, "")


class MergeEngine:
    def __init__(self, store: Optional[PatchStore] = None):
        self.store = store or PatchStore()

    def apply(
        self,
        batch: list[PartialInstrument],
        policy: Policy | str,
        side_effects: Optional[SideEffects] = None,
        show_info: Optional[dict] = None,
    ) -> MergeResult:
        policy = Policy(policy)
        side_effects = side_effects or SideEffects()

        self._write_metadata(side_effects, show_info if policy is Policy.REPLACE else None)

        result = MergeResult()
        try:
            with self.store.transact() as tx:
                if policy is Policy.REPLACE:
                    result.removed = tx.clear()
                    result.inserted = tx.bulk_insert(
                        (self._insert_values(inst), inst.custom_fields) for inst in batch
                    )
                else:
                    for inst in batch:
                        values = inst.present()
                        channel = canonical_channel(values.pop("channel", ""))
                        part = values.pop("part", None)
                        if tx.update_by_key(channel, part, values, inst.custom_fields):
                            result.updated += 1
                        else:
                            tx.insert(self._insert_values(inst), inst.custom_fields)
                            result.inserted += 1

                clear_targets = side_effects.targets or (
                    policy is Policy.REPLACE and side_effects.replaces_targets
                )
                if clear_targets:
                    tx.clear_targets()
                    result.targets = tx.insert_targets(asdict(t) for t in side_effects.targets)
        except SQLAlchemyError as exc:
            logger.error("Import batch rolled back: %s", exc)
            raise PersistenceError(f"Could not save imported patch: {exc}") from exc

        logger.info("%s import: %d inserted, %d updated, %d removed, %d targets",
                    policy.value, result.inserted, result.updated,
                    result.removed, result.targets)
        return result

    @staticmethod
    def _insert_values(inst: PartialInstrument) -> dict:
        values = inst.resolved()
        values.pop("custom_fields", None)
        return values

    def _write_metadata(self, side_effects: SideEffects, show_info: Optional[dict]) -> None:
        if not side_effects.custom_field_names and not show_info:
            return
        try:
            with self.store.transact() as tx:
                meta = tx.metadata()
                added = register_custom_fields(meta, side_effects.custom_field_names)
                if show_info:
                    apply_show_info(meta, show_info)
        except SQLAlchemyError:
            # Registration is best-effort; the batch still gets its chance.
            logger.exception("Could not update show metadata")
            return
        if added:
            logger.info("Registered custom fields: %s", ", ".join(added))
