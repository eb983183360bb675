"""
db.store - Persistence port used by the import engine.

The engine never touches a session directly.  It asks PatchStore for a
transaction and calls the small set of batch operations below; every
call made inside one `with store.transact() as tx:` block commits or
rolls back together.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterable, Iterator, Optional

from sqlalchemy.orm import Session

from db.engine import get_session
from db.models import EosTarget, Instrument, InstrumentField, InstrumentNote, ShowMetadata


class PatchTransaction:
    """Operations valid inside one open transaction."""

    def __init__(self, session: Session):
        self.session = session

    # ── Instruments ────────────────────────────────────────────────────

    def clear(self) -> int:
        """Delete every instrument together with its custom fields and notes."""
        self.session.query(InstrumentNote).delete(synchronize_session=False)
        self.session.query(InstrumentField).delete(synchronize_session=False)
        count = self.session.query(Instrument).delete(synchronize_session=False)
        self.session.expire_all()
        return count

    def insert(self, values: dict, custom_fields: Optional[dict] = None) -> Instrument:
        inst = Instrument(**values)
        for name, value in (custom_fields or {}).items():
            inst.fields.append(InstrumentField(field_name=name, field_value=value))
        self.session.add(inst)
        return inst

    def bulk_insert(self, rows: Iterable[tuple[dict, dict]]) -> int:
        count = 0
        for values, custom in rows:
            self.insert(values, custom)
            count += 1
        self.session.flush()
        return count

    def find_by_key(self, channel: str, part: Optional[int] = None) -> Optional[Instrument]:
        """(channel, part) when part is given, else the first row on channel."""
        q = self.session.query(Instrument).filter(Instrument.channel == channel)
        if part:
            q = q.filter(Instrument.part == part)
        return q.order_by(Instrument.id).first()

    def update_by_key(
        self,
        channel: str,
        part: Optional[int],
        values: dict,
        custom_fields: Optional[dict] = None,
    ) -> Optional[Instrument]:
        """
        Field-level update of the matching row.  Keys missing from
        `values` are left untouched.  Returns None when nothing matched.
        """
        inst = self.find_by_key(channel, part)
        if inst is None:
            return None
        for key, val in values.items():
            setattr(inst, key, val)
        for name, val in (custom_fields or {}).items():
            inst.set_custom_field(name, val)
        self.session.flush()
        return inst

    # ── Targets ────────────────────────────────────────────────────────

    def clear_targets(self) -> int:
        return self.session.query(EosTarget).delete(synchronize_session=False)

    def insert_targets(self, targets: Iterable[dict]) -> int:
        rows = [EosTarget(**t) for t in targets]
        self.session.add_all(rows)
        return len(rows)

    # ── Show metadata ──────────────────────────────────────────────────

    def metadata(self, create: bool = True) -> Optional[ShowMetadata]:
        meta = self.session.query(ShowMetadata).order_by(ShowMetadata.id).first()
        if meta is None and create:
            meta = ShowMetadata()
            self.session.add(meta)
        return meta

    def clear_metadata(self) -> None:
        self.session.query(ShowMetadata).delete(synchronize_session=False)


class PatchStore:
    def __init__(self, session_factory: Callable[[], Session] = get_session):
        self._session_factory = session_factory

    @contextmanager
    def transact(self) -> Iterator[PatchTransaction]:
        """Commit on clean exit, roll back and re-raise on any exception."""
        session = self._session_factory()
        try:
            yield PatchTransaction(session)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
