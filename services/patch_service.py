"""
services.patch_service - Interactive operations on the stored patch.

All session management is the caller's responsibility (open before,
close/commit after).  This keeps the service testable and allows
the caller to batch multiple operations in one transaction.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from db.models import EosTarget, Instrument, InstrumentField, InstrumentNote
from patch.address import coerce_footprint
from patch.detect import find_duplicates, find_overlaps, universe_map
from patch.records import TEXT_FIELDS, canonical_channel

NOTE_TYPES = ("user", "system")


def channel_sort_key(inst: Instrument) -> tuple:
    """Numeric channels in number order, then text channels, then part."""
    channel = inst.channel or ""
    if channel.isdigit():
        return (0, int(channel), "", inst.part or 1, inst.id or 0)
    return (1, 0, channel, inst.part or 1, inst.id or 0)


class PatchService:

    # ── Read ───────────────────────────────────────────────────────────

    @staticmethod
    def get(session: Session, instrument_id: int) -> Instrument | None:
        return session.get(Instrument, instrument_id)

    @staticmethod
    def list_all(session: Session, position: str = "", limit: Optional[int] = None) -> list[Instrument]:
        q = session.query(Instrument)
        if position:
            q = q.filter(Instrument.position == position)
        rows = sorted(q.all(), key=channel_sort_key)
        return rows[:limit] if limit else rows

    @staticmethod
    def all_dicts(session: Session) -> list[dict]:
        return [i.to_dict() for i in session.query(Instrument).order_by(Instrument.id)]

    @staticmethod
    def targets(session: Session, target_type: str = "") -> list[EosTarget]:
        q = session.query(EosTarget)
        if target_type:
            q = q.filter(EosTarget.target_type == target_type)
        return q.order_by(EosTarget.target_type, EosTarget.id).all()

    # ── Create / Update ────────────────────────────────────────────────

    @staticmethod
    def create(session: Session, data: dict) -> Instrument:
        inst = Instrument(channel="", part=1, dmx_footprint=1,
                          **{name: "" for name in TEXT_FIELDS})
        session.add(inst)
        PatchService.update(session, inst, data)
        return inst

    @staticmethod
    def update(session: Session, inst: Instrument, data: dict) -> Instrument:
        """
        Apply the keys present in `data`.  Custom fields with an empty
        value are removed.
        """
        if "channel" in data:
            inst.channel = canonical_channel(data["channel"])
        if "part" in data:
            inst.part = int(data["part"] or 1)
        if "dmx_footprint" in data:
            inst.dmx_footprint = coerce_footprint(data["dmx_footprint"])

        for name in TEXT_FIELDS:
            if name in data:
                setattr(inst, name, str(data[name] if data[name] is not None else "").strip())

        existing = {f.field_name: f for f in inst.fields}
        for name, raw in (data.get("custom_fields") or {}).items():
            val = str(raw if raw is not None else "").strip()
            if name in existing:
                if val:
                    existing[name].field_value = val
                else:
                    inst.fields.remove(existing[name])
            elif val:
                inst.fields.append(InstrumentField(field_name=name, field_value=val))

        session.flush()
        return inst

    @staticmethod
    def bulk_update(
        session: Session,
        ids: list[int],
        updates: dict,
        note_text: Optional[str] = None,
    ) -> int:
        """
        Apply the same updates to many instruments and log a system note
        summarising the change, plus an optional user note.
        """
        rows = session.query(Instrument).filter(Instrument.id.in_(ids)).all()
        for inst in rows:
            PatchService.update(session, inst, updates)

        now = datetime.now(timezone.utc)
        summary = ", ".join(f"{k}: {v}" for k, v in updates.items())
        for inst in rows:
            if summary:
                session.add(InstrumentNote(instrument_id=inst.id, type="system",
                                           text=f"Bulk Update: {summary}", timestamp=now))
            if note_text:
                # One tick later so it sorts above the system entry
                session.add(InstrumentNote(instrument_id=inst.id, type="user", text=note_text,
                                           timestamp=now + timedelta(milliseconds=1)))
        session.flush()
        return len(rows)

    @staticmethod
    def renumber_position(session: Session, position: str, sorted_ids: list[int]) -> int:
        """Assign unit numbers 1..N in the given order within one position."""
        unit = 1
        for instrument_id in sorted_ids:
            inst = session.get(Instrument, instrument_id)
            if inst is None or inst.position != position:
                continue
            inst.unit = str(unit)
            unit += 1
        session.flush()
        return unit - 1

    # ── Delete ─────────────────────────────────────────────────────────

    @staticmethod
    def delete(session: Session, inst: Instrument) -> None:
        session.delete(inst)
        session.flush()

    @staticmethod
    def remove_duplicates(session: Session) -> int:
        """Delete exact duplicates, keeping the first of each.  Returns count."""
        ids = find_duplicates(PatchService.all_dicts(session))
        if ids:
            for inst in session.query(Instrument).filter(Instrument.id.in_(ids)):
                session.delete(inst)
            session.flush()
        return len(ids)

    # ── Notes ──────────────────────────────────────────────────────────

    @staticmethod
    def add_note(session: Session, inst: Instrument, text: str, note_type: str = "user") -> InstrumentNote:
        if note_type not in NOTE_TYPES:
            raise ValueError(f"note type must be one of {NOTE_TYPES}")
        note = InstrumentNote(instrument_id=inst.id, text=text, type=note_type)
        session.add(note)
        session.flush()
        return note

    @staticmethod
    def notes(session: Session, inst: Instrument) -> list[InstrumentNote]:
        """Newest first."""
        return (session.query(InstrumentNote)
                .filter(InstrumentNote.instrument_id == inst.id)
                .order_by(InstrumentNote.timestamp.desc(), InstrumentNote.id.desc())
                .all())

    # ── DMX checks ─────────────────────────────────────────────────────

    @staticmethod
    def overlaps(session: Session, inst: Instrument) -> list[dict]:
        return find_overlaps(inst.to_dict(), PatchService.all_dicts(session))

    @staticmethod
    def universe(session: Session, number: int) -> dict[int, dict]:
        return universe_map(PatchService.all_dicts(session), number)
