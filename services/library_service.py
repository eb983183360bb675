"""
services.library_service - Fixture library (GDTF fixture types).

The library is a side table keyed by the manufacturer's fixture type
id.  Instruments only hold that id as a weak reference; linking copies
values across once and never keeps them in sync.

All session management is the caller's responsibility.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from db.models import FixtureType, Instrument
from patch.records import FixtureTypeDefinition


def _number_text(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


class LibraryService:

    @staticmethod
    def upsert(session: Session, definition: FixtureTypeDefinition) -> tuple[FixtureType, bool]:
        """
        Insert the fixture type, or overwrite the row that already has
        its fixture_type_id.  Returns (row, created).
        """
        row = (session.query(FixtureType)
               .filter(FixtureType.fixture_type_id == definition.fixture_type_id)
               .first())
        created = row is None
        if created:
            row = FixtureType(fixture_type_id=definition.fixture_type_id)
            session.add(row)

        row.name = definition.name
        row.short_name = definition.short_name
        row.long_name = definition.long_name
        row.manufacturer = definition.manufacturer
        row.description = definition.description
        row.wattage = definition.wattage
        row.weight = definition.weight
        row.dmx_modes_json = json.dumps(definition.modes_as_dicts(), ensure_ascii=False)
        row.wheels_json = json.dumps(definition.wheels_as_dicts(), ensure_ascii=False)
        row.thumbnail_blob = definition.thumbnail_data
        row.raw_xml = definition.raw_xml
        row.imported_at = datetime.now(timezone.utc)
        session.flush()
        return row, created

    @staticmethod
    def list_all(session: Session) -> list[FixtureType]:
        return (session.query(FixtureType)
                .order_by(FixtureType.manufacturer, FixtureType.name)
                .all())

    @staticmethod
    def search(session: Session, query: str) -> list[FixtureType]:
        """Case-insensitive substring match on name, manufacturer, short name."""
        like = f"%{query.strip()}%"
        return (session.query(FixtureType)
                .filter(
                    FixtureType.name.ilike(like)
                    | FixtureType.manufacturer.ilike(like)
                    | FixtureType.short_name.ilike(like)
                )
                .order_by(FixtureType.manufacturer, FixtureType.name)
                .all())

    @staticmethod
    def get(session: Session, library_id: int) -> Optional[FixtureType]:
        return session.get(FixtureType, library_id)

    @staticmethod
    def get_by_type_id(session: Session, fixture_type_id: str) -> Optional[FixtureType]:
        return (session.query(FixtureType)
                .filter(FixtureType.fixture_type_id == fixture_type_id)
                .first())

    @staticmethod
    def delete(session: Session, row: FixtureType) -> None:
        session.delete(row)

    @staticmethod
    def link_instrument(
        session: Session,
        instrument: Instrument,
        fixture_type_id: str,
        populate_wattage: bool = True,
        mode_name: Optional[str] = None,
    ) -> Instrument:
        """
        Point an instrument at a library fixture type.  Optionally copy
        the wattage and the footprint of one DMX mode onto it.
        Raises LookupError when the type or mode is unknown.
        """
        fixture = LibraryService.get_by_type_id(session, fixture_type_id)
        if fixture is None:
            raise LookupError("Fixture type not found in library")

        instrument.fixture_type_id = fixture_type_id
        if populate_wattage and fixture.wattage:
            instrument.watt = _number_text(fixture.wattage)

        if mode_name:
            mode = next((m for m in fixture.dmx_modes if m.get("name") == mode_name), None)
            if mode is None:
                raise LookupError(f"Fixture type has no DMX mode {mode_name!r}")
            instrument.dmx_footprint = mode.get("footprint") or 1

        session.flush()
        return instrument
