"""
db.models - SQLAlchemy ORM declarations.

Tables
------
instruments        - one row per instrument (or per part of a multi-part
                     channel).  (channel, part) is the natural key used
                     by merge imports.
instrument_fields  - EAV store for custom fields.  The set of names in
                     use is registered on show_metadata.
instrument_notes   - append-only audit trail, deleted with the owner.
show_metadata      - singleton show identity + custom field registry.
eos_targets        - Groups / Presets / Subs from Eos CSV exports.
fixture_library    - GDTF fixture types keyed by fixture_type_id.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, Float, DateTime, Text, LargeBinary,
    ForeignKey, Index,
)
from sqlalchemy.orm import DeclarativeBase, relationship

from patch.records import TEXT_FIELDS


def _now():
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Instrument(Base):
    __tablename__ = "instruments"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # ── Identity within the show ───────────────────────────────────────
    channel = Column(String(50), nullable=False, default="", index=True)
    part    = Column(Integer, nullable=False, default=1)

    # ── Patch ──────────────────────────────────────────────────────────
    address       = Column(String(50), default="", index=True)
    dmx_footprint = Column(Integer, nullable=False, default=1)

    # ── Descriptive columns ────────────────────────────────────────────
    type            = Column(String(200), default="", index=True)
    watt            = Column(String(50), default="")
    weight          = Column(String(50), default="")
    purpose         = Column(String(300), default="", index=True)
    position        = Column(String(200), default="", index=True)
    unit            = Column(String(50), default="")
    color           = Column(String(200), default="")
    gobo            = Column(String(200), default="")
    accessory       = Column(String(300), default="")
    gel_frame_size  = Column(String(50), default="")
    fixture_type_id = Column(String(100), default="", index=True)   # weak ref
    proportion      = Column(String(50), default="")
    curve           = Column(String(50), default="")
    notes           = Column(Text, default="")

    # ── Eos user text columns ──────────────────────────────────────────
    text1  = Column(String(300), default="")
    text2  = Column(String(300), default="")
    text3  = Column(String(300), default="")
    text4  = Column(String(300), default="")
    text5  = Column(String(300), default="")
    text6  = Column(String(300), default="")
    text7  = Column(String(300), default="")
    text8  = Column(String(300), default="")
    text9  = Column(String(300), default="")
    text10 = Column(String(300), default="")

    # ── Timestamps ─────────────────────────────────────────────────────
    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    # ── Relationships ──────────────────────────────────────────────────
    fields = relationship(
        "InstrumentField", back_populates="instrument",
        cascade="all, delete-orphan", lazy="selectin",
    )
    note_entries = relationship(
        "InstrumentNote", back_populates="instrument",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    # Ids are never reused, even after a replace import empties the table
    __table_args__ = (
        Index("ix_channel_part", "channel", "part"),
        {"sqlite_autoincrement": True},
    )

    # ── Custom fields ──────────────────────────────────────────────────
    @property
    def custom_fields(self) -> dict[str, str]:
        return {f.field_name: f.field_value for f in self.fields}

    def set_custom_field(self, name: str, value: str) -> None:
        for f in self.fields:
            if f.field_name == name:
                f.field_value = value
                return
        self.fields.append(InstrumentField(field_name=name, field_value=value))

    # ── Serialisation ──────────────────────────────────────────────────
    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "channel": self.channel or "",
            "part": self.part or 1,
            "dmx_footprint": self.dmx_footprint or 1,
        }
        for name in TEXT_FIELDS:
            d[name] = getattr(self, name) or ""
        d["custom_fields"] = self.custom_fields
        return d


class InstrumentField(Base):
    __tablename__ = "instrument_fields"

    id            = Column(Integer, primary_key=True, autoincrement=True)
    instrument_id = Column(Integer,
                           ForeignKey("instruments.id", ondelete="CASCADE"),
                           nullable=False, index=True)
    field_name  = Column(String(200), nullable=False)
    field_value = Column(Text, nullable=False, default="")

    instrument = relationship("Instrument", back_populates="fields")

    __table_args__ = (
        Index("ix_instrument_field_lookup", "instrument_id", "field_name"),
    )


class InstrumentNote(Base):
    __tablename__ = "instrument_notes"

    id            = Column(Integer, primary_key=True, autoincrement=True)
    instrument_id = Column(Integer,
                           ForeignKey("instruments.id", ondelete="CASCADE"),
                           nullable=False, index=True)
    text      = Column(Text, nullable=False, default="")
    type      = Column(String(10), nullable=False, default="user")  # user | system
    timestamp = Column(DateTime, default=_now, index=True)

    instrument = relationship("Instrument", back_populates="note_entries")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "instrument_id": self.instrument_id,
            "text": self.text,
            "type": self.type,
            "timestamp": self.timestamp.isoformat() if self.timestamp else "",
        }


class ShowMetadata(Base):
    """Singleton row - the show currently loaded."""
    __tablename__ = "show_metadata"

    id        = Column(Integer, primary_key=True, autoincrement=True)
    name      = Column(String(300), default="")
    designer  = Column(String(300), default="")
    venue     = Column(String(300), default="")
    assistant = Column(String(300), default="")

    # Ordered list of custom field names, JSON-encoded
    custom_field_definitions_json = Column(Text, default="[]")

    IDENTITY_FIELDS = ("name", "designer", "venue", "assistant")

    @property
    def custom_field_definitions(self) -> list[str]:
        try:
            return list(json.loads(self.custom_field_definitions_json or "[]"))
        except ValueError:
            return []

    @custom_field_definitions.setter
    def custom_field_definitions(self, names: list[str]) -> None:
        self.custom_field_definitions_json = json.dumps(list(names), ensure_ascii=False)

    def to_dict(self) -> dict:
        d = {k: getattr(self, k) or "" for k in self.IDENTITY_FIELDS}
        d["custom_field_definitions"] = self.custom_field_definitions
        return d


class EosTarget(Base):
    __tablename__ = "eos_targets"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    target_type = Column(String(10), nullable=False, index=True)   # Group | Preset | Sub
    target_id   = Column(String(20), nullable=False)
    label       = Column(String(300), default="")
    channels    = Column(Text, default="")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "target_type": self.target_type,
            "target_id": self.target_id,
            "label": self.label or "",
            "channels": self.channels or "",
        }


class FixtureType(Base):
    __tablename__ = "fixture_library"

    id              = Column(Integer, primary_key=True, autoincrement=True)
    fixture_type_id = Column(String(100), nullable=False, default="", index=True)
    name            = Column(String(300), default="", index=True)
    short_name      = Column(String(100), default="", index=True)
    long_name       = Column(String(300), default="")
    manufacturer    = Column(String(200), default="", index=True)
    description     = Column(Text, default="")
    wattage         = Column(Float, default=0.0)
    weight          = Column(Float, default=0.0)

    dmx_modes_json  = Column(Text, default="[]")
    wheels_json     = Column(Text, default="[]")
    thumbnail_blob  = Column(LargeBinary, nullable=True)
    raw_xml         = Column(Text, default="")
    imported_at     = Column(DateTime, default=_now)

    @property
    def dmx_modes(self) -> list[dict]:
        return json.loads(self.dmx_modes_json or "[]")

    @property
    def wheels(self) -> list[dict]:
        return json.loads(self.wheels_json or "[]")

    def to_dict(self, include_wheels: bool = True) -> dict:
        d = {
            "id": self.id,
            "fixture_type_id": self.fixture_type_id,
            "name": self.name or "",
            "short_name": self.short_name or "",
            "long_name": self.long_name or "",
            "manufacturer": self.manufacturer or "",
            "description": self.description or "",
            "wattage": self.wattage or 0,
            "weight": self.weight or 0,
            "dmx_modes": self.dmx_modes,
            "has_thumbnail": self.thumbnail_blob is not None,
            "imported_at": self.imported_at.isoformat() if self.imported_at else "",
        }
        if include_wheels:
            d["wheels"] = self.wheels
        return d
