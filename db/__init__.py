"""
db - Database layer.

Public API:
    init_db()       → create engine + tables
    get_session()   → new Session
    PatchStore      → transactional persistence port for imports
    Instrument, ShowMetadata, EosTarget, FixtureType, … → ORM models
"""

from db.engine import init_db, get_session                      # noqa: F401
from db.models import (                                         # noqa: F401
    Base,
    Instrument,
    InstrumentField,
    InstrumentNote,
    ShowMetadata,
    EosTarget,
    FixtureType,
)
from db.store import PatchStore, PatchTransaction               # noqa: F401
