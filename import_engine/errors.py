"""
import_engine.errors - Failures that cross the import engine boundary.

Malformed single cells never raise; adapters substitute a default and
carry on.  Only whole-file problems and failed commits get here.
"""


class ImportEngineError(Exception):
    """Base class for import failures that reach the caller."""
    pass


class FormatError(ImportEngineError):
    """The input does not have the structure the chosen format requires."""
    pass


class PersistenceError(ImportEngineError):
    """The atomic batch commit failed; nothing of the batch was written."""
    pass
