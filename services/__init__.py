"""
services - Business-logic layer sitting between API and DB.
"""

from services.patch_service import PatchService         # noqa: F401
from services.library_service import LibraryService     # noqa: F401
