"""
Patchbook - Centralised configuration.

All tunables live here.  Every other module imports from config
instead of reading os.environ directly.
"""

from __future__ import annotations
import os
from pathlib import Path


# ── Paths ──────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent

# ── Database ───────────────────────────────────────────────────────────
DB_URL = os.environ.get("PATCHBOOK_DB", f"sqlite:///{BASE_DIR / 'patchbook.sqlite'}")

# ── Server ─────────────────────────────────────────────────────────────
HOST   = os.environ.get("PATCHBOOK_HOST", "127.0.0.1")
PORT   = int(os.environ.get("PATCHBOOK_PORT", "5000"))
DEBUG  = os.environ.get("PATCHBOOK_DEBUG", "0") == "1"
SECRET = os.environ.get("PATCHBOOK_SECRET", "patchbook-dev-key-change-in-prod")

# Largest accepted upload (GDTF packages with wheel media can be big)
MAX_UPLOAD_MB = int(os.environ.get("PATCHBOOK_MAX_UPLOAD_MB", "50"))

# ── Logging ────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("PATCHBOOK_LOG_LEVEL", "INFO").upper()

# ── Address display ────────────────────────────────────────────────────
# 'universe' → "2:1", 'absolute' → "513"
ADDRESS_MODE    = os.environ.get("PATCHBOOK_ADDRESS_MODE", "universe")
SHOW_UNIVERSE1  = os.environ.get("PATCHBOOK_SHOW_UNIVERSE1", "0") == "1"
ADDRESS_SEPARATOR = os.environ.get("PATCHBOOK_ADDRESS_SEPARATOR", ":")

# ── Pagination ─────────────────────────────────────────────────────────
API_MAX_LIMIT     = 5000
API_DEFAULT_LIMIT = 1000
