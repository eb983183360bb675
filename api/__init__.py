"""
api - Patchbook REST API, mounted at /api/v1.

    routes_instruments  instrument CRUD, bulk edits, notes, DMX checks, targets
    routes_import       patch file import, column preview, GDTF upload
    routes_library      fixture library browse / thumbnail / delete
    routes_show         show metadata, new show, snapshot save / load
    errors              JSON error bodies
"""

from flask import Blueprint

api_bp = Blueprint("api", __name__, url_prefix="/api/v1")

# Import route modules so their @api_bp decorators execute
from api import routes_instruments  # noqa: F401, E402
from api import routes_import       # noqa: F401, E402
from api import routes_library      # noqa: F401, E402
from api import routes_show         # noqa: F401, E402
from api import errors              # noqa: F401, E402
