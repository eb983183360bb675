"""
api.routes_show - Show metadata, new show, and snapshot save/load.
"""

from flask import Response, request, jsonify

from api import api_bp
from import_engine import FormatError, PersistenceError
from services.show_service import ShowService


@api_bp.route("/show")
def get_show():
    return jsonify(ShowService().metadata())


@api_bp.route("/show", methods=["PUT"])
def update_show():
    data = request.get_json(force=True)
    try:
        return jsonify(ShowService().update_metadata(data))
    except FormatError as exc:
        return jsonify({"error": str(exc)}), 400


@api_bp.route("/show/new", methods=["POST"])
def new_show():
    """POST /api/v1/show/new  {name, designer, venue, assistant}"""
    data = request.get_json(silent=True) or {}
    return jsonify(ShowService().new_show(data)), 201


@api_bp.route("/show/export")
def export_show():
    body = ShowService().export_snapshot()
    return Response(
        body, mimetype="application/json",
        headers={"Content-Disposition": "attachment; filename=show.json"},
    )


@api_bp.route("/show/import", methods=["POST"])
def import_show():
    """POST /api/v1/show/import  (multipart 'file' or raw JSON body)"""
    if request.content_type and "multipart" in request.content_type:
        f = request.files.get("file")
        content = f.read() if f else b""
    else:
        content = request.get_data()
    if not content:
        return jsonify({"error": "empty upload"}), 400
    try:
        count = ShowService().import_snapshot(content)
    except FormatError as exc:
        return jsonify({"error": str(exc)}), 400
    except PersistenceError as exc:
        return jsonify({"error": str(exc)}), 500
    return jsonify({"instruments": count})
