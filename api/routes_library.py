"""
api.routes_library - /api/v1/library fixture library endpoints.
"""

from flask import Response, request, jsonify

from api import api_bp
from db import get_session
from services.library_service import LibraryService


@api_bp.route("/library")
def list_library():
    """GET /api/v1/library?q=  (search on name, manufacturer, short name)"""
    q = request.args.get("q", "").strip()
    session = get_session()
    try:
        rows = LibraryService.search(session, q) if q else LibraryService.list_all(session)
        return jsonify({
            "total": len(rows),
            "fixtures": [r.to_dict(include_wheels=False) for r in rows],
        })
    finally:
        session.close()


@api_bp.route("/library/<int:library_id>")
def get_library_entry(library_id: int):
    session = get_session()
    try:
        row = LibraryService.get(session, library_id)
        if not row:
            return jsonify({"error": "not found"}), 404
        return jsonify(row.to_dict())
    finally:
        session.close()


@api_bp.route("/library/<int:library_id>/thumbnail")
def get_library_thumbnail(library_id: int):
    session = get_session()
    try:
        row = LibraryService.get(session, library_id)
        if not row or row.thumbnail_blob is None:
            return jsonify({"error": "not found"}), 404
        blob = row.thumbnail_blob
        mimetype = "image/svg+xml" if blob.lstrip().startswith(b"<") else "image/png"
        return Response(blob, mimetype=mimetype)
    finally:
        session.close()


@api_bp.route("/library/<int:library_id>", methods=["DELETE"])
def delete_library_entry(library_id: int):
    session = get_session()
    try:
        row = LibraryService.get(session, library_id)
        if not row:
            return jsonify({"error": "not found"}), 404
        LibraryService.delete(session, row)
        session.commit()
        return jsonify({"deleted": library_id})
    except Exception as exc:
        session.rollback()
        return jsonify({"error": str(exc)}), 400
    finally:
        session.close()
