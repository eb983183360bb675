"""
api.routes_import - Patch file import endpoints.

Accepts the file via multipart upload (field 'file') or raw request body.
"""

from flask import request, jsonify

from api import api_bp
from import_engine import (
    FormatError, detect_format, preview_fields, run_gdtf_import, run_import,
)


def _read_upload():
    """Return (content, filename) from a multipart upload or raw body."""
    if request.content_type and "multipart" in request.content_type:
        f = request.files.get("file")
        if not f:
            return None, ""
        return f.read(), f.filename or ""
    return request.get_data(), request.args.get("filename", "")


def _format(filename: str) -> str:
    return request.args.get("format", "").strip().lower() or detect_format(filename) or ""


@api_bp.route("/import", methods=["POST"])
def api_import_patch():
    """
    POST /api/v1/import?format=txt|csv|xml&mode=merge|replace&fields=A,B

    Show info for replace imports may be passed as name / designer /
    venue / assistant form fields or query args.
    """
    content, filename = _read_upload()
    if not content:
        return jsonify({"error": "empty upload"}), 400

    fmt = _format(filename)
    if fmt == "gdtf":
        return jsonify({"error": "use /library/import for GDTF packages"}), 400

    fields_arg = request.values.get("fields")
    selected = [f.strip() for f in fields_arg.split(",") if f.strip()] if fields_arg else None
    show_info = {k: request.values.get(k, "") for k in ("name", "designer", "venue", "assistant")}

    report = run_import(
        content, fmt,
        policy=request.values.get("mode", "merge"),
        selected_fields=selected,
        show_info=show_info,
    )
    return jsonify(report.to_dict()), (200 if report.success else 400)


@api_bp.route("/import/preview", methods=["POST"])
def api_import_preview():
    """POST /api/v1/import/preview?format=txt|csv → detected columns"""
    content, filename = _read_upload()
    if not content:
        return jsonify({"error": "empty upload"}), 400
    fmt = _format(filename)
    try:
        fields = preview_fields(content, fmt)
    except FormatError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify({"format": fmt, "fields": fields})


@api_bp.route("/library/import", methods=["POST"])
def api_import_gdtf():
    """POST /api/v1/library/import  (multipart 'file' or raw .gdtf body)"""
    content, _ = _read_upload()
    if not content:
        return jsonify({"error": "empty upload"}), 400
    report = run_gdtf_import(content)
    return jsonify(report.to_dict()), (200 if report.success else 400)
