"""
api.routes_instruments - /api/v1/instruments and patch checks.
"""

from flask import request, jsonify

from api import api_bp
from db import get_session
from patch.address import format_address
from services.library_service import LibraryService
from services.patch_service import PatchService
import config


def _display(inst: dict) -> dict:
    inst["address_display"] = format_address(
        inst["address"],
        mode=request.args.get("address_mode", config.ADDRESS_MODE),
        show_universe1=config.SHOW_UNIVERSE1,
        separator=config.ADDRESS_SEPARATOR,
    )
    return inst


@api_bp.route("/instruments")
def list_instruments():
    """GET /api/v1/instruments?position=&limit="""
    position = request.args.get("position", "").strip()
    try:
        limit = int(request.args.get("limit", config.API_DEFAULT_LIMIT))
    except ValueError:
        return jsonify({"error": "limit must be an integer"}), 400
    limit = min(max(limit, 1), config.API_MAX_LIMIT)
    session = get_session()
    try:
        rows = PatchService.list_all(session, position=position, limit=limit)
        return jsonify({
            "total": len(rows),
            "instruments": [_display(i.to_dict()) for i in rows],
        })
    finally:
        session.close()


@api_bp.route("/instruments/<int:instrument_id>")
def get_instrument(instrument_id: int):
    session = get_session()
    try:
        inst = PatchService.get(session, instrument_id)
        if not inst:
            return jsonify({"error": "not found"}), 404
        return jsonify(_display(inst.to_dict()))
    finally:
        session.close()


@api_bp.route("/instruments", methods=["POST"])
def create_instrument():
    data = request.get_json(force=True)
    session = get_session()
    try:
        inst = PatchService.create(session, data)
        session.commit()
        return jsonify(inst.to_dict()), 201
    except Exception as exc:
        session.rollback()
        return jsonify({"error": str(exc)}), 400
    finally:
        session.close()


@api_bp.route("/instruments/<int:instrument_id>", methods=["PUT"])
def update_instrument(instrument_id: int):
    """PUT /api/v1/instruments/{id}  (JSON body with fields to update)"""
    data = request.get_json(force=True)
    session = get_session()
    try:
        inst = PatchService.get(session, instrument_id)
        if not inst:
            return jsonify({"error": "not found"}), 404
        PatchService.update(session, inst, data)
        session.commit()
        session.refresh(inst)
        return jsonify(inst.to_dict())
    except Exception as exc:
        session.rollback()
        return jsonify({"error": str(exc)}), 400
    finally:
        session.close()


@api_bp.route("/instruments/<int:instrument_id>", methods=["DELETE"])
def delete_instrument(instrument_id: int):
    session = get_session()
    try:
        inst = PatchService.get(session, instrument_id)
        if not inst:
            return jsonify({"error": "not found"}), 404
        PatchService.delete(session, inst)
        session.commit()
        return jsonify({"deleted": instrument_id})
    except Exception as exc:
        session.rollback()
        return jsonify({"error": str(exc)}), 400
    finally:
        session.close()


@api_bp.route("/instruments/bulk", methods=["POST"])
def bulk_update_instruments():
    """POST /api/v1/instruments/bulk  {ids: [..], updates: {..}, note: ".."}"""
    data = request.get_json(force=True)
    session = get_session()
    try:
        count = PatchService.bulk_update(
            session, data.get("ids") or [], data.get("updates") or {}, data.get("note"),
        )
        session.commit()
        return jsonify({"updated": count})
    except Exception as exc:
        session.rollback()
        return jsonify({"error": str(exc)}), 400
    finally:
        session.close()


@api_bp.route("/instruments/renumber", methods=["POST"])
def renumber_units():
    """POST /api/v1/instruments/renumber  {position: "..", ids: [..]}"""
    data = request.get_json(force=True)
    session = get_session()
    try:
        count = PatchService.renumber_position(session, data.get("position", ""), data.get("ids") or [])
        session.commit()
        return jsonify({"renumbered": count})
    except Exception as exc:
        session.rollback()
        return jsonify({"error": str(exc)}), 400
    finally:
        session.close()


@api_bp.route("/instruments/dedupe", methods=["POST"])
def remove_duplicates():
    session = get_session()
    try:
        removed = PatchService.remove_duplicates(session)
        session.commit()
        return jsonify({"removed": removed})
    except Exception as exc:
        session.rollback()
        return jsonify({"error": str(exc)}), 400
    finally:
        session.close()


@api_bp.route("/instruments/<int:instrument_id>/notes", methods=["GET", "POST"])
def instrument_notes(instrument_id: int):
    session = get_session()
    try:
        inst = PatchService.get(session, instrument_id)
        if not inst:
            return jsonify({"error": "not found"}), 404
        if request.method == "POST":
            data = request.get_json(force=True)
            text = str(data.get("text", "")).strip()
            if not text:
                return jsonify({"error": "note text required"}), 400
            note = PatchService.add_note(session, inst, text, data.get("type", "user"))
            session.commit()
            return jsonify(note.to_dict()), 201
        return jsonify({"notes": [n.to_dict() for n in PatchService.notes(session, inst)]})
    except ValueError as exc:
        session.rollback()
        return jsonify({"error": str(exc)}), 400
    finally:
        session.close()


@api_bp.route("/instruments/<int:instrument_id>/overlaps")
def instrument_overlaps(instrument_id: int):
    session = get_session()
    try:
        inst = PatchService.get(session, instrument_id)
        if not inst:
            return jsonify({"error": "not found"}), 404
        return jsonify({"overlaps": PatchService.overlaps(session, inst)})
    finally:
        session.close()


@api_bp.route("/instruments/<int:instrument_id>/link", methods=["POST"])
def link_instrument(instrument_id: int):
    """POST /api/v1/instruments/{id}/link  {fixture_type_id, populate_wattage, mode}"""
    data = request.get_json(force=True)
    session = get_session()
    try:
        inst = PatchService.get(session, instrument_id)
        if not inst:
            return jsonify({"error": "not found"}), 404
        LibraryService.link_instrument(
            session, inst, str(data.get("fixture_type_id", "")),
            populate_wattage=bool(data.get("populate_wattage", True)),
            mode_name=data.get("mode"),
        )
        session.commit()
        return jsonify(inst.to_dict())
    except LookupError as exc:
        session.rollback()
        return jsonify({"error": str(exc)}), 404
    finally:
        session.close()


@api_bp.route("/universes/<int:number>")
def universe_view(number: int):
    """GET /api/v1/universes/{n} → occupied slots with overlap flags"""
    session = get_session()
    try:
        slots = PatchService.universe(session, number)
        return jsonify({
            "universe": number,
            "slots": {str(k): v for k, v in sorted(slots.items())},
            "overlaps": sorted(k for k, v in slots.items() if v["overlap"]),
        })
    finally:
        session.close()


@api_bp.route("/targets")
def list_targets():
    """GET /api/v1/targets?type=Group|Preset|Sub"""
    session = get_session()
    try:
        rows = PatchService.targets(session, request.args.get("type", "").strip())
        return jsonify({"targets": [t.to_dict() for t in rows]})
    finally:
        session.close()
