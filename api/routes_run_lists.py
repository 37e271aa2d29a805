"""
api.routes_run_lists - /api/v1/races and /api/v1/run-lists endpoints.
"""

from flask import request, jsonify

from api import api_bp
from db import get_session
from services.run_lists_service import RunListsService


# ── Races ──────────────────────────────────────────────────────────────

@api_bp.route("/races")
def list_races():
    """GET /api/v1/races?track_id="""
    session = get_session()
    try:
        races = RunListsService.list_races(
            session, track_id=request.args.get("track_id", "").strip(),
        )
        return jsonify([r.to_dict() for r in races])
    finally:
        session.close()


@api_bp.route("/races", methods=["POST"])
def create_race():
    """POST /api/v1/races  {track_id, name?, laps?, weather?: dry|wet}"""
    data = request.get_json(force=True) or {}
    session = get_session()
    try:
        race = RunListsService.create_race(session, data)
        session.commit()
        return jsonify(race.to_dict()), 201
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ── Run lists ──────────────────────────────────────────────────────────

@api_bp.route("/run-lists")
def list_run_lists():
    session = get_session()
    try:
        return jsonify([r.to_dict() for r in RunListsService.list(session)])
    finally:
        session.close()


@api_bp.route("/run-lists/active")
def get_active_run_list():
    """GET /api/v1/run-lists/active  - 404 when no list is active"""
    session = get_session()
    try:
        run_list = RunListsService.get_active(session)
        if not run_list:
            return jsonify({"error": "no active run list"}), 404
        return jsonify(run_list.to_dict())
    finally:
        session.close()


@api_bp.route("/run-lists/<run_list_id>")
def get_run_list(run_list_id: str):
    session = get_session()
    try:
        run_list = RunListsService.get(session, run_list_id)
        if not run_list:
            return jsonify({"error": "not found"}), 404
        return jsonify(run_list.to_dict())
    finally:
        session.close()


@api_bp.route("/run-lists", methods=["POST"])
def create_run_list():
    """POST /api/v1/run-lists  {name, description?, is_active?}"""
    data = request.get_json(force=True) or {}
    session = get_session()
    try:
        run_list = RunListsService.create(session, data)
        session.commit()
        return jsonify(run_list.to_dict()), 201
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/run-lists/<run_list_id>", methods=["PATCH"])
def update_run_list(run_list_id: str):
    """PATCH /api/v1/run-lists/{id}  {name?, description?, is_active?}"""
    data = request.get_json(force=True) or {}
    session = get_session()
    try:
        run_list = RunListsService.get(session, run_list_id)
        if not run_list:
            return jsonify({"error": "not found"}), 404
        RunListsService.update(session, run_list, data)
        session.commit()
        return jsonify(run_list.to_dict())
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/run-lists/<run_list_id>", methods=["DELETE"])
def delete_run_list(run_list_id: str):
    session = get_session()
    try:
        run_list = RunListsService.get(session, run_list_id)
        if not run_list:
            return jsonify({"error": "not found"}), 404
        RunListsService.delete(session, run_list)
        session.commit()
        return jsonify({"deleted": run_list_id})
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ── Entries ────────────────────────────────────────────────────────────

@api_bp.route("/run-lists/<run_list_id>/entries", methods=["POST"])
def add_run_list_entry(run_list_id: str):
    """POST /api/v1/run-lists/{id}/entries  {race_id, notes?}"""
    data = request.get_json(force=True) or {}
    session = get_session()
    try:
        run_list = RunListsService.get(session, run_list_id)
        if not run_list:
            return jsonify({"error": "not found"}), 404
        entry = RunListsService.add_entry(session, run_list, data)
        session.commit()
        return jsonify(entry.to_dict()), 201
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/run-lists/<run_list_id>/entries/<entry_id>", methods=["DELETE"])
def remove_run_list_entry(run_list_id: str, entry_id: str):
    session = get_session()
    try:
        run_list = RunListsService.get(session, run_list_id)
        if not run_list:
            return jsonify({"error": "not found"}), 404
        RunListsService.remove_entry(session, run_list, entry_id)
        session.commit()
        return jsonify(run_list.to_dict())
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/run-lists/<run_list_id>/reorder", methods=["PATCH"])
def reorder_run_list(run_list_id: str):
    """PATCH /api/v1/run-lists/{id}/reorder  {entry_id, new_order}"""
    data = request.get_json(force=True) or {}
    session = get_session()
    try:
        run_list = RunListsService.get(session, run_list_id)
        if not run_list:
            return jsonify({"error": "not found"}), 404
        entries = RunListsService.reorder(
            session, run_list, str(data.get("entry_id") or ""), data.get("new_order"),
        )
        session.commit()
        return jsonify([e.to_dict() for e in entries])
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
