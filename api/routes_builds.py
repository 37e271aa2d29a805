"""
api.routes_builds - /api/v1/builds CRUD, clone and summary.
"""

from flask import request, jsonify

from api import api_bp
from db import get_session
from services.builds_service import BuildsService


@api_bp.route("/builds")
def list_builds():
    """GET /api/v1/builds?car_id="""
    session = get_session()
    try:
        builds = BuildsService.list(session, car_id=request.args.get("car_id", "").strip())
        return jsonify([b.to_dict() for b in builds])
    finally:
        session.close()


@api_bp.route("/builds/<build_id>")
def get_build(build_id: str):
    session = get_session()
    try:
        build = BuildsService.get(session, build_id)
        if not build:
            return jsonify({"error": "not found"}), 404
        return jsonify(build.to_dict())
    finally:
        session.close()


@api_bp.route("/builds", methods=["POST"])
def create_build():
    """
    POST /api/v1/builds

    JSON body: {car_id, name, description?, is_public?,
                upgrades: [{part_id, value?}], settings: [{setting_id, value}],
                gear_1 … gear_20, final_drive}
    """
    data = request.get_json(force=True) or {}
    session = get_session()
    try:
        build = BuildsService.create(session, data)
        session.commit()
        return jsonify(build.to_dict()), 201
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/builds/<build_id>", methods=["PUT", "PATCH"])
def update_build(build_id: str):
    """PUT /api/v1/builds/{id}  (JSON body with fields to update)"""
    data = request.get_json(force=True) or {}
    session = get_session()
    try:
        build = BuildsService.get(session, build_id)
        if not build:
            return jsonify({"error": "not found"}), 404
        BuildsService.update(session, build, data)
        session.commit()
        session.refresh(build)
        return jsonify(build.to_dict())
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/builds/<build_id>/settings/<setting_id>", methods=["PATCH"])
def update_build_setting(build_id: str, setting_id: str):
    """
    PATCH /api/v1/builds/{id}/settings/{setting_id}

    JSON body: {value} or {front?, rear?} for dual-valued settings.
    """
    data = request.get_json(force=True) or {}
    session = get_session()
    try:
        build = BuildsService.get(session, build_id)
        if not build:
            return jsonify({"error": "not found"}), 404
        row = BuildsService.update_setting(session, build, setting_id, data)
        session.commit()
        return jsonify(row.to_dict())
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/builds/<build_id>/clone", methods=["POST"])
def clone_build(build_id: str):
    session = get_session()
    try:
        build = BuildsService.get(session, build_id)
        if not build:
            return jsonify({"error": "not found"}), 404
        copy = BuildsService.clone(session, build)
        session.commit()
        return jsonify(copy.to_dict()), 201
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/builds/<build_id>/summary")
def build_summary(build_id: str):
    """GET /api/v1/builds/{id}/summary - grouped, zero-suppressed view."""
    session = get_session()
    try:
        build = BuildsService.get(session, build_id)
        if not build:
            return jsonify({"error": "not found"}), 404
        return jsonify(BuildsService.summary(session, build))
    finally:
        session.close()


@api_bp.route("/builds/<build_id>", methods=["DELETE"])
def delete_build(build_id: str):
    session = get_session()
    try:
        build = BuildsService.get(session, build_id)
        if not build:
            return jsonify({"error": "not found"}), 404
        BuildsService.delete(session, build)
        session.commit()
        return jsonify({"deleted": build_id})
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
