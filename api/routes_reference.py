"""
api.routes_reference - /api/v1 read-only reference data.

Parts, tuning settings, cars and tracks change only on import, so
list responses are cacheable; ?nocache=true opts out.
"""

from flask import request, jsonify

from api import api_bp
from db import get_session
from services.reference_service import ReferenceService, active_filter
import config


def _cached(resp):
    if request.args.get("nocache") == "true":
        resp.headers["Cache-Control"] = "no-store"
    else:
        resp.headers["Cache-Control"] = f"public, max-age={config.REFERENCE_CACHE_SECONDS}"
    return resp


def _active_param():
    return active_filter(
        request.args.get("active"),
        request.args.get("include_inactive") == "true",
    )


# ── Parts ──────────────────────────────────────────────────────────────

@api_bp.route("/parts/categories")
def list_part_categories():
    """GET /api/v1/parts/categories"""
    session = get_session()
    try:
        cats = ReferenceService.list_part_categories(session)
        return _cached(jsonify([c.to_dict() for c in cats]))
    finally:
        session.close()


@api_bp.route("/parts")
def list_parts():
    """GET /api/v1/parts?category_id=&active=&include_inactive=&nocache="""
    session = get_session()
    try:
        parts = ReferenceService.list_parts(
            session,
            category_id=request.args.get("category_id", "").strip(),
            is_active=_active_param(),
        )
        return _cached(jsonify([p.to_dict() for p in parts]))
    finally:
        session.close()


@api_bp.route("/parts/<part_id>")
def get_part(part_id: str):
    """GET /api/v1/parts/{id}"""
    session = get_session()
    try:
        part = ReferenceService.get_part(session, part_id)
        if not part:
            return jsonify({"error": "not found"}), 404
        return jsonify(part.to_dict())
    finally:
        session.close()


# ── Tuning settings ────────────────────────────────────────────────────

@api_bp.route("/tuning-settings/sections")
def list_tuning_sections():
    """GET /api/v1/tuning-settings/sections"""
    session = get_session()
    try:
        sections = ReferenceService.list_sections(session)
        return _cached(jsonify([s.to_dict() for s in sections]))
    finally:
        session.close()


@api_bp.route("/tuning-settings")
def list_tuning_settings():
    """GET /api/v1/tuning-settings?section_id=&active=&include_inactive=&nocache="""
    session = get_session()
    try:
        settings = ReferenceService.list_settings(
            session,
            section_id=request.args.get("section_id", "").strip(),
            is_active=_active_param(),
        )
        return _cached(jsonify([s.to_dict() for s in settings]))
    finally:
        session.close()


@api_bp.route("/tuning-settings/<setting_id>")
def get_tuning_setting(setting_id: str):
    """GET /api/v1/tuning-settings/{id}"""
    session = get_session()
    try:
        setting = ReferenceService.get_setting(session, setting_id)
        if not setting:
            return jsonify({"error": "not found"}), 404
        return jsonify(setting.to_dict())
    finally:
        session.close()


# ── Cars / tracks ──────────────────────────────────────────────────────

@api_bp.route("/cars")
def list_cars():
    """GET /api/v1/cars?q="""
    session = get_session()
    try:
        cars = ReferenceService.list_cars(session, q=request.args.get("q", "").strip())
        return _cached(jsonify([c.to_dict() for c in cars]))
    finally:
        session.close()


@api_bp.route("/cars/<slug_or_id>")
def get_car(slug_or_id: str):
    session = get_session()
    try:
        car = ReferenceService.get_car(session, slug_or_id)
        if not car:
            return jsonify({"error": "not found"}), 404
        return jsonify(car.to_dict())
    finally:
        session.close()


@api_bp.route("/tracks")
def list_tracks():
    """GET /api/v1/tracks?q="""
    session = get_session()
    try:
        tracks = ReferenceService.list_tracks(session, q=request.args.get("q", "").strip())
        return _cached(jsonify([t.to_dict() for t in tracks]))
    finally:
        session.close()


@api_bp.route("/tracks/<slug_or_id>")
def get_track(slug_or_id: str):
    session = get_session()
    try:
        track = ReferenceService.get_track(session, slug_or_id)
        if not track:
            return jsonify({"error": "not found"}), 404
        return jsonify(track.to_dict())
    finally:
        session.close()
