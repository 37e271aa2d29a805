"""
api.routes_lap_times - /api/v1/lap-times endpoints.
"""

from flask import request, jsonify

from api import api_bp
from db import get_session
from services.lap_times_service import LapTimesService


@api_bp.route("/lap-times")
def list_lap_times():
    """GET /api/v1/lap-times?car_id=&track_id="""
    session = get_session()
    try:
        laps = LapTimesService.list(
            session,
            car_id=request.args.get("car_id", "").strip(),
            track_id=request.args.get("track_id", "").strip(),
        )
        return jsonify([lap.to_dict() for lap in laps])
    finally:
        session.close()


@api_bp.route("/lap-times", methods=["POST"])
def create_lap_time():
    """
    POST /api/v1/lap-times

    JSON body: {car_id, track_id, time: "1:23.456" | time_ms,
                session_type: "Q"|"R", build_id?, conditions?, notes?}
    """
    data = request.get_json(force=True) or {}
    session = get_session()
    try:
        lap = LapTimesService.create(session, data)
        session.commit()
        return jsonify(lap.to_dict()), 201
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@api_bp.route("/lap-times/<lap_id>", methods=["DELETE"])
def delete_lap_time(lap_id: str):
    session = get_session()
    try:
        lap = LapTimesService.get(session, lap_id)
        if not lap:
            return jsonify({"error": "not found"}), 404
        LapTimesService.delete(session, lap)
        session.commit()
        return jsonify({"deleted": lap_id})
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
