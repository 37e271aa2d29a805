"""
api.routes_import - /api/v1/import/<kind> endpoint.

Accepts CSV via multipart file upload or raw request body.
"""

from flask import request, jsonify

from api import api_bp
from db import get_session
from import_engine import run_import, IMPORT_KINDS


@api_bp.route("/import/<kind>", methods=["POST"])
def api_import_csv(kind: str):
    """
    POST /api/v1/import/parts | tuning | cars | tracks

    Multipart: field name 'csv_file'
    Or: raw CSV as request body (Content-Type: text/csv).
    """
    if kind not in IMPORT_KINDS:
        return jsonify({"error": f"unknown import kind: {kind}"}), 404

    if request.content_type and "multipart" in request.content_type:
        f = request.files.get("csv_file")
        if not f:
            return jsonify({"error": "no csv_file in upload"}), 400
        content = f.read()
    else:
        content = request.get_data()

    if not content:
        return jsonify({"error": "empty body"}), 400

    session = get_session()
    try:
        report = run_import(session, kind, content)
        return jsonify(report.to_dict())
    finally:
        session.close()
