#!/usr/bin/env python3
"""
GT7DB - Gran Turismo 7 build and session planner
================================================

Single-command run:  python main.py

See config.py for all environment-variable tunables.
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify

import config
from db import init_db, session_scope, PartCategory
from api import api_bp


def create_app(db_url: str | None = None) -> Flask:
    """Flask application factory."""

    app = Flask(__name__)
    app.secret_key = config.SECRET

    # ── Initialise database ─────────────────────────────────────────
    init_db(db_url or config.DB_URL)

    # ── Register blueprints ─────────────────────────────────────────
    app.register_blueprint(api_bp)

    # ── Error handlers ──────────────────────────────────────────────
    @app.errorhandler(404)
    def _404(e):
        return jsonify({"error": "not found"}), 404

    @app.errorhandler(500)
    def _500(e):
        return jsonify({"error": "internal server error"}), 500

    return app


def _seed_if_empty():
    """Run the reference-data migration when the database is empty."""
    with session_scope() as session:
        count = session.query(PartCategory).count()

    if count > 0:
        print(f"\n  Database has {count} part categories.")
        return

    missing = [p for p in (config.PARTS_CSV_PATH, config.TUNING_CSV_PATH) if not p.exists()]
    if missing:
        print(f"\n  No seed CSV at {missing[0]} - starting empty.")
        return

    print("\n  Database empty → importing reference data …")
    from import_engine import run_migration, read_source

    # Car and track catalogues are optional
    catalogues = [read_source(p) if p.exists() else None
                  for p in (config.CARS_CSV_PATH, config.TRACKS_CSV_PATH)]

    with session_scope() as session:
        report = run_migration(
            session,
            read_source(config.PARTS_CSV_PATH),
            read_source(config.TUNING_CSV_PATH),
            *catalogues,
        )
    report.print_summary()


def main():
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    print("=" * 56)
    print("  GT7DB - Build & Session Planner")
    print("=" * 56)

    app = create_app()
    print(f"  Database: {config.DB_URL}")
    _seed_if_empty()

    print(f"\n  http://{config.HOST}:{config.PORT}/api/v1")
    print("=" * 56)

    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)


if __name__ == "__main__":
    main()
