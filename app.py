# app.py
"""
Flask entrypoint for the wager authority service.

Routes (JSON):
  - GET  /api/health
  - GET  /api/games
  - GET  /api/games/<id>
  - POST /api/predictions   body: {gameId, pick, amount, userId}
  - GET  /api/user/<id>

Every response is an envelope: {success, data?, error?, message?, timestamp?}.

Notes:
  - Game and user state live in one AuthorityService per process, persisted to
    DATA_PATH after every accepted prediction and simulator tick.
  - The score simulator runs in a daemon thread (SIM_ENABLED=0 to disable).
"""

from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from wager_sync.config import AppConfig, configure_logging
from wager_sync.errors import WagerSyncError
from wager_sync.handlers.api_handler import ApiHandler, error_envelope
from wager_sync.replica import FileBlobStore, ReplicaStore
from wager_sync.services.authority_service import AuthorityService
from wager_sync.simulator import EventSimulator

logger = logging.getLogger(__name__)

DATA_KEY = "sample-games"


def create_app(
    cfg: Optional[AppConfig] = None,
    service: Optional[AuthorityService] = None,
    start_simulator: Optional[bool] = None,
) -> Flask:
    """
    App factory.

    Builds the authority service (and its simulator) once per process. Tests
    pass a pre-built service over an in-memory store and keep the simulator off.
    """
    cfg = cfg or AppConfig()
    if service is None:
        service = AuthorityService(store=ReplicaStore(FileBlobStore(cfg.data_path), key=DATA_KEY))
        service.load()

    handler = ApiHandler(service=service)
    simulator = EventSimulator(
        catalog=service.catalog,
        interval_seconds=cfg.sim_interval_seconds,
        update_probability=cfg.sim_update_probability,
        max_score_delta=cfg.sim_max_score_delta,
        on_tick=service.on_simulator_tick,
    )

    app = Flask(__name__)
    app.extensions["wager_sync.service"] = service
    app.extensions["wager_sync.simulator"] = simulator

    # -------------------------
    # Error mapping
    # -------------------------

    @app.errorhandler(WagerSyncError)
    def handle_domain_error(e: WagerSyncError):
        """Map the error taxonomy onto status codes; messages go out verbatim."""
        if e.status_code >= 500:
            logger.error("request failed: %s", e)
        return jsonify(error_envelope(str(e))), e.status_code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify(error_envelope(e.description or e.name)), e.code
        logger.exception("unhandled error on %s %s", request.method, request.path)
        return jsonify(error_envelope("Internal server error")), 500

    # -------------------------
    # Routes
    # -------------------------

    @app.get("/api/health")
    def health():
        """Liveness check for monitoring."""
        return jsonify(handler.health())

    @app.get("/api/games")
    def games():
        """All games, in stored order."""
        logger.info("GET /api/games - Fetching all games")
        return jsonify(handler.games())

    @app.get("/api/games/<game_id>")
    def game(game_id: str):
        logger.info("GET /api/games/%s - Fetching specific game", game_id)
        return jsonify(handler.game(game_id))

    @app.post("/api/predictions")
    def predictions():
        """
        Submit a prediction.

        400: missing field, bad amount, game already final, amount > balance
        404: unknown game or user
        """
        body = request.get_json(silent=True)
        logger.info("POST /api/predictions - Submitting prediction: %s", body)
        return jsonify(handler.submit_prediction(body))

    @app.get("/api/user/<user_id>")
    def user(user_id: str):
        logger.info("GET /api/user/%s - Fetching user profile", user_id)
        return jsonify(handler.user(user_id))

    run_sim = cfg.sim_enabled if start_simulator is None else start_simulator
    if run_sim:
        simulator.start()

    return app


def main() -> None:
    cfg = AppConfig()
    configure_logging(cfg.log_level)
    app = create_app(cfg)
    logger.info("Wager sync API server running on http://localhost:%d", cfg.port)
    # Dev server (not for production).
    app.run(host="0.0.0.0", port=cfg.port, debug=False)


if __name__ == "__main__":
    main()
