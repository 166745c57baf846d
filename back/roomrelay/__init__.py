import logging
import os
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import Config
from .core.coordinator import Coordinator
from .extensions import cors, socketio
from .transport import SocketIOTransport


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config())
    if overrides:
        app.config.update(overrides)
    _configure_logging(app)

    cors.init_app(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})
    socketio.init_app(
        app,
        cors_allowed_origins=app.config.get("CORS_ORIGINS", "*"),
        max_http_buffer_size=app.config["MAX_HTTP_BUFFER_SIZE"],
        ping_timeout=app.config["PING_TIMEOUT"],
        ping_interval=app.config["PING_INTERVAL"],
    )
    app.extensions["roomrelay"] = Coordinator(
        SocketIOTransport(socketio),
        default_rooms=app.config["DEFAULT_ROOMS"],
        message_limit=app.config["MESSAGE_STORE_LIMIT"],
    )
    from .ws import handlers  # noqa: F401 - register socket handlers

    from .blueprints.rooms.routes import bp as rooms_bp

    app.register_blueprint(rooms_bp)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        response = {
            "error": {"code": err.name.lower().replace(" ", "_"), "message": err.description}
        }
        return jsonify(response), err.code

    @app.errorhandler(Exception)
    def handle_exception(err):
        app.logger.exception("Unhandled exception: %s", err)
        response = {"error": {"code": "internal_error", "message": "Internal server error"}}
        return jsonify(response), 500

    return app


def _configure_logging(app: Flask):
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    app.logger.setLevel(log_level)
