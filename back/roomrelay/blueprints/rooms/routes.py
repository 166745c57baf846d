from flask import Blueprint, current_app, jsonify

bp = Blueprint("rooms", __name__)


@bp.route("/rooms", methods=["GET"])
def list_rooms():
    coordinator = current_app.extensions["roomrelay"]
    return jsonify({"rooms": coordinator.catalog(), "online": coordinator.online()})


@bp.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok"})
