import logging
import math

from flask import current_app, request

from roomrelay.core.errors import CoordinatorError
from roomrelay.extensions import socketio

logger = logging.getLogger(__name__)


def _emit_error(message: str):
    socketio.emit("error", message, to=request.sid)


def _coordinator():
    return current_app.extensions["roomrelay"]


def _payload(data):
    if not isinstance(data, dict):
        _emit_error("Invalid payload")
        return None
    return data


def _epoch_ms(value):
    """Expiry instants arrive as epoch milliseconds, possibly as strings."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        expiry = float(value)
    except (TypeError, ValueError):
        expiry = None
    if expiry is None or not math.isfinite(expiry):
        logger.warning("Ignoring invalid expiry %r", value)
        return None
    return expiry


@socketio.on("connect")
def handle_connect():
    logger.debug("Connection %s opened", request.sid)


@socketio.on("disconnect")
def handle_disconnect(reason=None):
    _coordinator().disconnect(request.sid)


@socketio.on_error_default
def handle_ws_error(err):
    if isinstance(err, CoordinatorError):
        _emit_error(str(err))
        return
    logger.exception("Unhandled socket error: %s", err)
    _emit_error("Internal server error")


@socketio.on("join")
def handle_join(data):
    data = _payload(data)
    if data is None:
        return
    _coordinator().join(
        request.sid,
        data.get("username"),
        room=data.get("room"),
        expiry=_epoch_ms(data.get("expiry")),
        is_private=bool(data.get("isPrivate")),
        target_user=data.get("targetUser"),
    )


@socketio.on("leaveRoom")
def handle_leave_room(data):
    data = _payload(data)
    if data is None:
        return
    _coordinator().leave(request.sid, data.get("room"))


@socketio.on("message")
def handle_message(data):
    data = _payload(data)
    if data is None:
        return
    _coordinator().send_message(request.sid, data)


@socketio.on("privateMessage")
def handle_private_message(data):
    data = _payload(data)
    if data is None:
        return
    message = dict(data)
    to = message.pop("to", None)
    _coordinator().send_private_message(request.sid, to, message)


@socketio.on("addFriend")
def handle_add_friend(data):
    data = _payload(data)
    if data is None:
        return
    _coordinator().add_friend(data.get("username"), data.get("friend"))


@socketio.on("createRoom")
def handle_create_room(data):
    data = _payload(data)
    if data is None:
        return
    _coordinator().create_room(data.get("name"), expiry=_epoch_ms(data.get("expiry")))


@socketio.on("typing")
def handle_typing(data):
    data = _payload(data)
    if data is None:
        return
    _coordinator().typing(request.sid, "typing", data.get("username"), data.get("room"))


@socketio.on("stopTyping")
def handle_stop_typing(data):
    data = _payload(data)
    if data is None:
        return
    _coordinator().typing(request.sid, "stopTyping", data.get("username"), data.get("room"))


@socketio.on("seen")
def handle_seen(data):
    data = _payload(data)
    if data is None:
        return
    _coordinator().mark_seen(request.sid, data.get("room"), data.get("id"))


@socketio.on("file")
def handle_file(data):
    data = _payload(data)
    if data is None:
        return
    _coordinator().share_file(data)


@socketio.on("offer")
def handle_offer(data):
    data = _payload(data)
    if data is None:
        return
    _coordinator().relay_offer(request.sid, data.get("to"), data.get("offer"), data.get("type"))


@socketio.on("answer")
def handle_answer(data):
    data = _payload(data)
    if data is None:
        return
    _coordinator().relay_answer(data.get("to"), data.get("answer"))


@socketio.on("candidate")
def handle_candidate(data):
    data = _payload(data)
    if data is None:
        return
    _coordinator().relay_candidate(data.get("to"), data.get("candidate"))


@socketio.on("reaction")
def handle_reaction(data):
    data = _payload(data)
    if data is None:
        return
    logger.info("Message %s got a reaction: %s", data.get("id"), data.get("reaction"))


@socketio.on("canvasUpdate")
def handle_canvas_update(data):
    data = _payload(data)
    if data is None:
        return
    _coordinator().canvas_update(data.get("room"), data.get("data"))
