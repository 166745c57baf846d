NAMESPACE = "/"


class SocketIOTransport:
    """Addresses Flask-SocketIO connections and rooms on behalf of the coordinator.

    Usable outside a request context (timer threads), so it goes through the
    underlying python-socketio server instead of the request-bound helpers.
    """

    def __init__(self, socketio, namespace: str = NAMESPACE):
        self._socketio = socketio
        self._namespace = namespace

    def emit(self, event: str, *args, to=None, skip_sid=None):
        self._socketio.emit(event, *args, to=to, skip_sid=skip_sid, namespace=self._namespace)

    def enter_room(self, sid: str, room: str):
        self._socketio.server.enter_room(sid, room, namespace=self._namespace)

    def leave_room(self, sid: str, room: str):
        self._socketio.server.leave_room(sid, room, namespace=self._namespace)

    def close_room(self, room: str):
        self._socketio.server.close_room(room, namespace=self._namespace)
