from roomrelay import create_app
from roomrelay.extensions import socketio

app = create_app()


if __name__ == "__main__":
    # Use socketio.run to support WebSocket transport
    socketio.run(app, host="0.0.0.0", port=int(app.config.get("PORT", 3000)))
