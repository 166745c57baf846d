from flask_cors import CORS
from flask_socketio import SocketIO

# Let Flask-SocketIO pick the best available async mode (eventlet/gevent/threading).
socketio = SocketIO(async_mode=None, json=None)
cors = CORS()
