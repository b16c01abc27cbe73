import os
import sys
import pytest

# Ensure the backend root (containing the `infinity_server` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from infinity_server import create_app, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:5173']
    SOCKETIO_NAMESPACE = '/'
    MAX_ROOMS = 10
    ROOM_ID_LENGTH = 6
    ROOM_ID_MAX_ATTEMPTS = 5
    # Few iterations keep passcode tests fast
    PASSCODE_HASH_METHOD = 'pbkdf2:sha256:1000'
    HOST = '127.0.0.1'
    PORT = 3001


class RecordingPublisher:
    """Stands in for Socket.IO; remembers who was bound and what was sent."""

    def __init__(self):
        self.groups = {}
        self.sent = []

    def bind(self, sid, room_id):
        self.groups.setdefault(room_id, set()).add(sid)

    def send(self, sid, event, *args):
        self.sent.append({'to': sid, 'event': event, 'args': list(args), 'skip': None})

    def publish(self, room_id, event, *args, skip_sid=None):
        self.sent.append({'to': f"room:{room_id}", 'event': event, 'args': list(args), 'skip': skip_sid})

    def received_by(self, sid):
        """Events a given connection would have seen, in order."""
        out = []
        for msg in self.sent:
            if msg['to'] == sid:
                out.append(msg)
            elif msg['to'].startswith('room:') and msg['skip'] != sid:
                if sid in self.groups.get(msg['to'][len('room:'):], set()):
                    out.append(msg)
        return out

    def events(self, name):
        return [msg for msg in self.sent if msg['event'] == name]

    def clear(self):
        self.sent = []


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def coordinator(flask_app):
    return flask_app.extensions['room_coordinator']


@pytest.fixture()
def hash_method():
    return TestConfig.PASSCODE_HASH_METHOD


@pytest.fixture()
def publisher():
    return RecordingPublisher()


@pytest.fixture()
def make_sio_client(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass


@pytest.fixture()
def sio_client(make_sio_client):
    return make_sio_client()


@pytest.fixture()
def offline_coordinator(coordinator, publisher):
    """The app's coordinator with Socket.IO swapped for a recording publisher."""
    coordinator.publisher = publisher
    coordinator.presence.publisher = publisher
    return coordinator
