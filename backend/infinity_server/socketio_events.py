from flask import current_app, request
from flask_socketio import SocketIO, emit, join_room
from typing import Any, Optional

from infinity_server import socketio
from infinity_server.coordinator import SessionCoordinator


class SocketIOPublisher:
    """Publishes coordinator events through Flask-SocketIO rooms.

    Every game room maps to the Socket.IO room ``room:<room_id>`` so that
    caller-chosen ids can never collide with per-connection rooms.
    """

    def __init__(self, server: SocketIO, namespace: str = '/'):
        self.server = server
        self.namespace = namespace

    @staticmethod
    def group(room_id: str) -> str:
        return f"room:{room_id}"

    def bind(self, sid: str, room_id: str) -> None:
        join_room(self.group(room_id), sid=sid, namespace=self.namespace)

    def send(self, sid: str, event: str, *args) -> None:
        self.server.emit(event, *args, to=sid, namespace=self.namespace)

    def publish(self, room_id: str, event: str, *args, skip_sid: Optional[str] = None) -> None:
        self.server.emit(event, *args, to=self.group(room_id), skip_sid=skip_sid, namespace=self.namespace)


def _coordinator() -> SessionCoordinator:
    return current_app.extensions['room_coordinator']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _room_id(data: Any) -> Optional[str]:
    if isinstance(data, dict):
        data = data.get('roomId')
    if data is None or data == '':
        return None
    return str(data)


def handle_connect(auth=None):
    current_app.logger.debug(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    current_app.logger.debug(f"[disconnect] sid={_get_sid()} reason={reason}")
    _coordinator().disconnect(_get_sid())


def handle_find_public_room(data=None):
    _coordinator().find_public_room(_get_sid())


def handle_join_room(data):
    room_id = _room_id(data)
    if room_id is None:
        emit('error_message', 'roomId is required')
        return
    passcode = data.get('passcode') if isinstance(data, dict) else None
    if passcode is not None:
        passcode = str(passcode)
    _coordinator().join_room(_get_sid(), room_id, passcode)


def handle_send_move(data):
    if not isinstance(data, dict):
        return
    room_id = _room_id(data)
    if room_id is None:
        return
    _coordinator().send_move(_get_sid(), room_id, data.get('index'))


def handle_request_reset(data=None):
    room_id = _room_id(data)
    if room_id is None:
        return
    _coordinator().request_reset(_get_sid(), room_id)


def handle_error(exc):
    current_app.logger.exception(f"[handler-error] sid={_get_sid()}")
    emit('error_message', 'Internal server error')


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register the room protocol handlers on ``namespace``.

    Unexpected exceptions are logged and reported to the sender only, so a
    malformed payload never takes the connection down.
    """
    socketio.on_error_default(handle_error)
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('find_public_room', handle_find_public_room, namespace=namespace)
    socketio.on_event('join_room', handle_join_room, namespace=namespace)
    socketio.on_event('send_move', handle_send_move, namespace=namespace)
    socketio.on_event('request_reset', handle_request_reset, namespace=namespace)
