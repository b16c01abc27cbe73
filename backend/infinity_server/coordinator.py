"""Per-connection protocol handling for rooms.

The coordinator owns the room registry and is the only writer to it. Every
mutation runs under one re-entrant lock that is held through emission, so
every member of a room observes that room's events in the order they were
issued. Passcode hashing happens outside the lock.
"""
import logging
import threading
from typing import Any, Dict, List, Optional, Set

from infinity_server.game_state import InvalidMove
from infinity_server.matchmaking import Matchmaker
from infinity_server.presence import PresenceNotifier
from infinity_server.rooms import Role, Room, RoomError, RoomRegistry, ServerFull


class SessionCoordinator:
    def __init__(self, registry: RoomRegistry, publisher, matchmaker: Optional[Matchmaker] = None,
                 logger: Optional[logging.Logger] = None):
        self.registry = registry
        self.publisher = publisher
        self.matchmaker = matchmaker or Matchmaker(registry)
        self.presence = PresenceNotifier(publisher)
        self.logger = logger or logging.getLogger(__name__)
        self._bindings: Dict[str, Set[str]] = {}
        self._lock = threading.RLock()

    def bound_rooms(self, sid: str) -> Set[str]:
        with self._lock:
            return set(self._bindings.get(sid, ()))

    def join_room(self, sid: str, room_id: str, passcode: Optional[str] = None) -> Optional[Role]:
        """Seat ``sid`` in ``room_id``, creating the room if needed.

        Returns the assigned role, or None when the join was refused; the
        reason then goes to the caller as an error_message.
        """
        # Passcode hashing is slow, so it runs between two short critical
        # sections. A room's passcode never changes once created; if the room
        # was created or replaced in between, the attempt starts over.
        while True:
            with self._lock:
                room = self.registry.get(room_id)
                if room is None and self.registry.is_full:
                    self._refuse(sid, 'join_room', room_id, ServerFull())
                    return None

            try:
                if room is None:
                    passcode_hash = self.registry.hash_passcode(passcode)
                else:
                    self.registry.check_passcode(room, passcode)
            except RoomError as exc:
                self._refuse(sid, 'join_room', room_id, exc)
                return None

            with self._lock:
                current = self.registry.get(room_id)
                if room is None:
                    if current is not None:
                        continue
                    try:
                        room = self.registry.create(room_id, passcode_hash=passcode_hash)
                    except RoomError as exc:
                        self._refuse(sid, 'join_room', room_id, exc)
                        return None
                    passcode_flag = 'no' if room.is_public else 'yes'
                    self.logger.info(f"[room-created] room={room_id} passcode={passcode_flag}")
                elif current is not room:
                    continue
                was_full = room.is_full
                role = room.seat(sid)
                self._bind(sid, room, role, room.state, was_full)
                return role

    def find_public_room(self, sid: str) -> Optional[Role]:
        with self._lock:
            try:
                room, role, initial_state = self.matchmaker.find_public_room(sid)
            except RoomError as exc:
                self._refuse(sid, 'find_public_room', None, exc)
                return None
            if initial_state is None:
                self.logger.info(f"[room-created] room={room.room_id} passcode=no source=matchmaker")
            # matched rooms held exactly one player before this seat
            self._bind(sid, room, role, initial_state, was_full=False)
            return role

    def send_move(self, sid: str, room_id: str, index: Any) -> bool:
        with self._lock:
            room = self.registry.get(room_id)
            if room is None:
                self.logger.debug(f"[move-drop] room={room_id} sid={sid} reason=unknown-room")
                return False
            try:
                result = room.state.apply_move(index)
            except InvalidMove as exc:
                self.logger.warning(f"[move-drop] room={room_id} sid={sid} reason={exc}")
                return False
            self.logger.info(
                f"[move] room={room_id} mark={result.mark} index={result.index} evicted={result.evicted}"
            )
            line = room.state.winning_line()
            if line is not None:
                self.logger.info(f"[line-complete] room={room_id} line={list(line)}")
            self.publisher.publish(room_id, 'receive_move', {'index': result.index}, skip_sid=sid)
            return True

    def request_reset(self, sid: str, room_id: str) -> bool:
        with self._lock:
            room = self.registry.get(room_id)
            if room is None:
                return False
            self._reset(room, reason=f"requested sid={sid}")
            return True

    def disconnect(self, sid: str) -> None:
        with self._lock:
            for room_id in self._bindings.pop(sid, set()):
                room = self.registry.get(room_id)
                if room is None:
                    continue
                role = room.release(sid)
                self.logger.info(f"[leave] room={room_id} sid={sid} role={role.value}")
                self.presence.notify(room)
                if room.is_empty:
                    self.registry.remove(room_id)
                    self.logger.info(f"[room-removed] room={room_id}")

    def rooms_summary(self) -> List[Dict[str, Any]]:
        with self._lock:
            return self.registry.summary()

    def room_detail(self, room_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            room = self.registry.get(room_id)
            if room is None:
                return None
            line = room.state.winning_line()
            detail = room.summary()
            detail['state'] = room.state.to_dict()
            detail['winningLine'] = list(line) if line else None
            return detail

    # ---- internals ----

    def _bind(self, sid: str, room: Room, role: Role, initial_state, was_full: bool) -> None:
        self._bindings.setdefault(sid, set()).add(room.room_id)
        self.publisher.bind(sid, room.room_id)
        self.publisher.send(sid, 'assign_role', {
            'role': role.value,
            'roomId': room.room_id,
            'initialState': initial_state.to_dict() if initial_state is not None else None,
        })
        self.logger.info(f"[join] room={room.room_id} sid={sid} role={role.value}")
        if room.is_full and not was_full:
            self._reset(room, reason='seats-filled')
        self.presence.notify(room)

    def _reset(self, room: Room, reason: str) -> None:
        room.reset()
        self.publisher.publish(room.room_id, 'reset_game')
        self.logger.info(f"[reset] room={room.room_id} reason={reason}")

    def _refuse(self, sid: str, action: str, room_id: Optional[str], exc: RoomError) -> None:
        self.logger.info(f"[refused] action={action} room={room_id} sid={sid} error={exc}")
        self.publisher.send(sid, 'error_message', str(exc))
