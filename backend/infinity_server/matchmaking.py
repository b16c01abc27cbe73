import random
import string
from typing import Container, Optional, Tuple

from infinity_server.game_state import GameState
from infinity_server.rooms import Role, Room, RoomIdCollision, RoomRegistry


class RoomIdGenerator:
    """Short random room ids, retried while they clash with ids in use."""

    def __init__(self, length: int = 6, max_attempts: int = 5,
                 alphabet: str = string.ascii_lowercase + string.digits,
                 rng: Optional[random.Random] = None):
        self.length = length
        self.max_attempts = max(1, max_attempts)
        self.alphabet = alphabet
        self._rng = rng or random.Random()

    def token(self) -> str:
        return ''.join(self._rng.choices(self.alphabet, k=self.length))

    def __call__(self, taken: Container[str]) -> str:
        for _ in range(self.max_attempts):
            room_id = self.token()
            if room_id not in taken:
                return room_id
        raise RoomIdCollision()


class Matchmaker:
    def __init__(self, registry: RoomRegistry, id_generator: Optional[RoomIdGenerator] = None):
        self.registry = registry
        self.id_generator = id_generator or RoomIdGenerator()

    def open_room(self, sid: Optional[str] = None) -> Optional[Room]:
        """First public room, in registry order, with exactly one seat taken.

        Rooms where ``sid`` already holds the seat are skipped.
        """
        for room in self.registry.public_rooms():
            if room.occupied == 1 and (sid is None or room.role_of(sid) is None):
                return room
        return None

    def find_public_room(self, sid: str) -> Tuple[Room, Role, Optional[GameState]]:
        """Seat ``sid`` in a half-filled public room or open a new one.

        Returns the room, the assigned role and the state the caller should
        start from; ``None`` means the room is brand new and the caller can
        start from a blank board.
        """
        room = self.open_room(sid)
        if room is not None:
            role = room.seat(sid)
            return room, role, room.state

        room_id = self.id_generator(self.registry)
        room = self.registry.create(room_id)
        role = room.seat(sid)
        return room, role, None
