from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from infinity_server.game_state import GameState

MAX_OPEN_ROOMS = 10


class RoomError(Exception):
    """Base for failures reported back to the requesting connection."""


class ServerFull(RoomError):
    def __init__(self, message: str = 'Server is full'):
        super().__init__(message)


class WrongPasscode(RoomError):
    def __init__(self, message: str = 'Wrong passcode'):
        super().__init__(message)


class RoomNotFound(RoomError):
    def __init__(self, room_id: str):
        super().__init__(f'Room {room_id} not found')
        self.room_id = room_id


class RoomIdCollision(RoomError):
    def __init__(self, message: str = 'Could not allocate a room, try again'):
        super().__init__(message)


class Role(str, Enum):
    X = 'X'
    O = 'O'
    SPECTATOR = 'Spectator'


SEATS = (Role.X, Role.O)


class Room:
    def __init__(self, room_id: str, passcode_hash: Optional[str] = None):
        self.room_id = room_id
        self.players: Dict[Role, Optional[str]] = {Role.X: None, Role.O: None}
        self.passcode_hash = passcode_hash
        self.state = GameState.fresh()

    @property
    def is_public(self) -> bool:
        return self.passcode_hash is None

    @property
    def occupied(self) -> int:
        return sum(1 for sid in self.players.values() if sid is not None)

    @property
    def is_full(self) -> bool:
        return self.occupied == len(SEATS)

    @property
    def is_empty(self) -> bool:
        return self.occupied == 0

    def vacant_role(self) -> Optional[Role]:
        for role in SEATS:
            if self.players[role] is None:
                return role
        return None

    def role_of(self, sid: str) -> Optional[Role]:
        for role in SEATS:
            if self.players[role] == sid:
                return role
        return None

    def seat(self, sid: str) -> Role:
        """Give ``sid`` the first vacant seat, or make it a spectator.

        A connection that already holds a seat here keeps it.
        """
        held = self.role_of(sid)
        if held is not None:
            return held
        role = self.vacant_role()
        if role is None:
            return Role.SPECTATOR
        self.players[role] = sid
        return role

    def release(self, sid: str) -> Role:
        """Free the seat held by ``sid``; returns SPECTATOR if it held none."""
        role = self.role_of(sid)
        if role is None:
            return Role.SPECTATOR
        self.players[role] = None
        return role

    def reset(self) -> GameState:
        self.state = GameState.fresh()
        return self.state

    def presence(self) -> Dict[str, bool]:
        return {
            'xConnected': self.players[Role.X] is not None,
            'oConnected': self.players[Role.O] is not None,
        }

    def summary(self) -> Dict[str, Any]:
        data = {'roomId': self.room_id, 'public': self.is_public}
        data.update(self.presence())
        return data


class RoomRegistry:
    """Room id to Room mapping with a fixed cap on open rooms.

    Iteration follows creation order, which the matchmaker relies on for
    its first-available tie-break. Hashing and checking passcodes touch no
    registry state, so callers may run them without holding their lock.
    """

    def __init__(self, max_rooms: int = MAX_OPEN_ROOMS, hash_method: str = 'pbkdf2:sha256'):
        self.max_rooms = max_rooms
        self.hash_method = hash_method
        self._rooms: Dict[str, Room] = {}

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def __iter__(self) -> Iterator[Room]:
        return iter(list(self._rooms.values()))

    @property
    def is_full(self) -> bool:
        return len(self._rooms) >= self.max_rooms

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def get_or_fail(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    def ensure(self, room_id: str, passcode: Optional[str] = None) -> Room:
        """Return the room, creating it if there is still capacity.

        The passcode only counts when the room is created; an empty string
        means no passcode.
        """
        room = self._rooms.get(room_id)
        if room is not None:
            return room
        return self.create(room_id, passcode_hash=self.hash_passcode(passcode))

    def create(self, room_id: str, passcode_hash: Optional[str] = None) -> Room:
        if self.is_full:
            raise ServerFull()
        room = Room(room_id, passcode_hash)
        self._rooms[room_id] = room
        return room

    def hash_passcode(self, passcode: Optional[str]) -> Optional[str]:
        if not passcode:
            return None
        return generate_password_hash(passcode, method=self.hash_method)

    def check_passcode(self, room: Room, supplied: Optional[str]) -> None:
        if room.is_public:
            return
        if not supplied or not check_password_hash(room.passcode_hash, supplied):
            raise WrongPasscode()

    def remove(self, room_id: str) -> None:
        self._rooms.pop(room_id, None)

    def public_rooms(self) -> List[Room]:
        return [room for room in self._rooms.values() if room.is_public]

    def summary(self) -> List[Dict[str, Any]]:
        return [room.summary() for room in self._rooms.values()]
