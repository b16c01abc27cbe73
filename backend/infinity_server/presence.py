from typing import Dict

from infinity_server.rooms import Room


class PresenceNotifier:
    """Tells everyone in a room which seats are currently taken."""

    event = 'opponent_status'

    def __init__(self, publisher):
        self.publisher = publisher

    def notify(self, room: Room) -> Dict[str, bool]:
        status = room.presence()
        self.publisher.publish(room.room_id, self.event, status)
        return status
