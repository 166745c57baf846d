from typing import Dict, Iterable, List, Optional

from roomrelay.core.errors import InvalidRoomName
from roomrelay.models import PrivateRoom

PRIVATE_PREFIX = "private-"


def private_room_key(a: str, b: str) -> str:
    """Room key shared by two identities, the same whichever of them asks."""
    return PRIVATE_PREFIX + "-".join(sorted([a, b]))


def is_private_room(room) -> bool:
    return isinstance(room, str) and room.startswith(PRIVATE_PREFIX)


def validate_public_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidRoomName("Room name is required")
    if is_private_room(name):
        raise InvalidRoomName(f"Room names cannot start with '{PRIVATE_PREFIX}'")
    return name


class RoomTable:
    """Public room catalog, per-room presence lists and private pairings.

    Presence lists keep join order and never hold the same username twice.
    A private room is tracked by its two participants and the subset of them
    whose connection currently sits in the room.
    """

    def __init__(self, catalog: Iterable[str] = ()):
        self._catalog: List[str] = list(catalog)
        self._online: Dict[str, List[str]] = {}
        self._private: Dict[str, PrivateRoom] = {}

    # public catalog

    def catalog(self) -> List[str]:
        return list(self._catalog)

    def create(self, name: str) -> bool:
        if name in self._catalog:
            return False
        self._catalog.append(name)
        return True

    def drop(self, room: str) -> bool:
        """Forget a room's presence list and catalog entry. True if the catalog changed."""
        self._online.pop(room, None)
        if room in self._catalog:
            self._catalog.remove(room)
            return True
        return False

    # presence

    def join(self, room: str, username: str) -> List[str]:
        members = self._online.setdefault(room, [])
        if username not in members:
            members.append(username)
        return list(members)

    def leave(self, room: str, username: str) -> List[str]:
        members = self._online.get(room)
        if members is None:
            return []
        if username in members:
            members.remove(username)
        return list(members)

    def members(self, room: str) -> List[str]:
        return list(self._online.get(room, []))

    def tracks(self, room: str) -> bool:
        return room in self._online

    def online(self) -> Dict[str, List[str]]:
        return {room: list(members) for room, members in self._online.items()}

    # private pairings

    def pair(self, a: str, b: str) -> PrivateRoom:
        key = private_room_key(a, b)
        record = self._private.get(key)
        if record is None:
            record = PrivateRoom(key=key, participants=tuple(sorted([a, b])))
            self._private[key] = record
        return record

    def private(self, key: str) -> Optional[PrivateRoom]:
        return self._private.get(key)

    def waiting_for(self, username: str) -> List[PrivateRoom]:
        """Private rooms opened by someone else that ``username`` has not entered yet."""
        return [
            record
            for record in self._private.values()
            if username in record.participants and username not in record.present and record.present
        ]

    def private_rooms_of(self, username: str) -> List[PrivateRoom]:
        return [record for record in self._private.values() if username in record.present]

    def discard_private(self, key: str):
        self._private.pop(key, None)
