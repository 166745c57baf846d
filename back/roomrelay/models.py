from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from .utils.time import clock_time, now_ms

SYSTEM_USERNAME = "System"


@dataclass
class Session:
    """State attached to one live connection once it has joined."""

    sid: str
    username: str
    room: Optional[str] = None
    is_private: bool = False
    target_user: Optional[str] = None
    rooms: List[str] = field(default_factory=list)

    def forget_room(self, room: str):
        if room in self.rooms:
            self.rooms.remove(room)
        if self.room == room:
            self.room = self.rooms[-1] if self.rooms else None
            self.is_private = False
            self.target_user = None


@dataclass
class Message:
    id: Any
    username: str
    room: str
    payload: Dict[str, Any]
    seen: bool = False
    seen_by: List[str] = field(default_factory=list)

    def to_dict(self):
        return dict(self.payload, seen=self.seen)


@dataclass
class PrivateRoom:
    key: str
    participants: Tuple[str, str]
    present: Set[str] = field(default_factory=set)


def system_message(text: str, room: Optional[str] = None):
    payload = {
        "id": now_ms(),
        "username": SYSTEM_USERNAME,
        "text": text,
        "timestamp": clock_time(),
        "seen": True,
    }
    if room is not None:
        payload["room"] = room
    return payload
