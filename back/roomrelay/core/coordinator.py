import logging
import threading
import time
from typing import Any, Dict, List, Optional

from roomrelay.core.errors import CoordinatorError, InvalidRoomName, UsernameTaken
from roomrelay.core.expiry import RoomExpiryScheduler
from roomrelay.core.friends import FriendGraph
from roomrelay.core.messages import DEFAULT_LIMIT, MessageStore, has_quorum
from roomrelay.core.registry import ConnectionRegistry
from roomrelay.core.rooms import RoomTable, is_private_room, validate_public_name
from roomrelay.models import Message, Session, system_message
from roomrelay.utils.time import clock_time

logger = logging.getLogger(__name__)

DEFAULT_ROOMS = ("General", "Tech", "Random")


class Coordinator:
    """Owns every piece of shared chat state.

    Each public method is one logical operation and runs under a single
    re-entrant lock, as does a firing expiry timer, so check-then-act
    sequences (username claims, quorum flips, timer teardown) never interleave.
    Outbound traffic goes through ``transport``, whose emits only enqueue.
    """

    def __init__(
        self,
        transport,
        default_rooms=DEFAULT_ROOMS,
        message_limit: int = DEFAULT_LIMIT,
        timer_factory=threading.Timer,
        clock=time.time,
    ):
        self._lock = threading.RLock()
        self._transport = transport
        self._registry = ConnectionRegistry()
        self._rooms = RoomTable(default_rooms)
        self._messages = MessageStore(message_limit)
        self._friends = FriendGraph()
        self._expiry = RoomExpiryScheduler(self._expire_room, timer_factory=timer_factory, clock=clock)

    # presence

    def join(self, sid: str, username, room=None, expiry=None, is_private=False, target_user=None) -> Session:
        if not isinstance(username, str) or not username:
            raise CoordinatorError("Username is required")
        private = bool(is_private and target_user)
        if private:
            if not isinstance(target_user, str):
                raise CoordinatorError("targetUser must be a username")
            if target_user == username:
                raise InvalidRoomName("You cannot start a private chat with yourself")
        else:
            validate_public_name(room)

        with self._lock:
            owner = self._registry.resolve(username)
            if owner is not None and owner != sid:
                raise UsernameTaken(username)
            previous = self._registry.session(sid)
            if previous is not None and previous.username != username:
                self._teardown(previous, leave_transport=True)
            session = self._registry.register(username, sid)

            if private:
                self._join_private(session, target_user)
            else:
                self._join_public(session, room)
            self._transport.emit("roomList", self._rooms.catalog())

            if expiry and not private:
                self._expiry.arm(room, expiry)
            self._enter_waiting_private_rooms(session)
            return session

    def _join_public(self, session: Session, room: str):
        logger.info("User %s joining room %s", session.username, room)
        self._transport.enter_room(session.sid, room)
        session.room = room
        session.is_private = False
        session.target_user = None
        if room not in session.rooms:
            session.rooms.append(room)

        members = self._rooms.join(room, session.username)
        self._transport.emit("onlineUsers", members, to=room)
        self._transport.emit("message", system_message(f"{session.username} joined the room", room), to=room)

    def _join_private(self, session: Session, target_user: str):
        record = self._rooms.pair(session.username, target_user)
        logger.info("User %s opening private room %s", session.username, record.key)
        self._transport.enter_room(session.sid, record.key)
        record.present.add(session.username)
        session.room = record.key
        session.is_private = True
        session.target_user = target_user

        target_sid = self._registry.resolve(target_user)
        if target_sid is not None:
            self._transport.enter_room(target_sid, record.key)
            record.present.add(target_user)
            logger.info("Target user %s joined private room %s", target_user, record.key)

        text = f"Private chat started between {session.username} and {target_user}"
        self._transport.emit("message", system_message(text, record.key), to=record.key)

    def _enter_waiting_private_rooms(self, session: Session):
        for record in self._rooms.waiting_for(session.username):
            self._transport.enter_room(session.sid, record.key)
            record.present.add(session.username)
            logger.info("User %s joined existing private room %s", session.username, record.key)
            text = f"{session.username} is now online and joined the private chat"
            self._transport.emit("message", system_message(text, record.key), to=record.key)

    def leave(self, sid: str, room) -> Optional[List[str]]:
        with self._lock:
            session = self._registry.session(sid)
            if session is None or room not in session.rooms:
                return None
            session.forget_room(room)
            self._transport.leave_room(sid, room)
            return self._leave_public(session.username, room)

    def _leave_public(self, username: str, room: str) -> List[str]:
        members = self._rooms.leave(room, username)
        self._transport.emit("onlineUsers", members, to=room)
        self._transport.emit("message", system_message(f"{username} left the room", room), to=room)
        self._reevaluate(room)
        return members

    def disconnect(self, sid: str) -> Optional[Session]:
        with self._lock:
            session = self._registry.session(sid)
            if session is None:
                return None
            self._teardown(session)
            return session

    def _teardown(self, session: Session, leave_transport=False):
        logger.info("User %s disconnected", session.username)
        self._registry.unregister(session.sid)
        for room in list(session.rooms):
            if leave_transport:
                self._transport.leave_room(session.sid, room)
            if self._rooms.tracks(room):
                self._leave_public(session.username, room)
        session.rooms.clear()

        for record in self._rooms.private_rooms_of(session.username):
            record.present.discard(session.username)
            if leave_transport:
                self._transport.leave_room(session.sid, record.key)
            self._transport.emit(
                "message", system_message(f"{session.username} left the room", record.key), to=record.key
            )
            if record.present:
                self._reevaluate(record.key)
            else:
                self._rooms.discard_private(record.key)

    # catalog and expiry

    def create_room(self, name, expiry=None) -> bool:
        validate_public_name(name)
        with self._lock:
            created = self._rooms.create(name)
            if not created:
                return False
            logger.info("Room %s created", name)
            self._transport.emit("roomList", self._rooms.catalog())
            if expiry:
                self._expiry.arm(name, expiry)
            return True

    def _expire_room(self, room: str, token):
        with self._lock:
            if not self._expiry.claim(room, token):
                return
            logger.info("Room %s expired", room)
            self._transport.emit("roomExpiry", to=room)
            self._transport.close_room(room)
            for session in self._registry.sessions():
                session.forget_room(room)
            if self._rooms.drop(room):
                self._transport.emit("roomList", self._rooms.catalog())

    # messages

    def send_message(self, sid: str, data: Dict[str, Any]) -> Optional[Message]:
        message_id = data.get("id")
        if message_id is None:
            logger.warning("Dropping message without id from %s", sid)
            return None
        with self._lock:
            session = self._registry.session(sid)
            if session is not None and session.is_private:
                room = session.room
            else:
                room = data.get("room")
            if not room:
                logger.warning("Dropping message %s without room", message_id)
                return None
            username = session.username if session is not None else data.get("username")
            payload = dict(data, room=room, seen=False, timestamp=clock_time())
            message = Message(id=message_id, username=username, room=room, payload=payload, seen_by=[username])
            try:
                self._messages.add(message)
            except TypeError:
                logger.warning("Dropping message with unusable id %r", message_id)
                return None
            self._transport.emit("message", message.to_dict(), to=room)
            return message

    def send_private_message(self, sid: str, to, data: Dict[str, Any]) -> bool:
        with self._lock:
            session = self._registry.session(sid)
            target_sid = self._registry.resolve(to) if isinstance(to, str) else None
            if target_sid is None:
                logger.debug("Private message to offline user %s dropped", to)
                return False
            payload = dict(data, seen=False, timestamp=clock_time(), type="private")
            payload["from"] = session.username if session is not None else None
            self._transport.emit("privateMessage", payload, to=target_sid)
            if target_sid != sid:
                self._transport.emit("privateMessage", payload, to=sid)
            return True

    def mark_seen(self, sid: str, room, message_id) -> bool:
        """Acknowledge a message; True if this acknowledgment flipped it to seen."""
        with self._lock:
            session = self._registry.session(sid)
            if session is None:
                return False
            message = self._messages.acknowledge(message_id, session.username)
            if message is None or message.seen:
                return False
            if room is not None and room != message.room:
                logger.debug("Seen for message %s names room %s, stored in %s", message_id, room, message.room)
            return self._flip_if_quorum(message)

    def _quorum_members(self, room: str) -> List[str]:
        if is_private_room(room):
            record = self._rooms.private(room)
            return sorted(record.present) if record else []
        return self._rooms.members(room)

    def _flip_if_quorum(self, message: Message) -> bool:
        if not has_quorum(message, self._quorum_members(message.room)):
            return False
        message.seen = True
        self._transport.emit("seenUpdate", {"id": message.id, "seen": True}, to=message.room)
        return True

    def _reevaluate(self, room: str):
        for message in self._messages.pending(room):
            self._flip_if_quorum(message)

    def share_file(self, data: Dict[str, Any]) -> bool:
        fields = {key: data.get(key) for key in ("username", "room", "file", "type", "name")}
        if not all(fields.values()):
            logger.warning(
                "Missing required file data: %s",
                {key: bool(value) for key, value in fields.items()},
            )
            return False
        logger.info("File %s from %s broadcast to room %s", fields["name"], fields["username"], fields["room"])
        with self._lock:
            self._transport.emit("file", dict(fields, timestamp=clock_time(), seen=False), to=fields["room"])
        return True

    def typing(self, sid: str, event: str, username, room):
        if not room:
            return
        with self._lock:
            self._transport.emit(event, username, to=room, skip_sid=sid)

    def canvas_update(self, room, data):
        if not room:
            return
        with self._lock:
            self._transport.emit("canvasUpdate", {"data": data}, to=room)

    # friends

    def add_friend(self, username, friend):
        if not isinstance(username, str) or not username or not isinstance(friend, str) or not friend:
            raise CoordinatorError("username and friend are required")
        with self._lock:
            mine, theirs = self._friends.add(username, friend)
            for name, friends in ((username, mine), (friend, theirs)):
                target_sid = self._registry.resolve(name)
                if target_sid is not None:
                    self._transport.emit("friendsUpdate", friends, to=target_sid)
            return mine, theirs

    # signalling

    def relay_offer(self, sid: str, to, offer, offer_type=None) -> bool:
        with self._lock:
            session = self._registry.session(sid)
            sender = session.username if session is not None else None
            return self._relay(to, "offer", {"offer": offer, "from": sender, "type": offer_type})

    def relay_answer(self, to, answer) -> bool:
        with self._lock:
            return self._relay(to, "answer", {"answer": answer})

    def relay_candidate(self, to, candidate) -> bool:
        with self._lock:
            return self._relay(to, "candidate", {"candidate": candidate})

    def _relay(self, to, event: str, payload) -> bool:
        target_sid = self._registry.resolve(to) if isinstance(to, str) else None
        if target_sid is None:
            logger.debug("%s for offline user %s dropped", event, to)
            return False
        self._transport.emit(event, payload, to=target_sid)
        return True

    # introspection

    def catalog(self) -> List[str]:
        with self._lock:
            return self._rooms.catalog()

    def online_users(self, room: str) -> List[str]:
        with self._lock:
            return self._rooms.members(room)

    def online(self) -> Dict[str, List[str]]:
        with self._lock:
            return self._rooms.online()

    def session(self, sid: str) -> Optional[Session]:
        with self._lock:
            return self._registry.session(sid)

    def resolve(self, username: str) -> Optional[str]:
        with self._lock:
            return self._registry.resolve(username)

    def message(self, message_id) -> Optional[Message]:
        with self._lock:
            return self._messages.get(message_id)

    def friends_of(self, username: str) -> List[str]:
        with self._lock:
            return self._friends.friends_of(username)

    def expiry_armed(self, room: str) -> bool:
        with self._lock:
            return self._expiry.is_armed(room)

    def shutdown(self):
        with self._lock:
            self._expiry.cancel_all()
