from collections import OrderedDict
from typing import Any, Iterable, Iterator, Optional

from roomrelay.models import Message

DEFAULT_LIMIT = 10000


def has_quorum(message: Message, members: Iterable[str]) -> bool:
    """True once as many identities acknowledged ``message`` as the room has members now.

    Counts are compared, not names: an acknowledgment from someone who has
    since left still counts toward the current room size.
    """
    members = list(members)
    return bool(members) and len(message.seen_by) == len(members)


class MessageStore:
    """In-flight room messages keyed by client id, oldest evicted past ``limit``."""

    def __init__(self, limit: int = DEFAULT_LIMIT):
        self._messages: "OrderedDict[Any, Message]" = OrderedDict()
        self._limit = limit

    def add(self, message: Message) -> Message:
        self._messages.pop(message.id, None)
        self._messages[message.id] = message
        while self._limit and len(self._messages) > self._limit:
            self._messages.popitem(last=False)
        return message

    def get(self, message_id) -> Optional[Message]:
        try:
            return self._messages.get(message_id)
        except TypeError:
            return None

    def acknowledge(self, message_id, username: str) -> Optional[Message]:
        """Record ``username`` as having seen the message.

        Returns the message only when this call added a new acknowledgment.
        """
        message = self.get(message_id)
        if message is None or username in message.seen_by:
            return None
        message.seen_by.append(username)
        return message

    def pending(self, room: str) -> Iterator[Message]:
        for message in list(self._messages.values()):
            if message.room == room and not message.seen:
                yield message
