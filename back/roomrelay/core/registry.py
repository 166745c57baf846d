from typing import Dict, List, Optional

from roomrelay.core.errors import UsernameTaken
from roomrelay.models import Session


class ConnectionRegistry:
    """Maps each online username to exactly one connection (sid)."""

    def __init__(self):
        self._sids: Dict[str, str] = {}
        self._sessions: Dict[str, Session] = {}

    def register(self, username: str, sid: str) -> Session:
        current = self._sids.get(username)
        if current is not None and current != sid:
            raise UsernameTaken(username)
        session = self._sessions.get(sid)
        if session is None or session.username != username:
            if session is not None:
                self._sids.pop(session.username, None)
            session = Session(sid=sid, username=username)
            self._sessions[sid] = session
        self._sids[username] = sid
        return session

    def resolve(self, username: str) -> Optional[str]:
        return self._sids.get(username)

    def session(self, sid: str) -> Optional[Session]:
        return self._sessions.get(sid)

    def sessions(self) -> List[Session]:
        return list(self._sessions.values())

    def unregister(self, sid: str) -> Optional[Session]:
        session = self._sessions.pop(sid, None)
        if session is not None and self._sids.get(session.username) == sid:
            del self._sids[session.username]
        return session
