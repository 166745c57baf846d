from typing import Dict, List, Tuple

from roomrelay.core.errors import SelfFriendship


class FriendGraph:
    def __init__(self):
        # dict values keep insertion order, used as ordered sets
        self._edges: Dict[str, Dict[str, None]] = {}

    def add(self, a: str, b: str) -> Tuple[List[str], List[str]]:
        if a == b:
            raise SelfFriendship(a)
        self._edges.setdefault(a, {})[b] = None
        self._edges.setdefault(b, {})[a] = None
        return self.friends_of(a), self.friends_of(b)

    def friends_of(self, username: str) -> List[str]:
        return list(self._edges.get(username, {}))
