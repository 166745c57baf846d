import pytest

from roomrelay.core.errors import SelfFriendship
from roomrelay.core.friends import FriendGraph


def test_edges_are_symmetric_and_idempotent():
    graph = FriendGraph()
    assert graph.add("alice", "bob") == (["bob"], ["alice"])
    graph.add("bob", "alice")
    graph.add("alice", "carol")
    assert graph.friends_of("alice") == ["bob", "carol"]
    assert graph.friends_of("bob") == ["alice"]
    assert graph.friends_of("carol") == ["alice"]


def test_self_friendship_rejected():
    graph = FriendGraph()
    with pytest.raises(SelfFriendship):
        graph.add("alice", "alice")
    assert graph.friends_of("alice") == []
