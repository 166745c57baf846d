class CoordinatorError(Exception):
    """A request the coordinator refused; the message is sent back to the client."""


class UsernameTaken(CoordinatorError):
    def __init__(self, username: str):
        super().__init__("Username already taken")
        self.username = username


class InvalidRoomName(CoordinatorError):
    pass


class SelfFriendship(CoordinatorError):
    def __init__(self, username: str):
        super().__init__("You cannot add yourself as a friend")
        self.username = username
