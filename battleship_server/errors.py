# battleship_server/errors.py


class BattleshipError(Exception):
    """
    An error resolved at the point of detection and reported to the
    originating connection as a single line. It never closes the connection.
    """

    prefix = "ERROR"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def line(self) -> str:
        return f"{self.prefix}:{self.reason}"


class ProtocolError(BattleshipError):
    """Malformed command: wrong field count, bad row/column/direction."""


class AuthError(BattleshipError):
    # login and register failures use their own reply words
    def __init__(self, reason: str, prefix: str = "LOGIN_FAILED"):
        super().__init__(reason)
        self.prefix = prefix


class MatchmakingError(BattleshipError):
    pass


class PlacementError(BattleshipError):
    pass


class MoveError(BattleshipError):
    pass
