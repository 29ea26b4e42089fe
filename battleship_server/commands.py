# battleship_server/commands.py
"""
Inbound command types.

Each line a client sends is parsed into exactly one of the dataclasses
below. The connection handler dispatches on the type with a ``match``
statement, so a command that is parsed but never handled shows up as a
missing ``case`` rather than a silently ignored string.

Wire format is ``COMMAND`` or ``COMMAND:data``; everything after the first
colon is the data.
"""
from dataclasses import dataclass
from typing import Union

from battleship_server.errors import ProtocolError
from battleship_server.match import BOARD_SIZE, ROW_LETTERS, Direction


@dataclass(frozen=True)
class Login:
    username: str
    password: str


@dataclass(frozen=True)
class Register:
    username: str
    password: str


@dataclass(frozen=True)
class PlayerList:
    pass


@dataclass(frozen=True)
class Challenge:
    opponent: str


@dataclass(frozen=True)
class ChallengeAccepted:
    challenger: str


@dataclass(frozen=True)
class ChallengeDeclined:
    challenger: str


@dataclass(frozen=True)
class PlaceShip:
    row: int
    col: int
    direction: Direction


@dataclass(frozen=True)
class Fire:
    row: int
    col: int


@dataclass(frozen=True)
class Logout:
    pass


Command = Union[
    Login, Register, PlayerList, Challenge, ChallengeAccepted,
    ChallengeDeclined, PlaceShip, Fire, Logout,
]


# -------------------------
# Field parsers
# -------------------------

def parse_credentials(data: str) -> tuple[str, str]:
    parts = data.split("@")
    if len(parts) != 2:
        raise ProtocolError("Expected user@pass")
    return parts[0], parts[1]


def parse_row(token: str) -> int:
    token = token.strip().upper()
    if len(token) != 1 or token not in ROW_LETTERS:
        raise ProtocolError(f"Invalid row '{token}' (use {ROW_LETTERS[0]}-{ROW_LETTERS[-1]})")
    return ROW_LETTERS.index(token)


def parse_col(token: str) -> int:
    token = token.strip()
    # int() would also take "+5", "0_5" and non-ASCII digits
    if not (token.isascii() and token.isdigit()):
        raise ProtocolError(f"Invalid column '{token}'")
    col = int(token)
    if not 0 <= col < BOARD_SIZE:
        raise ProtocolError(f"Invalid column '{token}' (use 0-{BOARD_SIZE - 1})")
    return col


def parse_direction(token: str) -> Direction:
    token = token.strip().upper()
    # first letter decides, so "H" and "Horizontal" are the same
    try:
        return Direction(token[:1])
    except ValueError:
        raise ProtocolError(f"Invalid direction '{token}' (use H or V)") from None


def parse_coords(data: str) -> tuple[int, int]:
    parts = data.split(",")
    if len(parts) != 2:
        raise ProtocolError("Expected Row,Col")
    return parse_row(parts[0]), parse_col(parts[1])


def _require_name(data: str) -> str:
    name = data.strip()
    if not name:
        raise ProtocolError("Missing player name")
    return name


# -------------------------
# Line parser
# -------------------------

def parse_command(line: str) -> Command:
    """Parse one protocol line. Raises ProtocolError for anything malformed."""
    word, _, data = line.strip().partition(":")
    word = word.upper()

    if word == "LOGIN":
        return Login(*parse_credentials(data))
    if word == "REGISTER":
        return Register(*parse_credentials(data))
    if word == "PLAYER_LIST":
        return PlayerList()
    if word == "CHALLENGE":
        return Challenge(_require_name(data))
    if word == "CHALLENGE_ACCEPTED":
        return ChallengeAccepted(_require_name(data))
    if word == "CHALLENGE_DECLINED":
        return ChallengeDeclined(_require_name(data))
    if word == "PLACE_SHIP":
        parts = data.split(",")
        if len(parts) != 3:
            raise ProtocolError("Expected Row,Col,Dir")
        return PlaceShip(parse_row(parts[0]), parse_col(parts[1]), parse_direction(parts[2]))
    if word == "FIRE":
        return Fire(*parse_coords(data))
    if word == "LOGOUT":
        return Logout()

    raise ProtocolError("Unknown command")
