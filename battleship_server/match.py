# battleship_server/match.py
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum

from battleship_server.errors import MoveError, PlacementError

log = logging.getLogger(__name__)

# -------------------------
# Game Rules
# -------------------------

BOARD_SIZE = 10
ROW_LETTERS = "ABCDEFGHIJ"

# placed in this order; the next size is decided by how many are already down
FLEET_SIZES = (5, 4, 3, 2, 1)

# a side loses once every ship cell it owns has been hit
WIN_THRESHOLD = sum(FLEET_SIZES)


def format_coords(row: int, col: int) -> str:
    return f"{ROW_LETTERS[row]},{col}"


class Cell(str, Enum):
    EMPTY = "~"
    SHIP = "S"
    HIT = "X"
    MISS = "O"


class Direction(str, Enum):
    HORIZONTAL = "H"
    VERTICAL = "V"


class MatchState(Enum):
    PLACEMENT = "placement"
    BATTLE = "battle"
    FINISHED = "finished"


# -------------------------
# Board
# -------------------------

class Board:

    def __init__(self, size: int = BOARD_SIZE):
        self.size = size
        self.cells = [[Cell.EMPTY] * size for _ in range(size)]

    def __getitem__(self, pos: tuple[int, int]) -> Cell:
        row, col = pos
        return self.cells[row][col]

    def span(self, row: int, col: int, length: int, direction: Direction) -> list[tuple[int, int]]:
        if direction == Direction.HORIZONTAL:
            return [(row, col + i) for i in range(length)]
        return [(row + i, col) for i in range(length)]

    def place(self, row: int, col: int, length: int, direction: Direction):
        """Mark a straight run of cells as Ship, or raise without touching the board."""
        if direction == Direction.HORIZONTAL and col + length > self.size:
            raise PlacementError("Ship sticks out (Horizontal)")
        if direction == Direction.VERTICAL and row + length > self.size:
            raise PlacementError("Ship sticks out (Vertical)")

        cells = self.span(row, col, length, direction)
        if any(self.cells[r][c] == Cell.SHIP for r, c in cells):
            raise PlacementError("Overlap detected")

        for r, c in cells:
            self.cells[r][c] = Cell.SHIP

    def receive_fire(self, row: int, col: int) -> bool:
        """Resolve a shot on this board. Returns True on a hit."""
        cell = self.cells[row][col]
        if cell in (Cell.HIT, Cell.MISS):
            raise MoveError("Already fired there")
        if cell == Cell.SHIP:
            self.cells[row][col] = Cell.HIT
            return True
        self.cells[row][col] = Cell.MISS
        return False

    def count(self, kind: Cell) -> int:
        return sum(row.count(kind) for row in self.cells)


# -------------------------
# Match
# -------------------------

@dataclass
class _Side:
    handle: object
    board: Board = field(default_factory=Board)
    ships_placed: int = 0
    hits_taken: int = 0


class Match:
    """
    One game between exactly two connection handles.

    Both participants' handler threads call in concurrently, so every
    public operation runs under a single lock. Handles only need
    ``send_line(text)`` and ``username``. Rule violations raise
    PlacementError / MoveError before anything is mutated; the caller
    reports them to the participant who sent the command.
    """

    def __init__(self, player1, player2, fleet_sizes: tuple[int, ...] = FLEET_SIZES):
        if player1 is player2:
            raise ValueError("A match needs two distinct participants")
        self.fleet_sizes = tuple(fleet_sizes)
        self.win_threshold = sum(self.fleet_sizes)
        self.player1 = _Side(player1)
        self.player2 = _Side(player2)
        # player1 (the challenger) moves first
        self.player1_turn = True
        self.state = MatchState.PLACEMENT
        self._lock = threading.Lock()

    # ---------- helpers ----------

    def _sides(self, participant) -> tuple[_Side, _Side]:
        if participant is self.player1.handle:
            return self.player1, self.player2
        if participant is self.player2.handle:
            return self.player2, self.player1
        raise ValueError(f"{participant!r} is not part of this match")

    def _is_turn_of(self, side: _Side) -> bool:
        return (side is self.player1) == self.player1_turn

    def __repr__(self):
        return (f"Match({self.player1.handle.username!r} vs {self.player2.handle.username!r}, "
                f"state={self.state.name})")

    # ---------- read-only views ----------
    # these wait for any in-flight move so they never see half of one

    def ships_placed(self, participant) -> int:
        with self._lock:
            return self._sides(participant)[0].ships_placed

    def hits_taken(self, participant) -> int:
        with self._lock:
            return self._sides(participant)[0].hits_taken

    def board_of(self, participant) -> Board:
        with self._lock:
            return self._sides(participant)[0].board

    def has_turn(self, participant) -> bool:
        with self._lock:
            return self._is_turn_of(self._sides(participant)[0])

    # ---------- placement phase ----------

    def place_ship(self, participant, row: int, col: int, direction: Direction):
        with self._lock:
            side, _ = self._sides(participant)

            if self.state == MatchState.FINISHED:
                raise PlacementError("Game over")
            if side.ships_placed >= len(self.fleet_sizes):
                raise PlacementError("All ships placed")

            size = self.fleet_sizes[side.ships_placed]
            side.board.place(row, col, size, direction)
            side.ships_placed += 1
            participant.send_line("SHIP_PLACED")

            fleet = len(self.fleet_sizes)
            if self.player1.ships_placed == fleet and self.player2.ships_placed == fleet:
                self.state = MatchState.BATTLE
                first, second = (self.player1, self.player2) if self.player1_turn else (self.player2, self.player1)
                log.info("[MATCH] %r: fleets placed, battle begins", self)
                first.handle.send_line("GAME_STARTED:Your turn")
                second.handle.send_line("GAME_STARTED:Enemy turn")

    # ---------- battle phase ----------

    def process_move(self, participant, row: int, col: int):
        with self._lock:
            attacker, defender = self._sides(participant)

            if self.state == MatchState.FINISHED:
                raise MoveError("Game over")
            if self.state != MatchState.BATTLE:
                raise MoveError("Game not started")
            if not self._is_turn_of(attacker):
                raise MoveError("Wait for turn")

            coords = format_coords(row, col)
            if defender.board.receive_fire(row, col):
                defender.hits_taken += 1
                attacker.handle.send_line(f"HIT:{coords}")
                defender.handle.send_line(f"ENEMY_HIT:{coords}")
                self._check_win(attacker, defender)
            else:
                attacker.handle.send_line(f"MISS:{coords}")
                defender.handle.send_line(f"ENEMY_MISSED:{coords}")

            self.player1_turn = not self.player1_turn

    def _check_win(self, attacker: _Side, defender: _Side):
        if defender.hits_taken < self.win_threshold:
            return
        self.state = MatchState.FINISHED
        log.info("[GAME OVER] %s beat %s", attacker.handle.username, defender.handle.username)
        attacker.handle.send_line("GAME_OVER:YOU_WON")
        defender.handle.send_line("GAME_OVER:YOU_LOST")
