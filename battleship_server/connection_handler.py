# battleship_server/connection_handler.py
import logging
import socket
import threading

from battleship_server import matchmaking
from battleship_server.commands import (
    Challenge, ChallengeAccepted, ChallengeDeclined, Command, Fire, Login,
    Logout, PlaceShip, PlayerList, Register, parse_command,
)
from battleship_server.credential_store import CredentialStore, valid_credentials
from battleship_server.errors import AuthError, BattleshipError, ProtocolError
from battleship_server.match import Match
from battleship_server.session_registry import SessionRegistry
from battleship_server.utils.protocol import LineReader, LineTooLong, send_line

log = logging.getLogger(__name__)


class ConnectionHandler:
    """
    Worker for a single client connection.

    Reads one command per line, routes it to the credential store, the
    session registry, matchmaking or the bound match, and answers with zero
    or more lines. Other threads (the opponent's handler, via the match) may
    also write to this connection, so writes go through ``send_line``.
    """

    def __init__(self, conn: socket.socket, addr, registry: SessionRegistry, store: CredentialStore):
        self.conn = conn
        self.addr = addr
        self.registry = registry
        self.store = store

        self.username: str | None = None
        self.match: Match | None = None

        self._reader = LineReader(conn)
        self._send_lock = threading.Lock()

    def __repr__(self):
        return f"ConnectionHandler({self.username or 'Guest'}@{self.addr})"

    # ======================================================
    def send_line(self, text: str):
        with self._send_lock:
            try:
                send_line(self.conn, text)
            except OSError as e:
                # the reader side of this connection will notice and clean up
                log.warning("[SEND] Failed to send to %s: %s", self.username or self.addr, e)

    # ======================================================
    def run(self):
        try:
            while True:
                try:
                    line = self._reader.readline()
                except LineTooLong:
                    self.send_line(ProtocolError("Line too long").line())
                    continue
                if line is None:
                    break
                if not line.strip():
                    continue
                if not self.handle_line(line):
                    break
        except OSError as e:
            log.info("[DISCONNECTED] Connection dropped: %s (%s)", self.username or self.addr, e)
        finally:
            self.close()

    def handle_line(self, line: str) -> bool:
        """Process one protocol line. Returns False once the client logs out."""
        try:
            command = parse_command(line)
        except BattleshipError as e:
            log.debug("CMD from %s rejected: %s", self.username or "Guest", e.reason)
            self.send_line(e.line())
            return True

        log.debug("CMD from %s: %s", self.username or "Guest", _describe(command))
        try:
            return self.dispatch(command)
        except BattleshipError as e:
            self.send_line(e.line())
            return True

    def dispatch(self, command: Command) -> bool:
        match command:
            case Login(username, password):
                self.login(username, password)
            case Register(username, password):
                self.register(username, password)
            case PlayerList():
                self.send_line("PLAYER_LIST:" + ",".join(sorted(self.registry.list_usernames())))
            case Challenge(opponent):
                matchmaking.send_challenge(self.registry, self, opponent)
            case ChallengeAccepted(challenger):
                matchmaking.accept_challenge(self.registry, self, challenger)
            case ChallengeDeclined(challenger):
                matchmaking.decline_challenge(self.registry, self, challenger)
            case PlaceShip(row, col, direction):
                if self.match is None:
                    log.debug("Ignoring PLACE_SHIP from %s: not in a match", self.username or "Guest")
                else:
                    self.match.place_ship(self, row, col, direction)
            case Fire(row, col):
                if self.match is None:
                    log.debug("Ignoring FIRE from %s: not in a match", self.username or "Guest")
                else:
                    self.match.process_move(self, row, col)
            case Logout():
                log.info("[LOGOUT] %s", self.username or self.addr)
                return False
            case _:
                raise TypeError(f"Unhandled command {command!r}")
        return True

    # ======================================================
    def login(self, username: str, password: str):
        if not self.store.check_login(username, password):
            raise AuthError("Invalid Credentials")

        # logging in again under another name releases the old one
        if self.username is not None and self.username != username:
            self.registry.remove(self.username, self)

        self.username = username
        self.registry.put(username, self)
        log.info("[LOGIN] %s from %s", username, self.addr)
        self.send_line("LOGIN_SUCCESS")

    def register(self, username: str, password: str):
        if not valid_credentials(username, password):
            raise AuthError("Invalid username or password", prefix="REGISTER_FAILED")
        if not self.store.register(username, password):
            raise AuthError("Username taken", prefix="REGISTER_FAILED")
        log.info("[REGISTER] %s", username)
        self.send_line("REGISTER_SUCCESS")

    # ======================================================
    def close(self):
        if self.username is not None:
            self.registry.remove(self.username, self)
        # the opponent is not told; their match reference simply goes stale
        self.match = None
        try:
            self.conn.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.conn.close()
        log.info("[CLOSED] %s", self.username or self.addr)


def _describe(command: Command) -> str:
    # never write passwords to the log
    if isinstance(command, (Login, Register)):
        return f"{type(command).__name__}(username={command.username!r})"
    return repr(command)
