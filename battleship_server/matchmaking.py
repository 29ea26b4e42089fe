# battleship_server/matchmaking.py
"""
Challenge wiring between online players.

There is no pending-challenge table: a CHALLENGE is relayed straight to the
target, and any CHALLENGE_ACCEPTED that names an online player opens a match
with that player moving first. The caller is the connection handle of the
player issuing the command; it needs ``username``, ``send_line`` and a
writable ``match`` attribute.
"""
import logging

from battleship_server.errors import MatchmakingError
from battleship_server.match import Match
from battleship_server.session_registry import SessionRegistry

log = logging.getLogger(__name__)


def _require_login(caller):
    if caller.username is None:
        raise MatchmakingError("Not logged in")


def _find_other(registry: SessionRegistry, caller, name: str):
    handle = registry.get(name)
    if handle is None or handle is caller or handle.username == caller.username:
        raise MatchmakingError("Player not found")
    return handle


def send_challenge(registry: SessionRegistry, caller, opponent: str):
    _require_login(caller)
    target = _find_other(registry, caller, opponent)
    target.send_line(f"CHALLENGE_FROM:{caller.username}")
    log.info("[CHALLENGE] %s -> %s", caller.username, opponent)


def accept_challenge(registry: SessionRegistry, caller, challenger: str) -> Match:
    _require_login(caller)
    other = _find_other(registry, caller, challenger)

    match = Match(other, caller)
    other.match = match
    caller.match = match
    log.info("[MATCH] Created %r", match)

    other.send_line("GAME_START:You go first")
    caller.send_line("GAME_START:Opponent goes first")
    return match


def decline_challenge(registry: SessionRegistry, caller, challenger: str) -> bool:
    _require_login(caller)
    other = registry.get(challenger)
    if other is None:
        # nobody left to tell
        return False
    other.send_line(f"CHALLENGE_REJECTED:{caller.username} declined.")
    log.info("[CHALLENGE] %s declined %s", caller.username, challenger)
    return True
