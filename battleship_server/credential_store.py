# battleship_server/credential_store.py
import logging
import os
import threading
from pathlib import Path

log = logging.getLogger(__name__)

DATA_DIR = Path.cwd() / "data"
USERS_FILE = Path(os.getenv("BATTLESHIP_USERS_FILE", DATA_DIR / "users.txt"))

# characters that would corrupt a record or a PLAYER_LIST reply
_RESERVED = (":", "@", ",")


def _load_records(path: Path) -> dict[str, str]:
    """Read ``username:password`` lines, creating an empty file if missing."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(exist_ok=True)
    records = {}
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.rstrip("\r\n")
            if not line.strip():
                continue
            username, sep, password = line.partition(":")
            if not sep:
                log.warning("[DB] Skipping malformed record in %s", path)
                continue
            # first record wins, as a later duplicate could never have been registered
            records.setdefault(username, password)
    return records


def _append_record(path: Path, username: str, password: str):
    with path.open("a", encoding="utf-8") as f:
        f.write(f"{username}:{password}\n")


def valid_credentials(username: str, password: str) -> bool:
    if not username or not password:
        return False
    if any(ch in username for ch in _RESERVED) or any(ch.isspace() for ch in username):
        return False
    return "\n" not in password and "\r" not in password


class CredentialStore:
    """
    Flat username/password store, loaded fully into memory once and
    appended to on every registration. Passwords are stored as given.
    """

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path is not None else USERS_FILE
        self._lock = threading.Lock()
        self.users = _load_records(self.path)   # {username: password}
        log.info("[DB] Database loaded: %d users.", len(self.users))

    def register(self, username: str, password: str) -> bool:
        """Add a new user. Returns False if the name is taken or unusable."""
        if not valid_credentials(username, password):
            return False
        with self._lock:
            if username in self.users:
                return False
            _append_record(self.path, username, password)
            self.users[username] = password
        return True

    def check_login(self, username: str, password: str) -> bool:
        with self._lock:
            return username in self.users and self.users[username] == password

    def __len__(self):
        with self._lock:
            return len(self.users)
