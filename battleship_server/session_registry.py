# battleship_server/session_registry.py
import threading


class SessionRegistry:
    """
    Username -> live connection handle for every authenticated connection.

    One instance is shared by all connection handlers; each method takes the
    registry lock so callers never need their own locking.
    """

    def __init__(self):
        self._handles: dict[str, object] = {}
        self._lock = threading.Lock()

    def put(self, username: str, handle):
        # a second login under the same name silently takes over the entry
        with self._lock:
            self._handles[username] = handle

    def get(self, username: str):
        with self._lock:
            return self._handles.get(username)

    def remove(self, username: str, handle=None) -> bool:
        """
        Drop the entry for ``username``. When ``handle`` is given the entry is
        only removed if it still belongs to that handle, so a connection that
        was displaced by a newer login cannot log the newer one out.
        """
        with self._lock:
            current = self._handles.get(username)
            if current is None:
                return False
            if handle is not None and current is not handle:
                return False
            del self._handles[username]
            return True

    def list_usernames(self) -> list[str]:
        with self._lock:
            return list(self._handles)

    def __contains__(self, username: str) -> bool:
        with self._lock:
            return username in self._handles

    def __len__(self):
        with self._lock:
            return len(self._handles)
