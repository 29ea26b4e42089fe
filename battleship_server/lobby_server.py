# battleship_server/lobby_server.py
import argparse
import logging
import socket
import threading

from battleship_server.connection_handler import ConnectionHandler
from battleship_server.credential_store import USERS_FILE, CredentialStore
from battleship_server.session_registry import SessionRegistry

log = logging.getLogger(__name__)

DEFAULT_PORT = 8888
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class LobbyServer:

    def __init__(self, host="0.0.0.0", port=DEFAULT_PORT, store: CredentialStore | None = None):
        self.host = host
        self.port = port

        self.store = store if store is not None else CredentialStore()
        # authenticated connections by username, shared by every handler thread
        self.registry = SessionRegistry()

        self._srv: socket.socket | None = None
        self._stopped = threading.Event()

    # ======================================================
    def listen(self) -> int:
        """Bind and listen; returns the bound port (useful when port=0)."""
        srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        srv.bind((self.host, self.port))
        srv.listen()
        self._srv = srv
        self.port = srv.getsockname()[1]
        log.info("[LOBBY SERVER] Listening on %s:%s", self.host, self.port)
        return self.port

    def serve_forever(self):
        if self._srv is None:
            self.listen()
        while not self._stopped.is_set():
            try:
                conn, addr = self._srv.accept()
            except OSError:
                if self._stopped.is_set():
                    break
                raise
            if self._stopped.is_set():
                conn.close()
                break
            log.info("[CONNECTED] %s", addr)
            self.spawn_handler(conn, addr)

    def start(self):
        self.listen()
        self.serve_forever()

    def shutdown(self):
        self._stopped.set()
        if self._srv is None:
            return
        try:
            self._srv.shutdown(socket.SHUT_RDWR)
        except OSError:
            # listening sockets can't always be shut down; wake accept() instead
            host = "127.0.0.1" if self.host in ("", "0.0.0.0") else self.host
            try:
                with socket.create_connection((host, self.port), timeout=1):
                    pass
            except OSError:
                pass
        self._srv.close()

    # ======================================================
    def spawn_handler(self, conn: socket.socket, addr) -> ConnectionHandler:
        handler = ConnectionHandler(conn, addr, self.registry, self.store)
        threading.Thread(target=handler.run, name=f"client-{addr}", daemon=True).start()
        return handler


def main(argv=None):
    parser = argparse.ArgumentParser(description="Battleship lobby and match server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--users-file", default=str(USERS_FILE),
                        help="flat username:password file, created if missing")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level, format=LOG_FORMAT)

    server = LobbyServer(args.host, args.port, store=CredentialStore(args.users_file))
    try:
        server.start()
    except KeyboardInterrupt:
        log.info("[LOBBY SERVER] Shutting down")
    finally:
        server.shutdown()


if __name__ == "__main__":
    main()
