import socket
import tempfile
import threading
import unittest
from pathlib import Path

from battleship_server.credential_store import CredentialStore
from battleship_server.lobby_server import LobbyServer
from battleship_server.utils.protocol import LineReader, send_line


class LobbyServerTest(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        store = CredentialStore(Path(self.tmpdir.name) / "users.txt")
        self.server = LobbyServer("127.0.0.1", 0, store=store)
        self.port = self.server.listen()
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        self.socks = []

    def tearDown(self):
        for s in self.socks:
            s.close()
        self.server.shutdown()
        self.thread.join(timeout=5)
        self.tmpdir.cleanup()

    def connect(self):
        s = socket.create_connection(("127.0.0.1", self.port), timeout=5)
        self.socks.append(s)
        return s, LineReader(s)

    def test_port_zero_is_resolved(self):
        self.assertNotEqual(self.port, 0)

    def test_register_login_and_challenge_over_tcp(self):
        a, a_in = self.connect()
        b, b_in = self.connect()

        send_line(a, "REGISTER:alice@pw1")
        self.assertEqual(a_in.readline(), "REGISTER_SUCCESS")
        send_line(a, "LOGIN:alice@pw1")
        self.assertEqual(a_in.readline(), "LOGIN_SUCCESS")
        send_line(a, "LOGIN:alice@wrong")
        self.assertEqual(a_in.readline(), "LOGIN_FAILED:Invalid Credentials")

        send_line(b, "REGISTER:bob@pw2")
        self.assertEqual(b_in.readline(), "REGISTER_SUCCESS")
        send_line(b, "LOGIN:bob@pw2")
        self.assertEqual(b_in.readline(), "LOGIN_SUCCESS")

        send_line(b, "PLAYER_LIST")
        self.assertEqual(b_in.readline(), "PLAYER_LIST:alice,bob")

        send_line(b, "CHALLENGE:alice")
        self.assertEqual(a_in.readline(), "CHALLENGE_FROM:bob")
        send_line(a, "CHALLENGE_ACCEPTED:bob")
        self.assertEqual(b_in.readline(), "GAME_START:You go first")
        self.assertEqual(a_in.readline(), "GAME_START:Opponent goes first")

        send_line(a, "PLACE_SHIP:A,0,H")
        self.assertEqual(a_in.readline(), "SHIP_PLACED")

    def test_shutdown_stops_accept_loop(self):
        self.server.shutdown()
        self.thread.join(timeout=5)
        self.assertFalse(self.thread.is_alive())


if __name__ == "__main__":
    unittest.main()
