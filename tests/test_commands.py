import unittest

from battleship_server.commands import (
    Challenge, ChallengeAccepted, ChallengeDeclined, Fire, Login, Logout,
    PlaceShip, PlayerList, Register, parse_command,
)
from battleship_server.errors import ProtocolError
from battleship_server.match import Direction


class TestParseCommand(unittest.TestCase):

    def test_auth_commands(self):
        self.assertEqual(parse_command("LOGIN:alice@pw1"), Login("alice", "pw1"))
        self.assertEqual(parse_command("REGISTER:bob@secret"), Register("bob", "secret"))

    def test_password_may_contain_colon(self):
        # only the first colon separates command from data
        self.assertEqual(parse_command("LOGIN:alice@a:b"), Login("alice", "a:b"))

    def test_bad_credentials_field_count(self):
        for line in ("LOGIN:alice", "LOGIN:a@b@c", "REGISTER", "REGISTER:"):
            with self.assertRaises(ProtocolError) as ctx:
                parse_command(line)
            self.assertEqual(ctx.exception.line(), "ERROR:Expected user@pass")

    def test_lobby_commands(self):
        self.assertEqual(parse_command("PLAYER_LIST"), PlayerList())
        self.assertEqual(parse_command("CHALLENGE:alice"), Challenge("alice"))
        self.assertEqual(parse_command("CHALLENGE_ACCEPTED:bob"), ChallengeAccepted("bob"))
        self.assertEqual(parse_command("CHALLENGE_DECLINED:bob"), ChallengeDeclined("bob"))
        self.assertEqual(parse_command("LOGOUT"), Logout())

    def test_challenge_needs_a_name(self):
        with self.assertRaises(ProtocolError):
            parse_command("CHALLENGE:")

    def test_place_ship(self):
        self.assertEqual(parse_command("PLACE_SHIP:A,0,H"), PlaceShip(0, 0, Direction.HORIZONTAL))
        self.assertEqual(parse_command("PLACE_SHIP:j,9,v"), PlaceShip(9, 9, Direction.VERTICAL))
        self.assertEqual(parse_command("PLACE_SHIP:C, 4, Vertical"), PlaceShip(2, 4, Direction.VERTICAL))

    def test_place_ship_errors(self):
        cases = {
            "PLACE_SHIP:A,0": "ERROR:Expected Row,Col,Dir",
            "PLACE_SHIP:A,x,H": "ERROR:Invalid column 'x'",
            "PLACE_SHIP:K,0,H": "ERROR:Invalid row 'K' (use A-J)",
            "PLACE_SHIP:A,0,D": "ERROR:Invalid direction 'D' (use H or V)",
            "PLACE_SHIP:A,10,H": "ERROR:Invalid column '10' (use 0-9)",
        }
        for line, expected in cases.items():
            with self.assertRaises(ProtocolError) as ctx:
                parse_command(line)
            self.assertEqual(ctx.exception.line(), expected, line)

    def test_fire(self):
        self.assertEqual(parse_command("FIRE:B,5"), Fire(1, 5))
        with self.assertRaises(ProtocolError):
            parse_command("FIRE:B")
        with self.assertRaises(ProtocolError):
            parse_command("FIRE:AA,1")
        with self.assertRaises(ProtocolError):
            parse_command("FIRE:B,-1")

    def test_column_must_be_plain_digits(self):
        for token in ("+5", "0_5", "\u0665", " 5x", ""):
            with self.assertRaises(ProtocolError) as ctx:
                parse_command(f"FIRE:B,{token}")
            self.assertTrue(ctx.exception.line().startswith("ERROR:Invalid column"), token)
        self.assertEqual(parse_command("FIRE:B, 5 "), Fire(1, 5))

    def test_unknown_command(self):
        with self.assertRaises(ProtocolError) as ctx:
            parse_command("DANCE:now")
        self.assertEqual(ctx.exception.line(), "ERROR:Unknown command")


if __name__ == "__main__":
    unittest.main()
