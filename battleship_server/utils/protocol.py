# battleship_server/utils/protocol.py
import socket

MAX_LINE = 4 * 1024  # 4 KiB
ENCODING = "utf-8"


def send_line(sock: socket.socket, text: str):
    """
    Send one message as UTF-8 text terminated by a newline.
    """
    if "\n" in text:
        raise ValueError("Message must not contain a newline")
    sock.sendall((text + "\n").encode(ENCODING))


class LineTooLong(ValueError):
    """Raised once per line longer than MAX_LINE; the rest of that line is dropped."""


class LineReader:
    """
    Buffered reader returning one decoded line per call (without the
    terminator), or None once the peer closes the stream.
    """

    def __init__(self, sock: socket.socket):
        self.sock = sock
        self._buf = b""
        # set after an overlong line until its terminating newline arrives
        self._discarding = False

    def readline(self) -> str | None:
        while True:
            if self._discarding:
                _, nl, rest = self._buf.partition(b"\n")
                if nl:
                    self._buf = rest
                    self._discarding = False
                else:
                    self._buf = b""

            if not self._discarding:
                if b"\n" in self._buf:
                    data, _, self._buf = self._buf.partition(b"\n")
                    if len(data) > MAX_LINE:
                        raise LineTooLong(f"Line longer than {MAX_LINE} bytes")
                    return data.decode(ENCODING, errors="replace").rstrip("\r")
                if len(self._buf) > MAX_LINE:
                    self._buf = b""
                    self._discarding = True
                    raise LineTooLong(f"Line longer than {MAX_LINE} bytes")

            chunk = self.sock.recv(4096)
            if not chunk:
                if self._buf and not self._discarding:
                    # last line without a terminator
                    data, self._buf = self._buf, b""
                    return data.decode(ENCODING, errors="replace").rstrip("\r")
                return None
            self._buf += chunk
