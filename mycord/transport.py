# mycord/transport.py
"""Full-transfer socket I/O for the single server connection."""
import logging
import socket
import threading

from .protocol import FRAME_SIZE, encode_message

log = logging.getLogger(__name__)


class TransportError(RuntimeError):
    """Connect, read or write failure on the server connection."""


class Connection:
    """Owns the stream socket; every frame goes through read_exact/write_all."""

    def __init__(self, sock: socket.socket):
        self._sock = sock
        self._write_lock = threading.Lock()
        self.peer = None
        try:
            self.peer = sock.getpeername()
        except (OSError, AttributeError):
            pass

    @classmethod
    def open(cls, host: str, port: int, timeout: float = 10.0) -> "Connection":
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as err:
            raise TransportError(f"could not connect to {host}:{port}: {err}") from err
        # the timeout only bounds connect; reads block until data or shutdown
        sock.settimeout(None)
        log.info("connected to %s:%s", host, port)
        return cls(sock)

    def read_exact(self, n: int) -> bytes:
        """Read exactly *n* bytes; fewer are returned only when the peer hit EOF."""
        buf = bytearray()
        while len(buf) < n:
            try:
                chunk = self._sock.recv(n - len(buf))
            except InterruptedError:
                continue
            except OSError as err:
                raise TransportError(f"read failed: {err}") from err
            if not chunk:
                break
            buf += chunk
        return bytes(buf)

    def read_frame(self) -> bytes:
        return self.read_exact(FRAME_SIZE)

    def write_all(self, data: bytes) -> None:
        view = memoryview(data)
        with self._write_lock:
            while view:
                try:
                    sent = self._sock.send(view)
                except InterruptedError:
                    continue
                except OSError as err:
                    raise TransportError(f"write failed: {err}") from err
                if sent == 0:
                    raise TransportError("write failed: connection closed")
                view = view[sent:]

    def send_message(self, kind: int, username: str = "", body: str = "", timestamp: int = 0) -> None:
        self.write_all(encode_message(kind, timestamp, username, body))

    def shutdown(self) -> None:
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass

    def close(self) -> None:
        try:
            self._sock.close()
        except OSError as err:
            log.debug("close failed: %s", err)
