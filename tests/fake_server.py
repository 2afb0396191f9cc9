# tests/fake_server.py
import socket
import threading
import time
from typing import List, Optional

from mycord.protocol import FRAME_SIZE, MessageKind, WireMessage, decode_message
from mycord.transport import Connection, TransportError


class FakeChatServer:
    """In-process frame server: announces joins, echoes sends, records everything."""

    def __init__(self, host: str = "127.0.0.1", port: int = 0):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind((host, port))
        self.sock.listen(5)
        self.addr = self.sock.getsockname()
        self.clients: List[Connection] = []
        self.handlers: List[threading.Thread] = []
        self.received: List[WireMessage] = []
        self.cond = threading.Condition()
        self.running = True

    @property
    def host(self) -> str:
        return self.addr[0]

    @property
    def port(self) -> int:
        return self.addr[1]

    def start(self) -> "FakeChatServer":
        threading.Thread(target=self._accept_loop, daemon=True).start()
        return self

    def _accept_loop(self):
        while self.running:
            try:
                conn, _ = self.sock.accept()
            except OSError:
                break
            client = Connection(conn)
            with self.cond:
                self.clients.append(client)
            th = threading.Thread(target=self._handle_client, args=(client,), daemon=True)
            self.handlers.append(th)
            th.start()

    def broadcast(self, kind: int, username: str = "", body: str = "") -> None:
        with self.cond:
            clients = list(self.clients)
        for c in clients:
            try:
                c.send_message(kind, username=username, body=body, timestamp=int(time.time()))
            except TransportError:
                pass

    def _handle_client(self, client: Connection):
        try:
            while self.running:
                try:
                    raw = client.read_frame()
                except TransportError:
                    break
                if len(raw) < FRAME_SIZE:
                    break
                msg = decode_message(raw)
                with self.cond:
                    self.received.append(msg)
                    self.cond.notify_all()
                if msg.kind == MessageKind.LOGIN:
                    self.broadcast(MessageKind.SYSTEM, body=f"{msg.username} joined")
                elif msg.kind == MessageKind.MESSAGE_SEND:
                    self.broadcast(MessageKind.MESSAGE_RECV, username=msg.username, body=msg.body)
                elif msg.kind == MessageKind.LOGOUT:
                    break
        finally:
            with self.cond:
                if client in self.clients:
                    self.clients.remove(client)
            client.close()

    def wait_for(self, kind: int, timeout: float = 3.0) -> Optional[WireMessage]:
        deadline = time.monotonic() + timeout
        with self.cond:
            while True:
                for msg in self.received:
                    if msg.kind == kind:
                        return msg
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self.cond.wait(remaining)

    def kinds(self) -> List[int]:
        with self.cond:
            return [m.kind for m in self.received]

    def join_handlers(self, timeout: float = 3.0) -> None:
        for th in list(self.handlers):
            th.join(timeout)

    def close(self) -> None:
        self.running = False
        with self.cond:
            clients = list(self.clients)
        for c in clients:
            c.shutdown()
        self.sock.close()
