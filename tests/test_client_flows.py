import io
import queue
import socket
import threading
import unittest

from mycord.client import ChatClient
from mycord.config import ClientConfig
from mycord.display import DisplayLine, LineKind
from mycord.line_client import format_line
from mycord.protocol import MessageKind
from mycord.themes import SPARTAN

from .fake_server import FakeChatServer


class BlockingStdin:
    """readline() blocks until a line is fed or the stream is closed."""

    def __init__(self, *lines):
        self._q = queue.Queue()
        for line in lines:
            self.feed(line)

    def feed(self, line):
        self._q.put(line)

    def close(self):
        self._q.put("")

    def readline(self):
        return self._q.get()


def text_of(formatted):
    return "".join(f[1] for f in formatted)


class LineFormatTests(unittest.TestCase):
    def test_received_message_with_mention_rings_bell(self):
        line = DisplayLine("2024-01-02 03:04:05", "bob", "yo @alice", LineKind.RECEIVED)
        out = format_line(line, "alice")
        self.assertEqual(text_of(out), "[2024-01-02 03:04:05] bob: yo \a@alice")
        self.assertIn(("class:mention", "@alice"), list(out))

    def test_quiet_has_no_bell(self):
        line = DisplayLine("t", "bob", "yo @alice", LineKind.RECEIVED)
        self.assertNotIn("\a", text_of(format_line(line, "alice", quiet=True)))

    def test_system_and_disconnect(self):
        self.assertEqual(text_of(format_line(DisplayLine("t", "SYSTEM", "bob joined", LineKind.SYSTEM))), "[SYSTEM] bob joined")
        self.assertEqual(
            text_of(format_line(DisplayLine("t", "DISCONNECT", "kicked", LineKind.DISCONNECT))),
            "[DISCONNECT] kicked",
        )
        self.assertEqual(text_of(format_line(DisplayLine("t", "ERROR", "Message is too short", LineKind.ERROR))), "Error: Message is too short")

    def test_theme_filter_applies(self):
        line = DisplayLine("t", "bob", "HI", LineKind.RECEIVED)
        self.assertEqual(text_of(format_line(line, theme=SPARTAN)), "[t] bob: HI")


class ClientFlowTests(unittest.TestCase):
    def setUp(self):
        self.server = FakeChatServer().start()
        self.printed = []
        self.out = io.StringIO()

    def tearDown(self):
        self.server.close()

    def start_client(self, stdin):
        cfg = ClientConfig(host=self.server.host, port=self.server.port, username="alice")
        client = ChatClient(cfg, stdin=stdin, emit=lambda ft: self.printed.append(text_of(ft)), out=self.out)
        result = {}
        th = threading.Thread(target=lambda: result.setdefault("rc", client.run()), daemon=True)
        th.start()
        return th, result

    def finish(self, th, result):
        th.join(timeout=5)
        self.assertFalse(th.is_alive(), "client did not shut down")
        self.server.join_handlers()
        return result["rc"]

    def test_login_send_and_user_disconnect(self):
        stdin = BlockingStdin("hello world\n")
        th, result = self.start_client(stdin)
        self.assertIsNotNone(self.server.wait_for(MessageKind.MESSAGE_SEND))
        stdin.feed("!disconnect\n")
        self.assertEqual(self.finish(th, result), 0)

        self.assertEqual(
            self.server.kinds(),
            [MessageKind.LOGIN, MessageKind.MESSAGE_SEND, MessageKind.LOGOUT],
        )
        logout = self.server.wait_for(MessageKind.LOGOUT, timeout=0)
        self.assertEqual((logout.username, logout.body), ("alice", "User has disconnected"))
        self.assertIn("[SYSTEM] alice joined", self.printed)
        self.assertIn("[CLIENT] " + SPARTAN.farewell, self.out.getvalue())

    def test_server_disconnect_suppresses_logout(self):
        stdin = BlockingStdin()
        th, result = self.start_client(stdin)
        self.assertIsNotNone(self.server.wait_for(MessageKind.LOGIN))
        self.server.broadcast(MessageKind.DISCONNECT, body="Server shutting down")
        self.assertEqual(self.finish(th, result), 0)

        self.assertNotIn(MessageKind.LOGOUT, self.server.kinds())
        self.assertIn("[DISCONNECT] Server shutting down", self.printed)
        stdin.close()

    def test_end_of_input_logs_out(self):
        th, result = self.start_client(io.StringIO("bad \x1b line\n"))
        self.assertEqual(self.finish(th, result), 0)
        self.assertEqual(self.server.kinds(), [MessageKind.LOGIN, MessageKind.LOGOUT])
        self.assertIn("Error: Cannot send escape sequences", self.printed)

    def test_connect_failure_exits_one(self):
        probe = socket.socket()
        probe.bind(("127.0.0.1", 0))
        port = probe.getsockname()[1]
        probe.close()
        out = io.StringIO()
        rc = ChatClient(ClientConfig(port=port, username="alice", connect_timeout=2.0), out=out).run()
        self.assertEqual(rc, 1)
        self.assertIn("[CLIENT] Connect failed:", out.getvalue())


if __name__ == "__main__":
    unittest.main()
