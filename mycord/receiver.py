# mycord/receiver.py
import logging
import threading
import time
from typing import Callable, Optional

from .display import TIME_FORMAT, DisplayLine, LineKind, local_line
from .protocol import FRAME_SIZE, MessageKind, ProtocolShortRead, WireMessage, decode_message
from .session import ChatSession
from .transport import TransportError

log = logging.getLogger(__name__)

SYSTEM_AUTHOR = "SYSTEM"
DISCONNECT_AUTHOR = "DISCONNECT"
FALLBACK_AUTHOR = "System"

LineSink = Callable[[DisplayLine], None]


class FrameDeduplicator:
    """Drops a frame that is byte-identical to the one accepted just before it.

    Workaround for the server occasionally delivering the same frame twice in
    a row. It only looks back one frame; it is not a general dedup window.
    """

    def __init__(self) -> None:
        self._last: Optional[bytes] = None

    def is_repeat(self, raw: bytes) -> bool:
        if self._last is not None and raw == self._last:
            return True
        self._last = raw
        return False


def classify(message: WireMessage, own_username: str = "", time_format: str = TIME_FORMAT) -> DisplayLine:
    label = time.strftime(time_format, time.localtime(message.timestamp))
    kind = message.known_kind
    if kind is MessageKind.MESSAGE_RECV:
        line_kind = LineKind.SENT if own_username and message.username == own_username else LineKind.RECEIVED
        return DisplayLine(label, message.username, message.body, line_kind)
    if kind is MessageKind.SYSTEM:
        return DisplayLine(label, SYSTEM_AUTHOR, message.body, LineKind.SYSTEM)
    if kind is MessageKind.DISCONNECT:
        return DisplayLine(label, DISCONNECT_AUTHOR, message.body, LineKind.DISCONNECT)
    return DisplayLine(label, FALLBACK_AUTHOR, message.body, LineKind.UNCLASSIFIED)


class ReceiveLoop:
    """Reads frames until EOF, error, DISCONNECT or local shutdown.

    Every way out of ``run`` stops the session; there is no reconnect.
    """

    def __init__(self, session: ChatSession, sink: LineSink, time_format: str = TIME_FORMAT):
        self.session = session
        self.sink = sink
        self.time_format = time_format
        self.dedup = FrameDeduplicator()
        self.thread: Optional[threading.Thread] = None

    def start(self) -> threading.Thread:
        self.thread = threading.Thread(target=self.run, name="mycord-recv", daemon=True)
        self.thread.start()
        return self.thread

    def run(self) -> None:
        session = self.session
        while session.running:
            try:
                raw = session.connection.read_frame()
            except TransportError as err:
                if session.running:
                    log.error("receive failed: %s", err)
                    self.sink(local_line("ERROR", "Could not read from server", LineKind.ERROR))
                    session.stop("read error")
                break

            if not session.running:
                break
            if not raw:
                log.info("server closed the connection")
                self.sink(local_line(session.theme.system_author, "Server has disconnected", LineKind.SYSTEM))
                session.stop("server closed")
                break
            if len(raw) < FRAME_SIZE:
                err = ProtocolShortRead(len(raw))
                log.error("%s", err)
                self.sink(local_line("ERROR", str(err), LineKind.ERROR))
                session.stop("short read")
                break

            if self.dedup.is_repeat(raw):
                log.debug("dropped repeated frame")
                continue

            message = decode_message(raw)
            self.sink(classify(message, session.username, self.time_format))

            if message.known_kind is MessageKind.DISCONNECT:
                log.info("server sent DISCONNECT: %s", message.body)
                session.mark_server_disconnect(message.body)
                session.stop("server disconnect")
                break
