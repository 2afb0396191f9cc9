# mycord/client.py
import logging
import signal
import sys
import threading
from typing import Callable, Optional, TextIO

from .announcer import Announcer
from .config import ClientConfig
from .display import TIME_FORMAT, DisplayBuffer
from .input_state import InputMachine
from .line_client import LINE_TIME_FORMAT, Emit, LineClient, LinePrinter
from .receiver import ReceiveLoop
from .session import ChatSession
from .themes import get_theme
from .transport import Connection, TransportError
from .tui import ChatClientTUI

log = logging.getLogger(__name__)

JOIN_TIMEOUT = 1.0


class ChatClient:
    """Wires one connection, its loops and a front-end together.

    ``run`` returns the process exit status: 1 when the session could not be
    started, 0 for every shutdown after that.
    """

    def __init__(
        self,
        config: ClientConfig,
        stdin: Optional[TextIO] = None,
        emit: Optional[Emit] = None,
        connection: Optional[Connection] = None,
        out: Optional[TextIO] = None,
    ):
        self.config = config
        self.stdin = stdin
        self.emit = emit
        self.connection = connection
        self.out = out or sys.stdout
        self.session: Optional[ChatSession] = None

    def _say(self, text: str) -> None:
        print(f"[CLIENT] {text}", file=self.out, flush=True)

    def run(self) -> int:
        cfg = self.config
        if self.connection is None:
            try:
                self.connection = Connection.open(cfg.host, cfg.port, cfg.connect_timeout)
            except TransportError as err:
                self._say(f"Connect failed: {err}")
                return 1
        connection = self.connection

        session = ChatSession(connection, cfg.username, quiet=cfg.quiet, theme=get_theme(cfg.theme))
        self.session = session

        try:
            session.login()
        except TransportError as err:
            log.error("LOGIN failed: %s", err)
            self._say(f"Connect failed: {err}")
            connection.close()
            return 1
        log.info("logged in to %s as %s", connection.peer, cfg.username)

        if cfg.tui:
            buffer = DisplayBuffer(cfg.buffer_capacity)
            buffer.set_on_change(session.dirty.mark)
            machine = InputMachine(session, buffer, start_menu=cfg.start_menu, history_capacity=cfg.history_capacity)
            if not cfg.start_menu:
                machine.enter_editing()
            sink = buffer.append
            front = ChatClientTUI(session, buffer, machine, poll_interval=cfg.poll_interval)
            time_format = TIME_FORMAT
        else:
            printer = LinePrinter(session, self.emit)
            sink = printer
            front = LineClient(session, printer, stdin=self.stdin, poll_interval=cfg.poll_interval)
            time_format = LINE_TIME_FORMAT

        receiver = ReceiveLoop(session, sink, time_format=time_format)
        announcer = Announcer(session, sink, interval=cfg.announce_interval)

        restore = self._install_signal_handlers(session)
        receiver.start()
        announcer.start()
        try:
            front.run()
        finally:
            restore()
            self._shutdown(session, receiver, announcer)

        if cfg.tui and session.server_disconnected:
            self._say(f"Disconnected by server: {session.disconnect_notice or ''}".rstrip())
        self._say(session.theme.farewell)
        log.info("client finished (%s)", session.stop_reason)
        return 0

    def _shutdown(self, session: ChatSession, receiver: ReceiveLoop, announcer: Announcer) -> None:
        session.stop("shutdown")
        if session.logout():
            log.debug("LOGOUT sent")
        session.connection.shutdown()
        for thread in (receiver.thread, announcer.thread):
            if thread is not None:
                thread.join(JOIN_TIMEOUT)
                if thread.is_alive():
                    log.warning("%s did not stop in time", thread.name)
        session.connection.close()

    def _install_signal_handlers(self, session: ChatSession) -> Callable[[], None]:
        if threading.current_thread() is not threading.main_thread():
            return lambda: None

        def handler(signum, frame):
            session.stop(f"signal {signum}")

        previous = {sig: signal.signal(sig, handler) for sig in (signal.SIGINT, signal.SIGTERM)}

        def restore() -> None:
            for sig, old in previous.items():
                signal.signal(sig, old)

        return restore
