# mycord/session.py
import logging
import threading
from typing import Optional

from .protocol import MessageKind
from .themes import SPARTAN, Theme
from .transport import Connection, TransportError

log = logging.getLogger(__name__)

LOGOUT_BODY = "User has disconnected"


class DirtyFlag:
    """Set by any loop when the screen is stale; consumed by the redraw step."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def mark(self) -> None:
        self._event.set()

    def consume(self) -> bool:
        if not self._event.is_set():
            return False
        self._event.clear()
        return True

    def is_set(self) -> bool:
        return self._event.is_set()


class ChatSession:
    """Everything the client loops share for one server connection.

    ``running`` only ever goes from true to false. Signal handlers, the
    receive loop and the input loop all call ``stop``; repeated calls are
    harmless.
    """

    def __init__(
        self,
        connection: Connection,
        username: str,
        quiet: bool = False,
        theme: Theme = SPARTAN,
    ):
        self.connection = connection
        self.username = username
        self.quiet = quiet
        self.theme = theme
        self.in_menu = False
        self.dirty = DirtyFlag()
        self.stop_reason: Optional[str] = None
        self.disconnect_notice: Optional[str] = None
        self._stopped = threading.Event()
        self._server_closed = threading.Event()

    @property
    def running(self) -> bool:
        return not self._stopped.is_set()

    def stop(self, reason: Optional[str] = None) -> None:
        if reason and self.stop_reason is None:
            self.stop_reason = reason
        self._stopped.set()
        self.dirty.mark()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Sleep up to *timeout* seconds; True as soon as the session stops."""
        return self._stopped.wait(timeout)

    def mark_server_disconnect(self, notice: str = "") -> None:
        self.disconnect_notice = notice
        self._server_closed.set()

    @property
    def server_disconnected(self) -> bool:
        return self._server_closed.is_set()

    def switch_theme(self, theme: Theme) -> None:
        self.theme = theme
        self.dirty.mark()

    def login(self) -> None:
        self.connection.send_message(MessageKind.LOGIN, username=self.username)

    def send_text(self, text: str) -> None:
        self.connection.send_message(MessageKind.MESSAGE_SEND, username=self.username, body=text)

    def logout(self) -> bool:
        """Send LOGOUT unless the server already hung up on us. Best effort."""
        if self.server_disconnected:
            log.debug("server sent DISCONNECT, skipping LOGOUT")
            return False
        try:
            self.connection.send_message(MessageKind.LOGOUT, username=self.username, body=LOGOUT_BODY)
        except TransportError as err:
            log.debug("LOGOUT not delivered: %s", err)
            return False
        return True
