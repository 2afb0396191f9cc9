# mycord/commands.py
"""Outgoing text validation and the local ``!command`` table."""
from typing import Callable, Dict, Union

from .display import LineKind
from .protocol import MAX_BODY, TEXT_ENCODING
from .session import ChatSession
from .themes import GRAVEMIND, SPARTAN, Theme

ESCAPE = 27
HELP_TEXT = "Commands: !help !gravemind !spartan !disconnect"
HELP_HINT = "Type '!help' for available commands"

Notify = Callable[[str, str, LineKind], None]


class ValidationError(ValueError):
    """Outgoing text that must not be put on the wire."""


def validate_outgoing(text: Union[str, bytes]) -> str:
    """Return *text* if the server will accept it, else raise ValidationError."""
    raw = text if isinstance(text, bytes) else text.encode(TEXT_ENCODING, errors="replace")
    if isinstance(text, str) and any(ord(ch) > 0xFF for ch in text):
        raise ValidationError("Cannot send non-ASCII characters")
    if not raw:
        raise ValidationError("Message is too short")
    if len(raw) > MAX_BODY:
        raise ValidationError("Message is too long to send")
    if ESCAPE in raw:
        raise ValidationError("Cannot send escape sequences")
    if any(b < 32 or b > 126 for b in raw):
        raise ValidationError("Cannot send non-ASCII characters")
    return raw.decode(TEXT_ENCODING)


class LocalCommands:
    """Exact-match, case-sensitive commands handled without touching the socket."""

    def __init__(self, session: ChatSession, notify: Notify):
        self.session = session
        self.notify = notify
        self._table: Dict[str, Callable[[], None]] = {
            "!help": self._help,
            "!disconnect": self._disconnect,
            "!disconect": self._disconnect,
            "!gravemind": lambda: self._switch(GRAVEMIND),
            "!spartan": lambda: self._switch(SPARTAN),
        }

    def __contains__(self, text: str) -> bool:
        return text in self._table

    def dispatch(self, text: str) -> bool:
        handler = self._table.get(text)
        if handler is None:
            return False
        handler()
        return True

    def _help(self) -> None:
        self.notify("HELP", HELP_TEXT, LineKind.SYSTEM)

    def _disconnect(self) -> None:
        self.session.stop("user disconnect")

    def _switch(self, theme: Theme) -> None:
        self.session.switch_theme(theme)
        self.notify(theme.system_author, theme.switch_line, LineKind.SYSTEM)
