# mycord/input_state.py
"""Byte-level line editor driving the interactive client.

``InputMachine.feed`` takes whatever the terminal produced, one byte at a
time, exactly as a raw-mode tty delivers it. The terminal front-end calls
``flush_pending`` once a read finished so a lone ESC does not swallow the
next key.
"""
import logging
from enum import Enum
from typing import List, Optional

from .commands import HELP_HINT, LocalCommands, ValidationError, validate_outgoing
from .display import DisplayBuffer, LineKind, local_line
from .protocol import MAX_BODY
from .session import ChatSession
from .themes import other_theme
from .transport import TransportError

log = logging.getLogger(__name__)

HISTORY_CAPACITY = 64
SCROLL_STEP = 1
PAGE_STEP = 5

ENTER = (10, 13)
BACKSPACE = (8, 127)
ESC = 27


class Mode(Enum):
    START_MENU = "start_menu"
    EDITING = "editing"


class InputHistory:
    def __init__(self, capacity: int = HISTORY_CAPACITY):
        self.capacity = capacity
        self._entries: List[str] = []
        self.cursor = 0

    @property
    def entries(self) -> List[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def push(self, text: str) -> None:
        if text and not (self._entries and self._entries[-1] == text):
            self._entries.append(text)
            if len(self._entries) > self.capacity:
                del self._entries[0]
        self.reset_cursor()

    def reset_cursor(self) -> None:
        self.cursor = len(self._entries)

    def previous(self) -> Optional[str]:
        if self._entries and self.cursor > 0:
            self.cursor -= 1
        if 0 <= self.cursor < len(self._entries):
            return self._entries[self.cursor]
        return None

    def next(self) -> Optional[str]:
        """Step towards newer entries; past the newest this returns ''."""
        if self.cursor < len(self._entries):
            self.cursor += 1
        if self.cursor == len(self._entries):
            return ""
        return self._entries[self.cursor]


class EditState:
    def __init__(self, capacity: int = MAX_BODY, history_capacity: int = HISTORY_CAPACITY):
        self.capacity = capacity
        self.text = ""
        self.history = InputHistory(history_capacity)

    def insert(self, ch: str) -> bool:
        if len(self.text) >= self.capacity:
            return False
        self.text += ch
        return True

    def backspace(self) -> bool:
        if not self.text:
            return False
        self.text = self.text[:-1]
        return True

    def clear(self) -> None:
        self.text = ""

    def replace(self, text: str) -> None:
        self.text = text[: self.capacity]

    def history_previous(self) -> bool:
        entry = self.history.previous()
        if entry is None:
            return False
        self.replace(entry)
        return True

    def history_next(self) -> bool:
        entry = self.history.next()
        if entry is None:
            return False
        self.replace(entry)
        return True

    def commit(self, text: str) -> None:
        self.history.push(text)


class InputMachine:
    def __init__(
        self,
        session: ChatSession,
        buffer: DisplayBuffer,
        start_menu: bool = False,
        history_capacity: int = HISTORY_CAPACITY,
    ):
        self.session = session
        self.buffer = buffer
        self.edit = EditState(history_capacity=history_capacity)
        self.commands = LocalCommands(session, self._notify)
        self.mode = Mode.START_MENU if start_menu else Mode.EDITING
        session.in_menu = start_menu
        # None, "esc", "csi", "csi_skip" or "ss3"
        self._esc_state: Optional[str] = None
        self._esc_params = ""

    def feed(self, data: bytes) -> None:
        for byte in data:
            if not self.session.running:
                return
            self._feed_byte(byte)

    def flush_pending(self) -> None:
        self._esc_state = None
        self._esc_params = ""

    def _mark(self) -> None:
        self.session.dirty.mark()

    def _notify(self, author: str, text: str, kind: LineKind = LineKind.SYSTEM) -> None:
        self.buffer.append(local_line(author, text, kind))

    def _feed_byte(self, b: int) -> None:
        if self.mode is Mode.START_MENU:
            self._menu_byte(b)
        elif self._esc_state is not None:
            self._escape_byte(b)
        elif b in ENTER:
            self._submit()
        elif b in BACKSPACE:
            if self.edit.backspace():
                self._mark()
        elif b == ESC:
            self._esc_state = "esc"
        elif 32 <= b <= 126:
            if self.edit.insert(chr(b)):
                self._mark()

    # start menu

    def _menu_byte(self, b: int) -> None:
        if b == ESC:
            self.session.switch_theme(other_theme(self.session.theme))
        elif b in ENTER:
            self.enter_editing()
        elif b in (ord("q"), ord("Q")):
            self.session.stop("quit from menu")

    def enter_editing(self) -> None:
        self.mode = Mode.EDITING
        self.session.in_menu = False
        theme = self.session.theme
        for author, text in theme.boot_lines:
            self._notify(author, text)
        self._notify("SYSTEM", "Connected to server")
        self._notify(theme.system_author, HELP_HINT)
        self._mark()

    # escape sequences

    def _escape_byte(self, b: int) -> None:
        state = self._esc_state
        if state == "esc":
            if b == ord("["):
                self._esc_state = "csi"
                self._esc_params = ""
            elif b == ord("O"):
                self._esc_state = "ss3"
            else:
                self.flush_pending()
            return
        if state == "ss3":
            self.flush_pending()
            self._dispatch_escape("", chr(b))
            return
        if state == "csi_skip":
            if 0x40 <= b <= 0x7E:
                self.flush_pending()
            return
        # csi: parameter and intermediate bytes, then one final byte
        if 0x20 <= b <= 0x3F:
            self._esc_params += chr(b)
            if len(self._esc_params) > 16:
                # overlong: swallow the rest up to the final byte
                self._esc_state = "csi_skip"
                self._esc_params = ""
            return
        params = self._esc_params
        self.flush_pending()
        if 0x40 <= b <= 0x7E:
            self._dispatch_escape(params, chr(b))

    def _dispatch_escape(self, params: str, final: str) -> None:
        if params == "" and final == "A":
            self._arrow(up=True)
        elif params == "" and final == "B":
            self._arrow(up=False)
        elif params == "5" and final == "~":
            self.buffer.scroll_by(PAGE_STEP)
            self._mark()
        elif params == "6" and final == "~":
            self.buffer.scroll_by(-PAGE_STEP)
            self._mark()
        else:
            log.debug("ignored escape sequence %r%r", params, final)

    def _arrow(self, up: bool) -> None:
        if not self.edit.text:
            self.buffer.scroll_by(SCROLL_STEP if up else -SCROLL_STEP)
            self._mark()
            return
        moved = self.edit.history_previous() if up else self.edit.history_next()
        if moved:
            self._mark()

    # enter

    def _submit(self) -> None:
        text = self.edit.text
        if not text:
            return
        if self.commands.dispatch(text):
            self.edit.clear()
            self.edit.history.reset_cursor()
            self._mark()
            return
        try:
            body = validate_outgoing(text)
        except ValidationError as err:
            self._notify("ERROR", str(err), LineKind.ERROR)
        else:
            try:
                self.session.send_text(body)
            except TransportError as err:
                log.error("send failed: %s", err)
                self._notify("ERROR", "Write error - connection lost", LineKind.ERROR)
                self.session.stop("write error")
            else:
                self.edit.commit(body)
        self.edit.clear()
        self._mark()
