# mycord/tui.py
import asyncio
import logging

from prompt_toolkit import Application
from prompt_toolkit.data_structures import Point
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout import Layout, Window
from prompt_toolkit.layout.controls import UIContent, UIControl
from prompt_toolkit.mouse_events import MouseEventType
from prompt_toolkit.styles import DynamicStyle

from .display import DisplayBuffer
from .input_state import InputMachine, SCROLL_STEP
from .render import Renderer, build_style
from .session import ChatSession

log = logging.getLogger(__name__)

POLL_INTERVAL = 0.05
WHEEL_STEP = 3 * SCROLL_STEP

# keys whose raw bytes go straight to the input machine
RAW_KEYS = (
    "enter",
    "c-j",
    "c-h",
    "up",
    "down",
    "pageup",
    "pagedown",
    "escape",
    Keys.BracketedPaste,
    Keys.Any,
)


class ScreenControl(UIControl):
    """One control that paints the whole frame produced by the renderer."""

    def __init__(self, renderer: Renderer, buffer: DisplayBuffer, session: ChatSession):
        self.renderer = renderer
        self.buffer = buffer
        self.session = session
        self._last_height = 1

    def is_focusable(self) -> bool:
        return True

    def create_content(self, width: int, height: int | None) -> UIContent:
        real_height = height if height and height > 0 else self._last_height
        self._last_height = max(1, real_height)
        screen = self.renderer.render(width, self._last_height)

        lines = screen.lines or [[]]

        def get_line(i: int):
            return lines[i] if i < len(lines) else []

        if screen.cursor is None:
            return UIContent(get_line=get_line, line_count=len(lines), show_cursor=False)
        x, y = screen.cursor
        return UIContent(
            get_line=get_line,
            line_count=len(lines),
            cursor_position=Point(x=x, y=y),
            show_cursor=True,
        )

    def mouse_handler(self, mouse_event) -> object:
        if mouse_event.event_type == MouseEventType.SCROLL_UP:
            self.buffer.scroll_by(WHEEL_STEP)
            self.session.dirty.mark()
            return None
        if mouse_event.event_type == MouseEventType.SCROLL_DOWN:
            self.buffer.scroll_by(-WHEEL_STEP)
            self.session.dirty.mark()
            return None
        return NotImplemented


class ChatClientTUI:
    """Full-screen front-end.

    Key presses are turned back into the bytes the terminal sent and fed to
    the ``InputMachine``. A background task redraws only when the session is
    dirty and closes the application once the session stops.
    """

    def __init__(
        self,
        session: ChatSession,
        buffer: DisplayBuffer,
        machine: InputMachine,
        poll_interval: float = POLL_INTERVAL,
    ):
        self.session = session
        self.buffer = buffer
        self.machine = machine
        self.poll_interval = poll_interval
        self.renderer = Renderer(session, buffer, machine)
        self.control = ScreenControl(self.renderer, buffer, session)

        kb = KeyBindings()

        @kb.add("c-c")
        def _(event):
            self.session.stop("interrupted")

        for key in RAW_KEYS:
            kb.add(key)(self._feed_keys)

        self.app = Application(
            layout=Layout(Window(content=self.control, wrap_lines=False)),
            key_bindings=kb,
            style=DynamicStyle(lambda: build_style(self.session.theme)),
            full_screen=True,
            mouse_support=True,
        )
        # a lone ESC is reported after this many seconds
        self.app.ttimeoutlen = poll_interval
        self.app.timeoutlen = poll_interval * 2

    def _feed_keys(self, event) -> None:
        data = "".join(kp.data for kp in event.key_sequence)
        if not data or not self.session.running:
            return
        self.machine.feed(data.encode("utf-8", errors="replace"))
        self.machine.flush_pending()

    async def _redraw_pump(self) -> None:
        while self.session.running:
            if self.session.dirty.consume():
                self.app.invalidate()
            await asyncio.sleep(self.poll_interval)
        log.debug("session stopped (%s), closing UI", self.session.stop_reason)
        if not self.app.is_done:
            self.app.exit()

    def _pre_run(self) -> None:
        self.app.create_background_task(self._redraw_pump())

    def run(self) -> None:
        self.session.dirty.mark()
        self.app.run(pre_run=self._pre_run, handle_sigint=False)
