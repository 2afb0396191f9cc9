# mycord/line_client.py
"""Plain line-oriented front-end used when no full-screen UI is wanted."""
import logging
import queue
import sys
import threading
from typing import Callable, Optional, TextIO

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import FormattedText

from .commands import HELP_HINT, LocalCommands, ValidationError, validate_outgoing
from .display import DisplayLine, LineKind, local_line
from .render import build_style
from .session import ChatSession
from .transport import TransportError

log = logging.getLogger(__name__)

LINE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DISCONNECT_HINT = "Type '!disconnect' (or !disconect) to disconnect"
BELL = "\a"

Emit = Callable[[FormattedText], None]


def format_line(line: DisplayLine, username: str = "", quiet: bool = False, theme=None) -> FormattedText:
    if line.kind in (LineKind.RECEIVED, LineKind.SENT):
        body = theme.filter(line.body) if theme is not None else line.body
        fragments = [("", f"[{line.time_label}] {line.author}: ")]
        if quiet or not username:
            fragments.append(("", body))
            return FormattedText(fragments)
        needle = f"@{username}"
        pos = 0
        while True:
            idx = body.find(needle, pos)
            if idx < 0:
                break
            fragments.append(("", body[pos:idx] + BELL))
            fragments.append(("class:mention", needle))
            pos = idx + len(needle)
        fragments.append(("", body[pos:]))
        return FormattedText(fragments)
    if line.kind is LineKind.SYSTEM:
        return FormattedText([("class:status", f"[{line.author}] {line.body}")])
    if line.kind is LineKind.DISCONNECT:
        return FormattedText([("class:disconnect", f"[DISCONNECT] {line.body}")])
    if line.kind is LineKind.ERROR:
        return FormattedText([("class:error", f"Error: {line.body}")])
    return FormattedText([("", f"[{line.author}] {line.body}")])


class LinePrinter:
    """LineSink that prints each line as it arrives. Safe to call from any thread."""

    def __init__(self, session: ChatSession, emit: Optional[Emit] = None):
        self.session = session
        self.emit = emit or self._print
        self._lock = threading.Lock()

    def _print(self, text: FormattedText) -> None:
        print_formatted_text(text, style=build_style(self.session.theme))

    def __call__(self, line: DisplayLine) -> None:
        text = format_line(line, self.session.username, self.session.quiet, self.session.theme)
        with self._lock:
            self.emit(text)

    def plain(self, text: str) -> None:
        with self._lock:
            self.emit(FormattedText([("", text)]))


class StdinReader:
    """Reads lines on a daemon thread so the main loop can poll with a timeout.

    ``None`` on the queue means end of input.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdin
        self.lines: "queue.Queue[Optional[str]]" = queue.Queue()
        self.thread: Optional[threading.Thread] = None

    def start(self) -> threading.Thread:
        self.thread = threading.Thread(target=self._run, name="mycord-stdin", daemon=True)
        self.thread.start()
        return self.thread

    def _run(self) -> None:
        while True:
            try:
                line = self.stream.readline()
            except (OSError, ValueError) as err:
                log.debug("stdin read failed: %s", err)
                line = ""
            if not line:
                self.lines.put(None)
                return
            self.lines.put(line)

    def get(self, timeout: float) -> Optional[str]:
        return self.lines.get(timeout=timeout)


class LineClient:
    def __init__(
        self,
        session: ChatSession,
        printer: LinePrinter,
        stdin: Optional[TextIO] = None,
        poll_interval: float = 0.05,
    ):
        self.session = session
        self.printer = printer
        self.reader = StdinReader(stdin)
        self.poll_interval = poll_interval
        self.commands = LocalCommands(session, self._notify)

    def _notify(self, author: str, text: str, kind: LineKind = LineKind.SYSTEM) -> None:
        self.printer(local_line(author, text, kind))

    def run(self) -> None:
        self.printer.plain(DISCONNECT_HINT)
        self.printer.plain(HELP_HINT)
        self.reader.start()
        while self.session.running:
            try:
                line = self.reader.get(self.poll_interval)
            except queue.Empty:
                continue
            if line is None:
                log.info("end of input")
                self.session.stop("end of input")
                break
            self.submit(line.rstrip("\r\n"))

    def submit(self, text: str) -> None:
        if self.commands.dispatch(text):
            return
        try:
            body = validate_outgoing(text)
        except ValidationError as err:
            self._notify("ERROR", str(err), LineKind.ERROR)
            return
        try:
            self.session.send_text(body)
        except TransportError as err:
            log.error("send failed: %s", err)
            self._notify("ERROR", "Write error - connection lost", LineKind.ERROR)
            self.session.stop("write error")
