# mycord/display.py
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

DEFAULT_CAPACITY = 600
TIME_FORMAT = "%H:%M:%S"


class LineKind(Enum):
    SYSTEM = "system"
    RECEIVED = "received"
    SENT = "sent"
    DISCONNECT = "disconnect"
    ERROR = "error"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class DisplayLine:
    time_label: str
    author: str
    body: str
    kind: LineKind


@dataclass(frozen=True)
class WindowSnapshot:
    lines: List[DisplayLine]
    scroll: int
    total: int


def now_label(fmt: str = TIME_FORMAT) -> str:
    return time.strftime(fmt, time.localtime())


def local_line(author: str, body: str, kind: LineKind = LineKind.SYSTEM) -> DisplayLine:
    return DisplayLine(time_label=now_label(), author=author, body=body, kind=kind)


class DisplayBuffer:
    """Bounded scrollback shared by the receive, announcer and input loops.

    ``scroll`` counts lines back from the newest one. While it is zero the
    view follows new lines; once the user scrolls away, every append bumps
    it so the lines on screen stay put. The list and ``scroll`` are only
    touched under ``lock``.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._lines: List[DisplayLine] = []
        self._scroll = 0
        self.lock = threading.Lock()
        self.on_change: Optional[Callable[[], None]] = None

    def set_on_change(self, callback: Optional[Callable[[], None]]) -> None:
        self.on_change = callback

    def append(self, line: DisplayLine) -> None:
        with self.lock:
            self._lines.append(line)
            overflow = len(self._lines) - self.capacity
            if overflow > 0:
                del self._lines[:overflow]
            if self._scroll > 0:
                self._scroll = min(self._scroll + 1, len(self._lines))
        self._notify_change()

    def scroll_by(self, delta: int) -> int:
        """Move the view *delta* lines towards older lines (negative: newer)."""
        with self.lock:
            self._scroll = max(0, min(self._scroll + delta, len(self._lines)))
            scroll = self._scroll
        self._notify_change()
        return scroll

    def scroll_to_bottom(self) -> None:
        with self.lock:
            self._scroll = 0
        self._notify_change()

    @property
    def scroll(self) -> int:
        with self.lock:
            return self._scroll

    def __len__(self) -> int:
        with self.lock:
            return len(self._lines)

    def lines(self) -> List[DisplayLine]:
        with self.lock:
            return list(self._lines)

    def visible_window(self, height: int) -> List[DisplayLine]:
        with self.lock:
            return self._window_locked(height)

    def snapshot(self, height: int) -> WindowSnapshot:
        with self.lock:
            return WindowSnapshot(
                lines=self._window_locked(height),
                scroll=self._scroll,
                total=len(self._lines),
            )

    def _window_locked(self, height: int) -> List[DisplayLine]:
        total = len(self._lines)
        height = max(0, height)
        start = max(0, total - height - self._scroll)
        end = max(0, min(total, total - self._scroll))
        return self._lines[start:end]

    def _notify_change(self) -> None:
        if self.on_change:
            self.on_change()
