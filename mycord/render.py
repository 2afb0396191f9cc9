# mycord/render.py
"""Screen composition for the full-screen client.

Everything here reads shared state and returns fragments; nothing mutates
the session, the buffer or the edit state.
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Tuple

from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.styles import Style
from wcwidth import wcswidth

from .display import DisplayBuffer, DisplayLine, LineKind
from .input_state import InputMachine, Mode
from .session import ChatSession
from .themes import Theme

# top border, header, separator, input separator, input, bottom border, status
CHROME_ROWS = 7
MIN_MESSAGE_ROWS = 5
MIN_COLS = 40

TITLE_BOX = (
    "+==========================================+",
    "|                                          |",
    "|     HALO COMMUNICATIONS TERMINAL         |",
    "|                                          |",
    "+==========================================+",
)

HALO_RING = (
    "            _______________            ",
    "        .-'                 '-.        ",
    "      .'                       '.      ",
    "     /    INSTALLATION  04      \\     ",
    "    |                             |    ",
    "     \\                           /     ",
    "      '.                       .'      ",
    "        '-._________________.-'        ",
)


@dataclass
class Screen:
    lines: List[StyleAndTextTuples]
    # (x, y) of the text cursor, None to hide it
    cursor: Optional[Tuple[int, int]] = None


@lru_cache(maxsize=None)
def build_style(theme: Theme) -> Style:
    return Style.from_dict({
        "border": theme.accent,
        "header": f"{theme.text_color} bold",
        "time": "ansibrightblack",
        "name": f"{theme.accent} bold",
        "own-name": "ansiyellow bold",
        "text": theme.text_color,
        "system": "ansiyellow",
        "disconnect": "ansired",
        "error": "ansired bold",
        "mention": "ansired bold",
        "prompt": f"{theme.text_color} bold",
        "status": "ansibrightblack",
        "menu.frame": theme.accent,
        "menu.title": f"{theme.text_color} bold",
        "menu.quote": theme.text_color,
        "menu.hint": "ansiyellow",
        "menu.user": "ansibrightblack",
    })


def visible_width(s: str) -> int:
    w = wcswidth(s)
    return w if w >= 0 else len(s)


def clip_by_width(s: str, maxw: int) -> str:
    if maxw <= 0:
        return ""
    out, w = [], 0
    for ch in s:
        cw = wcswidth(ch)
        cw = cw if cw > 0 else 1
        if w + cw > maxw:
            break
        out.append(ch)
        w += cw
    return "".join(out)


def fit_fragments(fragments: StyleAndTextTuples, width: int) -> StyleAndTextTuples:
    """Clip *fragments* to *width* cells and pad the rest with spaces."""
    out: StyleAndTextTuples = []
    used = 0
    for style, text, *_ in fragments:
        if used >= width:
            break
        piece = clip_by_width(text, width - used)
        if piece:
            out.append((style, piece))
            used += visible_width(piece)
    if used < width:
        out.append(("", " " * (width - used)))
    return out


def message_area_height(rows: int) -> int:
    return max(MIN_MESSAGE_ROWS, rows - CHROME_ROWS)


def input_tail(text: str, avail: int) -> str:
    if avail <= 0:
        return ""
    return text[-avail:] if len(text) > avail else text


def status_text(total: int, scroll: int, theme: Theme) -> str:
    return f" Messages: {total} | Scroll: {scroll} | Mode: {theme.name.upper()} | !help for commands"


def mention_fragments(text: str, username: str, style: str) -> StyleAndTextTuples:
    if not username:
        return [(style, text)]
    needle = f"@{username}"
    out: StyleAndTextTuples = []
    pos = 0
    while True:
        idx = text.find(needle, pos)
        if idx < 0:
            break
        if idx > pos:
            out.append((style, text[pos:idx]))
        out.append(("class:mention", needle))
        pos = idx + len(needle)
    if pos < len(text):
        out.append((style, text[pos:]))
    return out


def line_fragments(line: DisplayLine, theme: Theme, username: str = "", quiet: bool = False) -> StyleAndTextTuples:
    ts = line.time_label
    if line.kind is LineKind.SYSTEM:
        return [
            ("class:system", "["),
            ("class:time", ts),
            ("class:system", f"] {line.author}: {line.body}"),
        ]
    if line.kind in (LineKind.RECEIVED, LineKind.SENT):
        body = theme.filter(line.body)
        name_style = "class:own-name" if line.kind is LineKind.SENT else "class:name"
        if quiet:
            body_fragments = [("class:text", body)]
        else:
            body_fragments = mention_fragments(body, username, "class:text")
        return [
            ("class:time", f"[{ts}]"),
            ("", " "),
            (name_style, line.author),
            ("class:text", ": "),
        ] + body_fragments
    if line.kind is LineKind.DISCONNECT:
        return [("class:disconnect", f"[{ts}] {line.author}: {line.body}")]
    if line.kind is LineKind.ERROR:
        return [("class:error", f"[{ts}] {line.author}: {line.body}")]
    return [("class:text", f"[{ts}] {line.author}: {line.body}")]


def _border(cols: int) -> StyleAndTextTuples:
    return [("class:border", "+" + "-" * max(0, cols - 2) + "+")]


def _boxed(fragments: StyleAndTextTuples, inner: int) -> StyleAndTextTuples:
    return [("class:border", "|")] + fit_fragments(fragments, inner) + [("class:border", "|")]


def _centered(style: str, text: str, cols: int) -> StyleAndTextTuples:
    pad = max(0, (cols - visible_width(text)) // 2)
    return [("", " " * pad), (style, text)]


def render_start_menu(theme: Theme, username: str, cols: int, rows: int) -> Screen:
    block: List[Tuple[str, str]] = [("class:menu.frame", row) for row in TITLE_BOX]
    block += [
        ("", ""),
        ("class:menu.title", f">>> {theme.title} <<<"),
        ("", ""),
        ("class:menu.frame", "=" * 42),
        ("", ""),
        ("class:menu.quote", theme.menu_quote),
        ("", ""),
        ("class:menu.hint", "Press ENTER to continue"),
        ("", ""),
        ("class:menu.user", f"Connected as: {username}"),
        ("", ""),
        ("class:menu.user", "Press ESC to switch mode | Q to quit"),
        ("", ""),
    ]
    block += [("class:menu.frame", row) for row in HALO_RING]

    top = max(1, (rows - len(block)) // 2)
    lines: List[StyleAndTextTuples] = [[] for _ in range(top)]
    lines += [_centered(style, text, cols) for style, text in block]
    return Screen(lines=lines[: max(rows, 1)], cursor=None)


def render_chat(
    session: ChatSession,
    buffer: DisplayBuffer,
    edit_text: str,
    cols: int,
    rows: int,
) -> Screen:
    theme = session.theme
    cols = max(cols, MIN_COLS)
    inner = cols - 2
    height = message_area_height(rows)
    snap = buffer.snapshot(height)

    lines: List[StyleAndTextTuples] = [
        _border(cols),
        _boxed([("class:header", theme.header_for(session.username))], inner),
        _border(cols),
    ]
    for i in range(height):
        if i < len(snap.lines):
            fragments = line_fragments(snap.lines[i], theme, session.username, session.quiet)
        else:
            fragments = []
        lines.append(_boxed(fragments, inner))

    lines.append(_border(cols))
    prompt = theme.prompt
    tail = input_tail(edit_text, inner - visible_width(prompt) - 1)
    lines.append(_boxed([("class:prompt", prompt), ("", tail)], inner))
    lines.append(_border(cols))
    lines.append(fit_fragments([("class:status", status_text(snap.total, snap.scroll, theme))], cols))

    cursor_x = min(1 + visible_width(prompt) + len(tail), cols - 1)
    return Screen(lines=lines, cursor=(cursor_x, 4 + height))


class Renderer:
    def __init__(self, session: ChatSession, buffer: DisplayBuffer, machine: InputMachine):
        self.session = session
        self.buffer = buffer
        self.machine = machine

    def render(self, cols: int, rows: int) -> Screen:
        if self.machine.mode is Mode.START_MENU:
            return render_start_menu(self.session.theme, self.session.username, cols, rows)
        return render_chat(self.session, self.buffer, self.machine.edit.text, cols, rows)
