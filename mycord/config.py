# mycord/config.py
import getpass
import logging
import re
import sys
from dataclasses import dataclass
from typing import Optional, Tuple

from .display import DEFAULT_CAPACITY
from .input_state import HISTORY_CAPACITY
from .protocol import MAX_USERNAME

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
LOG_FORMAT = "%(asctime)s %(threadName)s %(name)s %(levelname)s %(message)s"


@dataclass(frozen=True)
class ClientConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    username: str = ""
    quiet: bool = False
    tui: bool = False
    theme: str = "spartan"
    start_menu: bool = True
    debug_log: Optional[str] = None
    connect_timeout: float = 10.0
    poll_interval: float = 0.05
    announce_interval: Tuple[float, float] = (10.0, 15.0)
    buffer_capacity: int = DEFAULT_CAPACITY
    history_capacity: int = HISTORY_CAPACITY


def valid_username(name: str) -> bool:
    return 0 < len(name) <= MAX_USERNAME and bool(USERNAME_PATTERN.match(name))


def resolve_username(explicit: Optional[str] = None) -> str:
    """Return *explicit* or the login name, raising ValueError if it cannot go on the wire."""
    if explicit:
        name = explicit
    else:
        try:
            name = getpass.getuser()
        except (KeyError, OSError) as err:
            raise ValueError(f"cannot determine login name: {err}") from err
    name = name.strip()
    if not valid_username(name):
        raise ValueError("invalid username (must be non-empty and alphanumeric / ._-)")
    return name


def configure_logging(cfg: ClientConfig) -> None:
    """Route package logs to the debug file, or WARNING+ to stderr in line mode.

    The full-screen UI owns the terminal, so without a log file it logs nowhere.
    """
    root = logging.getLogger("mycord")
    if cfg.debug_log:
        handler: logging.Handler = logging.FileHandler(cfg.debug_log)
        handler.setLevel(logging.DEBUG)
        root.setLevel(logging.DEBUG)
    elif not cfg.tui:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.WARNING)
        root.setLevel(logging.WARNING)
    else:
        return
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
