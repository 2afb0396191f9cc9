# mycord/announcer.py
import logging
import random
import threading
from typing import Optional, Tuple

from .display import DisplayLine, LineKind, local_line
from .receiver import LineSink
from .session import ChatSession
from .themes import GRAVEMIND, Theme

log = logging.getLogger(__name__)

DEFAULT_INTERVAL = (10.0, 15.0)


class Announcer:
    """Drops a line of flavor text into the view every so often.

    Only speaks while the trigger theme is active and the start menu is gone.
    """

    def __init__(
        self,
        session: ChatSession,
        sink: LineSink,
        trigger: Theme = GRAVEMIND,
        interval: Tuple[float, float] = DEFAULT_INTERVAL,
        rng: Optional[random.Random] = None,
    ):
        self.session = session
        self.sink = sink
        self.trigger = trigger
        self.interval = interval
        self.rng = rng or random.Random()
        self.thread: Optional[threading.Thread] = None

    def start(self) -> threading.Thread:
        self.thread = threading.Thread(target=self.run, name="mycord-announcer", daemon=True)
        self.thread.start()
        return self.thread

    def next_delay(self) -> float:
        low, high = self.interval
        return self.rng.uniform(low, high)

    def announce_once(self) -> Optional[DisplayLine]:
        if self.session.theme.name != self.trigger.name or self.session.in_menu:
            return None
        if not self.trigger.quote_pool:
            return None
        line = local_line(self.trigger.system_author, self.rng.choice(self.trigger.quote_pool), LineKind.SYSTEM)
        self.sink(line)
        return line

    def run(self) -> None:
        while self.session.running:
            if self.session.wait(self.next_delay()):
                break
            if self.announce_once() is not None:
                log.debug("announced in %s mode", self.trigger.name)
