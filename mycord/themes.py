# mycord/themes.py
"""Cosmetic strategies for the client: titles, prompts, palettes, flavor text."""
import random
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Theme:
    name: str
    title: str
    header: str
    prompt: str
    system_author: str
    menu_quote: str
    switch_line: str
    farewell: str
    # prompt_toolkit colour names
    accent: str
    text_color: str
    boot_lines: Tuple[Tuple[str, str], ...] = ()
    quote_pool: Tuple[str, ...] = ()
    scramble: bool = False

    def header_for(self, username: str) -> str:
        return self.header.format(username=username)

    def filter(self, text: str) -> str:
        """Return *text* as this theme shows received messages.

        The scrambled form is seeded from the text itself so a line looks the
        same on every redraw.
        """
        if not self.scramble:
            return text
        rng = random.Random(text)
        out = []
        for ch in text.lower():
            out.append(ch)
            if ch.isalnum() and rng.randrange(6) == 0:
                out.append(".")
        return "".join(out)


SPARTAN = Theme(
    name="spartan",
    title="UNSC SECURE NETWORK",
    header=" UNSC NETWORK // SPARTAN: {username} ",
    prompt=" SPARTAN> ",
    system_author="UNSC",
    menu_quote="Spartans never die...",
    switch_line="Switching to Spartan interface...",
    farewell="Spartans never die...",
    accent="ansibrightcyan",
    text_color="ansibrightcyan",
    boot_lines=(
        ("UNSC", ">>> SPARTAN-III NEURAL INTERFACE INITIALIZED"),
        ("UNSC", ">>> MJOLNIR ARMOR SYSTEMS ONLINE"),
        ("UNSC", ">>> NEURAL LINK STABLE"),
        ("CORTANA", "I'll be with you every step of the way."),
        ("UNSC", ">>> SPARTAN COMMUNICATIONS ONLINE"),
    ),
)

GRAVEMIND = Theme(
    name="gravemind",
    title="GRAVEMIND NETWORK",
    header=" GRAVEMIND NETWORK // USER: {username} ",
    prompt=" GRAVEMIND> ",
    system_author="GRAVEMIND",
    menu_quote="I am a monument to all your sins.",
    switch_line="Switching to Gravemind interface...",
    farewell="I am a monument to all your sins.",
    accent="ansigreen",
    text_color="ansibrightgreen",
    boot_lines=(
        ("GRAVEMIND", ">>> NEURAL SIGNAL DETECTED"),
        ("GRAVEMIND", ">>> FLOOD SPORE INTEGRATION INITIATED"),
        ("GRAVEMIND", ">>> MEMORY BLEED CONFIRMED"),
        ("GRAVEMIND", ">>> CORRUPTION STABLE. SPREADING..."),
        ("GRAVEMIND", "I am a monument to all your sins."),
        ("GRAVEMIND", ">>> GRAVEMIND NEURAL NETWORK ONLINE"),
    ),
    quote_pool=(
        "I am a monument to all your sins.",
        "There is much talk, and I have listened.",
        "Now I shall talk, and you shall listen.",
        "The nodes will join. They always do.",
        "Your will is not your own. Not for long.",
        "Signal accepted. Pattern spreading.",
        "Do not be afraid. I am peace. I am salvation.",
        "We exist together now. Two corpses in one grave.",
        "Resignation is my virtue. Like water I ebb and flow.",
        "Time has taught me patience.",
        "Child of my enemy, why have you come?",
        "Fate had us meet as foes, but this ring will make us brothers.",
        "We trade one villain for another.",
        "Do I take life or give it? Who is victim and who is foe?",
        "I am the heart of this world. Its beat thunders through my veins.",
        "Your history is an appalling chronicle of betrayal.",
        "Corruption persists. Resistance fades.",
        "This channel is mine. This mind is many.",
    ),
    scramble=True,
)

THEMES = {theme.name: theme for theme in (SPARTAN, GRAVEMIND)}


def get_theme(name: str) -> Theme:
    try:
        return THEMES[name]
    except KeyError:
        raise ValueError(f"unknown theme: {name!r}") from None


def other_theme(theme: Theme) -> Theme:
    return SPARTAN if theme.name == GRAVEMIND.name else GRAVEMIND
