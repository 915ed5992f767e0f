"""
Participant name discovery.

Scans raw text for sender names before message extraction so the labeled-chat
splitter has a known-names alternation to work with. Three scans run in order:

1. `From: Name <email>` header lines
2. `Capitalized Name:` labels at line start (header words excluded)
3. chat usernames next to a bracketed time (`alice [10:32]`, `[10:32] alice`)

Names are deduplicated case-insensitively in first-seen order and numbered p1, p2, ...
"""

from __future__ import annotations

from collections.abc import Iterable

from threadclear.config import NAME_MAX_CHARS, SENDER_MAX_CHARS
from threadclear.parsing.patterns import (
    BARE_ADDRESS,
    BRACKET_MESSAGE,
    CHAT_USERNAME,
    FROM_HEADER,
    HEADER_WORDS,
    LABELED_NAME_LINE,
)
from threadclear.parsing.types import DiscoveredParticipant


def parse_from_value(name: str | None, address: str | None) -> tuple[str, str | None]:
    """
    Normalize the captured parts of a From: header into (display_name, email).

    A bare address with no display name uses the address as the name.
    """
    display = (name or "").strip().strip('"').strip()
    email = (address or "").strip() or None

    if not display and email:
        display = email
    if email is None and BARE_ADDRESS.match(display):
        email = display

    return display, email


def is_header_word(label: str) -> bool:
    return label.strip().lower() in HEADER_WORDS


class _NameRegistry:
    """Ordered, case-insensitive name set used while scanning."""

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, str | None]] = {}

    def add(self, name: str, email: str | None, source: str) -> None:
        key = name.lower()
        existing = self._entries.get(key)
        if existing is None:
            self._entries[key] = {"name": name, "email": email, "source": source}
        elif existing["email"] is None and email:
            existing["email"] = email

    def freeze(self) -> list[DiscoveredParticipant]:
        return [
            DiscoveredParticipant(
                id=f"p{index}",
                name=str(entry["name"]),
                email=entry["email"],
                source=str(entry["source"]),
            )
            for index, entry in enumerate(self._entries.values(), start=1)
        ]


def discover_participants(text: str | None) -> list[DiscoveredParticipant]:
    """
    Find sender names in raw text.

    Pure function; returns an empty list for empty input.
    """
    if not text:
        return []

    registry = _NameRegistry()

    for match in FROM_HEADER.finditer(text):
        name, email = parse_from_value(match.group(1), match.group(2))
        if name and len(name) < NAME_MAX_CHARS:
            registry.add(name, email, "from_header")

    for match in LABELED_NAME_LINE.finditer(text):
        label = match.group(1).strip()
        if len(label) < SENDER_MAX_CHARS and not is_header_word(label):
            registry.add(label, None, "label")

    for username in _chat_usernames(text):
        if not is_header_word(username):
            registry.add(username, None, "chat")

    return registry.freeze()


def _chat_usernames(text: str) -> Iterable[str]:
    for match in CHAT_USERNAME.finditer(text):
        yield match.group(1)
    for match in BRACKET_MESSAGE.finditer(text):
        yield match.group(2).strip()
