"""
Module: types
Purpose: Shared types for the parsing pipeline (detector, names, extractor).
Dependencies: None

Leaf module so detector, extractor and capsule assembly can share these
without circular imports.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class SourceFormat(str, Enum):
    """Channel format of a raw conversation.

    Extends str so JSON serialization produces raw strings (e.g. "email").
    """

    EMAIL = "email"
    CHAT_WITH_TIMESTAMPS = "chat-with-timestamps"
    CHAT_LABELED = "chat-labeled"
    PLAIN = "plain"


# Caller hints (source_type on the API). "simple" is the generic default and
# never overrides detection.
GENERIC_HINTS: frozenset[str] = frozenset({"", "simple", "auto", "unknown"})

HINT_FORMATS: dict[str, SourceFormat] = {
    "email": SourceFormat.EMAIL,
    "slack": SourceFormat.CHAT_WITH_TIMESTAMPS,
    "teams": SourceFormat.CHAT_WITH_TIMESTAMPS,
    "chat": SourceFormat.CHAT_LABELED,
    "plain": SourceFormat.PLAIN,
}


@dataclass(frozen=True)
class DiscoveredParticipant:
    """A sender name found by scanning raw text, before capsule assembly.

    `source` records which scan found it: "from_header", "label" or "chat".
    """

    id: str
    name: str
    email: str | None = None
    source: str = "label"


@dataclass(frozen=True)
class ExtractedMessage:
    """One (sender, content, timestamp) tuple produced by the extractor.

    `timestamp` is the raw date token as written in the source; `sent_at` is
    its parsed ISO-8601 form when the token could be parsed.
    """

    sender: str
    content: str
    timestamp: str | None = None
    sent_at: str | None = None
    sender_email: str | None = None


class RuleAction(str, Enum):
    """What a noise rule does when its pattern matches."""

    CUT = "cut"  # truncate the body at the match start
    STRIP = "strip"  # substitute every match with the rule's replacement


@dataclass(frozen=True)
class NoiseRule:
    """One ordered (pattern, action) entry in a noise-removal family."""

    name: str
    pattern: re.Pattern[str]
    action: RuleAction
    replacement: str = ""
