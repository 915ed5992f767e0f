"""
Message extraction from raw conversation text.

Given text and its SourceFormat, produce ordered ExtractedMessage tuples:

- email: split at `From:` block boundaries, parse sender/date headers, take the
  body after the header section, then run the noise-rule families from
  patterns.py (quoted replies -> signatures -> inline cleanup)
- chat-labeled: split on an alternation of known names ("Alice: ...")
- chat-with-timestamps: "alice [10:32 AM]: ..." / "[10:32] Alice: ..." lines
- plain (and chat formats that yield nothing): per-line "sender: content" fallback

Extraction never raises: on an internal failure it logs and returns [] so the
caller can still analyze the raw text.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

from threadclear.config import (
    BODY_MAX_CHARS,
    CHAT_MAX_CHARS,
    FALLBACK_MAX_LINES,
    QUOTE_MIN_OFFSET,
    SENDER_MAX_CHARS,
    SIGNATURE_MIN_OFFSET,
    TRUNCATION_SUFFIX,
)
from threadclear.observability.logging import get_logger
from threadclear.observability.telemetry import counter
from threadclear.parsing.names import discover_participants, is_header_word, parse_from_value
from threadclear.parsing.patterns import (
    BRACKET_MESSAGE,
    CLEANUP_RULES,
    DATE_HEADER,
    EMAIL_HEADER_LINE,
    FROM_BLOCK_START,
    FROM_HEADER,
    QUOTE_RULES,
    SIGNATURE_RULES,
    SLACK_MESSAGE,
)
from threadclear.parsing.types import ExtractedMessage, NoiseRule, RuleAction, SourceFormat

logger = get_logger(__name__)

# Human date formats seen in pasted Outlook/Gmail headers
_DATE_FORMATS: tuple[str, ...] = (
    "%A, %B %d, %Y %I:%M %p",
    "%A, %B %d, %Y %I:%M:%S %p",
    "%a, %b %d, %Y at %I:%M %p",
    "%a, %b %d, %Y %I:%M %p",
    "%B %d, %Y %I:%M %p",
    "%B %d, %Y at %I:%M %p",
    "%b %d, %Y %I:%M %p",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %H:%M",
    "%Y-%m-%d %H:%M",
    "%B %d, %Y",
)


def extract(
    text: str | None,
    fmt: SourceFormat,
    declared_participants: Iterable[str] | None = None,
) -> list[ExtractedMessage]:
    """
    Extract ordered messages from raw text.

    Args:
        text: Raw conversation text
        fmt: Detected or declared SourceFormat
        declared_participants: Names supplied by the caller; they seed the
            labeled-chat alternation ahead of discovered names

    Returns:
        Messages oldest first. Empty list when nothing could be extracted.

    Side Effects:
        - Increments parse.* counters
    """
    if not text or not text.strip():
        return []

    try:
        if fmt == SourceFormat.EMAIL:
            messages = _extract_email(text)
        elif fmt == SourceFormat.CHAT_LABELED:
            messages = _extract_labeled(text, declared_participants)
        elif fmt == SourceFormat.CHAT_WITH_TIMESTAMPS:
            messages = _extract_timestamped(text)
        else:
            messages = []

        if not messages and fmt != SourceFormat.EMAIL:
            messages = _extract_fallback(text)
    except Exception as e:
        logger.warning("Message extraction failed for format %s: %s", fmt.value, e)
        counter("parse.extraction_failed")
        return []

    counter("parse.messages_extracted", len(messages))
    return messages


# ---------------------------------------------------------------------------
# Email
# ---------------------------------------------------------------------------


def _extract_email(text: str) -> list[ExtractedMessage]:
    messages: list[ExtractedMessage] = []

    for block in FROM_BLOCK_START.split(text):
        if not block.lower().startswith("from:"):
            continue  # preamble before the first From: line

        sender, sender_email = _parse_sender(block)
        header_lines, _ = _split_header_section(block.splitlines())
        raw_date = _find_date(header_lines)

        body = extract_email_body(block)
        if not body:
            counter("parse.empty_body_dropped")
            continue

        messages.append(
            ExtractedMessage(
                sender=sender,
                content=body,
                timestamp=raw_date,
                sent_at=parse_timestamp(raw_date),
                sender_email=sender_email,
            )
        )

    return order_chronologically(messages)


def _parse_sender(block: str) -> tuple[str, str | None]:
    match = FROM_HEADER.match(block)
    if match:
        name, email = parse_from_value(match.group(1), match.group(2))
        if name:
            return name, email

    first_line = block.splitlines()[0]
    fallback = first_line.split(":", 1)[1].split("<", 1)[0].strip().strip('"')
    return fallback or "Unknown", None


def _find_date(header_lines: Sequence[str]) -> str | None:
    for line in header_lines:
        match = DATE_HEADER.match(line)
        if match:
            return match.group(1)
    return None


def _split_header_section(lines: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split block lines into (header lines, body lines).

    Header lines are the leading run of recognized headers (plus folded
    continuations). One blank separator line after them is consumed.
    """
    index = 0
    while index < len(lines):
        line = lines[index]
        if EMAIL_HEADER_LINE.match(line):
            index += 1
        elif index > 0 and line[:1] in (" ", "\t") and line.strip():
            index += 1  # folded header continuation
        else:
            break

    header_lines = list(lines[:index])
    if index < len(lines) and not lines[index].strip():
        index += 1

    return header_lines, list(lines[index:])


def extract_email_body(block: str) -> str:
    """
    Extract the cleaned body of one email block.

    Steps, in order:
        1. Skip the header section
        2. Cut at the first quoted-reply marker past QUOTE_MIN_OFFSET
        3. Cut at the first signature/footer marker past SIGNATURE_MIN_OFFSET
        4. Strip URLs and lone addresses, collapse blank runs
        5. Truncate to BODY_MAX_CHARS with an explicit suffix
    """
    _, body_lines = _split_header_section(block.splitlines())
    body = "\n".join(body_lines).strip()

    body = apply_rule_family(body, QUOTE_RULES, QUOTE_MIN_OFFSET)
    body = apply_rule_family(body.strip(), SIGNATURE_RULES, SIGNATURE_MIN_OFFSET)
    body = apply_rule_family(body, CLEANUP_RULES)

    return truncate(body.strip(), BODY_MAX_CHARS)


def apply_rule_family(text: str, rules: Sequence[NoiseRule], min_offset: int = 0) -> str:
    """
    Run one ordered noise-rule family over text.

    CUT rules truncate at their first match located past min_offset (earlier
    matches are left alone so a reply that opens with "Thanks," survives).
    STRIP rules replace every match. Each rule sees the output of the previous one.
    """
    for rule in rules:
        if rule.action == RuleAction.CUT:
            for match in rule.pattern.finditer(text):
                if match.start() > min_offset:
                    text = text[: match.start()]
                    break
        else:
            text = rule.pattern.sub(rule.replacement, text)
    return text


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + TRUNCATION_SUFFIX


def parse_timestamp(raw: str | None) -> str | None:
    """
    Parse a header date into an ISO-8601 UTC string.

    Tries ISO-8601, then common client formats, then RFC 2822 (last, because
    it reads "10:00 PM" as 10:00). Naive values are taken as UTC.
    Returns None when the value cannot be parsed.
    """
    if not raw:
        return None

    value = raw.strip()
    parsed: datetime | None = None

    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        parsed = None

    if parsed is None:
        for date_format in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(value, date_format)
                break
            except ValueError:
                continue

    if parsed is None:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError, IndexError):
            parsed = None

    if parsed is None:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC).isoformat()


def order_chronologically(messages: list[ExtractedMessage]) -> list[ExtractedMessage]:
    """
    Put messages oldest first.

    - every message dated: stable sort by date
    - some dated and the dated ones run newest-first: reverse the page order
    - otherwise: keep textual order
    """
    dated = [datetime.fromisoformat(m.sent_at) for m in messages if m.sent_at]

    if len(messages) > 1 and len(dated) == len(messages):
        return sorted(messages, key=lambda m: datetime.fromisoformat(m.sent_at or ""))

    if len(dated) >= 2 and dated[0] > dated[-1]:
        return list(reversed(messages))

    return messages


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


def _known_names(text: str, declared: Iterable[str] | None) -> list[str]:
    names: dict[str, str] = {}
    for name in declared or ():
        cleaned = name.strip()
        if cleaned:
            names.setdefault(cleaned.lower(), cleaned)
    for participant in discover_participants(text):
        names.setdefault(participant.name.lower(), participant.name)
    return list(names.values())


def _extract_labeled(text: str, declared: Iterable[str] | None) -> list[ExtractedMessage]:
    names = _known_names(text, declared)
    if not names:
        return []

    canonical = {name.lower(): name for name in names}
    # Longest first so "Alice Smith" wins over "Alice"
    alternation = "|".join(re.escape(n) for n in sorted(names, key=len, reverse=True))
    label = re.compile(rf"^[ \t]*({alternation})[ \t]*:[ \t]*", re.MULTILINE | re.IGNORECASE)

    matches = list(label.finditer(text))
    messages: list[ExtractedMessage] = []
    for position, match in enumerate(matches):
        end = matches[position + 1].start() if position + 1 < len(matches) else len(text)
        content = text[match.end() : end].strip()
        if not content:
            counter("parse.empty_body_dropped")
            continue
        sender = canonical.get(match.group(1).lower(), match.group(1))
        messages.append(ExtractedMessage(sender=sender, content=truncate(content, CHAT_MAX_CHARS)))

    return messages


def _extract_timestamped(text: str) -> list[ExtractedMessage]:
    entries: list[dict[str, str]] = []

    for line in text.splitlines():
        slack = SLACK_MESSAGE.match(line)
        bracket = None if slack else BRACKET_MESSAGE.match(line)
        if slack:
            entries.append({"sender": slack.group(1), "time": slack.group(2), "content": slack.group(3)})
        elif bracket:
            entries.append(
                {"sender": bracket.group(2).strip(), "time": bracket.group(1), "content": bracket.group(3)}
            )
        elif entries and line.strip():
            entries[-1]["content"] += "\n" + line.strip()

    messages: list[ExtractedMessage] = []
    for entry in entries:
        content = entry["content"].strip()
        if not content:
            continue
        messages.append(
            ExtractedMessage(
                sender=entry["sender"],
                content=truncate(content, CHAT_MAX_CHARS),
                timestamp=entry["time"].strip(),
            )
        )
    return messages


def _extract_fallback(text: str) -> list[ExtractedMessage]:
    """Per-line "sender: content" split over the first FALLBACK_MAX_LINES lines."""
    messages: list[ExtractedMessage] = []

    for line in text.splitlines()[:FALLBACK_MAX_LINES]:
        colon = line.find(":")
        if colon < 1 or colon >= SENDER_MAX_CHARS:
            continue

        sender = line[:colon].strip()
        content = line[colon + 1 :].strip()
        if not sender or not content or content.startswith("//"):
            continue
        if is_header_word(sender):
            continue

        messages.append(ExtractedMessage(sender=sender, content=truncate(content, CHAT_MAX_CHARS)))

    return messages
