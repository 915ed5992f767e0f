"""
Source format detection for raw conversation text.

Classifies pasted text into one of the SourceFormat channels using structural
signals only (header lines, bracketed timestamps, "Name:" labels). Rules are
ordered and the first match wins:

1. RFC822-style header line (From:/To:/Subject:/Date:) -> email
2. Two or more bracketed-time chat lines -> chat-with-timestamps
3. A "Capitalized Name:" label that is not a header word -> chat-labeled
4. Anything else -> plain
"""

from __future__ import annotations

from threadclear.parsing.patterns import (
    DETECT_EMAIL_HEADER,
    DETECT_TIMESTAMP_LINE,
    HEADER_WORDS,
    LABELED_NAME_LINE,
)
from threadclear.parsing.types import GENERIC_HINTS, HINT_FORMATS, SourceFormat

MIN_TIMESTAMP_LINES = 2


def detect(text: str | None) -> SourceFormat:
    """
    Detect the channel format of raw text.

    Pure function; never raises. Empty input is plain.
    """
    if not text or not text.strip():
        return SourceFormat.PLAIN

    if DETECT_EMAIL_HEADER.search(text):
        return SourceFormat.EMAIL

    if len(DETECT_TIMESTAMP_LINE.findall(text)) >= MIN_TIMESTAMP_LINES:
        return SourceFormat.CHAT_WITH_TIMESTAMPS

    for match in LABELED_NAME_LINE.finditer(text):
        if match.group(1).lower() not in HEADER_WORDS:
            return SourceFormat.CHAT_LABELED

    return SourceFormat.PLAIN


def resolve_format(text: str | None, hint: str | None = None) -> SourceFormat:
    """
    Combine a caller hint with detection.

    Detection always runs. An explicit hint ("email", "slack", "teams", ...)
    is honored; the generic default ("simple" or unset) defers to detection.
    Unrecognized hints are treated as generic.
    """
    detected = detect(text)

    normalized = (hint or "").strip().lower()
    if normalized in GENERIC_HINTS:
        return detected

    hinted = HINT_FORMATS.get(normalized)
    if hinted is None:
        return detected

    return hinted
