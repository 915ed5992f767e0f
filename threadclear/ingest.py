"""
Ingestion pipeline: raw text -> ConversationCapsule.

detect/resolve format -> discover names -> extract messages -> assemble.
Pure and synchronous; identical input produces an identical capsule.
"""

from __future__ import annotations

from collections.abc import Iterable

from threadclear.capsule.assembler import assemble
from threadclear.capsule.models import ConversationCapsule
from threadclear.observability.logging import get_logger
from threadclear.observability.telemetry import counter, time_block
from threadclear.parsing.detector import resolve_format
from threadclear.parsing.extractor import extract
from threadclear.parsing.names import discover_participants
from threadclear.parsing.types import DiscoveredParticipant, ExtractedMessage

logger = get_logger(__name__)


def parse_conversation(
    text: str | None,
    hint: str | None = None,
    declared_participants: Iterable[str] | None = None,
) -> ConversationCapsule:
    """
    Parse raw conversation text into a capsule.

    Args:
        text: Raw pasted conversation
        hint: Optional source hint ("email", "slack", "teams", "simple")
        declared_participants: Optional names supplied by the caller

    Returns:
        ConversationCapsule (possibly with no messages for unstructured text)

    Side Effects:
        - Records parse.latency timing and parse.requests counter
    """
    declared = [name for name in (declared_participants or ()) if name and name.strip()]

    with time_block("parse.latency"):
        fmt = resolve_format(text, hint)
        discovered = discover_participants(text)
        messages = extract(text, fmt, declared)
        capsule = assemble(_relevant_participants(declared, discovered, messages), messages, fmt)

    counter("parse.requests")
    logger.info(
        "Parsed conversation %s: format=%s participants=%d messages=%d",
        capsule.capsule_id,
        fmt.value,
        len(capsule.participants),
        len(capsule.messages),
    )
    return capsule


def _relevant_participants(
    declared: list[str],
    discovered: list[DiscoveredParticipant],
    messages: list[ExtractedMessage],
) -> list[DiscoveredParticipant]:
    """
    Keep declared names, From: header senders, and names that actually sent a
    message. Label-only matches that never sent anything ("Update:", "Action
    Items:") are discovery noise and stay out of the capsule.
    """
    senders = {m.sender.lower() for m in messages}
    kept = [
        DiscoveredParticipant(id=f"d{index}", name=name, source="declared")
        for index, name in enumerate(declared, start=1)
    ]
    kept.extend(
        participant
        for participant in discovered
        if participant.source == "from_header" or participant.name.lower() in senders
    )
    return kept
