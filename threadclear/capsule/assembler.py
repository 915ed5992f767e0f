"""
Capsule assembly: participants + extracted messages -> ConversationCapsule.

Resolves each message's free-text sender to a participant by display name,
then email (case-insensitive). Participant ids are matched only when the
caller says senders are ids. Senders that resolve to nobody become ad-hoc
participants, so no message is dropped for lack of a known sender and no
message references a missing participant.
"""

from __future__ import annotations

import json
import statistics
from collections.abc import Sequence
from datetime import datetime, timedelta
from hashlib import sha256

from threadclear.capsule.features import analyze_message
from threadclear.capsule.models import CapsuleMetadata, ConversationCapsule, Message, Participant
from threadclear.config import RESPONSE_GAP_MAX_DAYS
from threadclear.observability.logging import get_logger
from threadclear.observability.telemetry import counter
from threadclear.parsing.types import DiscoveredParticipant, ExtractedMessage, SourceFormat

logger = get_logger(__name__)


class _ParticipantTable:
    """Mutable participant list used while assembling; frozen at the end."""

    def __init__(self) -> None:
        self._rows: list[dict[str, str | None]] = []

    def add(self, name: str, email: str | None) -> int:
        """Add or merge a participant and return its row index.

        Same name (case-insensitive) merges unless both sides carry different emails.
        """
        name = name.strip()
        email = email.strip() if email else None

        for index, row in enumerate(self._rows):
            if str(row["name"]).lower() != name.lower():
                continue
            if row["email"] and email and str(row["email"]).lower() != email.lower():
                continue
            if email and not row["email"]:
                row["email"] = email
            return index

        self._rows.append({"name": name, "email": email})
        return len(self._rows) - 1

    def resolve(self, sender: str, email: str | None, by_id: bool = False) -> int | None:
        sender_key = sender.strip().lower()
        email_key = email.strip().lower() if email else None

        if email_key:
            for index, row in enumerate(self._rows):
                if row["email"] and str(row["email"]).lower() == email_key:
                    if str(row["name"]).lower() == sender_key or sender_key == email_key:
                        return index

        for index, row in enumerate(self._rows):
            if str(row["name"]).lower() == sender_key:
                return index

        for index, row in enumerate(self._rows):
            if row["email"] and str(row["email"]).lower() == sender_key:
                return index

        if by_id:
            for index in range(len(self._rows)):
                if f"p{index + 1}" == sender_key:
                    return index

        return None

    def attach_email(self, index: int, email: str | None) -> None:
        if email and not self._rows[index]["email"]:
            self._rows[index]["email"] = email.strip()

    def freeze(self) -> list[Participant]:
        return [
            Participant(id=f"p{index}", display_name=str(row["name"]), email=row["email"])
            for index, row in enumerate(self._rows, start=1)
        ]


def _participant_name(participant: DiscoveredParticipant | Participant) -> str:
    if isinstance(participant, Participant):
        return participant.display_name
    return participant.name


def assemble(
    participants: Sequence[DiscoveredParticipant | Participant],
    messages: Sequence[ExtractedMessage],
    fmt: SourceFormat,
    senders_are_ids: bool = False,
) -> ConversationCapsule:
    """
    Build a ConversationCapsule.

    Args:
        participants: Known participants, in first-seen order
        messages: Extracted messages, oldest first
        fmt: Source format of the conversation
        senders_are_ids: Message senders may be participant ids (p1..pn) as well
            as names; extracted sender labels never are

    Returns:
        Capsule with participant ids p1..pn, message ids m1..mn and derived
        metadata. Identical input always yields an identical capsule.

    Side Effects:
        - Increments capsule.adhoc_participants when a sender is unknown
    """
    table = _ParticipantTable()
    for participant in participants:
        name = _participant_name(participant)
        if name.strip():
            table.add(name, participant.email)

    resolved: list[tuple[int, ExtractedMessage, str]] = []
    for extracted in messages:
        content = extracted.content.strip()
        if not content:
            continue

        index = table.resolve(extracted.sender, extracted.sender_email, by_id=senders_are_ids)
        if index is None:
            index = table.add(extracted.sender or "Unknown", extracted.sender_email)
            counter("capsule.adhoc_participants")
            logger.debug("Created ad-hoc participant p%d", index + 1)
        else:
            table.attach_email(index, extracted.sender_email)

        resolved.append((index, extracted, content))

    frozen_participants = table.freeze()
    capsule_messages = [
        Message(
            id=f"m{position}",
            participant_id=frozen_participants[index].id,
            content=content,
            timestamp=extracted.timestamp,
            sent_at=datetime.fromisoformat(extracted.sent_at) if extracted.sent_at else None,
            features=analyze_message(content),
        )
        for position, (index, extracted, content) in enumerate(resolved, start=1)
    ]

    metadata = build_metadata(frozen_participants, capsule_messages)

    return ConversationCapsule(
        capsule_id=capsule_id_for(fmt, frozen_participants, capsule_messages),
        source_format=fmt,
        participants=frozen_participants,
        messages=capsule_messages,
        metadata=metadata,
    )


def build_metadata(participants: Sequence[Participant], messages: Sequence[Message]) -> CapsuleMetadata:
    """Derive counts, date span, initiator, per-participant activity and response times."""
    names = {p.id: p.display_name for p in participants}

    activity: dict[str, int] = {}
    for participant in participants:
        count = sum(1 for m in messages if m.participant_id == participant.id)
        if count:
            activity[participant.display_name] = count

    dates = [m.sent_at for m in messages if m.sent_at is not None]
    start_date = min(dates) if dates else None
    end_date = max(dates) if dates else None
    duration_days = None
    if start_date is not None and end_date is not None:
        duration_days = round((end_date - start_date).total_seconds() / 86400, 2)

    gaps = response_hours(messages)

    return CapsuleMetadata(
        message_count=len(messages),
        participant_count=len(participants),
        start_date=start_date,
        end_date=end_date,
        duration_days=duration_days,
        thread_initiator=names.get(messages[0].participant_id) if messages else None,
        participant_activity=activity,
        average_response_hours=round(statistics.fmean(gaps), 2) if gaps else None,
        median_response_hours=round(statistics.median(gaps), 2) if gaps else None,
    )


def response_hours(messages: Sequence[Message]) -> list[float]:
    """
    Hours between consecutive dated messages from different participants.
    Gaps of RESPONSE_GAP_MAX_DAYS or more are skipped, as are negative gaps
    from out-of-order threads.
    """
    max_gap = timedelta(days=RESPONSE_GAP_MAX_DAYS)
    hours = []
    for previous, current in zip(messages, messages[1:]):
        if previous.sent_at is None or current.sent_at is None:
            continue
        if previous.participant_id == current.participant_id:
            continue
        gap = current.sent_at - previous.sent_at
        if timedelta(0) <= gap < max_gap:
            hours.append(gap.total_seconds() / 3600)
    return hours


def capsule_id_for(
    fmt: SourceFormat, participants: Sequence[Participant], messages: Sequence[Message]
) -> str:
    """Content-derived capsule id ("cap_" + 16 hex chars)."""
    canonical = json.dumps(
        {
            "format": fmt.value,
            "participants": [p.model_dump(mode="json") for p in participants],
            "messages": [m.model_dump(mode="json") for m in messages],
        },
        sort_keys=True,
        ensure_ascii=False,
    )
    return "cap_" + sha256(canonical.encode("utf-8")).hexdigest()[:16]
