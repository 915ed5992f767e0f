"""
Capsule models (Pydantic v2) - the canonical record of one conversation.

A capsule owns its participants and messages; metadata is always derived by
the assembler. Content fields are hashed in repr so capsules can be logged.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from hashlib import sha256
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from threadclear.analysis.models import AnalysisResult
from threadclear.parsing.types import SourceFormat


def _hash_value(value: str) -> str:
    digest = sha256(value.encode("utf-8")).hexdigest()
    return f"hash:{digest[:12]}"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class Urgency(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class LinguisticFeatures(BaseModel):
    """Regex-level signals for one message. Politeness runs 0..1 around a neutral 0.5."""

    model_config = ConfigDict(frozen=True)

    questions: list[str] = Field(default_factory=list)
    contains_question: bool = False
    word_count: int = 0
    sentence_count: int = 0
    sentiment: Sentiment = Sentiment.NEUTRAL
    urgency: Urgency = Urgency.LOW
    politeness: float = Field(default=0.5, ge=0.0, le=1.0)


class Participant(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str = Field(min_length=1)
    email: str | None = None


class Message(BaseModel):
    """One message. `timestamp` is the token as written; `sent_at` its parsed value."""

    model_config = ConfigDict(frozen=True)

    id: str
    participant_id: str
    content: str = Field(min_length=1)
    timestamp: str | None = None
    sent_at: datetime | None = None
    features: LinguisticFeatures = Field(default_factory=LinguisticFeatures)

    def __repr__(self) -> str:
        return (
            f"Message(id={self.id!r}, participant_id={self.participant_id!r}, "
            f"content={_hash_value(self.content)!r})"
        )


class CapsuleMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    message_count: int = 0
    participant_count: int = 0
    start_date: datetime | None = None
    end_date: datetime | None = None
    duration_days: float | None = None
    thread_initiator: str | None = None
    participant_activity: dict[str, int] = Field(default_factory=dict)
    # Hours between consecutive messages from different participants
    average_response_hours: float | None = None
    median_response_hours: float | None = None


class ConversationCapsule(BaseModel):
    model_config = ConfigDict(frozen=True)

    capsule_id: str
    source_format: SourceFormat
    participants: list[Participant] = Field(default_factory=list)
    messages: list[Message] = Field(default_factory=list)
    metadata: CapsuleMetadata = Field(default_factory=CapsuleMetadata)
    analysis: AnalysisResult | None = None

    @model_validator(mode="after")
    def _check_references(self) -> ConversationCapsule:
        known = {p.id for p in self.participants}
        dangling = [m.id for m in self.messages if m.participant_id not in known]
        if dangling:
            raise ValueError(f"Messages reference unknown participants: {', '.join(dangling)}")
        return self

    def with_analysis(self, analysis: AnalysisResult) -> ConversationCapsule:
        """Return a copy enriched with the analyzer's result."""
        return self.model_copy(update={"analysis": analysis})

    def __repr__(self) -> str:
        return (
            f"ConversationCapsule(capsule_id={self.capsule_id!r}, "
            f"source_format={self.source_format.value!r}, "
            f"participants={len(self.participants)}, messages={len(self.messages)})"
        )

    def summary(self) -> dict[str, Any]:
        """Telemetry-safe description (no names, no content)."""
        return {
            "capsule_id": self.capsule_id,
            "source_format": self.source_format.value,
            "participant_count": len(self.participants),
            "message_count": len(self.messages),
        }
