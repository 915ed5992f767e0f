"""
Insight models - the privacy-scoped record stored per analyzed conversation.

An insight carries counts, a health score and graded findings (category,
value, role, topic, severity). It never carries names or message content.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from threadclear.taxonomy.models import Severity, normalize_category


def utc_now() -> datetime:
    """Return current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class RiskLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class InsightEntry(BaseModel):
    """One graded finding."""

    model_config = ConfigDict(frozen=True)

    category: str
    value: str
    role: str = "unknown"
    topic: str = "general"
    severity: Severity = Severity.LOW
    template_text: str | None = None

    @field_validator("category")
    @classmethod
    def _normalize_category(cls, value: str) -> str:
        return normalize_category(value)


class StoredInsight(BaseModel):
    """
    Append-only insight record. Created once per analyzed conversation and
    used only as aggregation input.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique identifier (UUID)")
    organization_id: str
    user_id: str | None = None
    team_or_channel: str | None = None
    timestamp: datetime
    source_type: str
    participant_count: int = Field(default=0, ge=0)
    message_count: int = Field(default=0, ge=0)
    overall_risk: RiskLevel = RiskLevel.LOW
    health_score: int = Field(default=100, ge=0, le=100)
    findings: tuple[InsightEntry, ...] = ()
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("timestamp", "created_at")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator("overall_risk", mode="before")
    @classmethod
    def _lower_risk(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value

    def to_db_dict(self) -> dict[str, Any]:
        """Convert the insight row (without findings) for database storage."""
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "user_id": self.user_id,
            "team_or_channel": self.team_or_channel,
            "timestamp": self.timestamp.isoformat(),
            "source_type": self.source_type,
            "participant_count": self.participant_count,
            "message_count": self.message_count,
            "overall_risk": self.overall_risk.value,
            "health_score": self.health_score,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any], findings: list[dict[str, Any]]) -> StoredInsight:
        """Create StoredInsight from an insights row and its finding rows."""
        return cls(
            id=row["id"],
            organization_id=row["organization_id"],
            user_id=row.get("user_id"),
            team_or_channel=row.get("team_or_channel"),
            timestamp=datetime.fromisoformat(row["timestamp"]),
            source_type=row["source_type"],
            participant_count=row["participant_count"],
            message_count=row["message_count"],
            overall_risk=row["overall_risk"],
            health_score=row["health_score"],
            findings=tuple(
                InsightEntry(
                    category=f["category"],
                    value=f["value"],
                    role=f["role"],
                    topic=f["topic"],
                    severity=f["severity"],
                    template_text=f.get("template_text"),
                )
                for f in findings
            ),
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class DashboardSummary(BaseModel):
    total_conversations: int = 0
    high_risk_count: int = 0
    medium_risk_count: int = 0
    low_risk_count: int = 0
    average_health_score: float = 0.0
    total_findings: int = 0
    by_source_type: dict[str, int] = Field(default_factory=dict)
    by_category: dict[str, int] = Field(default_factory=dict)


class TrendBucket(BaseModel):
    period: str
    conversation_count: int
    high_risk_count: int
    average_health_score: float


class TopicStats(BaseModel):
    topic: str
    count: int
    high_severity_count: int
    by_category: dict[str, int] = Field(default_factory=dict)
