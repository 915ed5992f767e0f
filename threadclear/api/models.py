"""Pydantic request/response models for the ThreadClear API."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from threadclear.analysis.models import AnalysisResult
from threadclear.capsule.models import ConversationCapsule
from threadclear.config import API_MAX_TEXT_CHARS
from threadclear.insights.models import StoredInsight
from threadclear.taxonomy.models import RoleDefinition, SeverityRule, TopicDefinition

MAX_PARTICIPANTS = 100
MAX_KEYWORDS = 50


class ParseRequest(BaseModel):
    """Raw conversation text plus an optional source hint."""

    text: str = Field(..., max_length=API_MAX_TEXT_CHARS)
    source_type: str | None = Field(default=None, max_length=32)
    participants: list[str] | None = Field(default=None, max_length=MAX_PARTICIPANTS)


class AnalyzeRequest(ParseRequest):
    organization_id: str = Field(..., min_length=1, max_length=128)
    user_id: str | None = Field(default=None, max_length=128)
    team_or_channel: str | None = Field(default=None, max_length=128)


class AnalyzeResponse(BaseModel):
    capsule: ConversationCapsule
    insight: StoredInsight


class StoreInsightRequest(BaseModel):
    organization_id: str = Field(..., min_length=1, max_length=128)
    user_id: str | None = Field(default=None, max_length=128)
    team_or_channel: str | None = Field(default=None, max_length=128)
    source_type: str | None = Field(default=None, max_length=32)
    capsule: ConversationCapsule
    analysis: AnalysisResult


class SetIndustryRequest(BaseModel):
    industry: str = Field(..., min_length=1, max_length=64)


class TopicCreate(BaseModel):
    key: str = Field(..., min_length=1, max_length=64)
    display_name: str = Field(..., min_length=1, max_length=100)
    keywords: list[str] = Field(default_factory=list, max_length=MAX_KEYWORDS)

    @field_validator("keywords")
    @classmethod
    def _clean_keywords(cls, value: list[str]) -> list[str]:
        return [k.strip().lower() for k in value if k and k.strip()]

    def to_definition(self) -> TopicDefinition:
        return TopicDefinition(
            key=self.key, display_name=self.display_name, keywords=tuple(self.keywords)
        )


class RoleCreate(TopicCreate):
    email_domain_patterns: list[str] = Field(default_factory=list, max_length=MAX_KEYWORDS)

    def to_definition(self) -> RoleDefinition:  # type: ignore[override]
        return RoleDefinition(
            key=self.key,
            display_name=self.display_name,
            keywords=tuple(self.keywords),
            email_domain_patterns=tuple(self.email_domain_patterns),
        )


class SeverityRuleCreate(BaseModel):
    category: str = Field(..., min_length=1, max_length=64)
    value: str = Field(default="*", min_length=1, max_length=64)
    condition: str = Field(default="", max_length=200)
    severity: str = Field(..., min_length=1, max_length=16)

    def to_rule(self) -> SeverityRule:
        """
        Raises:
            pydantic.ValidationError: If the condition or severity is unsupported
        """
        return SeverityRule(
            category=self.category,
            value=self.value,
            condition=self.condition,
            severity=self.severity,
        )
