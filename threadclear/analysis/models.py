"""
Analysis result contract returned by the external conversation analyzer.

ThreadClear never produces these itself; the models pin down the shape the
insight transformer consumes. Scores are 0..1 except health_score (0..100).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _AnalysisModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class UnansweredQuestion(_AnalysisModel):
    question: str
    asked_by: str | None = None
    times_asked: int = Field(default=1, ge=1)
    days_unanswered: int = Field(default=0, ge=0)


class TensionPoint(_AnalysisModel):
    type: str | None = None
    description: str = ""
    severity: str | None = None


class Misalignment(_AnalysisModel):
    type: str | None = None
    description: str | None = None
    severity: str | None = None


class Decision(_AnalysisModel):
    decision: str
    decided_by: str | None = None


class ActionItem(_AnalysisModel):
    action: str
    assigned_to: str | None = None
    priority: str | None = None
    status: str | None = None


class ConversationHealth(_AnalysisModel):
    health_score: float = Field(default=100.0, ge=0, le=100)
    risk_level: str = "low"
    responsiveness_score: float = Field(default=1.0, ge=0, le=1)
    clarity_score: float = Field(default=1.0, ge=0, le=1)
    alignment_score: float = Field(default=1.0, ge=0, le=1)


class AnalysisResult(_AnalysisModel):
    unanswered_questions: list[UnansweredQuestion] = Field(default_factory=list)
    tension_points: list[TensionPoint] = Field(default_factory=list)
    misalignments: list[Misalignment] = Field(default_factory=list)
    decisions: list[Decision] = Field(default_factory=list)
    action_items: list[ActionItem] = Field(default_factory=list)
    conversation_health: ConversationHealth | None = None
