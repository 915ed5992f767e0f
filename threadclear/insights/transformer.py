"""
Insight transformer: capsule + analysis -> StoredInsight.

Each analysis item becomes one InsightEntry (category, value, role, topic,
severity). A matching taxonomy rule decides severity; when no rule matches the
item-specific fallback below applies. Message content, questions and names
are never copied into the insight.
"""

from __future__ import annotations

import re
import uuid

from threadclear.analysis.models import AnalysisResult, ConversationHealth
from threadclear.capsule.models import ConversationCapsule
from threadclear.config import HEALTH_FLAG_THRESHOLD, HEALTH_HIGH_THRESHOLD
from threadclear.insights.models import InsightEntry, RiskLevel, StoredInsight, utc_now
from threadclear.observability.logging import get_logger
from threadclear.taxonomy import engine
from threadclear.taxonomy.models import Finding, Severity, TaxonomyDefinition

logger = get_logger(__name__)

# Analyzer tension types (case-insensitive, underscores ignored) -> TENSION_SIGNAL values
TENSION_VALUES: dict[str, str] = {
    "urgent": "urgency_expressed",
    "repeatedquestion": "repetition_required",
    "delayed": "delayed_response",
    "negative": "frustration_expressed",
    "escalation": "escalation_threatened",
    "dismissive": "dismissive_response",
}
DEFAULT_TENSION_VALUE = "tension_detected"

_RISK_ALIASES = {"critical": RiskLevel.HIGH.value}


def map_tension_type(tension_type: str | None) -> str:
    key = re.sub(r"[_\s]", "", (tension_type or "").lower())
    return TENSION_VALUES.get(key, DEFAULT_TENSION_VALUE)


def _severity_or(value: str | None, default: Severity) -> Severity:
    try:
        return Severity((value or "").strip().lower())
    except ValueError:
        return default


class InsightTransformer:
    """Grades one analyzed conversation against an organization taxonomy."""

    def __init__(self, taxonomy: TaxonomyDefinition):
        self.taxonomy = taxonomy

    def transform(
        self,
        capsule: ConversationCapsule,
        analysis: AnalysisResult,
        organization_id: str,
        user_id: str | None = None,
        team_or_channel: str | None = None,
        source_type: str | None = None,
    ) -> StoredInsight:
        """
        Build the StoredInsight for an analyzed capsule.

        Args:
            capsule: Parsed conversation (names are used only for role inference)
            analysis: Result from the external analyzer
            organization_id: Owning organization
            user_id: Optional submitting user
            team_or_channel: Optional grouping label
            source_type: Request source hint; defaults to the capsule's format

        Returns:
            New StoredInsight with a fresh uuid4 id, stamped with the current UTC time
        """
        findings = [
            *self._question_entries(capsule, analysis),
            *self._tension_entries(analysis),
            *self._misalignment_entries(analysis),
            *self._decision_entries(capsule, analysis),
            *self._action_entries(capsule, analysis),
            *self._health_entries(analysis.conversation_health),
        ]

        health = analysis.conversation_health
        insight = StoredInsight(
            id=str(uuid.uuid4()),
            organization_id=organization_id,
            user_id=user_id,
            team_or_channel=team_or_channel,
            timestamp=utc_now(),
            source_type=source_type or capsule.source_format.value,
            participant_count=len(capsule.participants),
            message_count=len(capsule.messages),
            overall_risk=self._overall_risk(health),
            health_score=self._health_score(health),
            findings=tuple(findings),
        )

        logger.debug(
            "Transformed capsule %s into insight %s with %d findings",
            capsule.capsule_id,
            insight.id,
            len(findings),
        )
        return insight

    # ------------------------------------------------------------------
    # Entry builders
    # ------------------------------------------------------------------

    def _entry(
        self,
        category: str,
        value: str,
        role: str,
        topic: str,
        fallback: Severity,
    ) -> InsightEntry:
        finding = Finding(category=category, value=value, topic=topic)
        rule = engine.match_rule(self.taxonomy.severity_rules, finding)
        severity = rule.severity if rule is not None else fallback

        return InsightEntry(
            category=finding.category,
            value=value,
            role=role,
            topic=topic,
            severity=severity,
            template_text=engine.render_template(
                self.taxonomy, finding.category, value, role, topic
            ),
        )

    def _role_for(self, capsule: ConversationCapsule, name: str | None) -> str:
        email = None
        if name:
            lowered = name.strip().lower()
            for participant in capsule.participants:
                if participant.display_name.lower() == lowered:
                    email = participant.email
                    break
        return engine.infer_role(self.taxonomy, name, email)

    def _question_entries(
        self, capsule: ConversationCapsule, analysis: AnalysisResult
    ) -> list[InsightEntry]:
        entries = []
        for question in analysis.unanswered_questions:
            repeated = question.times_asked > 1
            if repeated or question.days_unanswered > 2:
                fallback = Severity.HIGH
            elif question.days_unanswered > 0:
                fallback = Severity.MEDIUM
            else:
                fallback = Severity.LOW

            entries.append(
                self._entry(
                    "QUESTION_STATUS",
                    "repeated_unanswered" if repeated else "unanswered",
                    self._role_for(capsule, question.asked_by),
                    engine.infer_topic(self.taxonomy, question.question),
                    fallback,
                )
            )
        return entries

    def _tension_entries(self, analysis: AnalysisResult) -> list[InsightEntry]:
        return [
            self._entry(
                "TENSION_SIGNAL",
                map_tension_type(point.type),
                engine.FALLBACK_ROLE,
                engine.infer_topic(self.taxonomy, point.description),
                _severity_or(point.severity, Severity.MEDIUM),
            )
            for point in analysis.tension_points
        ]

    def _misalignment_entries(self, analysis: AnalysisResult) -> list[InsightEntry]:
        return [
            self._entry(
                "MISALIGNMENT",
                "detected",
                "multiple_parties",
                engine.infer_topic(self.taxonomy, item.description),
                _severity_or(item.severity, Severity.MEDIUM),
            )
            for item in analysis.misalignments
        ]

    def _decision_entries(
        self, capsule: ConversationCapsule, analysis: AnalysisResult
    ) -> list[InsightEntry]:
        return [
            self._entry(
                "DECISION",
                "made",
                self._role_for(capsule, decision.decided_by),
                engine.infer_topic(self.taxonomy, decision.decision),
                Severity.LOW,
            )
            for decision in analysis.decisions
        ]

    def _action_entries(
        self, capsule: ConversationCapsule, analysis: AnalysisResult
    ) -> list[InsightEntry]:
        entries = []
        for item in analysis.action_items:
            overdue = (item.status or "").strip().lower() == "overdue"
            high_priority = (item.priority or "").strip().lower() == "high"
            entries.append(
                self._entry(
                    "ACTION_ITEM",
                    "overdue" if overdue else "assigned",
                    self._role_for(capsule, item.assigned_to),
                    engine.infer_topic(self.taxonomy, item.action),
                    Severity.HIGH if overdue or high_priority else Severity.LOW,
                )
            )
        return entries

    def _health_entries(self, health: ConversationHealth | None) -> list[InsightEntry]:
        if health is None:
            return []

        checks = (
            (health.responsiveness_score, "RESPONSE_PATTERN", "low_responsiveness"),
            (health.clarity_score, "RESPONSE_PATTERN", "low_clarity"),
            (health.alignment_score, "MISALIGNMENT", "low_alignment_score"),
        )
        entries = []
        for score, category, value in checks:
            if score >= HEALTH_FLAG_THRESHOLD:
                continue
            entries.append(
                InsightEntry(
                    category=category,
                    value=value,
                    topic=engine.FALLBACK_TOPIC,
                    severity=Severity.HIGH if score < HEALTH_HIGH_THRESHOLD else Severity.MEDIUM,
                )
            )
        return entries

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    @staticmethod
    def _health_score(health: ConversationHealth | None) -> int:
        if health is None:
            return 100
        return max(0, min(100, round(health.health_score)))

    @staticmethod
    def _overall_risk(health: ConversationHealth | None) -> RiskLevel:
        if health is None:
            return RiskLevel.LOW
        level = health.risk_level.strip().lower()
        level = _RISK_ALIASES.get(level, level)
        try:
            return RiskLevel(level)
        except ValueError:
            return RiskLevel.LOW
