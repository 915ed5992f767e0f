"""
Tests for capsule + analysis -> StoredInsight grading.

Covers:
1. Per-item category/value mapping and fallback severities
2. Taxonomy rules overriding fallbacks (first match)
3. Topic and role inference feeding findings
4. Health thresholds, risk and score normalization
5. No names or content leaking into the insight
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from threadclear.analysis.models import (
    ActionItem,
    AnalysisResult,
    ConversationHealth,
    Decision,
    Misalignment,
    TensionPoint,
    UnansweredQuestion,
)
from threadclear.capsule.assembler import assemble
from threadclear.insights.models import RiskLevel
from threadclear.insights.transformer import InsightTransformer, map_tension_type
from threadclear.parsing.types import DiscoveredParticipant, ExtractedMessage, SourceFormat
from threadclear.taxonomy import engine
from threadclear.taxonomy.models import OrgTaxonomyOverrides, RoleDefinition, Severity


def _capsule(*senders, emails=None, sent_at=None):
    emails = emails or {}
    participants = [
        DiscoveredParticipant(id=f"d{i}", name=name, email=emails.get(name))
        for i, name in enumerate(senders, start=1)
    ]
    messages = [
        ExtractedMessage(sender=name, content=f"message from {name}", sent_at=sent_at) for name in senders
    ]
    return assemble(participants, messages, SourceFormat.EMAIL)


def _transform(analysis, industry="default", capsule=None, **kwargs):
    capsule = capsule or _capsule("Alice", "Bob")
    return InsightTransformer(engine.resolve(industry)).transform(
        capsule, analysis, organization_id="org-1", **kwargs
    )


class TestQuestionFindings:
    def test_legal_court_deadline_question(self):
        capsule = _capsule("Jane Doe, Esq", "Bob")
        analysis = AnalysisResult(
            unanswered_questions=[UnansweredQuestion(question="Is the hearing still on?", asked_by="Jane Doe, Esq")]
        )

        finding = _transform(analysis, industry="legal", capsule=capsule).findings[0]

        assert (finding.category, finding.value) == ("QUESTION_STATUS", "unanswered")
        assert (finding.role, finding.topic) == ("attorney", "deadline_court")
        assert finding.severity == Severity.CRITICAL
        assert finding.template_text == "Attorney inquiry regarding Court Deadline was not addressed"

    def test_default_question_without_rule(self):
        analysis = AnalysisResult(
            unanswered_questions=[UnansweredQuestion(question="What is the price?", asked_by="Alice")]
        )

        finding = _transform(analysis).findings[0]

        assert (finding.role, finding.topic, finding.severity) == ("unknown", "pricing", Severity.LOW)
        assert finding.template_text == "Unknown inquiry regarding Pricing was not addressed"

    @pytest.mark.parametrize("times_asked", [2, 3])
    def test_repeated_question_is_high(self, times_asked):
        analysis = AnalysisResult(
            unanswered_questions=[UnansweredQuestion(question="Any update?", times_asked=times_asked)]
        )

        finding = _transform(analysis).findings[0]

        assert finding.value == "repeated_unanswered"
        assert finding.severity == Severity.HIGH

    @pytest.mark.parametrize(
        ("days", "expected"),
        [(0, Severity.LOW), (1, Severity.MEDIUM), (2, Severity.MEDIUM), (3, Severity.HIGH)],
    )
    def test_days_unanswered_fallback(self, days, expected):
        analysis = AnalysisResult(
            unanswered_questions=[UnansweredQuestion(question="Any update?", days_unanswered=days)]
        )
        assert _transform(analysis).findings[0].severity == expected

    def test_role_from_participant_email(self):
        base = engine.resolve("default")
        overrides = engine.add_custom_role(
            OrgTaxonomyOverrides(),
            RoleDefinition(key="auditor", display_name="Auditor", email_domain_patterns=("*@audit.example.com",)),
            base,
        )
        capsule = _capsule("Pat", emails={"Pat": "pat@audit.example.com"})
        analysis = AnalysisResult(unanswered_questions=[UnansweredQuestion(question="Ready?", asked_by="pat")])

        insight = InsightTransformer(engine.merge(base, overrides)).transform(capsule, analysis, "org-1")

        assert insight.findings[0].role == "auditor"


class TestOtherFindings:
    def test_tension_mapping_and_severity(self):
        analysis = AnalysisResult(
            tension_points=[
                TensionPoint(type="repeated_question", description="Asked about the invoice again", severity="High"),
                TensionPoint(type="sarcasm", description="hmm"),
            ]
        )

        first, second = _transform(analysis).findings

        assert (first.category, first.value, first.topic) == ("TENSION_SIGNAL", "repetition_required", "billing")
        assert first.severity == Severity.HIGH
        assert first.role == "unknown"
        assert (second.value, second.severity) == ("tension_detected", Severity.MEDIUM)

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("Urgent", "urgency_expressed"), ("REPEATED QUESTION", "repetition_required"), (None, "tension_detected")],
    )
    def test_map_tension_type(self, raw, expected):
        assert map_tension_type(raw) == expected

    def test_misalignment(self):
        analysis = AnalysisResult(misalignments=[Misalignment(description="Different delivery dates")])

        finding = _transform(analysis).findings[0]

        assert (finding.category, finding.value, finding.role) == ("MISALIGNMENT", "detected", "multiple_parties")
        assert finding.topic == "delivery"
        assert finding.severity == Severity.MEDIUM

    def test_decision_is_low(self):
        analysis = AnalysisResult(decisions=[Decision(decision="Go with the annual contract", decided_by="Bob")])

        finding = _transform(analysis).findings[0]

        assert (finding.category, finding.value, finding.topic) == ("DECISION", "made", "contract")
        assert finding.severity == Severity.LOW

    def test_action_items(self):
        analysis = AnalysisResult(
            action_items=[
                ActionItem(action="Send the invoice", status="Overdue"),
                ActionItem(action="Schedule call", priority="high"),
                ActionItem(action="Share notes"),
            ]
        )

        overdue, urgent, routine = _transform(analysis).findings

        assert (overdue.value, overdue.severity) == ("overdue", Severity.HIGH)
        assert (urgent.value, urgent.severity) == ("assigned", Severity.HIGH)
        assert (routine.value, routine.severity) == ("assigned", Severity.LOW)

    def test_findings_keep_analysis_order(self):
        analysis = AnalysisResult(
            unanswered_questions=[UnansweredQuestion(question="q?")],
            tension_points=[TensionPoint(type="urgent")],
            misalignments=[Misalignment()],
            decisions=[Decision(decision="d")],
            action_items=[ActionItem(action="a")],
        )

        categories = [f.category for f in _transform(analysis).findings]

        assert categories == ["QUESTION_STATUS", "TENSION_SIGNAL", "MISALIGNMENT", "DECISION", "ACTION_ITEM"]


class TestHealth:
    def test_low_scores_become_findings(self):
        health = ConversationHealth(responsiveness_score=0.2, clarity_score=0.4, alignment_score=0.9)

        findings = _transform(AnalysisResult(conversation_health=health)).findings

        assert [(f.category, f.value, f.severity) for f in findings] == [
            ("RESPONSE_PATTERN", "low_responsiveness", Severity.HIGH),
            ("RESPONSE_PATTERN", "low_clarity", Severity.MEDIUM),
        ]

    def test_score_and_risk(self):
        health = ConversationHealth(health_score=72.6, risk_level="Medium")
        insight = _transform(AnalysisResult(conversation_health=health))

        assert insight.health_score == 73
        assert insight.overall_risk == RiskLevel.MEDIUM

    @pytest.mark.parametrize(("raw", "expected"), [("critical", RiskLevel.HIGH), ("unclear", RiskLevel.LOW)])
    def test_risk_normalization(self, raw, expected):
        insight = _transform(AnalysisResult(conversation_health=ConversationHealth(risk_level=raw)))
        assert insight.overall_risk == expected

    def test_missing_health_defaults(self):
        insight = _transform(AnalysisResult())

        assert insight.health_score == 100
        assert insight.overall_risk == RiskLevel.LOW
        assert insight.findings == ()


class TestInsightShape:
    def test_counts_timestamp_and_source(self):
        capsule = _capsule("Alice", "Bob", sent_at="2024-05-01T12:00:00+00:00")

        before = datetime.now(UTC)
        insight = _transform(AnalysisResult(), capsule=capsule, user_id="u-1", team_or_channel="support")

        assert insight.organization_id == "org-1"
        assert (insight.user_id, insight.team_or_channel) == ("u-1", "support")
        assert (insight.participant_count, insight.message_count) == (2, 2)
        # stamped when graded, not with the thread's own dates
        assert before <= insight.timestamp <= datetime.now(UTC)
        assert insight.source_type == "email"

    def test_explicit_source_type(self):
        assert _transform(AnalysisResult(), source_type="slack").source_type == "slack"

    def test_each_transform_gets_a_new_id(self):
        assert _transform(AnalysisResult()).id != _transform(AnalysisResult()).id

    def test_no_names_or_content_in_insight(self):
        capsule = _capsule("Jane Doe, Esq", "Bob")
        analysis = AnalysisResult(
            unanswered_questions=[UnansweredQuestion(question="Is the hearing still on?", asked_by="Jane Doe, Esq")],
            decisions=[Decision(decision="File the motion Tuesday", decided_by="Bob")],
        )

        dumped = _transform(analysis, industry="legal", capsule=capsule).model_dump_json()

        for secret in ("Jane", "Bob", "hearing still on", "File the motion", "message from"):
            assert secret not in dumped
