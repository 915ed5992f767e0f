"""
Tests for taxonomy resolution, merging, severity evaluation and inference.

Covers:
1. Industry templates (default fallback, additive layers)
2. Organization overrides (custom topics/roles/rules, built-ins protected)
3. First-match severity evaluation
4. Topic and role inference, template rendering
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from threadclear.taxonomy import engine
from threadclear.taxonomy.models import (
    Finding,
    OrgTaxonomyOverrides,
    RoleDefinition,
    Severity,
    SeverityRule,
    TaxonomyValidationError,
    TopicDefinition,
)
from threadclear.taxonomy.templates import DEFAULT_TOPICS, LEGAL


def _rule(value: str, condition: str, severity: str, category: str = "QUESTION_STATUS") -> SeverityRule:
    return SeverityRule(category=category, value=value, condition=condition, severity=severity)


class TestResolve:
    def test_available_industries(self):
        assert engine.get_available_industries() == [
            "default",
            "legal",
            "healthcare",
            "finance",
            "retail",
            "technology",
        ]

    def test_default_template(self):
        taxonomy = engine.resolve("default")

        assert taxonomy.industry == "default"
        assert taxonomy.topic("pricing") is not None
        assert taxonomy.role("unknown") is not None
        assert taxonomy.severity_rules == ()
        assert len(taxonomy.categories) == 8

    def test_industry_layer_is_additive(self):
        taxonomy = engine.resolve("legal")
        keys = [t.key for t in taxonomy.topics]

        assert keys[: len(DEFAULT_TOPICS)] == [t.key for t in DEFAULT_TOPICS]
        assert "deadline_court" in keys
        assert taxonomy.role("attorney") is not None
        assert taxonomy.severity_rules == LEGAL.severity_rules

    def test_industry_key_is_case_insensitive(self):
        assert engine.resolve(" Legal ").industry == "legal"

    @pytest.mark.parametrize("industry", ["aerospace", "", None])
    def test_unknown_industry_falls_back_to_default(self, industry):
        assert engine.resolve(industry).industry == "default"

    def test_layers_are_not_mutated_by_merging(self):
        overrides = OrgTaxonomyOverrides(
            industry="legal",
            custom_topics=(TopicDefinition(key="billing_dispute", display_name="Billing Dispute"),),
        )
        engine.build_org_taxonomy(overrides)

        assert engine.resolve("legal").topic("billing_dispute") is None


class TestMerge:
    def test_custom_entries_and_rules_are_appended(self):
        base = engine.resolve("legal")
        org_rule = _rule("*", "", "medium")
        overrides = OrgTaxonomyOverrides(
            industry="legal",
            custom_topics=(TopicDefinition(key="retainer", display_name="Retainer"),),
            severity_rules=(org_rule,),
        )

        merged = engine.merge(base, overrides)

        assert merged.topics[-1].key == "retainer"
        assert merged.severity_rules[: len(base.severity_rules)] == base.severity_rules
        assert merged.severity_rules[-1] == org_rule

    def test_custom_entry_cannot_shadow_builtin(self):
        base = engine.resolve("default")
        overrides = OrgTaxonomyOverrides(
            custom_topics=(TopicDefinition(key="pricing", display_name="Hijacked", is_custom=True),)
        )

        merged = engine.merge(base, overrides)

        assert merged.topic("pricing").display_name == "Pricing"
        assert [t.key for t in merged.topics] == [t.key for t in base.topics]

    def test_none_overrides_returns_base(self):
        base = engine.resolve("retail")
        assert engine.merge(base, None) is base

    def test_build_org_taxonomy_without_overrides(self):
        assert engine.build_org_taxonomy(None).industry == "default"


class TestSeverityEvaluation:
    def test_first_matching_rule_wins(self):
        rules = [_rule("unanswered", "topic==foo", "high"), _rule("*", "topic==foo", "critical")]
        finding = Finding(category="QUESTION_STATUS", value="unanswered", topic="foo")

        assert engine.evaluate(rules, finding) == Severity.HIGH

    def test_wildcard_listed_first_wins_over_exact(self):
        rules = [_rule("*", "topic==foo", "critical"), _rule("unanswered", "topic==foo", "high")]
        finding = Finding(category="QUESTION_STATUS", value="unanswered", topic="foo")

        assert engine.evaluate(rules, finding) == Severity.CRITICAL

    def test_no_match_is_baseline_low(self):
        finding = Finding(category="DECISION", value="made", topic="foo")
        assert engine.evaluate([_rule("*", "", "high")], finding) == Severity.LOW

    def test_empty_condition_always_holds(self):
        finding = Finding(category="QUESTION_STATUS", value="deflected", topic="anything")
        assert engine.evaluate([_rule("*", "", "medium")], finding) == Severity.MEDIUM

    def test_not_equal_condition(self):
        rules = [_rule("*", "topic != 'general'", "high")]

        assert engine.evaluate(rules, Finding(category="QUESTION_STATUS", value="x", topic="pricing")) == Severity.HIGH
        assert engine.evaluate(rules, Finding(category="QUESTION_STATUS", value="x", topic="general")) == Severity.LOW

    def test_category_is_normalized(self):
        finding = Finding(category="question-status", value="unanswered", topic="foo")
        assert engine.evaluate([_rule("*", "", "high")], finding) == Severity.HIGH

    def test_unsupported_condition_is_rejected(self):
        with pytest.raises(ValidationError):
            _rule("*", "priority > 3", "high")

    def test_legal_court_deadline_is_critical(self):
        rules = engine.resolve("legal").severity_rules
        finding = Finding(category="QUESTION_STATUS", value="unanswered", topic="deadline_court")

        assert engine.evaluate(rules, finding) == Severity.CRITICAL


class TestCustomEntries:
    def test_add_custom_topic_marks_it_custom(self):
        base = engine.resolve("default")
        overrides = engine.add_custom_topic(
            OrgTaxonomyOverrides(), TopicDefinition(key="onboarding", display_name="Onboarding"), base
        )

        assert overrides.custom_topics[0].is_custom is True

    def test_add_builtin_topic_key_raises(self):
        base = engine.resolve("default")
        with pytest.raises(TaxonomyValidationError, match="built-in"):
            engine.add_custom_topic(
                OrgTaxonomyOverrides(), TopicDefinition(key="pricing", display_name="Pricing"), base
            )

    def test_add_duplicate_custom_topic_raises(self):
        base = engine.resolve("default")
        topic = TopicDefinition(key="onboarding", display_name="Onboarding")
        overrides = engine.add_custom_topic(OrgTaxonomyOverrides(), topic, base)

        with pytest.raises(TaxonomyValidationError, match="already exists"):
            engine.add_custom_topic(overrides, topic, base)

    def test_add_duplicate_custom_role_raises(self):
        base = engine.resolve("default")
        role = RoleDefinition(key="auditor", display_name="Auditor")
        overrides = engine.add_custom_role(OrgTaxonomyOverrides(), role, base)

        with pytest.raises(TaxonomyValidationError):
            engine.add_custom_role(overrides, role, base)

    def test_remove_custom_topic(self):
        base = engine.resolve("default")
        overrides = engine.add_custom_topic(
            OrgTaxonomyOverrides(), TopicDefinition(key="onboarding", display_name="Onboarding"), base
        )

        assert engine.remove_custom_topic(overrides, "onboarding").custom_topics == ()

    def test_remove_builtin_is_a_noop(self):
        overrides = OrgTaxonomyOverrides()

        assert engine.remove_custom_topic(overrides, "pricing") is overrides
        assert engine.remove_custom_role(overrides, "customer") is overrides

    def test_severity_rule_must_reference_known_category_and_value(self):
        base = engine.resolve("default")

        with pytest.raises(TaxonomyValidationError, match="Unknown category"):
            engine.add_severity_rule(OrgTaxonomyOverrides(), _rule("*", "", "high", "NOT_A_CATEGORY"), base)
        with pytest.raises(TaxonomyValidationError, match="Unknown value"):
            engine.add_severity_rule(OrgTaxonomyOverrides(), _rule("ignored", "", "high"), base)

    def test_wildcard_severity_rule_is_accepted(self):
        base = engine.resolve("default")
        overrides = engine.add_severity_rule(OrgTaxonomyOverrides(), _rule("*", "", "high"), base)
        assert len(overrides.severity_rules) == 1

    def test_invalid_key_is_rejected(self):
        with pytest.raises(ValidationError):
            TopicDefinition(key="Not A Key!", display_name="Bad")


class TestInference:
    def test_infer_topic_by_keyword(self):
        assert engine.infer_topic(engine.resolve("default"), "What is the price?") == "pricing"

    def test_infer_topic_requires_word_start(self):
        assert engine.infer_topic(engine.resolve("default"), "We appreciate it") == "general"

    def test_infer_topic_uses_industry_topics(self):
        assert engine.infer_topic(engine.resolve("legal"), "Is the hearing still on?") == "deadline_court"

    def test_infer_topic_empty_text(self):
        assert engine.infer_topic(engine.resolve("default"), "") == "general"

    def test_infer_role_whole_word(self):
        taxonomy = engine.resolve("healthcare")

        assert engine.infer_role(taxonomy, "Andrew") == "unknown"
        assert engine.infer_role(taxonomy, "Dr. Smith") == "physician"

    def test_infer_role_default_roles(self):
        assert engine.infer_role(engine.resolve("default"), "Support Team") == "representative"

    def test_infer_role_by_email_pattern(self):
        base = engine.resolve("default")
        overrides = engine.add_custom_role(
            OrgTaxonomyOverrides(),
            RoleDefinition(key="auditor", display_name="Auditor", email_domain_patterns=("*@audit.example.com",)),
            base,
        )
        taxonomy = engine.merge(base, overrides)

        assert engine.infer_role(taxonomy, "Pat", "Pat@Audit.Example.com") == "auditor"

    def test_infer_role_without_name_or_email(self):
        assert engine.infer_role(engine.resolve("default"), None, None) == "unknown"


class TestRenderTemplate:
    def test_renders_display_names(self):
        text = engine.render_template(
            engine.resolve("legal"), "QUESTION_STATUS", "unanswered", "attorney", "deadline_court"
        )
        assert text == "Attorney inquiry regarding Court Deadline was not addressed"

    def test_unknown_role_and_topic_fall_back_to_keys(self):
        text = engine.render_template(
            engine.resolve("default"), "ACTION_ITEM", "assigned", "ghost_writer", "side_project"
        )
        assert text == "Action assigned to Ghost Writer regarding side project"

    def test_unknown_value_renders_nothing(self):
        assert engine.render_template(engine.resolve("default"), "DECISION", "vetoed", "unknown", "general") is None
