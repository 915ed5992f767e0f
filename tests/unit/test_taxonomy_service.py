"""
Tests for the per-organization taxonomy store and YAML overrides loading.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from threadclear.observability.telemetry import get_counter
from threadclear.taxonomy import engine
from threadclear.taxonomy.models import (
    Finding,
    RoleDefinition,
    Severity,
    SeverityRule,
    TaxonomyValidationError,
    TopicDefinition,
)
from threadclear.taxonomy.service import TaxonomyService, load_overrides_file

SHIPPED_OVERRIDES = Path(__file__).resolve().parents[2] / "config" / "taxonomy_overrides.yaml"


@pytest.fixture
def service():
    return TaxonomyService()


class TestLoadOverridesFile:
    def test_missing_file_is_empty(self, tmp_path):
        assert load_overrides_file(tmp_path / "nope.yaml") == {}

    def test_loads_organizations(self, tmp_path):
        path = tmp_path / "overrides.yaml"
        path.write_text(
            "organizations:\n"
            "  acme:\n"
            "    industry: technology\n"
            "    custom_topics:\n"
            "      - key: billing_portal\n"
            "        display_name: Billing Portal\n"
            "        keywords: [portal]\n"
        )

        loaded = load_overrides_file(path)

        assert loaded["acme"].industry == "technology"
        assert loaded["acme"].custom_topics[0].is_custom is True

    def test_empty_file_is_empty(self, tmp_path):
        path = tmp_path / "overrides.yaml"
        path.write_text("")
        assert load_overrides_file(path) == {}

    def test_malformed_entry_raises(self, tmp_path):
        path = tmp_path / "overrides.yaml"
        path.write_text(
            "organizations:\n"
            "  acme:\n"
            "    severity_rules:\n"
            "      - category: QUESTION_STATUS\n"
            "        condition: \"priority > 3\"\n"
            "        severity: high\n"
        )

        with pytest.raises(TaxonomyValidationError, match="acme"):
            load_overrides_file(path)

    def test_shipped_example_organization(self):
        service = TaxonomyService.from_config(SHIPPED_OVERRIDES)
        taxonomy = service.get_taxonomy("example-law-firm")

        assert taxonomy.industry == "legal"
        assert taxonomy.topic("engagement_letter").is_custom is True
        assert engine.infer_role(taxonomy, "Sam", "sam@assistants.example.com") == "legal_secretary"

        finding = Finding(category="QUESTION_STATUS", value="unanswered", topic="engagement_letter")
        assert engine.evaluate(taxonomy.severity_rules, finding) == Severity.HIGH


class TestTaxonomyService:
    def test_unconfigured_org_gets_default(self, service):
        assert service.get_taxonomy("new-org").industry == "default"

    def test_set_industry(self, service):
        taxonomy = service.set_industry("acme", "Healthcare")

        assert taxonomy.industry == "healthcare"
        assert service.get_overrides("acme").industry == "healthcare"

    def test_set_unknown_industry_raises(self, service):
        with pytest.raises(TaxonomyValidationError):
            service.set_industry("acme", "aerospace")

    def test_add_topic(self, service):
        taxonomy = service.add_topic("acme", TopicDefinition(key="onboarding", display_name="Onboarding"))

        assert taxonomy.topic("onboarding").is_custom is True
        assert get_counter("taxonomy.custom_topic_added") == 1

    def test_add_topic_keeps_industry(self, service):
        service.set_industry("acme", "legal")
        taxonomy = service.add_topic("acme", TopicDefinition(key="onboarding", display_name="Onboarding"))

        assert taxonomy.industry == "legal"
        assert taxonomy.topic("deadline_court") is not None

    def test_industry_topic_counts_as_builtin(self, service):
        service.set_industry("acme", "legal")
        with pytest.raises(TaxonomyValidationError):
            service.add_topic("acme", TopicDefinition(key="discovery", display_name="Discovery"))

    def test_add_and_remove_role(self, service):
        service.add_role("acme", RoleDefinition(key="auditor", display_name="Auditor"))
        taxonomy = service.remove_role("acme", "auditor")

        assert taxonomy.role("auditor") is None
        assert get_counter("taxonomy.custom_role_added") == 1

    def test_remove_builtin_topic_leaves_taxonomy_unchanged(self, service):
        before = service.get_taxonomy("acme")
        after = service.remove_topic("acme", "pricing")

        assert after == before

    def test_severity_rule_appended_after_template_rules(self, service):
        service.set_industry("acme", "legal")
        rule = SeverityRule(category="DECISION", value="*", severity="high")
        taxonomy = service.add_severity_rule("acme", rule)

        assert taxonomy.severity_rules[-1] == rule
        assert len(taxonomy.severity_rules) == len(engine.resolve("legal").severity_rules) + 1

    def test_organizations_are_isolated(self, service):
        service.add_topic("acme", TopicDefinition(key="onboarding", display_name="Onboarding"))
        assert service.get_taxonomy("globex").topic("onboarding") is None
