"""
API tests for the ThreadClear FastAPI app.

Services are injected fresh per test against a temporary database, the same
way app.py wires them at startup.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from threadclear import parse_conversation
from threadclear.analysis.models import AnalysisResult, UnansweredQuestion
from threadclear.insights.service import InsightService
from threadclear.taxonomy.service import TaxonomyService


class StubAnalyzer:
    def analyze(self, capsule):
        return AnalysisResult(
            unanswered_questions=[UnansweredQuestion(question="What is the price?", asked_by="Alice")]
        )


class FailingAnalyzer:
    def analyze(self, capsule):
        raise ConnectionError("analyzer unreachable")


@pytest.fixture
def client(temp_db):
    from threadclear.api import app as app_module
    from threadclear.api.routes import insights, parse, taxonomy

    taxonomy_service = TaxonomyService()
    insight_service = InsightService(taxonomy_service)
    taxonomy.set_taxonomy_service(taxonomy_service)
    insights.set_insight_service(insight_service)
    parse.set_insight_service(insight_service)
    parse.set_analyzer(None)

    with TestClient(app_module.app) as test_client:
        yield test_client

    parse.set_analyzer(None)


@pytest.fixture
def analyzer():
    from threadclear.api.routes import parse

    def _install(instance):
        parse.set_analyzer(instance)
        return instance

    return _install


class TestParseEndpoint:
    def test_parse_email_thread(self, client, alice_bob_thread):
        response = client.post("/api/parse", json={"text": alice_bob_thread})

        assert response.status_code == 200
        body = response.json()
        assert body["source_format"] == "email"
        assert [p["display_name"] for p in body["participants"]] == ["Alice", "Bob"]
        assert [m["content"] for m in body["messages"]] == ["Hi Bob, can you review?", "Sure, will do by Friday."]

    def test_unstructured_text_is_not_an_error(self, client):
        response = client.post("/api/parse", json={"text": "a loose paragraph of notes", "source_type": "simple"})

        assert response.status_code == 200
        assert response.json()["messages"] == []

    def test_missing_text_is_sanitized_422(self, client):
        response = client.post("/api/parse", json={"source_type": "email"})

        assert response.status_code == 422
        assert response.json()["invalid_fields"] == ["text"]


class TestAnalyzeEndpoint:
    def test_without_analyzer_is_503(self, client, alice_bob_thread):
        response = client.post("/api/analyze", json={"text": alice_bob_thread, "organization_id": "org-1"})
        assert response.status_code == 503

    def test_analyze_stores_insight(self, client, analyzer, alice_bob_thread):
        analyzer(StubAnalyzer())

        response = client.post("/api/analyze", json={"text": alice_bob_thread, "organization_id": "org-1"})

        assert response.status_code == 200
        body = response.json()
        assert body["capsule"]["analysis"]["unanswered_questions"][0]["question"] == "What is the price?"
        assert body["insight"]["findings"][0]["topic"] == "pricing"
        assert client.get(f"/api/insights/{body['insight']['id']}").status_code == 200

    def test_analyzer_failure_is_502(self, client, analyzer, alice_bob_thread):
        analyzer(FailingAnalyzer())

        response = client.post("/api/analyze", json={"text": alice_bob_thread, "organization_id": "org-1"})

        assert response.status_code == 502
        assert client.get("/api/organizations/org-1/insights").json() == []


class TestInsightEndpoints:
    def _store(self, client, thread, org="org-1"):
        capsule = parse_conversation(thread)
        payload = {
            "organization_id": org,
            "source_type": "email",
            "capsule": capsule.model_dump(mode="json"),
            "analysis": {
                "unanswered_questions": [{"question": "When will it ship?", "asked_by": "Bob"}],
                "conversation_health": {"health_score": 55, "risk_level": "high"},
            },
        }
        return client.post("/api/insights/store", json=payload)

    def test_store_returns_201(self, client, alice_bob_thread):
        response = self._store(client, alice_bob_thread)

        assert response.status_code == 201
        body = response.json()
        assert body["overall_risk"] == "high"
        assert body["findings"][0]["topic"] == "delivery"
        assert "Alice" not in response.text

    def test_unknown_insight_is_404(self, client):
        assert client.get("/api/insights/missing").status_code == 404

    def test_dashboard_endpoints(self, client, alice_bob_thread):
        self._store(client, alice_bob_thread)

        summary = client.get("/api/organizations/org-1/insights/summary", params={"days": 7}).json()
        trends = client.get("/api/organizations/org-1/insights/trends", params={"group_by": "week"}).json()
        topics = client.get("/api/organizations/org-1/insights/topics").json()

        assert summary["total_conversations"] == 1
        assert summary["high_risk_count"] == 1
        assert len(trends) == 1
        assert topics[0]["topic"] == "delivery"

    def test_list_respects_limit(self, client, alice_bob_thread):
        for _ in range(3):
            self._store(client, alice_bob_thread)

        response = client.get("/api/organizations/org-1/insights", params={"limit": 2})

        assert response.status_code == 200
        assert len(response.json()) == 2

    def test_unknown_group_by_is_400(self, client):
        response = client.get("/api/organizations/org-1/insights/trends", params={"group_by": "fortnight"})
        assert response.status_code == 400

    @pytest.mark.parametrize("days", [0, 366])
    def test_days_out_of_range_is_422(self, client, days):
        response = client.get("/api/organizations/org-1/insights/summary", params={"days": days})
        assert response.status_code == 422

    def test_empty_org_trends(self, client):
        response = client.get("/api/organizations/nobody/insights/trends")
        assert response.json() == []


class TestTaxonomyEndpoints:
    def test_industries(self, client):
        industries = client.get("/api/taxonomy/industries").json()["industries"]

        assert industries[0] == "default"
        assert "legal" in industries

    def test_industry_template(self, client):
        assert client.get("/api/taxonomy/industries/legal").json()["industry"] == "legal"
        assert client.get("/api/taxonomy/industries/aerospace").status_code == 404

    def test_set_industry(self, client):
        response = client.put("/api/organizations/acme/taxonomy", json={"industry": "finance"})

        assert response.status_code == 200
        assert client.get("/api/organizations/acme/taxonomy").json()["industry"] == "finance"

    def test_set_unknown_industry_is_400(self, client):
        response = client.put("/api/organizations/acme/taxonomy", json={"industry": "aerospace"})
        assert response.status_code == 400

    def test_custom_topic_lifecycle(self, client):
        topic = {"key": "onboarding", "display_name": "Onboarding", "keywords": [" Kickoff ", ""]}

        created = client.post("/api/organizations/acme/taxonomy/topics", json=topic)
        duplicate = client.post("/api/organizations/acme/taxonomy/topics", json=topic)
        removed = client.delete("/api/organizations/acme/taxonomy/topics/onboarding")

        assert created.status_code == 200
        added = [t for t in created.json()["topics"] if t["key"] == "onboarding"][0]
        assert added["keywords"] == ["kickoff"]
        assert added["is_custom"] is True
        assert duplicate.status_code == 400
        assert all(t["key"] != "onboarding" for t in removed.json()["topics"])

    def test_builtin_topic_cannot_be_added_or_removed(self, client):
        added = client.post(
            "/api/organizations/acme/taxonomy/topics", json={"key": "pricing", "display_name": "Pricing"}
        )
        removed = client.delete("/api/organizations/acme/taxonomy/topics/pricing")

        assert added.status_code == 400
        assert removed.status_code == 200
        assert any(t["key"] == "pricing" for t in removed.json()["topics"])

    def test_invalid_topic_key_is_400(self, client):
        response = client.post(
            "/api/organizations/acme/taxonomy/topics", json={"key": "Bad Key!", "display_name": "Bad"}
        )
        assert response.status_code == 400

    def test_custom_role(self, client):
        role = {"key": "auditor", "display_name": "Auditor", "email_domain_patterns": ["*@audit.example.com"]}

        response = client.post("/api/organizations/acme/taxonomy/roles", json=role)

        assert response.status_code == 200
        assert response.json()["roles"][-1]["key"] == "auditor"

    def test_severity_rules(self, client):
        good = {"category": "decision", "value": "made", "condition": "topic == 'pricing'", "severity": "HIGH"}
        bad = {"category": "DECISION", "condition": "priority > 3", "severity": "high"}

        accepted = client.post("/api/organizations/acme/taxonomy/rules", json=good)
        rejected = client.post("/api/organizations/acme/taxonomy/rules", json=bad)

        assert accepted.status_code == 200
        assert accepted.json()["severity_rules"][-1] == {
            "category": "DECISION",
            "value": "made",
            "condition": "topic == 'pricing'",
            "severity": "high",
        }
        assert rejected.status_code == 400


class TestHealthEndpoints:
    def test_health(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["analyzer_ready"] is False

    def test_database_health(self, client):
        body = client.get("/health/db").json()

        assert body["status"] == "healthy"
        assert body["pool"]["closed"] is False

    def test_root_lists_endpoints(self, client):
        assert client.get("/").json()["endpoints"]["parse"] == "/api/parse"
