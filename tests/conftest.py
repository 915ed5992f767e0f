"""
Pytest configuration for ThreadClear tests

Provides fixtures shared across all test files
"""

from __future__ import annotations

import pytest

from threadclear.observability import telemetry

ALICE_BOB_THREAD = (
    "From: Alice\nHi Bob, can you review?\n\n"
    "From: Bob <bob@x.com>\nSure, will do by Friday.\n--\nBob Smith\n555-1234"
)


@pytest.fixture(autouse=True)
def reset_telemetry():
    """Counters and latencies are module-level; isolate them per test."""
    telemetry.reset()
    yield
    telemetry.reset()


@pytest.fixture
def alice_bob_thread() -> str:
    return ALICE_BOB_THREAD


@pytest.fixture
def temp_db(tmp_path, monkeypatch):
    """
    Point the pooled database layer at a fresh file under tmp_path.

    The pool is a cached singleton, so it is reset before and after.
    """
    from threadclear.infrastructure.database import init_database, reset_pool

    db_path = tmp_path / "threadclear_test.db"
    monkeypatch.setenv("THREADCLEAR_DB_PATH", str(db_path))
    reset_pool()
    init_database()

    yield db_path

    reset_pool()


@pytest.fixture
def make_insight():
    """Factory for StoredInsight records with sensible defaults."""
    from datetime import UTC, datetime
    from uuid import uuid4

    from threadclear.insights.models import InsightEntry, StoredInsight

    def _make(
        organization_id="org-1",
        timestamp=None,
        overall_risk="low",
        health_score=80,
        source_type="email",
        findings=(),
        **kwargs,
    ):
        return StoredInsight(
            id=kwargs.pop("id", str(uuid4())),
            organization_id=organization_id,
            timestamp=timestamp or datetime.now(UTC),
            source_type=source_type,
            overall_risk=overall_risk,
            health_score=health_score,
            findings=tuple(
                f if isinstance(f, InsightEntry) else InsightEntry(**f) for f in findings
            ),
            **kwargs,
        )

    return _make
