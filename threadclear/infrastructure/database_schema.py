"""
Database schema for stored insights.

One row per analyzed conversation in `insights`; its graded findings live in
`insight_findings`. Neither table holds message content.
"""

from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path

from threadclear.observability.logging import get_logger

logger = get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS insights (
    id TEXT PRIMARY KEY,
    organization_id TEXT NOT NULL,
    user_id TEXT,
    team_or_channel TEXT,
    timestamp TEXT NOT NULL,
    source_type TEXT NOT NULL,
    participant_count INTEGER NOT NULL DEFAULT 0,
    message_count INTEGER NOT NULL DEFAULT 0,
    overall_risk TEXT NOT NULL DEFAULT 'low',
    health_score INTEGER NOT NULL DEFAULT 100,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS insight_findings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    insight_id TEXT NOT NULL REFERENCES insights(id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    category TEXT NOT NULL,
    value TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'unknown',
    topic TEXT NOT NULL DEFAULT 'general',
    severity TEXT NOT NULL DEFAULT 'low',
    template_text TEXT
);

CREATE INDEX IF NOT EXISTS idx_insights_org_timestamp
ON insights(organization_id, timestamp);

CREATE INDEX IF NOT EXISTS idx_insights_user_timestamp
ON insights(user_id, timestamp);

CREATE INDEX IF NOT EXISTS idx_insight_findings_insight
ON insight_findings(insight_id, position);
"""


def init_database(db_path: Path) -> None:
    """Create the insight tables and indexes at db_path; existing ones are left alone."""
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with closing(sqlite3.connect(db_path)) as conn:
        conn.executescript(SCHEMA)
        conn.commit()

    logger.info("Insight store ready at %s", db_path)


REQUIRED_COLUMNS: dict[str, tuple[str, ...]] = {
    "insights": ("id", "organization_id", "timestamp", "source_type", "overall_risk", "health_score"),
    "insight_findings": ("id", "insight_id", "category", "value", "topic", "severity"),
}


def validate_schema(conn: sqlite3.Connection) -> bool:
    """
    Confirm every table in REQUIRED_COLUMNS exists with at least those columns.

    Raises:
        ValueError: Naming the first missing table set or column set found
    """
    tables = {name for (name,) in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    absent = sorted(set(REQUIRED_COLUMNS) - tables)
    if absent:
        raise ValueError(f"Database missing tables: {absent}")

    for table, columns in REQUIRED_COLUMNS.items():
        # table names come from REQUIRED_COLUMNS, never from callers
        present = {row[1] for row in conn.execute(f"PRAGMA table_info({table})")}
        missing = sorted(set(columns) - present)
        if missing:
            raise ValueError(f"Table '{table}' missing columns: {missing}")

    return True
