"""
Insight Repository - append-only storage for the insights tables.

Follows the database patterns in threadclear/infrastructure/database.py:
pooled connections for reads, db_transaction + retry_on_db_lock for writes.
"""

from __future__ import annotations

import sqlite3
from collections import defaultdict
from datetime import datetime
from typing import Any

from threadclear.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from threadclear.insights.models import StoredInsight, as_utc
from threadclear.observability.logging import get_logger

logger = get_logger(__name__)


class InsightRepository:
    """
    Repository for StoredInsight records.

    Insights are never updated; the only deletion path is retention cleanup.
    """

    @staticmethod
    @retry_on_db_lock()
    def save(insight: StoredInsight) -> StoredInsight:
        """
        Persist an insight and its findings in one transaction.

        Side Effects:
            - Inserts one row into insights and one row per finding
            - Commits transaction
        """
        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO insights (
                    id, organization_id, user_id, team_or_channel, timestamp,
                    source_type, participant_count, message_count, overall_risk,
                    health_score, created_at
                ) VALUES (
                    :id, :organization_id, :user_id, :team_or_channel, :timestamp,
                    :source_type, :participant_count, :message_count, :overall_risk,
                    :health_score, :created_at
                )
                """,
                insight.to_db_dict(),
            )
            conn.executemany(
                """
                INSERT INTO insight_findings (
                    insight_id, position, category, value, role, topic, severity, template_text
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        insight.id,
                        position,
                        entry.category,
                        entry.value,
                        entry.role,
                        entry.topic,
                        entry.severity.value,
                        entry.template_text,
                    )
                    for position, entry in enumerate(insight.findings)
                ],
            )

        logger.info(
            "Stored insight %s for organization %s (%d findings)",
            insight.id,
            insight.organization_id,
            len(insight.findings),
        )
        return insight

    @staticmethod
    def get_by_id(insight_id: str) -> StoredInsight | None:
        with get_db_connection() as conn:
            row = conn.execute("SELECT * FROM insights WHERE id = ?", (insight_id,)).fetchone()
            if not row:
                return None
            findings = _load_findings(conn, [insight_id])

        return StoredInsight.from_db_row(dict(row), findings.get(insight_id, []))

    @staticmethod
    def list_for_organization(
        organization_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list[StoredInsight]:
        """
        List an organization's insights, newest first.

        Args:
            organization_id: Owning organization
            since: Inclusive lower bound on timestamp
            until: Inclusive upper bound on timestamp
            limit: Maximum rows (None for all in the window)
        """
        return _list_where("organization_id = ?", organization_id, since, until, limit)

    @staticmethod
    def list_for_user(
        user_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list[StoredInsight]:
        return _list_where("user_id = ?", user_id, since, until, limit)

    @staticmethod
    @retry_on_db_lock()
    def delete_older_than(cutoff: datetime) -> int:
        """
        Delete insights (and their findings) with timestamp before cutoff.

        Returns:
            Number of insights deleted
        """
        cutoff_iso = as_utc(cutoff).isoformat()
        with db_transaction() as conn:
            conn.execute(
                """
                DELETE FROM insight_findings
                WHERE insight_id IN (SELECT id FROM insights WHERE timestamp < ?)
                """,
                (cutoff_iso,),
            )
            cursor = conn.execute("DELETE FROM insights WHERE timestamp < ?", (cutoff_iso,))
            deleted = cursor.rowcount

        if deleted:
            logger.info("Deleted %d insights older than %s", deleted, cutoff_iso)
        return deleted

    @staticmethod
    def count_for_organization(organization_id: str) -> int:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM insights WHERE organization_id = ?",
                (organization_id,),
            ).fetchone()
        return row[0] if row else 0


def _list_where(
    clause: str,
    key: str,
    since: datetime | None,
    until: datetime | None,
    limit: int | None,
) -> list[StoredInsight]:
    # Timestamps are stored as UTC ISO-8601 strings, so string comparison orders them
    conditions = [clause]
    params: list[Any] = [key]
    if since is not None:
        conditions.append("timestamp >= ?")
        params.append(as_utc(since).isoformat())
    if until is not None:
        conditions.append("timestamp <= ?")
        params.append(as_utc(until).isoformat())

    query = f"SELECT * FROM insights WHERE {' AND '.join(conditions)} ORDER BY timestamp DESC"
    if limit is not None:
        query += " LIMIT ?"
        params.append(limit)

    with get_db_connection() as conn:
        rows = conn.execute(query, params).fetchall()
        ids = [row["id"] for row in rows]
        findings = _load_findings(conn, ids)

    return [StoredInsight.from_db_row(dict(row), findings.get(row["id"], [])) for row in rows]


def _load_findings(conn: sqlite3.Connection, insight_ids: list[str]) -> dict[str, list[dict[str, Any]]]:
    if not insight_ids:
        return {}

    grouped: dict[str, list[dict[str, Any]]] = defaultdict(list)
    # Stay under SQLite's bound-parameter limit
    for start in range(0, len(insight_ids), 500):
        chunk = insight_ids[start : start + 500]
        placeholders = ",".join("?" * len(chunk))
        rows = conn.execute(
            f"""
            SELECT * FROM insight_findings
            WHERE insight_id IN ({placeholders})
            ORDER BY insight_id, position
            """,
            chunk,
        ).fetchall()
        for row in rows:
            grouped[row["insight_id"]].append(dict(row))
    return grouped
