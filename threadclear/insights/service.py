"""Insight service layer - facade between API routes, taxonomy and repository.

Grades analyzed conversations against the organization's merged taxonomy,
stores them, and serves time-windowed aggregates over the stored records.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from threadclear.analysis.collaborator import ConversationAnalyzer
from threadclear.analysis.models import AnalysisResult
from threadclear.capsule.models import ConversationCapsule
from threadclear.config import INSIGHT_DEFAULT_DAYS, INSIGHT_MAX_DAYS, INSIGHT_RETENTION_DAYS
from threadclear.insights import aggregator
from threadclear.insights.models import (
    DashboardSummary,
    StoredInsight,
    TopicStats,
    TrendBucket,
    utc_now,
)
from threadclear.insights.repository import InsightRepository
from threadclear.insights.transformer import InsightTransformer
from threadclear.observability.logging import get_logger
from threadclear.observability.telemetry import counter, log_event, time_block
from threadclear.taxonomy.service import TaxonomyService

logger = get_logger(__name__)


class InsightService:
    """Stores graded insights and aggregates them per organization."""

    def __init__(
        self,
        taxonomy_service: TaxonomyService,
        repository: type[InsightRepository] = InsightRepository,
    ):
        self.taxonomy_service = taxonomy_service
        self.repository = repository

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def store_insight(
        self,
        organization_id: str,
        capsule: ConversationCapsule,
        analysis: AnalysisResult,
        user_id: str | None = None,
        team_or_channel: str | None = None,
        source_type: str | None = None,
    ) -> StoredInsight:
        """
        Grade an analyzed capsule with the org taxonomy and persist it.

        Side Effects:
            - Inserts into insights / insight_findings
            - Increments insights.stored counter
        """
        taxonomy = self.taxonomy_service.get_taxonomy(organization_id)
        insight = InsightTransformer(taxonomy).transform(
            capsule,
            analysis,
            organization_id=organization_id,
            user_id=user_id,
            team_or_channel=team_or_channel,
            source_type=source_type,
        )

        with time_block("insights.store"):
            self.repository.save(insight)

        counter("insights.stored")
        log_event(
            "insights.stored",
            organization_id=organization_id,
            insight_id=insight.id,
            findings=len(insight.findings),
            overall_risk=insight.overall_risk.value,
        )
        return insight

    def analyze_and_store(
        self,
        analyzer: ConversationAnalyzer,
        organization_id: str,
        capsule: ConversationCapsule,
        user_id: str | None = None,
        team_or_channel: str | None = None,
        source_type: str | None = None,
    ) -> tuple[ConversationCapsule, StoredInsight]:
        """
        Run the external analyzer on a capsule, then store the result.

        Analyzer failures propagate to the caller; nothing is stored then.

        Returns:
            (capsule enriched with the analysis, stored insight)
        """
        analysis = analyzer.analyze(capsule)
        enriched = capsule.with_analysis(analysis)
        insight = self.store_insight(
            organization_id,
            enriched,
            analysis,
            user_id=user_id,
            team_or_channel=team_or_channel,
            source_type=source_type,
        )
        return enriched, insight

    def cleanup_old_insights(self, days: int = INSIGHT_RETENTION_DAYS) -> int:
        """Delete insights older than the retention window. Returns rows deleted."""
        if days < 1:
            raise ValueError("Retention window must be at least one day")

        deleted = self.repository.delete_older_than(utc_now() - timedelta(days=days))
        log_event("insights.cleanup", retention_days=days, deleted=deleted)
        return deleted

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_insight(self, insight_id: str) -> StoredInsight | None:
        return self.repository.get_by_id(insight_id)

    def list_recent(self, organization_id: str, limit: int) -> list[StoredInsight]:
        return self.repository.list_for_organization(organization_id, limit=limit)

    def get_dashboard_summary(
        self, organization_id: str, days: int = INSIGHT_DEFAULT_DAYS
    ) -> DashboardSummary:
        with time_block("insights.summary"):
            summary = aggregator.summarize(self._window(organization_id, days))

        log_event(
            "insights.summary",
            organization_id=organization_id,
            days=days,
            total=summary.total_conversations,
        )
        return summary

    def get_trends(
        self,
        organization_id: str,
        days: int = INSIGHT_DEFAULT_DAYS,
        group_by: str = aggregator.DEFAULT_GROUP_BY,
    ) -> list[TrendBucket]:
        """
        Raises:
            ValueError: If group_by is unsupported or days is out of range
        """
        if group_by not in aggregator.PERIOD_KEYS:
            raise ValueError(
                f"Unsupported group_by '{group_by}'. Use one of: {', '.join(aggregator.PERIOD_KEYS)}"
            )

        with time_block("insights.trends"):
            buckets = aggregator.trends(self._window(organization_id, days), group_by)

        log_event(
            "insights.trends",
            organization_id=organization_id,
            days=days,
            group_by=group_by,
            buckets=len(buckets),
        )
        return buckets

    def get_topic_breakdown(
        self, organization_id: str, days: int = INSIGHT_DEFAULT_DAYS
    ) -> list[TopicStats]:
        with time_block("insights.topics"):
            topics = aggregator.topic_breakdown(self._window(organization_id, days))

        log_event("insights.topics", organization_id=organization_id, days=days, topics=len(topics))
        return topics

    def _window(self, organization_id: str, days: int, now: datetime | None = None) -> list[StoredInsight]:
        if not 1 <= days <= INSIGHT_MAX_DAYS:
            raise ValueError(f"days must be between 1 and {INSIGHT_MAX_DAYS}")

        now = now or utc_now()
        return self.repository.list_for_organization(
            organization_id, since=now - timedelta(days=days), until=now
        )
