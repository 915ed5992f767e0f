"""
Insight aggregation - pure functions over an already-scoped list of insights.

The caller (InsightService) picks the organization and time window; nothing
here touches storage. Empty input yields zero-valued summaries and empty trend
series, never an error.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Callable, Sequence
from datetime import datetime

from threadclear.insights.models import (
    DashboardSummary,
    RiskLevel,
    StoredInsight,
    TopicStats,
    TrendBucket,
)
from threadclear.taxonomy.models import HIGH_SEVERITIES


def _hour(ts: datetime) -> str:
    return ts.strftime("%Y-%m-%dT%H:00")


def _day(ts: datetime) -> str:
    return ts.strftime("%Y-%m-%d")


def _week(ts: datetime) -> str:
    # ISO week, Monday start: "2026-W07"
    year, week, _ = ts.isocalendar()
    return f"{year}-W{week:02d}"


def _month(ts: datetime) -> str:
    return ts.strftime("%Y-%m")


PERIOD_KEYS: dict[str, Callable[[datetime], str]] = {
    "hour": _hour,
    "day": _day,
    "week": _week,
    "month": _month,
}
DEFAULT_GROUP_BY = "day"


def _average_health(insights: Sequence[StoredInsight]) -> float:
    if not insights:
        return 0.0
    return round(sum(i.health_score for i in insights) / len(insights), 1)


def summarize(insights: Sequence[StoredInsight]) -> DashboardSummary:
    """Risk counts, average health and frequency tables."""
    risk_counts = Counter(i.overall_risk for i in insights)
    by_source = Counter(i.source_type for i in insights)
    by_category = Counter(f.category for i in insights for f in i.findings)

    return DashboardSummary(
        total_conversations=len(insights),
        high_risk_count=risk_counts[RiskLevel.HIGH],
        medium_risk_count=risk_counts[RiskLevel.MEDIUM],
        low_risk_count=risk_counts[RiskLevel.LOW],
        average_health_score=_average_health(insights),
        total_findings=sum(by_category.values()),
        by_source_type=dict(by_source.most_common()),
        by_category=dict(by_category.most_common()),
    )


def trends(insights: Sequence[StoredInsight], group_by: str = DEFAULT_GROUP_BY) -> list[TrendBucket]:
    """
    Bucket insights by period, ascending. Periods with no insights are omitted.

    Raises:
        ValueError: If group_by is not hour, day, week or month
    """
    period_key = PERIOD_KEYS.get(group_by)
    if period_key is None:
        raise ValueError(f"Unsupported group_by '{group_by}'. Use one of: {', '.join(PERIOD_KEYS)}")

    buckets: dict[str, list[StoredInsight]] = defaultdict(list)
    for insight in insights:
        buckets[period_key(insight.timestamp)].append(insight)

    return [
        TrendBucket(
            period=period,
            conversation_count=len(members),
            high_risk_count=sum(1 for i in members if i.overall_risk == RiskLevel.HIGH),
            average_health_score=_average_health(members),
        )
        for period, members in sorted(buckets.items())
    ]


def topic_breakdown(insights: Sequence[StoredInsight]) -> list[TopicStats]:
    """Per-topic finding counts, most frequent first (ties by topic key)."""
    counts: Counter[str] = Counter()
    high: Counter[str] = Counter()
    categories: dict[str, Counter[str]] = defaultdict(Counter)

    for insight in insights:
        for finding in insight.findings:
            counts[finding.topic] += 1
            categories[finding.topic][finding.category] += 1
            if finding.severity.value in HIGH_SEVERITIES:
                high[finding.topic] += 1

    return [
        TopicStats(
            topic=topic,
            count=count,
            high_severity_count=high[topic],
            by_category=dict(categories[topic].most_common()),
        )
        for topic, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]
