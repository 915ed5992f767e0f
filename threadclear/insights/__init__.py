"""
ThreadClear insights - graded, content-free records of analyzed conversations.
"""

from threadclear.insights.aggregator import summarize, topic_breakdown, trends
from threadclear.insights.models import (
    DashboardSummary,
    InsightEntry,
    RiskLevel,
    StoredInsight,
    TopicStats,
    TrendBucket,
)
from threadclear.insights.repository import InsightRepository
from threadclear.insights.service import InsightService
from threadclear.insights.transformer import InsightTransformer

__all__ = [
    # Models
    "DashboardSummary",
    "InsightEntry",
    "RiskLevel",
    "StoredInsight",
    "TopicStats",
    "TrendBucket",
    # Aggregation
    "summarize",
    "topic_breakdown",
    "trends",
    # Storage / service
    "InsightRepository",
    "InsightService",
    "InsightTransformer",
]
