"""Insight storage and dashboard endpoints.

- POST /api/insights/store                              - grade and store an analyzed capsule
- GET  /api/insights/{insight_id}                       - one stored insight
- GET  /api/organizations/{org_id}/insights             - most recent insights
- GET  /api/organizations/{org_id}/insights/summary     - dashboard summary
- GET  /api/organizations/{org_id}/insights/trends      - time-bucketed trends
- GET  /api/organizations/{org_id}/insights/topics      - topic breakdown
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Query

from threadclear.api.models import StoreInsightRequest
from threadclear.config import (
    API_LIST_LIMIT_DEFAULT,
    API_LIST_LIMIT_MAX,
    INSIGHT_DEFAULT_DAYS,
    INSIGHT_MAX_DAYS,
)
from threadclear.insights.models import DashboardSummary, StoredInsight, TopicStats, TrendBucket
from threadclear.observability.telemetry import log_event

if TYPE_CHECKING:
    from threadclear.insights.service import InsightService

router = APIRouter(prefix="/api", tags=["insights"])

# Module-level storage for dependencies injected at startup
_insight_service: InsightService | None = None


def set_insight_service(service: InsightService) -> None:
    """Inject the insight service dependency.

    Side Effects:
        - Sets module-level _insight_service variable
    """
    global _insight_service
    _insight_service = service


def _service() -> InsightService:
    if _insight_service is None:
        raise HTTPException(status_code=500, detail="Insight service not initialized")
    return _insight_service


DaysQuery = Query(default=INSIGHT_DEFAULT_DAYS, ge=1, le=INSIGHT_MAX_DAYS)


@router.post("/insights/store", response_model=StoredInsight, status_code=201)
async def store_insight(request: StoreInsightRequest) -> StoredInsight:
    """Grade an analyzed capsule against the org taxonomy and store it.

    Side Effects:
        - Writes to insights / insight_findings tables
    """
    service = _service()
    try:
        return service.store_insight(
            request.organization_id,
            request.capsule,
            request.analysis,
            user_id=request.user_id,
            team_or_channel=request.team_or_channel,
            source_type=request.source_type,
        )
    except Exception as e:
        log_event("api.insights.store_error", organization_id=request.organization_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to store insight") from e


@router.get("/insights/{insight_id}", response_model=StoredInsight)
async def get_insight(insight_id: str) -> StoredInsight:
    insight = _service().get_insight(insight_id)
    if insight is None:
        raise HTTPException(status_code=404, detail="Insight not found")
    return insight


@router.get("/organizations/{org_id}/insights", response_model=list[StoredInsight])
async def list_insights(
    org_id: str,
    limit: int = Query(default=API_LIST_LIMIT_DEFAULT, ge=1, le=API_LIST_LIMIT_MAX),
) -> list[StoredInsight]:
    return _service().list_recent(org_id, limit)


@router.get("/organizations/{org_id}/insights/summary", response_model=DashboardSummary)
async def get_summary(org_id: str, days: int = DaysQuery) -> DashboardSummary:
    service = _service()
    try:
        return service.get_dashboard_summary(org_id, days)
    except Exception as e:
        log_event("api.insights.summary_error", organization_id=org_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to build summary") from e


@router.get("/organizations/{org_id}/insights/trends", response_model=list[TrendBucket])
async def get_trends(
    org_id: str,
    days: int = DaysQuery,
    group_by: str = Query(default="day", max_length=16),
) -> list[TrendBucket]:
    service = _service()
    try:
        return service.get_trends(org_id, days, group_by)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        log_event("api.insights.trends_error", organization_id=org_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to build trends") from e


@router.get("/organizations/{org_id}/insights/topics", response_model=list[TopicStats])
async def get_topics(org_id: str, days: int = DaysQuery) -> list[TopicStats]:
    service = _service()
    try:
        return service.get_topic_breakdown(org_id, days)
    except Exception as e:
        log_event("api.insights.topics_error", organization_id=org_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to build topic breakdown") from e
