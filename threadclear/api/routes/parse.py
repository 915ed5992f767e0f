"""Conversation parsing endpoints.

- POST /api/parse - raw text -> ConversationCapsule
- POST /api/analyze - parse, run the configured analyzer, store the insight
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException

from threadclear.api.models import AnalyzeRequest, AnalyzeResponse, ParseRequest
from threadclear.capsule.models import ConversationCapsule
from threadclear.ingest import parse_conversation
from threadclear.observability.telemetry import log_event

if TYPE_CHECKING:
    from threadclear.analysis.collaborator import ConversationAnalyzer
    from threadclear.insights.service import InsightService

router = APIRouter(prefix="/api", tags=["parse"])

# Module-level storage for dependencies injected at startup
_analyzer: ConversationAnalyzer | None = None
_insight_service: InsightService | None = None


def set_analyzer(analyzer: ConversationAnalyzer | None) -> None:
    """Inject the external conversation analyzer (None disables /api/analyze).

    Side Effects:
        - Sets module-level _analyzer variable
    """
    global _analyzer
    _analyzer = analyzer


def set_insight_service(service: InsightService) -> None:
    """Inject the insight service dependency.

    Side Effects:
        - Sets module-level _insight_service variable
    """
    global _insight_service
    _insight_service = service


@router.post("/parse", response_model=ConversationCapsule)
async def parse(request: ParseRequest) -> ConversationCapsule:
    """Parse pasted conversation text. Never fails on unstructured input."""
    try:
        capsule = parse_conversation(request.text, request.source_type, request.participants)
    except Exception as e:
        log_event("api.parse.error", error=type(e).__name__)
        raise HTTPException(status_code=500, detail="Failed to parse conversation") from e

    log_event("api.parse.success", **capsule.summary())
    return capsule


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(request: AnalyzeRequest) -> AnalyzeResponse:
    """Parse, analyze and store in one call.

    Side Effects:
        - Calls the external analyzer
        - Writes to insights tables via InsightService
    """
    if _insight_service is None:
        raise HTTPException(status_code=500, detail="Insight service not initialized")
    if _analyzer is None:
        raise HTTPException(status_code=503, detail="Conversation analyzer not configured")

    capsule = parse_conversation(request.text, request.source_type, request.participants)
    try:
        enriched, insight = _insight_service.analyze_and_store(
            _analyzer,
            request.organization_id,
            capsule,
            user_id=request.user_id,
            team_or_channel=request.team_or_channel,
            source_type=request.source_type,
        )
    except Exception as e:
        log_event("api.analyze.error", capsule_id=capsule.capsule_id, error=type(e).__name__)
        raise HTTPException(status_code=502, detail="Conversation analysis failed") from e

    log_event("api.analyze.success", insight_id=insight.id, **capsule.summary())
    return AnalyzeResponse(capsule=enriched, insight=insight)
