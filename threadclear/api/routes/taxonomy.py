"""Taxonomy endpoints.

- GET    /api/taxonomy/industries                          - industry keys
- GET    /api/taxonomy/industries/{industry}               - industry template
- GET    /api/organizations/{org_id}/taxonomy              - merged org taxonomy
- PUT    /api/organizations/{org_id}/taxonomy              - choose industry
- POST   /api/organizations/{org_id}/taxonomy/topics       - add custom topic
- DELETE /api/organizations/{org_id}/taxonomy/topics/{key} - remove custom topic
- POST   /api/organizations/{org_id}/taxonomy/roles        - add custom role
- DELETE /api/organizations/{org_id}/taxonomy/roles/{key}  - remove custom role
- POST   /api/organizations/{org_id}/taxonomy/rules        - append severity rule

Deleting a built-in topic or role is a no-op and still returns 200.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from threadclear.api.models import RoleCreate, SetIndustryRequest, SeverityRuleCreate, TopicCreate
from threadclear.observability.telemetry import log_event
from threadclear.taxonomy.engine import get_available_industries, resolve
from threadclear.taxonomy.models import TaxonomyDefinition, TaxonomyValidationError

if TYPE_CHECKING:
    from threadclear.taxonomy.service import TaxonomyService

router = APIRouter(prefix="/api", tags=["taxonomy"])

# Module-level storage for dependencies injected at startup
_taxonomy_service: TaxonomyService | None = None


def set_taxonomy_service(service: TaxonomyService) -> None:
    """Inject the taxonomy service dependency.

    Side Effects:
        - Sets module-level _taxonomy_service variable
    """
    global _taxonomy_service
    _taxonomy_service = service


def _service() -> TaxonomyService:
    if _taxonomy_service is None:
        raise HTTPException(status_code=500, detail="Taxonomy service not initialized")
    return _taxonomy_service


@router.get("/taxonomy/industries")
async def list_industries() -> dict[str, list[str]]:
    return {"industries": get_available_industries()}


@router.get("/taxonomy/industries/{industry}", response_model=TaxonomyDefinition)
async def get_industry_template(industry: str) -> TaxonomyDefinition:
    if industry.lower() not in get_available_industries():
        raise HTTPException(status_code=404, detail=f"Unknown industry '{industry}'")
    return resolve(industry)


@router.get("/organizations/{org_id}/taxonomy", response_model=TaxonomyDefinition)
async def get_org_taxonomy(org_id: str) -> TaxonomyDefinition:
    return _service().get_taxonomy(org_id)


@router.put("/organizations/{org_id}/taxonomy", response_model=TaxonomyDefinition)
async def set_org_industry(org_id: str, request: SetIndustryRequest) -> TaxonomyDefinition:
    service = _service()
    try:
        taxonomy = service.set_industry(org_id, request.industry)
    except TaxonomyValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    log_event("api.taxonomy.industry_set", organization_id=org_id, industry=taxonomy.industry)
    return taxonomy


@router.post("/organizations/{org_id}/taxonomy/topics", response_model=TaxonomyDefinition)
async def add_topic(org_id: str, topic: TopicCreate) -> TaxonomyDefinition:
    service = _service()
    try:
        taxonomy = service.add_topic(org_id, topic.to_definition())
    except (TaxonomyValidationError, ValidationError) as e:
        log_event("api.taxonomy.topic_rejected", organization_id=org_id, key=topic.key)
        raise HTTPException(status_code=400, detail=str(e)) from e

    log_event("api.taxonomy.topic_added", organization_id=org_id, key=topic.key)
    return taxonomy


@router.delete("/organizations/{org_id}/taxonomy/topics/{key}", response_model=TaxonomyDefinition)
async def remove_topic(org_id: str, key: str) -> TaxonomyDefinition:
    taxonomy = _service().remove_topic(org_id, key)
    log_event("api.taxonomy.topic_removed", organization_id=org_id, key=key)
    return taxonomy


@router.post("/organizations/{org_id}/taxonomy/roles", response_model=TaxonomyDefinition)
async def add_role(org_id: str, role: RoleCreate) -> TaxonomyDefinition:
    service = _service()
    try:
        taxonomy = service.add_role(org_id, role.to_definition())
    except (TaxonomyValidationError, ValidationError) as e:
        log_event("api.taxonomy.role_rejected", organization_id=org_id, key=role.key)
        raise HTTPException(status_code=400, detail=str(e)) from e

    log_event("api.taxonomy.role_added", organization_id=org_id, key=role.key)
    return taxonomy


@router.delete("/organizations/{org_id}/taxonomy/roles/{key}", response_model=TaxonomyDefinition)
async def remove_role(org_id: str, key: str) -> TaxonomyDefinition:
    taxonomy = _service().remove_role(org_id, key)
    log_event("api.taxonomy.role_removed", organization_id=org_id, key=key)
    return taxonomy


@router.post("/organizations/{org_id}/taxonomy/rules", response_model=TaxonomyDefinition)
async def add_severity_rule(org_id: str, rule: SeverityRuleCreate) -> TaxonomyDefinition:
    service = _service()
    try:
        taxonomy = service.add_severity_rule(org_id, rule.to_rule())
    except (TaxonomyValidationError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    log_event("api.taxonomy.rule_added", organization_id=org_id, category=rule.category)
    return taxonomy
