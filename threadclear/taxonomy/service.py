"""
Organization taxonomy store.

Holds one OrgTaxonomyOverrides snapshot per organization. Snapshots are
immutable; writers swap in a new snapshot under a lock, so readers never see a
half-applied change. The merged taxonomy is rebuilt from the immutable
templates on every read.

Overrides can be seeded from config/taxonomy_overrides.yaml:

    organizations:
      acme-law:
        industry: legal
        custom_topics:
          - key: engagement_letter
            display_name: Engagement Letter
            keywords: [engagement letter, retainer]
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from threadclear.config import TAXONOMY_OVERRIDES_PATH
from threadclear.observability.logging import get_logger
from threadclear.observability.telemetry import counter
from threadclear.taxonomy import engine
from threadclear.taxonomy.models import (
    OrgTaxonomyOverrides,
    RoleDefinition,
    SeverityRule,
    TaxonomyDefinition,
    TaxonomyValidationError,
    TopicDefinition,
)

logger = get_logger(__name__)


def load_overrides_file(path: Path | None = None) -> dict[str, OrgTaxonomyOverrides]:
    """
    Read organization overrides from YAML.

    Side Effects:
        - Reads the overrides file from the filesystem

    Returns:
        Mapping of organization id to overrides. A missing file yields {}.

    Raises:
        TaxonomyValidationError: If an organization entry is malformed
    """
    path = path or TAXONOMY_OVERRIDES_PATH
    if not path.exists():
        logger.debug("No taxonomy overrides file at %s", path)
        return {}

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    organizations: dict[str, Any] = raw.get("organizations") or {}
    loaded: dict[str, OrgTaxonomyOverrides] = {}
    for org_id, entry in organizations.items():
        try:
            overrides = OrgTaxonomyOverrides.model_validate(entry or {})
        except ValidationError as e:
            raise TaxonomyValidationError(f"Invalid overrides for '{org_id}': {e}") from e
        loaded[str(org_id)] = overrides.model_copy(
            update={
                "custom_topics": tuple(
                    t.model_copy(update={"is_custom": True}) for t in overrides.custom_topics
                ),
                "custom_roles": tuple(
                    r.model_copy(update={"is_custom": True}) for r in overrides.custom_roles
                ),
            }
        )

    logger.info("Loaded taxonomy overrides for %d organization(s) from %s", len(loaded), path)
    return loaded


class TaxonomyService:
    """Per-organization taxonomy overrides with lock-guarded writes."""

    def __init__(self, seed: dict[str, OrgTaxonomyOverrides] | None = None) -> None:
        self._overrides: dict[str, OrgTaxonomyOverrides] = dict(seed or {})
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, path: Path | None = None) -> TaxonomyService:
        return cls(load_overrides_file(path))

    def get_available_industries(self) -> list[str]:
        return engine.get_available_industries()

    def get_template(self, industry: str) -> TaxonomyDefinition:
        return engine.resolve(industry)

    def get_overrides(self, org_id: str) -> OrgTaxonomyOverrides:
        return self._overrides.get(org_id) or OrgTaxonomyOverrides()

    def get_taxonomy(self, org_id: str) -> TaxonomyDefinition:
        """Merged taxonomy for an organization (template + its overrides)."""
        return engine.build_org_taxonomy(self.get_overrides(org_id))

    def set_industry(self, org_id: str, industry: str) -> TaxonomyDefinition:
        key = industry.strip().lower()
        if key not in engine.get_available_industries():
            raise TaxonomyValidationError(f"Unknown industry '{industry}'")

        with self._lock:
            current = self.get_overrides(org_id)
            self._overrides[org_id] = current.model_copy(update={"industry": key})

        logger.info("Organization %s switched to industry %s", org_id, key)
        return self.get_taxonomy(org_id)

    def add_topic(self, org_id: str, topic: TopicDefinition) -> TaxonomyDefinition:
        with self._lock:
            current = self.get_overrides(org_id)
            base = engine.resolve(current.industry)
            self._overrides[org_id] = engine.add_custom_topic(current, topic, base)

        counter("taxonomy.custom_topic_added")
        return self.get_taxonomy(org_id)

    def remove_topic(self, org_id: str, key: str) -> TaxonomyDefinition:
        with self._lock:
            current = self.get_overrides(org_id)
            self._overrides[org_id] = engine.remove_custom_topic(current, key)
        return self.get_taxonomy(org_id)

    def add_role(self, org_id: str, role: RoleDefinition) -> TaxonomyDefinition:
        with self._lock:
            current = self.get_overrides(org_id)
            base = engine.resolve(current.industry)
            self._overrides[org_id] = engine.add_custom_role(current, role, base)

        counter("taxonomy.custom_role_added")
        return self.get_taxonomy(org_id)

    def remove_role(self, org_id: str, key: str) -> TaxonomyDefinition:
        with self._lock:
            current = self.get_overrides(org_id)
            self._overrides[org_id] = engine.remove_custom_role(current, key)
        return self.get_taxonomy(org_id)

    def add_severity_rule(self, org_id: str, rule: SeverityRule) -> TaxonomyDefinition:
        with self._lock:
            current = self.get_overrides(org_id)
            base = engine.resolve(current.industry)
            self._overrides[org_id] = engine.add_severity_rule(current, rule, base)
        return self.get_taxonomy(org_id)
