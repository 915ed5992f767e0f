"""
ThreadClear taxonomy - industry templates, org overrides and severity rules.
"""

from threadclear.taxonomy.engine import (
    evaluate,
    get_available_industries,
    get_template,
    infer_role,
    infer_topic,
    merge,
    resolve,
)
from threadclear.taxonomy.models import (
    Finding,
    OrgTaxonomyOverrides,
    RoleDefinition,
    Severity,
    SeverityRule,
    TaxonomyDefinition,
    TaxonomyValidationError,
    TopicDefinition,
)
from threadclear.taxonomy.service import TaxonomyService

__all__ = [
    # Engine
    "evaluate",
    "get_available_industries",
    "get_template",
    "infer_role",
    "infer_topic",
    "merge",
    "resolve",
    # Models
    "Finding",
    "OrgTaxonomyOverrides",
    "RoleDefinition",
    "Severity",
    "SeverityRule",
    "TaxonomyDefinition",
    "TaxonomyValidationError",
    "TopicDefinition",
    # Service
    "TaxonomyService",
]
