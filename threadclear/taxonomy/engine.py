"""
Taxonomy engine - template resolution, additive merging and severity evaluation.

Three immutable layers combine into a TaxonomyDefinition:

    default template  ->  industry layer  ->  organization overrides

Every function here is pure: layers are frozen models and each operation
returns a new object. Built-in keys (default + industry) can never be removed
or renamed through the organization layer.

Severity evaluation is strictly first-match over the ordered rule list
(template rules first, then org rules). A wildcard rule listed before an exact
rule wins; rule order is the only priority.
"""

from __future__ import annotations

import fnmatch
import re
from collections.abc import Iterable, Sequence

from threadclear.observability.logging import get_logger
from threadclear.taxonomy.models import (
    BASELINE_SEVERITY,
    CONDITION_PATTERN,
    WILDCARD,
    Finding,
    OrgTaxonomyOverrides,
    RoleDefinition,
    Severity,
    SeverityRule,
    TaxonomyDefinition,
    TaxonomyValidationError,
    TopicDefinition,
)
from threadclear.taxonomy.templates import (
    DEFAULT_CATEGORIES,
    DEFAULT_INDUSTRY,
    DEFAULT_ROLES,
    DEFAULT_TOPICS,
    INDUSTRY_LAYERS,
)

logger = get_logger(__name__)

FALLBACK_TOPIC = "general"
FALLBACK_ROLE = "unknown"


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


def get_available_industries() -> list[str]:
    return list(INDUSTRY_LAYERS)


def resolve(industry: str | None) -> TaxonomyDefinition:
    """
    Build the base template for an industry.

    Unknown or empty industry keys resolve to the default template. The result
    is a fresh object built from the immutable layers on every call.
    """
    key = (industry or DEFAULT_INDUSTRY).strip().lower()
    layer = INDUSTRY_LAYERS.get(key)
    if layer is None:
        logger.warning("Unknown industry %r, using default template", industry)
        key, layer = DEFAULT_INDUSTRY, INDUSTRY_LAYERS[DEFAULT_INDUSTRY]

    return TaxonomyDefinition(
        industry=key,
        categories=DEFAULT_CATEGORIES,
        topics=_append_new(DEFAULT_TOPICS, layer.topics),
        roles=_append_new(DEFAULT_ROLES, layer.roles),
        severity_rules=layer.severity_rules,
    )


get_template = resolve


def merge(base: TaxonomyDefinition, overrides: OrgTaxonomyOverrides | None) -> TaxonomyDefinition:
    """
    Additively merge organization overrides onto a base definition.

    Custom topics/roles whose keys already exist are skipped (the base entry
    wins). Org severity rules are appended after the base rules, so they can
    refine but never pre-empt a template rule.
    """
    if overrides is None:
        return base

    return base.model_copy(
        update={
            "topics": _append_new(base.topics, overrides.custom_topics),
            "roles": _append_new(base.roles, overrides.custom_roles),
            "severity_rules": base.severity_rules + overrides.severity_rules,
        }
    )


def build_org_taxonomy(overrides: OrgTaxonomyOverrides | None) -> TaxonomyDefinition:
    industry = overrides.industry if overrides else DEFAULT_INDUSTRY
    return merge(resolve(industry), overrides)


def _append_new(existing: tuple, additions: Iterable) -> tuple:
    keys = {entry.key for entry in existing}
    merged = list(existing)
    for entry in additions:
        if entry.key in keys:
            continue
        keys.add(entry.key)
        merged.append(entry)
    return tuple(merged)


# ---------------------------------------------------------------------------
# Severity evaluation
# ---------------------------------------------------------------------------


def condition_holds(condition: str, topic: str) -> bool:
    """Evaluate a rule condition against a topic. Empty means always true."""
    if not condition or not condition.strip():
        return True

    match = CONDITION_PATTERN.match(condition)
    if not match:
        return False

    operator, _, expected = match.groups()
    if operator == "==":
        return topic == expected
    return topic != expected


def rule_matches(rule: SeverityRule, finding: Finding) -> bool:
    if rule.category != finding.category:
        return False
    if rule.value != WILDCARD and rule.value != finding.value:
        return False
    return condition_holds(rule.condition, finding.topic)


def match_rule(rules: Sequence[SeverityRule], finding: Finding) -> SeverityRule | None:
    """Return the first rule matching the finding, in list order."""
    for rule in rules:
        if rule_matches(rule, finding):
            return rule
    return None


def evaluate(rules: Sequence[SeverityRule], finding: Finding) -> Severity:
    """
    Grade a finding.

    Returns the severity of the first matching rule, or the baseline (low)
    when no rule matches.
    """
    rule = match_rule(rules, finding)
    if rule is None:
        return BASELINE_SEVERITY
    return rule.severity


# ---------------------------------------------------------------------------
# Custom topics / roles / rules (organization layer)
# ---------------------------------------------------------------------------


def add_custom_topic(
    overrides: OrgTaxonomyOverrides, topic: TopicDefinition, base: TaxonomyDefinition
) -> OrgTaxonomyOverrides:
    """
    Add a custom topic.

    Raises:
        TaxonomyValidationError: If the key is already a built-in or custom topic
    """
    if base.topic(topic.key) is not None:
        raise TaxonomyValidationError(f"Topic '{topic.key}' is a built-in topic")
    if any(existing.key == topic.key for existing in overrides.custom_topics):
        raise TaxonomyValidationError(f"Custom topic '{topic.key}' already exists")

    custom = topic.model_copy(update={"is_custom": True})
    return overrides.model_copy(update={"custom_topics": overrides.custom_topics + (custom,)})


def add_custom_role(
    overrides: OrgTaxonomyOverrides, role: RoleDefinition, base: TaxonomyDefinition
) -> OrgTaxonomyOverrides:
    """
    Add a custom role.

    Raises:
        TaxonomyValidationError: If the key is already a built-in or custom role
    """
    if base.role(role.key) is not None:
        raise TaxonomyValidationError(f"Role '{role.key}' is a built-in role")
    if any(existing.key == role.key for existing in overrides.custom_roles):
        raise TaxonomyValidationError(f"Custom role '{role.key}' already exists")

    custom = role.model_copy(update={"is_custom": True})
    return overrides.model_copy(update={"custom_roles": overrides.custom_roles + (custom,)})


def remove_custom_topic(overrides: OrgTaxonomyOverrides, key: str) -> OrgTaxonomyOverrides:
    """Remove a custom topic. Built-in or unknown keys are a logged no-op."""
    remaining = tuple(t for t in overrides.custom_topics if t.key != key)
    if len(remaining) == len(overrides.custom_topics):
        logger.warning("Topic '%s' is not a custom topic; nothing removed", key)
        return overrides
    return overrides.model_copy(update={"custom_topics": remaining})


def remove_custom_role(overrides: OrgTaxonomyOverrides, key: str) -> OrgTaxonomyOverrides:
    """Remove a custom role. Built-in or unknown keys are a logged no-op."""
    remaining = tuple(r for r in overrides.custom_roles if r.key != key)
    if len(remaining) == len(overrides.custom_roles):
        logger.warning("Role '%s' is not a custom role; nothing removed", key)
        return overrides
    return overrides.model_copy(update={"custom_roles": remaining})


def add_severity_rule(
    overrides: OrgTaxonomyOverrides, rule: SeverityRule, base: TaxonomyDefinition
) -> OrgTaxonomyOverrides:
    """
    Append an org severity rule (evaluated after every template rule).

    Raises:
        TaxonomyValidationError: If the category or value is not defined
    """
    category = base.category(rule.category)
    if category is None:
        raise TaxonomyValidationError(f"Unknown category '{rule.category}'")
    if rule.value != WILDCARD and category.value(rule.value) is None:
        raise TaxonomyValidationError(f"Unknown value '{rule.value}' for category '{rule.category}'")

    return overrides.model_copy(update={"severity_rules": overrides.severity_rules + (rule,)})


# ---------------------------------------------------------------------------
# Topic / role inference and message templates
# ---------------------------------------------------------------------------


def _keyword_pattern(keyword: str, whole_word: bool) -> re.Pattern[str]:
    suffix = r"\b" if whole_word else ""
    return re.compile(rf"\b{re.escape(keyword.lower())}{suffix}")


def infer_topic(taxonomy: TaxonomyDefinition, text: str | None) -> str:
    """First topic (definition order) with a keyword starting a word in text."""
    if not text:
        return FALLBACK_TOPIC

    lowered = text.lower()
    for topic in taxonomy.topics:
        if any(_keyword_pattern(k, whole_word=False).search(lowered) for k in topic.keywords):
            return topic.key
    return FALLBACK_TOPIC


def infer_role(taxonomy: TaxonomyDefinition, name: str | None, email: str | None = None) -> str:
    """
    First role whose keyword appears as a whole word in the participant's name,
    or whose email domain pattern (glob, e.g. "*@acme.com") matches the email.
    """
    if not name and not email:
        return FALLBACK_ROLE

    lowered = (name or "").lower()
    for role in taxonomy.roles:
        if lowered and any(_keyword_pattern(k, whole_word=True).search(lowered) for k in role.keywords):
            return role.key
        if email and any(fnmatch.fnmatch(email.lower(), p.lower()) for p in role.email_domain_patterns):
            return role.key
    return FALLBACK_ROLE


def render_template(
    taxonomy: TaxonomyDefinition, category: str, value: str, role: str, topic: str
) -> str | None:
    """Fill a category value's message template with role/topic display names."""
    category_def = taxonomy.category(category)
    value_def = category_def.value(value) if category_def else None
    if value_def is None or not value_def.template:
        return None

    role_def = taxonomy.role(role)
    topic_def = taxonomy.topic(topic)
    return value_def.template.format(
        role=role_def.display_name if role_def else role.replace("_", " ").title(),
        topic=topic_def.display_name if topic_def else topic.replace("_", " "),
    )
