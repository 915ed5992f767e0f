"""
Taxonomy models (Pydantic v2).

Every model is frozen and collection fields are tuples, so template layers can
be shared module-level constants: merging and custom add/remove always build
new objects instead of mutating a layer in place.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

WILDCARD = "*"

# "" (always true), "topic == 'x'" or "topic != 'x'" (quotes optional)
CONDITION_PATTERN = re.compile(r"^\s*topic\s*(==|!=)\s*(['\"]?)([\w-]+)\2\s*$")

_KEY_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_]*$")


class TaxonomyValidationError(ValueError):
    """Rejected taxonomy change (duplicate key, unknown category, bad rule)."""


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


BASELINE_SEVERITY = Severity.LOW
HIGH_SEVERITIES: frozenset[str] = frozenset({Severity.CRITICAL.value, Severity.HIGH.value})


def normalize_category(category: str) -> str:
    """'question-status' / 'Question Status' -> 'QUESTION_STATUS'."""
    return re.sub(r"[\s-]+", "_", category.strip()).upper()


class _TaxonomyModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class ValueDefinition(_TaxonomyModel):
    key: str
    display_name: str
    template: str = ""


class CategoryDefinition(_TaxonomyModel):
    key: str
    display_name: str
    description: str = ""
    values: tuple[ValueDefinition, ...] = ()

    def value(self, key: str) -> ValueDefinition | None:
        for value in self.values:
            if value.key == key:
                return value
        return None


class TopicDefinition(_TaxonomyModel):
    key: str
    display_name: str
    keywords: tuple[str, ...] = ()
    is_custom: bool = False

    @field_validator("key")
    @classmethod
    def _validate_key(cls, value: str) -> str:
        value = value.strip().lower()
        if not _KEY_PATTERN.match(value):
            raise ValueError(f"Invalid topic key: {value!r}")
        return value


class RoleDefinition(_TaxonomyModel):
    key: str
    display_name: str
    keywords: tuple[str, ...] = ()
    email_domain_patterns: tuple[str, ...] = ()
    is_custom: bool = False

    @field_validator("key")
    @classmethod
    def _validate_key(cls, value: str) -> str:
        value = value.strip().lower()
        if not _KEY_PATTERN.match(value):
            raise ValueError(f"Invalid role key: {value!r}")
        return value


class SeverityRule(_TaxonomyModel):
    category: str
    value: str = WILDCARD
    condition: str = ""
    severity: Severity

    @field_validator("category")
    @classmethod
    def _normalize_category(cls, value: str) -> str:
        return normalize_category(value)

    @field_validator("condition")
    @classmethod
    def _validate_condition(cls, value: str) -> str:
        value = value.strip()
        if value and not CONDITION_PATTERN.match(value):
            raise ValueError(f"Unsupported rule condition: {value!r}")
        return value

    @field_validator("severity", mode="before")
    @classmethod
    def _lower_severity(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value


class Finding(_TaxonomyModel):
    """A classified observation to grade: (category, value, topic)."""

    category: str
    value: str
    topic: str = "general"

    @field_validator("category")
    @classmethod
    def _normalize_category(cls, value: str) -> str:
        return normalize_category(value)


class IndustryLayer(_TaxonomyModel):
    """Topics, roles and rules an industry adds on top of the default template."""

    topics: tuple[TopicDefinition, ...] = ()
    roles: tuple[RoleDefinition, ...] = ()
    severity_rules: tuple[SeverityRule, ...] = ()


class TaxonomyDefinition(_TaxonomyModel):
    industry: str = "default"
    categories: tuple[CategoryDefinition, ...] = ()
    topics: tuple[TopicDefinition, ...] = ()
    roles: tuple[RoleDefinition, ...] = ()
    severity_rules: tuple[SeverityRule, ...] = ()

    def category(self, key: str) -> CategoryDefinition | None:
        normalized = normalize_category(key)
        for category in self.categories:
            if category.key == normalized:
                return category
        return None

    def topic(self, key: str) -> TopicDefinition | None:
        for topic in self.topics:
            if topic.key == key:
                return topic
        return None

    def role(self, key: str) -> RoleDefinition | None:
        for role in self.roles:
            if role.key == key:
                return role
        return None


class OrgTaxonomyOverrides(_TaxonomyModel):
    """Organization layer: industry choice plus additive custom entries."""

    industry: str = "default"
    custom_topics: tuple[TopicDefinition, ...] = ()
    custom_roles: tuple[RoleDefinition, ...] = ()
    severity_rules: tuple[SeverityRule, ...] = Field(default=())
