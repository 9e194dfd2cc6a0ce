"""Pydantic v2 models for the saasforge specification.

Defines the closed vocabularies (field types, relationship kinds, feature
scopes, billing intervals) and the immutable ``Specification`` hierarchy that
the extractor produces and the scaffolder renders.
"""

from __future__ import annotations

import re
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field as PydanticField, model_validator

from saasforge.utils import camel_case, pluralize_phrase, slugify, title_case


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class FieldType(str, Enum):
    """Closed set of field types an entity may declare."""
    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    EMAIL = "email"
    URL = "url"
    ENUM = "enum"
    JSON = "json"


class RelationshipKind(str, Enum):
    """Direction of an association between two entities."""
    BELONGS_TO = "belongsTo"
    HAS_MANY = "hasMany"


class FeatureScope(str, Enum):
    """Where a detected feature applies in the generated app."""
    APP = "app"
    ORGANIZATION = "organization"
    ENTITY = "entity"


class BillingInterval(str, Enum):
    """Billing cadence of a plan."""
    MONTH = "month"
    YEAR = "year"


# Injected by the templates for every entity; never declared by the catalog.
RESERVED_FIELD_NAMES: frozenset[str] = frozenset(
    {"id", "createdAt", "updatedAt", "organizationId"}
)

_DISPLAYABLE = {FieldType.STRING, FieldType.EMAIL, FieldType.URL}
_CAMEL_IDENTIFIER = re.compile(r"^[a-z][A-Za-z0-9]*$")
_PASCAL_IDENTIFIER = re.compile(r"^[A-Z][A-Za-z0-9]*$")

_FROZEN = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Entity Models
# ---------------------------------------------------------------------------

class Field(BaseModel):
    """A single user-declared field of an entity."""
    model_config = _FROZEN

    name: str = PydanticField(..., description="camelCase field name, e.g. 'dueDate'")
    type: FieldType = PydanticField(..., description="Field type from the closed set")
    required: bool = PydanticField(default=True, description="Whether a value is mandatory")
    unique: bool = PydanticField(default=False, description="Unique within an organization")
    default_value: Optional[Union[bool, int, Decimal, str]] = PydanticField(
        default=None, description="Default value, if any"
    )
    enum_values: Optional[list[str]] = PydanticField(
        default=None, description="Allowed values for enum fields"
    )

    @model_validator(mode="after")
    def _check_field(self) -> "Field":
        if not _CAMEL_IDENTIFIER.match(self.name):
            raise ValueError(f"field name '{self.name}' must be a camelCase identifier")
        if self.name in RESERVED_FIELD_NAMES:
            raise ValueError(f"field name '{self.name}' is reserved")
        if self.type == FieldType.ENUM:
            if not self.enum_values:
                raise ValueError(f"enum field '{self.name}' needs enum_values")
            if len(set(self.enum_values)) != len(self.enum_values):
                raise ValueError(f"enum field '{self.name}' has duplicate values")
            if self.default_value is not None and self.default_value not in self.enum_values:
                raise ValueError(
                    f"default '{self.default_value}' of '{self.name}' is not an allowed value"
                )
        elif self.enum_values is not None:
            raise ValueError(f"only enum fields may declare enum_values ('{self.name}')")
        return self

    @property
    def label(self) -> str:
        """Human-readable label, e.g. ``'Due Date'``."""
        return title_case(self.name)


class Relationship(BaseModel):
    """One side of a bidirectional association."""
    model_config = _FROZEN

    kind: RelationshipKind
    target: str = PydanticField(..., description="Name of the related entity")

    @property
    def foreign_key(self) -> str:
        """Foreign-key column on the owning side, e.g. ``'clientId'``."""
        return f"{camel_case(self.target)}Id"


class Entity(BaseModel):
    """A detected domain concept with its fields and relationships."""
    model_config = _FROZEN

    name: str = PydanticField(..., description="PascalCase entity name, e.g. 'Invoice'")
    slug: str = PydanticField(default="", description="Plural kebab-case slug, e.g. 'invoices'")
    label: str = PydanticField(default="", description="Plural display label, e.g. 'Invoices'")
    fields: list[Field] = PydanticField(default_factory=list)
    relationships: list[Relationship] = PydanticField(default_factory=list)
    user_facing: bool = PydanticField(default=True, description="Gets pages and API routes")

    @model_validator(mode="before")
    @classmethod
    def _derive_names(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("name"):
            plural = pluralize_phrase(data["name"])
            data = dict(data)
            if not data.get("slug"):
                data["slug"] = slugify(plural)
            if not data.get("label"):
                data["label"] = title_case(plural)
        return data

    @model_validator(mode="after")
    def _check_entity(self) -> "Entity":
        if not _PASCAL_IDENTIFIER.match(self.name):
            raise ValueError(f"entity name '{self.name}' must be PascalCase")
        names = [f.name for f in self.fields]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"entity '{self.name}' repeats fields: {', '.join(duplicates)}")
        for rel in self.relationships:
            if rel.kind == RelationshipKind.BELONGS_TO and rel.foreign_key in names:
                raise ValueError(
                    f"field '{rel.foreign_key}' of '{self.name}' clashes with a relationship key"
                )
        return self

    @property
    def belongs_to(self) -> list[Relationship]:
        return [r for r in self.relationships if r.kind == RelationshipKind.BELONGS_TO]

    @property
    def has_many(self) -> list[Relationship]:
        return [r for r in self.relationships if r.kind == RelationshipKind.HAS_MANY]

    @property
    def display_field(self) -> str:
        """The field used to represent a record in lists and selects."""
        for field in self.fields:
            if field.type in _DISPLAYABLE and field.required:
                return field.name
        return "id"

    @property
    def singular_label(self) -> str:
        return title_case(self.name)


# ---------------------------------------------------------------------------
# Feature, Billing & Page Models
# ---------------------------------------------------------------------------

class Feature(BaseModel):
    """An independent capability flag detected in the description."""
    model_config = _FROZEN

    name: str
    description: str = ""
    scope: FeatureScope = FeatureScope.APP


class BillingPlan(BaseModel):
    """A named pricing tier."""
    model_config = _FROZEN

    name: str
    slug: str
    price: Decimal = PydanticField(..., ge=0)
    interval: BillingInterval = BillingInterval.MONTH
    features: list[str] = PydanticField(default_factory=list)
    highlighted: bool = False


class Page(BaseModel):
    """A navigation page of the generated application."""
    model_config = _FROZEN

    name: str
    path: str
    entity: Optional[str] = None


# ---------------------------------------------------------------------------
# Top-Level Specification
# ---------------------------------------------------------------------------

class Specification(BaseModel):
    """Structured, validated result of extracting an app description."""
    model_config = _FROZEN

    name: str = PydanticField(..., min_length=1)
    slug: str = ""
    description: str = ""
    entities: list[Entity] = PydanticField(default_factory=list)
    features: list[Feature] = PydanticField(default_factory=list)
    billing_plans: list[BillingPlan] = PydanticField(default_factory=list)
    pages: list[Page] = PydanticField(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _derive_slug(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("name") and not data.get("slug"):
            data = {**data, "slug": slugify(data["name"]) or "app"}
        return data

    @model_validator(mode="after")
    def _check_uniqueness(self) -> "Specification":
        _ensure_unique("entity name", [e.name.casefold() for e in self.entities])
        _ensure_unique("entity slug", [e.slug for e in self.entities])
        _ensure_unique("feature", [f.name for f in self.features])
        _ensure_unique("billing plan slug", [p.slug for p in self.billing_plans])
        return self

    def get_entity(self, name: str) -> Entity | None:
        """Look up an entity by name, case-insensitively."""
        wanted = name.casefold()
        for entity in self.entities:
            if entity.name.casefold() == wanted:
                return entity
        return None

    @property
    def user_facing_entities(self) -> list[Entity]:
        return [e for e in self.entities if e.user_facing]

    def has_feature(self, name: str) -> bool:
        return any(f.name == name for f in self.features)


def _ensure_unique(kind: str, values: list[str]) -> None:
    seen: set[str] = set()
    for value in values:
        if value in seen:
            raise ValueError(f"duplicate {kind}: '{value}'")
        seen.add(value)
