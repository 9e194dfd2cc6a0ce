"""Closed keyword catalog used by the extractor and the resolver.

The catalog is plain configuration data (``catalog.json`` next to this
module, or any JSON file with the same shape) loaded once into an immutable
``Catalog`` model and passed explicitly to the extraction functions, so that
extraction is a pure function of ``(description, catalog)``.
"""

from __future__ import annotations

import json
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field as PydanticField, ValidationError, model_validator

from saasforge.errors import CatalogError
from saasforge.utils import load_json

from .models import BillingInterval, FeatureScope, Field

DEFAULT_CATALOG_PATH = Path(__file__).parent / "catalog.json"

_STRICT = ConfigDict(frozen=True, extra="forbid")


# ---------------------------------------------------------------------------
# Catalog entries
# ---------------------------------------------------------------------------

class EntityDefinition(BaseModel):
    """An entity kind the extractor can detect, with its fixed field list."""
    model_config = _STRICT

    name: str
    keywords: list[str] = PydanticField(..., min_length=1)
    fields: list[Field] = PydanticField(default_factory=list)
    user_facing: bool = True


class FeatureDefinition(BaseModel):
    """A capability flag and the keywords that switch it on."""
    model_config = _STRICT

    name: str
    description: str = ""
    scope: FeatureScope = FeatureScope.APP
    keywords: list[str] = PydanticField(..., min_length=1)


class PlanDefinition(BaseModel):
    """A pricing tier; ``default`` tiers are used when no plan keyword matches."""
    model_config = _STRICT

    name: str
    slug: str
    monthly_price: Decimal = PydanticField(..., ge=0)
    yearly_price: Decimal = PydanticField(..., ge=0)
    features: list[str] = PydanticField(default_factory=list)
    highlighted: bool = False
    default: bool = False
    keywords: list[str] = PydanticField(default_factory=list)


class Catalog(BaseModel):
    """The complete closed vocabulary."""
    model_config = _STRICT

    entities: list[EntityDefinition] = PydanticField(default_factory=list)
    associations: dict[str, list[str]] = PydanticField(
        default_factory=dict,
        description="Entity name -> entity names it belongs to",
    )
    features: list[FeatureDefinition] = PydanticField(default_factory=list)
    plans: list[PlanDefinition] = PydanticField(default_factory=list)
    interval_keywords: dict[BillingInterval, list[str]] = PydanticField(default_factory=dict)
    domain_nouns: list[str] = PydanticField(default_factory=list)
    descriptive_nouns: list[str] = PydanticField(
        default_factory=list,
        description="Domain nouns kept in the extracted name, e.g. 'tracker'",
    )
    stop_words: list[str] = PydanticField(default_factory=list)

    @model_validator(mode="after")
    def _check_catalog(self) -> "Catalog":
        names = [e.name.casefold() for e in self.entities]
        if len(set(names)) != len(names):
            raise ValueError("entity names must be unique (case-insensitive)")
        slugs = [p.slug for p in self.plans]
        if len(set(slugs)) != len(slugs):
            raise ValueError("plan slugs must be unique")
        if self.plans and not any(p.default for p in self.plans):
            raise ValueError("at least one plan must be marked as default")
        return self

    def get_entity(self, name: str) -> EntityDefinition | None:
        """Look up an entity definition by name, case-insensitively."""
        wanted = name.casefold()
        for definition in self.entities:
            if definition.name.casefold() == wanted:
                return definition
        return None

    @property
    def default_plans(self) -> list[PlanDefinition]:
        return [p for p in self.plans if p.default]


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_catalog(path: str | Path | None = None) -> Catalog:
    """Load and validate a catalog JSON file.

    Args:
        path: Catalog file; the bundled ``catalog.json`` when omitted.

    Raises:
        CatalogError: If the file is missing, is not a JSON object, or fails
            validation (unknown keys included).
    """
    catalog_path = Path(path) if path is not None else DEFAULT_CATALOG_PATH
    try:
        raw = load_json(catalog_path)
    except FileNotFoundError as exc:
        raise CatalogError(f"catalog file not found: {catalog_path}", path=str(catalog_path)) from exc
    except json.JSONDecodeError as exc:
        raise CatalogError(
            f"catalog file is not valid JSON: {catalog_path} (line {exc.lineno})",
            path=str(catalog_path),
        ) from exc
    if "_root" in raw:
        raise CatalogError(
            f"catalog file {catalog_path} must contain a JSON object", path=str(catalog_path)
        )

    try:
        return Catalog.model_validate(raw)
    except ValidationError as exc:
        raise CatalogError(
            f"catalog file {catalog_path} is invalid: {exc.error_count()} error(s)\n{exc}",
            path=str(catalog_path),
        ) from exc


@lru_cache(maxsize=1)
def default_catalog() -> Catalog:
    """Return the bundled catalog, loaded once per process."""
    return load_catalog(DEFAULT_CATALOG_PATH)
