"""Description parsing: keyword extraction plus relationship resolution."""

from __future__ import annotations

from .catalog import Catalog, default_catalog, load_catalog
from .extractor import extract_specification
from .models import Specification
from .resolver import resolve_relationships


def parse_description(description: str, catalog: Catalog | None = None) -> Specification:
    """Extract a Specification from *description* and resolve its relationships.

    Args:
        description: Free-text application description.
        catalog: Keyword catalog; the bundled one when omitted.
    """
    catalog = catalog if catalog is not None else default_catalog()
    return resolve_relationships(extract_specification(description, catalog), catalog)


__all__ = [
    "Catalog",
    "Specification",
    "default_catalog",
    "extract_specification",
    "load_catalog",
    "parse_description",
    "resolve_relationships",
]
