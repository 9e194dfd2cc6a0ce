"""Template contexts: the read-only data visible to a single render call."""

from __future__ import annotations

from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict

from saasforge import __version__
from saasforge.parser.models import Entity, Specification


class GenerationMeta(BaseModel):
    """Generation metadata captured once per build and shared by every file."""
    model_config = ConfigDict(frozen=True)

    generation_timestamp: str
    version: str

    @classmethod
    def capture(cls, version: str | None = None, now: datetime | None = None) -> "GenerationMeta":
        """Snapshot the current UTC time and the package version.

        Args:
            version: Override the reported version (defaults to ``__version__``).
            now: Override the clock; naive values are taken as UTC.
        """
        moment = now or datetime.now(timezone.utc)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        stamp = moment.astimezone(timezone.utc).replace(microsecond=0).isoformat()
        return cls(generation_timestamp=stamp.replace("+00:00", "Z"), version=version or __version__)

def build_global_context(specification: Specification, meta: GenerationMeta) -> Mapping[str, Any]:
    """Context for specification-wide templates."""
    return MappingProxyType({
        "specification": specification,
        "generation_timestamp": meta.generation_timestamp,
        "version": meta.version,
    })

def build_entity_context(
    specification: Specification, entity: Entity, meta: GenerationMeta
) -> Mapping[str, Any]:
    """Context for per-entity templates: the global context plus ``entity``."""
    return MappingProxyType({
        "specification": specification,
        "entity": entity,
        "generation_timestamp": meta.generation_timestamp,
        "version": meta.version,
    })
