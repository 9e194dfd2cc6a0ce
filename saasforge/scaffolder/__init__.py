"""Rendering stage: template contexts, helpers, the renderer and the manifest."""

from .context import GenerationMeta, build_entity_context, build_global_context
from .generator import (
    ENTITY_TEMPLATES,
    GLOBAL_TEMPLATES,
    ManifestEntry,
    ManifestGenerator,
    get_default_renderer,
)
from .helpers import build_helper_registry, verify_type_maps
from .syntax import validate_output
from .templates import TemplateRenderer

__all__ = [
    "ENTITY_TEMPLATES",
    "GLOBAL_TEMPLATES",
    "GenerationMeta",
    "ManifestEntry",
    "ManifestGenerator",
    "TemplateRenderer",
    "build_entity_context",
    "build_global_context",
    "build_helper_registry",
    "get_default_renderer",
    "validate_output",
    "verify_type_maps",
]
