"""File manifest generation: the orchestrator of the rendering stage.

Renders the fixed global template set once, then the per-entity template set
for every user-facing entity, and returns the ordered ``(path, content)``
manifest.  Nothing is returned unless every file rendered and validated.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Iterator, Mapping

from pydantic import BaseModel, ConfigDict

from saasforge.errors import ManifestCollisionError
from saasforge.parser.models import Entity, Specification

from .context import GenerationMeta, build_entity_context, build_global_context
from .syntax import validate_output
from .templates import TemplateRenderer


# ---------------------------------------------------------------------------
# Template sets
# ---------------------------------------------------------------------------

GLOBAL_TEMPLATES: tuple[tuple[str, str], ...] = (
    ("global/package.json.j2", "package.json"),
    ("global/tsconfig.json.j2", "tsconfig.json"),
    ("global/README.md.j2", "README.md"),
    ("global/env.example.j2", ".env.example"),
    ("global/tailwind.config.ts.j2", "tailwind.config.ts"),
    ("global/postcss.config.js.j2", "postcss.config.js"),
    ("global/schema.prisma.j2", "prisma/schema.prisma"),
    ("global/lib/db.ts.j2", "src/lib/db.ts"),
    ("global/lib/auth.ts.j2", "src/lib/auth.ts"),
    ("global/lib/auth-utils.ts.j2", "src/lib/auth-utils.ts"),
    ("global/lib/plans.ts.j2", "src/lib/plans.ts"),
    ("global/lib/form-data.ts.j2", "src/lib/form-data.ts"),
    ("global/actions/settings.ts.j2", "src/lib/actions/settings.ts"),
    ("global/actions/team.ts.j2", "src/lib/actions/team.ts"),
    ("global/actions/billing.ts.j2", "src/lib/actions/billing.ts"),
    ("global/api/auth-route.ts.j2", "src/app/api/auth/[...nextauth]/route.ts"),
    ("global/app/globals.css.j2", "src/app/globals.css"),
    ("global/app/layout.tsx.j2", "src/app/layout.tsx"),
    ("global/app/page.tsx.j2", "src/app/page.tsx"),
    ("global/app/pricing.tsx.j2", "src/app/pricing/page.tsx"),
    ("global/dashboard/layout.tsx.j2", "src/app/dashboard/layout.tsx"),
    ("global/dashboard/page.tsx.j2", "src/app/dashboard/page.tsx"),
    ("global/dashboard/settings.tsx.j2", "src/app/dashboard/settings/page.tsx"),
    ("global/dashboard/team.tsx.j2", "src/app/dashboard/team/page.tsx"),
    ("global/dashboard/billing.tsx.j2", "src/app/dashboard/billing/page.tsx"),
    ("global/saasforge.json.j2", "saasforge.json"),
)

# Rendered in this order for every user-facing entity; ``{slug}`` is the
# entity slug.
ENTITY_TEMPLATES: tuple[tuple[str, str], ...] = (
    ("entity/list.tsx.j2", "src/app/dashboard/{slug}/page.tsx"),
    ("entity/detail.tsx.j2", "src/app/dashboard/{slug}/[id]/page.tsx"),
    ("entity/new.tsx.j2", "src/app/dashboard/{slug}/new/page.tsx"),
    ("entity/edit.tsx.j2", "src/app/dashboard/{slug}/[id]/edit/page.tsx"),
    ("entity/actions.ts.j2", "src/lib/actions/{slug}.ts"),
    ("entity/api-collection.ts.j2", "src/app/api/{slug}/route.ts"),
    ("entity/api-item.ts.j2", "src/app/api/{slug}/[id]/route.ts"),
)


class ManifestEntry(BaseModel):
    """One generated file: a project-relative path and its content."""
    model_config = ConfigDict(frozen=True)

    path: str
    content: str


@lru_cache(maxsize=1)
def get_default_renderer() -> TemplateRenderer:
    """The renderer over the bundled templates, built once per process."""
    return TemplateRenderer()


# ---------------------------------------------------------------------------
# ManifestGenerator
# ---------------------------------------------------------------------------


class ManifestGenerator:
    """Turns a ``Specification`` into an ordered file manifest.

    The renderer is only read, so one generator (or one renderer shared by
    several generators) can serve any number of builds.
    """

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        validate_output: bool = True,
    ) -> None:
        self.renderer = renderer if renderer is not None else get_default_renderer()
        self.validate_output = validate_output

    def plan(self, specification: Specification) -> list[tuple[str, str, Entity | None]]:
        """Return ``(template_id, path, entity)`` for every file, in manifest order.

        Raises:
            ManifestCollisionError: If two files would share a path.
        """
        owners: dict[str, str] = {}
        planned: list[tuple[str, str, Entity | None]] = []
        for template_id, path, entity in self._iter_targets(specification):
            if path in owners:
                raise ManifestCollisionError(path, owners[path], template_id)
            owners[path] = template_id
            planned.append((template_id, path, entity))
        return planned

    def generate(
        self, specification: Specification, meta: GenerationMeta | None = None
    ) -> list[ManifestEntry]:
        """Render every planned file and return the complete manifest.

        Args:
            specification: The resolved specification.
            meta: Generation metadata shared by all files; captured now when
                omitted.

        Raises:
            ManifestCollisionError: Duplicate output path.
            RenderError: A template failed to render or its output failed
                validation (``OutputSyntaxError``).
        """
        meta = meta or GenerationMeta.capture()
        entries: list[ManifestEntry] = []
        for template_id, path, entity in self.plan(specification):
            if entity is None:
                context = build_global_context(specification, meta)
            else:
                context = build_entity_context(specification, entity, meta)
            entries.append(ManifestEntry(path=path, content=self._render(template_id, path, context)))
        return entries

    # -- Internal ---------------------------------------------------------

    def _iter_targets(
        self, specification: Specification
    ) -> Iterator[tuple[str, str, Entity | None]]:
        for template_id, path in GLOBAL_TEMPLATES:
            yield template_id, path, None
        for entity in specification.user_facing_entities:
            for template_id, pattern in ENTITY_TEMPLATES:
                yield template_id, pattern.format(slug=entity.slug), entity

    def _render(self, template_id: str, path: str, context: Mapping[str, object]) -> str:
        content = self.renderer.render(template_id, context)
        if self.validate_output:
            validate_output(path, content, template_id)
        return content
