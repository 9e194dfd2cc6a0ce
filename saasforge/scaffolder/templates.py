"""Jinja2 template rendering for generated projects.

Provides the TemplateRenderer class which indexes the ``.j2`` files under a
template root once at construction: files in ``partials/`` and
``components/`` become partials addressed by bare name, every other file is
a template addressed by its relative path.  Jinja errors are translated into
the saasforge error hierarchy so callers can tell which template, partial or
helper was at fault.
"""

from __future__ import annotations

import re
from pathlib import Path
from types import MappingProxyType, TracebackType
from typing import Any, Callable, Mapping

from jinja2 import (
    BaseLoader,
    Environment,
    StrictUndefined,
    TemplateAssertionError,
    TemplateError,
    TemplateNotFound,
    TemplateRuntimeError,
    TemplateSyntaxError,
)

from saasforge.errors import (
    DuplicatePartialError,
    HelperNotFoundError,
    PartialNotFoundError,
    RenderError,
    TemplateNotFoundError,
)

from .helpers import build_helper_registry


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"
PARTIAL_DIRS: tuple[str, ...] = ("partials", "components")
TEMPLATE_SUFFIX = ".j2"

_MISSING_FILTER = re.compile(r"No filter named '([^']+)'")


def _discover(root: Path) -> tuple[dict[str, Path], dict[str, Path]]:
    """Index *root* into ``(templates, partials)``, rejecting duplicate partials."""
    templates: dict[str, Path] = {}
    partials: dict[str, Path] = {}
    partial_roots = [root / name for name in PARTIAL_DIRS]

    for path in sorted(root.rglob(f"*{TEMPLATE_SUFFIX}")):
        if not path.is_file():
            continue
        if any(parent in partial_roots for parent in path.parents):
            name = path.name.split(".", 1)[0]
            if name in partials:
                raise DuplicatePartialError(
                    name,
                    partials[name].relative_to(root).as_posix(),
                    path.relative_to(root).as_posix(),
                )
            partials[name] = path
        else:
            templates[path.relative_to(root).as_posix()] = path
    return templates, partials


class _RegistryLoader(BaseLoader):
    """Serve templates by relative path and partials by bare name."""

    def __init__(self, templates: Mapping[str, Path], partials: Mapping[str, Path]) -> None:
        self._sources = {**templates, **partials}

    def get_source(
        self, environment: Environment, template: str
    ) -> tuple[str, str, Callable[[], bool]]:
        path = self._sources.get(template)
        if path is None:
            raise TemplateNotFound(template)
        mtime = path.stat().st_mtime
        source = path.read_text(encoding="utf-8")
        return source, str(path), lambda: path.stat().st_mtime == mtime

    def list_templates(self) -> list[str]:
        return sorted(self._sources)


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for project generation.

    The renderer is built once and only read afterwards, so a single instance
    can be shared by any number of builds.  Rendering is a pure function of
    the template, the context and the helper registry.
    """

    def __init__(
        self,
        template_dir: str | Path | None = None,
        helpers: Mapping[str, Callable[..., Any]] | None = None,
    ) -> None:
        if template_dir is None:
            template_dir = DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.helpers = helpers if helpers is not None else build_helper_registry()

        templates, partials = _discover(self.template_dir)
        self._templates = MappingProxyType(templates)
        self._partials = MappingProxyType(partials)

        self.env = Environment(
            loader=_RegistryLoader(templates, partials),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters.update(self.helpers)

    # -- Rendering ------------------------------------------------------------

    def render(self, template_id: str, context: Mapping[str, Any]) -> str:
        """Render the template *template_id* with *context*.

        Args:
            template_id: Path relative to the template root (e.g.
                ``"entity/actions.ts.j2"``).
            context: Read-only variables available inside the template.

        Raises:
            TemplateNotFoundError: *template_id* is not a known template.
            PartialNotFoundError: An included partial does not exist.
            HelperNotFoundError: A filter is not in the helper registry.
            RenderError: Template syntax errors and undefined values.
        """
        if template_id not in self._templates:
            raise TemplateNotFoundError(template_id)
        try:
            template = self.env.get_template(template_id)
            return template.render(dict(context))
        except TemplateNotFound as exc:
            raise PartialNotFoundError(exc.name, template_id) from exc
        except (TemplateError, TypeError, ValueError, AttributeError) as exc:
            raise self._translate(exc, template_id) from exc

    def render_string(
        self, source: str, context: Mapping[str, Any], name: str = "<string>"
    ) -> str:
        """Render an inline template string (partials and helpers included)."""
        try:
            return self.env.from_string(source).render(dict(context))
        except TemplateNotFound as exc:
            raise PartialNotFoundError(exc.name, name) from exc
        except (TemplateError, TypeError, ValueError, AttributeError) as exc:
            raise self._translate(exc, name) from exc

    # -- Utility -----------------------------------------------------------

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return the sorted template ids starting with *prefix*."""
        return sorted(t for t in self._templates if t.startswith(prefix))

    @property
    def partial_names(self) -> tuple[str, ...]:
        return tuple(sorted(self._partials))

    def has_template(self, template_id: str) -> bool:
        return template_id in self._templates

    # -- Error translation -------------------------------------------------

    def _translate(self, exc: Exception, template_id: str) -> RenderError | HelperNotFoundError:
        if isinstance(exc, (TemplateAssertionError, TemplateRuntimeError)):
            missing = _MISSING_FILTER.search(str(exc))
            if missing:
                return HelperNotFoundError(missing.group(1), template_id)
        if isinstance(exc, TemplateSyntaxError):
            return RenderError(exc.name or template_id, exc.message or str(exc), line=exc.lineno)
        return RenderError(template_id, str(exc), line=self._template_line(exc, template_id))

    def _template_line(self, exc: Exception, template_id: str) -> int | None:
        filename = str(self._templates.get(template_id, template_id))
        line = None
        tb: TracebackType | None = exc.__traceback__
        while tb is not None:
            if tb.tb_frame.f_code.co_filename == filename:
                line = tb.tb_lineno
            tb = tb.tb_next
        return line
