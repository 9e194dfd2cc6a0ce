"""Exception hierarchy for the saasforge build pipeline.

Every error is fatal to the build that raised it.  Each carries the name of
the stage that failed plus a ``context`` dict with the identifiers needed to
fix the root cause (template id, entity, field, path, ...).
"""

from __future__ import annotations

from typing import Any


class SaasForgeError(Exception):
    """Base class for all pipeline errors."""

    stage = "build"

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(f"{self.stage}: {message}")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class CatalogError(SaasForgeError):
    """Raised when the keyword catalog cannot be loaded or validated."""

    stage = "catalog"


class RelationshipResolutionError(SaasForgeError):
    """Raised when the association table names an entity outside the catalog."""

    stage = "resolve"

    def __init__(self, kind: str, referenced_by: str) -> None:
        self.kind = kind
        self.referenced_by = referenced_by
        super().__init__(
            f"association table entry '{referenced_by}' references unknown entity kind '{kind}'",
            kind=kind,
            referenced_by=referenced_by,
        )


class ForeignKeyClashError(RelationshipResolutionError):
    """Raised when an entity declares a field named like one of its foreign keys."""

    def __init__(self, entity: str, field: str, target: str) -> None:
        self.kind = target
        self.referenced_by = entity
        self.entity = entity
        self.field = field
        SaasForgeError.__init__(
            self,
            f"field '{field}' of '{entity}' clashes with the foreign key to '{target}'",
            entity=entity,
            field=field,
            target=target,
        )


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class RenderError(SaasForgeError):
    """Raised when a template cannot be rendered into valid output."""

    stage = "render"

    def __init__(self, template: str, detail: str, line: int | None = None) -> None:
        self.template = template
        self.detail = detail
        self.line = line
        where = f"{template}:{line}" if line is not None else template
        super().__init__(f"{where}: {detail}", template=template, line=line)


class TemplateNotFoundError(SaasForgeError):
    """Raised when a template id is not part of the template set."""

    stage = "render"

    def __init__(self, template: str) -> None:
        self.template = template
        super().__init__(f"template '{template}' not found", template=template)


class HelperNotFoundError(SaasForgeError):
    """Raised when a template references a helper that was never registered."""

    stage = "render"

    def __init__(self, helper: str, template: str) -> None:
        self.helper = helper
        self.template = template
        super().__init__(
            f"helper '{helper}' referenced by '{template}' is not registered",
            helper=helper,
            template=template,
        )


class PartialNotFoundError(SaasForgeError):
    """Raised when a template includes a partial that does not exist."""

    stage = "render"

    def __init__(self, partial: str, template: str) -> None:
        self.partial = partial
        self.template = template
        super().__init__(
            f"partial '{partial}' included by '{template}' not found",
            partial=partial,
            template=template,
        )


class DuplicatePartialError(SaasForgeError):
    """Raised at load time when two partial files resolve to the same name."""

    stage = "load"

    def __init__(self, name: str, first: str, second: str) -> None:
        self.name = name
        self.paths = (first, second)
        super().__init__(
            f"partial '{name}' is defined twice: {first} and {second}",
            partial=name,
            paths=[first, second],
        )


class TypeMappingError(SaasForgeError):
    """Raised when a field type has no entry in a type-mapping table."""

    stage = "render"

    def __init__(self, field_type: str, table: str) -> None:
        self.field_type = field_type
        self.table = table
        super().__init__(
            f"field type '{field_type}' has no entry in the '{table}' mapping table",
            field_type=field_type,
            table=table,
        )


class OutputSyntaxError(RenderError):
    """Raised when a rendered file fails target-language syntax validation."""

    stage = "validate"

    def __init__(self, path: str, template: str, detail: str, line: int | None = None) -> None:
        self.path = path
        super().__init__(template, f"{path}: {detail}", line=line)
        self.context["path"] = path


# ---------------------------------------------------------------------------
# Manifest & delivery
# ---------------------------------------------------------------------------


class ManifestCollisionError(SaasForgeError):
    """Raised when two manifest entries would be written to the same path."""

    stage = "manifest"

    def __init__(self, path: str, first_template: str, second_template: str) -> None:
        self.path = path
        self.templates = (first_template, second_template)
        super().__init__(
            f"'{path}' is produced by both '{first_template}' and '{second_template}'",
            path=path,
            templates=[first_template, second_template],
        )


class InstallError(SaasForgeError):
    """Raised when the post-write dependency install fails."""

    stage = "install"
