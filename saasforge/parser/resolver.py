"""Bidirectional relationship inference from the catalog association table."""

from __future__ import annotations

from saasforge.errors import ForeignKeyClashError, RelationshipResolutionError

from .catalog import Catalog
from .models import Entity, Relationship, RelationshipKind, Specification


def validate_associations(catalog: Catalog) -> None:
    """Check that every source and target of the association table is a catalog entity.

    Also rejects a source entity that already declares a field named like the
    foreign key one of its associations would add.

    Raises:
        RelationshipResolutionError: Naming the unknown kind and the entry
            that references it.
        ForeignKeyClashError: Naming the entity and the clashing field.
    """
    for source, targets in catalog.associations.items():
        definition = catalog.get_entity(source)
        if definition is None:
            raise RelationshipResolutionError(kind=source, referenced_by=source)
        field_names = {f.name for f in definition.fields}
        for target in targets:
            target_definition = catalog.get_entity(target)
            if target_definition is None:
                raise RelationshipResolutionError(kind=target, referenced_by=source)
            if target_definition is definition:
                continue
            key = Relationship(kind=RelationshipKind.BELONGS_TO, target=target_definition.name).foreign_key
            if key in field_names:
                raise ForeignKeyClashError(entity=definition.name, field=key, target=target_definition.name)


def resolve_relationships(specification: Specification, catalog: Catalog) -> Specification:
    """Return a copy of *specification* with reciprocal relationship pairs added.

    For each detected entity with an association entry, and each target in
    table order, ``belongsTo(source -> target)`` and ``hasMany(target -> source)``
    are added only when the target was also detected.  Targets that were not
    detected are dropped without creating a foreign key.
    """
    validate_associations(catalog)

    table = {source.casefold(): targets for source, targets in catalog.associations.items()}
    by_name = {e.name.casefold(): e.name for e in specification.entities}
    links: dict[str, list[Relationship]] = {e.name: list(e.relationships) for e in specification.entities}

    def _add(owner: str, relationship: Relationship) -> None:
        if relationship not in links[owner]:
            links[owner].append(relationship)

    for entity in specification.entities:
        for target in table.get(entity.name.casefold(), []):
            target_name = by_name.get(target.casefold())
            if target_name is None or target_name == entity.name:
                continue
            _add(entity.name, Relationship(kind=RelationshipKind.BELONGS_TO, target=target_name))
            _add(target_name, Relationship(kind=RelationshipKind.HAS_MANY, target=entity.name))

    entities = [_with_relationships(e, links[e.name]) for e in specification.entities]
    return specification.model_copy(update={"entities": entities})


def _with_relationships(entity: Entity, relationships: list[Relationship]) -> Entity:
    if relationships == entity.relationships:
        return entity
    # Re-validate so foreign keys are checked against the declared fields.
    return Entity.model_validate({**entity.model_dump(), "relationships": relationships})
