"""Tests for saasforge.parser.resolver -- bidirectional relationship inference."""

from __future__ import annotations

import pytest

from saasforge.errors import ForeignKeyClashError, RelationshipResolutionError
from saasforge.parser import parse_description
from saasforge.parser.extractor import extract_specification
from saasforge.parser.models import Field, FieldType, RelationshipKind, Specification
from saasforge.parser.resolver import resolve_relationships, validate_associations

pytestmark = pytest.mark.unit


def _pairs(spec: Specification, kind: RelationshipKind) -> set[tuple[str, str]]:
    return {
        (entity.name, rel.target)
        for entity in spec.entities
        for rel in entity.relationships
        if rel.kind == kind
    }


class TestResolveRelationships:
    def test_reciprocal_pair(self, catalog):
        spec = parse_description("invoices for our clients", catalog)
        invoice, client = spec.get_entity("Invoice"), spec.get_entity("Client")
        assert [(r.kind, r.target) for r in invoice.relationships] == [
            (RelationshipKind.BELONGS_TO, "Client"),
        ]
        assert [(r.kind, r.target) for r in client.relationships] == [
            (RelationshipKind.HAS_MANY, "Invoice"),
        ]

    def test_table_order_is_kept(self, linked_spec):
        assert [e.name for e in linked_spec.entities] == ["Client", "Project", "Invoice"]
        client = linked_spec.get_entity("Client")
        invoice = linked_spec.get_entity("Invoice")
        project = linked_spec.get_entity("Project")
        assert [r.target for r in client.has_many] == ["Project", "Invoice"]
        assert [r.target for r in invoice.belongs_to] == ["Client", "Project"]
        assert [r.target for r in project.belongs_to] == ["Client"]
        assert [r.target for r in project.has_many] == ["Invoice"]

    def test_undetected_target_is_dropped(self, contract_spec):
        (contract,) = contract_spec.entities
        assert contract.name == "Contract"
        assert contract.relationships == []

    def test_symmetry(self, kitchen_sink_spec):
        belongs = _pairs(kitchen_sink_spec, RelationshipKind.BELONGS_TO)
        has_many = _pairs(kitchen_sink_spec, RelationshipKind.HAS_MANY)
        assert belongs
        assert {(target, source) for source, target in belongs} == has_many

    def test_every_target_is_detected(self, kitchen_sink_spec):
        names = {e.name for e in kitchen_sink_spec.entities}
        for entity in kitchen_sink_spec.entities:
            assert {r.target for r in entity.relationships} <= names

    def test_no_duplicates_when_resolved_twice(self, catalog, kitchen_sink_spec):
        assert resolve_relationships(kitchen_sink_spec, catalog) == kitchen_sink_spec
        for entity in kitchen_sink_spec.entities:
            assert len(entity.relationships) == len(set(entity.relationships))

    def test_input_is_not_modified(self, catalog):
        raw = extract_specification("invoices for our clients", catalog)
        resolved = resolve_relationships(raw, catalog)
        assert all(e.relationships == [] for e in raw.entities)
        assert resolved is not raw

    def test_no_entities(self, catalog, empty_spec):
        assert resolve_relationships(empty_spec, catalog) == empty_spec


class TestValidateAssociations:
    def test_bundled_table_is_valid(self, catalog):
        validate_associations(catalog)

    def test_unknown_target(self, catalog):
        broken = catalog.model_copy(update={"associations": {"Invoice": ["Unicorn"]}})
        with pytest.raises(RelationshipResolutionError) as exc_info:
            validate_associations(broken)
        assert exc_info.value.kind == "Unicorn"
        assert exc_info.value.referenced_by == "Invoice"
        assert exc_info.value.stage == "resolve"

    def test_unknown_source(self, catalog):
        broken = catalog.model_copy(update={"associations": {"Unicorn": ["Client"]}})
        with pytest.raises(RelationshipResolutionError) as exc_info:
            validate_associations(broken)
        assert exc_info.value.kind == "Unicorn"

    def test_field_named_like_foreign_key(self, catalog):
        invoice = catalog.get_entity("Invoice")
        clashing = invoice.model_copy(update={
            "fields": [*invoice.fields, Field(name="clientId", type=FieldType.STRING)],
        })
        broken = catalog.model_copy(update={
            "entities": [clashing if d.name == "Invoice" else d for d in catalog.entities],
            "associations": {"Invoice": ["Client"]},
        })
        with pytest.raises(ForeignKeyClashError) as exc_info:
            parse_description("invoice for client", broken)
        assert exc_info.value.entity == "Invoice"
        assert exc_info.value.field == "clientId"
        assert exc_info.value.stage == "resolve"
        assert isinstance(exc_info.value, RelationshipResolutionError)

    def test_resolve_fails_fast_on_broken_table(self, catalog):
        broken = catalog.model_copy(update={"associations": {"Invoice": ["Unicorn"]}})
        spec = extract_specification("invoices for our clients", broken)
        with pytest.raises(RelationshipResolutionError):
            resolve_relationships(spec, broken)
