"""Tests for saasforge.parser.extractor -- keyword and pattern extraction."""

from __future__ import annotations

from decimal import Decimal

import pytest

from saasforge.parser.extractor import (
    DEFAULT_NAME,
    derive_pages,
    extract_billing_plans,
    extract_entities,
    extract_features,
    extract_name,
    extract_specification,
    tokenize,
)
from saasforge.parser.models import BillingInterval, Entity

pytestmark = pytest.mark.unit

INVOICE_DESCRIPTION = "invoice management for freelancers"
NO_SIGNAL_DESCRIPTION = "quarterly garden planting schedules"
KITCHEN_SINK_DESCRIPTION = (
    "Build me an operations hub called Atlas: clients, invoices, contracts, "
    "projects, tasks, customers, products, orders, employees, appointments, "
    "events, tickets, leads, documents, expenses, courses, students and an "
    "audit history. Team invites, stripe billing, file uploads, email "
    "reminders, analytics reports, api webhooks, search, csv export and "
    "roles. Offer a free tier, premium and enterprise plans, billed annually."
)


class TestTokenize:
    def test_lowercases_and_splits(self):
        assert tokenize("Invoice-Management, for 2 Freelancers!") == [
            "invoice", "management", "for", "2", "freelancers",
        ]

    def test_drops_non_ascii_words(self):
        assert tokenize("café 🚀 crm") == ["caf", "crm"]

    def test_empty(self):
        assert tokenize("") == []


# ---------------------------------------------------------------------------
# Name cascade
# ---------------------------------------------------------------------------


class TestExtractName:
    @pytest.mark.parametrize(
        ("description", "expected"),
        [
            ("invoice management for freelancers", "Invoice Management"),
            ("a contract management app for law firms", "Contract Management"),
            ("an app called Ledgerly for freelancers", "Ledgerly"),
            ('a tool named "Ship Log" that tracks deliveries', "Ship Log"),
            ("Build me a time tracker for agencies", "Time Tracker"),
            ("a simple invoicing platform for agencies", "Invoicing"),
            ("help desk for dog grooming planner", "Dog Grooming Planner"),
            ("quarterly garden planting schedules", "Quarterly Garden Planting"),
        ],
    )
    def test_cascade(self, catalog, description, expected):
        assert extract_name(description, catalog) == expected

    def test_explicit_name_wins_over_domain_noun(self, catalog):
        description = "an invoice management tool called Ledgerly"
        assert extract_name(description, catalog) == "Ledgerly"

    def test_acronyms_keep_their_case(self, catalog):
        assert extract_name("an app called HR Desk", catalog) == "HR Desk"

    @pytest.mark.parametrize(
        ("description", "expected"),
        [
            ("an invoicing tool called FixBill", "FixBill"),
            ("a repair log named iPhone Fixers", "iPhone Fixers"),
            ("an app called ledgerly", "Ledgerly"),
        ],
    )
    def test_mixed_case_words_keep_their_case(self, catalog, description, expected):
        assert extract_name(description, catalog) == expected

    @pytest.mark.parametrize("description", ["", "   ", "!!! ??", "🚀🚀🚀", "a an the"])
    def test_defaults_when_nothing_significant(self, catalog, description):
        assert extract_name(description, catalog) == DEFAULT_NAME


# ---------------------------------------------------------------------------
# Keyword scans
# ---------------------------------------------------------------------------


class TestExtractEntities:
    def test_single_keyword_yields_catalog_entity(self, catalog):
        for definition in catalog.entities:
            description = f"software for our {definition.keywords[0]} records"
            entities = extract_entities(description, catalog)
            assert [e.name for e in entities] == [definition.name], description
            assert entities[0].fields == definition.fields
            assert entities[0].user_facing == definition.user_facing

    def test_no_keywords(self, catalog):
        assert extract_entities(NO_SIGNAL_DESCRIPTION, catalog) == []

    def test_ordered_by_first_mention(self, catalog):
        entities = extract_entities("students enrolled in courses, billed by invoice", catalog)
        assert [e.name for e in entities] == ["Student", "Course", "Invoice"]

    def test_shared_keyword_adds_every_definition(self, catalog):
        entities = extract_entities("online bookings for my studio", catalog)
        assert [e.name for e in entities] == ["Appointment", "Event"]

    def test_each_entity_once(self, catalog):
        entities = extract_entities("invoice invoices invoicing", catalog)
        assert [e.name for e in entities] == ["Invoice"]

    def test_whole_tokens_only(self, catalog):
        assert extract_entities("reorder the ordering", catalog) == []

    def test_relationships_not_populated(self, catalog):
        entities = extract_entities("invoices for clients", catalog)
        assert all(e.relationships == [] for e in entities)


class TestExtractFeatures:
    def test_catalog_order(self, catalog):
        features = extract_features("csv export, email reminders and team invites", catalog)
        assert [f.name for f in features] == ["Team Management", "Email Notifications", "Data Export"]

    def test_copies_catalog_metadata(self, catalog):
        (feature,) = extract_features("add stripe", catalog)
        assert feature.name == "Subscription Billing"
        assert feature.description

    def test_none(self, catalog):
        assert extract_features(INVOICE_DESCRIPTION, catalog) == []


class TestExtractBillingPlans:
    def test_defaults(self, catalog):
        plans = extract_billing_plans(INVOICE_DESCRIPTION, catalog)
        assert [p.name for p in plans] == ["Starter", "Pro", "Business"]
        assert [p.price for p in plans] == [Decimal("9"), Decimal("29"), Decimal("99")]
        assert all(p.interval == BillingInterval.MONTH for p in plans)
        assert [p.highlighted for p in plans] == [False, True, False]

    def test_matched_plans_in_catalog_order(self, catalog):
        plans = extract_billing_plans("enterprise pricing and a premium tier", catalog)
        assert [p.slug for p in plans] == ["pro", "enterprise"]

    def test_multi_word_keyword_must_be_contiguous(self, catalog):
        plans = extract_billing_plans("free of charge for every tier", catalog)
        assert [p.slug for p in plans] == ["starter", "pro", "business"]
        plans = extract_billing_plans("offer a free tier", catalog)
        assert [p.slug for p in plans] == ["free"]

    def test_yearly_interval(self, catalog):
        plans = extract_billing_plans("billed annually", catalog)
        assert all(p.interval == BillingInterval.YEAR for p in plans)
        assert [p.price for p in plans] == [Decimal("90"), Decimal("290"), Decimal("990")]

    def test_never_empty(self, catalog):
        assert extract_billing_plans("", catalog)


class TestDerivePages:
    def test_layout(self):
        entities = [Entity(name="Invoice"), Entity(name="AuditEntry", user_facing=False)]
        pages = derive_pages(entities)
        assert [p.path for p in pages] == [
            "/dashboard",
            "/dashboard/invoices",
            "/dashboard/team",
            "/dashboard/billing",
            "/dashboard/settings",
            "/pricing",
        ]
        assert pages[1].entity == "Invoice"
        assert pages[1].name == "Invoices"


# ---------------------------------------------------------------------------
# extract_specification
# ---------------------------------------------------------------------------


class TestExtractSpecification:
    def test_invoice_scenario(self, catalog):
        spec = extract_specification(INVOICE_DESCRIPTION, catalog)
        assert spec.name == "Invoice Management"
        assert spec.slug == "invoice-management"
        assert [e.name for e in spec.entities] == ["Invoice"]
        assert spec.features == []
        assert spec.description == INVOICE_DESCRIPTION

    def test_no_signal_scenario(self, catalog):
        spec = extract_specification(NO_SIGNAL_DESCRIPTION, catalog)
        assert spec.entities == []
        assert spec.features == []
        assert len(spec.billing_plans) == 3
        assert [p.path for p in spec.pages][0] == "/dashboard"

    def test_kitchen_sink(self, catalog):
        spec = extract_specification(KITCHEN_SINK_DESCRIPTION, catalog)
        assert spec.name == "Atlas"
        assert len(spec.entities) == len(catalog.entities)
        assert len(spec.features) == len(catalog.features)
        assert [p.slug for p in spec.billing_plans] == ["free", "pro", "enterprise"]
        assert all(p.interval == BillingInterval.YEAR for p in spec.billing_plans)

    def test_deterministic(self, catalog):
        first = extract_specification(KITCHEN_SINK_DESCRIPTION, catalog)
        second = extract_specification(KITCHEN_SINK_DESCRIPTION, catalog)
        assert first == second

    @pytest.mark.parametrize(
        "description",
        ["", " ", "{{ name }}", "{% for x in y %}", "\x00\n\t", "ü" * 500, "a " * 2000],
    )
    def test_never_raises(self, catalog, description):
        spec = extract_specification(description, catalog)
        assert spec.name
        assert spec.billing_plans
