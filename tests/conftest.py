"""Shared pytest fixtures for the saasforge test suite.

Provides reusable fixtures for:
- The bundled catalog and renderer
- Fixed generation metadata (for byte-identical manifests)
- Parsed specifications for the reference descriptions
- Throw-away template roots for renderer error cases
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from saasforge.config import Config
from saasforge.parser import parse_description
from saasforge.parser.catalog import Catalog, default_catalog
from saasforge.parser.models import Specification
from saasforge.scaffolder import GenerationMeta, ManifestGenerator, TemplateRenderer, get_default_renderer


# ---------------------------------------------------------------------------
# Reference descriptions
# ---------------------------------------------------------------------------

INVOICE_DESCRIPTION = "invoice management for freelancers"
CONTRACT_DESCRIPTION = "a contract management app for law firms"
NO_SIGNAL_DESCRIPTION = "quarterly garden planting schedules"
LINKED_DESCRIPTION = "Track clients, projects and the invoices we send them"
KITCHEN_SINK_DESCRIPTION = (
    "Build me an operations hub called Atlas: clients, invoices, contracts, "
    "projects, tasks, customers, products, orders, employees, appointments, "
    "events, tickets, leads, documents, expenses, courses, students and an "
    "audit history. Team invites, stripe billing, file uploads, email "
    "reminders, analytics reports, api webhooks, search, csv export and "
    "roles. Offer a free tier, premium and enterprise plans, billed annually."
)


# ---------------------------------------------------------------------------
# Catalog & renderer
# ---------------------------------------------------------------------------

@pytest.fixture
def catalog() -> Catalog:
    """The bundled keyword catalog."""
    return default_catalog()


@pytest.fixture
def renderer() -> TemplateRenderer:
    """The process-wide renderer over the bundled templates."""
    return get_default_renderer()


@pytest.fixture
def generator(renderer: TemplateRenderer) -> ManifestGenerator:
    return ManifestGenerator(renderer)


@pytest.fixture
def fixed_meta() -> GenerationMeta:
    """Generation metadata pinned so manifests can be compared byte for byte."""
    return GenerationMeta(generation_timestamp="2026-01-15T10:30:00Z", version="0.3.0")


# ---------------------------------------------------------------------------
# Specifications
# ---------------------------------------------------------------------------

@pytest.fixture
def invoice_spec() -> Specification:
    return parse_description(INVOICE_DESCRIPTION)


@pytest.fixture
def contract_spec() -> Specification:
    return parse_description(CONTRACT_DESCRIPTION)


@pytest.fixture
def empty_spec() -> Specification:
    return parse_description(NO_SIGNAL_DESCRIPTION)


@pytest.fixture
def linked_spec() -> Specification:
    """Client, Project and Invoice with their reciprocal relationships."""
    return parse_description(LINKED_DESCRIPTION)


@pytest.fixture
def kitchen_sink_spec() -> Specification:
    """Every catalog entity, most features and several plans."""
    return parse_description(KITCHEN_SINK_DESCRIPTION)


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def template_root(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Factory writing ``{relative path: source}`` into a fresh template root."""

    def _make(files: dict[str, str]) -> Path:
        root = tmp_path / "templates"
        for relative, source in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(source, encoding="utf-8")
        root.mkdir(exist_ok=True)
        return root

    return _make


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """A Config writing into a temporary directory with a harmless install command."""
    return Config(
        output_dir=tmp_path / "output",
        install_command=["true"],
        install_timeout=30,
    )
