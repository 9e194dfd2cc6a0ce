"""Rule-based extraction of a ``Specification`` from a free-text description.

Closed-vocabulary keyword and pattern matching against a ``Catalog`` -- no
language model, no network.  Every function here is a pure function of
``(description, catalog)`` and never raises for string input: absence of
signal resolves to documented defaults.
"""

from __future__ import annotations

import re
from functools import lru_cache

from .catalog import Catalog, PlanDefinition
from .models import BillingInterval, BillingPlan, Entity, Feature, Page, Specification

DEFAULT_NAME = "Untitled App"

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+")
_WORD_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9'-]*")
_NAME_CHARS = re.compile(r"[^A-Za-z0-9 -]+")

_CONNECTIVES = frozenset(
    {"for", "that", "which", "with", "to", "where", "who", "and", "so", "in", "on", "by"}
)

_EXPLICIT_NAME = re.compile(
    r"\b(?:called|named)\s+[\"'“‘]?"
    r"([A-Za-z0-9][A-Za-z0-9 -]*?)"
    r"[\"'”’]?"
    r"(?=[.,;:!?()\"'”’]|\s+(?:" + "|".join(sorted(_CONNECTIVES)) + r")\b|\s*$)",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Tokenization
# ---------------------------------------------------------------------------

def tokenize(text: str) -> list[str]:
    """Lower-case *text* and split it into ``[a-z0-9]+`` tokens."""
    return _TOKEN_PATTERN.findall(text.lower())


def _keyword_position(tokens: list[str], keyword: str) -> int | None:
    """Index of the first contiguous occurrence of *keyword* in *tokens*."""
    needle = tokenize(keyword)
    if not needle:
        return None
    width = len(needle)
    for index in range(len(tokens) - width + 1):
        if tokens[index:index + width] == needle:
            return index
    return None


def _first_match(tokens: list[str], keywords: list[str]) -> int | None:
    positions = [p for p in (_keyword_position(tokens, k) for k in keywords) if p is not None]
    return min(positions) if positions else None


# ---------------------------------------------------------------------------
# Name cascade
# ---------------------------------------------------------------------------

@lru_cache(maxsize=8)
def _noun_patterns(nouns: tuple[str, ...]) -> tuple[re.Pattern[str], re.Pattern[str]]:
    alternation = "|".join(re.escape(n) for n in sorted(nouns, key=len, reverse=True))
    imperative = re.compile(
        r"\b(?:build|create|make)\s+(?:me\s+)?(?:(?:a|an|the)\s+)?"
        r"((?:[A-Za-z0-9-]+\s+){0,3}?)(" + alternation + r")\b",
        re.IGNORECASE,
    )
    bare = re.compile(
        r"\b((?:[A-Za-z0-9-]+\s+){1,3})(" + alternation + r")\b",
        re.IGNORECASE,
    )
    return imperative, bare


def _format_word(word: str) -> str:
    # Acronyms and mixed-case brands (HR, FixBill, iPhone) are kept as written.
    if any(c.isupper() for c in word[1:]):
        return word
    return word[:1].upper() + word[1:].lower()


def _clean_name(words: list[str], catalog: Catalog) -> str:
    stop_words = {w.casefold() for w in catalog.stop_words}
    kept = []
    for word in words:
        word = _NAME_CHARS.sub("", word).strip("-")
        if word and word.casefold() not in stop_words:
            kept.append(_format_word(word))
    return " ".join(kept)


def _name_from_capture(captured: str, noun: str, catalog: Catalog) -> str:
    words = captured.split()
    # Only the words after the last connective describe the product.
    for index in range(len(words) - 1, -1, -1):
        if words[index].casefold() in _CONNECTIVES:
            words = words[index + 1:]
            break
    descriptive = {n.casefold() for n in catalog.descriptive_nouns}
    generic = {n.casefold() for n in catalog.domain_nouns} - descriptive
    words = [w for w in words if w.casefold() not in generic]
    if noun.casefold() in descriptive:
        words.append(noun)
    if all(w.casefold() in descriptive for w in words):
        return ""
    return _clean_name(words, catalog)


def extract_name(description: str, catalog: Catalog) -> str:
    """Derive the application name with a prioritized pattern cascade.

    1. ``called X`` / ``named X``
    2. ``build|create|make [me] [a|an|the] X <domain-noun>``
    3. ``X <domain-noun>``
    4. the first three significant words

    The first pattern producing a non-empty name after stop-word removal wins.
    """
    match = _EXPLICIT_NAME.search(description)
    if match:
        name = _clean_name(match.group(1).split(), catalog)
        if name:
            return name

    if catalog.domain_nouns:
        imperative, bare = _noun_patterns(tuple(catalog.domain_nouns))
        match = imperative.search(description)
        if match:
            name = _name_from_capture(match.group(1), match.group(2), catalog)
            if name:
                return name
        for match in bare.finditer(description):
            name = _name_from_capture(match.group(1), match.group(2), catalog)
            if name:
                return name

    stop_words = {w.casefold() for w in catalog.stop_words}
    significant = [
        w for w in _WORD_PATTERN.findall(description)
        if len(w) > 2 and w.casefold() not in stop_words
    ]
    return _clean_name(significant[:3], catalog) or DEFAULT_NAME


# ---------------------------------------------------------------------------
# Keyword scans
# ---------------------------------------------------------------------------

def extract_entities(description: str, catalog: Catalog) -> list[Entity]:
    """Return every catalog entity with a keyword in *description*.

    Entities are ordered by the position of their first matching keyword,
    ties broken by catalog order.  A keyword shared by several definitions
    adds all of them.
    """
    tokens = tokenize(description)
    hits: list[tuple[int, int, Entity]] = []
    for index, definition in enumerate(catalog.entities):
        position = _first_match(tokens, definition.keywords)
        if position is None:
            continue
        entity = Entity(
            name=definition.name,
            fields=list(definition.fields),
            user_facing=definition.user_facing,
        )
        hits.append((position, index, entity))
    hits.sort(key=lambda hit: (hit[0], hit[1]))
    return [entity for _, _, entity in hits]


def extract_features(description: str, catalog: Catalog) -> list[Feature]:
    """Return the catalog features whose keywords occur, in catalog order."""
    tokens = tokenize(description)
    return [
        Feature(name=d.name, description=d.description, scope=d.scope)
        for d in catalog.features
        if _first_match(tokens, d.keywords) is not None
    ]


def _to_plan(definition: PlanDefinition, interval: BillingInterval) -> BillingPlan:
    price = definition.yearly_price if interval == BillingInterval.YEAR else definition.monthly_price
    return BillingPlan(
        name=definition.name,
        slug=definition.slug,
        price=price,
        interval=interval,
        features=list(definition.features),
        highlighted=definition.highlighted,
    )


def extract_billing_plans(description: str, catalog: Catalog) -> list[BillingPlan]:
    """Return matched plans in catalog order, or the default tiers.

    An interval keyword such as ``annual`` bills every returned plan yearly.
    """
    tokens = tokenize(description)
    interval = BillingInterval.MONTH
    if _first_match(tokens, catalog.interval_keywords.get(BillingInterval.YEAR, [])) is not None:
        interval = BillingInterval.YEAR

    matched = [
        p for p in catalog.plans
        if p.keywords and _first_match(tokens, p.keywords) is not None
    ]
    return [_to_plan(p, interval) for p in (matched or catalog.default_plans)]


def derive_pages(entities: list[Entity]) -> list[Page]:
    """Navigation pages: dashboard, one per user-facing entity, then fixed pages."""
    pages = [Page(name="Dashboard", path="/dashboard")]
    pages.extend(
        Page(name=e.label, path=f"/dashboard/{e.slug}", entity=e.name)
        for e in entities
        if e.user_facing
    )
    pages.extend([
        Page(name="Team", path="/dashboard/team"),
        Page(name="Billing", path="/dashboard/billing"),
        Page(name="Settings", path="/dashboard/settings"),
        Page(name="Pricing", path="/pricing"),
    ])
    return pages


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def extract_specification(description: str, catalog: Catalog) -> Specification:
    """Run every extractor over *description* and assemble a Specification.

    Relationships are not populated here; see
    :func:`saasforge.parser.resolver.resolve_relationships`.
    """
    entities = extract_entities(description, catalog)
    return Specification(
        name=extract_name(description, catalog),
        description=description.strip(),
        entities=entities,
        features=extract_features(description, catalog),
        billing_plans=extract_billing_plans(description, catalog),
        pages=derive_pages(entities),
    )
