"""Template helpers and field-type mapping tables.

Helpers are pure functions installed into the Jinja environment as filters,
e.g. ``{{ entity.name|camel_case }}`` or ``{{ field|prisma_type }}``.  The
registry is built once and is read-only afterwards.
"""

from __future__ import annotations

import json as _json
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Callable, Mapping

from pydantic import TypeAdapter

from saasforge.errors import TypeMappingError
from saasforge.parser.models import Field, FieldType
from saasforge.utils import (
    camel_case,
    pascal_case,
    pluralize_phrase,
    singularize,
    slugify,
    snake_case,
    title_case,
)


# ---------------------------------------------------------------------------
# Type-mapping tables
# ---------------------------------------------------------------------------

PRISMA_TYPES: Mapping[FieldType, str] = MappingProxyType({
    FieldType.STRING: "String",
    FieldType.TEXT: "String",
    FieldType.INTEGER: "Int",
    FieldType.DECIMAL: "Decimal",
    FieldType.BOOLEAN: "Boolean",
    FieldType.DATE: "DateTime",
    FieldType.DATETIME: "DateTime",
    FieldType.EMAIL: "String",
    FieldType.URL: "String",
    FieldType.ENUM: "String",
    FieldType.JSON: "Json",
})

INPUT_TYPES: Mapping[FieldType, str] = MappingProxyType({
    FieldType.STRING: "text",
    FieldType.TEXT: "textarea",
    FieldType.INTEGER: "number",
    FieldType.DECIMAL: "number",
    FieldType.BOOLEAN: "checkbox",
    FieldType.DATE: "date",
    FieldType.DATETIME: "datetime-local",
    FieldType.EMAIL: "email",
    FieldType.URL: "url",
    FieldType.ENUM: "select",
    FieldType.JSON: "textarea",
})

TS_TYPES: Mapping[FieldType, str] = MappingProxyType({
    FieldType.STRING: "string",
    FieldType.TEXT: "string",
    FieldType.INTEGER: "number",
    FieldType.DECIMAL: "number",
    FieldType.BOOLEAN: "boolean",
    FieldType.DATE: "Date",
    FieldType.DATETIME: "Date",
    FieldType.EMAIL: "string",
    FieldType.URL: "string",
    FieldType.ENUM: "string",
    FieldType.JSON: "unknown",
})

TYPE_TABLES: Mapping[str, Mapping[FieldType, str]] = MappingProxyType({
    "prisma": PRISMA_TYPES,
    "input": INPUT_TYPES,
    "typescript": TS_TYPES,
})

# Form readers exported by the generated src/lib/form-data.ts.
_FORM_READERS: Mapping[FieldType, tuple[str, str]] = MappingProxyType({
    FieldType.STRING: ("requiredString", "optionalString"),
    FieldType.TEXT: ("requiredString", "optionalString"),
    FieldType.INTEGER: ("requiredInt", "optionalInt"),
    FieldType.DECIMAL: ("requiredNumber", "optionalNumber"),
    FieldType.BOOLEAN: ("checkbox", "checkbox"),
    FieldType.DATE: ("requiredDate", "optionalDate"),
    FieldType.DATETIME: ("requiredDate", "optionalDate"),
    FieldType.EMAIL: ("requiredString", "optionalString"),
    FieldType.URL: ("requiredString", "optionalString"),
    FieldType.ENUM: ("requiredString", "optionalString"),
    FieldType.JSON: ("jsonValue", "jsonValue"),
})


def verify_type_maps(tables: Mapping[str, Mapping[FieldType, str]] = TYPE_TABLES) -> None:
    """Raise ``TypeMappingError`` unless every table covers every field type."""
    for table_name, table in tables.items():
        for field_type in FieldType:
            if field_type not in table:
                raise TypeMappingError(field_type.value, table_name)


def _field_type(value: Field | FieldType | str) -> FieldType:
    if isinstance(value, Field):
        return value.type
    try:
        return FieldType(value)
    except ValueError:
        raise TypeMappingError(str(value), "field types") from None


def _lookup(table_name: str, value: Field | FieldType | str) -> str:
    field_type = _field_type(value)
    mapped = TYPE_TABLES[table_name].get(field_type)
    if mapped is None:
        raise TypeMappingError(field_type.value, table_name)
    return mapped


def prisma_type(value: Field | FieldType | str) -> str:
    return _lookup("prisma", value)


def input_type(value: Field | FieldType | str) -> str:
    return _lookup("input", value)


def ts_type(value: Field | FieldType | str) -> str:
    return _lookup("typescript", value)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def prisma_default(field: Field) -> str:
    """Prisma ``@default(...)`` attribute for *field*, or an empty string."""
    value = field.default_value
    if value is None:
        return ""
    if isinstance(value, bool):
        literal = "true" if value else "false"
    elif isinstance(value, (int, Decimal)) and field.type in (FieldType.INTEGER, FieldType.DECIMAL):
        literal = str(value)
    else:
        literal = _json.dumps(str(value))
    return f"@default({literal})"


def form_value(field: Field, source: str = "formData") -> str:
    """TypeScript expression reading *field* from a ``FormData`` value."""
    required_reader, optional_reader = _FORM_READERS[field.type]
    reader = required_reader if field.required else optional_reader
    return f'form.{reader}({source}, "{field.name}")'


def display_value(field: Field, record: str = "record") -> str:
    """TSX expression rendering *field* of *record* as text."""
    ref = f"{record}.{field.name}"
    if field.type == FieldType.BOOLEAN:
        return f'{ref} ? "Yes" : "No"'
    if field.type == FieldType.DATE:
        return f'{ref} ? {ref}.toLocaleDateString() : ""'
    if field.type == FieldType.DATETIME:
        return f'{ref} ? {ref}.toLocaleString() : ""'
    if field.type == FieldType.JSON:
        return f"JSON.stringify({ref} ?? null)"
    if field.type in (FieldType.INTEGER, FieldType.DECIMAL):
        return f'{ref} == null ? "" : String({ref})'
    return f'{ref} ?? ""'


def input_value(field: Field, record: str = "record") -> str:
    """TSX expression used as the default value of *field*'s form control."""
    ref = f"{record}.{field.name}"
    if field.type == FieldType.BOOLEAN:
        return ref
    if field.type == FieldType.DATE:
        return f'{ref} ? {ref}.toISOString().slice(0, 10) : ""'
    if field.type == FieldType.DATETIME:
        return f'{ref} ? {ref}.toISOString().slice(0, 16) : ""'
    if field.type == FieldType.JSON:
        return f"JSON.stringify({ref} ?? null)"
    if field.type in (FieldType.INTEGER, FieldType.DECIMAL):
        return f'{ref} == null ? "" : String({ref})'
    return f'{ref} ?? ""'


def price(value: Decimal | int | float | str) -> str:
    """Format a price for display: ``29`` -> ``$29``, ``4.5`` -> ``$4.50``."""
    amount = Decimal(str(value))
    if amount == amount.to_integral_value():
        return f"${int(amount):,}"
    return f"${amount:,.2f}"


# ---------------------------------------------------------------------------
# Combinators & serialization
# ---------------------------------------------------------------------------

def eq(left: Any, right: Any) -> bool:
    return left == right


def ne(left: Any, right: Any) -> bool:
    return left != right


def either(left: Any, *others: Any) -> Any:
    """First truthy argument, else the last one."""
    for value in (left, *others):
        if value:
            return value
    return others[-1] if others else left


def every(left: Any, *others: Any) -> bool:
    return all((left, *others))


_JSONABLE: TypeAdapter[Any] = TypeAdapter(Any)


def to_json(value: Any, indent: int | None = None) -> str:
    """Serialize *value* as JSON that is also safe inside TSX and HTML."""
    plain = _JSONABLE.dump_python(value, mode="json")
    text = _json.dumps(plain, indent=indent, ensure_ascii=False)
    return text.replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")


def plural(value: str) -> str:
    """``"AuditEntry"`` -> ``"AuditEntries"``, keeping the input's casing style."""
    words = pluralize_phrase(value).split()
    if not words:
        return ""
    if value[:1].isupper():
        return "".join(w.capitalize() for w in words)
    return camel_case(" ".join(words))


def singular(value: str) -> str:
    return singularize(value)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

def build_helper_registry() -> Mapping[str, Callable[..., Any]]:
    """Verify the type tables and return the read-only helper registry."""
    verify_type_maps()
    return MappingProxyType({
        "pascal_case": pascal_case,
        "camel_case": camel_case,
        "snake_case": snake_case,
        "kebab_case": slugify,
        "title_case": title_case,
        "plural": plural,
        "singular": singular,
        "prisma_type": prisma_type,
        "input_type": input_type,
        "ts_type": ts_type,
        "prisma_default": prisma_default,
        "form_value": form_value,
        "display_value": display_value,
        "input_value": input_value,
        "price": price,
        "eq": eq,
        "ne": ne,
        "either": either,
        "every": every,
        "json": to_json,
    })
