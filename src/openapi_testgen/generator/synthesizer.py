"""Derives expected-response assertions from schema fields."""

import re

from openapi_testgen.generator.model import Assertion, Matcher, make_assertion
from openapi_testgen.parser.base import EndpointInfo, FieldType, SchemaField

MAX_ASSERTION_DEPTH = 3

UUID_PATTERN = r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
URL_PATTERN = r"^https?://"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
DATE_PREFIX_PATTERN = r"^\d{4}-\d{2}-\d{2}"

_FORMAT_RULES: dict[str, tuple[Matcher, str]] = {
    "uuid": (Matcher.MATCHES_PATTERN, UUID_PATTERN),
    "email": (Matcher.CONTAINS, "@"),
    "uri": (Matcher.MATCHES_PATTERN, URL_PATTERN),
    "url": (Matcher.MATCHES_PATTERN, URL_PATTERN),
    "date": (Matcher.MATCHES_PATTERN, DATE_PATTERN),
    "date-time": (Matcher.MATCHES_PATTERN, DATE_PREFIX_PATTERN),
}

_ARRAY_SEGMENT = re.compile(r"\[0\]")


def field_to_assertions(field: SchemaField) -> list[Assertion]:
    """Assertions for one field, most specific rule first.

    An enum is decisive. Format, pattern, numeric bounds, length and array
    size add up; only when none of them apply do the name heuristics and
    finally the type fallback kick in.
    """
    if field.dot_depth > MAX_ASSERTION_DEPTH:
        return []

    path = field.path

    if field.enum_values:
        return [make_assertion(path, Matcher.ONE_OF, list(field.enum_values))]

    result: list[Assertion] = []
    result.extend(_format_assertions(field))
    result.extend(_bound_assertions(field))
    result.extend(_length_assertions(field))
    result.extend(_size_assertions(field))
    if result:
        return result

    inferred = _name_assertions(field)
    if inferred:
        return inferred

    return [_type_fallback(field)]


def _format_assertions(field: SchemaField) -> list[Assertion]:
    if field.field_type is not FieldType.STRING:
        return []
    rule = _FORMAT_RULES.get((field.format or "").lower())
    if rule:
        matcher, value = rule
        return [make_assertion(field.path, matcher, value)]
    if field.pattern:
        return [make_assertion(field.path, Matcher.MATCHES_PATTERN, field.pattern)]
    return []


def _bound_assertions(field: SchemaField) -> list[Assertion]:
    result = []
    if field.minimum is not None:
        result.append(make_assertion(field.path, Matcher.GREATER_THAN_OR_EQUAL, field.minimum))
    if field.maximum is not None:
        result.append(make_assertion(field.path, Matcher.LESS_THAN_OR_EQUAL, field.maximum))
    if field.exclusive_minimum is not None:
        result.append(make_assertion(field.path, Matcher.GREATER_THAN, field.exclusive_minimum))
    if field.exclusive_maximum is not None:
        result.append(make_assertion(field.path, Matcher.LESS_THAN, field.exclusive_maximum))
    return result


def _length_assertions(field: SchemaField) -> list[Assertion]:
    result = []
    if field.min_length:
        result.append(make_assertion(field.path, Matcher.HAS_MIN_LENGTH, field.min_length))
    if field.max_length is not None:
        result.append(make_assertion(field.path, Matcher.HAS_MAX_LENGTH, field.max_length))
    return result


def _size_assertions(field: SchemaField) -> list[Assertion]:
    # Item counts live on the array field, or on the element standing in for it
    if field.is_array_element:
        container = field.path.removesuffix("[0]") or "$"
    elif field.field_type is FieldType.ARRAY:
        container = field.path
    else:
        return []
    result = []
    if field.min_items:
        result.append(make_assertion(container, Matcher.HAS_SIZE_GREATER_THAN, field.min_items - 1))
    if field.max_items is not None:
        result.append(make_assertion(container, Matcher.HAS_SIZE_LESS_THAN, field.max_items + 1))
    return result


def _name_assertions(field: SchemaField) -> list[Assertion]:
    if field.field_type is FieldType.ARRAY:
        return []
    name = field.name.lower()
    is_string = field.field_type is FieldType.STRING

    if name == "id" or name.endswith("_id") or name.endswith("id"):
        return [make_assertion(field.path, Matcher.NOT_NULL)]
    if is_string and "email" in name:
        return [make_assertion(field.path, Matcher.CONTAINS, "@")]
    if is_string and ("url" in name or "link" in name):
        return [make_assertion(field.path, Matcher.MATCHES_PATTERN, URL_PATTERN)]
    if is_string and (name.endswith("_at") or "date" in name):
        return [make_assertion(field.path, Matcher.MATCHES_PATTERN, DATE_PREFIX_PATTERN)]
    if "count" in name or "total" in name:
        return [make_assertion(field.path, Matcher.GREATER_THAN_OR_EQUAL, 0)]
    return []


def _type_fallback(field: SchemaField) -> Assertion:
    if field.field_type is FieldType.ARRAY:
        return make_assertion(field.path, Matcher.NOT_EMPTY)
    if field.field_type is FieldType.BOOLEAN:
        return make_assertion(field.path, Matcher.IS_TYPE, FieldType.BOOLEAN)
    if field.field_type in (FieldType.INTEGER, FieldType.NUMBER):
        return make_assertion(field.path, Matcher.IS_TYPE, FieldType.NUMBER)
    return make_assertion(field.path, Matcher.NOT_NULL)


def insert_array_guards(assertions: list[Assertion]) -> list[Assertion]:
    """Put a NOT_EMPTY on each array before the first assertion indexing into it.

    ``items[0].tags[0].name`` is guarded by ``items`` then ``items[0].tags``;
    a root array is guarded at ``$``. Each container is guarded once.
    """
    guarded: set[str] = set()
    result: list[Assertion] = []

    for assertion in assertions:
        for match in _ARRAY_SEGMENT.finditer(assertion.path):
            prefix = assertion.path[: match.start()] or "$"
            if prefix in guarded:
                continue
            guarded.add(prefix)
            result.append(make_assertion(prefix, Matcher.NOT_EMPTY))
        result.append(assertion)
        if assertion.matcher == Matcher.NOT_EMPTY:
            guarded.add(assertion.path)

    return result


def build_response_assertions(endpoint: EndpointInfo) -> list[Assertion]:
    """Ordered, guarded response assertions for an endpoint's success response."""
    if not endpoint.has_response_schema:
        return [make_assertion("$", Matcher.NOT_NULL)]

    assertions = [a for f in endpoint.response_fields for a in field_to_assertions(f)]
    if not assertions:
        return [make_assertion("$", Matcher.NOT_NULL)]
    return insert_array_guards(assertions)
