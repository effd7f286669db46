"""Declarative field validation.

A ``RuleSet`` is data: each ``FieldRule`` names a field and an ordered list of
``Check`` (predicate + message) pairs. Every field is evaluated independently,
the first failing check of a field is reported, and all field errors are
raised together in a single ``ValidationError``.

The same rule set serves create, update and query input:

- required-ness is enforced on CREATE only
- defaults are applied on CREATE and QUERY, never on UPDATE
- a check can be limited to some operations (e.g. "due date in the future"
  on CREATE only)
"""

import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field as dataclass_field
from enum import StrEnum
from typing import Any

from taskapi.core.config import constants
from taskapi.core.errors import FieldError, ValidationError
from taskapi.core.timestamps import parse_iso, to_iso, utc_now


Predicate = Callable[[Any], bool]
Transform = Callable[[Any], Any]

_MISSING: Any = object()

EMAIL_PATTERN = re.compile(r"^[\w.+-]+@[\w-]+(\.[\w-]+)*\.[A-Za-z]{2,}$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")
HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")
ID_PATTERN = re.compile(constants.ID_PATTERN)
INT_STRING_PATTERN = re.compile(r"^[+-]?\d+$")


class Operation(StrEnum):
    """Kinds of input a rule set can validate."""

    CREATE = "create"
    UPDATE = "update"
    QUERY = "query"


@dataclass(frozen=True)
class Check:
    """A predicate and the message reported when it fails."""

    predicate: Predicate
    message: str
    operations: frozenset[Operation] | None = None

    def applies_to(self, operation: Operation) -> bool:
        return self.operations is None or operation in self.operations


@dataclass(frozen=True)
class FieldRule:
    """Validation and normalization for one input field."""

    field: str
    checks: tuple[Check, ...] = ()
    required: bool = False
    required_message: str | None = None
    nullable: bool = False
    prepare: Transform | None = None
    normalize: Transform | None = None
    default: Any = _MISSING
    default_factory: Callable[[], Any] | None = None
    items: "FieldRule | None" = None
    nested: "RuleSet | None" = None

    def has_default(self) -> bool:
        return self.default is not _MISSING or self.default_factory is not None

    def make_default(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        return self.default


@dataclass(frozen=True)
class CrossFieldRule:
    """A check over the normalized record, reported against one field."""

    field: str
    predicate: Callable[[Mapping[str, Any]], bool]
    message: str
    operations: frozenset[Operation] | None = None


@dataclass(frozen=True)
class RuleSet:
    """An ordered table of field rules plus cross-field rules."""

    rules: tuple[FieldRule, ...]
    cross_field: tuple[CrossFieldRule, ...] = dataclass_field(default=())

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(rule.field for rule in self.rules)

    def validate(self, raw: Mapping[str, Any], operation: Operation) -> dict[str, Any]:
        """Validate raw input and return the normalized record.

        Raises:
            ValidationError: With every field error found
        """
        errors: list[FieldError] = []
        record = _apply_rules(self, raw, operation, prefix="", errors=errors)

        if not errors:
            for rule in self.cross_field:
                if rule.operations is not None and operation not in rule.operations:
                    continue
                if not rule.predicate(record):
                    errors.append(FieldError(field=rule.field, message=rule.message, value=raw.get(rule.field)))

        if errors:
            raise ValidationError("Validation failed", errors=errors)
        return record


def _apply_rules(
    rule_set: RuleSet,
    raw: Mapping[str, Any],
    operation: Operation,
    *,
    prefix: str,
    errors: list[FieldError],
) -> dict[str, Any]:
    record: dict[str, Any] = {}
    for rule in rule_set.rules:
        name = f"{prefix}{rule.field}"
        value = raw.get(rule.field, _MISSING)

        # Empty query-string parameters count as absent
        if value is _MISSING or (operation == Operation.QUERY and value == ""):
            if rule.required and operation == Operation.CREATE:
                errors.append(FieldError(field=name, message=rule.required_message or f"{name} is required"))
            elif operation != Operation.UPDATE and rule.has_default():
                record[rule.field] = rule.make_default()
            continue

        outcome = _apply_field(rule, value, operation, name=name, errors=errors)
        if outcome is not _MISSING:
            record[rule.field] = outcome
    return record


def _apply_field(rule: FieldRule, value: Any, operation: Operation, *, name: str, errors: list[FieldError]) -> Any:
    """Validate one present value. Returns the normalized value or _MISSING on error."""
    if value is None:
        if rule.nullable:
            return None
        if rule.required and operation == Operation.CREATE:
            errors.append(FieldError(field=name, message=rule.required_message or f"{name} is required", value=None))
            return _MISSING

    original = value
    if rule.prepare is not None and value is not None:
        value = rule.prepare(value)

    for check in rule.checks:
        if not check.applies_to(operation):
            continue
        if not check.predicate(value):
            errors.append(FieldError(field=name, message=check.message, value=original))
            return _MISSING

    if rule.items is not None:
        items = []
        error_count = len(errors)
        for index, item in enumerate(value):
            outcome = _apply_field(rule.items, item, operation, name=f"{name}[{index}]", errors=errors)
            items.append(outcome)
        if len(errors) > error_count:
            return _MISSING
        value = items

    if rule.nested is not None:
        error_count = len(errors)
        # Nested objects are merged field by field, so defaults fill gaps on create only
        value = _apply_rules(rule.nested, value, operation, prefix=f"{name}.", errors=errors)
        if len(errors) > error_count:
            return _MISSING

    if rule.normalize is not None:
        value = rule.normalize(value)
    return value


def ensure_valid_id(record_id: str, *, label: str = "ID", field: str = "id") -> str:
    """Validate a path identifier against the store-native id shape.

    Raises:
        ValidationError: If the id is malformed
    """
    if not is_reference_id(record_id):
        raise ValidationError(
            "Validation failed",
            errors=[FieldError(field=field, message=f"{label} must be a valid identifier", value=record_id)],
        )
    return record_id


# Predicates


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def length_between(minimum: int = 0, maximum: int | None = None) -> Predicate:
    def predicate(value: Any) -> bool:
        if not isinstance(value, str):
            return False
        return len(value) >= minimum and (maximum is None or len(value) <= maximum)

    return predicate


def max_utf8_bytes(maximum: int) -> Predicate:
    def predicate(value: Any) -> bool:
        return isinstance(value, str) and len(value.encode("utf-8")) <= maximum

    return predicate


def one_of(values: Any) -> Predicate:
    allowed = frozenset(str(v) for v in values)

    def predicate(value: Any) -> bool:
        return isinstance(value, str) and value in allowed

    return predicate


def matches(pattern: re.Pattern[str]) -> Predicate:
    def predicate(value: Any) -> bool:
        return isinstance(value, str) and pattern.match(value) is not None

    return predicate


def is_email(value: Any) -> bool:
    return isinstance(value, str) and EMAIL_PATTERN.match(value) is not None


def is_reference_id(value: Any) -> bool:
    return isinstance(value, str) and ID_PATTERN.match(value) is not None


def is_iso_date(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parse_iso(value)
    except ValueError:
        return False
    return True


def is_future_date(value: Any) -> bool:
    return is_iso_date(value) and parse_iso(value) > utc_now()


def is_number(minimum: float | None = None, maximum: float | None = None) -> Predicate:
    def predicate(value: Any) -> bool:
        if isinstance(value, bool) or not isinstance(value, int | float):
            return False
        if isinstance(value, float) and not math.isfinite(value):
            return False
        return (minimum is None or value >= minimum) and (maximum is None or value <= maximum)

    return predicate


def is_boolean(value: Any) -> bool:
    return isinstance(value, bool)


def is_list(value: Any) -> bool:
    return isinstance(value, list)


def is_object(value: Any) -> bool:
    return isinstance(value, dict)


def is_int_string(minimum: int | None = None, maximum: int | None = None) -> Predicate:
    def predicate(value: Any) -> bool:
        if not isinstance(value, str) or not INT_STRING_PATTERN.match(value.strip()):
            return False
        try:
            number = int(value)
        except ValueError:
            return False
        return (minimum is None or number >= minimum) and (maximum is None or number <= maximum)

    return predicate


def is_bool_string(value: Any) -> bool:
    return isinstance(value, str) and value.lower() in ("true", "false")


# Transforms


def trim(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def trim_lower(value: Any) -> Any:
    return lower(trim(value))


def to_iso_date(value: str) -> str:
    return to_iso(parse_iso(value))


def to_int(value: str) -> int:
    return int(value)


def to_bool(value: str) -> bool:
    return value.lower() == "true"


def unique_items(values: list[Any]) -> list[Any]:
    """De-duplicate a list while keeping first-seen order."""
    return list(dict.fromkeys(values))
