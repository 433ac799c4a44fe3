"""Argument checks applied to every tool call before any side effect.

Validation never coerces: a string ``"5"`` for an integer field is rejected, not
converted, so the model sees exactly which field it mis-formatted.
"""

from __future__ import annotations

import re
from datetime import datetime, tzinfo
from typing import Any, Dict, Mapping, Optional

from ..core import normalize, to_instant
from ..domain import ValidationError
from .registry import DATE_TIME_FORMAT, EMAIL_FORMAT, JsonSchema, ToolSpec

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return not value
    return False


def validate_integer(
    value: Any,
    field: str,
    *,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, value, "must be an integer")
    if minimum is not None and value < minimum:
        raise ValidationError(field, value, f"must be at least {minimum}")
    if maximum is not None and value > maximum:
        raise ValidationError(field, value, f"must be at most {maximum}")
    return value


def validate_string(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(field, value, "must be a string")
    return value


def validate_email_list(value: Any, field: str) -> list[str]:
    if not isinstance(value, list):
        raise ValidationError(field, value, "must be an array of email addresses")
    for index, item in enumerate(value):
        item_field = f"{field}[{index}]"
        if not isinstance(item, str):
            raise ValidationError(item_field, item, "must be a string email address")
        if not EMAIL_PATTERN.match(item):
            raise ValidationError(item_field, item, "must be a valid email address")
    return list(value)


def validate_ordering(start_field: str, start: str, end_field: str, end: str, *, tz: Optional[tzinfo] = None) -> None:
    """Both values are normalized timestamps; start must strictly precede end."""

    if to_instant(start, tz=tz) >= to_instant(end, tz=tz):
        raise ValidationError(start_field, start, f"must be before {end_field} ({end})")


def _validate_value(value: Any, field: str, schema: JsonSchema) -> Any:
    kind = schema.get("type")
    if kind == "integer":
        return validate_integer(value, field, minimum=schema.get("minimum"), maximum=schema.get("maximum"))
    if kind == "string":
        return validate_string(value, field)
    if kind == "array":
        items = schema.get("items") or {}
        if items.get("format") == EMAIL_FORMAT:
            return validate_email_list(value, field)
        if not isinstance(value, list):
            raise ValidationError(field, value, "must be an array")
        return list(value)
    if kind == "boolean" and not isinstance(value, bool):
        raise ValidationError(field, value, "must be a boolean")
    return value


def validate_arguments(
    spec: ToolSpec,
    arguments: Mapping[str, Any],
    *,
    tz: Optional[tzinfo] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Check ``arguments`` against ``spec`` and return the declared fields.

    Date/time fields come back normalized. Undeclared keys are dropped, and
    optional fields that are absent or null are left out of the result.
    """

    if not isinstance(arguments, Mapping):
        raise ValidationError("arguments", arguments, "must be an object")

    for name in spec.required:
        if is_empty(arguments.get(name)):
            raise ValidationError(name, arguments.get(name), "is required and cannot be empty")

    cleaned: Dict[str, Any] = {}
    for name, schema in spec.properties.items():
        value = arguments.get(name)
        if value is None:
            continue
        if schema.get("format") == DATE_TIME_FORMAT:
            # Epoch-millisecond integers are accepted alongside strings.
            if not isinstance(value, (str, int)) or isinstance(value, bool):
                raise ValidationError(name, value, "must be a date/time string")
            cleaned[name] = normalize(value, name, tz=tz, now=now)
            continue
        cleaned[name] = _validate_value(value, name, schema)

    for start_field, end_field in spec.ordering:
        if start_field in cleaned and end_field in cleaned:
            validate_ordering(start_field, cleaned[start_field], end_field, cleaned[end_field], tz=tz)

    return cleaned
