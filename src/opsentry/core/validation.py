"""Local field validation producing ValidationFailure errors."""

import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Pattern, Union

from opsentry.core.errors import ValidationFailure


@dataclass(frozen=True)
class FieldRule:
    """Validation rules for a single field.

    Attributes:
        required: Field must be present and truthy
        min_length: Minimum length of the value
        max_length: Maximum length of the value
        pattern: Regex the value must match (``re.search``)
        custom: Callable ``(value, data) -> Optional[str]`` returning an error message
    """

    required: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[Union[str, Pattern[str]]] = None
    custom: Optional[Callable[[Any, Mapping[str, Any]], Optional[str]]] = None


def validate_fields(data: Mapping[str, Any], schema: Mapping[str, FieldRule]) -> bool:
    """Validate ``data`` against ``schema``.

    Each field keeps one message; when several rules fail for the same
    field the last one wins.

    Returns:
        True when every field passes.

    Raises:
        ValidationFailure: With a field -> message mapping.
    """
    errors: dict[str, str] = {}

    for field_name, rule in schema.items():
        value = data.get(field_name)

        if rule.required and not value:
            errors[field_name] = f"{field_name} is required"

        sized = hasattr(value, "__len__")

        if rule.min_length is not None and sized and len(value) < rule.min_length:
            errors[field_name] = f"{field_name} must be at least {rule.min_length} characters"

        if rule.max_length is not None and sized and len(value) > rule.max_length:
            errors[field_name] = f"{field_name} must be less than {rule.max_length} characters"

        if rule.pattern is not None and not re.search(rule.pattern, "" if value is None else str(value)):
            errors[field_name] = f"{field_name} is invalid"

        if rule.custom is not None:
            custom_error = rule.custom(value, data)
            if custom_error:
                errors[field_name] = custom_error

    if errors:
        raise ValidationFailure("Validation failed", fields=errors)

    return True
