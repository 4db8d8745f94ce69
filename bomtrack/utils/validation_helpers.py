from __future__ import annotations

from typing import Any, Dict, List, Optional

__all__ = [
    "ValidationError",
    "validate_bounded_int",
    "validate_positive_number",
    "validate_id",
    "validate_id_list",
]


class ValidationError(ValueError):
    """Request parameters rejected before reaching the engine."""

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        super().__init__("; ".join(f"{field}: {', '.join(msgs)}" for field, msgs in errors.items()))

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})


def _coerce_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError.single(field, f"The {field} must be an integer.")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError.single(field, f"The {field} must be an integer.")
        return int(value)
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError.single(field, f"The {field} must be an integer.") from None


def validate_bounded_int(
    value: Any,
    field: str,
    *,
    minimum: int = 1,
    maximum: Optional[int] = None,
    default: Optional[int] = None,
) -> int:
    """Parse an integer parameter and enforce an inclusive range."""
    if value is None or value == "":
        if default is None:
            raise ValidationError.single(field, f"The {field} field is required.")
        return default

    number = _coerce_int(value, field)
    if number < minimum:
        raise ValidationError.single(field, f"The {field} must be at least {minimum}.")
    if maximum is not None and number > maximum:
        raise ValidationError.single(field, f"The {field} may not be greater than {maximum}.")
    return number


def validate_positive_number(value: Any, field: str) -> float:
    """Parse a strictly positive numeric quantity (fractions allowed)."""
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError.single(field, f"The {field} field is required.")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError.single(field, f"The {field} must be a number.") from None
    if number != number or number in (float("inf"), float("-inf")):
        raise ValidationError.single(field, f"The {field} must be a finite number.")
    if number <= 0:
        raise ValidationError.single(field, f"The {field} must be greater than 0.")
    return number


def validate_id(value: Any, field: str) -> int:
    return validate_bounded_int(value, field, minimum=1)


def validate_id_list(value: Any, field: str, *, max_items: Optional[int] = None) -> List[int]:
    if not isinstance(value, list) or not value:
        raise ValidationError.single(field, f"The {field} field must be a non-empty list.")
    if max_items is not None and len(value) > max_items:
        raise ValidationError.single(field, f"The {field} may not have more than {max_items} items.")
    return [validate_id(item, f"{field}.{index}") for index, item in enumerate(value)]
