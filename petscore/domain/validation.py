"""
Centralized validation rules for product input.

Validators return ``(is_valid, error_message)`` and never raise; callers
decide whether a failure is an error or only lowers confidence.
"""
import math
from typing import Iterable, Optional, Tuple


def validate_percentage(value: Optional[float], field_name: str) -> Tuple[bool, str]:
    """
    Validate a declared percentage.

    Args:
        value: Percentage (None means "not declared" and is valid)
        field_name: Field name used in the message

    Returns:
        (is_valid, error_message)
    """
    if value is None:
        return True, ""

    if not math.isfinite(value):
        return False, f"{field_name} is not a number ({value!r})"

    if value < 0.0:
        return False, f"{field_name} cannot be negative ({value:g})"

    if value > 100.0:
        return False, f"{field_name} cannot exceed 100% ({value:g})"

    return True, ""


def validate_positive_amount(value: Optional[float], field_name: str) -> Tuple[bool, str]:
    """Validate a price or energy value: missing is fine, zero/negative is not."""
    if value is None:
        return True, ""

    if not math.isfinite(value):
        return False, f"{field_name} is not a number ({value!r})"

    if value <= 0.0:
        return False, f"{field_name} must be positive ({value:g})"

    return True, ""


def validate_macro_total(values: Iterable[Optional[float]], tolerance: float = 0.5) -> Tuple[bool, str]:
    """
    Validate that declared analysis components do not exceed 100%.

    Args:
        values: Declared percentages; None entries are skipped
        tolerance: Rounding slack allowed on labels

    Returns:
        (is_valid, error_message)
    """
    total = sum(v for v in values if v is not None)
    if total > 100.0 + tolerance:
        return False, f"declared analysis sums to {total:g}%, above 100%"
    return True, ""
