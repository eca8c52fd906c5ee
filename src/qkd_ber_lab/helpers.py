from __future__ import annotations
from typing import Optional, Union

from .errors import ConfigurationError


# --- Input Validation Helpers ---

def validate_int(
    name: str,
    value: Union[int, float],
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
) -> int:
    """
    Validate that value is an integer within optional bounds.

    Parameters
    ----------
    name : str
        Parameter name for error messages.
    value : int or float
        Value to validate. Integral floats (e.g. ``3000.0``) are accepted.
    min_value : int, optional
        Minimum allowed value (inclusive).
    max_value : int, optional
        Maximum allowed value (inclusive).

    Returns
    -------
    int
        The validated integer value.

    Raises
    ------
    ConfigurationError
        If value is not a valid integer or out of bounds.
    """
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ConfigurationError(f"{name}: expected int, got {type(value).__name__} ({value!r})")
    if isinstance(value, float) and not value.is_integer():
        raise ConfigurationError(f"{name}: expected int, got float {value}")
    int_val = int(value)
    if min_value is not None and int_val < min_value:
        raise ConfigurationError(f"{name}: {int_val} < minimum {min_value}")
    if max_value is not None and int_val > max_value:
        raise ConfigurationError(f"{name}: {int_val} > maximum {max_value}")
    return int_val


def validate_choice(name: str, value: str, choices: tuple[str, ...]) -> str:
    """Validate that value is one of a closed set of names."""
    if value not in choices:
        raise ConfigurationError(f"{name}: {value!r} not in {', '.join(choices)}")
    return value
