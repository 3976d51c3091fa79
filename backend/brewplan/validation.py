# Overview: Coercion of raw request values into finite numbers, strict integers and dates.

from __future__ import annotations

import math
from datetime import date

from .errors import ValidationError
from .time_utils import parse_iso_date


def _missing(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_number(value, *, field: str, required: bool = True) -> float | None:
    """
    Coerce a JSON number or numeric string to float.

    NaN and +/-infinity are rejected: every range check downstream
    (<= 0, > remaining) is False for NaN and would let it through.
    A missing value returns None unless required.
    """
    if _missing(value):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{field} must be a finite number")
    return number


def parse_int(value, *, field: str, required: bool = True) -> int | None:
    """
    Strict integer coercion.

    Accepts ints, integral floats (2.0) and plain digit strings ("12", "-3").
    Rejects booleans, decimals, scientific notation and non-finite values.
    """
    if _missing(value):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValidationError(f"{field} must be an integer")
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    raise ValidationError(f"{field} must be an integer")


def parse_non_negative_int(value, *, field: str, required: bool = True) -> int | None:
    number = parse_int(value, field=field, required=required)
    if number is not None and number < 0:
        raise ValidationError(f"{field} must be >= 0")
    return number


def parse_date(value, *, field: str):
    """YYYY-MM-DD (or a full ISO datetime) to a date; None / "" stays None."""
    if value is not None and not isinstance(value, (str, date)):
        raise ValidationError(f"{field} must be YYYY-MM-DD")
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{field} must be YYYY-MM-DD")
