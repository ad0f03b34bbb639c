"""
Unit conversion and locale-independent number formatting.

STF readers expect meters and a dot decimal separator. Formatting here never
consults the process locale or the host document's number settings.
"""

import math
import re
from decimal import Decimal
from typing import Optional, Union

from stfexport.core.errors import MalformedQuantity
from stfexport.core.models import Point3D, Quantity

FEET_TO_METERS = 0.3048

# Matches the precision of the host's default double rendering
SIGNIFICANT_DIGITS = 15

_QUANTITY_PATTERN = re.compile(
    r"^\s*(?P<value>[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)"
    r"\s*(?P<unit>[^\s\d.,+-]\S*(?:\s+\S+)*)?\s*$"
)

Number = Union[int, float]


def to_meters(value: Number, source_unit_factor: float = FEET_TO_METERS) -> float:
    """
    Convert a length in the host unit to meters.

    Args:
        value: Length in the host's native unit
        source_unit_factor: Meters per host unit (0.3048 for feet)

    Returns:
        Length in meters
    """
    return float(value) * source_unit_factor


def format_decimal(value: Number) -> str:
    """
    Render a number with a dot separator, no grouping and no exponent.

    Up to 15 significant digits are kept; trailing zeros and a bare
    decimal point are dropped, so 3.0 renders as '3' and 10 ft in meters
    renders as '3.048'.

    Raises:
        ValueError: If value is NaN or infinite
    """
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Cannot format non-finite value: {value!r}")

    text = format(Decimal(format(number, f".{SIGNIFICANT_DIGITS}g")), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text


def normalize_reflectance(value: Number) -> float:
    """Reflectance as a fraction; values above 1 are read as percentages."""
    number = float(value)
    if number > 1.0:
        number = number / 100.0
    return number


def format_point(*coordinates: Number) -> str:
    """Format coordinates separated by single spaces, e.g. '1.5 2 0'."""
    return " ".join(format_decimal(c) for c in coordinates)


def parse_quantity(text: Optional[str]) -> Quantity:
    """
    Split a host-formatted quantity into value and unit suffix.

    Args:
        text: Formatted string such as '36.00 VA' or '2400 lm'

    Returns:
        Quantity with numeric value and (possibly empty) unit

    Raises:
        MalformedQuantity: If text is empty or does not start with a number
    """
    if text is None or not text.strip():
        raise MalformedQuantity("Empty quantity string")

    match = _QUANTITY_PATTERN.match(text)
    if match is None:
        raise MalformedQuantity(f"Cannot parse quantity: {text!r}")

    return Quantity(value=float(match.group("value")), unit=match.group("unit") or "")


class UnitConverter:
    """Converts host lengths to meters with a fixed factor."""

    def __init__(self, source_unit_factor: float = FEET_TO_METERS):
        if source_unit_factor <= 0:
            raise ValueError(f"Unit factor must be positive, got {source_unit_factor}")
        self.source_unit_factor = source_unit_factor

    def to_meters(self, value: Number) -> float:
        return to_meters(value, self.source_unit_factor)

    def point_to_meters(self, point: Point3D) -> Point3D:
        return Point3D(
            x=self.to_meters(point.x),
            y=self.to_meters(point.y),
            z=self.to_meters(point.z),
        )

    @staticmethod
    def format(value: Number) -> str:
        return format_decimal(value)
