"""Conduit space factor check (BS EN 61386, IET Guidance Note 1)."""
import math
from typing import Iterable, Tuple

from core.errors import CircuitValidationError
from core.models import ConduitFill
from standards.bs7671_tables import STANDARD_CONDUIT_SIZES, conduit_fill_limit


def _area(diameter_mm: float) -> float:
    return math.pi * (diameter_mm / 2) ** 2


def next_conduit_size(conduit_size_mm: float):
    """Next standard size up, or None when nothing larger is standard."""
    return next((size for size in STANDARD_CONDUIT_SIZES if size > conduit_size_mm), None)


def conduit_fill(conduit_size_mm: float, cables: Iterable[Tuple[float, int]]) -> ConduitFill:
    """cables are (overall diameter mm, quantity) pairs."""
    if isinstance(conduit_size_mm, bool) or conduit_size_mm <= 0:
        raise CircuitValidationError("Conduit size must be positive", "conduit_size_mm")
    cables = list(cables)
    if not cables:
        raise CircuitValidationError("At least one cable is required", "cables")

    cable_area = 0.0
    count = 0
    for diameter, quantity in cables:
        if diameter <= 0:
            raise CircuitValidationError("Cable diameter must be positive", "cables")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise CircuitValidationError("Cable quantity must be a whole number of at least 1", "cables")
        cable_area += _area(diameter) * quantity
        count += quantity

    fill = cable_area / _area(conduit_size_mm) * 100
    limit = conduit_fill_limit(count)
    compliant = fill <= limit

    next_size = None
    if compliant:
        recommendations = ("Conduit fill within acceptable limits",)
    else:
        next_size = next_conduit_size(conduit_size_mm)
        upsize = f"Use {next_size:g}mm conduit" if next_size is not None else "Larger than 110mm conduit required"
        recommendations = (upsize, "Reduce number of cables", "Use cable tray instead")

    return ConduitFill(
        conduit_size_mm=conduit_size_mm,
        fill_percent=round(fill, 1),
        cable_count=count,
        max_fill_percent=limit,
        compliant=compliant,
        next_size_mm=next_size,
        recommendations=recommendations,
    )
