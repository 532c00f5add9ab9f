"""BS 88 / BS 1361 fuse selection and fuse-to-fuse discrimination."""
import logging
from typing import List, Optional

from core.errors import CircuitValidationError
from core.models import FuseChecks, FuseSelection
from standards.bs7671_tables import (
    DISCRIMINATION_RATIO,
    FUSE_APPLICATION_MARGINS,
    FUSE_DERATING_HOT,
    FUSE_TEMPERATURE_BANDS,
    STANDARD_FUSE_RATINGS,
    fuse_characteristics,
)

logger = logging.getLogger(__name__)

GENERAL_MARGIN = FUSE_APPLICATION_MARGINS["general"]


def get_fuse_temperature_derating(ambient_temp_c: float) -> float:
    for limit, factor in FUSE_TEMPERATURE_BANDS:
        if ambient_temp_c <= limit:
            return factor
    return FUSE_DERATING_HOT


def application_margin(application: Optional[str]) -> float:
    if application is None:
        return 1.0
    return FUSE_APPLICATION_MARGINS.get(application.strip().lower(), GENERAL_MARGIN)


def select_fuse_rating(minimum: float, limit: float):
    """Smallest standard rating in [minimum, limit]; else the smallest above minimum, flagged."""
    for rating in STANDARD_FUSE_RATINGS:
        if minimum <= rating <= limit:
            return rating, False
    for rating in STANDARD_FUSE_RATINGS:
        if rating >= minimum:
            return rating, True
    return STANDARD_FUSE_RATINGS[-1], True


def select_fuse(load_current: float, cable_capacity: float, fault_level_ka: float, fuse_type: str = "BS88",
                application: Optional[str] = None, ambient_temp_c: float = 30.0,
                upstream_rating: Optional[float] = None) -> FuseSelection:
    if load_current <= 0 or cable_capacity <= 0:
        raise CircuitValidationError("Load current and cable current must be positive", "load_current")
    if upstream_rating is not None and upstream_rating <= 0:
        raise CircuitValidationError("Upstream device rating must be positive", "upstream_rating")

    derating = get_fuse_temperature_derating(ambient_temp_c)
    limit = cable_capacity / derating
    minimum = load_current * application_margin(application)

    rating, fallback = select_fuse_rating(minimum, limit)
    if fallback:
        logger.info("No standard fuse between %.1fA and %.1fA, using %gA", minimum, limit, rating)
    category, breaking_capacity = fuse_characteristics(fuse_type, rating)

    ratio = upstream_rating / rating if upstream_rating is not None else None
    checks = FuseChecks(
        overload=rating >= minimum,
        short_circuit=breaking_capacity >= fault_level_ka,
        cable_protection=rating <= limit,
        discrimination=ratio >= DISCRIMINATION_RATIO if ratio is not None else None,
    )

    return FuseSelection(
        rating=rating,
        fuse_type=fuse_type,
        category=category,
        breaking_capacity_ka=breaking_capacity,
        temperature_derating=derating,
        checks=checks,
        discrimination_ratio=ratio,
        rating_fallback=fallback,
        recommendations=tuple(_recommendations(rating, fuse_type, checks, application)),
    )


def _recommendations(rating: float, fuse_type: str, checks: FuseChecks, application: Optional[str]) -> List[str]:
    notes = [f"Recommended fuse: {rating:g}A {fuse_type}"]
    if not checks.cable_protection:
        notes.append("WARNING: Fuse rating exceeds cable capacity - increase cable size")
    if not checks.short_circuit:
        notes.append("WARNING: Fuse breaking capacity insufficient for fault current")
    if checks.discrimination is False:
        notes.append("Discrimination not achieved - consider different protection coordination")
    if application is not None and application.strip().lower() == "motor":
        notes.append("Consider motor protection relay for comprehensive motor protection")
    notes.append("Verify fuse time-current characteristics for specific application")
    notes.append("Ensure fuse base/holder is rated for fault current")
    return notes
