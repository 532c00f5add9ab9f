import logging

from core.errors import CapabilityExceededError, CircuitValidationError
from core.models import CircuitSpecification, DeratingFactors
from standards.bs7671_tables import (
    AMBIENT_TEMPERATURE_BANDS,
    BURIAL_FACTORS,
    BURIAL_FACTOR_VERY_DRY,
    GROUPING_FACTORS,
    THERMAL_INSULATION_FACTORS,
)

logger = logging.getLogger(__name__)

# Upper bound on the overall factor: only wet-soil burial can exceed 1
MAX_OVERALL_DERATING = BURIAL_FACTORS[0][1]


def get_grouping_factor(circuits: int) -> float:
    if circuits < 1:
        raise CircuitValidationError("Grouping needs at least one circuit", "grouped_circuits")
    # Counts between tabulated rows take the next row up (the lower factor)
    for limit in sorted(GROUPING_FACTORS):
        if circuits <= limit:
            return GROUPING_FACTORS[limit]
    return GROUPING_FACTORS[max(GROUPING_FACTORS)]


def get_ambient_factor(temp_c: float) -> float:
    for upper, factor in AMBIENT_TEMPERATURE_BANDS:
        if temp_c <= upper:
            return factor
    raise CapabilityExceededError(
        f"No ambient correction above {AMBIENT_TEMPERATURE_BANDS[-1][0]}C for 70C insulation",
        "ambient_temp_c",
    )


def get_thermal_insulation_factor(fraction: float) -> float:
    if not 0 <= fraction <= 1:
        raise CircuitValidationError("Insulated fraction must be between 0 and 1", "insulation_fraction")
    if fraction == 0:
        return THERMAL_INSULATION_FACTORS["none"]
    if fraction < 0.5:
        return THERMAL_INSULATION_FACTORS["partial"]
    if fraction < 1.0:
        return THERMAL_INSULATION_FACTORS["complete"]
    return THERMAL_INSULATION_FACTORS["complete_thick"]


def get_burial_factor(soil_resistivity: float) -> float:
    for max_resistivity, factor in BURIAL_FACTORS:
        if soil_resistivity <= max_resistivity:
            return factor
    return BURIAL_FACTOR_VERY_DRY


def derate(spec: CircuitSpecification) -> DeratingFactors:
    factors = DeratingFactors(
        grouping=get_grouping_factor(spec.grouped_circuits),
        ambient=get_ambient_factor(spec.ambient_temp_c),
        thermal_insulation=get_thermal_insulation_factor(spec.insulation_fraction),
        burial=get_burial_factor(spec.soil_resistivity) if spec.is_buried else 1.0,
    )
    overall = factors.overall
    if not 0 < overall <= MAX_OVERALL_DERATING:
        raise RuntimeError(f"Derating product {overall} outside (0, {MAX_OVERALL_DERATING}]")

    logger.debug(
        "Derating %s: Cg=%s Ca=%s Ci=%s Cb=%s overall=%.4f",
        spec.name, factors.grouping, factors.ambient, factors.thermal_insulation, factors.burial, overall,
    )
    return factors
