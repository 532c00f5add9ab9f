import logging
from typing import Optional

from core.components import CableCandidate
from core.models import CableSelection, CircuitSpecification, DeratingFactors
from standards.bs7671_tables import capacity_for, standard_sizes
from standards.derating import derate
from standards.settings import DEFAULT_SETTINGS, EngineSettings
from standards.voltage_drop import conductor_impedance, drop_for

logger = logging.getLogger(__name__)


def build_candidate(size_mm2: float, spec: CircuitSpecification, factors: DeratingFactors,
                    settings: EngineSettings = DEFAULT_SETTINGS) -> CableCandidate:
    tabulated = capacity_for(size_mm2, spec.installation_method)
    resistance, reactance = conductor_impedance(size_mm2, spec.material, settings)
    return CableCandidate(
        size_mm2=size_mm2,
        material=spec.material.value,
        installation_method=spec.installation_method.value,
        tabulated_capacity=tabulated,
        derated_capacity=tabulated * factors.overall,
        resistance_per_m=resistance,
        reactance_per_m=reactance,
    )


def find_capacity_size(required_ampacity: float, method) -> Optional[float]:
    """Smallest ladder size whose tabulated capacity covers the required ampacity."""
    for size in standard_sizes():
        if capacity_for(size, method) >= required_ampacity:
            return size
    return None


def select_cable(spec: CircuitSpecification, factors: Optional[DeratingFactors] = None,
                 settings: EngineSettings = DEFAULT_SETTINGS) -> CableSelection:
    """Smallest size meeting both current-carrying capacity and voltage drop.

    The scan is ascending, so the first size that passes both checks is the
    answer. When nothing passes, the largest standard size is returned with
    the matching fallback flag set.
    """
    if factors is None:
        factors = derate(spec)

    required = spec.design_current / factors.overall
    sizes = standard_sizes()

    capacity_size = find_capacity_size(required, spec.installation_method)
    capacity_fallback = capacity_size is None
    if capacity_fallback:
        capacity_size = sizes[-1]
        logger.info(
            "%s: required ampacity %.1fA exceeds every tabulated size, using %gmm²",
            spec.name, required, capacity_size,
        )

    for size in sizes[sizes.index(capacity_size):]:
        outcome = drop_for(size, spec, settings)
        logger.debug("%s: %gmm² drop %.2f%% (limit %s%%)", spec.name, size, outcome.drop_percent, outcome.limit_percent)
        if outcome.within_limit:
            return CableSelection(
                cable=build_candidate(size, spec, factors, settings),
                voltage_drop=outcome,
                required_ampacity=required,
                capacity_candidate_mm2=capacity_size,
                capacity_fallback=capacity_fallback,
            )

    largest = sizes[-1]
    logger.info("%s: no standard size meets the voltage drop limit, falling back to %gmm²", spec.name, largest)
    return CableSelection(
        cable=build_candidate(largest, spec, factors, settings),
        voltage_drop=drop_for(largest, spec, settings),
        required_ampacity=required,
        capacity_candidate_mm2=capacity_size,
        capacity_fallback=capacity_fallback,
        voltage_drop_fallback=True,
    )
