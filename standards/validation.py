"""Fail-fast input checks, run before any table lookup or search."""
import dataclasses
import math
from typing import Optional

from core.errors import CapabilityExceededError, CircuitValidationError
from core.models import (
    CircuitClass,
    CircuitSpecification,
    ConductorMaterial,
    EarthingSystem,
    InstallationMethod,
)
from standards.bs7671_tables import (
    AMBIENT_TEMPERATURE_BANDS,
    MAX_ROUTE_LENGTH_M,
    MIN_AMBIENT_TEMP_C,
    MIN_POWER_FACTOR,
)

_ENUM_FIELDS = {
    "material": ConductorMaterial,
    "circuit_class": CircuitClass,
    "installation_method": InstallationMethod,
    "earthing": EarthingSystem,
}


def _finite(value, field: str) -> float:
    if isinstance(value, bool):
        raise CircuitValidationError(f"{field} must be a number, got {value!r}", field)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise CircuitValidationError(f"{field} must be a number, got {value!r}", field) from None
    if not math.isfinite(number):
        raise CircuitValidationError(f"{field} must be finite", field)
    return number


def validate_fault_level(fault_level_ka) -> float:
    fault = _finite(fault_level_ka, "fault_level_ka")
    if fault <= 0:
        raise CircuitValidationError("Prospective fault current must be positive", "fault_level_ka")
    return fault


def validate_specification(spec: CircuitSpecification, fault_level_ka: Optional[float] = None) -> CircuitSpecification:
    """Returns the specification with numeric fields as floats and enumerated
    fields as enums, or raises. Nothing downstream sees the raw input.
    """
    changes = {}

    current = _finite(spec.design_current, "design_current")
    if current <= 0:
        raise CircuitValidationError("Design current must be positive", "design_current")
    changes["design_current"] = current

    length = _finite(spec.length_m, "length_m")
    if length <= 0:
        raise CircuitValidationError("Cable length must be positive", "length_m")
    if length > MAX_ROUTE_LENGTH_M:
        raise CircuitValidationError(
            f"Cable length {length:g}m exceeds practical limit of {MAX_ROUTE_LENGTH_M:g}m", "length_m"
        )
    changes["length_m"] = length

    if isinstance(spec.phases, bool) or not isinstance(spec.phases, int) or spec.phases not in (1, 3):
        raise CircuitValidationError("Phases must be the integer 1 or 3", "phases")

    pf = _finite(spec.power_factor, "power_factor")
    if pf < MIN_POWER_FACTOR or pf > 1.0:
        raise CircuitValidationError(
            f"Power factor must be between {MIN_POWER_FACTOR} and 1.0", "power_factor"
        )
    changes["power_factor"] = pf

    for name, enum_cls in _ENUM_FIELDS.items():
        value = getattr(spec, name)
        if not isinstance(value, enum_cls):
            try:
                changes[name] = enum_cls(value)
            except ValueError:
                allowed = ", ".join(e.value for e in enum_cls)
                raise CircuitValidationError(f"{name} must be one of: {allowed}", name) from None

    ambient = _finite(spec.ambient_temp_c, "ambient_temp_c")
    highest_band = AMBIENT_TEMPERATURE_BANDS[-1][0]
    if ambient > highest_band:
        raise CapabilityExceededError(
            f"Ambient {ambient:g}C exceeds {highest_band}C, the limit for 70C thermoplastic insulation",
            "ambient_temp_c",
        )
    if ambient < MIN_AMBIENT_TEMP_C:
        raise CircuitValidationError(
            f"Ambient {ambient:g}C is below the tabulated range ({MIN_AMBIENT_TEMP_C:g}C)", "ambient_temp_c"
        )
    changes["ambient_temp_c"] = ambient

    circuits = _finite(spec.grouped_circuits, "grouped_circuits")
    if not circuits.is_integer():
        raise CircuitValidationError("Number of grouped circuits must be a whole number", "grouped_circuits")
    if circuits < 1:
        raise CircuitValidationError("Number of grouped circuits must be at least 1", "grouped_circuits")
    changes["grouped_circuits"] = int(circuits)

    fraction = _finite(spec.insulation_fraction, "insulation_fraction")
    if not 0 <= fraction <= 1:
        raise CircuitValidationError(
            "Fraction of the route in thermal insulation must be between 0 and 1", "insulation_fraction"
        )
    changes["insulation_fraction"] = fraction

    soil = _finite(spec.soil_resistivity, "soil_resistivity")
    if spec.is_buried and soil <= 0:
        raise CircuitValidationError("Soil thermal resistivity must be positive", "soil_resistivity")
    changes["soil_resistivity"] = soil

    if spec.external_loop_impedance is not None:
        ze = _finite(spec.external_loop_impedance, "external_loop_impedance")
        if ze < 0:
            raise CircuitValidationError("Ze cannot be negative", "external_loop_impedance")
        changes["external_loop_impedance"] = ze

    if spec.upstream_rating is not None:
        upstream = _finite(spec.upstream_rating, "upstream_rating")
        if upstream <= 0:
            raise CircuitValidationError("Upstream device rating must be positive", "upstream_rating")
        changes["upstream_rating"] = upstream

    if fault_level_ka is not None:
        validate_fault_level(fault_level_ka)

    if isinstance(spec.special_requirements, str):
        changes["special_requirements"] = (spec.special_requirements,)
    elif not isinstance(spec.special_requirements, tuple):
        changes["special_requirements"] = tuple(spec.special_requirements)

    return dataclasses.replace(spec, **changes)
