import math
from typing import Optional

from core.errors import CircuitValidationError, TableLookupError
from core.models import CircuitSpecification, VoltageDropOutcome
from standards.bs7671_tables import (
    STANDARD_CABLE_SIZES,
    impedance_for,
    max_voltage_drop_percent,
    nominal_voltage,
)
from standards.settings import DEFAULT_SETTINGS, EngineSettings


def conductor_impedance(size_mm2: float, material, settings: EngineSettings = DEFAULT_SETTINGS):
    """Returns (R, X) in mOhm/m, R corrected to the conductor operating temperature."""
    if size_mm2 < STANDARD_CABLE_SIZES[0]:
        raise CircuitValidationError(
            f"Invalid cable size {size_mm2:g}mm² - minimum {STANDARD_CABLE_SIZES[0]:g}mm²", "size_mm2"
        )
    base_resistance = impedance_for(size_mm2, material)["resistance_per_m"]
    resistance = base_resistance * settings.temperature_correction()
    reactance = settings.reactance_model(size_mm2, base_resistance)
    return resistance, reactance


def phase_multiplier(phases: int) -> float:
    if phases == 1:
        return 2.0  # line and neutral
    if phases == 3:
        return math.sqrt(3)
    raise TableLookupError("phase multiplier", phases)


def drop_for(size_mm2: float, spec: CircuitSpecification, settings: EngineSettings = DEFAULT_SETTINGS,
             current: Optional[float] = None) -> VoltageDropOutcome:
    """Voltage drop of a candidate size.

    Vd = k x I x (L/1000) x (R cos(phi) + X sin(phi)), k = 2 single-phase or
    sqrt(3) three-phase, R and X in mOhm/m, power factor assumed lagging.
    The within-limit verdict is taken before the outcome is rounded.
    """
    current = spec.design_current if current is None else current
    resistance, reactance = conductor_impedance(size_mm2, spec.material, settings)

    cos_phi = spec.power_factor
    sin_phi = math.sqrt(1 - cos_phi * cos_phi)
    drop = phase_multiplier(spec.phases) * current * (spec.length_m / 1000) * (resistance * cos_phi + reactance * sin_phi)

    supply = nominal_voltage(spec.phases)
    percent = drop / supply * 100
    limit = max_voltage_drop_percent(spec.circuit_class)

    return VoltageDropOutcome(
        drop_volts=round(drop, 2),
        drop_percent=round(percent, 2),
        terminal_voltage=round(supply - drop, 2),
        within_limit=percent <= limit,
        limit_percent=limit,
    )


def max_length_for(size_mm2: float, spec: CircuitSpecification, settings: EngineSettings = DEFAULT_SETTINGS) -> float:
    """Longest route (m) for which this size stays within the circuit class limit."""
    resistance, reactance = conductor_impedance(size_mm2, spec.material, settings)
    cos_phi = spec.power_factor
    sin_phi = math.sqrt(1 - cos_phi * cos_phi)

    allowed_drop = max_voltage_drop_percent(spec.circuit_class) / 100 * nominal_voltage(spec.phases)
    drop_per_metre = phase_multiplier(spec.phases) * spec.design_current * (resistance * cos_phi + reactance * sin_phi) / 1000
    return math.floor(allowed_drop / drop_per_metre)
