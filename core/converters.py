import math

from standards.bs7671_tables import nominal_voltage

from .errors import CircuitValidationError


def design_current_from_power(val: float, unit: str, phases: int = 1, pf: float = 0.9) -> float:
    """
    Converts a load rating to design current Ib (A) at the nominal supply voltage.
    Real power units are divided by the power factor, apparent power units are not.
    """
    unit = unit.strip().upper()
    if not 0 < pf <= 1:
        raise CircuitValidationError(f"Power factor must be in (0, 1], got {pf}", "power_factor")

    # 1. Current
    if unit == "A":
        return val

    factor = math.sqrt(3) if phases == 3 else 1.0
    volt_amps = nominal_voltage(phases) * factor

    # 2. Real power
    if unit == "W": return val / (volt_amps * pf)
    if unit == "KW": return val * 1000.0 / (volt_amps * pf)
    if unit == "MW": return val * 1000000.0 / (volt_amps * pf)
    if unit == "HP": return val * 746.0 / (volt_amps * pf)

    # 3. Apparent
    if unit == "VA": return val / volt_amps
    if unit == "KVA": return val * 1000.0 / volt_amps

    raise CircuitValidationError(f"Unknown power unit {unit!r}", "unit")


def convert_length_unit(val: float, unit: str) -> float:
    """Returns length in meters."""
    unit = unit.strip().lower()
    if unit in ["m", "metre", "metres", "meter", "meters"]: return val
    if unit in ["ft", "feet", "foot"]: return val * 0.3048
    if unit in ["yd", "yard", "yards"]: return val * 0.9144
    raise CircuitValidationError(f"Unknown length unit {unit!r}", "length_m")
