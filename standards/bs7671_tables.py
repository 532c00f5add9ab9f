"""Reference data for BS 7671:2018+A2:2022.

Every table is built once, at import, and exposed read-only. Lookups raise
TableLookupError for keys that are not tabulated; the only fallbacks are the
explicit ones in the search and the device selector, and both are flagged.
"""
import math
from types import MappingProxyType

from core.errors import TableLookupError
from core.models import CircuitClass, ConductorMaterial, EarthingSystem, InstallationMethod

EDITION = "BS 7671:2018+A2:2022"

# UK nominal supply voltages (BS EN 50160)
NOMINAL_VOLTAGE_SINGLE_PHASE = 230.0
NOMINAL_VOLTAGE_THREE_PHASE = 400.0
NOMINAL_VOLTAGE_TO_EARTH = 230.0  # U0

MAX_ROUTE_LENGTH_M = 1000.0
MIN_POWER_FACTOR = 0.1

STANDARD_CABLE_SIZES = (
    1.0, 1.5, 2.5, 4.0, 6.0, 10.0, 16.0, 25.0, 35.0, 50.0,
    70.0, 95.0, 120.0, 150.0, 185.0, 240.0, 300.0, 400.0, 500.0, 630.0,
)

# BS EN 60898 MCB ratings (A)
STANDARD_DEVICE_RATINGS = (6, 10, 16, 20, 25, 32, 40, 50, 63, 80, 100, 125)

# Rated short-circuit capacity tiers (kA)
BREAKING_CAPACITY_TIERS = (6, 10, 16, 25)

STANDARD_RCD_RATINGS_MA = (10, 30, 100, 300, 500)
RCD_ADDITIONAL_PROTECTION_MA = 30
RCD_TT_FAULT_PROTECTION_MA = 100
RCD_ADDITIONAL_PROTECTION_MAX_RATING = 32  # Reg 411.3.3, socket-outlets up to 32A

# Regulation 525 / Appendix 4 section 6.4
VOLTAGE_DROP_LIMITS = MappingProxyType({
    CircuitClass.LIGHTING: 3.0,
    CircuitClass.POWER: 5.0,
    CircuitClass.MOTOR: 5.0,
})

# Appendix 4 current-carrying capacity, 70C thermoplastic copper, 30C ambient.
# Format: {Method: {CSA_mm2: Amps}}
_CAPACITY = {
    InstallationMethod.A: {
        1.0: 11, 1.5: 16, 2.5: 22, 4.0: 30, 6.0: 38, 10.0: 52, 16.0: 69,
        25.0: 90, 35.0: 110, 50.0: 134, 70.0: 171, 95.0: 207, 120.0: 239,
        150.0: 269, 185.0: 309, 240.0: 362, 300.0: 412, 400.0: 470, 500.0: 530, 630.0: 600,
    },
    InstallationMethod.B: {
        1.0: 13, 1.5: 16.5, 2.5: 23, 4.0: 30, 6.0: 38, 10.0: 52, 16.0: 69,
        25.0: 90, 35.0: 111, 50.0: 133, 70.0: 168, 95.0: 201, 120.0: 232,
        150.0: 258, 185.0: 294, 240.0: 344, 300.0: 394, 400.0: 450, 500.0: 507, 630.0: 577,
    },
    InstallationMethod.C: {
        1.0: 13.5, 1.5: 17.5, 2.5: 24, 4.0: 32, 6.0: 41, 10.0: 57, 16.0: 76,
        25.0: 101, 35.0: 125, 50.0: 151, 70.0: 192, 95.0: 232, 120.0: 269,
        150.0: 309, 185.0: 353, 240.0: 415, 300.0: 477, 400.0: 546, 500.0: 626, 630.0: 720,
    },
    InstallationMethod.D: {
        1.0: 18, 1.5: 23, 2.5: 31, 4.0: 41, 6.0: 51, 10.0: 70, 16.0: 94,
        25.0: 123, 35.0: 148, 50.0: 180, 70.0: 228, 95.0: 275, 120.0: 318,
        150.0: 356, 185.0: 407, 240.0: 473, 300.0: 530, 400.0: 600, 500.0: 670, 630.0: 750,
    },
    InstallationMethod.E: {
        1.0: 17, 1.5: 22, 2.5: 30, 4.0: 40, 6.0: 51, 10.0: 70, 16.0: 94,
        25.0: 131, 35.0: 162, 50.0: 196, 70.0: 251, 95.0: 304, 120.0: 352,
        150.0: 394, 185.0: 451, 240.0: 530, 300.0: 603, 400.0: 697, 500.0: 795, 630.0: 914,
    },
}
CURRENT_CAPACITY = MappingProxyType({m: MappingProxyType(t) for m, t in _CAPACITY.items()})

# Conductor resistance (mOhm/m) at the 20C reference temperature
_COPPER_RESISTANCE = {
    1.0: 18.1, 1.5: 12.1, 2.5: 7.41, 4.0: 4.61, 6.0: 3.08, 10.0: 1.83,
    16.0: 1.15, 25.0: 0.727, 35.0: 0.524, 50.0: 0.387, 70.0: 0.268,
    95.0: 0.193, 120.0: 0.153, 150.0: 0.124, 185.0: 0.0991, 240.0: 0.0754,
    300.0: 0.0601, 400.0: 0.0470, 500.0: 0.0366, 630.0: 0.0283,
}
ALUMINIUM_RESISTANCE_RATIO = 1.6
CONDUCTOR_RESISTANCE = MappingProxyType({
    ConductorMaterial.COPPER: MappingProxyType(_COPPER_RESISTANCE),
    ConductorMaterial.ALUMINIUM: MappingProxyType(
        {size: round(r * ALUMINIUM_RESISTANCE_RATIO, 4) for size, r in _COPPER_RESISTANCE.items()}
    ),
})

# Tabulated reactance (mOhm/m), used only by TabulatedReactance
CONDUCTOR_REACTANCE = MappingProxyType({
    1.0: 0.14, 1.5: 0.14, 2.5: 0.13, 4.0: 0.12, 6.0: 0.12, 10.0: 0.11,
    16.0: 0.11, 25.0: 0.10, 35.0: 0.10, 50.0: 0.098, 70.0: 0.096,
    95.0: 0.094, 120.0: 0.093, 150.0: 0.092, 185.0: 0.091, 240.0: 0.090,
    300.0: 0.089, 400.0: 0.088, 500.0: 0.087, 630.0: 0.086,
})

# Table 4C1 - grouping factors. Format: {Circuits: Factor}
GROUPING_FACTORS = MappingProxyType({
    1: 1.00, 2: 0.80, 3: 0.70, 4: 0.65, 5: 0.60, 6: 0.57, 7: 0.54,
    8: 0.52, 9: 0.50, 10: 0.48, 12: 0.45, 14: 0.43, 16: 0.41, 18: 0.39,
    20: 0.38,
})

# Table 4B1 - ambient temperature, 70C thermoplastic, 30C reference.
# Format: (Upper_Band_Limit_C, Factor); above the last band is not permitted.
MIN_AMBIENT_TEMP_C = -20.0
AMBIENT_TEMPERATURE_BANDS = (
    (30, 1.00), (35, 0.94), (40, 0.87), (45, 0.79),
    (50, 0.71), (55, 0.61), (60, 0.50), (65, 0.35),
)

# Reg 523.9 / Table 52.2 tiers, keyed by insulated fraction of the route
THERMAL_INSULATION_FACTORS = MappingProxyType({
    "none": 1.00,
    "partial": 0.89,
    "complete": 0.77,
    "complete_thick": 0.63,
})

# Buried cables. Format: (Max_Soil_Resistivity_KmW, Factor); wetter soil rates higher
BURIAL_FACTORS = ((1.0, 1.18), (2.5, 1.00), (3.0, 0.90))
BURIAL_FACTOR_VERY_DRY = 0.80

# Table 41.1 - maximum disconnection times for final circuits (s)
MAX_DISCONNECTION_TIME = MappingProxyType({
    EarthingSystem.TN_S: 0.4,
    EarthingSystem.TN_C_S: 0.4,
    EarthingSystem.TT: 0.2,
})
TT_TOUCH_VOLTAGE_LIMIT = 50.0  # RA x I(delta)n <= 50V, Reg 411.5.3

# Instantaneous trip multiples of In for BS EN 60898 curves
MAGNETIC_TRIP_MULTIPLE = MappingProxyType({"B": 5, "C": 10, "D": 20})

# Table 41.3 limits follow Zs = U0 / Ia; the 400V column is the line-to-line loop
_LOOP_VOLTAGE = {230: NOMINAL_VOLTAGE_TO_EARTH, 400: NOMINAL_VOLTAGE_TO_EARTH * math.sqrt(3)}
MAX_EARTH_LOOP_IMPEDANCE = MappingProxyType({
    (curve, rating, voltage): round(u / (multiple * rating), 2)
    for curve, multiple in MAGNETIC_TRIP_MULTIPLE.items()
    for rating in STANDARD_DEVICE_RATINGS
    for voltage, u in _LOOP_VOLTAGE.items()
})

# Table 41.2 - BS 88-2 gG fuses, 0.4s, U0 = 230V. Format: {In: Max_Zs_ohm}
FUSE_MAX_EARTH_LOOP_IMPEDANCE = MappingProxyType({
    6: 8.52, 10: 5.11, 16: 2.70, 20: 1.77, 25: 1.44, 32: 1.04,
    40: 0.82, 50: 0.60, 63: 0.47,
})

# Fuse links (A), BS 88 / BS 1361 preferred ratings
STANDARD_FUSE_RATINGS = (
    6, 10, 16, 20, 25, 32, 40, 50, 63, 80, 100, 125,
    160, 200, 250, 315, 400, 500, 630, 800,
)
# Format: {Fuse_Type: (Category, kA_up_to_100A, kA_above_100A)}
FUSE_TYPES = MappingProxyType({
    "BS88": ("High Rupturing Capacity", 80.0, 120.0),
    "BS1361": ("Cartridge Fuse", 16.5, 33.0),
    "HRC": ("High Rupturing Capacity", 100.0, 100.0),
    "GENERAL": ("General Purpose", 35.0, 35.0),
})
# Format: (Upper_Band_Limit_C, Factor); above the last band uses FUSE_DERATING_HOT
FUSE_TEMPERATURE_BANDS = ((30, 1.00), (40, 0.95), (50, 0.90), (60, 0.85))
FUSE_DERATING_HOT = 0.80
# Minimum fuse rating as a multiple of load current
FUSE_APPLICATION_MARGINS = MappingProxyType({
    "motor": 1.25, "heating": 1.25, "lighting": 1.1, "general": 1.1,
})
DISCRIMINATION_RATIO = 2.0  # upstream / downstream rating

# BS EN 61386 conduit: outside diameters (mm) and fill limits (%) by cable count
STANDARD_CONDUIT_SIZES = (16, 20, 25, 32, 40, 50, 63, 75, 90, 110)
CONDUIT_FILL_SINGLE = 53.0
CONDUIT_FILL_TWO = 31.0
CONDUIT_FILL_MANY = 40.0


def standard_sizes():
    return STANDARD_CABLE_SIZES


def standard_device_ratings():
    return STANDARD_DEVICE_RATINGS


def nominal_voltage(phases: int) -> float:
    if phases == 1:
        return NOMINAL_VOLTAGE_SINGLE_PHASE
    if phases == 3:
        return NOMINAL_VOLTAGE_THREE_PHASE
    raise TableLookupError("nominal voltage", phases)


def capacity_for(size_mm2: float, method) -> float:
    method = _as_enum(InstallationMethod, method, "installation method")
    table = CURRENT_CAPACITY[method]
    if size_mm2 not in table:
        raise TableLookupError(f"current capacity (method {method.value})", size_mm2)
    return float(table[size_mm2])


def impedance_for(size_mm2: float, material) -> dict:
    """Tabulated resistance and reactance (mOhm/m) at the 20C reference."""
    material = _as_enum(ConductorMaterial, material, "conductor material")
    resistances = CONDUCTOR_RESISTANCE[material]
    if size_mm2 not in resistances:
        raise TableLookupError(f"conductor resistance ({material.value})", size_mm2)
    return {
        "resistance_per_m": resistances[size_mm2],
        "reactance_per_m": CONDUCTOR_REACTANCE[size_mm2],
    }


def max_voltage_drop_percent(circuit_class) -> float:
    circuit_class = _as_enum(CircuitClass, circuit_class, "circuit class")
    return VOLTAGE_DROP_LIMITS[circuit_class]


def max_earth_loop_impedance(rating: float, curve: str, voltage: float) -> float:
    key = (curve, int(rating), int(voltage))
    if key not in MAX_EARTH_LOOP_IMPEDANCE:
        raise TableLookupError("maximum earth loop impedance", f"{curve}{rating:g} @ {voltage:g}V")
    return MAX_EARTH_LOOP_IMPEDANCE[key]


def max_fuse_loop_impedance(rating: float) -> float:
    if rating not in FUSE_MAX_EARTH_LOOP_IMPEDANCE:
        raise TableLookupError("maximum earth loop impedance (BS 88-2 gG)", rating)
    return FUSE_MAX_EARTH_LOOP_IMPEDANCE[rating]


def fuse_characteristics(fuse_type: str, rating: float):
    """Returns (category, breaking capacity kA) for a fuse type and rating."""
    key = fuse_type.strip().upper()
    if key not in FUSE_TYPES:
        raise TableLookupError("fuse type", fuse_type)
    category, low, high = FUSE_TYPES[key]
    return category, low if rating <= 100 else high


def conduit_fill_limit(cable_count: int) -> float:
    if cable_count == 1:
        return CONDUIT_FILL_SINGLE
    if cable_count == 2:
        return CONDUIT_FILL_TWO
    return CONDUIT_FILL_MANY


def max_disconnection_time(earthing) -> float:
    earthing = _as_enum(EarthingSystem, earthing, "earthing arrangement")
    return MAX_DISCONNECTION_TIME[earthing]


def protective_conductor_size(line_size_mm2: float) -> float:
    # Table 54.7: S <= 16 -> S, 16 < S <= 35 -> 16, S > 35 -> S/2
    if line_size_mm2 not in STANDARD_CABLE_SIZES:
        raise TableLookupError("standard cable sizes", line_size_mm2)
    if line_size_mm2 <= 16:
        return line_size_mm2
    if line_size_mm2 <= 35:
        return 16.0
    half = line_size_mm2 / 2
    return next(size for size in STANDARD_CABLE_SIZES if size >= half)


def _as_enum(enum_cls, value, table: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise TableLookupError(table, value) from None
