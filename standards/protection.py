import logging
from typing import Optional, Tuple

from core.components import CableCandidate, ProtectiveDevice
from core.models import (
    CircuitClass,
    CircuitSpecification,
    DeviceSelection,
    EarthFaultLoop,
    EarthingSystem,
)
from standards.bs7671_tables import (
    BREAKING_CAPACITY_TIERS,
    FUSE_MAX_EARTH_LOOP_IMPEDANCE,
    NOMINAL_VOLTAGE_TO_EARTH,
    RCD_ADDITIONAL_PROTECTION_MA,
    RCD_ADDITIONAL_PROTECTION_MAX_RATING,
    RCD_TT_FAULT_PROTECTION_MA,
    TT_TOUCH_VOLTAGE_LIMIT,
    max_disconnection_time,
    max_earth_loop_impedance,
    max_fuse_loop_impedance,
    protective_conductor_size,
    standard_device_ratings,
)
from standards.fuses import select_fuse
from standards.settings import DEFAULT_SETTINGS, EngineSettings
from standards.voltage_drop import conductor_impedance

logger = logging.getLogger(__name__)

FUSE_CURVE = "gG"


def select_rating(design_current: float, cable_capacity: float) -> Tuple[float, bool]:
    """Smallest standard In with Ib <= In <= Iz; the largest rating, flagged, if none fits."""
    for rating in standard_device_ratings():
        if design_current <= rating <= cable_capacity:
            return rating, False
    return standard_device_ratings()[-1], True


def select_curve(spec: CircuitSpecification) -> str:
    if spec.has_requirement("high_inrush") or spec.circuit_class == CircuitClass.MOTOR:
        return "D"
    if spec.circuit_class == CircuitClass.LIGHTING:
        return "B"
    return "C"


def select_breaking_capacity(fault_level_ka: float) -> Tuple[float, bool]:
    for tier in BREAKING_CAPACITY_TIERS:
        if tier >= fault_level_ka:
            return tier, False
    return BREAKING_CAPACITY_TIERS[-1], True


def rcd_required(spec: CircuitSpecification, rating: float) -> bool:
    if spec.rcd_required or spec.earthing == EarthingSystem.TT:
        return True
    # Reg 411.3.3 additional protection for general-use outlets
    return spec.circuit_class == CircuitClass.POWER and rating <= RCD_ADDITIONAL_PROTECTION_MAX_RATING


def select_rcd_type(spec: CircuitSpecification) -> str:
    if spec.has_requirement("ev_charging") or spec.has_requirement("solar_inverters"):
        return "Type B"
    if spec.has_requirement("electronic_loads") or spec.has_requirement("variable_frequency_drives"):
        return "Type A"
    return "Type AC"


def select_device(cable: CableCandidate, spec: CircuitSpecification, fault_level_ka: float) -> DeviceSelection:
    if spec.has_requirement("high_breaking_capacity"):
        fuse = select_fuse(spec.design_current, cable.derated_capacity, fault_level_ka,
                           upstream_rating=spec.upstream_rating)
        rating, rating_fallback = fuse.rating, fuse.rating_fallback
        breaking_capacity, breaking_fallback = fuse.breaking_capacity_ka, not fuse.checks.short_circuit
        curve = FUSE_CURVE
    else:
        rating, rating_fallback = select_rating(spec.design_current, cable.derated_capacity)
        breaking_capacity, breaking_fallback = select_breaking_capacity(fault_level_ka)
        curve = select_curve(spec)

    rcd_rating = rcd_type = None
    if rcd_required(spec, rating):
        rcd_rating = RCD_TT_FAULT_PROTECTION_MA if spec.earthing == EarthingSystem.TT else RCD_ADDITIONAL_PROTECTION_MA
        rcd_type = select_rcd_type(spec)

    if curve == FUSE_CURVE:
        device_type = "HBC Fuse"
    elif rcd_rating is not None:
        device_type = "RCBO"
    else:
        device_type = "MCB"

    if rating_fallback:
        logger.info("%s: no standard rating between Ib=%.1fA and Iz=%.1fA", spec.name, spec.design_current, cable.derated_capacity)
    if breaking_fallback:
        logger.info("%s: fault level %.1fkA above the %gkA breaking capacity", spec.name, fault_level_ka, breaking_capacity)

    device = ProtectiveDevice(
        rated_current=rating,
        curve=curve,
        breaking_capacity_ka=breaking_capacity,
        device_type=device_type,
        poles=spec.phases,
        rcd_rating_ma=rcd_rating,
        rcd_type=rcd_type,
    )
    return DeviceSelection(device, rating_fallback=rating_fallback, breaking_capacity_fallback=breaking_fallback)


def earth_fault_loop(cable: CableCandidate, device: ProtectiveDevice, spec: CircuitSpecification,
                     settings: EngineSettings = DEFAULT_SETTINGS) -> Optional[EarthFaultLoop]:
    """Zs = Ze + (R1 + R2), checked against Table 41.3 (MCB), Table 41.2 (gG fuse)
    or, on TT, RA x I(delta)n <= 50V.

    None when Ze is unknown or the fuse rating has no tabulated limit.
    """
    if spec.external_loop_impedance is None:
        return None
    rcd_on_tt = spec.earthing == EarthingSystem.TT and device.rcd_rating_ma is not None
    if device.curve == FUSE_CURVE and not rcd_on_tt and device.rated_current not in FUSE_MAX_EARTH_LOOP_IMPEDANCE:
        logger.info("%s: no tabulated Zs limit for a %gA gG fuse, loop check skipped", spec.name, device.rated_current)
        return None

    cpc_size = protective_conductor_size(cable.size_mm2)
    r1, _ = conductor_impedance(cable.size_mm2, spec.material, settings)
    r2, _ = conductor_impedance(cpc_size, spec.material, settings)
    r1_plus_r2 = (r1 + r2) * spec.length_m / 1000  # mOhm/m x m -> ohm
    zs = spec.external_loop_impedance + r1_plus_r2

    if rcd_on_tt:
        max_zs = None
        passed = zs * device.rcd_rating_ma / 1000 <= TT_TOUCH_VOLTAGE_LIMIT
    elif device.curve == FUSE_CURVE:
        max_zs = max_fuse_loop_impedance(device.rated_current)
        passed = zs <= max_zs
    else:
        max_zs = max_earth_loop_impedance(device.rated_current, device.curve, NOMINAL_VOLTAGE_TO_EARTH)
        passed = zs <= max_zs

    return EarthFaultLoop(
        cpc_size_mm2=cpc_size,
        r1_plus_r2=r1_plus_r2,
        zs=zs,
        max_zs=max_zs,
        fault_current=NOMINAL_VOLTAGE_TO_EARTH / zs,
        disconnection_time_s=max_disconnection_time(spec.earthing),
        passed=passed,
    )
