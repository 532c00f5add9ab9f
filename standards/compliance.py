"""Verdict, regulation citation and remediation advice for a sized circuit."""
from typing import List, Optional

from core.models import (
    CableSelection,
    CircuitClass,
    CircuitSpecification,
    ComplianceChecks,
    ComplianceResult,
    DeratingFactors,
    DeviceSelection,
    EarthFaultLoop,
    EarthingSystem,
    InstallationMethod,
)
from standards.bs7671_tables import (
    BREAKING_CAPACITY_TIERS,
    DISCRIMINATION_RATIO,
    EDITION,
    STANDARD_FUSE_RATINGS,
    capacity_for,
    standard_device_ratings,
    standard_sizes,
)
from standards.protection import FUSE_CURVE
from standards.settings import DEFAULT_SETTINGS, EngineSettings
from standards.voltage_drop import max_length_for

OVERLOAD_MARGIN = 1.45  # Reg 433.1.1 conventional operating current ratio


def evaluate(selection: CableSelection, device_selection: DeviceSelection, spec: CircuitSpecification,
             derating: DeratingFactors, fault_level_ka: float, earth_fault: Optional[EarthFaultLoop] = None,
             settings: EngineSettings = DEFAULT_SETTINGS) -> ComplianceResult:
    cable = selection.cable
    device = device_selection.device

    checks = ComplianceChecks(
        capacity=cable.tabulated_capacity >= selection.required_ampacity,
        voltage_drop=selection.voltage_drop.within_limit,
        device_coordination=spec.design_current <= device.rated_current <= cable.derated_capacity,
        breaking_capacity=device.breaking_capacity_ka >= fault_level_ka,
        earth_loop=earth_fault.passed if earth_fault is not None else None,
        discrimination=discriminates(spec.upstream_rating, device.rated_current),
    )

    recommendations = _failure_advice(checks, selection, device_selection, spec, derating, fault_level_ka, earth_fault, settings)
    recommendations += _advisories(selection, device_selection, spec)

    return ComplianceResult(
        specification=spec,
        cable=cable,
        derating=derating,
        voltage_drop=selection.voltage_drop,
        device=device,
        checks=checks,
        required_ampacity=selection.required_ampacity,
        regulation=citation(spec, selection, earth_fault, device.rcd_rating_ma is not None, device.curve == FUSE_CURVE),
        recommendations=tuple(recommendations),
        cable_fallback=selection.degraded,
        device_fallback=not device_selection.compliant,
        earth_fault=earth_fault,
    )


def discriminates(upstream_rating: Optional[float], rating: float) -> Optional[bool]:
    """Rating ratio rule for selectivity; None when no upstream device is given."""
    if upstream_rating is None:
        return None
    return upstream_rating / rating >= DISCRIMINATION_RATIO


def citation(spec: CircuitSpecification, selection: CableSelection, earth_fault: Optional[EarthFaultLoop],
             has_rcd: bool, fused: bool = False) -> str:
    limit = selection.voltage_drop.limit_percent
    parts = [
        "Appendix 4 (current-carrying capacity)",
        "Reg 433.1.1 (Ib ≤ In ≤ Iz)",
        f"Reg 525 (voltage drop ≤ {limit:g}% for {spec.circuit_class.value} circuits)",
        "Reg 434.5.1 (breaking capacity)",
    ]
    if earth_fault is not None:
        if earth_fault.max_zs is None:
            parts.append("Reg 411.5.3 (RA × IΔn ≤ 50V)")
        else:
            table = "41.2" if fused else "41.3"
            parts.append(f"Reg 411.4.4 Table {table} (Zs, {earth_fault.disconnection_time_s:g}s disconnection)")
    if has_rcd:
        parts.append("Reg 411.3.3 (RCD protection)")
    if spec.upstream_rating is not None:
        parts.append("Reg 536.4.1.2 (discrimination)")
    return f"{EDITION}: " + "; ".join(parts)


def _failure_advice(checks, selection, device_selection, spec, derating, fault_level_ka, earth_fault, settings) -> List[str]:
    advice = []
    cable = selection.cable
    device = device_selection.device

    if not checks.capacity:
        advice.append(
            f"Largest standard cable {cable.size_mm2:g}mm² gives Iz={cable.derated_capacity:.1f}A, below "
            f"Ib={spec.design_current:g}A: split the load over parallel circuits."
        )
        advice.extend(_derating_advice(spec, derating))

    if not checks.voltage_drop:
        vd = selection.voltage_drop
        longest = max_length_for(cable.size_mm2, spec, settings)
        text = (
            f"Voltage drop {vd.drop_percent:.2f}% exceeds the {vd.limit_percent:g}% limit even at "
            f"{cable.size_mm2:g}mm²: shorten the route (max {longest:g}m at this size)"
        )
        if spec.phases == 1:
            text += " or supply the load at three-phase"
        advice.append(text + ".")
    elif cable.size_mm2 > selection.capacity_candidate_mm2:
        advice.append(
            f"Cable upsized from {selection.capacity_candidate_mm2:g}mm² to {cable.size_mm2:g}mm² "
            f"to keep voltage drop within {selection.voltage_drop.limit_percent:g}%."
        )

    if not checks.device_coordination:
        advice.append(_coordination_advice(spec, selection, derating, device.curve == FUSE_CURVE))

    if not checks.breaking_capacity:
        if device.curve == FUSE_CURVE:
            advice.append(
                f"Prospective fault current {fault_level_ka:g}kA exceeds the {device.breaking_capacity_ka:g}kA "
                f"fuse breaking capacity: confirm the fault level or provide upstream back-up protection."
            )
        else:
            advice.append(
                f"Prospective fault current {fault_level_ka:g}kA exceeds the largest breaking capacity tier "
                f"{BREAKING_CAPACITY_TIERS[-1]}kA: use BS 88 HBC fuses or confirm upstream back-up protection."
            )

    if checks.earth_loop is False:
        if earth_fault.max_zs is None:
            advice.append(
                f"Zs {earth_fault.zs:.2f}Ω with a {device.rcd_rating_ma}mA RCD exceeds the 50V touch voltage "
                f"limit: improve the earth electrode or use a more sensitive RCD."
            )
        else:
            lower = "lower fuse rating" if device.curve == FUSE_CURVE else "lower curve type"
            advice.append(
                f"Zs {earth_fault.zs:.2f}Ω exceeds the {earth_fault.max_zs:.2f}Ω maximum for "
                f"{device.curve}{device.rated_current:g}: increase the CPC size, use a {lower} "
                f"or add RCD fault protection."
            )
    elif earth_fault is None and spec.external_loop_impedance is not None:
        advice.append(
            f"No tabulated Zs limit for a {device.rated_current:g}A gG fuse: verify Zs against the "
            f"manufacturer's time-current data."
        )

    if checks.discrimination is False:
        advice.append(
            f"Upstream {spec.upstream_rating:g}A device is less than {DISCRIMINATION_RATIO:g}x the "
            f"{device.rated_current:g}A device: discrimination not achieved, increase the upstream rating "
            f"or reduce this circuit's rating."
        )
    return advice


def _derating_advice(spec: CircuitSpecification, derating: DeratingFactors) -> List[str]:
    advice = []
    if derating.grouping < 1:
        advice.append(
            f"Reduce grouping: {spec.grouped_circuits} grouped circuits apply Cg={derating.grouping:.2f}."
        )
    if derating.ambient < 1:
        advice.append(f"Re-route away from the {spec.ambient_temp_c:g}°C ambient (Ca={derating.ambient:.2f}).")
    if derating.thermal_insulation < 1:
        advice.append(f"Avoid thermal insulation along the route (Ci={derating.thermal_insulation:.2f}).")
    if spec.installation_method in (InstallationMethod.A, InstallationMethod.B):
        advice.append("Change installation method to C (clipped direct) or E (free air) for a higher rating.")
    return advice


def _coordination_advice(spec: CircuitSpecification, selection: CableSelection, derating: DeratingFactors,
                         fused: bool = False) -> str:
    ratings = STANDARD_FUSE_RATINGS if fused else standard_device_ratings()
    if spec.design_current > ratings[-1]:
        if fused:
            return (
                f"Design current {spec.design_current:g}A exceeds the largest standard fuse ({ratings[-1]}A): "
                f"split the load over parallel circuits."
            )
        return (
            f"Design current {spec.design_current:g}A exceeds the largest standard MCB ({ratings[-1]}A): "
            f"use a moulded-case breaker or fused switch."
        )

    needed = next(r for r in ratings if r >= spec.design_current)
    for size in standard_sizes():
        if capacity_for(size, spec.installation_method) * derating.overall >= needed:
            return (
                f"No standard device fits between Ib={spec.design_current:g}A and "
                f"Iz={selection.cable.derated_capacity:.1f}A: upsize the cable to {size:g}mm² "
                f"so a {needed}A device protects it."
            )
    return (
        f"No standard cable carries a {needed}A device under these derating factors: "
        f"reduce grouping or change the installation method."
    )


def _advisories(selection: CableSelection, device_selection: DeviceSelection, spec: CircuitSpecification) -> List[str]:
    notes = []
    device = device_selection.device
    if device.rated_current > spec.design_current * OVERLOAD_MARGIN:
        notes.append("Consider a lower rated device for closer overload protection.")
    if device.rated_current == selection.cable.derated_capacity:
        notes.append("Device rating equals cable capacity: re-check derating assumptions.")
    if spec.circuit_class == CircuitClass.MOTOR:
        notes.append("Consider a motor protection switch in addition to the MCB.")
    if spec.is_buried and spec.installation_method != InstallationMethod.D:
        notes.append("Buried cable sized with a non-ground installation method: use reference method D.")
    if spec.earthing == EarthingSystem.TT and spec.external_loop_impedance is None:
        notes.append("TT earthing: measure the electrode resistance (RA) to confirm fault protection.")
    if spec.upstream_rating is None:
        notes.append("Ensure discrimination with upstream devices.")
    return notes
