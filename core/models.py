from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .components import CableCandidate, ProtectiveDevice


class ConductorMaterial(Enum):
    COPPER = "copper"
    ALUMINIUM = "aluminium"


class CircuitClass(Enum):
    LIGHTING = "lighting"
    POWER = "power"
    MOTOR = "motor"


class InstallationMethod(Enum):
    # BS 7671 Table 4A2 reference methods
    A = "A"  # enclosed in conduit in a thermally insulating wall
    B = "B"  # enclosed in conduit or trunking on a wall
    C = "C"  # clipped direct
    D = "D"  # direct in ground or in ducts in the ground
    E = "E"  # free air, on a perforated tray


class EarthingSystem(Enum):
    TN_S = "TN-S"
    TN_C_S = "TN-C-S"
    TT = "TT"


@dataclass(frozen=True)
class CircuitSpecification:
    design_current: float  # Ib, amps
    length_m: float
    phases: int = 1  # 1 or 3
    power_factor: float = 0.9
    material: ConductorMaterial = ConductorMaterial.COPPER
    circuit_class: CircuitClass = CircuitClass.POWER
    installation_method: InstallationMethod = InstallationMethod.C
    ambient_temp_c: float = 30.0
    grouped_circuits: int = 1
    insulation_fraction: float = 0.0  # share of the route enclosed in thermal insulation, 0..1
    is_buried: bool = False
    soil_resistivity: float = 2.5  # K.m/W, only used when buried
    name: str = "Circuit"
    earthing: EarthingSystem = EarthingSystem.TN_C_S
    special_requirements: Tuple[str, ...] = ()
    rcd_required: bool = False
    external_loop_impedance: Optional[float] = None  # Ze, ohms
    upstream_rating: Optional[float] = None  # In of the upstream device, amps

    def has_requirement(self, requirement: str) -> bool:
        return requirement in self.special_requirements


@dataclass(frozen=True)
class DeratingFactors:
    grouping: float
    ambient: float
    thermal_insulation: float
    burial: float = 1.0

    @property
    def overall(self) -> float:
        return self.grouping * self.ambient * self.thermal_insulation * self.burial


@dataclass(frozen=True)
class VoltageDropOutcome:
    drop_volts: float
    drop_percent: float
    terminal_voltage: float
    within_limit: bool
    limit_percent: float


@dataclass(frozen=True)
class CableSelection:
    """Result of the size search. Degraded selections are flagged, not raised."""
    cable: CableCandidate
    voltage_drop: VoltageDropOutcome
    required_ampacity: float
    capacity_candidate_mm2: float
    capacity_fallback: bool = False
    voltage_drop_fallback: bool = False

    @property
    def degraded(self) -> bool:
        return self.capacity_fallback or self.voltage_drop_fallback


@dataclass(frozen=True)
class DeviceSelection:
    device: ProtectiveDevice
    rating_fallback: bool = False
    breaking_capacity_fallback: bool = False

    @property
    def compliant(self) -> bool:
        return not (self.rating_fallback or self.breaking_capacity_fallback)


@dataclass(frozen=True)
class EarthFaultLoop:
    cpc_size_mm2: float
    r1_plus_r2: float  # ohms
    zs: float  # ohms
    max_zs: Optional[float]  # None on TT, where the RCD provides fault protection
    fault_current: float  # amps
    disconnection_time_s: float
    passed: bool


@dataclass(frozen=True)
class ComplianceChecks:
    capacity: bool
    voltage_drop: bool
    device_coordination: bool
    breaking_capacity: bool
    earth_loop: Optional[bool] = None  # None when Ze was not supplied
    discrimination: Optional[bool] = None  # None when the upstream rating is unknown

    @property
    def passed(self) -> bool:
        verdicts = [self.capacity, self.voltage_drop, self.device_coordination, self.breaking_capacity]
        verdicts += [v for v in (self.earth_loop, self.discrimination) if v is not None]
        return all(verdicts)


@dataclass(frozen=True)
class ComplianceResult:
    specification: CircuitSpecification
    cable: CableCandidate
    derating: DeratingFactors
    voltage_drop: VoltageDropOutcome
    device: ProtectiveDevice
    checks: ComplianceChecks
    required_ampacity: float
    regulation: str
    recommendations: Tuple[str, ...] = ()
    cable_fallback: bool = False
    device_fallback: bool = False
    earth_fault: Optional[EarthFaultLoop] = None

    @property
    def passed(self) -> bool:
        return self.checks.passed

    def as_record(self) -> dict:
        """Flat, rounded view used by the form, the CLI and the Excel report."""
        spec = self.specification
        return {
            "Circuit": spec.name,
            "Class": spec.circuit_class.value,
            "Phases": spec.phases,
            "Ib (A)": round(spec.design_current, 2),
            "Length (m)": round(spec.length_m, 1),
            "Method": spec.installation_method.value,
            "Derating": round(self.derating.overall, 3),
            "It required (A)": round(self.required_ampacity, 1),
            "Cable (mm2)": self.cable.size_mm2,
            "It (A)": self.cable.tabulated_capacity,
            "Iz (A)": round(self.cable.derated_capacity, 1),
            "VD (V)": self.voltage_drop.drop_volts,
            "VD (%)": self.voltage_drop.drop_percent,
            "VD limit (%)": self.voltage_drop.limit_percent,
            "Device": self.device.label,
            "Breaking (kA)": self.device.breaking_capacity_ka,
            "RCD (mA)": self.device.rcd_rating_ma,
            "Zs (ohm)": round(self.earth_fault.zs, 3) if self.earth_fault else None,
            "Pass": self.passed,
            "Regulation": self.regulation,
        }


@dataclass(frozen=True)
class CalculationOutcome:
    """Tagged result: either a ComplianceResult or the validation error that stopped the call."""
    result: Optional[ComplianceResult] = None
    error: Optional[str] = None
    error_field: str = ""
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.result is not None


@dataclass(frozen=True)
class FuseChecks:
    overload: bool
    short_circuit: bool
    cable_protection: bool
    discrimination: Optional[bool] = None  # None when no upstream device is given

    @property
    def passed(self) -> bool:
        return self.overload and self.short_circuit and self.cable_protection and self.discrimination is not False


@dataclass(frozen=True)
class FuseSelection:
    rating: float
    fuse_type: str
    category: str
    breaking_capacity_ka: float
    temperature_derating: float
    checks: FuseChecks
    discrimination_ratio: Optional[float] = None
    rating_fallback: bool = False
    recommendations: Tuple[str, ...] = ()

    @property
    def passed(self) -> bool:
        return self.checks.passed and not self.rating_fallback


@dataclass(frozen=True)
class ConduitFill:
    conduit_size_mm: float
    fill_percent: float
    cable_count: int
    max_fill_percent: float
    compliant: bool
    next_size_mm: Optional[float] = None  # None when compliant or nothing larger is standard
    recommendations: Tuple[str, ...] = ()
    regulation: str = "BS EN 61386 & IET Guidance Note 1"
