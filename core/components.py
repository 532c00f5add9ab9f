from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CableCandidate:
    size_mm2: float
    material: str
    installation_method: str
    tabulated_capacity: float  # It, amps, before derating
    derated_capacity: float  # Iz = It x overall derating
    resistance_per_m: float  # mOhm/m at conductor operating temperature
    reactance_per_m: float  # mOhm/m

    @property
    def label(self) -> str:
        return f"{self.size_mm2:g}mm² {self.material}"


@dataclass(frozen=True)
class ProtectiveDevice:
    rated_current: float  # In, amps
    curve: str  # B, C or D; gG for fuses
    breaking_capacity_ka: float
    device_type: str = "MCB"
    poles: int = 1
    rcd_rating_ma: Optional[int] = None
    rcd_type: Optional[str] = None

    @property
    def label(self) -> str:
        text = f"{self.device_type} {self.curve}{self.rated_current:g}"
        if self.rcd_rating_ma is not None:
            text += f" {self.rcd_rating_ma}mA {self.rcd_type}"
        return text
