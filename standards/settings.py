from dataclasses import dataclass, field
from typing import Callable

from standards.bs7671_tables import CONDUCTOR_REACTANCE
from core.errors import TableLookupError


@dataclass(frozen=True)
class FractionalReactance:
    """Reactance taken as a fixed fraction of tabulated resistance.

    This is the simplified default model; it is not tied to any table in the
    regulation and can be swapped for TabulatedReactance.
    """
    ratio: float = 0.1

    def __call__(self, size_mm2: float, base_resistance: float) -> float:
        return base_resistance * self.ratio


@dataclass(frozen=True)
class TabulatedReactance:
    """Reactance from the per-size Appendix 4 values, independent of material."""

    def __call__(self, size_mm2: float, base_resistance: float) -> float:
        if size_mm2 not in CONDUCTOR_REACTANCE:
            raise TableLookupError("conductor reactance", size_mm2)
        return CONDUCTOR_REACTANCE[size_mm2]


@dataclass(frozen=True)
class EngineSettings:
    conductor_temp_c: float = 70.0  # operating temperature for thermoplastic
    reference_temp_c: float = 20.0
    temperature_coefficient: float = 0.004  # per C above reference
    reactance_model: Callable[[float, float], float] = field(default_factory=FractionalReactance)

    def temperature_correction(self) -> float:
        return 1 + self.temperature_coefficient * (self.conductor_temp_c - self.reference_temp_c)


DEFAULT_SETTINGS = EngineSettings()
