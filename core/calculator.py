from abc import ABC, abstractmethod
from typing import Optional, Tuple

from .errors import CircuitValidationError
from .models import (
    CableSelection,
    CalculationOutcome,
    CircuitSpecification,
    ComplianceResult,
    DeratingFactors,
    DeviceSelection,
    EarthFaultLoop,
)


class WiringCodeCalculator(ABC):

    @abstractmethod
    def validate(self, spec: CircuitSpecification, fault_level_ka: float) -> Tuple[CircuitSpecification, float]:
        """Checks every input before any lookup. Returns the normalised specification and fault level, or raises."""
        pass

    @abstractmethod
    def derate(self, spec: CircuitSpecification) -> DeratingFactors:
        """Correction factors for the installation conditions."""
        pass

    @abstractmethod
    def select_cable(self, spec: CircuitSpecification, factors: DeratingFactors) -> CableSelection:
        """Smallest cable meeting capacity and voltage drop."""
        pass

    @abstractmethod
    def select_device(self, selection: CableSelection, spec: CircuitSpecification,
                      fault_level_ka: float) -> DeviceSelection:
        """Protective device coordinated with the selected cable."""
        pass

    @abstractmethod
    def earth_fault_loop(self, selection: CableSelection, device_selection: DeviceSelection,
                         spec: CircuitSpecification) -> Optional[EarthFaultLoop]:
        """Fault protection check, or None when the external loop impedance is unknown."""
        pass

    @abstractmethod
    def evaluate(self, selection: CableSelection, device_selection: DeviceSelection, spec: CircuitSpecification,
                 factors: DeratingFactors, fault_level_ka: float,
                 earth_fault: Optional[EarthFaultLoop]) -> ComplianceResult:
        """Combines the checks into a verdict with citation and advice."""
        pass

    def calculate_circuit(self, spec: CircuitSpecification, fault_level_ka: float) -> ComplianceResult:
        """Performs the full calculation for a circuit.

        Only validation raises; degraded outcomes come back as a failing result.
        """
        spec, fault_level_ka = self.validate(spec, fault_level_ka)
        factors = self.derate(spec)
        selection = self.select_cable(spec, factors)
        device_selection = self.select_device(selection, spec, fault_level_ka)
        earth_fault = self.earth_fault_loop(selection, device_selection, spec)
        return self.evaluate(selection, device_selection, spec, factors, fault_level_ka, earth_fault)

    def try_calculate_circuit(self, spec: CircuitSpecification, fault_level_ka: float) -> CalculationOutcome:
        try:
            result = self.calculate_circuit(spec, fault_level_ka)
        except CircuitValidationError as e:
            return CalculationOutcome(error=str(e), error_field=e.field)
        return CalculationOutcome(result=result, warnings=result.recommendations)
