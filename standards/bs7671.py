import logging
from typing import Optional, Tuple

from config_logging.configure_logging import log_arguments
from core.calculator import WiringCodeCalculator
from core.models import (
    CableSelection,
    CalculationOutcome,
    CircuitSpecification,
    ComplianceResult,
    DeratingFactors,
    DeviceSelection,
    EarthFaultLoop,
)
from standards import cable_search, compliance, derating, protection
from standards.settings import DEFAULT_SETTINGS, EngineSettings
from standards.validation import validate_fault_level, validate_specification

logger = logging.getLogger(__name__)


class BS7671Calculator(WiringCodeCalculator):
    """Cable sizing and protection coordination to BS 7671:2018+A2:2022.

    Stateless apart from its settings, so one instance can size any number
    of circuits.
    """

    def __init__(self, settings: EngineSettings = DEFAULT_SETTINGS):
        self.settings = settings

    def validate(self, spec: CircuitSpecification, fault_level_ka: float) -> Tuple[CircuitSpecification, float]:
        return validate_specification(spec, fault_level_ka), validate_fault_level(fault_level_ka)

    def derate(self, spec: CircuitSpecification) -> DeratingFactors:
        return derating.derate(spec)

    def select_cable(self, spec: CircuitSpecification, factors: DeratingFactors) -> CableSelection:
        return cable_search.select_cable(spec, factors, self.settings)

    def select_device(self, selection: CableSelection, spec: CircuitSpecification,
                      fault_level_ka: float) -> DeviceSelection:
        return protection.select_device(selection.cable, spec, fault_level_ka)

    def earth_fault_loop(self, selection: CableSelection, device_selection: DeviceSelection,
                         spec: CircuitSpecification) -> Optional[EarthFaultLoop]:
        return protection.earth_fault_loop(selection.cable, device_selection.device, spec, self.settings)

    def evaluate(self, selection: CableSelection, device_selection: DeviceSelection, spec: CircuitSpecification,
                 factors: DeratingFactors, fault_level_ka: float,
                 earth_fault: Optional[EarthFaultLoop]) -> ComplianceResult:
        result = compliance.evaluate(selection, device_selection, spec, factors, fault_level_ka, earth_fault, self.settings)
        logger.info(
            "%s: %s, %s, VD %.2f%% -> %s",
            spec.name, result.cable.label, result.device.label, result.voltage_drop.drop_percent,
            "PASS" if result.passed else "FAIL",
        )
        return result

    @log_arguments
    def calculate_circuit(self, spec: CircuitSpecification, fault_level_ka: float) -> ComplianceResult:
        return super().calculate_circuit(spec, fault_level_ka)


def size_circuit(spec: CircuitSpecification, fault_level_ka: float,
                 settings: EngineSettings = DEFAULT_SETTINGS) -> CalculationOutcome:
    return BS7671Calculator(settings).try_calculate_circuit(spec, fault_level_ka)
