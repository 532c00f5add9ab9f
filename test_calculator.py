import unittest
from core.errors import CapabilityExceededError, CircuitValidationError
from core.models import CircuitSpecification, ConductorMaterial, InstallationMethod
from standards.bs7671 import BS7671Calculator, size_circuit
from standards.settings import EngineSettings, TabulatedReactance


class TestScenarios(unittest.TestCase):

    def setUp(self):
        self.calc = BS7671Calculator()

    def test_scenario_a_rejects_1_5mm(self):
        # 20A single-phase, 10m, method C, no derating
        result = self.calc.calculate_circuit(CircuitSpecification(design_current=20, length_m=10), 6)
        self.assertEqual(result.cable.size_mm2, 2.5)
        self.assertEqual(result.cable.tabulated_capacity, 24.0)
        self.assertAlmostEqual(result.voltage_drop.drop_percent, 1.45, places=2)
        self.assertEqual(result.device.rated_current, 20)
        self.assertTrue(result.passed)

    def test_scenario_b_upsized_for_drop(self):
        spec = CircuitSpecification(design_current=32, length_m=50, phases=1, power_factor=0.9)
        result = self.calc.calculate_circuit(spec, 6)
        self.assertEqual(result.cable.size_mm2, 6.0)
        self.assertLess(result.voltage_drop.drop_percent, 5.0)
        self.assertEqual(result.device.rated_current, 32)
        self.assertTrue(result.passed)

    def test_scenario_c_zero_current(self):
        with self.assertRaises(CircuitValidationError) as ctx:
            self.calc.calculate_circuit(CircuitSpecification(design_current=0, length_m=10), 6)
        self.assertEqual(ctx.exception.field, "design_current")

    def test_scenario_d_fault_above_tiers(self):
        result = self.calc.calculate_circuit(CircuitSpecification(design_current=20, length_m=10), 30)
        self.assertEqual(result.device.breaking_capacity_ka, 25)
        self.assertTrue(result.device_fallback)
        self.assertFalse(result.passed)


class TestProperties(unittest.TestCase):

    def setUp(self):
        self.calc = BS7671Calculator()

    def test_monotonic_in_current(self):
        sizes = [
            self.calc.calculate_circuit(CircuitSpecification(design_current=i, length_m=25), 6).cable.size_mm2
            for i in range(5, 200, 5)
        ]
        self.assertEqual(sizes, sorted(sizes))

    def test_monotonic_in_length(self):
        sizes = [
            self.calc.calculate_circuit(CircuitSpecification(design_current=32, length_m=l), 6).cable.size_mm2
            for l in range(10, 500, 20)
        ]
        self.assertEqual(sizes, sorted(sizes))

    def test_monotonic_in_length_with_insulation(self):
        for fraction in (0.3, 1.0):
            sizes = [
                self.calc.calculate_circuit(
                    CircuitSpecification(design_current=13, length_m=l, insulation_fraction=fraction), 6
                ).cable.size_mm2
                for l in (5, 10, 20, 40, 80, 160, 320)
            ]
            self.assertEqual(sizes, sorted(sizes))
        short = CircuitSpecification(design_current=13, length_m=5, insulation_fraction=1.0)
        longer = CircuitSpecification(design_current=13, length_m=10, insulation_fraction=1.0)
        self.assertLessEqual(self.calc.calculate_circuit(short, 6).cable.size_mm2,
                             self.calc.calculate_circuit(longer, 6).cable.size_mm2)

    def test_idempotent(self):
        spec = CircuitSpecification(design_current=45, length_m=80, phases=3, grouped_circuits=4, ambient_temp_c=35)
        self.assertEqual(self.calc.calculate_circuit(spec, 10), self.calc.calculate_circuit(spec, 10))

    def test_non_degraded_results_hold_invariants(self):
        for current in (6, 16, 20, 32, 40, 63, 100):
            for length in (5, 30, 90):
                spec = CircuitSpecification(design_current=current, length_m=length, phases=3, grouped_circuits=2)
                result = self.calc.calculate_circuit(spec, 10)
                if result.cable_fallback or result.device_fallback:
                    continue
                self.assertGreaterEqual(result.cable.tabulated_capacity, result.required_ampacity)
                self.assertLessEqual(result.voltage_drop.drop_percent, result.voltage_drop.limit_percent)
                self.assertLessEqual(current, result.device.rated_current)
                self.assertLessEqual(result.device.rated_current, result.cable.derated_capacity)

    def test_string_inputs_are_normalised(self):
        spec = CircuitSpecification(design_current=20, length_m=10, material="aluminium", installation_method="E",
                                    circuit_class="lighting", earthing="TT")
        result = self.calc.calculate_circuit(spec, 6)
        self.assertIs(result.specification.material, ConductorMaterial.ALUMINIUM)
        self.assertIs(result.specification.installation_method, InstallationMethod.E)

    def test_settings_are_used(self):
        spec = CircuitSpecification(design_current=20, length_m=10)
        tabulated = BS7671Calculator(EngineSettings(reactance_model=TabulatedReactance()))
        self.assertLess(
            tabulated.calculate_circuit(spec, 6).voltage_drop.drop_volts,
            self.calc.calculate_circuit(spec, 6).voltage_drop.drop_volts,
        )


class TestValidation(unittest.TestCase):

    def setUp(self):
        self.calc = BS7671Calculator()

    def _field(self, fault_level_ka=6, **overrides):
        params = dict(design_current=20, length_m=10)
        params.update(overrides)
        with self.assertRaises(CircuitValidationError) as ctx:
            self.calc.calculate_circuit(CircuitSpecification(**params), fault_level_ka)
        return ctx.exception.field

    def test_rejected_inputs(self):
        self.assertEqual(self._field(design_current=-5), "design_current")
        self.assertEqual(self._field(length_m=0), "length_m")
        self.assertEqual(self._field(length_m=1001), "length_m")
        self.assertEqual(self._field(phases=2), "phases")
        self.assertEqual(self._field(power_factor=0.05), "power_factor")
        self.assertEqual(self._field(power_factor=1.1), "power_factor")
        self.assertEqual(self._field(ambient_temp_c=-30), "ambient_temp_c")
        self.assertEqual(self._field(grouped_circuits=0), "grouped_circuits")
        self.assertEqual(self._field(grouped_circuits=2.5), "grouped_circuits")
        self.assertEqual(self._field(is_buried=True, soil_resistivity=0), "soil_resistivity")
        self.assertEqual(self._field(external_loop_impedance=-0.1), "external_loop_impedance")
        self.assertEqual(self._field(material="gold"), "material")
        self.assertEqual(self._field(fault_level_ka=0), "fault_level_ka")

    def test_insulation_fraction_range(self):
        self.assertEqual(self._field(insulation_fraction=1.5), "insulation_fraction")
        self.assertEqual(self._field(insulation_fraction=-0.1), "insulation_fraction")
        self.assertEqual(self._field(insulation_fraction="half"), "insulation_fraction")

    def test_numeric_strings_are_coerced(self):
        as_text = self.calc.calculate_circuit(
            CircuitSpecification(design_current="20", length_m="10", power_factor="0.9"), "6"
        )
        as_number = self.calc.calculate_circuit(CircuitSpecification(design_current=20, length_m=10), 6)
        self.assertEqual(as_text.specification.design_current, 20.0)
        self.assertIsInstance(as_text.specification.length_m, float)
        self.assertEqual(as_text.cable, as_number.cable)
        self.assertEqual(as_text.device, as_number.device)
        self.assertEqual(as_text.voltage_drop, as_number.voltage_drop)

    def test_coerced_values_reach_the_outcome(self):
        outcome = size_circuit(CircuitSpecification(design_current="20", length_m=10, upstream_rating="63"), 6)
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.result.specification.upstream_rating, 63.0)
        self.assertIs(outcome.result.checks.discrimination, True)

    def test_bools_and_non_integer_phases_rejected(self):
        self.assertEqual(self._field(phases=True), "phases")
        self.assertEqual(self._field(phases=1.0), "phases")
        self.assertEqual(self._field(phases="1"), "phases")
        self.assertEqual(self._field(design_current=True), "design_current")
        self.assertEqual(self._field(length_m=False), "length_m")
        self.assertEqual(self._field(fault_level_ka=True), "fault_level_ka")
        self.assertEqual(self._field(design_current="twenty"), "design_current")

    def test_upstream_rating_must_be_positive(self):
        self.assertEqual(self._field(upstream_rating=0), "upstream_rating")
        self.assertEqual(self._field(upstream_rating=-63), "upstream_rating")

    def test_ambient_above_insulation_rating(self):
        with self.assertRaises(CapabilityExceededError):
            self.calc.calculate_circuit(CircuitSpecification(design_current=20, length_m=10, ambient_temp_c=70), 6)


class TestTaggedOutcome(unittest.TestCase):

    def test_ok(self):
        outcome = size_circuit(CircuitSpecification(design_current=32, length_m=50), 6)
        self.assertTrue(outcome.ok)
        self.assertIsNone(outcome.error)
        self.assertEqual(outcome.result.cable.size_mm2, 6.0)
        self.assertEqual(outcome.warnings, outcome.result.recommendations)

    def test_error(self):
        outcome = BS7671Calculator().try_calculate_circuit(CircuitSpecification(design_current=0, length_m=10), 6)
        self.assertFalse(outcome.ok)
        self.assertIsNone(outcome.result)
        self.assertEqual(outcome.error_field, "design_current")

    def test_degraded_is_not_an_error(self):
        outcome = size_circuit(CircuitSpecification(design_current=20, length_m=10), 30)
        self.assertTrue(outcome.ok)
        self.assertFalse(outcome.result.passed)


if __name__ == '__main__':
    unittest.main()
