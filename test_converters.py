import unittest
from core.converters import convert_length_unit, design_current_from_power
from core.errors import CircuitValidationError


class TestConverters(unittest.TestCase):

    def test_amps_pass_through(self):
        self.assertEqual(design_current_from_power(20, "A", 1, 0.9), 20)

    def test_single_phase_power(self):
        # 7.2kW / (230V x 0.9)
        self.assertAlmostEqual(design_current_from_power(7.2, "kW", 1, 0.9), 34.78, places=2)
        self.assertAlmostEqual(design_current_from_power(7200, "W", 1, 0.9), 34.78, places=2)

    def test_three_phase_power(self):
        # 10kW / (sqrt(3) x 400V x 0.9)
        self.assertAlmostEqual(design_current_from_power(10, "KW", 3, 0.9), 16.04, places=2)

    def test_horsepower(self):
        self.assertAlmostEqual(design_current_from_power(5, "HP", 3, 0.85), 5 * 746 / (1.7320508 * 400 * 0.85), places=2)

    def test_apparent_power_ignores_pf(self):
        self.assertAlmostEqual(design_current_from_power(10, "kVA", 1, 0.8), 43.48, places=2)

    def test_bad_inputs(self):
        with self.assertRaises(CircuitValidationError):
            design_current_from_power(10, "BTU", 1, 0.9)
        with self.assertRaises(CircuitValidationError):
            design_current_from_power(10, "kW", 2, 0.9)
        with self.assertRaises(CircuitValidationError):
            design_current_from_power(10, "kW", 1, 0)

    def test_lengths(self):
        self.assertEqual(convert_length_unit(50, "m"), 50)
        self.assertAlmostEqual(convert_length_unit(100, "ft"), 30.48)
        self.assertAlmostEqual(convert_length_unit(10, " YD "), 9.144)
        with self.assertRaises(CircuitValidationError):
            convert_length_unit(10, "furlong")


if __name__ == '__main__':
    unittest.main()
