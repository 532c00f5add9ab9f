import unittest
from core.errors import CapabilityExceededError, CircuitValidationError
from core.models import CircuitSpecification
from standards.derating import (
    derate,
    get_ambient_factor,
    get_burial_factor,
    get_grouping_factor,
    get_thermal_insulation_factor,
)


class TestDerating(unittest.TestCase):

    def test_grouping_steps(self):
        self.assertEqual(get_grouping_factor(1), 1.0)
        self.assertEqual(get_grouping_factor(3), 0.70)
        # 11 sits between the 10 and 12 rows
        self.assertEqual(get_grouping_factor(11), 0.45)
        # Clamped beyond the largest tabulated count
        self.assertEqual(get_grouping_factor(40), 0.38)

    def test_grouping_non_increasing(self):
        factors = [get_grouping_factor(n) for n in range(1, 30)]
        for a, b in zip(factors, factors[1:]):
            self.assertGreaterEqual(a, b)

    def test_zero_circuits_invalid(self):
        with self.assertRaises(CircuitValidationError):
            get_grouping_factor(0)

    def test_ambient_bands(self):
        self.assertEqual(get_ambient_factor(-5), 1.0)
        self.assertEqual(get_ambient_factor(30), 1.0)
        self.assertEqual(get_ambient_factor(31), 0.94)
        self.assertEqual(get_ambient_factor(40), 0.87)
        self.assertEqual(get_ambient_factor(65), 0.35)

    def test_ambient_above_insulation_limit(self):
        with self.assertRaises(CapabilityExceededError):
            get_ambient_factor(66)

    def test_thermal_insulation_tiers(self):
        self.assertEqual(get_thermal_insulation_factor(0), 1.0)
        self.assertEqual(get_thermal_insulation_factor(0.2), 0.89)
        self.assertEqual(get_thermal_insulation_factor(0.5), 0.77)
        self.assertEqual(get_thermal_insulation_factor(0.99), 0.77)
        self.assertEqual(get_thermal_insulation_factor(1.0), 0.63)

    def test_insulation_fraction_out_of_range(self):
        for fraction in (-0.1, 1.5):
            with self.assertRaises(CircuitValidationError) as ctx:
                get_thermal_insulation_factor(fraction)
            self.assertEqual(ctx.exception.field, "insulation_fraction")

    def test_burial_factor(self):
        self.assertEqual(get_burial_factor(0.8), 1.18)
        self.assertEqual(get_burial_factor(2.5), 1.0)
        self.assertEqual(get_burial_factor(3.0), 0.9)
        self.assertEqual(get_burial_factor(3.5), 0.8)

    def test_overall_is_product(self):
        spec = CircuitSpecification(design_current=20, length_m=10, grouped_circuits=3, ambient_temp_c=40,
                                    insulation_fraction=0.2)
        factors = derate(spec)
        self.assertAlmostEqual(factors.overall, 0.70 * 0.87 * 0.89)
        self.assertEqual(factors.burial, 1.0)

    def test_burial_only_when_buried(self):
        above = derate(CircuitSpecification(design_current=20, length_m=10, soil_resistivity=0.8))
        buried = derate(CircuitSpecification(design_current=20, length_m=10, soil_resistivity=0.8, is_buried=True))
        self.assertEqual(above.overall, 1.0)
        self.assertAlmostEqual(buried.overall, 1.18)


if __name__ == '__main__':
    unittest.main()
