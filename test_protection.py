import unittest
from core.models import CircuitClass, CircuitSpecification, EarthingSystem
from standards.cable_search import select_cable
from standards.protection import (
    earth_fault_loop,
    rcd_required,
    select_breaking_capacity,
    select_curve,
    select_device,
    select_rating,
    select_rcd_type,
)


def _device_for(spec, fault_level_ka=6.0):
    selection = select_cable(spec)
    return selection, select_device(selection.cable, spec, fault_level_ka)


class TestProtectiveDevice(unittest.TestCase):

    def test_rating_between_ib_and_iz(self):
        self.assertEqual(select_rating(20, 24), (20, False))
        self.assertEqual(select_rating(17, 24), (20, False))
        self.assertEqual(select_rating(32, 41), (32, False))

    def test_rating_fallback(self):
        # Nothing between 21A and 24A
        self.assertEqual(select_rating(21, 24), (125, True))
        self.assertEqual(select_rating(130, 477), (125, True))

    def test_curves(self):
        self.assertEqual(select_curve(CircuitSpecification(design_current=10, length_m=5,
                                                           circuit_class=CircuitClass.LIGHTING)), "B")
        self.assertEqual(select_curve(CircuitSpecification(design_current=10, length_m=5)), "C")
        self.assertEqual(select_curve(CircuitSpecification(design_current=10, length_m=5,
                                                           circuit_class=CircuitClass.MOTOR)), "D")
        self.assertEqual(select_curve(CircuitSpecification(design_current=10, length_m=5,
                                                           special_requirements=("high_inrush",))), "D")

    def test_breaking_capacity_tiers(self):
        self.assertEqual(select_breaking_capacity(6), (6, False))
        self.assertEqual(select_breaking_capacity(6.1), (10, False))
        self.assertEqual(select_breaking_capacity(16), (16, False))
        self.assertEqual(select_breaking_capacity(25), (25, False))
        self.assertEqual(select_breaking_capacity(30), (25, True))

    def test_rcd_rules(self):
        lighting = CircuitSpecification(design_current=10, length_m=5, circuit_class=CircuitClass.LIGHTING)
        self.assertFalse(rcd_required(lighting, 10))
        self.assertTrue(rcd_required(CircuitSpecification(design_current=20, length_m=5), 20))
        self.assertFalse(rcd_required(CircuitSpecification(design_current=40, length_m=5), 40))
        self.assertTrue(rcd_required(CircuitSpecification(design_current=40, length_m=5, earthing=EarthingSystem.TT), 40))
        self.assertTrue(rcd_required(CircuitSpecification(design_current=40, length_m=5, rcd_required=True), 40))

    def test_rcd_types(self):
        base = dict(design_current=20, length_m=5)
        self.assertEqual(select_rcd_type(CircuitSpecification(**base)), "Type AC")
        self.assertEqual(select_rcd_type(CircuitSpecification(special_requirements=("ev_charging",), **base)), "Type B")
        self.assertEqual(select_rcd_type(CircuitSpecification(special_requirements=("solar_inverters",), **base)), "Type B")
        self.assertEqual(select_rcd_type(CircuitSpecification(special_requirements=("electronic_loads",), **base)), "Type A")

    def test_power_circuit_gets_rcbo(self):
        _, selection = _device_for(CircuitSpecification(design_current=20, length_m=10))
        device = selection.device
        self.assertTrue(selection.compliant)
        self.assertEqual(device.rated_current, 20)
        self.assertEqual(device.curve, "C")
        self.assertEqual(device.device_type, "RCBO")
        self.assertEqual(device.rcd_rating_ma, 30)
        self.assertEqual(device.label, "RCBO C20 30mA Type AC")

    def test_lighting_gets_mcb(self):
        _, selection = _device_for(CircuitSpecification(design_current=10, length_m=10,
                                                        circuit_class=CircuitClass.LIGHTING))
        self.assertEqual(selection.device.device_type, "MCB")
        self.assertIsNone(selection.device.rcd_rating_ma)

    def test_tt_uses_100ma(self):
        _, selection = _device_for(CircuitSpecification(design_current=40, length_m=10, earthing=EarthingSystem.TT))
        self.assertEqual(selection.device.rcd_rating_ma, 100)

    def test_hbc_fuse_and_poles(self):
        spec = CircuitSpecification(design_current=40, length_m=10, phases=3,
                                    special_requirements=("high_breaking_capacity",))
        _, selection = _device_for(spec, fault_level_ka=20)
        device = selection.device
        self.assertEqual(device.device_type, "HBC Fuse")
        self.assertEqual(device.curve, "gG")
        self.assertEqual(device.poles, 3)
        # BS 88 up to 100A breaks 80kA
        self.assertEqual(device.breaking_capacity_ka, 80.0)
        self.assertEqual(device.rated_current, 40)
        self.assertTrue(selection.compliant)

    def test_hbc_fuse_above_mcb_ladder(self):
        spec = CircuitSpecification(design_current=200, length_m=10,
                                    special_requirements=("high_breaking_capacity",))
        cable_selection, selection = _device_for(spec, fault_level_ka=50)
        self.assertEqual(cable_selection.cable.size_mm2, 95.0)
        self.assertEqual(selection.device.rated_current, 200)
        self.assertEqual(selection.device.breaking_capacity_ka, 120.0)
        self.assertFalse(selection.rating_fallback)
        self.assertFalse(selection.breaking_capacity_fallback)

    def test_fault_level_above_tiers(self):
        _, selection = _device_for(CircuitSpecification(design_current=20, length_m=10), fault_level_ka=30)
        self.assertEqual(selection.device.breaking_capacity_ka, 25)
        self.assertTrue(selection.breaking_capacity_fallback)
        self.assertFalse(selection.compliant)


class TestEarthFaultLoop(unittest.TestCase):

    def _loop(self, spec):
        cable_selection, device_selection = _device_for(spec)
        return earth_fault_loop(cable_selection.cable, device_selection.device, spec)

    def test_skipped_without_ze(self):
        self.assertIsNone(self._loop(CircuitSpecification(design_current=20, length_m=10)))

    def test_tn_loop_passes(self):
        loop = self._loop(CircuitSpecification(design_current=20, length_m=10, external_loop_impedance=0.35))
        self.assertEqual(loop.cpc_size_mm2, 2.5)
        self.assertAlmostEqual(loop.r1_plus_r2, 0.17784)
        self.assertAlmostEqual(loop.zs, 0.52784)
        self.assertEqual(loop.max_zs, 1.15)
        self.assertEqual(loop.disconnection_time_s, 0.4)
        self.assertTrue(loop.passed)

    def test_tn_loop_fails(self):
        loop = self._loop(CircuitSpecification(design_current=32, length_m=50, external_loop_impedance=0.8))
        self.assertAlmostEqual(loop.zs, 1.1696)
        self.assertEqual(loop.max_zs, 0.72)
        self.assertFalse(loop.passed)

    def test_tt_touch_voltage(self):
        good = self._loop(CircuitSpecification(design_current=20, length_m=10, earthing=EarthingSystem.TT,
                                               external_loop_impedance=20))
        self.assertIsNone(good.max_zs)
        self.assertEqual(good.disconnection_time_s, 0.2)
        self.assertTrue(good.passed)

        bad = self._loop(CircuitSpecification(design_current=20, length_m=10, earthing=EarthingSystem.TT,
                                              external_loop_impedance=600))
        self.assertFalse(bad.passed)

    def test_fuse_uses_gg_limits(self):
        spec = CircuitSpecification(design_current=30, length_m=10, external_loop_impedance=0.35,
                                    special_requirements=("high_breaking_capacity",))
        loop = self._loop(spec)
        self.assertEqual(loop.max_zs, 1.04)
        self.assertTrue(loop.passed)

    def test_fuse_without_tabulated_limit_skips_check(self):
        spec = CircuitSpecification(design_current=70, length_m=10, external_loop_impedance=0.35,
                                    special_requirements=("high_breaking_capacity",))
        cable_selection, device_selection = _device_for(spec)
        self.assertEqual(device_selection.device.rated_current, 80)
        self.assertIsNone(earth_fault_loop(cable_selection.cable, device_selection.device, spec))


if __name__ == '__main__':
    unittest.main()
