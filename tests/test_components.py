# tests/test_components.py
import math

import pint
import pytest

from ecatsim_core.components import (
    ComponentDefaults, ComponentError, ComponentKind, TERMINAL_A, TERMINAL_B, ac_voltage_source,
    bjt_admittance_parameters, capacitor, component_admittance, dc_voltage_source, ground, inductor, npn_bjt,
    op_amp, resistor,
)
from ecatsim_core.constants import LARGE_ADMITTANCE_SIEMENS
from ecatsim_core.data_structures import PlanePosition
from ecatsim_core.units import Quantity, to_si


class TestFactories:
    def test_units_are_normalized(self):
        r = resistor("R1", (0, 0), (1, 0), "4.7 kohm")
        assert r.parameters.resistance == pytest.approx(4700.0)
        c = capacitor("C1", (0, 0), (1, 0), "10 uF")
        assert c.parameters.capacitance == pytest.approx(1e-5)
        v = ac_voltage_source("V1", (0, 0), (0, 1), "2 V", frequency="1 kHz", dc_offset="500 mV")
        assert (v.parameters.peak_voltage, v.parameters.frequency, v.parameters.dc_offset) == pytest.approx((2.0, 1e3, 0.5))

    def test_defaults_apply(self):
        defaults = ComponentDefaults(source_voltage=9.0, resistor_admittance=0.01)
        assert dc_voltage_source("V1", (0, 0), (0, 1), defaults=defaults).parameters.voltage == 9.0
        assert resistor("R1", (0, 0), (1, 0), defaults=defaults).parameters.resistance == pytest.approx(100.0)
        q = npn_bjt("Q1", (0, 0), (1, 0), (2, 0))
        assert (q.parameters.beta, q.parameters.ube_forward, q.parameters.uce_saturation) == (100.0, 0.7, 0.2)

    def test_terminal_layout(self):
        r = resistor("R1", (0, 0), PlanePosition(1, 0), 1.0)
        assert tuple(r.terminals) == (TERMINAL_A, TERMINAL_B)
        assert r.terminal(TERMINAL_B) == PlanePosition(1.0, 0.0)
        assert r.is_two_terminal
        assert tuple(ground("G", (0, 0)).terminals) == (TERMINAL_A,)

    @pytest.mark.parametrize("build", [
        lambda: resistor("R1", (0, 0), (1, 0), "-1 ohm"),
        lambda: resistor("R1", (0, 0), (1, 0), "1 farad"),
        lambda: capacitor("C1", (0, 0), (1, 0), math.nan),
        lambda: ac_voltage_source("V1", (0, 0), (0, 1), 1.0, frequency=0.0),
        lambda: op_amp("OA", (0, 0), (1, 0), (2, 0), positive_supply=-5.0, negative_supply=5.0),
        lambda: npn_bjt("Q1", (0, 0), (1, 0), (2, 0), ube_forward=0.1, uce_saturation=0.2),
        lambda: resistor("R1", (0, 0), (1, 0), 1e101),
        lambda: inductor("L1", (0, 0), (1, 0), True),
    ])
    def test_invalid_parameters(self, build):
        with pytest.raises(ComponentError):
            build()

    def test_unknown_terminal(self):
        with pytest.raises(ComponentError, match="no terminal"):
            resistor("R1", (0, 0), (1, 0), 1.0).terminal("gate")


class TestAdmittance:
    def test_resistor(self):
        assert component_admittance(resistor("R", (0, 0), (1, 0), 50.0), 1e6) == pytest.approx(0.02)
        assert component_admittance(resistor("R", (0, 0), (1, 0), 0.0), 0.0) == LARGE_ADMITTANCE_SIEMENS
        assert component_admittance(resistor("R", (0, 0), (1, 0), math.inf), 0.0) == 0j

    def test_capacitor_and_inductor(self):
        c = capacitor("C", (0, 0), (1, 0), 1e-6)
        assert component_admittance(c, 0.0) == 0j
        assert component_admittance(c, 1e3) == pytest.approx(2j * math.pi * 1e-3)
        ind = inductor("L", (0, 0), (1, 0), 1e-3)
        assert component_admittance(ind, 1e3) == pytest.approx(1.0 / (2j * math.pi))

    def test_not_a_passive(self):
        source = dc_voltage_source("V1", (0, 0), (0, 1), 1.0)
        assert source.kind is ComponentKind.DC_VOLTAGE_SOURCE
        with pytest.raises(ComponentError):
            component_admittance(source, 0.0)

    def test_h_to_y_conversion(self):
        q = npn_bjt("Q1", (0, 0), (1, 0), (2, 0), small_signal=True)
        y11, y12, y21, y22 = bjt_admittance_parameters(q.parameters)
        assert y11 == pytest.approx(1 / 4e3)
        assert y12 == pytest.approx(-2.5e-4 / 4e3)
        assert y21 == pytest.approx(125 / 4e3)
        assert y22 == pytest.approx((4e3 * 20e-6 - 2.5e-4 * 125) / 4e3)


class TestToSi:
    def test_plain_numbers_are_taken_as_given(self):
        assert to_si(3, "ohm") == 3.0
        assert to_si(2.5, "siemens") == 2.5

    @pytest.mark.parametrize("value, unit, expected", [
        ("4.7 kohm", "ohm", 4700.0),
        ("1 mS", "siemens", 1e-3),
        ("10 kHz", "Hz", 1e4),
        ("250", "volt", 250.0),
        (Quantity(500, "mV"), "volt", 0.5),
    ])
    def test_conversion(self, value, unit, expected):
        assert to_si(value, unit) == pytest.approx(expected)

    def test_incompatible_unit(self):
        with pytest.raises(pint.DimensionalityError):
            to_si("1 kohm", "siemens")

    @pytest.mark.parametrize("value", [True, [1.0], None])
    def test_rejects_non_quantities(self, value):
        with pytest.raises(TypeError):
            to_si(value, "ohm")
