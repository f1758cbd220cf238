# tests/test_results.py
import math

import pytest

from conftest import wire
from ecatsim_core.components import current_source, dc_voltage_source, ground, inductor, resistor, voltmeter
from ecatsim_core.data_structures import Schematic
from ecatsim_core.results import (
    UNAVAILABLE, PowerType, ResultsCache, ResultsProvider, SimulationResults, compute_power, format_value,
    is_available,
)
from ecatsim_core.signals import FrequencySweptSignal, PhasorDomainSignal
from ecatsim_core.simulation import BiasOutcome, SimulationConfig, SimulationKind, bias


@pytest.fixture
def divider_results(solved_divider):
    return SimulationResults(solved_divider.solution)


class TestSentinel:
    def test_sentinel_is_falsy_and_renders_without_unit(self):
        assert not UNAVAILABLE
        assert format_value(UNAVAILABLE, "V") == "unavailable"
        assert format_value(math.nan, "W") == "unavailable"
        assert format_value(2.5, "V") == "2.5 V"

    def test_is_available(self):
        assert is_available(0.0)
        assert not is_available(UNAVAILABLE)


class TestNoSolve:
    def test_every_query_is_unavailable(self):
        results = SimulationResults()
        assert not results.available
        assert results.voltage.to_ground(1) is UNAVAILABLE
        assert results.voltage.get(0, 1) is UNAVAILABLE
        assert results.voltage.across("R1") is UNAVAILABLE
        assert results.current.of_component("R1") is UNAVAILABLE
        assert results.current.of_branch(0) is UNAVAILABLE
        assert results.current.produced_by("V1") is UNAVAILABLE
        assert results.power.of_component("R1") is UNAVAILABLE
        assert results.node_of("R1", "A") is UNAVAILABLE
        assert results.kind is UNAVAILABLE


class TestVoltageDB:
    def test_drop_between_nodes(self, divider_results):
        assert divider_results.voltage.get(0, 1).dc == pytest.approx(10.0)
        assert divider_results.voltage.get(1, 2).dc == pytest.approx(-5.0)

    def test_reverse_is_negation_of_cached_entry(self, divider_results):
        forward = divider_results.voltage.get(1, 2)
        assert divider_results.voltage.get(1, 2) is forward
        assert divider_results.voltage.get(2, 1) == forward.negate()
        assert divider_results.cache.get_stats()['voltage']['hits'] >= 2

    def test_across_component(self, divider_results):
        assert divider_results.voltage.across("V1").dc == pytest.approx(10.0)
        assert divider_results.voltage.across("R1", reverse=True).dc == pytest.approx(5.0)
        assert divider_results.voltage.across("VM1").dc == pytest.approx(5.0)

    def test_unknown_node_and_component(self, divider_results):
        assert divider_results.voltage.to_ground(99) is UNAVAILABLE
        assert divider_results.voltage.get(0, 99) is UNAVAILABLE
        assert divider_results.voltage.across("nope") is UNAVAILABLE
        assert divider_results.voltage.across("GND") is UNAVAILABLE

    def test_invalidate(self, divider_results):
        divider_results.voltage.get(0, 1)
        divider_results.invalidate()
        assert not divider_results.cache.contains((0, 1), 'voltage')


class TestCurrentDB:
    def test_passive_current_follows_drop(self, divider_results):
        assert divider_results.current.of_component("R1").dc == pytest.approx(-5e-3)
        assert divider_results.current.of_component("R1", reverse=True).dc == pytest.approx(5e-3)

    def test_source_currents(self, divider_results):
        assert divider_results.current.of_component("V1").dc == pytest.approx(-5e-3)
        assert divider_results.current.produced_by("V1").dc == pytest.approx(5e-3)

    def test_branch_current_by_index(self, divider_results, solved_divider):
        assert divider_results.current.of_branch(0).dc == pytest.approx(-5e-3)
        assert divider_results.current.of_branch(0, reverse=True).dc == pytest.approx(5e-3)
        assert divider_results.current.of_branch(7) is UNAVAILABLE

    def test_components_without_terminal_current(self, divider_results):
        assert divider_results.current.of_component("VM1") is UNAVAILABLE
        assert divider_results.current.produced_by("R1") is UNAVAILABLE

    def test_ac_current_per_frequency(self, ac_schematic):
        results = SimulationResults(bias(ac_schematic, SimulationKind.AC).solution)
        current = results.current.of_component("R1")
        assert current.dc == 0.0
        assert abs(current.phasor(1e3)) == pytest.approx(1e-3)
        assert abs(results.current.produced_by("V1").phasor(1e3)) == pytest.approx(1e-3)

    def test_inductor_current_comes_from_its_branch(self):
        schematic = Schematic(
            "rl",
            [
                ground("GND", (0, 0)),
                dc_voltage_source("V1", (0, 0), (0, 1), 10.0),
                inductor("L1", (0, 1), (1, 1), "1 mH"),
                resistor("R1", (1, 1), (1, 0), "1 kohm"),
            ],
            wires=[wire((1, 0), (0, 0))],
        )
        results = SimulationResults(bias(schematic, SimulationKind.DC).solution)
        assert results.current.of_component("L1").dc == pytest.approx(-10e-3)
        assert results.current.of_component("R1").dc == pytest.approx(-10e-3)

    def test_current_source(self):
        schematic = Schematic("isrc", [
            ground("GND", (0, 0)),
            current_source("I1", (0, 0), (0, 1), "2 mA"),
            resistor("R1", (0, 1), (0, 0), "1 kohm"),
        ])
        results = SimulationResults(bias(schematic, SimulationKind.DC).solution)
        assert results.current.of_component("I1").dc == pytest.approx(-2e-3)
        assert results.power.of_component("I1").average == pytest.approx(-4e-3)
        assert results.power.of_component("R1").average == pytest.approx(4e-3)

    def test_swept_current(self, rc_sweep_schematic):
        outcome = bias(rc_sweep_schematic, SimulationKind.FREQUENCY_SWEEP,
                       SimulationConfig(sweep_frequencies_hz=(1.0, 10.0)))
        results = SimulationResults(outcome.solution)
        current = results.current.of_component("R1")
        assert isinstance(current, FrequencySweptSignal)
        assert current.frequencies == (1.0, 10.0)
        assert isinstance(results.voltage.across("C1"), FrequencySweptSignal)
        assert results.power.of_component("R1") is UNAVAILABLE


class TestPowerDB:
    def test_divider_powers(self, divider_results):
        r1 = divider_results.power.of_component("R1")
        assert r1.average == pytest.approx(25e-3)
        assert r1.power_type is PowerType.DISSIPATED
        v1 = divider_results.power.of_component("V1")
        assert v1.average == pytest.approx(-50e-3)
        assert v1.power_type is PowerType.SUPPLIED

    def test_power_balance(self, divider_results):
        total = sum(divider_results.power.of_component(cid).average for cid in ("V1", "R1", "R2"))
        assert total == pytest.approx(0.0, abs=1e-12)

    def test_memoized(self, divider_results):
        assert divider_results.power.of_component("R2") is divider_results.power.of_component("R2")

    def test_ac_resistor_power(self, ac_schematic):
        results = SimulationResults(bias(ac_schematic, SimulationKind.AC).solution)
        power = results.power.of_component("R1")
        assert power.average == pytest.approx(0.5e-3)
        assert power.maximum == pytest.approx(1e-3)
        assert power.minimum == pytest.approx(-1e-3)

    def test_not_two_terminal(self, divider_results):
        assert divider_results.power.of_component("VM1") is UNAVAILABLE
        assert divider_results.power.of_component("GND") is UNAVAILABLE


class TestComputePower:
    def test_shared_frequency(self):
        voltage = PhasorDomainSignal(terms=((50.0, 2.0 + 1j),))
        current = PhasorDomainSignal(terms=((50.0, 0.5 - 0.5j),))
        expected = 0.5 * ((2.0 + 1j) * (0.5 - 0.5j).conjugate()).real
        assert compute_power(voltage, current).average == pytest.approx(expected)

    def test_dc_only(self):
        assert compute_power(PhasorDomainSignal(dc=3.0), PhasorDomainSignal(dc=-2.0)).average == pytest.approx(-6.0)

    def test_mixed_frequencies(self):
        power = compute_power(
            PhasorDomainSignal(dc=1.0, terms=((50.0, 1.0),)),
            PhasorDomainSignal(terms=((60.0, 2.0),)),
        )
        assert math.isnan(power.average)
        assert power.power_type is PowerType.NONE
        assert math.isfinite(power.maximum) and math.isfinite(power.minimum)
        assert power.maximum == pytest.approx(4.0)


class TestResultsCache:
    def test_scopes_are_independent(self):
        cache = ResultsCache()
        cache.put("k", 1, 'voltage')
        assert cache.get("k", 'voltage') == 1
        assert cache.get("k", 'current') is None
        assert cache.get_stats() == {
            'voltage': {'hits': 1, 'misses': 0},
            'current': {'hits': 0, 'misses': 1},
            'power': {'hits': 0, 'misses': 0},
        }

    def test_sentinel_is_cached(self):
        cache = ResultsCache()
        cache.put("k", UNAVAILABLE, 'power')
        assert cache.get("k", 'power') is UNAVAILABLE

    def test_unknown_scope(self):
        with pytest.raises(ValueError):
            ResultsCache().get("k", 'bogus')


def _simple_schematic(schematic_id="s", with_voltmeter=False):
    components = [
        ground("GND", (0, 0)),
        dc_voltage_source("V1", (0, 0), (0, 1), 3.0),
        resistor("R1", (0, 1), (0, 0), 1e3),
    ]
    if with_voltmeter:
        components.append(voltmeter("VM", (0, 0), (0, 1)))
    return Schematic(schematic_id, components)


class TestResultsProvider:
    def test_publish_success_swaps_results(self, solved_divider):
        provider = ResultsProvider()
        old = provider.results
        assert provider.publish(solved_divider)
        assert provider.results is not old
        assert provider.results.available
        assert provider.last_outcome is solved_divider

    def test_failure_keeps_previous_results(self, solved_divider):
        provider = ResultsProvider()
        provider.publish(solved_divider)
        current = provider.results
        failed = BiasOutcome(success=False, kind=SimulationKind.DC, reason="boom")
        assert not provider.publish(failed)
        assert provider.results is current
        assert provider.last_outcome is failed

    def test_listeners_are_notified(self, solved_divider):
        provider = ResultsProvider()
        seen = []
        unsubscribe = provider.subscribe(lambda results, outcome: seen.append((results, outcome)))
        provider.publish(solved_divider)
        assert seen == [(provider.results, solved_divider)]
        unsubscribe()
        provider.publish(solved_divider)
        assert len(seen) == 1

    def test_failing_listener_does_not_block_others(self, solved_divider, caplog):
        provider = ResultsProvider()
        calls = []

        def broken(results, outcome):
            raise RuntimeError("listener failure")

        provider.subscribe(broken)
        provider.subscribe(lambda results, outcome: calls.append(outcome))
        provider.publish(solved_divider)
        assert calls == [solved_divider]
        assert "listener failure" in caplog.text

    def test_clear(self, solved_divider):
        provider = ResultsProvider()
        provider.publish(solved_divider)
        provider.clear()
        assert not provider.results.available
        assert provider.last_outcome is None


class TestMeasurements:
    def test_voltmeters_are_mirrored(self):
        provider = ResultsProvider()
        provider.publish(bias(_simple_schematic(with_voltmeter=True), SimulationKind.DC))
        assert "VM" in provider.measurements
        assert provider.measurements.get("VM").voltmeter
        assert provider.measurements.read("VM", provider.results).dc == pytest.approx(3.0)

    def test_user_measurements_persist_across_solves(self):
        provider = ResultsProvider()
        provider.publish(bias(_simple_schematic(with_voltmeter=True), SimulationKind.DC))
        provider.measurements.register("m_out", 0, 1)
        provider.publish(bias(_simple_schematic(), SimulationKind.DC))
        assert "VM" not in provider.measurements
        assert "m_out" in provider.measurements
        assert provider.measurements.read_all(provider.results)["m_out"].dc == pytest.approx(3.0)

    def test_unknown_measurement(self):
        provider = ResultsProvider()
        assert provider.measurements.read("missing", provider.results) is UNAVAILABLE
        assert not provider.measurements.unregister("missing")

    def test_measurement_before_solve(self):
        provider = ResultsProvider()
        provider.measurements.register("m_out", 0, 1)
        assert provider.measurements.read("m_out", provider.results) is UNAVAILABLE
        assert len(provider.measurements) == 1
