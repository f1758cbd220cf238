# tests/test_runner.py
import threading

import pytest

from ecatsim_core.components import dc_voltage_source, ground, resistor
from ecatsim_core.data_structures import Schematic
from ecatsim_core.results import ResultsProvider
from ecatsim_core.simulation import SimulationKind, SimulationRunner

TIMEOUT_S = 30


def source_and_load(voltage, schematic_id="sheet"):
    return Schematic(schematic_id, [
        ground("GND", (0, 0)),
        dc_voltage_source("V1", (0, 0), (0, 1), voltage),
        resistor("R1", (0, 1), (0, 0), 1e3),
    ])


@pytest.fixture
def provider():
    return ResultsProvider()


@pytest.fixture
def runner(provider):
    with SimulationRunner(provider=provider) as runner:
        yield runner


class TestSimulationRunner:
    def test_submit_publishes(self, runner, provider):
        outcome = runner.submit(source_and_load(3.0), SimulationKind.DC).result(timeout=TIMEOUT_S)
        assert outcome.success
        assert provider.results.voltage.across("V1").dc == pytest.approx(3.0)
        assert not runner.is_running("sheet")

    def test_on_complete_receives_outcome(self, runner):
        done = threading.Event()
        received = []

        def on_complete(outcome):
            received.append(outcome)
            done.set()

        future = runner.submit(source_and_load(1.0), SimulationKind.DC, on_complete=on_complete)
        assert done.wait(TIMEOUT_S)
        assert received == [future.result(timeout=TIMEOUT_S)]

    def test_latest_submission_wins(self, runner, provider):
        first = runner.submit(source_and_load(1.0), SimulationKind.DC)
        second = runner.submit(source_and_load(2.0), SimulationKind.DC)
        assert second.result(timeout=TIMEOUT_S).success
        first.result(timeout=TIMEOUT_S)
        assert provider.last_outcome is second.result()
        assert provider.results.voltage.across("V1").dc == pytest.approx(2.0)

    def test_superseded_solve_is_cancelled_or_discarded(self, runner, provider):
        published = []
        provider.subscribe(lambda results, outcome: published.append(outcome))
        futures = [runner.submit(source_and_load(v), SimulationKind.DC) for v in (1.0, 2.0, 3.0)]
        outcomes = [f.result(timeout=TIMEOUT_S) for f in futures]
        assert published[-1] is outcomes[-1]
        assert all(o in outcomes for o in published)

    def test_different_schematics_run_independently(self, runner, provider):
        a = runner.submit(source_and_load(1.0, "a"), SimulationKind.DC)
        b = runner.submit(source_and_load(2.0, "b"), SimulationKind.DC)
        assert a.result(timeout=TIMEOUT_S).success
        assert b.result(timeout=TIMEOUT_S).success
        assert not a.result().cancelled and not b.result().cancelled

    def test_finished_schematics_release_their_locks(self, runner):
        futures = [runner.submit(source_and_load(1.0, f"sheet-{i}"), SimulationKind.DC) for i in range(5)]
        futures += [runner.submit(source_and_load(v, "shared"), SimulationKind.DC) for v in (1.0, 2.0, 3.0)]
        for future in futures:
            future.result(timeout=TIMEOUT_S)
        assert runner._schematic_locks == {}
        assert runner._lock_users == {}

    def test_cancel_unknown_schematic(self, runner):
        assert not runner.cancel("nothing")

    def test_failed_solve_is_published_but_keeps_results(self, runner, provider):
        runner.submit(source_and_load(5.0), SimulationKind.DC).result(timeout=TIMEOUT_S)
        previous = provider.results
        outcome = runner.submit(source_and_load(5.0), SimulationKind.AC).result(timeout=TIMEOUT_S)
        assert not outcome.success
        assert provider.results is previous
        assert provider.last_outcome is outcome

    def test_submit_after_shutdown(self, provider):
        runner = SimulationRunner(provider=provider)
        runner.shutdown()
        with pytest.raises(RuntimeError):
            runner.submit(source_and_load(1.0), SimulationKind.DC)
