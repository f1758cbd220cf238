# tests/test_config.py
import numpy as np
import pytest

from ecatsim_core.components import ComponentDefaults, dc_voltage_source, ground, resistor
from ecatsim_core.constants import DEFAULT_MAX_MODE_ITERATIONS, DEFAULT_POSITION_GRID
from ecatsim_core.data_structures import Schematic
from ecatsim_core.results import SimulationResults
from ecatsim_core.simulation import (
    ConfigParsingError, SimulationConfig, SimulationKind, bias, load_simulation_config, parse_simulation_config,
    parse_sweep_config,
)


class TestSimulationKind:
    @pytest.mark.parametrize("kind, dc, ac", [
        (SimulationKind.DC, True, False),
        (SimulationKind.AC, False, True),
        (SimulationKind.ACDC, True, True),
        (SimulationKind.FREQUENCY_SWEEP, False, False),
    ])
    def test_includes(self, kind, dc, ac):
        assert kind.includes_dc is dc
        assert kind.includes_ac is ac


class TestSimulationConfig:
    def test_defaults(self):
        config = SimulationConfig()
        assert config.position_grid == DEFAULT_POSITION_GRID
        assert config.max_mode_iterations == DEFAULT_MAX_MODE_ITERATIONS
        assert config.sweep_frequencies_hz == ()
        assert config.defaults == ComponentDefaults()

    @pytest.mark.parametrize("kwargs", [
        {"position_grid": 0.0},
        {"max_mode_iterations": 0},
        {"sweep_frequencies_hz": (10.0, 0.0)},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            SimulationConfig(**kwargs)


class TestParseSweepConfig:
    def test_linear(self):
        freqs = parse_sweep_config({'type': 'linear', 'start': '1 kHz', 'stop': '3 kHz', 'num_points': 3})
        np.testing.assert_allclose(freqs, [1e3, 2e3, 3e3])

    def test_log(self):
        freqs = parse_sweep_config({'type': 'log', 'start': 10, 'stop': 1000, 'num_points': 3})
        np.testing.assert_allclose(freqs, [10.0, 100.0, 1000.0])

    def test_list_is_sorted_and_deduplicated(self):
        freqs = parse_sweep_config({'type': 'list', 'points': ['2 kHz', 50, 50.0]})
        np.testing.assert_allclose(freqs, [50.0, 2000.0])

    @pytest.mark.parametrize("raw", [
        {},
        {'type': 'log', 'start': 0, 'stop': 10, 'num_points': 2},
        {'type': 'linear', 'start': 10, 'stop': 1, 'num_points': 2},
        {'type': 'list', 'points': ['1 ohm']},
        {'type': 'spiral'},
    ])
    def test_invalid(self, raw):
        with pytest.raises(ConfigParsingError):
            parse_sweep_config(raw)


class TestParseSimulationConfig:
    def test_empty_mapping_gives_defaults(self):
        assert parse_simulation_config({}) == SimulationConfig()
        assert parse_simulation_config(None) == SimulationConfig()

    def test_full_mapping(self):
        config = parse_simulation_config({
            'position_grid': 0.5,
            'max_mode_iterations': 20,
            'sweep': {'type': 'linear', 'start': 0, 'stop': '2 Hz', 'num_points': 3},
            'defaults': {'bjt_beta': 250, 'op_amp_positive_supply': '12 V', 'resistor_admittance': '1 mS'},
        })
        assert config.position_grid == 0.5
        assert config.max_mode_iterations == 20
        # The zero-frequency point of the linear sweep is dropped.
        assert config.sweep_frequencies_hz == (1.0, 2.0)
        assert config.defaults.bjt_beta == 250
        assert config.defaults.op_amp_positive_supply == pytest.approx(12.0)
        assert config.defaults.resistor_admittance == pytest.approx(1e-3)

    def test_parsed_defaults_build_the_solved_schematic(self):
        config = parse_simulation_config({'defaults': {'source_voltage': '6 V', 'resistor_admittance': '1 mS'}})
        schematic = Schematic("from_defaults", [
            ground("GND", (0, 0)),
            dc_voltage_source("V1", (0, 0), (0, 1), defaults=config.defaults),
            resistor("R1", (0, 1), (0, 0), defaults=config.defaults),
        ])
        assert schematic.get_component("R1").parameters.resistance == pytest.approx(1e3)
        outcome = bias(schematic, SimulationKind.DC, config)
        assert outcome.success
        assert SimulationResults(outcome.solution).current.produced_by("V1").dc == pytest.approx(6e-3)

    @pytest.mark.parametrize("raw", [
        {'position_grid': 'coarse'},
        {'max_mode_iterations': 0},
        {'unknown_key': 1},
        {'defaults': {'not_a_default': 1}},
        {'defaults': {'bjt_ube_forward': '0.7 A'}},
        {'position_grid': 0},
    ])
    def test_invalid(self, raw):
        with pytest.raises(ConfigParsingError):
            parse_simulation_config(raw)


class TestLoadSimulationConfig:
    def test_yaml_file(self, tmp_path):
        path = tmp_path / "sim.yaml"
        path.write_text(
            "max_mode_iterations: 5\n"
            "sweep:\n"
            "  type: list\n"
            "  points: ['1 kHz', '10 kHz']\n",
            encoding="utf-8",
        )
        config = load_simulation_config(path)
        assert config.max_mode_iterations == 5
        assert config.sweep_frequencies_hz == (1e3, 1e4)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigParsingError):
            load_simulation_config(tmp_path / "absent.yaml")

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ConfigParsingError):
            load_simulation_config(path)
