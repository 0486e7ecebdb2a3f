"""
===============================================================================
GIMBAL AUTO-TRIM - Integration Test Suite
===============================================================================
End-to-end tests: scenario loading from YAML, the fixed-step host loop with
a thrust schedule, telemetry recording, plots and the command-line entry
point.

The demo lander has an off-center payload. Its main engine trims within a
10 deg limit; the right booster shuts down at t = 2 s and the main engine
is disabled at t = 4 s.
===============================================================================
"""

import os

import numpy as np
import pandas as pd
import pytest
import yaml

from autotrim.control.auto_trim import AutoTrimGimbal
from autotrim.dynamics.vehicle import Gimbal
from autotrim.main import main
from autotrim.simulation.scenario import (
    ThrustEvent,
    build_schedule,
    build_vehicle,
    load_config,
    parse_rotation,
)
from autotrim.simulation.sim_engine import TrimSimulation
from autotrim.visualization.trim_plots import plot_deflection_histogram, plot_trim_history


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def scenario_config():
    """Return the demo lander scenario as a dict."""
    return {
        "simulation": {"dt": 0.02, "steps": 250},
        "vehicle": {
            "id": "demo-lander",
            "name": "Demo Lander",
            "parts": [
                {"name": "tank", "position": [0.0, 0.0, 0.0], "mass": 6000.0},
                {"name": "payload", "position": [1.0, 0.0, 1.5], "mass": 1000.0},
                {
                    "name": "main_engine",
                    "position": [0.0, 0.0, -3.0],
                    "mass": 800.0,
                    "engine": {"thrust": 150.0,
                               "nozzles": [{"position": [0.0, 0.0, -4.0]}]},
                    "gimbal": {"auto_trim": True, "trim_enabled": True, "trim_limit": 10},
                },
                {
                    "name": "booster_left",
                    "position": [-2.0, 0.0, -2.0],
                    "mass": 300.0,
                    "engine": {"thrust": 40.0,
                               "nozzles": [{"position": [-2.0, 0.0, -3.0]}]},
                    "gimbal": {"auto_trim": False},
                },
                {
                    "name": "booster_right",
                    "position": [2.0, 0.0, -2.0],
                    "mass": 300.0,
                    "engine": {"thrust": 40.0,
                               "nozzles": [{"position": [2.0, 0.0, -3.0]}]},
                },
            ],
        },
        "schedule": [
            {"time": 4.0, "part": "main_engine", "enabled": False},
            {"time": 2.0, "part": "booster_right", "thrust": 0.0},
        ],
    }


@pytest.fixture
def scenario_file(tmp_path, scenario_config):
    path = tmp_path / "scenario.yaml"
    path.write_text(yaml.safe_dump(scenario_config))
    return str(path)


@pytest.fixture
def simulation(scenario_config):
    vehicle = build_vehicle(scenario_config)
    return TrimSimulation(vehicle, scenario_config, schedule=build_schedule(scenario_config))


# =============================================================================
# Test: Scenario loading
# =============================================================================

class TestScenario:

    def test_load_and_build(self, scenario_file):
        config = load_config(scenario_file)
        vehicle = build_vehicle(config)

        assert vehicle.vehicle_id == "demo-lander"
        assert len(vehicle.parts) == 5
        assert isinstance(vehicle.find_part("main_engine").gimbal, AutoTrimGimbal)
        assert isinstance(vehicle.find_part("booster_left").gimbal, Gimbal)
        assert vehicle.find_part("booster_right").gimbal is None
        assert vehicle.find_part("main_engine").gimbal.trim_limit == 10.0

    def test_center_of_mass(self, scenario_config):
        vehicle = build_vehicle(scenario_config)
        np.testing.assert_allclose(vehicle.center_of_mass(),
                                   [1000.0 / 8400.0, 0.0, -2100.0 / 8400.0], atol=1e-12)
        assert vehicle.total_mass() == pytest.approx(8400.0)

    def test_gimbal_and_engine_share_actuators(self, scenario_config):
        part = build_vehicle(scenario_config).find_part("main_engine")
        assert part.gimbal.actuators[0] is part.producer.actuators[0]

    def test_nozzle_defaults_to_part_position(self):
        vehicle = build_vehicle({"parts": [
            {"name": "e", "position": [1.0, 2.0, 3.0], "engine": {"thrust": 5.0}},
        ]})
        np.testing.assert_allclose(vehicle.parts[0].producer.actuators[0].position,
                                   [1.0, 2.0, 3.0])

    def test_trim_disabled_by_default(self):
        vehicle = build_vehicle({"parts": [
            {"name": "e", "engine": {"thrust": 5.0}, "gimbal": {}},
        ]})
        assert vehicle.parts[0].gimbal.trim_enabled is False

    def test_numeric_id_is_string(self):
        vehicle = build_vehicle({"id": 42, "parts": [{"name": "p", "mass": 1.0}]})
        assert vehicle.vehicle_id == "42"

    @pytest.mark.parametrize("config", [
        {"parts": []},
        {"parts": [{"name": "a"}, {"name": "a"}]},
        {"parts": [{"name": "a", "gimbal": {}}]},
        {"parts": [{"name": "a", "mass": -1.0}]},
        {"parts": [{"name": "a", "engine": {"thrust": -5.0}}]},
        {"parts": [{"name": "a", "engine": {"thrust": 1.0},
                    "gimbal": {"trim_limit": 120}}]},
    ])
    def test_invalid_vehicle(self, config):
        with pytest.raises(ValueError):
            build_vehicle(config)

    def test_parse_rotation(self):
        assert parse_rotation(None).rotation_angle == 0.0
        q = parse_rotation({"axis": [0, 1, 0], "angle_deg": 90})
        assert np.degrees(q.rotation_angle) == pytest.approx(90.0)
        assert parse_rotation([1.0, 0.0, 0.0, 0.0]).rotation_angle == 0.0

    def test_schedule_is_sorted(self, scenario_config):
        schedule = build_schedule(scenario_config)
        assert [e.time for e in schedule] == [2.0, 4.0]
        assert schedule[0].thrust == 0.0 and schedule[0].enabled is None

    def test_event_on_part_without_engine(self, scenario_config):
        vehicle = build_vehicle(scenario_config)
        with pytest.raises(ValueError):
            ThrustEvent(time=0.0, part="tank", thrust=1.0).apply(vehicle)
        with pytest.raises(KeyError):
            ThrustEvent(time=0.0, part="missing", thrust=1.0).apply(vehicle)


# =============================================================================
# Test: Host loop
# =============================================================================

class TestSimulation:

    def test_run_telemetry(self, simulation):
        df = simulation.run(50)

        assert isinstance(df, pd.DataFrame)
        assert len(df) == 50
        for col in ("time", "thrust_total", "thrust_aligned", "degenerate",
                    "untrimmed_error_deg", "residual_error_deg",
                    "main_engine_trim_angle", "main_engine_applied_angle",
                    "main_engine_correction", "main_engine_deflection"):
            assert col in df.columns
        assert df["time"].iloc[-1] == pytest.approx(1.0)

    def test_one_aggregation_per_step(self, simulation):
        simulation.run(30)
        assert simulation.cache.aggregator.scan_count == 30

    def test_trim_removes_off_axis_error(self, simulation):
        df = simulation.run(90)
        assert df["untrimmed_error_deg"].min() > 1.0
        assert df["residual_error_deg"].max() < 1e-6
        assert (df["main_engine_trim_angle"] < 10.0).all()
        np.testing.assert_allclose(df["main_engine_applied_angle"],
                                   df["main_engine_trim_angle"])

    def test_booster_shutdown_saturates_trim(self, simulation):
        df = simulation.run(190)
        window = df[(df["time"] > 2.1) & (df["time"] < 3.7)]

        np.testing.assert_allclose(window["thrust_total"], 190.0)
        assert (window["main_engine_trim_angle"] > 10.0).all()
        assert (window["main_engine_applied_angle"] <= 10.0 + 1e-9).all()
        assert (window["residual_error_deg"] < window["untrimmed_error_deg"]).all()
        np.testing.assert_allclose(window["main_engine_deflection"], 10.0, rtol=1e-6)

    def test_main_engine_disabled(self, simulation):
        df = simulation.run(250)
        late = df[df["time"] > 4.1]

        assert (late["thrust_aligned"] == 0.0).all()
        assert late["main_engine_trim_angle"].isna().all()
        np.testing.assert_allclose(late["main_engine_deflection"], 0.0, atol=1e-9)

    def test_summary(self, simulation):
        simulation.run(250)
        summary = simulation.summary()
        assert summary["steps"] == 250
        assert summary["final_time"] == pytest.approx(5.0)
        assert summary["aggregations"] == 250
        assert summary["mean_residual_error_deg"] < summary["mean_untrimmed_error_deg"]

    def test_default_steps_from_config(self, scenario_config):
        scenario_config["simulation"]["steps"] = 7
        sim = TrimSimulation(build_vehicle(scenario_config), scenario_config)
        assert len(sim.run()) == 7

    def test_empty_summary(self, simulation):
        assert simulation.summary() == {"steps": 0}

    def test_invalid_dt(self, scenario_config):
        with pytest.raises(ValueError):
            TrimSimulation(build_vehicle(scenario_config), {"dt": 0.0})


# =============================================================================
# Test: Plots and CLI
# =============================================================================

class TestOutputs:

    def test_plots(self, simulation, tmp_path):
        df = simulation.run(120)
        history = plot_trim_history(df, str(tmp_path / "plots" / "history.png"),
                                    {"main_engine": 10.0})
        hist = plot_deflection_histogram(df, str(tmp_path / "hist.png"))
        assert os.path.isfile(history)
        assert os.path.isfile(hist)

    def test_cli_writes_outputs(self, scenario_file, tmp_path):
        out_dir = tmp_path / "out"
        code = main(["--config", scenario_file, "--steps", "60",
                     "--output", str(out_dir), "--plot"])

        assert code == 0
        df = pd.read_csv(out_dir / "telemetry.csv")
        assert len(df) == 60
        assert (out_dir / "trim_history.png").is_file()
        assert (out_dir / "deflection_hist.png").is_file()

    def test_cli_plot_needs_output(self, scenario_file):
        assert main(["--config", scenario_file, "--plot"]) == 2
