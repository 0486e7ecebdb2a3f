"""
===============================================================================
GIMBAL AUTO-TRIM - Simulation Engine
===============================================================================
Fixed-step host loop standing in for a physics engine. Each step:

    1. CLOCK     -- advance physics time by dt.
    2. SCHEDULE  -- apply any thrust events that have come due.
    3. CONTROL   -- call ``on_fixed_update`` on every auto-trim gimbal, in
                    part order, sharing one StepCache.
    4. LOGGING   -- record thrust geometry and trim telemetry.

The vehicle itself does not move; the loop only exercises the trim logic.
Telemetry is returned as a pandas DataFrame for post-run analysis.
===============================================================================
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from autotrim.control.auto_trim import AutoTrimGimbal
from autotrim.core.constants import DEFAULT_DT, DEFAULT_STEPS, VECTOR_EPSILON
from autotrim.core.vector_ops import angle_between_deg, magnitude
from autotrim.dynamics.thrust_geometry import ThrustGeometryAggregator, ThrustInfo
from autotrim.dynamics.vehicle import Vehicle
from autotrim.simulation.scenario import ThrustEvent
from autotrim.simulation.step_cache import StepCache

logger = logging.getLogger(__name__)


def off_axis_angle_deg(direction: np.ndarray, ti: ThrustInfo) -> float:
    """
    Angle (deg) between a thrust direction and the line through CoT and
    CoM, folded into [0, 90]. NaN when either is undefined.
    """
    optimal = ti.center_of_thrust - ti.center_of_mass
    if ti.is_degenerate or magnitude(optimal) < VECTOR_EPSILON or magnitude(direction) < VECTOR_EPSILON:
        return float("nan")
    angle = angle_between_deg(direction, optimal)
    return min(angle, 180.0 - angle)


class TrimSimulation:
    """
    Drives auto-trim gimbals of one vehicle through fixed physics steps.

    Parameters
    ----------
    vehicle : Vehicle
    config : dict, optional
        Either the full scenario dict or its ``simulation`` section:
            - 'dt'    : float -- physics step (s)
            - 'steps' : int   -- default number of steps for ``run``
    schedule : list of ThrustEvent, optional
    cache : StepCache, optional
        Shared snapshot cache; a fresh one if omitted.

    Attributes
    ----------
    fixed_time : float
        Physics time of the last completed step (s).
    telemetry : list of dict
        One record per step; see ``get_telemetry``.
    """

    def __init__(
        self,
        vehicle: Vehicle,
        config: Optional[Dict[str, Any]] = None,
        schedule: Optional[List[ThrustEvent]] = None,
        cache: Optional[StepCache] = None,
    ) -> None:
        config = config or {}
        sim_cfg = config.get("simulation", config)

        self.vehicle = vehicle
        self.dt: float = float(sim_cfg.get("dt", DEFAULT_DT))
        if not self.dt > 0.0:
            raise ValueError(f"Time step must be positive, got {self.dt}")
        self.default_steps: int = int(sim_cfg.get("steps", DEFAULT_STEPS))

        self.cache = cache if cache is not None else StepCache()
        self.schedule: List[ThrustEvent] = sorted(schedule or [], key=lambda e: e.time)
        self._next_event = 0

        self.fixed_time: float = 0.0
        self.step_count: int = 0
        self.telemetry: List[Dict[str, Any]] = []

        self._trim_parts = [
            p for p in vehicle.parts if isinstance(p.gimbal, AutoTrimGimbal)
        ]

    # ------------------------------------------------------------------ #
    #  Stepping
    # ------------------------------------------------------------------ #
    def step(self) -> Dict[str, Any]:
        """Advance one physics step and return its telemetry record."""
        self.step_count += 1
        self.fixed_time = self.step_count * self.dt

        self._apply_due_events()

        for part in self._trim_parts:
            part.gimbal.on_fixed_update(self.vehicle, self.cache, self.fixed_time)

        record = self._record()
        self.telemetry.append(record)
        return record

    def run(self, steps: Optional[int] = None) -> pd.DataFrame:
        """
        Run ``steps`` physics steps (config default if omitted).

        Returns
        -------
        pd.DataFrame
            Telemetry of the whole run so far.
        """
        n = self.default_steps if steps is None else int(steps)
        logger.info("Trim simulation started: %d steps, dt=%.4f s, %d trim gimbal(s)",
                    n, self.dt, len(self._trim_parts))

        for _ in range(n):
            self.step()

        logger.info("Trim simulation finished at t=%.3f s (%d aggregations)",
                    self.fixed_time, self.cache.aggregator.scan_count)
        return self.get_telemetry()

    def _apply_due_events(self) -> None:
        # Small tolerance so an event at t=k*dt fires on step k.
        due = self.fixed_time + 1e-9
        while (self._next_event < len(self.schedule)
               and self.schedule[self._next_event].time <= due):
            event = self.schedule[self._next_event]
            event.apply(self.vehicle)
            logger.info("t=%.3f: applied %s", self.fixed_time, event)
            self._next_event += 1

    # ------------------------------------------------------------------ #
    #  Telemetry
    # ------------------------------------------------------------------ #
    def _record(self) -> Dict[str, Any]:
        ti = self.cache.get(self.vehicle, self.fixed_time)
        net = ThrustGeometryAggregator.net_thrust(self.vehicle)

        record: Dict[str, Any] = {
            "time": self.fixed_time,
            "thrust_total": ti.total_thrust,
            "thrust_aligned": ti.thrust_aligned,
            "degenerate": ti.is_degenerate,
            "untrimmed_error_deg": off_axis_angle_deg(ti.current_direction, ti),
            "residual_error_deg": off_axis_angle_deg(net, ti),
        }

        for part in self._trim_parts:
            gimbal = part.gimbal
            solution = gimbal.last_solution
            prefix = part.name
            record[f"{prefix}_trim_angle"] = solution.trim_angle if solution else np.nan
            record[f"{prefix}_applied_angle"] = solution.applied_angle if solution else 0.0
            record[f"{prefix}_correction"] = solution.correction_magnitude if solution else np.nan
            record[f"{prefix}_deflection"] = max(
                (a.deflection_deg() for a in gimbal.actuators), default=0.0
            )
        return record

    def get_telemetry(self) -> pd.DataFrame:
        """
        Telemetry records as a DataFrame.

        Columns: time, thrust_total, thrust_aligned, degenerate,
        untrimmed_error_deg, residual_error_deg, and for each auto-trim
        part ``<part>_trim_angle``, ``<part>_applied_angle``,
        ``<part>_correction``, ``<part>_deflection``.
        """
        return pd.DataFrame(self.telemetry)

    def summary(self) -> Dict[str, Any]:
        """Aggregate statistics of the run."""
        df = self.get_telemetry()
        if df.empty:
            return {"steps": 0}
        return {
            "steps": int(len(df)),
            "final_time": float(df["time"].iloc[-1]),
            "aggregations": int(self.cache.aggregator.scan_count),
            "mean_untrimmed_error_deg": float(df["untrimmed_error_deg"].mean()),
            "mean_residual_error_deg": float(df["residual_error_deg"].mean()),
            "max_residual_error_deg": float(df["residual_error_deg"].max()),
        }

    def __repr__(self) -> str:
        return (f"TrimSimulation(vehicle={self.vehicle.name!r}, t={self.fixed_time:.3f} s, "
                f"steps={self.step_count})")
