"""
===============================================================================
GIMBAL AUTO-TRIM - Auto-Trim Gimbal
===============================================================================
Trim-capable gimbal. Once per physics step the host calls
``on_fixed_update``; the gimbal then moves through

    Neutral --[trim enabled and aligned thrust > 0]--> Corrected(angle, ratio)
    Corrected --(next step)--> Neutral --> ...

There is no accumulated trim: every step starts from the neutral pose, and
any step where no correction can be computed leaves the actuators neutral.

Display fields mirror what an in-flight status panel shows:

    correction    off-axis thrust vector, 2 decimals
    trim_angle    ideal correction angle (deg), 2 decimals
    trim_status   applied angle, e.g. "12.5 deg"
===============================================================================
"""

from __future__ import annotations

import logging
from typing import List, Optional

from autotrim.control.trim_solver import (
    DegenerateGeometryError,
    TrimSolution,
    TrimSolver,
    UnreachableCorrectionError,
    validate_trim_limit,
)
from autotrim.core.constants import DEFAULT_TRIM_ENABLED, DEFAULT_TRIM_LIMIT_DEG
from autotrim.core.vector_ops import format_vector
from autotrim.dynamics.vehicle import ActuatorState, GimbalCapability, Vehicle
from autotrim.simulation.step_cache import StepCache

logger = logging.getLogger(__name__)


class AutoTrimGimbal(GimbalCapability):
    """
    Gimbal whose neutral reference is trimmed every step.

    Parameters
    ----------
    actuators : list of ActuatorState
        Gimbaled thrust transforms (shared with the engine).
    trim_enabled : bool
        User toggle; off by default.
    trim_limit : float
        Maximum deflection in degrees, within [0, 90].
    solver : TrimSolver, optional
    name : str
        Label for logs and telemetry.
    """

    def __init__(
        self,
        actuators: List[ActuatorState],
        trim_enabled: bool = DEFAULT_TRIM_ENABLED,
        trim_limit: float = DEFAULT_TRIM_LIMIT_DEG,
        solver: Optional[TrimSolver] = None,
        name: str = "",
    ) -> None:
        self._actuators = list(actuators)
        self._trim_enabled = bool(trim_enabled)
        self._trim_limit = validate_trim_limit(trim_limit)
        self.solver = solver if solver is not None else TrimSolver()
        self.name = name

        self.correction = ""
        self.trim_angle = ""
        self.trim_status = ""
        self.status_visible = self._trim_enabled
        self.last_solution: Optional[TrimSolution] = None

    # ------------------------------------------------------------------ #
    #  Capability contract
    # ------------------------------------------------------------------ #
    @property
    def actuators(self) -> List[ActuatorState]:
        return self._actuators

    @property
    def trim_enabled(self) -> bool:
        return self._trim_enabled

    @trim_enabled.setter
    def trim_enabled(self, value: bool) -> None:
        self._trim_enabled = bool(value)

    @property
    def trim_limit(self) -> float:
        return self._trim_limit

    @trim_limit.setter
    def trim_limit(self, value: float) -> None:
        self._trim_limit = validate_trim_limit(value)

    # ------------------------------------------------------------------ #
    #  Per-step update
    # ------------------------------------------------------------------ #
    def on_fixed_update(self, vehicle: Optional[Vehicle], cache: StepCache,
                        fixed_time: float) -> Optional[TrimSolution]:
        """
        Run one physics step for this actuator group.

        Parameters
        ----------
        vehicle : Vehicle or None
            Owning vehicle; nothing happens without one (e.g. in an editor).
        cache : StepCache
            Shared per-step snapshot cache.
        fixed_time : float
            Current physics time (s).

        Returns
        -------
        TrimSolution or None
            The applied solution, or None when the actuators were left at
            neutral.
        """
        if vehicle is None:
            return None

        self.status_visible = self._trim_enabled

        if not self._trim_enabled:
            self._return_to_neutral()
            return None

        ti = cache.get(vehicle, fixed_time)

        if ti.thrust_aligned <= 0.0:
            self._return_to_neutral()
            return None

        try:
            solution = self.solver.solve(ti, self._trim_limit)
        except DegenerateGeometryError as exc:
            logger.debug("%s: no trim at t=%.3f (%s)", self.name or "gimbal", fixed_time, exc)
            self._return_to_neutral()
            return None
        except UnreachableCorrectionError as exc:
            logger.warning("%s: trim skipped at t=%.3f: %s",
                           self.name or "gimbal", fixed_time, exc)
            self._return_to_neutral()
            return None

        self.solver.apply(solution, self._actuators)
        self.last_solution = solution

        self.correction = format_vector(solution.correction, 2)
        self.trim_angle = f"{solution.trim_angle:.2f}"
        self.trim_status = f"{solution.applied_angle:.1f} deg"
        return solution

    def _return_to_neutral(self) -> None:
        self.solver.reset(self._actuators)
        self.last_solution = None
        self.correction = ""
        self.trim_angle = ""
        self.trim_status = ""

    def __repr__(self) -> str:
        return (f"AutoTrimGimbal(name={self.name!r}, n={len(self._actuators)}, "
                f"enabled={self._trim_enabled}, limit={self._trim_limit:.1f} deg)")
