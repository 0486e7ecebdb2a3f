"""
===============================================================================
GIMBAL AUTO-TRIM - Trim Solver
===============================================================================
Closed-form correction that turns the trim-enabled engines so the combined
thrust line passes through the center of mass.

Geometry
--------
Everything happens in the plane spanned by the *optimal* direction (center
of thrust minus center of mass) and the perpendicular *correction* axis:

    optimal     o = CoT - CoM            (sign flipped to agree with thrust)
    current     c = d_other + d_aligned
    correction  e = reject(c, o)          off-axis part of the total thrust
    x = clamp(reject(d_aligned, o) . e_hat - |e|, -T, T)
    y = sqrt(T^2 - x^2)
    trimmed     t = e_hat * x + o_hat * y

with T the trim-enabled thrust. ``t`` has the same magnitude as the aligned
thrust; only its direction changes. The rotation that turns ``d_aligned``
into ``t`` is then capped at the configured trim limit:

    ratio = 1                     if angle <= limit
          = limit / angle         otherwise

and ``slerp(identity, rotation, ratio)`` is applied to each trim-enabled
actuator starting from its neutral pose. Corrections never accumulate: each
step starts again from neutral.
===============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

import numpy as np

from autotrim.core.constants import (
    ANGLE_EPSILON_DEG,
    TRIM_LIMIT_MAX_DEG,
    TRIM_LIMIT_MIN_DEG,
    VECTOR_EPSILON,
)
from autotrim.core.quaternion import Quaternion
from autotrim.core.vector_ops import (
    angle_between_deg,
    magnitude,
    normalized,
    reject,
)
from autotrim.dynamics.thrust_geometry import ThrustInfo
from autotrim.dynamics.vehicle import ActuatorState

logger = logging.getLogger(__name__)


# =============================================================================
# ERRORS
# =============================================================================

class TrimError(ValueError):
    """Base class for conditions under which no trim can be computed."""


class DegenerateGeometryError(TrimError):
    """
    The thrust geometry does not define an optimal direction: either no
    engine produces thrust, or the center of thrust sits on the center of
    mass.
    """


class UnreachableCorrectionError(TrimError):
    """
    The target direction cannot be reached by a well-defined rotation
    (non-finite intermediate values, zero-length or anti-parallel aligned
    direction).
    """


def validate_trim_limit(trim_limit: float) -> float:
    """Return ``trim_limit`` as float, rejecting values outside [0, 90] deg."""
    value = float(trim_limit)
    if not np.isfinite(value) or not (TRIM_LIMIT_MIN_DEG <= value <= TRIM_LIMIT_MAX_DEG):
        raise ValueError(
            f"Trim limit must be within [{TRIM_LIMIT_MIN_DEG:.0f}, "
            f"{TRIM_LIMIT_MAX_DEG:.0f}] deg, got {trim_limit}"
        )
    return value


# =============================================================================
# SOLUTION RECORD
# =============================================================================

@dataclass
class TrimSolution:
    """
    Every intermediate quantity of one solver evaluation.

    Attributes
    ----------
    optimal_direction : np.ndarray
        CoT - CoM, sign-aligned with the current thrust.
    current_direction : np.ndarray
        Total thrust direction sum (N).
    correction : np.ndarray
        Component of the current direction perpendicular to the optimal one.
    thrust_aligned_perp : float
        Signed component of the trim-enabled direction sum along the
        correction axis.
    x, y : float
        Perpendicular / parallel components of the trimmed direction.
    trimmed_direction : np.ndarray
        Target direction sum for the trim-enabled engines.
    trim_angle : float
        Angle (deg) between the aligned direction and the target.
    trim_rotation : Quaternion
        Full rotation from the aligned direction to the target.
    trim_ratio : float
        Fraction of ``trim_rotation`` actually applied, in [0, 1].
    applied_rotation : Quaternion
        ``slerp(identity, trim_rotation, trim_ratio)``.
    """
    optimal_direction: np.ndarray
    current_direction: np.ndarray
    correction: np.ndarray
    thrust_aligned_perp: float
    x: float
    y: float
    trimmed_direction: np.ndarray
    trim_angle: float
    trim_rotation: Quaternion
    trim_ratio: float
    applied_rotation: Quaternion

    @property
    def correction_magnitude(self) -> float:
        return magnitude(self.correction)

    @property
    def applied_angle(self) -> float:
        """Deflection actually applied this step (deg)."""
        return self.trim_angle * self.trim_ratio


# =============================================================================
# SOLVER
# =============================================================================

class TrimSolver:
    """
    Stateless trim solver. ``solve`` is pure; ``apply`` and ``reset``
    write actuator orientations.
    """

    @staticmethod
    def trim_ratio(trim_angle: float, trim_limit: float) -> float:
        """
        Fraction of the ideal rotation allowed by the limit.

        Equivalent to ``min(trim_limit / trim_angle, 1)`` without the
        division by zero at ``trim_angle == 0``.
        """
        if trim_angle <= trim_limit:
            return 1.0
        return trim_limit / trim_angle

    def solve(self, ti: ThrustInfo, trim_limit: float) -> TrimSolution:
        """
        Compute the capped trim rotation for one vehicle snapshot.

        Parameters
        ----------
        ti : ThrustInfo
            Snapshot with ``thrust_aligned > 0``.
        trim_limit : float
            Maximum deflection (deg), in [0, 90].

        Returns
        -------
        TrimSolution

        Raises
        ------
        DegenerateGeometryError
            No thrust at all, or CoT coincides with CoM.
        UnreachableCorrectionError
            The target rotation is undefined or non-finite.
        TrimError
            Called without trim-enabled thrust.
        """
        trim_limit = validate_trim_limit(trim_limit)

        if ti.is_degenerate:
            raise DegenerateGeometryError("Total thrust is zero; center of thrust undefined.")
        if ti.thrust_aligned <= 0.0:
            raise TrimError("No trim-enabled thrust to redistribute.")

        optimal = ti.center_of_thrust - ti.center_of_mass
        if magnitude(optimal) < VECTOR_EPSILON:
            raise DegenerateGeometryError("Center of thrust coincides with center of mass.")

        if magnitude(ti.direction_aligned) < VECTOR_EPSILON:
            raise UnreachableCorrectionError(
                "Trim-enabled thrust has no net direction (nozzles cancel out)."
            )

        current = ti.current_direction

        # CoT behind CoM relative to the thrust: take the other branch.
        if np.dot(optimal, current) < 0.0:
            optimal = -optimal

        correction = reject(current, optimal)
        aligned_perp = reject(ti.direction_aligned, optimal)

        # With nothing to correct the plane is spanned by the aligned
        # engines' own off-axis component, which keeps them where they are.
        axis = normalized(correction)
        if magnitude(axis) == 0.0:
            axis = normalized(aligned_perp)

        # Negative when the aligned engines lean against the correction.
        thrust_aligned_perp = float(np.dot(aligned_perp, axis))

        t_aligned = ti.thrust_aligned
        x = float(np.clip(thrust_aligned_perp - magnitude(correction), -t_aligned, t_aligned))
        y = float(np.sqrt(t_aligned * t_aligned - x * x))

        trimmed = axis * x + normalized(optimal) * y
        trim_angle = angle_between_deg(ti.direction_aligned, trimmed)

        if not (np.all(np.isfinite(trimmed)) and np.isfinite(trim_angle)):
            raise UnreachableCorrectionError(
                f"Non-finite trim target (x={x}, y={y}, angle={trim_angle})"
            )

        if trim_angle < ANGLE_EPSILON_DEG:
            trim_rotation = Quaternion.identity()
        else:
            try:
                trim_rotation = Quaternion.from_to_rotation(ti.direction_aligned, trimmed)
            except ValueError as exc:
                raise UnreachableCorrectionError(str(exc)) from exc

        ratio = self.trim_ratio(trim_angle, trim_limit)
        applied = Quaternion.slerp(Quaternion.identity(), trim_rotation, ratio)

        if not applied.is_finite():
            raise UnreachableCorrectionError("Applied rotation is not finite.")

        logger.debug(
            "Trim: correction=%.4f perp=%.4f x=%.4f y=%.4f angle=%.3f deg ratio=%.3f",
            magnitude(correction), thrust_aligned_perp, x, y, trim_angle, ratio,
        )

        return TrimSolution(
            optimal_direction=optimal,
            current_direction=current,
            correction=correction,
            thrust_aligned_perp=thrust_aligned_perp,
            x=x,
            y=y,
            trimmed_direction=trimmed,
            trim_angle=trim_angle,
            trim_rotation=trim_rotation,
            trim_ratio=ratio,
            applied_rotation=applied,
        )

    @staticmethod
    def apply(solution: TrimSolution, actuators: Iterable[ActuatorState]) -> None:
        """
        Set each actuator to its neutral pose turned by the applied
        rotation. The neutral pose itself is left untouched.
        """
        for actuator in actuators:
            actuator.rotate_from_neutral(solution.applied_rotation)

    @staticmethod
    def reset(actuators: Iterable[ActuatorState]) -> None:
        """Put every actuator back to its neutral pose."""
        for actuator in actuators:
            actuator.reset()
