"""
===============================================================================
GIMBAL AUTO-TRIM - Thrust Geometry Aggregation
===============================================================================
Scans a vehicle once per physics step and condenses every active engine into
a ``ThrustInfo`` snapshot:

    center_of_mass      vehicle CoM at evaluation time
    center_of_thrust    sum_i(T_i * mean(p_ij)) / sum_i(T_i)
    direction_aligned   sum_i(T_i * sum_j(f_ij))   over trim-enabled engines
    thrust_aligned      sum_i(T_i)                 over trim-enabled engines
    direction_other     same sums over every other engine
    thrust_other

where T_i is the scalar thrust of engine i, p_ij the position of its j-th
thrust transform and f_ij that transform's forward direction *at its neutral
orientation*. Using the neutral pose makes the snapshot independent of any
trim already applied during a previous step, so the solver never feeds on
its own output.
===============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

import numpy as np

from autotrim.core.constants import THRUST_EPSILON
from autotrim.core.quaternion import Quaternion
from autotrim.dynamics.vehicle import Part, ThrustProducer, Vehicle

logger = logging.getLogger(__name__)


@dataclass
class ThrustInfo:
    """
    Per-vehicle, per-step thrust geometry snapshot.

    Attributes
    ----------
    center_of_mass : np.ndarray
        Vehicle center of mass (m).
    center_of_thrust : np.ndarray
        Thrust-weighted mean transform position (m). Zero when degenerate.
    direction_other : np.ndarray
        Thrust-weighted direction sum of engines without active trim (N).
    thrust_other : float
        Total thrust of engines without active trim (N).
    direction_aligned : np.ndarray
        Thrust-weighted direction sum of trim-enabled engines (N).
    thrust_aligned : float
        Total thrust of trim-enabled engines (N).

    Notes
    -----
    The direction sums add one forward vector per thrust transform, so an
    engine with k nozzles contributes up to k times its thrust to
    ``direction_*`` while adding its thrust only once to ``thrust_*``. The
    trim solver clamps against ``thrust_aligned`` and measures the
    correction on ``direction_aligned``; with multi-nozzle engines the two
    are on different scales.
    """
    center_of_mass: np.ndarray = field(default_factory=lambda: np.zeros(3))
    center_of_thrust: np.ndarray = field(default_factory=lambda: np.zeros(3))
    direction_other: np.ndarray = field(default_factory=lambda: np.zeros(3))
    thrust_other: float = 0.0
    direction_aligned: np.ndarray = field(default_factory=lambda: np.zeros(3))
    thrust_aligned: float = 0.0

    @property
    def total_thrust(self) -> float:
        return self.thrust_other + self.thrust_aligned

    @property
    def is_degenerate(self) -> bool:
        """No engine is producing thrust; the center of thrust is undefined."""
        return self.total_thrust <= THRUST_EPSILON

    @property
    def current_direction(self) -> np.ndarray:
        return self.direction_other + self.direction_aligned


class ThrustGeometryAggregator:
    """
    Builds ``ThrustInfo`` snapshots from a vehicle's parts.

    ``scan_count`` counts full part scans; the step cache is expected to keep
    it at one per vehicle per physics step.
    """

    def __init__(self) -> None:
        self.scan_count = 0

    # ------------------------------------------------------------------ #
    #  Snapshot
    # ------------------------------------------------------------------ #
    def aggregate(self, vehicle: Vehicle) -> ThrustInfo:
        """
        Scan every part of ``vehicle`` and return its thrust snapshot.

        A vehicle with no thrust at all yields a degenerate snapshot
        (``is_degenerate``) whose center of thrust is left at zero instead
        of dividing by zero.
        """
        self.scan_count += 1
        ti = ThrustInfo()
        weighted_cot = np.zeros(3)

        for part in vehicle.parts:
            producer = part.producer
            if producer is None or not producer.is_active:
                continue

            cot, dot = self._producer_geometry(part, producer)
            thrust = producer.thrust

            gimbal = part.gimbal
            if gimbal is not None and gimbal.trim_enabled:
                ti.direction_aligned = ti.direction_aligned + dot * thrust
                ti.thrust_aligned += thrust
            else:
                ti.direction_other = ti.direction_other + dot * thrust
                ti.thrust_other += thrust
            weighted_cot += cot * thrust

        if ti.is_degenerate:
            logger.debug("Vehicle %s: no thrust, snapshot is degenerate",
                         vehicle.vehicle_id)
        else:
            ti.center_of_thrust = weighted_cot / ti.total_thrust

        ti.center_of_mass = np.asarray(vehicle.center_of_mass(), dtype=np.float64)

        logger.debug(
            "Vehicle %s: aligned=%.3f N other=%.3f N cot=%s com=%s",
            vehicle.vehicle_id, ti.thrust_aligned, ti.thrust_other,
            ti.center_of_thrust, ti.center_of_mass,
        )
        return ti

    @staticmethod
    def _neutral_rotations(part: Part, producer: ThrustProducer) -> List[Quaternion]:
        """
        Orientation at which each transform's direction is sampled: the
        gimbal's neutral pose when the part is gimbaled, the current pose
        otherwise.
        """
        if part.gimbal is None:
            return [a.rotation for a in producer.actuators]

        neutral = part.gimbal.neutral_rotations()
        return [
            neutral[i] if i < len(neutral) else actuator.rotation
            for i, actuator in enumerate(producer.actuators)
        ]

    def _producer_geometry(self, part: Part, producer: ThrustProducer):
        """
        Mean transform position and summed neutral forward direction of one
        engine (both unweighted).
        """
        rotations = self._neutral_rotations(part, producer)

        positions = np.array([a.position for a in producer.actuators])
        forwards = np.array([
            a.forward_at(rot) for a, rot in zip(producer.actuators, rotations)
        ])

        return positions.mean(axis=0), forwards.sum(axis=0)

    # ------------------------------------------------------------------ #
    #  Diagnostics
    # ------------------------------------------------------------------ #
    @staticmethod
    def net_thrust(vehicle: Vehicle) -> np.ndarray:
        """
        Thrust-weighted direction sum at the *current* actuator poses, i.e.
        what the engines are actually doing after trim.
        """
        total = np.zeros(3)
        for producer in vehicle.producers():
            if not producer.is_active:
                continue
            forwards = np.array([a.forward for a in producer.actuators])
            total += forwards.sum(axis=0) * producer.thrust
        return total
