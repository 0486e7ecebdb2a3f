"""
===============================================================================
GIMBAL AUTO-TRIM - Vehicle Model
===============================================================================
Minimal rigid-vehicle description consumed by the thrust aggregator:

    Vehicle ──< Part ──┬── ThrustProducer ──< ActuatorState
                       └── GimbalCapability ──> (same ActuatorState objects)

Conventions
-----------
    - All positions and directions are in the vehicle frame (m).
    - An actuator's orientation is local to its part; the part's mount
      rotation takes it to the vehicle frame.
    - Thrust transforms point along local +Z (``FORWARD_AXIS``).

The vehicle does not move. It exists so the trim core can be exercised the
way a host physics engine would exercise it.
===============================================================================
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from autotrim.core.constants import FORWARD_AXIS
from autotrim.core.quaternion import Quaternion
from autotrim.core.vector_ops import as_vector


# ============================================================================
#  ACTUATOR STATE
# ============================================================================

@dataclass
class ActuatorState:
    """
    One gimbaled thrust transform.

    Parameters
    ----------
    position : np.ndarray
        Nozzle position in the vehicle frame (m).
    neutral_rotation : Quaternion
        Pose with zero trim applied. Never modified after construction.
    rotation : Quaternion, optional
        Current local orientation. Defaults to ``neutral_rotation``.
    mount_rotation : Quaternion
        Orientation of the hosting part in the vehicle frame.
    name : str
        Label used in telemetry.
    """
    position: np.ndarray
    neutral_rotation: Quaternion = field(default_factory=Quaternion.identity)
    rotation: Optional[Quaternion] = None
    mount_rotation: Quaternion = field(default_factory=Quaternion.identity)
    name: str = ""

    def __post_init__(self) -> None:
        self.position = as_vector(self.position)
        if self.rotation is None:
            self.rotation = self.neutral_rotation.copy()

    def forward_at(self, rotation: Quaternion) -> np.ndarray:
        """
        Vehicle-frame forward direction this actuator would have at the
        given local ``rotation``. Pure: the actuator is not touched.
        """
        return self.mount_rotation.rotate_vector(rotation.rotate_vector(FORWARD_AXIS))

    @property
    def forward(self) -> np.ndarray:
        """Forward direction at the current orientation."""
        return self.forward_at(self.rotation)

    @property
    def neutral_forward(self) -> np.ndarray:
        return self.forward_at(self.neutral_rotation)

    def reset(self) -> None:
        """Return to the neutral pose."""
        self.rotation = self.neutral_rotation.copy()

    def rotate_from_neutral(self, rotation: Quaternion) -> None:
        """
        Set the current orientation to ``rotation`` (vehicle frame) applied
        on top of the neutral pose.

        The vehicle-frame pose is ``mount * local``, so the new local pose is

            local = mount^-1 * rotation * mount * neutral

        which turns the forward direction by exactly ``rotation`` and keeps
        the nozzle roll.
        """
        mount = self.mount_rotation
        self.rotation = mount.inverse() * rotation * mount * self.neutral_rotation

    def deflection_deg(self) -> float:
        """Angle between the current and the neutral pose (degrees)."""
        return float(np.degrees(self.neutral_rotation.angle_to(self.rotation)))


# ============================================================================
#  THRUST PRODUCER
# ============================================================================

@dataclass
class ThrustProducer:
    """
    Engine-like entity: a set of thrust transforms sharing one scalar thrust.

    ``thrust`` is the total current thrust of the engine (all transforms
    together). Read-only to the trim core.
    """
    name: str
    actuators: List[ActuatorState] = field(default_factory=list)
    thrust: float = 0.0
    enabled: bool = True

    def __post_init__(self) -> None:
        self.set_thrust(self.thrust)

    def set_thrust(self, thrust: float) -> None:
        thrust = float(thrust)
        if not np.isfinite(thrust) or thrust < 0.0:
            raise ValueError(f"Thrust must be finite and non-negative, got {thrust}")
        self.thrust = thrust

    @property
    def is_active(self) -> bool:
        """Enabled and owning at least one thrust transform."""
        return self.enabled and len(self.actuators) > 0


# ============================================================================
#  GIMBAL CAPABILITY
# ============================================================================

class GimbalCapability(ABC):
    """
    Public contract of anything that gimbals thrust transforms.

    The aggregator only needs the neutral orientation of each transform and
    whether the group takes part in auto-trim.
    """

    @property
    @abstractmethod
    def actuators(self) -> List[ActuatorState]:
        ...

    @property
    @abstractmethod
    def trim_enabled(self) -> bool:
        ...

    def neutral_rotations(self) -> List[Quaternion]:
        """Neutral orientation of each gimbaled transform, in order."""
        return [a.neutral_rotation for a in self.actuators]


class Gimbal(GimbalCapability):
    """Plain gimbal without auto-trim."""

    def __init__(self, actuators: List[ActuatorState]) -> None:
        self._actuators = list(actuators)

    @property
    def actuators(self) -> List[ActuatorState]:
        return self._actuators

    @property
    def trim_enabled(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"Gimbal(n={len(self._actuators)})"


# ============================================================================
#  PART / VEHICLE
# ============================================================================

@dataclass
class Part:
    """A structural part; may host an engine and/or a gimbal."""
    name: str
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    mass: float = 0.0
    producer: Optional[ThrustProducer] = None
    gimbal: Optional[GimbalCapability] = None

    def __post_init__(self) -> None:
        self.position = as_vector(self.position)
        if self.mass < 0.0:
            raise ValueError(f"Part '{self.name}' has negative mass {self.mass}")


class Vehicle:
    """
    Collection of parts with a stable identity.

    Parameters
    ----------
    parts : list of Part
    name : str
    vehicle_id : str, optional
        Stable handle used to key per-step caches. A random UUID if omitted.
    """

    def __init__(self, parts: List[Part], name: str = "vehicle",
                 vehicle_id: Optional[str] = None) -> None:
        self.parts = list(parts)
        self.name = name
        self.vehicle_id = vehicle_id if vehicle_id is not None else str(uuid.uuid4())

    def center_of_mass(self) -> np.ndarray:
        """
        Mass-weighted mean of part positions. The origin if the vehicle is
        massless.
        """
        total_mass = sum(p.mass for p in self.parts)
        if total_mass <= 0.0:
            return np.zeros(3)
        weighted = sum((p.mass * p.position for p in self.parts), np.zeros(3))
        return weighted / total_mass

    def total_mass(self) -> float:
        return float(sum(p.mass for p in self.parts))

    def producers(self) -> List[ThrustProducer]:
        return [p.producer for p in self.parts if p.producer is not None]

    def gimbals(self) -> List[GimbalCapability]:
        return [p.gimbal for p in self.parts if p.gimbal is not None]

    def find_part(self, name: str) -> Part:
        for part in self.parts:
            if part.name == name:
                return part
        raise KeyError(f"Vehicle '{self.name}' has no part named '{name}'")

    def __repr__(self) -> str:
        return (f"Vehicle(name={self.name!r}, id={self.vehicle_id}, "
                f"parts={len(self.parts)}, mass={self.total_mass():.1f} kg)")
