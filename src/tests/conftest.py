"""
===============================================================================
GIMBAL AUTO-TRIM - Shared Test Fixtures
===============================================================================
Factories for small vehicles. Unless stated otherwise a vehicle has a
massive body at the origin (so the center of mass is the origin) and
massless engine parts whose nozzles sit below it at z = -5.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import pytest

from autotrim.control.auto_trim import AutoTrimGimbal
from autotrim.core.quaternion import Quaternion
from autotrim.dynamics.vehicle import ActuatorState, Gimbal, Part, ThrustProducer, Vehicle


def _rotation_towards(direction):
    """Local rotation that points +Z along ``direction``."""
    d = np.asarray(direction, dtype=float)
    d = d / np.linalg.norm(d)
    if np.dot(d, [0.0, 0.0, 1.0]) < -1.0 + 1e-12:
        return Quaternion.from_axis_angle(np.array([1.0, 0.0, 0.0]), np.pi)
    return Quaternion.from_to_rotation(np.array([0.0, 0.0, 1.0]), d)


@pytest.fixture
def make_engine_part():
    """
    Factory: ``make_engine_part(name, thrust=100, forward=(0,0,1),
    nozzles=((0,0,-5),), gimbal=None|'plain'|'trim', trim_enabled=True,
    trim_limit=45, mount=None, mass=0)``.
    """
    def _make(name, thrust=100.0, forward=(0.0, 0.0, 1.0),
              nozzles=((0.0, 0.0, -5.0),), gimbal=None, trim_enabled=True,
              trim_limit=45.0, mount=None, mass=0.0):
        mount_q = mount if mount is not None else Quaternion.identity()
        neutral = _rotation_towards(forward)
        actuators = [
            ActuatorState(position=np.array(p, dtype=float),
                          neutral_rotation=neutral.copy(),
                          mount_rotation=mount_q,
                          name=f"{name}[{i}]")
            for i, p in enumerate(nozzles)
        ]
        producer = ThrustProducer(name=name, actuators=actuators, thrust=thrust)

        gimbal_obj = None
        if gimbal == 'plain':
            gimbal_obj = Gimbal(actuators)
        elif gimbal == 'trim':
            gimbal_obj = AutoTrimGimbal(actuators, trim_enabled=trim_enabled,
                                        trim_limit=trim_limit, name=name)

        position = np.mean(np.array(nozzles, dtype=float), axis=0)
        return Part(name=name, position=position, mass=mass,
                    producer=producer, gimbal=gimbal_obj)
    return _make


@pytest.fixture
def make_vehicle():
    """
    Factory: ``make_vehicle(*parts, body_mass=1000, body_position=(0,0,0),
    vehicle_id='test-vehicle')``.
    """
    def _make(*parts, body_mass=1000.0, body_position=(0.0, 0.0, 0.0),
              vehicle_id='test-vehicle'):
        body = Part(name='body', position=np.array(body_position, dtype=float),
                    mass=body_mass)
        return Vehicle([body, *parts], name='test', vehicle_id=vehicle_id)
    return _make
