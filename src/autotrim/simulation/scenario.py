"""
===============================================================================
GIMBAL AUTO-TRIM - Scenario Loading
===============================================================================
Builds a ``Vehicle`` and its thrust schedule from a configuration dictionary
(typically loaded from YAML):

    simulation:
        dt: 0.02
        steps: 250
    vehicle:
        id: demo-lander            # optional, random UUID otherwise
        name: Demo Lander
        parts:
            - name: tank
              position: [0.0, 0.0, 0.0]
              mass: 6000.0
            - name: main_engine
              position: [0.0, 0.0, -3.0]
              mass: 800.0
              rotation: {axis: [0, 1, 0], angle_deg: 0}   # mount, optional
              engine:
                  thrust: 150.0
                  enabled: true
                  nozzles:
                      - position: [0.0, 0.0, -4.0]
                        rotation: [1, 0, 0, 0]            # [w, x, y, z]
              gimbal:
                  auto_trim: true
                  trim_enabled: true
                  trim_limit: 45
    schedule:
        - {time: 2.0, part: main_engine, thrust: 0.0}
        - {time: 3.0, part: side_engine, enabled: false}

Missing keys fall back to defaults. An engine without ``nozzles`` gets a
single nozzle at the part position.
===============================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import yaml

from autotrim.control.auto_trim import AutoTrimGimbal
from autotrim.core.constants import DEFAULT_TRIM_ENABLED, DEFAULT_TRIM_LIMIT_DEG
from autotrim.core.quaternion import Quaternion, as_quaternion
from autotrim.dynamics.vehicle import (
    ActuatorState,
    Gimbal,
    Part,
    ThrustProducer,
    Vehicle,
)

logger = logging.getLogger(__name__)


@dataclass
class ThrustEvent:
    """Change of an engine's thrust and/or enabled flag at a given time."""
    time: float
    part: str
    thrust: Optional[float] = None
    enabled: Optional[bool] = None

    def apply(self, vehicle: Vehicle) -> None:
        producer = vehicle.find_part(self.part).producer
        if producer is None:
            raise ValueError(f"Schedule targets part '{self.part}' which has no engine")
        if self.thrust is not None:
            producer.set_thrust(self.thrust)
        if self.enabled is not None:
            producer.enabled = bool(self.enabled)


def load_config(path: str) -> Dict[str, Any]:
    """Read a YAML scenario file."""
    config_path = Path(path)
    logger.info("Loading scenario from %s", config_path)
    with config_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_rotation(value: Any) -> Quaternion:
    """
    Rotation from config: None (identity), ``[w, x, y, z]``, or
    ``{axis: [...], angle_deg: ...}``.
    """
    if value is None:
        return Quaternion.identity()
    if isinstance(value, dict):
        angle = float(value.get("angle_deg", 0.0))
        if angle == 0.0:
            return Quaternion.identity()
        return Quaternion.from_axis_angle(np.asarray(value.get("axis", [0, 0, 1]), dtype=float),
                                          np.radians(angle))
    return as_quaternion(value)


def _build_part(cfg: Dict[str, Any]) -> Part:
    name = str(cfg.get("name", "part"))
    position = np.asarray(cfg.get("position", [0.0, 0.0, 0.0]), dtype=float)
    mount = parse_rotation(cfg.get("rotation"))

    producer = None
    engine_cfg = cfg.get("engine")
    if engine_cfg is not None:
        nozzles = engine_cfg.get("nozzles") or [{"position": position.tolist()}]
        actuators = []
        for i, nozzle in enumerate(nozzles):
            neutral = parse_rotation(nozzle.get("rotation"))
            actuators.append(ActuatorState(
                position=np.asarray(nozzle.get("position", position), dtype=float),
                neutral_rotation=neutral,
                mount_rotation=mount,
                name=f"{name}[{i}]",
            ))
        producer = ThrustProducer(
            name=name,
            actuators=actuators,
            thrust=float(engine_cfg.get("thrust", 0.0)),
            enabled=bool(engine_cfg.get("enabled", True)),
        )

    gimbal = None
    gimbal_cfg = cfg.get("gimbal")
    if gimbal_cfg is not None:
        if producer is None:
            raise ValueError(f"Part '{name}' has a gimbal but no engine to gimbal")
        if gimbal_cfg.get("auto_trim", True):
            gimbal = AutoTrimGimbal(
                producer.actuators,
                trim_enabled=gimbal_cfg.get("trim_enabled", DEFAULT_TRIM_ENABLED),
                trim_limit=gimbal_cfg.get("trim_limit", DEFAULT_TRIM_LIMIT_DEG),
                name=name,
            )
        else:
            gimbal = Gimbal(producer.actuators)

    return Part(
        name=name,
        position=position,
        mass=float(cfg.get("mass", 0.0)),
        producer=producer,
        gimbal=gimbal,
    )


def build_vehicle(config: Dict[str, Any]) -> Vehicle:
    """Vehicle from the ``vehicle`` section (or a bare vehicle dict)."""
    vc = config.get("vehicle", config)
    parts_cfg = vc.get("parts") or []
    if not parts_cfg:
        raise ValueError("Vehicle configuration has no parts")

    parts = [_build_part(p) for p in parts_cfg]
    names = [p.name for p in parts]
    if len(set(names)) != len(names):
        raise ValueError(f"Duplicate part names in vehicle configuration: {names}")

    vehicle_id = vc.get("id")
    vehicle = Vehicle(parts, name=str(vc.get("name", "vehicle")),
                      vehicle_id=None if vehicle_id is None else str(vehicle_id))
    logger.info("Built %r", vehicle)
    return vehicle


def build_schedule(config: Dict[str, Any]) -> List[ThrustEvent]:
    """Thrust events sorted by time."""
    events = [
        ThrustEvent(
            time=float(e["time"]),
            part=str(e["part"]),
            thrust=None if e.get("thrust") is None else float(e["thrust"]),
            enabled=e.get("enabled"),
        )
        for e in (config.get("schedule") or [])
    ]
    return sorted(events, key=lambda e: e.time)
