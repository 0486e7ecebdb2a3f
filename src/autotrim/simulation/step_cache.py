"""
===============================================================================
GIMBAL AUTO-TRIM - Step Cache
===============================================================================
Every auto-trim gimbal on a vehicle needs the same ``ThrustInfo`` during a
physics step. The cache hands out one snapshot per vehicle per step: the
first gimbal to ask triggers the aggregation, the others read the stored
object.

Invalidation is purely time based. When the physics time passed to ``get``
differs from the time the entries were built for, all entries are dropped.
The host loop is single threaded, so the timestamp comparison alone bounds
the work to one scan per vehicle per step; no locking is involved.

The cache is an ordinary object owned by the host loop and handed to every
gimbal, not a module-level singleton.
===============================================================================
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from autotrim.dynamics.thrust_geometry import ThrustGeometryAggregator, ThrustInfo
from autotrim.dynamics.vehicle import Vehicle

logger = logging.getLogger(__name__)


class StepCache:
    """
    Per-step map of vehicle identity to ``ThrustInfo``.

    Parameters
    ----------
    aggregator : ThrustGeometryAggregator, optional
        Used to build missing entries. A fresh one if omitted.

    Attributes
    ----------
    invalidations : int
        Number of times the entries were dropped because time moved.
    """

    def __init__(self, aggregator: Optional[ThrustGeometryAggregator] = None) -> None:
        self.aggregator = aggregator if aggregator is not None else ThrustGeometryAggregator()
        self._fixed_time: Optional[float] = None
        self._entries: Dict[str, ThrustInfo] = {}
        self.invalidations = 0

    @property
    def fixed_time(self) -> Optional[float]:
        """Physics time the current entries belong to (None before first use)."""
        return self._fixed_time

    def get(self, vehicle: Vehicle, fixed_time: float) -> ThrustInfo:
        """
        Snapshot of ``vehicle`` for the step at ``fixed_time``.

        Any change of ``fixed_time`` (forward or backward) drops every
        stored entry before the lookup.
        """
        if self._fixed_time != fixed_time:
            if self._entries:
                self.invalidations += 1
            self._entries = {}
            self._fixed_time = fixed_time

        ti = self._entries.get(vehicle.vehicle_id)
        if ti is None:
            ti = self.aggregator.aggregate(vehicle)
            self._entries[vehicle.vehicle_id] = ti
            logger.debug("Cached thrust snapshot for %s at t=%.4f",
                         vehicle.vehicle_id, fixed_time)
        return ti

    def clear(self) -> None:
        self._entries = {}
        self._fixed_time = None

    def __contains__(self, vehicle_id: str) -> bool:
        return vehicle_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"StepCache(t={self._fixed_time}, vehicles={len(self._entries)})"
