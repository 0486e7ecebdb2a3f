"""
===============================================================================
GIMBAL AUTO-TRIM
===============================================================================
Per-step thrust trim for gimbaled engines: keeps the combined thrust vector of
a vehicle pointed through its center of mass, within a maximum deflection
angle per actuator group.

Subpackages:
    core          : Quaternion and vector primitives, constants
    dynamics      : Vehicle/part/engine model and thrust-geometry aggregation
    control       : Trim solver and the auto-trim gimbal step logic
    simulation    : Step cache and fixed-step host loop with telemetry
    visualization : Telemetry plots
===============================================================================
"""

__version__ = "0.1.0"
