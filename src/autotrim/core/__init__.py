"""
===============================================================================
GIMBAL AUTO-TRIM - Core Package
===============================================================================
Math primitives shared by every other package.

Modules:
    constants  : Forward axis, trim limits and numerical tolerances
    quaternion : Scalar-first unit quaternion for actuator orientations
    vector_ops : Vector rejection, angles and formatting helpers
===============================================================================
"""
