"""
===============================================================================
GIMBAL AUTO-TRIM - Dynamics Package
===============================================================================
Vehicle description and the per-step thrust geometry snapshot.

Submodules:
    vehicle         -- Parts, engines, thrust transforms and gimbal contract
    thrust_geometry -- ThrustInfo snapshot and ThrustGeometryAggregator
===============================================================================
"""
