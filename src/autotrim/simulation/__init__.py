"""
===============================================================================
GIMBAL AUTO-TRIM - Simulation Package
===============================================================================
Host-side glue that drives the trim logic one physics step at a time.

Modules:
    step_cache : One thrust snapshot per vehicle per physics step
    scenario   : YAML/dict scenario -> Vehicle and thrust schedule
    sim_engine : Fixed-step loop with pandas telemetry
===============================================================================
"""
