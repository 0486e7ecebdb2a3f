"""
===============================================================================
GIMBAL AUTO-TRIM - Control Package
===============================================================================
Closed-form trim correction and its per-step application.

Modules:
    trim_solver : TrimSolver, TrimSolution and the trim error hierarchy
    auto_trim   : AutoTrimGimbal, the trim-capable gimbal and its step logic
===============================================================================
"""
