"""
===============================================================================
GIMBAL AUTO-TRIM - Visualization Package
===============================================================================
Modules:
    trim_plots : Time histories of trim angles and off-axis thrust error
===============================================================================
"""
