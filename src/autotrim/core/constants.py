"""
===============================================================================
GIMBAL AUTO-TRIM - Constants
===============================================================================
Frame convention, trim configuration limits and numerical tolerances used
throughout the package. Angles exposed to users are in degrees (they are
what an editor slider shows); internal trigonometry uses radians.
===============================================================================
"""

import numpy as np


# =============================================================================
# FRAME CONVENTIONS
# =============================================================================
# Thrust transforms point along their local +Z axis at identity orientation.
FORWARD_AXIS = np.array([0.0, 0.0, 1.0])

# =============================================================================
# TRIM CONFIGURATION
# =============================================================================
TRIM_LIMIT_MIN_DEG = 0.0               # Editor slider lower bound
TRIM_LIMIT_MAX_DEG = 90.0              # Editor slider upper bound
TRIM_LIMIT_STEP_DEG = 5.0              # Editor slider increment
DEFAULT_TRIM_LIMIT_DEG = 45.0
DEFAULT_TRIM_ENABLED = False

# =============================================================================
# NUMERICAL TOLERANCES
# =============================================================================
VECTOR_EPSILON = 1e-9                  # Below this a vector is treated as zero
ANGLE_EPSILON_DEG = 1e-9
THRUST_EPSILON = 0.0                   # Total thrust must exceed this

# =============================================================================
# SIMULATION DEFAULTS
# =============================================================================
DEFAULT_DT = 0.02                      # s, fixed physics step
DEFAULT_STEPS = 250
