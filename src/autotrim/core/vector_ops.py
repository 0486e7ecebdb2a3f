"""
===============================================================================
GIMBAL AUTO-TRIM - Vector Helpers
===============================================================================
Small numpy helpers for the geometric construction in the trim solver.

Zero-length inputs are handled explicitly rather than producing NaN: a
zero vector normalizes to zero, and rejecting from a zero vector returns the
input unchanged. The solver relies on both (e.g. a zero correction vector
when thrust is already aligned).
===============================================================================
"""

import numpy as np

from autotrim.core.constants import VECTOR_EPSILON


def as_vector(v) -> np.ndarray:
    """Return ``v`` as a float64 3-vector."""
    arr = np.asarray(v, dtype=np.float64).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-vector, got shape {arr.shape}")
    return arr


def magnitude(v: np.ndarray) -> float:
    return float(np.linalg.norm(v))


def normalized(v: np.ndarray) -> np.ndarray:
    """Unit vector along ``v``, or the zero vector if ``v`` is (near) zero."""
    n = np.linalg.norm(v)
    if n < VECTOR_EPSILON:
        return np.zeros(3)
    return np.asarray(v, dtype=np.float64) / n


def project(v: np.ndarray, onto: np.ndarray) -> np.ndarray:
    """Projection of ``v`` onto the line spanned by ``onto``."""
    denom = float(np.dot(onto, onto))
    if denom < VECTOR_EPSILON * VECTOR_EPSILON:
        return np.zeros(3)
    return (float(np.dot(v, onto)) / denom) * np.asarray(onto, dtype=np.float64)


def reject(v: np.ndarray, onto: np.ndarray) -> np.ndarray:
    """
    Component of ``v`` orthogonal to ``onto``.

        reject(v, n) = v - (v . n / n . n) * n

    Parameters
    ----------
    v : np.ndarray
        Vector to decompose.
    onto : np.ndarray
        Direction to remove from ``v``.
    """
    return np.asarray(v, dtype=np.float64) - project(v, onto)


def angle_between_deg(a: np.ndarray, b: np.ndarray) -> float:
    """
    Unsigned angle between two vectors in degrees, in [0, 180].

    Computed as ``atan2(|a x b|, a . b)``, which stays accurate for nearly
    parallel and nearly anti-parallel vectors. Returns 0 if either vector
    is zero.
    """
    if np.linalg.norm(a) < VECTOR_EPSILON or np.linalg.norm(b) < VECTOR_EPSILON:
        return 0.0
    cross = np.linalg.norm(np.cross(a, b))
    dot = float(np.dot(a, b))
    return float(np.degrees(np.arctan2(cross, dot)))


def format_vector(v: np.ndarray, decimals: int = 3) -> str:
    """
    Fixed-width display string, e.g. ``[ 1.00, -0.50,  0.00]``.

    Non-negative components get a leading space so columns line up in a
    status panel.
    """
    parts = []
    for c in np.asarray(v, dtype=np.float64):
        pad = " " if c >= 0 else ""
        parts.append(f"{pad}{c:.{decimals}f}")
    return "[" + ", ".join(parts) + "]"
