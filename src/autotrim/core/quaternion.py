"""
===============================================================================
GIMBAL AUTO-TRIM - Quaternion Mathematics
===============================================================================
Unit quaternion used for every actuator orientation in the package.

Convention
----------
Scalar-first, Hamilton product:

    q = [q_w, q_x, q_y, q_z] = q_w + q_x*i + q_y*j + q_z*k

A quaternion rotates a 3-vector actively:

    v' = q * v * q_conjugate

and ``q1 * q2`` applies ``q2`` first, then ``q1``. Thrust transforms use the
local +Z axis as "forward", so the forward direction of an actuator at
orientation ``q`` is ``q.rotate_vector([0, 0, 1])``.

Reference: Shoemake, "Animating Rotation with Quaternion Curves", SIGGRAPH 1985.
===============================================================================
"""

import numpy as np
from typing import Union


class Quaternion:
    """
    Unit quaternion for 3D rotations.

    For a rotation by angle theta about unit axis n:

        q = [cos(theta/2), sin(theta/2) * n]

    The constructor normalizes by default and keeps ``w >= 0`` so that each
    rotation has a single representation.

    Examples
    --------
    >>> q = Quaternion.from_axis_angle(np.array([1.0, 0.0, 0.0]), np.pi / 2)
    >>> q.rotate_vector(np.array([0.0, 0.0, 1.0]))  # -> [0, -1, 0]
    """

    _NORM_TOLERANCE = 1e-12
    _COMPARISON_TOLERANCE = 1e-9

    # Above this |dot| two quaternions are treated as the same rotation
    # and slerp falls back to normalized linear interpolation.
    _SLERP_LINEAR_THRESHOLD = 1.0 - 1e-12

    def __init__(self, w: float, x: float, y: float, z: float,
                 normalize: bool = True) -> None:
        self._q = np.array([w, x, y, z], dtype=np.float64)

        if normalize:
            self._normalize_in_place()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def w(self) -> float:
        """Scalar part."""
        return float(self._q[0])

    @property
    def x(self) -> float:
        return float(self._q[1])

    @property
    def y(self) -> float:
        return float(self._q[2])

    @property
    def z(self) -> float:
        return float(self._q[3])

    @property
    def vector(self) -> np.ndarray:
        """Vector part [x, y, z] as a new array."""
        return self._q[1:4].copy()

    @property
    def components(self) -> np.ndarray:
        """Copy of [w, x, y, z]."""
        return self._q.copy()

    @property
    def norm(self) -> float:
        return float(np.linalg.norm(self._q))

    @property
    def rotation_angle(self) -> float:
        """
        Rotation angle in radians, in [0, pi].

        Uses ``2 * atan2(|v|, |w|)`` rather than ``2 * arccos(|w|)``: the
        arccos form loses about half the significant digits for angles
        below a few degrees, which matters when small trim deflections are
        compared against a configured limit.
        """
        return float(2.0 * np.arctan2(np.linalg.norm(self._q[1:4]),
                                      abs(self._q[0])))

    @property
    def rotation_axis(self) -> np.ndarray:
        """
        Unit rotation axis. Returns +Z for the identity (axis undefined).
        """
        vec = self.vector
        vec_norm = np.linalg.norm(vec)

        if vec_norm < self._NORM_TOLERANCE:
            return np.array([0.0, 0.0, 1.0])

        return vec / vec_norm

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    def _normalize_in_place(self) -> None:
        """
        Normalize to unit magnitude and enforce w >= 0.

        Raises
        ------
        ValueError
            If the quaternion has near-zero norm.
        """
        n = np.linalg.norm(self._q)

        if not np.isfinite(n) or n < self._NORM_TOLERANCE:
            raise ValueError(
                f"Cannot normalize quaternion with norm {n:.2e}; "
                "the orientation is degenerate."
            )

        self._q /= n

        if self._q[0] < 0.0:
            self._q = -self._q

    # =========================================================================
    # FACTORY METHODS
    # =========================================================================

    @staticmethod
    def identity() -> 'Quaternion':
        """The zero rotation [1, 0, 0, 0]."""
        return Quaternion(1.0, 0.0, 0.0, 0.0, normalize=False)

    @staticmethod
    def from_axis_angle(axis: np.ndarray, angle: float) -> 'Quaternion':
        """
        Rotation of ``angle`` radians about ``axis``.

        Parameters
        ----------
        axis : np.ndarray
            3-element rotation axis; normalized internally.
        angle : float
            Rotation angle in radians.

        Raises
        ------
        ValueError
            If axis has near-zero magnitude.
        """
        n = np.asarray(axis, dtype=np.float64)
        length = np.linalg.norm(n)
        if length < 1e-12:
            raise ValueError(f"Rotation axis {n} has zero length.")

        s = np.sin(0.5 * angle) / length
        return Quaternion(np.cos(0.5 * angle), s * n[0], s * n[1], s * n[2])

    @staticmethod
    def from_to_rotation(v_from: np.ndarray, v_to: np.ndarray) -> 'Quaternion':
        """
        Shortest-arc rotation that turns direction ``v_from`` into ``v_to``.

        Built from the half-way vector: with unit inputs a and b,

            q = [1 + a.b, a x b]   (then normalized)

        which is exact down to very small angles and needs no trig calls.

        Parameters
        ----------
        v_from, v_to : np.ndarray
            3-element directions; only their directions matter.

        Returns
        -------
        Quaternion
            Identity when the directions already coincide.

        Raises
        ------
        ValueError
            If either vector has zero length, or the two are anti-parallel
            (the rotation axis is then undefined).
        """
        a = np.asarray(v_from, dtype=np.float64)
        b = np.asarray(v_to, dtype=np.float64)
        na = np.linalg.norm(a)
        nb = np.linalg.norm(b)

        if na < 1e-12 or nb < 1e-12:
            raise ValueError("from_to_rotation needs two non-zero vectors.")

        a = a / na
        b = b / nb
        dot = float(np.dot(a, b))
        cross = np.cross(a, b)

        if dot < -1.0 + 1e-12:
            raise ValueError(
                "Vectors are anti-parallel; the rotation axis is undefined."
            )

        return Quaternion(1.0 + dot, cross[0], cross[1], cross[2])

    # =========================================================================
    # ARITHMETIC
    # =========================================================================

    def conjugate(self) -> 'Quaternion':
        """[w, -x, -y, -z]; the reverse rotation for a unit quaternion."""
        return Quaternion(self.w, -self.x, -self.y, -self.z, normalize=False)

    def inverse(self) -> 'Quaternion':
        """Multiplicative inverse (equal to the conjugate for unit norm)."""
        c = self._q * np.array([1.0, -1.0, -1.0, -1.0]) / np.dot(self._q, self._q)
        return Quaternion(*c)

    def multiply(self, other: 'Quaternion') -> 'Quaternion':
        """
        Hamilton product ``self * other``: rotate by ``other`` first, then
        by ``self``.
        """
        w1, v1 = self._q[0], self._q[1:4]
        w2, v2 = other._q[0], other._q[1:4]

        w = w1 * w2 - np.dot(v1, v2)
        v = w1 * v2 + w2 * v1 + np.cross(v1, v2)
        return Quaternion(w, v[0], v[1], v[2])

    # =========================================================================
    # ROTATION OPERATIONS
    # =========================================================================

    def rotate_vector(self, v: np.ndarray) -> np.ndarray:
        """
        Rotate a 3-vector by this quaternion.

        Uses the Rodrigues form of the sandwich product:

            t  = 2 * (u x v)
            v' = v + w*t + u x t

        with u the vector part.
        """
        v = np.asarray(v, dtype=np.float64)
        u = self._q[1:4]

        t = 2.0 * np.cross(u, v)
        return v + self._q[0] * t + np.cross(u, t)

    def angle_to(self, other: 'Quaternion') -> float:
        """Geodesic angle (radians) between two orientations."""
        return self.inverse().multiply(other).rotation_angle

    # =========================================================================
    # INTERPOLATION
    # =========================================================================

    @staticmethod
    def slerp(q1: 'Quaternion', q2: 'Quaternion', t: float) -> 'Quaternion':
        """
        Spherical linear interpolation along the short arc.

            slerp(q1, q2, t) = q1 * sin((1-t)*Omega) / sin(Omega)
                             + q2 * sin(t*Omega) / sin(Omega)

        Rotation angle varies linearly with ``t``: interpolating from the
        identity to a rotation of angle theta at fraction t gives a rotation
        of exactly t*theta about the same axis.

        Parameters
        ----------
        q1, q2 : Quaternion
            End points (t=0 and t=1).
        t : float
            Interpolation parameter, clipped to [0, 1].
        """
        t = float(np.clip(t, 0.0, 1.0))

        dot = float(np.dot(q1._q, q2._q))
        q2_q = q2._q.copy()
        if dot < 0.0:
            q2_q = -q2_q
            dot = -dot

        dot = min(dot, 1.0)

        if dot > Quaternion._SLERP_LINEAR_THRESHOLD:
            result = q1._q + t * (q2_q - q1._q)
            return Quaternion(result[0], result[1], result[2], result[3])

        omega = np.arccos(dot)
        sin_omega = np.sin(omega)

        scale1 = np.sin((1.0 - t) * omega) / sin_omega
        scale2 = np.sin(t * omega) / sin_omega

        result = scale1 * q1._q + scale2 * q2_q
        return Quaternion(result[0], result[1], result[2], result[3])

    # =========================================================================
    # OPERATOR OVERLOADS
    # =========================================================================

    def __mul__(self, other: 'Quaternion') -> 'Quaternion':
        if isinstance(other, Quaternion):
            return self.multiply(other)
        return NotImplemented

    def __eq__(self, other: object) -> bool:
        """Equal when both represent the same rotation (q ~ -q)."""
        if not isinstance(other, Quaternion):
            return NotImplemented

        gap = min(np.linalg.norm(self._q - other._q), np.linalg.norm(self._q + other._q))
        return bool(gap < self._COMPARISON_TOLERANCE)

    def __hash__(self) -> int:
        return hash(tuple(np.round(self._q, decimals=8)))

    def __repr__(self) -> str:
        w, x, y, z = self._q
        return f"Quaternion({w:.8f}, {x:.8f}, {y:.8f}, {z:.8f})"

    def __str__(self) -> str:
        axis = self.rotation_axis
        return (f"{np.degrees(self.rotation_angle):.3f} deg about "
                f"[{axis[0]:.4f}, {axis[1]:.4f}, {axis[2]:.4f}]")

    # =========================================================================
    # UTILITY
    # =========================================================================

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self._q)))

    def is_unit(self, tolerance: float = 1e-8) -> bool:
        return abs(self.norm - 1.0) < tolerance

    def copy(self) -> 'Quaternion':
        return Quaternion(self.w, self.x, self.y, self.z, normalize=False)


QuaternionLike = Union[Quaternion, np.ndarray]


def as_quaternion(value: QuaternionLike) -> Quaternion:
    """Accept a Quaternion or a [w, x, y, z] sequence."""
    if isinstance(value, Quaternion):
        return value
    arr = np.asarray(value, dtype=np.float64)
    if arr.shape != (4,):
        raise ValueError(f"Quaternion needs 4 components, got shape {arr.shape}")
    return Quaternion(arr[0], arr[1], arr[2], arr[3])
