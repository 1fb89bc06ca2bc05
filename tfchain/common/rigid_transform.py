"""
Rigid transform value type.

A RigidTransform relates two frames: ``T_a_b`` is the pose of frame ``b``
expressed in frame ``a``. Values are immutable; every operation returns a new
transform.
"""

from __future__ import annotations

from typing import Iterable, Optional

import numpy as np
from scipy.spatial.transform import Rotation

from tfchain.common.geometry.se3_numpy import (
    check_rotmat,
    project_rotmat,
    quat_to_rotmat,
    rotmat_to_quat,
    rotmat_to_rotvec,
    rotvec_to_rotmat,
    se3_allclose,
    se3_apply,
    se3_compose,
    se3_from_parts,
    se3_inverse,
)
from tfchain.constants import TRANSFORM_EPSILON


class RigidTransform:
    """Rotation plus translation, stored as a read-only 4x4 homogeneous matrix."""

    __slots__ = ("_matrix",)

    def __init__(self, matrix: np.ndarray):
        matrix = np.array(matrix, dtype=float)
        if matrix.shape != (4, 4):
            raise ValueError(f"Expected 4x4 matrix, got shape {matrix.shape}")
        matrix.setflags(write=False)
        self._matrix = matrix

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def identity(cls) -> "RigidTransform":
        return cls(np.eye(4, dtype=float))

    @classmethod
    def from_parts(
        cls,
        rotation: Optional[np.ndarray] = None,
        translation: Optional[Iterable[float]] = None,
    ) -> "RigidTransform":
        """
        Build from a 3x3 rotation matrix and a 3-vector (either may be omitted).

        The rotation must be orthonormal within ORTHOGONALITY_TOLERANCE; it is
        stored as its nearest exact rotation.
        """
        R = np.eye(3, dtype=float) if rotation is None else project_rotmat(check_rotmat(rotation))
        return cls(se3_from_parts(R, None if translation is None else np.asarray(translation, dtype=float)))

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> "RigidTransform":
        matrix = np.asarray(matrix, dtype=float)
        if matrix.shape != (4, 4):
            raise ValueError(f"Expected 4x4 matrix, got shape {matrix.shape}")
        if not np.allclose(matrix[3], [0.0, 0.0, 0.0, 1.0]):
            raise ValueError("Last row of a homogeneous transform must be [0, 0, 0, 1]")
        return cls.from_parts(matrix[:3, :3], matrix[:3, 3])

    @classmethod
    def from_quaternion(cls, xyzw, translation=None) -> "RigidTransform":
        return cls(se3_from_parts(quat_to_rotmat(xyzw), translation))

    @classmethod
    def from_rotvec(cls, rotvec, translation=None) -> "RigidTransform":
        return cls(se3_from_parts(rotvec_to_rotmat(rotvec), translation))

    @classmethod
    def from_euler(
        cls,
        roll: float,
        pitch: float,
        yaw: float,
        translation=None,
        degrees: bool = False,
    ) -> "RigidTransform":
        """Roll, pitch, yaw about the fixed x, y, z axes (R = Rz(yaw) Ry(pitch) Rx(roll))."""
        R = Rotation.from_euler("xyz", [roll, pitch, yaw], degrees=degrees).as_matrix()
        return cls(se3_from_parts(R, translation))

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def rotation(self) -> np.ndarray:
        """(3, 3) rotation matrix (copy)."""
        return self._matrix[:3, :3].copy()

    @property
    def translation(self) -> np.ndarray:
        """(3,) translation vector (copy)."""
        return self._matrix[:3, 3].copy()

    def as_matrix(self) -> np.ndarray:
        return self._matrix.copy()

    def as_quaternion(self) -> tuple[float, float, float, float]:
        """Scalar-last (x, y, z, w) with w >= 0."""
        return rotmat_to_quat(self._matrix[:3, :3])

    def as_rotvec(self) -> np.ndarray:
        return rotmat_to_rotvec(self._matrix[:3, :3], check=False)

    # ------------------------------------------------------------------
    # Group operations
    # ------------------------------------------------------------------

    def compose(self, other: "RigidTransform") -> "RigidTransform":
        """Apply ``self`` then ``other``: T_a_c = T_a_b.compose(T_b_c)."""
        return RigidTransform(se3_compose(self._matrix, other._matrix))

    def __matmul__(self, other: "RigidTransform") -> "RigidTransform":
        if not isinstance(other, RigidTransform):
            return NotImplemented
        return self.compose(other)

    def inverse(self) -> "RigidTransform":
        return RigidTransform(se3_inverse(self._matrix))

    def apply(self, points: np.ndarray) -> np.ndarray:
        """Map point(s) expressed in the child frame into the parent frame."""
        return se3_apply(self._matrix, points)

    def approx_eq(self, other: "RigidTransform", epsilon: float = TRANSFORM_EPSILON) -> bool:
        return se3_allclose(self._matrix, other._matrix, epsilon)

    def is_identity(self, epsilon: float = TRANSFORM_EPSILON) -> bool:
        return se3_allclose(self._matrix, np.eye(4), epsilon)

    # Immutable: copies share the matrix
    def __copy__(self) -> "RigidTransform":
        return self

    def __deepcopy__(self, memo) -> "RigidTransform":
        return self

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def describe(self) -> str:
        """Axis-angle in degrees plus translation, for diagnostics."""
        rotvec = self.as_rotvec()
        angle = float(np.linalg.norm(rotvec))
        if angle > 0.0:
            axis = rotvec / angle
        else:
            axis = np.array([1.0, 0.0, 0.0])
        t = self._matrix[:3, 3]
        return (
            f"axis=[{axis[0]:.6f}, {axis[1]:.6f}, {axis[2]:.6f}] "
            f"angle={np.degrees(angle):.6f}deg "
            f"t=[{t[0]:.6f}, {t[1]:.6f}, {t[2]:.6f}]"
        )

    def __repr__(self) -> str:
        return f"RigidTransform({self.describe()})"
