"""
SE(3) geometry on homogeneous 4x4 matrices.

Transform representation: T = [[R, t], [0, 1]] where:
- R: 3x3 rotation matrix in SO(3)
- t: translation in R^3

T_a_b maps coordinates expressed in frame b into frame a, so chains compose
by plain matrix products: T_a_c = T_a_b @ T_b_c.

Numerical Policy:
    Epsilon thresholds are chosen based on IEEE 754 double precision:
    - ROTATION_EPSILON = 1e-10: ~sqrt(machine_epsilon) for stable trig
    - SINGULARITY_EPSILON = 1e-6: threshold for π-singularity handling

    These are NUMERICAL STABILITY choices, not model parameters.
    They affect only the computational path, not the mathematical result.

References:
- Barfoot (2017): State Estimation for Robotics
- Sola et al. (2018): A micro Lie theory for state estimation
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from tfchain.constants import (
    NORM_EPSILON,
    ORTHOGONALITY_TOLERANCE,
    ROTATION_EPSILON,
    SINGULARITY_EPSILON,
)


# =============================================================================
# Rotation vector <-> Rotation matrix conversions (so(3) <-> SO(3))
# =============================================================================


def skew(v: np.ndarray) -> np.ndarray:
    """Skew-symmetric matrix from 3-vector (hat operator)."""
    v = np.asarray(v, dtype=float).reshape(-1)
    return np.array([
        [0.0, -v[2], v[1]],
        [v[2], 0.0, -v[0]],
        [-v[1], v[0], 0.0]
    ], dtype=float)


def unskew(S: np.ndarray) -> np.ndarray:
    """Extract 3-vector from skew-symmetric matrix (vee operator)."""
    return np.array([S[2, 1], S[0, 2], S[1, 0]], dtype=float)


def rotvec_to_rotmat(rotvec: np.ndarray) -> np.ndarray:
    """
    Convert rotation vector (axis-angle) to rotation matrix.
    Uses Rodrigues' formula: R = I + sin(θ)[ω]_× + (1-cos(θ))[ω]_×²

    This is the exponential map exp: so(3) -> SO(3).
    """
    rotvec = np.asarray(rotvec, dtype=float).reshape(-1)
    if len(rotvec) != 3:
        raise ValueError(f"Expected 3-element rotation vector, got {len(rotvec)}")
    theta = np.linalg.norm(rotvec)

    if theta < ROTATION_EPSILON:
        # Small angle: R ≈ I + [rotvec]_× (first-order Taylor)
        return np.eye(3, dtype=float) + skew(rotvec)

    axis = rotvec / theta
    K = skew(axis)
    return np.eye(3, dtype=float) + math.sin(theta) * K + (1.0 - math.cos(theta)) * (K @ K)


def rotmat_to_rotvec(R: np.ndarray, check: bool = True) -> np.ndarray:
    """
    Convert rotation matrix to rotation vector (axis-angle).
    This is the logarithmic map log: SO(3) -> so(3).

    ``check=False`` skips validation for matrices already known to be
    rotations (e.g. the products held by RigidTransform).

    Handles three cases:
    1. θ ≈ 0: Extract from skew-symmetric part
    2. θ ≈ π: Use eigenvalue decomposition (singularity)
    3. Otherwise: Standard formula
    """
    R = check_rotmat(R) if check else np.asarray(R, dtype=float)

    trace = np.trace(R)
    theta = math.acos(np.clip((trace - 1.0) / 2.0, -1.0, 1.0))

    if theta < ROTATION_EPSILON:
        return unskew((R - R.T) / 2.0)

    if abs(theta - math.pi) < SINGULARITY_EPSILON:
        # R has eigenvalue 1 with eigenvector = rotation axis
        eigenvals, eigenvecs = np.linalg.eig(R)
        idx = np.argmin(np.abs(eigenvals - 1.0))
        axis = np.real(eigenvecs[:, idx])
        axis = axis / np.linalg.norm(axis)
        return axis * theta

    rotvec = unskew((R - R.T) / 2.0)
    return rotvec * (theta / math.sin(theta))


def check_rotmat(R: np.ndarray) -> np.ndarray:
    """Validate a 3x3 rotation matrix and return it as a float array."""
    R = np.asarray(R, dtype=float)
    if R.shape != (3, 3):
        raise ValueError(f"Expected 3x3 matrix, got shape {R.shape}")
    if not np.allclose(R @ R.T, np.eye(3), atol=ORTHOGONALITY_TOLERANCE):
        raise ValueError("Input matrix is not orthogonal (R @ R.T != I)")
    if np.linalg.det(R) < 0.0:
        raise ValueError("Input matrix is a reflection (det(R) < 0)")
    return R


def project_rotmat(R: np.ndarray) -> np.ndarray:
    """
    Nearest rotation matrix in the Frobenius sense (SVD: U @ Vt, det fixed to +1).

    se3_compose applies it to every product, so se3_inverse (a transpose)
    stays an exact inverse however long a chain grows.
    """
    U, _, Vt = np.linalg.svd(np.asarray(R, dtype=float))
    if np.linalg.det(U @ Vt) < 0.0:
        U[:, -1] = -U[:, -1]
    return U @ Vt


# =============================================================================
# Quaternion conversions
# =============================================================================


def quat_to_rotmat(x_or_q, y=None, z=None, w=None) -> np.ndarray:
    """
    Convert quaternion (x, y, z, w) to rotation matrix.

    Scalar-last convention: q = [x, y, z, w]. The quaternion is normalized
    before conversion.

    Can be called as:
        quat_to_rotmat(np.array([x, y, z, w]))
        quat_to_rotmat(x, y, z, w)
    """
    if y is not None and z is not None and w is not None:
        q = np.array([x_or_q, y, z, w], dtype=float)
    else:
        q = np.asarray(x_or_q, dtype=float).reshape(-1)

    if len(q) != 4:
        raise ValueError(f"Expected 4-element quaternion, got {len(q)}")

    x, y, z, w = q[0], q[1], q[2], q[3]

    norm = math.sqrt(x*x + y*y + z*z + w*w)
    if norm < NORM_EPSILON:
        raise ValueError("Quaternion norm is too small (near zero)")
    x, y, z, w = x/norm, y/norm, z/norm, w/norm

    return np.array([
        [1 - 2*(y*y + z*z), 2*(x*y - z*w), 2*(x*z + y*w)],
        [2*(x*y + z*w), 1 - 2*(x*x + z*z), 2*(y*z - x*w)],
        [2*(x*z - y*w), 2*(y*z + x*w), 1 - 2*(x*x + y*y)]
    ], dtype=float)


def rotmat_to_quat(R: np.ndarray) -> Tuple[float, float, float, float]:
    """
    Convert rotation matrix to quaternion (x, y, z, w).

    Uses Shepperd's method for numerical stability. The sign is fixed so
    that w >= 0.
    """
    R = np.asarray(R, dtype=float)
    if R.shape != (3, 3):
        raise ValueError(f"Expected 3x3 matrix, got shape {R.shape}")

    trace = np.trace(R)

    if trace > 0:
        s = math.sqrt(trace + 1.0) * 2  # s = 4 * qw
        w = 0.25 * s
        x = (R[2, 1] - R[1, 2]) / s
        y = (R[0, 2] - R[2, 0]) / s
        z = (R[1, 0] - R[0, 1]) / s
    elif (R[0, 0] > R[1, 1]) and (R[0, 0] > R[2, 2]):
        s = math.sqrt(1.0 + R[0, 0] - R[1, 1] - R[2, 2]) * 2
        w = (R[2, 1] - R[1, 2]) / s
        x = 0.25 * s
        y = (R[0, 1] + R[1, 0]) / s
        z = (R[0, 2] + R[2, 0]) / s
    elif R[1, 1] > R[2, 2]:
        s = math.sqrt(1.0 + R[1, 1] - R[0, 0] - R[2, 2]) * 2
        w = (R[0, 2] - R[2, 0]) / s
        x = (R[0, 1] + R[1, 0]) / s
        y = 0.25 * s
        z = (R[1, 2] + R[2, 1]) / s
    else:
        s = math.sqrt(1.0 + R[2, 2] - R[0, 0] - R[1, 1]) * 2
        w = (R[1, 0] - R[0, 1]) / s
        x = (R[0, 2] + R[2, 0]) / s
        y = (R[1, 2] + R[2, 1]) / s
        z = 0.25 * s

    if w < 0.0:
        x, y, z, w = -x, -y, -z, -w
    return (float(x), float(y), float(z), float(w))


# =============================================================================
# SE(3) group operations
# =============================================================================


def se3_from_parts(R: np.ndarray, t: np.ndarray | None = None) -> np.ndarray:
    """Assemble a 4x4 homogeneous transform from rotation and translation."""
    T = np.eye(4, dtype=float)
    T[:3, :3] = np.asarray(R, dtype=float)
    if t is not None:
        t = np.asarray(t, dtype=float).reshape(-1)
        if len(t) != 3:
            raise ValueError(f"Expected 3-element translation, got {len(t)}")
        T[:3, 3] = t
    return T


def se3_compose(T1: np.ndarray, T2: np.ndarray) -> np.ndarray:
    """
    Compose two SE(3) transforms: T_result = T1 ∘ T2.

    R_result = project(R1 * R2)
    t_result = R1 * t2 + t1
    """
    T1 = np.asarray(T1, dtype=float)
    T2 = np.asarray(T2, dtype=float)
    if T1.shape != (4, 4) or T2.shape != (4, 4):
        raise ValueError(f"Expected 4x4 matrices, got shapes {T1.shape}, {T2.shape}")

    T = np.eye(4, dtype=float)
    T[:3, :3] = project_rotmat(T1[:3, :3] @ T2[:3, :3])
    T[:3, 3] = T1[:3, :3] @ T2[:3, 3] + T1[:3, 3]
    return T


def se3_inverse(T: np.ndarray) -> np.ndarray:
    """
    Compute inverse of SE(3) transform: T_inv such that T ∘ T_inv = I.

    Uses the closed form [R^T, -R^T t] instead of a general matrix inverse.
    """
    T = np.asarray(T, dtype=float)
    if T.shape != (4, 4):
        raise ValueError(f"Expected 4x4 matrix, got shape {T.shape}")

    R_inv = T[:3, :3].T
    T_inv = np.eye(4, dtype=float)
    T_inv[:3, :3] = R_inv
    T_inv[:3, 3] = -R_inv @ T[:3, 3]
    return T_inv


def se3_apply(T: np.ndarray, p: np.ndarray) -> np.ndarray:
    """
    Apply SE(3) transform to point(s): p_transformed = T * p.

    Args:
        T: 4x4 SE(3) transform
        p: 3D point (3,) or batch of points (N, 3)

    Returns:
        3D transformed point(s), same shape as input
    """
    T = np.asarray(T, dtype=float)
    p = np.asarray(p, dtype=float)

    R = T[:3, :3]
    t = T[:3, 3]

    if p.ndim == 1:
        if len(p) != 3:
            raise ValueError(f"Expected 3D point, got shape {p.shape}")
        return R @ p + t
    elif p.ndim == 2:
        if p.shape[1] != 3:
            raise ValueError(f"Expected (N, 3) points, got shape {p.shape}")
        return (R @ p.T).T + t
    else:
        raise ValueError(f"Expected 1D or 2D array, got shape {p.shape}")


def se3_allclose(T1: np.ndarray, T2: np.ndarray, epsilon: float) -> bool:
    """Element-wise absolute comparison of rotation and translation blocks."""
    T1 = np.asarray(T1, dtype=float)
    T2 = np.asarray(T2, dtype=float)
    return bool(np.all(np.abs(T1[:3, :] - T2[:3, :]) <= epsilon))
