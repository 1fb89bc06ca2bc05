"""
Geometry package for tfchain.

SE(3) and SO(3) operations on homogeneous matrices (NumPy backend).

Usage:
    from tfchain.common.geometry import (
        se3_compose,
        se3_inverse,
        rotvec_to_rotmat,
        rotmat_to_rotvec,
    )
"""

from __future__ import annotations

from tfchain.common.geometry.se3_numpy import (
    # SO(3) operations
    skew,
    unskew,
    rotvec_to_rotmat,
    rotmat_to_rotvec,
    check_rotmat,
    project_rotmat,
    # Quaternion operations
    quat_to_rotmat,
    rotmat_to_quat,
    # SE(3) operations
    se3_from_parts,
    se3_compose,
    se3_inverse,
    se3_apply,
    se3_allclose,
)

__all__ = [
    # SO(3) operations
    "skew",
    "unskew",
    "rotvec_to_rotmat",
    "rotmat_to_rotvec",
    "check_rotmat",
    "project_rotmat",
    # Quaternion operations
    "quat_to_rotmat",
    "rotmat_to_quat",
    # SE(3) operations
    "se3_from_parts",
    "se3_compose",
    "se3_inverse",
    "se3_apply",
    "se3_allclose",
]
