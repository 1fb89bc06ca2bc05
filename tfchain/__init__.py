"""
tfchain: index of rigid transforms between named coordinate frames.

Facts ``(src, dst, T_src_dst)`` are inserted one at a time or in bulk; any two
related frames can then be queried in O(log n) compositions.

Usage:
    from tfchain import RigidTransform, TransformSet

    tset = TransformSet()
    tset.insert("map", "car", RigidTransform.from_parts(translation=[3.0, 0.0, 0.0]))
    tset.get("car", "map")
"""

from tfchain.common.rigid_transform import RigidTransform
from tfchain.config import TransformSetParams
from tfchain.errors import (
    InconsistentTransformError,
    InsertionError,
    InvalidSelfLoopError,
)
from tfchain.state.transform_set import CoordTransform, TransformSet

__all__ = [
    "RigidTransform",
    "TransformSet",
    "CoordTransform",
    "TransformSetParams",
    "InsertionError",
    "InconsistentTransformError",
    "InvalidSelfLoopError",
]
