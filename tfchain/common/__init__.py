"""
Common package for tfchain.

Value types shared by the index and the document layer.

Subpackages:
- geometry/: SE(3) and SO(3) operations on NumPy arrays
"""

from tfchain.common.rigid_transform import RigidTransform
from tfchain.common.units import Angle, AngleFormat, AngleUnit

__all__ = [
    "RigidTransform",
    "Angle",
    "AngleFormat",
    "AngleUnit",
]
