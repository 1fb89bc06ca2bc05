"""
Rotation encodings for documents and conversion between them.

Five interchangeable encodings, tagged by a kebab-case ``format`` field:

    euler            {"format": "euler", "order": "rpy", "angles": ["10d", "-5d", "3d"]}
    quaternion       {"format": "quaternion", "ijkw": [0, 0, 0, 1]}
    axis-angle       {"format": "axis-angle", "axis": [0.6, -0.8, 0], "angle": "45d"}
    rotation-matrix  {"format": "rotation-matrix", "matrix": [[1, 0, 0], [0, 1, 0], [0, 0, 1]]}
    rodrigues        {"format": "rodrigues", "params": [0, 0, 0.5]}

Euler angles are elementary rotations about the fixed x (roll), y (pitch) and
z (yaw) axes, applied in ``order``. Every encoding converts losslessly to and
from a 3x3 rotation matrix; Euler output always uses the ``rpy`` order.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Tuple, Union

import numpy as np
from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    TypeAdapter,
    field_validator,
    model_validator,
)
from scipy.spatial.transform import Rotation as ScipyRotation

from tfchain.common.geometry.se3_numpy import (
    check_rotmat,
    quat_to_rotmat,
    rotmat_to_quat,
    rotmat_to_rotvec,
    rotvec_to_rotmat,
)
from tfchain.common.units import Angle, AngleFormat, AngleUnit
from tfchain.constants import NORM_EPSILON, ROTATION_EPSILON


class RotationFormat(str, Enum):
    """Rotation encodings selectable on output."""
    QUAT = "quat"
    EULER = "euler"
    MAT = "mat"
    AXIS_ANGLE = "axis-angle"
    RODRIGUES = "rodrigues"


def _coerce_angle(value):
    if isinstance(value, Angle):
        return value
    if isinstance(value, str):
        return Angle.parse(value)
    raise ValueError(f"angle must be a string such as '10d' or '0.5r', got {value!r}")


AngleField = Annotated[
    Angle,
    BeforeValidator(_coerce_angle),
    PlainSerializer(str, return_type=str),
]

Vec3 = Tuple[float, float, float]

_EULER_AXES = {"r": "x", "p": "y", "y": "z"}


class _RotationBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    def to_matrix(self) -> np.ndarray:
        raise NotImplementedError

    @classmethod
    def from_matrix(cls, R: np.ndarray):
        raise NotImplementedError

    def into_degrees(self):
        return self

    def into_radians(self):
        return self

    def normalize(self):
        return self

    def inverse(self):
        """Inverse rotation in the same encoding (and angle unit)."""
        inv = type(self).from_matrix(self.to_matrix().T)
        if self._uses_degrees():
            return inv.into_degrees()
        return inv

    def _uses_degrees(self) -> bool:
        return False


class Euler(_RotationBase):
    format: Literal["euler"] = "euler"
    order: str = "rpy"
    angles: List[AngleField]

    @field_validator("order")
    @classmethod
    def validate_order(cls, v: str) -> str:
        for code in v:
            if code not in _EULER_AXES:
                raise ValueError(f"unexpected axis code '{code}'")
        return v

    @model_validator(mode="after")
    def validate_angle_count(self) -> "Euler":
        if len(self.order) != len(self.angles):
            raise ValueError(
                f"order '{self.order}' names {len(self.order)} axes but {len(self.angles)} angles were given"
            )
        return self

    def to_matrix(self) -> np.ndarray:
        R = np.eye(3, dtype=float)
        for code, angle in zip(self.order, self.angles):
            step = ScipyRotation.from_euler(_EULER_AXES[code], angle.as_radians()).as_matrix()
            R = step @ R
        return R

    @classmethod
    def from_matrix(cls, R: np.ndarray) -> "Euler":
        roll, pitch, yaw = ScipyRotation.from_matrix(R).as_euler("xyz")
        return cls(
            order="rpy",
            angles=[Angle.from_radians(roll), Angle.from_radians(pitch), Angle.from_radians(yaw)],
        )

    def into_degrees(self) -> "Euler":
        return Euler(order=self.order, angles=[a.to_degrees() for a in self.angles])

    def into_radians(self) -> "Euler":
        return Euler(order=self.order, angles=[a.to_radians() for a in self.angles])

    def normalize(self) -> "Euler":
        rpy = Euler.from_matrix(self.to_matrix())
        if self._uses_degrees():
            rpy = rpy.into_degrees()
        return Euler(order=rpy.order, angles=[a.normalize() for a in rpy.angles])

    def _uses_degrees(self) -> bool:
        return any(a.unit is AngleUnit.DEGREE for a in self.angles)


class Quaternion(_RotationBase):
    format: Literal["quaternion"] = "quaternion"
    ijkw: Tuple[float, float, float, float]

    def to_matrix(self) -> np.ndarray:
        return quat_to_rotmat(np.asarray(self.ijkw, dtype=float))

    @classmethod
    def from_matrix(cls, R: np.ndarray) -> "Quaternion":
        return cls(ijkw=rotmat_to_quat(R))


class AxisAngle(_RotationBase):
    format: Literal["axis-angle"] = "axis-angle"
    axis: Vec3
    angle: AngleField

    def to_matrix(self) -> np.ndarray:
        axis = np.asarray(self.axis, dtype=float)
        norm = np.linalg.norm(axis)
        if norm < NORM_EPSILON:
            if abs(self.angle.as_radians()) < ROTATION_EPSILON:
                return np.eye(3, dtype=float)
            raise ValueError("axis-angle rotation has a zero-length axis")
        return rotvec_to_rotmat(axis / norm * self.angle.as_radians())

    @classmethod
    def from_matrix(cls, R: np.ndarray) -> "AxisAngle":
        rotvec = rotmat_to_rotvec(R)
        angle = float(np.linalg.norm(rotvec))
        if angle < ROTATION_EPSILON:
            return cls(axis=(1.0, 0.0, 0.0), angle=Angle.zero())
        axis = rotvec / angle
        return cls(axis=tuple(float(c) for c in axis), angle=Angle.from_radians(angle))

    def into_degrees(self) -> "AxisAngle":
        return AxisAngle(axis=self.axis, angle=self.angle.to_degrees())

    def into_radians(self) -> "AxisAngle":
        return AxisAngle(axis=self.axis, angle=self.angle.to_radians())

    def normalize(self) -> "AxisAngle":
        return AxisAngle(axis=self.axis, angle=self.angle.normalize())

    def _uses_degrees(self) -> bool:
        return self.angle.unit is AngleUnit.DEGREE


class RotationMatrix(_RotationBase):
    format: Literal["rotation-matrix"] = "rotation-matrix"
    matrix: Tuple[Vec3, Vec3, Vec3]

    def to_matrix(self) -> np.ndarray:
        return check_rotmat(np.asarray(self.matrix, dtype=float))

    @classmethod
    def from_matrix(cls, R: np.ndarray) -> "RotationMatrix":
        R = np.asarray(R, dtype=float)
        return cls(matrix=tuple(tuple(float(c) for c in row) for row in R))


class Rodrigues(_RotationBase):
    """Rotation vector: unit axis scaled by the angle in radians."""
    format: Literal["rodrigues"] = "rodrigues"
    params: Vec3

    def to_matrix(self) -> np.ndarray:
        return rotvec_to_rotmat(np.asarray(self.params, dtype=float))

    @classmethod
    def from_matrix(cls, R: np.ndarray) -> "Rodrigues":
        return cls(params=tuple(float(c) for c in rotmat_to_rotvec(R)))

    def normalize(self) -> "Rodrigues":
        vec = np.asarray(self.params, dtype=float)
        angle = float(np.linalg.norm(vec))
        if angle < ROTATION_EPSILON:
            return self
        wrapped = angle % (2.0 * np.pi)
        return Rodrigues(params=tuple(float(c) for c in vec / angle * wrapped))


Rotation = Annotated[
    Union[Euler, Quaternion, AxisAngle, RotationMatrix, Rodrigues],
    Field(discriminator="format"),
]

rotation_adapter: TypeAdapter = TypeAdapter(Rotation)

_FORMAT_TO_CLASS = {
    RotationFormat.QUAT: Quaternion,
    RotationFormat.EULER: Euler,
    RotationFormat.MAT: RotationMatrix,
    RotationFormat.AXIS_ANGLE: AxisAngle,
    RotationFormat.RODRIGUES: Rodrigues,
}


def rotation_from_matrix(R: np.ndarray, rotation_format: RotationFormat) -> Rotation:
    """Encode a 3x3 rotation matrix; angle-bearing encodings come out in radians."""
    return _FORMAT_TO_CLASS[RotationFormat(rotation_format)].from_matrix(R)


def convert_rotation(rot: Rotation, rotation_format: RotationFormat) -> Rotation:
    """Re-encode ``rot`` in another format."""
    return rotation_from_matrix(rot.to_matrix(), rotation_format)


def to_angle_format(rot: Rotation, angle_format: AngleFormat) -> Rotation:
    if AngleFormat(angle_format) is AngleFormat.DEG:
        return rot.into_degrees()
    return rot.into_radians()
