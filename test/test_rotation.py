"""
Tests for angle values and the rotation document encodings.
"""

import math

import numpy as np
import pytest
from pydantic import ValidationError

from tfchain.common.rigid_transform import RigidTransform
from tfchain.common.rotation import (
    AxisAngle,
    Euler,
    Quaternion,
    Rodrigues,
    RotationFormat,
    RotationMatrix,
    convert_rotation,
    rotation_adapter,
    rotation_from_matrix,
    to_angle_format,
)
from tfchain.common.geometry import rotvec_to_rotmat
from tfchain.common.units import Angle, AngleFormat, AngleUnit


class TestAngle:
    @pytest.mark.parametrize(
        "text, value, unit",
        [
            ("74.3d", 74.3, AngleUnit.DEGREE),
            ("-47.2deg", -47.2, AngleUnit.DEGREE),
            ("97.0r", 97.0, AngleUnit.RADIAN),
            ("-61.4rad", -61.4, AngleUnit.RADIAN),
            ("10°", 10.0, AngleUnit.DEGREE),
            (" 1e-3r ", 1e-3, AngleUnit.RADIAN),
        ],
    )
    def test_parse(self, text, value, unit):
        angle = Angle.parse(text)
        assert angle.value == value
        assert angle.unit is unit

    @pytest.mark.parametrize("text", ["", "10", "abc", "10x", "d", "infd", "nanr"])
    def test_parse_invalid(self, text):
        with pytest.raises(ValueError):
            Angle.parse(text)

    def test_str(self):
        assert str(Angle.from_degrees(10.0)) == "10.0d"
        assert str(Angle.from_radians(0.5)) == "0.5r"
        assert Angle.parse(str(Angle.from_degrees(-3.25))) == Angle.from_degrees(-3.25)

    def test_conversion(self):
        assert math.isclose(Angle.from_degrees(180.0).as_radians(), math.pi)
        assert math.isclose(Angle.from_radians(math.pi / 2).to_degrees().value, 90.0)
        assert Angle.from_degrees(45.0).to_format(AngleFormat.RAD).unit is AngleUnit.RADIAN

    def test_compare_across_units(self):
        assert Angle.from_degrees(90.0).isclose(Angle.from_radians(math.pi / 2), 1e-12)
        assert Angle.from_degrees(10.0) < Angle.from_radians(1.0)
        assert Angle.from_radians(0.0) == Angle.zero()
        assert hash(Angle.from_radians(0.0)) == hash(Angle.from_degrees(0.0))

    def test_normalize(self):
        assert Angle.from_degrees(-90.0).normalize() == Angle.from_degrees(270.0)
        wrapped = Angle.from_radians(3 * math.pi).normalize()
        assert wrapped.unit is AngleUnit.RADIAN
        assert math.isclose(wrapped.value, math.pi)


class TestEuler:
    def test_parse_document(self):
        rot = rotation_adapter.validate_python({"format": "euler", "angles": ["10d", "-5d", "3d"]})
        assert isinstance(rot, Euler)
        assert rot.order == "rpy"
        expected = RigidTransform.from_euler(10.0, -5.0, 3.0, degrees=True).rotation
        np.testing.assert_allclose(rot.to_matrix(), expected, atol=1e-12)

    def test_custom_order_applies_left_to_right(self):
        rot = Euler(order="yr", angles=["0.3r", "0.2r"])
        Rz = rotvec_to_rotmat([0.0, 0.0, 0.3])
        Rx = rotvec_to_rotmat([0.2, 0.0, 0.0])
        np.testing.assert_allclose(rot.to_matrix(), Rx @ Rz, atol=1e-12)

    def test_repeated_axes(self):
        rot = Euler(order="yy", angles=["20d", "25d"])
        np.testing.assert_allclose(rot.to_matrix(), Euler(order="y", angles=["45d"]).to_matrix(), atol=1e-12)

    def test_invalid_order(self):
        with pytest.raises(ValidationError):
            Euler(order="rq", angles=["1d", "2d"])

    def test_angle_count_mismatch(self):
        with pytest.raises(ValidationError):
            rotation_adapter.validate_python({"format": "euler", "order": "rpy", "angles": ["1d"]})

    def test_numeric_angle_rejected(self):
        with pytest.raises(ValidationError):
            Euler(angles=[0.1, 0.2, 0.3])

    def test_dump(self):
        rot = Euler(angles=["10d", "-5d", "3.5d"])
        assert rotation_adapter.dump_python(rot, mode="json") == {
            "format": "euler",
            "order": "rpy",
            "angles": ["10.0d", "-5.0d", "3.5d"],
        }

    def test_units_and_normalize(self):
        rot = Euler(angles=["370d", "0d", "0d"])
        assert all(a.unit is AngleUnit.RADIAN for a in rot.into_radians().angles)
        normalized = rot.normalize()
        assert normalized.angles[0].unit is AngleUnit.DEGREE
        assert math.isclose(normalized.angles[0].value, 10.0, abs_tol=1e-9)


class TestOtherEncodings:
    def test_quaternion(self):
        rot = rotation_adapter.validate_python({"format": "quaternion", "ijkw": [0.0, 0.0, 1.0, 1.0]})
        assert isinstance(rot, Quaternion)
        np.testing.assert_allclose(rot.to_matrix(), rotvec_to_rotmat([0.0, 0.0, math.pi / 2]), atol=1e-12)

    def test_axis_angle(self):
        rot = rotation_adapter.validate_python({"format": "axis-angle", "axis": [0.0, 2.0, 0.0], "angle": "90d"})
        assert isinstance(rot, AxisAngle)
        np.testing.assert_allclose(rot.to_matrix(), rotvec_to_rotmat([0.0, math.pi / 2, 0.0]), atol=1e-12)

    def test_axis_angle_zero_axis(self):
        assert np.allclose(AxisAngle(axis=(0.0, 0.0, 0.0), angle="0r").to_matrix(), np.eye(3))
        with pytest.raises(ValueError):
            AxisAngle(axis=(0.0, 0.0, 0.0), angle="10d").to_matrix()

    def test_rotation_matrix_checked(self):
        rot = RotationMatrix(matrix=((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 2.0)))
        with pytest.raises(ValueError):
            rot.to_matrix()

    def test_rodrigues(self):
        rot = rotation_adapter.validate_python({"format": "rodrigues", "params": [0.1, 0.2, 0.3]})
        assert isinstance(rot, Rodrigues)
        np.testing.assert_allclose(rot.to_matrix(), rotvec_to_rotmat([0.1, 0.2, 0.3]))

    def test_unknown_format(self):
        with pytest.raises(ValidationError):
            rotation_adapter.validate_python({"format": "gibbs", "params": [0.0, 0.0, 0.0]})

    def test_extra_field(self):
        with pytest.raises(ValidationError):
            rotation_adapter.validate_python({"format": "rodrigues", "params": [0.0, 0.0, 0.0], "w": 1.0})


class TestConversion:
    @pytest.mark.parametrize("fmt", list(RotationFormat))
    def test_every_format_preserves_matrix(self, fmt, random_transform):
        R = random_transform().rotation
        rot = rotation_from_matrix(R, fmt)
        np.testing.assert_allclose(rot.to_matrix(), R, atol=1e-9)
        np.testing.assert_allclose(to_angle_format(rot, AngleFormat.DEG).to_matrix(), R, atol=1e-9)

    def test_convert_rotation(self):
        rot = AxisAngle(axis=(0.0, 0.0, 1.0), angle="30d")
        quat = convert_rotation(rot, RotationFormat.QUAT)
        assert isinstance(quat, Quaternion)
        np.testing.assert_allclose(
            quat.ijkw, [0.0, 0.0, math.sin(math.radians(15.0)), math.cos(math.radians(15.0))], atol=1e-12
        )

    def test_euler_output_in_degrees(self):
        R = RigidTransform.from_euler(5.0, -10.0, 20.0, degrees=True).rotation
        rot = to_angle_format(rotation_from_matrix(R, RotationFormat.EULER), AngleFormat.DEG)
        assert rot.order == "rpy"
        assert [a.unit for a in rot.angles] == [AngleUnit.DEGREE] * 3
        np.testing.assert_allclose([a.value for a in rot.angles], [5.0, -10.0, 20.0], atol=1e-9)

    def test_inverse_keeps_encoding_and_unit(self):
        rot = AxisAngle(axis=(0.0, 0.0, 1.0), angle="90d")
        inv = rot.inverse()
        assert isinstance(inv, AxisAngle)
        assert inv.angle.unit is AngleUnit.DEGREE
        np.testing.assert_allclose(inv.to_matrix(), rot.to_matrix().T, atol=1e-12)

    def test_identity_axis_angle(self):
        rot = AxisAngle.from_matrix(np.eye(3))
        assert rot.angle == Angle.zero()
