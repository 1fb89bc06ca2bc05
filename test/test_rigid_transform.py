"""
Tests for the RigidTransform value type and the SE(3) helpers behind it.
"""

import copy

import numpy as np
import pytest

from tfchain.common.geometry import (
    project_rotmat,
    quat_to_rotmat,
    rotmat_to_quat,
    rotmat_to_rotvec,
    rotvec_to_rotmat,
    se3_apply,
    skew,
    unskew,
)
from tfchain.common.rigid_transform import RigidTransform
from tfchain.errors import InconsistentTransformError


class TestSO3Helpers:
    def test_skew_unskew(self):
        v = np.array([1.0, -2.0, 3.0])
        S = skew(v)
        np.testing.assert_allclose(S, -S.T)
        np.testing.assert_allclose(unskew(S), v)

    def test_rotvec_roundtrip(self):
        rotvec = np.array([0.3, -0.2, 0.9])
        np.testing.assert_allclose(rotmat_to_rotvec(rotvec_to_rotmat(rotvec)), rotvec, atol=1e-12)

    def test_rotvec_near_pi(self):
        rotvec = np.array([0.0, 0.0, np.pi])
        R = rotvec_to_rotmat(rotvec)
        back = rotmat_to_rotvec(R)
        np.testing.assert_allclose(rotvec_to_rotmat(back), R, atol=1e-9)

    def test_quaternion_is_normalized(self):
        R = quat_to_rotmat(np.array([0.0, 0.0, 2.0, 2.0]))
        expected = rotvec_to_rotmat([0.0, 0.0, np.pi / 2])
        np.testing.assert_allclose(R, expected, atol=1e-12)

    def test_quaternion_w_non_negative(self):
        R = rotvec_to_rotmat([0.0, 3.0, 0.0])
        x, y, z, w = rotmat_to_quat(R)
        assert w >= 0.0
        np.testing.assert_allclose(quat_to_rotmat(x, y, z, w), R, atol=1e-12)

    def test_zero_quaternion_rejected(self):
        with pytest.raises(ValueError):
            quat_to_rotmat([0.0, 0.0, 0.0, 0.0])

    def test_project_rotmat(self):
        R = rotvec_to_rotmat([0.4, -0.1, 0.7]) + 1e-4 * np.arange(9.0).reshape(3, 3)
        P = project_rotmat(R)
        np.testing.assert_allclose(P @ P.T, np.eye(3), atol=1e-14)
        assert np.linalg.det(P) > 0.0
        np.testing.assert_allclose(P, R, atol=5e-3)

    def test_project_rotmat_keeps_identity(self):
        np.testing.assert_allclose(project_rotmat(np.eye(3)), np.eye(3), atol=1e-15)

    def test_apply_batch(self):
        T = RigidTransform.from_rotvec([0.0, 0.0, np.pi / 2], [1.0, 0.0, 0.0]).as_matrix()
        points = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        np.testing.assert_allclose(se3_apply(T, points), [[1.0, 1.0, 0.0], [0.0, 0.0, 0.0]], atol=1e-12)


class TestRigidTransform:
    def test_identity(self):
        ident = RigidTransform.identity()
        assert ident.is_identity()
        np.testing.assert_array_equal(ident.as_matrix(), np.eye(4))

    def test_matrix_is_read_only(self):
        tf = RigidTransform.identity()
        with pytest.raises(ValueError):
            tf._matrix[0, 3] = 1.0
        copy_ = tf.as_matrix()
        copy_[0, 3] = 1.0
        assert tf.is_identity()

    def test_compose_is_matrix_product(self, random_transform):
        a, b = random_transform(), random_transform()
        np.testing.assert_allclose((a @ b).as_matrix(), a.as_matrix() @ b.as_matrix(), atol=1e-12)
        assert a.compose(b).approx_eq(a @ b)

    def test_inverse(self, random_transform):
        a = random_transform()
        assert (a @ a.inverse()).is_identity()
        assert (a.inverse() @ a).is_identity()

    def test_apply_maps_child_into_parent(self):
        # car 10 m ahead of the map origin, turned 90 degrees left
        T_map_car = RigidTransform.from_euler(0.0, 0.0, 90.0, [10.0, 0.0, 0.0], degrees=True)
        np.testing.assert_allclose(T_map_car.apply([1.0, 0.0, 0.0]), [10.0, 1.0, 0.0], atol=1e-12)

    def test_euler_extrinsic_xyz(self):
        tf = RigidTransform.from_euler(0.1, 0.2, 0.3)
        Rx = rotvec_to_rotmat([0.1, 0.0, 0.0])
        Ry = rotvec_to_rotmat([0.0, 0.2, 0.0])
        Rz = rotvec_to_rotmat([0.0, 0.0, 0.3])
        np.testing.assert_allclose(tf.rotation, Rz @ Ry @ Rx, atol=1e-12)

    def test_from_matrix_checks_last_row(self):
        M = np.eye(4)
        M[3, 0] = 1.0
        with pytest.raises(ValueError):
            RigidTransform.from_matrix(M)

    def test_from_parts_rejects_reflection(self):
        with pytest.raises(ValueError):
            RigidTransform.from_parts(np.diag([1.0, 1.0, -1.0]))

    def test_approx_eq_epsilon(self):
        a = RigidTransform.from_parts(translation=[1.0, 2.0, 3.0])
        b = RigidTransform.from_parts(translation=[1.0, 2.0, 3.0 + 1e-7])
        c = RigidTransform.from_parts(translation=[1.0, 2.0, 3.0 + 1e-3])
        assert a.approx_eq(b)
        assert not a.approx_eq(c)
        assert a.approx_eq(c, epsilon=1e-2)

    def test_quaternion_accessor(self):
        tf = RigidTransform.from_quaternion([0.0, 0.0, np.sin(0.25), np.cos(0.25)], [1.0, 2.0, 3.0])
        np.testing.assert_allclose(tf.as_rotvec(), [0.0, 0.0, 0.5], atol=1e-12)
        np.testing.assert_allclose(tf.as_quaternion(), [0.0, 0.0, np.sin(0.25), np.cos(0.25)], atol=1e-12)
        np.testing.assert_allclose(tf.translation, [1.0, 2.0, 3.0])

    def test_copies_share_value(self, random_transform):
        tf = random_transform()
        assert copy.copy(tf) is tf
        assert copy.deepcopy(tf) is tf

    def test_repr(self):
        text = repr(RigidTransform.from_parts(translation=[1.0, 0.0, 0.0]))
        assert "t=[1.000000, 0.000000, 0.000000]" in text

    def test_long_compose_chain_stays_orthonormal(self, random_transform):
        steps = [random_transform() for _ in range(500)]
        prod = RigidTransform.identity()
        for step in steps:
            prod = prod @ step
        R = prod.rotation
        np.testing.assert_allclose(R @ R.T, np.eye(3), rtol=0.0, atol=1e-12)
        back = prod
        for step in reversed(steps):
            back = back @ step.inverse()
        assert back.approx_eq(RigidTransform.identity())

    def test_from_matrix_snaps_to_rotation(self):
        M = np.eye(4)
        M[:3, :3] = rotvec_to_rotmat([0.0, 0.3, 0.0]) * (1.0 + 1e-7)
        R = RigidTransform.from_matrix(M).rotation
        np.testing.assert_allclose(R @ R.T, np.eye(3), rtol=0.0, atol=1e-14)


class TestDiagnostics:
    @pytest.fixture
    def drifted(self):
        M = np.eye(4)
        M[:3, :3] = rotvec_to_rotmat([0.2, 0.1, -0.3]) * 1.01
        M[:3, 3] = [1.0, 2.0, 3.0]
        return RigidTransform(M)

    def test_describe_does_not_validate(self, drifted):
        text = drifted.describe()
        assert "t=[1.000000, 2.000000, 3.000000]" in text
        assert repr(drifted).startswith("RigidTransform(")

    def test_error_message_built_from_drifted_transform(self, drifted):
        err = InconsistentTransformError("a", "b", RigidTransform.identity(), drifted)
        assert "but found:" in str(err)
