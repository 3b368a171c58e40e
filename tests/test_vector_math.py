"""Tests for vector math helpers."""

import math

import numpy as np
import pytest

from flight_assist.utils import vector_math as vm


class TestNormalize:
    """Tests for degenerate-safe normalization."""

    def test_normalize_unit_length(self):
        result = vm.normalize(np.array([3.0, 0.0, 4.0]))
        assert np.allclose(result, [0.6, 0.0, 0.8])

    def test_normalize_zero_vector_returns_zero(self):
        result = vm.normalize(np.zeros(3))
        assert np.array_equal(result, np.zeros(3))
        assert np.all(np.isfinite(result))

    def test_normalize_nan_returns_zero(self):
        result = vm.normalize(np.array([np.nan, 1.0, 0.0]))
        assert np.array_equal(result, np.zeros(3))

    def test_normalize_tiny_vector_returns_zero(self):
        result = vm.normalize(np.array([1e-15, 0.0, 0.0]))
        assert np.array_equal(result, np.zeros(3))


class TestConversions:
    """Tests for shape-checked conversions."""

    def test_as_vector_accepts_sequences(self):
        vec = vm.as_vector([1, 2, 3])
        assert vec.dtype == np.float64
        assert vec.shape == (3,)

    def test_as_vector_rejects_wrong_shape(self):
        with pytest.raises(ValueError):
            vm.as_vector([1.0, 2.0])

    def test_as_matrix_rejects_wrong_shape(self):
        with pytest.raises(ValueError):
            vm.as_matrix(np.eye(4))


class TestTrigonometry:
    """Tests for clipped inverse trig functions."""

    def test_safe_acos_clips_above_one(self):
        assert vm.safe_acos(1.0000001) == 0.0

    def test_safe_acos_clips_below_minus_one(self):
        assert vm.safe_acos(-1.0000001) == pytest.approx(math.pi)

    def test_safe_asin_clips(self):
        assert vm.safe_asin(1.5) == pytest.approx(math.pi / 2)


class TestRotations:
    """Tests for rotation helpers and frame conventions."""

    def test_positive_pitch_raises_nose(self):
        """Rotation about +x (right) lifts the forward axis."""
        rotation = vm.rotation_matrix(vm.LOCAL_RIGHT, math.radians(30))
        forward = rotation @ vm.LOCAL_FORWARD
        assert forward[1] == pytest.approx(math.sin(math.radians(30)))

    def test_positive_yaw_turns_nose_left(self):
        """Rotation about +y (up) swings forward toward -x (left)."""
        rotation = vm.rotation_matrix(vm.LOCAL_UP, math.pi / 2)
        assert np.allclose(rotation @ vm.LOCAL_FORWARD, [-1.0, 0.0, 0.0])

    def test_positive_roll_raises_right_side(self):
        """Rotation about +z (backward) lifts the right axis."""
        rotation = vm.rotation_matrix(vm.LOCAL_BACKWARD, math.radians(20))
        right = rotation @ vm.LOCAL_RIGHT
        assert right[1] == pytest.approx(math.sin(math.radians(20)))

    def test_zero_angle_is_identity(self):
        assert np.array_equal(vm.rotation_matrix(vm.LOCAL_UP, 0.0), np.eye(3))

    def test_quaternion_matches_rotation_matrix(self):
        axis = vm.normalize(np.array([1.0, 2.0, -0.5]))
        angle = 1.1
        vec = np.array([0.3, -0.7, 2.0])
        quat = vm.quaternion_from_axis_angle(axis, angle)
        expected = vm.rotation_matrix(axis, angle) @ vec
        assert np.allclose(vm.rotate_by_quaternion(vec, quat), expected)

    def test_transform_transpose_inverts_transform(self):
        rotation = vm.rotation_matrix(np.array([0.2, 1.0, 0.4]), 0.7)
        vec = np.array([1.0, -2.0, 0.5])
        assert np.allclose(vm.transform_transpose(vm.transform(vec, rotation), rotation), vec)

    def test_orthonormalize_restores_rotation(self):
        rotation = vm.rotation_matrix(np.array([1.0, 1.0, 0.0]), 0.4)
        drifted = rotation + 1e-4 * np.arange(9).reshape(3, 3)
        fixed = vm.orthonormalize(drifted)
        assert np.allclose(fixed.T @ fixed, np.eye(3))
        assert np.linalg.det(fixed) == pytest.approx(1.0)


class TestAnyPerpendicular:
    """Tests for perpendicular axis selection."""

    @pytest.mark.parametrize(
        "vec",
        [vm.LOCAL_RIGHT, vm.LOCAL_UP, vm.LOCAL_FORWARD, np.array([1.0, 1.0, 1.0])],
    )
    def test_result_is_unit_and_perpendicular(self, vec):
        perp = vm.any_perpendicular(vec)
        assert vm.length(perp) == pytest.approx(1.0)
        assert vm.dot(perp, vec) == pytest.approx(0.0, abs=1e-12)
