"""
Vector Math Utilities

Small 3D vector/matrix helpers shared by the estimator, the control laws,
the actuator driver and the simulated host.

Local Frame Convention:
    - X-axis: Right
    - Y-axis: Up
    - Z-axis: Backward (forward is -Z)

A world matrix is the local-to-world rotation whose columns are the
(right, up, backward) axes expressed in world coordinates. Transforming a
world vector into a local frame multiplies by the transpose.

Rate Vector Convention:
    - +X → nose up (pitch)
    - +Y → nose left (yaw)
    - +Z → right side up (roll)

All helpers are total: zero-length inputs produce zero-length outputs and
arccos/arcsin arguments are clipped, so no NaN escapes from here.
"""

import math

import numpy as np

# ==============================================================================
# Frame Constants
# ==============================================================================

LOCAL_RIGHT = np.array([1.0, 0.0, 0.0])
LOCAL_UP = np.array([0.0, 1.0, 0.0])
LOCAL_BACKWARD = np.array([0.0, 0.0, 1.0])
LOCAL_FORWARD = -LOCAL_BACKWARD

IDENTITY = np.eye(3)

# Vectors shorter than this are treated as zero-length.
ZERO_MAGNITUDE_THRESHOLD = 1e-12

# Standard gravity, used to express gravity strength in g.
STANDARD_GRAVITY = 9.81


def as_vector(value) -> np.ndarray:
    """Convert a length-3 sequence into a float64 vector."""
    vec = np.asarray(value, dtype=np.float64)
    if vec.shape != (3,):
        raise ValueError(f"Expected a 3-vector, got shape {vec.shape}")
    return vec


def as_matrix(value) -> np.ndarray:
    """Convert a nested sequence into a float64 3x3 matrix."""
    mat = np.asarray(value, dtype=np.float64)
    if mat.shape != (3, 3):
        raise ValueError(f"Expected a 3x3 matrix, got shape {mat.shape}")
    return mat


def is_finite_vector(vec) -> bool:
    """Return True if every component is finite."""
    return bool(np.all(np.isfinite(vec)))


def length(vec: np.ndarray) -> float:
    return float(np.linalg.norm(vec))


def normalize(vec: np.ndarray) -> np.ndarray:
    """
    Return the unit vector along ``vec``.

    Zero-length or non-finite inputs yield the zero vector instead of NaN.
    """
    if not is_finite_vector(vec):
        return np.zeros(3)
    mag = np.linalg.norm(vec)
    if mag <= ZERO_MAGNITUDE_THRESHOLD:
        return np.zeros(3)
    return vec / mag


def dot(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.dot(a, b))


def cross(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.cross(a, b)


def safe_acos(value: float) -> float:
    """arccos with the argument clipped to [-1, 1]."""
    return math.acos(min(1.0, max(-1.0, value)))


def safe_asin(value: float) -> float:
    """arcsin with the argument clipped to [-1, 1]."""
    return math.asin(min(1.0, max(-1.0, value)))


def transform(vec: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Rotate a local vector into the parent frame."""
    return matrix @ vec


def transform_transpose(vec: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Rotate a parent-frame vector into the local frame (inverse rotation)."""
    return matrix.T @ vec


def any_perpendicular(vec: np.ndarray) -> np.ndarray:
    """
    Return a unit vector perpendicular to ``vec``.

    Prefers the local right axis, falling back to the up axis when ``vec`` is
    (anti)parallel to it.
    """
    candidate = np.cross(vec, LOCAL_RIGHT)
    if np.linalg.norm(candidate) <= 1e-6:
        candidate = np.cross(vec, LOCAL_UP)
    return normalize(candidate)


# ==============================================================================
# Quaternions (w, x, y, z)
# ==============================================================================


def quaternion_from_axis_angle(axis: np.ndarray, angle: float) -> np.ndarray:
    """Build a unit quaternion for a rotation of ``angle`` radians about ``axis``."""
    unit = normalize(axis)
    if not unit.any():
        return np.array([1.0, 0.0, 0.0, 0.0])
    half = 0.5 * angle
    return np.concatenate(([math.cos(half)], unit * math.sin(half)))


def rotate_by_quaternion(vec: np.ndarray, quat: np.ndarray) -> np.ndarray:
    """Rotate ``vec`` by the unit quaternion ``quat``."""
    w = quat[0]
    u = quat[1:]
    t = 2.0 * np.cross(u, vec)
    return vec + w * t + np.cross(u, t)


def rotation_matrix(axis: np.ndarray, angle: float) -> np.ndarray:
    """Rodrigues rotation matrix for ``angle`` radians about ``axis``."""
    unit = normalize(axis)
    if not unit.any() or angle == 0.0:
        return np.eye(3)
    x, y, z = unit
    k = np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])
    return np.eye(3) + math.sin(angle) * k + (1.0 - math.cos(angle)) * (k @ k)


def orthonormalize(matrix: np.ndarray) -> np.ndarray:
    """Re-orthonormalize a rotation matrix that has drifted numerically."""
    u, _, vt = np.linalg.svd(matrix)
    result = u @ vt
    if np.linalg.det(result) < 0:
        u[:, -1] *= -1
        result = u @ vt
    return result
