"""Rigid transforms: rotation matrices, Euler composition, and instance transforms."""

from dataclasses import dataclass, field

import numpy as np


def rot_x(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([
        [1.0, 0.0, 0.0],
        [0.0, c, -s],
        [0.0, s, c],
    ])


def rot_y(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([
        [c, 0.0, s],
        [0.0, 1.0, 0.0],
        [-s, 0.0, c],
    ])


def rot_z(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([
        [c, -s, 0.0],
        [s, c, 0.0],
        [0.0, 0.0, 1.0],
    ])


def euler_xyz(x: float, y: float, z: float) -> np.ndarray:
    """Rotation matrix for intrinsic XYZ Euler angles (R = Rx @ Ry @ Rz)."""
    return rot_x(x) @ rot_y(y) @ rot_z(z)


def align_y_to(direction: np.ndarray) -> np.ndarray:
    """Rotation taking the +Y axis onto ``direction`` (Rodrigues formula)."""
    d = np.asarray(direction, dtype=np.float64)
    d = d / np.linalg.norm(d)
    y = np.array([0.0, 1.0, 0.0])
    axis = np.cross(y, d)
    sin_a = np.linalg.norm(axis)
    cos_a = float(np.dot(y, d))
    if sin_a < 1e-9:
        # Parallel or anti-parallel to +Y
        return np.eye(3) if cos_a > 0 else rot_x(np.pi)
    k = axis / sin_a
    K = np.array([
        [0.0, -k[2], k[1]],
        [k[2], 0.0, -k[0]],
        [-k[1], k[0], 0.0],
    ])
    return np.eye(3) + sin_a * K + (1.0 - cos_a) * (K @ K)


@dataclass
class Transform:
    """Position, rotation and per-axis scale of one mesh instance."""
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    scale: np.ndarray = field(default_factory=lambda: np.ones(3))

    def matrix(self) -> np.ndarray:
        """4x4 local-to-parent matrix (scale, then rotate, then translate)."""
        m = np.eye(4)
        m[:3, :3] = self.rotation * self.scale[None, :]
        m[:3, 3] = self.position
        return m

    def set_uniform_scale(self, s: float):
        self.scale = self.scale.copy()
        self.scale[:] = s

    def copy(self) -> "Transform":
        return Transform(self.position.copy(), self.rotation.copy(), self.scale.copy())


def apply_matrix(
    matrix: np.ndarray,
    vertices: np.ndarray,
    normals: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """Transform vertices and normals by a 4x4 matrix.

    Normals use the inverse transpose so that non-uniform scale keeps them
    perpendicular to the surface; they are renormalized afterwards.
    """
    linear = matrix[:3, :3]
    v = vertices @ linear.T + matrix[:3, 3]
    det = np.linalg.det(linear)
    if abs(det) < 1e-12:
        # Collapsed instance (zero scale): keep the rotated normals
        n = normals @ linear.T
    else:
        n = normals @ np.linalg.inv(linear)
    norms = np.linalg.norm(n, axis=-1, keepdims=True)
    degenerate = (norms < 1e-12).squeeze(-1)
    n = n / np.maximum(norms, 1e-12)
    n[degenerate] = np.array([0.0, 1.0, 0.0])
    return v, n


def look_at(
    cam_pos: np.ndarray,
    target: np.ndarray = None,
    up: np.ndarray = None,
) -> np.ndarray:
    """Compute camera-to-world matrix for a camera looking at a target.

    Args:
        cam_pos: (3,) camera position in world space
        target: (3,) point to look at (default: origin)
        up: (3,) world up vector (default: +Y)

    Returns:
        (4, 4) camera-to-world matrix (OpenGL convention)
    """
    if target is None:
        target = np.array([0.0, 0.0, 0.0])
    if up is None:
        up = np.array([0.0, 1.0, 0.0])

    cam_pos = np.asarray(cam_pos, dtype=np.float64)
    target = np.asarray(target, dtype=np.float64)
    up = np.asarray(up, dtype=np.float64)

    forward = target - cam_pos
    forward = forward / np.linalg.norm(forward)

    right = np.cross(forward, up)
    norm = np.linalg.norm(right)
    if norm < 1e-6:
        # forward is parallel to up; pick an arbitrary right vector
        right = np.array([1.0, 0.0, 0.0])
    else:
        right = right / norm

    new_up = np.cross(right, forward)

    # OpenGL convention: camera looks down -Z
    c2w = np.eye(4)
    c2w[:3, 0] = right
    c2w[:3, 1] = new_up
    c2w[:3, 2] = -forward
    c2w[:3, 3] = cam_pos
    return c2w
