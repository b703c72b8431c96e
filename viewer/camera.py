"""Orbit camera with drag rotation, wheel zoom, and pointer rays."""

import math

import numpy as np

from lotus.transforms import look_at


class OrbitCamera:
    """Camera on a sphere around a target point.

    Controls:
        Drag: Orbit (theta) and tilt (phi)
        Wheel / pinch: Move closer or further away
    """

    def __init__(
        self,
        target: np.ndarray = None,
        theta: float = 0.0,
        phi: float = math.pi / 2.8,
        radius: float = 2.8,
        fov: float = 35.0,
        rotate_speed: float = 0.01,
        zoom_speed: float = 0.003,
    ):
        self.target = np.array(target if target is not None else [0.0, 2.0, 0.0], dtype=np.float64)
        self.theta = theta  # radians, azimuth
        self.phi = phi  # radians, from +Y
        self.radius = radius
        self.fov = fov  # degrees, vertical
        self.rotate_speed = rotate_speed
        self.zoom_speed = zoom_speed

        # Clamp limits
        self.min_phi = 0.3
        self.max_phi = math.pi - 0.3
        self.min_radius = 1.5
        self.max_radius = 8.0

        self._update_position()

    def _update_position(self):
        """Recompute the camera position from spherical coordinates."""
        self.position = self.target + self.radius * np.array([
            math.sin(self.phi) * math.sin(self.theta),
            math.cos(self.phi),
            math.sin(self.phi) * math.cos(self.theta),
        ])

    def set_orbit(self, theta: float, phi: float = None):
        """Place the camera at an azimuth (and optionally a polar angle)."""
        self.theta = theta
        if phi is not None:
            self.phi = max(self.min_phi, min(self.max_phi, phi))
        self._update_position()

    def process_drag(self, dx: float, dy: float):
        """Orbit by a pointer drag.

        Args:
            dx: Horizontal pointer delta (pixels)
            dy: Vertical pointer delta (pixels)
        """
        self.theta -= dx * self.rotate_speed
        self.phi += dy * self.rotate_speed
        self.phi = max(self.min_phi, min(self.max_phi, self.phi))
        self._update_position()

    def zoom(self, amount: float):
        """Change distance to the target.

        Args:
            amount: Scroll delta; positive moves the camera away
        """
        self.radius += amount * self.zoom_speed
        self.radius = max(self.min_radius, min(self.max_radius, self.radius))
        self._update_position()

    def get_c2w_matrix(self) -> np.ndarray:
        """Get the 4x4 camera-to-world matrix (OpenGL convention)."""
        return look_at(self.position, self.target)

    def get_view_matrix(self) -> np.ndarray:
        """Get the 4x4 view matrix (world-to-camera)."""
        return np.linalg.inv(self.get_c2w_matrix())

    def ray_through(self, ndc_x: float, ndc_y: float, aspect: float = 1.0) -> tuple[np.ndarray, np.ndarray]:
        """World-space ray through a point in normalized device coordinates.

        Args:
            ndc_x: Horizontal position in [-1, 1], +1 at the right edge
            ndc_y: Vertical position in [-1, 1], +1 at the top edge
            aspect: Viewport width / height

        Returns:
            origin: (3,) camera position
            direction: (3,) unit direction
        """
        c2w = self.get_c2w_matrix()
        tan_half = math.tan(math.radians(self.fov) * 0.5)
        d_cam = np.array([ndc_x * tan_half * aspect, ndc_y * tan_half, -1.0])
        d = c2w[:3, :3] @ d_cam
        return self.position.copy(), d / np.linalg.norm(d)


def hit_flower_head(
    origin: np.ndarray,
    direction: np.ndarray,
    center: np.ndarray,
    radius: float = 0.45,
) -> bool:
    """Ray/sphere test against a bounding sphere around the flower head."""
    oc = np.asarray(origin, dtype=np.float64) - np.asarray(center, dtype=np.float64)
    d = np.asarray(direction, dtype=np.float64)
    d = d / np.linalg.norm(d)
    b = np.dot(oc, d)
    c = np.dot(oc, oc) - radius * radius
    disc = b * b - c
    if disc < 0:
        return False
    # Nearest intersection must lie in front of the origin
    return -b + math.sqrt(disc) >= 0
