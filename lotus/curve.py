"""Catmull-Rom centerline curves for the stem."""

import numpy as np


class CenterlineCurve:
    """Smooth 3D curve through a fixed sequence of control points.

    Interpolates with a Catmull-Rom spline (centripetal by default,
    ``alpha=0.5``; ``alpha=0`` gives the uniform variant). The end segments
    use mirrored phantom points so the curve passes through the first and
    last control points.
    """

    def __init__(self, points, alpha: float = 0.5):
        points = np.array(points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 3:
            raise ValueError(f"control points must have shape (N, 3), got {points.shape}")
        if len(points) < 2:
            raise ValueError(f"a centerline needs at least 2 control points, got {len(points)}")
        if not np.all(np.isfinite(points)):
            raise ValueError("control points must be finite")
        points.setflags(write=False)
        self._points = points
        self.alpha = alpha

    @property
    def control_points(self) -> np.ndarray:
        return self._points

    def _segment(self, index: int) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        pts = self._points
        n = len(pts)
        p1 = pts[index]
        p2 = pts[index + 1]
        p0 = pts[index - 1] if index > 0 else 2.0 * pts[0] - pts[1]
        p3 = pts[index + 2] if index + 2 < n else 2.0 * pts[n - 1] - pts[n - 2]
        return p0, p1, p2, p3

    def point(self, t: float) -> np.ndarray:
        """Position at normalized parameter t in [0, 1]."""
        t = min(max(float(t), 0.0), 1.0)
        n = len(self._points)
        p = (n - 1) * t
        index = int(np.floor(p))
        weight = p - index
        if index >= n - 1:
            index = n - 2
            weight = 1.0

        p0, p1, p2, p3 = self._segment(index)

        dt0 = np.linalg.norm(p1 - p0) ** self.alpha
        dt1 = np.linalg.norm(p2 - p1) ** self.alpha
        dt2 = np.linalg.norm(p3 - p2) ** self.alpha
        # Guard against repeated points
        if dt1 < 1e-4:
            dt1 = 1.0
        if dt0 < 1e-4:
            dt0 = dt1
        if dt2 < 1e-4:
            dt2 = dt1

        # Non-uniform tangents, rescaled to the [0, 1] segment parameter
        m1 = (p1 - p0) / dt0 - (p2 - p0) / (dt0 + dt1) + (p2 - p1) / dt1
        m2 = (p2 - p1) / dt1 - (p3 - p1) / (dt1 + dt2) + (p3 - p2) / dt2
        m1 = m1 * dt1
        m2 = m2 * dt1

        # Cubic Hermite
        w = weight
        c2 = -3.0 * p1 + 3.0 * p2 - 2.0 * m1 - m2
        c3 = 2.0 * p1 - 2.0 * p2 + m1 + m2
        return p1 + m1 * w + c2 * w * w + c3 * w * w * w

    def tangent(self, t: float, eps: float = 1e-4) -> np.ndarray:
        """Unit tangent at t, by central difference."""
        t0 = max(t - eps, 0.0)
        t1 = min(t + eps, 1.0)
        d = self.point(t1) - self.point(t0)
        norm = np.linalg.norm(d)
        if norm < 1e-12:
            return np.array([0.0, 1.0, 0.0])
        return d / norm

    def sample(self, n: int) -> np.ndarray:
        """(n, 3) positions at evenly spaced parameters from 0 to 1."""
        return np.array([self.point(t) for t in np.linspace(0.0, 1.0, n)])


def stem_control_points(height: float, n_samples: int = 26) -> np.ndarray:
    """Control samples for a gently S-curved stem rising along +Y."""
    if not height > 0:
        raise ValueError(f"stem height must be positive, got {height}")
    t = np.linspace(0.0, 1.0, n_samples)
    x = np.sin(t * np.pi * 0.3) * 0.15 * (1.0 - t * 0.5)
    y = t * height
    z = np.cos(t * np.pi * 0.15) * 0.06 * (1.0 - t)
    return np.stack([x, y, z], axis=-1)
