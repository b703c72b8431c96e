"""Procedural mesh generation for the lotus scene.

Shape meshes (leaves and petals) are built from a 2D boundary of quadratic
Bezier segments, extruded with a beveled edge, bent into a drooping curve,
and shaded with recomputed vertex normals. Meshes are immutable and shared:
asking twice for the same shape returns the same object.

Also provides the simpler primitives the scene needs (stem tube, sphere,
cone) and a helper that merges transformed instances into flat render
buffers.
"""

from dataclasses import dataclass
from functools import lru_cache

import numpy as np

from lotus.transforms import apply_matrix


@dataclass(frozen=True, eq=False)
class Mesh:
    """Read-only triangle mesh.

    Attributes:
        vertices: (N, 3) float64 positions
        normals: (N, 3) unit vertex normals
        faces: (M, 3) int32 triangle indices
    """
    vertices: np.ndarray
    normals: np.ndarray
    faces: np.ndarray

    def __post_init__(self):
        for arr in (self.vertices, self.normals, self.faces):
            arr.setflags(write=False)

    @property
    def num_vertices(self) -> int:
        return len(self.vertices)


@dataclass(frozen=True)
class ShapeProfile:
    """Outline, extrusion, and bend constants for one kind of shape.

    ``outline`` lists the left half as (control, end) pairs in units of
    (width, length), starting from the base at (0, 0).
    """
    outline: tuple
    depth: float
    bevel_thickness: float
    bevel_size: float
    bevel_segments: int
    droop: float  # k: z -= t^2 * k
    ridge: float  # k2: z -= |x| * k2


SHAPE_PROFILES = {
    "leaf": ShapeProfile(
        outline=(((-0.8, 0.3), (-0.5, 0.6)), ((-0.2, 0.85), (0.0, 1.0))),
        depth=0.003,
        bevel_thickness=0.001,
        bevel_size=0.002,
        bevel_segments=1,
        droop=0.08,
        ridge=0.1,
    ),
    "petal": ShapeProfile(
        outline=(((-0.9, 0.25), (-0.6, 0.7)), ((-0.25, 0.95), (0.0, 1.0))),
        depth=0.005,
        bevel_thickness=0.002,
        bevel_size=0.005,
        bevel_segments=2,
        droop=0.04,
        ridge=0.0,
    ),
}


def quadratic_bezier(p0, control, p1, n: int) -> np.ndarray:
    """Sample n points (endpoints included) on a quadratic Bezier segment."""
    p0, control, p1 = (np.asarray(p, dtype=np.float64) for p in (p0, control, p1))
    u = np.linspace(0.0, 1.0, n)[:, None]
    return (1.0 - u) ** 2 * p0 + 2.0 * u * (1.0 - u) * control + u ** 2 * p1


def compute_vertex_normals(vertices: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """Area-weighted vertex normals from triangle winding."""
    v0 = vertices[faces[:, 0]]
    v1 = vertices[faces[:, 1]]
    v2 = vertices[faces[:, 2]]
    # Cross product length is twice the triangle area
    face_normals = np.cross(v1 - v0, v2 - v0)

    normals = np.zeros_like(vertices)
    for k in range(3):
        np.add.at(normals, faces[:, k], face_normals)

    norms = np.linalg.norm(normals, axis=-1, keepdims=True)
    # Vertices touched only by degenerate triangles get a default normal
    degenerate = (norms < 1e-12).squeeze(-1)
    normals = normals / np.maximum(norms, 1e-12)
    normals[degenerate] = np.array([0.0, 0.0, 1.0])
    return normals


def shape_outline(kind: str, length: float, width: float, samples_per_segment: int = 6) -> np.ndarray:
    """Left half of a shape boundary, from base (0, 0) to tip (0, length).

    Returns:
        (K, 2) points with strictly non-decreasing y
    """
    profile = _profile(kind)
    points = [np.zeros((1, 2))]
    start = (0.0, 0.0)
    for (cx, cy), (ex, ey) in profile.outline:
        control = (cx * width, cy * length)
        end = (ex * width, ey * length)
        seg = quadratic_bezier(start, control, end, samples_per_segment + 1)
        points.append(seg[1:])
        start = end
    return np.concatenate(points, axis=0)


def _profile(kind: str) -> ShapeProfile:
    try:
        return SHAPE_PROFILES[kind]
    except KeyError:
        raise ValueError(f"unknown shape kind {kind!r}, expected one of {sorted(SHAPE_PROFILES)}")


@lru_cache(maxsize=128)
def shape_mesh(
    kind: str,
    length: float,
    width: float,
    samples_per_segment: int = 6,
    n_across: int = 5,
) -> Mesh:
    """Generate the extruded, bent surface for a leaf or petal.

    The shape lies in the XY plane with its base at the origin and its tip
    at (0, length, 0), extruded along +Z. Repeated calls with the same
    arguments return the same Mesh object.

    Args:
        kind: "leaf" or "petal"
        length: Base-to-tip length, must be positive
        width: Outline width scale, must be positive
        samples_per_segment: Points sampled per Bezier segment
        n_across: Grid columns across the cap faces (>= 2)

    Returns:
        Shared, read-only Mesh
    """
    profile = _profile(kind)
    if not length > 0:
        raise ValueError(f"{kind} length must be positive, got {length}")
    if not width > 0:
        raise ValueError(f"{kind} width must be positive, got {width}")

    left = shape_outline(kind, length, width, samples_per_segment)
    right = left * np.array([-1.0, 1.0])
    n_rows = len(left)

    # Caps: grid between the mirrored halves (each half is y-monotone)
    s = np.linspace(0.0, 1.0, n_across)[None, :, None]
    grid = (left[:, None, :] * (1.0 - s) + right[:, None, :] * s).reshape(-1, 2)

    cap_faces = []
    for i in range(n_rows - 1):
        for j in range(n_across - 1):
            idx = i * n_across + j
            cap_faces.append([idx, idx + 1, idx + n_across])
            cap_faces.append([idx + 1, idx + n_across + 1, idx + n_across])
    cap_faces = np.array(cap_faces, dtype=np.int32)  # winding faces +Z

    # Closed contour: up the left half, back down the right half (clockwise)
    contour = np.concatenate([left, right[-2:0:-1]], axis=0)
    n_contour = len(contour)
    tangent = np.roll(contour, -1, axis=0) - np.roll(contour, 1, axis=0)
    outward = np.stack([-tangent[:, 1], tangent[:, 0]], axis=-1)
    outward /= np.maximum(np.linalg.norm(outward, axis=-1, keepdims=True), 1e-12)

    # Bevel rings from the front cap edge, around the rim, to the back cap edge
    theta = np.linspace(0.0, np.pi / 2, profile.bevel_segments + 1)
    front = [(-profile.bevel_thickness * np.cos(a), profile.bevel_size * np.sin(a)) for a in theta]
    back = [(profile.depth + profile.bevel_thickness * np.cos(a), profile.bevel_size * np.sin(a))
            for a in theta[::-1]]
    rings = [
        np.column_stack([contour + outward * offset, np.full(n_contour, z)])
        for z, offset in front + back
    ]

    front_z = -profile.bevel_thickness
    back_z = profile.depth + profile.bevel_thickness
    front_cap = np.column_stack([grid, np.full(len(grid), front_z)])
    back_cap = np.column_stack([grid, np.full(len(grid), back_z)])

    vertices = [front_cap, back_cap] + rings
    faces = [cap_faces[:, ::-1], cap_faces + len(grid)]

    offset = 2 * len(grid)
    side_faces = []
    for k in range(len(rings) - 1):
        for c in range(n_contour):
            c_next = (c + 1) % n_contour
            a = offset + k * n_contour + c
            a_next = offset + k * n_contour + c_next
            b = a + n_contour
            b_next = a_next + n_contour
            side_faces.append([a, b, a_next])
            side_faces.append([a_next, b, b_next])
    faces.append(np.array(side_faces, dtype=np.int32))

    vertices = np.concatenate(vertices, axis=0)
    faces = np.concatenate(faces, axis=0).astype(np.int32)

    # Droop toward the tip, plus a midline ridge
    t = np.maximum(0.0, vertices[:, 1] / length)
    vertices[:, 2] -= t * t * profile.droop + np.abs(vertices[:, 0]) * profile.ridge

    normals = compute_vertex_normals(vertices, faces)
    return Mesh(vertices, normals, faces)


def tube_mesh(
    curve,
    n_segments: int = 25,
    n_around: int = 8,
    radius: float = 0.025,
) -> Mesh:
    """Sweep a circle of the given radius along a centerline curve."""
    params = np.linspace(0.0, 1.0, n_segments + 1)
    theta = np.linspace(0, 2 * np.pi, n_around, endpoint=False)

    vertices = []
    normals = []
    for t in params:
        center = curve.point(t)
        tangent = curve.tangent(t)
        ref = np.array([1.0, 0.0, 0.0]) if abs(tangent[0]) < 0.9 else np.array([0.0, 0.0, 1.0])
        n_axis = np.cross(tangent, ref)
        n_axis /= np.linalg.norm(n_axis)
        b_axis = np.cross(tangent, n_axis)
        for a in theta:
            direction = np.cos(a) * n_axis + np.sin(a) * b_axis
            vertices.append(center + radius * direction)
            normals.append(direction)

    faces = []
    for i in range(n_segments):
        for j in range(n_around):
            j_next = (j + 1) % n_around
            idx = i * n_around + j
            idx_next = i * n_around + j_next
            idx_above = idx + n_around
            idx_above_next = idx_next + n_around
            faces.append([idx, idx_next, idx_above])
            faces.append([idx_next, idx_above_next, idx_above])

    return Mesh(np.array(vertices), np.array(normals), np.array(faces, dtype=np.int32))


@lru_cache(maxsize=128)
def sphere_mesh(radius: float = 1.0, n_lat: int = 8, n_lon: int = 12) -> Mesh:
    """UV sphere centered at the origin."""
    phi = np.linspace(0, np.pi, n_lat)
    theta = np.linspace(0, 2 * np.pi, n_lon, endpoint=False)
    PHI, THETA = np.meshgrid(phi, theta, indexing="ij")

    normals = np.stack([
        np.sin(PHI) * np.cos(THETA),
        np.cos(PHI),
        np.sin(PHI) * np.sin(THETA),
    ], axis=-1).reshape(-1, 3)
    vertices = radius * normals

    faces = []
    for i in range(n_lat - 1):
        for j in range(n_lon):
            j_next = (j + 1) % n_lon
            idx = i * n_lon + j
            idx_next = i * n_lon + j_next
            idx_below = idx + n_lon
            idx_below_next = idx_next + n_lon
            faces.append([idx, idx_next, idx_below])
            faces.append([idx_next, idx_below_next, idx_below])

    return Mesh(vertices, normals, np.array(faces, dtype=np.int32))


@lru_cache(maxsize=128)
def cone_mesh(
    radius_top: float,
    radius_bottom: float,
    height: float,
    n_around: int = 6,
) -> Mesh:
    """Open-ended truncated cone along +Y, centered at the origin."""
    theta = np.linspace(0, 2 * np.pi, n_around, endpoint=False)
    slope = (radius_bottom - radius_top) / height

    vertices = []
    normals = []
    for y, r in ((-height / 2, radius_bottom), (height / 2, radius_top)):
        for a in theta:
            vertices.append([r * np.cos(a), y, r * np.sin(a)])
            n = np.array([np.cos(a), slope, np.sin(a)])
            normals.append(n / np.linalg.norm(n))

    faces = []
    for j in range(n_around):
        j_next = (j + 1) % n_around
        faces.append([j, j + n_around, j_next])
        faces.append([j_next, j + n_around, j_next + n_around])

    return Mesh(np.array(vertices), np.array(normals), np.array(faces, dtype=np.int32))


def merge_meshes(parts) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Flatten transformed mesh instances into single render buffers.

    Args:
        parts: iterable of (mesh, 4x4 matrix, rgb) tuples

    Returns:
        vertices: (N, 3) float32 world positions
        normals: (N, 3) float32 unit normals
        colors: (N, 3) float32 RGB in [0, 1]
        faces: (M, 3) int32 triangle indices
    """
    all_verts = []
    all_normals = []
    all_colors = []
    all_faces = []
    offset = 0

    for mesh, matrix, rgb in parts:
        v, n = apply_matrix(matrix, mesh.vertices, mesh.normals)
        all_verts.append(v)
        all_normals.append(n)
        all_colors.append(np.tile(np.asarray(rgb, dtype=np.float64), (len(v), 1)))
        all_faces.append(mesh.faces + offset)
        offset += len(v)

    if not all_verts:
        return (
            np.zeros((0, 3), dtype=np.float32),
            np.zeros((0, 3), dtype=np.float32),
            np.zeros((0, 3), dtype=np.float32),
            np.zeros((0, 3), dtype=np.int32),
        )

    vertices = np.concatenate(all_verts, axis=0).astype(np.float32)
    normals = np.concatenate(all_normals, axis=0).astype(np.float32)
    colors = np.concatenate(all_colors, axis=0).astype(np.float32)
    faces = np.concatenate(all_faces, axis=0).astype(np.int32)
    return vertices, normals, colors, faces
