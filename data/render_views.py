"""Render snapshots of the animated garden with a software rasterizer.

This avoids any OpenGL dependency, making it portable across environments
(headless servers, CI, etc.).
"""

import json
import os

import numpy as np
from PIL import Image

from lotus.config import GardenConfig, COLORS, hex_to_rgb
from lotus.scene import Garden
from lotus.transforms import look_at

FLOWER_TARGET = np.array([0.0, 2.0, 0.0])
SUN_DIRECTION = np.array([3.0, 8.0, 5.0])


def rasterize_triangle(
    v0: np.ndarray,
    v1: np.ndarray,
    v2: np.ndarray,
    c0: np.ndarray,
    c1: np.ndarray,
    c2: np.ndarray,
    n0: np.ndarray,
    n1: np.ndarray,
    n2: np.ndarray,
    image: np.ndarray,
    zbuf: np.ndarray,
    light_dir: np.ndarray,
    ambient: float = 0.45,
):
    """Rasterize a single triangle with z-buffer and two-sided Lambertian shading."""
    H, W = zbuf.shape

    # Bounding box
    xs = [v0[0], v1[0], v2[0]]
    ys = [v0[1], v1[1], v2[1]]
    min_x = max(int(np.floor(min(xs))), 0)
    max_x = min(int(np.ceil(max(xs))), W - 1)
    min_y = max(int(np.floor(min(ys))), 0)
    max_y = min(int(np.ceil(max(ys))), H - 1)

    if min_x > max_x or min_y > max_y:
        return

    # Edge vectors for barycentric coordinates
    e01 = v1[:2] - v0[:2]
    e02 = v2[:2] - v0[:2]
    det = e01[0] * e02[1] - e01[1] * e02[0]
    if abs(det) < 1e-10:
        return
    inv_det = 1.0 / det

    for py in range(min_y, max_y + 1):
        for px in range(min_x, max_x + 1):
            ep = np.array([px + 0.5, py + 0.5]) - v0[:2]
            u = (ep[0] * e02[1] - ep[1] * e02[0]) * inv_det
            v = (e01[0] * ep[1] - e01[1] * ep[0]) * inv_det
            w = 1.0 - u - v

            if u >= 0 and v >= 0 and w >= 0:
                z = w * v0[2] + u * v1[2] + v * v2[2]
                if z < zbuf[py, px]:
                    zbuf[py, px] = z

                    color = w * c0 + u * c1 + v * c2
                    normal = w * n0 + u * n1 + v * n2
                    norm_len = np.linalg.norm(normal)
                    if norm_len > 1e-8:
                        normal = normal / norm_len

                    # Petals and leaves are thin, so light both faces
                    diffuse = abs(np.dot(normal, light_dir))
                    shade = ambient + (1.0 - ambient) * diffuse
                    image[py, px] = np.clip(color * shade, 0, 1)


def project_vertices(
    vertices: np.ndarray,
    c2w: np.ndarray,
    focal: float,
    height: int,
    width: int,
) -> np.ndarray:
    """Project 3D vertices to 2D screen coordinates.

    Args:
        vertices: (N, 3) world-space positions
        c2w: (4, 4) camera-to-world matrix
        focal: focal length in pixels
        height: image height
        width: image width

    Returns:
        (N, 3) screen-space positions [x, y, depth]
    """
    w2c = np.linalg.inv(c2w)
    R = w2c[:3, :3]
    t = w2c[:3, 3]

    cam_pts = (R @ vertices.T).T + t  # (N, 3)

    # OpenGL: camera looks down -Z, so depth = -z
    depth = -cam_pts[:, 2]

    screen = np.zeros((len(vertices), 3))
    valid = depth > 0.01
    screen[valid, 0] = focal * cam_pts[valid, 0] / (-cam_pts[valid, 2]) + width * 0.5
    screen[valid, 1] = -focal * cam_pts[valid, 1] / (-cam_pts[valid, 2]) + height * 0.5
    screen[valid, 2] = depth[valid]
    screen[~valid, 2] = -1.0  # behind the camera, skipped by render_scene

    return screen


def render_scene(
    vertices: np.ndarray,
    faces: np.ndarray,
    colors: np.ndarray,
    normals: np.ndarray,
    c2w: np.ndarray,
    focal: float,
    height: int,
    width: int,
    background: np.ndarray = None,
) -> np.ndarray:
    """Render merged mesh buffers from a given camera pose.

    Args:
        vertices: (N, 3) positions
        faces: (M, 3) triangle indices
        colors: (N, 3) per-vertex RGB
        normals: (N, 3) per-vertex normals
        c2w: (4, 4) camera-to-world matrix
        focal: focal length in pixels
        height: image height
        width: image width
        background: (3,) background color, default warm sky

    Returns:
        (H, W, 3) rendered image in [0, 1]
    """
    if background is None:
        background = np.array(hex_to_rgb(COLORS["sky"]))

    image = np.full((height, width, 3), background, dtype=np.float64)
    zbuf = np.full((height, width), np.inf, dtype=np.float64)
    if len(faces) == 0:
        return image.astype(np.float32)

    screen = project_vertices(vertices, c2w, focal, height, width)

    light_dir = SUN_DIRECTION / np.linalg.norm(SUN_DIRECTION)

    for f in faces:
        v0, v1, v2 = screen[f[0]], screen[f[1]], screen[f[2]]

        # Skip if any vertex is behind camera
        if v0[2] <= 0 or v1[2] <= 0 or v2[2] <= 0:
            continue

        rasterize_triangle(
            v0, v1, v2,
            colors[f[0]], colors[f[1]], colors[f[2]],
            normals[f[0]], normals[f[1]], normals[f[2]],
            image, zbuf, light_dir,
        )

    return image.astype(np.float32)


def generate_camera_poses(
    n_views: int,
    radius: float = 2.8,
    phi: float = np.pi / 2.8,
    target: np.ndarray = None,
) -> list[np.ndarray]:
    """Generate camera poses on a horizontal orbit looking at the flower head.

    Args:
        n_views: Number of poses, evenly spaced in azimuth
        radius: Distance from the target
        phi: Polar angle from +Y (constant along the orbit)
        target: Point to look at (default: flower head height)
    """
    if target is None:
        target = FLOWER_TARGET

    poses = []
    for i in range(n_views):
        theta = 2 * np.pi * i / n_views
        cam_pos = target + radius * np.array([
            np.sin(phi) * np.sin(theta),
            np.cos(phi),
            np.sin(phi) * np.cos(theta),
        ])
        poses.append(look_at(cam_pos, target))
    return poses


def focal_from_fov(fov_degrees: float, image_size: int) -> float:
    """Focal length in pixels for a vertical field of view."""
    return image_size * 0.5 / np.tan(np.radians(fov_degrees) * 0.5)


def render_garden(
    garden: Garden,
    c2w: np.ndarray,
    focal: float,
    height: int,
    width: int,
    include_clouds: bool = True,
) -> np.ndarray:
    """Rasterize the garden's current frame. Returns (H, W, 3) in [0, 1]."""
    vertices, normals, colors, faces = garden.mesh_buffers(include_clouds)
    return render_scene(vertices, faces, colors, normals, c2w, focal, height, width)


def save_image(image: np.ndarray, path: str):
    img_uint8 = (np.clip(image, 0, 1) * 255).astype(np.uint8)
    Image.fromarray(img_uint8).save(path)


def generate_snapshots(
    output_dir: str = "snapshots",
    n_frames: int = 8,
    frame_stride: int = 30,
    image_size: int = 100,
    fov: float = 35.0,
    bloom_at: int = 0,
    config: GardenConfig = None,
    verbose: bool = True,
) -> dict:
    """Simulate the garden and save a rendered snapshot every few frames.

    The camera orbits the flower once over the snapshot sequence. The
    bloom target is set to open at simulation frame ``bloom_at`` (a
    negative value keeps the flower closed).

    Args:
        output_dir: Directory to save images and frames.json
        n_frames: Number of snapshots
        frame_stride: Simulated frames (at 60 fps) between snapshots
        image_size: Image height and width
        fov: Vertical field of view in degrees
        bloom_at: Simulation frame at which the flower starts opening
        config: Scene configuration
        verbose: Print progress

    Returns:
        dict with 'focal', 'seed' and 'frames' list
    """
    images_dir = os.path.join(output_dir, "images")
    os.makedirs(images_dir, exist_ok=True)

    if config is None:
        config = GardenConfig()
    garden = Garden(config)

    focal = focal_from_fov(fov, image_size)
    poses = generate_camera_poses(n_frames)
    dt = 1.0 / 60.0

    frames = []
    sim_frame = 0
    for i, c2w in enumerate(poses):
        for _ in range(frame_stride):
            if sim_frame == bloom_at:
                garden.set_bloom_target(1)
            sim_frame += 1
            garden.advance(sim_frame * dt, dt)

        img = render_garden(garden, c2w, focal, image_size, image_size)
        img_path = os.path.join(images_dir, f"f_{i:03d}.png")
        save_image(img, img_path)

        frames.append({
            "file_path": f"./images/f_{i:03d}.png",
            "frame": sim_frame,
            "elapsed_time": sim_frame * dt,
            "progress": garden.progress,
            "wind_strength": garden.wind.strength,
            "transform_matrix": c2w.tolist(),
        })
        if verbose:
            print(f"  Snapshot {i + 1}/{n_frames}: frame {sim_frame}, bloom={garden.progress:.3f}")

    meta = {
        "focal": focal,
        "seed": config.seed,
        "frames": frames,
    }
    with open(os.path.join(output_dir, "frames.json"), "w") as f:
        json.dump(meta, f, indent=2)

    if verbose:
        print(f"Generated {n_frames} snapshots at {image_size}x{image_size} in {output_dir}/")
    return meta


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Render snapshots of the lotus garden")
    parser.add_argument("--output_dir", default="snapshots", help="Output directory")
    parser.add_argument("--n_frames", type=int, default=8, help="Number of snapshots")
    parser.add_argument("--frame_stride", type=int, default=30, help="Simulated frames between snapshots")
    parser.add_argument("--image_size", type=int, default=100, help="Image size")
    parser.add_argument("--bloom_at", type=int, default=0, help="Frame at which blooming starts (-1: never)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    args = parser.parse_args()

    generate_snapshots(
        args.output_dir, args.n_frames, args.frame_stride, args.image_size,
        bloom_at=args.bloom_at, config=GardenConfig(seed=args.seed),
    )
