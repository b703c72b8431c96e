"""Replay a recorded viewer session offline and render every captured frame.

Produces a sequence of PNG images that can be played back at 60fps
or assembled into a video via ffmpeg.
"""

import argparse
import dataclasses
import os

import numpy as np

from data.render_views import focal_from_fov, render_garden, save_image
from lotus.config import GardenConfig
from lotus.scene import Garden
from viewer.recorder import SessionRecorder


def replay_session(steps: list[dict], frames: list[dict], config: GardenConfig):
    """Re-run a session's timeline, yielding (garden, frame) per captured frame.

    Every step is simulated, including those before capture started, so the
    garden reaches each captured frame in the same state as the live session.
    """
    by_step = {}
    for frame in frames:
        by_step.setdefault(frame["step"], []).append(frame)

    garden = Garden(config)
    for index, step in enumerate(steps):
        for _ in range(step["toggles"]):
            garden.toggle_bloom()
        garden.advance(step["elapsed_time"], step["delta_time"])
        for frame in by_step.get(index, ()):
            yield garden, frame


def render_session(
    path_file: str,
    output_dir: str = "output/frames",
    image_size: int = 100,
    config: GardenConfig = None,
    every: int = 1,
    verbose: bool = True,
) -> list[str]:
    """Render frames of a recorded session through the software rasterizer.

    The garden is rebuilt with the recorded seed, so the wind, falling
    petals, and clouds match the original session exactly.

    Args:
        path_file: Path to session.json
        output_dir: Directory for output frame images
        image_size: Image height and width
        config: Scene configuration (rendered with the recorded seed)
        every: Render only every n-th captured frame (the simulation still runs every step)
        verbose: Print progress

    Returns:
        List of output image file paths
    """
    os.makedirs(output_dir, exist_ok=True)

    seed, steps, frames = SessionRecorder.load(path_file)
    if config is None:
        config = GardenConfig()
    config = dataclasses.replace(config, seed=seed)

    if verbose:
        print(f"Replaying {len(steps)} steps, {len(frames)} frames (seed={seed}) at {image_size}x{image_size}")

    output_paths = []
    for i, (garden, frame) in enumerate(replay_session(steps, frames, config)):
        if i % every:
            continue
        c2w = np.array(frame["transform_matrix"], dtype=np.float64)
        focal = focal_from_fov(frame["fov"], image_size)
        rgb = render_garden(garden, c2w, focal, image_size, image_size)

        frame_path = os.path.join(output_dir, f"frame_{i:05d}.png")
        save_image(rgb, frame_path)
        output_paths.append(frame_path)

        if verbose:
            print(f"  Frame {i + 1}/{len(frames)}: {frame_path}")

    if verbose:
        print(f"Done. {len(output_paths)} frames saved to {output_dir}/")
        print(f"To make a video: ffmpeg -framerate 60 -i {output_dir}/frame_%05d.png -c:v libx264 -pix_fmt yuv420p output.mp4")

    return output_paths


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Render a recorded lotus garden session")
    parser.add_argument("--path", required=True, help="Session JSON file")
    parser.add_argument("--output", default="output/frames", help="Output directory")
    parser.add_argument("--size", type=int, default=100, help="Render size")
    parser.add_argument("--every", type=int, default=1, help="Render every n-th frame")
    args = parser.parse_args()

    render_session(args.path, args.output, image_size=args.size, every=args.every)
