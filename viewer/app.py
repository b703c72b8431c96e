"""Main interactive viewer application.

Controls:
    Left drag: Orbit the camera
    Mouse wheel: Zoom in/out
    Click on the flower / B: Toggle bloom
    R: Toggle session recording
    ESC: Quit

Headless mode (--headless):
    Simulates a session without opening a window, useful for testing.
"""

import argparse
import dataclasses
import math
import sys
from collections import Counter

import numpy as np

from lotus.config import GardenConfig
from lotus.scene import Garden
from viewer.camera import OrbitCamera, hit_flower_head
from viewer.recorder import SessionRecorder

# Longest frame step the simulation accepts (window drags, host pauses)
MAX_FRAME_TIME = 0.1


def new_seed() -> int:
    """Draw a fresh garden seed so every session can be replayed."""
    return int(np.random.default_rng().integers(0, 2**31 - 1))


def run_headless(
    num_frames: int = 60,
    output_path: str = None,
    seed: int = 0,
    toggle_frames: tuple = (0,),
    config: GardenConfig = None,
    capture_from: int = 0,
    verbose: bool = False,
) -> Garden:
    """Run a simulated session without a display.

    The camera orbits the flower once while the garden advances at 60 fps;
    bloom is toggled once per occurrence of a frame index in ``toggle_frames``.

    Args:
        num_frames: Number of frames to simulate
        output_path: If set, save the recorded session to this JSON file
        seed: Garden random seed, stored in the session
        toggle_frames: Frame indices at which bloom is toggled
        config: Scene configuration (simulated with ``seed``; not modified)
        capture_from: Frame index at which recording starts
        verbose: Print progress

    Returns:
        The garden in its final state
    """
    if config is None:
        config = GardenConfig()
    config = dataclasses.replace(config, seed=seed)
    garden = Garden(config)
    camera = OrbitCamera()
    recorder = SessionRecorder()
    recorder.begin(seed)

    dt = 1.0 / 60.0
    toggles = Counter(toggle_frames)

    for i in range(num_frames):
        camera.set_orbit(2 * math.pi * i / num_frames)

        if i == capture_from:
            recorder.start()
        for _ in range(toggles[i]):
            garden.toggle_bloom()
        elapsed = (i + 1) * dt
        garden.advance(elapsed, dt)
        recorder.step(elapsed, dt, toggles[i])
        recorder.capture(camera.get_c2w_matrix(), camera.fov)

        if verbose and (i + 1) % 60 == 0:
            print(f"Frame {i + 1}/{num_frames}  bloom={garden.progress:.3f}  wind={garden.wind.strength:.4f}")

    recorder.stop()

    if output_path:
        recorder.save(output_path)

    return garden


def run_viewer(seed: int = None):
    """Launch the interactive OpenGL viewer."""
    try:
        import pygame
        from pygame.locals import (
            DOUBLEBUF,
            HWSURFACE,
            KEYDOWN,
            MOUSEBUTTONDOWN,
            MOUSEBUTTONUP,
            MOUSEMOTION,
            MOUSEWHEEL,
            OPENGL,
            QUIT,
            K_ESCAPE,
            K_b,
            K_r,
        )
        import OpenGL.GL as GL
        import OpenGL.GLU as GLU
    except ImportError as e:
        print(f"Error: {e}")
        print("Install pygame and PyOpenGL: pip install pygame PyOpenGL")
        sys.exit(1)

    from viewer.flower_mesh import GardenRenderer

    pygame.init()
    width, height = 800, 600
    pygame.display.set_mode((width, height), DOUBLEBUF | OPENGL | HWSURFACE)
    pygame.display.set_caption("Lotus Garden - Drag/Wheel | Click or B=Bloom | R=Record | ESC=Quit")

    GL.glViewport(0, 0, width, height)
    camera = OrbitCamera()

    if seed is None:
        seed = new_seed()
    print(f"Garden seed {seed}")
    garden = Garden(GardenConfig(seed=seed))
    renderer = GardenRenderer(garden)
    renderer.init_gl()

    recorder = SessionRecorder()
    recorder.begin(seed)

    clock = pygame.time.Clock()
    elapsed = 0.0
    dragging = False
    drag_distance = 0
    running = True

    while running:
        dt = min(clock.tick(60) / 1000.0, MAX_FRAME_TIME)
        elapsed += dt
        toggles = 0

        for event in pygame.event.get():
            if event.type == QUIT:
                running = False
            elif event.type == KEYDOWN:
                if event.key == K_ESCAPE:
                    running = False
                elif event.key == K_b:
                    garden.toggle_bloom()
                    toggles += 1
                elif event.key == K_r:
                    is_recording = recorder.toggle()
                    state = "STARTED" if is_recording else f"STOPPED ({recorder.frame_count} frames)"
                    print(f"Recording {state}")
                    if not is_recording and recorder.frame_count > 0:
                        recorder.save("session.json")
                        print("Saved session.json")
            elif event.type == MOUSEBUTTONDOWN and event.button == 1:
                dragging = True
                drag_distance = 0
            elif event.type == MOUSEBUTTONUP and event.button == 1:
                dragging = False
                # A click that barely moved is a tap on the scene
                if drag_distance < 5:
                    mx, my = event.pos
                    ndc_x = mx / width * 2 - 1
                    ndc_y = -(my / height) * 2 + 1
                    origin, direction = camera.ray_through(ndc_x, ndc_y, width / height)
                    if hit_flower_head(origin, direction, garden.head_world_position()):
                        garden.toggle_bloom()
                        toggles += 1
            elif event.type == MOUSEMOTION and dragging:
                dx, dy = event.rel
                drag_distance += abs(dx) + abs(dy)
                camera.process_drag(dx, dy)
            elif event.type == MOUSEWHEEL:
                camera.zoom(-event.y * 100)

        garden.advance(elapsed, dt)

        recorder.step(elapsed, dt, toggles)
        recorder.capture(camera.get_c2w_matrix(), camera.fov)

        GL.glMatrixMode(GL.GL_PROJECTION)
        GL.glLoadIdentity()
        GLU.gluPerspective(camera.fov, width / height, 0.5, 200.0)
        GL.glMatrixMode(GL.GL_MODELVIEW)

        GL.glClear(GL.GL_COLOR_BUFFER_BIT | GL.GL_DEPTH_BUFFER_BIT)
        GL.glLoadIdentity()

        view = camera.get_view_matrix()
        GL.glMultMatrixf(view.T.astype(np.float32).flatten())

        renderer.render()

        pygame.display.flip()

    pygame.quit()


def main():
    parser = argparse.ArgumentParser(description="Lotus Garden Viewer")
    parser.add_argument("--headless", action="store_true", help="Run without display")
    parser.add_argument("--num_frames", type=int, default=600, help="Frames for headless mode")
    parser.add_argument("--output", default="session.json", help="Output session file")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    args = parser.parse_args()

    if args.headless:
        seed = args.seed if args.seed is not None else 0
        garden = run_headless(args.num_frames, args.output, seed=seed, verbose=True)
        print(f"Headless: simulated {garden.frame} frames -> {args.output}")
    else:
        run_viewer(args.seed)


if __name__ == "__main__":
    main()
