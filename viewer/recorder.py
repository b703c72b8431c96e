"""Session recording for deterministic offline replay."""

import json

import numpy as np


class SessionRecorder:
    """Records the simulation timeline and the camera poses to render.

    The timeline holds every simulated step since ``begin``: the frame
    clocks and how many times bloom was toggled before the step. Together
    with the garden seed it is enough to rebuild the exact scene state at
    any step, so recording can start in the middle of a session. Captured
    frames only add a camera pose and point back at their step.

    Usage:
        recorder = SessionRecorder()
        recorder.begin(seed=garden.config.seed)
        # Each frame:
        recorder.step(elapsed, dt, toggles)
        recorder.capture(camera.get_c2w_matrix(), camera.fov)
        # R key:
        recorder.toggle()
        recorder.save("session.json")
    """

    def __init__(self):
        self.steps: list[dict] = []
        self.frames: list[dict] = []
        self.seed = None
        self.recording = False

    def begin(self, seed: int = None):
        """Start a new timeline for a garden built with ``seed``."""
        self.steps = []
        self.frames = []
        self.seed = seed
        self.recording = False

    def start(self):
        """Begin capturing frames. Clears previously captured frames."""
        self.frames = []
        self.recording = True

    def stop(self):
        """Stop capturing frames."""
        self.recording = False

    def toggle(self):
        """Toggle capturing on/off. Returns new recording state."""
        if self.recording:
            self.stop()
        else:
            self.start()
        return self.recording

    def step(self, elapsed_time: float, delta_time: float, toggles: int = 0):
        """Log one simulated step.

        Args:
            elapsed_time: Clock value passed to Garden.advance
            delta_time: Frame delta passed to Garden.advance
            toggles: Bloom toggles applied just before this step
        """
        self.steps.append({
            "elapsed_time": float(elapsed_time),
            "delta_time": float(delta_time),
            "toggles": int(toggles),
        })

    def capture(self, c2w: np.ndarray, fov: float):
        """Capture the camera for the latest step, if recording.

        Args:
            c2w: (4, 4) camera-to-world matrix
            fov: Field of view in degrees
        """
        if not self.recording:
            return
        if not self.steps:
            raise ValueError("capture called before any step was logged")
        self.frames.append({
            "step": len(self.steps) - 1,
            "transform_matrix": np.asarray(c2w).tolist(),
            "fov": float(fov),
        })

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    def save(self, path: str):
        """Save the session to a JSON file.

        The timeline is cut after the last captured frame; later steps are
        never needed to replay it.
        """
        last = self.frames[-1]["step"] + 1 if self.frames else 0
        data = {
            "seed": self.seed,
            "num_steps": last,
            "num_frames": len(self.frames),
            "steps": self.steps[:last],
            "frames": self.frames,
        }
        with open(path, "w") as f:
            json.dump(data, f, indent=2)

    @staticmethod
    def load(path: str) -> tuple[int, list[dict], list[dict]]:
        """Load a recorded session.

        Returns:
            seed: Garden seed
            steps: Simulation timeline from the first frame
            frames: Captured frames, each pointing at a step index
        """
        with open(path) as f:
            data = json.load(f)
        return data["seed"], data["steps"], data["frames"]
