"""Bloom state machine: smoothed open/close progress and per-petal poses."""

from dataclasses import dataclass

import numpy as np

from lotus.config import BloomConfig
from lotus.transforms import rot_x, rot_y


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def smoothstep(x: float) -> float:
    """Cubic ease x^2 (3 - 2x); maps 0 -> 0, 0.5 -> 0.5, 1 -> 1."""
    return x * x * (3.0 - 2.0 * x)


@dataclass
class BloomState:
    progress: float = 0.0
    target: float = 0.0


class BloomController:
    """Eases bloom progress toward a 0/1 target, one step per frame.

    The approach is exponential: each step closes a fixed fraction of the
    remaining gap, so progress never reaches the target exactly.
    """

    def __init__(self, state: BloomState = None, config: BloomConfig = None):
        self.state = state if state is not None else BloomState()
        self.config = config if config is not None else BloomConfig()

    @property
    def progress(self) -> float:
        return self.state.progress

    @property
    def target(self) -> float:
        return self.state.target

    def set_target(self, target: int):
        if target not in (0, 1):
            raise ValueError(f"bloom target must be 0 or 1, got {target}")
        self.state.target = float(target)

    def toggle(self) -> float:
        """Flip between open and closed. Returns the new target."""
        self.state.target = 0.0 if self.state.target > 0.5 else 1.0
        return self.state.target

    def step(self) -> float:
        s = self.state
        s.progress += (s.target - s.progress) * self.config.smoothing
        return s.progress


def update_flower_head(head, progress: float, elapsed_time: float, config: BloomConfig = None):
    """Recompute every petal pose and the center ornament scale from progress.

    Args:
        head: FlowerHead to mutate in place
        progress: Bloom progress in [0, 1]
        elapsed_time: Seconds since start, drives the idle breathing
        config: Stamen/dome scaling constants
    """
    if config is None:
        config = BloomConfig()
    t = smoothstep(progress)

    for petal in head.petals:
        tilt = lerp(petal.closed_tilt, petal.open_tilt, t)
        radius = lerp(petal.closed_radius, petal.open_radius, t)
        breathe = np.sin(elapsed_time * petal.speed + petal.phase) * config.breathe_amplitude * t

        a = petal.angular_position
        petal.transform.position = np.array([np.cos(a) * radius, 0.0, np.sin(a) * radius])
        petal.transform.rotation = rot_y(a) @ rot_x(-(tilt + breathe))
        petal.tilt = tilt + breathe

    center = head.center
    stamen_scale = min(max((t - config.stamen_threshold) * config.stamen_gain, 0.0), 1.0)
    for stamen in center.stamens:
        stamen.set_uniform_scale(stamen_scale)
    center.dome.scale = center.dome_base_scale * (config.dome_min_scale + (1.0 - config.dome_min_scale) * t)
