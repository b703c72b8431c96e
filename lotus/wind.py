"""Stochastic wind field shared by the flower, falling petals, and clouds.

The field is a gust process: at random intervals a new target strength and
direction are drawn, strength eases toward the target, and the target decays
until the next gust. Strength never exceeds ``max_strength`` because it only
ever moves a fraction of the way toward a target that is itself bounded.
"""

from dataclasses import dataclass

import numpy as np

from lotus.config import WindConfig


@dataclass
class WindState:
    strength: float = 0.0
    target_strength: float = 0.0
    direction: float = 0.0  # radians in [0, 2*pi)
    gust_timer: float = 0.0
    gust_interval: float = 3.0
    max_strength: float = 0.15
    min_strength: float = 0.02


def make_rng(seed: int = None) -> np.random.Generator:
    """Random source for the simulation; anything with ``random()`` works."""
    return np.random.default_rng(seed)


class WindField:
    """Owns a WindState and advances it once per frame.

    Args:
        config: Strength bounds and easing constants
        rng: Random source exposing ``random() -> float in [0, 1)``
        state: Existing state to drive (a fresh one is created if None)
    """

    def __init__(self, config: WindConfig = None, rng=None, state: WindState = None):
        if config is None:
            config = WindConfig()
        if not (config.min_strength >= 0 and config.max_strength >= 0):
            raise ValueError(
                f"wind strengths must be non-negative, got min={config.min_strength}, max={config.max_strength}"
            )
        if config.min_strength > config.max_strength:
            raise ValueError(
                f"wind min_strength {config.min_strength} exceeds max_strength {config.max_strength}"
            )
        if not config.min_gust_interval > 0:
            raise ValueError(f"min_gust_interval must be positive, got {config.min_gust_interval}")

        self.config = config
        self.rng = rng if rng is not None else make_rng()
        if state is None:
            state = WindState(
                gust_interval=config.min_gust_interval + self.rng.random() * config.initial_gust_interval_range,
                max_strength=config.max_strength,
                min_strength=config.min_strength,
            )
        self.state = state
        self.gust_count = 0

    def advance(self, delta_time: float) -> bool:
        """Advance the gust process by one frame.

        Args:
            delta_time: Seconds since the previous frame; <= 0 or NaN is a no-op

        Returns:
            True if a new gust was drawn this frame
        """
        if not delta_time > 0:
            return False

        s = self.state
        cfg = self.config
        gust = False

        s.gust_timer += delta_time
        if s.gust_timer >= s.gust_interval:
            self.draw_gust()
            gust = True

        s.strength += (s.target_strength - s.strength) * cfg.smoothing

        # Let the gust die down; dropping below the floor resets it to half
        s.target_strength *= cfg.decay
        if s.target_strength < s.min_strength:
            s.target_strength = s.min_strength * 0.5

        return gust

    def draw_gust(self):
        """Start a new gust: reset the timer and resample interval, target, and direction."""
        s = self.state
        cfg = self.config
        s.gust_timer = 0.0
        s.gust_interval = cfg.min_gust_interval + self.rng.random() * cfg.gust_interval_range
        s.target_strength = s.min_strength + self.rng.random() * (s.max_strength - s.min_strength)
        s.direction = self.rng.random() * 2 * np.pi
        self.gust_count += 1

    @property
    def strength(self) -> float:
        return self.state.strength

    @property
    def direction(self) -> float:
        return self.state.direction

    def wind_vector(self) -> tuple[float, float]:
        """Horizontal wind as (x, z) components."""
        s = self.state
        return np.cos(s.direction) * s.strength, np.sin(s.direction) * s.strength
