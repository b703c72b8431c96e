"""Garden scene: the flower, its bloom and wind state, and the particle pools.

``Garden.advance`` is the single per-frame entry point. The host calls it
once per display refresh and then reads transforms or merged mesh buffers
to draw the frame.
"""

import numpy as np

from lotus.bloom import BloomController, update_flower_head
from lotus.config import GardenConfig
from lotus.flower import Flower, build_flower
from lotus.geometry import merge_meshes
from lotus.motion import Clouds, FallingPetals, sway_flower
from lotus.wind import WindField, make_rng


class Garden:
    """Owns one flower plus the state that animates it.

    Args:
        config: Scene configuration (defaults to GardenConfig())
        rng: Random source shared by wind and particles; seeded from
            ``config.seed`` when None
        flower: Prebuilt flower (built from ``config`` when None)
    """

    def __init__(self, config: GardenConfig = None, rng=None, flower: Flower = None):
        if config is None:
            config = GardenConfig()
        if rng is None:
            rng = make_rng(config.seed)
        self.config = config
        self.rng = rng

        if flower is None:
            flower = build_flower(config.stem_height, config.leaves, config.petal_layers, config.petal_motion)
        self.flower = flower

        self.bloom = BloomController(config=config.bloom)
        self.wind = WindField(config.wind, rng)
        self.falling_petals = FallingPetals(config.falling_petals, rng)
        self.clouds = Clouds(config.clouds, rng)

        self.elapsed_time = 0.0
        self.frame = 0

        # Start from a consistent closed pose
        update_flower_head(self.flower.head, self.bloom.progress, 0.0, config.bloom)

    def set_bloom_target(self, target: int):
        self.bloom.set_target(target)

    def toggle_bloom(self) -> float:
        return self.bloom.toggle()

    def advance(self, elapsed_time: float, delta_time: float):
        """Run one frame: bloom, petal poses, wind, then the wind consumers.

        Args:
            elapsed_time: Seconds since the scene started
            delta_time: Seconds since the previous frame, clamped to
                [0, config.max_delta_time]; a non-finite value counts as 0
        """
        if not np.isfinite(delta_time):
            delta_time = 0.0
        delta_time = min(max(delta_time, 0.0), self.config.max_delta_time)

        self.bloom.step()
        update_flower_head(self.flower.head, self.bloom.progress, elapsed_time, self.config.bloom)

        self.wind.advance(delta_time)
        wind = self.wind.state
        sway_flower(self.flower.root, wind, elapsed_time)
        self.falling_petals.update(wind, elapsed_time)
        self.clouds.update(wind, elapsed_time)

        self.elapsed_time = elapsed_time
        self.frame += 1

    # Read-only queries for renderers

    @property
    def progress(self) -> float:
        return self.bloom.progress

    @property
    def root_transform(self):
        return self.flower.root.copy()

    def petal_transforms(self) -> list:
        return [p.transform.copy() for p in self.flower.head.petals]

    def falling_petal_transforms(self) -> list:
        return self.falling_petals.transforms()

    def cloud_transforms(self) -> list:
        return self.clouds.transforms()

    def head_world_position(self) -> np.ndarray:
        return self.flower.head_world_position()

    def mesh_parts(self, include_clouds: bool = True):
        yield from self.flower.mesh_parts()
        yield from self.falling_petals.mesh_parts()
        if include_clouds:
            yield from self.clouds.mesh_parts()

    def mesh_buffers(self, include_clouds: bool = True) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Merge the current frame into world-space render buffers.

        Returns:
            vertices: (N, 3) float32
            normals: (N, 3) float32
            colors: (N, 3) float32 in [0, 1]
            faces: (M, 3) int32
        """
        return merge_meshes(self.mesh_parts(include_clouds))
