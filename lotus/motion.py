"""Wind consumers: flower sway, falling-petal particles, and orbiting clouds.

Each applier reads the shared WindState and writes only its own objects;
nothing here feeds back into the wind.
"""

from dataclasses import dataclass, field

import numpy as np

from lotus.config import CloudConfig, FallingPetalConfig, hex_to_rgb
from lotus.geometry import shape_mesh, sphere_mesh
from lotus.transforms import Transform, euler_xyz, rot_x, rot_y, rot_z
from lotus.wind import WindState


def sway_flower(root: Transform, wind: WindState, time: float) -> tuple[float, float]:
    """Tilt the whole flower with a slow idle sway plus the current wind.

    Returns:
        (pitch, roll) in radians, also written to ``root.rotation``
    """
    wind_x = np.cos(wind.direction) * wind.strength
    wind_z = np.sin(wind.direction) * wind.strength

    pitch = np.sin(time * 0.15) * 0.004 + wind_x * 0.5
    roll = np.cos(time * 0.12) * 0.003 + wind_z * 0.5

    # Fast secondary ripple on pitch only
    pitch += np.sin(time * 2) * wind.strength * 0.3

    root.rotation = rot_x(pitch) @ rot_z(roll)
    return pitch, roll


@dataclass
class FallingPetal:
    position: np.ndarray
    velocity: np.ndarray
    rotation_rate: np.ndarray
    phase: float
    rotation: np.ndarray = field(default_factory=lambda: np.zeros(3))  # XYZ Euler angles
    respawns: int = 0

    def transform(self, scale: float) -> Transform:
        return Transform(
            position=self.position.copy(),
            rotation=euler_xyz(*self.rotation),
            scale=np.full(3, scale),
        )


class FallingPetals:
    """Fixed pool of drifting petals that wrap back to the top when they land."""

    def __init__(self, config: FallingPetalConfig = None, rng=None):
        if config is None:
            config = FallingPetalConfig()
        if rng is None:
            rng = np.random.default_rng()
        self.config = config
        self.rng = rng
        self.mesh = shape_mesh("petal", config.length, config.width)

        r = rng.random
        self.petals = []
        for _ in range(config.count):
            position = np.array([
                (r() - 0.5) * config.spawn_x_range,
                config.initial_min_height + r() * config.initial_height_range,
                (r() - 0.5) * config.spawn_z_range,
            ])
            velocity = np.array([
                (r() - 0.5) * config.drift,
                -config.min_fall_speed - r() * config.fall_speed_range,
                (r() - 0.5) * config.drift,
            ])
            rotation_rate = np.array([(r() - 0.5) * config.spin for _ in range(3)])
            self.petals.append(FallingPetal(position, velocity, rotation_rate, r() * 2 * np.pi))

    def __len__(self):
        return len(self.petals)

    def respawn(self, petal: FallingPetal):
        """Move a landed petal back into the spawn volume, keeping its identity."""
        cfg = self.config
        petal.position[1] = cfg.respawn_height
        petal.position[0] = (self.rng.random() - 0.5) * cfg.spawn_x_range
        petal.position[2] = (self.rng.random() - 0.5) * cfg.spawn_z_range
        petal.respawns += 1

    def update(self, wind: WindState, time: float):
        strength = wind.strength
        dir_x = np.cos(wind.direction)
        dir_z = np.sin(wind.direction)

        for p in self.petals:
            p.position += p.velocity

            # Drift with the wind
            influence = strength * 2
            p.position[0] += dir_x * influence * 0.02
            p.position[2] += dir_z * influence * 0.02

            # Idle sway plus wind turbulence
            turbulence = strength * 3
            p.position[0] += np.sin(time + p.phase) * 0.0005 * (1 + turbulence)
            p.position[0] += np.sin(time * 2 + p.phase * 1.5) * 0.0003 * turbulence
            p.position[2] += np.cos(time * 1.5 + p.phase) * 0.0003 * turbulence

            p.rotation[0] += p.rotation_rate[0] * (1 + strength * 5)
            p.rotation[1] += p.rotation_rate[1] * (1 + strength * 3)
            p.rotation[2] += np.sin(time + p.phase) * strength * 0.05

            if p.position[1] < self.config.floor_height:
                self.respawn(p)

    def transforms(self) -> list:
        return [p.transform(self.config.scale) for p in self.petals]

    def mesh_parts(self):
        rgb = hex_to_rgb(self.config.color)
        for t in self.transforms():
            yield self.mesh, t.matrix(), rgb


@dataclass
class Cloud:
    orbit_angle: float
    orbit_radius: float
    base_height: float
    angular_speed: float
    yaw: float = 0.0
    scale: float = 1.0
    puffs: list = field(default_factory=list)  # (offset (3,), size, y_scale)
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def transform(self) -> Transform:
        return Transform(
            position=self.position.copy(),
            rotation=rot_y(self.yaw),
            scale=np.array([self.scale, self.scale * 0.6, self.scale]),
        )


class Clouds:
    """Fixed pool of clouds orbiting the scene on a dome."""

    def __init__(self, config: CloudConfig = None, rng=None):
        if config is None:
            config = CloudConfig()
        if rng is None:
            rng = np.random.default_rng()
        self.config = config
        self.puff_mesh = sphere_mesh(1.0, 6, 8)

        r = rng.random
        self.clouds = []
        for _ in range(config.count):
            n_puffs = config.min_puffs + int(r() * config.puff_range)
            puffs = []
            for _ in range(n_puffs):
                size = 0.8 + r() * 1.2
                offset = np.array([(r() - 0.5) * 3, (r() - 0.5) * 0.8, (r() - 0.5) * 2])
                puffs.append((offset, size, 0.6 + r() * 0.3))

            angle = r() * 2 * np.pi
            radius = config.min_radius + r() * config.radius_range
            height = config.min_height + r() * config.height_range
            cloud = Cloud(
                orbit_angle=angle,
                orbit_radius=radius,
                base_height=height,
                angular_speed=config.min_speed + r() * config.speed_range,
                yaw=r() * 2 * np.pi,
                scale=1.5 + r() * 2,
                puffs=puffs,
                position=np.array([np.cos(angle) * radius, height, np.sin(angle) * radius]),
            )
            self.clouds.append(cloud)

    def __len__(self):
        return len(self.clouds)

    def update(self, wind: WindState, time: float):
        for c in self.clouds:
            # Wind speeds up the orbit and lifts the clouds
            c.orbit_angle += c.angular_speed * 0.01 + wind.strength * 0.005
            c.position = np.array([
                np.cos(c.orbit_angle) * c.orbit_radius,
                c.base_height + np.sin(time * 0.1 + c.orbit_angle) * 0.5 + wind.strength * 0.5,
                np.sin(c.orbit_angle) * c.orbit_radius,
            ])

    def transforms(self) -> list:
        return [c.transform() for c in self.clouds]

    def mesh_parts(self):
        rgb = hex_to_rgb(self.config.color)
        for c in self.clouds:
            cloud_matrix = c.transform().matrix()
            for offset, size, y_scale in c.puffs:
                puff = Transform(position=offset, scale=np.array([size, size * y_scale, size]))
                yield self.puff_mesh, cloud_matrix @ puff.matrix(), rgb
