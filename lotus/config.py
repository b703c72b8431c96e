"""Shape descriptors and tunable parameters for the lotus garden scene."""

from dataclasses import dataclass, field

COLORS = {
    "petal_tip": 0xFFF5F8,
    "petal_mid": 0xFFCDD9,
    "petal_base": 0xF8A5B8,
    "petal_inner": 0xE87A96,
    "center_yellow": 0xFFD700,
    "center_orange": 0xFF8C00,
    "stem": 0x4A6741,
    "leaf_light": 0x4A6741,
    "leaf_dark": 0x3D5C3D,
    "cloud": 0xFFFFFF,
    "sky": 0xFFECD2,
}


def hex_to_rgb(color: int) -> tuple[float, float, float]:
    """Convert a 0xRRGGBB integer to an (r, g, b) tuple in [0, 1]."""
    return (
        ((color >> 16) & 0xFF) / 255.0,
        ((color >> 8) & 0xFF) / 255.0,
        (color & 0xFF) / 255.0,
    )


@dataclass(frozen=True)
class LeafDescriptor:
    length: float
    width: float
    stem_position: float  # 0 = stem base, 1 = stem tip
    offset_distance: float
    side: int  # +1 right, -1 left
    tilt_angle: float
    twist_angle: float
    color: int = COLORS["leaf_light"]


@dataclass(frozen=True)
class PetalLayerDescriptor:
    count: int
    length: float
    width: float
    color: int = COLORS["petal_mid"]


DEFAULT_LEAVES = (
    LeafDescriptor(
        length=0.35, width=0.15, stem_position=0.7, offset_distance=0.03,
        side=1, tilt_angle=0.8, twist_angle=1.28, color=COLORS["leaf_light"],
    ),
    LeafDescriptor(
        length=0.28, width=0.12, stem_position=0.6, offset_distance=0.03,
        side=-1, tilt_angle=1.0, twist_angle=0.6, color=COLORS["leaf_dark"],
    ),
)

# Innermost ring first
DEFAULT_PETAL_LAYERS = (
    PetalLayerDescriptor(count=5, length=0.28, width=0.10, color=COLORS["petal_inner"]),
    PetalLayerDescriptor(count=8, length=0.36, width=0.12, color=COLORS["petal_base"]),
    PetalLayerDescriptor(count=10, length=0.44, width=0.15, color=COLORS["petal_mid"]),
    PetalLayerDescriptor(count=12, length=0.52, width=0.17, color=COLORS["petal_mid"]),
    PetalLayerDescriptor(count=14, length=0.60, width=0.19, color=COLORS["petal_tip"]),
)


@dataclass
class PetalMotionConfig:
    # Per-layer bloom bounds: value = base + layer_index * step
    closed_tilt: float = 0.5
    closed_tilt_step: float = -0.15
    open_tilt: float = -0.5
    open_tilt_step: float = -0.22
    closed_radius: float = 0.07
    closed_radius_step: float = -0.017
    open_radius: float = 0.0015
    open_radius_step: float = -0.005

    # Idle breathing
    phase_step: float = 0.1  # phase = petal index * phase_step
    speed: float = 0.08


@dataclass
class BloomConfig:
    smoothing: float = 0.035  # fraction of the remaining gap closed per frame
    stamen_threshold: float = 0.4
    stamen_gain: float = 1.667
    dome_min_scale: float = 0.5
    breathe_amplitude: float = 0.002


@dataclass
class WindConfig:
    min_strength: float = 0.02
    max_strength: float = 0.15
    min_gust_interval: float = 3.0
    gust_interval_range: float = 5.0  # resampled interval in [min, min + range)
    initial_gust_interval_range: float = 4.0
    smoothing: float = 0.02
    decay: float = 0.995


@dataclass
class FallingPetalConfig:
    count: int = 6
    length: float = 0.08
    width: float = 0.03
    scale: float = 0.4
    respawn_height: float = 5.0
    floor_height: float = -0.1
    spawn_x_range: float = 6.0  # x in [-range/2, range/2)
    spawn_z_range: float = 5.0
    initial_min_height: float = 3.0
    initial_height_range: float = 3.0
    drift: float = 0.001  # horizontal velocity in [-drift/2, drift/2)
    min_fall_speed: float = 0.0015
    fall_speed_range: float = 0.001
    spin: float = 0.003  # rotation rate in [-spin/2, spin/2)
    color: int = COLORS["petal_tip"]


@dataclass
class CloudConfig:
    count: int = 15
    min_radius: float = 15.0
    radius_range: float = 25.0
    min_height: float = 8.0
    height_range: float = 15.0
    min_speed: float = 0.005
    speed_range: float = 0.01
    min_puffs: int = 5
    puff_range: int = 4  # puff count in [min_puffs, min_puffs + puff_range)
    color: int = COLORS["cloud"]


@dataclass
class GardenConfig:
    stem_height: float = 2.2
    leaves: tuple = DEFAULT_LEAVES
    petal_layers: tuple = DEFAULT_PETAL_LAYERS
    max_delta_time: float = 0.1
    seed: int = None

    petal_motion: PetalMotionConfig = field(default_factory=PetalMotionConfig)
    bloom: BloomConfig = field(default_factory=BloomConfig)
    wind: WindConfig = field(default_factory=WindConfig)
    falling_petals: FallingPetalConfig = field(default_factory=FallingPetalConfig)
    clouds: CloudConfig = field(default_factory=CloudConfig)


@dataclass
class TinyGardenConfig(GardenConfig):
    """Smaller scene for testing."""
    petal_layers: tuple = DEFAULT_PETAL_LAYERS[:2]
    seed: int = 0
    falling_petals: FallingPetalConfig = field(default_factory=lambda: FallingPetalConfig(count=3))
    clouds: CloudConfig = field(default_factory=lambda: CloudConfig(count=2, min_puffs=2, puff_range=1))
