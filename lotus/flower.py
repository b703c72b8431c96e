"""Flower assembly: stem curve, leaves, petal layers, and center ornament.

Everything here runs once at build time. The resulting Flower owns its
curve, leaves and head; petals and stamens keep immutable bloom descriptors
next to a mutable Transform that the bloom controller rewrites every frame.
"""

from dataclasses import dataclass, field

import numpy as np

from lotus.config import (
    COLORS,
    DEFAULT_LEAVES,
    DEFAULT_PETAL_LAYERS,
    LeafDescriptor,
    PetalLayerDescriptor,
    PetalMotionConfig,
    hex_to_rgb,
)
from lotus.curve import CenterlineCurve, stem_control_points
from lotus.geometry import Mesh, cone_mesh, shape_mesh, sphere_mesh, tube_mesh
from lotus.transforms import Transform, align_y_to, euler_xyz


@dataclass
class Leaf:
    descriptor: LeafDescriptor
    mesh: Mesh
    transform: Transform


@dataclass
class PetalInstance:
    layer_index: int
    angular_position: float
    length: float
    closed_tilt: float
    open_tilt: float
    closed_radius: float
    open_radius: float
    phase: float
    speed: float
    mesh: Mesh
    color: int
    transform: Transform = field(default_factory=Transform)
    tilt: float = 0.0  # last applied tilt, breathing included


@dataclass
class CenterOrnament:
    dome: Transform
    dome_base_scale: np.ndarray
    dome_mesh: Mesh
    stamens: list  # list[Transform]
    stamen_meshes: list  # list[Mesh], parallel to stamens
    dome_color: int = COLORS["center_orange"]
    stamen_color: int = COLORS["center_yellow"]


@dataclass
class FlowerHead:
    transform: Transform
    petals: list  # list[PetalInstance]
    center: CenterOrnament
    layer_meshes: list  # one shared Mesh per layer


@dataclass
class Flower:
    curve: CenterlineCurve
    stem_mesh: Mesh
    leaves: list  # list[Leaf]
    head: FlowerHead
    root: Transform = field(default_factory=Transform)
    stem_color: int = COLORS["stem"]

    def mesh_parts(self):
        """Yield (mesh, world matrix, rgb) for every instance in the flower."""
        root = self.root.matrix()
        yield self.stem_mesh, root, hex_to_rgb(self.stem_color)
        for leaf in self.leaves:
            yield leaf.mesh, root @ leaf.transform.matrix(), hex_to_rgb(leaf.descriptor.color)

        head = root @ self.head.transform.matrix()
        for petal in self.head.petals:
            yield petal.mesh, head @ petal.transform.matrix(), hex_to_rgb(petal.color)

        center = self.head.center
        yield center.dome_mesh, head @ center.dome.matrix(), hex_to_rgb(center.dome_color)
        for stamen, mesh in zip(center.stamens, center.stamen_meshes):
            yield mesh, head @ stamen.matrix(), hex_to_rgb(center.stamen_color)

    def head_world_position(self) -> np.ndarray:
        m = self.root.matrix() @ self.head.transform.matrix()
        return m[:3, 3].copy()


def build_leaf(descriptor: LeafDescriptor, curve: CenterlineCurve) -> Leaf:
    """Place a leaf on the stem, pointing away from it on its side."""
    if descriptor.side not in (-1, 1):
        raise ValueError(f"leaf side must be -1 or +1, got {descriptor.side}")
    if not 0.0 <= descriptor.stem_position <= 1.0:
        raise ValueError(f"leaf stem_position must be in [0, 1], got {descriptor.stem_position}")

    mesh = shape_mesh("leaf", descriptor.length, descriptor.width)

    point = curve.point(descriptor.stem_position)
    position = point + np.array([descriptor.side * descriptor.offset_distance, 0.0, 0.0])
    rotation = euler_xyz(
        descriptor.tilt_angle,
        -np.pi / 2 * descriptor.side,
        descriptor.side * descriptor.twist_angle,
    )
    return Leaf(descriptor, mesh, Transform(position=position, rotation=rotation))


def build_petal_layers(layers, motion: PetalMotionConfig = None) -> tuple[list, list]:
    """Generate concentric rings of petals.

    Successive rings are rotated by ``i * pi / count`` so their petals do
    not line up radially. Bloom bounds shrink linearly with ring index.

    Returns:
        petals: list of PetalInstance, ring by ring
        layer_meshes: the shared Mesh of each ring
    """
    if motion is None:
        motion = PetalMotionConfig()

    petals = []
    layer_meshes = []
    for i, layer in enumerate(layers):
        if layer.count <= 0:
            raise ValueError(f"petal layer {i} must have a positive count, got {layer.count}")
        mesh = shape_mesh("petal", layer.length, layer.width)
        layer_meshes.append(mesh)

        offset = i * np.pi / layer.count
        for j in range(layer.count):
            angle = (j / layer.count) * 2 * np.pi + offset
            petals.append(PetalInstance(
                layer_index=i,
                angular_position=angle,
                length=layer.length,
                closed_tilt=motion.closed_tilt + i * motion.closed_tilt_step,
                open_tilt=motion.open_tilt + i * motion.open_tilt_step,
                closed_radius=motion.closed_radius + i * motion.closed_radius_step,
                open_radius=motion.open_radius + i * motion.open_radius_step,
                phase=j * motion.phase_step,
                speed=motion.speed,
                mesh=mesh,
                color=layer.color,
            ))
    return petals, layer_meshes


def build_center() -> CenterOrnament:
    """Dome plus two rings of outward-leaning stamens, hidden until bloom."""
    dome_base_scale = np.array([1.0, 0.5, 1.0])
    dome = Transform(position=np.array([0.0, 0.02, 0.0]), scale=dome_base_scale.copy())

    stamens = []
    stamen_meshes = []
    for ring, count in enumerate((10, 16)):
        radius = 0.03 + ring * 0.028
        mesh = cone_mesh(0.003, 0.006, 0.08 + ring * 0.03)
        for i in range(count):
            a = (i / count) * 2 * np.pi
            outward = np.array([np.cos(a), 0.5, np.sin(a)])
            stamens.append(Transform(
                position=np.array([np.cos(a) * radius, 0.04, np.sin(a) * radius]),
                rotation=align_y_to(outward),
                scale=np.zeros(3),
            ))
            stamen_meshes.append(mesh)

    return CenterOrnament(
        dome=dome,
        dome_base_scale=dome_base_scale,
        dome_mesh=sphere_mesh(0.045, 16, 16),
        stamens=stamens,
        stamen_meshes=stamen_meshes,
    )


def build_flower(
    stem_height: float = 2.2,
    leaf_descriptors=DEFAULT_LEAVES,
    petal_layer_descriptors=DEFAULT_PETAL_LAYERS,
    motion: PetalMotionConfig = None,
) -> Flower:
    """Assemble stem, leaves, and flower head into one Flower.

    Args:
        stem_height: Height of the stem tip above the root, must be positive
        leaf_descriptors: LeafDescriptor per leaf (may be empty)
        petal_layer_descriptors: PetalLayerDescriptor per ring, innermost first
        motion: Per-layer bloom bounds (defaults to PetalMotionConfig())

    Returns:
        Flower with its head anchored at the stem tip, fully closed
    """
    if len(petal_layer_descriptors) == 0:
        raise ValueError("a flower needs at least one petal layer")

    curve = CenterlineCurve(stem_control_points(stem_height))
    stem = tube_mesh(curve)
    leaves = [build_leaf(d, curve) for d in leaf_descriptors]

    petals, layer_meshes = build_petal_layers(petal_layer_descriptors, motion)
    head = FlowerHead(
        transform=Transform(position=curve.point(1.0)),
        petals=petals,
        center=build_center(),
        layer_meshes=layer_meshes,
    )
    return Flower(curve=curve, stem_mesh=stem, leaves=leaves, head=head)
