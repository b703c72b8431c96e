"""Tests for leaf placement, petal layers, and flower assembly."""

import numpy as np
import pytest

from lotus.config import DEFAULT_PETAL_LAYERS, LeafDescriptor, PetalLayerDescriptor, PetalMotionConfig
from lotus.curve import CenterlineCurve, stem_control_points
from lotus.flower import build_center, build_flower, build_leaf, build_petal_layers
from lotus.transforms import euler_xyz


def make_leaf(**overrides):
    params = dict(
        length=0.35, width=0.15, stem_position=0.7, offset_distance=0.03,
        side=1, tilt_angle=0.8, twist_angle=1.28,
    )
    params.update(overrides)
    return LeafDescriptor(**params)


@pytest.fixture
def curve():
    return CenterlineCurve(stem_control_points(2.2))


class TestBuildLeaf:
    @pytest.mark.parametrize("side", [1, -1])
    def test_position_offset_from_stem(self, curve, side):
        leaf = build_leaf(make_leaf(side=side), curve)
        expected = curve.point(0.7) + np.array([side * 0.03, 0.0, 0.0])
        np.testing.assert_allclose(leaf.transform.position, expected)

    @pytest.mark.parametrize("side", [1, -1])
    def test_orientation(self, curve, side):
        leaf = build_leaf(make_leaf(side=side), curve)
        expected = euler_xyz(0.8, -np.pi / 2 * side, side * 1.28)
        np.testing.assert_allclose(leaf.transform.rotation, expected, atol=1e-12)

    def test_rotation_orthonormal(self, curve):
        R = build_leaf(make_leaf(), curve).transform.rotation
        np.testing.assert_allclose(R @ R.T, np.eye(3), atol=1e-12)

    def test_opposite_sides_mirror_yaw(self, curve):
        right = build_leaf(make_leaf(side=1, tilt_angle=0.0, twist_angle=0.0), curve)
        left = build_leaf(make_leaf(side=-1, tilt_angle=0.0, twist_angle=0.0), curve)
        # Local +Z (the extrusion axis) turns toward -X on the right, +X on the left
        face_right = right.transform.rotation @ np.array([0.0, 0.0, 1.0])
        face_left = left.transform.rotation @ np.array([0.0, 0.0, 1.0])
        assert face_right[0] < -0.99
        assert face_left[0] > 0.99

    def test_shares_mesh_for_same_shape(self, curve):
        a = build_leaf(make_leaf(side=1), curve)
        b = build_leaf(make_leaf(side=-1), curve)
        assert a.mesh is b.mesh

    def test_rejects_bad_side(self, curve):
        with pytest.raises(ValueError):
            build_leaf(make_leaf(side=0), curve)

    def test_rejects_bad_stem_position(self, curve):
        with pytest.raises(ValueError):
            build_leaf(make_leaf(stem_position=1.5), curve)

    def test_rejects_bad_dimensions(self, curve):
        with pytest.raises(ValueError):
            build_leaf(make_leaf(length=0.0), curve)


class TestBuildPetalLayers:
    def test_counts(self):
        petals, meshes = build_petal_layers(DEFAULT_PETAL_LAYERS)
        assert len(petals) == sum(layer.count for layer in DEFAULT_PETAL_LAYERS)
        assert len(meshes) == len(DEFAULT_PETAL_LAYERS)

    def test_angular_distribution(self):
        layers = [PetalLayerDescriptor(5, 0.28, 0.1), PetalLayerDescriptor(8, 0.36, 0.12)]
        petals, _ = build_petal_layers(layers)
        for i, layer in enumerate(layers):
            ring = [p for p in petals if p.layer_index == i]
            offset = i * np.pi / layer.count
            for j, p in enumerate(ring):
                np.testing.assert_allclose(p.angular_position, j / layer.count * 2 * np.pi + offset)

    def test_layers_not_radially_aligned(self):
        layers = [PetalLayerDescriptor(6, 0.28, 0.1), PetalLayerDescriptor(6, 0.36, 0.12)]
        petals, _ = build_petal_layers(layers)
        inner = {round(p.angular_position, 9) for p in petals if p.layer_index == 0}
        outer = {round(p.angular_position, 9) for p in petals if p.layer_index == 1}
        assert not inner & outer

    def test_bloom_bounds_per_layer(self):
        petals, _ = build_petal_layers(DEFAULT_PETAL_LAYERS)
        for p in petals:
            i = p.layer_index
            np.testing.assert_allclose(p.closed_tilt, 0.5 - 0.15 * i)
            np.testing.assert_allclose(p.open_tilt, -0.5 - 0.22 * i)
            np.testing.assert_allclose(p.closed_radius, 0.07 - 0.017 * i)
            np.testing.assert_allclose(p.open_radius, 0.0015 - 0.005 * i)

    def test_custom_motion_config(self):
        motion = PetalMotionConfig(open_tilt=-1.0, open_tilt_step=0.0)
        petals, _ = build_petal_layers(DEFAULT_PETAL_LAYERS[:2], motion)
        assert all(p.open_tilt == -1.0 for p in petals)

    def test_breathing_descriptors(self):
        petals, _ = build_petal_layers([PetalLayerDescriptor(4, 0.3, 0.1)])
        np.testing.assert_allclose([p.phase for p in petals], [0.0, 0.1, 0.2, 0.3])
        assert all(p.speed == 0.08 for p in petals)

    def test_layer_shares_one_mesh(self):
        petals, meshes = build_petal_layers(DEFAULT_PETAL_LAYERS)
        for i, mesh in enumerate(meshes):
            assert all(p.mesh is mesh for p in petals if p.layer_index == i)

    def test_rejects_zero_count(self):
        with pytest.raises(ValueError):
            build_petal_layers([PetalLayerDescriptor(0, 0.3, 0.1)])


class TestBuildCenter:
    def test_two_stamen_rings(self):
        center = build_center()
        assert len(center.stamens) == 26
        assert len(center.stamen_meshes) == 26

    def test_stamens_start_hidden(self):
        center = build_center()
        for stamen in center.stamens:
            np.testing.assert_allclose(stamen.scale, 0.0)

    def test_stamens_lean_outward(self):
        center = build_center()
        for stamen in center.stamens:
            axis = stamen.rotation @ np.array([0.0, 1.0, 0.0])
            radial = stamen.position[[0, 2]]
            assert axis[1] > 0
            assert np.dot(axis[[0, 2]], radial) > 0

    def test_dome(self):
        center = build_center()
        np.testing.assert_allclose(center.dome.position, [0.0, 0.02, 0.0])
        np.testing.assert_allclose(center.dome.scale, [1.0, 0.5, 1.0])


class TestBuildFlower:
    def test_head_at_stem_tip(self):
        flower = build_flower(2.2)
        np.testing.assert_allclose(flower.head.transform.position, flower.curve.point(1.0))
        np.testing.assert_allclose(flower.head_world_position(), flower.curve.point(1.0))

    def test_default_parts(self):
        flower = build_flower()
        assert len(flower.leaves) == 2
        assert len(flower.head.petals) == 49

    def test_mesh_parts_cover_every_instance(self):
        flower = build_flower(1.5, [make_leaf()], [PetalLayerDescriptor(5, 0.3, 0.1)])
        parts = list(flower.mesh_parts())
        # stem + leaf + petals + dome + stamens
        assert len(parts) == 1 + 1 + 5 + 1 + 26

    def test_no_leaves(self):
        flower = build_flower(1.0, [], [PetalLayerDescriptor(3, 0.2, 0.1)])
        assert flower.leaves == []

    def test_rejects_non_positive_stem(self):
        with pytest.raises(ValueError):
            build_flower(0.0)

    def test_rejects_no_layers(self):
        with pytest.raises(ValueError):
            build_flower(2.2, [], [])
