"""Tests for the bloom state machine and petal pose updates."""

import numpy as np
import pytest

from lotus.bloom import BloomController, BloomState, lerp, smoothstep, update_flower_head
from lotus.config import BloomConfig, PetalLayerDescriptor
from lotus.flower import build_flower
from lotus.transforms import rot_x, rot_y


@pytest.fixture
def head():
    flower = build_flower(2.2, [], [PetalLayerDescriptor(5, 0.28, 0.1), PetalLayerDescriptor(8, 0.36, 0.12)])
    return flower.head


class TestSmoothstep:
    def test_endpoints(self):
        assert smoothstep(0.0) == 0.0
        assert smoothstep(1.0) == 1.0

    def test_midpoint(self):
        assert smoothstep(0.5) == 0.5

    def test_monotonic(self):
        x = np.linspace(0.0, 1.0, 1001)
        y = smoothstep(x)
        assert np.all(np.diff(y) >= 0)

    def test_lerp(self):
        assert lerp(2.0, 4.0, 0.0) == 2.0
        assert lerp(2.0, 4.0, 1.0) == 4.0
        assert lerp(2.0, 4.0, 0.25) == 2.5


class TestBloomController:
    def test_initial_state(self):
        bloom = BloomController()
        assert bloom.progress == 0.0
        assert bloom.target == 0.0

    def test_single_step(self):
        bloom = BloomController()
        bloom.set_target(1)
        bloom.step()
        np.testing.assert_allclose(bloom.progress, 0.035)

    def test_opening_strictly_increases_without_overshoot(self):
        bloom = BloomController()
        bloom.set_target(1)
        prev = bloom.progress
        for _ in range(300):
            bloom.step()
            assert bloom.progress > prev
            assert bloom.progress <= 1.0
            prev = bloom.progress

    def test_never_exceeds_one(self):
        bloom = BloomController()
        bloom.set_target(1)
        for _ in range(5000):
            bloom.step()
            assert bloom.progress <= 1.0
        assert bloom.progress > 0.999999

    def test_closing_strictly_decreases(self):
        bloom = BloomController(BloomState(progress=1.0, target=0.0))
        prev = bloom.progress
        for _ in range(300):
            bloom.step()
            assert bloom.progress < prev
            assert bloom.progress >= 0.0
            prev = bloom.progress

    def test_retoggle_reverses_direction(self):
        bloom = BloomController()
        bloom.toggle()
        for _ in range(20):
            bloom.step()
        midway = bloom.progress
        bloom.toggle()
        bloom.step()
        assert bloom.progress < midway

    def test_toggle(self):
        bloom = BloomController()
        assert bloom.toggle() == 1.0
        assert bloom.toggle() == 0.0

    @pytest.mark.parametrize("target", [2, -1, 0.5])
    def test_rejects_invalid_target(self, target):
        with pytest.raises(ValueError):
            BloomController().set_target(target)

    def test_custom_smoothing(self):
        bloom = BloomController(config=BloomConfig(smoothing=0.5))
        bloom.set_target(1)
        bloom.step()
        assert bloom.progress == 0.5


class TestUpdateFlowerHead:
    def test_closed_pose(self, head):
        update_flower_head(head, 0.0, 12.3)
        for p in head.petals:
            assert p.tilt == p.closed_tilt
            a = p.angular_position
            expected = [np.cos(a) * p.closed_radius, 0.0, np.sin(a) * p.closed_radius]
            np.testing.assert_allclose(p.transform.position, expected, atol=1e-12)

    def test_open_pose(self, head):
        update_flower_head(head, 1.0, 12.3)
        for p in head.petals:
            breathe = np.sin(12.3 * p.speed + p.phase) * 0.002
            np.testing.assert_allclose(p.tilt, p.open_tilt + breathe, atol=1e-12)
            assert abs(p.tilt - p.open_tilt) <= 0.002 + 1e-12
            a = p.angular_position
            expected = [np.cos(a) * p.open_radius, 0.0, np.sin(a) * p.open_radius]
            np.testing.assert_allclose(p.transform.position, expected, atol=1e-12)

    def test_orientation_yaw_then_pitch(self, head):
        update_flower_head(head, 0.3, 1.0)
        for p in head.petals:
            expected = rot_y(p.angular_position) @ rot_x(-p.tilt)
            np.testing.assert_allclose(p.transform.rotation, expected, atol=1e-12)

    def test_half_progress_interpolates(self, head):
        update_flower_head(head, 0.5, 0.0)
        for p in head.petals:
            breathe = np.sin(p.phase) * 0.002 * 0.5
            expected = 0.5 * (p.closed_tilt + p.open_tilt) + breathe
            np.testing.assert_allclose(p.tilt, expected, atol=1e-12)

    def test_stamens_hidden_until_threshold(self, head):
        # smoothstep(0.3) = 0.216, below the 0.4 threshold
        update_flower_head(head, 0.3, 0.0)
        for stamen in head.center.stamens:
            np.testing.assert_allclose(stamen.scale, 0.0)

    def test_stamens_full_when_open(self, head):
        update_flower_head(head, 1.0, 0.0)
        for stamen in head.center.stamens:
            np.testing.assert_allclose(stamen.scale, 1.0)

    def test_stamens_ramp(self, head):
        # smoothstep(0.6) = 0.648 -> (0.648 - 0.4) * 1.667
        update_flower_head(head, 0.6, 0.0)
        expected = (smoothstep(0.6) - 0.4) * 1.667
        np.testing.assert_allclose(head.center.stamens[0].scale, expected)

    def test_dome_scale(self, head):
        update_flower_head(head, 0.0, 0.0)
        np.testing.assert_allclose(head.center.dome.scale, [0.5, 0.25, 0.5])
        update_flower_head(head, 1.0, 0.0)
        np.testing.assert_allclose(head.center.dome.scale, [1.0, 0.5, 1.0])
