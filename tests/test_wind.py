"""Tests for the stochastic wind field."""

import dataclasses

import numpy as np
import pytest

from lotus.config import WindConfig
from lotus.wind import WindField, WindState, make_rng


class FixedRandom:
    """Random source that always returns the same value."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


class TestWindFieldInit:
    def test_initial_state(self):
        wind = WindField(rng=make_rng(0))
        s = wind.state
        assert s.strength == 0.0
        assert s.target_strength == 0.0
        assert s.direction == 0.0
        assert s.gust_timer == 0.0
        assert 3.0 <= s.gust_interval < 7.0
        assert s.min_strength == 0.02
        assert s.max_strength == 0.15

    def test_rejects_min_above_max(self):
        with pytest.raises(ValueError):
            WindField(WindConfig(min_strength=0.2, max_strength=0.1))

    def test_rejects_negative_strength(self):
        with pytest.raises(ValueError):
            WindField(WindConfig(min_strength=-0.01))

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            WindField(WindConfig(min_gust_interval=0.0))

    def test_rejects_nan_config(self):
        with pytest.raises(ValueError):
            WindField(WindConfig(min_strength=float("nan")))
        with pytest.raises(ValueError):
            WindField(WindConfig(min_gust_interval=float("nan")))


class TestWindAdvance:
    def test_non_positive_delta_is_noop(self):
        wind = WindField(rng=make_rng(1))
        wind.state.strength = 0.05
        wind.state.target_strength = 0.1
        before = dataclasses.replace(wind.state)
        assert wind.advance(0.0) is False
        assert wind.advance(-0.5) is False
        assert wind.advance(float("nan")) is False
        assert wind.state == before

    def test_timer_accumulates(self):
        wind = WindField(rng=make_rng(0))
        wind.state.gust_interval = 100.0
        wind.advance(0.25)
        wind.advance(0.25)
        assert wind.state.gust_timer == 0.5

    def test_strength_eases_toward_target(self):
        wind = WindField(rng=make_rng(0))
        wind.state.gust_interval = 100.0
        wind.state.target_strength = 0.1
        wind.advance(0.016)
        np.testing.assert_allclose(wind.state.strength, 0.1 * 0.02)

    def test_target_decays(self):
        wind = WindField(rng=make_rng(0))
        wind.state.gust_interval = 100.0
        wind.state.target_strength = 0.1
        wind.advance(0.016)
        np.testing.assert_allclose(wind.state.target_strength, 0.1 * 0.995)

    def test_target_floor_resets_to_half_minimum(self):
        wind = WindField(rng=make_rng(0))
        wind.state.gust_interval = 100.0
        wind.state.target_strength = 0.0201
        wind.advance(0.016)
        assert wind.state.target_strength == 0.01

    def test_gust_triggers_when_timer_expires(self):
        wind = WindField(rng=FixedRandom(0.5))
        wind.state.gust_interval = 0.01
        assert wind.advance(0.016) is True
        s = wind.state
        assert s.gust_timer == 0.0
        assert s.gust_interval == 3.0 + 0.5 * 5.0
        assert s.direction == np.pi
        assert wind.gust_count == 1

    def test_no_gust_before_interval(self):
        wind = WindField(rng=FixedRandom(0.5))
        assert wind.state.gust_interval == 5.0
        for _ in range(300):  # 4.8 s
            assert wind.advance(0.016) is False


class TestDrawGust:
    def test_lower_boundary(self):
        wind = WindField(rng=FixedRandom(0.0))
        wind.draw_gust()
        assert wind.state.gust_interval == 3.0
        assert wind.state.target_strength == wind.state.min_strength
        assert wind.state.direction == 0.0

    def test_upper_boundary(self):
        wind = WindField(rng=FixedRandom(1.0 - 1e-12))
        wind.draw_gust()
        assert wind.state.gust_interval < 8.0
        assert wind.state.target_strength <= wind.state.max_strength
        assert wind.state.direction < 2 * np.pi

    def test_resampled_ranges(self):
        wind = WindField(rng=make_rng(42))
        for _ in range(2000):
            wind.draw_gust()
            assert 3.0 <= wind.state.gust_interval < 8.0
            assert 0.02 <= wind.state.target_strength <= 0.15
            assert 0.0 <= wind.state.direction < 2 * np.pi


class TestWindBounds:
    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_strength_stays_in_range(self, seed):
        wind = WindField(WindConfig(min_strength=0.02, max_strength=0.15), rng=make_rng(seed))
        initial_direction = wind.state.direction
        for _ in range(10000):
            wind.advance(0.016)
            assert 0.0 <= wind.state.strength <= 0.15
            assert 0.0 <= wind.state.target_strength <= 0.15
        assert wind.gust_count >= 1
        assert wind.state.direction != initial_direction

    def test_maximum_gusts_stay_bounded(self):
        wind = WindField(rng=FixedRandom(1.0 - 1e-12))
        for _ in range(20000):
            wind.advance(0.1)
            assert wind.state.strength <= wind.state.max_strength

    def test_wind_vector(self):
        wind = WindField(rng=make_rng(0))
        wind.state.strength = 0.1
        wind.state.direction = np.pi / 2
        x, z = wind.wind_vector()
        np.testing.assert_allclose([x, z], [0.0, 0.1], atol=1e-12)

    def test_external_state(self):
        state = WindState(gust_interval=4.0)
        wind = WindField(rng=make_rng(0), state=state)
        wind.advance(0.5)
        assert state.gust_timer == 0.5
