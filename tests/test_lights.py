"""Unit tests for lights.

Tests cover:
- Point light inverse-square falloff and the coincident-point guard
- Directional light constant radiance and infinite distance
- Area light sampling: back-facing zero, per-call noise, stream isolation
  and reproducibility for a fixed seed
- Light sampling pdfs
- Host-side parameter clamping
"""

import logging
import math

import numpy as np
import pytest


class TestPointLight:
    """Tests for point lights through the Scene facade."""

    def test_inverse_square_law(self, scene):
        """Doubling the distance quarters the radiance."""
        light = scene.add_point_light(position=(0.0, 0.0, 0.0), color=(1.0, 1.0, 1.0), intensity=10.0)

        near, dir_near, d_near = scene.illuminate(light, (0.0, 0.0, -1.0))
        far, dir_far, d_far = scene.illuminate(light, (0.0, 0.0, -2.0))

        assert d_near == pytest.approx(1.0, abs=1e-6)
        assert d_far == pytest.approx(2.0, abs=1e-6)
        assert dir_near == pytest.approx((0.0, 0.0, 1.0), abs=1e-6)
        assert dir_far == pytest.approx((0.0, 0.0, 1.0), abs=1e-6)
        assert near[0] == pytest.approx(10.0 / (4.0 * math.pi), rel=1e-5)
        assert near[0] / far[0] == pytest.approx(4.0, rel=1e-5)

    def test_color_scales_radiance(self, scene):
        light = scene.add_point_light(position=(0.0, 2.0, 0.0), color=(1.0, 0.5, 0.0), intensity=4.0)
        radiance, _, _ = scene.illuminate(light, (0.0, 0.0, 0.0))
        base = 4.0 / (4.0 * math.pi * 4.0)
        assert radiance == pytest.approx((base, 0.5 * base, 0.0), rel=1e-5, abs=1e-9)

    def test_coincident_point_receives_nothing(self, scene):
        light = scene.add_point_light(position=(1.0, 1.0, 1.0), intensity=5.0)
        radiance, _, _ = scene.illuminate(light, (1.0, 1.0, 1.0))
        assert radiance == (0.0, 0.0, 0.0)
        _, pdf = scene.sample_light_direction(light, (1.0, 1.0, 1.0))
        assert pdf == 0.0

    def test_sample_direction(self, scene):
        light = scene.add_point_light(position=(0.0, 3.0, 4.0))
        direction, pdf = scene.sample_light_direction(light, (0.0, 0.0, 0.0))
        assert direction == pytest.approx((0.0, 0.6, 0.8), abs=1e-6)
        assert pdf == 1.0


class TestDirectionalLight:
    """Tests for directional lights."""

    def test_constant_radiance_and_infinite_distance(self, scene):
        from lightcore.lights.directional import LIGHT_INFINITY

        light = scene.add_directional_light(direction=(0.0, -2.0, 0.0), color=(0.5, 0.5, 1.0), intensity=2.0)

        for point in [(0.0, 0.0, 0.0), (100.0, -50.0, 3.0)]:
            radiance, direction, dist = scene.illuminate(light, point)
            assert radiance == pytest.approx((1.0, 1.0, 2.0), abs=1e-6)
            assert direction == pytest.approx((0.0, 1.0, 0.0), abs=1e-6)
            assert dist == pytest.approx(LIGHT_INFINITY, rel=1e-6)

    def test_sample_direction(self, scene):
        light = scene.add_directional_light(direction=(1.0, 0.0, 0.0))
        direction, pdf = scene.sample_light_direction(light, (5.0, 5.0, 5.0))
        assert direction == pytest.approx((-1.0, 0.0, 0.0), abs=1e-6)
        assert pdf == 1.0

    def test_zero_direction_falls_back_to_down(self, scene, caplog):
        with caplog.at_level(logging.WARNING):
            light = scene.add_directional_light(direction=(0.0, 0.0, 0.0))
        assert scene.get_light_info(light).params.direction == (0.0, -1.0, 0.0)
        assert any("degenerate" in rec.message for rec in caplog.records)


class TestAreaLight:
    """Tests for area lights."""

    def _facing_down(self, scene, seed=None, intensity=1.0):
        return scene.add_area_light(
            center=(0.0, 2.0, 0.0),
            normal=(0.0, -1.0, 0.0),
            width=1.0,
            height=1.0,
            intensity=intensity,
            seed=seed,
        )

    def test_lights_point_in_front(self, scene):
        light = self._facing_down(scene, intensity=3.0)
        for _ in range(16):
            radiance, direction, dist = scene.illuminate(light, (0.0, 0.0, 0.0))
            assert radiance[0] > 0.0
            assert direction[1] > 0.0
            # Samples lie on the unit square at height 2
            assert 2.0 - 1e-5 <= dist <= math.sqrt(4.0 + 0.5) + 1e-5

    def test_radiance_matches_sample_geometry(self, scene):
        """L = color intensity cos area / d^2 for the drawn sample."""
        light = self._facing_down(scene, intensity=3.0)
        radiance, direction, dist = scene.illuminate(light, (0.0, 0.0, 0.0))
        cos_light = direction[1]
        expected = 3.0 * cos_light * 1.0 / (dist * dist)
        assert radiance[0] == pytest.approx(expected, rel=1e-4)

    def test_back_side_is_dark(self, scene):
        light = self._facing_down(scene)
        for _ in range(8):
            radiance, _, _ = scene.illuminate(light, (0.0, 4.0, 0.0))
            assert radiance == (0.0, 0.0, 0.0)
            _, pdf = scene.sample_light_direction(light, (0.0, 4.0, 0.0))
            assert pdf == 0.0

    def test_repeated_samples_differ(self, scene):
        light = self._facing_down(scene)
        directions = {scene.illuminate(light, (0.0, 0.0, 0.0))[1] for _ in range(10)}
        assert len(directions) > 1

    def test_pdf_matches_geometry(self, scene):
        light = self._facing_down(scene)
        direction, pdf = scene.sample_light_direction(light, (0.0, 0.0, 0.0))
        # Sample point lies on y = 2, so d = 2 / cos
        cos_light = direction[1]
        dist = 2.0 / cos_light
        assert pdf == pytest.approx(dist * dist / (1.0 * cos_light), rel=1e-4)

    def test_explicit_seed_is_reproducible(self):
        from lightcore.scene.manager import Scene

        first = Scene()
        light = first.add_area_light((0.0, 2.0, 0.0), (0.0, -1.0, 0.0), 1.0, 1.0, seed=1234)
        seq_a = [first.illuminate(light, (0.0, 0.0, 0.0))[1] for _ in range(5)]

        second = Scene()
        light = second.add_area_light((0.0, 2.0, 0.0), (0.0, -1.0, 0.0), 1.0, 1.0, seed=1234)
        seq_b = [second.illuminate(light, (0.0, 0.0, 0.0))[1] for _ in range(5)]

        assert seq_a == seq_b

    def test_scene_seed_is_reproducible(self):
        from lightcore.scene.manager import Scene

        sequences = []
        for _ in range(2):
            s = Scene(seed=99)
            light = s.add_area_light((0.0, 2.0, 0.0), (0.0, -1.0, 0.0), 2.0, 2.0)
            sequences.append([s.illuminate(light, (0.0, 0.0, 0.0))[0] for _ in range(5)])
        assert sequences[0] == sequences[1]

    def test_streams_are_isolated(self, scene):
        """Sampling one area light does not change another light's sequence."""
        from lightcore.scene.manager import Scene

        a = scene.add_area_light((0.0, 2.0, 0.0), (0.0, -1.0, 0.0), 1.0, 1.0, seed=7)
        b = scene.add_area_light((0.0, 2.0, 0.0), (0.0, -1.0, 0.0), 1.0, 1.0, seed=8)
        for _ in range(3):
            scene.illuminate(a, (0.0, 0.0, 0.0))
        interleaved = [scene.illuminate(b, (0.0, 0.0, 0.0))[1] for _ in range(4)]

        alone = Scene()
        alone.add_area_light((0.0, 2.0, 0.0), (0.0, -1.0, 0.0), 1.0, 1.0, seed=7)
        b_alone = alone.add_area_light((0.0, 2.0, 0.0), (0.0, -1.0, 0.0), 1.0, 1.0, seed=8)
        isolated = [alone.illuminate(b_alone, (0.0, 0.0, 0.0))[1] for _ in range(4)]

        assert interleaved == isolated

    def test_each_sample_advances_only_its_own_state(self, scene):
        from lightcore.lights.registry import get_light_rng_state

        point = scene.add_point_light((0.0, 5.0, 0.0))
        area = scene.add_area_light((0.0, 2.0, 0.0), (0.0, -1.0, 0.0), 1.0, 1.0, seed=3)
        start = get_light_rng_state(area)
        assert start == scene.get_light_info(area).rng_state

        scene.illuminate(point, (0.0, 0.0, 0.0))
        assert get_light_rng_state(area) == start
        assert get_light_rng_state(point) == 0

        scene.illuminate(area, (0.0, 0.0, 0.0))
        after_one = get_light_rng_state(area)
        assert after_one != start
        scene.sample_light_direction(area, (0.0, 0.0, 0.0))
        assert get_light_rng_state(area) not in (start, after_one)

    def test_different_lights_get_different_streams(self, scene):
        a = scene.add_area_light((0.0, 2.0, 0.0), (0.0, -1.0, 0.0), 1.0, 1.0)
        b = scene.add_area_light((0.0, 2.0, 0.0), (0.0, -1.0, 0.0), 1.0, 1.0)
        assert scene.get_light_info(a).rng_state != scene.get_light_info(b).rng_state
        seq_a = [scene.illuminate(a, (0.0, 0.0, 0.0))[1] for _ in range(4)]
        seq_b = [scene.illuminate(b, (0.0, 0.0, 0.0))[1] for _ in range(4)]
        assert seq_a != seq_b

    def test_mean_radiance_converges(self, scene):
        """Averaging many samples approaches the analytic irradiance integral."""
        light = self._facing_down(scene)
        samples = np.array([scene.illuminate(light, (0.0, 0.0, 0.0))[0][0] for _ in range(400)])
        # Integral of cos/d^2 over the unit square at height 2, centered above the point
        xs = (np.arange(200) + 0.5) / 200.0 - 0.5
        gx, gz = np.meshgrid(xs, xs)
        d2 = gx * gx + 4.0 + gz * gz
        expected = float(np.mean(2.0 / np.sqrt(d2) / d2))
        assert samples.mean() == pytest.approx(expected, rel=0.05)

    def test_extent_clamping(self, scene, caplog):
        with caplog.at_level(logging.WARNING):
            light = scene.add_area_light((0.0, 0.0, 0.0), (0.0, 0.0, 0.0), 0.0, 500.0)
        params = scene.get_light_info(light).params
        assert params.width == 0.01
        assert params.height == 100.0
        assert params.normal == (0.0, 0.0, 1.0)
        assert len(caplog.records) == 3


class TestLightParameterClamping:
    """Tests for host-side light parameter clamping."""

    def test_point_light_clamping(self, caplog):
        from lightcore.lights.base import PointLightParams

        with caplog.at_level(logging.WARNING):
            clamped = PointLightParams(
                position=(5000.0, 0.0, -2000.0), color=(2.0, -1.0, 0.5), intensity=-3.0
            ).clamped()
        assert clamped.position == (1000.0, 0.0, -1000.0)
        assert clamped.color == (1.0, 0.0, 0.5)
        assert clamped.intensity == 0.0
        assert len(caplog.records) == 3

    def test_valid_parameters_do_not_warn(self, caplog):
        from lightcore.lights.base import AreaLightParams

        with caplog.at_level(logging.WARNING):
            AreaLightParams(center=(1.0, 2.0, 3.0), normal=(0.0, 1.0, 0.0)).clamped()
        assert caplog.records == []

    def test_area_basis_is_orthonormal(self):
        from lightcore.lights.base import AreaLightParams

        params = AreaLightParams(normal=(0.0, 0.6, 0.8))
        u, v = params.basis()
        n = np.array(params.normal)
        for axis in (np.array(u), np.array(v)):
            assert np.linalg.norm(axis) == pytest.approx(1.0)
            assert abs(np.dot(axis, n)) < 1e-9
        assert abs(np.dot(u, v)) < 1e-9

    def test_from_dict_rejects_unknown_type(self):
        from lightcore.lights.base import light_params_from_dict

        with pytest.raises(ValueError):
            light_params_from_dict({"type": "spot"})
