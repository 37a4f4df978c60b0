"""Unit tests for the Scene facade.

Tests cover:
- Material registration with defaults and clamping
- Sphere insertion, clamping and rejection of unknown materials
- Light registration for every kind
- BRDF evaluation queries
- Scene description, serialization and JSON round trips
- Capacity limits and clearing
- Handing the fields over to a newly constructed Scene
"""

import json
import logging

import pytest


class TestMaterialRegistration:
    """Tests for material registration."""

    def test_indices_are_sequential(self, scene):
        a = scene.add_lambert_material((0.8, 0.3, 0.3))
        b = scene.add_cook_torrance_material((0.9, 0.6, 0.2), roughness=0.3, metallic=1.0)
        c = scene.add_lambert_material()
        assert (a, b, c) == (0, 1, 2)
        assert scene.get_material_count() == 3

    def test_cook_torrance_defaults(self, scene):
        from lightcore.materials.base import MaterialKind

        idx = scene.add_cook_torrance_material()
        params = scene.get_material_info(idx).params
        assert params.kind == MaterialKind.COOK_TORRANCE
        assert params.base_color == (0.7, 0.7, 0.7)
        assert params.roughness == 0.5
        assert params.metallic == 0.0
        assert params.specular == 0.04

    def test_out_of_range_values_are_clamped(self, scene, caplog):
        with caplog.at_level(logging.WARNING):
            idx = scene.add_cook_torrance_material(
                base_color=(1.5, -0.2, 0.5), roughness=0.0, metallic=2.0, specular=-1.0
            )
        params = scene.get_material_info(idx).params
        assert params.base_color == (1.0, 0.0, 0.5)
        assert params.roughness == 0.01
        assert params.metallic == 1.0
        assert params.specular == 0.0
        assert len(caplog.records) == 5

    def test_material_params_validate(self):
        from lightcore.materials.base import MaterialKind, MaterialParams

        assert MaterialParams().validate() == []
        problems = MaterialParams(kind=MaterialKind.COOK_TORRANCE, roughness=3.0).validate()
        assert len(problems) == 1
        assert "roughness" in problems[0]

    def test_unknown_material_info(self, scene):
        assert scene.get_material_info(0) is None


class TestSphereInsertion:
    """Tests for add_sphere."""

    def test_add_sphere(self, scene):
        mat = scene.add_lambert_material()
        idx = scene.add_sphere((1.0, 2.0, 3.0), 0.5, mat)
        assert idx == 0
        info = scene.get_sphere_info(idx)
        assert info.center == (1.0, 2.0, 3.0)
        assert info.radius == 0.5
        assert info.material_index == mat
        assert scene.get_sphere_count() == 1

    def test_unknown_material_is_rejected(self, scene, caplog):
        scene.add_lambert_material()
        with caplog.at_level(logging.ERROR):
            idx = scene.add_sphere((0.0, 0.0, -5.0), 1.0, 3)
        assert idx == -1
        assert scene.get_sphere_count() == 0
        assert any(rec.levelno == logging.ERROR for rec in caplog.records)

    @pytest.mark.parametrize("material_index", [-1, -7])
    def test_negative_material_is_rejected(self, scene, caplog, material_index):
        scene.add_lambert_material()
        with caplog.at_level(logging.ERROR):
            idx = scene.add_sphere((0.0, 0.0, -5.0), 1.0, material_index)
        assert idx == -1
        assert scene.get_sphere_count() == 0
        assert scene.spheres == []
        assert any(rec.levelno == logging.ERROR for rec in caplog.records)
        assert not scene.intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)).hit

    def test_rejected_without_materials(self, scene):
        assert scene.add_sphere((0.0, 0.0, -5.0), 1.0, 0) == -1

    def test_geometry_is_clamped(self, scene, caplog):
        mat = scene.add_lambert_material()
        with caplog.at_level(logging.WARNING):
            idx = scene.add_sphere((0.0, 0.0, -5.0), -2.0, mat)
        assert idx == 0
        assert scene.get_sphere_info(idx).radius == pytest.approx(0.1)
        assert any("radius" in rec.message for rec in caplog.records)

    def test_clamped_sphere_is_intersected(self, scene):
        mat = scene.add_lambert_material()
        scene.add_sphere((0.0, 0.0, -5.0), 0.0, mat)
        hit = scene.intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit.hit
        assert hit.t == pytest.approx(4.9, abs=1e-4)


class TestLights:
    """Tests for light registration."""

    def test_all_kinds(self, scene):
        from lightcore.lights.base import LightKind

        p = scene.add_point_light((0.0, 5.0, 0.0))
        d = scene.add_directional_light((0.0, -1.0, 0.0))
        a = scene.add_area_light((0.0, 3.0, 0.0), (0.0, -1.0, 0.0), 1.0, 2.0)
        assert (p, d, a) == (0, 1, 2)
        assert scene.get_light_count() == 3
        assert scene.get_light_info(p).params.kind == LightKind.POINT
        assert scene.get_light_info(d).params.kind == LightKind.DIRECTIONAL
        assert scene.get_light_info(a).params.kind == LightKind.AREA
        assert scene.get_light_info(a).rng_state != 0
        assert scene.get_light_info(p).rng_state == 0

    def test_unregistered_light_gives_nothing(self, scene):
        radiance, _, _ = scene.illuminate(5, (0.0, 0.0, 0.0))
        assert radiance == (0.0, 0.0, 0.0)

    def test_unsupported_params_type(self, scene):
        with pytest.raises(TypeError):
            scene.add_light({"type": "point"})

    def test_light_capacity(self, scene):
        from lightcore.lights.registry import MAX_LIGHTS

        for _ in range(MAX_LIGHTS):
            scene.add_point_light((0.0, 1.0, 0.0))
        with pytest.raises(RuntimeError):
            scene.add_point_light((0.0, 1.0, 0.0))


class TestBrdfQueries:
    """Tests for evaluate_brdf on the facade."""

    def test_lambert_and_cook_torrance(self, scene):
        lam = scene.add_lambert_material((0.2, 0.4, 0.6))
        ct = scene.add_cook_torrance_material((1.0, 1.0, 1.0), roughness=0.5, metallic=0.0)
        n = (0.0, 0.0, 1.0)

        assert scene.evaluate_brdf(lam, n, n, n) == pytest.approx((0.2, 0.4, 0.6), abs=1e-6)
        value = scene.evaluate_brdf(ct, n, n, n)
        assert value[0] > 0.0
        assert value[0] == pytest.approx(value[2], abs=1e-6)
        assert scene.evaluate_brdf(ct, (0.0, 0.0, -1.0), n, n) == (0.0, 0.0, 0.0)

    def test_unknown_material(self, scene):
        n = (0.0, 0.0, 1.0)
        assert scene.evaluate_brdf(9, n, n, n) == (0.0, 0.0, 0.0)


class TestDescribe:
    """Tests for describe()."""

    def test_describe_lists_contents(self, scene):
        mat = scene.add_cook_torrance_material((0.9, 0.6, 0.2), roughness=0.3, metallic=1.0)
        scene.add_sphere((0.0, 0.0, -5.0), 1.0, mat)
        scene.add_point_light((0.0, 5.0, 0.0), intensity=20.0)
        scene.intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        text = scene.describe()
        assert "Spheres: 1" in text
        assert "Materials: 1" in text
        assert "Lights: 1" in text
        assert "Intersection tests: 1" in text
        assert "cook_torrance" in text
        assert "roughness=0.3" in text


class TestSerialization:
    """Tests for to_config/from_config and JSON round trips."""

    def _build(self, scene):
        red = scene.add_lambert_material((0.8, 0.1, 0.1))
        gold = scene.add_cook_torrance_material((1.0, 0.8, 0.3), roughness=0.25, metallic=1.0)
        scene.add_sphere((0.0, 0.0, -5.0), 1.0, red)
        scene.add_sphere((2.0, 0.0, -6.0), 1.5, gold)
        scene.add_point_light((0.0, 5.0, 0.0), (1.0, 1.0, 1.0), 50.0)
        scene.add_directional_light((0.0, 0.0, -1.0), (1.0, 0.9, 0.8), 2.0)
        scene.add_area_light((0.0, 4.0, -5.0), (0.0, -1.0, 0.0), 2.0, 2.0, intensity=5.0, seed=11)

    def test_round_trip_through_config(self, scene):
        self._build(scene)
        before = scene.to_dict()

        scene.from_config(scene.to_config())
        assert scene.to_dict() == before
        assert scene.get_sphere_count() == 2
        assert scene.get_material_count() == 2
        assert scene.get_light_count() == 3

    def test_round_trip_reproduces_area_samples(self, scene):
        self._build(scene)
        data = scene.to_dict()
        first = [scene.illuminate(2, (0.0, 0.0, -5.0))[1] for _ in range(3)]

        scene.from_dict(data)
        second = [scene.illuminate(2, (0.0, 0.0, -5.0))[1] for _ in range(3)]
        assert first == second

    def test_json_round_trip(self, scene, tmp_path):
        self._build(scene)
        path = tmp_path / "scene.json"
        scene.save_json(path)

        stored = json.loads(path.read_text())
        assert stored["materials"][1]["type"] == "cook_torrance"
        assert stored["lights"][2]["seed"] == 11

        before = scene.to_dict()
        scene.clear()
        assert scene.get_sphere_count() == 0
        scene.load_json(path)
        assert scene.to_dict() == before

    def test_unknown_material_type(self, scene):
        from lightcore.scene.manager import SceneConfig

        with pytest.raises(ValueError):
            scene.from_config(SceneConfig(materials=[{"type": "velvet"}]))

    def test_unknown_light_type(self, scene):
        with pytest.raises(ValueError):
            scene.from_dict({"lights": [{"type": "spot"}]})


class TestCapacity:
    """Tests for capacity information."""

    def test_max_values(self):
        from lightcore.scene.manager import Scene

        assert Scene.get_max_spheres() == 1024
        assert Scene.get_max_materials() == 256
        assert Scene.get_max_lights() == 64

    def test_clear(self, scene):
        mat = scene.add_lambert_material()
        scene.add_sphere((0.0, 0.0, -5.0), 1.0, mat)
        scene.add_point_light((0.0, 5.0, 0.0))
        scene.clear()
        assert scene.get_sphere_count() == 0
        assert scene.get_material_count() == 0
        assert scene.get_light_count() == 0
        assert not scene.intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)).hit


class TestActiveScene:
    """Only the most recently constructed Scene keeps records."""

    def test_new_scene_releases_previous_records(self):
        from lightcore.scene.manager import Scene

        first = Scene()
        mat = first.add_lambert_material()
        first.add_sphere((0.0, 0.0, -5.0), 1.0, mat)
        first.add_point_light((0.0, 5.0, 0.0))

        second = Scene()
        assert first.spheres == []
        assert first.materials == []
        assert first.lights == []
        assert first.get_sphere_count() == 0
        config = first.to_config()
        assert config.spheres == [] and config.materials == [] and config.lights == []
        assert not first.intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)).hit

        other = second.add_lambert_material()
        assert second.add_sphere((0.0, 0.0, -5.0), 1.0, other) == 0
        assert len(second.spheres) == 1
