"""Pytest configuration for lightcore tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate the module-level fields allocated by lightcore.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear spheres, materials, lights and diagnostics around each test."""
    # Imported here so fields are created after ti.init()
    from lightcore.lights.registry import clear_lights
    from lightcore.materials.registry import clear_materials
    from lightcore.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_materials()
        clear_lights()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def scene():
    """A fresh Scene with the default seed."""
    from lightcore.scene.manager import Scene

    fresh = Scene()
    yield fresh
    fresh.clear()
