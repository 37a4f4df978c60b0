"""Directional light: parallel rays from infinitely far away.

Radiance does not depend on the shading point. Shadow rays toward a
directional light extend to LIGHT_INFINITY.
"""

import taichi as ti

from lightcore.core.vector import vec3

# Distance reported for lights at infinity
LIGHT_INFINITY = 1e30


@ti.func
def illuminate_directional(direction: vec3, color: vec3, intensity: ti.f32):
    """Incident radiance from a directional light.

    Args:
        direction: Unit direction the light travels.
        color: Light color.
        intensity: Light intensity.

    Returns:
        Tuple (radiance, direction toward the light, LIGHT_INFINITY).
    """
    return color * intensity, -direction, LIGHT_INFINITY


@ti.func
def sample_directional_direction(direction: vec3):
    """Direction toward a directional light with pdf 1."""
    return -direction, 1.0
