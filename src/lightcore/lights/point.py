"""Point light: an isotropic emitter at a single location.

Radiance arriving at a point follows the inverse-square law over the full
sphere of emission:
    L = color * intensity / (4 pi d^2)

A shading point that coincides with the light (d < 1e-6) receives nothing.
"""

import taichi as ti
import taichi.math as tm

from lightcore.core.vector import vec3

# Distances below this are treated as coincident with the light
MIN_LIGHT_DISTANCE = 1e-6


@ti.func
def illuminate_point(position: vec3, color: vec3, intensity: ti.f32, point: vec3):
    """Incident radiance from a point light.

    Args:
        position: Light position.
        color: Light color.
        intensity: Light intensity.
        point: Shading point.

    Returns:
        Tuple (radiance, direction, distance) where direction is the unit
        vector from the shading point toward the light.
    """
    to_light = position - point
    dist = tm.length(to_light)

    radiance = vec3(0.0, 0.0, 0.0)
    direction = vec3(0.0, 0.0, 1.0)
    if dist >= MIN_LIGHT_DISTANCE:
        direction = to_light / dist
        radiance = color * intensity / (4.0 * tm.pi * dist * dist)

    return radiance, direction, dist


@ti.func
def sample_point_direction(position: vec3, point: vec3):
    """Deterministic direction toward a point light.

    Returns:
        Tuple (direction, pdf); pdf is 1 for the single valid direction and 0
        when the shading point coincides with the light.
    """
    to_light = position - point
    dist = tm.length(to_light)

    direction = vec3(0.0, 0.0, 1.0)
    pdf = 0.0
    if dist >= MIN_LIGHT_DISTANCE:
        direction = to_light / dist
        pdf = 1.0

    return direction, pdf
