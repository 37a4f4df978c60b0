"""Rectangular area light sampled one point at a time.

The rectangle is centered at ``center`` and spanned by the orthonormal axes
``u_axis`` and ``v_axis`` derived from its normal. Only the side the normal
faces emits. For a sample point q and shading point p with d = |q - p| and
cos = n_light . (p - q)/d:

    L   = color * intensity * cos * area / d^2
    pdf = d^2 / (area * cos)

Both are zero when the sample is back-facing or coincident. The uniform
numbers (s, t) selecting q are supplied by the caller so these functions
stay pure; the light registry feeds them from each light's own stream.
"""

import taichi as ti
import taichi.math as tm

from lightcore.core.vector import vec3

MIN_SAMPLE_DISTANCE = 1e-6


@ti.func
def sample_area_point(
    center: vec3, u_axis: vec3, v_axis: vec3, width: ti.f32, height: ti.f32, s: ti.f32, t: ti.f32
) -> vec3:
    """Map (s, t) in [0, 1)^2 uniformly onto the rectangle."""
    return center + u_axis * ((s - 0.5) * width) + v_axis * ((t - 0.5) * height)


@ti.func
def illuminate_area(
    center: vec3,
    normal: vec3,
    u_axis: vec3,
    v_axis: vec3,
    width: ti.f32,
    height: ti.f32,
    color: vec3,
    intensity: ti.f32,
    point: vec3,
    s: ti.f32,
    t: ti.f32,
):
    """Single-sample incident radiance from an area light.

    Args:
        center: Rectangle center.
        normal: Unit emitting normal.
        u_axis: Unit tangent along the width.
        v_axis: Unit tangent along the height.
        width: Extent along u_axis.
        height: Extent along v_axis.
        color: Light color.
        intensity: Light intensity.
        point: Shading point.
        s: Uniform sample in [0, 1) along u_axis.
        t: Uniform sample in [0, 1) along v_axis.

    Returns:
        Tuple (radiance, direction, distance) toward the sampled point.
    """
    sample = sample_area_point(center, u_axis, v_axis, width, height, s, t)
    to_light = sample - point
    dist = tm.length(to_light)

    radiance = vec3(0.0, 0.0, 0.0)
    direction = normal
    if dist >= MIN_SAMPLE_DISTANCE:
        direction = to_light / dist
        cos_light = tm.dot(normal, -direction)
        if cos_light > 0.0:
            attenuation = cos_light * width * height / (dist * dist)
            radiance = color * intensity * attenuation

    return radiance, direction, dist


@ti.func
def sample_area_direction(
    center: vec3,
    normal: vec3,
    u_axis: vec3,
    v_axis: vec3,
    width: ti.f32,
    height: ti.f32,
    point: vec3,
    s: ti.f32,
    t: ti.f32,
):
    """Direction toward a sampled point on the rectangle and its solid-angle pdf.

    Returns:
        Tuple (direction, pdf); pdf is 0 for back-facing or coincident samples.
    """
    sample = sample_area_point(center, u_axis, v_axis, width, height, s, t)
    to_light = sample - point
    dist = tm.length(to_light)

    direction = normal
    pdf = 0.0
    if dist >= MIN_SAMPLE_DISTANCE:
        direction = to_light / dist
        cos_light = tm.dot(normal, -direction)
        if cos_light > 0.0:
            pdf = dist * dist / (width * height * cos_light)

    return direction, pdf
