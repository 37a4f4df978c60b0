"""Direct-lighting integrator.

For a camera ray this module finds the closest hit and sums the reflected
radiance from every light that is not shadowed:

    L_o = sum_lights f_r(wi, wo) * L_i * max(0, n . wi)

There is no recursion: indirect bounces and emission from surfaces are not
modeled. Rays that miss return BACKGROUND_COLOR. For shading the sphere
normal is turned toward the viewer, so a ray that starts inside a sphere
shades its inner wall; the stored hit normal stays outward.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lightcore.core.integrator import trace_radiance_host
    >>> color = trace_radiance_host((0, 0, 0), (0, 0, -1))
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from lightcore.core.vector import normalize, vec3
from lightcore.lights.directional import LIGHT_INFINITY
from lightcore.lights.registry import illuminate, is_occluded, num_lights
from lightcore.materials.registry import evaluate_brdf
from lightcore.scene.intersection import (
    STATS_ALL,
    STATS_INVALID_ONLY,
    SceneHitRecord,
    intersect_scene,
)

# Radiance returned for rays that leave the scene
BACKGROUND_COLOR = vec3(0.0, 0.0, 0.0)


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Clamp negatives and replace NaN/Inf components with zero."""
    result = tm.max(color, vec3(0.0, 0.0, 0.0))
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]):
            result[c] = 0.0
    return result


@ti.func
def direct_lighting(hit: SceneHitRecord, wo: vec3) -> vec3:
    """Sum the unshadowed light reflected toward wo at a hit point.

    Args:
        hit: A record with hit == 1.
        wo: Unit direction from the hit point toward the viewer.

    Returns:
        The reflected radiance.
    """
    n = hit.normal
    if tm.dot(n, wo) < 0.0:
        n = -n

    total = vec3(0.0, 0.0, 0.0)
    for light_id in range(num_lights[None]):
        radiance, wi, dist = illuminate(light_id, hit.point)
        cos_theta = tm.dot(n, wi)
        if cos_theta > 0.0 and ti.max(radiance.x, ti.max(radiance.y, radiance.z)) > 0.0:
            if is_occluded(hit.point, wi, dist) == 0:
                f = evaluate_brdf(hit.material_id, wi, wo, n)
                total += f * radiance * cos_theta

    return total


@ti.func
def trace_radiance(origin: vec3, direction: vec3, record_stats: ti.i32) -> vec3:
    """Radiance carried back along a camera ray.

    Args:
        origin: Ray origin.
        direction: Ray direction (need not be normalized).
        record_stats: STATS_ALL to count the primary ray in the scene
            diagnostics, STATS_INVALID_ONLY to report only hits on spheres
            with an unregistered material.

    Returns:
        BACKGROUND_COLOR on a miss, otherwise the sanitized direct lighting.
    """
    result = vec3(0.0, 0.0, 0.0)
    hit = intersect_scene(origin, direction, LIGHT_INFINITY, record_stats)
    if hit.hit == 1:
        wo = normalize(-direction)
        result = _sanitize(direct_lighting(hit, wo))
    else:
        result += BACKGROUND_COLOR
    return result


@ti.kernel
def _trace_single(origin: vec3, direction: vec3, record_stats: ti.i32) -> vec3:
    return trace_radiance(origin, direction, record_stats)


@ti.kernel
def _render_rays(
    origins: ti.types.ndarray(dtype=ti.f32, ndim=2),
    directions: ti.types.ndarray(dtype=ti.f32, ndim=2),
    out: ti.types.ndarray(dtype=ti.f32, ndim=2),
    count: ti.i32,
    record_stats: ti.i32,
):
    """Trace a batch of rays one after another.

    Area-light streams advance in ray order, so the loop is serialized to
    keep results reproducible.
    """
    ti.loop_config(serialize=True)
    for i in range(count):
        origin = vec3(origins[i, 0], origins[i, 1], origins[i, 2])
        direction = vec3(directions[i, 0], directions[i, 1], directions[i, 2])
        color = trace_radiance(origin, direction, record_stats)
        for c in ti.static(range(3)):
            out[i, c] = color[c]


def _stats_mode(record_stats: bool) -> int:
    return STATS_ALL if record_stats else STATS_INVALID_ONLY


def trace_radiance_host(origin, direction, record_stats: bool = False) -> tuple[float, float, float]:
    """Trace one ray from Python.

    Args:
        origin: Ray origin as a 3-element sequence.
        direction: Ray direction as a 3-element sequence.
        record_stats: Count the primary ray in the scene diagnostics. Hits on
            spheres with an unregistered material are counted either way.

    Returns:
        Tuple of (R, G, B) radiance.
    """
    color = _trace_single(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        _stats_mode(record_stats),
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def render_rays(origins, directions, record_stats: bool = False) -> np.ndarray:
    """Trace a batch of rays.

    Args:
        origins: Array-like of shape (N, 3).
        directions: Array-like of shape (N, 3).
        record_stats: Count the primary rays in the scene diagnostics. Hits on
            spheres with an unregistered material are counted either way.

    Returns:
        float32 array of shape (N, 3) with one radiance per ray.

    Raises:
        ValueError: If the inputs are not matching (N, 3) arrays.
    """
    origins_np = np.ascontiguousarray(origins, dtype=np.float32)
    directions_np = np.ascontiguousarray(directions, dtype=np.float32)
    if origins_np.ndim != 2 or origins_np.shape[1] != 3:
        raise ValueError(f"origins must have shape (N, 3), got {origins_np.shape}")
    if directions_np.shape != origins_np.shape:
        raise ValueError(
            f"directions shape {directions_np.shape} does not match origins {origins_np.shape}"
        )

    count = origins_np.shape[0]
    out = np.zeros((count, 3), dtype=np.float32)
    if count > 0:
        _render_rays(origins_np, directions_np, out, count, _stats_mode(record_stats))
    return out
