"""Ray data structure and ray utilities.

A ray is P(t) = origin + t * direction with t >= 0 by convention. The
direction need not be normalized, but it must be finite and non-degenerate
for the ray to be traced.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lightcore.core.ray import Ray, ray_at
    >>> # ray_at(Ray(origin=o, direction=d), 5.0) inside a kernel
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from lightcore.core.vector import is_finite, normalize, vec3

# Directions with a squared length at or below this are degenerate
DEGENERATE_DIRECTION_EPSILON = 1e-12


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point origin + t * direction."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a kernel."""
    return Ray(origin=origin, direction=direction)


@ti.func
def is_valid_ray(ray: Ray) -> ti.i32:
    """Check whether a ray can be traced.

    A ray is valid when its direction is finite and its squared length is
    above DEGENERATE_DIRECTION_EPSILON.

    Returns:
        1 if the ray is valid, 0 otherwise.
    """
    valid = 0
    if is_finite(ray.direction) == 1:
        if tm.dot(ray.direction, ray.direction) > DEGENERATE_DIRECTION_EPSILON:
            valid = 1
    return valid


@ti.func
def is_direction_normalized(ray: Ray, tolerance: ti.f32) -> ti.i32:
    """Check whether |direction| is within tolerance of 1."""
    return ti.abs(tm.length(ray.direction) - 1.0) <= tolerance


@ti.func
def normalized_ray(ray: Ray) -> Ray:
    """Return a copy of the ray with a unit-length direction.

    A degenerate direction becomes the zero vector, which keeps the ray
    invalid.
    """
    return Ray(origin=ray.origin, direction=normalize(ray.direction))


@ti.func
def distance_to_point(ray: Ray, point: vec3) -> ti.f32:
    """Distance from a point to the closest point on the ray.

    The projection parameter is clamped to t >= 0, so points behind the
    origin measure their distance to the origin. A degenerate direction also
    falls back to the distance to the origin.

    Args:
        ray: The ray.
        point: The query point.

    Returns:
        The shortest distance between the point and the ray.
    """
    to_point = point - ray.origin
    dd = tm.dot(ray.direction, ray.direction)
    t = 0.0
    if dd > DEGENERATE_DIRECTION_EPSILON:
        t = ti.max(0.0, tm.dot(to_point, ray.direction) / dd)
    closest = ray.origin + t * ray.direction
    return tm.length(point - closest)


def is_valid_ray_host(origin, direction) -> bool:
    """Host-side counterpart of is_valid_ray for query arguments."""
    d = np.asarray(direction, dtype=np.float64)
    o = np.asarray(origin, dtype=np.float64)
    if not (np.all(np.isfinite(d)) and np.all(np.isfinite(o))):
        return False
    return bool(np.dot(d, d) > DEGENERATE_DIRECTION_EPSILON)
