"""Sphere primitive and ray-sphere intersection.

The intersection solves |O + tD - C|^2 = r^2, i.e. a*t^2 + b*t + c = 0 with
a = D.D, b = 2(O - C).D and c = |O - C|^2 - r^2. The roots are computed with
the cancellation-free form q = -(h + sign(h) sqrt(h^2 - ac)) where h = b/2,
which yields the same t1 <= t2 as (-b -/+ sqrt(b^2 - 4ac)) / 2a.

The near root wins when it lies in front of the origin; otherwise the far
root is used, which is the exit point for a ray starting inside the sphere.
The reported normal always points outward from the center.

Host helpers validate and clamp construction parameters; they log a warning
for every adjusted value and never raise.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lightcore.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -5), radius=1.0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import logging
import math

import numpy as np
import taichi as ti
import taichi.math as tm

from lightcore.core.vector import vec3

logger = logging.getLogger(__name__)

# Smallest accepted ray parameter for a hit
T_MIN = 1e-6

# Radius bounds applied on construction
MIN_RADIUS_FALLBACK = 0.1
MAX_RADIUS = 1000.0
NON_FINITE_RADIUS_FALLBACK = 1.0

_DEGENERATE_A = 1e-12


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: 1 if the ray intersected the sphere, 0 on a miss.
        t: Ray parameter of the intersection. Only valid if hit == 1.
        point: Intersection point. Only valid if hit == 1.
        normal: Unit outward normal (point - center) / |point - center|.
            Only valid if hit == 1.
        front_face: 1 if the ray arrived from outside the sphere, 0 if it
            started inside and hit the far wall. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def _solve_quadratic(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 for its two ordered roots.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient (non-zero).
        c: Constant term.
        sqrt_d: Square root of the reduced discriminant h^2 - a*c.

    Returns:
        Tuple (t1, t2) with t1 <= t2.
    """
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t1 = 0.0
    t2 = 0.0
    if ti.abs(q) < 1e-20:
        t1 = (-h - sqrt_d) / a
        t2 = (-h + sqrt_d) / a
    else:
        t1 = q / a
        t2 = c / q

    if t1 > t2:
        temp = t1
        t1 = t2
        t2 = temp

    return t1, t2


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_max: ti.f32,
) -> HitRecord:
    """Intersect a ray with a sphere.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The ray direction (need not be normalized).
        sphere: The sphere to test.
        t_max: Hits at or beyond this parameter are rejected.

    Returns:
        A HitRecord; hit == 0 when the discriminant is negative, both roots
        are at or behind T_MIN, the accepted root is not below t_max, or the
        direction is degenerate.
    """
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    # b^2 - 4ac expressed with h = b/2, scaled by 1/4
    discriminant = h * h - a * c

    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if a > _DEGENERATE_A and discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t1, t2 = _solve_quadratic(h, a, c, sqrt_d)

        t = 0.0
        found = 0
        if t1 > T_MIN:
            t = t1
            found = 1
            is_front_face = 1
        elif t2 > T_MIN:
            t = t2
            found = 1
            is_front_face = 0

        if found == 1 and t < t_max:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction

            outward = hit_point - sphere.center
            outward_len = tm.length(outward)
            if outward_len > 0.0:
                hit_normal = outward / outward_len

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )


@ti.func
def sphere_surface_area(sphere: Sphere) -> ti.f32:
    """Surface area 4*pi*r^2."""
    return 4.0 * tm.pi * sphere.radius * sphere.radius


@ti.func
def sphere_volume(sphere: Sphere) -> ti.f32:
    """Volume 4/3*pi*r^3."""
    return (4.0 / 3.0) * tm.pi * sphere.radius * sphere.radius * sphere.radius


def validate_sphere_geometry(center, radius: float) -> bool:
    """Check that a center and radius describe a usable sphere.

    Returns:
        True when the center is finite and 0 < radius <= MAX_RADIUS.
    """
    c = np.asarray(center, dtype=np.float64)
    if c.shape != (3,) or not np.all(np.isfinite(c)):
        return False
    r = float(radius)
    return math.isfinite(r) and 0.0 < r <= MAX_RADIUS


def clamp_sphere_parameters(center, radius: float) -> tuple[tuple[float, float, float], float]:
    """Coerce sphere geometry into its valid range.

    Non-finite centers move to the origin, non-finite radii become 1.0,
    non-positive radii become 0.1 and oversized radii shrink to 1000. Each
    adjustment is logged. Material indices are not touched here: an index
    outside the registry rejects the sphere instead.

    Args:
        center: Sphere center as a 3-element sequence.
        radius: Sphere radius.

    Returns:
        Tuple (center, radius) with clamped values.
    """
    c = np.asarray(center, dtype=np.float64)
    if not np.all(np.isfinite(c)):
        logger.warning("Sphere center %s is not finite, using origin", tuple(c.tolist()))
        c = np.zeros(3)

    r = float(radius)
    if not math.isfinite(r):
        logger.warning("Sphere radius %s is not finite, using %s", r, NON_FINITE_RADIUS_FALLBACK)
        r = NON_FINITE_RADIUS_FALLBACK
    elif r <= 0.0:
        logger.warning("Sphere radius %s is not positive, using %s", r, MIN_RADIUS_FALLBACK)
        r = MIN_RADIUS_FALLBACK
    elif r > MAX_RADIUS:
        logger.warning("Sphere radius %s exceeds %s, clamping", r, MAX_RADIUS)
        r = MAX_RADIUS

    return (float(c[0]), float(c[1]), float(c[2])), r
