"""Scene-level sphere storage and closest-hit traversal.

Spheres are stored in Taichi fields (Structure of Arrays) and tested with a
linear scan. The closest hit uses a strictly-less comparison, so when two
spheres report the same t the one added first wins.

A sphere whose material index is not registered is skipped during the scan:
its hit is counted as a diagnostic and never reported, and spheres behind it
can still be hit.

Diagnostic counters are updated atomically. The record_stats argument picks
what is counted: STATS_ALL counts tests, hits and invalid material hits,
STATS_INVALID_ONLY counts just the invalid material hits, and STATS_OFF
counts nothing. Camera rays always report invalid material hits; shadow
rays never record.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lightcore.scene.intersection import add_sphere_record, intersect_scene
    >>> add_sphere_record((0.0, 0.0, -5.0), 1.0, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

from dataclasses import dataclass

import taichi as ti

from lightcore.core.ray import Ray, is_valid_ray
from lightcore.core.vector import vec3
from lightcore.geometry.sphere import Sphere, hit_sphere
from lightcore.materials.registry import is_valid_material


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection.

    Attributes:
        hit: 1 if any sphere was hit, 0 on a miss.
        t: Ray parameter of the closest hit. Only valid if hit == 1.
        point: Intersection point. Only valid if hit == 1.
        normal: Unit outward normal of the hit sphere. Only valid if hit == 1.
        front_face: 1 if the ray arrived from outside the sphere.
        material_id: Material of the hit sphere, -1 on a miss.
        sphere_id: Index of the hit sphere, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32
    sphere_id: ti.i32


@dataclass
class IntersectionStats:
    """Snapshot of the traversal diagnostic counters.

    Attributes:
        tests: Number of ray-sphere tests performed.
        hits: Number of closest-hit queries that returned a hit.
        invalid_material_hits: Sphere hits discarded for an unregistered
            material index.
    """

    tests: int = 0
    hits: int = 0
    invalid_material_hits: int = 0

    @property
    def hit_rate(self) -> float:
        """Fraction of sphere tests that ended in a reported hit."""
        if self.tests == 0:
            return 0.0
        return self.hits / self.tests


# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Values for the record_stats argument of intersect_scene
STATS_OFF = 0
STATS_ALL = 1
STATS_INVALID_ONLY = 2

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Diagnostic counters
stats_tests = ti.field(dtype=ti.i32, shape=())
stats_hits = ti.field(dtype=ti.i32, shape=())
stats_invalid_material_hits = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres and reset the diagnostic counters."""
    num_spheres[None] = 0
    reset_stats()


def add_sphere_record(center, radius: float, material_id: int = 0) -> int:
    """Store a sphere.

    Values are stored as given; validation belongs to the caller.

    Args:
        center: Sphere center as a vec3 or 3-element sequence.
        radius: Sphere radius.
        material_id: Material index for the sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = vec3(center[0], center[1], center[2])
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_stats() -> IntersectionStats:
    """Read the diagnostic counters."""
    return IntersectionStats(
        tests=int(stats_tests[None]),
        hits=int(stats_hits[None]),
        invalid_material_hits=int(stats_invalid_material_hits[None]),
    )


def reset_stats() -> None:
    """Zero the diagnostic counters."""
    stats_tests[None] = 0
    stats_hits[None] = 0
    stats_invalid_material_hits[None] = 0


@ti.func
def _make_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
        sphere_id=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_max: ti.f32,
    record_stats: ti.i32,
) -> SceneHitRecord:
    """Find the closest sphere hit along a ray.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The ray direction (need not be normalized).
        t_max: Only hits with t below this are considered.
        record_stats: STATS_ALL, STATS_INVALID_ONLY or STATS_OFF.

    Returns:
        The closest valid hit, or a miss record for an invalid ray, an empty
        scene, or no hit.
    """
    closest_t = t_max
    result = _make_miss_record()

    if is_valid_ray(Ray(origin=ray_origin, direction=ray_direction)) == 1:
        n_spheres = num_spheres[None]
        for i in range(n_spheres):
            sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
            rec = hit_sphere(ray_origin, ray_direction, sphere, closest_t)
            if record_stats == STATS_ALL:
                ti.atomic_add(stats_tests[None], 1)
            if rec.hit == 1:
                material_id = sphere_material_ids[i]
                if is_valid_material(material_id):
                    closest_t = rec.t
                    result = SceneHitRecord(
                        hit=1,
                        t=rec.t,
                        point=rec.point,
                        normal=rec.normal,
                        front_face=rec.front_face,
                        material_id=material_id,
                        sphere_id=i,
                    )
                elif record_stats != STATS_OFF:
                    ti.atomic_add(stats_invalid_material_hits[None], 1)

        if record_stats == STATS_ALL and result.hit == 1:
            ti.atomic_add(stats_hits[None], 1)

    return result


@ti.func
def intersect_scene_any(ray_origin: vec3, ray_direction: vec3, t_max: ti.f32) -> ti.i32:
    """Shadow-ray query: 1 if any reportable sphere lies before t_max.

    Uses the same acceptance rules as intersect_scene and never records
    statistics.
    """
    rec = intersect_scene(ray_origin, ray_direction, t_max, STATS_OFF)
    return rec.hit
