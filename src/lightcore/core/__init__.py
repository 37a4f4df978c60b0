"""Core building blocks: vectors, rays, random streams and the integrator.

Components:
    vector: vec3/point3 math and NumPy host helpers
    ray: Ray data structure, validity and distance queries
    rng: Per-light xorshift32 random streams
    integrator: Direct-lighting evaluation over the scene

The integrator depends on the scene and light registries, so it is not
imported here to avoid circular imports. Import it directly from
lightcore.core.integrator when needed.
"""

from .ray import (
    Ray,
    distance_to_point,
    is_direction_normalized,
    is_valid_ray,
    is_valid_ray_host,
    make_ray,
    normalized_ray,
    ray_at,
)
from .rng import derive_stream_state, state_from_seed, state_to_uniform, xorshift32
from .vector import (
    build_onb_from_normal,
    cross,
    distance,
    distance_squared,
    dot,
    is_finite,
    length,
    length_squared,
    near_zero,
    normalize,
    point3,
    reflect,
    vec3,
)

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "is_valid_ray",
    "is_valid_ray_host",
    "is_direction_normalized",
    "normalized_ray",
    "distance_to_point",
    "xorshift32",
    "state_to_uniform",
    "derive_stream_state",
    "state_from_seed",
    "vec3",
    "point3",
    "dot",
    "cross",
    "length",
    "length_squared",
    "normalize",
    "is_finite",
    "distance",
    "distance_squared",
    "near_zero",
    "reflect",
    "build_onb_from_normal",
]
