"""Geometric primitives.

Components:
    sphere: Sphere dataclass, ray-sphere intersection and parameter clamping
"""

from .sphere import (
    T_MIN,
    HitRecord,
    Sphere,
    clamp_sphere_parameters,
    hit_sphere,
    sphere_surface_area,
    sphere_volume,
    validate_sphere_geometry,
)

__all__ = [
    "T_MIN",
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "sphere_surface_area",
    "sphere_volume",
    "validate_sphere_geometry",
    "clamp_sphere_parameters",
]
