"""Light models, sampling and shadow testing.

Components:
    base: LightKind enumeration and host-side light parameters
    point: Isotropic point emitter (inverse-square falloff)
    directional: Parallel light from infinity
    area: One-sided rectangular emitter sampled per call
    registry: Light storage fields, dispatch and shadow rays

The registry allocates Taichi fields at import time and is not imported here.
"""

from .base import (
    AreaLightParams,
    DirectionalLightParams,
    LightKind,
    PointLightParams,
    light_params_from_dict,
)
from .directional import LIGHT_INFINITY, illuminate_directional, sample_directional_direction
from .point import illuminate_point, sample_point_direction
from .area import illuminate_area, sample_area_direction, sample_area_point

__all__ = [
    "LightKind",
    "PointLightParams",
    "DirectionalLightParams",
    "AreaLightParams",
    "light_params_from_dict",
    "LIGHT_INFINITY",
    "illuminate_point",
    "sample_point_direction",
    "illuminate_directional",
    "sample_directional_direction",
    "illuminate_area",
    "sample_area_direction",
    "sample_area_point",
]
