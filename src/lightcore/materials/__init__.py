"""Material models and the material registry.

Components:
    base: MaterialKind enumeration and host-side MaterialParams
    lambert: Ideal diffuse BRDF
    cook_torrance: GGX / Smith / Schlick microfacet BRDF
    registry: Material storage fields and BRDF dispatch

The registry allocates Taichi fields at import time, so it is not imported
here; use ``from lightcore.materials.registry import ...`` after ti.init().
"""

from .base import MaterialKind, MaterialParams
from .cook_torrance import (
    alpha_from_roughness,
    compute_f0,
    eval_cook_torrance,
    f0_from_ior,
    fresnel_schlick,
    ggx_distribution,
    smith_g,
    smith_g1,
)
from .lambert import eval_lambert, lambert_hemispherical_reflectance

__all__ = [
    "MaterialKind",
    "MaterialParams",
    "eval_lambert",
    "lambert_hemispherical_reflectance",
    "alpha_from_roughness",
    "compute_f0",
    "eval_cook_torrance",
    "f0_from_ior",
    "fresnel_schlick",
    "ggx_distribution",
    "smith_g",
    "smith_g1",
]
