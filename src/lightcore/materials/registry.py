"""Material storage and BRDF dispatch.

Materials live in Structure-of-Arrays Taichi fields indexed by material id.
Every slot stores the full parameter set; the kind decides which parameters
the BRDF reads. Dispatch is a closed set of kind comparisons, and an id
outside the registered range evaluates to a zero BRDF.
"""

import taichi as ti
import taichi.math as tm

from lightcore.core.vector import vec3
from lightcore.materials.base import MaterialKind
from lightcore.materials.cook_torrance import eval_cook_torrance
from lightcore.materials.lambert import eval_lambert

# Maximum number of materials supported
MAX_MATERIALS = 256

material_kinds = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_base_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_roughness = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_metallic = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_specular = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all registered materials.

    Only the count is reset; stale slots are overwritten on insertion.
    """
    num_materials[None] = 0


def add_material_record(
    kind: MaterialKind,
    base_color: tuple[float, float, float],
    roughness: float,
    metallic: float,
    specular: float,
) -> int:
    """Store a material's parameters.

    Values are stored as given; range checks belong to the caller.

    Returns:
        The material id.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")
    material_kinds[idx] = int(kind)
    material_base_colors[idx] = vec3(base_color[0], base_color[1], base_color[2])
    material_roughness[idx] = roughness
    material_metallic[idx] = metallic
    material_specular[idx] = specular
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of registered materials."""
    return int(num_materials[None])


@ti.func
def is_valid_material(material_id: ti.i32) -> ti.i32:
    """1 if material_id refers to a registered material, 0 otherwise."""
    return material_id >= 0 and material_id < num_materials[None]


@ti.func
def get_material_kind(material_id: ti.i32) -> ti.i32:
    """Material kind for an id, or -1 for an unregistered id."""
    result = -1
    if is_valid_material(material_id):
        result = material_kinds[material_id]
    return result


@ti.func
def evaluate_brdf(material_id: ti.i32, wi: vec3, wo: vec3, n: vec3) -> vec3:
    """Evaluate the BRDF of a registered material.

    Args:
        material_id: Index into the material fields.
        wi: Unit direction toward the light.
        wo: Unit direction toward the viewer.
        n: Unit surface normal.

    Returns:
        The BRDF value, zero for an unregistered id.
    """
    result = vec3(0.0, 0.0, 0.0)
    kind = get_material_kind(material_id)
    if kind == int(MaterialKind.LAMBERT):
        result = eval_lambert(material_base_colors[material_id])
    elif kind == int(MaterialKind.COOK_TORRANCE):
        result = eval_cook_torrance(
            material_base_colors[material_id],
            material_roughness[material_id],
            material_metallic[material_id],
            material_specular[material_id],
            wi,
            wo,
            n,
        )
    return result


@ti.func
def scatter_light(material_id: ti.i32, wi: vec3, wo: vec3, n: vec3, incident: vec3) -> vec3:
    """Reflected radiance f_r * L_i * max(0, n.wi) for one light sample."""
    cos_theta = ti.max(tm.dot(n, wi), 0.0)
    return evaluate_brdf(material_id, wi, wo, n) * incident * cos_theta
