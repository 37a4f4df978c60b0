"""Cook-Torrance microfacet BRDF with GGX, Smith and Schlick terms.

The specular BRDF is:
    f_r(wi, wo) = D(h) * G(wi, wo) * F(wo, h) / (4 (n.l)(n.v))

where h = normalize(wi + wo) and:
    D: GGX / Trowbridge-Reitz normal distribution
        D = alpha^2 / (pi ((n.h)^2 (alpha^2 - 1) + 1)^2)
    G: Smith shadowing-masking, separable product of G1 terms
        G1(cos) = 2 / (1 + sqrt(1 + alpha^2 tan^2))
    F: Schlick's Fresnel approximation
        F = F0 + (1 - F0)(1 - v.h)^5

with alpha = roughness^2 and F0 = specular (1 - metallic) + base_color metallic.

Each term is exposed as its own function so it can be tested in isolation.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lightcore.materials.cook_torrance import eval_cook_torrance
    >>> # f = eval_cook_torrance(color, 0.5, 0.0, 0.04, wi, wo, n) in a kernel
"""

import taichi as ti
import taichi.math as tm

from lightcore.core.vector import normalize, vec3


@ti.func
def alpha_from_roughness(roughness: ti.f32) -> ti.f32:
    """Map perceptual roughness to the GGX alpha parameter (roughness^2)."""
    return roughness * roughness


@ti.func
def ggx_distribution(n_dot_h: ti.f32, alpha: ti.f32) -> ti.f32:
    """GGX normal distribution function D.

    Args:
        n_dot_h: Cosine between the normal and the half vector.
        alpha: GGX width parameter.

    Returns:
        The microfacet density, 0 when n.h <= 0 or the denominator vanishes.
    """
    result = 0.0
    if n_dot_h > 0.0:
        alpha2 = alpha * alpha
        inner = n_dot_h * n_dot_h * (alpha2 - 1.0) + 1.0
        if inner > 0.0:
            result = alpha2 / (tm.pi * inner * inner)
    return result


@ti.func
def smith_g1(cos_theta: ti.f32, alpha: ti.f32) -> ti.f32:
    """Smith masking term for a single direction.

    Returns:
        1 at normal incidence, 0 when cos_theta <= 0.
    """
    result = 0.0
    if cos_theta > 0.0:
        cos2 = cos_theta * cos_theta
        sin2 = 1.0 - cos2
        if sin2 <= 0.0:
            result = 1.0
        else:
            tan2 = sin2 / cos2
            result = 2.0 / (1.0 + ti.sqrt(1.0 + alpha * alpha * tan2))
    return result


@ti.func
def smith_g(n_dot_l: ti.f32, n_dot_v: ti.f32, alpha: ti.f32) -> ti.f32:
    """Separable Smith shadowing-masking G = G1(l) G1(v)."""
    return smith_g1(n_dot_l, alpha) * smith_g1(n_dot_v, alpha)


@ti.func
def fresnel_schlick(v_dot_h: ti.f32, f0: vec3) -> vec3:
    """Schlick's Fresnel approximation.

    Args:
        v_dot_h: Cosine between view direction and half vector, clamped to
            [0, 1].
        f0: Reflectance at normal incidence.

    Returns:
        F0 at v.h = 1, rising to 1 at grazing angles.
    """
    c = tm.clamp(v_dot_h, 0.0, 1.0)
    return f0 + (1.0 - f0) * ((1.0 - c) ** 5)


@ti.func
def compute_f0(base_color: vec3, metallic: ti.f32, specular: ti.f32) -> vec3:
    """Blend dielectric and metallic reflectance at normal incidence."""
    dielectric = vec3(specular, specular, specular)
    return dielectric * (1.0 - metallic) + base_color * metallic


def f0_from_ior(ior: float) -> float:
    """Reflectance at normal incidence for an interface with air.

    Args:
        ior: Index of refraction of the material.

    Returns:
        ((ior - 1) / (ior + 1))^2, e.g. 0.04 for ior = 1.5.
    """
    r = (ior - 1.0) / (ior + 1.0)
    return r * r


@ti.func
def eval_cook_torrance(
    base_color: vec3,
    roughness: ti.f32,
    metallic: ti.f32,
    specular: ti.f32,
    wi: vec3,
    wo: vec3,
    n: vec3,
) -> vec3:
    """Evaluate the Cook-Torrance specular BRDF.

    Args:
        base_color: Base reflectance used for metallic F0.
        roughness: Perceptual roughness (alpha = roughness^2).
        metallic: Metalness blending factor.
        specular: Dielectric F0.
        wi: Unit direction toward the light.
        wo: Unit direction toward the viewer.
        n: Unit surface normal.

    Returns:
        The BRDF value, zero when either direction is below the surface or
        the denominator is not positive.
    """
    result = vec3(0.0, 0.0, 0.0)

    n_dot_l = ti.max(tm.dot(n, wi), 0.0)
    n_dot_v = ti.max(tm.dot(n, wo), 0.0)

    if n_dot_l > 0.0 and n_dot_v > 0.0:
        h = normalize(wi + wo)
        n_dot_h = ti.max(tm.dot(n, h), 0.0)
        v_dot_h = ti.max(tm.dot(wo, h), 0.0)

        alpha = alpha_from_roughness(roughness)
        d = ggx_distribution(n_dot_h, alpha)
        g = smith_g(n_dot_l, n_dot_v, alpha)
        f = fresnel_schlick(v_dot_h, compute_f0(base_color, metallic, specular))

        denominator = 4.0 * n_dot_l * n_dot_v
        if denominator > 0.0:
            result = f * (d * g / denominator)

    return result
