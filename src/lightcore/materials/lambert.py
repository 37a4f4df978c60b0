"""Lambert (ideal diffuse) BRDF.

The evaluation returns the reflectance ``base_color`` for every pair of
directions. The geometric cosine term and any 1/pi normalization are left to
the caller that assembles the rendering equation, so eval_lambert(c) == c.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lightcore.materials.lambert import eval_lambert
    >>> # f = eval_lambert(base_color) inside a kernel
"""

import taichi as ti

from lightcore.core.vector import vec3


@ti.func
def eval_lambert(base_color: vec3) -> vec3:
    """Evaluate the Lambert BRDF.

    Independent of the incident and outgoing directions.

    Args:
        base_color: The diffuse reflectance.

    Returns:
        The reflectance base_color (no cosine, no 1/pi).
    """
    return base_color


@ti.func
def lambert_hemispherical_reflectance(base_color: vec3) -> vec3:
    """Fraction of incident light reflected over the hemisphere."""
    return base_color
