"""CPU light-transport core built on Taichi.

This package computes direct illumination for rays cast into a scene of
spheres, with support for:
- Closest-hit ray/sphere intersection with a linear scene scan
- Lambert and Cook-Torrance (GGX / Smith / Schlick) BRDFs
- Point, directional and area lights with shadow rays
- Per-light reproducible random streams for area-light sampling

Subpackages:
    core: Vector math, rays, random streams and the direct-lighting integrator
    geometry: Sphere primitive and intersection
    materials: BRDF models and the material registry
    lights: Light models, sampling and shadow testing
    scene: Scene storage, traversal and the Scene facade

Taichi must be initialized (``ti.init(arch=ti.cpu)``) before any module that
allocates fields is imported.
"""

__version__ = "0.1.0"
