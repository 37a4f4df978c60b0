"""Scene facade coordinating spheres, materials and lights.

The Scene class is the host-side entry point. It validates and clamps every
construction parameter before it reaches the Taichi fields, tracks what was
added for introspection and serialization, and exposes Python-callable
queries that launch small kernels over the device functions.

There is one active scene per process: all Scene instances share the
module-level fields, and constructing a Scene clears them. The previously
active instance loses its records at the same time, so its introspection
and export agree with the now-empty fields. The scene must be fully built
before queries are issued and is not thread-safe.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lightcore.scene.manager import Scene
    >>> scene = Scene(seed=7)
    >>> red = scene.add_lambert_material(base_color=(0.8, 0.1, 0.1))
    >>> scene.add_sphere(center=(0, 0, -5), radius=1.0, material_index=red)
    >>> scene.add_point_light(position=(0, 5, 0), color=(1, 1, 1), intensity=100)
    >>> hit = scene.intersect((0, 0, 0), (0, 0, -1))
    >>> color = scene.shade((0, 0, 0), (0, 0, -1))
"""

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import taichi as ti

from lightcore.core.integrator import render_rays, trace_radiance_host
from lightcore.core.rng import derive_stream_state, state_from_seed
from lightcore.core.vector import as_vec3_tuple, vec3
from lightcore.geometry.sphere import clamp_sphere_parameters, validate_sphere_geometry
from lightcore.lights.base import (
    AreaLightParams,
    DirectionalLightParams,
    LightParams,
    PointLightParams,
    light_params_from_dict,
)
from lightcore.lights.registry import (
    MAX_LIGHTS,
    add_area_light_record,
    add_directional_light_record,
    add_point_light_record,
    clear_lights,
    get_light_count,
    illuminate,
    is_occluded,
    sample_direction,
)
from lightcore.materials.base import MaterialKind, MaterialParams
from lightcore.materials.registry import (
    MAX_MATERIALS,
    add_material_record,
    clear_materials,
    evaluate_brdf,
    get_material_count,
)
from lightcore.scene.intersection import (
    MAX_SPHERES,
    STATS_ALL,
    STATS_INVALID_ONLY,
    IntersectionStats,
    add_sphere_record,
    clear_scene,
    get_sphere_count,
    get_stats,
    intersect_scene,
    reset_stats,
)

logger = logging.getLogger(__name__)

DEFAULT_SEED = 0

# The Scene whose records mirror the module-level fields
_active_scene = None


@dataclass
class Intersection:
    """Host-side result of a closest-hit query.

    Attributes:
        hit: Whether the ray hit a sphere with a registered material.
        t: Ray parameter of the hit, 0.0 on a miss.
        point: Hit point.
        normal: Unit outward normal of the hit sphere.
        front_face: Whether the ray arrived from outside the sphere.
        material_index: Material of the hit sphere, -1 on a miss.
        sphere_index: Index of the hit sphere, -1 on a miss.
    """

    hit: bool
    t: float = 0.0
    point: tuple[float, float, float] = (0.0, 0.0, 0.0)
    normal: tuple[float, float, float] = (0.0, 0.0, 0.0)
    front_face: bool = False
    material_index: int = -1
    sphere_index: int = -1


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_index: Index in the material registry.
        params: The clamped parameters that were stored.
    """

    material_index: int
    params: MaterialParams


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: Index in the sphere storage arrays.
        center: The stored center.
        radius: The stored radius.
        material_index: The material assigned to the sphere.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_index: int


@dataclass
class LightInfo:
    """Information about a registered light.

    Attributes:
        light_index: Index in the light registry.
        params: The clamped parameters that were stored.
        rng_state: Starting random state (area lights only, else 0).
    """

    light_index: int
    params: LightParams
    rng_state: int = 0


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        seed: Scene seed from which area-light streams are derived.
        materials: List of material configurations.
        spheres: List of sphere configurations.
        lights: List of light configurations.
    """

    seed: int = DEFAULT_SEED
    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)
    lights: list[dict[str, Any]] = field(default_factory=list)


# =============================================================================
# Query kernels
# =============================================================================

_q_hit = ti.field(dtype=ti.i32, shape=())
_q_t = ti.field(dtype=ti.f32, shape=())
_q_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_q_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_q_front_face = ti.field(dtype=ti.i32, shape=())
_q_material_id = ti.field(dtype=ti.i32, shape=())
_q_sphere_id = ti.field(dtype=ti.i32, shape=())

_q_radiance = ti.Vector.field(3, dtype=ti.f32, shape=())
_q_direction = ti.Vector.field(3, dtype=ti.f32, shape=())
_q_scalar = ti.field(dtype=ti.f32, shape=())


@ti.kernel
def _query_intersect(origin: vec3, direction: vec3, t_max: ti.f32, record_stats: ti.i32):
    rec = intersect_scene(origin, direction, t_max, record_stats)
    _q_hit[None] = rec.hit
    _q_t[None] = rec.t
    _q_point[None] = rec.point
    _q_normal[None] = rec.normal
    _q_front_face[None] = rec.front_face
    _q_material_id[None] = rec.material_id
    _q_sphere_id[None] = rec.sphere_id


@ti.kernel
def _query_illuminate(light_id: ti.i32, point: vec3):
    radiance, direction, dist = illuminate(light_id, point)
    _q_radiance[None] = radiance
    _q_direction[None] = direction
    _q_scalar[None] = dist


@ti.kernel
def _query_sample_direction(light_id: ti.i32, point: vec3):
    direction, pdf = sample_direction(light_id, point)
    _q_direction[None] = direction
    _q_scalar[None] = pdf


@ti.kernel
def _query_occluded(point: vec3, direction: vec3, distance: ti.f32) -> ti.i32:
    return is_occluded(point, direction, distance)


@ti.kernel
def _query_brdf(material_id: ti.i32, wi: vec3, wo: vec3, n: vec3) -> vec3:
    return evaluate_brdf(material_id, wi, wo, n)


def _to_vec3(values) -> vec3:
    return vec3(float(values[0]), float(values[1]), float(values[2]))


def _vec_tuple(v) -> tuple[float, float, float]:
    return (float(v[0]), float(v[1]), float(v[2]))


def _warn_invalid_hits(before: int) -> None:
    after = get_stats().invalid_material_hits
    if after > before:
        logger.warning(
            "%d ray(s) hit a sphere with an unregistered material; the hit was skipped",
            after - before,
        )


class Scene:
    """The scene: spheres, materials and lights, plus queries over them.

    Construction methods never raise for bad parameter values: they clamp
    and log a warning, or return -1 with a logged error when a sphere
    references an unknown material. Exceeding field capacity raises
    RuntimeError.

    Attributes:
        seed: Scene seed used to derive area-light random streams.
        materials: MaterialInfo for each registered material.
        spheres: SphereInfo for each sphere.
        lights: LightInfo for each light.

    Example:
        >>> scene = Scene()
        >>> gold = scene.add_cook_torrance_material((1.0, 0.78, 0.34), 0.3, 1.0)
        >>> scene.add_sphere((0, 0, -3), 1.0, gold)
        >>> scene.add_directional_light(direction=(0, -1, 0), intensity=3.0)
    """

    def __init__(self, seed: int = DEFAULT_SEED) -> None:
        """Initialize an empty scene, clearing any previous scene data."""
        self.seed = int(seed)
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.lights: list[LightInfo] = []
        self._clear_all()
        self._activate()

    def _activate(self) -> None:
        """Make this the active scene and empty the records of the previous one."""
        global _active_scene
        previous = _active_scene
        if previous is not None and previous is not self:
            previous.materials.clear()
            previous.spheres.clear()
            previous.lights.clear()
            logger.debug("Previous scene released; its records were cleared")
        _active_scene = self

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_materials()
        clear_lights()
        self.materials.clear()
        self.spheres.clear()
        self.lights.clear()

    def clear(self) -> None:
        """Remove every sphere, material and light and reset diagnostics."""
        self._clear_all()
        logger.debug("Scene cleared")

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_material(self, params: MaterialParams) -> int:
        """Register a material.

        Out-of-range values are clamped with a warning.

        Returns:
            The material index.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
        """
        stored = params.clamped()
        idx = add_material_record(
            stored.kind,
            stored.base_color,
            stored.roughness,
            stored.metallic,
            stored.specular,
        )
        self.materials.append(MaterialInfo(material_index=idx, params=stored))
        logger.debug("Added %s material %d", stored.kind.name.lower(), idx)
        return idx

    def add_lambert_material(self, base_color: tuple[float, float, float] = (0.7, 0.7, 0.7)) -> int:
        """Register a Lambert (diffuse) material.

        Args:
            base_color: Diffuse reflectance, each component in [0, 1].

        Returns:
            The material index.
        """
        return self.add_material(MaterialParams(kind=MaterialKind.LAMBERT, base_color=base_color))

    def add_cook_torrance_material(
        self,
        base_color: tuple[float, float, float] = (0.7, 0.7, 0.7),
        roughness: float = 0.5,
        metallic: float = 0.0,
        specular: float = 0.04,
    ) -> int:
        """Register a Cook-Torrance microfacet material.

        Args:
            base_color: Base reflectance, each component in [0, 1].
            roughness: Perceptual roughness in [0.01, 1].
            metallic: Metalness in [0, 1].
            specular: Dielectric reflectance at normal incidence in [0, 1].

        Returns:
            The material index.
        """
        return self.add_material(
            MaterialParams(
                kind=MaterialKind.COOK_TORRANCE,
                base_color=base_color,
                roughness=roughness,
                metallic=metallic,
                specular=specular,
            )
        )

    def get_material_count(self) -> int:
        """Get the number of registered materials."""
        return get_material_count()

    def get_material_info(self, material_index: int) -> MaterialInfo | None:
        """Get information about a material, or None for an unknown index."""
        if 0 <= material_index < len(self.materials):
            return self.materials[material_index]
        return None

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_index: int,
    ) -> int:
        """Add a sphere to the scene.

        Out-of-range geometry is clamped with a warning. A material index
        that is not registered rejects the sphere.

        Args:
            center: The center point as (x, y, z).
            radius: The radius, clamped into (0, 1000].
            material_index: A registered material index.

        Returns:
            The sphere index, or -1 if the sphere was rejected.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
        """
        material_c = int(material_index)
        if not 0 <= material_c < get_material_count():
            logger.error(
                "Rejecting sphere: material index %d is out of range (%d materials)",
                material_c,
                get_material_count(),
            )
            return -1

        center_c, radius_c = clamp_sphere_parameters(center, radius)
        if not validate_sphere_geometry(center_c, radius_c):
            logger.error("Rejecting sphere: invalid geometry center=%s radius=%s", center_c, radius_c)
            return -1

        idx = add_sphere_record(center_c, radius_c, material_c)
        self.spheres.append(
            SphereInfo(
                sphere_index=idx,
                center=center_c,
                radius=radius_c,
                material_index=material_c,
            )
        )
        logger.debug("Added sphere %d (material %d)", idx, material_c)
        return idx

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    def get_sphere_info(self, sphere_index: int) -> SphereInfo | None:
        """Get information about a sphere, or None for an unknown index."""
        if 0 <= sphere_index < len(self.spheres):
            return self.spheres[sphere_index]
        return None

    # =========================================================================
    # Light Management
    # =========================================================================

    def add_light(self, params: LightParams) -> int:
        """Register a light of any kind.

        Parameters are clamped with a warning. Area lights get a random
        stream seeded from params.seed when set, else from the scene seed and
        the light index.

        Returns:
            The light index.

        Raises:
            RuntimeError: If the maximum number of lights is exceeded.
            TypeError: If params is not a known light parameter type.
        """
        rng_state = 0
        if isinstance(params, PointLightParams):
            stored = params.clamped()
            idx = add_point_light_record(stored.position, stored.color, stored.intensity)
        elif isinstance(params, DirectionalLightParams):
            stored = params.clamped()
            idx = add_directional_light_record(stored.direction, stored.color, stored.intensity)
        elif isinstance(params, AreaLightParams):
            stored = params.clamped()
            next_index = get_light_count()
            if stored.seed is None:
                rng_state = derive_stream_state(self.seed, next_index)
            else:
                rng_state = state_from_seed(stored.seed)
            u_axis, v_axis = stored.basis()
            idx = add_area_light_record(
                stored.center,
                stored.normal,
                u_axis,
                v_axis,
                stored.width,
                stored.height,
                stored.color,
                stored.intensity,
                rng_state,
            )
        else:
            raise TypeError(f"Unsupported light parameters: {type(params).__name__}")

        self.lights.append(LightInfo(light_index=idx, params=stored, rng_state=rng_state))
        logger.debug("Added %s light %d", stored.kind.name.lower(), idx)
        return idx

    def add_point_light(
        self,
        position: tuple[float, float, float],
        color: tuple[float, float, float] = (1.0, 1.0, 1.0),
        intensity: float = 1.0,
    ) -> int:
        """Register a point light. Returns the light index."""
        return self.add_light(PointLightParams(position=position, color=color, intensity=intensity))

    def add_directional_light(
        self,
        direction: tuple[float, float, float],
        color: tuple[float, float, float] = (1.0, 1.0, 1.0),
        intensity: float = 1.0,
    ) -> int:
        """Register a directional light; direction is the way light travels."""
        return self.add_light(
            DirectionalLightParams(direction=direction, color=color, intensity=intensity)
        )

    def add_area_light(
        self,
        center: tuple[float, float, float],
        normal: tuple[float, float, float],
        width: float,
        height: float,
        color: tuple[float, float, float] = (1.0, 1.0, 1.0),
        intensity: float = 1.0,
        seed: int | None = None,
    ) -> int:
        """Register a one-sided rectangular area light.

        Args:
            center: Rectangle center.
            normal: Emitting side normal.
            width: Extent along the derived u axis, clamped to [0.01, 100].
            height: Extent along the derived v axis, clamped to [0.01, 100].
            color: Light color in [0, 1].
            intensity: Non-negative intensity.
            seed: Optional explicit seed for this light's random stream.

        Returns:
            The light index.
        """
        return self.add_light(
            AreaLightParams(
                center=center,
                normal=normal,
                width=width,
                height=height,
                color=color,
                intensity=intensity,
                seed=seed,
            )
        )

    def get_light_count(self) -> int:
        """Get the number of registered lights."""
        return get_light_count()

    def get_light_info(self, light_index: int) -> LightInfo | None:
        """Get information about a light, or None for an unknown index."""
        if 0 <= light_index < len(self.lights):
            return self.lights[light_index]
        return None

    # =========================================================================
    # Queries
    # =========================================================================

    def intersect(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        record_stats: bool = True,
        t_max: float = math.inf,
    ) -> Intersection:
        """Find the closest hit along a ray.

        Args:
            origin: Ray origin.
            direction: Ray direction (need not be normalized).
            record_stats: Update the diagnostic counters. Hits on spheres with
                an unregistered material are counted either way.
            t_max: Only hits closer than this are reported.

        Returns:
            An Intersection; hit is False on a miss or for an invalid ray.
        """
        limit = min(float(t_max), 1e30)
        mode = STATS_ALL if record_stats else STATS_INVALID_ONLY
        before = get_stats().invalid_material_hits
        _query_intersect(_to_vec3(origin), _to_vec3(direction), limit, mode)
        _warn_invalid_hits(before)
        if _q_hit[None] == 0:
            return Intersection(hit=False)
        return Intersection(
            hit=True,
            t=float(_q_t[None]),
            point=_vec_tuple(_q_point[None]),
            normal=_vec_tuple(_q_normal[None]),
            front_face=bool(_q_front_face[None]),
            material_index=int(_q_material_id[None]),
            sphere_index=int(_q_sphere_id[None]),
        )

    def illuminate(
        self, light_index: int, point: tuple[float, float, float]
    ) -> tuple[tuple[float, float, float], tuple[float, float, float], float]:
        """Incident light at a point from one light.

        Area lights draw a new sample on every call.

        Returns:
            Tuple (radiance, unit direction toward the light, distance).
        """
        _query_illuminate(int(light_index), _to_vec3(point))
        return (
            _vec_tuple(_q_radiance[None]),
            _vec_tuple(_q_direction[None]),
            float(_q_scalar[None]),
        )

    def sample_light_direction(
        self, light_index: int, point: tuple[float, float, float]
    ) -> tuple[tuple[float, float, float], float]:
        """Sample a direction toward a light.

        Returns:
            Tuple (unit direction, pdf).
        """
        _query_sample_direction(int(light_index), _to_vec3(point))
        return _vec_tuple(_q_direction[None]), float(_q_scalar[None])

    def is_occluded(
        self,
        point: tuple[float, float, float],
        direction: tuple[float, float, float],
        distance: float,
    ) -> bool:
        """Whether a sphere blocks the segment from point toward a light.

        Args:
            point: Shading point.
            direction: Unit direction toward the light.
            distance: Distance to the light.
        """
        limit = min(float(distance), 1e30)
        return bool(_query_occluded(_to_vec3(point), _to_vec3(direction), limit))

    def evaluate_brdf(
        self,
        material_index: int,
        wi: tuple[float, float, float],
        wo: tuple[float, float, float],
        normal: tuple[float, float, float],
    ) -> tuple[float, float, float]:
        """Evaluate a registered material's BRDF.

        Returns:
            The BRDF value; zero for an unknown material index.
        """
        value = _query_brdf(int(material_index), _to_vec3(wi), _to_vec3(wo), _to_vec3(normal))
        return _vec_tuple(value)

    def shade(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        record_stats: bool = False,
    ) -> tuple[float, float, float]:
        """Direct-lighting radiance seen along a ray."""
        before = get_stats().invalid_material_hits
        color = trace_radiance_host(origin, direction, record_stats)
        _warn_invalid_hits(before)
        return color

    def shade_rays(self, origins, directions, record_stats: bool = False) -> np.ndarray:
        """Direct-lighting radiance for a batch of rays.

        Args:
            origins: Array-like of shape (N, 3).
            directions: Array-like of shape (N, 3).
            record_stats: Update the diagnostic counters.

        Returns:
            float32 array of shape (N, 3).
        """
        before = get_stats().invalid_material_hits
        out = render_rays(origins, directions, record_stats)
        _warn_invalid_hits(before)
        return out

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def get_stats(self) -> IntersectionStats:
        """Snapshot of the traversal diagnostic counters."""
        return get_stats()

    def reset_stats(self) -> None:
        """Zero the traversal diagnostic counters."""
        reset_stats()

    def describe(self) -> str:
        """Human-readable summary of scene contents and diagnostics."""
        stats = get_stats()
        lines = [
            "Scene statistics:",
            f"  Spheres: {self.get_sphere_count()}",
            f"  Materials: {self.get_material_count()}",
            f"  Lights: {self.get_light_count()}",
            f"  Intersection tests: {stats.tests}",
            f"  Hits: {stats.hits}",
            f"  Hit rate: {stats.hit_rate * 100.0:.2f}%",
            f"  Invalid material hits: {stats.invalid_material_hits}",
        ]
        for info in self.spheres:
            cx, cy, cz = info.center
            lines.append(
                f"  Sphere {info.sphere_index}: center=({cx:g}, {cy:g}, {cz:g}) "
                f"radius={info.radius:g} material={info.material_index}"
            )
        for info in self.materials:
            r, g, b = info.params.base_color
            line = (
                f"  Material {info.material_index}: {info.params.kind.name.lower()} "
                f"base_color=({r:g}, {g:g}, {b:g})"
            )
            if info.params.kind == MaterialKind.COOK_TORRANCE:
                line += (
                    f" roughness={info.params.roughness:g} metallic={info.params.metallic:g}"
                    f" specular={info.params.specular:g}"
                )
            lines.append(line)
        for info in self.lights:
            lines.append(
                f"  Light {info.light_index}: {info.params.kind.name.lower()} "
                f"intensity={info.params.intensity:g}"
            )
        return "\n".join(lines)

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig(seed=self.seed)
        for mat in self.materials:
            config.materials.append(mat.params.to_dict())
        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_index": sphere.material_index,
                }
            )
        for light in self.lights:
            config.lights.append(light.params.to_dict())
        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene first. Materials are loaded before spheres
        so that sphere material indices resolve.

        Raises:
            ValueError: If a material or light type is unknown or a sphere
                center does not have three components.
        """
        self.clear()
        self.seed = int(config.seed)

        for mat_config in config.materials:
            self.add_material(MaterialParams.from_dict(mat_config))

        for sphere_config in config.spheres:
            center = as_vec3_tuple(sphere_config.get("center", [0.0, 0.0, 0.0]))
            radius = sphere_config.get("radius", 1.0)
            material_index = sphere_config.get("material_index", 0)
            self.add_sphere(center, radius, material_index)

        for light_config in config.lights:
            self.add_light(light_params_from_dict(light_config))

        logger.info(
            "Loaded scene: %d spheres, %d materials, %d lights",
            self.get_sphere_count(),
            self.get_material_count(),
            self.get_light_count(),
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "seed": config.seed,
            "materials": config.materials,
            "spheres": config.spheres,
            "lights": config.lights,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary produced by to_dict()."""
        config = SceneConfig(
            seed=data.get("seed", DEFAULT_SEED),
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
            lights=data.get("lights", []),
        )
        self.from_config(config)

    def save_json(self, path: str | Path) -> None:
        """Write the scene configuration to a JSON file."""
        Path(path).write_text(json.dumps(self.to_dict(), indent=2))

    def load_json(self, path: str | Path) -> None:
        """Replace the scene with the configuration stored in a JSON file."""
        self.from_dict(json.loads(Path(path).read_text()))

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS

    @staticmethod
    def get_max_lights() -> int:
        """Get the maximum number of lights supported."""
        return MAX_LIGHTS
