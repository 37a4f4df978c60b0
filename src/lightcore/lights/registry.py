"""Light storage, dispatch and shadow testing.

Lights live in Structure-of-Arrays Taichi fields indexed by light id. Each
slot stores every attribute any kind might need; the kind selects which ones
are read. Area lights additionally own a xorshift32 state in
``light_rng_states`` which is advanced on every sample, so each light's
sequence is independent of how often other lights are sampled.
"""

import taichi as ti

from lightcore.core.rng import state_to_uniform, xorshift32
from lightcore.core.vector import vec3
from lightcore.lights.area import illuminate_area, sample_area_direction
from lightcore.lights.base import LightKind
from lightcore.lights.directional import (
    LIGHT_INFINITY,
    illuminate_directional,
    sample_directional_direction,
)
from lightcore.lights.point import illuminate_point, sample_point_direction
from lightcore.scene.intersection import STATS_OFF, intersect_scene

# Maximum number of lights supported
MAX_LIGHTS = 64

# Offset applied to shadow-ray origins and subtracted from the light distance
SHADOW_EPSILON = 1e-3

light_kinds = ti.field(dtype=ti.i32, shape=MAX_LIGHTS)
light_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_intensities = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)
light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_directions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_u_axes = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_v_axes = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_widths = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)
light_heights = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)
light_rng_states = ti.field(dtype=ti.u32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_lights() -> None:
    """Clear all registered lights."""
    num_lights[None] = 0


def _zero() -> vec3:
    return vec3(0.0, 0.0, 0.0)


def _next_index() -> int:
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    return idx


def _store_common(idx: int, kind: LightKind, color, intensity: float) -> None:
    light_kinds[idx] = int(kind)
    light_colors[idx] = vec3(color[0], color[1], color[2])
    light_intensities[idx] = intensity
    light_positions[idx] = _zero()
    light_directions[idx] = _zero()
    light_normals[idx] = _zero()
    light_u_axes[idx] = _zero()
    light_v_axes[idx] = _zero()
    light_widths[idx] = 0.0
    light_heights[idx] = 0.0
    light_rng_states[idx] = 0


def add_point_light_record(position, color, intensity: float) -> int:
    """Store a point light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    idx = _next_index()
    _store_common(idx, LightKind.POINT, color, intensity)
    light_positions[idx] = vec3(position[0], position[1], position[2])
    num_lights[None] = idx + 1
    return idx


def add_directional_light_record(direction, color, intensity: float) -> int:
    """Store a directional light; direction must already be unit length.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    idx = _next_index()
    _store_common(idx, LightKind.DIRECTIONAL, color, intensity)
    light_directions[idx] = vec3(direction[0], direction[1], direction[2])
    num_lights[None] = idx + 1
    return idx


def add_area_light_record(
    center,
    normal,
    u_axis,
    v_axis,
    width: float,
    height: float,
    color,
    intensity: float,
    rng_state: int,
) -> int:
    """Store an area light with its tangent basis and starting random state.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
        ValueError: If rng_state is zero.
    """
    if rng_state == 0:
        raise ValueError("Area light random state must be non-zero")
    idx = _next_index()
    _store_common(idx, LightKind.AREA, color, intensity)
    light_positions[idx] = vec3(center[0], center[1], center[2])
    light_normals[idx] = vec3(normal[0], normal[1], normal[2])
    light_u_axes[idx] = vec3(u_axis[0], u_axis[1], u_axis[2])
    light_v_axes[idx] = vec3(v_axis[0], v_axis[1], v_axis[2])
    light_widths[idx] = width
    light_heights[idx] = height
    light_rng_states[idx] = rng_state
    num_lights[None] = idx + 1
    return idx


def get_light_count() -> int:
    """Get the number of registered lights."""
    return int(num_lights[None])


def get_light_rng_state(light_id: int) -> int:
    """Current random state of a light (0 for non-area lights)."""
    return int(light_rng_states[light_id])


@ti.func
def next_light_uniform(light_id: ti.i32) -> ti.f32:
    """Advance a light's random stream and return a uniform in [0, 1)."""
    state = xorshift32(light_rng_states[light_id])
    light_rng_states[light_id] = state
    return state_to_uniform(state)


@ti.func
def illuminate(light_id: ti.i32, point: vec3):
    """Incident radiance at a point from one light.

    Area lights consume two numbers from their stream per call.

    Returns:
        Tuple (radiance, direction toward the light, distance to the light).
        An unregistered id yields zero radiance.
    """
    radiance = vec3(0.0, 0.0, 0.0)
    direction = vec3(0.0, 0.0, 1.0)
    dist = 0.0

    if 0 <= light_id < num_lights[None]:
        kind = light_kinds[light_id]
        if kind == int(LightKind.POINT):
            radiance, direction, dist = illuminate_point(
                light_positions[light_id],
                light_colors[light_id],
                light_intensities[light_id],
                point,
            )
        elif kind == int(LightKind.DIRECTIONAL):
            radiance, direction, dist = illuminate_directional(
                light_directions[light_id],
                light_colors[light_id],
                light_intensities[light_id],
            )
        elif kind == int(LightKind.AREA):
            s = next_light_uniform(light_id)
            t = next_light_uniform(light_id)
            radiance, direction, dist = illuminate_area(
                light_positions[light_id],
                light_normals[light_id],
                light_u_axes[light_id],
                light_v_axes[light_id],
                light_widths[light_id],
                light_heights[light_id],
                light_colors[light_id],
                light_intensities[light_id],
                point,
                s,
                t,
            )

    return radiance, direction, dist


@ti.func
def sample_direction(light_id: ti.i32, point: vec3):
    """Sample a direction toward a light.

    Returns:
        Tuple (direction, pdf). Point and directional lights have a single
        direction with pdf 1; area lights report a solid-angle pdf. An
        unregistered id yields pdf 0.
    """
    direction = vec3(0.0, 0.0, 1.0)
    pdf = 0.0

    if 0 <= light_id < num_lights[None]:
        kind = light_kinds[light_id]
        if kind == int(LightKind.POINT):
            direction, pdf = sample_point_direction(light_positions[light_id], point)
        elif kind == int(LightKind.DIRECTIONAL):
            direction, pdf = sample_directional_direction(light_directions[light_id])
        elif kind == int(LightKind.AREA):
            s = next_light_uniform(light_id)
            t = next_light_uniform(light_id)
            direction, pdf = sample_area_direction(
                light_positions[light_id],
                light_normals[light_id],
                light_u_axes[light_id],
                light_v_axes[light_id],
                light_widths[light_id],
                light_heights[light_id],
                point,
                s,
                t,
            )

    return direction, pdf


@ti.func
def is_occluded(point: vec3, direction: vec3, distance: ti.f32) -> ti.i32:
    """Shadow test from a shading point toward a light.

    The shadow ray starts SHADOW_EPSILON along the direction and the scene is
    searched without recording statistics. The light counts as blocked when
    a hit lies closer than distance - SHADOW_EPSILON.

    Returns:
        1 if occluded, 0 otherwise.
    """
    shadow_origin = point + direction * SHADOW_EPSILON
    rec = intersect_scene(shadow_origin, direction, LIGHT_INFINITY, STATS_OFF)
    occluded = 0
    if rec.hit == 1 and rec.t < distance - SHADOW_EPSILON:
        occluded = 1
    return occluded
