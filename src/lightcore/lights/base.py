"""Light kinds and host-side light parameters.

Each parameter dataclass knows how to validate itself and how to produce a
clamped copy. Clamping logs one warning per adjusted value and never raises,
so a scene loader can always build a usable light from imperfect input.
"""

import logging
import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

import numpy as np

from lightcore.core.vector import is_finite_tuple, normalize_tuple, onb_from_normal_tuple

logger = logging.getLogger(__name__)

# Positions are confined to this cube
MAX_POSITION = 1000.0

MIN_AREA_EXTENT = 0.01
MAX_AREA_EXTENT = 100.0

DEFAULT_DIRECTIONAL_DIRECTION = (0.0, -1.0, 0.0)
DEFAULT_AREA_NORMAL = (0.0, 0.0, 1.0)


class LightKind(IntEnum):
    """Enumeration of supported light models."""

    POINT = 0
    DIRECTIONAL = 1
    AREA = 2


def _clamp_color(color, label: str) -> tuple[float, float, float]:
    c = np.asarray(color, dtype=np.float64)
    if not np.all(np.isfinite(c)) or np.any(c < 0.0) or np.any(c > 1.0):
        logger.warning("Clamping %s color %s to [0, 1]", label, tuple(c.tolist()))
        c = np.clip(np.nan_to_num(c, nan=0.0, posinf=1.0, neginf=0.0), 0.0, 1.0)
    return (float(c[0]), float(c[1]), float(c[2]))


def _clamp_intensity(intensity: float, label: str) -> float:
    value = float(intensity)
    if not math.isfinite(value) or value < 0.0:
        logger.warning("%s intensity %s is invalid, using 0", label, value)
        value = 0.0
    return value


def _clamp_position(position, label: str) -> tuple[float, float, float]:
    p = np.asarray(position, dtype=np.float64)
    if not np.all(np.isfinite(p)):
        logger.warning("%s position %s is not finite, using origin", label, tuple(p.tolist()))
        p = np.zeros(3)
    elif np.any(np.abs(p) > MAX_POSITION):
        logger.warning("Clamping %s position %s to +/-%s", label, tuple(p.tolist()), MAX_POSITION)
        p = np.clip(p, -MAX_POSITION, MAX_POSITION)
    return (float(p[0]), float(p[1]), float(p[2]))


def _clamp_unit(vector, fallback: tuple[float, float, float], label: str) -> tuple[float, float, float]:
    unit = normalize_tuple(vector) if is_finite_tuple(vector) else (0.0, 0.0, 0.0)
    if unit == (0.0, 0.0, 0.0):
        logger.warning("%s %s is degenerate, using %s", label, tuple(vector), fallback)
        unit = fallback
    return unit


def _clamp_extent(value: float, label: str) -> float:
    v = float(value)
    if not math.isfinite(v):
        logger.warning("Area light %s %s is not finite, using 1.0", label, v)
        return 1.0
    if v < MIN_AREA_EXTENT or v > MAX_AREA_EXTENT:
        logger.warning(
            "Clamping area light %s %s to [%s, %s]", label, v, MIN_AREA_EXTENT, MAX_AREA_EXTENT
        )
        v = min(max(v, MIN_AREA_EXTENT), MAX_AREA_EXTENT)
    return v


@dataclass
class PointLightParams:
    """An isotropic point emitter.

    Attributes:
        position: Emitter location.
        color: RGB color in [0, 1].
        intensity: Non-negative power scale.
    """

    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    intensity: float = 1.0

    kind = LightKind.POINT

    def clamped(self) -> "PointLightParams":
        """Return a copy with every parameter in range."""
        return PointLightParams(
            position=_clamp_position(self.position, "Point light"),
            color=_clamp_color(self.color, "point light"),
            intensity=_clamp_intensity(self.intensity, "Point light"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "point",
            "position": list(self.position),
            "color": list(self.color),
            "intensity": self.intensity,
        }


@dataclass
class DirectionalLightParams:
    """A light at infinity shining along a fixed direction.

    Attributes:
        direction: Direction the light travels (normalized on clamping).
        color: RGB color in [0, 1].
        intensity: Non-negative irradiance scale.
    """

    direction: tuple[float, float, float] = DEFAULT_DIRECTIONAL_DIRECTION
    color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    intensity: float = 1.0

    kind = LightKind.DIRECTIONAL

    def clamped(self) -> "DirectionalLightParams":
        """Return a copy with a unit direction and in-range color/intensity."""
        return DirectionalLightParams(
            direction=_clamp_unit(
                self.direction, DEFAULT_DIRECTIONAL_DIRECTION, "Directional light direction"
            ),
            color=_clamp_color(self.color, "directional light"),
            intensity=_clamp_intensity(self.intensity, "Directional light"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "directional",
            "direction": list(self.direction),
            "color": list(self.color),
            "intensity": self.intensity,
        }


@dataclass
class AreaLightParams:
    """A one-sided rectangular emitter.

    Attributes:
        center: Rectangle center.
        normal: Emitting side normal (normalized on clamping).
        width: Extent along the derived u axis.
        height: Extent along the derived v axis.
        color: RGB color in [0, 1].
        intensity: Non-negative radiance scale.
        seed: Optional explicit seed for this light's random stream. When
            None the stream is derived from the scene seed and light index.
    """

    center: tuple[float, float, float] = (0.0, 0.0, 0.0)
    normal: tuple[float, float, float] = DEFAULT_AREA_NORMAL
    width: float = 1.0
    height: float = 1.0
    color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    intensity: float = 1.0
    seed: int | None = None

    kind = LightKind.AREA

    @property
    def area(self) -> float:
        return self.width * self.height

    def basis(self) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
        """The (u, v) tangent axes spanning the rectangle."""
        return onb_from_normal_tuple(self.normal)

    def clamped(self) -> "AreaLightParams":
        """Return a copy with unit normal and in-range extents/color/intensity."""
        return AreaLightParams(
            center=_clamp_position(self.center, "Area light"),
            normal=_clamp_unit(self.normal, DEFAULT_AREA_NORMAL, "Area light normal"),
            width=_clamp_extent(self.width, "width"),
            height=_clamp_extent(self.height, "height"),
            color=_clamp_color(self.color, "area light"),
            intensity=_clamp_intensity(self.intensity, "Area light"),
            seed=self.seed,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": "area",
            "center": list(self.center),
            "normal": list(self.normal),
            "width": self.width,
            "height": self.height,
            "color": list(self.color),
            "intensity": self.intensity,
        }
        if self.seed is not None:
            data["seed"] = self.seed
        return data


LightParams = PointLightParams | DirectionalLightParams | AreaLightParams


def _vec(data: dict[str, Any], key: str, default) -> tuple[float, float, float]:
    values = data.get(key, list(default))
    if len(values) != 3:
        raise ValueError(f"{key} must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


def light_params_from_dict(data: dict[str, Any]) -> LightParams:
    """Build light parameters from a dictionary produced by to_dict().

    Raises:
        ValueError: If the light type is unknown.
    """
    type_name = str(data.get("type", "")).lower()
    color = _vec(data, "color", (1.0, 1.0, 1.0))
    intensity = float(data.get("intensity", 1.0))
    if type_name == "point":
        return PointLightParams(
            position=_vec(data, "position", (0.0, 0.0, 0.0)),
            color=color,
            intensity=intensity,
        )
    if type_name == "directional":
        return DirectionalLightParams(
            direction=_vec(data, "direction", DEFAULT_DIRECTIONAL_DIRECTION),
            color=color,
            intensity=intensity,
        )
    if type_name == "area":
        seed = data.get("seed")
        return AreaLightParams(
            center=_vec(data, "center", (0.0, 0.0, 0.0)),
            normal=_vec(data, "normal", DEFAULT_AREA_NORMAL),
            width=float(data.get("width", 1.0)),
            height=float(data.get("height", 1.0)),
            color=color,
            intensity=intensity,
            seed=None if seed is None else int(seed),
        )
    raise ValueError(f"Unknown light type: {type_name}")
