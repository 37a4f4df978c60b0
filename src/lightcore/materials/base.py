"""Material kinds and host-side material parameters."""

import logging
import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_BASE_COLOR = (0.7, 0.7, 0.7)
DEFAULT_ROUGHNESS = 0.5
DEFAULT_METALLIC = 0.0
DEFAULT_SPECULAR = 0.04

MIN_ROUGHNESS = 0.01
MAX_ROUGHNESS = 1.0


class MaterialKind(IntEnum):
    """Enumeration of supported material models.

    Used for BRDF dispatch inside kernels via int(MaterialKind.X).
    """

    LAMBERT = 0
    COOK_TORRANCE = 1


def _clamp(value: float, low: float, high: float, fallback: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        return fallback
    return min(max(value, low), high)


@dataclass
class MaterialParams:
    """Construction parameters for a material.

    Attributes:
        kind: The material model.
        base_color: Albedo for Lambert, base reflectance for Cook-Torrance,
            each component in [0, 1].
        roughness: Perceptual roughness in [0.01, 1]. Ignored by Lambert.
        metallic: Metalness in [0, 1]. Ignored by Lambert.
        specular: Dielectric specular reflectance F0 in [0, 1]. Ignored by
            Lambert.
    """

    kind: MaterialKind = MaterialKind.LAMBERT
    base_color: tuple[float, float, float] = DEFAULT_BASE_COLOR
    roughness: float = DEFAULT_ROUGHNESS
    metallic: float = DEFAULT_METALLIC
    specular: float = DEFAULT_SPECULAR

    def validate(self) -> list[str]:
        """List the parameters that fall outside their valid ranges.

        Returns:
            Human-readable problem descriptions; empty when valid.
        """
        problems = []
        for i, c in enumerate(self.base_color):
            if not math.isfinite(float(c)) or not 0.0 <= float(c) <= 1.0:
                problems.append(f"base_color[{i}]={c} outside [0, 1]")
        if self.kind == MaterialKind.COOK_TORRANCE:
            if not math.isfinite(float(self.roughness)) or not (
                MIN_ROUGHNESS <= float(self.roughness) <= MAX_ROUGHNESS
            ):
                problems.append(
                    f"roughness={self.roughness} outside [{MIN_ROUGHNESS}, {MAX_ROUGHNESS}]"
                )
            if not math.isfinite(float(self.metallic)) or not 0.0 <= float(self.metallic) <= 1.0:
                problems.append(f"metallic={self.metallic} outside [0, 1]")
            if not math.isfinite(float(self.specular)) or not 0.0 <= float(self.specular) <= 1.0:
                problems.append(f"specular={self.specular} outside [0, 1]")
        return problems

    def clamped(self) -> "MaterialParams":
        """Return a copy with every parameter clamped into range.

        Non-finite values fall back to the defaults. A warning is logged for
        each problem found by validate().
        """
        for problem in self.validate():
            logger.warning("Clamping %s material parameter: %s", self.kind.name.lower(), problem)

        base_color = tuple(
            _clamp(c, 0.0, 1.0, d) for c, d in zip(self.base_color, DEFAULT_BASE_COLOR)
        )
        return MaterialParams(
            kind=MaterialKind(self.kind),
            base_color=base_color,
            roughness=_clamp(self.roughness, MIN_ROUGHNESS, MAX_ROUGHNESS, DEFAULT_ROUGHNESS),
            metallic=_clamp(self.metallic, 0.0, 1.0, DEFAULT_METALLIC),
            specular=_clamp(self.specular, 0.0, 1.0, DEFAULT_SPECULAR),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-friendly dictionary."""
        data: dict[str, Any] = {
            "type": self.kind.name.lower(),
            "base_color": list(self.base_color),
        }
        if self.kind == MaterialKind.COOK_TORRANCE:
            data["roughness"] = self.roughness
            data["metallic"] = self.metallic
            data["specular"] = self.specular
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MaterialParams":
        """Build parameters from a dictionary produced by to_dict().

        Raises:
            ValueError: If the material type is unknown or base_color does not
                have three components.
        """
        type_name = str(data.get("type", "")).lower()
        if type_name == "lambert":
            kind = MaterialKind.LAMBERT
        elif type_name == "cook_torrance":
            kind = MaterialKind.COOK_TORRANCE
        else:
            raise ValueError(f"Unknown material type: {type_name}")

        color_list = data.get("base_color", list(DEFAULT_BASE_COLOR))
        if len(color_list) != 3:
            raise ValueError(f"base_color must have 3 components, got {len(color_list)}")
        return cls(
            kind=kind,
            base_color=(float(color_list[0]), float(color_list[1]), float(color_list[2])),
            roughness=float(data.get("roughness", DEFAULT_ROUGHNESS)),
            metallic=float(data.get("metallic", DEFAULT_METALLIC)),
            specular=float(data.get("specular", DEFAULT_SPECULAR)),
        )
