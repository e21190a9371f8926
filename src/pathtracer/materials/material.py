"""Material contract shared by all scattering models.

A material answers ``scatter(ray_in, hit_record)`` with a ScatterRecord.
When ``did_scatter`` is 1 the path continues along ``scattered`` and its
contribution is multiplied by ``attenuation``; when it is 0 the path is
absorbed and contributes nothing further.
"""

from enum import IntEnum

import taichi as ti

from pathtracer.core.ray import Ray, vec3


class MaterialType(IntEnum):
    """Closed set of material variants, used for dispatch in the integrator."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


@ti.dataclass
class ScatterRecord:
    """Outcome of a material's scatter decision.

    Attributes:
        did_scatter: 1 if the path continues, 0 if it was absorbed.
        attenuation: Per-channel color multiplier for the continued path.
        scattered: The outgoing ray. Only valid if did_scatter == 1.
    """

    did_scatter: ti.i32
    attenuation: vec3
    scattered: Ray


@ti.func
def absorbed() -> ScatterRecord:
    """Create a ScatterRecord for an absorbed path."""
    return ScatterRecord(
        did_scatter=0,
        attenuation=vec3(0.0, 0.0, 0.0),
        scattered=Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, 0.0)),
    )


def validate_color(name: str, color: tuple[float, float, float]) -> None:
    """Check that every channel of a reflectance color lies in [0, 1].

    Raises:
        ValueError: If the color does not have three channels or a channel
            is outside [0, 1].
    """
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"{name.capitalize()} component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
