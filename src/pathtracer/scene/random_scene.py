"""Random sphere field demo scene.

A large diffuse ground sphere carries a grid of small randomly placed and
randomly shaded spheres, with three big feature spheres (glass, diffuse,
mirror metal) in the middle row. The camera looks down at the field from
slightly above with a narrow field of view and a small aperture, so both
the depth of field and the three material models are visible.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.scene.random_scene import create_random_scene
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_random_scene(seed=7)
    >>> setup_camera(camera)
"""

import math

import numpy as np

from pathtracer.camera.thin_lens import ThinLensCamera
from pathtracer.scene.manager import SceneManager

# =============================================================================
# Scene Constants
# =============================================================================

GROUND_CENTER = (0.0, -1000.0, 0.0)
GROUND_RADIUS = 1000.0
GROUND_ALBEDO = (0.5, 0.5, 0.5)

# Small spheres sit on the ground at this height
SMALL_SPHERE_RADIUS = 0.2

# Small spheres are jittered within this fraction of a grid cell
GRID_JITTER = 0.9

# Small spheres closer than this to the metal feature sphere are skipped
CLEARANCE_POINT = (4.0, 0.2, 0.0)
CLEARANCE_DISTANCE = 0.9

# Material choice thresholds on a uniform draw
DIFFUSE_PROBABILITY = 0.8
METAL_PROBABILITY = 0.95  # cumulative; the rest is glass

GLASS_REFRACTIVE_INDEX = 1.5

# Three feature spheres
FEATURE_RADIUS = 1.0
GLASS_FEATURE_CENTER = (0.0, 1.0, 0.0)
DIFFUSE_FEATURE_CENTER = (-4.0, 1.0, 0.0)
DIFFUSE_FEATURE_ALBEDO = (0.4, 0.2, 0.1)
METAL_FEATURE_CENTER = (4.0, 1.0, 0.0)
METAL_FEATURE_ALBEDO = (0.7, 0.6, 0.5)

# Default grid half-extent (a, b in [-extent, extent))
DEFAULT_EXTENT = 2
MAX_EXTENT = 11

# Default view
DEFAULT_LOOKFROM = (11.0, 4.0, 3.0)
DEFAULT_LOOKAT = (0.0, 0.0, 0.0)
DEFAULT_VUP = (0.0, 1.0, 0.0)
DEFAULT_VFOV = 20.0
DEFAULT_ASPECT_RATIO = 3.0 / 2.0
DEFAULT_APERTURE = 0.05


def default_camera(aspect_ratio: float = DEFAULT_ASPECT_RATIO) -> ThinLensCamera:
    """Create the default view of the random scene, focused on the look-at point."""
    return ThinLensCamera(
        lookfrom=DEFAULT_LOOKFROM,
        lookat=DEFAULT_LOOKAT,
        vup=DEFAULT_VUP,
        vfov=DEFAULT_VFOV,
        aspect_ratio=aspect_ratio,
        aperture=DEFAULT_APERTURE,
        focus_dist=math.dist(DEFAULT_LOOKFROM, DEFAULT_LOOKAT),
    )


def _add_small_sphere(scene: SceneManager, rng: np.random.Generator, center: tuple[float, float, float]) -> None:
    """Add one small sphere with a randomly chosen material."""
    choose_mat = rng.random()

    if choose_mat < DIFFUSE_PROBABILITY:
        albedo = tuple(float(x) for x in rng.random(3) * rng.random(3))
        scene.add_lambertian_sphere(center, SMALL_SPHERE_RADIUS, albedo)
    elif choose_mat < METAL_PROBABILITY:
        albedo = tuple(float(x) for x in rng.uniform(0.5, 1.0, 3))
        fuzz = float(rng.uniform(0.0, 0.5))
        scene.add_metal_sphere(center, SMALL_SPHERE_RADIUS, albedo, fuzz)
    else:
        scene.add_dielectric_sphere(center, SMALL_SPHERE_RADIUS, GLASS_REFRACTIVE_INDEX)


def create_random_scene(
    seed: int | None = None,
    extent: int = DEFAULT_EXTENT,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the random sphere field and its default camera.

    Args:
        seed: Seed for the scene layout. The same seed always produces the
            same spheres and materials. None draws fresh entropy.
        extent: Grid half-extent; small spheres are placed for grid cells
            a, b in [-extent, extent). 11 gives the full-size field.
        aspect_ratio: Aspect ratio for the returned camera.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).

    Raises:
        ValueError: If extent is outside [0, MAX_EXTENT].
    """
    if extent < 0 or extent > MAX_EXTENT:
        raise ValueError(f"extent = {extent} must be in [0, {MAX_EXTENT}]")

    rng = np.random.default_rng(seed)
    scene = SceneManager()

    scene.add_lambertian_sphere(GROUND_CENTER, GROUND_RADIUS, GROUND_ALBEDO)

    for a in range(-extent, extent):
        for b in range(-extent, extent):
            center = (
                a + GRID_JITTER * float(rng.random()),
                SMALL_SPHERE_RADIUS,
                b + GRID_JITTER * float(rng.random()),
            )
            if math.dist(center, CLEARANCE_POINT) > CLEARANCE_DISTANCE:
                _add_small_sphere(scene, rng, center)

    scene.add_dielectric_sphere(GLASS_FEATURE_CENTER, FEATURE_RADIUS, GLASS_REFRACTIVE_INDEX)
    scene.add_lambertian_sphere(DIFFUSE_FEATURE_CENTER, FEATURE_RADIUS, DIFFUSE_FEATURE_ALBEDO)
    scene.add_metal_sphere(METAL_FEATURE_CENTER, FEATURE_RADIUS, METAL_FEATURE_ALBEDO, fuzz=0.0)

    return scene, default_camera(aspect_ratio)
