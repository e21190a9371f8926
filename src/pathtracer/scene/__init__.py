"""Scene module for scene management and ray-scene queries.

Components:
    intersection: Sphere storage and the closest-hit scan over it
    manager: Scene builder assigning unified material IDs, with
        dictionary / JSON (de)serialization
    random_scene: The random sphere field demo scene and its camera

Scene data is organized for Taichi kernels:
    - Structure-of-Arrays layout for sphere data
    - Per-type material registries addressed through a unified ID table
"""

from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .random_scene import create_random_scene, default_camera

__all__ = [
    # Intersection
    "MAX_SPHERES",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    # Manager
    "MAX_MATERIALS",
    "MaterialInfo",
    "MaterialType",
    "SceneConfig",
    "SceneManager",
    "SphereInfo",
    "get_material_type",
    "get_material_type_index",
    # Demo scene
    "create_random_scene",
    "default_camera",
]
