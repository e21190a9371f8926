"""Monte Carlo path tracer built on Taichi.

The package estimates the radiance reaching a virtual camera by tracing
randomly scattered light paths through a scene of spheres and averaging the
results per pixel. Supported features:
- Diffuse (Lambertian), fuzzy metal and dielectric (glass) materials
- Thin-lens camera with depth of field
- Stochastic supersampling with gamma-2 output quantization
- Progressive (batched) sample accumulation

Subpackages:
    core: Vector algebra, rays, the recursive estimator and the pixel sampler
    geometry: Sphere primitive and hit records
    materials: Scattering models
    scene: Scene storage, closest-hit queries and scene construction
    camera: Thin-lens camera ray generation
    output: PPM and PNG image sinks
"""

__version__ = "0.1.0"
