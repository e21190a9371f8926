"""Path tracing integrator and per-pixel Monte Carlo sampler.

``ray_color`` estimates the radiance arriving along a ray by following one
scattered path through the scene. At each bounce the closest hit's material
decides whether the path continues (multiplying the path throughput by its
attenuation) or is absorbed. Paths that escape the scene pick up a vertical
white-to-sky-blue gradient. Paths still bouncing when the depth budget runs
out contribute black; this truncation is the only bound on path length
(no Russian roulette).

The sampler traces one jittered camera ray per pixel per pass, sums the
results, and resolves the sums to 8-bit sRGB-ish output with gamma 2.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.integrator import render_image, setup_render_target
    >>> from pathtracer.scene.random_scene import create_random_scene
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_random_scene(seed=0)
    >>> setup_camera(camera)
    >>> setup_render_target(400, 266)
    >>> render_image(num_samples=10, max_depth=50)
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray
from pathtracer.config import DEFAULT_MAX_DEPTH, MAX_IMAGE_DIMENSION
from pathtracer.core.ray import Ray, make_ray, unit_vector, vec3
from pathtracer.geometry.sphere import HitRecord
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.material import MaterialType, ScatterRecord, absorbed
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.intersection import intersect_scene
from pathtracer.scene.manager import get_material_type, get_material_type_index


# =============================================================================
# Rendering Constants
# =============================================================================

# Intersection interval; T_MIN keeps scattered rays from re-hitting their origin surface
T_MIN = 0.001
T_MAX = float("inf")

# Background gradient endpoints (ray pointing straight down / straight up)
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)

# Largest value kept before 8-bit quantization, so floor(256 * v) <= 255
MAX_RESOLVED_VALUE = 0.999


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = MAX_IMAGE_DIMENSION
MAX_IMAGE_HEIGHT = MAX_IMAGE_DIMENSION

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Sum of all sample colors per pixel (preallocated to max size)
_color_sum = ti.Vector.field(3, dtype=ti.f64, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers. The buffers are
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_sum.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(material_id: ti.i32, ray_in: Ray, rec: HitRecord) -> ScatterRecord:
    """Dispatch to the scatter function of the hit's material variant.

    Unknown material IDs absorb the path.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    srec = absorbed()
    if mat_type == int(MaterialType.LAMBERTIAN):
        srec = scatter_lambertian_by_id(type_index, ray_in, rec)
    elif mat_type == int(MaterialType.METAL):
        srec = scatter_metal_by_id(type_index, ray_in, rec)
    elif mat_type == int(MaterialType.DIELECTRIC):
        srec = scatter_dielectric_by_id(type_index, ray_in, rec)

    return srec


# =============================================================================
# Radiance Estimator
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky gradient blended on the vertical component of the unit direction."""
    unit_direction = unit_vector(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_HORIZON_COLOR + t * SKY_ZENITH_COLOR


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32) -> vec3:
    """Estimate the radiance carried back along ``ray``.

    Each iteration intersects the current ray with the scene and either
    terminates (miss or absorption) or replaces the ray with the scattered
    one, multiplying the path throughput by the material attenuation.

    Args:
        ray: The ray to trace. Its direction need not be unit length.
        max_depth: Maximum number of intersections to follow. A depth of 0
            returns black without touching the scene.

    Returns:
        The estimated radiance (RGB). Black if the path was absorbed or ran
        out of depth; throughput times the sky gradient if it escaped.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray

    # Active flag for path continuation
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(current, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background_color(current.direction)
                active = 0
            else:
                # Material models assume a unit incoming direction
                ray_in = make_ray(current.origin, unit_vector(current.direction))
                srec = _scatter_material(rec.material_id, ray_in, rec)

                if srec.did_scatter == 0:
                    active = 0
                else:
                    throughput *= srec.attenuation
                    current = srec.scattered

    return color


@ti.func
def sample_pixel(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, max_depth: ti.i32) -> vec3:
    """Trace one jittered camera ray through pixel (pixel_i, pixel_j).

    Pixel (0, 0) is the bottom-left of the image. Coordinates are normalized
    by ``width - 1`` and ``height - 1`` so the first and last pixel centers
    land on the viewport edges.
    """
    s_den = ti.cast(ti.max(width - 1, 1), ti.f64)
    t_den = ti.cast(ti.max(height - 1, 1), ti.f64)

    s = (ti.cast(pixel_i, ti.f64) + ti.random(ti.f64)) / s_den
    t = (ti.cast(pixel_j, ti.f64) + ti.random(ti.f64)) / t_den

    return ray_color(get_ray(s, t), max_depth)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, max_depth: ti.i32):
    """Render one sample per pixel and add it to the running sums.

    Each pixel is independent, so the loop is a parallel map; the thread
    count is set by ti.init.
    """
    for i, j in ti.ndrange(width, height):
        color = sample_pixel(i, j, width, height, max_depth)

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        _color_sum[i, j] += color
        _sample_count[i, j] += 1


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, max_depth: ti.i32
) -> vec3:
    """Render a single sample for a specific pixel without accumulating it."""
    return sample_pixel(pixel_i, pixel_j, width, height, max_depth)


@ti.kernel
def _trace_single_ray(
    ox: ti.f64, oy: ti.f64, oz: ti.f64, dx: ti.f64, dy: ti.f64, dz: ti.f64, max_depth: ti.i32
) -> vec3:
    """Run the radiance estimator on one explicit ray."""
    return ray_color(make_ray(vec3(ox, oy, oz), vec3(dx, dy, dz)), max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[float, float, float]:
    """Estimate the radiance along a single ray against the current scene.

    Python-callable entry point for inspection and testing. Does not need a
    render target or a camera.

    Returns:
        Tuple of (R, G, B) linear color values.

    Raises:
        ValueError: If max_depth is negative.
    """
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")

    color = _trace_single_ray(
        origin[0], origin[1], origin[2], direction[0], direction[1], direction[2], max_depth
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def render_sample(
    pixel_i: int, pixel_j: int, max_depth: int = DEFAULT_MAX_DEPTH
) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in one kernel launch.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Maximum number of scatter events.

    Returns:
        Tuple of (R, G, B) linear color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _render_single_pixel(pixel_i, pixel_j, width, height, max_depth)

    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
    """Add ``num_samples`` samples per pixel to the render target.

    Can be called repeatedly; samples keep accumulating until the target is
    cleared.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If max_depth is negative.
    """
    _check_render_target_initialized()
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")

    width, height = get_image_dimensions()

    for _ in range(num_samples):
        _render_one_spp(width, height, max_depth)


def get_total_samples() -> int:
    """Get the number of samples per pixel rendered so far.

    Reads pixel (0, 0); every pixel receives the same count.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


# =============================================================================
# Resolve to Output Pixels
# =============================================================================


def _active_buffers() -> tuple[np.ndarray, np.ndarray]:
    """Return (color_sum, sample_count) for the active region in top-to-bottom row order.

    Shapes are (height, width, 3) and (height, width).
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    color_sum = _color_sum.to_numpy()[:width, :height, :]
    counts = _sample_count.to_numpy()[:width, :height]

    # (width, height) -> (height, width), then flip so row 0 is the top of the image
    color_sum = np.flipud(np.transpose(color_sum, (1, 0, 2)))
    counts = np.flipud(np.transpose(counts, (1, 0)))
    return color_sum, counts


def resolve_pixels(color_sum: np.ndarray, samples_per_pixel) -> np.ndarray:
    """Turn summed sample colors into 8-bit output values.

    Each channel is scaled by ``1 / samples_per_pixel``, gamma corrected with
    gamma 2 (square root), clamped to [0, 0.999] and quantized with
    ``floor(256 * value)``.

    Args:
        color_sum: Array of summed linear colors, last axis RGB.
        samples_per_pixel: Sample count, either a scalar or an array that
            broadcasts against ``color_sum[..., 0]``. Pixels with no
            samples resolve to black.

    Returns:
        A uint8 array with the same shape as ``color_sum``.
    """
    color_sum = np.asarray(color_sum, dtype=np.float64)
    counts = np.asarray(samples_per_pixel, dtype=np.float64)
    if counts.ndim > 0:
        counts = counts[..., np.newaxis]

    scale = np.divide(1.0, counts, out=np.zeros_like(counts), where=counts > 0)
    averaged = np.maximum(color_sum * scale, 0.0)
    corrected = np.clip(np.sqrt(averaged), 0.0, MAX_RESOLVED_VALUE)
    return np.floor(256.0 * corrected).astype(np.uint8)


def get_image_numpy() -> np.ndarray:
    """Get the averaged linear image as a (height, width, 3) float32 array.

    Row 0 is the top of the image. Pixels with no samples are black.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    color_sum, counts = _active_buffers()
    counts = counts[..., np.newaxis].astype(np.float64)
    image = np.divide(color_sum, counts, out=np.zeros_like(color_sum), where=counts > 0)
    return image.astype(np.float32)


def get_image_uint8() -> np.ndarray:
    """Get the resolved 8-bit image as a (height, width, 3) uint8 array.

    Row 0 is the top of the image.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    color_sum, counts = _active_buffers()
    return resolve_pixels(color_sum, counts)
