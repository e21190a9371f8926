"""Render settings and Taichi runtime initialization.

This module only depends on Taichi itself, so it can be imported before
``ti.init`` runs. Modules that declare Taichi fields (the scene, materials,
camera and integrator) must be imported after :func:`init_runtime`.

Example:
    >>> from pathtracer.config import RenderSettings, init_runtime
    >>> settings = RenderSettings(width=200, samples_per_pixel=16)
    >>> init_runtime(settings)
"""

from dataclasses import dataclass

import taichi as ti

# Largest image side the render target preallocates
MAX_IMAGE_DIMENSION = 2048

DEFAULT_WIDTH = 400
DEFAULT_ASPECT_RATIO = 3.0 / 2.0
DEFAULT_SAMPLES_PER_PIXEL = 200
DEFAULT_MAX_DEPTH = 50

# Supported Taichi backends by name
ARCHS = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
}


def default_height(width: int, aspect_ratio: float = DEFAULT_ASPECT_RATIO) -> int:
    """Image height for ``width`` at ``aspect_ratio``, truncated like int()."""
    return int(width / aspect_ratio)


@dataclass
class RenderSettings:
    """Parameters of one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels. None derives it from width at 3:2.
        samples_per_pixel: Number of samples averaged per pixel.
        max_depth: Maximum number of scatter events per path.
        seed: Seed for Taichi's per-thread random generators.
        arch: Taichi backend name, "cpu" or "gpu".
        num_threads: CPU worker threads for the pixel loop.
    """

    width: int = DEFAULT_WIDTH
    height: int | None = None
    samples_per_pixel: int = DEFAULT_SAMPLES_PER_PIXEL
    max_depth: int = DEFAULT_MAX_DEPTH
    seed: int = 0
    arch: str = "cpu"
    num_threads: int = 1

    def __post_init__(self) -> None:
        if self.height is None:
            self.height = default_height(self.width)

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ValueError: If any setting is out of range.
        """
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        if self.width > MAX_IMAGE_DIMENSION or self.height > MAX_IMAGE_DIMENSION:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION})"
            )
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.arch not in ARCHS:
            raise ValueError(f"Unknown arch '{self.arch}'; choose from {sorted(ARCHS)}")
        if self.num_threads <= 0:
            raise ValueError(f"num_threads must be positive, got {self.num_threads}")


def init_runtime(settings: RenderSettings, quiet: bool = False) -> None:
    """Validate ``settings`` and initialize Taichi for them.

    Kernels run in double precision. Rendering is single-threaded unless
    ``num_threads`` says otherwise. The GPU backend falls back to CPU inside
    Taichi when no device is available.

    Raises:
        ValueError: If the settings are invalid.
    """
    settings.validate()
    ti.init(
        arch=ARCHS[settings.arch],
        default_fp=ti.f64,
        random_seed=settings.seed,
        cpu_max_num_threads=settings.num_threads,
        log_level=ti.WARN if quiet else ti.INFO,
    )
