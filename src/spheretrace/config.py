"""Runtime configuration and Taichi initialization.

Taichi must be initialized before any spheretrace module that allocates
fields is imported (camera, core.integrator, core.scanline, materials,
scene). The renderer runs in double precision, so every entry point goes
through init_taichi().

Example:
    >>> from spheretrace.config import RenderConfig, init_taichi
    >>> init_taichi(RenderConfig(arch="cpu"))
    'cpu'
    >>> from spheretrace.scene.presets import create_two_spheres_scene
"""

import logging
from dataclasses import dataclass

import taichi as ti

logger = logging.getLogger(__name__)

_ARCHS = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
}


@dataclass
class RenderConfig:
    """Process-wide runtime options.

    Attributes:
        arch: Taichi backend, "cpu" or "gpu". A GPU that is unavailable
            falls back to the CPU.
        debug: Enable Taichi's debug mode (bounds checks).
    """

    arch: str = "cpu"
    debug: bool = False

    def __post_init__(self) -> None:
        if self.arch not in _ARCHS:
            raise ValueError(f"Unknown arch '{self.arch}', expected one of {sorted(_ARCHS)}")


def init_taichi(config: RenderConfig | None = None) -> str:
    """Initialize Taichi in double precision.

    Args:
        config: Runtime options. Defaults to RenderConfig().

    Returns:
        The name of the backend that was initialized.
    """
    if config is None:
        config = RenderConfig()

    options = {
        "default_fp": ti.f64,
        "debug": config.debug,
    }

    if config.arch == "gpu":
        try:
            ti.init(arch=ti.gpu, **options)
            logger.info("Using GPU backend")
            return "gpu"
        except Exception as e:
            logger.warning(f"GPU backend unavailable ({e}), falling back to CPU")

    ti.init(arch=ti.cpu, **options)
    logger.info("Using CPU backend")
    return "cpu"
