"""Camera module for view and ray generation.

Components:
    thin_lens: Look-at camera with antialiasing jitter and depth of field

Camera geometry is derived on the Python side and published to Taichi fields;
get_ray() is called from kernels with an explicit sampler state.
"""

from .thin_lens import (
    Camera,
    CameraGeometry,
    compute_camera_geometry,
    defocus_disk_sample,
    get_camera_info,
    get_ray,
    sample_square,
    setup_camera,
)

__all__ = [
    "Camera",
    "CameraGeometry",
    "compute_camera_geometry",
    "setup_camera",
    "get_ray",
    "sample_square",
    "defocus_disk_sample",
    "get_camera_info",
]
