"""spheretrace: a stochastic ray tracer for scenes of spheres.

Renders spheres made of diffuse, metal and glass materials through a
thin-lens camera, averaging jittered samples per pixel. Kernels are written
in Taichi and run in double precision.

Submodules that allocate Taichi fields are not imported here; call
spheretrace.config.init_taichi() first, then import them.
"""

__version__ = "0.1.0"
