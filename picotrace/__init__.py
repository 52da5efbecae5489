"""Building blocks for a Monte Carlo path tracer: geometry, BVHs, a camera, sampling, textures and materials."""

__version__ = "0.1.0"