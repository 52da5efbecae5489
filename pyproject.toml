[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "picotrace"
version = "0.1.0"
description = "Core building blocks of a Monte Carlo path tracer: bounding boxes, BVH acceleration structures, a camera, textures, sampling and geometry."
requires-python = ">=3.10"
keywords = ["ray tracing", "path tracing", "bvh", "rendering", "graphics"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
]
dependencies = [
    "numpy",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["picotrace"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
