# picotrace

The core pieces of a small Monte Carlo path tracer, written in Python on top of numpy. Vectors and matrices are plain numpy arrays. Points are homogeneous, with four components, and transforms are 4x4 matrices that act on column vectors.

## Modules

- `picotrace.geometry`
  - `Ray` holds an origin, a direction, a length and a stack of indices of refraction. The stack is managed with `push_index_of_refraction`, `pop_index_of_refraction`, `current_index_of_refraction` and `inside_geometry`.
  - `transform_ray` moves a ray by a 4x4 matrix.
  - `AABB` is an axis-aligned box. It provides ray distance (`intersection_distance`), point and box containment (`contains_point`, and `contains`, which returns an `Intersection` flag), growing (`add_point`, `merge`, `AABB.union_of`), `transformed`, `central_point`, `side_lengths`, `surface_area` and `offset`. The `*` operator takes a 4x4 matrix or a 4-vector, and `+` and `-` take a 4-vector.
  - A box created with no corners is empty.
  - `Cube` holds the eight corners of a box.
  - There are also `component_wise_min`, `component_wise_max` and `maximum_component_index`.
- `picotrace.vector_utils`
  - `pack_colour` and `unpack_colour` convert between 32-bit RGBA integers and colour vectors.
  - `spherical_direction` builds a direction from angles.
  - `world_to_tangent_transform` returns the matrix into the frame of a normal.
  - Tangent-space trigonometry: `cos_theta`, `sin_theta`, `tan_theta`, their squares, `abs_cos_theta`, `cos_phi`, `sin_phi`, `cos2_phi`, `sin2_phi` and `same_hemisphere`.
- `picotrace.rand_utils`
  - `XorShiftRandom` is a 32-bit xoshiro128++ generator.
  - `HammersleyGenerator` gives Hammersley points at random indices.
  - Also included: `hammersley`, `radical_inverse_vdc`, `uniform_sample_triangle`, `uniform_sample_hemisphere` and `uniform_sample_sphere`.
  - `choose(r, probs, norm=1.0)` returns an index, or `None` when `r` exceeds the total.
- `picotrace.bvh` is a generic two-way bounding volume hierarchy.
  - `BVHFactory` builds it from `BoundedValue`s. It has a settable `Intersector`, partition scheme and maximum depth (32 by default).
  - The partition schemes are `CentroidPartitionScheme` and `SAHPartitionScheme`, which is the default and uses twelve buckets.
  - `BVH.first_intersection` returns the closest `InterpolatedVertex`, or `None`.
- `picotrace.camera`
  - `Camera` is a pinhole camera that generates primary rays. Its default resolution is 1902x1080 and can be changed through the `resolution` attribute.
  - It provides movement (`move_forward`, `move_left`, ...), rotation (`rotate_pitch`, `rotate_yaw`, `rotate_world_up`), `right`, `view_matrix` and `projection_matrix`.
- `picotrace.image`
  - `Image2D` is a texture and `ImageCube` is an environment map, either six faces (depth 6) or equirectangular. Both sample the nearest texel.
  - Pixel layouts are given by `Format`, and sizes by `ImageExtent`.
  - `Image.from_path` reads a file's size and channel count with Pillow. `make_resident` then loads the pixels.
  - Floating-point images can only be built from data in memory.
- `picotrace.file_mappings`
  - `FileSystemMappings` indexes every file below a root directory.
  - `resolve_path` finds a file whatever the letter case of the name it is given.
- `picotrace.materials`
  - `Material` is the abstract interface for shaders.
  - `EvaluatedMaterial` holds the properties at one point.
  - `MaterialManager` loads materials when they are added and hands out integer ids. It is a context manager that releases material data on exit.
- `picotrace.shapes`
  - The `Geometry` interface covers intersection, bounds and surface sampling.
  - Two implicit shapes implement it: `Sphere`, centred on the origin, and `UnitCube`, of side one.
- `picotrace.mesh`
  - `TriangleMesh` is an indexed triangle mesh with its own SAH-built BVH and area-weighted surface sampling. Call `generate_sampling_data` before sampling.
  - `MeshIntersector` is the ray/triangle test it uses.
- `picotrace.scene_bvh`
  - `SceneBVH` is a top-level structure over `Instance`s, which are geometry placed in the world with a transform.
  - `build` must be called before `closest_intersection`.

## Installation

```
pip install .
```

With the test dependencies:

```
pip install ".[test]"
```

## Example

```python
import numpy as np

from picotrace.camera import Camera
from picotrace.shapes import Sphere, UnitCube
from picotrace.scene_bvh import SceneBVH

scene = SceneBVH()

translate = np.eye(4)
translate[:3, 3] = (0.0, 0.0, 3.0)
scene.add_instance(Sphere(0.5), translate, bsrdf=None)

translate = np.eye(4)
translate[:3, 3] = (2.0, 0.0, 3.0)
scene.add_instance(UnitCube(), translate, bsrdf=None)

scene.build()

camera = Camera((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), 1.0)
ray = camera.generate_ray((0.0, 0.0), (951, 540))
hit = scene.closest_intersection(ray)
if hit is not None:
    print(hit.position, hit.normal)
```

## What it does not do

The package supplies geometry, acceleration structures, sampling and texture lookup. It is not a complete renderer:

- It has no light transport integrator, scattering functions (the `bsrdf` of an instance is simply carried along to the hit), denoiser or tone mapper.
- It does not load scene description files or import mesh files. Meshes are built from arrays.
- It does not write rendered images.
- It has no command-line program or interactive viewer.

## Running the tests

```
pytest
```