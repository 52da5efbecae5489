"""Triangle meshes with their own BVH and area-weighted surface sampling."""

from __future__ import annotations

import bisect
import itertools
import logging

import numpy as np

from .bvh import (
    BVHFactory,
    BoundedValue,
    InterpolatedVertex,
    Intersector,
    SAHPartitionScheme,
)
from .geometry import AABB
from .rand_utils import uniform_sample_triangle
from .shapes import Geometry

logger = logging.getLogger(__name__)

_EPSILON = 0.0000001


class MeshIntersector(Intersector):
    """Ray/triangle test for the primitives of one mesh."""

    def __init__(self, positions, uvs, normals, colours, indices):
        self.positions = np.asarray(positions, dtype=float)
        self.uvs = None if uvs is None else np.asarray(uvs, dtype=float)
        self.normals = np.asarray(normals, dtype=float)
        self.colours = None if colours is None else np.asarray(colours, dtype=float)
        self.indices = np.asarray(indices, dtype=np.int64)

    def _corners(self, primitive):
        return self.indices[3 * primitive: 3 * primitive + 3]

    def interpolate(self, primitive, u, v):
        """Interpolate the vertex attributes of a triangle at barycentrics (u, v)."""
        corners = self._corners(primitive)
        weights = np.array([1.0 - v - u, u, v])

        position = weights @ self.positions[corners]
        uv = np.zeros(2) if self.uvs is None else weights @ self.uvs[corners]
        normal = weights @ self.normals[corners]
        normal = normal / np.linalg.norm(normal)
        colour = np.ones(4) if self.colours is None else weights @ self.colours[corners]

        vertex = InterpolatedVertex()
        vertex.position = np.append(position, 1.0)
        vertex.uv = uv
        vertex.normal = normal
        vertex.vertex_colour = colour
        return vertex

    def intersects(self, ray, value):
        """Return (distance, vertex) where the ray hits triangle ``value``, else None."""
        v0, v1, v2 = self.positions[self._corners(value)]
        direction = np.asarray(ray.direction, dtype=float)[:3]
        origin = np.asarray(ray.origin, dtype=float)[:3]

        edge1 = v1 - v0
        edge2 = v2 - v0
        h = np.cross(direction, edge2)
        a = float(np.dot(edge1, h))
        if -_EPSILON < a < _EPSILON:
            return None  # parallel to the triangle

        f = 1.0 / a
        s = origin - v0
        u = f * float(np.dot(s, h))
        if u < 0.0 or u > 1.0:
            return None

        q = np.cross(s, edge1)
        v = f * float(np.dot(direction, q))
        if v < 0.0 or u + v > 1.0:
            return None

        t = f * float(np.dot(edge2, q))
        if t > _EPSILON:
            return t, self.interpolate(value, u, v)
        return None


class TriangleMesh(Geometry):
    """An indexed triangle mesh accelerated by a SAH-built BVH."""

    def __init__(self, name, positions, normals, indices, uvs=None, colours=None):
        self.name = name
        self.positions = np.asarray(positions, dtype=float).reshape(-1, 3)
        self.normals = np.asarray(normals, dtype=float).reshape(-1, 3)
        self.indices = np.asarray(indices, dtype=np.int64).reshape(-1)
        if self.indices.size % 3:
            raise ValueError("index count must be a multiple of three")
        self.uvs = None if uvs is None else np.asarray(uvs, dtype=float).reshape(-1, 2)
        self.colours = None if colours is None else np.asarray(colours, dtype=float).reshape(-1, 4)

        self._triangle_areas: list[float] = []
        self._cumulative_areas: list[float] = []

        triangles = self.positions[self.indices].reshape(-1, 3, 3)
        primitive_bounds = [
            BoundedValue(AABB(tri.min(axis=0), tri.max(axis=0)), index)
            for index, tri in enumerate(triangles)
        ]

        if len(self.positions):
            self._bounds = AABB(self.positions.min(axis=0), self.positions.max(axis=0))
        else:
            self._bounds = AABB()

        intersector = MeshIntersector(
            self.positions, self.uvs, self.normals, self.colours, self.indices
        )
        self._bvh = (
            BVHFactory(self._bounds, primitive_bounds)
            .set_intersector(intersector)
            .set_partition_scheme(SAHPartitionScheme())
            .generate()
        )

    def calculate_intersection(self, ray):
        """Return the closest interpolated vertex hit by the ray, or None."""
        return self._bvh.first_intersection(ray)

    def bounds(self):
        return self._bounds

    def generate_sampling_data(self):
        """Compute per-triangle areas used to pick triangles when sampling."""
        triangles = self.positions[self.indices].reshape(-1, 3, 3)
        self._triangle_areas = [
            float(np.linalg.norm(np.cross(b - a, c - a))) / 2.0 for a, b, c in triangles
        ]
        self._cumulative_areas = list(itertools.accumulate(self._triangle_areas))
        logger.debug(
            "Generating sampling data for %s. %d faces generated",
            self.name,
            len(self._triangle_areas),
        )

    def sample_geometry(self, rand):
        """Pick a point on the surface; returns (point, pdf of the chosen triangle)."""
        if not self._cumulative_areas:
            raise RuntimeError("sampling data has not been generated")
        total = self._cumulative_areas[-1]
        if total <= 0.0:
            raise ValueError("mesh has no surface area to sample")

        choice = np.asarray(rand.next(), dtype=float)
        index = bisect.bisect_right(self._cumulative_areas, float(choice[0]) * total)
        index = min(index, len(self._cumulative_areas) - 1)
        pdf = self._triangle_areas[index] / total

        b0, b1 = uniform_sample_triangle(rand.next())
        p0, p1, p2 = self.positions[self.indices[3 * index: 3 * index + 3]]
        point = (1.0 - b0 - b1) * p0 + b0 * p1 + b1 * p2
        return point, pdf