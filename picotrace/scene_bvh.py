"""Top-level BVH over transformed instances of geometry."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any

import numpy as np

from .bvh import BVHFactory, BoundedValue, Intersector, SAHPartitionScheme
from .geometry import AABB, transform_ray


@dataclass
class Instance:
    """A piece of geometry placed in the world with its own material."""

    transform: np.ndarray
    inverse_transform: np.ndarray
    geometry: Any
    bsrdf: Any


class InstanceIntersector(Intersector):
    """Intersects a world-space ray with one instance in its object space."""

    def intersects(self, ray, value):
        object_ray = transform_ray(ray, value.inverse_transform)
        vertex = value.geometry.calculate_intersection(object_ray)
        if vertex is None:
            return None

        vertex.bsrdf = value.bsrdf
        local = np.asarray(vertex.position, dtype=float)
        world = value.transform @ np.append(local[:3], 1.0)
        vertex.position = world
        normal = value.transform[:3, :3] @ np.asarray(vertex.normal, dtype=float)[:3]
        vertex.normal = normal / np.linalg.norm(normal)

        origin = np.asarray(ray.origin, dtype=float)[:3]
        distance = float(np.linalg.norm(world[:3] - origin))
        return distance, vertex


class SceneBVH:
    """Holds all instances of a scene and finds the closest hit among them."""

    def __init__(self):
        self.instances: list[Instance] = []
        self._structure = None

    def add_instance(self, geometry, transform, bsrdf):
        transform = np.asarray(transform, dtype=float)
        self.instances.append(
            Instance(transform, np.linalg.inv(transform), geometry, bsrdf)
        )

    def build(self):
        """Build the acceleration structure over the instances added so far."""
        values = [
            BoundedValue(instance.geometry.bounds().transformed(instance.transform), instance)
            for instance in self.instances
        ]
        boxes = [value.bounds for value in values]
        scene_bounds = functools.reduce(AABB.union_of, boxes) if boxes else AABB()

        self._structure = (
            BVHFactory(scene_bounds, values)
            .set_intersector(InstanceIntersector())
            .set_partition_scheme(SAHPartitionScheme())
            .generate()
        )

    def closest_intersection(self, ray):
        """Return the closest world-space vertex hit by the ray, or None."""
        if self._structure is None:
            raise RuntimeError("build() must be called before tracing rays")
        return self._structure.first_intersection(ray)