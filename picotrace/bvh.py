"""Bounding volume hierarchy: nodes, partition schemes, builder and traversal."""

from __future__ import annotations

import abc
import math
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from .geometry import AABB, Ray, maximum_component_index

_DEFAULT_MAX_DEPTH = 32
_SAH_BUCKET_COUNT = 12


@dataclass
class InterpolatedVertex:
    """Surface attributes at a ray hit."""

    position: np.ndarray = field(default_factory=lambda: np.zeros(4))
    normal: np.ndarray = field(default_factory=lambda: np.zeros(3))
    uv: np.ndarray = field(default_factory=lambda: np.zeros(2))
    vertex_colour: np.ndarray = field(default_factory=lambda: np.zeros(4))
    bsrdf: Any = None


class Intersector(abc.ABC):
    """Tests a ray against the value stored in a BVH leaf."""

    @abc.abstractmethod
    def intersects(self, ray: Ray, value) -> tuple[float, InterpolatedVertex] | None:
        """Return the hit distance and vertex, or None when the value is missed."""


@dataclass
class BoundedValue:
    """A value together with the box that encloses it."""

    bounds: AABB
    value: Any


@dataclass
class BVHNode:
    """A node of the hierarchy; leaves hold values, inner nodes hold two children."""

    bounding_box: AABB = field(default_factory=AABB)
    values: list[BoundedValue] = field(default_factory=list)
    children: tuple[int | None, int | None] = (None, None)

    def is_leaf(self) -> bool:
        return bool(self.values)


class BVH:
    """A built hierarchy over values that an intersector can test."""

    def __init__(self, root: int | None, nodes, intersector: Intersector) -> None:
        self.root = root
        self.nodes: list[BVHNode] = list(nodes)
        self.intersector = intersector

    def first_intersection(self, ray: Ray) -> InterpolatedVertex | None:
        """The closest hit along the ray, or None.

        The ray's inverse direction is refreshed from its direction.
        """
        with np.errstate(divide="ignore"):
            ray.inverse_direction = 1.0 / np.asarray(ray.direction, dtype=np.float64)

        if self.root is None:
            return None

        best_distance = math.inf
        best: InterpolatedVertex | None = None
        pending = [self.root]
        while pending:
            node = self.nodes[pending.pop()]
            if not node.bounding_box.intersection_distance(ray) < best_distance:
                continue

            if node.is_leaf():
                for bounded in node.values:
                    hit = self.intersector.intersects(ray, bounded.value)
                    if hit is None:
                        continue
                    distance, vertex = hit
                    if distance < best_distance:
                        best_distance = distance
                        best = vertex
            else:
                # Reversed so the first child is visited first.
                pending.extend(child for child in reversed(node.children) if child is not None)

        return best


class PartitionScheme(abc.ABC):
    """Splits a set of bounded values in two."""

    @abc.abstractmethod
    def partition(self, values) -> tuple[list[BoundedValue], list[BoundedValue]]:
        """Return the two halves; an empty second half means no split."""


def _centroid_bounds(values) -> AABB:
    bounds = AABB()
    for bounded in values:
        bounds.add_point(bounded.bounds.central_point())
    return bounds


class CentroidPartitionScheme(PartitionScheme):
    """Splits at the middle of the centroids' longest axis."""

    def partition(self, values) -> tuple[list[BoundedValue], list[BoundedValue]]:
        values = list(values)
        if not values:
            return [], []

        bounds = _centroid_bounds(values)
        axis = maximum_component_index(bounds.side_lengths())
        pivot = bounds.central_point()[axis]

        left = [v for v in values if v.bounds.central_point()[axis] < pivot]
        right = [v for v in values if not v.bounds.central_point()[axis] < pivot]
        return left, right


@dataclass
class _Bucket:
    count: int = 0
    bounds: AABB = field(default_factory=AABB)


class SAHPartitionScheme(PartitionScheme):
    """Splits by the surface area heuristic over twelve buckets along the longest axis."""

    def partition(self, values) -> tuple[list[BoundedValue], list[BoundedValue]]:
        values = list(values)
        if not values:
            return [], []

        bounds = _centroid_bounds(values)
        axis = maximum_component_index(bounds.side_lengths())

        def bucket_of(bounded: BoundedValue) -> int:
            b = int(_SAH_BUCKET_COUNT * bounds.offset(bounded.bounds.central_point())[axis])
            return _SAH_BUCKET_COUNT - 1 if b == _SAH_BUCKET_COUNT else b

        buckets = [_Bucket() for _ in range(_SAH_BUCKET_COUNT)]
        for bounded in values:
            bucket = buckets[bucket_of(bounded)]
            bucket.count += 1
            bucket.bounds.merge(bounded.bounds)

        leaf_cost = len(values)
        costs = []
        with np.errstate(all="ignore"):
            total_area = np.float64(bounds.surface_area())
            for split in range(_SAH_BUCKET_COUNT - 1):
                below, above = AABB(), AABB()
                count_below = count_above = 0
                for bucket in buckets[: split + 1]:
                    below.merge(bucket.bounds)
                    count_below += bucket.count
                for bucket in buckets[split + 1 :]:
                    above.merge(bucket.bounds)
                    count_above += bucket.count
                weighted = (
                    np.float64(count_below) * below.surface_area()
                    + np.float64(count_above) * above.surface_area()
                )
                costs.append(0.125 + weighted / (leaf_cost * total_area))

        # First minimum by strict comparison, so a leading NaN stays the choice.
        best = 0
        for index in range(1, len(costs)):
            if costs[index] < costs[best]:
                best = index

        if leaf_cost > 2 or costs[best] < leaf_cost:
            left = [v for v in values if bucket_of(v) <= best]
            right = [v for v in values if bucket_of(v) > best]
            return left, right
        return values, []


class BVHFactory:
    """Builds a two-way BVH from bounded values."""

    def __init__(self, root_box: AABB, data) -> None:
        self.root_box = root_box
        self._values = list(data)
        self._intersector: Intersector | None = None
        self._scheme: PartitionScheme = SAHPartitionScheme()
        self._max_depth = _DEFAULT_MAX_DEPTH
        self._nodes: list[BVHNode] = []

    def set_intersector(self, intersector: Intersector) -> BVHFactory:
        self._intersector = intersector
        return self

    def set_partition_scheme(self, scheme: PartitionScheme) -> BVHFactory:
        self._scheme = scheme
        return self

    def set_max_depth(self, depth: int) -> BVHFactory:
        self._max_depth = depth
        return self

    def generate(self) -> BVH:
        if self._intersector is None:
            raise ValueError("an intersector must be set before building a BVH")
        self._nodes = []
        root = self._split(self._values, self._max_depth)
        return BVH(root, self._nodes, self._intersector)

    def _split(self, values: list[BoundedValue], depth: int) -> int | None:
        if not values:
            return None

        bounds = AABB()
        for bounded in values:
            bounds.merge(bounded.bounds)

        node = BVHNode(bounding_box=bounds)
        left, right = self._scheme.partition(values)

        if depth == 0 or not right or len(values) == 2:
            node.values = left + right
        else:
            node.children = (self._split(left, depth - 1), self._split(right, depth - 1))

        self._nodes.append(node)
        return len(self._nodes) - 1