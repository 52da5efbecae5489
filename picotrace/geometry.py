"""Rays, axis aligned bounding boxes and small vector helpers."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from functools import reduce

import numpy as np

_TRANSFORM_LIMIT = 10000000.0


def _point(values) -> np.ndarray:
    """Return a homogeneous 4-component point; 3 components get w = 1."""
    arr = np.array(values, dtype=np.float64).reshape(-1)
    if arr.size == 3:
        arr = np.append(arr, 1.0)
    if arr.size != 4:
        raise ValueError(f"expected 3 or 4 components, got {arr.size}")
    return arr


def _vec3(values) -> np.ndarray:
    arr = np.array(values, dtype=np.float64).reshape(-1)
    if arr.size != 3:
        raise ValueError(f"expected 3 components, got {arr.size}")
    return arr


def _vec4(values) -> np.ndarray:
    arr = np.array(values, dtype=np.float64).reshape(-1)
    if arr.size != 4:
        raise ValueError(f"expected 4 components, got {arr.size}")
    return arr


def _reciprocal(direction: np.ndarray) -> np.ndarray:
    with np.errstate(divide="ignore"):
        return 1.0 / direction


def _ordered_max(a: float, b: float) -> float:
    return b if a < b else a


def _ordered_min(a: float, b: float) -> float:
    return b if b < a else a


class Intersection(enum.IntFlag):
    """How one box relates to another."""

    NONE = 0
    CONTAINS = 1 << 1
    PARTIAL = 1 << 2


@dataclass
class Ray:
    """A ray with a stack of the indices of refraction it is travelling through."""

    origin: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 0.0, 1.0]))
    direction: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 1.0]))
    length: float = math.inf
    payload: np.ndarray = field(default_factory=lambda: np.zeros(3))
    throughput: np.ndarray = field(default_factory=lambda: np.ones(3))
    inverse_direction: np.ndarray | None = None
    _ior_stack: list[float] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        self.origin = _point(self.origin)
        self.direction = _vec3(self.direction)
        self.payload = _vec3(self.payload)
        self.throughput = _vec3(self.throughput)
        if self.inverse_direction is None:
            self.inverse_direction = _reciprocal(self.direction)
        else:
            self.inverse_direction = _vec3(self.inverse_direction)

    def push_index_of_refraction(self, ior: float) -> None:
        self._ior_stack.append(float(ior))

    def pop_index_of_refraction(self) -> float:
        """Remove and return the innermost index; the outermost one must remain."""
        if len(self._ior_stack) < 2:
            raise IndexError("cannot pop the outermost index of refraction")
        return self._ior_stack.pop()

    def current_index_of_refraction(self) -> float:
        if not self._ior_stack:
            raise IndexError("no index of refraction has been pushed")
        return self._ior_stack[-1]

    def inside_geometry(self) -> bool:
        return len(self._ior_stack) > 1


def transform_ray(ray: Ray, transform) -> Ray:
    """Return a new ray moved by a 4x4 matrix; its refraction stack starts empty."""
    matrix = np.asarray(transform, dtype=np.float64)
    direction = matrix[:3, :3] @ ray.direction
    return Ray(
        origin=matrix @ ray.origin,
        direction=direction,
        length=ray.length,
        inverse_direction=_reciprocal(direction),
    )


def component_wise_min(lhs, rhs) -> np.ndarray:
    return np.minimum(np.asarray(lhs, dtype=np.float64), np.asarray(rhs, dtype=np.float64))


def component_wise_max(lhs, rhs) -> np.ndarray:
    return np.maximum(np.asarray(lhs, dtype=np.float64), np.asarray(rhs, dtype=np.float64))


def maximum_component_index(v) -> int:
    """Index of the component of largest magnitude among the first three."""
    x, y, z = (abs(float(c)) for c in list(v)[:3])
    if x >= y and x >= z:
        return 0
    if y >= x and y >= z:
        return 1
    return 2


@dataclass
class Cube:
    """The eight corners of a box, four on the minimum-y face, four on the maximum-y face."""

    upper1: np.ndarray
    upper2: np.ndarray
    upper3: np.ndarray
    upper4: np.ndarray
    lower1: np.ndarray
    lower2: np.ndarray
    lower3: np.ndarray
    lower4: np.ndarray


class AABB:
    """An axis aligned bounding box held as homogeneous minimum and maximum corners.

    Without corners the box is empty (minimum at +inf, maximum at -inf), so that
    adding points or merging boxes grows it from nothing.
    """

    __slots__ = ("minimum", "maximum")

    def __init__(self, minimum=None, maximum=None) -> None:
        self.minimum = np.full(4, math.inf) if minimum is None else _point(minimum)
        self.maximum = np.full(4, -math.inf) if maximum is None else _point(maximum)

    @classmethod
    def from_cube(cls, cube: Cube) -> AABB:
        return cls(cube.upper1, cube.lower3)

    def __repr__(self) -> str:
        return f"AABB({self.minimum.tolist()}, {self.maximum.tolist()})"

    def cube_vertices(self) -> list[np.ndarray]:
        mn, mx = self.minimum, self.maximum
        return [
            mn.copy(),
            np.array([mn[0], mn[1], mx[2], 1.0]),
            np.array([mx[0], mn[1], mx[2], 1.0]),
            np.array([mx[0], mn[1], mn[2], 1.0]),
            np.array([mn[0], mx[1], mn[2], 1.0]),
            np.array([mn[0], mx[1], mx[2], 1.0]),
            mx.copy(),
            np.array([mx[0], mx[1], mn[2], 1.0]),
        ]

    def cube(self) -> Cube:
        return Cube(*self.cube_vertices())

    def intersection_distance(self, ray: Ray) -> float:
        """Distance along the ray to the box, or infinity when it is missed."""
        nears = []
        fars = []
        for low, high, start, inverse in zip(
            self.minimum[:3], self.maximum[:3], ray.origin[:3], ray.inverse_direction
        ):
            t1 = (float(low) - float(start)) * float(inverse)
            t2 = (float(high) - float(start)) * float(inverse)
            near, far = (t2, t1) if t1 > t2 else (t1, t2)
            nears.append(near)
            fars.append(far)

        tmin = reduce(_ordered_max, nears)
        tmax = reduce(_ordered_min, fars)

        if tmax < 0 or tmin > tmax:
            return math.inf
        return tmin

    def contains_point(self, point) -> bool:
        p = np.asarray(point, dtype=np.float64)
        return bool(np.all(p[:3] >= self.minimum[:3]) and np.all(p[:3] <= self.maximum[:3]))

    def contains(self, aabb: AABB) -> Intersection:
        inside = [self.contains_point(vertex) for vertex in aabb.cube_vertices()]
        result = Intersection.PARTIAL if any(inside) else Intersection.NONE
        if all(inside):
            result |= Intersection.CONTAINS
        return result

    def add_point(self, p) -> None:
        point = _point(p)
        self.minimum = np.minimum(self.minimum, point)
        self.maximum = np.maximum(self.maximum, point)

    def merge(self, other: AABB) -> None:
        """Grow this box to enclose another."""
        self.minimum = np.minimum(self.minimum, other.minimum)
        self.maximum = np.maximum(self.maximum, other.maximum)

    @staticmethod
    def union_of(lhs: AABB, rhs: AABB) -> AABB:
        result = AABB(lhs.minimum, lhs.maximum)
        result.merge(rhs)
        return result

    def _transformed_corners(self, matrix) -> tuple[np.ndarray, np.ndarray]:
        m = np.asarray(matrix, dtype=np.float64)
        points = np.array(self.cube_vertices()) @ m.T
        points = points / points[:, 3:4]
        smallest = np.minimum(np.full(4, _TRANSFORM_LIMIT), points.min(axis=0))
        largest = np.maximum(np.full(4, -_TRANSFORM_LIMIT), points.max(axis=0))
        return smallest, largest

    def transformed(self, matrix) -> AABB:
        """The axis aligned box enclosing this box after a 4x4 transform."""
        return AABB(*self._transformed_corners(matrix))

    def __mul__(self, other) -> AABB:
        arr = np.asarray(other, dtype=np.float64)
        if arr.shape == (4, 4):
            return self.transformed(arr)
        vec = _vec4(arr)
        return AABB(self.minimum * vec, self.maximum * vec)

    def __add__(self, vec) -> AABB:
        v = _vec4(vec)
        return AABB(self.minimum + v, self.maximum + v)

    def __sub__(self, vec) -> AABB:
        v = _vec4(vec)
        return AABB(self.minimum - v, self.maximum - v)

    def __imul__(self, other) -> AABB:
        arr = np.asarray(other, dtype=np.float64)
        if arr.shape == (4, 4):
            self.minimum, self.maximum = self._transformed_corners(arr)
        else:
            vec = _vec4(arr)
            self.minimum = self.minimum * vec
            self.maximum = self.maximum * vec
        return self

    def __iadd__(self, vec) -> AABB:
        v = _vec4(vec)
        self.minimum = self.minimum + v
        self.maximum = self.maximum + v
        return self

    def __isub__(self, vec) -> AABB:
        v = _vec4(vec)
        self.minimum = self.minimum - v
        self.maximum = self.maximum - v
        return self

    def central_point(self) -> np.ndarray:
        return self.minimum + (self.maximum - self.minimum) * 0.5

    def side_lengths(self) -> np.ndarray:
        return np.abs(self.maximum - self.minimum)[:3]

    def surface_area(self) -> float:
        x, y, z = self.side_lengths()
        return float(2.0 * (x * y + x * z + y * z))

    def offset(self, p) -> np.ndarray:
        """Position of a point relative to the box, 0 at the minimum and 1 at the maximum."""
        o = (_point(p) - self.minimum)[:3]
        extent = (self.maximum - self.minimum)[:3]
        with np.errstate(divide="ignore", invalid="ignore"):
            scaled = o / extent
        return np.where(self.maximum[:3] > self.minimum[:3], scaled, o)