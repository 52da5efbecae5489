"""Implicit shapes that rays can hit and that lights can be sampled from."""

from __future__ import annotations

import abc
import math

import numpy as np

from .bvh import InterpolatedVertex
from .geometry import AABB, Ray, maximum_component_index
from .rand_utils import HammersleyGenerator, uniform_sample_sphere

_CUBE_HALF_SIZE = 0.5


class Geometry(abc.ABC):
    """An object-space shape: intersection, bounds and surface sampling."""

    @abc.abstractmethod
    def calculate_intersection(self, ray: Ray) -> InterpolatedVertex | None:
        """The closest hit of the ray with the shape, or None."""

    @abc.abstractmethod
    def bounds(self) -> AABB:
        """The box enclosing the shape."""

    @abc.abstractmethod
    def generate_sampling_data(self) -> None:
        """Prepare whatever surface sampling needs."""

    @abc.abstractmethod
    def sample_geometry(self, rand: HammersleyGenerator) -> tuple[np.ndarray, float]:
        """A point on the shape and the probability density of picking it."""


class Sphere(Geometry):
    """A sphere centred on the origin."""

    def __init__(self, radius: float) -> None:
        self.radius = float(radius)

    def calculate_intersection(self, ray: Ray) -> InterpolatedVertex | None:
        m = np.asarray(ray.origin, dtype=np.float64)[:3]
        direction = np.asarray(ray.direction, dtype=np.float64)

        b = float(np.dot(m, direction))
        c = float(np.dot(m, m)) - self.radius * self.radius
        if c > 0.0 and b > 0.0:
            return None

        discriminant = b * b - c
        if discriminant < 0.0:
            return None

        # A ray starting inside the sphere hits at its origin.
        t = max(-b - math.sqrt(discriminant), 0.0)

        position = np.asarray(ray.origin, dtype=np.float64) + t * np.append(direction, 1.0)
        position[3] = 1.0
        with np.errstate(invalid="ignore", divide="ignore"):
            normal = position[:3] / np.linalg.norm(position[:3])
        uv = np.array(
            [
                math.atan2(normal[0], normal[2]) / (2.0 * math.pi) + 0.5,
                normal[1] * 0.5 + 0.5,
            ]
        )
        return InterpolatedVertex(
            position=position,
            normal=normal,
            uv=uv,
            vertex_colour=np.ones(4),
        )

    def bounds(self) -> AABB:
        r = self.radius
        return AABB([-r, -r, -r, 1.0], [r, r, r, 1.0])

    def generate_sampling_data(self) -> None:
        """A sphere is sampled analytically; nothing to prepare."""

    def sample_geometry(self, rand: HammersleyGenerator) -> tuple[np.ndarray, float]:
        point = self.radius * uniform_sample_sphere(rand.next())
        return point, 1.0


class UnitCube(Geometry):
    """A cube of side one centred on the origin."""

    def __init__(self) -> None:
        h = _CUBE_HALF_SIZE
        self._box = AABB([-h, -h, -h, 1.0], [h, h, h, 1.0])

    def calculate_intersection(self, ray: Ray) -> InterpolatedVertex | None:
        t = self._box.intersection_distance(ray)
        if t == math.inf:
            return None

        position = np.asarray(ray.origin, dtype=np.float64) + np.append(
            np.asarray(ray.direction, dtype=np.float64) * t, 1.0
        )
        position[3] = 1.0

        axis = maximum_component_index(position[:3])
        normal = np.zeros(3)
        normal[axis] = float(np.sign(position[axis]))

        return InterpolatedVertex(
            position=position,
            normal=normal,
            uv=np.zeros(2),
            vertex_colour=np.ones(4),
        )

    def bounds(self) -> AABB:
        return AABB(self._box.minimum, self._box.maximum)

    def generate_sampling_data(self) -> None:
        """A cube is sampled analytically; nothing to prepare."""

    def sample_geometry(self, rand: HammersleyGenerator) -> tuple[np.ndarray, float]:
        xi = rand.next()
        xj = rand.next()
        xk = rand.next()

        corner = np.sign(np.array([xi[0], xi[1], xj[0]]) - 0.5)

        zero_axis = min(int(xj[1] * 3.0), 2)
        face_offset = np.zeros(3)
        face_offset[(zero_axis + 1) % 3] = xk[0]
        face_offset[(zero_axis + 2) % 3] = xk[1]

        point = corner * _CUBE_HALF_SIZE + (-corner * face_offset)
        return point, 1.0