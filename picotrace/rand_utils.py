"""Low discrepancy sequences, sampling warps and a small fast random generator."""

from __future__ import annotations

import math
from itertools import accumulate

import numpy as np

_MASK32 = 0xFFFFFFFF


def radical_inverse_vdc(bits: int) -> float:
    """Van der Corput radical inverse in base 2 of a 32-bit integer."""
    bits &= _MASK32
    bits = ((bits << 16) | (bits >> 16)) & _MASK32
    bits = ((bits & 0x55555555) << 1) | ((bits & 0xAAAAAAAA) >> 1)
    bits = ((bits & 0x33333333) << 2) | ((bits & 0xCCCCCCCC) >> 2)
    bits = ((bits & 0x0F0F0F0F) << 4) | ((bits & 0xF0F0F0F0) >> 4)
    bits = ((bits & 0x00FF00FF) << 8) | ((bits & 0xFF00FF00) >> 8)
    return float(np.float32(float(np.float32(bits)) * 2.3283064365386963e-10))


def hammersley(i: int, n: int) -> np.ndarray:
    """The i-th point of an n-point Hammersley set."""
    with np.errstate(divide="ignore", invalid="ignore"):
        x = float(np.float32(i) / np.float32(n))
    return np.array([x, radical_inverse_vdc(i)])


def uniform_sample_triangle(xi) -> np.ndarray:
    """Map a point of the unit square to uniform barycentric coordinates."""
    su0 = math.sqrt(xi[0])
    return np.array([1.0 - su0, xi[1] * su0])


def uniform_sample_hemisphere(xi) -> np.ndarray:
    z = float(xi[0])
    r = math.sqrt(max(0.0, 1.0 - z * z))
    phi = 2.0 * math.pi * xi[1]
    return np.array([r * math.cos(phi), r * math.sin(phi), z])


def uniform_sample_sphere(xi) -> np.ndarray:
    z = 1.0 - 2.0 * xi[0]
    r = math.sqrt(max(0.0, 1.0 - z * z))
    phi = 2.0 * math.pi * xi[1]
    return np.array([r * math.cos(phi), r * math.sin(phi), z])


def choose(r: float, probs, norm: float = 1.0) -> int | None:
    """Index picked by ``r`` from a list of probabilities, or None if ``r`` exceeds their total."""
    for index, running_total in enumerate(accumulate(p / norm for p in probs)):
        if r <= running_total:
            return index
    return None


def _rotl(x: int, k: int) -> int:
    return ((x << k) | (x >> (32 - k))) & _MASK32


class XorShiftRandom:
    """A 32-bit xoshiro128++ generator seeded from a single integer."""

    MIN = 0
    MAX = _MASK32

    def __init__(self, seed: int) -> None:
        seed &= _MASK32
        self._state = [_rotl(seed, 3), _rotl(seed, 7), _rotl(seed, 11), _rotl(seed, 13)]

    def next(self) -> int:
        s0, s1, s2, s3 = self._state
        result = (_rotl((s0 + s3) & _MASK32, 7) + s0) & _MASK32
        t = (s1 << 9) & _MASK32

        s2 ^= s0
        s3 ^= s1
        s1 ^= s2
        s0 ^= s3
        s2 ^= t
        s3 = _rotl(s3, 11)

        self._state = [s0, s1, s2, s3]
        return result

    def __call__(self) -> int:
        return self.next()


_MAX_SAMPLES = _MASK32


class HammersleyGenerator:
    """Hammersley points indexed by a random sequence."""

    def __init__(self, seed: int) -> None:
        self.xor_random = XorShiftRandom(seed)

    def next(self) -> np.ndarray:
        return hammersley(self.xor_random.next(), _MAX_SAMPLES)