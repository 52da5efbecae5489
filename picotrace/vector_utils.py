"""Colour packing and tangent-space trigonometry helpers."""

from __future__ import annotations

import math

import numpy as np

_CHANNEL_SHIFTS = (0, 8, 16, 24)


def pack_colour(colour) -> int:
    """Pack an RGBA colour with channels in [0, 1] into a 32-bit integer, red lowest."""
    result = 0
    for channel, shift in zip(list(colour)[:4], _CHANNEL_SHIFTS):
        result |= int(np.float32(channel) * np.float32(255.0)) << shift
    return result & 0xFFFFFFFF


def unpack_colour(colour: int) -> np.ndarray:
    """Unpack a 32-bit RGBA integer into four channels in [0, 1]."""
    return np.array([((colour >> shift) & 0xFF) / 255.0 for shift in _CHANNEL_SHIFTS])


def spherical_direction(sin_theta: float, cos_theta: float, phi: float) -> np.ndarray:
    return np.array([sin_theta * math.cos(phi), sin_theta * math.sin(phi), cos_theta])


def _normalize(v: np.ndarray) -> np.ndarray:
    return v / np.linalg.norm(v)


def world_to_tangent_transform(v, n) -> np.ndarray:
    """Matrix taking world vectors into the frame whose z axis is the normal ``n``.

    The tangent is built from ``v``; when ``v`` is nearly parallel to ``n`` a
    fixed axis is used instead.
    """
    view = np.asarray(v, dtype=np.float64)
    normal = np.asarray(n, dtype=np.float64)

    if abs(float(np.dot(view, normal))) > 0.95:
        helper = np.array([1.0, 0.0, 0.0]) if abs(normal[2]) > 0.99 else np.array([0.0, 0.0, 1.0])
        tangent = _normalize(np.cross(normal, helper))
    else:
        tangent = _normalize(np.cross(view, normal))

    bitangent = _normalize(np.cross(tangent, normal))
    return np.array([tangent, bitangent, normal])


def cos_theta(w) -> float:
    return float(w[2])


def cos2_theta(w) -> float:
    return float(w[2]) * float(w[2])


def abs_cos_theta(w) -> float:
    return abs(float(w[2]))


def sin2_theta(w) -> float:
    return max(0.0, 1.0 - cos2_theta(w))


def sin_theta(w) -> float:
    return math.sqrt(sin2_theta(w))


def _divide(numerator: float, denominator: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(numerator) / np.float64(denominator))


def tan_theta(w) -> float:
    return _divide(sin_theta(w), cos_theta(w))


def tan2_theta(w) -> float:
    return _divide(sin2_theta(w), cos2_theta(w))


def _clamp(x: float, low: float, high: float) -> float:
    return min(max(x, low), high)


def cos_phi(w) -> float:
    s = sin_theta(w)
    return 1.0 if s == 0 else _clamp(float(w[0]) / s, -1.0, 1.0)


def sin_phi(w) -> float:
    s = sin_theta(w)
    return 0.0 if s == 0 else _clamp(float(w[1]) / s, -1.0, 1.0)


def cos2_phi(w) -> float:
    return cos_phi(w) * cos_phi(w)


def sin2_phi(w) -> float:
    return sin_phi(w) * sin_phi(w)


def same_hemisphere(w, wp) -> bool:
    return float(w[2]) * float(wp[2]) > 0.0