"""Textures and cube maps held as raw pixel bytes, with nearest-texel sampling."""

from __future__ import annotations

import enum
import math
import struct
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image as PILImage


class Format(enum.Enum):
    """Pixel layouts an image can hold."""

    RGBA_8UNORM = enum.auto()
    RGB_8UNORM = enum.auto()
    R_8UNORM = enum.auto()
    RGBA_F = enum.auto()


_PIXEL_SIZES = {
    Format.RGBA_8UNORM: 4,
    Format.RGB_8UNORM: 3,
    Format.R_8UNORM: 1,
    Format.RGBA_F: 16,
}

_CHANNELS = {
    Format.RGBA_8UNORM: 4,
    Format.RGB_8UNORM: 3,
    Format.R_8UNORM: 1,
    Format.RGBA_F: 4,
}

_FORMAT_BY_COMPONENTS = {
    4: Format.RGBA_8UNORM,
    3: Format.RGB_8UNORM,
    1: Format.R_8UNORM,
}

_PIL_MODE_BY_CHANNELS = {1: "L", 3: "RGB", 4: "RGBA"}

_FLOAT_SIZE = 4


def pixel_size(fmt: Format) -> int:
    """Bytes taken by one pixel of the format."""
    return _PIXEL_SIZES[fmt]


def format_channels(fmt: Format) -> int:
    """Number of channels in the format."""
    return _CHANNELS[fmt]


@dataclass(frozen=True)
class ImageExtent:
    """Size of an image; a cube map of six faces has a depth of 6."""

    width: int
    height: int
    depth: int = 1


def _as_bytes(data) -> bytes | None:
    if data is None:
        return None
    if isinstance(data, np.ndarray):
        return np.ascontiguousarray(data).tobytes()
    return bytes(data)


def _components(image: PILImage.Image) -> int:
    if image.mode == "P":
        return 4 if "transparency" in image.info else 3
    return len(image.getbands())


class Image:
    """Pixel data of a known extent and format, possibly loaded lazily from a file."""

    def __init__(self, data, extent, fmt: Format) -> None:
        self.extent = extent if isinstance(extent, ImageExtent) else ImageExtent(*extent)
        self.format = Format(fmt)
        self.pixel_size = pixel_size(self.format)
        self.path: Path | None = None
        self.data = _as_bytes(data)
        if self.data is not None and len(self.data) < self.residence_size():
            raise ValueError(
                f"image data holds {len(self.data)} bytes, {self.residence_size()} needed"
            )

    @classmethod
    def from_path(cls, path):
        """Describe an image file without loading its pixels."""
        file_path = Path(path)
        with PILImage.open(file_path) as source:
            width, height = source.size
            components = _components(source)
        fmt = _FORMAT_BY_COMPONENTS.get(components)
        if fmt is None:
            raise ValueError(f"unsupported number of channels ({components}) in {file_path}")
        image = cls(None, ImageExtent(width, height, 1), fmt)
        image.path = file_path
        return image

    def residence_size(self) -> int:
        """Bytes needed to hold all pixels."""
        e = self.extent
        return e.width * e.height * e.depth * self.pixel_size

    def is_resident(self) -> bool:
        return self.data is not None

    def make_resident(self) -> None:
        """Load the pixels from the image's file."""
        if self.path is None:
            raise ValueError("image has no file to load from")
        if self.format is Format.RGBA_F:
            raise ValueError("floating point images cannot be loaded from a file")
        mode = _PIL_MODE_BY_CHANNELS[format_channels(self.format)]
        with PILImage.open(self.path) as source:
            pixels = source.convert(mode).tobytes()
        self.data = pixels[: self.residence_size()]

    def make_nonresident(self) -> None:
        """Drop loaded pixels; images without a file keep theirs."""
        if self.path is not None:
            self.data = None

    def _offset(self, uv, face: int = 0) -> int:
        if self.data is None:
            raise RuntimeError("image is not resident")
        width, height = self.extent.width, self.extent.height
        x = int(np.float32(uv[0]) * np.float32(width)) % width
        y = int(np.float32(uv[1]) * np.float32(height)) % height
        return self.pixel_size * (y * width + x) + face * width * height * self.pixel_size

    def _floats(self, offset: int, count: int) -> np.ndarray:
        return np.array(struct.unpack_from(f"={count}f", self.data, offset), dtype=np.float64)

    def _bytes(self, offset: int, count: int) -> np.ndarray:
        return np.frombuffer(self.data, dtype=np.uint8, count=count, offset=offset) / 255.0

    def _read1(self, offset: int) -> float:
        if self.pixel_size == _FLOAT_SIZE:
            return float(self._floats(offset, 1)[0])
        if self.pixel_size == 1:
            return float(self._bytes(offset, 1)[0])
        return 0.0

    def _read2(self, offset: int) -> np.ndarray:
        if self.pixel_size == 2 * _FLOAT_SIZE:
            return self._floats(offset, 2)
        if self.pixel_size == 2:
            return self._bytes(offset, 2)
        return np.zeros(2)

    def _read3(self, offset: int) -> np.ndarray:
        if self.pixel_size == 3 * _FLOAT_SIZE:
            return self._floats(offset, 3)
        if self.pixel_size == 3:
            return self._bytes(offset, 3)
        return np.zeros(3)


class Image2D(Image):
    """A flat texture addressed by wrapping uv coordinates."""

    def sample(self, uv) -> float:
        return self._read1(self._offset(uv))

    def sample2(self, uv) -> np.ndarray:
        return self._read2(self._offset(uv))

    def sample3(self, uv) -> np.ndarray:
        return self._read3(self._offset(uv))

    def sample4(self, uv) -> np.ndarray:
        offset = self._offset(uv)
        if self.pixel_size == 4 * _FLOAT_SIZE:
            return self._floats(offset, 4)
        if self.pixel_size == 3:
            return np.append(self._bytes(offset, 3), 0.0)
        if self.pixel_size == 4:
            return self._bytes(offset, 4)
        return np.zeros(4)


def _cube_face_uv(v) -> tuple[int, np.ndarray]:
    x, y, z = (float(c) for c in list(v)[:3])
    ax, ay, az = abs(x), abs(y), abs(z)
    if az >= ax and az >= ay:
        face = 5 if z < 0.0 else 4
        ma = 0.5 / az
        uv = (-x if z < 0.0 else x, -y)
    elif ay >= ax:
        face = 3 if y < 0.0 else 2
        ma = 0.5 / ay
        uv = (x, -z if y < 0.0 else z)
    else:
        face = 1 if x < 0.0 else 0
        ma = 0.5 / ax
        uv = (z if x < 0.0 else -z, -y)
    return face, np.array(uv) * ma + 0.5


def _equirectangular_uv(v) -> np.ndarray:
    x, y, z = (float(c) for c in list(v)[:3])
    u = math.atan2(z, x) / (2.0 * math.pi) + 0.5
    w = math.asin(y) / math.pi + 0.5
    return np.array([u, 1.0 - w])


class ImageCube(Image):
    """An environment map: six faces when the depth is 6, else an equirectangular image."""

    def _direction_offset(self, direction) -> int:
        if self.extent.depth == 6:
            face, uv = _cube_face_uv(direction)
            return self._offset(uv, face)
        return self._offset(_equirectangular_uv(direction))

    def sample(self, direction) -> float:
        return self._read1(self._direction_offset(direction))

    def sample2(self, direction) -> np.ndarray:
        return self._read2(self._direction_offset(direction))

    def sample3(self, direction) -> np.ndarray:
        return self._read3(self._direction_offset(direction))

    def sample4(self, direction) -> np.ndarray:
        offset = self._direction_offset(direction)
        if self.pixel_size == 4 * _FLOAT_SIZE:
            return self._floats(offset, 4)
        if self.pixel_size == 4:
            return self._bytes(offset, 4)
        return np.zeros(4)