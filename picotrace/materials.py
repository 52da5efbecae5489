"""Material interface, evaluated material values and the material registry."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field

import numpy as np


@dataclass
class EvaluatedMaterial:
    """Material properties at one surface point."""

    diffuse: np.ndarray = field(default_factory=lambda: np.zeros(3))
    specular: np.ndarray = field(default_factory=lambda: np.zeros(3))
    roughness: float = 0.0
    normal: np.ndarray = field(default_factory=lambda: np.zeros(3))
    emissive: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def emits_light(self) -> bool:
        return bool(np.any(np.asarray(self.emissive, dtype=np.float64)[:3] > 0.0))

    def diffuse_magnitude(self) -> float:
        return float(np.linalg.norm(np.asarray(self.diffuse, dtype=np.float64)))

    def specular_magnitude(self) -> float:
        return float(np.linalg.norm(np.asarray(self.specular, dtype=np.float64)))

    def reflectance(self) -> float:
        """Share of the specular magnitude in the total; NaN for a black material."""
        specular = np.float64(self.specular_magnitude())
        with np.errstate(invalid="ignore", divide="ignore"):
            return float(specular / (specular + np.float64(self.diffuse_magnitude())))


class Material(abc.ABC):
    """A shader that evaluates to material properties and may need loading first."""

    @abc.abstractmethod
    def evaluate_material(self, uv) -> EvaluatedMaterial:
        """Properties at the texture coordinate ``uv``."""

    @abc.abstractmethod
    def is_light(self) -> bool:
        """Whether the material emits light."""

    @abc.abstractmethod
    def is_resident(self) -> bool:
        """Whether the material's data is loaded."""

    @abc.abstractmethod
    def residence_size(self) -> int:
        """Bytes the loaded data takes."""

    @abc.abstractmethod
    def make_resident(self) -> None:
        """Load the material's data."""

    @abc.abstractmethod
    def make_nonresident(self) -> None:
        """Release the material's data."""


class MaterialManager:
    """Owns materials, loads them on registration and hands out integer ids."""

    def __init__(self) -> None:
        self._materials: list[Material] = []

    def __len__(self) -> int:
        return len(self._materials)

    def add_material(self, material: Material) -> int:
        if not material.is_resident():
            material.make_resident()
        self._materials.append(material)
        return len(self._materials) - 1

    def get_material(self, material_id: int) -> Material:
        if material_id < 0:
            raise IndexError(f"invalid material id {material_id}")
        return self._materials[material_id]

    def evaluate_material(self, material_id: int, uv) -> EvaluatedMaterial:
        return self.get_material(material_id).evaluate_material(uv)

    def close(self) -> None:
        """Release the data of every material."""
        for material in self._materials:
            material.make_nonresident()

    def __enter__(self) -> MaterialManager:
        return self

    def __exit__(self, *args) -> None:
        self.close()