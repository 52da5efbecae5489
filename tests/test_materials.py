import math

import numpy as np
import pytest

from picotrace.materials import EvaluatedMaterial, Material, MaterialManager


class ColourMaterial(Material):
    def __init__(self, colour, light=False, resident=False):
        self.colour = np.array(colour, dtype=float)
        self.light = light
        self.resident = resident
        self.loads = 0

    def evaluate_material(self, uv):
        return EvaluatedMaterial(diffuse=self.colour * uv[0], roughness=uv[1])

    def is_light(self):
        return self.light

    def is_resident(self):
        return self.resident

    def residence_size(self):
        return 12

    def make_resident(self):
        self.loads += 1
        self.resident = True

    def make_nonresident(self):
        self.resident = False


def test_emits_light():
    assert EvaluatedMaterial(emissive=np.array([0.0, 0.0, 0.2])).emits_light()
    assert not EvaluatedMaterial(emissive=np.array([0.0, -1.0, 0.0])).emits_light()


def test_magnitudes_and_reflectance():
    material = EvaluatedMaterial(diffuse=np.array([3.0, 4.0, 0.0]), specular=np.array([0.0, 0.0, 5.0]))
    assert material.diffuse_magnitude() == pytest.approx(5.0)
    assert material.specular_magnitude() == pytest.approx(5.0)
    assert material.reflectance() == pytest.approx(0.5)


def test_reflectance_of_black_material_is_nan():
    reflectance = EvaluatedMaterial().reflectance()
    assert reflectance == pytest.approx(math.nan, nan_ok=True)


def test_add_material_loads_and_assigns_ids():
    manager = MaterialManager()
    first = ColourMaterial([1, 0, 0])
    second = ColourMaterial([0, 1, 0], resident=True)

    assert manager.add_material(first) == 0
    assert manager.add_material(second) == 1
    assert first.loads == 1 and first.is_resident()
    assert second.loads == 0
    assert manager.get_material(1) is second
    assert len(manager) == 2


def test_evaluate_material_delegates():
    manager = MaterialManager()
    material_id = manager.add_material(ColourMaterial([0.0, 1.0, 0.5]))
    result = manager.evaluate_material(material_id, (0.5, 0.25))
    np.testing.assert_allclose(result.diffuse, [0.0, 0.5, 0.25])
    assert result.roughness == pytest.approx(0.25)


def test_unknown_id_raises():
    manager = MaterialManager()
    manager.add_material(ColourMaterial([1, 1, 1]))
    with pytest.raises(IndexError):
        manager.get_material(1)
    with pytest.raises(IndexError):
        manager.evaluate_material(-1, (0.0, 0.0))


def test_context_manager_releases_materials():
    material = ColourMaterial([1, 1, 1])
    with MaterialManager() as manager:
        manager.add_material(material)
        assert material.is_resident()
    assert not material.is_resident()


def test_material_is_abstract():
    with pytest.raises(TypeError):
        Material()