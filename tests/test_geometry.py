import math

import numpy as np
import pytest

from picotrace.geometry import (
    AABB,
    Intersection,
    Ray,
    component_wise_max,
    component_wise_min,
    maximum_component_index,
    transform_ray,
)


def _translation(x, y, z):
    m = np.eye(4)
    m[:3, 3] = (x, y, z)
    return m


def _unit_box():
    return AABB((-1.0, -1.0, -1.0), (1.0, 1.0, 1.0))


def test_ior_stack_push_pop():
    ray = Ray()
    ray.push_index_of_refraction(1.0)
    assert not ray.inside_geometry()
    ray.push_index_of_refraction(1.5)
    assert ray.inside_geometry()
    assert ray.current_index_of_refraction() == 1.5
    assert ray.pop_index_of_refraction() == 1.5
    assert ray.current_index_of_refraction() == 1.0
    assert not ray.inside_geometry()


def test_ior_pop_of_outermost_raises():
    ray = Ray()
    ray.push_index_of_refraction(1.0)
    with pytest.raises(IndexError):
        ray.pop_index_of_refraction()


def test_ior_current_on_empty_raises():
    with pytest.raises(IndexError):
        Ray().current_index_of_refraction()


def test_inverse_direction_is_reciprocal():
    ray = Ray(direction=(2.0, 4.0, -0.5))
    assert np.allclose(ray.inverse_direction * ray.direction, 1.0)


def test_origin_gets_homogeneous_w():
    ray = Ray(origin=(3.0, 4.0, 5.0))
    assert ray.origin.tolist() == [3.0, 4.0, 5.0, 1.0]


def test_transform_ray_translation():
    ray = Ray(origin=(0.0, 0.0, 0.0), direction=(0.0, 1.0, 0.0), length=7.0)
    ray.push_index_of_refraction(1.0)
    moved = transform_ray(ray, _translation(1.0, 2.0, 3.0))
    assert moved.origin.tolist() == [1.0, 2.0, 3.0, 1.0]
    assert np.allclose(moved.direction, ray.direction)
    assert moved.length == ray.length
    with pytest.raises(IndexError):
        moved.current_index_of_refraction()


def test_component_wise_min_max():
    a = (1.0, 5.0, -2.0)
    b = (3.0, 0.0, -4.0)
    assert component_wise_min(a, b).tolist() == [1.0, 0.0, -4.0]
    assert component_wise_max(a, b).tolist() == [3.0, 5.0, -2.0]


@pytest.mark.parametrize(
    "vector, expected",
    [((1.0, -5.0, 2.0), 1), ((3.0, 3.0, 1.0), 0), ((1.0, 2.0, -3.0), 2), ((0.0, 2.0, 2.0), 1)],
)
def test_maximum_component_index(vector, expected):
    assert maximum_component_index(vector) == expected


def test_cube_round_trip():
    box = AABB((0.0, 1.0, 2.0), (3.0, 4.0, 5.0))
    again = AABB.from_cube(box.cube())
    assert np.array_equal(again.minimum, box.minimum)
    assert np.array_equal(again.maximum, box.maximum)


def test_cube_vertices_are_inside_and_distinct():
    box = AABB((0.0, 1.0, 2.0), (3.0, 4.0, 5.0))
    vertices = box.cube_vertices()
    assert all(box.contains_point(v) for v in vertices)
    assert len({tuple(v) for v in vertices}) == 8


def test_contains_self_is_full():
    box = _unit_box()
    assert box.contains(box) == Intersection.CONTAINS | Intersection.PARTIAL


def test_contains_partial_and_none():
    a = AABB((0.0, 0.0, 0.0), (2.0, 2.0, 2.0))
    overlapping = AABB((1.0, 1.0, 1.0), (3.0, 3.0, 3.0))
    far = AABB((10.0, 10.0, 10.0), (11.0, 11.0, 11.0))
    assert a.contains(overlapping) == Intersection.PARTIAL
    assert a.contains(far) == Intersection.NONE


def test_intersection_distance_hits_surface():
    box = _unit_box()
    ray = Ray(origin=(0.0, 0.0, -5.0), direction=(0.0, 0.0, 1.0))
    d = box.intersection_distance(ray)
    hit = ray.origin[:3] + d * ray.direction
    assert hit[2] == pytest.approx(box.minimum[2])
    assert box.contains_point(hit)


def test_intersection_distance_grows_with_origin_distance():
    box = _unit_box()
    near = box.intersection_distance(Ray(origin=(0.0, 0.0, -5.0), direction=(0.0, 0.0, 1.0)))
    far = box.intersection_distance(Ray(origin=(0.0, 0.0, -10.0), direction=(0.0, 0.0, 1.0)))
    assert far - near == pytest.approx(5.0)


def test_intersection_distance_misses():
    box = _unit_box()
    away = Ray(origin=(0.0, 0.0, -5.0), direction=(0.0, 0.0, -1.0))
    beside = Ray(origin=(5.0, 5.0, -5.0), direction=(0.0, 0.0, 1.0))
    assert box.intersection_distance(away) == math.inf
    assert box.intersection_distance(beside) == math.inf


def test_intersection_from_inside_is_negative():
    box = _unit_box()
    ray = Ray(origin=(0.0, 0.0, 0.0), direction=(0.0, 0.0, 1.0))
    assert box.intersection_distance(ray) < 0.0


def test_empty_box_grows_from_point():
    box = AABB()
    box.add_point((1.0, 2.0, 3.0))
    assert box.minimum.tolist() == [1.0, 2.0, 3.0, 1.0]
    assert box.maximum.tolist() == [1.0, 2.0, 3.0, 1.0]
    assert box.surface_area() == 0.0


def test_add_point_extends_box():
    box = _unit_box()
    box.add_point((4.0, 0.0, 0.0))
    assert box.contains_point((4.0, 0.0, 0.0))
    assert box.contains_point((-1.0, -1.0, -1.0))


def test_merge_and_union_contain_both():
    a = AABB((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
    b = AABB((5.0, -2.0, 3.0), (6.0, 0.0, 4.0))
    union = AABB.union_of(a, b)
    assert union.contains(a) & Intersection.CONTAINS
    assert union.contains(b) & Intersection.CONTAINS
    assert a.minimum.tolist() == [0.0, 0.0, 0.0, 1.0]
    a.merge(b)
    assert np.array_equal(a.minimum, union.minimum)
    assert np.array_equal(a.maximum, union.maximum)


def test_scaling_box_scales_surface_area():
    box = AABB((0.0, 0.0, 0.0), (1.0, 2.0, 3.0))
    scaled = box * (2.0, 2.0, 2.0, 1.0)
    assert scaled.surface_area() == pytest.approx(4.0 * box.surface_area())


def test_translation_matrix_matches_vector_add():
    box = AABB((0.0, 1.0, 2.0), (3.0, 4.0, 5.0))
    by_matrix = box * _translation(1.0, 2.0, 3.0)
    by_vector = box + (1.0, 2.0, 3.0, 0.0)
    assert np.allclose(by_matrix.minimum, by_vector.minimum)
    assert np.allclose(by_matrix.maximum, by_vector.maximum)


def test_identity_transform_keeps_box():
    box = AABB((0.0, 1.0, 2.0), (3.0, 4.0, 5.0))
    same = box.transformed(np.eye(4))
    assert np.allclose(same.minimum, box.minimum)
    assert np.allclose(same.maximum, box.maximum)


def test_rotation_swaps_side_lengths():
    box = AABB((0.0, 0.0, 0.0), (2.0, 1.0, 3.0))
    rotation = np.array(
        [[0.0, -1.0, 0.0, 0.0], [1.0, 0.0, 0.0, 0.0], [0.0, 0.0, 1.0, 0.0], [0.0, 0.0, 0.0, 1.0]]
    )
    rotated = box * rotation
    assert np.allclose(rotated.side_lengths(), box.side_lengths()[[1, 0, 2]])


def test_in_place_operators_round_trip():
    box = AABB((0.0, 1.0, 2.0), (3.0, 4.0, 5.0))
    original_min = box.minimum.copy()
    box += (1.0, 1.0, 1.0, 0.0)
    assert not np.array_equal(box.minimum, original_min)
    box -= (1.0, 1.0, 1.0, 0.0)
    assert np.array_equal(box.minimum, original_min)
    box *= _translation(0.0, 0.0, 10.0)
    assert box.minimum[2] == pytest.approx(original_min[2] + 10.0)


def test_subtract_vector():
    box = AABB((0.0, 1.0, 2.0), (3.0, 4.0, 5.0))
    moved = box - (0.0, 1.0, 2.0, 0.0)
    assert moved.minimum[:3].tolist() == [0.0, 0.0, 0.0]


def test_vector_operand_must_have_four_components():
    with pytest.raises(ValueError):
        _unit_box() + (1.0, 2.0)


def test_central_point_and_offset():
    box = AABB((0.0, 2.0, -4.0), (2.0, 6.0, 4.0))
    centre = box.central_point()
    assert box.contains_point(centre)
    assert np.allclose(box.offset(box.minimum), 0.0)
    assert np.allclose(box.offset(box.maximum), 1.0)
    assert np.allclose(box.offset(centre), 0.5)


def test_offset_of_flat_axis_is_unscaled():
    box = AABB((0.0, 0.0, 1.0), (2.0, 2.0, 1.0))
    assert box.offset((1.0, 1.0, 3.0))[2] == pytest.approx(2.0)