import numpy as np
import pytest

from picotrace.geometry import Ray
from picotrace.mesh import TriangleMesh
from picotrace.scene_bvh import InstanceIntersector, SceneBVH


def quad():
    return TriangleMesh(
        "quad",
        [[-1, -1, 0], [1, -1, 0], [1, 1, 0], [-1, 1, 0]],
        [[0, 0, 1]] * 4,
        [0, 1, 2, 0, 2, 3],
        [[0, 0], [1, 0], [1, 1], [0, 1]],
        None,
    )


def translation(x, y, z):
    matrix = np.eye(4)
    matrix[:3, 3] = [x, y, z]
    return matrix


def test_closest_instance_is_returned():
    scene = SceneBVH()
    scene.add_instance(quad(), translation(0, 0, 5), "far")
    scene.add_instance(quad(), translation(0, 0, 2), "near")
    scene.build()

    hit = scene.closest_intersection(Ray(origin=[0.5, -0.5, 0], direction=[0, 0, 1]))
    assert hit.bsrdf == "near"
    np.testing.assert_allclose(np.asarray(hit.position)[:3], [0.5, -0.5, 2.0], atol=1e-9)

    behind = scene.closest_intersection(Ray(origin=[0.5, -0.5, 10], direction=[0, 0, -1]))
    assert behind.bsrdf == "far"


def test_miss_returns_none():
    scene = SceneBVH()
    scene.add_instance(quad(), translation(0, 0, 2), "only")
    scene.build()
    assert scene.closest_intersection(Ray(origin=[5, 5, 0], direction=[0, 0, 1])) is None


def test_scaled_instance():
    transform = translation(0, 0, 3) @ np.diag([2.0, 1.0, 1.0, 1.0])
    scene = SceneBVH()
    scene.add_instance(quad(), transform, "wide")
    scene.build()

    hit = scene.closest_intersection(Ray(origin=[1.5, 0.2, 0], direction=[0, 0, 1]))
    np.testing.assert_allclose(np.asarray(hit.position)[:3], [1.5, 0.2, 3.0], atol=1e-9)
    np.testing.assert_allclose(hit.normal, [0, 0, 1], atol=1e-9)
    assert np.linalg.norm(hit.normal) == pytest.approx(1.0)


def test_add_instance_stores_inverse():
    scene = SceneBVH()
    transform = translation(1, 2, 3)
    scene.add_instance(quad(), transform, None)
    np.testing.assert_allclose(scene.instances[0].inverse_transform @ transform, np.eye(4), atol=1e-12)


def test_intersector_reports_world_distance():
    scene = SceneBVH()
    scene.add_instance(quad(), translation(0, 0, 4), "m")
    distance, vertex = InstanceIntersector().intersects(
        Ray(origin=[0.0, 0.5, 0], direction=[0, 0, 1]), scene.instances[0]
    )
    assert distance == pytest.approx(4.0)
    assert vertex.bsrdf == "m"


def test_query_before_build_raises():
    scene = SceneBVH()
    with pytest.raises(RuntimeError):
        scene.closest_intersection(Ray(origin=[0, 0, 0], direction=[0, 0, 1]))


def test_empty_scene_finds_nothing():
    scene = SceneBVH()
    scene.build()
    assert scene.closest_intersection(Ray(origin=[0, 0, 0], direction=[0, 0, 1])) is None