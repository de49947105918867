"""Vector algebra and ray construction."""

import dataclasses
import math

import pytest

from core.errors import DegenerateVector
from geometry.primitives import Ray
from geometry.vector import Vector3D, distance, dot, normalized


@pytest.mark.parametrize(
    "vector",
    [
        Vector3D(1.0, 0.0, 0.0),
        Vector3D(3.0, 4.0, 0.0),
        Vector3D(-2.5, 7.0, 1200.0),
        Vector3D(1e-6, -1e-6, 1e-6),
        Vector3D(100.0, 0.0, 6153.846),
    ],
)
def test_normalized_has_unit_length(vector):
    assert vector.normalized.magnitude == pytest.approx(1.0)
    assert normalized(vector).magnitude == pytest.approx(1.0)


def test_normalizing_zero_vector_fails():
    with pytest.raises(DegenerateVector):
        Vector3D(0.0, 0.0, 0.0).normalized
    # Callers that only know about ValueError still catch it.
    with pytest.raises(ValueError):
        normalized(Vector3D(0.0, 0.0, 0.0))


def test_arithmetic_returns_new_instances():
    a = Vector3D(1.0, 2.0, 3.0)
    b = Vector3D(4.0, -1.0, 0.5)

    assert a.add(b) == Vector3D(5.0, 1.0, 3.5)
    assert a.minus(b) == Vector3D(-3.0, 3.0, 2.5)
    assert a.scaled(2.0) == Vector3D(2.0, 4.0, 6.0)
    assert a + b == a.add(b)
    assert 2.0 * a == a * 2.0
    assert dot(a, b) == pytest.approx(4.0 - 2.0 + 1.5)
    assert a == Vector3D(1.0, 2.0, 3.0)


def test_vectors_are_immutable():
    v = Vector3D(1.0, 2.0, 3.0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        v.x = 5.0


def test_distance_spans_plane_and_time():
    a = Vector3D(0.0, 0.0, 0.0)
    b = Vector3D(3.0, 4.0, 12.0)

    assert distance(a, b) == pytest.approx(13.0)


def test_ray_direction_is_unit_and_length_recorded():
    ray = Ray.from_coordinates(0.0, 0.0, 0.0, 30.0, 40.0, 0.0)

    assert ray.direction.magnitude == pytest.approx(1.0)
    assert ray.direction.x == pytest.approx(0.6)
    assert ray.length == pytest.approx(50.0)
    assert ray.end.x == pytest.approx(30.0)
    assert ray.end.y == pytest.approx(40.0)


def test_ray_between_identical_points_fails():
    with pytest.raises(DegenerateVector):
        Ray.from_coordinates(1.0, 1.0, 1.0, 1.0, 1.0, 1.0)


def test_free_ray_has_no_end():
    ray = Ray(origin=Vector3D(0.0, 0.0, 0.0), direction=Vector3D(1.0, 0.0, 0.0))
    assert math.isinf(ray.length)
    assert ray.point_at(2.0) == Vector3D(2.0, 0.0, 0.0)
