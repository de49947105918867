"""Reservation ledger, expiry, and the stationary-robot fallback."""

import math

import pytest

from core.robot import Robot
from core.trajectory import ReservationKind, TrajectoryLedger, reservation_radius
from geometry.intersection import collides
from geometry.primitives import Ray


def test_reservation_radius_is_twice_robot_radius_plus_margin():
    assert reservation_radius(10.0, 5.0) == pytest.approx(25.0)
    ledger = TrajectoryLedger(robot_id=1, robot_radius=5.0, margin=5.0)
    assert ledger.radius == pytest.approx(15.0)


def test_reservation_present_until_its_extent_has_elapsed():
    ledger = TrajectoryLedger(robot_id=1, robot_radius=5.0, margin=5.0)

    reservation = ledger.add_trajectory(0.0, 0.0, 100.0, 0.0, 1000.0, now=0.0)

    assert len(ledger) == 1
    assert reservation.cylinder.radius == pytest.approx(15.0)
    assert reservation.start == pytest.approx(0.0)
    assert reservation.end == pytest.approx(1000.0)

    # start + duration < now is the expiry rule, so the boundary instant still counts
    assert ledger.prune_expired(now=1000.0) == 0
    assert len(ledger) == 1
    assert ledger.prune_expired(now=1000.5) == 1
    assert len(ledger) == 0


def test_start_offset_shifts_the_tube_in_time():
    ledger = TrajectoryLedger(robot_id=3, robot_radius=10.0, margin=5.0)

    reservation = ledger.add_trajectory(0.0, 0.0, 100.0, 0.0, 500.0, now=100.0, start_offset=200.0)

    assert reservation.start == pytest.approx(300.0)
    assert reservation.cylinder.origin.z == pytest.approx(300.0)
    assert reservation.cylinder.axis_point_at_time(800.0).x == pytest.approx(100.0)
    assert reservation.cylinder.extent == pytest.approx(math.hypot(100.0, 500.0))
    assert reservation.end == pytest.approx(800.0)


def test_active_prunes_before_returning():
    ledger = TrajectoryLedger(robot_id=1, robot_radius=10.0)
    ledger.add_trajectory(0.0, 0.0, 0.0, 0.0, 100.0, now=0.0, kind=ReservationKind.HOLDING)
    ledger.add_trajectory(0.0, 0.0, 50.0, 0.0, 1000.0, now=0.0, start_offset=100.0)

    active = ledger.active(now=500.0)

    assert [res.kind for res in active] == [ReservationKind.TRAVEL]
    assert len(ledger) == 1


@pytest.mark.parametrize("duration", [0.0, -10.0])
def test_non_positive_duration_is_rejected(duration):
    ledger = TrajectoryLedger(robot_id=1, robot_radius=10.0)
    with pytest.raises(ValueError):
        ledger.add_trajectory(0.0, 0.0, 10.0, 0.0, duration, now=0.0)
    assert len(ledger) == 0


def test_idle_robot_is_a_stationary_obstacle():
    robot = Robot(robot_id=2, radius=10.0, margin=5.0)
    robot.update_pose(50.0, 0.0, 0.0, seen_at_ms=0.0)

    (fallback,) = robot.trajectories(now=1000.0, window_ms=1.0)

    assert fallback.kind is ReservationKind.STATIONARY
    assert fallback.robot_id == 2
    assert fallback.cylinder.radius == pytest.approx(25.0)
    assert (fallback.cylinder.origin.x, fallback.cylinder.origin.y) == (50.0, 0.0)
    assert (fallback.cylinder.direction.x, fallback.cylinder.direction.y) == (0.0, 0.0)
    assert fallback.cylinder.direction.z == pytest.approx(1.0)
    assert math.isinf(fallback.cylinder.extent)
    # The fallback is synthesized, never stored.
    assert len(robot.ledger) == 0


def test_ray_outside_stationary_radius_does_not_collide():
    robot = Robot(robot_id=2, radius=10.0, margin=5.0)
    robot.update_pose(50.0, 0.0, 0.0, seen_at_ms=0.0)
    (fallback,) = robot.trajectories(now=0.0, window_ms=1.0)

    far = Ray.from_coordinates(0.0, 30.0, 2000.0, 100.0, 30.0, 8000.0)
    near = Ray.from_coordinates(0.0, 20.0, 2000.0, 100.0, 20.0, 8000.0)

    assert not collides(far, fallback.cylinder, clamp=True)
    assert not collides(far, fallback.cylinder)
    assert collides(near, fallback.cylinder, clamp=True)


def test_robot_with_reservations_uses_them_instead_of_fallback():
    robot = Robot(robot_id=4)
    robot.update_pose(0.0, 0.0, 0.0, seen_at_ms=0.0)
    robot.ledger.add_trajectory(0.0, 0.0, 100.0, 0.0, 5000.0, now=0.0)

    trajectories = robot.trajectories(now=10.0, window_ms=1.0)

    assert [res.kind for res in trajectories] == [ReservationKind.TRAVEL]


def test_dead_reckoning_only_without_fresh_telemetry():
    robot = Robot(robot_id=1)
    robot.update_pose(0.0, 0.0, 0.0, seen_at_ms=100.0)

    assert robot.settle_at(10.0, 5.0, 0.5, leg_started_ms=200.0)
    assert (robot.x, robot.y, robot.theta) == (10.0, 5.0, 0.5)

    robot.update_pose(1.0, 1.0, 0.0, seen_at_ms=300.0)
    assert not robot.settle_at(20.0, 20.0, 0.0, leg_started_ms=250.0)
    assert (robot.x, robot.y) == (1.0, 1.0)


def test_command_sequence_numbers():
    robot = Robot(robot_id=1)
    first = robot.next_command_id()
    second = robot.next_command_id()

    assert second == first + 1
    assert robot.is_current_command(second)
    assert not robot.is_current_command(first)


def test_release_drops_only_the_named_command():
    ledger = TrajectoryLedger(robot_id=1, robot_radius=10.0)
    ledger.add_trajectory(0.0, 0.0, 0.0, 0.0, 100.0, now=0.0, kind=ReservationKind.HOLDING, command_id=1)
    ledger.add_trajectory(0.0, 0.0, 50.0, 0.0, 500.0, now=0.0, start_offset=100.0, command_id=1)
    ledger.add_trajectory(0.0, 0.0, 0.0, 80.0, 500.0, now=0.0, command_id=2)

    assert ledger.release(1) == 2
    assert [res.command_id for res in ledger] == [2]
    assert ledger.release(1) == 0
