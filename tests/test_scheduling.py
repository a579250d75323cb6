"""Tests for the pure scheduling rules."""

from datetime import UTC, datetime, timedelta

import pytest

from gpms.core.exceptions import InvalidStatusTransitionException
from gpms.schemas.enums import AppointmentStatus, AppointmentType
from gpms.services.scheduling import (
    ALLOWED_TRANSITIONS,
    APPOINTMENT_TYPE_CONFIG,
    can_transition,
    compute_end,
    dashboard_bounds,
    default_duration,
    ensure_transition,
    intervals_overlap,
    resolve_timezone,
)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, 1, hour, minute, tzinfo=UTC)


@pytest.mark.parametrize(
    ("first", "second", "expected"),
    [
        # Partial overlap
        ((at(9), at(9, 15)), (at(9, 10), at(9, 25)), True),
        # Back-to-back slots share only a boundary
        ((at(9), at(9, 15)), (at(9, 15), at(9, 30)), False),
        # Containment
        ((at(9), at(9, 30)), (at(9, 10), at(9, 20)), True),
        # Identical
        ((at(9), at(9, 15)), (at(9), at(9, 15)), True),
        # Disjoint
        ((at(9), at(9, 15)), (at(10), at(10, 15)), False),
    ],
)
def test_intervals_overlap(first, second, expected):
    """Half-open intervals overlap iff s1 < e2 and s2 < e1, in either order."""
    assert intervals_overlap(*first, *second) is expected
    assert intervals_overlap(*second, *first) is expected


def test_compute_end():
    """End time is start plus duration in minutes."""
    assert compute_end(at(9), 15) == at(9, 15)
    assert compute_end(at(23, 50), 20) == datetime(2026, 3, 2, 0, 10, tzinfo=UTC)


def test_default_durations_cover_every_type():
    """Every appointment type has a positive default duration."""
    assert set(APPOINTMENT_TYPE_CONFIG) == set(AppointmentType)
    assert default_duration(AppointmentType.GP_CONSULTATION) == 10
    assert all(config.default_duration > 0 for config in APPOINTMENT_TYPE_CONFIG.values())


def test_transition_table_covers_every_status():
    """Each status has an entry and terminal statuses have no moves."""
    assert set(ALLOWED_TRANSITIONS) == set(AppointmentStatus)
    for terminal in (
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.DNA,
    ):
        assert ALLOWED_TRANSITIONS[terminal] == frozenset()


@pytest.mark.parametrize(
    ("current", "requested"),
    [
        (AppointmentStatus.BOOKED, AppointmentStatus.CONFIRMED),
        (AppointmentStatus.BOOKED, AppointmentStatus.ARRIVED),
        (AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED),
        (AppointmentStatus.ARRIVED, AppointmentStatus.COMPLETED),
        (AppointmentStatus.ARRIVED, AppointmentStatus.IN_PROGRESS),
        (AppointmentStatus.IN_PROGRESS, AppointmentStatus.COMPLETED),
        (AppointmentStatus.CANCELLED, AppointmentStatus.CANCELLED),
    ],
)
def test_allowed_transitions(current, requested):
    """Lifecycle moves in the table are accepted."""
    assert can_transition(current, requested)
    ensure_transition(current, requested)


@pytest.mark.parametrize(
    ("current", "requested"),
    [
        (AppointmentStatus.COMPLETED, AppointmentStatus.BOOKED),
        (AppointmentStatus.CANCELLED, AppointmentStatus.ARRIVED),
        (AppointmentStatus.DNA, AppointmentStatus.COMPLETED),
        (AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED),
        (AppointmentStatus.BOOKED, AppointmentStatus.COMPLETED),
    ],
)
def test_rejected_transitions(current, requested):
    """Moves outside the table raise a conflict naming both statuses."""
    assert not can_transition(current, requested)
    with pytest.raises(InvalidStatusTransitionException) as exc_info:
        ensure_transition(current, requested)

    assert exc_info.value.status_code == 409
    assert current.value in exc_info.value.message
    assert requested.value in exc_info.value.message


def test_dashboard_bounds_utc():
    """Day and month boundaries in UTC."""
    today, tomorrow, month_start = dashboard_bounds(
        datetime(2026, 3, 10, 12, 30, tzinfo=UTC),
        resolve_timezone("UTC"),
    )

    assert today == datetime(2026, 3, 10, tzinfo=UTC)
    assert tomorrow == today + timedelta(days=1)
    assert month_start == datetime(2026, 3, 1, tzinfo=UTC)


def test_dashboard_bounds_follow_local_calendar():
    """In British Summer Time local midnight is 23:00 UTC the previous day."""
    today, tomorrow, month_start = dashboard_bounds(
        datetime(2026, 7, 1, 0, 30, tzinfo=UTC),
        resolve_timezone("Europe/London"),
    )

    assert today == datetime(2026, 6, 30, 23, 0, tzinfo=UTC)
    assert tomorrow == datetime(2026, 7, 1, 23, 0, tzinfo=UTC)
    assert month_start == datetime(2026, 6, 30, 23, 0, tzinfo=UTC)


def test_dashboard_bounds_treats_naive_now_as_utc():
    """A naive reference time is read as UTC."""
    today, _, _ = dashboard_bounds(datetime(2026, 3, 10, 8, 0), resolve_timezone("UTC"))
    assert today == datetime(2026, 3, 10, tzinfo=UTC)
