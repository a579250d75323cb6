"""Scheduling rules: overlap detection, durations and the status lifecycle.

Everything here is pure and synchronous so it can be reused by the service
layer and tested without a database.
"""

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo

from gpms.core.exceptions import InvalidStatusTransitionException
from gpms.schemas.enums import AppointmentStatus, AppointmentType, UserRole


@dataclass(frozen=True)
class AppointmentTypeConfig:
    """Display and booking defaults for an appointment type."""

    label: str
    code: str
    default_duration: int
    allowed_roles: tuple[UserRole, ...]


APPOINTMENT_TYPE_CONFIG: dict[AppointmentType, AppointmentTypeConfig] = {
    AppointmentType.GP_CONSULTATION: AppointmentTypeConfig(
        "GP Consultation", "GP01", 10, (UserRole.GP,)
    ),
    AppointmentType.GP_EXTENDED: AppointmentTypeConfig(
        "GP Extended Consultation", "GP02", 20, (UserRole.GP,)
    ),
    AppointmentType.GP_TELEPHONE: AppointmentTypeConfig(
        "GP Telephone Consultation", "GP03", 10, (UserRole.GP,)
    ),
    AppointmentType.GP_VIDEO: AppointmentTypeConfig(
        "GP Video Consultation", "GP04", 10, (UserRole.GP,)
    ),
    AppointmentType.NURSE_APPOINTMENT: AppointmentTypeConfig(
        "Nurse Appointment", "NUR01", 15, (UserRole.NURSE,)
    ),
    AppointmentType.NURSE_CHRONIC_DISEASE: AppointmentTypeConfig(
        "Chronic Disease Review", "NUR02", 30, (UserRole.NURSE,)
    ),
    AppointmentType.HCA_BLOOD_TEST: AppointmentTypeConfig(
        "Blood Test", "HCA01", 10, (UserRole.HCA, UserRole.NURSE)
    ),
    AppointmentType.HCA_HEALTH_CHECK: AppointmentTypeConfig(
        "NHS Health Check", "HCA02", 20, (UserRole.HCA, UserRole.NURSE)
    ),
    AppointmentType.VACCINATION: AppointmentTypeConfig(
        "Vaccination", "VAC01", 5, (UserRole.NURSE, UserRole.HCA)
    ),
    AppointmentType.SMEAR_TEST: AppointmentTypeConfig(
        "Cervical Screening", "SMR01", 20, (UserRole.NURSE,)
    ),
    AppointmentType.MINOR_SURGERY: AppointmentTypeConfig(
        "Minor Surgery", "SUR01", 30, (UserRole.GP,)
    ),
    AppointmentType.HOME_VISIT: AppointmentTypeConfig(
        "Home Visit", "HV01", 30, (UserRole.GP, UserRole.NURSE)
    ),
}

# Every status except CANCELLED holds a slot in the clinician's diary.
RELEASED_STATUSES = (AppointmentStatus.CANCELLED,)
PENDING_STATUSES = (AppointmentStatus.BOOKED, AppointmentStatus.CONFIRMED)
RESCHEDULABLE_STATUSES = PENDING_STATUSES

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.BOOKED: frozenset(
        {
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.ARRIVED,
            AppointmentStatus.IN_PROGRESS,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.DNA,
        }
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {
            AppointmentStatus.ARRIVED,
            AppointmentStatus.IN_PROGRESS,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.DNA,
        }
    ),
    AppointmentStatus.ARRIVED: frozenset(
        {
            AppointmentStatus.IN_PROGRESS,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.DNA,
        }
    ),
    AppointmentStatus.IN_PROGRESS: frozenset({AppointmentStatus.COMPLETED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.DNA: frozenset(),
}


def intervals_overlap(
    start_a: datetime,
    end_a: datetime,
    start_b: datetime,
    end_b: datetime,
) -> bool:
    """
    Check whether two half-open intervals ``[start, end)`` overlap.

    Back-to-back intervals (one ends exactly when the other starts) do not
    overlap.
    """
    return start_a < end_b and start_b < end_a


def default_duration(appointment_type: AppointmentType) -> int:
    """Default length in minutes for an appointment type."""
    return APPOINTMENT_TYPE_CONFIG[appointment_type].default_duration


def compute_end(start: datetime, duration: int) -> datetime:
    """End of an appointment starting at ``start`` lasting ``duration`` minutes."""
    return start + timedelta(minutes=duration)


def can_transition(current: AppointmentStatus, requested: AppointmentStatus) -> bool:
    """Whether ``current -> requested`` is in the transition table.

    Re-applying the current status is always allowed.
    """
    return current == requested or requested in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: AppointmentStatus, requested: AppointmentStatus) -> None:
    """Raise if the status change is not allowed."""
    if not can_transition(current, requested):
        raise InvalidStatusTransitionException(current.value, requested.value)


def resolve_timezone(name: str) -> tzinfo:
    """Look up an IANA time zone by name."""
    if name.upper() == "UTC":
        return UTC
    return ZoneInfo(name)


def dashboard_bounds(now: datetime, tz: tzinfo) -> tuple[datetime, datetime, datetime]:
    """
    Start of today, start of tomorrow and start of this month in UTC.

    Calendar boundaries are taken in the practice's local time zone.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    local_now = now.astimezone(tz)
    today = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    # Wall-clock arithmetic: local midnight to local midnight
    tomorrow = today + timedelta(days=1)
    month_start = today.replace(day=1)
    return (
        today.astimezone(UTC),
        tomorrow.astimezone(UTC),
        month_start.astimezone(UTC),
    )


def local_month(now: datetime, tz: tzinfo) -> tuple[date, date]:
    """First day of the current local month and of the next one."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    first = now.astimezone(tz).date().replace(day=1)
    if first.month == 12:
        return first, first.replace(year=first.year + 1, month=1)
    return first, first.replace(month=first.month + 1)
