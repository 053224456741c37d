"""Effective trip status derived from the timetable and the clock.

Nothing here touches storage: the same trip and ``now`` always give the
same answer, so it is safe to call on every display path.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo

from transit.models.trip import Trip, TripStatus

OVERNIGHT = timedelta(days=1)


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _parse_clock(value: str | None) -> time | None:
    if not value:
        return None
    try:
        return time.fromisoformat(value)
    except ValueError:
        return None


def trip_window(
    trip_date: str | None,
    departure_time: str | None,
    arrival_time: str | None,
    tz: tzinfo = timezone.utc,
) -> tuple[datetime, datetime] | None:
    """Absolute departure and arrival instants, or None if any field is unusable.

    An arrival clock time earlier than departure means the trip runs past
    midnight, so arrival lands on the next calendar day.
    """
    day = _parse_date(trip_date)
    departs = _parse_clock(departure_time)
    arrives = _parse_clock(arrival_time)
    if day is None or departs is None or arrives is None:
        return None

    departure = datetime.combine(day, departs.replace(tzinfo=None), tzinfo=tz)
    arrival = datetime.combine(day, arrives.replace(tzinfo=None), tzinfo=tz)
    if arrival < departure:
        arrival += OVERNIGHT
    return departure, arrival


def derive_status(
    trip: Trip,
    now: datetime,
    *,
    delay_grace: timedelta | None = None,
    tz: tzinfo = timezone.utc,
) -> TripStatus:
    persisted = trip.status
    if persisted in (TripStatus.CANCELLED, TripStatus.COMPLETED):
        return persisted

    window = trip_window(trip.date, trip.departure_time, trip.arrival_time, tz)
    if window is None:
        return persisted
    departure, arrival = window

    if now.tzinfo is None:
        now = now.replace(tzinfo=tz)

    if now >= arrival:
        return TripStatus.COMPLETED

    # A stored in-progress status means the trip was started, even without a start time.
    started = trip.started_at is not None or persisted == TripStatus.IN_PROGRESS

    if now < departure:
        if started:
            return TripStatus.IN_PROGRESS
        # An explicit delay announced before departure stands until the trip runs.
        return TripStatus.DELAYED if persisted == TripStatus.DELAYED else TripStatus.SCHEDULED

    if started:
        return TripStatus.IN_PROGRESS
    if persisted == TripStatus.DELAYED:
        return TripStatus.DELAYED
    if delay_grace is not None and now >= departure + delay_grace:
        return TripStatus.DELAYED
    return TripStatus.IN_PROGRESS
