"""Notification creation, broadcast fan-out and per-user read state.

Every notification is its own row addressed to exactly one user, so read
state is tracked per recipient. Live delivery is optional and best effort:
callers pass a ``push`` callable and any failure inside it is only logged.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from transit.errors import ErrorCode, NotFoundError, NotificationError
from transit.models.notification import (
    BroadcastRequest,
    BroadcastTarget,
    Notification,
    NotificationPriority,
    NotificationType,
)
from transit.models.trip import Trip
from transit.services.directory import Directory
from transit.store import RecordStore

logger = logging.getLogger(__name__)

Pusher = Callable[[Notification], Any]


def _deliver(notification: Notification, push: Pusher | None) -> None:
    if push is None:
        return
    try:
        push(notification)
    except Exception:
        logger.exception("Live delivery of notification %s failed", notification.id)


def create_notification(
    store: RecordStore,
    user_id: str,
    title: str,
    message: str,
    *,
    type: NotificationType = NotificationType.SYSTEM,
    priority: NotificationPriority = NotificationPriority.MEDIUM,
    now: datetime | None = None,
    push: Pusher | None = None,
    **refs: str | None,
) -> Notification:
    """Persist one unread notification for ``user_id``.

    ``refs`` carries the optional references (``trip_id``, ``bus_id``,
    ``route_id``, ``sender_id``, ``action_url``).
    """
    now = now or datetime.now(timezone.utc)
    notification = Notification(
        id=str(uuid4()),
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        priority=priority,
        read=False,
        created_at=now,
        updated_at=now,
        **refs,
    )
    try:
        store.put("notifications", notification.to_record())
    except Exception as e:
        raise NotificationError(
            f"Storing notification for user {user_id} failed: {e}",
            code=ErrorCode.NOTIFICATION_FAILED,
        ) from e
    _deliver(notification, push)
    return notification


def notify_trip_created(
    store: RecordStore,
    trip: Trip,
    *,
    now: datetime | None = None,
    push: Pusher | None = None,
) -> list[Notification]:
    """Tell the assigned driver and supervisor about a newly created trip.

    Runs after the trip is stored. Unresolved bus or route references leave
    blanks in the text, and a failure for one recipient is logged without
    affecting the other or the trip itself.
    """
    directory = Directory(store)
    bus = directory.bus(trip.bus_id)
    route = directory.route(trip.route_id)
    bus_number = bus.number if bus else ""
    start = route.start_point if route else ""
    end = route.end_point if route else ""
    summary = f"trip {trip.id} - bus {bus_number} - {start} → {end} - {trip.date} {trip.departure_time}"

    recipients = [
        (
            trip.driver_id,
            "New trip assigned to you",
            f"You have been assigned as driver for {summary}.",
            "/dashboard/driver/trips",
        ),
        (
            trip.supervisor_id,
            "New trip created",
            f"You have been assigned as supervisor for {summary}.",
            "/dashboard/supervisor/trips",
        ),
    ]

    created = []
    for user_id, title, message, action_url in recipients:
        if not user_id:
            continue
        try:
            created.append(
                create_notification(
                    store,
                    user_id,
                    title,
                    message,
                    type=NotificationType.TRIP_CREATED,
                    now=now,
                    push=push,
                    trip_id=trip.id,
                    bus_id=trip.bus_id,
                    route_id=trip.route_id,
                    sender_id="system",
                    action_url=action_url,
                )
            )
        except Exception:
            logger.exception("Failed to create trip notification for user %s on trip %s", user_id, trip.id)
    return created


def resolve_recipients(store: RecordStore, target: BroadcastTarget) -> list[str]:
    """Turn a broadcast target into concrete user ids, de-duplicated in order."""
    directory = Directory(store)

    if target.kind == "all":
        user_ids = [user.id for user in directory.users()]
    elif target.kind == "role":
        user_ids = [user.id for user in directory.users(target.role)]
    elif target.kind == "ids":
        missing = [user_id for user_id in target.user_ids if store.get("users", user_id) is None]
        if missing:
            raise NotFoundError(f"Unknown users: {', '.join(missing)}", code=ErrorCode.USER_NOT_FOUND)
        user_ids = list(target.user_ids)
    else:
        trip_ids = {trip["id"] for trip in store.scan("trips", bus_id=target.bus_id)}
        user_ids = [
            booking["student_id"]
            for booking in store.scan("bookings")
            if booking.get("trip_id") in trip_ids and booking.get("status") != "cancelled"
        ]

    return list(dict.fromkeys(user_ids))


def broadcast(
    store: RecordStore,
    request: BroadcastRequest,
    *,
    sender_id: str | None = None,
    now: datetime | None = None,
    push: Pusher | None = None,
) -> list[Notification]:
    """Write one notification per resolved recipient.

    A failed write for one recipient is logged and the rest still go out, so
    a partial failure never invites a retry that duplicates the delivered
    rows. Only a broadcast where every write failed raises.
    """
    now = now or datetime.now(timezone.utc)
    recipients = resolve_recipients(store, request.target)
    logger.info("Broadcasting %r to %d recipients (%s)", request.title, len(recipients), request.target.kind)

    created: list[Notification] = []
    failed: list[str] = []
    for user_id in recipients:
        try:
            created.append(
                create_notification(
                    store,
                    user_id,
                    request.title,
                    request.message,
                    type=request.type,
                    priority=request.priority,
                    now=now,
                    push=push,
                    sender_id=sender_id,
                    bus_id=request.target.bus_id,
                )
            )
        except NotificationError:
            logger.exception("Broadcast %r to user %s failed", request.title, user_id)
            failed.append(user_id)

    if failed and not created:
        raise NotificationError(
            f"Broadcast {request.title!r} failed for all {len(failed)} recipients",
            code=ErrorCode.NOTIFICATION_FAILED,
        )
    if failed:
        logger.warning("Broadcast %r reached %d of %d recipients", request.title, len(created), len(recipients))
    return created


def list_notifications(store: RecordStore, user_id: str, *, unread_only: bool = False) -> list[Notification]:
    filters: dict[str, Any] = {"user_id": user_id}
    if unread_only:
        filters["read"] = False
    notifications = [Notification.model_validate(record) for record in store.scan("notifications", **filters)]
    return sorted(notifications, key=lambda n: n.created_at, reverse=True)


def unread_count(store: RecordStore, user_id: str) -> int:
    return len(store.scan("notifications", user_id=user_id, read=False))


def mark_all_read(store: RecordStore, user_id: str, *, now: datetime | None = None) -> int:
    """Mark every unread notification of ``user_id`` as read; returns how many changed."""
    now = now or datetime.now(timezone.utc)
    updated = 0
    for notification in list_notifications(store, user_id, unread_only=True):
        store.put("notifications", notification.model_copy(update={"read": True, "updated_at": now}).to_record())
        updated += 1
    return updated


def get_notification(store: RecordStore, notification_id: str) -> Notification:
    record = store.get("notifications", notification_id)
    if record is None:
        raise NotFoundError(
            f"Notification {notification_id} not found",
            code=ErrorCode.NOTIFICATION_NOT_FOUND,
        )
    return Notification.model_validate(record)


def set_read(store: RecordStore, notification_id: str, read: bool, *, now: datetime | None = None) -> Notification:
    notification = get_notification(store, notification_id)
    if notification.read == read:
        return notification
    updated = notification.model_copy(update={"read": read, "updated_at": now or datetime.now(timezone.utc)})
    store.put("notifications", updated.to_record())
    return updated


def mark_read(store: RecordStore, notification_id: str, *, now: datetime | None = None) -> Notification:
    return set_read(store, notification_id, True, now=now)


def mark_unread(store: RecordStore, notification_id: str, *, now: datetime | None = None) -> Notification:
    return set_read(store, notification_id, False, now=now)


def delete_notification(store: RecordStore, notification_id: str) -> Notification:
    notification = get_notification(store, notification_id)
    store.delete("notifications", notification_id)
    return notification
