from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import Field, model_validator

from transit.models.base import TransitModel
from transit.models.user import UserRole


class NotificationType(str, Enum):
    SYSTEM = "system"
    ALERT = "alert"
    ANNOUNCEMENT = "announcement"
    REMINDER = "reminder"
    BOOKING = "booking"
    TRIP_CREATED = "trip_created"
    ABSENCE = "absence"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Notification(TransitModel):
    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType = NotificationType.SYSTEM
    priority: NotificationPriority = NotificationPriority.MEDIUM
    read: bool = False
    sender_id: str | None = None
    trip_id: str | None = None
    bus_id: str | None = None
    route_id: str | None = None
    action_url: str | None = None
    created_at: datetime
    updated_at: datetime


class BroadcastTarget(TransitModel):
    """Who a broadcast goes to.

    Accepts the shorthand strings ``"all"``, ``"role:<role>"`` and
    ``"bus:<bus_id>"``, a bare list of user ids, ``{"ids": [...]}``, or the
    explicit ``{"kind": ..., ...}`` form.
    """

    kind: Literal["all", "role", "ids", "bus"]
    role: UserRole | None = None
    user_ids: list[str] = []
    bus_id: str | None = None

    @model_validator(mode="before")
    @classmethod
    def parse_shorthand(cls, value: Any) -> Any:
        if isinstance(value, str):
            if value == "all":
                return {"kind": "all"}
            prefix, _, rest = value.partition(":")
            if prefix == "role" and rest:
                return {"kind": "role", "role": rest}
            if prefix == "bus" and rest:
                return {"kind": "bus", "bus_id": rest}
            raise ValueError(f"unrecognised broadcast target {value!r}")
        if isinstance(value, list):
            return {"kind": "ids", "user_ids": value}
        if isinstance(value, dict) and "kind" not in value and "ids" in value:
            return {"kind": "ids", "user_ids": value["ids"]}
        return value

    @model_validator(mode="after")
    def required_fields_for_kind(self) -> "BroadcastTarget":
        if self.kind == "role" and self.role is None:
            raise ValueError("role target requires a role")
        if self.kind == "ids" and not self.user_ids:
            raise ValueError("ids target requires at least one user id")
        if self.kind == "bus" and not self.bus_id:
            raise ValueError("bus target requires a bus id")
        return self


class BroadcastRequest(TransitModel):
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=1000)
    type: NotificationType = NotificationType.ANNOUNCEMENT
    priority: NotificationPriority = NotificationPriority.MEDIUM
    target: BroadcastTarget = Field(default_factory=lambda: BroadcastTarget(kind="all"))


class ReadStateUpdate(TransitModel):
    read: bool
