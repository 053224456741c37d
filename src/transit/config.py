from datetime import timedelta, tzinfo
from os import environ
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field


def _env_flag(name: str, default: str) -> bool:
    return environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config(BaseModel):
    model_config = ConfigDict(frozen=True)

    aws_region: str
    dynamodb_endpoint: str | None = None
    store_backend: str = Field(default="dynamodb", pattern="^(dynamodb|memory)$")
    trips_table: str
    bookings_table: str
    attendance_table: str
    notifications_table: str
    users_table: str
    buses_table: str
    routes_table: str
    payments_table: str
    connections_table: str
    websocket_endpoint: str = ""
    local_timezone: str = "UTC"
    delay_grace_minutes: int = Field(default=0, ge=0)
    reconcile_on_read: bool = True
    environment: str

    @property
    def tz(self) -> tzinfo:
        return ZoneInfo(self.local_timezone)

    @property
    def delay_grace(self) -> timedelta | None:
        """Grace period after departure before an unstarted trip shows as delayed; None disables."""
        if self.delay_grace_minutes == 0:
            return None
        return timedelta(minutes=self.delay_grace_minutes)

    def table_for(self, collection: str) -> str:
        return {
            "trips": self.trips_table,
            "bookings": self.bookings_table,
            "attendance": self.attendance_table,
            "notifications": self.notifications_table,
            "users": self.users_table,
            "buses": self.buses_table,
            "routes": self.routes_table,
            "payments": self.payments_table,
        }[collection]


_cached_config: Config | None = None


def _reset_config() -> None:
    """Reset cached config — for testing only."""
    global _cached_config
    _cached_config = None


def get_config() -> Config:
    global _cached_config
    if _cached_config is not None:
        return _cached_config

    _cached_config = Config(
        aws_region=environ.get("AWS_REGION", "us-east-1"),
        dynamodb_endpoint=environ.get("DYNAMODB_ENDPOINT"),
        store_backend=environ.get("STORE_BACKEND", "dynamodb"),
        trips_table=environ.get("TRIPS_TABLE", "Trips"),
        bookings_table=environ.get("BOOKINGS_TABLE", "Bookings"),
        attendance_table=environ.get("ATTENDANCE_TABLE", "Attendance"),
        notifications_table=environ.get("NOTIFICATIONS_TABLE", "Notifications"),
        users_table=environ.get("USERS_TABLE", "Users"),
        buses_table=environ.get("BUSES_TABLE", "Buses"),
        routes_table=environ.get("ROUTES_TABLE", "Routes"),
        payments_table=environ.get("PAYMENTS_TABLE", "Payments"),
        connections_table=environ.get("CONNECTIONS_TABLE", "Connections"),
        websocket_endpoint=environ.get("WEBSOCKET_ENDPOINT", ""),
        local_timezone=environ.get("LOCAL_TIMEZONE", "UTC"),
        delay_grace_minutes=int(environ.get("DELAY_GRACE_MINUTES", "0")),
        reconcile_on_read=_env_flag("RECONCILE_ON_READ", "true"),
        environment=environ.get("ENVIRONMENT", "local"),
    )
    return _cached_config
