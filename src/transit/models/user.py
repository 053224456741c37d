from enum import Enum

from transit.models.base import TransitModel


class UserRole(str, Enum):
    ADMIN = "admin"
    MOVEMENT_MANAGER = "movement-manager"
    SUPERVISOR = "supervisor"
    DRIVER = "driver"
    STUDENT = "student"


class User(TransitModel):
    id: str
    name: str = ""
    email: str | None = None
    role: UserRole


class Bus(TransitModel):
    id: str
    number: str = ""
    capacity: int | None = None


class Route(TransitModel):
    id: str
    name: str = ""
    start_point: str = ""
    end_point: str = ""


class Payment(TransitModel):
    id: str
    trip_id: str
    amount: float = 0.0
    status: str = "pending"
