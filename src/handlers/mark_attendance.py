"""POST /attendance: record attendance; an absence cancels the student's booking."""

from typing import Any

from transit.api import api_handler, json_response, notification_pusher, parse_body
from transit.models.attendance import AttendanceMark
from transit.services.attendance import mark_attendance
from transit.store import get_store


@api_handler
def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    mark = parse_body(event, AttendanceMark)
    outcome = mark_attendance(get_store(), mark, push=notification_pusher())
    return json_response(201, outcome.to_api())
