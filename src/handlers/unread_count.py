"""GET /notifications/unread-count"""

from typing import Any

from transit.api import acting_user_id, api_handler, json_response
from transit.services.notifications import unread_count
from transit.store import get_store


@api_handler
def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    return json_response(200, {"count": unread_count(get_store(), acting_user_id(event))})
