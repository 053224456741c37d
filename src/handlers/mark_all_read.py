"""POST /notifications/mark-all-read"""

from typing import Any

from transit.api import acting_user_id, api_handler, json_response
from transit.services.notifications import mark_all_read
from transit.store import get_store


@api_handler
def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    return json_response(200, {"updated": mark_all_read(get_store(), acting_user_id(event))})
