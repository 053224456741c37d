"""API Gateway request parsing and response shaping shared by the Lambda handlers."""

import functools
import json
import logging
from collections.abc import Callable
from typing import Any, TypeVar

import pydantic

from transit.config import Config, get_config
from transit.errors import AuthenticationError, ErrorCode, TransitError, ValidationError
from transit.services.notifications import Pusher
from transit.services.reconcile import StoreReconciler
from transit.store import RecordStore

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=pydantic.BaseModel)

HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.AUTH_FAILED: 401,
    ErrorCode.TRIP_NOT_FOUND: 404,
    ErrorCode.BOOKING_NOT_FOUND: 404,
    ErrorCode.USER_NOT_FOUND: 404,
    ErrorCode.NOTIFICATION_NOT_FOUND: 404,
    ErrorCode.INVALID_TRANSITION: 409,
    ErrorCode.STALE_RECORD: 409,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INVALID_REQUEST: 400,
}


def json_response(status_code: int, data: Any) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({"success": True, "data": data}),
    }


def error_response(error: TransitError) -> dict[str, Any]:
    return {
        "statusCode": HTTP_STATUS.get(error.code, 500),
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({"success": False, "error": {"code": error.code.value, "message": error.user_message}}),
    }


def api_handler(func: Callable[[dict[str, Any], Any], dict[str, Any]]) -> Callable[[dict[str, Any], Any], dict[str, Any]]:
    """Turn raised errors into JSON error responses; internal messages stay in the logs."""

    @functools.wraps(func)
    def wrapper(event: dict[str, Any], context: Any) -> dict[str, Any]:
        try:
            return func(event, context)
        except TransitError as e:
            logger.info("%s failed: %s (%s)", func.__module__, e.message, e.code.value)
            return error_response(e)
        except Exception:
            logger.exception("Unhandled error in %s", func.__module__)
            return error_response(TransitError("unhandled", code=ErrorCode.INTERNAL_ERROR))

    return wrapper


def parse_body(event: dict[str, Any], model: type[M]) -> M:
    try:
        body = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError as e:
        raise ValidationError(f"Body is not valid JSON: {e}", code=ErrorCode.INVALID_REQUEST) from e
    if not isinstance(body, dict):
        raise ValidationError("Body must be a JSON object", code=ErrorCode.INVALID_REQUEST)
    try:
        return model.model_validate(body)
    except pydantic.ValidationError as e:
        raise ValidationError(str(e), code=ErrorCode.VALIDATION_ERROR) from e


def parse_query(event: dict[str, Any], model: type[M]) -> M:
    try:
        return model.model_validate(query_params(event))
    except pydantic.ValidationError as e:
        raise ValidationError(str(e), code=ErrorCode.VALIDATION_ERROR) from e


def query_params(event: dict[str, Any]) -> dict[str, str]:
    return dict(event.get("queryStringParameters") or {})


def path_param(event: dict[str, Any], name: str) -> str:
    value = (event.get("pathParameters") or {}).get(name)
    if not value:
        raise ValidationError(f"Missing path parameter {name}", code=ErrorCode.INVALID_REQUEST)
    return value


def acting_user_id(event: dict[str, Any]) -> str:
    """User id placed in the request context by the upstream authorizer.

    REST APIs put authorizer context directly under ``authorizer``; HTTP APIs
    nest it under ``authorizer.lambda``. A ``userId`` query parameter is
    accepted as a fallback for internal callers.
    """
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}
    user_id = authorizer.get("userId") or (authorizer.get("lambda") or {}).get("userId")
    user_id = user_id or query_params(event).get("userId")
    if not user_id:
        raise AuthenticationError("No acting user on request", code=ErrorCode.AUTH_FAILED)
    return str(user_id)


def notification_pusher(config: Config | None = None) -> Pusher | None:
    """Live push to WebSocket clients, or None when no endpoint is configured."""
    config = config or get_config()
    if not config.websocket_endpoint:
        return None

    from transit.clients import get_apigw_client, get_dynamo_client
    from transit.services.connection import push_notification

    return functools.partial(
        push_notification,
        dynamo_client=get_dynamo_client(),
        apigw_client=get_apigw_client(),
        connections_table=config.connections_table,
    )


def reconciler_for(store: RecordStore, config: Config | None = None) -> StoreReconciler:
    config = config or get_config()
    return StoreReconciler(store, delay_grace=config.delay_grace, tz=config.tz)
