"""
Route table for /api/messages.

Every route is wrapped by `guarded`, the single place where handler
results become HTTP responses and where unexpected exceptions are
turned into a 500.
"""

import functools
import json
import logging
from typing import Any, Callable, Tuple

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from message_api import handlers
from message_api.logging_utils import log_operation_data
from message_api.metrics import record_message_operation
from message_api.results import ErrorKind, Failure, HandlerResult, Success
from message_api.schemas import ErrorResponse, MessageResponse, NoticeResponse
from message_api.storage import MessageStore

logger = logging.getLogger(__name__)

MESSAGES_PREFIX = "/api/messages"

router = APIRouter(prefix=MESSAGES_PREFIX, tags=["messages"])

# Failure kind -> (status code, body key)
FAILURE_RESPONSES = {
    ErrorKind.VALIDATION: (status.HTTP_400_BAD_REQUEST, "error"),
    ErrorKind.NOT_FOUND: (status.HTTP_404_NOT_FOUND, "message"),
    ErrorKind.STORAGE: (status.HTTP_500_INTERNAL_SERVER_ERROR, "error"),
}


def get_store(request: Request) -> MessageStore:
    """Dependency returning the store created at startup."""
    return request.app.state.store


async def read_payload(request: Request) -> Any:
    """
    Decode the JSON request body.

    An empty body decodes to {}; a body that is not valid JSON decodes to
    None and is rejected by handlers that need one.
    """
    raw_body = await request.body()
    logger.debug(f"Request body size: {len(raw_body)} bytes")
    if not raw_body:
        return {}
    try:
        return json.loads(raw_body)
    except ValueError as e:
        logger.warning(f"Invalid JSON body: {e}")
        return None


def render(result: HandlerResult) -> Tuple[JSONResponse, str]:
    """Map a handler result to a response and an outcome label."""
    if isinstance(result, Success):
        return JSONResponse(status_code=result.status_code, content=result.value), "ok"
    if isinstance(result, Failure):
        status_code, key = FAILURE_RESPONSES[result.kind]
        return JSONResponse(status_code=status_code, content={key: result.message}), result.kind.value
    raise TypeError(f"Unexpected handler result: {result!r}")


def guarded(operation: str, failure_message: str) -> Callable:
    """
    Wrap a route so its HandlerResult is rendered, and so any exception
    escaping it becomes 500 {"error": failure_message}.

    The wrapped route must accept `request: Request`.
    """
    def decorator(endpoint: Callable) -> Callable:
        @functools.wraps(endpoint)
        async def wrapper(*args, **kwargs):
            request: Request = kwargs["request"]
            try:
                response, outcome = render(await endpoint(*args, **kwargs))
            except Exception:
                logger.exception(f"Unhandled error in {operation}")
                response = JSONResponse(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    content={"error": failure_message},
                )
                outcome = "unhandled"

            record_message_operation(operation, outcome)
            log_operation_data(request, operation=operation, outcome=outcome)
            return response
        return wrapper
    return decorator


NOT_FOUND = {404: {"model": NoticeResponse, "description": "No matching message"}}
SERVER_ERROR = {500: {"model": ErrorResponse, "description": "Storage or unexpected failure"}}


# =============================================================================
# Message Routes
# =============================================================================

@router.get("", responses={200: {"model": list[MessageResponse]}, **SERVER_ERROR})
@guarded("list_all", "Failed to fetch messages.")
async def list_messages(request: Request, store: MessageStore = Depends(get_store)):
    """Return every stored message."""
    return await handlers.list_messages(store)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"model": MessageResponse},
        400: {"model": ErrorResponse, "description": "Missing required field"},
        **SERVER_ERROR,
    },
)
@guarded("create", "Failed to create message.")
async def create_message(request: Request, store: MessageStore = Depends(get_store)):
    """
    Create a message.

    Body: senderID, receiverID, content (required) and messageID (optional).
    """
    payload = await read_payload(request)
    return await handlers.create_message(store, payload)


@router.get(
    "/sender/{senderID}/message/{messageID}",
    responses={200: {"model": MessageResponse}, **NOT_FOUND, **SERVER_ERROR},
)
@guarded("get_by_sender_and_id", "Failed to fetch message.")
async def get_message_by_sender_and_id(
    senderID: str,
    messageID: str,
    request: Request,
    store: MessageStore = Depends(get_store),
):
    return await handlers.get_message_by_sender_and_id(store, senderID, messageID)


@router.put(
    "/sender/{senderID}/receiver/{receiverID}/message/{messageID}",
    responses={200: {"model": MessageResponse}, **NOT_FOUND, **SERVER_ERROR},
)
@guarded("update", "Failed to update message.")
async def update_message(
    senderID: str,
    receiverID: str,
    messageID: str,
    request: Request,
    store: MessageStore = Depends(get_store),
):
    """Replace the content of a message. Other fields are left unchanged."""
    payload = await read_payload(request)
    return await handlers.update_message(store, senderID, receiverID, messageID, payload)


@router.delete(
    "/sender/{senderID}/receiver/{receiverID}/message/{messageID}",
    responses={200: {"model": NoticeResponse}, **NOT_FOUND, **SERVER_ERROR},
)
@guarded("delete", "Failed to delete message.")
async def delete_message(
    senderID: str,
    receiverID: str,
    messageID: str,
    request: Request,
    store: MessageStore = Depends(get_store),
):
    return await handlers.delete_message(store, senderID, receiverID, messageID)


@router.get(
    "/sender/{senderID}/receiver/{receiverID}",
    responses={200: {"model": list[MessageResponse]}, **NOT_FOUND, **SERVER_ERROR},
)
@guarded("get_by_sender_and_receiver", "Failed to fetch messages.")
async def get_messages_by_sender_and_receiver(
    senderID: str,
    receiverID: str,
    request: Request,
    store: MessageStore = Depends(get_store),
):
    """Messages between the two parties, sent in either direction."""
    return await handlers.get_messages_by_sender_and_receiver(store, senderID, receiverID)


@router.get(
    "/receiver/{receiverID}",
    responses={200: {"model": list[MessageResponse]}, **NOT_FOUND, **SERVER_ERROR},
)
@guarded("get_by_receiver", "Failed to fetch messages for receiver.")
async def get_messages_for_receiver(
    receiverID: str,
    request: Request,
    store: MessageStore = Depends(get_store),
):
    return await handlers.get_messages_for_receiver(store, receiverID)
