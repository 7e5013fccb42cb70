"""
Message operations.

Each handler performs one store call and maps the outcome to a
`Success` or `Failure`. Storage errors are logged and reported as
`ErrorKind.STORAGE`; anything else propagates to the route boundary.
"""

import logging
from typing import Any, Dict, List, Mapping

from pydantic import ValidationError
from pymongo.errors import PyMongoError

from message_api.results import ErrorKind, Failure, HandlerResult, Success
from message_api.schemas import MessageCreate, MessageResponse, MessageUpdate
from message_api.storage import Document, MessageStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("senderID", "receiverID", "content")
REQUIRED_FIELDS_ERROR = "All fields are required: senderID, receiverID, content."
MESSAGE_NOT_FOUND = "Message not found"
MESSAGE_DELETED = "Message deleted"
NO_CONVERSATION_MESSAGES = "No messages found for this sender and receiver combination"
NO_RECEIVER_MESSAGES = "No messages found for this receiver"


def _dump(document: Mapping[str, Any]) -> Dict[str, Any]:
    return MessageResponse.from_document(document).model_dump(by_alias=True)


def _dump_all(documents: List[Document]) -> List[Dict[str, Any]]:
    return [_dump(doc) for doc in documents]


async def list_messages(store: MessageStore) -> HandlerResult:
    try:
        messages = await store.list_all()
    except PyMongoError as e:
        logger.error(f"Error retrieving messages: {e}")
        return Failure(ErrorKind.STORAGE, "Failed to retrieve messages.")
    return Success(_dump_all(messages))


async def create_message(store: MessageStore, payload: Any) -> HandlerResult:
    """
    Create a message from a decoded JSON body.

    senderID, receiverID and content must be present and non-empty;
    messageID is optional. Nothing is written when validation fails.
    """
    if not isinstance(payload, dict):
        logger.warning("Create rejected: body is not a JSON object")
        return Failure(ErrorKind.VALIDATION, REQUIRED_FIELDS_ERROR)

    # Falsy raw values (null, "", 0, false) count as missing
    missing = [field for field in REQUIRED_FIELDS if not payload.get(field)]
    if missing:
        logger.warning(f"Create rejected: missing {', '.join(missing)}")
        return Failure(ErrorKind.VALIDATION, REQUIRED_FIELDS_ERROR)

    try:
        data = MessageCreate.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Create rejected: {e.error_count()} invalid field(s)")
        return Failure(ErrorKind.VALIDATION, REQUIRED_FIELDS_ERROR)

    try:
        saved = await store.insert(
            sender_id=data.senderID,
            receiver_id=data.receiverID,
            message_id=data.messageID,
            content=data.content,
        )
    except PyMongoError as e:
        logger.error(f"Error saving message: {e}")
        return Failure(ErrorKind.STORAGE, "Failed to create message.")
    return Success(_dump(saved), status_code=201)


async def get_message_by_sender_and_id(store: MessageStore, sender_id: str, message_id: str) -> HandlerResult:
    try:
        message = await store.find_by_sender_and_message_id(sender_id, message_id)
    except PyMongoError as e:
        logger.error(f"Error finding message: {e}")
        return Failure(ErrorKind.STORAGE, "Failed to retrieve message.")

    if message is None:
        return Failure(ErrorKind.NOT_FOUND, MESSAGE_NOT_FOUND)
    return Success(_dump(message))


async def update_message(
    store: MessageStore,
    sender_id: str,
    receiver_id: str,
    message_id: str,
    payload: Any,
) -> HandlerResult:
    """
    Replace the content of the message identified by the three ids.

    A body without `content` leaves the document untouched.
    """
    content = None
    if isinstance(payload, dict):
        try:
            content = MessageUpdate.model_validate(payload).content
        except ValidationError as e:
            logger.warning(f"Ignoring invalid update body: {e.error_count()} invalid field(s)")

    try:
        updated = await store.update_content(sender_id, receiver_id, message_id, content)
    except PyMongoError as e:
        logger.error(f"Error updating message: {e}")
        return Failure(ErrorKind.STORAGE, "Failed to update message.")

    if updated is None:
        return Failure(ErrorKind.NOT_FOUND, MESSAGE_NOT_FOUND)
    return Success(_dump(updated))


async def delete_message(store: MessageStore, sender_id: str, receiver_id: str, message_id: str) -> HandlerResult:
    try:
        deleted = await store.delete(sender_id, receiver_id, message_id)
    except PyMongoError as e:
        logger.error(f"Error deleting message: {e}")
        return Failure(ErrorKind.STORAGE, "Failed to delete message.")

    if deleted is None:
        return Failure(ErrorKind.NOT_FOUND, MESSAGE_NOT_FOUND)
    return Success({"message": MESSAGE_DELETED})


async def get_messages_by_sender_and_receiver(store: MessageStore, sender_id: str, receiver_id: str) -> HandlerResult:
    try:
        messages = await store.find_conversation(sender_id, receiver_id)
    except PyMongoError as e:
        logger.error(f"Error retrieving messages: {e}")
        return Failure(ErrorKind.STORAGE, "Failed to retrieve messages.")

    if not messages:
        return Failure(ErrorKind.NOT_FOUND, NO_CONVERSATION_MESSAGES)
    return Success(_dump_all(messages))


async def get_messages_for_receiver(store: MessageStore, receiver_id: str) -> HandlerResult:
    try:
        messages = await store.find_for_receiver(receiver_id)
    except PyMongoError as e:
        logger.error(f"Error retrieving messages for receiver: {e}")
        return Failure(ErrorKind.STORAGE, "Failed to retrieve messages for receiver.")

    if not messages:
        return Failure(ErrorKind.NOT_FOUND, NO_RECEIVER_MESSAGES)
    return Success(_dump_all(messages))
