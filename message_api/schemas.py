"""
Pydantic schemas for request/response validation.

This module contains:
- Request models for create and update bodies
- Response models for stored messages, notices, errors and health
"""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Pydantic Request Models
# =============================================================================

def _bool_to_str(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


class MessageCreate(BaseModel):
    """
    Body of POST /api/messages.

    Every field is optional at the schema level; presence of senderID,
    receiverID and content is checked by the create handler on the raw
    body so that a missing field yields 400 rather than FastAPI's 422.
    Numbers and booleans are stored as strings.
    """
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    senderID: Optional[str] = None
    receiverID: Optional[str] = None
    messageID: Optional[str] = None
    content: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def stringify_bools(cls, v: Any) -> Any:
        return _bool_to_str(v)


class MessageUpdate(BaseModel):
    """Body of PUT .../message/{messageID}. Only content is applied."""
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    content: Optional[str] = None

    @field_validator("content", mode="before")
    @classmethod
    def stringify_bools(cls, v: Any) -> Any:
        return _bool_to_str(v)


# =============================================================================
# Pydantic Response Models
# =============================================================================

class MessageResponse(BaseModel):
    """
    A stored message as returned to clients.

    Serialized with aliases so the storage id appears as `_id`.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id", description="Storage-assigned identifier")
    senderID: str
    receiverID: str
    messageID: Optional[str] = None
    content: str

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "MessageResponse":
        return cls(
            id=str(document["_id"]),
            senderID=document.get("senderID"),
            receiverID=document.get("receiverID"),
            messageID=document.get("messageID"),
            content=document.get("content"),
        )


class NoticeResponse(BaseModel):
    """Informational body, e.g. {"message": "Message deleted"}."""
    message: str


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    reason: Optional[str] = None
