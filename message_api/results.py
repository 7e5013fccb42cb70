"""
Typed outcomes returned by the message handlers.

Handlers never build HTTP responses themselves; they return either a
`Success` carrying the JSON-ready value or a `Failure` carrying an
`ErrorKind`, and the route layer renders both.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STORAGE = "storage"


@dataclass(frozen=True)
class Success:
    value: Any
    status_code: int = 200


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str


HandlerResult = Union[Success, Failure]
