"""
Error kinds raised by the chat repositories and service.

Every failure that reaches the HTTP layer is one of these; routes translate
them into HTTPException using the ``status_code`` and ``to_detail()`` payload.
"""
from typing import Any, Dict, List, Optional


class ChatError(Exception):
    """Base class for all chat errors"""
    kind = "chat_error"
    status_code = 500

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def to_detail(self) -> Dict[str, Any]:
        detail = {"kind": self.kind, "message": self.message}
        if self.errors:
            detail["errors"] = self.errors
        return detail


class ValidationError(ChatError):
    """Malformed input: message content, message type, id formats"""
    kind = "validation_error"
    status_code = 400

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls("Validation failed", errors=[{"field": field, "message": message}])


class InvalidReference(ChatError):
    """A referenced product or counterpart user does not exist"""
    kind = "invalid_reference"
    status_code = 404


class Forbidden(ChatError):
    """Caller is not a participant of the chat, or the chat is inactive"""
    kind = "forbidden"
    status_code = 403


class NotFound(ChatError):
    """The chat or message id does not exist at all"""
    kind = "not_found"
    status_code = 404


class ConflictOrRace(ChatError):
    """Concurrent creation of the same chat; resolved inside the service"""
    kind = "conflict"
    status_code = 409


class StorageError(ChatError):
    """Underlying persistence failure"""
    kind = "storage_error"
    status_code = 500
