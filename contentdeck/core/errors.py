"""Domain error taxonomy shared by services and the HTTP layer."""

from __future__ import annotations

from typing import Any, Dict, Optional


class ContentDeckError(RuntimeError):
    """Base error carrying a machine-readable kind and a human message."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str, *, detail: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.detail: Dict[str, Any] = dict(detail or {})
        super().__init__(message)

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.kind, "message": self.message, "detail": self.detail}


class ValidationError(ContentDeckError):
    kind = "validation_error"
    status_code = 400


class NotFoundError(ContentDeckError):
    kind = "not_found"
    status_code = 404


class PermissionDeniedError(ContentDeckError):
    kind = "permission_denied"
    status_code = 403


class ConflictError(ContentDeckError):
    kind = "conflict"
    status_code = 409


class QuotaExceededError(ContentDeckError):
    kind = "quota_exceeded"
    status_code = 402


class GenerationError(ContentDeckError):
    """Raised when the caption generation collaborator fails or times out."""

    kind = "generation_error"
    status_code = 502

    def __init__(self, reason: str, message: Optional[str] = None) -> None:
        self.reason = reason
        super().__init__(message or f"Caption generation failed: {reason}", detail={"reason": reason})
