"""
GS1 integration errors

Every failure of the registration client is raised as a GS1Error subclass
carrying a `kind` from a small taxonomy and a user-facing `message`.

Kinds:
- ValidationError: required field missing/malformed, raised before any I/O
- AuthFailure: credential exchange rejected or no usable token returned
- TransportError: network failure reaching the registry (timeout, DNS, reset)
- ProtocolError: response body not parseable / shape not recognized
- RegistryError: registry answered and declined the operation

Author: TM3
Date: 2026-03-02
"""
import enum
from typing import Any, Dict, Optional


# Upstream payloads embedded in messages are capped at this many characters
EXCERPT_LIMIT = 300


class ErrorKind(str, enum.Enum):
    VALIDATION = "ValidationError"
    AUTH = "AuthFailure"
    TRANSPORT = "TransportError"
    PROTOCOL = "ProtocolError"
    REGISTRY = "RegistryError"


def truncate(text: Optional[str], limit: int = EXCERPT_LIMIT) -> str:
    """Cap an upstream payload excerpt"""
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + "…"


class GS1Error(Exception):
    """
    Base exception for the GS1 registration workflow.

    Attributes:
        kind: ErrorKind
        message: Human message, safe to render as-is
        status_code: HTTP status from the registry/authority, when there was one
        raw: Truncated raw response text kept for diagnostics
    """

    kind: ErrorKind = ErrorKind.REGISTRY

    def __init__(self, message: str, status_code: Optional[int] = None, raw: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.raw = truncate(raw) if raw else None
        super().__init__(message)

    def as_dict(self) -> Dict[str, Any]:
        """Return error as dictionary for API responses."""
        data = {"kind": self.kind.value, "message": self.message}
        if self.status_code is not None:
            data["status_code"] = self.status_code
        if self.raw:
            data["raw"] = self.raw
        return data

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class GS1ValidationError(GS1Error):
    kind = ErrorKind.VALIDATION


class GS1AuthError(GS1Error):
    kind = ErrorKind.AUTH


class GS1TransportError(GS1Error):
    kind = ErrorKind.TRANSPORT


class GS1ProtocolError(GS1Error):
    kind = ErrorKind.PROTOCOL


class GS1RegistryError(GS1Error):
    kind = ErrorKind.REGISTRY


def http_status_for(error: GS1Error) -> int:
    """Status code the API layer answers with for a given error"""
    if error.kind == ErrorKind.VALIDATION:
        return 400
    if error.kind == ErrorKind.TRANSPORT:
        return 504
    if error.kind == ErrorKind.REGISTRY and error.status_code and 400 <= error.status_code < 500:
        return error.status_code
    return 502
