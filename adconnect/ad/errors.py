from __future__ import annotations

from collections.abc import Mapping
from typing import Any

UNKNOWN_AUTH_ERROR = "Unknown Auth Error"
ACCOUNT_LOCKED_OUT = "Account is locked out"
INVALID_CREDENTIALS = "Invalid username or password"

INVALID_CREDENTIALS_KIND = "invalidCredentials"

# AD puts the sub-code into the diagnostic text: "... data 775, v4563"
_LOCKED_OUT_SUBCODE = "775"


class DirectoryError(Exception):
    """Base class for connector errors."""


class CredentialTypeError(DirectoryError, TypeError):
    """Username or password is not a string."""


class DecodeError(DirectoryError, ValueError):
    """Raw directory record has an unexpected shape."""


class BindError(DirectoryError):
    """Directory rejected the bind request.

    `kind` is the LDAP result description (e.g. "invalidCredentials"),
    `diagnostic_message` is the server's diagnostic text.
    """

    def __init__(self, kind: str, diagnostic_message: str = "", result: dict | None = None) -> None:
        super().__init__(f"bind failed: {kind}: {diagnostic_message}".rstrip(": "))
        self.kind = kind
        self.diagnostic_message = diagnostic_message
        self.result = dict(result or {})


class InvalidCredentialsError(BindError):
    def __init__(self, diagnostic_message: str = "", result: dict | None = None) -> None:
        super().__init__(INVALID_CREDENTIALS_KIND, diagnostic_message, result)


class SearchError(DirectoryError):
    """Search finished with a non-success result code.

    `entries` holds whatever arrived before the server stopped, e.g. when
    the size limit was hit.
    """

    def __init__(self, result: dict | None = None, entries: list | None = None) -> None:
        self.result = dict(result or {})
        self.entries = list(entries or [])
        desc = self.result.get("description") or "unknown error"
        msg = self.result.get("message") or ""
        super().__init__(f"search failed: {desc} {msg}".strip())


class TransportError(DirectoryError):
    """Connection-level fault. The raw ldap3 exception is chained as __cause__."""


def _bind_error_fields(error: Any) -> tuple[Any, Any]:
    if isinstance(error, BindError):
        return error.kind, error.diagnostic_message
    if isinstance(error, Mapping):
        return error.get("description"), error.get("message")
    # ldap3 LDAPOperationResult (raise_exceptions=True) exposes the same fields
    return getattr(error, "description", None), getattr(error, "message", None)


def resolve_bind_error(error: Any) -> str:
    """Turn a bind failure into a user facing message.

    Only substring matching over the diagnostic text is done, so disabled or
    expired accounts are reported as a bad password.
    """
    kind, message = _bind_error_fields(error)
    if kind != INVALID_CREDENTIALS_KIND or not message or not isinstance(message, str):
        return UNKNOWN_AUTH_ERROR

    if _LOCKED_OUT_SUBCODE in message:
        return ACCOUNT_LOCKED_OUT

    return INVALID_CREDENTIALS
