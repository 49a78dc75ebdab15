"""Summary: Error taxonomy for the Hoppie ACARS exchange.

Importance: Gives transport and protocol failures typed, user-presentable errors.
Alternatives: Raise RuntimeError with free-form messages everywhere.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Summary: Classifies failures of the ACARS exchange.

    Importance: Lets callers branch on failure class without string matching.
    Alternatives: Use exception types alone for classification.
    """

    MISSING_CREDENTIAL = "missing_credential"
    TIMEOUT = "timeout"
    UNREACHABLE = "unreachable"
    SERVER_REJECTED = "server_rejected"
    REJECTED = "rejected"
    MALFORMED = "malformed"


class AcarsError(RuntimeError):
    """Summary: Base error for the ACARS exchange.

    Importance: Carries an error kind and a message suitable for an operator toast.
    Alternatives: Return error tuples instead of raising.
    """

    kind: ErrorKind = ErrorKind.UNREACHABLE
    user_message: str = "Network error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.user_message)


class MissingCredentialError(AcarsError):
    kind = ErrorKind.MISSING_CREDENTIAL
    user_message = "Hoppie logon code not configured"


class TransportTimeoutError(AcarsError):
    kind = ErrorKind.TIMEOUT
    user_message = "Connection timeout. Please check your internet connection."


class UnreachableError(AcarsError):
    kind = ErrorKind.UNREACHABLE
    user_message = (
        "Unable to connect to Hoppie ACARS network. "
        "Please check your internet connection or VPN settings."
    )


class ServerRejectedError(AcarsError):
    """Raised for a non-2xx HTTP status from the Hoppie endpoint."""

    kind = ErrorKind.SERVER_REJECTED
    user_message = "Hoppie server rejected the request"

    def __init__(self, status: int) -> None:
        self.status = status
        super().__init__(f"Hoppie server returned HTTP {status}")


class ProtocolRejectedError(AcarsError):
    """Raised when a send response does not acknowledge the message."""

    kind = ErrorKind.REJECTED
    user_message = "Failed to send message"

    def __init__(self, body: str) -> None:
        self.body = body
        super().__init__(f"Hoppie rejected message: {body.strip() or '<empty>'}")


class MalformedLineError(AcarsError):
    """Summary: Marks a receive line that does not match from:to:kind:content.

    Importance: Names the recovered failure; the codec skips such lines.
    Alternatives: Silently drop lines without a typed reason.
    """

    kind = ErrorKind.MALFORMED
    user_message = "Malformed message line"

    def __init__(self, line: str) -> None:
        self.line = line
        super().__init__(f"Malformed receive line: {line!r}")


class StatusTransitionError(ValueError):
    """Raised when a status change is not one of the allowed transitions."""


class MessageNotFoundError(KeyError):
    """Raised when a message id is not present in the store."""
