from __future__ import annotations


class GatewayError(Exception):
    """
    Base error for the gateway.

    Every subclass carries a stable `code` (echoed to HTTP callers) and the HTTP
    status the API layer maps it to.
    """

    code = "GATEWAY_ERROR"
    http_status = 500

    def __init__(self, message: str, *, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotReadyError(GatewayError):
    """An outbound operation was attempted before the session became ready."""

    code = "NOT_READY"
    http_status = 400


class AlreadyAuthenticatedError(GatewayError):
    """A pairing code was requested while the session is already authenticated."""

    code = "ALREADY_AUTHENTICATED"
    http_status = 400


class PairingNotAvailableError(GatewayError):
    """No pairing code has been issued by the transport (yet)."""

    code = "NOT_AVAILABLE"
    http_status = 404


class NotAuthenticatedError(GatewayError):
    """Logout was requested outside the ready state."""

    code = "NOT_AUTHENTICATED"
    http_status = 400


class TransportError(GatewayError):
    """
    Failure surfaced by the transport adapter.

    The original exception (remote rejection, connection loss, encoding failure)
    is chained as `__cause__` and its text is kept in `details`.
    """

    code = "TRANSPORT_ERROR"
    http_status = 500

    @classmethod
    def wrap(cls, message: str, exc: BaseException) -> TransportError:
        err = cls(message, details=str(exc) or type(exc).__name__)
        err.__cause__ = exc
        return err


class ValidationError(GatewayError):
    """A required request field is missing or malformed."""

    code = "VALIDATION_ERROR"
    http_status = 400
