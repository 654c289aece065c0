"""Error taxonomy for the webhook proxy.

Each runtime error carries the HTTP status it maps to and the generic message
returned to the caller. Internal detail stays in the exception message and the
logs, never in the response body.
"""


class GatewayError(Exception):
    """Base class for errors raised while handling a webhook."""

    status_code = 500
    detail = "Internal Server Error"


class MissingHeaderError(GatewayError):
    """A required provider header is absent or empty."""

    status_code = 400
    detail = "Bad Request"


class SecretMismatchError(GatewayError):
    """The webhook token or signature does not match the configured secret."""

    status_code = 400
    detail = "Bad Request"


class PathNotAllowedError(GatewayError):
    """The requested path is not in the allow-list."""

    status_code = 403
    detail = "Forbidden"


class MethodNotAllowedError(GatewayError):
    """The inbound method is not the one the proxy forwards."""

    status_code = 405
    detail = "Method Not Allowed"

    def __init__(self, message: str, allowed: str) -> None:
        super().__init__(message)
        self.allowed = allowed


class UnknownProviderError(GatewayError):
    """The configured provider kind has no registered implementation."""


class InvalidUpstreamTargetError(GatewayError):
    """The upstream URL cannot be turned into a valid absolute URL."""


class UpstreamUnreachableError(GatewayError):
    """The upstream could not be contacted (DNS, connect, TLS, timeout)."""


class InvalidConfigurationError(ValueError):
    """Raised when the gateway is constructed with invalid settings."""
