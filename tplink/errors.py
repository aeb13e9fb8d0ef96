"""Error types raised by the router client."""

from typing import Optional


class RouterError(Exception):
    """Base class for all router client errors.

    ``operation`` names what was being attempted (e.g. "get wired connections")
    and is prefixed to the message when set.
    """

    def __init__(self, message: str, operation: Optional[str] = None):
        self.message = message
        self.operation = operation
        super().__init__(message)

    def __str__(self) -> str:
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


class InvalidCredentials(RouterError, ValueError):
    """Empty user name or password."""


class InvalidAddress(RouterError, ValueError):
    """Router base address is not an absolute http(s) URL."""


class InvalidMethod(RouterError, ValueError):
    """HTTP method is not a valid token."""


class InvalidURL(RouterError, ValueError):
    """Relative path cannot be resolved against the base address."""


class TransportError(RouterError):
    """The request never produced a response (DNS, refused, timeout...)."""

    def __init__(self, url: str, cause: BaseException, operation: Optional[str] = None):
        self.url = url
        self.cause = cause
        super().__init__(f"got error doing request to {url}: {cause}", operation)


class HTTPStatusError(RouterError):
    """Router answered with a status code outside 200-299."""

    def __init__(self, code: int, method: str, url: str, operation: Optional[str] = None):
        self.code = code
        self.method = method
        self.url = url
        super().__init__(
            f"got status code {code} (want 200-299) when doing {method} request to {url}",
            operation,
        )


class EmptyBody(RouterError):
    """Response body had zero length."""


class AuthenticationPage(RouterError):
    """Router served its login page instead of data.

    The router answers with 200 and the login screen when the credentials
    are rejected, so this can only be detected from the body.
    """

    def __init__(self, transport: str, operation: Optional[str] = None):
        self.transport = transport
        super().__init__(
            f"got the TP Link Archer C9 login webpage as {transport} connections "
            f"response (want JSON), check your login credentials",
            operation,
        )


class MalformedPayload(RouterError):
    """Body could not be decoded into the expected JSON shape."""

    def __init__(self, transport: str, body: str, detail: str = "", operation: Optional[str] = None):
        self.transport = transport
        self.body = body
        message = f"got error trying to decode {transport} connections response into JSON"
        if detail:
            message += f" ({detail})"
        message += f" (tried to decode {body[:200]!r})"
        super().__init__(message, operation)


class IncompleteReboot(RouterError):
    """Reboot response lacks the completion markers."""

    def __init__(self, body: str, operation: Optional[str] = None):
        self.body = body
        super().__init__(
            f"got invalid response body (want response indicating rebooting has completed): {body[:200]!r}",
            operation,
        )
