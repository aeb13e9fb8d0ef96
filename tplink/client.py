"""Client for the TP-Link Archer C9 V1 web management interface.

The router's web UI authenticates every request with HTTP Basic credentials
carried in a cookie (``Authorization=Basic <base64(user:password)>``) and
rejects requests without a ``Referer`` pointing at itself. This module holds
the connection parameters, builds authenticated requests and dispatches them:

- ClientConfig.create() - validate and hold address, credentials, transport
- build_request()       - absolute URL, form-encoded body, auth headers
- check_response()      - classify the HTTP status of a completed exchange
- send()                - one authenticated round trip, returns the body
"""

import asyncio
import base64
import logging
import re
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Mapping, Optional
from urllib.parse import urlencode, urljoin, urlsplit, urlunsplit

import aiohttp

from .errors import (
    HTTPStatusError,
    InvalidAddress,
    InvalidCredentials,
    InvalidMethod,
    InvalidURL,
    TransportError,
)

logger = logging.getLogger(__name__)

# RFC 7230 token characters
_METHOD_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_CONTROL_OR_SPACE = re.compile(r"[\x00-\x20\x7f]")
_ALLOWED_SCHEMES = ("http", "https")


def default_logger() -> logging.Logger:
    """Return the diagnostic logger used when the caller supplies none.

    Writes timestamped lines to stderr unless logging is already configured
    somewhere up the hierarchy.
    """
    if not logger.hasHandlers():
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s: %(message)s",
            datefmt="%Y/%m/%d %H:%M:%S",
        ))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def encode_basic_auth(user_name: str, password: str) -> str:
    """Return base64(user_name:password)."""
    return base64.b64encode(f"{user_name}:{password}".encode("utf-8")).decode("ascii")


@dataclass(frozen=True)
class ClientConfig:
    """Connection parameters for one router.

    Immutable once built, so a single instance can be shared between tasks.
    When ``session`` is None each operation opens (and closes) its own
    aiohttp session.
    """
    user_name: str
    password: str = field(repr=False)
    base_address: str
    session: Optional[aiohttp.ClientSession] = field(default=None, repr=False, compare=False)
    logger: Optional[logging.Logger] = field(default=None, repr=False, compare=False)
    credential_token: str = field(init=False, repr=False)

    def __post_init__(self):
        if not self.user_name:
            raise InvalidCredentials("got empty value for user name (want a valid user name)")
        if not self.password:
            raise InvalidCredentials("got empty value for password (want a non-empty password)")
        _validate_base_address(self.base_address)

        if self.logger is None:
            object.__setattr__(self, "logger", default_logger())
        object.__setattr__(self, "credential_token", encode_basic_auth(self.user_name, self.password))

    @classmethod
    def create(
        cls,
        user_name: str,
        password: str,
        base_address: str,
        session: Optional[aiohttp.ClientSession] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "ClientConfig":
        """Validate the parameters and build a config.

        Raises:
            InvalidCredentials: user name or password is empty.
            InvalidAddress: base_address is not an absolute http(s) URL.
        """
        return cls(user_name, password, base_address, session=session, logger=logger)

    @property
    def auth_cookie(self) -> str:
        return f"Authorization=Basic {self.credential_token}"


def _validate_base_address(base_address: str) -> None:
    try:
        parts = urlsplit(base_address)
        # Accessing .port validates it
        parts.port
    except (ValueError, TypeError) as e:
        raise InvalidAddress(f"got error parsing base address {base_address!r}: {e}") from e

    if parts.scheme.lower() not in _ALLOWED_SCHEMES:
        raise InvalidAddress(
            f"got invalid scheme in base address (want http or https): {base_address!r}"
        )
    if not parts.hostname:
        raise InvalidAddress(
            f"got empty hostname in base address (want http://hostname or https://hostname): {base_address!r}"
        )


@dataclass(frozen=True)
class OutboundRequest:
    """A fully-formed request, built fresh for every call."""
    method: str
    url: str
    body: bytes
    headers: Mapping[str, str]


def _resolve(base_address: str, relative_path: str) -> str:
    if _CONTROL_OR_SPACE.search(relative_path):
        raise InvalidURL(f"got control character or whitespace in path {relative_path!r}")
    if relative_path.startswith(":"):
        raise InvalidURL(f"got missing scheme in path {relative_path!r}")
    scheme = urlsplit(relative_path).scheme
    if scheme and scheme.lower() not in _ALLOWED_SCHEMES:
        raise InvalidURL(f"got disallowed scheme {scheme!r} in path {relative_path!r}")

    # Resolve relative to the base as a directory
    base = urlsplit(base_address)
    if not base.path.endswith("/"):
        base = base._replace(path=base.path + "/")
    return urljoin(urlunsplit(base), relative_path)


def build_request(
    config: ClientConfig,
    method: str,
    relative_path: str,
    form_fields: Optional[Mapping[str, str]] = None,
    params: Optional[Mapping[str, str]] = None,
) -> OutboundRequest:
    """Build an authenticated request to ``relative_path``.

    Args:
        config: Router connection parameters.
        method: HTTP method, e.g. "GET" or "POST".
        relative_path: Path relative to the base address, given without a
            leading slash (e.g. "data/map_access_wire_client_grid.json").
        form_fields: Encoded as application/x-www-form-urlencoded into the
            body, whatever the method.
        params: Encoded into the query string.

    Raises:
        InvalidMethod: method is not a valid HTTP token.
        InvalidURL: relative_path cannot be resolved against the base address.
    """
    if not method or not _METHOD_TOKEN.fullmatch(method):
        raise InvalidMethod(f"got invalid HTTP method {method!r}")

    url = _resolve(config.base_address, relative_path)
    if params:
        parts = urlsplit(url)
        query = "&".join(q for q in (parts.query, urlencode(sorted(params.items()))) if q)
        url = urlunsplit(parts._replace(query=query))

    body = urlencode(sorted((form_fields or {}).items())).encode("ascii")

    headers: Dict[str, str] = {
        "Referer": config.base_address,
        "Cookie": config.auth_cookie,
    }
    if body:
        headers["Content-Type"] = "application/x-www-form-urlencoded"

    return OutboundRequest(method=method, url=url, body=body, headers=headers)


def check_response(response: aiohttp.ClientResponse, operation: Optional[str] = None) -> None:
    """Raise HTTPStatusError unless the status code is 2xx."""
    if 200 <= response.status < 300:
        return
    raise HTTPStatusError(response.status, response.method, str(response.url), operation)


@asynccontextmanager
async def open_session(config: ClientConfig) -> AsyncIterator[aiohttp.ClientSession]:
    """Yield the configured session, or a throwaway one closed on exit."""
    if config.session is not None:
        yield config.session
        return

    # The cookie jar would otherwise re-serialize our Cookie header
    async with aiohttp.ClientSession(cookie_jar=aiohttp.DummyCookieJar()) as session:
        yield session


async def send(config: ClientConfig, request: OutboundRequest, operation: str) -> bytes:
    """Dispatch ``request`` and return the response body.

    The response is released before returning, on success and on error.

    Raises:
        TransportError: no response was received or the body could not be read.
        HTTPStatusError: the router answered with a non-2xx status.
    """
    config.logger.info("sending request to %s as (%s %s) ...", operation, request.method, request.url)

    try:
        async with open_session(config) as session:
            async with session.request(
                request.method,
                request.url,
                data=request.body or None,
                headers=dict(request.headers),
            ) as response:
                check_response(response, operation)
                body = await response.read()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise TransportError(request.url, e, operation) from e

    logger.debug(f"Got {len(body)} bytes from {request.url}")
    return body
