"""Connected-client queries (wired and wireless).

Endpoints:
- POST data/map_access_wire_client_grid.json     - wired clients
- POST data/map_access_wireless_client_grid.json - wireless clients

Both return {"success": true, "timeout": false, "data": [{"mac_addr": ...,
"ip_addr": ..., "name": ...}, ...]}. When the cookie credentials are
rejected the router still answers 200, with its login page as the body.
"""

import json
import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .client import ClientConfig, build_request, send
from .errors import AuthenticationPage, EmptyBody, MalformedPayload

logger = logging.getLogger(__name__)

WIRED_CLIENTS_PATH = "data/map_access_wire_client_grid.json"
WIRELESS_CLIENTS_PATH = "data/map_access_wireless_client_grid.json"

# Title of the router's login page (compared lowercase). Tied to the
# Archer C9 V1 firmware text.
LOGIN_PAGE_INDICATOR = "<title>tp-link archer c9"


class Connection(BaseModel):
    """A device attached to the router.

    Decoded from the wire keys mac_addr and ip_addr. The field names
    (mac_address, ip_address) are accepted as well, on construction and when
    decoding.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    mac_address: str = Field(default="", alias="mac_addr")
    ip_address: str = Field(default="", alias="ip_addr")
    name: str = ""


class ConnectionsPayload(BaseModel):
    """Wire shape of a client-grid response. Unknown keys are ignored."""
    data: Optional[List[Connection]] = None


def decode_connections(body: bytes, transport: str) -> List[Connection]:
    """Decode a client-grid response body.

    Args:
        body: Raw response body.
        transport: "wired" or "wireless", used in error messages only.

    Returns:
        Connections in the order the router reported them. A JSON object
        without a "data" key yields an empty list.

    Raises:
        EmptyBody: body is empty.
        AuthenticationPage: body is the router's login page.
        MalformedPayload: body is not the expected JSON object.
    """
    if not body:
        raise EmptyBody(f"got empty body in {transport} connections response")

    text = body.decode("utf-8", errors="replace")
    if LOGIN_PAGE_INDICATOR in text.lower():
        raise AuthenticationPage(transport)

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedPayload(transport, text, str(e)) from e

    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise MalformedPayload(transport, text, f"want a JSON object, got {type(raw).__name__}")

    try:
        payload = ConnectionsPayload.model_validate(raw)
    except ValidationError as e:
        raise MalformedPayload(transport, text, f"{e.error_count()} invalid field(s)") from e

    return list(payload.data or [])


async def _list_connections(config: ClientConfig, transport: str, path: str) -> List[Connection]:
    operation = f"get {transport} connections"
    request = build_request(config, "POST", path)
    body = await send(config, request, operation)

    connections = decode_connections(body, transport)
    logger.debug(f"Router reported {len(connections)} {transport} connection(s)")
    return connections


async def list_wired_connections(config: ClientConfig) -> List[Connection]:
    """Return the clients connected to the router by wire."""
    return await _list_connections(config, "wired", WIRED_CLIENTS_PATH)


async def list_wireless_connections(config: ClientConfig) -> List[Connection]:
    """Return the clients connected to the router over wifi."""
    return await _list_connections(config, "wireless", WIRELESS_CLIENTS_PATH)
