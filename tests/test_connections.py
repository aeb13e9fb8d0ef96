"""Tests for connected-client decoding and queries."""

import json
from unittest.mock import MagicMock

import aiohttp
import pytest

from tplink.client import ClientConfig
from tplink.connections import (
    Connection,
    decode_connections,
    list_wired_connections,
    list_wireless_connections,
)
from tplink.errors import (
    AuthenticationPage,
    EmptyBody,
    HTTPStatusError,
    MalformedPayload,
    TransportError,
)


ONE_DEVICE = b'{"data":[{"mac_addr":"00-00-00-00-00-00","ip_addr":"10.100.100.1","name":"my-tp-link-rtr"}]}'

LOGIN_PAGE = b"""<!DOCTYPE html>
<html><head><meta charset="utf-8">
<TITLE>TP-LINK Archer C9</TITLE>
</head><body><form id="login">...</form></body></html>"""


class TestDecodeConnections:
    """Tests for decode_connections."""

    def test_single_device(self):
        connections = decode_connections(ONE_DEVICE, "wired")

        assert connections == [
            Connection(mac_address="00-00-00-00-00-00", ip_address="10.100.100.1", name="my-tp-link-rtr")
        ]

    def test_preserves_router_order(self):
        devices = [
            {"mac_addr": f"AA-BB-CC-DD-EE-0{i}", "ip_addr": f"192.168.0.{i}", "name": f"host-{i}"}
            for i in (9, 2, 5)
        ]
        body = json.dumps({"success": True, "timeout": False, "data": devices}).encode()

        connections = decode_connections(body, "wireless")

        assert [c.name for c in connections] == ["host-9", "host-2", "host-5"]
        assert [c.ip_address for c in connections] == ["192.168.0.9", "192.168.0.2", "192.168.0.5"]

    def test_missing_fields_decode_as_empty_strings(self):
        connections = decode_connections(b'{"data":[{"ip_addr":"10.0.0.7"}]}', "wired")

        assert connections[0].ip_address == "10.0.0.7"
        assert connections[0].mac_address == ""
        assert connections[0].name == ""

    def test_field_names_accepted_alongside_wire_keys(self):
        body = b'{"data":[{"mac_address":"AA-BB-CC-DD-EE-FF","ip_address":"10.0.0.8","name":"nas"}]}'

        connections = decode_connections(body, "wired")

        assert connections[0].mac_address == "AA-BB-CC-DD-EE-FF"
        assert connections[0].ip_address == "10.0.0.8"

    def test_empty_body(self):
        with pytest.raises(EmptyBody):
            decode_connections(b"", "wired")

    @pytest.mark.parametrize("transport", ["wired", "wireless"])
    def test_login_page_names_transport(self, transport):
        with pytest.raises(AuthenticationPage) as exc_info:
            decode_connections(LOGIN_PAGE, transport)

        assert exc_info.value.transport == transport
        assert f"{transport} connections" in str(exc_info.value)
        assert "credentials" in str(exc_info.value)

    def test_login_marker_is_case_insensitive(self):
        with pytest.raises(AuthenticationPage):
            decode_connections(b"<title>tp-link archer c9 v1</title>", "wired")

    @pytest.mark.parametrize("body", [
        b"this is not JSON",
        b'{"data": [',
        b'[{"mac_addr": "00-00-00-00-00-00"}]',
        b'"just a string"',
        b'{"data": "nope"}',
        b'{"data": [{"mac_addr": 42}]}',
        b'{"data": [null]}',
    ])
    def test_malformed_payload(self, body):
        with pytest.raises(MalformedPayload) as exc_info:
            decode_connections(body, "wireless")

        assert exc_info.value.transport == "wireless"
        assert "wireless connections" in str(exc_info.value)

    @pytest.mark.parametrize("body", [b"{}", b'{"success": true}', b'{"data": null}', b"null", b'{"data": []}'])
    def test_no_data_is_empty_list(self, body):
        assert decode_connections(body, "wired") == []

    def test_connection_is_immutable(self):
        connection = decode_connections(ONE_DEVICE, "wired")[0]
        with pytest.raises(Exception):
            connection.name = "other"


class TestListConnections:
    """End-to-end tests against the fake router."""

    @pytest.mark.asyncio
    async def test_wired_one_device(self, fake_router, router_config):
        fake_router.responses["/data/map_access_wire_client_grid.json"] = (200, ONE_DEVICE)

        connections = await list_wired_connections(router_config)

        assert len(connections) == 1
        assert connections[0].mac_address == "00-00-00-00-00-00"
        assert connections[0].ip_address == "10.100.100.1"
        assert connections[0].name == "my-tp-link-rtr"

        received = fake_router.requests[0]
        assert received["method"] == "POST"
        assert received["headers"]["Cookie"] == f"Authorization=Basic {router_config.credential_token}"
        assert received["headers"]["Referer"] == router_config.base_address

    @pytest.mark.asyncio
    async def test_wireless_one_device(self, fake_router, router_config):
        fake_router.responses["/data/map_access_wireless_client_grid.json"] = (200, ONE_DEVICE)

        connections = await list_wireless_connections(router_config)

        assert [c.name for c in connections] == ["my-tp-link-rtr"]
        assert fake_router.requests[0]["path"] == "/data/map_access_wireless_client_grid.json"

    @pytest.mark.asyncio
    async def test_no_connections(self, fake_router, router_config):
        fake_router.responses["/data/map_access_wire_client_grid.json"] = (200, b'{"success":true,"data":[]}')

        assert await list_wired_connections(router_config) == []

    @pytest.mark.asyncio
    async def test_login_page_with_200(self, fake_router, router_config):
        fake_router.responses["/data/map_access_wireless_client_grid.json"] = (200, LOGIN_PAGE)

        with pytest.raises(AuthenticationPage) as exc_info:
            await list_wireless_connections(router_config)

        assert exc_info.value.transport == "wireless"

    @pytest.mark.asyncio
    async def test_status_error_checked_before_decoding(self, fake_router, router_config):
        fake_router.responses["/data/map_access_wire_client_grid.json"] = (500, ONE_DEVICE)

        with pytest.raises(HTTPStatusError) as exc_info:
            await list_wired_connections(router_config)

        assert exc_info.value.code == 500
        assert exc_info.value.method == "POST"
        assert exc_info.value.operation == "get wired connections"

    @pytest.mark.asyncio
    async def test_empty_body(self, fake_router, router_config):
        fake_router.responses["/data/map_access_wire_client_grid.json"] = (200, b"")

        with pytest.raises(EmptyBody):
            await list_wired_connections(router_config)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", [list_wired_connections, list_wireless_connections])
    async def test_transport_error_not_retried(self, operation, test_logger):
        cause = aiohttp.ClientConnectionError("Connection refused")
        session = MagicMock()
        session.request.side_effect = cause
        config = ClientConfig.create("user", "password", "http://my-tplink-rtr/", session=session, logger=test_logger)

        with pytest.raises(TransportError) as exc_info:
            await operation(config)

        assert exc_info.value.__cause__ is cause
        assert session.request.call_count == 1
