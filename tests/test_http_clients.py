"""Tests for the Composio and Appwrite HTTP clients."""

import json

import httpx
import pytest

from aurora.clients.appwrite import AppwriteSessionResolver
from aurora.clients.composio import ComposioClient, DisabledToolBackend
from aurora.exceptions import ToolExecutionError
from aurora.models.toolkits import ConnectionStatus


def mock_client(handler, requests: list[httpx.Request], base_url: str = "https://backend.test") -> httpx.AsyncClient:
    def recording_handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    return httpx.AsyncClient(transport=httpx.MockTransport(recording_handler), base_url=base_url)


class TestComposioClient:
    """Tests for the Composio REST wrapper."""

    @pytest.mark.asyncio
    async def test_list_connections(self):
        """Test connection parsing, including unknown statuses being skipped."""
        requests: list[httpx.Request] = []

        def handler(request):
            return httpx.Response(
                200,
                json={
                    "items": [
                        {"id": "ca_1", "status": "ACTIVE", "toolkit": {"slug": "github"}, "user_id": "user-1"},
                        {"id": "ca_2", "status": "expired", "toolkit": {"slug": "gmail"}},
                        {"id": "ca_3", "status": "SOMETHING_NEW", "toolkit": {"slug": "notion"}},
                    ]
                },
            )

        client = ComposioClient("key", http_client=mock_client(handler, requests))

        connections = await client.list_connections("user-1")

        assert requests[0].url.path == "/api/v3/connected_accounts"
        assert requests[0].url.params["user_ids"] == "user-1"
        assert [(c.id, c.toolkit, c.status) for c in connections] == [
            ("ca_1", "GITHUB", ConnectionStatus.ACTIVE),
            ("ca_2", "GMAIL", ConnectionStatus.EXPIRED),
        ]
        assert connections[1].user_id == "user-1"

    @pytest.mark.asyncio
    async def test_list_connections_error_raises(self):
        client = ComposioClient("key", http_client=mock_client(lambda request: httpx.Response(503), []))

        with pytest.raises(httpx.HTTPStatusError):
            await client.list_connections("user-1")

    @pytest.mark.asyncio
    async def test_list_tools(self):
        requests: list[httpx.Request] = []
        schema = {"type": "object", "properties": {"city": {"type": "string"}}, "required": ["city"]}

        def handler(request):
            return httpx.Response(
                200,
                json={
                    "items": [
                        {"slug": "WEATHERMAP_WEATHER", "description": "Current weather", "input_parameters": schema},
                        {"slug": "WEATHERMAP_FORECAST", "name": "Forecast"},
                    ]
                },
            )

        client = ComposioClient("key", http_client=mock_client(handler, requests))

        tools = await client.list_tools("WEATHERMAP")

        assert requests[0].url.params["toolkit_slug"] == "weathermap"
        assert tools[0].name == "WEATHERMAP_WEATHER"
        assert tools[0].parameters == schema
        assert tools[0].toolkit == "WEATHERMAP"
        assert tools[1].description == "Forecast"
        assert tools[1].parameters == {"type": "object", "properties": {}}

    @pytest.mark.asyncio
    async def test_execute_tool(self):
        requests: list[httpx.Request] = []

        def handler(request):
            return httpx.Response(200, json={"data": {"temp": 21}, "error": None, "successful": True, "log_id": "l1"})

        client = ComposioClient("key", http_client=mock_client(handler, requests))

        response = await client.execute_tool("WEATHERMAP_WEATHER", {"city": "Paris"}, "user-1")

        assert requests[0].method == "POST"
        assert requests[0].url.path == "/api/v3/tools/execute/WEATHERMAP_WEATHER"
        assert json.loads(requests[0].content) == {"user_id": "user-1", "arguments": {"city": "Paris"}}
        assert response.data == {"temp": 21}
        assert response.successful is True
        assert response.model_dump(exclude_none=True)["log_id"] == "l1"

    @pytest.mark.asyncio
    async def test_execute_tool_error_status(self):
        client = ComposioClient(
            "key", http_client=mock_client(lambda request: httpx.Response(400, text="bad arguments"), [])
        )

        with pytest.raises(ToolExecutionError, match="400") as exc_info:
            await client.execute_tool("WEATHERMAP_WEATHER", {}, "user-1")

        assert exc_info.value.tool_name == "WEATHERMAP_WEATHER"

    def test_api_key_header(self):
        client = ComposioClient("secret-key")

        assert client.http.headers["x-api-key"] == "secret-key"


class TestDisabledToolBackend:
    @pytest.mark.asyncio
    async def test_nothing_is_available(self):
        backend = DisabledToolBackend()

        assert await backend.list_connections("user-1") == []
        assert await backend.list_tools("GITHUB") == []
        with pytest.raises(ToolExecutionError):
            await backend.execute_tool("GITHUB_CREATE_AN_ISSUE", {}, "user-1")


class TestAppwriteSessionResolver:
    """Tests for JWT resolution through Appwrite."""

    @pytest.mark.asyncio
    async def test_valid_token(self):
        requests: list[httpx.Request] = []

        def handler(request):
            return httpx.Response(200, json={"$id": "user-1", "name": "Ada", "email": "ada@example.com"})

        resolver = AppwriteSessionResolver(
            "https://appwrite.test/v1", "project-1", http_client=mock_client(handler, requests)
        )

        user = await resolver.resolve("jwt-token")

        assert user.id == "user-1"
        assert user.email == "ada@example.com"
        assert requests[0].headers["X-Appwrite-Project"] == "project-1"
        assert requests[0].headers["X-Appwrite-JWT"] == "jwt-token"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403])
    async def test_rejected_token(self, status_code):
        resolver = AppwriteSessionResolver(
            "https://appwrite.test/v1",
            "project-1",
            http_client=mock_client(lambda request: httpx.Response(status_code), []),
        )

        assert await resolver.resolve("expired") is None

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        resolver = AppwriteSessionResolver(
            "https://appwrite.test/v1", "project-1", http_client=mock_client(handler, [])
        )

        assert await resolver.resolve("jwt-token") is None

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        resolver = AppwriteSessionResolver(
            "https://appwrite.test/v1", "project-1", http_client=mock_client(lambda request: httpx.Response(500), [])
        )

        with pytest.raises(httpx.HTTPStatusError):
            await resolver.resolve("jwt-token")
