"""
Test suite for AIJobClient.

Exercises submit, the poll loop and background monitors against an
httpx.MockTransport standing in for the external AI service.

System role: Verification of the external job service boundary
"""

import asyncio
import json

import httpx
import pytest

from ai_orchestrator.boundary.ai_service.client import AIJobClient
from ai_orchestrator.boundary.ai_service.poll_result import PollResult
from ai_orchestrator.configs import AIServiceSettings
from ai_orchestrator.core.exceptions import ConfigurationError, RemoteError

API_URL = "https://ai.example.test/api/"


class ScriptedService:
    """Transport handler replaying queued responses and recording requests."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []
        self.repeat_last = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self.responses) == 1 and self.repeat_last:
            return self.responses[0]
        return self.responses.pop(0)


def make_client(service: ScriptedService, **kwargs) -> AIJobClient:
    settings = kwargs.pop("settings", None) or AIServiceSettings(api_url=API_URL, api_key="secret")
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(service))
    return AIJobClient(
        settings,
        poll_interval_seconds=kwargs.pop("poll_interval_seconds", 0),
        poll_timeout_seconds=kwargs.pop("poll_timeout_seconds", 5),
        http_client=http_client,
    )


class TestAIJobClientSubmit:
    """Test suite for AIJobClient.submit()."""

    @pytest.mark.asyncio
    async def test_submit_should_post_json_with_bearer_token(self) -> None:
        # Arrange
        service = ScriptedService(httpx.Response(200, json={"jobId": "abc"}))
        client = make_client(service)

        # Act
        handle = await client.submit("/label", {"batchId": "job-0"})

        # Assert
        assert handle == "abc"
        request = service.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://ai.example.test/api/label"
        assert request.headers["Authorization"] == "Bearer secret"
        assert json.loads(request.content) == {"batchId": "job-0"}

    @pytest.mark.asyncio
    async def test_submit_should_accept_snake_case_handle(self) -> None:
        # Arrange
        service = ScriptedService(httpx.Response(202, json={"job_id": 42}))
        client = make_client(service)

        # Act
        handle = await client.submit("/taxonomies", {})

        # Assert
        assert handle == "42"

    @pytest.mark.asyncio
    async def test_submit_should_raise_remote_error_on_non_2xx(self) -> None:
        # Arrange
        service = ScriptedService(httpx.Response(503, text="service down"))
        client = make_client(service)

        # Act / Assert
        with pytest.raises(RemoteError) as exc_info:
            await client.submit("/label", {})

        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "AI labeling API error (503): service down"

    @pytest.mark.asyncio
    async def test_submit_without_handle_should_raise_remote_error(self) -> None:
        # Arrange
        service = ScriptedService(httpx.Response(200, json={"status": "queued"}))
        client = make_client(service)

        # Act / Assert
        with pytest.raises(RemoteError, match="did not return a job id"):
            await client.submit("/label", {})

    @pytest.mark.asyncio
    async def test_submit_when_unconfigured_should_not_send_request(self) -> None:
        # Arrange
        service = ScriptedService()
        client = make_client(service, settings=AIServiceSettings(api_url=None, api_key=None))

        # Act / Assert
        with pytest.raises(ConfigurationError, match="AI_LABELING_API_URL"):
            await client.submit("/label", {})
        assert service.requests == []


class TestAIJobClientPoll:
    """Test suite for AIJobClient.poll_until_terminal()."""

    @pytest.mark.asyncio
    async def test_poll_should_return_payload_of_first_terminal_status(self) -> None:
        # Arrange
        final = {"status": "success", "result": {"suggestions": []}}
        service = ScriptedService(
            httpx.Response(200, json={"status": "running"}),
            httpx.Response(200, json={"status": "running"}),
            httpx.Response(200, json={"status": "running"}),
            httpx.Response(200, json=final),
        )
        client = make_client(service)

        # Act
        result = await client.poll_until_terminal("abc", "/label/abc/status")

        # Assert
        assert result.success is True
        assert result.data == final
        assert result.result == {"suggestions": []}
        assert len(service.requests) == 4
        assert service.requests[0].url.path == "/api/label/abc/status"

    @pytest.mark.asyncio
    async def test_poll_should_report_remote_failure(self) -> None:
        # Arrange
        service = ScriptedService(
            httpx.Response(200, json={"status": "FAILED", "error": "model crashed"})
        )
        client = make_client(service)

        # Act
        result = await client.poll_until_terminal("abc", "/learn/abc/status")

        # Assert
        assert result.success is False
        assert result.timed_out is False
        assert result.error == "model crashed"

    @pytest.mark.asyncio
    async def test_poll_should_tolerate_transient_errors(self) -> None:
        # Arrange
        service = ScriptedService(
            httpx.Response(500, text="oops"),
            httpx.Response(200, text="not json"),
            httpx.Response(200, json={"status": "done"}),
        )
        client = make_client(service)

        # Act
        result = await client.poll_until_terminal("abc", "/label/abc/status")

        # Assert
        assert result.success is True
        assert len(service.requests) == 3

    @pytest.mark.asyncio
    async def test_poll_should_time_out_with_last_error(self) -> None:
        # Arrange
        service = ScriptedService(httpx.Response(502, text="bad gateway"))
        service.repeat_last = True
        client = make_client(service, poll_interval_seconds=0.01, poll_timeout_seconds=0.05)

        # Act
        result = await client.poll_until_terminal("abc", "/label/abc/status")

        # Assert
        assert result.success is False
        assert result.timed_out is True
        assert result.error.startswith("AI job abc timed out after 0.05s")
        assert "bad gateway" in result.error


class TestAIJobClientMonitor:
    """Test suite for AIJobClient.fire_and_forget_monitor()."""

    @pytest.mark.asyncio
    async def test_monitor_should_deliver_result_once(self) -> None:
        # Arrange
        service = ScriptedService(httpx.Response(200, json={"status": "completed"}))
        client = make_client(service)
        received: list[PollResult] = []

        async def on_result(result: PollResult) -> None:
            received.append(result)

        # Act
        task = client.fire_and_forget_monitor("abc", "/taxonomies/abc/status", on_result)
        await task

        # Assert
        assert len(received) == 1
        assert received[0].success is True

    @pytest.mark.asyncio
    async def test_monitor_should_swallow_handler_errors(self) -> None:
        # Arrange
        service = ScriptedService(httpx.Response(200, json={"status": "completed"}))
        client = make_client(service)

        async def on_result(result: PollResult) -> None:
            raise RuntimeError("handler broke")

        # Act
        task = client.fire_and_forget_monitor("abc", "/taxonomies/abc/status", on_result)
        await asyncio.wait_for(task, timeout=1)

        # Assert
        assert task.exception() is None

    @pytest.mark.asyncio
    async def test_aclose_should_leave_injected_client_open(self) -> None:
        # Arrange
        service = ScriptedService(httpx.Response(200, json={"jobId": "x"}))
        client = make_client(service)
        http_client = client._http

        # Act
        await client.aclose()

        # Assert
        assert http_client.is_closed is False
        await http_client.aclose()
