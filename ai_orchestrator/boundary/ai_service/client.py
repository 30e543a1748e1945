"""
External AI job service client.

Submits units of work, polls their status endpoint until a terminal state
or a hard timeout, and runs that poll loop as a background task for the
monitored job kinds.

Dependencies: httpx, ai_orchestrator.configs, ai_orchestrator.core.exceptions
System role: Boundary adapter to the external AI labeling service
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx

from ai_orchestrator.boundary.ai_service.poll_result import (
    PollResult,
    RemoteJobState,
    extract_error,
    normalize_state,
)
from ai_orchestrator.configs.ai_service import AIServiceSettings
from ai_orchestrator.core.exceptions import ConfigurationError, RemoteError

logger = logging.getLogger(__name__)

MAX_BODY_LENGTH = 2000

OnResult = Callable[[PollResult], Awaitable[None]]


class AIJobClient:
    """
    Async client for the external AI job service.

    Requests carry `Authorization: Bearer <key>` and JSON bodies. The
    underlying httpx.AsyncClient can be injected; otherwise one is created
    lazily and closed by aclose().
    """

    def __init__(
        self,
        settings: AIServiceSettings,
        poll_interval_seconds: float = 5.0,
        poll_timeout_seconds: float = 600.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            settings: Service address, credential and request timeout
            poll_interval_seconds: Delay between status requests
            poll_timeout_seconds: Hard deadline for one poll loop
            http_client: Pre-built client (tests inject a mocked transport)
        """
        self._settings = settings
        self.poll_interval_seconds = poll_interval_seconds
        self.poll_timeout_seconds = poll_timeout_seconds
        self._http = http_client
        self._owns_http = http_client is None

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    def ensure_configured(self) -> None:
        """
        Fail fast when the service address or credential is missing.

        Raises:
            ConfigurationError: If AI_LABELING_API_URL or AI_LABELING_API_KEY is unset
        """
        if not self._settings.is_configured:
            raise ConfigurationError(
                "AI labeling service is not configured. "
                "Please set AI_LABELING_API_URL and AI_LABELING_API_KEY."
            )

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._settings.request_timeout_seconds)
        return self._http

    def _url(self, path: str) -> str:
        return f"{self._settings.api_url.rstrip('/')}/{path.lstrip('/')}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._settings.api_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _raise_for_status(response: httpx.Response, path: str) -> None:
        if response.is_success:
            return
        body = response.text[:MAX_BODY_LENGTH]
        raise RemoteError(
            f"AI labeling API error ({response.status_code}): {body or response.reason_phrase}",
            status_code=response.status_code,
            body=body,
            details={"path": path},
        )

    async def submit(self, path: str, payload: dict[str, Any]) -> str:
        """
        Submit a unit of work and return the service's job handle.

        Args:
            path: Submit endpoint path, e.g. "/label"
            payload: JSON-serializable request body

        Returns:
            str: Handle from the `jobId` (or `job_id`) response field

        Raises:
            ConfigurationError: If the service is not configured
            RemoteError: On transport failure, non-2xx, or a response without a handle
        """
        self.ensure_configured()

        try:
            response = await self._client().post(
                self._url(path), json=payload, headers=self._headers()
            )
        except httpx.HTTPError as e:
            raise RemoteError(
                f"AI labeling API request failed: {e}", details={"path": path}
            ) from e

        self._raise_for_status(response, path)

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteError(
                "AI labeling API returned invalid JSON",
                status_code=response.status_code,
                body=response.text[:MAX_BODY_LENGTH],
                details={"path": path},
            ) from e

        handle = None
        if isinstance(data, dict):
            handle = data.get("jobId") or data.get("job_id")
        if not handle:
            raise RemoteError(
                "AI labeling API did not return a job id",
                status_code=response.status_code,
                body=response.text[:MAX_BODY_LENGTH],
                details={"path": path},
            )

        logger.info(
            f"{__name__}:submit - Submitted AI job",
            extra={"path": path, "handle": str(handle)},
        )
        return str(handle)

    async def _fetch_status(self, path: str) -> dict[str, Any]:
        response = await self._client().get(self._url(path), headers=self._headers())
        self._raise_for_status(response, path)
        data = response.json()
        if not isinstance(data, dict):
            raise RemoteError("AI labeling status response is not an object", details={"path": path})
        return data

    async def poll_until_terminal(self, handle: str, status_path: str) -> PollResult:
        """
        Poll a status endpoint until the remote job succeeds, fails, or times out.

        Transient fetch errors (transport, non-2xx, undecodable JSON) are
        tolerated until the deadline; a timeout surfaces the last one.

        Args:
            handle: Remote job handle (for messages)
            status_path: Status endpoint path, e.g. "/label/{handle}/status"

        Returns:
            PollResult: Terminal outcome; timed_out=True when the deadline passed
        """
        self.ensure_configured()

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.poll_timeout_seconds
        last_error: str | None = None

        while True:
            try:
                data = await self._fetch_status(status_path)
            except (httpx.HTTPError, RemoteError, ValueError) as e:
                last_error = str(e)
                logger.warning(
                    f"{__name__}:poll_until_terminal - Status check failed, will retry",
                    extra={"handle": handle, "error": last_error},
                )
            else:
                state = normalize_state(data.get("status"))
                if state is RemoteJobState.SUCCESS:
                    return PollResult(success=True, data=data)
                if state is RemoteJobState.FAILURE:
                    return PollResult(success=False, data=data, error=extract_error(data))

            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.sleep(min(self.poll_interval_seconds, remaining))

        message = f"AI job {handle} timed out after {self.poll_timeout_seconds:g}s"
        if last_error:
            message = f"{message} (last error: {last_error})"
        logger.warning(
            f"{__name__}:poll_until_terminal - {message}",
            extra={"handle": handle},
        )
        return PollResult(success=False, error=message, timed_out=True)

    def fire_and_forget_monitor(
        self,
        handle: str,
        status_path: str,
        on_result: OnResult,
    ) -> asyncio.Task:
        """
        Poll in a background task and deliver the outcome to on_result once.

        Unexpected poll exceptions become a failure PollResult. Exceptions
        raised by on_result are logged and not propagated.

        Args:
            handle: Remote job handle
            status_path: Status endpoint path
            on_result: Async completion handler

        Returns:
            asyncio.Task: The monitor task (the caller tracks it)
        """

        async def _monitor() -> None:
            try:
                result = await self.poll_until_terminal(handle, status_path)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    f"{__name__}:monitor - Polling crashed",
                    exc_info=True,
                    extra={"handle": handle},
                )
                result = PollResult(success=False, error=str(e))

            try:
                await on_result(result)
            except Exception:
                logger.error(
                    f"{__name__}:monitor - Completion handler raised",
                    exc_info=True,
                    extra={"handle": handle},
                )

        return asyncio.create_task(_monitor(), name=f"ai-monitor-{handle}")

    async def aclose(self) -> None:
        """Close the owned HTTP client."""
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None
