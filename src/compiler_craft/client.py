"""Async HTTP client for a running Compiler Craft server.

Mirrors what the browser does: post JSON, surface the server's ``error``
text verbatim on failure, and validate analysis payloads on arrival.
"""

from __future__ import annotations

from collections.abc import Sequence
from types import TracebackType
from typing import Any

import httpx
import structlog

from compiler_craft.core.validator import validate_analysis
from compiler_craft.models.chat import ChatMessage
from compiler_craft.models.phase import AnalysisResult
from compiler_craft.utils.errors import CraftError

log = structlog.get_logger()

DEFAULT_BASE_URL = "http://localhost:3001"


class ApiError(CraftError):
    """The server answered with a non-2xx status.

    Attributes:
        status_code: HTTP status of the response.
    """

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransportError(CraftError):
    """The server could not be reached."""


class CompilerCraftClient:
    """Client for the analyze, explain and chat endpoints.

    Example:
        async with CompilerCraftClient() as client:
            result = await client.analyze_code("int main() { return 0; }")
            answer = await client.ask_follow_up_question(code, result, [], "Why?")
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 180.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Server root URL
            timeout: Request timeout in seconds
            transport: Optional custom transport (used in tests)
        """
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> CompilerCraftClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    async def _post(self, path: str, body: dict[str, Any]) -> Any:
        try:
            response = await self._client.post(path, json=body)
        except httpx.HTTPError as e:
            log.error("server_unreachable", path=path, error=str(e))
            raise TransportError(f"Failed to reach server: {e}") from e

        if not response.is_success:
            try:
                error = response.json().get("error")
            except (ValueError, AttributeError):
                error = "Failed to parse error response"
            message = error or f"HTTP error! status: {response.status_code}"
            log.warning("server_error_response", path=path, status=response.status_code)
            raise ApiError(message, response.status_code)

        return response.json()

    async def analyze_code(self, code: str) -> AnalysisResult:
        """Submit code for a full analysis.

        Raises:
            ApiError: If the server rejects the request
            TransportError: If the server is unreachable
            AnalysisValidationError: If the response is not a valid analysis
        """
        data = await self._post("/api/analyze", {"code": code})
        return validate_analysis(data)

    async def explain_phase(self, code: str, phase_name: str, phase_context: str) -> str:
        """Request a deeper explanation of one phase."""
        data = await self._post(
            "/api/explain",
            {"code": code, "phaseName": phase_name, "phaseContext": phase_context},
        )
        return str(data["explanation"])

    async def ask_follow_up_question(
        self,
        code: str | None,
        analysis: AnalysisResult | None,
        chat_history: Sequence[ChatMessage],
        question: str,
    ) -> str:
        """Ask a question about the analysis, with prior turns for context."""
        data = await self._post(
            "/api/chat",
            {
                "code": code,
                "analysis": analysis.to_dict() if analysis else None,
                "chatHistory": [message.to_dict() for message in chat_history],
                "question": question,
            },
        )
        return str(data["answer"])
