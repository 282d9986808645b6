"""Request orchestration for analyze, explain and chat.

This module implements the CompilerCraftService class that sits between
the HTTP layer and the LLM provider:
1. Check request input
2. Call the model, bounded by the configured timeout
3. Validate analysis payloads at the boundary
4. Persist the report for successful analyses
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from compiler_craft.core.report import save_report
from compiler_craft.core.validator import validate_analysis
from compiler_craft.utils.errors import InputError, with_timeout

if TYPE_CHECKING:
    from compiler_craft.config.schema import CraftConfig
    from compiler_craft.interfaces.llm import LLMProvider
    from compiler_craft.models.chat import ChatMessage
    from compiler_craft.models.phase import AnalysisResult

log = structlog.get_logger()


class CompilerCraftService:
    """Runs the three request types against an LLM provider.

    There are no retries: a failed model call is reported to the caller,
    which decides what to show.

    Example:
        service = CompilerCraftService(AnthropicAdapter(config.llm.anthropic), config)
        result = await service.analyze("int main() { return 0; }")
    """

    def __init__(self, llm: LLMProvider, config: CraftConfig) -> None:
        """Initialize the service.

        Args:
            llm: LLM provider used for all three request types
            config: Application configuration
        """
        self._llm = llm
        self._config = config

    @property
    def timeout(self) -> float:
        """Per-request model timeout in seconds."""
        return self._config.llm.timeout

    async def analyze(self, code: str) -> AnalysisResult:
        """Analyze source code and persist the report if it is valid.

        Args:
            code: Source code to analyze

        Returns:
            The validated analysis

        Raises:
            InputError: If ``code`` is empty
            AnalysisValidationError: If the model's payload is malformed
            LLMError: If the model call fails
        """
        if not code:
            raise InputError("Code is required")

        start_time = time.monotonic()
        log.info("analysis_requested", code_length=len(code), model=self._llm.model_name)

        payload = await with_timeout(
            self._llm.analyze_code(code),
            self.timeout,
            f"Analysis timed out after {self.timeout}s",
        )
        result = validate_analysis(payload)

        log.info(
            "analysis_completed",
            is_valid_code=result.is_valid_code,
            phases=len(result.phases),
            complete=result.is_complete,
            duration_ms=round((time.monotonic() - start_time) * 1000),
        )

        if result.is_valid_code and self._config.report.enabled:
            await asyncio.to_thread(save_report, code, result, self._config.report.path)

        return result

    async def explain_phase(self, code: str, phase_name: str, phase_context: str) -> str:
        """Get a deeper explanation of one phase.

        Raises:
            InputError: If any argument is empty
            LLMError: If the model call fails
        """
        if not code or not phase_name or not phase_context:
            raise InputError("Missing required fields: code, phaseName, phaseContext")

        log.info("explanation_requested", phase=phase_name)
        return await with_timeout(
            self._llm.explain_phase(code, phase_name, phase_context),
            self.timeout,
            f"Explanation timed out after {self.timeout}s",
        )

    async def ask_follow_up(
        self,
        code: str | None,
        analysis: AnalysisResult | None,
        chat_history: Sequence[ChatMessage] | None,
        question: str,
    ) -> str:
        """Answer a follow-up question about an analysis.

        Args:
            code: Source code the analysis was run on
            analysis: The analysis being discussed, if any
            chat_history: Prior turns (may be empty, must be given)
            question: The new question

        Raises:
            InputError: If ``chat_history`` is missing or ``question`` is empty
            LLMError: If the model call fails
        """
        if chat_history is None or not question:
            raise InputError("Missing required fields: chatHistory, question")

        log.info(
            "chat_question_received",
            history_length=len(chat_history),
            has_analysis=analysis is not None,
        )
        return await with_timeout(
            self._llm.answer_question(code, analysis, chat_history, question),
            self.timeout,
            f"Chat request timed out after {self.timeout}s",
        )
