"""Abstract interface for LLM integrations."""

from collections.abc import Sequence
from typing import Any, Protocol

from ..models.chat import ChatMessage
from ..models.phase import AnalysisResult


class LLMProvider(Protocol):
    """Abstract interface for LLM integrations.

    Adapters turn source code into model-written compiler narratives. They
    own the prompt text and transport; validating what comes back is the
    caller's job.
    """

    async def analyze_code(self, code: str) -> dict[str, Any]:
        """
        Ask the model to walk the code through all six compiler phases.

        Args:
            code: Source code submitted by the user

        Returns:
            Decoded JSON object in the analysis wire shape (unvalidated)

        Raises:
            LLMError: If the request fails or the response is not a JSON object
            RateLimitError: If rate limit exceeded
        """
        ...

    async def explain_phase(self, code: str, phase_name: str, phase_context: str) -> str:
        """
        Ask for a deeper, beginner-friendly explanation of one phase.

        Args:
            code: Source code the analysis was run on
            phase_name: Name of the phase to explain
            phase_context: The short explanation the user already has

        Returns:
            Markdown explanation text

        Raises:
            LLMError: If the request fails
            RateLimitError: If rate limit exceeded
        """
        ...

    async def answer_question(
        self,
        code: str | None,
        analysis: AnalysisResult | None,
        chat_history: Sequence[ChatMessage],
        question: str,
    ) -> str:
        """
        Answer a follow-up question in the context of an analysis.

        Args:
            code: Source code the analysis was run on, if any
            analysis: The analysis being discussed; None for general questions
            chat_history: Prior turns, oldest first
            question: The new question

        Returns:
            Markdown answer text

        Raises:
            LLMError: If the request fails
            RateLimitError: If rate limit exceeded
        """
        ...

    @property
    def model_name(self) -> str:
        """Return the model identifier being used."""
        ...
