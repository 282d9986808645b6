"""State for one user's analysis session.

Holds what the interface shows between requests: the source code, the
current analysis, the chat transcript and which phase is on screen.
Analysis requests and chat turns are sequenced with tokens so that a slow
response to an older request can never overwrite the state of a newer one.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field

import structlog

from compiler_craft.core.phase_view import PhaseView, build_phase_view
from compiler_craft.models.chat import ChatMessage, ChatRole
from compiler_craft.models.phase import AnalysisResult
from compiler_craft.utils.errors import InputError, SessionBusyError

log = structlog.get_logger()

DEFAULT_SOURCE = "int main() {\n  int a = 5;\n  int b = 10;\n  int c = a + b;\n  return c;\n}"

CHAT_ERROR_PREFIX = "Sorry, I ran into an error: "
EXPLAIN_ERROR_PREFIX = "Sorry, I couldn't get a more detailed explanation. Error: "


@dataclass(frozen=True)
class PendingChat:
    """An open chat request: its token and the transcript before the question."""

    token: int
    history: list[ChatMessage]


@dataclass
class AnalysisSession:
    """Mutable session state, replaced piecewise by request outcomes.

    Example:
        session = AnalysisSession(source_code=code)
        token = session.begin_analysis()
        try:
            result = await service.analyze(session.source_code)
        except CraftError as e:
            session.fail_analysis(token, str(e))
        else:
            session.complete_analysis(token, result)
    """

    source_code: str = DEFAULT_SOURCE
    result: AnalysisResult | None = None
    error: str | None = None
    current_phase_index: int = 0
    chat_history: list[ChatMessage] = field(default_factory=list)
    is_loading: bool = False
    is_chat_loading: bool = False
    explanation_title: str = ""
    explanation_text: str = ""
    is_explanation_loading: bool = False
    _tokens: itertools.count[int] = field(
        default_factory=lambda: itertools.count(1), init=False, repr=False
    )
    _latest_token: int = field(default=0, init=False, repr=False)
    _latest_chat_token: int = field(default=0, init=False, repr=False)

    # -------------------------------------------------------------------------
    # Analysis
    # -------------------------------------------------------------------------

    def begin_analysis(self) -> int:
        """Start an analysis request and return its token.

        Clears the previous result, error and chat transcript.

        Raises:
            SessionBusyError: If an analysis is already in flight
            InputError: If there is no source code to analyse
        """
        if self.is_loading:
            raise SessionBusyError("An analysis is already in progress")
        if not self.source_code:
            raise InputError("Code is required")

        self._latest_token = next(self._tokens)
        # Replies to questions about the previous result are dropped
        self._latest_chat_token = next(self._tokens)
        self.error = None
        self.result = None
        self.chat_history = []
        self.is_loading = True
        self.is_chat_loading = False
        log.debug("analysis_started", token=self._latest_token)
        return self._latest_token

    def abandon_analysis(self) -> None:
        """Stop waiting for the in-flight analysis; its response will be discarded."""
        if self.is_loading:
            log.info("analysis_abandoned", token=self._latest_token)
        self._latest_token = next(self._tokens)
        self.is_loading = False

    def _is_current(self, token: int) -> bool:
        if token != self._latest_token:
            log.info("stale_analysis_response_discarded", token=token, latest=self._latest_token)
            return False
        return True

    def complete_analysis(self, token: int, result: AnalysisResult) -> bool:
        """Apply a finished analysis. Returns False if the token is stale."""
        if not self._is_current(token):
            return False
        self.result = result
        self.current_phase_index = 0
        self.is_loading = False
        return True

    def fail_analysis(self, token: int, message: str) -> bool:
        """Record a failed analysis. Returns False if the token is stale."""
        if not self._is_current(token):
            return False
        self.error = message or "An unexpected error occurred."
        self.is_loading = False
        return True

    # -------------------------------------------------------------------------
    # Phase navigation
    # -------------------------------------------------------------------------

    @property
    def phase_count(self) -> int:
        """Number of phases in the current result."""
        return len(self.result.phases) if self.result else 0

    def next_phase(self) -> int:
        """Move to the next phase, stopping at the last one."""
        if self.current_phase_index < self.phase_count - 1:
            self.current_phase_index += 1
        return self.current_phase_index

    def previous_phase(self) -> int:
        """Move to the previous phase, stopping at the first one."""
        if self.current_phase_index > 0:
            self.current_phase_index -= 1
        return self.current_phase_index

    def current_phase_view(self) -> PhaseView | None:
        """Display model for the phase on screen, if there is one."""
        if not self.result or not self.result.phases:
            return None
        index = self.current_phase_index
        return build_phase_view(self.result.phases[index], index)

    # -------------------------------------------------------------------------
    # Chat
    # -------------------------------------------------------------------------

    @property
    def can_chat(self) -> bool:
        """Chat is available once an analysis is shown and no reply is pending."""
        return self.result is not None and not self.is_chat_loading

    def begin_chat(self, question: str) -> PendingChat:
        """Append the user's question and open a pending chat.

        Its history is the transcript before the question; that is
        what gets sent to the model as prior turns, and the question itself
        travels separately.

        Raises:
            InputError: If the question is blank or no analysis is shown
            SessionBusyError: If a reply is still pending
        """
        if not question.strip():
            raise InputError("Question is required")
        if self.result is None:
            raise InputError("Analyze code before asking questions")
        if self.is_chat_loading:
            raise SessionBusyError("A chat reply is already pending")

        prior = list(self.chat_history)
        self.chat_history.append(ChatMessage(role=ChatRole.USER, content=question))
        self.is_chat_loading = True
        self._latest_chat_token = next(self._tokens)
        return PendingChat(token=self._latest_chat_token, history=prior)

    def _is_current_chat(self, token: int) -> bool:
        if token != self._latest_chat_token:
            log.info("stale_chat_reply_discarded", token=token, latest=self._latest_chat_token)
            return False
        return True

    def complete_chat(self, token: int, answer: str) -> bool:
        """Append the model's reply. Returns False if the request is stale."""
        if not self._is_current_chat(token):
            return False
        self.chat_history.append(ChatMessage(role=ChatRole.MODEL, content=answer))
        self.is_chat_loading = False
        return True

    def fail_chat(self, token: int, message: str) -> bool:
        """Append an apology in place of the model's reply. Returns False if stale."""
        if not self._is_current_chat(token):
            return False
        self.chat_history.append(
            ChatMessage(role=ChatRole.MODEL, content=f"{CHAT_ERROR_PREFIX}{message}")
        )
        self.is_chat_loading = False
        return True

    # -------------------------------------------------------------------------
    # Phase deep dives
    # -------------------------------------------------------------------------

    def begin_explanation(self, phase_name: str) -> None:
        """Open the deep-dive panel for a phase while its text loads."""
        self.explanation_title = f"Deep Dive: {phase_name}"
        self.explanation_text = ""
        self.is_explanation_loading = True

    def complete_explanation(self, text: str) -> None:
        """Show the detailed explanation."""
        self.explanation_text = text
        self.is_explanation_loading = False

    def fail_explanation(self, message: str) -> None:
        """Show an apology in place of the explanation."""
        self.explanation_text = f"{EXPLAIN_ERROR_PREFIX}{message}"
        self.is_explanation_loading = False
