"""Shared test fixtures for Compiler Craft."""

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pytest

from compiler_craft.config.schema import AnthropicConfig, CraftConfig, LLMConfig, ReportConfig
from compiler_craft.core.validator import validate_analysis
from compiler_craft.models.chat import ChatMessage
from compiler_craft.models.phase import AnalysisResult

# Get the fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"
ANALYSIS_DIR = FIXTURES_DIR / "analysis"

SAMPLE_CODE = "int main() {\n  int a = 5;\n  int b = 10;\n  int c = a + b;\n  return c;\n}"


class FakeLLM:
    """In-memory LLMProvider that records its calls."""

    def __init__(
        self,
        payload: dict[str, Any] | None = None,
        explanation: str = "A longer explanation.",
        answer: str = "An answer.",
        error: Exception | None = None,
    ) -> None:
        self.payload = payload or {}
        self.explanation = explanation
        self.answer = answer
        self.error = error
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    @property
    def model_name(self) -> str:
        return "fake-model"

    async def analyze_code(self, code: str) -> dict[str, Any]:
        self.calls.append(("analyze_code", (code,)))
        if self.error is not None:
            raise self.error
        return self.payload

    async def explain_phase(self, code: str, phase_name: str, phase_context: str) -> str:
        self.calls.append(("explain_phase", (code, phase_name, phase_context)))
        if self.error is not None:
            raise self.error
        return self.explanation

    async def answer_question(
        self,
        code: str | None,
        analysis: AnalysisResult | None,
        chat_history: Sequence[ChatMessage],
        question: str,
    ) -> str:
        self.calls.append(("answer_question", (code, analysis, list(chat_history), question)))
        if self.error is not None:
            raise self.error
        return self.answer


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def sample_code() -> str:
    """Return the default C snippet."""
    return SAMPLE_CODE


@pytest.fixture
def valid_payload() -> dict[str, Any]:
    """Load a complete six-phase analysis payload."""
    return json.loads((ANALYSIS_DIR / "valid.json").read_text())


@pytest.fixture
def invalid_code_payload() -> dict[str, Any]:
    """Load an analysis payload for code with a syntax error."""
    return json.loads((ANALYSIS_DIR / "invalid_code.json").read_text())


@pytest.fixture
def valid_result(valid_payload: dict[str, Any]) -> AnalysisResult:
    """Return the validated six-phase analysis."""
    return validate_analysis(valid_payload)


@pytest.fixture
def report_path(tmp_path: Path) -> Path:
    """Return a writable report destination."""
    return tmp_path / "compiler_report.txt"


@pytest.fixture
def craft_config(report_path: Path) -> CraftConfig:
    """Return a configuration that writes reports into a temp directory."""
    return CraftConfig(
        llm=LLMConfig(
            provider="anthropic",
            anthropic=AnthropicConfig(api_key="sk-ant-test-key-123"),
            timeout=5.0,
        ),
        report=ReportConfig(enabled=True, path=report_path),
    )


@pytest.fixture
def fake_llm(valid_payload: dict[str, Any]) -> FakeLLM:
    """Return a fake provider that answers with the six-phase analysis."""
    return FakeLLM(payload=valid_payload)
