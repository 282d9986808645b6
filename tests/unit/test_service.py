"""Tests for the request orchestration service."""

import asyncio
from pathlib import Path
from typing import Any

import pytest

from compiler_craft.config.schema import CraftConfig, ReportConfig
from compiler_craft.core.report import assemble_report
from compiler_craft.core.service import CompilerCraftService
from compiler_craft.models.chat import ChatMessage, ChatRole
from compiler_craft.models.phase import AnalysisResult
from compiler_craft.utils.errors import (
    AnalysisValidationError,
    InputError,
    LLMError,
    TimeoutError,
)


@pytest.fixture
def service(fake_llm: Any, craft_config: CraftConfig) -> CompilerCraftService:
    """Create a service backed by the fake provider."""
    return CompilerCraftService(fake_llm, craft_config)


class TestAnalyze:
    """Test CompilerCraftService.analyze."""

    async def test_returns_validated_result(
        self, service: CompilerCraftService, fake_llm: Any, sample_code: str
    ) -> None:
        """Test the model payload is validated into an AnalysisResult."""
        result = await service.analyze(sample_code)

        assert isinstance(result, AnalysisResult)
        assert result.is_complete
        assert fake_llm.calls == [("analyze_code", (sample_code,))]

    async def test_saves_report(
        self, service: CompilerCraftService, sample_code: str, report_path: Path
    ) -> None:
        """Test a valid analysis writes the report."""
        result = await service.analyze(sample_code)

        assert report_path.read_text(encoding="utf-8") == assemble_report(sample_code, result)

    async def test_invalid_code_is_not_saved(
        self,
        service: CompilerCraftService,
        fake_llm: Any,
        invalid_code_payload: dict[str, Any],
        report_path: Path,
    ) -> None:
        """Test no report is written for code with errors."""
        fake_llm.payload = invalid_code_payload

        result = await service.analyze("int a = 5 int b;")

        assert not result.is_valid_code
        assert not report_path.exists()

    async def test_report_disabled(
        self, fake_llm: Any, craft_config: CraftConfig, report_path: Path
    ) -> None:
        """Test persistence can be turned off."""
        config = craft_config.model_copy(update={"report": ReportConfig(enabled=False)})

        await CompilerCraftService(fake_llm, config).analyze("int x;")

        assert not report_path.exists()

    async def test_report_failure_does_not_fail_request(
        self, fake_llm: Any, craft_config: CraftConfig, tmp_path: Path
    ) -> None:
        """Test an unwritable report path still returns the analysis."""
        unwritable = tmp_path / "no" / "such" / "dir" / "report.txt"
        config = craft_config.model_copy(update={"report": ReportConfig(path=unwritable)})

        result = await CompilerCraftService(fake_llm, config).analyze("int x;")

        assert result.is_valid_code

    async def test_unencodable_code_does_not_fail_request(
        self, service: CompilerCraftService, report_path: Path
    ) -> None:
        """Test a lone surrogate in the code skips the report but returns the analysis."""
        result = await service.analyze("int x;\ud800")

        assert result.is_valid_code
        assert not report_path.exists()

    async def test_empty_code(self, service: CompilerCraftService, fake_llm: Any) -> None:
        """Test empty code is refused before the model is called."""
        with pytest.raises(InputError, match="Code is required"):
            await service.analyze("")

        assert fake_llm.calls == []

    async def test_malformed_payload(
        self, service: CompilerCraftService, fake_llm: Any, report_path: Path
    ) -> None:
        """Test a malformed model payload is rejected and nothing is saved."""
        fake_llm.payload = {"isValidCode": True}

        with pytest.raises(AnalysisValidationError):
            await service.analyze("int x;")

        assert not report_path.exists()

    async def test_model_error_propagates(
        self, service: CompilerCraftService, fake_llm: Any
    ) -> None:
        """Test model failures reach the caller."""
        fake_llm.error = LLMError("Anthropic API error: overloaded")

        with pytest.raises(LLMError, match="overloaded"):
            await service.analyze("int x;")

    async def test_timeout(
        self, service: CompilerCraftService, fake_llm: Any, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test slow model calls are cut off."""

        async def slow(code: str) -> dict[str, Any]:
            await asyncio.sleep(10)
            return {}

        monkeypatch.setattr(fake_llm, "analyze_code", slow)
        monkeypatch.setattr(service._config.llm, "timeout", 0.01)

        with pytest.raises(TimeoutError, match="Analysis timed out"):
            await service.analyze("int x;")


class TestExplainPhase:
    """Test CompilerCraftService.explain_phase."""

    async def test_returns_explanation(
        self, service: CompilerCraftService, fake_llm: Any
    ) -> None:
        """Test the provider's explanation is returned."""
        result = await service.explain_phase("int x;", "Optimization", "Folds constants")

        assert result == "A longer explanation."
        assert fake_llm.calls == [
            ("explain_phase", ("int x;", "Optimization", "Folds constants"))
        ]

    @pytest.mark.parametrize(
        ("code", "phase_name", "context"),
        [("", "Optimization", "ctx"), ("x", "", "ctx"), ("x", "Optimization", "")],
    )
    async def test_missing_fields(
        self, service: CompilerCraftService, code: str, phase_name: str, context: str
    ) -> None:
        """Test every field is required."""
        with pytest.raises(InputError, match="Missing required fields: code, phaseName"):
            await service.explain_phase(code, phase_name, context)


class TestAskFollowUp:
    """Test CompilerCraftService.ask_follow_up."""

    async def test_returns_answer(
        self, service: CompilerCraftService, fake_llm: Any, valid_result: AnalysisResult
    ) -> None:
        """Test the question and history reach the provider."""
        history = [ChatMessage(role=ChatRole.USER, content="hi")]

        answer = await service.ask_follow_up("int x;", valid_result, history, "Why?")

        assert answer == "An answer."
        assert fake_llm.calls == [("answer_question", ("int x;", valid_result, history, "Why?"))]

    async def test_empty_history_is_allowed(self, service: CompilerCraftService) -> None:
        """Test a first question with no analysis."""
        assert await service.ask_follow_up(None, None, [], "What is a parser?") == "An answer."

    async def test_missing_history(self, service: CompilerCraftService) -> None:
        """Test the history must be given."""
        with pytest.raises(InputError, match="chatHistory, question"):
            await service.ask_follow_up(None, None, None, "Why?")

    async def test_missing_question(self, service: CompilerCraftService) -> None:
        """Test the question must be non-empty."""
        with pytest.raises(InputError):
            await service.ask_follow_up(None, None, [], "")
