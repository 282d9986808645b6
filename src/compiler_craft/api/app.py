"""FastAPI application exposing the Compiler Craft endpoints.

Every failure response has the shape ``{"error": "<message>"}`` so the
browser can show the message verbatim.
"""

from __future__ import annotations

import uuid
from typing import Any, Literal

import structlog
from fastapi import FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from compiler_craft._version import __version__
from compiler_craft.config.schema import CraftConfig
from compiler_craft.core.report import (
    REPORT_FILENAME,
    assemble_report,
    phase_output_content,
    phase_output_filename,
)
from compiler_craft.core.service import CompilerCraftService
from compiler_craft.core.validator import PhasePayload, validate_analysis
from compiler_craft.interfaces.llm import LLMProvider
from compiler_craft.models.chat import ChatMessage, ChatRole
from compiler_craft.models.phase import AnalysisResult, PhaseRecord
from compiler_craft.utils.errors import (
    AnalysisValidationError,
    CraftError,
    InputError,
    ReportError,
)
from compiler_craft.utils.logging import bind_context, clear_context
from compiler_craft.utils.uploads import decode_source_file

log = structlog.get_logger()

UNKNOWN_ERROR_MESSAGE = "An unknown server error occurred."


# =============================================================================
# Request bodies
# =============================================================================


class AnalyzeRequest(BaseModel):
    code: str = ""


class ExplainRequest(BaseModel):
    code: str = ""
    phase_name: str = Field("", alias="phaseName")
    phase_context: str = Field("", alias="phaseContext")


class ChatTurn(BaseModel):
    role: Literal["user", "model"]
    content: str


class ChatRequest(BaseModel):
    code: str | None = None
    analysis: dict[str, Any] | None = None
    chat_history: list[ChatTurn] | None = Field(None, alias="chatHistory")
    question: str = ""


class ReportRequest(BaseModel):
    code: str
    analysis: dict[str, Any]


class PhaseOutputRequest(BaseModel):
    phase: PhasePayload


# =============================================================================
# Helpers
# =============================================================================


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _attachment(content: str, filename: str) -> PlainTextResponse:
    return PlainTextResponse(
        content,
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _client_analysis(payload: dict[str, Any]) -> AnalysisResult:
    """Validate an analysis sent back by the client; bad shapes are input errors."""
    try:
        return validate_analysis(payload)
    except AnalysisValidationError as e:
        raise InputError(str(e)) from e


def _service(request: Request) -> CompilerCraftService:
    service: CompilerCraftService = request.app.state.service
    return service


# =============================================================================
# Application factory
# =============================================================================


def create_app(config: CraftConfig, llm: LLMProvider | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Application configuration
        llm: LLM provider; built from ``config.llm`` when omitted

    Returns:
        Configured FastAPI app
    """
    if llm is None:
        from compiler_craft.adapters.llm.anthropic import AnthropicAdapter

        if config.llm.anthropic is None:
            raise ValueError("Anthropic provider selected but anthropic config missing")
        llm = AnthropicAdapter(config.llm.anthropic)

    app = FastAPI(
        title="Compiler Craft",
        description="LLM-narrated walkthroughs of a compiler pipeline",
        version=__version__,
    )
    app.state.service = CompilerCraftService(llm, config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def bind_request_context(request: Request, call_next: Any) -> Any:
        clear_context()
        bind_context(request_id=uuid.uuid4().hex[:12], path=request.url.path)
        return await call_next(request)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {"loc": (), "msg": "Invalid request"}
        location = ".".join(str(part) for part in first["loc"] if part != "body")
        message = f"{location}: {first['msg']}" if location else str(first["msg"])
        log.info("request_rejected", error=message)
        return _error(400, message)

    @app.exception_handler(InputError)
    async def handle_input_error(request: Request, exc: InputError) -> JSONResponse:
        log.info("request_rejected", error=str(exc))
        return _error(400, str(exc))

    @app.exception_handler(ReportError)
    async def handle_report_error(request: Request, exc: ReportError) -> JSONResponse:
        return _error(400, str(exc))

    @app.exception_handler(AnalysisValidationError)
    async def handle_analysis_validation(
        request: Request, exc: AnalysisValidationError
    ) -> JSONResponse:
        log.error("model_payload_rejected", error=str(exc), field=exc.path)
        return _error(502, str(exc))

    @app.exception_handler(CraftError)
    async def handle_craft_error(request: Request, exc: CraftError) -> JSONResponse:
        log.error("request_failed", error=str(exc), error_type=type(exc).__name__)
        return _error(500, str(exc) or UNKNOWN_ERROR_MESSAGE)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        log.exception("unexpected_error", error=str(exc))
        return _error(500, str(exc) or UNKNOWN_ERROR_MESSAGE)

    @app.post("/api/analyze")
    async def analyze(body: AnalyzeRequest, request: Request) -> dict[str, Any]:
        result = await _service(request).analyze(body.code)
        return result.to_dict()

    @app.post("/api/explain")
    async def explain(body: ExplainRequest, request: Request) -> dict[str, str]:
        explanation = await _service(request).explain_phase(
            body.code, body.phase_name, body.phase_context
        )
        return {"explanation": explanation}

    @app.post("/api/chat")
    async def chat(body: ChatRequest, request: Request) -> dict[str, str]:
        analysis = _client_analysis(body.analysis) if body.analysis else None
        history = None
        if body.chat_history is not None:
            history = [
                ChatMessage(role=ChatRole(turn.role), content=turn.content)
                for turn in body.chat_history
            ]
        answer = await _service(request).ask_follow_up(body.code, analysis, history, body.question)
        return {"answer": answer}

    @app.post("/api/upload")
    async def upload(file: UploadFile = File(...)) -> dict[str, str]:  # noqa: B008
        content = await file.read()
        return {"code": decode_source_file(content, file.filename)}

    @app.post("/api/report")
    async def report(body: ReportRequest) -> PlainTextResponse:
        analysis = _client_analysis(body.analysis)
        return _attachment(assemble_report(body.code, analysis), REPORT_FILENAME)

    @app.post("/api/phase-output")
    async def phase_output(body: PhaseOutputRequest) -> PlainTextResponse:
        phase = PhaseRecord(
            name=body.phase.name,
            explanation=body.phase.explanation,
            input_description=body.phase.input_description,
            output_description=body.phase.output_description,
        )
        return _attachment(phase_output_content(phase), phase_output_filename(phase.name))

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return app
