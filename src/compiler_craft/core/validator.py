"""Boundary validation for analysis payloads.

Every analysis payload, whether it comes straight from the model or back
from a client, passes through ``validate_analysis`` once. Downstream code
works with the frozen ``AnalysisResult`` and never inspects raw dicts.
"""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import BaseModel, Field, StrictBool, StrictStr, ValidationError

from compiler_craft.models.phase import (
    AnalysisError,
    AnalysisResult,
    CompilerPhaseName,
    PhaseRecord,
)
from compiler_craft.utils.errors import AnalysisValidationError

log = structlog.get_logger()


class PhasePayload(BaseModel):
    """Wire shape of one phase record."""

    name: CompilerPhaseName
    explanation: StrictStr
    input_description: StrictStr = Field(alias="inputDescription")
    output_description: StrictStr = Field(alias="outputDescription")


class ErrorPayload(BaseModel):
    """Wire shape of the analysis error block."""

    phase: CompilerPhaseName
    message: StrictStr
    suggestion: StrictStr


class AnalysisPayload(BaseModel):
    """Wire shape of a full analysis."""

    is_valid_code: StrictBool = Field(alias="isValidCode")
    error: ErrorPayload | None = None
    phases: list[PhasePayload]


def _describe(error: ValidationError) -> tuple[str, str | None]:
    """Turn the first pydantic error into a readable message and field path."""
    first = error.errors()[0]
    path = ".".join(str(part) for part in first["loc"]) or None
    count = error.error_count()
    suffix = f" (and {count - 1} more)" if count > 1 else ""
    if path:
        return f"Invalid analysis payload at '{path}': {first['msg']}{suffix}", path
    return f"Invalid analysis payload: {first['msg']}{suffix}", None


def validate_analysis(payload: Any) -> AnalysisResult:
    """Validate an analysis payload and convert it to an AnalysisResult.

    Checks that ``isValidCode`` is a boolean, that ``phases`` is a list whose
    records each carry ``name``, ``explanation``, ``inputDescription`` and
    ``outputDescription`` as text with a canonical phase name, and that
    ``error``, when present and not null, carries ``phase``, ``message`` and
    ``suggestion``. A valid-code result must not carry an error. Phase order
    and duplicates are left as given.

    Args:
        payload: Decoded JSON value

    Returns:
        The validated AnalysisResult

    Raises:
        AnalysisValidationError: If any part of the payload is malformed
    """
    if not isinstance(payload, dict):
        raise AnalysisValidationError("Analysis payload must be a JSON object")

    try:
        parsed = AnalysisPayload.model_validate(payload)
    except ValidationError as e:
        message, path = _describe(e)
        log.warning("analysis_payload_invalid", path=path, error_count=e.error_count())
        raise AnalysisValidationError(message, path=path) from e

    if parsed.is_valid_code and parsed.error is not None:
        log.warning("analysis_payload_invalid", path="error")
        raise AnalysisValidationError(
            "Invalid analysis payload at 'error': must be null when isValidCode is true",
            path="error",
        )

    error = None
    if parsed.error is not None:
        error = AnalysisError(
            phase=parsed.error.phase,
            message=parsed.error.message,
            suggestion=parsed.error.suggestion,
        )

    return AnalysisResult(
        is_valid_code=parsed.is_valid_code,
        error=error,
        phases=tuple(
            PhaseRecord(
                name=phase.name,
                explanation=phase.explanation,
                input_description=phase.input_description,
                output_description=phase.output_description,
            )
            for phase in parsed.phases
        ),
    )
