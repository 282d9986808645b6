"""Data models for compiler phases and analysis results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class CompilerPhaseName(StrEnum):
    """The six phases of the notional compilation pipeline, in canonical order."""

    LEXICAL_ANALYSIS = "Lexical Analysis"
    SYNTAX_ANALYSIS = "Syntax Analysis"
    SEMANTIC_ANALYSIS = "Semantic Analysis"
    INTERMEDIATE_CODE_GENERATION = "Intermediate Code Generation"
    OPTIMIZATION = "Optimization"
    CODE_GENERATION = "Code Generation"


CANONICAL_PHASE_ORDER: tuple[CompilerPhaseName, ...] = tuple(CompilerPhaseName)


@dataclass(frozen=True)
class PhaseRecord:
    """Model-written description of one compiler phase."""

    name: CompilerPhaseName
    explanation: str
    input_description: str
    output_description: str

    def to_dict(self) -> dict[str, str]:
        """Wire representation (camelCase keys)."""
        return {
            "name": self.name.value,
            "explanation": self.explanation,
            "inputDescription": self.input_description,
            "outputDescription": self.output_description,
        }


@dataclass(frozen=True)
class AnalysisError:
    """Where and why the submitted code failed to compile."""

    phase: CompilerPhaseName
    message: str
    suggestion: str

    def to_dict(self) -> dict[str, str]:
        """Wire representation."""
        return {
            "phase": self.phase.value,
            "message": self.message,
            "suggestion": self.suggestion,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Full analysis of one submitted source snippet.

    When ``is_valid_code`` is false, ``phases`` may be partial or empty.
    When true, ``error`` is None and the producer is expected to supply all
    six phases in canonical order.
    """

    is_valid_code: bool
    error: AnalysisError | None
    phases: tuple[PhaseRecord, ...]

    @property
    def phase_names(self) -> tuple[CompilerPhaseName, ...]:
        """Names of the phases present, in the order given."""
        return tuple(phase.name for phase in self.phases)

    @property
    def is_complete(self) -> bool:
        """True if all six phases are present in canonical order."""
        return self.phase_names == CANONICAL_PHASE_ORDER

    def get_phase(self, name: CompilerPhaseName | str) -> PhaseRecord | None:
        """Return the first phase with the given name, if any."""
        for phase in self.phases:
            if phase.name == name:
                return phase
        return None

    def to_dict(self) -> dict[str, Any]:
        """Wire representation, the inverse of ``validate_analysis``."""
        return {
            "isValidCode": self.is_valid_code,
            "error": self.error.to_dict() if self.error else None,
            "phases": [phase.to_dict() for phase in self.phases],
        }
