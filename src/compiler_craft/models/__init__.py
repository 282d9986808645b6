"""Data models and transfer objects."""

from .chat import ChatMessage, ChatRole
from .phase import (
    CANONICAL_PHASE_ORDER,
    AnalysisError,
    AnalysisResult,
    CompilerPhaseName,
    PhaseRecord,
)
from .tree import TreeNode

__all__ = [
    # Phase models
    "CANONICAL_PHASE_ORDER",
    "CompilerPhaseName",
    "PhaseRecord",
    "AnalysisError",
    "AnalysisResult",
    # Chat models
    "ChatRole",
    "ChatMessage",
    # Tree models
    "TreeNode",
]
