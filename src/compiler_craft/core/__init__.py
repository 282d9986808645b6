"""Core components.

- table_parser / tree_renderer: tolerant parsing of model output
- report: deterministic text reports
- validator: boundary validation of analysis payloads
- phase_view: per-phase display selection
- session / layout: interface state
- service: request orchestration
"""

from compiler_craft.core.layout import Divider, DragState, SplitPaneLayout
from compiler_craft.core.phase_view import (
    PhaseView,
    PreformattedBlock,
    TableBlock,
    TreeBlock,
    build_phase_view,
)
from compiler_craft.core.report import (
    REPORT_FILENAME,
    assemble_report,
    phase_output_content,
    phase_output_filename,
    save_report,
)
from compiler_craft.core.results import ParseFailure
from compiler_craft.core.service import CompilerCraftService
from compiler_craft.core.session import AnalysisSession, PendingChat
from compiler_craft.core.table_parser import ParsedTable, parse_table
from compiler_craft.core.tree_renderer import RenderedTree, parse_tree, render_tree
from compiler_craft.core.validator import validate_analysis

__all__ = [
    "REPORT_FILENAME",
    "AnalysisSession",
    "CompilerCraftService",
    "Divider",
    "DragState",
    "ParseFailure",
    "ParsedTable",
    "PendingChat",
    "PhaseView",
    "PreformattedBlock",
    "RenderedTree",
    "SplitPaneLayout",
    "TableBlock",
    "TreeBlock",
    "assemble_report",
    "build_phase_view",
    "parse_table",
    "parse_tree",
    "phase_output_content",
    "phase_output_filename",
    "render_tree",
    "save_report",
    "validate_analysis",
]
