"""Display model for a single phase.

Chooses how each phase's output is shown: the lexical phase as a table, the
syntax phase as a tree outline, everything else (and anything that fails to
parse) as preformatted text.
"""

from __future__ import annotations

from dataclasses import dataclass

from compiler_craft.core.results import ParseFailure
from compiler_craft.core.table_parser import ParsedTable, parse_table
from compiler_craft.core.tree_renderer import render_tree
from compiler_craft.models.phase import CompilerPhaseName, PhaseRecord


@dataclass(frozen=True)
class TableBlock:
    """Output shown as a table."""

    table: ParsedTable


@dataclass(frozen=True)
class TreeBlock:
    """Output shown as a tree outline, or an error note in its place."""

    text: str
    is_error: bool = False


@dataclass(frozen=True)
class PreformattedBlock:
    """Output shown verbatim."""

    text: str


OutputBlock = TableBlock | TreeBlock | PreformattedBlock


@dataclass(frozen=True)
class PhaseView:
    """Everything needed to show one phase."""

    title: str
    explanation: str
    input_text: str
    output: OutputBlock


def build_output_block(phase: PhaseRecord) -> OutputBlock:
    """Pick the display for a phase's output description."""
    text = phase.output_description

    if phase.name == CompilerPhaseName.LEXICAL_ANALYSIS:
        table = parse_table(text)
        if isinstance(table, ParsedTable):
            return TableBlock(table=table)
        return PreformattedBlock(text=text)

    if phase.name == CompilerPhaseName.SYNTAX_ANALYSIS:
        tree = render_tree(text)
        if not isinstance(tree, ParseFailure):
            return TreeBlock(text=tree.text)
        if tree.message is not None:
            return TreeBlock(text=tree.message, is_error=True)
        return PreformattedBlock(text=tree.display_text)

    return PreformattedBlock(text=text)


def build_phase_view(phase: PhaseRecord, index: int) -> PhaseView:
    """Display model for the phase at ``index`` (0-based) of an analysis."""
    return PhaseView(
        title=f"{index + 1}. {phase.name}",
        explanation=phase.explanation,
        input_text=phase.input_description,
        output=build_output_block(phase),
    )
