"""Plain-text compiler reports.

A report walks through the pipeline in order: the raw source text as
phase 1, then one section per analysed phase. The same ``assemble_report``
produces both the file written after each successful analysis and the file
a user downloads, so the two are byte-identical for the same input.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog

from compiler_craft.models.phase import AnalysisResult, CompilerPhaseName, PhaseRecord
from compiler_craft.utils.errors import ReportError

log = structlog.get_logger()

REPORT_FILENAME = "compiler_report.txt"

EXPLANATION_INDENT = "   "

RAW_TEXT_NOTE = (
    "   Raw text phase: the compiler reads the source file as plain text.\n"
    "   This includes preprocessor lines like #include and all comments/whitespace.\n"
    "   If the file is empty or missing, the run aborts with a helpful message."
)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def pretty_json(text: str) -> str | None:
    """Re-indent JSON text with two spaces, or return None if it does not parse.

    NaN and Infinity are rejected so the output is always strict JSON.
    """
    try:
        value = json.loads(text, parse_constant=_reject_constant)
        # 1e400 decodes to inf
        return json.dumps(value, indent=2, ensure_ascii=False, allow_nan=False)
    except (ValueError, RecursionError):
        return None


def section_banner(number: int, title: str) -> str:
    """Banner line that opens a report section."""
    return f"============ PHASE {number} — {title} ============"


def indent_block(text: str, indent: str = EXPLANATION_INDENT) -> str:
    """Prefix every line of ``text`` with ``indent``, keeping empty lines."""
    return "\n".join(indent + line for line in text.split("\n"))


def phase_output_content(phase: PhaseRecord) -> str:
    """Output description as it appears in reports and downloads.

    Syntax-analysis trees are pretty-printed when they parse as JSON; every
    other output, and any tree that does not parse, is used verbatim.
    """
    if phase.name == CompilerPhaseName.SYNTAX_ANALYSIS:
        pretty = pretty_json(phase.output_description)
        if pretty is not None:
            return pretty
    return phase.output_description


def phase_output_filename(name: CompilerPhaseName | str) -> str:
    """Download filename for one phase's output, e.g. ``syntax_analysis_output.txt``."""
    return f"{str(name).lower().replace(' ', '_')}_output.txt"


def assemble_report(source_code: str, result: AnalysisResult) -> str:
    """Build the full text report for a successful analysis.

    Layout::

        ============ PHASE 1 — RAW TEXT ============
        <source code>

        <raw text note>

        ============ PHASE 2 — LEXICAL ANALYSIS ============
        <output description>

           <explanation, each line indented by three spaces>

    and so on for each phase in the order given. Every block is followed by
    one blank line.

    Args:
        source_code: The code that was analysed
        result: A valid-code analysis

    Returns:
        Report text; identical inputs give identical output

    Raises:
        ReportError: If the analysis is not for valid code
    """
    if not result.is_valid_code:
        raise ReportError("Reports can only be assembled for valid code")

    parts = [
        section_banner(1, "RAW TEXT") + "\n",
        source_code + "\n\n",
        RAW_TEXT_NOTE + "\n\n",
    ]

    for index, phase in enumerate(result.phases):
        parts.append(section_banner(index + 2, phase.name.upper()) + "\n")
        parts.append(phase_output_content(phase) + "\n\n")
        parts.append(indent_block(phase.explanation) + "\n\n")

    return "".join(parts)


def default_report_path() -> Path:
    """Report location: one directory above the working directory."""
    return Path.cwd().parent / REPORT_FILENAME


def save_report(
    source_code: str,
    result: AnalysisResult,
    path: Path | None = None,
) -> Path | None:
    """Write the report for a successful analysis to disk.

    Failures are logged and swallowed; saving the report must never fail the
    request that produced the analysis.

    Args:
        source_code: The code that was analysed
        result: A valid-code analysis
        path: Destination file (defaults to ``default_report_path()``)

    Returns:
        The path written, or None if the report could not be saved
    """
    target = path or default_report_path()
    try:
        # No partial file on encode errors
        content = assemble_report(source_code, result).encode("utf-8")
        target.write_bytes(content)
    except (OSError, UnicodeError, ReportError) as e:
        log.error("report_save_failed", path=str(target), error=str(e))
        return None

    log.info("report_saved", path=str(target), phases=len(result.phases))
    return target
