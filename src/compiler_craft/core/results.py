"""Discriminated results for parsing semi-structured model output.

Parsers in this package never raise on malformed model output. They return
either their success type or a ``ParseFailure`` so the caller can fall back
to showing the text verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ParseFailure:
    """Model output that could not be interpreted.

    Attributes:
        reason: Short machine-oriented description of what went wrong.
        raw_text: The original text, for verbatim fallback display.
        message: User-facing replacement text; when set it is shown instead
            of ``raw_text``.
    """

    reason: str
    raw_text: str
    message: str | None = None

    @property
    def display_text(self) -> str:
        """What the UI shows in place of the structured rendering."""
        return self.message if self.message is not None else self.raw_text
