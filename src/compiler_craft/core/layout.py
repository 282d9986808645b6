"""Split-pane layout as an explicit state machine.

The workspace has a vertical divider between the analysis panel and the
editor column, and a horizontal divider between the editor and the chat.
Dragging is driven by pointer events::

    IDLE --pointer_down(VERTICAL)----> DRAGGING_VERTICAL
    IDLE --pointer_down(HORIZONTAL)--> DRAGGING_HORIZONTAL
    DRAGGING_* --pointer_move--------> same state, ratio updated
    DRAGGING_* --pointer_up----------> IDLE

Moves outside a drag are ignored, as are ratios outside the allowed band.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Divider(StrEnum):
    """Which divider a drag starts on."""

    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


class DragState(StrEnum):
    """Drag state of the layout."""

    IDLE = "idle"
    DRAGGING_VERTICAL = "dragging-vertical"
    DRAGGING_HORIZONTAL = "dragging-horizontal"


# Open intervals, in percent
PANEL_WIDTH_BOUNDS = (20.0, 80.0)
EDITOR_HEIGHT_BOUNDS = (15.0, 85.0)

DEFAULT_PANEL_WIDTH = 50.0
DEFAULT_EDITOR_HEIGHT = 60.0


@dataclass
class SplitPaneLayout:
    """Panel ratios plus the current drag state.

    Attributes:
        panel_width: Width of the analysis panel, percent of the workspace.
        editor_height: Height of the editor, percent of the right column.
    """

    panel_width: float = DEFAULT_PANEL_WIDTH
    editor_height: float = DEFAULT_EDITOR_HEIGHT
    state: DragState = DragState.IDLE

    @property
    def is_dragging(self) -> bool:
        return self.state is not DragState.IDLE

    def pointer_down(self, divider: Divider) -> DragState:
        """Start dragging a divider. Ignored while another drag is active."""
        if self.state is DragState.IDLE:
            self.state = (
                DragState.DRAGGING_VERTICAL
                if divider is Divider.VERTICAL
                else DragState.DRAGGING_HORIZONTAL
            )
        return self.state

    def pointer_move(self, x_percent: float, y_percent: float) -> bool:
        """Apply a pointer position, relative to the dragged container.

        Args:
            x_percent: Pointer x as percent of the workspace width
            y_percent: Pointer y as percent of the right column height

        Returns:
            True if a ratio changed
        """
        if self.state is DragState.DRAGGING_VERTICAL:
            low, high = PANEL_WIDTH_BOUNDS
            if low < x_percent < high:
                self.panel_width = x_percent
                return True
        elif self.state is DragState.DRAGGING_HORIZONTAL:
            low, high = EDITOR_HEIGHT_BOUNDS
            if low < y_percent < high:
                self.editor_height = y_percent
                return True
        return False

    def pointer_up(self) -> DragState:
        """End any drag."""
        self.state = DragState.IDLE
        return self.state
