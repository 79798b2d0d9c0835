"""Undo/Redo history of annotation-list snapshots."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from PyQt6.QtCore import QObject, pyqtSignal

from .models import BoxAnnotation

logger = logging.getLogger(__name__)

EXTERNAL_CHANGE = "Edit Annotations"


@dataclass(frozen=True)
class HistoryEntry:
    """Immutable snapshot of the full annotation list."""

    annotations: Tuple[BoxAnnotation, ...]
    description: str

    def restore(self) -> List[BoxAnnotation]:
        """Get a fresh list holding the snapshot's boxes."""
        return list(self.annotations)


class HistoryManager(QObject):
    """
    Manages undo/redo stacks of annotation-list snapshots.

    A continuous gesture is bracketed by begin_gesture/end_gesture and
    produces at most one entry no matter how many intermediate updates it
    made. Outside a gesture, every observed list replacement becomes its own
    entry unless it was a replay of undo/redo.

    Emits state_changed when the undo/redo state changes so UI can update.
    """

    state_changed = pyqtSignal()

    def __init__(self, max_history: int = 100) -> None:
        """
        Initialize the history manager.

        Args:
            max_history: Maximum number of entries to keep on the undo stack
        """
        super().__init__()
        self._undo_stack: List[HistoryEntry] = []
        self._redo_stack: List[HistoryEntry] = []
        self._max_history = max(1, max_history)
        self._gesture_start: Optional[HistoryEntry] = None

    @property
    def in_gesture(self) -> bool:
        """True while a gesture suppresses automatic recording."""
        return self._gesture_start is not None

    def begin_gesture(self, annotations: Sequence[BoxAnnotation], description: str) -> None:
        """
        Snapshot the list as it was before a gesture and suspend recording.

        Args:
            annotations: The list before the gesture touched it
            description: Label for the entry the gesture may produce
        """
        if self._gesture_start is not None:
            logger.warning("Gesture started while another was open; previous snapshot replaced")
        self._gesture_start = HistoryEntry(tuple(annotations), description)
        logger.debug(f"Gesture started: {description}")

    def end_gesture(self, annotations: Sequence[BoxAnnotation]) -> bool:
        """
        Close the open gesture and record it if it changed the list.

        Args:
            annotations: The list after the gesture

        Returns:
            True if an entry was pushed
        """
        start = self._gesture_start
        self._gesture_start = None
        if start is None:
            return False

        if start.annotations == tuple(annotations):
            logger.debug(f"Gesture ended without changes: {start.description}")
            return False

        self._push(start)
        return True

    def cancel_gesture(self) -> None:
        """Drop the open gesture's snapshot without recording anything."""
        self._gesture_start = None

    def observe(
        self,
        previous: Sequence[BoxAnnotation],
        current: Sequence[BoxAnnotation],
        replay: bool = False,
        description: str = EXTERNAL_CHANGE
    ) -> bool:
        """
        Record a list replacement made outside of any gesture.

        Args:
            previous: The list value immediately before the change
            current: The new list value
            replay: True if the change is the result of undo/redo itself
            description: Label for the entry

        Returns:
            True if an entry was pushed
        """
        if replay or self.in_gesture:
            return False

        snapshot = tuple(previous)
        if snapshot == tuple(current):
            return False

        self._push(HistoryEntry(snapshot, description))
        return True

    def _push(self, entry: HistoryEntry) -> None:
        """Push an entry onto the undo stack and invalidate redo."""
        self._undo_stack.append(entry)

        # Clear redo stack when a new change is recorded
        self._redo_stack.clear()

        # Limit history size
        while len(self._undo_stack) > self._max_history:
            self._undo_stack.pop(0)

        logger.debug(f"Recorded: {entry.description}")
        self.state_changed.emit()

    def undo(self, current: Sequence[BoxAnnotation]) -> Optional[List[BoxAnnotation]]:
        """
        Step back one entry.

        Args:
            current: The live list, saved for redo

        Returns:
            The restored list, or None if there was nothing to undo
        """
        return self.undo_to(1, current)

    def redo(self, current: Sequence[BoxAnnotation]) -> Optional[List[BoxAnnotation]]:
        """
        Step forward one entry.

        Args:
            current: The live list, saved for undo

        Returns:
            The restored list, or None if there was nothing to redo
        """
        return self.redo_to(1, current)

    def undo_to(self, steps: int, current: Sequence[BoxAnnotation]) -> Optional[List[BoxAnnotation]]:
        """
        Undo multiple steps at once.

        Args:
            steps: Number of steps to undo
            current: The live list

        Returns:
            The list after the last undone step, or None if nothing was undone
        """
        if steps <= 0 or self.in_gesture:
            return None

        restored: Optional[HistoryEntry] = None
        state = tuple(current)
        for _ in range(steps):
            if not self._undo_stack:
                break

            entry = self._undo_stack.pop()
            self._redo_stack.append(HistoryEntry(state, entry.description))
            state = entry.annotations
            restored = entry
            logger.debug(f"Undone: {entry.description}")

        # Only emit once after all undos are complete
        if restored is None:
            return None
        self.state_changed.emit()
        return restored.restore()

    def redo_to(self, steps: int, current: Sequence[BoxAnnotation]) -> Optional[List[BoxAnnotation]]:
        """
        Redo multiple steps at once.

        Args:
            steps: Number of steps to redo
            current: The live list

        Returns:
            The list after the last redone step, or None if nothing was redone
        """
        if steps <= 0 or self.in_gesture:
            return None

        restored: Optional[HistoryEntry] = None
        state = tuple(current)
        for _ in range(steps):
            if not self._redo_stack:
                break

            entry = self._redo_stack.pop()
            self._undo_stack.append(HistoryEntry(state, entry.description))
            state = entry.annotations
            restored = entry
            logger.debug(f"Redone: {entry.description}")

        if restored is None:
            return None
        self.state_changed.emit()
        return restored.restore()

    def can_undo(self) -> bool:
        """Check if undo is available."""
        return len(self._undo_stack) > 0

    def can_redo(self) -> bool:
        """Check if redo is available."""
        return len(self._redo_stack) > 0

    def undo_description(self) -> str:
        """Get description of the change that would be undone."""
        if self._undo_stack:
            return self._undo_stack[-1].description
        return ""

    def redo_description(self) -> str:
        """Get description of the change that would be redone."""
        if self._redo_stack:
            return self._redo_stack[-1].description
        return ""

    def reset(self) -> None:
        """Clear all undo/redo history, e.g. when switching images."""
        self._undo_stack.clear()
        self._redo_stack.clear()
        self._gesture_start = None
        self.state_changed.emit()

    @property
    def undo_count(self) -> int:
        """Get the number of entries that can be undone."""
        return len(self._undo_stack)

    @property
    def redo_count(self) -> int:
        """Get the number of entries that can be redone."""
        return len(self._redo_stack)

    def get_history(self) -> List[Tuple[int, str, bool]]:
        """
        Get the full history as a list of tuples.

        Returns:
            List of (index, description, is_undo_stack) tuples.
            - Undo stack items (past changes) have is_undo_stack=True
            - Redo stack items (undone changes) have is_undo_stack=False
            - Index is the position in respective stack (0 = oldest)
        """
        history = []

        for i, entry in enumerate(self._undo_stack):
            history.append((i, entry.description, True))

        # Newest redo first
        for i, entry in enumerate(reversed(self._redo_stack)):
            history.append((len(self._redo_stack) - 1 - i, entry.description, False))

        return history

    def set_max_history(self, max_history: int) -> None:
        """
        Update the maximum history size.

        Args:
            max_history: New maximum number of entries to keep
        """
        self._max_history = max(1, max_history)

        while len(self._undo_stack) > self._max_history:
            self._undo_stack.pop(0)

        self.state_changed.emit()
