"""Command dispatch for editor shortcuts.

The host owns a CommandDispatcher, binds key sequences to commands and
forwards key presses to it. Handlers are plain callables, so undo/redo and
tool switches work the same from a shortcut, a toolbar button or a script.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QKeyEvent, QKeySequence

from .config import EditorConfig

logger = logging.getLogger(__name__)


class EditorCommand(str, Enum):
    """Commands a host can trigger on the editor."""

    UNDO = "undo"
    REDO = "redo"
    SELECT_TOOL = "select_tool"
    DRAW_TOOL = "draw_tool"
    PAN_TOOL = "pan_tool"
    MAGIC_BOX_TOOL = "magic_box_tool"
    DELETE_SELECTED = "delete_selected"


def normalize_key_sequence(key_sequence: str) -> str:
    """Canonical portable-text form of a key sequence string ("ctrl+z" -> "Ctrl+Z")."""
    if not key_sequence:
        return ""
    return QKeySequence.fromString(
        key_sequence, QKeySequence.SequenceFormat.PortableText
    ).toString(QKeySequence.SequenceFormat.PortableText)


def key_sequence_from_event(event: QKeyEvent) -> str:
    """
    Build the portable key sequence string for a key event.

    Returns an empty string for pure modifier presses.
    """
    key = event.key()
    modifiers = event.modifiers()

    # Ignore pure modifier key presses
    if key in (
        Qt.Key.Key_Control.value, Qt.Key.Key_Shift.value,
        Qt.Key.Key_Alt.value, Qt.Key.Key_Meta.value
    ):
        return ""

    # Build combined key with modifiers
    combined = key
    if modifiers & Qt.KeyboardModifier.ControlModifier:
        combined |= Qt.KeyboardModifier.ControlModifier.value
    if modifiers & Qt.KeyboardModifier.ShiftModifier:
        combined |= Qt.KeyboardModifier.ShiftModifier.value
    if modifiers & Qt.KeyboardModifier.AltModifier:
        combined |= Qt.KeyboardModifier.AltModifier.value
    if modifiers & Qt.KeyboardModifier.MetaModifier:
        combined |= Qt.KeyboardModifier.MetaModifier.value

    return QKeySequence(combined).toString(QKeySequence.SequenceFormat.PortableText)


class CommandDispatcher:
    """Maps key sequences to commands and commands to handlers."""

    def __init__(self) -> None:
        self._handlers: Dict[EditorCommand, Callable[[], object]] = {}
        self._bindings: Dict[str, EditorCommand] = {}

    def register(self, command: EditorCommand, handler: Callable[[], object]) -> None:
        """
        Register the handler that runs a command.

        Args:
            command: Command to handle
            handler: Callable taking no arguments; replaces any previous handler
        """
        self._handlers[command] = handler

    def unregister(self, command: EditorCommand) -> None:
        """Remove the handler for a command."""
        self._handlers.pop(command, None)

    def bind(self, key_sequence: str, command: EditorCommand) -> None:
        """
        Bind a key sequence to a command.

        Args:
            key_sequence: Key sequence string, e.g. "Ctrl+Z" (empty to skip)
            command: Command triggered by the sequence
        """
        normalized = normalize_key_sequence(key_sequence)
        if not normalized:
            return
        self._bindings[normalized] = command

    def bind_from_config(self, config: EditorConfig) -> None:
        """Replace all key bindings with the ones from an editor config."""
        self._bindings.clear()
        self.bind(config.undo_key, EditorCommand.UNDO)
        self.bind(config.redo_key, EditorCommand.REDO)
        self.bind(config.select_tool_key, EditorCommand.SELECT_TOOL)
        self.bind(config.draw_tool_key, EditorCommand.DRAW_TOOL)
        self.bind(config.pan_tool_key, EditorCommand.PAN_TOOL)
        self.bind(config.magic_box_tool_key, EditorCommand.MAGIC_BOX_TOOL)
        self.bind(config.delete_key, EditorCommand.DELETE_SELECTED)

    def command_for(self, key_sequence: str) -> Optional[EditorCommand]:
        """Get the command bound to a key sequence, if any."""
        return self._bindings.get(normalize_key_sequence(key_sequence))

    def dispatch(self, command: EditorCommand) -> bool:
        """
        Run the handler for a command.

        Returns:
            True if a handler was registered and ran
        """
        handler = self._handlers.get(command)
        if handler is None:
            logger.warning(f"No handler registered for command: {command.value}")
            return False

        logger.debug(f"Dispatching command: {command.value}")
        handler()
        return True

    def handle_key(self, key_sequence: str) -> bool:
        """
        Dispatch the command bound to a key sequence.

        Returns:
            True if the sequence was bound and its command handled
        """
        command = self.command_for(key_sequence)
        if command is None:
            return False
        return self.dispatch(command)

    def handle_key_event(self, event: QKeyEvent) -> bool:
        """Dispatch the command bound to a Qt key event."""
        key_sequence = key_sequence_from_event(event)
        if not key_sequence:
            return False
        return self.handle_key(key_sequence)
