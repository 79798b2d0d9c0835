"""Core editing logic for bbox-editor."""

from .models import (
    BoxAnnotation,
    HitTarget,
    ImageFrame,
    LabelClass,
    PixelRect,
    ResizeHandle,
    SnapGuides,
    ToolMode,
    ViewTransform,
)
from .config import EditorConfig, ConfigManager
from .history import HistoryManager
from .commands import CommandDispatcher, EditorCommand
from .editor import AnnotationEditor

__all__ = [
    "BoxAnnotation",
    "HitTarget",
    "ImageFrame",
    "LabelClass",
    "PixelRect",
    "ResizeHandle",
    "SnapGuides",
    "ToolMode",
    "ViewTransform",
    "EditorConfig",
    "ConfigManager",
    "HistoryManager",
    "CommandDispatcher",
    "EditorCommand",
    "AnnotationEditor",
]
