"""Gesture states of the interaction state machine.

Exactly one of these is held by the editor at any time. Each state carries
everything its pointer-move and pointer-up handlers need, and the editor
swaps the whole object on every transition.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from PyQt6.QtCore import QPointF

from .models import PixelRect, ResizeHandle


@dataclass(frozen=True)
class Idle:
    """No pointer is held down."""

    @property
    def description(self) -> str:
        return "Idle"


@dataclass(frozen=True)
class Panning:
    """Dragging the viewport. Tracks the last pointer position in viewport space."""

    last_pos: QPointF

    @property
    def description(self) -> str:
        return "Pan"


@dataclass(frozen=True)
class Creating:
    """Drawing a new rectangle from an anchor point in image space."""

    anchor: QPointF
    magic: bool = False
    rect: Optional[PixelRect] = None

    @property
    def description(self) -> str:
        return "Magic Box" if self.magic else "Add Box"


@dataclass(frozen=True)
class Moving:
    """Translating one box by the pointer delta from its starting rectangle."""

    annotation_id: str
    start_rect: PixelRect
    start_geometry: Tuple[float, float, float, float]
    anchor: QPointF

    @property
    def description(self) -> str:
        return "Move Box"


@dataclass(frozen=True)
class Resizing:
    """Dragging one corner of a box while the opposite corner stays fixed."""

    annotation_id: str
    handle: ResizeHandle
    start_rect: PixelRect
    start_geometry: Tuple[float, float, float, float]

    @property
    def description(self) -> str:
        return "Resize Box"


Gesture = Union[Idle, Panning, Creating, Moving, Resizing]

IDLE = Idle()
