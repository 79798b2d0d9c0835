"""Data models for bounding-box annotations and editing sessions."""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple

from PyQt6.QtCore import QPointF

logger = logging.getLogger(__name__)


class ToolMode(str, Enum):
    """User-selected interpretation of pointer gestures."""

    SELECT = "select"
    DRAW = "draw"
    PAN = "pan"
    MAGIC_BOX = "magic_box"


class ResizeHandle(str, Enum):
    """Corner handle of a box."""

    TOP_LEFT = "tl"
    TOP_RIGHT = "tr"
    BOTTOM_LEFT = "bl"
    BOTTOM_RIGHT = "br"


@dataclass(frozen=True)
class BoxAnnotation:
    """
    A single bounding box in normalized annotation space.

    Coordinates are the box center and size as fractions of the image
    dimensions. Instances are immutable; edits produce new instances.
    """

    id: str
    label_id: Optional[str]
    x: float
    y: float
    w: float
    h: float

    def __post_init__(self) -> None:
        if self.w <= 0 or self.h <= 0:
            raise ValueError(f"Box {self.id} must have positive size, got {self.w}x{self.h}")

    @classmethod
    def create(
        cls,
        label_id: Optional[str],
        x: float,
        y: float,
        w: float,
        h: float
    ) -> BoxAnnotation:
        """Create a box with a freshly generated id."""
        return cls(id=str(uuid.uuid4()), label_id=label_id, x=x, y=y, w=w, h=h)

    def with_geometry(self, x: float, y: float, w: float, h: float) -> BoxAnnotation:
        """Return a copy of this box with new normalized geometry."""
        return replace(self, x=x, y=y, w=w, h=h)

    @property
    def geometry(self) -> Tuple[float, float, float, float]:
        """Normalized (x, y, w, h)."""
        return (self.x, self.y, self.w, self.h)


@dataclass(frozen=True)
class LabelClass:
    """Label class referenced by annotations through its id."""

    id: str
    name: str
    color: str = "#1d4ed8"


@dataclass(frozen=True)
class ImageFrame:
    """Pixel dimensions of the image being edited."""

    pixel_width: float
    pixel_height: float

    def __post_init__(self) -> None:
        if self.pixel_width <= 0 or self.pixel_height <= 0:
            raise ValueError(
                f"Image frame must have positive dimensions, "
                f"got {self.pixel_width}x{self.pixel_height}"
            )


@dataclass
class ViewTransform:
    """Zoom and pan of the viewport, owned by the host."""

    zoom: float = 1.0
    pan: QPointF = field(default_factory=QPointF)

    def __post_init__(self) -> None:
        if self.zoom <= 0:
            raise ValueError(f"Zoom must be positive, got {self.zoom}")
        self.pan = QPointF(self.pan)


@dataclass(frozen=True)
class PixelRect:
    """
    Axis-aligned rectangle in image pixel space, top-left form.

    Derived from a BoxAnnotation on demand; never stored.
    """

    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    def corner(self, handle: ResizeHandle) -> QPointF:
        """Get the position of a corner."""
        if handle == ResizeHandle.TOP_LEFT:
            return QPointF(self.x, self.y)
        if handle == ResizeHandle.TOP_RIGHT:
            return QPointF(self.right, self.y)
        if handle == ResizeHandle.BOTTOM_LEFT:
            return QPointF(self.x, self.bottom)
        return QPointF(self.right, self.bottom)

    def contains(self, point: QPointF) -> bool:
        """Check if a point lies inside the rectangle (edges included)."""
        return (
            self.x <= point.x() <= self.right and
            self.y <= point.y() <= self.bottom
        )

    @property
    def is_valid(self) -> bool:
        """True if both dimensions are positive."""
        return self.w > 0 and self.h > 0

    def is_close(self, other: PixelRect, tolerance: float = 1e-6) -> bool:
        """Check if two rectangles match up to a tolerance in pixels."""
        return all(
            math.isclose(a, b, rel_tol=0.0, abs_tol=tolerance)
            for a, b in ((self.x, other.x), (self.y, other.y), (self.w, other.w), (self.h, other.h))
        )


@dataclass(frozen=True)
class SnapGuides:
    """Guide lines from the last successful snap on each axis."""

    x: Optional[float] = None
    y: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self.x is None and self.y is None


@dataclass(frozen=True)
class HitTarget:
    """What a pointer-down landed on: a box body or one of its handles."""

    annotation_id: str
    handle: Optional[ResizeHandle] = None


def find_annotation(annotations: List[BoxAnnotation], annotation_id: str) -> Optional[BoxAnnotation]:
    """Find an annotation by id."""
    for annotation in annotations:
        if annotation.id == annotation_id:
            return annotation
    return None


def replace_annotation(
    annotations: List[BoxAnnotation],
    updated: BoxAnnotation
) -> List[BoxAnnotation]:
    """
    Return a new list with the annotation sharing updated's id replaced.

    All other entries are carried over as the same objects.
    """
    return [updated if a.id == updated.id else a for a in annotations]
