"""Edge snapping toward image bounds and the edges of other boxes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .geometry import normalized_to_pixel
from .models import BoxAnnotation, ImageFrame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SnapResult:
    """Outcome of snapping a single coordinate."""

    value: float
    snapped: bool


@dataclass(frozen=True)
class SnapLines:
    """Candidate snap lines for both axes, in image pixels."""

    x: List[float]
    y: List[float]


def closest_snap(value: float, lines: Sequence[float], threshold: float) -> SnapResult:
    """
    Find the nearest candidate line strictly closer than the threshold.

    Candidates are scanned in order and the best is only replaced on a
    strictly smaller distance, so the first of equally distant lines wins.
    A threshold of zero or less disables snapping.

    Args:
        value: Coordinate to snap
        lines: Candidate coordinates on the same axis
        threshold: Maximum distance (exclusive) in image pixels

    Returns:
        SnapResult with the snapped coordinate, or the original value
    """
    if threshold <= 0:
        return SnapResult(value, False)

    best = value
    snapped = False
    min_distance = threshold

    for line in lines:
        distance = abs(value - line)
        if distance < min_distance:
            min_distance = distance
            best = line
            snapped = True

    return SnapResult(best, snapped)


def build_snap_lines(
    annotations: Sequence[BoxAnnotation],
    frame: ImageFrame,
    exclude_id: Optional[str] = None
) -> SnapLines:
    """
    Collect snap candidates from the image bounds and other boxes' edges.

    Args:
        annotations: Boxes whose edges attract the dragged coordinate
        frame: Pixel dimensions of the image
        exclude_id: Id of the box being edited, left out of the candidates

    Returns:
        SnapLines with x candidates (left/right edges) and y candidates
        (top/bottom edges)
    """
    x_lines = [0.0, float(frame.pixel_width)]
    y_lines = [0.0, float(frame.pixel_height)]

    for annotation in annotations:
        if annotation.id == exclude_id:
            continue
        rect = normalized_to_pixel(annotation, frame)
        x_lines.extend((rect.x, rect.right))
        y_lines.extend((rect.y, rect.bottom))

    return SnapLines(x=x_lines, y=y_lines)


def image_threshold(snap_distance: float, zoom: float) -> float:
    """Convert a screen-space snap distance to image pixels at the given zoom."""
    return snap_distance / zoom
