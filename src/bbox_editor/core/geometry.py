"""Conversions between normalized, image pixel and viewport coordinates."""

from __future__ import annotations

from typing import Optional, Tuple

from PyQt6.QtCore import QPointF

from .models import BoxAnnotation, ImageFrame, PixelRect, ResizeHandle


def normalized_to_pixel(box: BoxAnnotation, frame: ImageFrame) -> PixelRect:
    """
    Convert a normalized center-based box to a top-left pixel rectangle.

    Args:
        box: Box in normalized annotation space
        frame: Pixel dimensions of the image

    Returns:
        PixelRect in image pixel space
    """
    w = box.w * frame.pixel_width
    h = box.h * frame.pixel_height
    return PixelRect(
        x=box.x * frame.pixel_width - w / 2,
        y=box.y * frame.pixel_height - h / 2,
        w=w,
        h=h,
    )


def pixel_to_normalized(rect: PixelRect, frame: ImageFrame) -> Tuple[float, float, float, float]:
    """
    Convert a top-left pixel rectangle to normalized center coordinates.

    Args:
        rect: Rectangle in image pixel space
        frame: Pixel dimensions of the image

    Returns:
        Tuple of (x_center, y_center, width, height) relative to the image
    """
    return (
        (rect.x + rect.w / 2) / frame.pixel_width,
        (rect.y + rect.h / 2) / frame.pixel_height,
        rect.w / frame.pixel_width,
        rect.h / frame.pixel_height,
    )


def viewport_to_image(pos: QPointF, pan: QPointF, zoom: float) -> QPointF:
    """Transform a viewport position to image pixel coordinates."""
    return QPointF((pos.x() - pan.x()) / zoom, (pos.y() - pan.y()) / zoom)


def image_to_viewport(pos: QPointF, pan: QPointF, zoom: float) -> QPointF:
    """Transform image pixel coordinates to a viewport position."""
    return QPointF(pos.x() * zoom + pan.x(), pos.y() * zoom + pan.y())


def rect_from_points(a: QPointF, b: QPointF) -> PixelRect:
    """Rectangle spanned by two points, with non-negative size in any drag direction."""
    return PixelRect(
        x=min(a.x(), b.x()),
        y=min(a.y(), b.y()),
        w=abs(b.x() - a.x()),
        h=abs(b.y() - a.y()),
    )


def clip_to_frame(box: BoxAnnotation) -> Optional[BoxAnnotation]:
    """
    Clamp a box's extent to the [0, 1] image bounds.

    Returns:
        The clipped box, or None if no part of it lies inside the image
    """
    left = max(box.x - box.w / 2, 0.0)
    top = max(box.y - box.h / 2, 0.0)
    right = min(box.x + box.w / 2, 1.0)
    bottom = min(box.y + box.h / 2, 1.0)

    if right <= left or bottom <= top:
        return None

    return box.with_geometry(
        (left + right) / 2,
        (top + bottom) / 2,
        right - left,
        bottom - top,
    )


def resize_rect(rect: PixelRect, handle: ResizeHandle, pos: QPointF, min_size: float) -> PixelRect:
    """
    Move one corner of a rectangle to pos while the opposite corner stays fixed.

    Width and height never drop below min_size, even when the corner is
    dragged past the fixed one.

    Args:
        rect: Rectangle before the drag step
        handle: The corner being dragged
        pos: New position of that corner in image pixels
        min_size: Minimum width and height in image pixels

    Returns:
        The resized rectangle
    """
    x, y, w, h = rect.x, rect.y, rect.w, rect.h

    if handle == ResizeHandle.TOP_LEFT:
        x = min(pos.x(), rect.right - min_size)
        y = min(pos.y(), rect.bottom - min_size)
        w = rect.right - x
        h = rect.bottom - y
    elif handle == ResizeHandle.TOP_RIGHT:
        y = min(pos.y(), rect.bottom - min_size)
        w = max(pos.x() - rect.x, min_size)
        h = rect.bottom - y
    elif handle == ResizeHandle.BOTTOM_LEFT:
        x = min(pos.x(), rect.right - min_size)
        w = rect.right - x
        h = max(pos.y() - rect.y, min_size)
    elif handle == ResizeHandle.BOTTOM_RIGHT:
        w = max(pos.x() - rect.x, min_size)
        h = max(pos.y() - rect.y, min_size)

    return PixelRect(x=x, y=y, w=w, h=h)
