"""Tests for coordinate transforms."""

import pytest
from PyQt6.QtCore import QPointF

from bbox_editor.core.geometry import (
    clip_to_frame,
    image_to_viewport,
    normalized_to_pixel,
    pixel_to_normalized,
    rect_from_points,
    resize_rect,
    viewport_to_image,
)
from bbox_editor.core.models import BoxAnnotation, ImageFrame, PixelRect, ResizeHandle


class TestNormalizedPixel:
    """Tests for normalized <-> pixel conversion."""

    def test_normalized_to_pixel(self, frame):
        """Test converting a centered box to a top-left pixel rect."""
        box = BoxAnnotation(id="a", label_id=None, x=0.5, y=0.5, w=0.2, h=0.4)

        rect = normalized_to_pixel(box, frame)

        assert rect.x == pytest.approx(400)
        assert rect.y == pytest.approx(150)
        assert rect.w == pytest.approx(200)
        assert rect.h == pytest.approx(200)

    def test_pixel_to_normalized(self, frame):
        """Test converting a pixel rect to normalized center coordinates."""
        x, y, w, h = pixel_to_normalized(PixelRect(100, 100, 100, 100), frame)

        assert x == pytest.approx(0.15)
        assert y == pytest.approx(0.3)
        assert w == pytest.approx(0.1)
        assert h == pytest.approx(0.2)

    @pytest.mark.parametrize(
        "frame_size,geometry",
        [
            ((640, 480), (0.5, 0.5, 0.25, 0.25)),
            ((1920, 1080), (0.123, 0.987, 0.01, 0.333)),
            ((3, 7), (0.9, 0.1, 1.0, 0.5)),
        ],
    )
    def test_round_trip(self, frame_size, geometry):
        """Test that pixel_to_normalized inverts normalized_to_pixel."""
        frame = ImageFrame(*frame_size)
        box = BoxAnnotation(id="a", label_id=None, x=geometry[0], y=geometry[1],
                            w=geometry[2], h=geometry[3])

        result = pixel_to_normalized(normalized_to_pixel(box, frame), frame)

        assert result == pytest.approx(geometry)


class TestViewport:
    """Tests for viewport <-> image conversion."""

    def test_viewport_to_image(self):
        """Test removing pan and zoom from a pointer position."""
        result = viewport_to_image(QPointF(250, 130), QPointF(50, 30), 2.0)

        assert result.x() == pytest.approx(100)
        assert result.y() == pytest.approx(50)

    def test_identity_transform(self):
        result = viewport_to_image(QPointF(12.5, 7), QPointF(0, 0), 1.0)

        assert result == QPointF(12.5, 7)

    def test_image_to_viewport_inverse(self):
        pan = QPointF(-20, 15)
        image_pos = viewport_to_image(QPointF(300, 200), pan, 0.5)

        result = image_to_viewport(image_pos, pan, 0.5)

        assert result.x() == pytest.approx(300)
        assert result.y() == pytest.approx(200)


class TestRectFromPoints:
    """Tests for building rectangles from drag endpoints."""

    @pytest.mark.parametrize(
        "start,end",
        [
            ((10, 20), (40, 60)),
            ((40, 60), (10, 20)),
            ((40, 20), (10, 60)),
            ((10, 60), (40, 20)),
        ],
    )
    def test_any_drag_direction(self, start, end):
        """Test that the rectangle is normalized for every drag direction."""
        rect = rect_from_points(QPointF(*start), QPointF(*end))

        assert rect == PixelRect(10, 20, 30, 40)

    def test_zero_size(self):
        rect = rect_from_points(QPointF(5, 5), QPointF(5, 5))

        assert rect.w == 0
        assert rect.h == 0
        assert not rect.is_valid


class TestResizeRect:
    """Tests for corner resizing."""

    RECT = PixelRect(100, 100, 100, 100)

    def test_bottom_right(self):
        rect = resize_rect(self.RECT, ResizeHandle.BOTTOM_RIGHT, QPointF(250, 230), 5)

        assert rect == PixelRect(100, 100, 150, 130)

    def test_top_left_keeps_bottom_right_fixed(self):
        rect = resize_rect(self.RECT, ResizeHandle.TOP_LEFT, QPointF(80, 50), 5)

        assert rect == PixelRect(80, 50, 120, 150)
        assert rect.right == 200
        assert rect.bottom == 200

    def test_top_right_keeps_bottom_left_fixed(self):
        rect = resize_rect(self.RECT, ResizeHandle.TOP_RIGHT, QPointF(260, 90), 5)

        assert rect == PixelRect(100, 90, 160, 110)

    def test_bottom_left_keeps_top_right_fixed(self):
        rect = resize_rect(self.RECT, ResizeHandle.BOTTOM_LEFT, QPointF(120, 240), 5)

        assert rect == PixelRect(120, 100, 80, 140)

    def test_bottom_right_past_top_left_clamps(self):
        """Test dragging a corner past the fixed one clamps to the minimum size."""
        rect = resize_rect(self.RECT, ResizeHandle.BOTTOM_RIGHT, QPointF(20, 30), 5)

        assert rect == PixelRect(100, 100, 5, 5)

    def test_top_left_past_bottom_right_clamps(self):
        rect = resize_rect(self.RECT, ResizeHandle.TOP_LEFT, QPointF(400, 400), 5)

        assert rect == PixelRect(195, 195, 5, 5)

    @pytest.mark.parametrize("handle", list(ResizeHandle))
    def test_never_below_minimum(self, handle):
        """Test that every handle respects the minimum size wherever it is dragged."""
        for pos in (QPointF(-500, -500), QPointF(150, 150), QPointF(900, 900), QPointF(150, -40)):
            rect = resize_rect(self.RECT, handle, pos, 5)
            assert rect.w >= 5
            assert rect.h >= 5


class TestClipToFrame:
    """Tests for clipping boxes to the image."""

    def test_inside_box_unchanged(self):
        box = BoxAnnotation(id="a", label_id="cat", x=0.5, y=0.5, w=0.2, h=0.2)

        result = clip_to_frame(box)

        assert result.geometry == pytest.approx(box.geometry)

    def test_overhanging_box_clipped(self):
        box = BoxAnnotation(id="a", label_id="cat", x=0.0, y=0.5, w=0.4, h=0.2)

        result = clip_to_frame(box)

        assert result.id == "a"
        assert result.geometry == pytest.approx((0.1, 0.5, 0.2, 0.2))

    def test_box_fully_outside(self):
        box = BoxAnnotation(id="a", label_id="cat", x=1.5, y=0.5, w=0.2, h=0.2)

        assert clip_to_frame(box) is None
