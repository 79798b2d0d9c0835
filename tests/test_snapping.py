"""Tests for the snap engine."""

import pytest

from bbox_editor.core.models import BoxAnnotation
from bbox_editor.core.snapping import (
    SnapResult,
    build_snap_lines,
    closest_snap,
    image_threshold,
)


class TestClosestSnap:
    """Tests for closest_snap."""

    @pytest.mark.parametrize("threshold", [0, -1, -100.5])
    def test_disabled_threshold(self, threshold):
        """Test that a non-positive threshold never snaps."""
        result = closest_snap(5, [5, 4, 6], threshold)

        assert result == SnapResult(5, False)

    def test_first_of_equal_distances_wins(self):
        """Test that ties go to the earliest candidate."""
        result = closest_snap(5, [0, 10, 20], 6)

        assert result == SnapResult(0, True)

    def test_closest_candidate_wins(self):
        result = closest_snap(5, [0, 7, 4.5, 20], 6)

        assert result == SnapResult(4.5, True)

    def test_threshold_is_exclusive(self):
        """Test that a candidate exactly at the threshold does not qualify."""
        result = closest_snap(5, [11], 6)

        assert result == SnapResult(5, False)

    def test_no_candidates_in_range(self):
        result = closest_snap(50, [0, 100], 10)

        assert result == SnapResult(50, False)

    def test_empty_candidates(self):
        assert closest_snap(3.5, [], 10) == SnapResult(3.5, False)

    def test_exact_match(self):
        result = closest_snap(100, [90, 100, 101], 5)

        assert result == SnapResult(100, True)


class TestSnapLines:
    """Tests for candidate line construction."""

    def test_image_bounds_only(self, frame):
        lines = build_snap_lines([], frame)

        assert lines.x == [0, 1000]
        assert lines.y == [0, 500]

    def test_includes_box_edges(self, frame, sample_boxes):
        """Test that every box contributes both edges on each axis."""
        lines = build_snap_lines(sample_boxes, frame)

        assert lines.x == pytest.approx([0, 1000, 100, 200, 600, 800])
        assert lines.y == pytest.approx([0, 500, 100, 200, 300, 400])

    def test_excludes_edited_box(self, frame, sample_boxes):
        lines = build_snap_lines(sample_boxes, frame, exclude_id="a")

        assert lines.x == pytest.approx([0, 1000, 600, 800])
        assert lines.y == pytest.approx([0, 500, 300, 400])

    def test_unknown_exclude_id(self, frame):
        boxes = [BoxAnnotation(id="a", label_id=None, x=0.5, y=0.5, w=0.1, h=0.1)]

        lines = build_snap_lines(boxes, frame, exclude_id="zzz")

        assert len(lines.x) == 4
        assert len(lines.y) == 4


class TestImageThreshold:
    """Tests for screen-to-image threshold conversion."""

    def test_zoom_in_shrinks_threshold(self):
        assert image_threshold(12, 2.0) == pytest.approx(6)

    def test_zoom_out_grows_threshold(self):
        assert image_threshold(12, 0.5) == pytest.approx(24)

    def test_disabled_stays_disabled(self):
        assert image_threshold(0, 3.0) == 0
