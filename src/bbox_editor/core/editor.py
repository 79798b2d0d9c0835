"""Interaction state machine for editing bounding boxes over an image."""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from PyQt6.QtCore import QObject, QPointF, pyqtSignal

from .commands import CommandDispatcher, EditorCommand
from .config import EditorConfig
from .geometry import (
    normalized_to_pixel, pixel_to_normalized, rect_from_points,
    resize_rect, viewport_to_image
)
from .gestures import IDLE, Creating, Gesture, Idle, Moving, Panning, Resizing
from .history import EXTERNAL_CHANGE, HistoryManager
from .models import (
    BoxAnnotation, HitTarget, ImageFrame, LabelClass, PixelRect, ResizeHandle,
    SnapGuides, ToolMode, ViewTransform, find_annotation, replace_annotation
)
from .snapping import build_snap_lines, closest_snap, image_threshold

logger = logging.getLogger(__name__)


class AnnotationEditor(QObject):
    """
    Editing core for axis-aligned box annotations on one image at a time.

    The host feeds pointer events in viewport coordinates and receives every
    result through signals. The annotation list is never edited in place:
    each change replaces it with a new list, which is emitted through
    annotations_changed and compared by the history manager.
    """

    # Signals
    annotations_changed = pyqtSignal(object)  # Emits list of BoxAnnotation
    pan_changed = pyqtSignal(QPointF)
    selection_changed = pyqtSignal(object)  # Emits annotation id or None
    magic_box_requested = pyqtSignal(object)  # Emits PixelRect
    guides_changed = pyqtSignal(object)  # Emits SnapGuides
    tool_mode_changed = pyqtSignal(object)  # Emits ToolMode

    def __init__(self, config: Optional[EditorConfig] = None, parent: Optional[QObject] = None) -> None:
        """
        Initialize the editor.

        Args:
            config: Editor settings, defaults if omitted
            parent: Optional Qt parent object
        """
        super().__init__(parent)
        self.config = config if config is not None else EditorConfig()
        self.history = HistoryManager(self.config.max_history_entries)

        self._frame: Optional[ImageFrame] = None
        self._image_id: Optional[str] = None
        self._annotations: List[BoxAnnotation] = []
        self._revision = 0

        self._labels: List[LabelClass] = []
        self._current_label_id: Optional[str] = None
        self._tool_mode = ToolMode.SELECT
        self._view = ViewTransform()
        self._snap_distance = self.config.snap_distance

        self._selected_id: Optional[str] = None
        self._gesture: Gesture = IDLE
        self._guides = SnapGuides()

    # === Session State ===

    @property
    def frame(self) -> Optional[ImageFrame]:
        return self._frame

    @property
    def image_id(self) -> Optional[str]:
        return self._image_id

    @property
    def annotations(self) -> List[BoxAnnotation]:
        """Copy of the live annotation list."""
        return list(self._annotations)

    @property
    def revision(self) -> int:
        """Counter bumped on every replacement of the annotation list."""
        return self._revision

    @property
    def labels(self) -> List[LabelClass]:
        return list(self._labels)

    @property
    def current_label_id(self) -> Optional[str]:
        return self._current_label_id

    @property
    def tool_mode(self) -> ToolMode:
        return self._tool_mode

    @property
    def view(self) -> ViewTransform:
        return ViewTransform(self._view.zoom, QPointF(self._view.pan))

    @property
    def snap_distance(self) -> float:
        return self._snap_distance

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def gesture(self) -> Gesture:
        """The active gesture state."""
        return self._gesture

    @property
    def guides(self) -> SnapGuides:
        return self._guides

    @property
    def preview_rect(self) -> Optional[PixelRect]:
        """Rectangle being drawn, in image pixels, while creating."""
        if isinstance(self._gesture, Creating):
            return self._gesture.rect
        return None

    def load_image(
        self,
        frame: ImageFrame,
        annotations: Sequence[BoxAnnotation],
        image_id: Optional[str] = None
    ) -> None:
        """
        Start an editing session on an image.

        Any active gesture is discarded and undo/redo history is cleared,
        since history never spans images.

        Args:
            frame: Pixel dimensions of the image
            annotations: The image's current annotations
            image_id: Optional host identifier of the image
        """
        self._gesture = IDLE
        self._frame = frame
        self._image_id = image_id
        self._annotations = list(annotations)
        self._revision += 1
        self.history.reset()
        self._set_guides(SnapGuides())
        self._select(None)
        logger.info(
            f"Editing image {image_id or '<unnamed>'} "
            f"({frame.pixel_width}x{frame.pixel_height}, {len(self._annotations)} boxes)"
        )

    def set_annotations(self, annotations: Sequence[BoxAnnotation]) -> None:
        """
        Replace the annotation list from the host (batch labeling, delete, ...).

        Recorded as one undo entry. Not echoed through annotations_changed.

        While a create, move or resize gesture is active the change is not
        recorded on its own: it becomes part of that gesture's entry, so one
        undo reverts both.
        """
        self._replace(list(annotations), notify=False)
        self._drop_stale_selection()

    def set_labels(self, labels: Sequence[LabelClass]) -> None:
        """
        Set the available label classes.

        Falls back to the first label if the current one is gone.
        """
        self._labels = list(labels)
        if not any(label.id == self._current_label_id for label in self._labels):
            self._current_label_id = self._labels[0].id if self._labels else None

    def set_current_label(self, label_id: Optional[str]) -> None:
        """Set the label class assigned to newly drawn boxes."""
        self._current_label_id = label_id

    def label_for(self, annotation: BoxAnnotation) -> Optional[LabelClass]:
        """Get the label class an annotation refers to."""
        for label in self._labels:
            if label.id == annotation.label_id:
                return label
        return None

    def set_tool_mode(self, mode: ToolMode) -> None:
        """
        Switch the active tool.

        A gesture in progress is finished first, as if the pointer was released.
        """
        if mode == self._tool_mode:
            return
        if not isinstance(self._gesture, Idle):
            self.pointer_up()
        self._tool_mode = mode
        logger.debug(f"Tool mode: {mode.value}")
        self.tool_mode_changed.emit(mode)

    def set_view(self, zoom: float, pan: QPointF) -> None:
        """Update the zoom and pan the host renders with."""
        self._view = ViewTransform(zoom, pan)

    def set_snap_distance(self, distance: float) -> None:
        """Set the snap distance in screen pixels (0 disables snapping)."""
        self._snap_distance = max(0.0, distance)

    def select(self, annotation_id: Optional[str]) -> None:
        """Select an annotation by id, or clear the selection with None."""
        if annotation_id is not None and find_annotation(self._annotations, annotation_id) is None:
            logger.warning(f"Cannot select missing annotation: {annotation_id}")
            return
        self._select(annotation_id)

    # === Hit Testing ===

    def hit_test(self, pos: QPointF) -> Optional[HitTarget]:
        """
        Find what lies under an image-space position.

        Corner handles of the selected box take precedence, then box bodies
        from topmost (last in the list) down.
        """
        if self._frame is None:
            return None

        selected = self._selected_annotation()
        if selected is not None:
            handle = self._handle_at(normalized_to_pixel(selected, self._frame), pos)
            if handle is not None:
                return HitTarget(selected.id, handle)

        for annotation in reversed(self._annotations):
            if normalized_to_pixel(annotation, self._frame).contains(pos):
                return HitTarget(annotation.id)
        return None

    def _handle_at(self, rect: PixelRect, pos: QPointF) -> Optional[ResizeHandle]:
        """Get the corner handle within reach of a position."""
        radius = self.config.handle_radius / self._view.zoom
        for handle in ResizeHandle:
            corner = rect.corner(handle)
            if math.hypot(corner.x() - pos.x(), corner.y() - pos.y()) <= radius:
                return handle
        return None

    # === Pointer Events ===

    def pointer_down(self, pos: QPointF) -> None:
        """
        Start a gesture according to the active tool.

        Args:
            pos: Pointer position in viewport coordinates
        """
        if not isinstance(self._gesture, Idle):
            logger.debug("Ignoring pointer-down while a gesture is active")
            return
        if self._frame is None:
            return

        if self._tool_mode == ToolMode.PAN:
            self._start(Panning(QPointF(pos)))
            return

        image_pos = self._to_image(pos)

        if self._tool_mode in (ToolMode.DRAW, ToolMode.MAGIC_BOX):
            self._select(None)
            self._start(Creating(image_pos, magic=self._tool_mode == ToolMode.MAGIC_BOX))
            return

        target = self.hit_test(image_pos)
        if target is None:
            self._select(None)
            return

        annotation = find_annotation(self._annotations, target.annotation_id)
        if target.handle is not None:
            self._start(Resizing(
                annotation_id=target.annotation_id,
                handle=target.handle,
                start_rect=normalized_to_pixel(annotation, self._frame),
                start_geometry=annotation.geometry,
            ))
            return

        self._select(target.annotation_id)
        self._start(Moving(
            annotation_id=target.annotation_id,
            start_rect=normalized_to_pixel(annotation, self._frame),
            start_geometry=annotation.geometry,
            anchor=image_pos,
        ))

    def pointer_move(self, pos: QPointF) -> None:
        """
        Advance the active gesture.

        Args:
            pos: Pointer position in viewport coordinates
        """
        gesture = self._gesture
        if isinstance(gesture, Idle):
            return

        if isinstance(gesture, Panning):
            self._pan(gesture, pos)
            return

        image_pos = self._to_image(pos)
        if isinstance(gesture, Creating):
            self._update_creation(gesture, image_pos)
        elif isinstance(gesture, Moving):
            self._update_move(gesture, image_pos)
        elif isinstance(gesture, Resizing):
            self._update_resize(gesture, image_pos)

    def pointer_up(self) -> None:
        """Finish the active gesture and commit at most one history entry."""
        gesture = self._gesture
        if isinstance(gesture, Idle):
            return

        if isinstance(gesture, Creating):
            self._finish_creation(gesture)

        self._gesture = IDLE
        if not isinstance(gesture, Panning):
            self.history.end_gesture(self._annotations)
        self._set_guides(SnapGuides())
        logger.debug(f"Gesture finished: {gesture.description}")

    def pointer_leave(self) -> None:
        """The pointer left the surface; treated exactly like a release."""
        self.pointer_up()

    # === Undo / Redo ===

    def undo(self) -> bool:
        """
        Undo the last committed change.

        Returns:
            True if something was undone
        """
        restored = self.history.undo(self._annotations)
        if restored is None:
            return False
        self._replace(restored, replay=True)
        self._drop_stale_selection()
        return True

    def redo(self) -> bool:
        """
        Redo the last undone change.

        Returns:
            True if something was redone
        """
        restored = self.history.redo(self._annotations)
        if restored is None:
            return False
        self._replace(restored, replay=True)
        self._drop_stale_selection()
        return True

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def install_commands(self, dispatcher: CommandDispatcher) -> None:
        """Register undo/redo and tool switching handlers on a dispatcher."""
        dispatcher.register(EditorCommand.UNDO, self.undo)
        dispatcher.register(EditorCommand.REDO, self.redo)
        dispatcher.register(EditorCommand.SELECT_TOOL, lambda: self.set_tool_mode(ToolMode.SELECT))
        dispatcher.register(EditorCommand.DRAW_TOOL, lambda: self.set_tool_mode(ToolMode.DRAW))
        dispatcher.register(EditorCommand.PAN_TOOL, lambda: self.set_tool_mode(ToolMode.PAN))
        dispatcher.register(EditorCommand.MAGIC_BOX_TOOL, lambda: self.set_tool_mode(ToolMode.MAGIC_BOX))

    # === Gesture Handlers ===

    def _start(self, gesture: Gesture) -> None:
        """Enter a gesture state, snapshotting history for editing gestures."""
        if not isinstance(gesture, Panning):
            self.history.begin_gesture(self._annotations, gesture.description)
        self._gesture = gesture
        logger.debug(f"Gesture started: {gesture.description}")

    def _abort(self, reason: str) -> None:
        """End the active gesture early, keeping whatever it already changed."""
        logger.warning(f"Aborting {self._gesture.description}: {reason}")
        self._gesture = IDLE
        self.history.end_gesture(self._annotations)
        self._set_guides(SnapGuides())
        self._drop_stale_selection()

    def _pan(self, gesture: Panning, pos: QPointF) -> None:
        """Shift the pan offset by the raw viewport delta."""
        delta = pos - gesture.last_pos
        pan = self._view.pan + delta
        self._view = ViewTransform(self._view.zoom, pan)
        self._gesture = Panning(QPointF(pos))
        self.pan_changed.emit(QPointF(pan))

    def _update_creation(self, gesture: Creating, pos: QPointF) -> None:
        """Span the preview rectangle from the anchor to the snapped pointer."""
        lines = build_snap_lines(self._annotations, self._frame)
        threshold = self._threshold()
        snap_x = closest_snap(pos.x(), lines.x, threshold)
        snap_y = closest_snap(pos.y(), lines.y, threshold)

        current = QPointF(snap_x.value, snap_y.value)
        self._gesture = replace(gesture, rect=rect_from_points(gesture.anchor, current))
        self._set_guides(SnapGuides(
            snap_x.value if snap_x.snapped else None,
            snap_y.value if snap_y.snapped else None,
        ))

    def _finish_creation(self, gesture: Creating) -> None:
        """Turn a finished drag into a box, or hand it off in magic-box mode."""
        rect = gesture.rect
        min_size = self.config.min_box_size
        if rect is None or rect.w <= min_size or rect.h <= min_size:
            logger.debug("Discarding drawn box below minimum size")
            return

        if gesture.magic:
            self.magic_box_requested.emit(rect)
            return

        if self._current_label_id is None:
            logger.warning("Creating box without a label class")

        x, y, w, h = pixel_to_normalized(rect, self._frame)
        box = BoxAnnotation.create(self._current_label_id, x, y, w, h)
        self._replace(self._annotations + [box], description=gesture.description)
        self._select(box.id)

    def _update_move(self, gesture: Moving, pos: QPointF) -> None:
        """Translate the box by the pointer delta, snapping its edges."""
        annotation = find_annotation(self._annotations, gesture.annotation_id)
        if annotation is None:
            self._abort(f"annotation {gesture.annotation_id} no longer exists")
            return

        lines = build_snap_lines(self._annotations, self._frame, exclude_id=gesture.annotation_id)
        threshold = self._threshold()
        start = gesture.start_rect

        x, guide_x = self._snap_span(start.x + (pos.x() - gesture.anchor.x()), start.w, lines.x, threshold)
        y, guide_y = self._snap_span(start.y + (pos.y() - gesture.anchor.y()), start.h, lines.y, threshold)

        # Size is carried over unconverted; back at the start position the
        # original geometry is restored exactly
        if x == start.x and y == start.y:
            geometry = gesture.start_geometry
        else:
            nx, ny, _, _ = pixel_to_normalized(PixelRect(x, y, start.w, start.h), self._frame)
            geometry = (nx, ny, gesture.start_geometry[2], gesture.start_geometry[3])

        self._apply_geometry(annotation, geometry)
        self._set_guides(SnapGuides(guide_x, guide_y))

    @staticmethod
    def _snap_span(
        start: float,
        size: float,
        lines: Sequence[float],
        threshold: float
    ) -> Tuple[float, Optional[float]]:
        """
        Snap a moving span by its leading edge, else by its trailing edge.

        Returns:
            Tuple of (new start coordinate, guide line or None)
        """
        leading = closest_snap(start, lines, threshold)
        if leading.snapped:
            return leading.value, leading.value

        trailing = closest_snap(start + size, lines, threshold)
        if trailing.snapped:
            return trailing.value - size, trailing.value

        return start, None

    def _update_resize(self, gesture: Resizing, pos: QPointF) -> None:
        """Drag one corner to the snapped pointer, keeping the opposite one fixed."""
        annotation = find_annotation(self._annotations, gesture.annotation_id)
        if annotation is None:
            self._abort(f"annotation {gesture.annotation_id} no longer exists")
            return

        lines = build_snap_lines(self._annotations, self._frame, exclude_id=gesture.annotation_id)
        threshold = self._threshold()
        snap_x = closest_snap(pos.x(), lines.x, threshold)
        snap_y = closest_snap(pos.y(), lines.y, threshold)

        rect = resize_rect(
            gesture.start_rect,
            gesture.handle,
            QPointF(snap_x.value, snap_y.value),
            self.config.min_box_size,
        )
        # Back at the start rectangle the original geometry is restored exactly
        if rect.is_close(gesture.start_rect):
            self._apply_geometry(annotation, gesture.start_geometry)
        elif not rect.is_valid:
            logger.debug(f"Rejected degenerate rectangle {rect} for {annotation.id}")
        else:
            self._apply_geometry(annotation, pixel_to_normalized(rect, self._frame))
        self._set_guides(SnapGuides(
            snap_x.value if snap_x.snapped else None,
            snap_y.value if snap_y.snapped else None,
        ))

    def _apply_geometry(
        self,
        annotation: BoxAnnotation,
        geometry: Tuple[float, float, float, float]
    ) -> None:
        """Write new normalized geometry back to one annotation."""
        updated = annotation.with_geometry(*geometry)
        if updated == annotation:
            return
        self._replace(replace_annotation(self._annotations, updated))

    # === Internal State ===

    def _replace(
        self,
        annotations: List[BoxAnnotation],
        replay: bool = False,
        description: str = EXTERNAL_CHANGE,
        notify: bool = True
    ) -> None:
        """
        Swap in a new annotation list.

        Args:
            annotations: The new list; never mutated afterwards
            replay: True when restoring a list from undo/redo
            description: History label if the change is recorded on its own
            notify: Emit annotations_changed
        """
        previous = self._annotations
        self._annotations = annotations
        self._revision += 1
        self.history.observe(previous, annotations, replay=replay, description=description)
        if notify:
            self.annotations_changed.emit(list(annotations))

    def _select(self, annotation_id: Optional[str]) -> None:
        if annotation_id == self._selected_id:
            return
        self._selected_id = annotation_id
        self.selection_changed.emit(annotation_id)

    def _selected_annotation(self) -> Optional[BoxAnnotation]:
        if self._selected_id is None:
            return None
        return find_annotation(self._annotations, self._selected_id)

    def _drop_stale_selection(self) -> None:
        """Clear the selection if its annotation is gone."""
        if self._selected_id is not None and self._selected_annotation() is None:
            self._select(None)

    def _set_guides(self, guides: SnapGuides) -> None:
        if guides == self._guides and guides.is_empty:
            return
        self._guides = guides
        self.guides_changed.emit(guides)

    def _to_image(self, pos: QPointF) -> QPointF:
        return viewport_to_image(pos, self._view.pan, self._view.zoom)

    def _threshold(self) -> float:
        return image_threshold(self._snap_distance, self._view.zoom)
