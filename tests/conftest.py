"""Pytest configuration and fixtures."""

import os
import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from bbox_editor.core.models import BoxAnnotation, ImageFrame, LabelClass  # noqa: E402


@pytest.fixture(scope="session")
def qapp():
    """Create a QApplication for tests that need it."""
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])

    yield app


@pytest.fixture
def temp_dir(tmp_path):
    """Provide a temporary directory for tests."""
    return tmp_path


@pytest.fixture
def frame():
    """A 1000x500 pixel image."""
    return ImageFrame(pixel_width=1000, pixel_height=500)


@pytest.fixture
def labels():
    """Two label classes."""
    return [
        LabelClass(id="cat", name="Cat", color="#ef4444"),
        LabelClass(id="dog", name="Dog", color="#3b82f6"),
    ]


@pytest.fixture
def sample_boxes():
    """
    Two boxes on the 1000x500 frame.

    a: pixels x 100..200, y 100..200
    b: pixels x 600..800, y 300..400
    """
    return [
        BoxAnnotation(id="a", label_id="cat", x=0.15, y=0.3, w=0.1, h=0.2),
        BoxAnnotation(id="b", label_id="dog", x=0.7, y=0.7, w=0.2, h=0.2),
    ]


@pytest.fixture
def sample_config_file(tmp_path):
    """Create a sample editor config file."""
    yaml_path = tmp_path / "bbox_editor.yaml"
    yaml_path.write_text(
        "snapDistance: 8\n"
        "minBoxSize: 4\n"
        "maxHistoryEntries: 20\n"
        "undoKey: Ctrl+Z\n"
    )
    return yaml_path
