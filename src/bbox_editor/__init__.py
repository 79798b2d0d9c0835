"""
bbox-editor - Interactive editing core for bounding-box image annotations.

Built on PyQt6 for creating, moving and resizing boxes over an image, with
edge snapping and per-image undo/redo. Rendering and storage are left to
the host application.
"""

__version__ = "1.0.0"
__author__ = "bbox-editor Team"
