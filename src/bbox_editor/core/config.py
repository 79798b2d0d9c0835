"""Configuration management for the box editor."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

# Default configuration file path
DEFAULT_CONFIG_PATH = Path("bbox_editor.yaml")


@dataclass
class EditorConfig:
    """
    Editor behaviour settings supplied by the host.

    Distances marked as screen pixels are divided by the current zoom
    before use, so they feel the same at every zoom level.
    """

    snap_distance: float = 12.0  # Snap distance in screen pixels (0 = disabled)
    min_box_size: float = 5.0  # Minimum box width/height in image pixels
    handle_radius: float = 5.0  # Corner handle hit radius in screen pixels
    max_history_entries: int = 100  # Maximum undo/redo history entries
    undo_key: str = "Ctrl+Z"
    redo_key: str = "Ctrl+Shift+Z"
    select_tool_key: str = "V"
    draw_tool_key: str = "R"
    pan_tool_key: str = "H"
    magic_box_tool_key: str = "M"
    delete_key: str = "Delete"  # Handled by the host (empty to disable)

    def __post_init__(self) -> None:
        if self.snap_distance < 0:
            raise ValueError(f"snap_distance must not be negative, got {self.snap_distance}")
        if self.min_box_size < 0:
            raise ValueError(f"min_box_size must not be negative, got {self.min_box_size}")
        if self.max_history_entries < 1:
            raise ValueError(
                f"max_history_entries must be at least 1, got {self.max_history_entries}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {
            "snapDistance": self.snap_distance,
            "minBoxSize": self.min_box_size,
            "handleRadius": self.handle_radius,
            "maxHistoryEntries": self.max_history_entries,
            "undoKey": self.undo_key,
            "redoKey": self.redo_key,
            "selectToolKey": self.select_tool_key,
            "drawToolKey": self.draw_tool_key,
            "panToolKey": self.pan_tool_key,
            "magicBoxToolKey": self.magic_box_tool_key,
            "deleteKey": self.delete_key,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EditorConfig:
        """Create config from dictionary."""
        return cls(
            snap_distance=data.get("snapDistance", 12.0),
            min_box_size=data.get("minBoxSize", 5.0),
            handle_radius=data.get("handleRadius", 5.0),
            max_history_entries=data.get("maxHistoryEntries", 100),
            undo_key=data.get("undoKey", "Ctrl+Z"),
            redo_key=data.get("redoKey", "Ctrl+Shift+Z"),
            select_tool_key=data.get("selectToolKey", "V"),
            draw_tool_key=data.get("drawToolKey", "R"),
            pan_tool_key=data.get("panToolKey", "H"),
            magic_box_tool_key=data.get("magicBoxToolKey", "M"),
            delete_key=data.get("deleteKey", "Delete"),
        )


class ConfigManager:
    """
    Manager for loading and saving editor configuration.

    Handles YAML serialization and provides a clean interface
    for configuration access.
    """

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Optional[EditorConfig] = None

    @property
    def config(self) -> EditorConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def load(self) -> EditorConfig:
        """
        Load configuration from file.

        Returns:
            EditorConfig instance with loaded or default values
        """
        if not self.config_path.exists():
            logger.info(f"Config file not found at {self.config_path}, using defaults")
            return EditorConfig()

        try:
            with open(self.config_path, "r") as f:
                data = yaml.safe_load(f) or {}
            logger.info(f"Loaded configuration from {self.config_path}")
            return EditorConfig.from_dict(data)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing config file: {e}")
            return EditorConfig()
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Error loading config: {e}")
            return EditorConfig()

    def save(self, config: Optional[EditorConfig] = None) -> bool:
        """
        Save configuration to file.

        Args:
            config: Configuration to save, or use current config

        Returns:
            True if save was successful
        """
        if config is not None:
            self._config = config

        if self._config is None:
            logger.warning("No configuration to save")
            return False

        try:
            with open(self.config_path, "w") as f:
                yaml.dump(self._config.to_dict(), f, default_flow_style=False)
            logger.info(f"Saved configuration to {self.config_path}")
            return True
        except OSError as e:
            logger.error(f"Error saving config: {e}")
            return False

    def update(self, **kwargs: Any) -> None:
        """
        Update configuration with new values.

        The merged config is validated before it replaces the current one
        or is written to disk.

        Args:
            **kwargs: Key-value pairs to update

        Raises:
            ValueError: If a value is out of range; nothing is changed
        """
        known_keys = {f.name for f in fields(EditorConfig)}
        changes = {}
        for key, value in kwargs.items():
            if key in known_keys:
                changes[key] = value
            else:
                logger.warning(f"Unknown config key: {key}")
        self._config = replace(self.config, **changes)
        self.save()
