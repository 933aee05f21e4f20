# ==============================================================================
# DC6 HARVESTER - CONFIGURATION MODULE
# ==============================================================================
# Centralized configuration management for the application.
#
# This module handles:
#   - Loading/saving configuration from JSON file
#   - Default values for all settings
#   - Validation of quality, color and thread settings
#
# Configuration is stored in the per-user config directory (see Paths).
# Command line options override these values for a single run.
#
# Usage:
#   from dc6harvester.core.config import Config
#   config = Config()
#   config.load()
#   print(config.output_format)
#   config.palette_path = "C:/palettes/units_pal.dat"
#   config.save()
# ==============================================================================

import os
import json
from typing import Optional, Dict, Any, Tuple

from PIL import ImageColor

from .paths import Paths


# ==============================================================================
# DEFAULT CONFIGURATION VALUES
# ==============================================================================
# These are used when no config file exists or when values are missing.

DEFAULT_CONFIG = {
    # -------------------------------------------------------------------------
    # INPUT
    # -------------------------------------------------------------------------
    # 768 byte BGR palette file ("" = grayscale fallback)
    "palette_path": "",

    # -------------------------------------------------------------------------
    # OUTPUT
    # -------------------------------------------------------------------------
    # Output image format (any extension Pillow can write)
    "output_format": "png",

    # Output image quality 0-100, -1 = format default
    "image_quality": -1,

    # Color for pixels no run writes (any Pillow color string)
    "transparent_color": "#00000000",

    # Where to save output files ("" = next to the input file)
    "output_dir": "",

    # Save multiframe images in a directory named after the input file
    "separate_dir": False,

    # -------------------------------------------------------------------------
    # PROCESSING
    # -------------------------------------------------------------------------
    # Number of files decoded in parallel
    "decode_threads": 1,

    # -------------------------------------------------------------------------
    # ADVANCED
    # -------------------------------------------------------------------------
    # Enable debug logging
    "debug_mode": False,
}

MIN_QUALITY = 0
MAX_QUALITY = 100


def parse_color(value: str) -> Optional[Tuple[int, int, int, int]]:
    """
    Parse a Pillow color string ("#rrggbbaa", "magenta", "rgb(...)").

    Returns:
        RGBA tuple, or None if the string is not a valid color
    """
    try:
        color = ImageColor.getrgb(value)
    except (ValueError, AttributeError):
        return None
    if len(color) == 3:
        color = color + (255,)
    return tuple(color)


# ==============================================================================
# CONFIGURATION CLASS
# ==============================================================================
class Config:
    """
    Configuration manager for DC6 Harvester.

    Handles loading, saving, and accessing application settings.
    Settings are stored in a JSON file and can be accessed as
    properties on this object.

    Attributes:
        config_path: Path to the configuration file
        data: Dictionary containing all settings

    Example:
        >>> config = Config()
        >>> config.load()
        >>> print(config.output_format)
        >>> config.image_quality = 90
        >>> config.save()
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to config file. If None, uses default location.
        """
        self.config_path = config_path or Paths.get_config_path()

        # Initialize with defaults
        self.data: Dict[str, Any] = DEFAULT_CONFIG.copy()

        # Track if config has been modified
        self._modified = False

    # -------------------------------------------------------------------------
    # LOADING AND SAVING
    # -------------------------------------------------------------------------

    def load(self) -> bool:
        """
        Load configuration from file.

        If the file doesn't exist, defaults are used.
        Missing keys are filled with defaults.

        Returns:
            True if file was loaded, False if using defaults
        """
        if not os.path.isfile(self.config_path):
            return False

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)

            # Merge with defaults (so new settings get default values)
            for key, value in loaded.items():
                if key in self.data:
                    self.data[key] = value

            self._validate()

            if self.debug_mode:
                print(f"[INFO] Loaded config from {self.config_path}")
            self._modified = False
            return True

        except json.JSONDecodeError as e:
            print(f"[ERROR] Invalid config file: {e}")
            return False
        except OSError as e:
            print(f"[ERROR] Failed to load config: {e}")
            return False

    def _validate(self):
        """Reset or clamp loaded values the property setters would reject."""
        quality = self.data.get('image_quality')
        if (not isinstance(quality, int) or isinstance(quality, bool)
                or (quality != -1 and not MIN_QUALITY <= quality <= MAX_QUALITY)):
            print(f"[WARN] invalid image_quality in config: {quality!r}, using default")
            self.data['image_quality'] = DEFAULT_CONFIG['image_quality']

        threads = self.data.get('decode_threads')
        if not isinstance(threads, int) or isinstance(threads, bool):
            print(f"[WARN] invalid decode_threads in config: {threads!r}, using default")
            threads = DEFAULT_CONFIG['decode_threads']
        self.data['decode_threads'] = max(1, min(16, threads))

    def save(self) -> bool:
        """
        Save configuration to file.

        Creates the directory if it doesn't exist.

        Returns:
            True if saved successfully
        """
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self.config_path)), exist_ok=True)

            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(self.data, f, indent=4, sort_keys=True)

            print(f"[INFO] Saved config to {self.config_path}")
            self._modified = False
            return True

        except OSError as e:
            print(f"[ERROR] Failed to save config: {e}")
            return False

    # -------------------------------------------------------------------------
    # PROPERTY ACCESS
    # -------------------------------------------------------------------------
    # These properties provide type-safe access to common settings

    @property
    def palette_path(self) -> str:
        """Get the palette file path."""
        return self.data.get('palette_path', '')

    @palette_path.setter
    def palette_path(self, value: str):
        self.data['palette_path'] = value or ''
        self._modified = True

    @property
    def output_format(self) -> str:
        """Get the output image format."""
        return self.data.get('output_format', 'png')

    @output_format.setter
    def output_format(self, value: str):
        self.data['output_format'] = value.lower().lstrip('.')
        self._modified = True

    @property
    def image_quality(self) -> int:
        """Get the output image quality (-1 = default)."""
        return self.data.get('image_quality', -1)

    @image_quality.setter
    def image_quality(self, value: int):
        """Set the output image quality."""
        value = int(value)
        if value != -1 and not MIN_QUALITY <= value <= MAX_QUALITY:
            raise ValueError(f"image_quality must be -1 or in range {MIN_QUALITY}-{MAX_QUALITY}")
        self.data['image_quality'] = value
        self._modified = True

    @property
    def transparent_color(self) -> str:
        """Get the transparent fill color string."""
        return self.data.get('transparent_color', '#00000000')

    @transparent_color.setter
    def transparent_color(self, value: str):
        """Set the transparent fill color."""
        if parse_color(value) is None:
            raise ValueError(f"invalid color: {value}")
        self.data['transparent_color'] = value
        self._modified = True

    @property
    def transparent_rgba(self) -> Tuple[int, int, int, int]:
        """Transparent fill color as RGBA, default if the stored value is invalid."""
        color = parse_color(self.transparent_color)
        if color is None:
            print(f"[WARN] invalid transparent_color in config: {self.transparent_color}")
            return (0, 0, 0, 0)
        return color

    @property
    def output_dir(self) -> str:
        """Get the output directory ("" = next to input)."""
        return self.data.get('output_dir', '')

    @output_dir.setter
    def output_dir(self, value: str):
        self.data['output_dir'] = value or ''
        self._modified = True

    @property
    def separate_dir(self) -> bool:
        return self.data.get('separate_dir', False)

    @separate_dir.setter
    def separate_dir(self, value: bool):
        self.data['separate_dir'] = bool(value)
        self._modified = True

    @property
    def decode_threads(self) -> int:
        """Get the number of decode threads."""
        return self.data.get('decode_threads', 1)

    @decode_threads.setter
    def decode_threads(self, value: int):
        """Set the number of decode threads."""
        self.data['decode_threads'] = max(1, min(16, int(value)))
        self._modified = True

    @property
    def debug_mode(self) -> bool:
        """Check if debug mode is enabled."""
        return self.data.get('debug_mode', False)

    @debug_mode.setter
    def debug_mode(self, value: bool):
        self.data['debug_mode'] = bool(value)
        self._modified = True


# ==============================================================================
# GLOBAL CONFIG INSTANCE
# ==============================================================================
# This provides a singleton-like access to configuration

_global_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Creates and loads config on first call.
    """
    global _global_config

    if _global_config is None:
        _global_config = Config()
        _global_config.load()

    return _global_config
