# ==============================================================================
# DC6 HARVESTER - PATH UTILITIES
# ==============================================================================
# Centralized path handling that works for both development and frozen exe.
#
# User data (config) goes in the platform's per-user config directory.
#
# Usage:
#   from dc6harvester.core.paths import Paths
#   config_path = Paths.get_config_path()
# ==============================================================================

import os
import sys
from typing import Optional


class Paths:
    """
    Centralized path management for DC6 Harvester.

    User data (config) is stored in:
    - Windows: %APPDATA%/DC6Harvester/
    - Linux: ~/.config/DC6Harvester/
    - macOS: ~/Library/Application Support/DC6Harvester/
    """

    # Application name for folder creation
    APP_NAME = "DC6Harvester"

    # Cache for computed paths
    _app_dir: Optional[str] = None
    _user_data_dir: Optional[str] = None

    @classmethod
    def is_frozen(cls) -> bool:
        """
        Check if running as a frozen executable.

        Returns:
            True if running as PyInstaller exe, False if running as script
        """
        return getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS')

    @classmethod
    def get_app_dir(cls) -> str:
        """
        Get the application directory.

        For script: The project root directory
        For exe: The directory containing the executable
        """
        if cls._app_dir is None:
            if cls.is_frozen():
                cls._app_dir = os.path.dirname(sys.executable)
            else:
                # This file is in dc6harvester/core/, so go up 3 levels
                cls._app_dir = os.path.dirname(
                    os.path.dirname(
                        os.path.dirname(os.path.abspath(__file__))
                    )
                )
        return cls._app_dir

    @classmethod
    def get_user_data_dir(cls) -> str:
        """
        Get the user data directory.

        Only the path is computed here. Config.save() creates the directory
        the first time settings are written.

        Returns:
            Absolute path to user data directory
        """
        if cls._user_data_dir is None:
            if sys.platform == 'win32':
                base = os.environ.get('APPDATA', os.path.expanduser('~'))
                cls._user_data_dir = os.path.join(base, cls.APP_NAME)
            elif sys.platform == 'darwin':
                cls._user_data_dir = os.path.join(
                    os.path.expanduser('~'),
                    'Library', 'Application Support', cls.APP_NAME
                )
            else:
                base = os.environ.get('XDG_CONFIG_HOME',
                                      os.path.join(os.path.expanduser('~'), '.config'))
                cls._user_data_dir = os.path.join(base, cls.APP_NAME)

        return cls._user_data_dir

    @classmethod
    def get_config_path(cls) -> str:
        """
        Get the path to the configuration file.

        Returns:
            Absolute path to config.json
        """
        return os.path.join(cls.get_user_data_dir(), 'config.json')

    @classmethod
    def get_resource_path(cls, relative_path: str) -> str:
        """
        Get absolute path to a bundled resource file (e.g. a palette).

        For PyInstaller, looks in _MEIPASS for bundled resources.
        """
        if cls.is_frozen():
            base = sys._MEIPASS
        else:
            base = cls.get_app_dir()

        return os.path.join(base, relative_path)
