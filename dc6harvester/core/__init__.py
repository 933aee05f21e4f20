# ==============================================================================
# CORE MODULE INIT
# ==============================================================================
# Application plumbing for DC6 Harvester.
#
# This package contains:
#   - Config: JSON-backed settings with defaults
#   - Paths: Per-user data/config locations
#
# Usage:
#   from dc6harvester.core import Config, get_config, Paths
# ==============================================================================

from .config import Config, get_config
from .paths import Paths

__all__ = [
    # Configuration
    'Config',
    'get_config',

    # Paths
    'Paths',
]
