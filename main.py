# ==============================================================================
# DC6 HARVESTER - MAIN ENTRY POINT
# ==============================================================================
# This is the main entry point for the DC6 Harvester application.
# Everything except the launcher flags below is passed to the CLI.
#
# Usage:
#   python main.py sprites/          # Convert a directory of DC6 files
#   python main.py --help            # Show CLI help
#   python main.py --version         # Show version
#   python main.py --check           # Check dependencies
#   python main.py --paths           # Show data paths
# ==============================================================================

import os
import sys

# ==============================================================================
# FROZEN EXE DETECTION
# ==============================================================================
IS_FROZEN = getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS')

if IS_FROZEN:
    # Running as compiled exe - PyInstaller puts files in _MEIPASS
    BASE_PATH = sys._MEIPASS
    APP_PATH = os.path.dirname(sys.executable)
else:
    BASE_PATH = os.path.dirname(os.path.abspath(__file__))
    APP_PATH = BASE_PATH


# ==============================================================================
# DEPENDENCY CHECKS
# ==============================================================================

def check_dependencies():
    """
    Check if required dependencies are installed.

    Returns:
        Tuple of (all_ok, missing_packages)
    """
    missing = []

    for module, package in (('numpy', 'numpy'), ('PIL', 'Pillow')):
        try:
            __import__(module)
        except ImportError:
            missing.append(package)

    return (len(missing) == 0, missing)


# ==============================================================================
# MAIN FUNCTION
# ==============================================================================

def main():
    """
    Main entry point for DC6 Harvester.

    Handles the launcher flags, then hands the remaining arguments to the CLI.
    """
    argv = sys.argv[1:]

    if '--version' in argv:
        print("DC6 Harvester v1.0.0")
        print("DC6 sprite decoder and image exporter")
        return 0

    if '--paths' in argv:
        from dc6harvester.core.paths import Paths
        print("DC6 Harvester Paths:")
        print(f"  Frozen:         {IS_FROZEN}")
        print(f"  Base Path:      {BASE_PATH}")
        print(f"  App Path:       {APP_PATH}")
        print(f"  User Data:      {Paths.get_user_data_dir()}")
        print(f"  Config:         {Paths.get_config_path()}")
        return 0

    all_ok, missing = check_dependencies()

    if '--check' in argv:
        print("Checking dependencies...")
        print(f"  Frozen: {IS_FROZEN}")
        print(f"  Python: {sys.version}")
        if all_ok:
            print("[OK] All core dependencies installed")
        else:
            print(f"[MISSING] {', '.join(missing)}")
        return 0 if all_ok else 1

    if not all_ok:
        print(f"[ERROR] Missing required packages: {', '.join(missing)}")
        return 1

    from dc6harvester.cli import main as cli_main
    return cli_main(argv)


# ==============================================================================
# SCRIPT ENTRY POINT
# ==============================================================================
if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
