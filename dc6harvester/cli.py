# ==============================================================================
# DC6 HARVESTER - COMMAND LINE INTERFACE
# ==============================================================================
# Converts DC6 sprite files into image files.
#
# Every frame of every input file is written as its own image. Directories
# given on the command line are scanned for *.dc6 files (not recursively).
#
# Usage:
#   python main.py sprites/                         Convert every .dc6 in a dir
#   python main.py -p units_pal.dat monster.dc6     Use a specific palette
#   python main.py -f jpg -q 90 -o out/ a.dc6       JPEG output into out/
#   python main.py -d -t magenta monster.dc6        One dir per file, magenta bg
#   python main.py --info monster.dc6               Show headers only
#   python main.py -l                               List writable formats
#
# ==============================================================================

import os
import sys
import argparse
from typing import List, Optional

from dc6harvester.core.config import Config, parse_color, MIN_QUALITY, MAX_QUALITY
from dc6harvester.core.paths import Paths
from dc6harvester.parsers.batch_exporter import (
    BatchDecoder, ImageFileWriter, find_dc6_files, supported_formats, DEFAULT_FORMAT,
)
from dc6harvester.parsers.dc6_parser import DC6Decoder, DecodeFailure
from dc6harvester.parsers.errors import DC6Error
from dc6harvester.parsers.pal_parser import PaletteTable, load_palette

# Palette shipped next to the application, used when none is configured
BUNDLED_PALETTE = "units_pal.dat"


# ==============================================================================
# COLOR HELPERS FOR TERMINAL OUTPUT
# ==============================================================================
class Colors:
    """ANSI color codes for terminal output."""
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    END = '\033[0m'

    @classmethod
    def disable(cls):
        """Disable colors (for non-supporting terminals)."""
        cls.HEADER = ''
        cls.BLUE = ''
        cls.CYAN = ''
        cls.GREEN = ''
        cls.YELLOW = ''
        cls.RED = ''
        cls.BOLD = ''
        cls.END = ''


def print_header(text: str):
    """Print a header."""
    print(f"\n{Colors.BOLD}{Colors.CYAN}{'=' * 60}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}  {text}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}{'=' * 60}{Colors.END}\n")


def print_success(text: str):
    print(f"{Colors.GREEN}✓ {text}{Colors.END}")


def print_error(text: str):
    print(f"{Colors.RED}✗ {text}{Colors.END}")


def print_info(text: str):
    print(f"{Colors.BLUE}ℹ {text}{Colors.END}")


def print_warning(text: str):
    print(f"{Colors.YELLOW}⚠ {text}{Colors.END}")


def progress_callback(current: int, total: int, filename: str):
    """Progress callback for long operations."""
    percent = (current / total) * 100 if total > 0 else 0
    bar_length = 30
    filled = int(bar_length * current / total) if total > 0 else 0
    bar = '█' * filled + '░' * (bar_length - filled)

    # Truncate filename if too long
    max_name_len = 40
    if len(filename) > max_name_len:
        filename = '...' + filename[-(max_name_len-3):]

    print(f"\r[{bar}] {percent:5.1f}% | {current}/{total} | {filename}", end='', flush=True)

    if current >= total:
        print()


# ==============================================================================
# OPTION RESOLUTION
# ==============================================================================
def resolve_quality(value: Optional[str], default: int) -> int:
    """Parse --quality, falling back to the default with a warning."""
    if value is None:
        return default
    try:
        quality = int(value)
    except ValueError as e:
        print_warning(f"couldn't convert image quality to number, default setting will be used: {e}")
        return default
    if quality < MIN_QUALITY or quality > MAX_QUALITY:
        print_warning("image quality exceeds valid range, default setting will be used")
        return default
    return quality


def resolve_transparent_color(value: Optional[str], config: Config):
    """Parse --transparent-color, falling back to the configured color."""
    if value is None:
        return config.transparent_rgba
    color = parse_color(value)
    if color is None:
        print_warning(f"invalid transparent color '{value}', default setting will be used")
        return config.transparent_rgba
    return color


def resolve_palette_path(value: Optional[str], config: Config, verbose: bool) -> str:
    """Pick the palette: option, then config, then a bundled units_pal.dat."""
    if value:
        return value
    if config.palette_path:
        return config.palette_path

    bundled = Paths.get_resource_path(BUNDLED_PALETTE)
    if os.path.isfile(bundled):
        if verbose:
            print("[DEBUG] using bundled palette")
        return bundled
    return ""


# ==============================================================================
# COMMANDS
# ==============================================================================
def cmd_list_formats():
    """Print supported image output formats."""
    print("Supported image output formats:")
    print("  " + ", ".join(supported_formats()))


def cmd_info(decoder: DC6Decoder, paths: List[str]) -> int:
    """Print file and frame headers without exporting anything."""
    for path in paths:
        print_header(os.path.basename(path))
        try:
            header, frames = decoder.inspect_file(path)
        except DC6Error as e:
            print_error(f"{e.kind}: {e}")
            continue

        print(f"Directions:           {header.directions}")
        print(f"Frames per direction: {header.frames_per_direction}")
        print(f"Total frames:         {header.frame_count}")
        print()
        print(f"{'#':<5} {'Dir':<4} {'Frame':<6} {'Size':<12} {'Flipped':<8} {'Offset':<12} {'Length':<8}")
        print("-" * 60)
        for i, frame in enumerate(frames):
            direction, index = header.locate(i)
            if isinstance(frame, DecodeFailure):
                print(f"{i:<5} {direction:<4} {index:<6} {Colors.RED}{frame.kind}: {frame.message}{Colors.END}")
                continue
            size = f"{frame.width}x{frame.height}"
            offset = f"{frame.offset_x},{frame.offset_y}"
            print(f"{i:<5} {direction:<4} {index:<6} {size:<12} {frame.is_flipped:<8} {offset:<12} {frame.length:<8}")
    return 0


def cmd_convert(decoder: DC6Decoder, writer: ImageFileWriter, paths: List[str],
                workers: int, verbose: bool) -> int:
    """Decode all files and write their frames."""
    batch = BatchDecoder(decoder, writer, workers=workers, verbose=verbose)

    callback = progress_callback if (sys.stdout.isatty() and not verbose) else None
    report = batch.run(paths, progress_callback=callback)

    if report.failures:
        print_warning(report.summary())
        for kind, count in sorted(report.failure_counts().items()):
            print(f"  {kind}: {count}")
    else:
        print_success(report.summary())
    return 0


# ==============================================================================
# MAIN ARGUMENT PARSER
# ==============================================================================
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dc6harvester",
        description="DC6 Harvester - convert DC6 sprites to images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s sprites/                        Convert every .dc6 in a directory
  %(prog)s -p units_pal.dat monster.dc6    Use a specific palette
  %(prog)s -f jpg -q 90 -o out/ a.dc6      JPEG output into out/
  %(prog)s --info monster.dc6              Show headers only
        """
    )

    parser.add_argument('paths', nargs='*', help='Directory or dc6 path')
    parser.add_argument('-p', '--palette', metavar='FILE',
                        help='Palette file to use, defaults to the configured or bundled one')
    parser.add_argument('-f', '--format', metavar='FORMAT',
                        help=f'Output image format, defaults to {DEFAULT_FORMAT}')
    parser.add_argument('-q', '--quality', metavar='INTEGER',
                        help=f'Output image quality in range {MIN_QUALITY}-{MAX_QUALITY} inclusive')
    parser.add_argument('-t', '--transparent-color', metavar='COLOR',
                        help='Color to use as transparent, defaults to #00000000')
    parser.add_argument('-o', '--out-dir', metavar='DIRECTORY',
                        help="Where to save output files, defaults to input file's directory")
    parser.add_argument('-d', '--separate-dir', action='store_true',
                        help='Save multiframe images in a directory named after the input file')
    parser.add_argument('-j', '--jobs', type=int, metavar='N',
                        help='Number of files to decode in parallel')
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    parser.add_argument('-l', '--list-supported-formats', action='store_true',
                        help='Print supported image formats')
    parser.add_argument('--info', action='store_true',
                        help='Print file and frame headers instead of converting')
    parser.add_argument('--config', metavar='FILE', help='Configuration file to use')
    parser.add_argument('--no-color', action='store_true', help='Disable colored output')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    if argv is None:
        argv = sys.argv[1:]

    # Enable ANSI colors on Windows
    if sys.platform == 'win32':
        try:
            import ctypes
            kernel32 = ctypes.windll.kernel32
            kernel32.SetConsoleMode(kernel32.GetStdHandle(-11), 7)
        except (AttributeError, OSError):
            Colors.disable()

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.no_color:
        Colors.disable()

    if not argv:
        parser.print_help()
        return 0

    if args.list_supported_formats:
        cmd_list_formats()
        return 0

    if not args.paths:
        print_warning("no input files specified")
        return 1

    # -------------------------------------------------------------------------
    # Settings: command line overrides config
    # -------------------------------------------------------------------------
    config = Config(args.config)
    config.load()

    verbose = args.verbose or config.debug_mode
    image_format = args.format or config.output_format
    quality = resolve_quality(args.quality, config.image_quality)
    transparent_color = resolve_transparent_color(args.transparent_color, config)
    out_dir = args.out_dir or config.output_dir
    separate_dir = args.separate_dir or config.separate_dir
    workers = args.jobs if args.jobs is not None else config.decode_threads

    if out_dir:
        try:
            os.makedirs(out_dir, exist_ok=True)
        except OSError as e:
            print_error(f"unable to create output directory at {out_dir}: {e}")
            return 1

    paths = find_dc6_files(args.paths, verbose=verbose)
    if not paths:
        print_warning("no dc6 files found")
        return 1

    # -------------------------------------------------------------------------
    # Palette: a configured palette that fails to load aborts the run
    # -------------------------------------------------------------------------
    palette_path = resolve_palette_path(args.palette, config, verbose)
    try:
        palette: PaletteTable = load_palette(palette_path)
    except DC6Error as e:
        print_error(str(e))
        return 1

    decoder = DC6Decoder(palette, transparent_color=transparent_color)

    if args.info:
        return cmd_info(decoder, paths)

    writer = ImageFileWriter(
        output_dir=out_dir or None,
        image_format=image_format,
        quality=quality,
        separate_dir=separate_dir,
        verbose=verbose,
    )
    return cmd_convert(decoder, writer, paths, workers, verbose)


if __name__ == "__main__":
    sys.exit(main())
