# ==============================================================================
# BATCH EXPORT MODULE
# ==============================================================================
# Batch decoding of DC6 files into image files.
#
# This module provides:
#   - find_dc6_files: expand directory arguments into *.dc6 file lists
#   - ImageFileWriter: the default frame sink, saves frames through Pillow
#   - BatchDecoder: runs a DC6Decoder over many files, records every
#     skipped file or frame and keeps going
#
# Failure policy:
#   - bad header or unreadable file: the file is skipped
#   - bad frame: the frame is skipped, later frames still decode
#   - a frame that fails is never handed to the sink
#
# Usage:
#   decoder = DC6Decoder(PaletteTable.load("units_pal.dat"))
#   writer = ImageFileWriter(output_dir="out", image_format="png")
#   batch = BatchDecoder(decoder, writer)
#   report = batch.run(find_dc6_files(["sprites/"]))
#   print(report.summary())
# ==============================================================================

import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import numpy as np
from PIL import Image

from .dc6_parser import DC6Decoder, DC6Header, DecodeFailure
from .errors import DC6Error, IoFailure


# ==============================================================================
# CONSTANTS
# ==============================================================================

DC6_EXTENSION = ".dc6"

DEFAULT_FORMAT = "png"

# Pillow formats that cannot store an alpha channel
RGB_ONLY_FORMATS = {"JPEG", "PPM", "PCX", "EPS", "MPO"}


# ==============================================================================
# DATA CLASSES
# ==============================================================================

@dataclass
class FrameContext:
    """
    Naming context passed to a sink alongside each frame.

    Attributes:
        source_path (str):        DC6 file the frame came from
        frame_count (int):        Total frames in that file
        direction (int):          Direction of this frame
        frame_in_direction (int): Frame number within the direction
    """
    source_path: str
    frame_count: int
    direction: int = 0
    frame_in_direction: int = 0


# sink(frame_index, width, height, pixels, context) -> output path or None
FrameSink = Callable[[int, int, int, np.ndarray, FrameContext], Optional[str]]


@dataclass
class FileReport:
    """
    Result of decoding one DC6 file.

    Attributes:
        path (str):           Source file
        header (DC6Header):   Parsed header, None if the file was skipped
        frames_written (int): Frames handed to the sink
        outputs (list):       Paths returned by the sink
        failures (list):      DecodeFailure records for this file
        cancelled (bool):     Stopped early by BatchDecoder.cancel()
    """
    path: str
    header: Optional[DC6Header] = None
    frames_written: int = 0
    outputs: List[str] = field(default_factory=list)
    failures: List[DecodeFailure] = field(default_factory=list)
    cancelled: bool = False

    @property
    def skipped(self) -> bool:
        """True if the whole file was skipped."""
        return self.header is None


@dataclass
class BatchReport:
    """Collected FileReports for a run, in input order."""
    files: List[FileReport] = field(default_factory=list)
    cancelled: bool = False

    @property
    def frames_written(self) -> int:
        return sum(f.frames_written for f in self.files)

    @property
    def failures(self) -> List[DecodeFailure]:
        return [failure for f in self.files for failure in f.failures]

    @property
    def files_skipped(self) -> int:
        return sum(1 for f in self.files if f.skipped)

    def failure_counts(self) -> Dict[str, int]:
        """Number of failures per fault kind."""
        counts: Dict[str, int] = {}
        for failure in self.failures:
            counts[failure.kind] = counts.get(failure.kind, 0) + 1
        return counts

    def summary(self) -> str:
        text = (f"{len(self.files)} file(s), {self.frames_written} frame(s) written, "
                f"{self.files_skipped} file(s) skipped, {len(self.failures)} failure(s)")
        if self.cancelled:
            text += ", cancelled"
        return text


# ==============================================================================
# INPUT DISCOVERY
# ==============================================================================

def find_dc6_files(paths: List[str], verbose: bool = False) -> List[str]:
    """
    Expand directories into the .dc6 files they contain.

    Directories are scanned non-recursively and matched case-insensitively.
    Anything that is not a directory is passed through unchanged, so a
    missing file surfaces later as an IoFailure for that file.

    Args:
        paths: Files and/or directories
        verbose: Print the files found in each directory

    Returns:
        Flat list of file paths
    """
    result = []
    for path in paths:
        if not os.path.isdir(path):
            result.append(path)
            continue

        found = sorted(
            name for name in os.listdir(path)
            if name.lower().endswith(DC6_EXTENSION)
            and os.path.isfile(os.path.join(path, name))
        )
        if verbose:
            print(f"[DEBUG] files in dir {path}: {found}")
        result.extend(os.path.abspath(os.path.join(path, name)) for name in found)

    return result


# ==============================================================================
# IMAGE FILE WRITER
# ==============================================================================

def supported_formats() -> List[str]:
    """File extensions Pillow can write, without the leading dot."""
    extensions = Image.registered_extensions()
    return sorted({ext.lstrip('.') for ext, fmt in extensions.items() if fmt in Image.SAVE})


class ImageFileWriter:
    """
    Default frame sink: saves each frame as an image file with Pillow.

    Naming:
        single frame file:  <out>/<stem>.<fmt>
        multi frame file:   <out>/<stem>_<index>.<fmt>
        with separate_dir:  <out>/<stem>/<index>.<fmt>

    <out> is output_dir when set, otherwise the DC6 file's own directory.

    Attributes:
        output_dir (str):    Destination directory, or None
        image_format (str):  File extension to write
        quality (int):       0-100, or -1 for Pillow's default
        separate_dir (bool): Put multi-frame output in its own directory
    """

    def __init__(self, output_dir: Optional[str] = None, image_format: str = DEFAULT_FORMAT,
                 quality: int = -1, separate_dir: bool = False, verbose: bool = False):
        self.output_dir = output_dir or None
        self.quality = quality
        self.separate_dir = separate_dir
        self.verbose = verbose

        self.image_format = image_format.lower().lstrip('.')
        self.pil_format = Image.registered_extensions().get('.' + self.image_format)
        if self.pil_format not in Image.SAVE:
            print(f"[WARN] can't save using format '{image_format}', falling back to {DEFAULT_FORMAT}")
            self.image_format = DEFAULT_FORMAT
            self.pil_format = "PNG"

        self._lock = threading.Lock()

    def output_path(self, source_path: str, frame_index: int, frame_count: int) -> str:
        """Build the output file name for a frame."""
        base_dir = self.output_dir or os.path.dirname(os.path.abspath(source_path))
        stem = os.path.splitext(os.path.basename(source_path))[0]
        base = os.path.join(base_dir, stem)

        if frame_count > 1:
            if self.separate_dir:
                return os.path.join(base, f"{frame_index}.{self.image_format}")
            return f"{base}_{frame_index}.{self.image_format}"
        return f"{base}.{self.image_format}"

    def __call__(self, frame_index: int, width: int, height: int,
                 pixels: np.ndarray, context: FrameContext) -> str:
        """
        Save one frame.

        Raises:
            IoFailure: if the directory or file cannot be written
        """
        out_path = self.output_path(context.source_path, frame_index, context.frame_count)

        image = Image.fromarray(np.array(pixels, dtype=np.uint8).reshape(height, width, 4))
        if self.pil_format in RGB_ONLY_FORMATS:
            image = image.convert("RGB")

        params = {}
        if self.quality > -1:
            params["quality"] = self.quality

        try:
            with self._lock:
                os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
            if self.verbose:
                print(f"[DEBUG] save image to {out_path}")
            image.save(out_path, format=self.pil_format, **params)
        except (OSError, ValueError) as e:
            raise IoFailure(f"error saving output image {out_path}: {e}",
                            path=context.source_path, frame_index=frame_index) from e

        return out_path


# ==============================================================================
# BATCH DECODER
# ==============================================================================

class BatchDecoder:
    """
    Runs a DC6Decoder over a list of files.

    Files are processed one after another (or on a thread pool when
    workers > 1). Within a file, frames are decoded in offset table order.
    Every skipped file or frame is printed and recorded in the report.

    Attributes:
        decoder (DC6Decoder): Shared decoder (palette is read-only)
        sink (FrameSink):     Receives each decoded frame
        workers (int):        Number of files decoded in parallel
        verbose (bool):       Print per-file and per-frame details
    """

    def __init__(self, decoder: DC6Decoder, sink: Optional[FrameSink] = None,
                 workers: int = 1, verbose: bool = False):
        self.decoder = decoder
        self.sink = sink if sink is not None else ImageFileWriter(verbose=verbose)
        self.workers = max(1, int(workers))
        self.verbose = verbose
        self._cancel = threading.Event()

    # ==========================================================================
    # CANCELLATION
    # ==========================================================================

    def cancel(self):
        """Stop after the frame currently being decoded."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    # ==========================================================================
    # PROCESSING
    # ==========================================================================

    def _record(self, report: FileReport, error: DC6Error, frame_index: Optional[int] = None):
        failure = DecodeFailure.from_error(error, report.path, frame_index)
        report.failures.append(failure)
        if failure.frame_index is None:
            print(f"[ERROR] skipping file {failure.path}: {failure.kind}: {failure.message}")
        else:
            print(f"[ERROR] skipping frame {failure.frame_index} of {failure.path}: "
                  f"{failure.kind}: {failure.message}")

    def process_file(self, path: str) -> FileReport:
        """
        Decode every frame of one file and hand it to the sink.

        Never raises DC6Error; faults end up in the returned report.
        """
        report = FileReport(path=path)
        if self.cancelled:
            report.cancelled = True
            return report

        if self.verbose:
            print(f"[DEBUG] processing file {path}")

        try:
            f = open(path, 'rb')
        except OSError as e:
            self._record(report, IoFailure(f"error opening dc6 file: {e}", path=path))
            return report

        with f:
            try:
                header = self.decoder.read_header(f, path)
            except DC6Error as e:
                self._record(report, e)
                return report

            report.header = header
            if self.verbose:
                print(f"[DEBUG] {header.directions} direction(s) with {header.frames_per_direction} "
                      f"frame(s) = {header.frame_count} frames total")

            for frame_index in range(header.frame_count):
                if self.cancelled:
                    report.cancelled = True
                    break

                if self.verbose:
                    print(f"[DEBUG] frame index {frame_index}, offset {header.frame_offsets[frame_index]}")

                try:
                    frame = self.decoder.decode_frame(f, header, frame_index)
                    if self.verbose:
                        print(f"[DEBUG] width = {frame.width}, height = {frame.height}, "
                              f"length = {frame.header.length}")

                    context = FrameContext(
                        source_path=path,
                        frame_count=header.frame_count,
                        direction=frame.direction,
                        frame_in_direction=frame.frame_in_direction,
                    )
                    output = self.sink(frame.index, frame.width, frame.height, frame.pixels, context)
                except DC6Error as e:
                    self._record(report, e, frame_index)
                    continue

                report.frames_written += 1
                if output:
                    report.outputs.append(output)

        return report

    def run(self, paths: List[str], progress_callback: Optional[Callable] = None) -> BatchReport:
        """
        Decode all files.

        Args:
            paths: DC6 file paths (see find_dc6_files for directories)
            progress_callback: Optional callback(current, total, filename)

        Returns:
            BatchReport with one FileReport per input path, in input order
        """
        batch = BatchReport()
        total = len(paths)

        if self.workers > 1 and total > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                # map yields in submission order
                for i, report in enumerate(executor.map(self.process_file, paths)):
                    batch.files.append(report)
                    if progress_callback:
                        progress_callback(i + 1, total, report.path)
        else:
            for i, path in enumerate(paths):
                batch.files.append(self.process_file(path))
                if progress_callback:
                    progress_callback(i + 1, total, path)

        batch.cancelled = self.cancelled
        if self.verbose:
            print("[DEBUG] all images processed")
        return batch
