# ==============================================================================
# DC6 DECODING ERRORS
# ==============================================================================
# Every fault the parsers can raise while reading palettes or DC6 files.
#
# Parsers raise these; the batch decoder catches DC6Error per file or per
# frame and records it as a DecodeFailure so the rest of the batch continues.
# Only palette errors stop a whole run.
#
#   DC6Error
#     +-- InvalidPaletteSize   palette resource is not 768 bytes
#     +-- InvalidHeader        bad magic fields or truncated header/offset table
#     +-- TruncatedFrame       frame header ran past the end of the stream
#     +-- TruncatedRun         compressed stream shorter than its declared length
#     +-- PixelOverrun         a literal run would write past width * height
#     +-- EmptyFrame           frame has zero width or height
#     +-- IoFailure            underlying open/read/seek failure
# ==============================================================================

from typing import Optional


class DC6Error(Exception):
    """
    Base class for all DC6 decoding faults.

    Attributes:
        path (str):          Source file the fault belongs to (may be empty)
        frame_index (int):   Frame index, or None for file-level faults
    """

    def __init__(self, message: str, path: str = "", frame_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.frame_index = frame_index

    @property
    def kind(self) -> str:
        """Short fault name used in reports."""
        return type(self).__name__

    def __str__(self):
        parts = []
        if self.path:
            parts.append(self.path)
        if self.frame_index is not None:
            parts.append(f"frame {self.frame_index}")
        parts.append(self.message)
        return ": ".join(parts)


class InvalidPaletteSize(DC6Error):
    pass


class InvalidHeader(DC6Error):
    pass


class TruncatedFrame(DC6Error):
    pass


class TruncatedRun(DC6Error):
    pass


class PixelOverrun(DC6Error):
    pass


class EmptyFrame(DC6Error):
    pass


class IoFailure(DC6Error):
    pass
