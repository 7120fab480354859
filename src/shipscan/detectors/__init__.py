"""Detection capability implementations."""

from .decoding import PyzbarDecoder
from .still import StillImageDetector, load_image
from .stream import FrameStreamDetector

__all__ = [
    "FrameStreamDetector",
    "PyzbarDecoder",
    "StillImageDetector",
    "load_image",
]
