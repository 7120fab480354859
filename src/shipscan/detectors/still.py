from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import List, Optional, Union

from PIL import Image

from ..interfaces import Decoder, DetectionCallback, DetectionRequest
from .decoding import PyzbarDecoder, require_symbologies

logger = logging.getLogger(__name__)

ImageSource = Union[Image.Image, bytes, str, Path]


def load_image(source: ImageSource) -> Image.Image:
    """Open ``source`` with Pillow and return an RGB copy."""
    if isinstance(source, Image.Image):
        return source.convert("RGB")
    if isinstance(source, bytes):
        with Image.open(io.BytesIO(source)) as image:
            return image.convert("RGB")
    with Image.open(Path(source)) as image:
        return image.convert("RGB")


class StillImageDetector:
    """Single-frame still capture: every captured picture is decoded once."""

    def __init__(self, decoder: Optional[Decoder] = None) -> None:
        self._decoder = decoder
        self._request: Optional[DetectionRequest] = None
        self._on_detected: Optional[DetectionCallback] = None

    @property
    def running(self) -> bool:
        return self._on_detected is not None

    async def start(self, request: DetectionRequest, on_detected: DetectionCallback) -> None:
        if self._decoder is None:
            self._decoder = PyzbarDecoder()
        require_symbologies(self._decoder, request)
        self._request = request
        self._on_detected = on_detected
        logger.info("Still capture ready for %s", ", ".join(s.value for s in request.symbologies))

    def stop(self) -> None:
        self._on_detected = None
        self._request = None

    def capture(self, source: ImageSource) -> List[str]:
        if self._on_detected is None or self._request is None or self._decoder is None:
            raise RuntimeError("Still image detector is not started")
        image = load_image(source)
        codes = self._decoder(image, self._request.symbologies)
        logger.debug("Decoded %d barcode(s) from still image", len(codes))
        if codes:
            self._on_detected(codes)
        return codes
