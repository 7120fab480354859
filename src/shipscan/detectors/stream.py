from __future__ import annotations

import asyncio
import logging
from typing import AsyncGenerator, Callable, Optional

from PIL import Image

from ..errors import AcquisitionError, AcquisitionFailure
from ..interfaces import Decoder, DetectionCallback, DetectionRequest
from .decoding import PyzbarDecoder, require_symbologies

logger = logging.getLogger(__name__)

FrameSource = Callable[[DetectionRequest], AsyncGenerator[Image.Image, None]]


class FrameStreamDetector:
    """Live detection over frames produced by an async generator.

    ``frame_source`` is called with the detection request and yields Pillow
    frames. The detector is ready once the first frame arrives; each frame is
    decoded off the event loop and its values are reported to the callback
    together.
    """

    def __init__(self, frame_source: FrameSource, decoder: Optional[Decoder] = None) -> None:
        self._frame_source = frame_source
        self._decoder = decoder
        self._on_detected: Optional[DetectionCallback] = None
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, request: DetectionRequest, on_detected: DetectionCallback) -> None:
        if self.running:
            raise AcquisitionError(AcquisitionFailure.DEVICE_BUSY)
        if self._decoder is None:
            self._decoder = PyzbarDecoder()
        require_symbologies(self._decoder, request)

        source = self._frame_source(request)
        try:
            first = await source.__anext__()
        except StopAsyncIteration as exc:
            raise AcquisitionError(AcquisitionFailure.DEVICE_UNAVAILABLE, "Camera produced no frames") from exc
        except PermissionError as exc:
            raise AcquisitionError(AcquisitionFailure.PERMISSION_DENIED) from exc
        except FileNotFoundError as exc:
            raise AcquisitionError(AcquisitionFailure.DEVICE_UNAVAILABLE) from exc
        except OSError as exc:
            raise AcquisitionError(AcquisitionFailure.DEVICE_BUSY, str(exc) or None) from exc

        self._on_detected = on_detected
        self._task = asyncio.create_task(self._run(source, first, request))
        self._task.add_done_callback(self._on_task_done)
        logger.info("Frame stream started (%s camera)", request.facing.value)

    def stop(self) -> None:
        self._on_detected = None
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.info("Frame stream stopped")

    async def _run(
        self,
        source: AsyncGenerator[Image.Image, None],
        first: Image.Image,
        request: DetectionRequest,
    ) -> None:
        try:
            await self._decode(first, request)
            async for frame in source:
                if self._on_detected is None:
                    break
                await self._decode(frame, request)
        finally:
            await source.aclose()

    async def _decode(self, frame: Image.Image, request: DetectionRequest) -> None:
        assert self._decoder is not None
        codes = await asyncio.to_thread(self._decoder, frame.convert("RGB"), request.symbologies)
        callback = self._on_detected
        if codes and callback is not None:
            callback(codes)

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Frame stream stopped unexpectedly", exc_info=exc)
