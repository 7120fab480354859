from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, List, Protocol, Sequence, Tuple

from PIL import Image

from .config import DEFAULT_SYMBOLOGIES, Facing, Symbology

# receives every value recognized in one frame; single-value sources pass one item
DetectionCallback = Callable[[Sequence[str]], object]
Clock = Callable[[], float]


@dataclass(frozen=True)
class DetectionRequest:
    facing: Facing = Facing.ENVIRONMENT
    symbologies: Tuple[Symbology, ...] = DEFAULT_SYMBOLOGIES


class DetectionCapability(Protocol):
    async def start(self, request: DetectionRequest, on_detected: DetectionCallback) -> None:
        """Begin delivering candidates to ``on_detected``, one call per frame.

        Raises :class:`~shipscan.errors.AcquisitionError` when the underlying
        device or library cannot be used.
        """

    def stop(self) -> None:
        """Release the underlying resource. Safe to call more than once."""


class Decoder(Protocol):
    symbologies: FrozenSet[Symbology]

    def __call__(self, image: Image.Image, symbologies: Iterable[Symbology]) -> List[str]:
        """Return the barcode values found in ``image``."""
