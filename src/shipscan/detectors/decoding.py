"""Default decoder backed by pyzbar."""

from __future__ import annotations

from typing import FrozenSet, Iterable, List

from PIL import Image

from ..config import Symbology
from ..errors import AcquisitionError, AcquisitionFailure
from ..interfaces import Decoder, DetectionRequest

# pyzbar reports ZBar symbol names
_ZBAR_NAMES = {
    Symbology.QR: "QRCODE",
    Symbology.CODE128: "CODE128",
    Symbology.EAN13: "EAN13",
    Symbology.EAN8: "EAN8",
    Symbology.CODE39: "CODE39",
    Symbology.UPC_A: "UPCA",
    Symbology.UPC_E: "UPCE",
    Symbology.CODABAR: "CODABAR",
}


class PyzbarDecoder:
    """Decode barcodes from a Pillow image with ``pyzbar``."""

    symbologies: FrozenSet[Symbology] = frozenset(_ZBAR_NAMES)

    def __init__(self) -> None:
        try:
            from pyzbar import pyzbar
        except ImportError as exc:
            raise AcquisitionError(
                AcquisitionFailure.UNSUPPORTED,
                "Barcode decoding requires pyzbar. Install the 'decode' extra first.",
            ) from exc
        self._pyzbar = pyzbar

    def __call__(self, image: Image.Image, symbologies: Iterable[Symbology]) -> List[str]:
        wanted = {_ZBAR_NAMES[Symbology(s)] for s in symbologies}
        symbols = [getattr(self._pyzbar.ZBarSymbol, name) for name in sorted(wanted)]
        results: List[str] = []
        for decoded in self._pyzbar.decode(image, symbols=symbols):
            if decoded.type not in wanted:
                continue
            results.append(decoded.data.decode("utf-8", errors="replace"))
        return results


def require_symbologies(decoder: Decoder, request: DetectionRequest) -> None:
    """Reject a request naming formats the decoder cannot read."""
    missing = [s.value for s in request.symbologies if s not in decoder.symbologies]
    if missing:
        raise AcquisitionError(
            AcquisitionFailure.UNSUPPORTED,
            f"Barcode formats not supported by the decoder: {', '.join(missing)}",
        )
