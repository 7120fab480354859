"""Barcode capture and de-duplication for shipment logging."""

from .codes import CodeCollection
from .config import ConfigRepository, Facing, ScannerConfig, Symbology
from .errors import (
    AcquisitionError,
    AcquisitionFailure,
    PreconditionError,
    ScanError,
    SessionClosedError,
    SessionIndexError,
    ValidationError,
    ValidationReason,
)
from .interfaces import DetectionRequest
from .session import ScanSession, ScanSessionManager, SessionState

__all__ = [
    "AcquisitionError",
    "AcquisitionFailure",
    "CodeCollection",
    "ConfigRepository",
    "DetectionRequest",
    "Facing",
    "PreconditionError",
    "ScanError",
    "ScanSession",
    "ScanSessionManager",
    "ScannerConfig",
    "SessionClosedError",
    "SessionIndexError",
    "SessionState",
    "Symbology",
    "ValidationError",
    "ValidationReason",
]
