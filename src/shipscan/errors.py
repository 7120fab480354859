"""Exception taxonomy for scan sessions."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class AcquisitionFailure(str, Enum):
    PERMISSION_DENIED = "permission-denied"
    DEVICE_UNAVAILABLE = "device-unavailable"
    DEVICE_BUSY = "device-busy"
    UNSUPPORTED = "unsupported"
    UNKNOWN = "unknown"


class ValidationReason(str, Enum):
    EMPTY = "empty"
    DUPLICATE = "duplicate"


_ACQUISITION_MESSAGES = {
    AcquisitionFailure.PERMISSION_DENIED: "Camera permission is required to scan barcodes",
    AcquisitionFailure.DEVICE_UNAVAILABLE: "No camera device is available",
    AcquisitionFailure.DEVICE_BUSY: "The camera is in use by another scanner",
    AcquisitionFailure.UNSUPPORTED: "Barcode detection is not supported here",
    AcquisitionFailure.UNKNOWN: "Unable to access camera",
}


class ScanError(Exception):
    """Base class for all scan session errors."""


class AcquisitionError(ScanError):
    """The detection capability could not be started. Manual entry remains usable."""

    def __init__(self, reason: AcquisitionFailure, message: Optional[str] = None) -> None:
        self.reason = AcquisitionFailure(reason)
        self.message = message or _ACQUISITION_MESSAGES[self.reason]
        super().__init__(self.message)


class ValidationError(ScanError):
    def __init__(self, reason: ValidationReason, value: str = "") -> None:
        self.reason = ValidationReason(reason)
        self.value = value
        if self.reason is ValidationReason.EMPTY:
            message = "Barcode must not be empty"
        else:
            message = f"Barcode {value!r} was already scanned"
        super().__init__(message)


class SessionIndexError(ScanError, IndexError):
    def __init__(self, index: int, size: int) -> None:
        self.index = index
        self.size = size
        super().__init__(f"index {index} out of range for {size} barcode(s)")


class PreconditionError(ScanError):
    EMPTY = "empty"

    def __init__(self, reason: str = EMPTY, message: str = "No barcodes to commit") -> None:
        self.reason = reason
        super().__init__(message)


class SessionClosedError(ScanError):
    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"cannot {operation}: scan session is closed")
