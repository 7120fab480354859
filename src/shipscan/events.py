from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class CodeSource(str, Enum):
    DETECTED = "detected"
    MANUAL = "manual"


@dataclass(frozen=True)
class CodeAcceptedEvent:
    timestamp: datetime
    code: str
    source: CodeSource
    index: int


@dataclass(frozen=True)
class CodeRemovedEvent:
    timestamp: datetime
    code: str
    index: int


@dataclass(frozen=True)
class WarningEvent:
    timestamp: datetime
    message: str


@dataclass(frozen=True)
class ErrorEvent:
    timestamp: datetime
    message: str
    recoverable: bool = False
    reason: Optional[str] = None


@dataclass(frozen=True)
class StateChangeEvent:
    timestamp: datetime
    state: str


Event = CodeAcceptedEvent | CodeRemovedEvent | WarningEvent | ErrorEvent | StateChangeEvent
