from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple


class Facing(str, Enum):
    ENVIRONMENT = "environment"
    USER = "user"


class Symbology(str, Enum):
    QR = "qr"
    CODE128 = "code128"
    EAN13 = "ean13"
    EAN8 = "ean8"
    CODE39 = "code39"
    UPC_A = "upc_a"
    UPC_E = "upc_e"
    CODABAR = "codabar"


DEFAULT_SYMBOLOGIES: Tuple[Symbology, ...] = tuple(Symbology)


@dataclass
class ScannerConfig:
    facing: Facing = Facing.ENVIRONMENT
    symbologies: Tuple[Symbology, ...] = DEFAULT_SYMBOLOGIES
    cooldown_seconds: float = 1.5
    acquisition_timeout: float = 10.0

    def __post_init__(self) -> None:
        self.facing = Facing(self.facing)
        symbologies = tuple(Symbology(s) for s in self.symbologies)
        if not symbologies:
            raise ValueError("at least one symbology is required")
        # keep first occurrence order
        self.symbologies = tuple(dict.fromkeys(symbologies))
        if self.cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must be >= 0")
        if self.acquisition_timeout <= 0:
            raise ValueError("acquisition_timeout must be > 0")

    def to_dict(self) -> Dict[str, object]:
        return {
            "facing": self.facing.value,
            "symbologies": [s.value for s in self.symbologies],
            "cooldown_seconds": self.cooldown_seconds,
            "acquisition_timeout": self.acquisition_timeout,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "ScannerConfig":
        symbologies = data.get("symbologies")
        return cls(
            facing=Facing(data.get("facing", Facing.ENVIRONMENT.value)),
            symbologies=tuple(Symbology(s) for s in symbologies) if symbologies else DEFAULT_SYMBOLOGIES,
            cooldown_seconds=float(data.get("cooldown_seconds", 1.5)),
            acquisition_timeout=float(data.get("acquisition_timeout", 10.0)),
        )


class ConfigRepository:
    """Persists scanner configuration to the filesystem."""

    def __init__(self, path: Optional[Path] = None) -> None:
        default_path = Path.home() / ".config" / "shipscan" / "config.json"
        self.path = path or default_path

    def _read(self) -> Dict[str, object]:
        if not self.path.exists():
            return {}
        return json.loads(self.path.read_text(encoding="utf-8"))

    def load_recent(self) -> ScannerConfig:
        return ScannerConfig.from_dict(self._read().get("recent", {}))

    def save_recent(self, config: ScannerConfig) -> None:
        # other top-level keys in the file are left untouched
        data = self._read()
        data["recent"] = config.to_dict()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
