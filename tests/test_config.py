import json
from pathlib import Path

import pytest

from shipscan.config import ConfigRepository, DEFAULT_SYMBOLOGIES, Facing, ScannerConfig, Symbology


def test_config_repository_roundtrip(tmp_path: Path) -> None:
    repo_path = tmp_path / "config.json"
    repo = ConfigRepository(path=repo_path)

    config = ScannerConfig(
        facing=Facing.USER,
        symbologies=(Symbology.CODE128, Symbology.QR),
        cooldown_seconds=0.75,
        acquisition_timeout=4.0,
    )
    repo.save_recent(config)

    loaded = ConfigRepository(path=repo_path).load_recent()
    assert loaded == config
    assert loaded.symbologies == (Symbology.CODE128, Symbology.QR)


def test_save_recent_keeps_other_keys(tmp_path: Path) -> None:
    repo_path = tmp_path / "config.json"
    repo_path.write_text(json.dumps({"recent": {"facing": "user"}, "window": {"width": 480}}), encoding="utf-8")
    repo = ConfigRepository(path=repo_path)

    assert repo.load_recent().facing is Facing.USER
    repo.save_recent(ScannerConfig(cooldown_seconds=0.5))

    data = json.loads(repo_path.read_text(encoding="utf-8"))
    assert data["window"] == {"width": 480}
    assert data["recent"]["cooldown_seconds"] == 0.5
    assert data["recent"]["facing"] == "environment"


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    repo = ConfigRepository(path=tmp_path / "absent.json")
    config = repo.load_recent()

    assert config.facing is Facing.ENVIRONMENT
    assert config.symbologies == DEFAULT_SYMBOLOGIES
    assert config.cooldown_seconds == 1.5
    assert config.acquisition_timeout == 10.0


def test_save_recent_overwrites(tmp_path: Path) -> None:
    repo = ConfigRepository(path=tmp_path / "nested" / "cfg.json")
    repo.save_recent(ScannerConfig(cooldown_seconds=1.0))
    repo.save_recent(ScannerConfig(cooldown_seconds=2.0))

    assert repo.load_recent().cooldown_seconds == 2.0


def test_string_values_are_coerced_and_deduplicated() -> None:
    config = ScannerConfig(facing="user", symbologies=("qr", "ean13", "qr"))  # type: ignore[arg-type]

    assert config.facing is Facing.USER
    assert config.symbologies == (Symbology.QR, Symbology.EAN13)


def test_default_symbologies_match_mobile_client() -> None:
    assert [s.value for s in DEFAULT_SYMBOLOGIES] == [
        "qr",
        "code128",
        "ean13",
        "ean8",
        "code39",
        "upc_a",
        "upc_e",
        "codabar",
    ]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"cooldown_seconds": -0.1},
        {"acquisition_timeout": 0},
        {"symbologies": ()},
        {"symbologies": ("pdf417",)},
        {"facing": "sideways"},
    ],
)
def test_invalid_values_are_rejected(kwargs) -> None:
    with pytest.raises(ValueError):
        ScannerConfig(**kwargs)


def test_from_dict_fills_defaults() -> None:
    config = ScannerConfig.from_dict({"cooldown_seconds": "3"})
    assert config.cooldown_seconds == 3.0
    assert config.symbologies == DEFAULT_SYMBOLOGIES
