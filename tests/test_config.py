import pytest
from pydantic import ValidationError

from makeup_mirror.config import Settings

ENV_VARS = (
    "MIRROR_ALLOWED_ORIGINS",
    "MIRROR_HOST",
    "MIRROR_PORT",
    "MIRROR_LOG_LEVEL",
    "MIRROR_CAMERA_INDEX",
    "MIRROR_FPS",
    "MIRROR_FREEZE_AFTER",
    "MIRROR_MAX_READ_FAILURES",
    "MIRROR_SELFIE_MODE",
    "MIRROR_REFINE_LANDMARKS",
    "MIRROR_LASH_ASSET",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings.from_env()
    assert settings.allowed_origins == ["*"]
    assert settings.port == 8000
    assert settings.fps == 30.0
    assert settings.freeze_after == 10
    assert settings.selfie_mode is True
    assert settings.lash_asset == "lash.png"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MIRROR_ALLOWED_ORIGINS", "http://localhost:3000, https://mirror.example ,")
    monkeypatch.setenv("MIRROR_PORT", "9001")
    monkeypatch.setenv("MIRROR_LOG_LEVEL", "debug")
    monkeypatch.setenv("MIRROR_FREEZE_AFTER", "0")
    monkeypatch.setenv("MIRROR_SELFIE_MODE", "off")
    monkeypatch.setenv("MIRROR_REFINE_LANDMARKS", "0")

    settings = Settings.from_env()

    assert settings.allowed_origins == ["http://localhost:3000", "https://mirror.example"]
    assert settings.port == 9001
    assert settings.log_level == "DEBUG"
    assert settings.freeze_after == 0
    assert settings.selfie_mode is False
    assert settings.refine_landmarks is False


@pytest.mark.parametrize("name,value", [("MIRROR_FPS", "0"), ("MIRROR_FREEZE_AFTER", "-1")])
def test_out_of_range_values_are_rejected(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValidationError):
        Settings.from_env()
