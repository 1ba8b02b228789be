from __future__ import annotations

import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: List[str]) -> List[str]:
    value = os.getenv(name)
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    camera_index: int = 0
    fps: float = Field(30.0, gt=0)
    # Frames still rendered after live tracking is switched off.
    freeze_after: int = Field(10, ge=0)
    max_read_failures: int = Field(30, ge=1)
    selfie_mode: bool = True
    refine_landmarks: bool = True
    lash_asset: str = "lash.png"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            allowed_origins=_env_list("MIRROR_ALLOWED_ORIGINS", ["*"]),
            host=os.getenv("MIRROR_HOST", "0.0.0.0"),
            port=int(os.getenv("MIRROR_PORT", "8000")),
            log_level=os.getenv("MIRROR_LOG_LEVEL", "INFO").upper(),
            camera_index=int(os.getenv("MIRROR_CAMERA_INDEX", "0")),
            fps=float(os.getenv("MIRROR_FPS", "30")),
            freeze_after=int(os.getenv("MIRROR_FREEZE_AFTER", "10")),
            max_read_failures=int(os.getenv("MIRROR_MAX_READ_FAILURES", "30")),
            selfie_mode=_env_bool("MIRROR_SELFIE_MODE", True),
            refine_landmarks=_env_bool("MIRROR_REFINE_LANDMARKS", True),
            lash_asset=os.getenv("MIRROR_LASH_ASSET", "lash.png"),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
