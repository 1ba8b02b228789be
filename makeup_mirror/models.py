from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .topology import REGIONS

EffectName = Literal[
    "foundation",
    "facial_hair",
    "lips",
    "eyeliner",
    "eyeshadow",
    "blush",
    "lash_strokes",
    "landmark_lines",
    "eyelash_image",
]

HEX_PATTERN = r"^#[0-9a-fA-F]{6}$"


class LipValues(BaseModel):
    color: str = Field("#ff0078", pattern=HEX_PATTERN)
    opacity: float = Field(0.6, ge=0, le=1)


class EyelinerValues(BaseModel):
    color: str = Field("#000000", pattern=HEX_PATTERN)
    opacity: float = Field(0.9, ge=0, le=1)
    width: float = Field(2.0, gt=0)
    cap: Literal["butt", "round", "square"] = "round"
    join: Literal["miter", "round", "bevel"] = "miter"


class EyeshadowValues(BaseModel):
    color: str = Field("#8a2be2", pattern=HEX_PATTERN)
    opacity: float = Field(0.3, ge=0, le=1)


class BlushValues(BaseModel):
    color: str = Field("#ff69b4", pattern=HEX_PATTERN)
    opacity: float = Field(0.4, ge=0, le=1)
    radius: float = Field(0.04, ge=0, le=1, description="Fraction of the frame width")


class FoundationValues(BaseModel):
    color: str = Field("#ffe0bd", pattern=HEX_PATTERN)
    opacity: float = Field(0.3, ge=0, le=1)


class ConcealerValues(BaseModel):
    """Facial-hair concealment, painted in the sampled skin tone."""

    opacity: float = Field(0.35, ge=0, le=1)


class LashValues(BaseModel):
    color: str = Field("#000000", pattern=HEX_PATTERN)
    length: float = Field(10.0, ge=0)
    thickness: float = Field(2.0, gt=0)
    fanSpread: float = 0.5


class LandmarkLineValues(BaseModel):
    region: str = "right_eye"
    color: str = Field("#ff0000", pattern=HEX_PATTERN)
    width: float = Field(1.0, gt=0)
    closed: bool = False

    @field_validator("region")
    @classmethod
    def _known_region(cls, value: str) -> str:
        if value not in REGIONS:
            raise ValueError(f"Unknown region '{value}'")
        return value


class MakeupConfig(BaseModel):
    enabled: List[EffectName] = Field(default_factory=lambda: ["blush", "landmark_lines"])
    lips: LipValues = LipValues()
    eyeliner: EyelinerValues = EyelinerValues()
    eyeshadow: EyeshadowValues = EyeshadowValues()
    blush: BlushValues = BlushValues()
    foundation: FoundationValues = FoundationValues()
    concealer: ConcealerValues = ConcealerValues()
    lashes: LashValues = LashValues()
    landmarkLines: LandmarkLineValues = LandmarkLineValues()


class FaceLandmark(BaseModel):
    x: float
    y: float


class FaceMeta(BaseModel):
    bbox: Optional[List[int]] = None  # [x, y, w, h]
    confidence: Optional[float] = None
    landmarks: Optional[List[FaceLandmark]] = None


class MakeupResponse(BaseModel):
    image: str
    faceMeta: Optional[FaceMeta] = None
    skinTone: Optional[str] = None


class FaceAnalysisResponse(BaseModel):
    faceMeta: Optional[FaceMeta] = None
    skinTone: Optional[str] = None


class PickResponse(BaseModel):
    index: int
    captured: List[int] = Field(default_factory=list)


class CaptureRequest(BaseModel):
    enabled: bool


class CaptureResponse(BaseModel):
    enabled: bool
    captured: List[int] = Field(default_factory=list)
