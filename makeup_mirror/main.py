from __future__ import annotations

import json
import logging
from typing import Any

import cv2
import numpy as np
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from .assets import OverlayAsset
from .config import get_settings
from .makeup_pipeline import MakeupPipeline
from .models import (
    CaptureRequest,
    CaptureResponse,
    FaceAnalysisResponse,
    MakeupConfig,
    MakeupResponse,
    PickResponse,
)
from .topology import LandmarkTopologyError

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Makeup Mirror Backend", version="1.0.0")
pipeline = MakeupPipeline(
    overlay=OverlayAsset(settings.lash_asset),
    refine_landmarks=settings.refine_landmarks,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health() -> dict[str, Any]:
    return {"status": "ok"}


async def _load_image(upload: UploadFile) -> np.ndarray:
    """Load image from UploadFile and convert to numpy array."""
    try:
        data = await upload.read()
        if not data:
            raise HTTPException(status_code=400, detail="Empty image payload")
        array = np.frombuffer(data, np.uint8)
        image = cv2.imdecode(array, cv2.IMREAD_COLOR)
        if image is None:
            raise HTTPException(status_code=400, detail="Unsupported image format")
        return image
    except HTTPException:
        raise
    except Exception as exc:
        logger.error(f"Error loading image: {exc}", exc_info=True)
        raise HTTPException(status_code=400, detail=f"Failed to load image: {str(exc)}") from exc


@app.post("/api/makeup/analyze", response_model=FaceAnalysisResponse)
async def analyze_face(image: UploadFile = File(...)) -> FaceAnalysisResponse:
    """Detect the face, return its landmarks and the sampled skin tone."""
    try:
        img = await _load_image(image)
        meta, skin_tone = pipeline.analyze(img)
        if not meta:
            raise HTTPException(status_code=422, detail="No face detected")
        return FaceAnalysisResponse(faceMeta=meta, skinTone=skin_tone)
    except HTTPException:
        raise
    except LandmarkTopologyError as exc:
        logger.error(f"Landmark topology mismatch: {exc}")
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except Exception as exc:
        logger.error(f"Error analyzing face: {exc}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error analyzing face: {str(exc)}") from exc


@app.post("/api/makeup/apply", response_model=MakeupResponse)
async def apply_makeup(
    image: UploadFile = File(...),
    makeupConfig: str = Form("{}"),
) -> MakeupResponse:
    """Composite the enabled makeup effects onto the uploaded image."""
    try:
        config = MakeupConfig.model_validate_json(makeupConfig)
    except json.JSONDecodeError as exc:
        logger.error(f"Invalid makeupConfig JSON: {exc}")
        raise HTTPException(status_code=400, detail=f"Invalid makeupConfig JSON: {exc}") from exc
    except ValidationError as exc:
        logger.error(f"Invalid makeupConfig validation: {exc}")
        raise HTTPException(status_code=400, detail=f"Invalid makeupConfig: {exc.errors()}") from exc

    try:
        img = await _load_image(image)
        processed, meta, skin_tone = pipeline.apply(img, config)
        data_url = pipeline.encode_image(processed)
        return MakeupResponse(image=data_url, faceMeta=meta, skinTone=skin_tone)
    except HTTPException:
        raise
    except LandmarkTopologyError as exc:
        logger.error(f"Landmark topology mismatch: {exc}")
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except Exception as exc:
        logger.error(f"Error applying makeup: {exc}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error applying makeup: {str(exc)}") from exc


@app.post("/api/landmarks/pick", response_model=PickResponse)
async def pick_landmark(x: float = Form(...), y: float = Form(...)) -> PickResponse:
    """Nearest landmark to a pixel of the last analysed image."""
    index = pipeline.pick(x, y)
    if index is None:
        raise HTTPException(status_code=404, detail="No landmarks available yet")
    return PickResponse(index=index, captured=pipeline.picker.captured)


@app.get("/api/landmarks/captured", response_model=CaptureResponse)
async def captured_landmarks() -> CaptureResponse:
    return CaptureResponse(enabled=pipeline.picker.capturing, captured=pipeline.picker.captured)


@app.post("/api/controls/capture", response_model=CaptureResponse)
async def set_capture_mode(request: CaptureRequest) -> CaptureResponse:
    pipeline.picker.set_capture(request.enabled)
    logger.info(f"Capture mode {'on' if request.enabled else 'off'}")
    return CaptureResponse(enabled=pipeline.picker.capturing, captured=pipeline.picker.captured)
