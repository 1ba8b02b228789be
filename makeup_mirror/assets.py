from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class OverlayAsset:
    """Sprite loaded once and shared across frames; ``image`` is None until loaded."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self.image: Optional[np.ndarray] = None

    @property
    def loaded(self) -> bool:
        return self.image is not None

    def load(self) -> bool:
        if self.loaded:
            return True
        if not self.path.is_file():
            logger.warning("Overlay asset %s not found, eyelash sprite disabled", self.path)
            return False
        image = cv2.imread(str(self.path), cv2.IMREAD_UNCHANGED)
        if image is None or image.size == 0:
            logger.warning("Overlay asset %s could not be decoded", self.path)
            return False
        self.image = image
        logger.info("Loaded overlay asset %s (%dx%d)", self.path, image.shape[1], image.shape[0])
        return True
