from __future__ import annotations

import logging
import math

import numpy as np

from .geometry import bounding_box, polyline_path, project_all
from .paint import FALLBACK_SKIN_TONE, Color
from .surface import Surface
from .topology import FaceLandmarks, Region

logger = logging.getLogger(__name__)


def sample_average_color(
    surface: Surface,
    region: Region,
    landmarks: FaceLandmarks,
    fallback: Color = FALLBACK_SKIN_TONE,
) -> Color:
    """Mean colour of the visible pixels inside ``region``.

    Only the region's bounding box is read back. Pixels count when they are
    inside the polygon (and any active clip) and have non-zero alpha.
    Returns ``fallback`` when nothing qualifies.
    """
    points = project_all(region.points(landmarks), surface.width, surface.height)
    path = polyline_path(points, closed=True)
    if path.is_empty:
        return fallback

    with surface.saved_state():
        surface.clip(path)
        min_x, min_y, max_x, max_y = bounding_box(points)
        x0 = max(int(math.floor(min_x)), 0)
        y0 = max(int(math.floor(min_y)), 0)
        x1 = min(int(math.ceil(max_x)) + 1, surface.width)
        y1 = min(int(math.ceil(max_y)) + 1, surface.height)
        if x1 <= x0 or y1 <= y0:
            return fallback

        data = surface.read_pixels(x0, y0, x1, y1)
        visible = surface.clip_mask[y0:y1, x0:x1] & (data[..., 3] > 0)
        count = int(np.count_nonzero(visible))
        if count == 0:
            logger.debug("Region '%s' has no visible pixels, using fallback", region.name)
            return fallback
        sums = data[..., :3][visible].astype(np.int64).sum(axis=0)

    b, g, r = (int(math.floor(total / count + 0.5)) for total in sums)
    return Color(r, g, b)
