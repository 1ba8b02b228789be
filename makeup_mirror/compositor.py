from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from .detector import DetectionResult
from .geometry import Point, project, project_all
from .models import EffectName, MakeupConfig
from .paint import Color, Style
from .renderer import (
    fill_polygon,
    fill_radial_gradient,
    fill_with_subtraction,
    place_oriented_image,
    stroke_lash_fan,
    stroke_polyline,
)
from .sampler import sample_average_color
from .surface import Surface
from .topology import (
    BEARD_AREA,
    CHEEKS,
    FACE_OUTLINE,
    FOREHEAD,
    LEFT_EYE,
    LEFT_EYESHADOW,
    LIPS_INNER,
    LIPS_LOWER_INNER,
    LIPS_LOWER_OUTER,
    LIPS_OUTER,
    MOUSTACHE_AREA,
    REGIONS,
    RIGHT_EYE,
    RIGHT_EYESHADOW,
    FaceLandmarks,
    Region,
)

logger = logging.getLogger(__name__)

# Back to front: each layer is alpha-blended over everything before it.
EFFECT_ORDER: Tuple[EffectName, ...] = (
    "foundation",
    "facial_hair",
    "lips",
    "eyeliner",
    "eyeshadow",
    "blush",
    "lash_strokes",
    "landmark_lines",
    "eyelash_image",
)


@dataclass(frozen=True)
class FrameContext:
    """Everything a painter may read for one compositing pass."""

    landmarks: FaceLandmarks
    skin_tone: Color
    width: int
    height: int
    overlay: Optional[np.ndarray] = None

    def point(self, index: int) -> Point:
        return project(self.landmarks[index], self.width, self.height)

    def points(self, region: Region) -> List[Point]:
        return project_all(region.points(self.landmarks), self.width, self.height)


Painter = Callable[[Surface, FrameContext, MakeupConfig], None]


def _paint_foundation(surface: Surface, frame: FrameContext, config: MakeupConfig) -> None:
    values = config.foundation
    style = Style(color=Color.from_hex(values.color, values.opacity))
    holes = [frame.points(region) for region in (LEFT_EYE, RIGHT_EYE, LIPS_LOWER_OUTER, LIPS_LOWER_INNER)]
    fill_with_subtraction(surface, style, frame.points(FACE_OUTLINE), holes)


def _paint_facial_hair(surface: Surface, frame: FrameContext, config: MakeupConfig) -> None:
    style = Style(color=frame.skin_tone.with_alpha(config.concealer.opacity))
    fill_polygon(surface, style, frame.points(BEARD_AREA))
    fill_polygon(surface, style, frame.points(MOUSTACHE_AREA))


def _paint_lips(surface: Surface, frame: FrameContext, config: MakeupConfig) -> None:
    values = config.lips
    style = Style(color=Color.from_hex(values.color, values.opacity))
    fill_with_subtraction(surface, style, frame.points(LIPS_OUTER), [frame.points(LIPS_INNER)])


def _paint_eyeliner(surface: Surface, frame: FrameContext, config: MakeupConfig) -> None:
    values = config.eyeliner
    style = Style(
        color=Color.from_hex(values.color, values.opacity),
        line_width=values.width,
        line_cap=values.cap,
        line_join=values.join,
    )
    stroke_polyline(surface, style, frame.points(RIGHT_EYE))
    stroke_polyline(surface, style, frame.points(LEFT_EYE))


def _paint_eyeshadow(surface: Surface, frame: FrameContext, config: MakeupConfig) -> None:
    values = config.eyeshadow
    style = Style(color=Color.from_hex(values.color, values.opacity))
    fill_polygon(surface, style, frame.points(RIGHT_EYESHADOW))
    fill_polygon(surface, style, frame.points(LEFT_EYESHADOW))


def _paint_blush(surface: Surface, frame: FrameContext, config: MakeupConfig) -> None:
    values = config.blush
    style = Style(color=Color.from_hex(values.color, values.opacity))
    radius = frame.width * values.radius
    for center in frame.points(CHEEKS):
        fill_radial_gradient(surface, style, center, radius)


def _paint_lash_strokes(surface: Surface, frame: FrameContext, config: MakeupConfig) -> None:
    values = config.lashes
    style = Style(color=Color.from_hex(values.color), line_width=values.thickness, line_cap="round")
    stroke_lash_fan(surface, style, frame.points(RIGHT_EYE), values.length, values.fanSpread)
    stroke_lash_fan(surface, style, frame.points(LEFT_EYE), values.length, values.fanSpread, reverse=True)


def _paint_landmark_lines(surface: Surface, frame: FrameContext, config: MakeupConfig) -> None:
    values = config.landmarkLines
    style = Style(color=Color.from_hex(values.color), line_width=values.width)
    stroke_polyline(surface, style, frame.points(REGIONS[values.region]), closed=values.closed)


def _paint_eyelash_image(surface: Surface, frame: FrameContext, config: MakeupConfig) -> None:
    place_oriented_image(surface, frame.overlay, frame.points(RIGHT_EYE))
    place_oriented_image(surface, frame.overlay, frame.points(LEFT_EYE), mirror=True)


EFFECT_PAINTERS: Dict[EffectName, Painter] = {
    "foundation": _paint_foundation,
    "facial_hair": _paint_facial_hair,
    "lips": _paint_lips,
    "eyeliner": _paint_eyeliner,
    "eyeshadow": _paint_eyeshadow,
    "blush": _paint_blush,
    "lash_strokes": _paint_lash_strokes,
    "landmark_lines": _paint_landmark_lines,
    "eyelash_image": _paint_eyelash_image,
}

EFFECT_REGIONS: Dict[EffectName, Tuple[Region, ...]] = {
    "foundation": (FACE_OUTLINE, LEFT_EYE, RIGHT_EYE, LIPS_LOWER_OUTER, LIPS_LOWER_INNER),
    "facial_hair": (BEARD_AREA, MOUSTACHE_AREA),
    "lips": (LIPS_OUTER, LIPS_INNER),
    "eyeliner": (RIGHT_EYE, LEFT_EYE),
    "eyeshadow": (RIGHT_EYESHADOW, LEFT_EYESHADOW),
    "blush": (CHEEKS,),
    "lash_strokes": (RIGHT_EYE, LEFT_EYE),
    "landmark_lines": (),
    "eyelash_image": (RIGHT_EYE, LEFT_EYE),
}


class MakeupCompositor:
    def __init__(
        self,
        config: Optional[MakeupConfig] = None,
        skin_region: Region = FOREHEAD,
    ) -> None:
        self.config = config or MakeupConfig()
        self.skin_region = skin_region

    def active_effects(self) -> List[EffectName]:
        enabled = set(self.config.enabled)
        return [effect for effect in EFFECT_ORDER if effect in enabled]

    def _regions_in_use(self) -> List[Region]:
        regions = [self.skin_region]
        for effect in self.active_effects():
            regions.extend(EFFECT_REGIONS[effect])
        if "landmark_lines" in self.config.enabled:
            regions.append(REGIONS[self.config.landmarkLines.region])
        return regions

    def composite(
        self,
        surface: Surface,
        result: DetectionResult,
        overlay: Optional[np.ndarray] = None,
    ) -> Optional[FrameContext]:
        """Run one compositing pass; returns None when no face was detected."""
        if (surface.width, surface.height) != (result.width, result.height):
            surface.resize(result.width, result.height)
        else:
            surface.clear()
        surface.draw_frame(result.image)

        landmarks = result.primary
        if landmarks is None:
            return None

        for region in self._regions_in_use():
            region.validate(len(landmarks))

        frame = FrameContext(
            landmarks=landmarks,
            skin_tone=sample_average_color(surface, self.skin_region, landmarks),
            width=surface.width,
            height=surface.height,
            overlay=overlay,
        )
        for effect in self.active_effects():
            EFFECT_PAINTERS[effect](surface, frame, self.config)
        logger.debug("Composited %s, skin tone %s", self.active_effects(), frame.skin_tone.hex)
        return frame


class TrackingState:
    """Live tracking, or freezing after a fixed number of further frames."""

    def __init__(self, freeze_after: int = 10, live: bool = True) -> None:
        if freeze_after < 0:
            raise ValueError("freeze_after must be >= 0")
        self.freeze_after = freeze_after
        self._live = live
        self._remaining = 0 if live else freeze_after

    @property
    def live(self) -> bool:
        return self._live

    @property
    def remaining(self) -> int:
        return self._remaining

    def set_live(self, live: bool) -> None:
        if live == self._live:
            return
        self._live = live
        self._remaining = 0 if live else self.freeze_after

    def should_render(self) -> bool:
        return self._live or self._remaining > 0

    def frame_rendered(self) -> None:
        if not self._live and self._remaining > 0:
            self._remaining -= 1
