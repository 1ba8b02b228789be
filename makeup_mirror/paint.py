from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Literal, NamedTuple, Tuple

import numpy as np

LineCap = Literal["butt", "round", "square"]
LineJoin = Literal["miter", "round", "bevel"]


class Color(NamedTuple):
    """RGB colour with a straight (non-premultiplied) alpha in [0, 1]."""

    r: int
    g: int
    b: int
    a: float = 1.0

    @classmethod
    def from_hex(cls, value: str, alpha: float = 1.0) -> "Color":
        text = value.strip().lstrip("#")
        if len(text) == 3:
            text = "".join(ch * 2 for ch in text)
        if len(text) != 6:
            raise ValueError(f"Invalid hex colour: {value!r}")
        return cls(int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16), alpha)

    @property
    def hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    def with_alpha(self, alpha: float) -> "Color":
        return self._replace(a=float(alpha))

    def bgr(self) -> Tuple[int, int, int]:
        return self.b, self.g, self.r


class GradientStop(NamedTuple):
    offset: float
    color: Color


@dataclass(frozen=True)
class Style:
    color: Color = Color(0, 0, 0)
    line_width: float = 1.0
    line_cap: LineCap = "butt"
    line_join: LineJoin = "miter"
    gradient: Tuple[GradientStop, ...] = field(default_factory=tuple)

    def with_color(self, color: Color) -> "Style":
        return replace(self, color=color)

    def fade_stops(self) -> Tuple[GradientStop, ...]:
        """Explicit stops, or the base colour fading to transparent."""
        if self.gradient:
            return tuple(sorted(self.gradient, key=lambda stop: stop.offset))
        return (
            GradientStop(0.0, self.color),
            GradientStop(1.0, self.color.with_alpha(0.0)),
        )


@dataclass(frozen=True)
class RadialGradient:
    """Colour ramp from ``center`` (offset 0) out to ``radius`` (offset 1)."""

    center: Tuple[float, float]
    radius: float
    stops: Tuple[GradientStop, ...]

    def evaluate(self, xs: np.ndarray, ys: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """BGR colours and alphas at user-space coordinates ``xs``, ``ys``."""
        if self.radius <= 0 or not self.stops:
            shape = np.shape(xs)
            return np.zeros(shape + (3,), dtype=np.float32), np.zeros(shape, dtype=np.float32)
        dist = np.hypot(xs - self.center[0], ys - self.center[1])
        t = np.clip(dist / self.radius, 0.0, 1.0)
        offsets = [stop.offset for stop in self.stops]
        channels = [
            np.interp(t, offsets, [stop.color[channel] for stop in self.stops])
            for channel in (2, 1, 0, 3)
        ]
        bgr = np.stack(channels[:3], axis=-1).astype(np.float32)
        return bgr, channels[3].astype(np.float32)


FALLBACK_SKIN_TONE = Color.from_hex("#ffe0bd")
