from __future__ import annotations

import math
from contextlib import contextmanager
from typing import Iterator, List, Literal, Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from .geometry import Path, Point, SubPath, polygon_area, unit_vector
from .paint import Color, LineCap, LineJoin, RadialGradient

FillRule = Literal["nonzero", "evenodd"]
Paint = Union[Color, RadialGradient]

# Fixed-point precision handed to cv2 rasterisers (1/16 px).
SUBPIXEL_BITS = 4
_FIXED_SCALE = float(1 << SUBPIXEL_BITS)
# Canvas default: miters longer than this many half widths fall back to bevels.
MITER_LIMIT = 10.0


def _identity() -> np.ndarray:
    return np.eye(3, dtype=np.float64)


def _mask_bounds(mask: np.ndarray) -> Optional[Tuple[int, int, int, int]]:
    ys, xs = np.nonzero(mask)
    if xs.size == 0:
        return None
    return int(xs.min()), int(ys.min()), int(xs.max()) + 1, int(ys.max()) + 1


def _to_fixed(points: np.ndarray) -> np.ndarray:
    return np.round(points * _FIXED_SCALE).astype(np.int32).reshape(-1, 1, 2)


class Surface:
    """BGRA raster target with a canvas-like transform and clip stack.

    Pixel coordinates address pixel centres: pixel ``(x, y)`` sits at user
    coordinate ``(x, y)`` under the identity transform, as in OpenCV.
    Colour is stored with straight alpha and all painting is source-over.
    """

    def __init__(self, width: int = 1, height: int = 1) -> None:
        self.resize(width, height)

    # -- buffer ---------------------------------------------------------------

    def resize(self, width: int, height: int) -> None:
        """Reallocate the buffer; pixels, transform, clip and saved states reset."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface size must be positive, got {width}x{height}")
        self._pixels = np.zeros((int(height), int(width), 4), dtype=np.uint8)
        self._transform = _identity()
        self._clip: Optional[np.ndarray] = None
        self._stack: List[Tuple[np.ndarray, Optional[np.ndarray]]] = []

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    def clear(self) -> None:
        self._pixels[:] = 0

    def read_pixels(self, x0: int, y0: int, x1: int, y1: int) -> np.ndarray:
        return self._pixels[y0:y1, x0:x1].copy()

    def to_bgr(self) -> np.ndarray:
        return self._pixels[..., :3].copy()

    # -- state ----------------------------------------------------------------

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def transform(self) -> np.ndarray:
        return self._transform[:2].copy()

    @property
    def clip_mask(self) -> Optional[np.ndarray]:
        return self._clip

    def save(self) -> None:
        self._stack.append((self._transform.copy(), self._clip))

    def restore(self) -> None:
        if not self._stack:
            return
        self._transform, self._clip = self._stack.pop()

    @contextmanager
    def saved_state(self) -> Iterator["Surface"]:
        """Snapshot transform and clip, restored on every exit path."""
        self.save()
        depth = self.depth
        try:
            yield self
        finally:
            # Unwind anything left unbalanced inside the block as well.
            while self.depth >= depth:
                self.restore()

    def translate(self, dx: float, dy: float) -> None:
        step = _identity()
        step[0, 2], step[1, 2] = dx, dy
        self._transform = self._transform @ step

    def rotate(self, angle: float) -> None:
        cos, sin = math.cos(angle), math.sin(angle)
        step = np.array([[cos, -sin, 0.0], [sin, cos, 0.0], [0.0, 0.0, 1.0]])
        self._transform = self._transform @ step

    def scale(self, sx: float, sy: float) -> None:
        step = np.diag([sx, sy, 1.0])
        self._transform = self._transform @ step

    def clip(self, path: Path) -> None:
        """Intersect the current clip with ``path`` (nonzero rule)."""
        mask = self.path_mask(path)
        self._clip = mask if self._clip is None else (self._clip & mask)

    # -- rasterisation --------------------------------------------------------

    def _device(self, points: Sequence[Point]) -> np.ndarray:
        pts = np.array(points, dtype=np.float64).reshape(-1, 2)
        return pts @ self._transform[:2, :2].T + self._transform[:2, 2]

    def _subpath_mask(self, subpath: SubPath) -> np.ndarray:
        mask = np.zeros((self.height, self.width), dtype=np.uint8)
        device = self._device(subpath.points)
        if len(device) < 3 or abs(polygon_area(device.tolist())) < 1e-9:
            return mask
        cv2.fillPoly(mask, [_to_fixed(device)], 1, lineType=cv2.LINE_8, shift=SUBPIXEL_BITS)
        return mask

    def _winding(self, device: np.ndarray) -> np.ndarray:
        """Winding number of the closed polygon ``device`` at every pixel centre.

        Each edge crossing the leftward ray from a pixel centre adds +1 when
        the edge runs upwards and -1 when it runs downwards, so a positive
        shoelace area gives +1 inside.
        """
        height, width = self.height, self.width
        crossings = np.zeros((height, width + 1), dtype=np.int32)
        ring = np.vstack([device, device[:1]])
        for (x0, y0), (x1, y1) in zip(ring[:-1], ring[1:]):
            if y0 == y1:
                continue
            direction = 1 if y1 < y0 else -1
            lo, hi = min(y0, y1), max(y0, y1)
            rows = np.arange(max(math.ceil(lo), 0), min(math.ceil(hi), height))
            if rows.size == 0:
                continue
            xs = x0 + (rows - y0) * (x1 - x0) / (y1 - y0)
            cols = np.clip(np.floor(xs).astype(np.int64) + 1, 0, width)
            np.add.at(crossings, (rows, cols), direction)
        return np.cumsum(crossings[:, :width], axis=1)

    def path_mask(self, path: Path, fill_rule: FillRule = "nonzero") -> np.ndarray:
        """Boolean coverage of ``path`` in device space under ``fill_rule``."""
        shape = (self.height, self.width)
        if path.is_empty:
            return np.zeros(shape, dtype=bool)
        if fill_rule == "evenodd":
            parity = np.zeros(shape, dtype=np.uint8)
            for subpath in path.subpaths:
                parity ^= self._subpath_mask(subpath)
            return parity.astype(bool)
        winding = np.zeros(shape, dtype=np.int32)
        for subpath in path.subpaths:
            device = self._device(subpath.points)
            if len(device) < 3:
                continue
            inside = self._winding(np.round(device * _FIXED_SCALE) / _FIXED_SCALE)
            # Edge pixels OpenCV covers but whose centres lie outside take the outline's orientation.
            direction = 1 if polygon_area(device.tolist()) >= 0 else -1
            edges = direction * self._subpath_mask(subpath).astype(np.int32)
            winding += np.where(inside != 0, inside, edges)
        return winding != 0

    def _fill_fixed(self, mask: np.ndarray, polygon: Sequence[Sequence[float]]) -> None:
        cv2.fillPoly(mask, [_to_fixed(np.asarray(polygon, dtype=np.float64))], 1, lineType=cv2.LINE_8, shift=SUBPIXEL_BITS)

    def _join(
        self,
        mask: np.ndarray,
        vertex: np.ndarray,
        incoming: Tuple[float, float],
        outgoing: Tuple[float, float],
        half: float,
        join: LineJoin,
    ) -> None:
        if join == "round":
            center = (int(round(vertex[0] * _FIXED_SCALE)), int(round(vertex[1] * _FIXED_SCALE)))
            cv2.circle(mask, center, int(round(half * _FIXED_SCALE)), 1, -1, lineType=cv2.LINE_8, shift=SUBPIXEL_BITS)
            return
        cross = incoming[0] * outgoing[1] - incoming[1] * outgoing[0]
        if abs(cross) < 1e-9:
            return
        # Offset towards the outside of the turn.
        side = -1.0 if cross > 0 else 1.0
        n1 = np.array((-incoming[1], incoming[0])) * side
        n2 = np.array((-outgoing[1], outgoing[0])) * side
        a, b = vertex + n1 * half, vertex + n2 * half
        if join == "miter":
            bisector = n1 + n2
            norm = float(np.hypot(*bisector))
            cos_half = norm / 2.0
            if norm > 1e-9 and 1.0 / cos_half <= MITER_LIMIT:
                tip = vertex + bisector / norm * (half / cos_half)
                self._fill_fixed(mask, [vertex, a, tip, b])
                return
        self._fill_fixed(mask, [vertex, a, b])

    def stroke_mask(
        self,
        path: Path,
        width: float,
        cap: LineCap = "butt",
        join: LineJoin = "miter",
    ) -> np.ndarray:
        mask = np.zeros((self.height, self.width), dtype=np.uint8)
        if path.is_empty or width <= 0:
            return mask.astype(bool)
        det = abs(np.linalg.det(self._transform[:2, :2]))
        half = max(width * math.sqrt(det), 1.0) / 2.0
        for subpath in path.subpaths:
            device = self._device(subpath.points)
            # Zero-length segments are dropped before stroking.
            keep = [0] + [i for i in range(1, len(device)) if not np.allclose(device[i], device[i - 1])]
            device = device[keep]
            if subpath.closed and len(device) > 2 and np.allclose(device[0], device[-1]):
                device = device[:-1]
            if len(device) < 2:
                continue
            if subpath.closed:
                device = np.vstack([device, device[:1]])
            directions = [unit_vector(*(end - start)) for start, end in zip(device[:-1], device[1:])]
            last = len(directions) - 1
            for i, (ux, uy) in enumerate(directions):
                start, end = device[i].copy(), device[i + 1].copy()
                if cap == "square" and not subpath.closed:
                    if i == 0:
                        start -= (ux * half, uy * half)
                    if i == last:
                        end += (ux * half, uy * half)
                nx, ny = -uy * half, ux * half
                self._fill_fixed(
                    mask,
                    [
                        (start[0] + nx, start[1] + ny),
                        (end[0] + nx, end[1] + ny),
                        (end[0] - nx, end[1] - ny),
                        (start[0] - nx, start[1] - ny),
                    ],
                )
            for i in range(1, len(directions)):
                self._join(mask, device[i], directions[i - 1], directions[i], half, join)
            if subpath.closed:
                self._join(mask, device[0], directions[-1], directions[0], half, join)
            elif cap == "round":
                for x, y in (device[0], device[-1]):
                    center = (int(round(x * _FIXED_SCALE)), int(round(y * _FIXED_SCALE)))
                    cv2.circle(mask, center, int(round(half * _FIXED_SCALE)), 1, -1, lineType=cv2.LINE_8, shift=SUBPIXEL_BITS)
        return mask.astype(bool)

    # -- painting -------------------------------------------------------------

    def _composite(
        self,
        box: Tuple[int, int, int, int],
        src_bgr: np.ndarray,
        src_alpha: np.ndarray,
    ) -> None:
        x0, y0, x1, y1 = box
        if self._clip is not None:
            src_alpha = src_alpha * self._clip[y0:y1, x0:x1]
        touched = src_alpha > 0
        if not np.any(touched):
            return
        region = self._pixels[y0:y1, x0:x1]
        dst_bgr = region[..., :3].astype(np.float32)
        dst_alpha = region[..., 3].astype(np.float32) / 255.0
        keep = dst_alpha * (1.0 - src_alpha)
        out_alpha = src_alpha + keep
        safe = np.where(out_alpha > 0, out_alpha, 1.0)
        out_bgr = (src_bgr * src_alpha[..., None] + dst_bgr * keep[..., None]) / safe[..., None]
        out_bgr = np.clip(np.floor(out_bgr + 0.5), 0, 255).astype(np.uint8)
        out_a = np.clip(np.floor(out_alpha * 255.0 + 0.5), 0, 255).astype(np.uint8)
        region[..., :3] = np.where(touched[..., None], out_bgr, region[..., :3])
        region[..., 3] = np.where(touched, out_a, region[..., 3])

    def _paint_mask(self, mask: np.ndarray, paint: Paint) -> None:
        box = _mask_bounds(mask)
        if box is None:
            return
        x0, y0, x1, y1 = box
        coverage = mask[y0:y1, x0:x1].astype(np.float32)
        if isinstance(paint, RadialGradient):
            ys, xs = np.mgrid[y0:y1, x0:x1].astype(np.float64)
            inverse = np.linalg.inv(self._transform)
            ux = inverse[0, 0] * xs + inverse[0, 1] * ys + inverse[0, 2]
            uy = inverse[1, 0] * xs + inverse[1, 1] * ys + inverse[1, 2]
            bgr, alpha = paint.evaluate(ux, uy)
            self._composite(box, bgr, coverage * alpha)
        else:
            bgr = np.array(paint.bgr(), dtype=np.float32)
            self._composite(box, bgr, coverage * float(paint.a))

    def fill(self, path: Path, paint: Paint, fill_rule: FillRule = "nonzero") -> None:
        self._paint_mask(self.path_mask(path, fill_rule), paint)

    def stroke(
        self,
        path: Path,
        color: Color,
        width: float = 1.0,
        cap: LineCap = "butt",
        join: LineJoin = "miter",
    ) -> None:
        self._paint_mask(self.stroke_mask(path, width, cap, join), color)

    def draw_image(self, image: np.ndarray, x: float, y: float, width: float, height: float) -> None:
        """Draw ``image`` (BGR or BGRA) into the user-space box at the current transform."""
        if image is None or image.size == 0 or width == 0 or height == 0:
            return
        src_h, src_w = image.shape[:2]
        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
        elif image.shape[2] == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)

        placement = np.array(
            [[width / src_w, 0.0, x], [0.0, height / src_h, y], [0.0, 0.0, 1.0]]
        )
        full = self._transform @ placement
        if np.allclose(full, _identity()) and (src_w, src_h) == (self.width, self.height):
            alpha = image[..., 3].astype(np.float32) / 255.0
            self._composite((0, 0, self.width, self.height), image[..., :3].astype(np.float32), alpha)
            return

        corners = np.array([[0, 0], [src_w, 0], [src_w, src_h], [0, src_h]], dtype=np.float64)
        mapped = corners @ full[:2, :2].T + full[:2, 2]
        x0 = max(int(math.floor(mapped[:, 0].min())), 0)
        y0 = max(int(math.floor(mapped[:, 1].min())), 0)
        x1 = min(int(math.ceil(mapped[:, 0].max())) + 1, self.width)
        y1 = min(int(math.ceil(mapped[:, 1].max())) + 1, self.height)
        if x1 <= x0 or y1 <= y0:
            return

        # Warp premultiplied colour so transparent borders do not bleed in.
        src = image.astype(np.float32)
        alpha = src[..., 3:4] / 255.0
        premultiplied = np.concatenate([src[..., :3] * alpha, alpha], axis=-1)
        local = full[:2].copy()
        local[:, 2] -= (x0, y0)
        warped = cv2.warpAffine(
            premultiplied,
            local,
            (x1 - x0, y1 - y0),
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=(0, 0, 0, 0),
        )
        out_alpha = np.clip(warped[..., 3], 0.0, 1.0)
        safe = np.where(out_alpha > 0, out_alpha, 1.0)
        bgr = warped[..., :3] / safe[..., None]
        self._composite((x0, y0, x1, y1), bgr, out_alpha)

    def draw_frame(self, frame: np.ndarray) -> None:
        """Base layer: the source frame stretched over the whole surface."""
        with self.saved_state():
            self._transform = _identity()
            self.draw_image(frame, 0, 0, self.width, self.height)
