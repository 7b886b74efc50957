from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

import cv2
import numpy as np
from PIL import Image

from .config import ALPHA_EPSILON, BG_DIST
from .errors import DimensionMismatchError
from .io import pil_to_numpy_rgb

ImageLike = Union[Image.Image, np.ndarray]


@dataclass(frozen=True)
class MatteResult:
    rgba: np.ndarray
    black_resized: bool

    @property
    def size(self) -> Tuple[int, int]:
        h, w = self.rgba.shape[:2]
        return w, h


def _as_rgb(img: ImageLike) -> np.ndarray:
    if isinstance(img, Image.Image):
        return pil_to_numpy_rgb(img)
    arr = np.asarray(img)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"Expected image array (H,W,3|4), got shape={arr.shape}")
    if arr.dtype != np.uint8:
        raise ValueError(f"Expected uint8 image array, got dtype={arr.dtype}")
    return arr[..., :3]


def _round_half_up(x: np.ndarray) -> np.ndarray:
    return np.floor(x + 0.5)


def reconcile_dimensions(white: np.ndarray, black: np.ndarray) -> Tuple[np.ndarray, bool]:
    """
    Fit the black image to the white image's (H, W) if they differ.

    Cover fit: scale by the larger of the two ratios (aspect preserved, neither
    side smaller than the target), then centre-crop the overflow.
    """
    wh, ww = white.shape[:2]
    bh, bw = black.shape[:2]
    if (bh, bw) == (wh, ww):
        return black, False

    # integer ceil keeps the matching side exact
    if ww * bh >= wh * bw:
        new_w, new_h = ww, max(wh, -(-bh * ww // bw))
    else:
        new_w, new_h = max(ww, -(-bw * wh // bh)), wh

    scaled = black
    if (new_h, new_w) != (bh, bw):
        scaled = cv2.resize(black, (new_w, new_h), interpolation=cv2.INTER_LANCZOS4)

    y0 = (new_h - wh) // 2
    x0 = (new_w - ww) // 2
    return scaled[y0 : y0 + wh, x0 : x0 + ww], True


def difference_matte(white_rgb: np.ndarray, black_rgb: np.ndarray) -> np.ndarray:
    """
    Recover RGBA from a white/black background pair.

    Per pixel:
      alpha = clamp(1 - |W - B| / BG_DIST, 0, 1)
      F     = B / alpha   (0 where alpha <= ALPHA_EPSILON)

    Returns uint8 (H, W, 4).
    """
    if white_rgb.nbytes != black_rgb.nbytes or white_rgb.shape != black_rgb.shape:
        raise DimensionMismatchError(
            f"Size mismatch after resize: white={white_rgb.nbytes} black={black_rgb.nbytes}"
        )

    w = white_rgb.astype(np.float64)
    b = black_rgb.astype(np.float64)

    pixel_dist = np.sqrt(np.sum((w - b) ** 2, axis=-1))
    alpha = np.clip(1.0 - pixel_dist / BG_DIST, 0.0, 1.0)

    visible = alpha > ALPHA_EPSILON
    fg = np.zeros_like(b)
    np.divide(b, alpha[..., None], out=fg, where=visible[..., None])
    fg = np.clip(fg, 0.0, 255.0)

    out = np.empty(white_rgb.shape[:2] + (4,), dtype=np.uint8)
    out[..., :3] = _round_half_up(fg).astype(np.uint8)
    out[..., 3] = _round_half_up(alpha * 255.0).astype(np.uint8)
    return out


def extract_alpha(white: ImageLike, black: ImageLike) -> MatteResult:
    white_rgb = _as_rgb(white)
    black_rgb, resized = reconcile_dimensions(white_rgb, _as_rgb(black))
    return MatteResult(rgba=difference_matte(white_rgb, black_rgb), black_resized=resized)


def alpha_coverage(rgba: np.ndarray) -> Tuple[float, float]:
    """
    Fractions of fully opaque and fully transparent pixels.
    """
    a = rgba[..., 3]
    if a.size == 0:
        return 0.0, 0.0
    return float((a == 255).mean()), float((a == 0).mean())
