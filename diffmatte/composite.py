from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image


def to_rgba_image(rgba: np.ndarray) -> Image.Image:
    """
    Wrap a uint8 (H, W, 4) array as a PIL RGBA image without altering values.
    """
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ValueError(f"Expected RGBA image (H,W,4), got {rgba.shape}")
    if rgba.dtype != np.uint8:
        raise ValueError(f"Expected uint8 RGBA, got dtype={rgba.dtype}")
    return Image.fromarray(rgba)


def save_rgba_png(img: Image.Image, out_path: str) -> None:
    """
    Save as lossless RGBA PNG.
    """
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)
    img.save(str(p), format="PNG", optimize=False)
