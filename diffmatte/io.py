from __future__ import annotations

import base64
import io
import json
from pathlib import Path
from typing import Any, Dict, Tuple

import numpy as np
from PIL import Image

from .config import BLACK_SUFFIX, WHITE_SUFFIX


def load_image(path: str) -> Image.Image:
    img = Image.open(path)
    img.load()
    return img


def _flatten_alpha_to_white(img: Image.Image) -> Image.Image:
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        bg = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        comp = Image.alpha_composite(bg, rgba)
        return comp.convert("RGB")
    return img.convert("RGB")


def save_png(img: Image.Image, path: str) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    img.save(str(p), format="PNG")


def image_to_base64_png(img: Image.Image) -> str:
    """
    Encode for upload; transparent regions are flattened onto white.
    """
    img = _flatten_alpha_to_white(img)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return base64.b64encode(buf.getvalue()).decode("utf-8")


def decode_base64_image(data: str) -> Image.Image:
    raw = base64.b64decode(data)
    img = Image.open(io.BytesIO(raw))
    img.load()
    return img.convert("RGB")


def write_json(path: str, data: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")


def intermediate_paths(output_path: str) -> Tuple[str, str]:
    """
    White/black intermediate paths next to the output.
    Example: "out/helmet.png" -> ("out/helmet-white.png", "out/helmet-black.png")
    """
    p = Path(output_path)
    white = p.with_name(f"{p.stem}{WHITE_SUFFIX}.png")
    black = p.with_name(f"{p.stem}{BLACK_SUFFIX}.png")
    return str(white), str(black)


def pil_to_numpy_rgb(img: Image.Image) -> np.ndarray:
    """
    RGB uint8 array. Any alpha channel is dropped, not composited: matting
    only compares the color channels.
    """
    arr = np.array(img.convert("RGB"), dtype=np.uint8)
    if arr.ndim != 3 or arr.shape[2] != 3:
        raise ValueError(f"Expected RGB image array, got shape={arr.shape}")
    return arr
