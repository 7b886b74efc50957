from __future__ import annotations

import os
from typing import Optional

import requests
from PIL import Image

from .config import (
    BLACK_EDIT_PROMPT,
    DEFAULT_BASE_URL,
    DEFAULT_IMAGE_MODEL,
    DEFAULT_TIMEOUT_S,
    WHITE_EXTRACT_PROMPT,
    WHITE_GENERATE_PROMPT,
)
from .errors import ConfigurationError, ServiceError
from .io import decode_base64_image, image_to_base64_png


def _get_base_url() -> str:
    return os.getenv("GEMINI_BASE_URL", DEFAULT_BASE_URL).rstrip("/")


def _get_timeout_s() -> float:
    try:
        return float(os.getenv("GEMINI_TIMEOUT_S", str(DEFAULT_TIMEOUT_S)))
    except ValueError:
        return DEFAULT_TIMEOUT_S


def _decode_image_part(part: dict) -> Optional[Image.Image]:
    """
    Best-effort decode of a Gemini image output part.
    """
    inline = part.get("inlineData") if isinstance(part, dict) else None
    if not isinstance(inline, dict):
        return None
    mime = inline.get("mimeType", "")
    data = inline.get("data")
    if not (isinstance(data, str) and data):
        return None
    if mime and not mime.startswith("image/"):
        return None
    try:
        return decode_base64_image(data)
    except (ValueError, OSError):
        return None


def _image_part(image: Image.Image) -> dict:
    return {"inlineData": {"mimeType": "image/png", "data": image_to_base64_png(image)}}


class GeminiImageService:
    """
    Image generation/editing over the Gemini generateContent REST API.

    Each call is one synchronous round-trip. Failures surface as ServiceError
    immediately; retrying is the caller's decision.
    """

    def __init__(self, api_key: str, model: str = DEFAULT_IMAGE_MODEL) -> None:
        self.api_key = api_key
        self.model = model

    @classmethod
    def from_env(cls, model: str = DEFAULT_IMAGE_MODEL) -> "GeminiImageService":
        api_key = os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY environment variable is required for generation")
        return cls(api_key=api_key, model=model)

    def _generate_image(self, parts: list[dict], stage: str) -> Image.Image:
        url = f"{_get_base_url()}/v1beta/models/{self.model}:generateContent"
        payload = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {"responseModalities": ["IMAGE"]},
        }
        try:
            resp = requests.post(url, params={"key": self.api_key}, json=payload, timeout=_get_timeout_s())
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            raise ServiceError(f"Image request failed: {e}", stage=stage) from e
        except ValueError as e:
            raise ServiceError(f"Invalid JSON in image response: {e}", stage=stage) from e

        candidates = data.get("candidates") or []
        if not candidates:
            raise ServiceError("No response from model", stage=stage)
        content = (candidates[0] or {}).get("content") or {}
        parts_out = content.get("parts") or []

        # Find first image part.
        for p in parts_out:
            img = _decode_image_part(p)
            if img is not None:
                return img

        raise ServiceError("No image in response", stage=stage)

    def place_on_white_background(self, prompt: str) -> Image.Image:
        text = WHITE_GENERATE_PROMPT.format(prompt=prompt)
        return self._generate_image([{"text": text}], stage="place_on_white")

    def isolate_on_white_background(self, image: Image.Image, prompt: str) -> Image.Image:
        text = WHITE_EXTRACT_PROMPT.format(prompt=prompt)
        return self._generate_image([{"text": text}, _image_part(image)], stage="isolate_on_white")

    def edit_background_to_black(self, image: Image.Image) -> Image.Image:
        return self._generate_image([{"text": BLACK_EDIT_PROMPT}, _image_part(image)], stage="edit_to_black")
