"""
Centralized configuration constants for the difference-matting pipeline.

Ground rules:
- white image dimensions are authoritative
- no internal retries on image service calls
"""

import math

DEFAULT_IMAGE_MODEL = "gemini-3-pro-image-preview"
DEFAULT_OUTPUT = "output.png"

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_TIMEOUT_S = 120.0

# Distance between pure white and pure black in RGB space.
BG_DIST = math.sqrt(3 * 255 * 255)

# Below this alpha the foreground color is undefined; emit black instead of dividing.
ALPHA_EPSILON = 0.01

WHITE_SUFFIX = "-white"
BLACK_SUFFIX = "-black"

IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tif", ".tiff"}

# Versioned prompts (keep changes explicit + centralized).
WHITE_GENERATE_PROMPT = "{prompt}. On a pure solid white #FFFFFF background"

WHITE_EXTRACT_PROMPT = (
    "This image contains {prompt}. Remove everything from the scene except {prompt}. "
    "Place the isolated object on a plain, pure white #FFFFFF background with no shadows, "
    "no reflections, and no other elements. Do not change the object itself in any way - "
    "preserve its exact colors, shape, size, and details."
)

BLACK_EDIT_PROMPT = (
    "Change the white background to a solid pure black #000000 background. "
    "Keep everything else exactly unchanged."
)
