from __future__ import annotations

from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field

from .config import DEFAULT_IMAGE_MODEL


class AcquisitionRequest(BaseModel):
    """Inputs supplied by the caller; any subset may be set."""

    prompt: Optional[str] = None
    input_path: Optional[str] = None
    white_path: Optional[str] = None
    black_path: Optional[str] = None
    model: str = DEFAULT_IMAGE_MODEL


class RunMetadata(BaseModel):
    mode: Literal[
        "provided_pair",
        "edit_only",
        "extract_then_edit",
        "generate_then_edit",
    ]
    model: str
    output_path: str
    white_path: Optional[str] = None
    black_path: Optional[str] = None
    width: int
    height: int
    black_resized: bool = False
    opaque_fraction: float = 0.0
    transparent_fraction: float = 0.0
    timings_s: Dict[str, float] = Field(default_factory=dict)
