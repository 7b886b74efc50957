from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Protocol, Tuple

from PIL import Image

from .contracts import AcquisitionRequest
from .errors import ConfigurationError
from .gemini_image import GeminiImageService
from .io import load_image


class AcquisitionMode(str, Enum):
    PROVIDED_PAIR = "provided_pair"
    EDIT_ONLY = "edit_only"
    EXTRACT_THEN_EDIT = "extract_then_edit"
    GENERATE_THEN_EDIT = "generate_then_edit"
    UNRESOLVABLE = "unresolvable"


# Service methods each mode issues, in call order.
MODE_CALLS: Dict[AcquisitionMode, Tuple[str, ...]] = {
    AcquisitionMode.PROVIDED_PAIR: (),
    AcquisitionMode.EDIT_ONLY: ("edit_background_to_black",),
    AcquisitionMode.EXTRACT_THEN_EDIT: ("isolate_on_white_background", "edit_background_to_black"),
    AcquisitionMode.GENERATE_THEN_EDIT: ("place_on_white_background", "edit_background_to_black"),
    AcquisitionMode.UNRESOLVABLE: (),
}


class ImageService(Protocol):
    def place_on_white_background(self, prompt: str) -> Image.Image: ...

    def isolate_on_white_background(self, image: Image.Image, prompt: str) -> Image.Image: ...

    def edit_background_to_black(self, image: Image.Image) -> Image.Image: ...


@dataclass(frozen=True)
class BackgroundPair:
    white: Image.Image
    black: Image.Image
    mode: AcquisitionMode


def _load(path: str) -> Image.Image:
    try:
        return load_image(path)
    except OSError as e:
        raise ConfigurationError(f"Cannot read image {path}: {e}") from e


def resolve_mode(request: AcquisitionRequest) -> AcquisitionMode:
    """
    First matching rule wins:
      1) white + black      -> PROVIDED_PAIR
      2) white only         -> EDIT_ONLY
      3) input + prompt     -> EXTRACT_THEN_EDIT
      4) prompt             -> GENERATE_THEN_EDIT
      5) anything else      -> UNRESOLVABLE
    """
    if request.white_path and request.black_path:
        return AcquisitionMode.PROVIDED_PAIR
    if request.white_path:
        return AcquisitionMode.EDIT_ONLY
    if request.input_path and request.prompt:
        return AcquisitionMode.EXTRACT_THEN_EDIT
    if request.prompt:
        return AcquisitionMode.GENERATE_THEN_EDIT
    return AcquisitionMode.UNRESOLVABLE


def _unresolvable_message(request: AcquisitionRequest) -> str:
    if request.input_path and not request.prompt:
        return "A prompt describing which object to extract is required with an input image"
    if request.black_path and not request.white_path:
        return "A black-background image needs its white-background counterpart"
    return "Nothing to do: supply a prompt, an input image with a prompt, or a white-background image"


def acquire(
    request: AcquisitionRequest,
    service: Optional[ImageService] = None,
    service_factory: Callable[[str], ImageService] = GeminiImageService.from_env,
) -> BackgroundPair:
    """
    Produce exactly one white-background and one black-background image.

    The service is only built when the resolved mode needs it, so a
    provided pair never requires credentials.
    """
    mode = resolve_mode(request)
    if mode is AcquisitionMode.UNRESOLVABLE:
        raise ConfigurationError(_unresolvable_message(request))

    if mode is AcquisitionMode.PROVIDED_PAIR:
        return BackgroundPair(
            white=_load(request.white_path),
            black=_load(request.black_path),
            mode=mode,
        )

    if service is None:
        service = service_factory(request.model)

    if mode is AcquisitionMode.EDIT_ONLY:
        white = _load(request.white_path)
    elif mode is AcquisitionMode.EXTRACT_THEN_EDIT:
        white = service.isolate_on_white_background(_load(request.input_path), request.prompt)
    else:
        white = service.place_on_white_background(request.prompt)

    black = service.edit_background_to_black(white)
    return BackgroundPair(white=white, black=black, mode=mode)
