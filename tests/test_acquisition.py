from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from diffmatte.acquisition import MODE_CALLS, AcquisitionMode, acquire, resolve_mode
from diffmatte.contracts import AcquisitionRequest
from diffmatte.errors import ConfigurationError


class _RecordingService:
    """Fake image service; records method names in call order."""

    def __init__(self):
        self.calls = []

    def place_on_white_background(self, prompt):
        self.calls.append("place_on_white_background")
        return Image.new("RGB", (8, 6), (255, 255, 255))

    def isolate_on_white_background(self, image, prompt):
        self.calls.append("isolate_on_white_background")
        return Image.new("RGB", image.size, (255, 255, 255))

    def edit_background_to_black(self, image):
        self.calls.append("edit_background_to_black")
        return Image.new("RGB", image.size, (0, 0, 0))


def _write_dummy_image(path: Path, color=(200, 100, 50), size=(32, 24)) -> str:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(str(path), format="PNG")
    return str(path)


@pytest.mark.parametrize(
    "kwargs, expected",
    [
        ({"white_path": "w.png", "black_path": "b.png"}, AcquisitionMode.PROVIDED_PAIR),
        ({"white_path": "w.png", "black_path": "b.png", "prompt": "x", "input_path": "i.png"}, AcquisitionMode.PROVIDED_PAIR),
        ({"white_path": "w.png"}, AcquisitionMode.EDIT_ONLY),
        ({"white_path": "w.png", "prompt": "a red cube"}, AcquisitionMode.EDIT_ONLY),
        ({"input_path": "i.png", "prompt": "the vase"}, AcquisitionMode.EXTRACT_THEN_EDIT),
        ({"prompt": "a red cube"}, AcquisitionMode.GENERATE_THEN_EDIT),
        ({"prompt": "a red cube", "black_path": "b.png"}, AcquisitionMode.GENERATE_THEN_EDIT),
        ({}, AcquisitionMode.UNRESOLVABLE),
        ({"input_path": "i.png"}, AcquisitionMode.UNRESOLVABLE),
        ({"black_path": "b.png"}, AcquisitionMode.UNRESOLVABLE),
    ],
)
def test_resolve_mode(kwargs, expected):
    assert resolve_mode(AcquisitionRequest(**kwargs)) is expected


def test_prompt_only_generates_then_edits():
    service = _RecordingService()
    pair = acquire(AcquisitionRequest(prompt="a red cube"), service=service)

    assert service.calls == ["place_on_white_background", "edit_background_to_black"]
    assert tuple(service.calls) == MODE_CALLS[AcquisitionMode.GENERATE_THEN_EDIT]
    assert pair.mode is AcquisitionMode.GENERATE_THEN_EDIT
    assert pair.white.size == pair.black.size


def test_provided_pair_makes_no_service_calls(tmp_path: Path):
    service = _RecordingService()
    white = _write_dummy_image(tmp_path / "w.png", (255, 255, 255))
    black = _write_dummy_image(tmp_path / "b.png", (0, 0, 0))

    pair = acquire(AcquisitionRequest(white_path=white, black_path=black), service=service)

    assert service.calls == []
    assert pair.mode is AcquisitionMode.PROVIDED_PAIR
    assert pair.white.getpixel((0, 0)) == (255, 255, 255)
    assert pair.black.getpixel((0, 0)) == (0, 0, 0)


def test_provided_pair_never_builds_a_service(tmp_path: Path):
    white = _write_dummy_image(tmp_path / "w.png")
    black = _write_dummy_image(tmp_path / "b.png")

    def _factory(_model):
        raise AssertionError("service should not be constructed")

    acquire(AcquisitionRequest(white_path=white, black_path=black), service_factory=_factory)


def test_white_only_edits_to_black(tmp_path: Path):
    service = _RecordingService()
    white = _write_dummy_image(tmp_path / "w.png", (255, 255, 255), size=(10, 7))

    pair = acquire(AcquisitionRequest(white_path=white), service=service)

    assert service.calls == ["edit_background_to_black"]
    assert pair.black.size == (10, 7)


def test_input_and_prompt_extracts_then_edits(tmp_path: Path):
    service = _RecordingService()
    photo = _write_dummy_image(tmp_path / "photo.png", size=(12, 9))

    pair = acquire(AcquisitionRequest(input_path=photo, prompt="the vase"), service=service)

    assert service.calls == ["isolate_on_white_background", "edit_background_to_black"]
    assert pair.mode is AcquisitionMode.EXTRACT_THEN_EDIT
    assert pair.white.size == (12, 9)


def test_factory_receives_model():
    seen = {}

    def _factory(model):
        seen["model"] = model
        return _RecordingService()

    acquire(AcquisitionRequest(prompt="a red cube", model="custom-image-model"), service_factory=_factory)
    assert seen["model"] == "custom-image-model"


def test_unresolvable_raises_configuration_error_without_calls():
    service = _RecordingService()
    with pytest.raises(ConfigurationError) as exc:
        acquire(AcquisitionRequest(), service=service)
    assert service.calls == []
    assert exc.value.stage == "acquire"


def test_input_without_prompt_reports_missing_prompt():
    with pytest.raises(ConfigurationError, match="prompt describing which object"):
        acquire(AcquisitionRequest(input_path="photo.png"), service=_RecordingService())


def test_service_errors_propagate():
    from diffmatte.errors import ServiceError

    class _Failing(_RecordingService):
        def edit_background_to_black(self, image):
            raise ServiceError("No image in response", stage="edit_to_black")

    service = _Failing()
    with pytest.raises(ServiceError) as exc:
        acquire(AcquisitionRequest(prompt="a red cube"), service=service)
    assert exc.value.stage == "edit_to_black"
    assert service.calls == ["place_on_white_background"]


def test_unreadable_image_reports_acquire_stage(tmp_path: Path):
    corrupt = tmp_path / "w.png"
    corrupt.write_bytes(b"not a png")
    black = _write_dummy_image(tmp_path / "b.png", (0, 0, 0))

    with pytest.raises(ConfigurationError, match="Cannot read image") as exc:
        acquire(AcquisitionRequest(white_path=str(corrupt), black_path=black), service=_RecordingService())
    assert exc.value.stage == "acquire"


def test_missing_input_image_reports_acquire_stage(tmp_path: Path):
    service = _RecordingService()
    with pytest.raises(ConfigurationError) as exc:
        acquire(AcquisitionRequest(input_path=str(tmp_path / "nope.png"), prompt="the vase"), service=service)
    assert exc.value.stage == "acquire"
    assert service.calls == []
