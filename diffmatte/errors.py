from __future__ import annotations


class MattingError(RuntimeError):
    """Base error; carries the pipeline stage that failed."""

    stage = "run"

    def __init__(self, message: str, stage: str | None = None) -> None:
        if stage is not None:
            self.stage = stage
        self.message = message
        super().__init__(f"[{self.stage}] {message}")


class ConfigurationError(MattingError):
    stage = "acquire"


class ServiceError(MattingError):
    stage = "service"


class DimensionMismatchError(MattingError, ValueError):
    stage = "matte"
