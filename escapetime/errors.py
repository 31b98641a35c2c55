"""Structured errors raised by the rendering pipeline."""

from __future__ import annotations

from typing import Any


class RenderError(Exception):
    """Base class for every failure that aborts a render.

    ``kind`` names the failure class and ``context`` keeps the values that
    explain it, so callers can report or inspect them without parsing text.
    """

    kind = "RenderError"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class ConfigInvalid(RenderError, ValueError):
    kind = "ConfigInvalid"


class NoIdleWorker(RenderError, RuntimeError):
    kind = "NoIdleWorker"


class AlreadyCollected(RenderError, RuntimeError):
    kind = "AlreadyCollected"


class UnknownJob(RenderError, RuntimeError):
    kind = "UnknownJob"


class JoinFailure(RenderError, RuntimeError):
    kind = "JoinFailure"


class BufferOverflow(RenderError, RuntimeError):
    kind = "BufferOverflow"


class NoWorkersRan(RenderError, RuntimeError):
    kind = "NoWorkersRan"


class ComplexParseError(ValueError):
    """Raised when a ``"<real>,<imaginary>"`` literal cannot be parsed."""
