"""Error hierarchy for clientpack."""
from __future__ import annotations

from pathlib import Path


class ClientpackError(Exception):
    """Base error for all clientpack errors."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ReadError(ClientpackError):
    """An asset referenced from a stylesheet could not be read."""

    def __init__(
        self, message: str, *, path: Path | None = None, cause: Exception | None = None
    ) -> None:
        super().__init__(message, cause=cause)
        self.path = path


class TransformError(ClientpackError):
    """Bundling or minification rejected its input."""

    def __init__(
        self, message: str, *, source: str = "", cause: Exception | None = None
    ) -> None:
        super().__init__(message, cause=cause)
        self.source = source


class StructuralError(ClientpackError):
    """The HTML shell is missing (or duplicates) an expected element or marker."""


class NetworkError(ClientpackError):
    """A settings request to the device failed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.status_code = status_code
