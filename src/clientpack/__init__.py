"""clientpack: package a multi-file web client into a firmware header."""
from __future__ import annotations

__version__ = "0.1.0"

from clientpack.config import BuildConfig
from clientpack.errors import (
    ClientpackError,
    NetworkError,
    ReadError,
    StructuralError,
    TransformError,
)
from clientpack.pipeline import BuildPipeline, BuildResult

__all__ = [
    "__version__",
    "BuildConfig",
    "BuildPipeline",
    "BuildResult",
    "ClientpackError",
    "NetworkError",
    "ReadError",
    "StructuralError",
    "TransformError",
]
