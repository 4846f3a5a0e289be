"""Public interface for the model service adapter."""

from __future__ import annotations

from structsync.domain.errors import ModelServiceError

from .client import ModelServiceClient
from .schema import DistributedLoadBody, FrameNamesResponse, ReturnCodeResponse

__all__ = [
    "DistributedLoadBody",
    "FrameNamesResponse",
    "ModelServiceClient",
    "ModelServiceError",
    "ReturnCodeResponse",
]
