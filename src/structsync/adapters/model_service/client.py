"""HTTP client for the structural model service."""

from __future__ import annotations

import math
from logging import getLogger
from typing import TYPE_CHECKING, Self
from urllib.parse import quote

import httpx
from httpx_retries import RetryTransport
from pydantic import BaseModel, ValidationError

from structsync.config import get_model_service_config
from structsync.domain.errors import ModelServiceError
from structsync.domain.reconciliation.settings import DEFAULT_LENGTH_TOLERANCE

from .schema import (
    CoordinatesBody,
    CoordinatesResponse,
    DistributedLoadBody,
    FrameNamesResponse,
    FramePointsResponse,
    LockBody,
    LockStatusResponse,
    ReturnCodeResponse,
)

if TYPE_CHECKING:
    from types import TracebackType

    from structsync.config import ModelServiceConfig
    from structsync.domain.ports import Coordinates, StructuralModel
    from structsync.domain.types import IdentityKey, PreparedAssignment

log = getLogger(__name__)


def _segment(name: str) -> str:
    return quote(name.strip(), safe="")


class ModelServiceClient:
    """``StructuralModel`` over HTTP; one instance is one model session.

    Lookups answer ``None`` when the service cannot. Writes return ``True`` on
    a zero return code and raise ``ModelServiceError`` on transport failures.
    """

    def __init__(
        self,
        config: ModelServiceConfig | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config or get_model_service_config()
        resilience = self.config.resilience
        retry_transport = RetryTransport(
            transport=transport or httpx.HTTPTransport(),
            retry=resilience.retry.build(),
        )
        headers = dict(resilience.default_headers) if resilience.default_headers else None
        event_hooks = (
            {"response": list(resilience.response_hooks)} if resilience.response_hooks else None
        )
        self._client = httpx.Client(
            base_url=resilience.base_url or self.config.base_url,
            timeout=resilience.timeout_seconds,
            headers=headers,
            event_hooks=event_hooks,
            transport=retry_transport,
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # lookups

    def frame_names(self) -> frozenset[str] | None:
        try:
            response = self._call(FrameNamesResponse, "GET", "/frames")
        except ModelServiceError:
            log.warning("Listing frames failed", exc_info=True)
            return None
        return frozenset(response.names)

    def frame_length(self, name: str) -> float | None:
        try:
            points = self._call(FramePointsResponse, "GET", f"/frames/{_segment(name)}/points")
        except ModelServiceError:
            log.warning("Looking up end points of frame %r failed", name, exc_info=True)
            return None
        if points.ret != 0 or not points.point_i or not points.point_j:
            return None

        start = self.point_coordinates(points.point_i)
        end = self.point_coordinates(points.point_j)
        if start is None or end is None:
            return None
        length = math.dist(start, end)
        if not math.isfinite(length) or length <= DEFAULT_LENGTH_TOLERANCE:
            return None
        return length

    def point_coordinates(self, name: str) -> Coordinates | None:
        try:
            response = self._call(
                CoordinatesResponse, "GET", f"/points/{_segment(name)}/coordinates"
            )
        except ModelServiceError:
            log.warning("Reading coordinates of point %r failed", name, exc_info=True)
            return None
        if response.ret != 0:
            return None
        return (response.x, response.y, response.z)

    # writes

    def set_point_coordinates(self, name: str, coordinates: Coordinates) -> bool:
        x, y, z = coordinates
        body = CoordinatesBody(x=x, y=y, z=z)
        response = self._call(
            ReturnCodeResponse,
            "PUT",
            f"/points/{_segment(name)}/coordinates",
            json=body.model_dump(),
        )
        return response.ok

    def set_distributed_load(self, assignment: PreparedAssignment, *, replace: bool) -> bool:
        body = DistributedLoadBody(
            load_pattern=assignment.key.load_pattern,
            load_type=assignment.load_type,
            direction=assignment.direction,
            dist1=assignment.rel_dist1,
            dist2=assignment.rel_dist2,
            value1=assignment.value1,
            value2=assignment.value2,
            coordinate_system=assignment.coordinate_system,
            replace=replace,
        )
        response = self._call(
            ReturnCodeResponse,
            "POST",
            f"/frames/{_segment(assignment.key.frame_name)}/loads/distributed",
            json=body.model_dump(by_alias=True),
        )
        return response.ok

    def remove_distributed_load(self, key: IdentityKey) -> bool:
        response = self._call(
            ReturnCodeResponse,
            "DELETE",
            f"/frames/{_segment(key.frame_name)}/loads/distributed",
            params={"pattern": key.load_pattern},
        )
        return response.ok

    def refresh_view(self) -> None:
        self._call(ReturnCodeResponse, "POST", "/view/refresh")

    def unlock(self) -> None:
        """Unlock the model when it is locked; failures are logged, not raised."""

        try:
            status = self._call(LockStatusResponse, "GET", "/model/lock")
            if status.locked:
                log.info("Model is locked; unlocking before writes")
                self._call(
                    ReturnCodeResponse,
                    "PUT",
                    "/model/lock",
                    json=LockBody(locked=False).model_dump(),
                )
        except ModelServiceError:
            log.warning("Could not check or clear the model lock", exc_info=True)

    def _call[TModel: BaseModel](
        self,
        model: type[TModel],
        method: str,
        url: str,
        *,
        json: object | None = None,
        params: dict[str, str] | None = None,
    ) -> TModel:
        try:
            response = self._client.request(method, url, json=json, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise ModelServiceError(f"{method} {url} failed: {exc}") from exc
        except ValueError as exc:
            raise ModelServiceError(f"{method} {url} returned invalid JSON") from exc

        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            log.error(f"Unexpected payload from {method} {url}: {payload!r}")
            msg = f"Unexpected model service payload from {method} {url}"
            raise ModelServiceError(msg) from exc


if TYPE_CHECKING:
    _model_check: StructuralModel = ModelServiceClient()
