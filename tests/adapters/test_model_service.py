from __future__ import annotations

import json
from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from structsync.adapters.model_service import ModelServiceClient, ModelServiceError
from structsync.config import ModelServiceConfig, ResilienceConfig, RetryPolicy
from structsync.domain.types import IdentityKey, PreparedAssignment

BASE_URL = "http://model.test/api"


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> ModelServiceClient:
    config = ModelServiceConfig(
        base_url=BASE_URL,
        token=None,
        resilience=ResilienceConfig(
            name="model-service-test",
            base_url=BASE_URL,
            retry=RetryPolicy(total=0),
            default_headers={"Authorization": "Bearer token"},
        ),
    )
    return ModelServiceClient(config, transport=httpx.MockTransport(handler))


def _routes(
    table: dict[tuple[str, str], httpx.Response],
    seen: list[httpx.Request] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        path = request.url.raw_path.decode().partition("?")[0]
        return table.get((request.method, path), httpx.Response(404))

    return handler


def test_frame_names() -> None:
    handler = _routes(
        {("GET", "/api/frames"): httpx.Response(200, json={"names": ["B1", " ", "B2 "]})}
    )

    with _client(handler) as client:
        assert client.frame_names() == frozenset({"B1", "B2"})


def test_frame_names_returns_none_on_server_error() -> None:
    with _client(_routes({("GET", "/api/frames"): httpx.Response(500)})) as client:
        assert client.frame_names() is None


def test_frame_length_uses_end_point_coordinates() -> None:
    handler = _routes(
        {
            ("GET", "/api/frames/B%2F1/points"): httpx.Response(
                200, json={"ret": 0, "pointI": "1", "pointJ": "2"}
            ),
            ("GET", "/api/points/1/coordinates"): httpx.Response(
                200, json={"ret": 0, "x": 0, "y": 0, "z": 0}
            ),
            ("GET", "/api/points/2/coordinates"): httpx.Response(
                200, json={"ret": 0, "x": 3, "y": 4, "z": 0}
            ),
        }
    )

    with _client(handler) as client:
        assert client.frame_length("B/1") == pytest.approx(5.0)


def test_frame_length_of_zero_length_frame_is_none() -> None:
    handler = _routes(
        {
            ("GET", "/api/frames/B1/points"): httpx.Response(
                200, json={"ret": 0, "pointI": "1", "pointJ": "2"}
            ),
            ("GET", "/api/points/1/coordinates"): httpx.Response(
                200, json={"ret": 0, "x": 1, "y": 1, "z": 1}
            ),
            ("GET", "/api/points/2/coordinates"): httpx.Response(
                200, json={"ret": 0, "x": 1, "y": 1, "z": 1}
            ),
        }
    )

    with _client(handler) as client:
        assert client.frame_length("B1") is None


def test_point_coordinates_with_failure_code_is_none() -> None:
    handler = _routes(
        {
            ("GET", "/api/points/P1/coordinates"): httpx.Response(
                200, json={"ret": 1, "x": 0, "y": 0, "z": 0}
            )
        }
    )

    with _client(handler) as client:
        assert client.point_coordinates("P1") is None


def test_set_distributed_load_posts_relative_distances() -> None:
    seen: list[httpx.Request] = []
    handler = _routes(
        {("POST", "/api/frames/B1/loads/distributed"): httpx.Response(200, json={"ret": 0})},
        seen,
    )
    assignment = PreparedAssignment(
        row_index=0,
        key=IdentityKey("B1", "DEAD"),
        load_type=2,
        direction=10,
        coordinate_system="Global",
        rel_dist1=0.25,
        rel_dist2=0.75,
        dist1=1.0,
        dist2=3.0,
        value1=1.5,
        value2=2.5,
    )

    with _client(handler) as client:
        assert client.set_distributed_load(assignment, replace=False) is True

    (request,) = seen
    assert request.headers["Authorization"] == "Bearer token"
    assert json.loads(request.content) == {
        "loadPattern": "DEAD",
        "loadType": 2,
        "direction": 10,
        "dist1": 0.25,
        "dist2": 0.75,
        "value1": 1.5,
        "value2": 2.5,
        "coordinateSystem": "Global",
        "relativeDistances": True,
        "replace": False,
    }


def test_remove_distributed_load_reports_failure_code() -> None:
    seen: list[httpx.Request] = []
    handler = _routes(
        {("DELETE", "/api/frames/B1/loads/distributed"): httpx.Response(200, json={"ret": 1})},
        seen,
    )

    with _client(handler) as client:
        assert client.remove_distributed_load(IdentityKey("B1", "LIVE")) is False

    assert seen[0].url.params["pattern"] == "LIVE"


def test_set_point_coordinates() -> None:
    seen: list[httpx.Request] = []
    handler = _routes(
        {("PUT", "/api/points/P1/coordinates"): httpx.Response(200, json={"ret": 0})}, seen
    )

    with _client(handler) as client:
        assert client.set_point_coordinates("P1", (1.0, 2.0, 3.0)) is True

    assert json.loads(seen[0].content) == {"x": 1.0, "y": 2.0, "z": 3.0}


def test_write_transport_errors_raise_model_service_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with _client(handler) as client, pytest.raises(ModelServiceError):
        client.refresh_view()


def test_unexpected_payload_raises_model_service_error() -> None:
    handler = _routes({("POST", "/api/view/refresh"): httpx.Response(200, json={"status": 1})})

    with _client(handler) as client, pytest.raises(ModelServiceError, match="Unexpected"):
        client.refresh_view()


def test_unlock_clears_lock_when_locked() -> None:
    seen: list[httpx.Request] = []
    handler = _routes(
        {
            ("GET", "/api/model/lock"): httpx.Response(200, json={"locked": True}),
            ("PUT", "/api/model/lock"): httpx.Response(200, json={"ret": 0}),
        },
        seen,
    )

    with _client(handler) as client:
        client.unlock()

    assert [request.method for request in seen] == ["GET", "PUT"]
    assert json.loads(seen[1].content) == {"locked": False}


def test_unlock_failures_are_swallowed() -> None:
    seen: list[httpx.Request] = []
    handler = _routes({}, seen)

    with _client(handler) as client:
        client.unlock()

    assert [request.method for request in seen] == ["GET"]
