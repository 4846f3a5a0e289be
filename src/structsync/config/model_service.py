"""Structural model service configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, optional_env_var, require_env_vars
from .http_resilience import ResilienceConfig

MODEL_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class ModelServiceConfig:
    """Holds model service connection values."""

    base_url: str
    token: str | None
    resilience: ResilienceConfig


def get_model_service_config(*, resilience: ResilienceConfig | None = None) -> ModelServiceConfig:
    values = require_env_vars(("STRUCTSYNC_MODEL_URL",))
    base_url = values["STRUCTSYNC_MODEL_URL"].strip().rstrip("/")
    token = optional_env_var("STRUCTSYNC_MODEL_TOKEN")
    headers = {"Authorization": f"Bearer {token}"} if token else None
    return ModelServiceConfig(
        base_url=base_url,
        token=token,
        resilience=resilience
        or ResilienceConfig(
            name="model-service",
            base_url=base_url,
            timeout_seconds=env_float("STRUCTSYNC_MODEL_TIMEOUT", MODEL_TIMEOUT_SECONDS),
            default_headers=headers,
        ),
    )
