"""Application configuration helpers."""

from __future__ import annotations

from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .model_service import ModelServiceConfig, get_model_service_config
from .reconcile import get_duplicate_policy, get_reconcile_settings, parse_duplicate_policy
from .storage import StateDatabaseConfig, get_state_database_config

__all__ = [
    "ConfigurationError",
    "MissingConfigurationError",
    "ModelServiceConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "StateDatabaseConfig",
    "configure_logging",
    "get_duplicate_policy",
    "get_model_service_config",
    "get_reconcile_settings",
    "get_state_database_config",
    "parse_duplicate_policy",
    "require_env_vars",
]
