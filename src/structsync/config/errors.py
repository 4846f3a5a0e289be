"""Configuration error definitions.

The domain owns the error hierarchy so the engine can report configuration
problems without importing this package; these are re-exports.
"""

from __future__ import annotations

from structsync.domain.errors import ConfigurationError, MissingConfigurationError

__all__ = ["ConfigurationError", "MissingConfigurationError"]
