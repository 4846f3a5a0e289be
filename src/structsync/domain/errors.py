"""Error taxonomy for reconciliation runs.

Fatal errors (configuration and source format) abort a run before any model
call is made. Everything else is accumulated per item and reported at run end.
"""

from __future__ import annotations

from enum import StrEnum


class ReconciliationError(RuntimeError):
    """Base class for errors raised by the reconciliation core."""


class ConfigurationError(ReconciliationError):
    """Raised when run inputs or settings are missing or invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration values are absent or blank."""


class SourceFormatError(ReconciliationError):
    """Raised when the tabular source cannot be read as the expected layout."""


class ModelServiceError(ReconciliationError):
    """Raised when the structural model service fails or returns an unexpected payload."""


class IssueKind(StrEnum):
    """Per-item failure classes accumulated during a run."""

    ROW_VALIDATION = "row_validation"
    DUPLICATE = "duplicate"
    EXTERNAL_REFERENCE = "external_reference"
    EXTERNAL_APPLY = "external_apply"
    NORMALIZED = "normalized"
