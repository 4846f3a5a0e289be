"""Domain port definitions for adapters."""

from __future__ import annotations

from .model import Coordinates, ModelSession, ModelSessionFactory, StructuralModel
from .progress import DependentView, ProgressSink
from .source import SheetData, SheetLayout, TabularSource
from .state import BaselineStore, SessionStateStore

__all__ = [
    "BaselineStore",
    "Coordinates",
    "DependentView",
    "ModelSession",
    "ModelSessionFactory",
    "ProgressSink",
    "SessionStateStore",
    "SheetData",
    "SheetLayout",
    "StructuralModel",
    "TabularSource",
]
