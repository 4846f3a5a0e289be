"""Core value types shared by the reconciliation stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import Final

LOCAL: Final[str] = "Local"
GLOBAL: Final[str] = "Global"


@dataclass(frozen=True, slots=True, eq=False)
class IdentityKey:
    """Frame name and load pattern addressing one assignable load.

    Components are trimmed on construction. Equality and hashing ignore case so
    ``IdentityKey("b12", "dead")`` and ``IdentityKey(" B12 ", "DEAD")`` collide.
    """

    frame_name: str
    load_pattern: str
    _folded: tuple[str, str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        frame = (self.frame_name or "").strip()
        pattern = (self.load_pattern or "").strip()
        object.__setattr__(self, "frame_name", frame)
        object.__setattr__(self, "load_pattern", pattern)
        object.__setattr__(self, "_folded", (frame.casefold(), pattern.casefold()))

    @classmethod
    def parse(cls, frame_name: str | None, load_pattern: str | None) -> IdentityKey | None:
        """Return a key, or ``None`` when either component is blank."""

        key = cls(frame_name or "", load_pattern or "")
        return key if key.is_valid else None

    @property
    def is_valid(self) -> bool:
        return bool(self.frame_name) and bool(self.load_pattern)

    @property
    def sort_key(self) -> tuple[str, str]:
        return self._folded

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IdentityKey):
            return NotImplemented
        return self._folded == other._folded

    def __hash__(self) -> int:
        return hash(self._folded)

    def __str__(self) -> str:
        return f"{self.frame_name}/{self.load_pattern}"


class LoadType(IntEnum):
    """Distributed load shape codes understood by the model."""

    UNIFORM = 1
    TRAPEZOIDAL = 2


class DuplicatePolicy(StrEnum):
    """How rows sharing one identity key within a batch are treated."""

    FIRST_WINS = "first_wins"
    LAST_WINS = "last_wins"
    REJECT = "reject"
    KEEP_ALL = "keep_all"


@dataclass(frozen=True, slots=True, kw_only=True)
class LoadRow:
    """One parsed worksheet row; every typed field may be missing."""

    row_index: int
    frame_name: str | None = None
    load_pattern: str | None = None
    load_type: int | None = None
    coordinate_system: str | None = None
    direction: int | None = None
    rel_dist1: float | None = None
    rel_dist2: float | None = None
    dist1: float | None = None
    dist2: float | None = None
    value1: float | None = None
    value2: float | None = None

    @property
    def key(self) -> IdentityKey | None:
        return IdentityKey.parse(self.frame_name, self.load_pattern)

    @property
    def label(self) -> str:
        """Diagnostic tag ``<row_index>:<frame>/<pattern>``."""

        key = self.key
        if key is not None:
            return f"{self.row_index}:{key}"
        return f"{self.row_index}:{self.frame_name or ''}"


@dataclass(frozen=True, slots=True, kw_only=True)
class PreparedAssignment:
    """A row resolved to concrete codes and distances, ready to apply."""

    row_index: int
    key: IdentityKey
    load_type: int
    direction: int
    coordinate_system: str
    rel_dist1: float
    rel_dist2: float
    dist1: float
    dist2: float
    value1: float
    value2: float

    @property
    def label(self) -> str:
        return f"{self.row_index}:{self.key}"
