"""Location of the state database that carries baselines between runs."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import env_bool, optional_env_var

STATE_DIR_ENV: Final[str] = "STRUCTSYNC_DATA_DIR"
DATABASE_URI_ENV: Final[str] = "DATABASE_URI"
SQL_ECHO_ENV: Final[str] = "STRUCTSYNC_SQL_ECHO"

DEFAULT_STATE_DIR: Final[Path] = Path("~/.structsync")
STATE_DB_FILENAME: Final[str] = "state.sqlite3"


@dataclass(frozen=True, slots=True)
class StateDatabaseConfig:
    """Where baselines and trigger state live.

    ``uri_override`` points at any SQLAlchemy database and wins over
    ``state_dir``; otherwise a SQLite file is kept under ``state_dir``.
    """

    state_dir: Path = DEFAULT_STATE_DIR
    uri_override: str | None = None
    echo: bool = False

    @property
    def database_path(self) -> Path:
        return self.state_dir.expanduser().resolve() / STATE_DB_FILENAME

    def database_uri(self) -> str:
        if self.uri_override:
            return self.uri_override
        path = self.database_path
        path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite+pysqlite:///{path}"


def get_state_database_config() -> StateDatabaseConfig:
    state_dir = optional_env_var(STATE_DIR_ENV)
    return StateDatabaseConfig(
        state_dir=Path(state_dir) if state_dir else DEFAULT_STATE_DIR,
        uri_override=optional_env_var(DATABASE_URI_ENV),
        echo=env_bool(SQL_ECHO_ENV, default=False),
    )
