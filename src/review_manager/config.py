"""Environment-based configuration.

Settings are read from environment variables, with an optional `.env` file:

- `REVIEW_MANAGER_CSV` (default: reviews.csv)
- `REVIEW_MANAGER_BACKUP` (default: `<csv stem>_backup.csv` next to the CSV)
- `REVIEW_MANAGER_MAX_DISTANCE` (default: 2)
- `REVIEW_MANAGER_SUGGEST_THRESHOLD` (default: 70)

`.env` lookup:
- If `REVIEW_MANAGER_ENV_FILE` is set, load that file.
- Otherwise try `.env` in the current working directory.

Real environment variables always win; `.env` only fills missing variables.
This keeps configuration dependency-free (no python-dotenv).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, MutableMapping

from .fuzzy import DEFAULT_MAX_DISTANCE, ConfigurationError, validate_max_distance

ENV_PREFIX = "REVIEW_MANAGER_"

DEFAULT_CSV = "reviews.csv"
DEFAULT_SUGGEST_THRESHOLD = 70.0


def _parse_env_line(line: str) -> tuple[str, str] | None:
    line = line.strip()
    if not line or line.startswith("#"):
        return None
    if "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip()
    value = value.strip()

    # Remove simple quotes.
    if value.startswith(('"', "'")) and value.endswith(('"', "'")) and len(value) >= 2:
        value = value[1:-1]

    if not key:
        return None
    return key, value


def load_dotenv_if_present(
    environ: MutableMapping[str, str] | None = None,
) -> Path | None:
    """Fill missing variables from a `.env` file.

    Returns:
        The file that was loaded, or None.
    """
    env = os.environ if environ is None else environ

    explicit = env.get(f"{ENV_PREFIX}ENV_FILE")
    if explicit:
        env_path = Path(explicit).expanduser()
    else:
        env_path = Path.cwd() / ".env"

    if not env_path.is_file():
        return None

    for raw in env_path.read_text(encoding="utf-8").splitlines():
        parsed = _parse_env_line(raw)
        if parsed is None:
            continue
        key, value = parsed
        if key in env:
            continue
        env[key] = value
    return env_path


def get_env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as e:
        raise RuntimeError(f"Invalid integer env var {name}={raw!r}") from e


def _get_env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise RuntimeError(f"Invalid float env var {name}={raw!r}") from e


def default_backup_path(csv_path: Path) -> Path:
    """`data/reviews.csv` -> `data/reviews_backup.csv`."""
    return csv_path.with_name(f"{csv_path.stem}_backup{csv_path.suffix or '.csv'}")


@dataclass(frozen=True)
class Settings:
    """Runtime settings shared by the CLI and the HTTP example."""

    csv_path: Path
    backup_path: Path
    max_distance: int = DEFAULT_MAX_DISTANCE
    suggest_threshold: float = DEFAULT_SUGGEST_THRESHOLD

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Raises:
            RuntimeError: if a variable holds an unusable value.
        """
        env = os.environ if environ is None else environ

        csv_path = Path(env.get(f"{ENV_PREFIX}CSV", "").strip() or DEFAULT_CSV)

        backup_raw = env.get(f"{ENV_PREFIX}BACKUP", "").strip()
        backup_path = Path(backup_raw) if backup_raw else default_backup_path(csv_path)

        max_distance = get_env_int(
            env, f"{ENV_PREFIX}MAX_DISTANCE", DEFAULT_MAX_DISTANCE
        )
        try:
            validate_max_distance(max_distance)
        except ConfigurationError as e:
            raise RuntimeError(f"{ENV_PREFIX}MAX_DISTANCE: {e}") from e

        threshold = _get_env_float(
            env, f"{ENV_PREFIX}SUGGEST_THRESHOLD", DEFAULT_SUGGEST_THRESHOLD
        )
        if not (0.0 <= threshold <= 100.0):
            raise RuntimeError(f"{ENV_PREFIX}SUGGEST_THRESHOLD must be in range [0, 100]")

        return cls(
            csv_path=csv_path,
            backup_path=backup_path,
            max_distance=max_distance,
            suggest_threshold=threshold,
        )
