from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    if val in {"1", "true", "yes", "y", "on"}:
        return True
    if val in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_int(name: str, default: int, min_val: int | None = None) -> int:
    """Get integer from environment with optional minimum enforcement."""
    try:
        val = int(os.environ.get(name, str(default)))
    except ValueError:
        val = default
    if min_val is not None and val < min_val:
        return min_val
    return val


@dataclass(frozen=True)
class Settings:
    """Static settings for the local editor core.

    Everything is local: the vault is a directory of markdown files and the
    log file lives next to it.
    """

    vault_dir: Path = Path(os.environ.get("CORTEX_VAULT_DIR", str(Path.cwd())))
    log_level: str = os.environ.get("CORTEX_LOG_LEVEL", "INFO")
    log_to_file: bool = _env_bool("CORTEX_LOG_TO_FILE", False)
    log_path: Path = Path(
        os.environ.get("CORTEX_LOG_PATH", str(Path.home() / ".cortex" / "cortex.log"))
    )
    log_max_bytes: int = _env_int("CORTEX_LOG_MAX_BYTES", 1_000_000, min_val=10_000)
    log_backup_count: int = _env_int("CORTEX_LOG_BACKUP_COUNT", 3, min_val=0)

    # Undo/redo depth per editing session.
    history_limit: int = _env_int("CORTEX_HISTORY_LIMIT", 50, min_val=1)

    # Document files recognised inside the vault.
    document_suffix: str = ".md"


settings = Settings()
