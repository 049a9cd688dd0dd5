"""Grid configuration persistence.

Stores and loads the tunables of a grid instance (page size, column width
limits, search debounce, persistence directory).

Design principles:
- Pure logic (no Qt import) so it can be unit-tested headless.
- Explicit schema with version field to enable future migrations.
- Graceful fallback: corrupt or incompatible files produce defaults instead of raising.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
import json
import logging
from pathlib import Path
from typing import Any, Dict

from datagrid import settings

__all__ = ["GridConfig", "load_config", "save_config", "CONFIG_VERSION"]

CONFIG_VERSION = 1  # Increment when structure changes

DEFAULT_FILENAME = "grid_config.json"

_logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GridConfig:
    """Serializable grid configuration.

    Attributes
    ----------
    version: Schema version for migration handling.
    page_size: Rows per page when a grid opens.
    min_column_width, default_column_width, max_column_width: Pixel limits
        used by the column layout manager.
    search_debounce_ms: Quiet period before global search text is applied.
    data_dir: Directory for persisted layouts / table state.
    log_capacity: Diagnostics log entries kept per grid; 0 turns capture off.
    """

    version: int = CONFIG_VERSION
    page_size: int = settings.DEFAULT_PAGE_SIZE
    min_column_width: int = settings.MIN_COLUMN_WIDTH
    default_column_width: int = settings.DEFAULT_COLUMN_WIDTH
    max_column_width: int = settings.MAX_COLUMN_WIDTH
    search_debounce_ms: int = settings.SEARCH_DEBOUNCE_MS
    data_dir: str = settings.DATA_DIR
    log_capacity: int = settings.LOG_BUFFER_CAPACITY

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GridConfig":
        defaults = cls()
        cfg = cls(
            version=int(data.get("version", CONFIG_VERSION)),
            page_size=int(data.get("page_size", defaults.page_size)),
            min_column_width=int(data.get("min_column_width", defaults.min_column_width)),
            default_column_width=int(
                data.get("default_column_width", defaults.default_column_width)
            ),
            max_column_width=int(data.get("max_column_width", defaults.max_column_width)),
            search_debounce_ms=int(data.get("search_debounce_ms", defaults.search_debounce_ms)),
            data_dir=str(data.get("data_dir", defaults.data_dir)),
            log_capacity=int(data.get("log_capacity", defaults.log_capacity)),
        )
        if cfg.page_size < 1 or cfg.min_column_width < 1:
            raise ValueError("page_size and min_column_width must be positive")
        if cfg.log_capacity < 0:
            raise ValueError("log_capacity must not be negative")
        if cfg.max_column_width < cfg.min_column_width:
            raise ValueError("max_column_width below min_column_width")
        return cfg


def _resolve_path(base_dir: str | Path | None) -> Path:
    base = Path(base_dir) if base_dir else Path.cwd()
    return base / DEFAULT_FILENAME


def load_config(base_dir: str | Path | None = None) -> GridConfig:
    """Load grid config from directory (defaults to CWD)."""
    path = _resolve_path(base_dir)
    if not path.exists():
        return GridConfig()
    try:
        cfg = GridConfig.from_dict(json.loads(path.read_text(encoding="utf-8")))
    except Exception as exc:  # noqa: BLE001
        _logger.warning("Ignoring unreadable grid config %s: %s", path, exc)
        return GridConfig()
    if cfg.version != CONFIG_VERSION:
        return GridConfig()
    return cfg


def save_config(cfg: GridConfig, base_dir: str | Path | None = None) -> Path:
    """Persist grid config to directory; returns the path written."""
    path = _resolve_path(base_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(cfg.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    tmp.replace(path)
    return path
