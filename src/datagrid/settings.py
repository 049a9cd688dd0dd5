"""Global defaults for the data grid engine."""

from __future__ import annotations

import os
from typing import Final, Tuple

DATA_DIR: Final = os.environ.get("DATAGRID_DATA_DIR", "data")

DEFAULT_PAGE_SIZE: Final = 25
PAGE_SIZE_OPTIONS: Final[Tuple[int, ...]] = (10, 25, 50, 100)

# Column widths in pixels
MIN_COLUMN_WIDTH: Final = 50
DEFAULT_COLUMN_WIDTH: Final = 150
MAX_COLUMN_WIDTH: Final = 800

SEARCH_DEBOUNCE_MS: Final = 300
KEYBOARD_PAGE_STEP: Final = 10

# Entries kept by the per-grid diagnostics log (0 disables it)
LOG_BUFFER_CAPACITY: Final = 500

TABLE_STATE_VERSION: Final = "1.0.0"
