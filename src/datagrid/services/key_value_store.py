"""Key-value stores used for grid persistence.

The layout manager and table state persistence only need ``get`` / ``set`` /
``remove`` of text values, so persistence stays storage-agnostic:

 - ``InMemoryKeyValueStore``: dict-backed, for tests and ephemeral sessions.
 - ``JsonFileKeyValueStore``: one file per key inside ``base_dir`` written via
   a temp file + atomic replace.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

__all__ = ["KeyValueStore", "InMemoryKeyValueStore", "JsonFileKeyValueStore"]

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


@runtime_checkable
class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...  # pragma: no cover - structural

    def set(self, key: str, value: str) -> None: ...  # pragma: no cover - structural

    def remove(self, key: str) -> None: ...  # pragma: no cover - structural


class InMemoryKeyValueStore:
    def __init__(self, initial: Dict[str, str] | None = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data.keys())


class JsonFileKeyValueStore:
    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir)

    def path_for(self, key: str) -> Path:
        return self.base_dir / f"{_UNSAFE.sub('_', key)}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def remove(self, key: str) -> None:
        path = self.path_for(key)
        if path.exists():
            path.unlink()
