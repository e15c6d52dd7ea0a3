"""
Durable key-value storage backends for the cache's second tier.

Backends store text blobs under string keys. The cache treats every backend
as unreliable and wraps each call, so implementations are free to raise.
"""
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Union
from urllib.parse import quote, unquote

import structlog

logger = structlog.get_logger()


class KeyValueStorage(Protocol):
    """Synchronous text-blob storage used as the durable cache tier."""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...

    def keys(self) -> Iterable[str]:
        ...


class MemoryStorage:
    """Dictionary-backed storage. Survives cache instances, not processes."""

    def __init__(self):
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


class FileStorage:
    """
    Directory-backed storage, one file per key.

    Keys are percent-encoded into file names so that any cache key maps to
    a single flat file inside ``directory``.
    """

    SUFFIX = ".json"

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / (quote(key, safe="") + self.SUFFIX)

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path.with_name(path.name + ".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        os.replace(tmp_path, path)

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def keys(self) -> List[str]:
        return [
            unquote(path.name[: -len(self.SUFFIX)])
            for path in self.directory.iterdir()
            if path.is_file() and path.name.endswith(self.SUFFIX)
        ]
