from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from platformdirs import user_data_dir

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


@dataclass
class MemoryKeyValueStore:
    data: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


@dataclass
class FileKeyValueStore:
    """One JSON file per key under the platform's user data directory."""

    app_name: str = "storefront-pos"
    directory: str | Path | None = None

    def _base(self) -> Path:
        base = Path(self.directory) if self.directory else Path(user_data_dir(self.app_name, "Storefront"))
        base.mkdir(parents=True, exist_ok=True)
        return base

    def _path(self, key: str) -> Path:
        return self._base() / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        path.write_text(value, encoding="utf-8")
        try:
            path.chmod(0o600)
        except OSError:
            pass

    def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()


def store_from_config(config: Any | None) -> KeyValueStore:
    if config is None:
        return FileKeyValueStore()
    return FileKeyValueStore(app_name=config.storage_app_name, directory=config.storage_dir)
