from __future__ import annotations

from typing import Optional, Protocol


class KeyValueStore(Protocol):
    """Abstract string key-value substrate. No atomicity across keys."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...

    def close(self) -> None:
        ...
