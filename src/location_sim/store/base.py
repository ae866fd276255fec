from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping, Optional


class KeyValueStore(ABC):
    """Durable string key-value surface the simulator persists into."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def set_many(self, values: Mapping[str, str]) -> None:
        """Write all *values* so readers see either none or all of them."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, *keys: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass
