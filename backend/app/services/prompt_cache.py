import logging
import threading
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


def cache_key(category: str, sub_category: str, key: str) -> str:
    return f"{category}/{sub_category}/{key}"


class PromptCache:
    """
    Process-lifetime map of resolution key -> template text.

    No expiry and no size bound: the key space is the set of template
    addresses. Entries leave only through explicit invalidation, so every
    write path must invalidate each address it touches.

    Each address also carries a generation counter that invalidation bumps.
    A reader takes the generation before going to the store and fills the
    entry with set_if_generation(), which refuses the fill when a write
    invalidated the address in the meantime.
    """

    def __init__(self):
        self._data: dict[str, str] = {}
        self._generations: dict[str, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()

    def get(self, category: str, sub_category: str, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(cache_key(category, sub_category, key))

    def generation(self, category: str, sub_category: str, key: str) -> tuple[int, int]:
        with self._lock:
            return self._epoch, self._generations.get(cache_key(category, sub_category, key), 0)

    def set(self, category: str, sub_category: str, key: str, text: str) -> None:
        with self._lock:
            self._data[cache_key(category, sub_category, key)] = text

    def set_if_generation(self, category: str, sub_category: str, key: str,
                          generation: tuple[int, int], text: str) -> bool:
        address = cache_key(category, sub_category, key)
        with self._lock:
            if (self._epoch, self._generations.get(address, 0)) != generation:
                return False
            self._data[address] = text
            return True

    def invalidate(self, category: str, sub_category: str, key: str) -> bool:
        address = cache_key(category, sub_category, key)
        with self._lock:
            self._generations[address] = self._generations.get(address, 0) + 1
            removed = self._data.pop(address, None) is not None
        if removed:
            logger.debug("[prompt_cache.invalidate] %s", address)
        return removed

    def invalidate_many(self, addresses: Iterable[tuple[str, str, str]]) -> int:
        count = 0
        for category, sub_category, key in addresses:
            if self.invalidate(category, sub_category, key):
                count += 1
        return count

    def clear(self) -> None:
        with self._lock:
            self._epoch += 1
            self._data.clear()

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)

    def __contains__(self, address) -> bool:
        with self._lock:
            return cache_key(*address) in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
