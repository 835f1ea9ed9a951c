"""
Template resolution: cache, then an ordered chain of lookups.

Default chain:

  StoreLookup:    the prompt table; results are cached
  RegistryLookup: bundled defaults; never cached, so the next call retries
                   the store once it recovers

A lookup that raises StoreUnavailable is skipped. Resolution fails with
TemplateNotFound only when every lookup comes back empty.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from app.core.exceptions import StoreUnavailable, TemplateNotFound
from app.prompts.defaults import DefaultPromptRegistry
from app.services.prompt_cache import PromptCache, cache_key
from app.services.prompt_store import PromptStore
from app.services.telemetry import emit_event

logger = logging.getLogger(__name__)

Provenance = Literal["store", "default-fallback"]


@dataclass(frozen=True)
class ResolvedPrompt:
    text: str
    provenance: Provenance
    prompt_id: Optional[str] = None


class PromptLookup:
    provenance: Provenance = "store"
    cacheable: bool = False

    def find(self, category: str, sub_category: str, key: str) -> Optional[ResolvedPrompt]:
        raise NotImplementedError


class StoreLookup(PromptLookup):
    provenance = "store"
    cacheable = True

    def __init__(self, store: PromptStore):
        self.store = store

    def find(self, category, sub_category, key):
        record = self.store.get(category, sub_category, key)
        if record is None or not record.is_active:
            return None
        return ResolvedPrompt(record.prompt_text, self.provenance, record.prompt_id)


class RegistryLookup(PromptLookup):
    provenance = "default-fallback"
    cacheable = False

    def __init__(self, registry: DefaultPromptRegistry):
        self.registry = registry

    def find(self, category, sub_category, key):
        entry = self.registry.find(category, sub_category, key)
        if entry is None:
            return None
        return ResolvedPrompt(entry.prompt_text, self.provenance, entry.prompt_id)


class PromptResolver:
    def __init__(self, cache: PromptCache, lookups: Sequence[PromptLookup]):
        self.cache = cache
        self.lookups = list(lookups)

    def resolve(self, category: str, sub_category: str, key: str) -> ResolvedPrompt:
        cached = self.cache.get(category, sub_category, key)
        if cached is not None:
            return ResolvedPrompt(cached, "store")

        address = cache_key(category, sub_category, key)
        # taken before the store read; a write committed after this point refuses the fill below
        generation = self.cache.generation(category, sub_category, key)
        for lookup in self.lookups:
            try:
                found = lookup.find(category, sub_category, key)
            except StoreUnavailable as exc:
                logger.warning("[prompt_resolver.resolve] %s lookup failed for %s: %s",
                               type(lookup).__name__, address, exc)
                continue
            if found is None:
                continue

            if lookup.cacheable:
                if not self.cache.set_if_generation(category, sub_category, key, generation, found.text):
                    logger.debug("[prompt_resolver.resolve] %s invalidated during read, not cached", address)
            else:
                logger.warning("[prompt_resolver.resolve] %s served from %s", address, found.provenance)
                emit_event("prompt_fallback", route="prompt_resolver", prompt_id=found.prompt_id,
                           address=address, provenance=found.provenance)
            return found

        raise TemplateNotFound(category, sub_category, key)
