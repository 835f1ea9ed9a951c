"""
Tests for the resolution chain: cache -> store -> bundled defaults.
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import patch
from app.core.exceptions import StoreUnavailable, TemplateNotFound
from app.models.prompt import PromptRecord
from app.prompts.defaults import DefaultPrompt, DefaultPromptRegistry
from app.services.prompt_cache import PromptCache
from app.services.prompt_resolver import PromptResolver, RegistryLookup, StoreLookup
from app.services.prompt_store import InMemoryPromptStore

ADDRESS = ("passage", "system", "system_base")

REGISTRY = DefaultPromptRegistry([
    DefaultPrompt(
        prompt_id="passage-system", category="passage", sub_category="system",
        key="system_base", name="System prompt", prompt_text="default text",
    ),
])


class FlakyStore(InMemoryPromptStore):
    """In-memory store whose reads fail while `down` is set."""

    def __init__(self):
        super().__init__()
        self.down = False
        self.reads = 0

    def get(self, category, sub_category, key, include_inactive=False):
        self.reads += 1
        if self.down:
            raise StoreUnavailable("get")
        return super().get(category, sub_category, key, include_inactive)


def _resolver(store, cache=None):
    cache = cache or PromptCache()
    return PromptResolver(cache, [StoreLookup(store), RegistryLookup(REGISTRY)]), cache


def _stored(text="stored text"):
    return PromptRecord(prompt_id="passage-system", category="passage", sub_category="system",
                        key="system_base", prompt_text=text)


class TestStorePath:

    def test_store_hit_is_cached(self):
        store = FlakyStore()
        store.upsert(_stored())
        resolver, cache = _resolver(store)

        first = resolver.resolve(*ADDRESS)
        assert first.text == "stored text"
        assert first.provenance == "store"
        assert cache.get(*ADDRESS) == "stored text"

        second = resolver.resolve(*ADDRESS)
        assert second.text == "stored text"
        assert store.reads == 1

    def test_cached_value_served_even_when_store_down(self):
        store = FlakyStore()
        store.upsert(_stored())
        resolver, _ = _resolver(store)
        resolver.resolve(*ADDRESS)

        store.down = True
        assert resolver.resolve(*ADDRESS).text == "stored text"

    def test_inactive_row_is_not_served(self):
        store = FlakyStore()
        store.upsert(_stored().copy(is_active=False))
        resolver, _ = _resolver(store)
        result = resolver.resolve(*ADDRESS)
        assert result.provenance == "default-fallback"
        assert result.text == "default text"


class TestFallback:

    def test_missing_row_falls_back_to_default(self):
        resolver, cache = _resolver(FlakyStore())
        result = resolver.resolve(*ADDRESS)
        assert result.text == "default text"
        assert result.provenance == "default-fallback"
        assert cache.get(*ADDRESS) is None

    def test_store_unavailable_falls_back_without_caching(self):
        store = FlakyStore()
        store.upsert(_stored())
        store.down = True
        resolver, cache = _resolver(store)

        with patch("app.services.prompt_resolver.emit_event") as emit:
            result = resolver.resolve(*ADDRESS)
        assert result.provenance == "default-fallback"
        assert len(cache) == 0
        emit.assert_called_once()
        assert emit.call_args[0][0] == "prompt_fallback"

    def test_store_recovery_is_picked_up(self):
        """The fallback text is never cached, so the store answer wins once it is back."""
        store = FlakyStore()
        store.upsert(_stored())
        store.down = True
        resolver, _ = _resolver(store)
        assert resolver.resolve(*ADDRESS).provenance == "default-fallback"

        store.down = False
        result = resolver.resolve(*ADDRESS)
        assert result.provenance == "store"
        assert result.text == "stored text"

    def test_unknown_address_raises(self):
        resolver, _ = _resolver(FlakyStore())
        with pytest.raises(TemplateNotFound) as exc:
            resolver.resolve("passage", "system", "nope")
        assert exc.value.key == "nope"

    def test_unknown_address_with_store_down_raises(self):
        store = FlakyStore()
        store.down = True
        resolver, _ = _resolver(store)
        with pytest.raises(TemplateNotFound):
            resolver.resolve("area", "areaX", "missing")
