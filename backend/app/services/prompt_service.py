"""
Prompt service: the single entry point used by the routers and the CLI.

Wires one store, one cache, the default registry, the resolver and the
version manager together. get_prompt_service() keeps one instance per
process so every caller shares the same cache.
"""
from __future__ import annotations

import csv
import io
import logging
import threading
from typing import Mapping, Optional

from app.core.exceptions import StoreUnavailable
from app.models.prompt import (
    PromptGroup,
    PromptOut,
    PromptRecord,
    PromptSubCategoryGroup,
    PromptsResponse,
)
from app.prompts.defaults import (
    CATEGORY_NAMES,
    DEFAULT_REGISTRY,
    SUBCATEGORY_NAMES,
    SUBCATEGORY_ORDER,
    DefaultPromptRegistry,
)
from app.services.prompt_cache import PromptCache
from app.services.prompt_resolver import PromptResolver, RegistryLookup, ResolvedPrompt, StoreLookup
from app.services.prompt_store import LegacyPromptReader, PromptStore, get_prompt_store
from app.services.prompt_substitution import find_placeholders, substitute
from app.services.prompt_versions import PromptVersionManager, default_to_record

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "ID", "Prompt ID", "Category", "Sub Category", "Name", "Key", "Prompt Text",
    "Description", "Is Active", "Is Default", "Version", "Created At", "Updated At",
    "Created By", "Updated By",
]


class PromptService:
    def __init__(self, store: PromptStore, cache: Optional[PromptCache] = None,
                 registry: DefaultPromptRegistry = DEFAULT_REGISTRY,
                 legacy_reader: Optional[LegacyPromptReader] = None,
                 canonical_generation: str = "current"):
        self.store = store
        self.cache = cache if cache is not None else PromptCache()
        self.registry = registry
        self.resolver = PromptResolver(self.cache, [StoreLookup(store), RegistryLookup(registry)])
        self.versions = PromptVersionManager(
            store, self.cache, registry,
            legacy_reader=legacy_reader,
            canonical_generation=canonical_generation,
        )

    # ── Resolution ──────────────────────────────────────────────────────────

    def resolve(self, category: str, sub_category: str, key: str) -> ResolvedPrompt:
        return self.resolver.resolve(category, sub_category, key)

    def resolve_and_substitute(self, category: str, sub_category: str, key: str,
                               variables: Optional[Mapping[str, object]] = None) -> str:
        return substitute(self.resolve(category, sub_category, key).text, variables)

    # ── Administration ──────────────────────────────────────────────────────

    def initialize_templates(self, force_reset: bool = False) -> dict:
        return {"count": self.versions.initialize(force_reset)}

    def reset_template(self, prompt_id: str) -> dict:
        self.versions.reset_one(prompt_id)
        return {"success": True}

    def update_template(self, prompt_id: str, new_text: str, changed_by: str = "user",
                        change_reason: Optional[str] = None) -> dict:
        version = self.versions.update_text(prompt_id, new_text, changed_by, change_reason)
        return {"newVersion": version}

    def migrate_legacy(self, force: bool = False) -> dict:
        return {"count": self.versions.migrate_legacy(force)}

    def export_all(self) -> list[PromptRecord]:
        return self.versions.export_all()

    def export_csv(self) -> str:
        """All stored rows as CSV, prefixed with a UTF-8 BOM so spreadsheet apps detect the encoding."""
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(CSV_HEADERS)
        for r in self.export_all():
            writer.writerow([
                r.id or "", r.prompt_id, r.category, r.sub_category, r.name, r.key,
                r.prompt_text, r.description or "", r.is_active, r.is_default, r.version,
                r.created_at or "", r.updated_at or "", r.created_by, r.updated_by,
            ])
        return "\ufeff" + buf.getvalue()

    # ── Listing ─────────────────────────────────────────────────────────────

    def list_grouped(self) -> PromptsResponse:
        records: list[PromptRecord] = []
        try:
            records = self.store.list_all(include_inactive=True, order_by="created_at")
        except StoreUnavailable as exc:
            logger.warning("[prompt_service.list_grouped] store unavailable, listing defaults: %s", exc)

        from_db = bool(records)
        if not from_db:
            records = [default_to_record(entry) for entry in self.registry]
        return PromptsResponse(data=_group(records), is_from_database=from_db)


def _to_out(r: PromptRecord) -> PromptOut:
    return PromptOut(
        prompt_id=r.prompt_id,
        category=r.category,
        sub_category=r.sub_category,
        key=r.key,
        name=r.name,
        prompt_text=r.prompt_text,
        description=r.description,
        is_active=r.is_active,
        is_default=r.is_default,
        version=r.version,
        placeholders=find_placeholders(r.prompt_text),
        created_at=r.created_at,
        updated_at=r.updated_at,
        created_by=r.created_by,
        updated_by=r.updated_by,
    )


def _group(records: list[PromptRecord]) -> list[PromptGroup]:
    by_category: dict[str, dict[str, list[PromptRecord]]] = {}
    for r in records:
        by_category.setdefault(r.category, {}).setdefault(r.sub_category, []).append(r)

    known = [c for c in CATEGORY_NAMES if c in by_category]
    extra = [c for c in by_category if c not in CATEGORY_NAMES]

    groups = []
    for category in known + extra:
        subs = by_category[category]
        order = SUBCATEGORY_ORDER.get(category, [])
        sub_keys = [s for s in order if s in subs] + [s for s in subs if s not in order]
        groups.append(PromptGroup(
            category=category,
            category_name=CATEGORY_NAMES.get(category, category),
            sub_categories=[
                PromptSubCategoryGroup(
                    sub_category=sub,
                    sub_category_name=SUBCATEGORY_NAMES.get(sub, sub),
                    prompts=[_to_out(r) for r in subs[sub]],
                )
                for sub in sub_keys
            ],
        ))
    return groups


_SERVICE: Optional[PromptService] = None
_SERVICE_LOCK = threading.Lock()


def get_prompt_service() -> PromptService:
    global _SERVICE
    if _SERVICE is not None:
        return _SERVICE
    with _SERVICE_LOCK:
        if _SERVICE is None:
            _SERVICE = _build_service()
    return _SERVICE


def _build_service() -> PromptService:
    from app.core.config import get_settings
    settings = get_settings()
    legacy_reader = None
    if settings.prompt_store.lower() == "supabase":
        legacy_reader = LegacyPromptReader(table=settings.legacy_prompt_table)
    return PromptService(
        get_prompt_store(settings),
        legacy_reader=legacy_reader,
        canonical_generation=settings.canonical_prompt_generation,
    )
