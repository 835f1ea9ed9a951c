"""
Administrative writes to the prompt store: bootstrap, legacy migration,
edits and reset-to-default.

Every write invalidates the cache entry for each address it can affect
before returning. Failures are never recovered here; they propagate to the
caller with the prompt_id and operation attached.

Versions never go backwards. A reset or forced re-initialisation restores
the default text but stores it as the next version of the row.
"""
from __future__ import annotations

import logging
from typing import Optional

from app.core.exceptions import (
    PromptEngineError,
    PromptNotFound,
    UnknownDefaultTemplate,
    ValidationError,
)
from app.models.prompt import PromptRecord
from app.prompts.defaults import DefaultPrompt, DefaultPromptRegistry
from app.services.audit import write_prompt_history
from app.services.prompt_cache import PromptCache
from app.services.prompt_store import LegacyPromptReader, PromptStore

logger = logging.getLogger(__name__)

SYSTEM_USER = "system"

# prompt_type values of the legacy table -> current-generation address
LEGACY_PROMPT_TYPES: dict[str, tuple[str, str, str, str]] = {
    "passage_generation": ("passage-system-base", "passage", "system", "system_base"),
    "question_generation": ("vocabulary-system-base", "vocabulary", "vocabularySystem", "system_base"),
    "vocabulary_generation": ("vocabulary-system-base", "vocabulary", "vocabularySystem", "system_base"),
    "paragraph_generation": ("paragraph-system-base", "paragraph", "paragraphSystem", "system_base"),
    "comprehensive_generation": ("comprehensive-system-base", "comprehensive", "comprehensiveSystem", "system_base"),
}


def default_to_record(entry: DefaultPrompt, version: Optional[int] = None) -> PromptRecord:
    return PromptRecord(
        prompt_id=entry.prompt_id,
        category=entry.category,
        sub_category=entry.sub_category,
        key=entry.key,
        name=entry.name,
        prompt_text=entry.prompt_text,
        description=entry.description,
        is_active=entry.is_active,
        is_default=entry.is_default,
        version=entry.version if version is None else version,
        created_by=SYSTEM_USER,
        updated_by=SYSTEM_USER,
    )


def legacy_row_to_record(row: dict) -> PromptRecord:
    """Map a legacy system_prompts row (prompt_type / prompt_content) to the current shape."""
    prompt_type = str(row.get("prompt_type") or "").strip()
    if not prompt_type:
        raise ValueError("legacy row has no prompt_type")

    mapped = LEGACY_PROMPT_TYPES.get(prompt_type)
    if mapped:
        prompt_id, category, sub_category, key = mapped
    else:
        prompt_id = f"legacy-{prompt_type.replace('_', '-')}"
        category, sub_category, key = "legacy", "legacy", prompt_type

    return PromptRecord(
        prompt_id=prompt_id,
        category=category,
        sub_category=sub_category,
        key=key,
        name=row.get("name") or prompt_type,
        prompt_text=row.get("prompt_content") or "",
        description=row.get("description") or f"Migrated from legacy prompt_type={prompt_type}",
        is_active=bool(row.get("is_active", True)),
        is_default=False,
        version=int(row.get("version") or 1),
        created_at=row.get("created_at"),
        created_by=SYSTEM_USER,
        updated_by=SYSTEM_USER,
    )


class PromptVersionManager:
    def __init__(self, store: PromptStore, cache: PromptCache, registry: DefaultPromptRegistry,
                 legacy_reader: Optional[LegacyPromptReader] = None,
                 canonical_generation: str = "current"):
        self.store = store
        self.cache = cache
        self.registry = registry
        self.legacy_reader = legacy_reader
        self.canonical_generation = canonical_generation

    # -----------------------------------------------------------------------
    # Bootstrap
    # -----------------------------------------------------------------------

    def initialize(self, force_reset: bool = False) -> int:
        """
        Write one row per default template.

        Without force_reset, rows whose prompt_id already exists are left
        untouched. With it, their text and metadata are overwritten from the
        registry. When the legacy generation is canonical, legacy rows are
        migrated first and the defaults do not overwrite them.

        Returns the number of distinct prompt_ids written.
        """
        written: set[str] = set()
        if self.canonical_generation == "legacy" and self.legacy_reader is not None:
            written |= self._migrate(force_reset)

        existing = {r.prompt_id: r for r in self.store.list_all(include_inactive=True)}
        for entry in self.registry:
            if entry.prompt_id in written:
                continue
            current = existing.get(entry.prompt_id)
            if current is not None and not force_reset:
                continue
            version = entry.version if current is None else max(current.version + 1, entry.version)
            self._write(default_to_record(entry, version=version), previous=current)
            written.add(entry.prompt_id)

        logger.info("[prompt_versions.initialize] force_reset=%s wrote %d rows", force_reset, len(written))
        return len(written)

    def migrate_legacy(self, force: bool = False) -> int:
        """Carry legacy-generation rows forward into the current table. The legacy table is only read."""
        written = self._migrate(force)
        logger.info("[prompt_versions.migrate_legacy] migrated %d rows", len(written))
        return len(written)

    def _migrate(self, force: bool) -> set[str]:
        if self.legacy_reader is None:
            raise PromptEngineError("No legacy prompt reader configured")

        existing = {r.prompt_id: r for r in self.store.list_all(include_inactive=True)}
        sources: dict[str, str] = {}
        for row in self.legacy_reader.read_all():
            try:
                record = legacy_row_to_record(row)
            except ValueError as exc:
                logger.warning("[prompt_versions.migrate_legacy] skipping row %s: %s", row.get("id"), exc)
                continue
            if not record.prompt_text.strip():
                logger.warning("[prompt_versions.migrate_legacy] skipping empty %s", record.prompt_id)
                continue
            # several legacy prompt_types share a target; the first row read wins
            if record.prompt_id in sources:
                logger.warning("[prompt_versions.migrate_legacy] prompt_type=%s also maps to %s "
                               "(already taken from prompt_type=%s), skipping",
                               row.get("prompt_type"), record.prompt_id, sources[record.prompt_id])
                continue
            current = existing.get(record.prompt_id)
            if current is not None and not force:
                continue
            if current is not None:
                record = record.copy(version=max(current.version + 1, record.version))
            existing[record.prompt_id] = self._write(record, previous=current)
            sources[record.prompt_id] = row.get("prompt_type")

        return set(sources)

    # -----------------------------------------------------------------------
    # Per-prompt operations
    # -----------------------------------------------------------------------

    def reset_one(self, prompt_id: str) -> PromptRecord:
        entry = self.registry.get(prompt_id)
        if entry is None:
            raise UnknownDefaultTemplate(prompt_id)

        current = self.store.get_by_prompt_id(prompt_id)
        version = entry.version if current is None else max(current.version + 1, entry.version)
        stored = self._write(default_to_record(entry, version=version), previous=current)
        write_prompt_history(stored, "reset")
        logger.info("[prompt_versions.reset_one] %s reset to default (version %d)", prompt_id, stored.version)
        return stored

    def update_text(self, prompt_id: str, new_text: str, changed_by: str = "user",
                    change_reason: Optional[str] = None) -> int:
        if not new_text or not new_text.strip():
            raise ValidationError("prompt_text must not be empty", prompt_id=prompt_id, operation="update")

        current = self.store.get_by_prompt_id(prompt_id)
        if current is None:
            entry = self.registry.get(prompt_id)
            if entry is None:
                raise PromptNotFound(prompt_id, "update")
            # never initialised: seed the row from its default first
            current = self.store.upsert(default_to_record(entry))

        updated = self.store.update_text(prompt_id, new_text, changed_by)
        self.cache.invalidate_many({current.address, updated.address})
        write_prompt_history(updated, "update", change_reason)
        logger.info("[prompt_versions.update_text] %s -> version %d by %s",
                    prompt_id, updated.version, changed_by)
        return updated.version

    def export_all(self) -> list[PromptRecord]:
        return self.store.list_all(include_inactive=True, order_by="created_at")

    # -----------------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------------

    def _write(self, record: PromptRecord, previous: Optional[PromptRecord] = None) -> PromptRecord:
        stored = self.store.upsert(record)
        addresses = {record.address, stored.address}
        if previous is not None:
            addresses.add(previous.address)
        self.cache.invalidate_many(addresses)
        return stored
