"""
Persistent storage for prompt templates.

The database table is the source of truth for template text. Two
implementations share the PromptStore interface:

  InMemoryPromptStore: process-local dict, used for tests and local runs
  SupabasePromptStore: the current-generation table (system_prompts_v3)

LegacyPromptReader reads the previous generation table (system_prompts) for
one-time migration. Nothing writes to the legacy table.

Writes are last-write-wins per prompt_id. update_text is a read-increment-
write with no lock around it: two concurrent updates of the same prompt may
both read version N and both write N+1. This is a known limitation.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from app.core.exceptions import PromptNotFound, StoreUnavailable, TemplateKeyConflict
from app.models.prompt import PromptRecord

logger = logging.getLogger(__name__)

PROMPT_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS system_prompts_v3 (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  prompt_id VARCHAR(255) NOT NULL UNIQUE,
  category VARCHAR(50) NOT NULL,
  sub_category VARCHAR(50) NOT NULL,
  name VARCHAR(255) NOT NULL DEFAULT '',
  key VARCHAR(255) NOT NULL,
  prompt_text TEXT NOT NULL,
  description TEXT,
  is_active BOOLEAN DEFAULT true,
  is_default BOOLEAN DEFAULT false,
  version INTEGER DEFAULT 1,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
  created_by VARCHAR(100) DEFAULT 'system',
  updated_by VARCHAR(100) DEFAULT 'system'
);

CREATE INDEX IF NOT EXISTS idx_system_prompts_v3_address
  ON system_prompts_v3 (category, sub_category, key);

CREATE UNIQUE INDEX IF NOT EXISTS uq_system_prompts_v3_active_address
  ON system_prompts_v3 (category, sub_category, key) WHERE is_active;

CREATE TABLE IF NOT EXISTS prompt_history (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  prompt_id VARCHAR(255) NOT NULL,
  version INTEGER NOT NULL,
  prompt_text TEXT NOT NULL,
  operation VARCHAR(50) NOT NULL,
  changed_by VARCHAR(100),
  change_reason TEXT,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);
"""

_ORDER_COLUMNS = ("created_at", "name")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PromptStore:
    def get(self, category: str, sub_category: str, key: str,
            include_inactive: bool = False) -> Optional[PromptRecord]:
        raise NotImplementedError

    def get_by_prompt_id(self, prompt_id: str) -> Optional[PromptRecord]:
        raise NotImplementedError

    def list_by_category(self, category: str, order_by: str = "created_at",
                         include_inactive: bool = False) -> list[PromptRecord]:
        raise NotImplementedError

    def list_all(self, include_inactive: bool = True, order_by: str = "created_at") -> list[PromptRecord]:
        raise NotImplementedError

    def upsert(self, record: PromptRecord) -> PromptRecord:
        raise NotImplementedError

    def update_text(self, prompt_id: str, new_text: str, changed_by: str) -> PromptRecord:
        raise NotImplementedError

    def delete_all(self, category: Optional[str] = None) -> int:
        raise NotImplementedError


class InMemoryPromptStore(PromptStore):
    def __init__(self):
        self._data: dict[str, PromptRecord] = {}
        self._seq: dict[str, int] = {}
        self._next_seq = 0
        self._lock = threading.Lock()

    def _ordered(self, records: list[PromptRecord], order_by: str) -> list[PromptRecord]:
        if order_by == "name":
            return sorted(records, key=lambda r: (r.name, self._seq[r.prompt_id]))
        return sorted(records, key=lambda r: self._seq[r.prompt_id])

    def get(self, category, sub_category, key, include_inactive=False):
        with self._lock:
            for record in self._data.values():
                if record.address != (category, sub_category, key):
                    continue
                if record.is_active or include_inactive:
                    return record.copy()
        return None

    def get_by_prompt_id(self, prompt_id):
        with self._lock:
            record = self._data.get(prompt_id)
            return record.copy() if record else None

    def list_by_category(self, category, order_by="created_at", include_inactive=False):
        with self._lock:
            rows = [
                r.copy() for r in self._data.values()
                if r.category == category and (r.is_active or include_inactive)
            ]
            return self._ordered(rows, order_by)

    def list_all(self, include_inactive=True, order_by="created_at"):
        with self._lock:
            rows = [r.copy() for r in self._data.values() if r.is_active or include_inactive]
            return self._ordered(rows, order_by)

    def upsert(self, record: PromptRecord) -> PromptRecord:
        with self._lock:
            if record.is_active:
                for other in self._data.values():
                    if (other.prompt_id != record.prompt_id and other.is_active
                            and other.address == record.address):
                        raise TemplateKeyConflict(*record.address, prompt_id=record.prompt_id)

            now = _now_iso()
            existing = self._data.get(record.prompt_id)
            if existing is None:
                self._next_seq += 1
                self._seq[record.prompt_id] = self._next_seq
            stored = record.copy(
                created_at=existing.created_at if existing else (record.created_at or now),
                updated_at=now,
                id=existing.id if existing else (record.id or str(self._seq[record.prompt_id])),
            )
            self._data[record.prompt_id] = stored
            return stored.copy()

    def update_text(self, prompt_id, new_text, changed_by):
        with self._lock:
            record = self._data.get(prompt_id)
            if record is None:
                raise PromptNotFound(prompt_id, "update_text")
            updated = record.copy(
                prompt_text=new_text,
                version=record.version + 1,
                updated_by=changed_by,
                updated_at=_now_iso(),
            )
            self._data[prompt_id] = updated
            return updated.copy()

    def delete_all(self, category=None):
        with self._lock:
            doomed = [pid for pid, r in self._data.items() if category is None or r.category == category]
            for pid in doomed:
                self._data.pop(pid)
                self._seq.pop(pid, None)
            return len(doomed)


class SupabasePromptStore(PromptStore):
    """
    Store backed by a Supabase (PostgREST) table.

    The client is created lazily so a missing or unreachable backend shows up
    as StoreUnavailable on the first operation rather than at import time.
    """

    def __init__(self, supabase_client=None, table: str = "system_prompts_v3",
                 client_factory: Optional[Callable] = None):
        self._sb = supabase_client
        self._client_factory = client_factory
        self.table = table

    def _get_sb(self):
        if self._sb is not None:
            return self._sb
        if self._client_factory is None:
            from app.core.deps import get_supabase_client
            self._client_factory = get_supabase_client
        self._sb = self._client_factory()
        return self._sb

    def _execute(self, operation: str, build, prompt_id: Optional[str] = None) -> list[dict]:
        try:
            query = build(self._get_sb().table(self.table))
            r = query.execute()
        except Exception as exc:
            if getattr(exc, "code", None) == "23505":
                raise
            logger.error("[prompt_store.%s] %s", operation, exc, exc_info=True)
            raise StoreUnavailable(operation, exc, prompt_id=prompt_id) from exc
        return getattr(r, "data", None) or []

    def get(self, category, sub_category, key, include_inactive=False):
        def build(t):
            q = t.select("*").eq("category", category).eq("sub_category", sub_category).eq("key", key)
            if not include_inactive:
                q = q.eq("is_active", True)
            return q.order("updated_at", desc=True).limit(1)

        rows = self._execute("get", build)
        return PromptRecord.from_row(rows[0]) if rows else None

    def get_by_prompt_id(self, prompt_id):
        rows = self._execute(
            "get_by_prompt_id",
            lambda t: t.select("*").eq("prompt_id", prompt_id).limit(1),
            prompt_id=prompt_id,
        )
        return PromptRecord.from_row(rows[0]) if rows else None

    def list_by_category(self, category, order_by="created_at", include_inactive=False):
        if order_by not in _ORDER_COLUMNS:
            raise ValueError(f"Unsupported order column: {order_by}")

        def build(t):
            q = t.select("*").eq("category", category)
            if not include_inactive:
                q = q.eq("is_active", True)
            return q.order(order_by)

        return [PromptRecord.from_row(r) for r in self._execute("list_by_category", build)]

    def list_all(self, include_inactive=True, order_by="created_at"):
        if order_by not in _ORDER_COLUMNS:
            raise ValueError(f"Unsupported order column: {order_by}")

        def build(t):
            q = t.select("*")
            if not include_inactive:
                q = q.eq("is_active", True)
            return q.order(order_by)

        return [PromptRecord.from_row(r) for r in self._execute("list_all", build)]

    def upsert(self, record: PromptRecord) -> PromptRecord:
        payload = record.to_row()
        payload["updated_at"] = _now_iso()
        try:
            rows = self._execute(
                "upsert",
                lambda t: t.upsert(payload, on_conflict="prompt_id"),
                prompt_id=record.prompt_id,
            )
        except StoreUnavailable:
            raise
        except Exception as exc:
            # unique violation on the active-address index
            raise TemplateKeyConflict(*record.address, prompt_id=record.prompt_id) from exc
        return PromptRecord.from_row(rows[0]) if rows else record.copy(updated_at=payload["updated_at"])

    def update_text(self, prompt_id, new_text, changed_by):
        current = self.get_by_prompt_id(prompt_id)
        if current is None:
            raise PromptNotFound(prompt_id, "update_text")
        payload = {
            "prompt_text": new_text,
            "version": current.version + 1,
            "updated_by": changed_by,
            "updated_at": _now_iso(),
        }
        rows = self._execute(
            "update_text",
            lambda t: t.update(payload).eq("prompt_id", prompt_id),
            prompt_id=prompt_id,
        )
        if rows:
            return PromptRecord.from_row(rows[0])
        return current.copy(**payload)

    def delete_all(self, category=None):
        def build(t):
            q = t.delete()
            if category is not None:
                return q.eq("category", category)
            return q.neq("prompt_id", "")

        return len(self._execute("delete_all", build))


class LegacyPromptReader:
    """Read-only access to the previous generation prompt table."""

    def __init__(self, supabase_client=None, table: str = "system_prompts",
                 client_factory: Optional[Callable] = None):
        self._sb = supabase_client
        self._client_factory = client_factory
        self.table = table

    def read_all(self) -> list[dict]:
        try:
            sb = self._sb
            if sb is None:
                if self._client_factory is None:
                    from app.core.deps import get_supabase_client
                    self._client_factory = get_supabase_client
                sb = self._sb = self._client_factory()
            r = sb.table(self.table).select("*").order("created_at").execute()
        except Exception as exc:
            logger.error("[prompt_store.LegacyPromptReader.read_all] %s", exc, exc_info=True)
            raise StoreUnavailable("read_legacy", exc) from exc
        return getattr(r, "data", None) or []


PROMPT_STORE = InMemoryPromptStore()


def get_prompt_store(settings=None) -> PromptStore:
    if settings is None:
        from app.core.config import get_settings
        settings = get_settings()
    if settings.prompt_store.lower() != "supabase":
        return PROMPT_STORE
    return SupabasePromptStore(table=settings.prompt_table)
