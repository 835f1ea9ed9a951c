import logging
from typing import Optional

from app.models.prompt import PromptRecord

logger = logging.getLogger(__name__)


def should_write_history() -> bool:
    from app.core.config import get_settings
    return get_settings().enable_prompt_history_db


def write_prompt_history(record: PromptRecord, operation: str,
                         change_reason: Optional[str] = None) -> None:
    """
    Best-effort: never raises.
    Writes one prompt_history row per administrative change when
    ENABLE_PROMPT_HISTORY_DB is set.
    """
    logger.info(
        "[audit.write_prompt_history] %s prompt_id=%s version=%s by=%s reason=%s",
        operation, record.prompt_id, record.version, record.updated_by, change_reason,
    )
    if not should_write_history():
        return

    try:
        from app.core.deps import get_supabase_client
        sb = get_supabase_client()
        sb.table("prompt_history").insert({
            "prompt_id": record.prompt_id,
            "version": record.version,
            "prompt_text": record.prompt_text,
            "operation": operation,
            "changed_by": record.updated_by,
            "change_reason": change_reason,
        }).execute()
    except Exception as e:
        logger.error(f"[audit.write_prompt_history] {e}", exc_info=True)
        return
