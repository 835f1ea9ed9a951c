#!/usr/bin/env python3
"""
Bootstrap the prompt table from the bundled defaults.

USAGE:
  cd backend && python scripts/initialize_prompts.py [--force-reset] [--migrate-legacy] [--print-ddl]

  --force-reset     overwrite existing rows with the default text (next version)
  --migrate-legacy  carry rows over from the legacy system_prompts table first
  --print-ddl       print the table DDL and exit

Uses PROMPT_STORE / SUPABASE_URL / SUPABASE_SERVICE_KEY from backend/.env.
"""
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.core.exceptions import PromptEngineError
from app.services.prompt_service import get_prompt_service
from app.services.prompt_store import PROMPT_TABLE_DDL


def main(argv: list[str]) -> int:
    if "--print-ddl" in argv:
        print(PROMPT_TABLE_DDL.strip())
        return 0

    service = get_prompt_service()
    force_reset = "--force-reset" in argv

    print("=" * 60)
    print(f"Initializing prompt templates (force_reset={force_reset})")
    print("=" * 60)

    try:
        if "--migrate-legacy" in argv:
            migrated = service.migrate_legacy(force=force_reset)["count"]
            print(f"  migrated {migrated} legacy rows")
        written = service.initialize_templates(force_reset=force_reset)["count"]
    except PromptEngineError as e:
        print(f"FAILED: {e}")
        return 1

    print(f"  wrote {written} rows ({len(service.registry)} defaults registered)")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
