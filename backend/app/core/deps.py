import logging
import os
from functools import lru_cache
from types import SimpleNamespace

from supabase import create_client, Client
from openai import OpenAI
from app.core.config import get_settings

_prompt_logger = logging.getLogger("passage_studio.llm_prompts")

GEMINI_DEFAULT_MODEL = "gemini-2.5-flash"
GEMINI_MAX_OUTPUT_TOKENS = 8192


@lru_cache
def get_supabase_client() -> Client:
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_service_key:
        raise RuntimeError("Supabase env vars missing (SUPABASE_URL / SUPABASE_SERVICE_KEY)")
    return create_client(settings.supabase_url, settings.supabase_service_key)


# ── Gemini behind the OpenAI chat-completions shape ─────────────────────────

def _split_messages(messages) -> tuple[str | None, str]:
    system, user = [], []
    for m in messages or []:
        (system if m.get("role") == "system" else user).append(m["content"])
    return ("\n\n".join(system) or None), "\n\n".join(user)


def _log_prompt(model: str, system: str | None, user: str, temperature, max_tokens) -> None:
    if os.environ.get("DEBUG_LLM_PROMPTS", "").lower() not in ("1", "true"):
        return
    _prompt_logger.warning(
        "model=%s temperature=%s max_tokens=%s\n── SYSTEM ──\n%s\n── USER ──\n%s",
        model, temperature, max_tokens, system or "(none)", user,
    )


class _GeminiCompletions:
    def __init__(self, api_key: str):
        self._api_key = api_key

    def create(self, model=None, messages=None, temperature=0.7, max_tokens=None, **kwargs):
        from google import genai
        from google.genai import types

        system, user = _split_messages(messages)
        gemini_model = model if model and model.startswith("gemini") else GEMINI_DEFAULT_MODEL
        max_tokens = max_tokens or GEMINI_MAX_OUTPUT_TOKENS
        _log_prompt(gemini_model, system, user, temperature, max_tokens)

        response = genai.Client(api_key=self._api_key).models.generate_content(
            model=gemini_model,
            contents=user,
            config=types.GenerateContentConfig(
                system_instruction=system,
                temperature=temperature,
                max_output_tokens=max_tokens,
                response_mime_type="application/json",
                # no thinking preamble ahead of the JSON body
                thinking_config=types.ThinkingConfig(thinking_budget=0),
            ),
        )
        message = SimpleNamespace(content=response.text or "")
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class GeminiClientAdapter:
    """Exposes client.chat.completions.create(...) so AIService can treat Gemini like OpenAI."""

    def __init__(self, api_key: str):
        self.chat = SimpleNamespace(completions=_GeminiCompletions(api_key))


def get_llm_client(settings=None, model: str | None = None):
    """Return the LLM client for *model*, or for the llm_provider setting."""
    if settings is None:
        settings = get_settings()
    if model and model.startswith("gemini"):
        return GeminiClientAdapter(api_key=settings.gemini_api_key)
    if model or settings.llm_provider == "openai":
        return OpenAI(api_key=settings.openai_api_key)
    return GeminiClientAdapter(api_key=settings.gemini_api_key)
