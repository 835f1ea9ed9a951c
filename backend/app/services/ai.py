import json
import logging
import time
from typing import get_args

from app.core.config import get_settings
from app.core.deps import get_llm_client
from app.core.exceptions import GenerationError
from app.models.generation import ModelName
from app.services.telemetry import emit_event

logger = logging.getLogger(__name__)

SUPPORTED_MODELS: tuple[str, ...] = get_args(ModelName)


def parse_json_output(text: str):
    """Parse model output as JSON, tolerating ```json fences. Unparseable text comes back as {"raw": text}."""
    cleaned = (text or "").strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
        if cleaned.rstrip().endswith("```"):
            cleaned = cleaned.rstrip()[:-3]
    try:
        return json.loads(cleaned)
    except (json.JSONDecodeError, ValueError):
        return {"raw": text}


class AIService:
    def __init__(self, client_factory=None):
        self.settings = get_settings()
        self._client_factory = client_factory or get_llm_client

    def generate_completion(
        self,
        prompt: str,
        system_prompt: str | None = None,
        model: str = "gpt-4.1",
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        client = self._client_factory(self.settings, model=model)
        kwargs = {"model": model, "messages": messages}
        # gpt-5 only accepts the default temperature
        if model != "gpt-5":
            kwargs["temperature"] = temperature
        if model.startswith("gemini"):
            kwargs["max_tokens"] = max_tokens
        response = client.chat.completions.create(**kwargs)

        return response.choices[0].message.content or ""

    def generate(self, prompt: str, model: str = "gpt-4.1"):
        if model not in SUPPORTED_MODELS:
            raise GenerationError(model, ValueError(f"Unsupported model: {model}"))

        t0 = time.time()
        try:
            text = self.generate_completion(prompt, model=model)
        except Exception as e:
            logger.error("[ai.generate] model=%s failed: %s", model, e, exc_info=True)
            emit_event("generation", route="ai.generate", model=model, ok=False,
                       error_type=type(e).__name__, latency_ms=int((time.time() - t0) * 1000))
            raise GenerationError(model, e) from e

        emit_event("generation", route="ai.generate", model=model, ok=True,
                   latency_ms=int((time.time() - t0) * 1000))
        return parse_json_output(text)


def get_ai_service() -> AIService:
    return AIService()
