from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    app_name: str = "Passage Studio"
    debug: bool = False

    # Supabase
    supabase_url: str = ""
    supabase_service_key: str = ""

    # OpenAI
    openai_api_key: str = ""

    # Gemini
    gemini_api_key: str = ""
    llm_provider: str = "openai"

    # Prompt templates
    prompt_store: str = "supabase"  # supabase | memory
    prompt_table: str = "system_prompts_v3"
    legacy_prompt_table: str = "system_prompts"
    canonical_prompt_generation: str = "current"  # current | legacy
    enable_prompt_history_db: bool = False

    # Admin routes (X-Admin-Secret header)
    admin_secret: str = ""

    # CORS
    frontend_url: str = "http://localhost:3000"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
