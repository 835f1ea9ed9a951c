"""
Typed failures for the prompt template engine.

Resolution-path failures (StoreUnavailable) are recovered by falling back one
level; administrative paths surface every error to the caller with the
prompt_id and operation attached.
"""
from __future__ import annotations

from typing import Optional


class PromptEngineError(Exception):
    """Base class for every prompt engine failure."""

    prompt_id: Optional[str] = None
    operation: Optional[str] = None


class TemplateNotFound(PromptEngineError):
    def __init__(self, category: str, sub_category: str, key: str):
        self.category = category
        self.sub_category = sub_category
        self.key = key
        super().__init__(f"Template not found: {category}/{sub_category}/{key}")


class UnknownDefaultTemplate(PromptEngineError):
    def __init__(self, prompt_id: str, operation: str = "reset"):
        self.prompt_id = prompt_id
        self.operation = operation
        super().__init__(f"No default template registered for prompt_id={prompt_id!r}")


class PromptNotFound(PromptEngineError):
    def __init__(self, prompt_id: str, operation: str):
        self.prompt_id = prompt_id
        self.operation = operation
        super().__init__(f"Prompt {prompt_id!r} not found ({operation})")


class ValidationError(PromptEngineError):
    def __init__(self, message: str, prompt_id: Optional[str] = None, operation: Optional[str] = None):
        self.prompt_id = prompt_id
        self.operation = operation
        super().__init__(message)


class StoreUnavailable(PromptEngineError):
    def __init__(self, operation: str, cause: Optional[BaseException] = None, prompt_id: Optional[str] = None):
        self.operation = operation
        self.cause = cause
        self.prompt_id = prompt_id
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Prompt store unavailable during {operation}{detail}")


class TemplateKeyConflict(PromptEngineError):
    def __init__(self, category: str, sub_category: str, key: str, prompt_id: str, operation: str = "upsert"):
        self.category = category
        self.sub_category = sub_category
        self.key = key
        self.prompt_id = prompt_id
        self.operation = operation
        super().__init__(
            f"Active template {category}/{sub_category}/{key} already exists; "
            f"cannot activate {prompt_id!r} at the same key"
        )


class GenerationError(Exception):
    def __init__(self, model: str, cause: Optional[BaseException] = None):
        self.model = model
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Text generation failed (model={model}){detail}")
