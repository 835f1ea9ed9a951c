"""Prompt template admin endpoints: listing, export, bootstrap, edit, reset, preview."""

import hmac
import logging

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import Response

from app.core.config import get_settings
from app.core.exceptions import (
    PromptEngineError,
    PromptNotFound,
    StoreUnavailable,
    TemplateKeyConflict,
    TemplateNotFound,
    UnknownDefaultTemplate,
    ValidationError,
)
from app.models.prompt import (
    PromptInitializeRequest,
    PromptMigrateRequest,
    PromptPreviewRequest,
    PromptPreviewResponse,
    PromptResetRequest,
    PromptsResponse,
    PromptUpdateRequest,
)
from app.services.prompt_service import PromptService, get_prompt_service
from app.services.prompt_substitution import find_placeholders, substitute
from app.services.telemetry import instrument

router = APIRouter(prefix="/api/prompts", tags=["prompts"])

logger = logging.getLogger(__name__)


def to_http_error(exc: PromptEngineError) -> HTTPException:
    """Map prompt engine failures to HTTP status codes."""
    if isinstance(exc, ValidationError):
        status = 400
    elif isinstance(exc, (TemplateNotFound, UnknownDefaultTemplate, PromptNotFound)):
        status = 404
    elif isinstance(exc, TemplateKeyConflict):
        status = 409
    elif isinstance(exc, StoreUnavailable):
        status = 503
    else:
        status = 500
    logger.warning("[prompts] %s (prompt_id=%s operation=%s): %s",
                   type(exc).__name__, exc.prompt_id, exc.operation, exc)
    return HTTPException(status_code=status, detail=str(exc))


def require_admin(x_admin_secret: str = Header(None)):
    settings = get_settings()
    expected = settings.admin_secret
    if not expected:
        if settings.debug:
            return
        raise HTTPException(status_code=403, detail="Admin routes disabled: ADMIN_SECRET is not set")
    if not x_admin_secret or not hmac.compare_digest(x_admin_secret, expected):
        raise HTTPException(status_code=403, detail="Admin secret required")


@router.get("", response_model=PromptsResponse)
@instrument(route="/api/prompts")
def list_prompts(service: PromptService = Depends(get_prompt_service)):
    return service.list_grouped()


@router.get("/download")
@instrument(route="/api/prompts/download")
def download_prompts(service: PromptService = Depends(get_prompt_service)):
    try:
        body = service.export_csv()
    except PromptEngineError as e:
        raise to_http_error(e)
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="system_prompts.csv"'},
    )


@router.post("/initialize", dependencies=[Depends(require_admin)])
@instrument(route="/api/prompts/initialize")
def initialize_prompts(req: PromptInitializeRequest, service: PromptService = Depends(get_prompt_service)):
    try:
        result = service.initialize_templates(force_reset=req.force_reset)
    except PromptEngineError as e:
        raise to_http_error(e)
    return {"success": True, **result}


@router.post("/reset", dependencies=[Depends(require_admin)])
@instrument(route="/api/prompts/reset")
def reset_prompt(req: PromptResetRequest, service: PromptService = Depends(get_prompt_service)):
    try:
        return service.reset_template(req.prompt_id)
    except PromptEngineError as e:
        raise to_http_error(e)


@router.post("/update", dependencies=[Depends(require_admin)])
@instrument(route="/api/prompts/update")
def update_prompt(req: PromptUpdateRequest, service: PromptService = Depends(get_prompt_service)):
    try:
        result = service.update_template(
            req.prompt_id, req.prompt_text, changed_by=req.changed_by, change_reason=req.change_reason,
        )
    except PromptEngineError as e:
        raise to_http_error(e)
    return {"success": True, **result}


@router.post("/migrate-legacy", dependencies=[Depends(require_admin)])
@instrument(route="/api/prompts/migrate-legacy")
def migrate_legacy_prompts(req: PromptMigrateRequest, service: PromptService = Depends(get_prompt_service)):
    try:
        result = service.migrate_legacy(force=req.force)
    except PromptEngineError as e:
        raise to_http_error(e)
    return {"success": True, **result}


@router.post("/preview", response_model=PromptPreviewResponse)
@instrument(route="/api/prompts/preview")
def preview_prompt(req: PromptPreviewRequest, service: PromptService = Depends(get_prompt_service)):
    """Resolve a template and fill it with the given variables, without calling a model."""
    try:
        resolved = service.resolve(req.category, req.sub_category, req.key)
    except PromptEngineError as e:
        raise to_http_error(e)
    text = substitute(resolved.text, req.variables)
    return PromptPreviewResponse(
        text=text,
        provenance=resolved.provenance,
        unresolved_placeholders=find_placeholders(text),
    )
