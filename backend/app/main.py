import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.api import prompts, generation
from app.core.config import get_settings

settings = get_settings()

logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)

app = FastAPI(
    title=settings.app_name,
    description="Prompt template management and content generation for reading materials",
    version="0.1.0",
)

# Admin console origins
ALLOWED_ORIGINS = [settings.frontend_url, "http://localhost:5173"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(prompts.router)
app.include_router(generation.router)


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "docs": "/docs",
        "prompts": "/api/prompts",
    }
