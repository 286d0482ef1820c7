from __future__ import annotations

from fastapi import APIRouter

from app.config import settings
from app.models.schemas import EnvCheckResponse

router = APIRouter(prefix="/api", tags=["env"])


@router.get("/check-env", response_model=EnvCheckResponse)
async def check_env():
    """Report which credentials and endpoints are configured, never their values."""
    return EnvCheckResponse(
        hasFirecrawlKey=bool(settings.firecrawl_api_key),
        hasFirecrawlBaseUrl=bool(settings.firecrawl_base_url),
        hasOpenAIKey=bool(settings.openai_api_key),
        hasOpenAIBaseUrl=bool(settings.openai_base_url),
        hasOpenAIModel=bool(settings.openai_model),
        hasOpenAIApiMode=bool(settings.openai_api_mode),
        hasSearxngBaseUrl=bool(settings.searxng_base_url),
    )
