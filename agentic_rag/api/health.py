"""Liveness probe."""

from fastapi import APIRouter, Depends

from agentic_rag.api.deps import get_app_settings
from agentic_rag.config import Settings
from agentic_rag.models.responses import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health(config: Settings = Depends(get_app_settings)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=config.app_version,
        service=config.app_name,
    )
