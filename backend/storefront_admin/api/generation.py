"""
Text generation API - proxies prompts to the local Ollama server
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from storefront_admin.core.auth import get_current_user
from storefront_admin.services.text_generation_service import TextGenerationService
from storefront_admin.api.deps import PASSTHROUGH_ERRORS, get_text_generation_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/ollama",
    tags=["Text Generation"],
    dependencies=[Depends(get_current_user)],
)


class GenerationRequest(BaseModel):
    prompt: str = Field(..., min_length=1, description="Prompt text")
    model: Optional[str] = Field(None, description="Override the default model")


@router.post("")
async def generate_text(
    request: GenerationRequest,
    service: TextGenerationService = Depends(get_text_generation_service),
):
    logger.info(f"Text generation requested ({len(request.prompt)} chars)")
    try:
        return await service.generate(request.prompt, model=request.model)
    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        logger.exception(f"Error generating text: {e}")
        raise HTTPException(status_code=500, detail="Server error generating text")
