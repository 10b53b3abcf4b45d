"""
Text Generation Service - proxy to a local Ollama server

Used by the dashboard to draft product descriptions. Generation can take
minutes on CPU-only hosts, so the call carries no timeout.
"""
import logging
from typing import Dict, Optional

import httpx

from storefront_admin.core.config import settings
from storefront_admin.core.errors import IntegrationError

logger = logging.getLogger(__name__)


class TextGenerationService:

    def __init__(
        self,
        base_url: str = None,
        model: str = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.OLLAMA_BASE_URL).rstrip("/")
        self.model = model or settings.OLLAMA_MODEL
        self._transport = transport

    async def generate(self, prompt: str, model: Optional[str] = None) -> Dict[str, str]:
        """
        Run a non-streaming completion

        Returns:
            {"response": generated text, "model": model used}
        """
        model = model or self.model
        payload = {'model': model, 'prompt': prompt, 'stream': False}

        async with httpx.AsyncClient(timeout=None, transport=self._transport) as client:
            try:
                response = await client.post(f"{self.base_url}/api/generate", json=payload)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error(f"Ollama returned {e.response.status_code}: {e.response.text}")
                raise IntegrationError("Text generation failed", detail=e.response.text)
            except httpx.HTTPError as e:
                logger.error(f"Ollama request failed: {e}")
                raise IntegrationError("Text generation service unreachable", detail=str(e))

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Ollama returned a non-JSON body: {response.text[:200]}")
            raise IntegrationError("Text generation returned an unreadable response", detail=str(e))

        return {'response': data.get('response', ''), 'model': data.get('model', model)}
