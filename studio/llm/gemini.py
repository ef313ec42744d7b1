"""
Gemini-backed capability provider (google-genai async client).
"""

from __future__ import annotations

import base64
import logging
import mimetypes
from pathlib import Path
from typing import Any, Optional

import httpx
from google import genai
from google.genai import types

from studio import config
from studio.llm.provider import ProviderError, parse_analysis_response

logger = logging.getLogger(__name__)


class GeminiProvider:
    """CapabilityProvider implementation talking to the Gemini API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        text_model: str = config.GEMINI_TEXT_MODEL,
        embedding_model: str = config.GEMINI_EMBEDDING_MODEL,
        image_model: str = config.GEMINI_IMAGE_MODEL,
        fetch_timeout: float = config.IMAGE_FETCH_TIMEOUT_SECONDS,
    ):
        self._api_key = api_key or config.GEMINI_API_KEY
        self._client: Optional[genai.Client] = None
        self.text_model = text_model
        self.embedding_model = embedding_model
        self.image_model = image_model
        self.fetch_timeout = fetch_timeout

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            if not self._api_key:
                raise ProviderError("GEMINI_API_KEY environment variable is required")
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def generate_text(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 2048,
    ) -> str:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.text_model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    temperature=temperature,
                    max_output_tokens=max_tokens,
                ),
            )
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"Gemini API error: {e}") from e

        text = response.text
        if not text:
            raise ProviderError("Gemini API returned an empty response")
        return text

    async def generate_embedding(self, text: str) -> list[float]:
        try:
            response = await self.client.aio.models.embed_content(
                model=self.embedding_model,
                contents=text,
            )
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"Gemini Embedding API error: {e}") from e

        if not response.embeddings or response.embeddings[0].values is None:
            raise ProviderError("Gemini Embedding API returned no embedding")
        return list(response.embeddings[0].values)

    async def analyze_image(self, image_ref: str, prompt: str) -> dict[str, Any]:
        image_bytes, mime_type = await self._load_image(image_ref)
        try:
            response = await self.client.aio.models.generate_content(
                model=self.text_model,
                contents=[
                    prompt,
                    types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                ],
            )
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"Gemini Vision API error: {e}") from e

        return parse_analysis_response(response.text or "")

    async def generate_image(
        self,
        prompt: str,
        negative_prompt: Optional[str] = None,
        count: int = 1,
        aspect_ratio: Optional[str] = None,
    ) -> list[str]:
        try:
            response = await self.client.aio.models.generate_images(
                model=self.image_model,
                prompt=prompt,
                config=types.GenerateImagesConfig(
                    number_of_images=count,
                    negative_prompt=negative_prompt or None,
                    aspect_ratio=aspect_ratio,
                ),
            )
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"Gemini Imagen API error: {e}") from e

        images: list[str] = []
        for generated in response.generated_images or []:
            image = generated.image
            if image is None or not image.image_bytes:
                continue
            mime_type = image.mime_type or "image/png"
            encoded = base64.b64encode(image.image_bytes).decode("utf-8")
            images.append(f"data:{mime_type};base64,{encoded}")

        if not images:
            raise ProviderError("No image was generated")
        return images

    async def _load_image(self, image_ref: str) -> tuple[bytes, str]:
        """Resolve a data URL, http(s) URL or local path to raw bytes + mime type."""
        if image_ref.startswith("data:"):
            header, _, encoded = image_ref.partition(",")
            mime_type = header[5:].split(";")[0] or "image/jpeg"
            try:
                return base64.b64decode(encoded), mime_type
            except ValueError as e:
                raise ProviderError(f"Invalid base64 image data: {e}") from e

        if image_ref.startswith("http://") or image_ref.startswith("https://"):
            try:
                async with httpx.AsyncClient(timeout=self.fetch_timeout) as client:
                    resp = await client.get(image_ref)
                    resp.raise_for_status()
            except httpx.HTTPError as e:
                raise ProviderError(f"Failed to fetch image {image_ref[:80]}: {e}") from e
            content_type = resp.headers.get("content-type", "").split(";")[0].strip()
            return resp.content, content_type or "image/jpeg"

        path = Path(image_ref)
        try:
            if path.is_file():
                mime_type = mimetypes.guess_type(str(path))[0] or "image/jpeg"
                return path.read_bytes(), mime_type
        except OSError as e:
            raise ProviderError(f"Failed to read image {image_ref[:50]}: {e}") from e

        logger.warning("Unsupported image reference: %s", image_ref[:50])
        raise ProviderError(f"Unsupported image source: {image_ref[:50]}...")
