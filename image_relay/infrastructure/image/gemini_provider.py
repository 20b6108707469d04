"""Gemini Image Provider - Infrastructure Layer"""

import logging
from typing import Any, Dict, List

from ...domain.entity.image import GenerationResult, RequestSpec
from ...domain.errors import NoResultError, ProviderRejectedError
from ...domain.repository.image_provider import ProviderProtocol, StrengthMapping
from ...domain.service.result_normalizer import build_result, first_inline_image
from .http_provider import HttpImageProvider

logger = logging.getLogger(__name__)


class GeminiImageProvider(HttpImageProvider):
    """Multi-modal generateContent call.

    The prompt, the template and the optional product image travel as
    ordered content parts. The reply mixes text and image parts; the first
    image part wins. The API has no strength parameter.
    """

    PROTOCOL = ProviderProtocol.MULTIMODAL
    STRENGTH_MAPPING = StrengthMapping.UNUSED
    DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
    DEFAULT_MODEL = "gemini-2.5-flash-image"

    def _build_body(self, spec: RequestSpec) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = [{"text": spec.prompt}]
        for image in (spec.template_image, spec.product_image):
            if image is not None:
                parts.append({
                    "inline_data": {"mime_type": image.mime_type, "data": image.data}
                })

        generation_config: Dict[str, Any] = {"responseModalities": ["TEXT", "IMAGE"]}
        if self.option("temperature") is not None:
            generation_config["temperature"] = self.option("temperature")
        if spec.seed is not None:
            generation_config["seed"] = spec.seed

        return {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": generation_config,
        }

    async def _generate(self, spec: RequestSpec) -> GenerationResult:
        url = f"{self._base_url}/models/{self._model}:generateContent"
        headers = {
            "x-goog-api-key": spec.api_key,
            "Content-Type": "application/json",
        }

        async with self._client() as client:
            response = await client.post(url, json=self._build_body(spec), headers=headers)
            self._raise_for_status(response)
            body = self._json(response)

        if not isinstance(body, dict):
            raise NoResultError("No image in response", provider=self._name)

        candidates = body.get("candidates") or []
        if not candidates:
            block_reason = (body.get("promptFeedback") or {}).get("blockReason")
            if block_reason:
                raise ProviderRejectedError(
                    f"Prompt was blocked: {block_reason}", provider=self._name
                )
            raise NoResultError("No image in response", provider=self._name)

        parts: List[Dict[str, Any]] = []
        for candidate in candidates:
            content = candidate.get("content") or {}
            parts.extend(content.get("parts") or [])

        image = first_inline_image(parts)
        return build_result(
            [image],
            provider=self._name,
            model=body.get("modelVersion") or self._model,
        )
