"""Stability AI Image Provider - Infrastructure Layer"""

import logging
from typing import Any, Dict, List

from ...domain.entity.image import GenerationResult, RequestSpec
from ...domain.errors import NoResultError
from ...domain.repository.image_provider import ProviderProtocol, StrengthMapping
from ...domain.service.result_normalizer import base64_to_data_uri, build_result
from .http_provider import HttpImageProvider

logger = logging.getLogger(__name__)


class StabilityProvider(HttpImageProvider):
    """Stability v1 image-to-image, single multipart request with JSON artifacts back.

    image_strength is how much the init image influences the result (1.0
    reproduces it), the inverse of RequestSpec.strength.
    """

    PROTOCOL = ProviderProtocol.SINGLE_SHOT
    STRENGTH_MAPPING = StrengthMapping.INVERTED
    DEFAULT_BASE_URL = "https://api.stability.ai"
    DEFAULT_MODEL = "stable-diffusion-xl-1024-v1-0"

    def _form_fields(self, spec: RequestSpec) -> Dict[str, str]:
        fields = {
            "init_image_mode": "IMAGE_STRENGTH",
            "image_strength": str(self.map_strength(spec.strength)),
            "text_prompts[0][text]": spec.prompt,
            "text_prompts[0][weight]": "1",
            "cfg_scale": str(self.option("cfg_scale", 7)),
            "samples": str(spec.output_count),
            "steps": str(self.option("steps", 30)),
        }
        if self.option("style_preset"):
            fields["style_preset"] = str(self.option("style_preset"))
        if spec.seed is not None:
            fields["seed"] = str(spec.seed)
        return fields

    async def _generate(self, spec: RequestSpec) -> GenerationResult:
        url = f"{self._base_url}/v1/generation/{self._model}/image-to-image"
        headers = {
            "Authorization": f"Bearer {spec.api_key}",
            "Accept": "application/json",
        }
        template = spec.template_image
        files = {"init_image": ("template", template.to_bytes(), template.mime_type)}

        async with self._client() as client:
            response = await client.post(
                url, data=self._form_fields(spec), files=files, headers=headers
            )
            self._raise_for_status(response)
            body = self._json(response)

        artifacts = body.get("artifacts") if isinstance(body, dict) else None
        images = self._artifact_images(artifacts or [])
        return build_result(images, provider=self._name, model=self._model)

    def _artifact_images(self, artifacts: List[Dict[str, Any]]) -> List[str]:
        images = []
        filtered = 0
        for artifact in artifacts:
            if not isinstance(artifact, dict) or not artifact.get("base64"):
                continue
            if artifact.get("finishReason", "SUCCESS") != "SUCCESS":
                filtered += 1
                continue
            images.append(base64_to_data_uri(artifact["base64"], "image/png"))

        if not images and filtered:
            raise NoResultError(
                f"All {filtered} artifact(s) were filtered by the provider", provider=self._name
            )
        return images
