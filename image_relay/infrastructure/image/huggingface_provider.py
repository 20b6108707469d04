"""Hugging Face Inference Providers - Infrastructure Layer

Single-shot image-to-image calls. The endpoint answers with raw image
bytes (or a JSON body carrying base64 images) and replies 503 with an
"estimated_time" while the model is being loaded.

Two request layouts are in use against these endpoints and are kept as
separate adapters rather than guessed at:

- HuggingFaceImageInputsProvider: image in "inputs", prompt in parameters
- HuggingFacePromptInputsProvider: prompt in "inputs", image in parameters
"""

import logging
from abc import abstractmethod
from typing import Any, Dict, List

import httpx

from ...domain.entity.image import GenerationResult, RequestSpec
from ...domain.errors import ProviderRejectedError
from ...domain.repository.image_provider import ProviderProtocol, StrengthMapping
from ...domain.service.result_normalizer import base64_to_data_uri, build_result, bytes_to_data_uri
from .http_provider import HttpImageProvider

logger = logging.getLogger(__name__)


class HuggingFaceProvider(HttpImageProvider):
    """Hugging Face Inference API, one request, no polling."""

    PROTOCOL = ProviderProtocol.SINGLE_SHOT
    DEFAULT_BASE_URL = "https://router.huggingface.co/hf-inference/models"
    DEFAULT_MODEL = "stabilityai/stable-diffusion-xl-refiner-1.0"

    @abstractmethod
    def _build_body(self, spec: RequestSpec) -> Dict[str, Any]:
        """JSON body for one request."""
        pass

    def _parameters(self, spec: RequestSpec) -> Dict[str, Any]:
        parameters = {
            key: value for key, value in self._options.items() if value is not None
        }
        parameters["strength"] = self.map_strength(spec.strength)
        if spec.seed is not None:
            parameters["seed"] = spec.seed
        return parameters

    async def _generate(self, spec: RequestSpec) -> GenerationResult:
        url = f"{self._base_url}/{self._model}"
        headers = {
            "Authorization": f"Bearer {spec.api_key}",
            "Accept": "image/png",
        }

        async with self._client() as client:
            response = await client.post(url, json=self._build_body(spec), headers=headers)
            self._raise_for_status(response)
            images = self._extract_images(response)

        return build_result(images, provider=self._name, model=self._model)

    def _extract_images(self, response: httpx.Response) -> List[str]:
        content_type = response.headers.get("content-type", "").split(";", 1)[0].strip().lower()

        if content_type.startswith("image/"):
            return [bytes_to_data_uri(response.content, content_type)]

        if content_type == "application/json":
            return self._images_from_json(self._json(response))

        if not response.content:
            return []
        return [bytes_to_data_uri(response.content, content_type)]

    def _images_from_json(self, body: Any) -> List[str]:
        if isinstance(body, dict):
            if body.get("error"):
                raise ProviderRejectedError(str(body["error"]), provider=self._name)
            body = body.get("images") or body.get("image") or []

        if isinstance(body, str):
            body = [body]

        images = []
        for item in body if isinstance(body, list) else []:
            if isinstance(item, dict):
                item = item.get("image") or item.get("generated_image") or item.get("blob")
            if isinstance(item, str) and item:
                images.append(base64_to_data_uri(item))
        return images


class HuggingFaceImageInputsProvider(HuggingFaceProvider):
    """Reference image as "inputs", prompt as a parameter.

    parameters.strength is the diffusion noise applied to the reference
    (higher drifts further), the same sense as RequestSpec.strength.
    """

    STRENGTH_MAPPING = StrengthMapping.DIRECT

    def _build_body(self, spec: RequestSpec) -> Dict[str, Any]:
        parameters = self._parameters(spec)
        parameters["prompt"] = spec.prompt
        return {
            "inputs": spec.template_image.data,
            "parameters": parameters,
        }


class HuggingFacePromptInputsProvider(HuggingFaceProvider):
    """Prompt as "inputs", reference image as a parameter.

    parameters.strength keeps the diffusion-noise sense: sent unchanged.
    """

    STRENGTH_MAPPING = StrengthMapping.DIRECT

    def _build_body(self, spec: RequestSpec) -> Dict[str, Any]:
        parameters = self._parameters(spec)
        parameters["image"] = spec.template_image.data
        return {
            "inputs": spec.prompt,
            "parameters": parameters,
        }
