"""Replicate Image Providers - Infrastructure Layer

Two protocol shapes over the same predictions API:

- ReplicatePollProvider submits a prediction and always polls it.
- ReplicateWaitProvider asks the server to hold the submission open
  ("Prefer: wait") and only polls when the job is still running on return.
"""

import logging
from abc import abstractmethod
from typing import Any, Dict, Optional

import httpx

from ...domain.entity.image import GenerationResult, RequestSpec
from ...domain.entity.job import GenerationJob, JobStatus, JobUpdate, StatusVocabulary
from ...domain.errors import PollRequestError, UnexpectedError
from ...domain.repository.image_provider import ProviderProtocol, StrengthMapping
from ...domain.service.job_poller import JobPoller
from ...domain.service.result_normalizer import build_result, urls_to_images
from .http_provider import DEFAULT_TIMEOUT, HttpImageProvider

logger = logging.getLogger(__name__)

REPLICATE_STATUSES = StatusVocabulary({
    "starting": JobStatus.PENDING,
    "processing": JobStatus.RUNNING,
    "succeeded": JobStatus.SUCCEEDED,
    "failed": JobStatus.FAILED,
    "canceled": JobStatus.CANCELED,
    "aborted": JobStatus.CANCELED,
})


class ReplicateProvider(HttpImageProvider):
    """Shared Replicate predictions protocol."""

    DEFAULT_BASE_URL = "https://api.replicate.com"

    def __init__(
        self,
        name: str,
        poller: Optional[JobPoller] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        version: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize the Replicate provider

        Args:
            name: Registry name of this provider
            poller: Poller used while the prediction is not terminal
            base_url: API base URL
            model: "owner/name" of the model
            version: Model version id; when set, /v1/predictions is used
            options: Input parameter overrides
            timeout: Per-request timeout in seconds
        """
        super().__init__(name=name, base_url=base_url, model=model, options=options, timeout=timeout)
        self._poller = poller or JobPoller()
        self._version = version or None

    @classmethod
    def from_config(cls, name: str, config, poller: JobPoller, timeout: float = DEFAULT_TIMEOUT):
        return cls(
            name=name,
            poller=poller,
            base_url=config.base_url or None,
            model=config.model or None,
            version=config.version or None,
            options=config.options,
            timeout=timeout,
        )

    @abstractmethod
    def _build_input(self, spec: RequestSpec) -> Dict[str, Any]:
        """Model input parameters for one request."""
        pass

    def _headers(self, spec: RequestSpec) -> Dict[str, str]:
        return {
            "Authorization": f"Token {spec.api_key}",
            "Content-Type": "application/json",
        }

    def _submission_url(self) -> str:
        if self._version:
            return f"{self._base_url}/v1/predictions"
        return f"{self._base_url}/v1/models/{self._model}/predictions"

    def _submission_body(self, spec: RequestSpec) -> Dict[str, Any]:
        body: Dict[str, Any] = {"input": self._build_input(spec)}
        if self._version:
            body["version"] = self._version
        return body

    async def _generate(self, spec: RequestSpec) -> GenerationResult:
        headers = self._headers(spec)

        async with self._client() as client:
            response = await client.post(
                self._submission_url(),
                json=self._submission_body(spec),
                headers=headers,
            )
            self._raise_for_status(response)
            job = self._to_job(self._json(response))
            logger.info(f"Replicate prediction {job.id} created with status {job.status.value}")

            if not job.is_terminal:
                async def fetch(current: GenerationJob) -> JobUpdate:
                    return await self._fetch_status(client, current, headers)

                await self._poller.wait(job, fetch)

        job.raise_for_status()
        return build_result(
            urls_to_images(job.result),
            provider=self._name,
            model=self._model,
            job_id=job.id,
        )

    def _to_job(self, prediction: Any) -> GenerationJob:
        if not isinstance(prediction, dict) or not prediction.get("id"):
            raise UnexpectedError("Replicate did not return a prediction id", provider=self._name)

        job_id = str(prediction["id"])
        urls = prediction.get("urls") or {}
        update = self._to_update(prediction)
        return GenerationJob(
            id=job_id,
            status=update.status,
            status_url=urls.get("get") or f"{self._base_url}/v1/predictions/{job_id}",
            result=update.result if update.status is JobStatus.SUCCEEDED else None,
            error_detail=update.error_detail if update.status.is_terminal else None,
            provider=self._name,
            raw=prediction,
        )

    async def _fetch_status(
        self,
        client: httpx.AsyncClient,
        job: GenerationJob,
        headers: Dict[str, str],
    ) -> JobUpdate:
        try:
            response = await client.get(job.status_url, headers=headers)
        except httpx.HTTPError as e:
            raise PollRequestError(f"status request failed: {e!r}") from e

        if not response.is_success:
            raise PollRequestError(f"status request returned {response.status_code}")

        try:
            prediction = response.json()
        except ValueError as e:
            raise PollRequestError("status response was not JSON") from e

        return self._to_update(prediction)

    @staticmethod
    def _to_update(prediction: Dict[str, Any]) -> JobUpdate:
        status = REPLICATE_STATUSES.translate(prediction.get("status"))
        error = prediction.get("error")
        return JobUpdate(
            status=status,
            result=prediction.get("output"),
            error_detail=str(error) if error else None,
        )


class ReplicatePollProvider(ReplicateProvider):
    """IP-Adapter style model, submit then poll.

    ip_adapter_scale measures adherence to the reference image, the
    opposite of RequestSpec.strength, so the value is inverted instead of
    being forwarded unchanged.

    Only the template is sent, as "image". The product image is not
    forwarded as "image" and the template is not sent as
    "reference_image"; the product is consumed by multi-modal providers
    only.
    """

    PROTOCOL = ProviderProtocol.SUBMIT_POLL
    STRENGTH_MAPPING = StrengthMapping.INVERTED
    DEFAULT_MODEL = "lucataco/sdxl-ip-adapter"

    def _build_input(self, spec: RequestSpec) -> Dict[str, Any]:
        payload = {
            "prompt": spec.prompt,
            "image": spec.template_image.to_data_uri(),
            "ip_adapter_scale": self.map_strength(spec.strength),
            "num_outputs": spec.output_count,
            "guidance_scale": self.option("guidance_scale", 7.5),
            "num_inference_steps": self.option("num_inference_steps", 30),
        }
        if spec.seed is not None:
            payload["seed"] = spec.seed
        return payload


class ReplicateWaitProvider(ReplicateProvider):
    """Image-to-image model submitted with a server-side wait.

    prompt_strength is the share of the reference image that is destroyed
    (1.0 ignores it entirely), the same sense as RequestSpec.strength.
    """

    PROTOCOL = ProviderProtocol.SYNC_WAIT
    STRENGTH_MAPPING = StrengthMapping.DIRECT
    DEFAULT_MODEL = "black-forest-labs/flux-dev"
    MAX_WAIT_SECONDS = 60

    def _headers(self, spec: RequestSpec) -> Dict[str, str]:
        headers = super()._headers(spec)
        wait = int(self.option("wait_seconds", self.MAX_WAIT_SECONDS))
        headers["Prefer"] = f"wait={max(1, min(wait, self.MAX_WAIT_SECONDS))}"
        return headers

    def _build_input(self, spec: RequestSpec) -> Dict[str, Any]:
        payload = {
            "prompt": spec.prompt,
            "image": spec.template_image.to_data_uri(),
            "prompt_strength": self.map_strength(spec.strength),
            "num_outputs": spec.output_count,
            "guidance": self.option("guidance", 3.5),
            "num_inference_steps": self.option("num_inference_steps", 28),
        }
        if self.option("output_format"):
            payload["output_format"] = self.option("output_format")
        if spec.seed is not None:
            payload["seed"] = spec.seed
        return payload
