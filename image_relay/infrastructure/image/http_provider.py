"""HTTP Image Provider Base - Infrastructure Layer"""

import logging
from typing import Any, Dict, Optional

import httpx

from ...domain.errors import (
    ProviderRejectedError,
    ProviderWarmingError,
    RateLimitedError,
    UnexpectedError,
)
from ...domain.repository.image_provider import ImageProvider
from ...domain.service.job_poller import JobPoller

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


class HttpImageProvider(ImageProvider):
    """Image provider that talks to a JSON/HTTP API through httpx."""

    DEFAULT_BASE_URL: str = ""

    def __init__(
        self,
        name: str,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize the provider

        Args:
            name: Registry name of this provider
            base_url: API base URL (defaults to the public endpoint)
            model: Model identifier
            options: Provider specific parameter overrides
            timeout: Per-request timeout in seconds
        """
        super().__init__(name=name, model=model, options=options)
        self._base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self._timeout = timeout

    @classmethod
    def from_config(cls, name: str, config, poller: JobPoller, timeout: float = DEFAULT_TIMEOUT):
        """Build the provider from a ProviderConfig entry."""
        return cls(
            name=name,
            base_url=config.base_url or None,
            model=config.model or None,
            options=config.options,
            timeout=timeout,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout)

    def _raise_for_status(self, response: httpx.Response) -> None:
        raise_for_provider_status(response, self._name)

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UnexpectedError(
                f"Provider {self._name} returned a malformed JSON body", provider=self._name
            ) from e


def raise_for_provider_status(response: httpx.Response, provider: str) -> None:
    """Translate a non-2xx provider reply into the error taxonomy.

    429 is a rate limit, 503 is a cold start / temporary unavailability,
    anything else is a rejection carrying the provider's own message.
    """
    if response.is_success:
        return

    status = response.status_code
    body = _safe_json(response)
    message = extract_error_message(response, body)

    if status == 429:
        raise RateLimitedError(provider=provider, retry_after=_retry_after(response))

    if status == 503:
        estimated = body.get("estimated_time") if isinstance(body, dict) else None
        retry_after = _as_seconds(estimated) or _retry_after(response)
        raise ProviderWarmingError(
            message or f"Provider {provider} is warming up",
            provider=provider,
            retry_after=retry_after,
        )

    raise ProviderRejectedError(
        f"Provider {provider} rejected the request ({status}): {message or response.reason_phrase}",
        provider=provider,
        status_code=status,
    )


def extract_error_message(response: httpx.Response, body: Any = None) -> str:
    """Pull a human readable message out of a provider error body."""
    if body is None:
        body = _safe_json(response)

    if isinstance(body, dict):
        for key in ("detail", "error", "message", "title"):
            value = body.get(key)
            if isinstance(value, dict):
                value = value.get("message") or value.get("status")
            if isinstance(value, list):
                value = "; ".join(str(item) for item in value)
            if value:
                return str(value)

    return response.text[:500].strip()


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _retry_after(response: httpx.Response) -> Optional[float]:
    return _as_seconds(response.headers.get("Retry-After"))


def _as_seconds(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    return seconds if seconds >= 0 else None
