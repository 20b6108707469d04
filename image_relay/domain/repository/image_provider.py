"""Image Provider Repository Interface - Domain Layer"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..entity.image import GenerationFailure, GenerationOutcome, GenerationResult, RequestSpec
from ..errors import ErrorKind, ImageRelayError, InvalidInputError

logger = logging.getLogger(__name__)


class ProviderProtocol(str, Enum):
    """Protocol shape a provider speaks."""

    SYNC_WAIT = "sync_wait"
    SUBMIT_POLL = "submit_poll"
    SINGLE_SHOT = "single_shot"
    MULTIMODAL = "multimodal"


class StrengthMapping(str, Enum):
    """How RequestSpec.strength (deviation from the reference) maps to a provider value.

    DIRECT: the provider parameter also measures deviation.
    INVERTED: the provider parameter measures adherence, so 1 - strength is sent.
    UNUSED: the provider has no such parameter.
    """

    DIRECT = "direct"
    INVERTED = "inverted"
    UNUSED = "unused"

    def apply(self, strength: float) -> Optional[float]:
        if self is StrengthMapping.DIRECT:
            return strength
        if self is StrengthMapping.INVERTED:
            return round(1.0 - strength, 6)
        return None


class ImageProvider(ABC):
    """Image generation provider interface.

    Subclasses implement _generate and raise ImageRelayError subclasses on
    failure. generate() is the boundary: it rejects incomplete requests
    before any network call and turns every exception into a
    GenerationFailure.
    """

    PROTOCOL: ProviderProtocol = ProviderProtocol.SINGLE_SHOT
    STRENGTH_MAPPING: StrengthMapping = StrengthMapping.DIRECT
    REQUIRED_FIELDS: Tuple[str, ...] = ("api_key", "prompt", "template_image")
    DEFAULT_MODEL: str = ""

    def __init__(
        self,
        name: str,
        model: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ):
        self._name = name
        self._model = model or self.DEFAULT_MODEL
        self._options = dict(options or {})

    @classmethod
    def from_config(cls, name: str, config, poller=None, timeout: Optional[float] = None) -> "ImageProvider":
        """Build the provider from a configuration entry (model and options only)."""
        return cls(name=name, model=config.model or None, options=config.options)

    @property
    def name(self) -> str:
        return self._name

    @property
    def model(self) -> str:
        return self._model

    async def generate(self, spec: RequestSpec) -> GenerationOutcome:
        """Generate images for the request.

        Args:
            spec: Normalized generation request

        Returns:
            GenerationResult on success, GenerationFailure otherwise
        """
        try:
            self.validate(spec)
            result = await self._generate(spec)
            logger.info(f"Provider {self._name} produced {len(result.images)} image(s)")
            return result
        except ImageRelayError as e:
            log = logger.info if e.kind is ErrorKind.INVALID_INPUT else logger.warning
            log(f"Provider {self._name} failed with {e.kind.value}: {e.message}")
            return GenerationFailure(
                kind=e.kind,
                message=e.message,
                provider=e.provider or self._name,
                retry_after=e.retry_after,
            )
        except Exception as e:
            logger.error(f"Unexpected error from provider {self._name}: {e}", exc_info=True)
            return GenerationFailure(
                kind=ErrorKind.UNEXPECTED,
                message=str(e) or e.__class__.__name__,
                provider=self._name,
            )

    def validate(self, spec: RequestSpec) -> None:
        """Reject the request before any network call if a required field is missing."""
        missing = spec.missing_fields(list(self.REQUIRED_FIELDS))
        if missing:
            raise InvalidInputError(
                f"Missing required field(s): {', '.join(missing)}",
                provider=self._name,
            )

    def map_strength(self, strength: float) -> Optional[float]:
        return self.STRENGTH_MAPPING.apply(strength)

    def option(self, key: str, default: Any = None) -> Any:
        return self._options.get(key, default)

    def describe(self) -> Dict[str, Any]:
        """Summary used by provider listings."""
        return {
            "name": self._name,
            "model": self._model,
            "protocol": self.PROTOCOL.value,
            "strength_mapping": self.STRENGTH_MAPPING.value,
        }

    @abstractmethod
    async def _generate(self, spec: RequestSpec) -> GenerationResult:
        """Run the provider protocol for a validated request."""
        pass
