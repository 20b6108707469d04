"""Generate Image Use Case - Application Layer"""

import logging
from typing import Optional

from ...domain.entity.image import GenerationFailure, GenerationOutcome, RequestSpec
from ...domain.errors import ErrorKind
from ...domain.service.image_router import ImageRouter, ImageRouterError

logger = logging.getLogger(__name__)


class GenerateImageUseCase:
    """Generate image use case"""

    def __init__(self, image_router: ImageRouter):
        self._image_router = image_router

    async def execute(self, spec: RequestSpec, provider_name: Optional[str] = None) -> GenerationOutcome:
        """Route the request to one provider and run it."""
        # 1. Select the provider
        try:
            provider = self._image_router.get_provider(provider_name)
        except ImageRouterError as e:
            logger.warning(f"Provider selection failed: {e}")
            return GenerationFailure(kind=ErrorKind.INVALID_INPUT, message=str(e))

        logger.info(f"Dispatching generation to provider={provider.name}, model={provider.model}")

        # 2. Generate
        return await provider.generate(spec)
