"""Generate Function Handler - Infrastructure Layer"""

import logging
from typing import Any, Dict

from ...application.usecase.generate_image import GenerateImageUseCase
from ...domain.entity.image import RequestSpec
from ...domain.errors import InvalidInputError
from .responses import EventBodyError, is_post, json_response, method_not_allowed, parse_body

logger = logging.getLogger(__name__)


class GenerateFunctionHandler:
    """Serverless handler for POST /generate

    Parses the event, builds the RequestSpec, runs the use case and maps
    the outcome to an HTTP response. Error kinds become status codes here
    and nowhere else.
    """

    def __init__(self, generate_image_use_case: GenerateImageUseCase):
        self._generate_image_use_case = generate_image_use_case

    async def handle(self, event: Dict[str, Any]) -> Dict[str, Any]:
        """Handle one serverless HTTP event

        Args:
            event: {"httpMethod", "headers", "body", "isBase64Encoded"}

        Returns:
            {"statusCode", "headers", "body"}
        """
        if not is_post(event):
            return method_not_allowed()

        try:
            body = parse_body(event)
            spec = RequestSpec.from_payload(body)
        except (EventBodyError, InvalidInputError) as e:
            logger.info(f"Invalid generate request: {e}")
            return json_response(400, {"error": str(e)})

        provider_name = body.get("provider") or None
        if provider_name is not None and not isinstance(provider_name, str):
            logger.info("Invalid generate request: provider is not a string")
            return json_response(400, {"error": "Field 'provider' must be a string"})

        outcome = await self._generate_image_use_case.execute(spec, provider_name=provider_name)

        if outcome.ok:
            return json_response(200, outcome.to_dict())

        headers = {}
        if outcome.retry_after is not None:
            headers["Retry-After"] = str(max(1, round(outcome.retry_after)))
        logger.info(
            f"Generation failed: kind={outcome.kind.value}, provider={outcome.provider}, "
            f"status={outcome.http_status}"
        )
        return json_response(outcome.http_status, outcome.to_dict(), headers)
