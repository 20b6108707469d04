"""Login Function Handler - Infrastructure Layer"""

import logging
from typing import Any, Dict

from ...application.usecase.authenticate import AuthenticateUseCase
from .responses import EventBodyError, is_post, json_response, method_not_allowed, parse_body

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"


class LoginFunctionHandler:
    """Serverless handler for POST /login"""

    def __init__(self, authenticate_use_case: AuthenticateUseCase):
        self._authenticate_use_case = authenticate_use_case

    async def handle(self, event: Dict[str, Any]) -> Dict[str, Any]:
        if not is_post(event):
            return method_not_allowed()

        try:
            body = parse_body(event)
        except EventBodyError as e:
            return json_response(400, {"success": False, "message": str(e)})

        username = body.get("username")
        password = body.get("password")
        if not isinstance(username, str) or not isinstance(password, str):
            return json_response(400, {"success": False, "message": "username and password are required"})

        try:
            valid = self._authenticate_use_case.execute(username, password)
        except Exception as e:
            logger.error(f"Login check failed: {e}", exc_info=True)
            return json_response(500, {"success": False, "message": "Internal server error"})

        if valid:
            return json_response(200, {"success": True})
        return json_response(401, {"success": False, "message": INVALID_CREDENTIALS_MESSAGE})
