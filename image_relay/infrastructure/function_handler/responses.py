"""Serverless event/response helpers - Infrastructure Layer"""

import base64
import json
from typing import Any, Dict, Optional


class EventBodyError(ValueError):
    """The event body is not a JSON object."""


def json_response(
    status_code: int,
    payload: Dict[str, Any],
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    merged = {"Content-Type": "application/json"}
    merged.update(headers or {})
    return {
        "statusCode": status_code,
        "headers": merged,
        "body": json.dumps(payload),
    }


def method_not_allowed() -> Dict[str, Any]:
    return {
        "statusCode": 405,
        "headers": {"Allow": "POST"},
        "body": "Method Not Allowed",
    }


def is_post(event: Dict[str, Any]) -> bool:
    method = event.get("httpMethod") or (
        (event.get("requestContext") or {}).get("http", {}).get("method")
    )
    return str(method or "").upper() == "POST"


def parse_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """Decode the JSON body of a serverless HTTP event.

    Raises:
        EventBodyError: the body is missing, undecodable or not an object
    """
    raw = event.get("body")
    if raw is None or raw == "":
        raise EventBodyError("Request body is empty")

    if isinstance(raw, dict):
        return raw

    try:
        if event.get("isBase64Encoded"):
            raw = base64.b64decode(raw).decode("utf-8")
        body = json.loads(raw)
    except (ValueError, TypeError) as e:
        raise EventBodyError(f"Request body is not valid JSON: {e}") from e

    if not isinstance(body, dict):
        raise EventBodyError("Request body must be a JSON object")
    return body
