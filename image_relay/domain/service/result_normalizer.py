"""Result Normalizer Domain Service - Domain Layer

Turns the raw success payloads of the different provider families into
GenerationResult.images entries:

- URL lists pass through in order
- raw bytes and base64 blobs become self-contained data URIs
- multi-part content yields its first inline image part
"""

import base64
from typing import Any, Dict, Iterable, List, Optional, Union

from ..entity.image import DEFAULT_MIME_TYPE, GenerationResult, sniff_mime_type
from ..errors import NoResultError


def urls_to_images(output: Union[str, Iterable[Any], None]) -> List[str]:
    """Pass a URL (or list of URLs) through, dropping empty entries."""
    if output is None:
        return []
    if isinstance(output, str):
        return [output] if output else []
    return [str(url) for url in output if isinstance(url, str) and url]


def bytes_to_data_uri(data: bytes, mime_type: Optional[str] = None) -> str:
    """Wrap raw image bytes as a data URI.

    The declared MIME type is used when it names an image; otherwise the
    type is sniffed from the bytes.
    """
    mime_type = _clean_mime(mime_type)
    if not mime_type or not mime_type.startswith("image/"):
        mime_type = sniff_mime_type(data)
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def base64_to_data_uri(data: str, mime_type: Optional[str] = None) -> str:
    """Wrap an already-encoded base64 blob as a data URI."""
    if data.startswith("data:"):
        return data
    mime_type = _clean_mime(mime_type) or DEFAULT_MIME_TYPE
    return f"data:{mime_type};base64,{data}"


def first_inline_image(parts: Iterable[Dict[str, Any]]) -> str:
    """Return the first inline image part, in part order, as a data URI.

    Both the REST spelling (inlineData/mimeType) and the snake_case one
    (inline_data/mime_type) are understood.

    Raises:
        NoResultError: no part carries image data
    """
    for part in parts or []:
        if not isinstance(part, dict):
            continue
        inline = part.get("inlineData") or part.get("inline_data")
        if not inline or not inline.get("data"):
            continue
        mime_type = inline.get("mimeType") or inline.get("mime_type") or DEFAULT_MIME_TYPE
        if not mime_type.startswith("image/"):
            continue
        return base64_to_data_uri(inline["data"], mime_type)

    raise NoResultError("No image in response")


def build_result(images: List[str], **provider_meta: Any) -> GenerationResult:
    """Assemble the uniform result. Empty image lists are a failure, never a success."""
    meta = {key: value for key, value in provider_meta.items() if value is not None}
    return GenerationResult(images=images, provider_meta=meta)


def _clean_mime(mime_type: Optional[str]) -> Optional[str]:
    if not mime_type:
        return None
    return mime_type.split(";", 1)[0].strip().lower() or None
