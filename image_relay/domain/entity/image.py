"""Image Entities - Domain Layer"""

import base64
import binascii
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..errors import ErrorKind, InvalidInputError, NoResultError

DEFAULT_MIME_TYPE = "image/png"

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[^,]*)?,(?P<data>.*)$", re.DOTALL)

# (offset, signature, mime type)
_MAGIC_NUMBERS = [
    (0, b"\x89PNG\r\n\x1a\n", "image/png"),
    (0, b"\xff\xd8\xff", "image/jpeg"),
    (0, b"GIF87a", "image/gif"),
    (0, b"GIF89a", "image/gif"),
    (8, b"WEBP", "image/webp"),
]


def sniff_mime_type(data: bytes, default: str = DEFAULT_MIME_TYPE) -> str:
    """Guess an image MIME type from its leading bytes."""
    for offset, signature, mime_type in _MAGIC_NUMBERS:
        if data[offset:offset + len(signature)] == signature:
            if mime_type == "image/webp" and not data.startswith(b"RIFF"):
                continue
            return mime_type
    return default


@dataclass(frozen=True)
class ImagePayload:
    """An image held as pure base64 text plus its MIME type."""

    data: str
    mime_type: str = DEFAULT_MIME_TYPE

    @classmethod
    def from_value(cls, value: Union["ImagePayload", bytes, str]) -> "ImagePayload":
        """Build a payload from bytes, raw base64, or a data URL.

        Raises:
            InvalidInputError: the value is empty or not valid base64
        """
        if isinstance(value, ImagePayload):
            return value

        if isinstance(value, (bytes, bytearray)):
            if not value:
                raise InvalidInputError("Image payload is empty")
            raw = bytes(value)
            return cls(
                data=base64.b64encode(raw).decode("ascii"),
                mime_type=sniff_mime_type(raw),
            )

        if not isinstance(value, str):
            raise InvalidInputError(f"Unsupported image payload type: {type(value).__name__}")

        text = value.strip()
        declared_mime = None
        match = _DATA_URL_RE.match(text)
        if match:
            declared_mime = match.group("mime")
            text = match.group("data")

        text = "".join(text.split())
        if not text:
            raise InvalidInputError("Image payload is empty")

        try:
            raw = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidInputError(f"Image payload is not valid base64: {e}") from e

        return cls(data=text, mime_type=declared_mime or sniff_mime_type(raw))

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


ImageInput = Union[ImagePayload, bytes, str]


@dataclass
class RequestSpec:
    """Normalized input to one generation.

    Missing required fields are allowed here; each adapter checks the
    fields it needs before touching the network. Malformed values are
    rejected immediately.
    """

    api_key: Optional[str] = field(default=None, repr=False)
    prompt: Optional[str] = None
    template_image: Optional[ImageInput] = field(default=None, repr=False)
    product_image: Optional[ImageInput] = field(default=None, repr=False)
    strength: float = 0.5
    output_count: int = 1
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        """Normalize images and validate value ranges."""
        for name in ("api_key", "prompt"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise InvalidInputError(f"Field '{name}' must be a string")

        if self.template_image is not None:
            self.template_image = ImagePayload.from_value(self.template_image)
        if self.product_image is not None:
            self.product_image = ImagePayload.from_value(self.product_image)

        if isinstance(self.strength, bool) or not isinstance(self.strength, (int, float)):
            raise InvalidInputError("Strength must be a number")
        self.strength = float(self.strength)
        if not (0.0 <= self.strength <= 1.0):
            raise InvalidInputError("Strength must be between 0.0 and 1.0")

        if isinstance(self.output_count, bool) or not isinstance(self.output_count, int):
            raise InvalidInputError("Output count must be an integer")
        if self.output_count <= 0:
            raise InvalidInputError("Output count must be positive")

        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, int)):
            raise InvalidInputError("Seed must be an integer")

    @classmethod
    def from_payload(cls, body: Dict[str, Any]) -> "RequestSpec":
        """Build a RequestSpec from a client JSON body.

        Accepts the short client names (template, product, outputs) as well
        as the long ones (templateImage, productImage, outputCount).
        """
        if not isinstance(body, dict):
            raise InvalidInputError("Request body must be a JSON object")

        def pick(*names: str) -> Any:
            for name in names:
                value = body.get(name)
                if value is not None:
                    return value
            return None

        strength = pick("strength")
        output_count = pick("outputs", "outputCount", "output_count")
        seed = pick("seed")

        kwargs: Dict[str, Any] = {
            "api_key": pick("apiKey", "api_key"),
            "prompt": pick("prompt"),
            "template_image": pick("template", "templateImage", "template_image"),
            "product_image": pick("product", "productImage", "product_image"),
            "seed": _coerce(seed, int, "seed"),
        }
        if strength is not None:
            kwargs["strength"] = _coerce(strength, float, "strength")
        if output_count is not None:
            kwargs["output_count"] = _coerce(output_count, int, "outputs")

        return cls(**kwargs)

    def missing_fields(self, required: List[str]) -> List[str]:
        """Return the names of required fields that are absent or blank."""
        missing = []
        for name in required:
            value = getattr(self, name, None)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        return missing


def _coerce(value: Any, kind: type, name: str) -> Any:
    if value is None or isinstance(value, bool):
        return value
    if kind is int and isinstance(value, float):
        if not value.is_integer():
            raise InvalidInputError(f"Field '{name}' must be an integer")
        return int(value)
    if isinstance(value, (str, int, float)):
        try:
            return kind(value)
        except ValueError as e:
            raise InvalidInputError(f"Field '{name}' is malformed: {value!r}") from e
    return value


@dataclass
class GenerationResult:
    """Uniform success output of every adapter."""

    images: List[str] = field(default_factory=list)
    provider_meta: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.images:
            raise NoResultError("Provider returned no images")

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"images": list(self.images)}
        if self.provider_meta:
            data["providerMeta"] = dict(self.provider_meta)
        return data


@dataclass
class GenerationFailure:
    """Structured failure returned across the core boundary."""

    kind: ErrorKind
    message: str
    provider: Optional[str] = None
    retry_after: Optional[float] = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def http_status(self) -> int:
        return self.kind.http_status

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


GenerationOutcome = Union[GenerationResult, GenerationFailure]
