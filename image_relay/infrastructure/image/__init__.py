"""Image provider adapters and the adapter-type registry.

A provider entry in the configuration names its adapter either by one of
the registered type names below or as "package.module:ClassName" for an
adapter living outside this package. Adapter classes expose a
``from_config(name, config, poller, timeout)`` classmethod.
"""

import importlib
from typing import Dict, Type

from ...domain.repository.image_provider import ImageProvider
from ...domain.service.job_poller import JobPoller
from .gemini_provider import GeminiImageProvider
from .http_provider import DEFAULT_TIMEOUT, HttpImageProvider
from .huggingface_provider import HuggingFaceImageInputsProvider, HuggingFacePromptInputsProvider
from .replicate_provider import ReplicatePollProvider, ReplicateWaitProvider
from .stability_provider import StabilityProvider

ADAPTER_TYPES: Dict[str, Type[ImageProvider]] = {
    "replicate_poll": ReplicatePollProvider,
    "replicate_wait": ReplicateWaitProvider,
    "huggingface_image_inputs": HuggingFaceImageInputsProvider,
    "huggingface_prompt_inputs": HuggingFacePromptInputsProvider,
    "stability": StabilityProvider,
    "gemini": GeminiImageProvider,
}


def register_adapter_type(type_name: str, adapter_cls: Type[ImageProvider]) -> None:
    """Make an adapter class available under a configuration type name."""
    ADAPTER_TYPES[type_name] = adapter_cls


def resolve_adapter_type(adapter: str) -> Type[ImageProvider]:
    """Find the adapter class for a configured adapter value.

    Raises:
        ValueError: the type is unknown or the import path is invalid
    """
    if ":" in adapter:
        module_name, _, class_name = adapter.partition(":")
        try:
            module = importlib.import_module(module_name)
            adapter_cls = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Cannot load adapter '{adapter}': {e}") from e
        if not (isinstance(adapter_cls, type) and issubclass(adapter_cls, ImageProvider)):
            raise ValueError(f"Adapter '{adapter}' is not an ImageProvider")
        return adapter_cls

    adapter_cls = ADAPTER_TYPES.get(adapter)
    if adapter_cls is None:
        known = ", ".join(sorted(ADAPTER_TYPES))
        raise ValueError(f"Unknown adapter type '{adapter}' (known: {known})")
    return adapter_cls


def build_provider(
    name: str,
    config,
    poller: JobPoller,
    timeout: float = DEFAULT_TIMEOUT,
) -> ImageProvider:
    """Instantiate the provider described by a ProviderConfig entry."""
    adapter_cls = resolve_adapter_type(config.adapter or name)
    return adapter_cls.from_config(name, config, poller, timeout)


__all__ = [
    "ADAPTER_TYPES",
    "GeminiImageProvider",
    "HttpImageProvider",
    "HuggingFaceImageInputsProvider",
    "HuggingFacePromptInputsProvider",
    "ReplicatePollProvider",
    "ReplicateWaitProvider",
    "StabilityProvider",
    "build_provider",
    "register_adapter_type",
    "resolve_adapter_type",
]
