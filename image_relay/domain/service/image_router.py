"""Image Router Domain Service - Domain Layer"""

from typing import Any, Dict, List, Optional

from ..repository.image_provider import ImageProvider


class ImageRouterError(Exception):
    """No provider is registered under the requested name."""
    pass


class ImageRouter:
    """Runtime registry of configured image providers.

    Selects exactly one provider per request: the requested name, or the
    default provider when the request names none.
    """

    def __init__(
        self,
        providers: Optional[Dict[str, ImageProvider]] = None,
        default_provider: Optional[str] = None,
    ):
        """Initialize the router

        Args:
            providers: Provider mapping {provider_name: provider_instance}
            default_provider: Name used when a request does not pick one
        """
        self._providers: Dict[str, ImageProvider] = dict(providers or {})
        self._default_provider = default_provider

    @property
    def default_provider(self) -> Optional[str]:
        if self._default_provider in self._providers:
            return self._default_provider
        # a single configured provider is the implicit default
        if len(self._providers) == 1:
            return next(iter(self._providers))
        return None

    def get_provider(self, name: Optional[str] = None) -> ImageProvider:
        """Get the provider for a request

        Raises:
            ImageRouterError: no provider matches
        """
        if name is not None and not isinstance(name, str):
            raise ImageRouterError("Provider name must be a string")
        provider_name = name or self.default_provider
        if not provider_name:
            raise ImageRouterError("No provider requested and no default provider configured")

        provider = self._providers.get(provider_name)
        if provider is None:
            raise ImageRouterError(f"Provider '{provider_name}' not found")
        return provider

    def list_providers(self) -> List[Dict[str, Any]]:
        """Describe every registered provider."""
        return [provider.describe() for provider in self._providers.values()]

    def register_provider(self, name: str, provider: ImageProvider) -> None:
        self._providers[name] = provider

    def unregister_provider(self, name: str) -> None:
        self._providers.pop(name, None)

    def __len__(self) -> int:
        return len(self._providers)
