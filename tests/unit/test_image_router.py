"""Tests for provider selection."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from image_relay.application.usecase.generate_image import GenerateImageUseCase
from image_relay.domain.entity.image import GenerationResult
from image_relay.domain.errors import ErrorKind
from image_relay.domain.service.image_router import ImageRouter, ImageRouterError


def fake_provider(name: str) -> MagicMock:
    provider = MagicMock()
    provider.name = name
    provider.model = f"{name}-model"
    provider.describe.return_value = {"name": name}
    provider.generate = AsyncMock(return_value=GenerationResult(images=[f"https://{name}/out.png"]))
    return provider


class TestImageRouter:
    def test_named_provider(self):
        replicate, gemini = fake_provider("replicate"), fake_provider("gemini")
        router = ImageRouter({"replicate": replicate, "gemini": gemini}, default_provider="replicate")

        assert router.get_provider("gemini") is gemini
        assert router.get_provider() is replicate

    def test_unknown_provider(self):
        router = ImageRouter({"replicate": fake_provider("replicate")})

        with pytest.raises(ImageRouterError, match="'dalle' not found"):
            router.get_provider("dalle")

    def test_unhashable_name(self):
        router = ImageRouter({"gemini": fake_provider("gemini")})

        with pytest.raises(ImageRouterError, match="must be a string"):
            router.get_provider(["gemini"])

    def test_single_provider_is_implicit_default(self):
        router = ImageRouter({"stability": fake_provider("stability")})

        assert router.default_provider == "stability"

    def test_no_default_with_several_providers(self):
        router = ImageRouter({"a": fake_provider("a"), "b": fake_provider("b")})

        assert router.default_provider is None
        with pytest.raises(ImageRouterError):
            router.get_provider()

    def test_unregistered_default_is_ignored(self):
        router = ImageRouter({"a": fake_provider("a"), "b": fake_provider("b")}, default_provider="c")

        assert router.default_provider is None

    def test_register_and_list(self):
        router = ImageRouter()
        router.register_provider("gemini", fake_provider("gemini"))
        router.register_provider("flux", fake_provider("flux"))

        assert len(router) == 2
        assert router.list_providers() == [{"name": "gemini"}, {"name": "flux"}]

        router.unregister_provider("gemini")
        router.unregister_provider("gemini")
        assert len(router) == 1


class TestGenerateImageUseCase:
    @pytest.mark.asyncio
    async def test_dispatches_to_selected_provider(self, make_spec):
        replicate, gemini = fake_provider("replicate"), fake_provider("gemini")
        use_case = GenerateImageUseCase(ImageRouter({"replicate": replicate, "gemini": gemini}))
        spec = make_spec()

        outcome = await use_case.execute(spec, provider_name="gemini")

        assert outcome.images == ["https://gemini/out.png"]
        gemini.generate.assert_awaited_once_with(spec)
        replicate.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_provider_is_invalid_input(self, make_spec):
        use_case = GenerateImageUseCase(ImageRouter({"replicate": fake_provider("replicate")}))

        outcome = await use_case.execute(make_spec(), provider_name="dalle")

        assert not outcome.ok
        assert outcome.kind is ErrorKind.INVALID_INPUT
        assert outcome.http_status == 400
