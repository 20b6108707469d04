"""Tests for the Stability image-to-image adapter."""

import pytest
from pytest_httpx import HTTPXMock

from conftest import PNG_BYTES
from image_relay.domain.errors import ErrorKind
from image_relay.domain.repository.image_provider import StrengthMapping
from image_relay.infrastructure.image.stability_provider import StabilityProvider

URL = "https://api.stability.ai/v1/generation/stable-diffusion-xl-1024-v1-0/image-to-image"


def form_field(name: str, value: str) -> bytes:
    return f'name="{name}"\r\n\r\n{value}\r\n'.encode()


def sent_form(httpx_mock: HTTPXMock) -> bytes:
    return httpx_mock.get_requests()[0].read()


@pytest.fixture
def provider() -> StabilityProvider:
    return StabilityProvider(name="stability")


def test_strength_is_inverted(provider):
    assert provider.STRENGTH_MAPPING is StrengthMapping.INVERTED
    assert provider.map_strength(0.3) == 0.7


@pytest.mark.asyncio
async def test_multipart_request(httpx_mock: HTTPXMock, provider, make_spec):
    httpx_mock.add_response(url=URL, method="POST", json={"artifacts": [{"base64": "QUJD", "finishReason": "SUCCESS"}]})

    await provider.generate(make_spec(strength=0.3, output_count=2, prompt="on a beach"))

    form = sent_form(httpx_mock)
    assert form_field("image_strength", "0.7") in form
    assert form_field("init_image_mode", "IMAGE_STRENGTH") in form
    assert form_field("text_prompts[0][text]", "on a beach") in form
    assert form_field("samples", "2") in form
    assert b'name="init_image"' in form
    assert PNG_BYTES in form
    assert b'name="seed"' not in form

    request = httpx_mock.get_requests()[0]
    assert request.headers["Authorization"] == "Bearer r8_test_key"
    assert request.headers["Content-Type"].startswith("multipart/form-data")


@pytest.mark.asyncio
async def test_seed_and_style_preset(httpx_mock: HTTPXMock, make_spec):
    provider = StabilityProvider(name="stability", options={"style_preset": "photographic"})
    httpx_mock.add_response(url=URL, method="POST", json={"artifacts": [{"base64": "QUJD", "finishReason": "SUCCESS"}]})

    await provider.generate(make_spec(seed=1234))

    form = sent_form(httpx_mock)
    assert form_field("seed", "1234") in form
    assert form_field("style_preset", "photographic") in form


@pytest.mark.asyncio
async def test_artifacts_become_data_uris(httpx_mock: HTTPXMock, provider, make_spec):
    httpx_mock.add_response(url=URL, method="POST", json={"artifacts": [
        {"base64": "Rmlyc3Q=", "finishReason": "SUCCESS", "seed": 1},
        {"base64": "QmxvY2tlZA==", "finishReason": "CONTENT_FILTERED", "seed": 2},
        {"base64": "U2Vjb25k", "finishReason": "SUCCESS", "seed": 3},
    ]})

    outcome = await provider.generate(make_spec(output_count=3))

    assert outcome.images == [
        "data:image/png;base64,Rmlyc3Q=",
        "data:image/png;base64,U2Vjb25k",
    ]


@pytest.mark.asyncio
async def test_all_artifacts_filtered(httpx_mock: HTTPXMock, provider, make_spec):
    httpx_mock.add_response(url=URL, method="POST", json={"artifacts": [
        {"base64": "QmxvY2tlZA==", "finishReason": "CONTENT_FILTERED"},
    ]})

    outcome = await provider.generate(make_spec())

    assert outcome.kind is ErrorKind.NO_RESULT
    assert "filtered" in outcome.message


@pytest.mark.asyncio
async def test_no_artifacts(httpx_mock: HTTPXMock, provider, make_spec):
    httpx_mock.add_response(url=URL, method="POST", json={"artifacts": []})

    outcome = await provider.generate(make_spec())

    assert outcome.kind is ErrorKind.NO_RESULT


@pytest.mark.asyncio
async def test_bad_request_is_rejected(httpx_mock: HTTPXMock, provider, make_spec):
    httpx_mock.add_response(url=URL, method="POST", status_code=400, json={
        "id": "c3a5", "name": "invalid_prompts", "message": "text_prompts[0] contains banned words",
    })

    outcome = await provider.generate(make_spec())

    assert outcome.kind is ErrorKind.PROVIDER_REJECTED
    assert "banned words" in outcome.message
    assert outcome.http_status == 500


@pytest.mark.asyncio
async def test_malformed_json_is_unexpected(httpx_mock: HTTPXMock, provider, make_spec):
    httpx_mock.add_response(url=URL, method="POST", content=b"<html>oops</html>", headers={"Content-Type": "application/json"})

    outcome = await provider.generate(make_spec())

    assert outcome.kind is ErrorKind.UNEXPECTED
    assert "malformed JSON" in outcome.message
