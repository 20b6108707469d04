"""Shared pytest fixtures for Image Relay tests."""

import base64

import pytest

from image_relay.domain.entity.image import RequestSpec
from image_relay.domain.service.job_poller import JobPoller

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x01" * 8
PNG_B64 = base64.b64encode(PNG_BYTES).decode("ascii")
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x10" * 12
JPEG_B64 = base64.b64encode(JPEG_BYTES).decode("ascii")


@pytest.fixture
def png_b64() -> str:
    return PNG_B64


@pytest.fixture
def make_spec():
    """Factory for valid RequestSpecs; override any field by keyword."""

    def _make(**overrides) -> RequestSpec:
        fields = {
            "api_key": "r8_test_key",
            "prompt": "a bottle of perfume on a marble table",
            "template_image": f"data:image/png;base64,{PNG_B64}",
        }
        fields.update(overrides)
        return RequestSpec(**fields)

    return _make


@pytest.fixture
def fast_poller() -> JobPoller:
    """Poller without delay and with a small attempt ceiling."""
    return JobPoller(interval=0, max_attempts=5)
