"""Tests for the generation service."""

import asyncio
import base64
from datetime import UTC, datetime

import pytest

from ai_photobooth.domain.capture import CapturedFrame
from ai_photobooth.domain.errors import MissingCredential, NoImageReturned
from ai_photobooth.services.generation import (
    GenerationCandidate,
    GenerationService,
    build_prompt,
    select_first_image,
)
from tests.conftest import CYBERPUNK, FakeImageClient

FRAME = CapturedFrame(
    image_bytes=b"\xff\xd8\xffjpeg",
    mime_type="image/jpeg",
    width=768,
    height=1344,
    captured_at=datetime(2026, 1, 1, tzinfo=UTC),
)


def test_build_prompt_adds_fixed_qualifiers() -> None:
    prompt = build_prompt("cyberpunk portrait", "9:16")

    assert prompt.startswith("cyberpunk portrait. ")
    assert "9:16 aspect ratio" in prompt
    assert "High resolution" in prompt
    assert "cinematic lighting" in prompt
    assert "facial features and identity" in prompt
    assert prompt.endswith("No text, no watermark.")
    assert prompt == build_prompt("cyberpunk portrait", "9:16")


def test_select_first_image_skips_text_only_candidates() -> None:
    candidates = [
        GenerationCandidate(text="thinking"),
        GenerationCandidate(image_bytes=b"first"),
        GenerationCandidate(image_bytes=b"second"),
    ]

    selected = select_first_image(candidates)

    assert selected is not None
    assert selected.image_bytes == b"first"


def test_generate_returns_first_image() -> None:
    client = FakeImageClient()
    service = GenerationService(client=client, model="test-model")

    image = asyncio.run(service.generate(FRAME, CYBERPUNK, "9:16"))

    assert image.image_bytes == b"\x89PNG-generated"
    call = client.calls[0]
    assert call["model"] == "test-model"
    assert call["size"] == "1024x1536"
    assert call["prompt"] == build_prompt("cyberpunk portrait", "9:16")
    encoded = base64.b64encode(FRAME.image_bytes).decode()
    assert call["image_data_url"] == f"data:image/jpeg;base64,{encoded}"


def test_generate_landscape_uses_landscape_size() -> None:
    client = FakeImageClient()
    service = GenerationService(client=client, model="test-model")

    asyncio.run(service.generate(FRAME, CYBERPUNK, "16:9"))

    assert client.calls[0]["size"] == "1536x1024"


@pytest.mark.parametrize(
    "candidates",
    [[], [GenerationCandidate(text="Sorry, I can't do that.")]],
)
def test_generate_without_image_raises(
    candidates: list[GenerationCandidate],
) -> None:
    service = GenerationService(
        client=FakeImageClient(candidates=candidates), model="test-model"
    )

    with pytest.raises(NoImageReturned):
        asyncio.run(service.generate(FRAME, CYBERPUNK, "9:16"))


def test_generate_without_credential_raises() -> None:
    service = GenerationService(client=None, model="test-model")

    assert not service.available
    with pytest.raises(MissingCredential):
        asyncio.run(service.generate(FRAME, CYBERPUNK, "9:16"))


def test_generate_makes_a_single_call_on_failure() -> None:
    client = FakeImageClient(candidates=[])
    service = GenerationService(client=client, model="test-model")

    with pytest.raises(NoImageReturned):
        asyncio.run(service.generate(FRAME, CYBERPUNK, "9:16"))

    assert len(client.calls) == 1
