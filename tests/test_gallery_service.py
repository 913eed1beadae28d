"""Tests for gallery registration and listing."""

import asyncio

from ai_photobooth.domain.capture import GeneratedImage
from ai_photobooth.services.gallery import GalleryService, new_share_token
from tests.conftest import InMemoryKioskStore

IMAGE = GeneratedImage(image_bytes=b"\x89PNG-generated", mime_type="image/png")


def test_register_records_concept_and_event() -> None:
    store = InMemoryKioskStore()
    service = GalleryService(store)

    item = asyncio.run(service.register(IMAGE, "cyberpunk portrait", "evt-1"))

    assert item.concept_name == "cyberpunk portrait"
    assert item.event_id == "evt-1"
    assert item.token
    assert store.items == [item]


def test_share_tokens_are_unique() -> None:
    tokens = {new_share_token() for _ in range(10_000)}

    assert len(tokens) == 10_000


def test_registered_items_get_distinct_tokens() -> None:
    store = InMemoryKioskStore()
    service = GalleryService(store)

    async def scenario() -> None:
        for _ in range(50):
            await service.register(IMAGE, "watercolor", None)

    asyncio.run(scenario())

    assert len({item.token for item in store.items}) == 50


def test_list_for_event_filters_even_if_store_does_not() -> None:
    store = InMemoryKioskStore(ignore_event_filter=True)
    service = GalleryService(store)

    async def scenario() -> list[str | None]:
        await service.register(IMAGE, "cyberpunk portrait", "evt-1")
        await service.register(IMAGE, "watercolor", "evt-2")
        await service.register(IMAGE, "watercolor", None)
        items = await service.list_for_event("evt-1")
        return [item.event_id for item in items]

    assert asyncio.run(scenario()) == ["evt-1"]


def test_list_without_event_returns_everything() -> None:
    store = InMemoryKioskStore()
    service = GalleryService(store)

    async def scenario() -> int:
        await service.register(IMAGE, "cyberpunk portrait", "evt-1")
        await service.register(IMAGE, "watercolor", None)
        return len(await service.list_for_event(None))

    assert asyncio.run(scenario()) == 2


def test_historical_item_is_found_by_token() -> None:
    store = InMemoryKioskStore()
    service = GalleryService(store)

    async def scenario() -> tuple[str, str | None]:
        old = await service.register(IMAGE, "watercolor", "evt-old")
        await service.register(IMAGE, "cyberpunk portrait", "evt-new")
        found = await service.get_by_token(old.token)
        assert found is not None
        return found.concept_name, found.event_id

    assert asyncio.run(scenario()) == ("watercolor", "evt-old")


def test_unknown_token_is_none() -> None:
    service = GalleryService(InMemoryKioskStore())

    assert asyncio.run(service.get_by_token("missing")) is None
