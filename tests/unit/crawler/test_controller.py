"""Unit tests for the single-site crawl controller."""
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from sitescraper.core.errors import SessionAlreadyRunning
from sitescraper.crawler.controller import CrawlController
from sitescraper.crawler.registry import SessionRegistry
from sitescraper.models.config import Configuration
from sitescraper.models.session import SessionStatus

BASE = "https://shop.example"


def listing(page: int, items, next_link: str = "") -> str:
    rows = "".join(
        f'<div class="item"><span class="name">{name}</span><span class="price">{price}</span></div>'
        for name, price in items
    )
    return f"<html><body><h1>Page {page}</h1>{rows}<nav>{next_link}</nav></body></html>"


PAGES = {
    f"{BASE}/page/1": listing(1, [("Apple", "1"), ("Banana", "2")], '<a class="next" href="/page/2">Next</a>'),
    f"{BASE}/page/2": listing(2, [("Cherry", "3"), ("Apple", "1")], '<a class="next" href="/page/3">Next</a>'),
    f"{BASE}/page/3": listing(3, [("Date", "4"), ("Elder", "5")], '<a class="next disabled" href="/page/4">Next</a>'),
    f"{BASE}/page/4": listing(4, [("Fig", "6"), ("Grape", "7")]),
}


def make_config(**overrides) -> Configuration:
    data = {
        "target_url": f"{BASE}/page/1",
        "request_delay_ms": 0,
        "selectors": [
            {"name": "name", "css_query": ".item .name", "required": True},
            {"name": "price", "css_query": ".item .price"},
        ],
        "options": {"handle_pagination": True},
        "pagination": {"next_page_selector": "a.next", "max_pages": 5},
    }
    data.update(overrides)
    return Configuration.model_validate(data)


@pytest.fixture
def controller(renderer, store, settings):
    renderer.pages.update(PAGES)
    return CrawlController(renderer, store, settings=settings)


@pytest_asyncio.fixture
async def session_id(store):
    return (await store.create_session()).id


def names(records):
    return [r["name"] for r in records]


@pytest.mark.asyncio
async def test_follows_pagination_until_next_is_disabled(controller, store, renderer, session_id):
    await controller.run(make_config(), session_id)

    session = await store.get_session(session_id)
    assert session.status == SessionStatus.COMPLETED
    assert session.completed_at is not None
    assert names(session.results) == ["Apple", "Banana", "Cherry", "Apple", "Date", "Elder"]
    assert session.progress.current == 3
    assert session.progress.total == 5
    assert session.progress.extracted == 6
    assert session.error_log == []
    assert f"{BASE}/page/4" not in renderer.fetched
    assert renderer.opened[0].closed


@pytest.mark.asyncio
async def test_remove_duplicates(controller, store, session_id):
    config = make_config(options={"handle_pagination": True, "remove_duplicates": True})
    await controller.run(config, session_id)

    session = await store.get_session(session_id)
    assert names(session.results) == ["Apple", "Banana", "Cherry", "Date", "Elder"]


@pytest.mark.asyncio
async def test_max_pages_caps_the_crawl(controller, store, renderer, session_id):
    config = make_config(pagination={"next_page_selector": "a.next", "max_pages": 2})
    await controller.run(config, session_id)

    session = await store.get_session(session_id)
    assert names(session.results) == ["Apple", "Banana", "Cherry", "Apple"]
    assert f"{BASE}/page/3" not in renderer.fetched


@pytest.mark.asyncio
async def test_default_page_cap(renderer, store, session_id, settings):
    loop_page = listing(1, [("Loop", "0")], '<a class="next" href="/loop">Next</a>')
    renderer.pages[f"{BASE}/loop"] = loop_page
    controller = CrawlController(renderer, store, settings=settings.model_copy(update={"default_max_pages": 3}))

    config = make_config(target_url=f"{BASE}/loop", pagination={"next_page_selector": "a.next"})
    await controller.run(config, session_id)

    session = await store.get_session(session_id)
    assert len(session.results) == 3
    assert session.progress.total == 1


@pytest.mark.asyncio
async def test_without_pagination_only_first_page(controller, store, session_id):
    await controller.run(make_config(options={"handle_pagination": False}), session_id)

    session = await store.get_session(session_id)
    assert names(session.results) == ["Apple", "Banana"]
    assert session.status == SessionStatus.COMPLETED


@pytest.mark.asyncio
async def test_missing_next_control_stops(controller, store, session_id):
    config = make_config(pagination={"next_page_selector": "a.does-not-exist", "max_pages": 5})
    await controller.run(config, session_id)

    session = await store.get_session(session_id)
    assert names(session.results) == ["Apple", "Banana"]


@pytest.mark.asyncio
async def test_page_failure_keeps_partial_results(controller, store, renderer, session_id):
    """A failing page 2 ends pagination but the run still completes."""
    renderer.failures[f"{BASE}/page/2"] = "connection reset"

    await controller.run(make_config(), session_id)

    session = await store.get_session(session_id)
    assert session.status == SessionStatus.COMPLETED
    assert names(session.results) == ["Apple", "Banana"]
    assert len(session.error_log) == 1
    assert session.error_log[0].startswith("Page 2: ")
    assert "connection reset" in session.error_log[0]


@pytest.mark.asyncio
async def test_first_navigation_failure_fails_the_run(controller, store, renderer, session_id):
    renderer.failures[f"{BASE}/page/1"] = "DNS failure"

    await controller.run(make_config(), session_id)

    session = await store.get_session(session_id)
    assert session.status == SessionStatus.FAILED
    assert session.results == []
    assert len(session.error_log) == 1
    assert "DNS failure" in session.error_log[0]


@pytest.mark.asyncio
async def test_missing_configuration_fails_the_run(controller, store, renderer, session_id):
    await controller.run(None, session_id)

    session = await store.get_session(session_id)
    assert session.status == SessionStatus.FAILED
    assert session.error_log == ["Configuration not found"]
    assert renderer.opened == []


@pytest.mark.asyncio
async def test_invalid_configuration_mapping_fails_the_run(controller, store, session_id):
    await controller.run({"target_url": "not a url", "selectors": []}, session_id)

    session = await store.get_session(session_id)
    assert session.status == SessionStatus.FAILED
    assert session.error_log[0].startswith("Invalid configuration")


@pytest.mark.asyncio
async def test_invalid_filter_is_reported_as_page_error(controller, store, session_id):
    await controller.run(make_config(filters={"include": "("}), session_id)

    session = await store.get_session(session_id)
    assert session.status == SessionStatus.COMPLETED
    assert session.results == []
    assert session.error_log[0].startswith("Page 1: Invalid include filter pattern")


@pytest.mark.asyncio
async def test_filters_are_applied_per_page(controller, store, session_id):
    await controller.run(make_config(filters={"exclude": "^apple$"}), session_id)

    session = await store.get_session(session_id)
    assert names(session.results) == ["Banana", "Cherry", "Date", "Elder"]


@pytest.mark.asyncio
async def test_progress_errors_field_stays_zero(controller, store, renderer, session_id):
    renderer.failures[f"{BASE}/page/3"] = "timeout"

    await controller.run(make_config(), session_id)

    session = await store.get_session(session_id)
    assert len(session.error_log) == 1
    assert session.progress.errors == 0
    assert session.progress.current == 2


@pytest.mark.asyncio
async def test_stop_during_pagination(controller, store, renderer, session_id):
    """Stopping while page 2 loads keeps pages 1 and 2 and ends as stopped."""
    async def stop_now():
        await controller.stop(session_id)

    renderer.hooks[f"{BASE}/page/2"] = stop_now

    await controller.run(make_config(), session_id)

    session = await store.get_session(session_id)
    assert session.status == SessionStatus.STOPPED
    assert names(session.results) == ["Apple", "Banana", "Cherry", "Apple"]
    assert f"{BASE}/page/3" not in renderer.fetched
    assert not controller.registry.is_active(session_id)


@pytest.mark.asyncio
async def test_stop_unknown_session_marks_it_stopped(controller, store, session_id):
    await controller.stop(session_id)
    assert (await store.get_session(session_id)).status == SessionStatus.STOPPED


@pytest.mark.asyncio
async def test_delays_are_applied_every_page(renderer, store, session_id, settings):
    renderer.pages.update(PAGES)
    controller = CrawlController(
        renderer,
        store,
        settings=settings.model_copy(update={"dynamic_content_wait_ms": 250, "pagination_settle_ms": 100}),
    )
    config = make_config(
        request_delay_ms=40,
        options={"handle_pagination": True, "wait_for_dynamic_content": True},
        pagination={"next_page_selector": "a.next", "max_pages": 2},
    )

    with patch("sitescraper.crawler.controller.pause", new_callable=AsyncMock) as mock_pause:
        await controller.run(config, session_id)

    delays = [call.args[0] for call in mock_pause.await_args_list]
    assert delays == [250, 40, 100, 250, 40]


@pytest.mark.asyncio
async def test_user_agent_profile_is_used(controller, renderer, session_id):
    await controller.run(make_config(user_agent_profile="Mobile Chrome"), session_id)
    assert "Android" in renderer.opened[0].user_agent


@pytest.mark.asyncio
async def test_session_cannot_run_twice(renderer, store, settings, session_id):
    registry = SessionRegistry()
    registry.register(session_id)
    controller = CrawlController(renderer, store, registry=registry, settings=settings)

    with pytest.raises(SessionAlreadyRunning):
        await controller.run(make_config(), session_id)


@pytest.mark.asyncio
async def test_session_stopped_before_run_is_not_crawled(controller, store, renderer, session_id):
    await controller.stop(session_id)

    await controller.run(make_config(), session_id)

    session = await store.get_session(session_id)
    assert session.status == SessionStatus.STOPPED
    assert session.results == []
    assert renderer.fetched == []
    assert not controller.registry.is_active(session_id)


@pytest.mark.asyncio
async def test_run_with_preregistered_token(controller, store, renderer, session_id):
    token = controller.registry.register(session_id)
    token.cancel()

    await controller.run(make_config(), session_id, token=token)

    assert renderer.opened == []
    assert not controller.registry.is_active(session_id)
