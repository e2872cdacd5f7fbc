"""Unit tests for the aiohttp-backed static renderer."""
import aiohttp
import pytest
from aioresponses import aioresponses
from yarl import URL

from sitescraper.core.errors import PageLoadError
from sitescraper.core.settings import EngineSettings
from sitescraper.crawler.static import StaticRenderer
from sitescraper.models.config import Attribute

PAGE_URL = "https://shop.example/products"
PAGE_HTML = "<html><body><h1>Products</h1><p class='p'>One</p></body></html>"


@pytest.fixture
def mock_aioresponse():
    with aioresponses() as m:
        yield m


@pytest.mark.asyncio
async def test_load_page(mock_aioresponse):
    mock_aioresponse.get(PAGE_URL, status=200, body=PAGE_HTML, content_type="text/html")

    async with StaticRenderer(EngineSettings(), retry_backoff=0) as renderer:
        page = await renderer.new_page("TestAgent/1.0")
        await page.load(PAGE_URL)

        assert page.url == PAGE_URL
        elements = await page.query("p.p")
        assert await elements[0].value(Attribute.text()) == "One"

    request = mock_aioresponse.requests[("GET", URL(PAGE_URL))][0]
    assert request.kwargs["headers"]["User-Agent"] == "TestAgent/1.0"


@pytest.mark.asyncio
async def test_http_error_raises_page_load_error(mock_aioresponse):
    mock_aioresponse.get(PAGE_URL, status=404, body="missing")

    async with StaticRenderer(EngineSettings(), retry_backoff=0) as renderer:
        page = await renderer.new_page("TestAgent/1.0")
        with pytest.raises(PageLoadError, match="HTTP 404"):
            await page.load(PAGE_URL)


@pytest.mark.asyncio
async def test_transport_errors_are_retried(mock_aioresponse):
    mock_aioresponse.get(PAGE_URL, exception=aiohttp.ClientConnectionError("reset"))
    mock_aioresponse.get(PAGE_URL, exception=aiohttp.ClientConnectionError("reset"))
    mock_aioresponse.get(PAGE_URL, status=200, body=PAGE_HTML)

    async with StaticRenderer(EngineSettings(max_retries=3), retry_backoff=0) as renderer:
        page = await renderer.new_page("TestAgent/1.0")
        await page.load(PAGE_URL)
        assert "Products" in await page.text()


@pytest.mark.asyncio
async def test_gives_up_after_max_retries(mock_aioresponse):
    for _ in range(2):
        mock_aioresponse.get(PAGE_URL, exception=aiohttp.ClientConnectionError("reset"))

    async with StaticRenderer(EngineSettings(max_retries=2), retry_backoff=0) as renderer:
        page = await renderer.new_page("TestAgent/1.0")
        with pytest.raises(PageLoadError, match="reset"):
            await page.load(PAGE_URL)


@pytest.mark.asyncio
async def test_external_session_is_not_closed():
    async with aiohttp.ClientSession() as session:
        renderer = StaticRenderer(session=session)
        await renderer.close()
        assert not session.closed
