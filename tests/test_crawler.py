# Test-suite for the SiteCapture crawl scheduler
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import web
from site_capture.crawler.crawler import AsyncCrawler
from site_capture.crawler.render import HttpRenderService
from site_capture.engine import start_crawl
from site_capture.errors import FatalConfigError

from conftest import FakeRenderService


# --------------------------------------------------------------------------- #
#                               Helper utilities                              #
# --------------------------------------------------------------------------- #


async def run_crawler(config, renderer):
    async with AsyncCrawler(config, renderer) as crawler:
        records = await asyncio.wait_for(crawler.crawl(), timeout=15.0)
    return crawler, records


def chain_site(length: int) -> dict[str, str]:
    """/ -> /p1 -> /p2 -> ... -> /p{length}"""
    pages = {"https://example.com/": "<a href='/p1'>p1</a>"}
    for i in range(1, length + 1):
        pages[f"https://example.com/p{i}"] = f"<a href='/p{i + 1}'>next</a>"
    return pages


# --------------------------------------------------------------------------- #
#                        Scheduler tests (fake renderer)                       #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_end_to_end_depth_one(make_config, example_site):
    renderer = FakeRenderService(example_site)
    crawler, records = await run_crawler(make_config(max_depth=1), renderer)

    assert [(r.url, r.is_resource) for r in records] == [
        ("https://example.com/", False),
        ("https://example.com/static/app.js", True),
        ("https://example.com/about", False),
        ("https://example.com/contact", False),
    ]
    assert all(r.depth <= 1 for r in records)
    assert "https://other.com/page" not in renderer.attempts
    assert "https://example.com/deeper" not in renderer.attempts
    assert renderer.started and renderer.closed


@pytest.mark.asyncio()
async def test_depth_zero_only_fetches_seed_and_its_resources(make_config, example_site):
    renderer = FakeRenderService(example_site)
    _, records = await run_crawler(make_config(max_depth=0), renderer)
    assert [r.url for r in records] == ["https://example.com/", "https://example.com/static/app.js"]


@pytest.mark.asyncio()
async def test_depth_bound_on_long_chain(make_config):
    renderer = FakeRenderService(chain_site(10))
    crawler, records = await run_crawler(make_config(max_depth=3), renderer)
    assert [r.url for r in records] == [
        "https://example.com/",
        "https://example.com/p1",
        "https://example.com/p2",
        "https://example.com/p3",
    ]
    assert max(r.depth for r in records) == 3
    assert not crawler.frontier.is_known("https://example.com/p4")


@pytest.mark.asyncio()
async def test_each_url_visited_at_most_once(make_config):
    pages = {
        "https://example.com/": "<a href='/a'>a</a><a href='/b'>b</a><a href='/a'>again</a>",
        "https://example.com/a": "<a href='/b'>b</a><a href='/'>home</a>",
        "https://example.com/b": "<a href='/a'>a</a><a href='https://www.example.com/'>www home</a>",
        "https://www.example.com/": "<p>same host, different string</p>",
    }
    renderer = FakeRenderService(pages)
    _, records = await run_crawler(make_config(max_depth=5), renderer)
    urls = [r.url for r in records]
    assert len(urls) == len(set(urls))
    assert all(count == 1 for count in renderer.attempts.values())
    assert urls == [
        "https://example.com/",
        "https://example.com/a",
        "https://example.com/b",
        "https://www.example.com/",
    ]


@pytest.mark.asyncio()
async def test_breadth_first_order(make_config):
    pages = {
        "https://example.com/": "<a href='/a'>a</a><a href='/b'>b</a>",
        "https://example.com/a": "<a href='/a1'>a1</a>",
        "https://example.com/b": "<a href='/b1'>b1</a>",
        "https://example.com/a1": "",
        "https://example.com/b1": "",
    }
    _, records = await run_crawler(make_config(max_depth=2), FakeRenderService(pages))
    assert [r.url.rsplit("/", 1)[1] for r in records] == ["", "a", "b", "a1", "b1"]


@pytest.mark.asyncio()
async def test_failed_page_is_dropped_and_crawl_continues(make_config):
    pages = {
        "https://example.com/": "<a href='/broken'>x</a><a href='/ok'>ok</a>",
        "https://example.com/ok": "<p>fine</p>",
    }
    renderer = FakeRenderService(pages, failing={"https://example.com/broken"})
    crawler, records = await run_crawler(make_config(max_retries=2), renderer)
    assert [r.url for r in records] == ["https://example.com/", "https://example.com/ok"]
    assert crawler.failed == ["https://example.com/broken"]
    assert renderer.attempts["https://example.com/broken"] == 2


@pytest.mark.asyncio()
async def test_ambiguous_reference_produces_two_jobs(make_config):
    pages = {
        "https://example.com/blog/": "<a href='post'>post</a>",
        "https://example.com/blog/post": "",
        "https://example.com/post": "",
    }
    renderer = FakeRenderService(pages)
    _, records = await run_crawler(make_config("https://example.com/blog/"), renderer)
    assert [r.url for r in records] == [
        "https://example.com/blog/",
        "https://example.com/blog/post",
        "https://example.com/post",
    ]


@pytest.mark.asyncio()
async def test_resources_deduplicated_across_pages_by_default(make_config):
    pages = {
        "https://example.com/": "<script src='/app.js'></script><a href='/a'>a</a>",
        "https://example.com/a": "<script src='/app.js'></script><img src='https://cdn.other.com/x.png'>",
        "https://example.com/app.js": "run()",
    }
    renderer = FakeRenderService(pages)
    _, records = await run_crawler(make_config(), renderer)
    assert [r.url for r in records if r.is_resource] == ["https://example.com/app.js"]
    assert "https://cdn.other.com/x.png" not in renderer.attempts


@pytest.mark.asyncio()
async def test_resources_refetched_when_dedupe_disabled(make_config):
    pages = {
        "https://example.com/": "<script src='/app.js'></script><a href='/a'>a</a>",
        "https://example.com/a": "<script src='/app.js'></script>",
        "https://example.com/app.js": "run()",
    }
    renderer = FakeRenderService(pages)
    _, records = await run_crawler(make_config(dedupe_resources=False), renderer)
    assert [r.url for r in records if r.is_resource] == ["https://example.com/app.js"] * 2
    # resources never enter the page visited set
    assert renderer.attempts["https://example.com/app.js"] == 2


@pytest.mark.asyncio()
async def test_subdomain_scope_is_opt_in(make_config):
    pages = {
        "https://example.com/": "<a href='https://blog.example.com/'>blog</a>",
        "https://blog.example.com/": "<p>blog</p>",
    }
    _, strict = await run_crawler(make_config(), FakeRenderService(pages))
    _, loose = await run_crawler(make_config(scope="subdomains"), FakeRenderService(pages))
    assert [r.url for r in strict] == ["https://example.com/"]
    assert [r.url for r in loose] == ["https://example.com/", "https://blog.example.com/"]


@pytest.mark.asyncio()
async def test_crawl_deadline_keeps_captured_records(make_config):
    class SlowAfterSeed(FakeRenderService):
        async def navigate(self, url, headers, timeout):
            if url != "https://example.com/":
                await asyncio.sleep(5)
            await super().navigate(url, headers, timeout)

    renderer = SlowAfterSeed(chain_site(3))
    records, failed = await start_crawl(make_config(crawl_timeout=0.2, max_depth=3), renderer)
    assert [r.url for r in records] == ["https://example.com/"]
    assert failed == []
    assert renderer.closed


def test_seed_without_host_is_fatal(make_config):
    class NoHost:
        target_url = "file:///tmp/index.html"
        max_depth = 1

    with pytest.raises(FatalConfigError):
        AsyncCrawler(NoHost(), FakeRenderService())


# --------------------------------------------------------------------------- #
#                    End-to-end over HTTP (aiohttp test server)               #
# --------------------------------------------------------------------------- #


async def _serve_app(app: web.Application) -> AsyncIterator[str]:
    """Start *app* on a free port, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    port = runner.addresses[0][1]
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        await runner.cleanup()


@pytest_asyncio.fixture
async def test_server() -> AsyncIterator[str]:
    app = web.Application()
    calls = {"flaky": 0}
    app["calls"] = calls

    async def handle_root(_):
        return web.Response(
            text=(
                "<html><head><link rel='stylesheet' href='/style.css'></head><body>"
                "<a href='/page1'>Page1</a><a href='/flaky'>Flaky</a>"
                "<a href='https://external.invalid/'>X</a></body></html>"
            ),
            content_type="text/html",
        )

    async def handle_page1(_):
        return web.Response(text="<a href='/page2'>Page2</a>", content_type="text/html")

    async def handle_page2(_):
        return web.Response(text="<h1>Page2</h1>", content_type="text/html")

    async def handle_flaky(_):
        calls["flaky"] += 1
        if calls["flaky"] <= 2:
            return web.Response(status=503)
        return web.Response(text="<h1>Recovered</h1>", content_type="text/html")

    async def handle_css(_):
        return web.Response(text="body { color: red; }", content_type="text/css")

    app.router.add_get("/", handle_root)
    app.router.add_get("/page1", handle_page1)
    app.router.add_get("/page2", handle_page2)
    app.router.add_get("/flaky", handle_flaky)
    app.router.add_get("/style.css", handle_css)

    async for url in _serve_app(app):
        yield url


@pytest.mark.asyncio()
async def test_http_backend_crawl(make_config, test_server: str):
    config = make_config(test_server + "/", max_depth=1, max_retries=3)
    records, failed = await start_crawl(config, HttpRenderService(user_agent="TestAgent/1.0"))

    by_url = {r.url: r for r in records}
    assert list(by_url) == [
        f"{test_server}/",
        f"{test_server}/style.css",
        f"{test_server}/page1",
        f"{test_server}/flaky",
    ]
    assert by_url[f"{test_server}/style.css"].body == "body { color: red; }"
    assert by_url[f"{test_server}/style.css"].mime_type == "text/css"
    assert "Recovered" in by_url[f"{test_server}/flaky"].body
    assert f"{test_server}/page2" not in by_url
    assert failed == []


@pytest.mark.asyncio()
async def test_http_backend_gives_up_on_persistent_errors(make_config, test_server: str):
    config = make_config(test_server + "/flaky", max_depth=0, max_retries=2)
    records, failed = await start_crawl(config, HttpRenderService())
    assert records == []
    assert failed == [f"{test_server}/flaky"]
