"""
Tests for the aiohttp fetcher against a local test server.
"""
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer as AiohttpTestServer

from webtree.crawler.engine import CrawlEngine
from webtree.crawler.fetcher import BodyReadError, FetchError, WebFetcher
from webtree.storage.result_tree import render
from webtree.utils.config import CrawlSettings


async def index(request):
    return web.Response(text='<a href="/about">About</a><a href="/gone">Gone</a>', content_type='text/html')


async def about(request):
    return web.Response(text='<a href="/">Home</a>', content_type='text/html')


async def moved(request):
    raise web.HTTPFound('/about')


async def big(request):
    return web.Response(body=b"x" * 4096, content_type='application/octet-stream')


@pytest.fixture
async def server():
    app = web.Application()
    app.router.add_get('/', index)
    app.router.add_get('/about', about)
    app.router.add_get('/moved', moved)
    app.router.add_get('/big', big)

    test_server = AiohttpTestServer(app)
    await test_server.start_server()
    yield test_server
    await test_server.close()


async def test_fetch_returns_body_and_content_type(server):
    async with WebFetcher(user_agent="webtree-test") as fetcher:
        result = await fetcher.fetch(str(server.make_url('/')))

    assert result.status_code == 200
    assert result.content_type.startswith('text/html')
    assert b'href="/about"' in result.body
    assert fetcher.get_stats()['successful_requests'] == 1


async def test_fetch_reports_final_url_after_redirect(server):
    async with WebFetcher(user_agent="webtree-test") as fetcher:
        result = await fetcher.fetch(str(server.make_url('/moved')))

    assert result.url.endswith('/moved')
    assert result.final_url.endswith('/about')


async def test_error_status_is_returned_as_content(server):
    async with WebFetcher(user_agent="webtree-test") as fetcher:
        result = await fetcher.fetch(str(server.make_url('/gone')))

    assert result.status_code == 404


async def test_oversized_body_raises_body_read_error(server):
    async with WebFetcher(user_agent="webtree-test", max_content_size=1024) as fetcher:
        with pytest.raises(BodyReadError):
            await fetcher.fetch(str(server.make_url('/big')))
        assert fetcher.get_stats()['failed_requests'] == 1


async def test_connection_failure_raises_fetch_error(unused_tcp_port):
    async with WebFetcher(user_agent="webtree-test", request_timeout=5) as fetcher:
        with pytest.raises(FetchError):
            await fetcher.fetch(f"http://127.0.0.1:{unused_tcp_port}/")


async def test_non_http_url_raises_fetch_error():
    async with WebFetcher(user_agent="webtree-test") as fetcher:
        with pytest.raises(FetchError):
            await fetcher.fetch("mailto:someone@example.com")


async def test_engine_crawls_live_server(server):
    seed = str(server.make_url('/'))
    async with WebFetcher(user_agent="webtree-test") as fetcher:
        engine = CrawlEngine(CrawlSettings(max_depth=2), fetcher)
        result = await engine.crawl(seed)

    assert result.error is None
    assert [child.url for child in result.children] == [
        str(server.make_url('/about')),
        str(server.make_url('/gone')),
    ]
    # /about links back to the seed, which is already admitted
    assert result.children[0].children == []
    # 404 pages are content, not errors
    assert result.children[1].error is None
    assert render(result).splitlines()[0] == seed
