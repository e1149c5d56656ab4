"""Tests for the HTTP fetcher against a local aiohttp server."""

import asyncio

import pytest
from aiohttp import web
from aiohttp import test_utils

from spider.crawler.fetcher import WebFetcher, decode_content


async def page(request):
    return web.Response(
        text="<html><head><title>Local Page</title></head><body>hello</body></html>",
        content_type="text/html"
    )


async def untitled(request):
    return web.Response(text="plain words", content_type="text/plain")


async def missing(request):
    return web.Response(status=404, text="not here", content_type="text/html")


async def image(request):
    return web.Response(body=b"\x89PNG", content_type="image/png")


async def large(request):
    return web.Response(text="x" * 5000, content_type="text/html")


async def chunked(request):
    return web.Response(text="word " * 10000, content_type="text/plain")


async def slow(request):
    await asyncio.sleep(1.5)
    return web.Response(text="late", content_type="text/html")


@pytest.fixture
async def server():
    app = web.Application()
    app.router.add_get('/page', page)
    app.router.add_get('/untitled', untitled)
    app.router.add_get('/missing', missing)
    app.router.add_get('/image', image)
    app.router.add_get('/large', large)
    app.router.add_get('/slow', slow)
    app.router.add_get('/chunked', chunked)

    test_server = test_utils.TestServer(app)
    await test_server.start_server()
    yield test_server
    await test_server.close()


@pytest.fixture
async def fetcher():
    async with WebFetcher(user_agent="spider-test", request_timeout=5,
                          max_content_bytes=1000) as web_fetcher:
        yield web_fetcher


class TestWebFetcher:

    async def test_successful_fetch_has_content_and_title(self, server, fetcher):
        result = await fetcher.fetch(str(server.make_url('/page')))

        assert result.ok
        assert result.status_code == 200
        assert "hello" in result.content
        assert result.title == "Local Page"

    async def test_missing_title_is_not_an_error(self, server, fetcher):
        result = await fetcher.fetch(str(server.make_url('/untitled')))

        assert result.ok
        assert result.title is None

    async def test_non_success_status_is_an_error(self, server, fetcher):
        result = await fetcher.fetch(str(server.make_url('/missing')))

        assert not result.ok
        assert result.status_code == 404
        assert result.error == "HTTP 404"
        assert result.content is None

    async def test_non_text_content_is_rejected(self, server, fetcher):
        result = await fetcher.fetch(str(server.make_url('/image')))

        assert not result.ok
        assert result.error == "Non-text content type"

    async def test_oversized_body_is_rejected(self, server, fetcher):
        result = await fetcher.fetch(str(server.make_url('/large')))

        assert not result.ok

    async def test_body_spanning_many_chunks_is_read_whole(self, server):
        async with WebFetcher(user_agent="spider-test", max_content_bytes=100000) as roomy:
            result = await roomy.fetch(str(server.make_url('/chunked')))

        assert result.ok
        assert len(result.content) == 50000
        assert result.content.count("word") == 10000

    async def test_unreachable_host(self, fetcher):
        result = await fetcher.fetch("http://127.0.0.1:1/")

        assert not result.ok
        assert result.status_code == 0
        assert result.error

    async def test_timeout(self, server):
        async with WebFetcher(user_agent="spider-test", request_timeout=0.5) as quick:
            result = await quick.fetch(str(server.make_url('/slow')))

        assert not result.ok

    async def test_stats_count_requests(self, server, fetcher):
        await fetcher.fetch(str(server.make_url('/page')))
        await fetcher.fetch(str(server.make_url('/missing')))

        stats = fetcher.get_stats()
        assert stats['total_requests'] == 2
        assert stats['successful_requests'] == 1
        assert stats['failed_requests'] == 1


class TestDecodeContent:

    def test_declared_charset(self):
        assert decode_content("café".encode("latin-1"), "latin-1") == "café"

    def test_unknown_charset_falls_back(self):
        assert decode_content(b"hello", "no-such-codec") == "hello"

    def test_invalid_utf8_falls_back_to_latin1(self):
        assert decode_content(b"caf\xe9") == "café"
