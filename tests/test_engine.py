# File: tests/test_engine.py
"""Сквозные тесты: robots.txt → sitemap → страницы → проверка ссылок."""
from __future__ import annotations

import asyncio

import pytest
from aiohttp import web

from link_scout.config import CheckerConfig
from link_scout.crawler.fetcher import ProbeClient
from link_scout.crawler.models import Classification
from link_scout.engine import Engine, collect_pages, list_pages, start_scan


def build_site(hits: dict) -> web.Application:
    app = web.Application()

    def html(body: str) -> web.Response:
        return web.Response(text=f"<html><body>{body}</body></html>", content_type="text/html")

    async def robots(_):
        return web.Response(text="User-agent: *\nDisallow:\n")

    async def sitemap(request):
        origin = str(request.url.origin())
        locs = "".join(
            f"<url><loc>{origin}{path}</loc></url>" for path in ("/", "/about", "/about", "/gone-page")
        )
        return web.Response(
            text=f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{locs}</urlset>',
            content_type="application/xml",
        )

    async def root(_):
        return html(
            '<link rel="stylesheet" href="/style.css">'
            '<a href="/about">About</a>'
            '<a href="/missing">Missing</a>'
            '<a href="/old">Old</a>'
            '<a href="mailto:team@example.com">Mail</a>'
            '<a href="https://external.invalid/">Elsewhere</a>'
        )

    async def about(_):
        return html('<a href="/">Home</a><img src="/style.css">')

    async def style(request):
        hits["style"] = hits.get("style", 0) + 1
        return web.Response(text="body {}", content_type="text/css")

    async def old(_):
        raise web.HTTPMovedPermanently("/about")

    app.router.add_get("/robots.txt", robots)
    app.router.add_get("/sitemap.xml", sitemap)
    app.router.add_get("/", root)
    app.router.add_get("/about", about)
    app.router.add_get("/style.css", style)
    app.router.add_get("/old", old)
    return app


def site_config(base: str, **overrides) -> CheckerConfig:
    settings = dict(url=base, timeout=2.0, retries=0, retry_delay=0.0)
    settings.update(overrides)
    return CheckerConfig(**settings)


@pytest.mark.asyncio()
async def test_collect_pages_dedups(serve):
    base = await serve(build_site({}))
    config = site_config(base)
    async with ProbeClient.from_config(config) as client:
        pages = await collect_pages(config, client.session)

    assert pages == [f"{base}/", f"{base}/about", f"{base}/gone-page"]
    assert await list_pages(config) == pages


@pytest.mark.asyncio()
async def test_full_scan(serve):
    hits: dict = {}
    base = await serve(build_site(hits))
    seen = []

    report = await start_scan(site_config(base), on_result=seen.append)

    assert report.pages_processed == 3
    by_target = {(r.source_url, r.target_url): r for r in report.results}
    assert by_target[(f"{base}/", f"{base}/about")].classification is Classification.SUCCESS
    assert by_target[(f"{base}/", f"{base}/missing")].status_code == 404
    assert by_target[(f"{base}/", f"{base}/missing")].classification is Classification.BROKEN
    # redirects are followed to the final answer
    assert by_target[(f"{base}/", f"{base}/old")].status_code == 200
    assert by_target[(f"{base}/about", f"{base}/")].classification is Classification.SUCCESS
    assert ("sitemap", f"{base}/gone-page") in by_target

    assert report.total_links == 7
    assert report.broken_links == 2
    assert report.external_links == 0
    assert report.links_by_tag == {"a": 4, "link": 1, "img": 1}
    assert len(seen) == report.total_links
    # /style.css is referenced twice but probed once
    assert hits["style"] == 1


@pytest.mark.asyncio()
async def test_scan_with_explicit_sitemap_and_patterns(serve):
    base = await serve(build_site({}))
    config = CheckerConfig(
        sitemap=f"{base}/sitemap.xml",
        timeout=2.0,
        retries=0,
        skip_resources=True,
        exclude=["*/missing"],
    )
    report = await start_scan(config)

    skipped = [r for r in report.results if r.classification is Classification.SKIPPED]
    assert [r.target_url for r in skipped] == [f"{base}/missing"]
    assert "link" not in report.links_by_tag


@pytest.mark.asyncio()
async def test_scan_cancelled_up_front(serve):
    base = await serve(build_site({}))
    event = asyncio.Event()
    event.set()

    report = await start_scan(site_config(base), cancel_event=event)

    assert report.cancelled_links == report.total_links == 3
    assert report.broken_links == 0


def test_engine_facade(tmp_path):
    cfg_file = tmp_path / "site.yaml"
    cfg_file.write_text("url: example.com\n", encoding="utf-8")

    config = Engine.load_config(cfg_file, concurrency=3)
    engine = Engine(config)
    assert engine.config.url == "https://example.com"
    assert engine.config.concurrency == 3
