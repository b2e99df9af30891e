import json

import httpx
import pytest

from yakson_agent.cache import TTLCache
from yakson_agent.config import FALLBACK_CACHE_TTL_S
from yakson_agent.extractors import (
    extract_commerce_context,
    extract_h1_candidates,
    extract_jsonld_products,
    extract_video_context,
    get_html_fast,
    is_confirmed_product_url,
    normalize_commerce_url,
    pick_meta,
)


# --- normalize_commerce_url ------------------------------------------------


def test_coupang_product_url_is_canonicalized():
    raw = "https://www.coupang.com/vp/products/123?itemId=1&vendorItemId=2&utm_source=x"
    assert normalize_commerce_url(raw) == "https://m.coupang.com/vp/products/123?itemId=1&vendorItemId=2"


def test_coupang_params_kept_in_fixed_order():
    raw = "https://www.coupang.com/vp/products/9?vendorItemId=2&src=a&itemId=1#reviews"
    assert normalize_commerce_url(raw) == "https://m.coupang.com/vp/products/9?itemId=1&vendorItemId=2"


def test_coupang_non_product_url_is_untouched():
    raw = "https://www.coupang.com/np/search?q=omega"
    assert normalize_commerce_url(raw) == raw
    assert not is_confirmed_product_url(raw)


def test_smartstore_keeps_only_item_param():
    raw = "https://smartstore.naver.com/shop/products/987?i=abc&NaPm=ct%3Dx#top"
    assert normalize_commerce_url(raw) == "https://smartstore.naver.com/shop/products/987?i=abc"
    assert is_confirmed_product_url(raw)


def test_smartstore_non_product_path_collapses_to_root():
    raw = "https://smartstore.naver.com/shop/category/55?i=1&x=2"
    assert normalize_commerce_url(raw) == "https://smartstore.naver.com/?i=1"


def test_other_hosts_and_garbage_returned_unchanged():
    assert normalize_commerce_url("https://www.iherb.com/pr/foo/1?rcode=x") == "https://www.iherb.com/pr/foo/1?rcode=x"
    assert normalize_commerce_url("http://[::1") == "http://[::1"
    assert normalize_commerce_url("") == ""


# --- HTML helpers ----------------------------------------------------------


def test_pick_meta_and_h1_candidates():
    html = (
        '<meta property="og:title" content="Omega 3 | iHerb">'
        "<h1 class='x'><span>Omega</span> 3 1000mg</h1><h1>  </h1>"
    )
    assert pick_meta(html, "og:title") == "Omega 3 | iHerb"
    assert pick_meta(html, "og:description") == ""
    assert extract_h1_candidates(html) == ["Omega 3 1000mg"]


def test_jsonld_products_found_in_graph_and_malformed_blocks_skipped():
    good = json.dumps({"@graph": [{"@type": "WebPage"}, {"@type": ["Product"], "name": "Vitamin D"}]})
    html = (
        '<script type="application/ld+json">{not json</script>'
        f'<script type="application/ld+json">{good}</script>'
    )
    products = extract_jsonld_products(html)
    assert [p["name"] for p in products] == ["Vitamin D"]


# --- commerce extraction ---------------------------------------------------


def _product_page(name="락토핏 골드 50포", brand="종근당건강", seller="쿠팡"):
    ld = {
        "@context": "https://schema.org",
        "@type": "Product",
        "name": name,
        "brand": {"@type": "Brand", "name": brand},
        "sku": "A-100",
        "offers": [{"@type": "Offer", "seller": {"name": seller}}],
    }
    body = "<p>" + "x" * 600 + "</p>"
    return (
        "<html><head><title>쿠팡!</title>"
        f'<script type="application/ld+json">{json.dumps(ld, ensure_ascii=False)}</script>'
        f"</head><body>{body}</body></html>"
    )


@pytest.mark.asyncio
async def test_commerce_context_from_jsonld(mock_client):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, text=_product_page())

    url = "https://www.coupang.com/vp/products/123?itemId=1&vendorItemId=2&utm_source=x"
    async with mock_client(handler) as client:
        ctx = await extract_commerce_context(url, "ko", client=client, backoff_s=0)

    assert ctx.product_name == "락토핏 골드 50포"
    assert ctx.brand == "종근당건강"
    assert ctx.seller == "쿠팡"
    assert ctx.sku == "A-100"
    assert "PRODUCT_NAME: 락토핏 골드 50포" in ctx.source
    assert "BRAND: 종근당건강" in ctx.source

    request = seen[0]
    assert str(request.url) == "https://m.coupang.com/vp/products/123?itemId=1&vendorItemId=2"
    assert request.headers["Referer"] == "https://www.coupang.com/"
    assert request.headers["Accept-Language"].startswith("ko-KR")


@pytest.mark.asyncio
async def test_commerce_context_is_cached_by_normalized_url(mock_client):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, text=_product_page())

    async with mock_client(handler) as client:
        first = await extract_commerce_context(
            "https://www.coupang.com/vp/products/123?itemId=1&utm_source=a", "ko", client=client
        )
        second = await extract_commerce_context(
            "https://www.coupang.com/vp/products/123?itemId=1&utm_source=b", "ko", client=client
        )

    assert first is second
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_short_html_yields_short_lived_fallback(mock_client, clock):
    cache = TTLCache(clock=clock)
    html_cache = TTLCache(clock=clock)

    def handler(request):
        return httpx.Response(200, text="<html>" + "y" * 194 + "</html>")

    url = "https://www.coupang.com/vp/products/555?itemId=9"
    async with mock_client(handler) as client:
        ctx = await extract_commerce_context(
            url, "ko", client=client, cache=cache, html_cache=html_cache, backoff_s=0
        )

    assert ctx.product_name == ""
    assert "PRODUCT_ID_HINT: 555" in ctx.source
    assert "NOTE: FAST_MODE_FALLBACK" in ctx.source
    assert len(html_cache) == 0

    key = f"commerce:ko:{normalize_commerce_url(url)}"
    assert cache.expires_at(key) == clock.now + FALLBACK_CACHE_TTL_S
    clock.advance(FALLBACK_CACHE_TTL_S + 1)
    assert cache.get(key) is None


@pytest.mark.asyncio
async def test_blocked_store_degrades_to_fallback(mock_client):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(403, text="denied")

    async with mock_client(handler) as client:
        ctx = await extract_commerce_context(
            "https://smartstore.naver.com/shop/products/42", "en", client=client, retries=1, backoff_s=0
        )

    assert len(calls) == 2
    assert ctx.source.startswith("URL: https://smartstore.naver.com/shop/products/42")
    assert "PRODUCT_ID_HINT: 42" in ctx.source


@pytest.mark.asyncio
async def test_get_html_fast_returns_none_on_transport_failure(mock_client):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with mock_client(handler) as client:
        html = await get_html_fast("https://www.iherb.com/pr/x/1", "en", client=client, retries=0)

    assert html is None


@pytest.mark.asyncio
async def test_non_product_commerce_url_fetched_as_given(mock_client):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, text="<html>" + "z" * 600 + "</html>")

    url = "https://www.coupang.com/np/search?q=omega"
    async with mock_client(handler) as client:
        html = await get_html_fast(url, "ko", client=client)

    assert html is not None
    assert seen == [url]


# --- video extraction ------------------------------------------------------


@pytest.mark.asyncio
async def test_video_context_merges_oembed_and_page(mock_client):
    page = (
        '<html><meta property="og:title" content="ignored">'
        '<script>var x = {"shortDescription":"Line one\\nSponsored by Brand","other":1};</script></html>'
    )

    def handler(request):
        if request.url.path == "/oembed":
            return httpx.Response(200, json={"title": "Omega 3 review", "author_name": "HealthTube"})
        return httpx.Response(200, text=page)

    url = "https://www.youtube.com/watch?v=abc"
    async with mock_client(handler) as client:
        ctx = await extract_video_context(url, "en", client=client)

    assert ctx.title == "Omega 3 review"
    assert ctx.author == "HealthTube"
    assert ctx.description == "Line one\nSponsored by Brand"
    assert ctx.source.splitlines()[:2] == ["TITLE: Omega 3 review", "CHANNEL: HealthTube"]


@pytest.mark.asyncio
async def test_video_context_survives_total_failure(mock_client):
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    async with mock_client(handler) as client:
        ctx = await extract_video_context("https://youtu.be/xyz", "ko", client=client)

    assert ctx.title == ctx.author == ctx.description == ""
    assert ctx.source == "TITLE: \nCHANNEL: \nDESCRIPTION: "


@pytest.mark.asyncio
async def test_video_page_fills_missing_oembed_fields(mock_client):
    page = (
        '<meta property="og:title" content="Brand Story">'
        '"channelMetadataRenderer":{"title":"Official Channel","description":""}'
    )

    def handler(request):
        if request.url.path == "/oembed":
            return httpx.Response(404)
        return httpx.Response(200, text=page)

    async with mock_client(handler) as client:
        ctx = await extract_video_context("https://www.youtube.com/watch?v=q", "ko", client=client)

    assert ctx.title == "Brand Story"
    assert ctx.author == "Official Channel"


@pytest.mark.asyncio
async def test_video_context_with_unencodable_url_degrades(mock_client):
    def handler(request):
        return httpx.Response(200, text="unused")

    async with mock_client(handler) as client:
        ctx = await extract_video_context("https://www.youtube.com/watch?v=\ud800", "ko", client=client)

    assert ctx.title == ctx.author == ctx.description == ""
