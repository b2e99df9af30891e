from __future__ import annotations

import json
import logging
import re
from typing import Any
from urllib.parse import quote, urlencode, parse_qsl, urlparse, urlunparse

import httpx

from .cache import EXTRACT_CACHE, HTML_CACHE, TTLCache
from .config import FALLBACK_CACHE_TTL_S, FETCH_RETRIES, OEMBED_TIMEOUT_MS, VIDEO_HTML_TIMEOUT_MS
from .fetch import (
    FetchError,
    accept_language_header,
    client_scope,
    fetch_with_retry,
    fetch_with_timeout,
    random_user_agent,
)
from .models import CommerceContext, VideoContext
from .product_name import clean_site_suffixes, decode_json_string, pick_clean_product_name

logger = logging.getLogger(__name__)

MAX_SOURCE_CHARS = 8000
MIN_HTML_CHARS = 500

# ---------------------------------------------------------------------------
# URL normalization
# ---------------------------------------------------------------------------

_COUPANG_PRODUCT_PREFIXES = ("/vp/products/", "/products/")
_COUPANG_KEEP_PARAMS = ("itemId", "vendorItemId")


def _is_coupang(host: str) -> bool:
    return host == "coupang.com" or host.endswith(".coupang.com")


def _is_smartstore(host: str) -> bool:
    return "smartstore.naver.com" in host


def is_confirmed_product_url(raw: str) -> bool:
    """True when normalization recognizes `raw` as a product-detail page."""
    try:
        u = urlparse(raw)
        host = (u.hostname or "").lower()
    except ValueError:
        return False
    if _is_coupang(host):
        return u.path.startswith(_COUPANG_PRODUCT_PREFIXES)
    if _is_smartstore(host):
        return "/products/" in u.path
    return False


def normalize_commerce_url(raw: str) -> str:
    """Canonical cache key for a commerce URL. Never raises.

    Coupang product pages become `https://m.coupang.com/...` with only
    itemId/vendorItemId kept, in a fixed order; other Coupang pages are left
    alone. Smartstore keeps only the `i` parameter and collapses non-product
    paths to `/`. Every other host is returned unchanged.
    """
    try:
        u = urlparse(raw)
        host = (u.hostname or "").lower()
        params = dict(parse_qsl(u.query, keep_blank_values=True))

        if _is_coupang(host):
            if not u.path.startswith(_COUPANG_PRODUCT_PREFIXES):
                return raw
            keep = [(k, params[k]) for k in _COUPANG_KEEP_PARAMS if k in params]
            return urlunparse(u._replace(netloc="m.coupang.com", query=urlencode(keep), fragment=""))

        if _is_smartstore(host):
            keep = [("i", params["i"])] if "i" in params else []
            path = u.path if "/products/" in u.path else "/"
            return urlunparse(u._replace(path=path, query=urlencode(keep), fragment=""))

        return raw
    except ValueError:
        return raw


# ---------------------------------------------------------------------------
# HTML helpers
# ---------------------------------------------------------------------------

_TITLE_RE = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)
_H1_RE = re.compile(r"<h1[^>]*>(.*?)</h1>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")
_JSONLD_RE = re.compile(
    r"<script[^>]+type=[\"']application/ld\+json[\"'][^>]*>(.*?)</script>",
    re.IGNORECASE | re.DOTALL,
)


def pick_meta(html: str, name: str) -> str:
    m = re.search(
        r"<meta[^>]+(?:property|name)=[\"']" + re.escape(name) + r"[\"'][^>]+content=[\"']([^\"']+)[\"']",
        html,
        flags=re.IGNORECASE,
    )
    return m.group(1).strip() if m else ""


def pick_title(html: str) -> str:
    m = _TITLE_RE.search(html)
    return m.group(1).strip() if m else ""


def extract_h1_candidates(html: str) -> list[str]:
    out: list[str] = []
    for m in _H1_RE.finditer(html):
        text = _TAG_RE.sub("", m.group(1)).strip()
        if text:
            out.append(text)
    return out


def _walk_json(obj: Any):
    if isinstance(obj, dict):
        yield obj
        for v in obj.values():
            yield from _walk_json(v)
    elif isinstance(obj, list):
        for v in obj:
            yield from _walk_json(v)


def _is_product_node(node: dict[str, Any]) -> bool:
    t = node.get("@type")
    if isinstance(t, list):
        return "Product" in t
    return t == "Product"


def extract_jsonld_products(html: str) -> list[dict[str, Any]]:
    """All schema.org Product nodes found in ld+json blocks; malformed blocks are skipped."""
    products: list[dict[str, Any]] = []
    for m in _JSONLD_RE.finditer(html or ""):
        content = (m.group(1) or "").strip()
        if not content:
            continue
        try:
            parsed = json.loads(content)
        except ValueError:
            logger.debug("Skipping malformed ld+json block (%d chars)", len(content))
            continue
        for node in _walk_json(parsed):
            if _is_product_node(node):
                products.append(node)
    return products


def _name_of(value: Any) -> str:
    if isinstance(value, dict):
        return str(value.get("name") or "").strip()
    if isinstance(value, str):
        return value.strip()
    return ""


def _first_offer(offers: Any) -> dict[str, Any]:
    if isinstance(offers, list):
        offers = offers[0] if offers else {}
    return offers if isinstance(offers, dict) else {}


# ---------------------------------------------------------------------------
# Video
# ---------------------------------------------------------------------------

_SHORT_DESCRIPTION_RE = re.compile(r'"shortDescription":"((?:[^"\\]|\\.)*)"')
_OG_TITLE_RE = re.compile(r'<meta property="og:title" content="([^"]+)"', re.IGNORECASE)
_CHANNEL_RE = re.compile(r'"channelMetadataRenderer":\{"title":"((?:[^"\\]|\\.)*)"')


def _video_source(title: str, author: str, description: str) -> str:
    return "\n".join(
        [f"TITLE: {title}", f"CHANNEL: {author}", f"DESCRIPTION: {description}"]
    )[:MAX_SOURCE_CHARS]


async def extract_video_context(
    url: str,
    lang: str,
    *,
    client: httpx.AsyncClient | None = None,
    cache: TTLCache = EXTRACT_CACHE,
) -> VideoContext:
    cache_key = f"video:{lang}:{url}"
    cached = cache.get(cache_key)
    if cached is not None:
        return cached

    title = author = description = ""

    async with client_scope(client) as http:
        try:
            o = await fetch_with_timeout(
                http,
                f"https://www.youtube.com/oembed?url={quote(url, safe='')}&format=json",
                timeout_ms=OEMBED_TIMEOUT_MS,
            )
            data = o.json() if o.is_success else None
            if isinstance(data, dict):
                title = str(data.get("title") or "")
                author = str(data.get("author_name") or "")
        except (FetchError, ValueError) as e:
            logger.warning("oEmbed lookup failed for %s: %s", url, e)

        try:
            r = await fetch_with_timeout(
                http,
                url,
                headers={"User-Agent": "Mozilla/5.0", "Accept-Language": accept_language_header(lang)},
                timeout_ms=VIDEO_HTML_TIMEOUT_MS,
            )
            if r.is_success:
                html = r.text
                m = _SHORT_DESCRIPTION_RE.search(html)
                if m:
                    description = decode_json_string(m.group(1))
                if not title:
                    mt = _OG_TITLE_RE.search(html)
                    if mt:
                        title = mt.group(1)
                if not author:
                    ma = _CHANNEL_RE.search(html)
                    if ma:
                        author = decode_json_string(ma.group(1))
        except FetchError as e:
            logger.warning("Video page fetch failed for %s: %s", url, e)

    ctx = VideoContext(
        url=url,
        title=title,
        author=author,
        description=description,
        source=_video_source(title, author, description),
    )
    cache.set(cache_key, ctx)
    return ctx


# ---------------------------------------------------------------------------
# Commerce
# ---------------------------------------------------------------------------


def _commerce_headers(fetch_url: str, lang: str) -> dict[str, str]:
    headers = {
        "User-Agent": random_user_agent(),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
        "Accept-Language": accept_language_header(lang),
        "Accept-Encoding": "gzip, deflate",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
        "Cache-Control": "max-age=0",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "none",
        "Sec-Fetch-User": "?1",
    }
    try:
        host = (urlparse(fetch_url).hostname or "").lower()
    except ValueError:
        host = ""
    # Coupang rejects requests without a same-site referer and session cookies.
    if _is_coupang(host):
        headers["Referer"] = "https://www.coupang.com/"
        headers["Origin"] = "https://www.coupang.com"
        headers["Cookie"] = "PCID=dummy; overrideAbTestGroup=dummy;"
    return headers


async def get_html_fast(
    url: str,
    lang: str,
    *,
    client: httpx.AsyncClient | None = None,
    cache: TTLCache = HTML_CACHE,
    retries: int = FETCH_RETRIES,
    backoff_s: float = 0.5,
) -> str | None:
    """Fetch page HTML for a commerce URL, or None when nothing usable came back."""
    norm = normalize_commerce_url(url)
    cache_key = f"{lang}:{norm}"
    cached = cache.get(cache_key)
    if cached is not None:
        return cached

    fetch_url = norm if is_confirmed_product_url(url) else url
    async with client_scope(client) as http:
        try:
            res = await fetch_with_retry(
                http,
                fetch_url,
                headers=_commerce_headers(fetch_url, lang),
                retries=retries,
                backoff_s=backoff_s,
            )
        except FetchError as e:
            logger.warning("[get_html_fast] Failed to fetch %s: %s", url, e)
            return None
        if res is None:
            return None
        html = res.text

    if len(html) < MIN_HTML_CHARS:
        logger.info("[get_html_fast] HTML too short (%d chars), likely client-rendered: %s", len(html), url)
        return None

    cache.set(cache_key, html)
    return html


_PRODUCT_ID_RE = re.compile(r"/products/(\d+)")


def fallback_commerce_context(url: str) -> CommerceContext:
    product_id = ""
    try:
        m = _PRODUCT_ID_RE.search(urlparse(url).path)
        product_id = m.group(1) if m else ""
    except ValueError:
        pass
    lines = [f"URL: {url}"]
    if product_id:
        lines.append(f"PRODUCT_ID_HINT: {product_id}")
    lines.append("NOTE: FAST_MODE_FALLBACK")
    return CommerceContext(url=url, source="\n".join(lines))


def parse_commerce_html(url: str, html: str) -> CommerceContext:
    og_title = pick_meta(html, "og:title")
    og_desc = pick_meta(html, "og:description")
    og_site = pick_meta(html, "og:site_name")
    title_tag = pick_title(html)
    h1s = extract_h1_candidates(html)
    products = extract_jsonld_products(html)
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        host = ""

    product_name = brand = manufacturer = sku = category = seller = description = ""
    if products:
        p = products[0]
        product_name = _name_of(p.get("name"))
        brand = _name_of(p.get("brand"))
        manufacturer = _name_of(p.get("manufacturer"))
        sku = str(p.get("sku") or "").strip()
        category = _name_of(p.get("category"))
        seller = _name_of(_first_offer(p.get("offers")).get("seller"))
        description = str(p.get("description") or "").strip()

    if not product_name:
        product_name = og_title or (h1s[0] if h1s else "") or title_tag

    if len(product_name) < 2:
        product_name = pick_clean_product_name(
            host=host, og_title=og_title, h1s=h1s, title_tag=title_tag, html=html
        )
    else:
        product_name = clean_site_suffixes(product_name, host)

    description = description or og_desc
    seller = seller or og_site

    lines = [f"URL: {url}"]
    for label, value in (
        ("PRODUCT_NAME", product_name),
        ("BRAND", brand),
        ("MANUFACTURER", manufacturer),
        ("SELLER", seller),
        ("SKU", sku),
        ("CATEGORY", category),
        ("DESCRIPTION", description),
    ):
        if value:
            lines.append(f"{label}: {value}")

    return CommerceContext(
        url=url,
        product_name=product_name,
        brand=brand,
        manufacturer=manufacturer,
        seller=seller,
        sku=sku,
        category=category,
        description=description,
        source="\n".join(lines)[:MAX_SOURCE_CHARS],
    )


async def extract_commerce_context(
    url: str,
    lang: str,
    *,
    client: httpx.AsyncClient | None = None,
    cache: TTLCache = EXTRACT_CACHE,
    html_cache: TTLCache = HTML_CACHE,
    retries: int = FETCH_RETRIES,
    backoff_s: float = 0.5,
) -> CommerceContext:
    cache_key = f"commerce:{lang}:{normalize_commerce_url(url)}"
    cached = cache.get(cache_key)
    if cached is not None:
        return cached

    html = await get_html_fast(
        url, lang, client=client, cache=html_cache, retries=retries, backoff_s=backoff_s
    )
    if not html:
        ctx = fallback_commerce_context(url)
        # Fallback bundles expire sooner than parsed pages.
        cache.set(cache_key, ctx, ttl=FALLBACK_CACHE_TTL_S)
        return ctx

    ctx = parse_commerce_html(url, html)
    cache.set(cache_key, ctx)
    return ctx
