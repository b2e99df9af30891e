from __future__ import annotations

import re
from enum import Enum
from urllib.parse import urlparse


class InputKind(str, Enum):
    VIDEO = "video"
    COMMERCE = "commerce"
    PRODUCT_NAME = "product_name"
    FREEFORM = "freeform"


_VIDEO_HOSTS = ("youtube.com", "youtu.be")

_COMMERCE_HOST_RE = re.compile(
    r"(?:^|\.)(coupang|smartstore\.naver|11st|gmarket|auction|ssg|musinsa|wemakeprice|tmon|danawa|amazon|iherb|oliveyoung|rakuten)\."
)

# Path segments that mark a product-detail page on the supported stores.
_PRODUCT_SEGMENTS = {"products", "product", "goods", "p", "pr", "vp", "dp", "item", "deal"}
_LISTING_PATH_RE = re.compile(r"(search|category|list|best)")
_PRODUCT_PARAM_RE = re.compile(r"(?:^|[?&])(itemid|vendoritemid|gd_no|item_no|goodscode|goodsno|i)=")

_LINK_MARKERS = ("http", "www.", ".com", ".co.kr", ".net")
_MAX_NAME_TOKENS = 20


def _parse(text: str):
    value = text.strip()
    if not re.match(r"^[a-zA-Z][a-zA-Z\d+.-]*://", value):
        value = "https://" + value
    return urlparse(value)


def _host(text: str) -> str:
    try:
        return (_parse(text).hostname or "").lower()
    except ValueError:
        return ""


def is_video_url(text: str) -> bool:
    if not text:
        return False
    host = _host(text)
    if any(host == h or host.endswith("." + h) for h in _VIDEO_HOSTS):
        return True
    t = text.lower()
    return "youtube.com/" in t or "youtu.be/" in t


def is_likely_commerce_url(text: str) -> bool:
    """True only for product-detail pages on a recognized store.

    An explicit product path wins over a search/listing marker; a product-id
    query parameter is accepted without a product path; anything else on a
    store domain is not a product page.
    """
    if not text or " " in text.strip():
        return False
    try:
        parsed = _parse(text)
        host = (parsed.hostname or "").lower()
    except ValueError:
        return False
    if not host or not _COMMERCE_HOST_RE.search(host):
        return False

    path = parsed.path.lower()
    segments = [s for s in path.split("/") if s]
    if any(s in _PRODUCT_SEGMENTS for s in segments):
        return True
    if _LISTING_PATH_RE.search(path):
        return False
    if _PRODUCT_PARAM_RE.search("?" + parsed.query.lower()):
        return True
    return False


def looks_like_link(text: str) -> bool:
    t = text.lower()
    return any(m in t for m in _LINK_MARKERS)


def is_product_name_only(text: str) -> bool:
    if not text or not text.strip():
        return False
    if is_video_url(text) or is_likely_commerce_url(text) or looks_like_link(text):
        return False
    return len(text.split()) < _MAX_NAME_TOKENS


def classify_input(text: str) -> InputKind:
    if is_video_url(text):
        return InputKind.VIDEO
    if is_likely_commerce_url(text):
        return InputKind.COMMERCE
    if is_product_name_only(text):
        return InputKind.PRODUCT_NAME
    return InputKind.FREEFORM


_PRODUCT_HINTS = re.compile(
    r"(product|제품|신제품|캡슐|정\b|파우더|보충제|supplement|vitamin|probiotic|mg\b|효능|효과|임상"
    r"|review|리뷰|사용기|개봉기|언박싱|가격|구매|링크|price|unboxing)"
)
_BRAND_HINTS = re.compile(
    r"(브랜드|기업|회사|신뢰|히스토리|스토리|브랜드관|캠페인|brand film|brand ad|brand campaign"
    r"|회사소개|브랜드 소개|our story|philosophy|official)"
)


def classify_video_ad_context(title: str = "", description: str = "") -> str:
    """Guess the ad category of a video from its title and description."""
    t = f"{title or ''} {description or ''}".lower()
    if _PRODUCT_HINTS.search(t):
        return "product_ad"
    if _BRAND_HINTS.search(t):
        return "brand_ad"
    return "unknown"
