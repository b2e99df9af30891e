"""Product-name cleanup for noisy store titles.

Store pages wrap the product name in site chrome ("Foo 500mg | Coupang!",
"Amazon.com: Foo"), so candidates are cleaned before use and the first
candidate that survives cleaning wins.
"""
from __future__ import annotations

import json
import re

_SPLITTERS = (" | ", " - ", " · ")

# host fragment -> boilerplate tokens to drop
_HOST_BOILERPLATE: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("coupang", re.compile(r"쿠팡!?|COUPANG!?", re.IGNORECASE)),
    ("smartstore.naver", re.compile(r"스마트스토어|네이버\s*쇼핑|NAVER\s*Shopping", re.IGNORECASE)),
    ("amazon", re.compile(r"Amazon(\.com)?:?", re.IGNORECASE)),
    ("iherb", re.compile(r"iHerb", re.IGNORECASE)),
    ("oliveyoung", re.compile(r"올리브영|Olive\s*Young", re.IGNORECASE)),
)

_SKU_RE = re.compile(r"\((?:SKU|Item)?\s*#?\s*\d{5,}\)", re.IGNORECASE)
_LEADING_SEP_RE = re.compile(r"^[-|·:]+\s*")
_TRAILING_SEP_RE = re.compile(r"\s*[-|·:]+$")

_JSON_NAME_PATTERNS = (
    re.compile(r'"productName"\s*:\s*"((?:[^"\\]|\\.){3,200})"', re.IGNORECASE),
    re.compile(r'"itemName"\s*:\s*"((?:[^"\\]|\\.){3,200})"', re.IGNORECASE),
    re.compile(r'"goodsName"\s*:\s*"((?:[^"\\]|\\.){3,200})"', re.IGNORECASE),
    re.compile(r'"name"\s*:\s*"((?:[^"\\]|\\.){3,200})"\s*,\s*"@type"\s*:\s*"Product"', re.IGNORECASE),
)


def decode_json_string(s: str) -> str:
    try:
        return json.loads(f'"{s}"')
    except ValueError:
        return s


def clean_site_suffixes(text: str, host: str = "") -> str:
    if not text:
        return ""
    s = re.sub(r"\s+", " ", str(text)).strip()

    for sp in _SPLITTERS:
        parts = s.split(sp)
        if len(parts) > 1:
            last = parts[-1].strip()
            if len(last) >= 4:
                s = last

    low = (host or "").lower()
    for fragment, pattern in _HOST_BOILERPLATE:
        if fragment in low:
            s = pattern.sub("", s).strip()

    s = _SKU_RE.sub("", s).strip()
    s = _LEADING_SEP_RE.sub("", s)
    s = _TRAILING_SEP_RE.sub("", s)
    return s.strip()


def pick_clean_product_name(
    *,
    host: str = "",
    og_title: str = "",
    h1s: list[str] | None = None,
    title_tag: str = "",
    html: str = "",
) -> str:
    candidates: list[str] = []
    if html:
        for pattern in _JSON_NAME_PATTERNS:
            m = pattern.search(html)
            if m and m.group(1):
                candidates.append(decode_json_string(m.group(1)))
    if og_title:
        candidates.append(og_title)
    if h1s:
        candidates.append(h1s[0])
    if title_tag:
        candidates.append(title_tag)

    for c in candidates:
        cleaned = clean_site_suffixes(c, host)
        if len(cleaned) >= 2:
            return cleaned
    return ""
