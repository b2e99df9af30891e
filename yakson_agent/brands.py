from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from .tables import (
    BLACKLIST_KEYWORDS,
    DEFAULT_BRAND_TABLES,
    TRUSTED_SELLERS,
    AliasTable,
    BrandTables,
    BrandTier,
)


@dataclass(frozen=True)
class TrustFlags:
    brand: str | None
    tier: BrandTier
    is_official_channel: bool
    is_trusted_seller: bool

    @property
    def is_major_corp(self) -> bool:
        return self.tier is BrandTier.TOP_CORP

    @property
    def is_otc(self) -> bool:
        return self.tier is BrandTier.OTC

    @property
    def is_known_brand(self) -> bool:
        return self.tier is BrandTier.KNOWN_MID

    @property
    def floors_apply(self) -> bool:
        return self.tier is not BrandTier.UNKNOWN or self.is_official_channel or self.is_trusted_seller


_OFFICIAL_RE = re.compile(r"(official|공식)")
_CHANNEL_LINE_RE = re.compile(r"channel:\s*([^\n]+)", re.IGNORECASE)
_TITLE_LINE_RE = re.compile(r"title:\s*([^\n]+)", re.IGNORECASE)
_TRUSTED_SELLER_RE = re.compile(
    r"(seller|url|site_name|판매처).*(" + "|".join(TRUSTED_SELLERS) + r")",
    re.IGNORECASE,
)


def _line_value(pattern: re.Pattern[str], text: str) -> str:
    m = pattern.search(text)
    return m.group(1).lower() if m else ""


class BrandResolver:
    """Maps free text to a canonical brand and its trust tier.

    Alias tables are scanned top-tier, then mid-tier, then OTC; the first alias
    found as a case-insensitive substring decides the canonical name. Tier
    assignment is independent of that scan order: a canonical name is checked
    against the tiers in priority order TOP_CORP > OTC > KNOWN_MID.
    """

    def __init__(self, tables: BrandTables = DEFAULT_BRAND_TABLES) -> None:
        self.tables = tables
        self._scan_order: tuple[AliasTable, ...] = (tables.top_corp, tables.known_mid, tables.otc)
        self._tier_order: tuple[tuple[BrandTier, frozenset[str]], ...] = (
            (BrandTier.TOP_CORP, frozenset(tables.top_corp)),
            (BrandTier.OTC, frozenset(tables.otc)),
            (BrandTier.KNOWN_MID, frozenset(tables.known_mid)),
        )

    def canonicalize(self, text: str | None) -> str | None:
        t = (text or "").lower()
        if not t:
            return None
        for table in self._scan_order:
            for canon, aliases in table.items():
                for alias in aliases:
                    if alias.lower() in t:
                        return canon
        return None

    def get_tier(self, brand: str | None) -> BrandTier:
        if not brand:
            return BrandTier.UNKNOWN
        for tier, members in self._tier_order:
            if brand in members:
                return tier
        return BrandTier.UNKNOWN

    def detect_trust_flags(self, source_text: str | None) -> TrustFlags:
        text = source_text or ""
        src = text.lower()
        brand = self.canonicalize(text)
        tier = self.get_tier(brand)

        channel_line = _line_value(_CHANNEL_LINE_RE, text)
        title_line = _line_value(_TITLE_LINE_RE, text)
        brand_low = brand.lower() if brand else ""
        brand_in_channel = bool(brand_low) and brand_low in channel_line
        brand_in_title = bool(brand_low) and brand_low in title_line

        return TrustFlags(
            brand=brand,
            tier=tier,
            is_official_channel=bool(_OFFICIAL_RE.search(src)) or brand_in_channel or brand_in_title,
            is_trusted_seller=bool(_TRUSTED_SELLER_RE.search(text)),
        )


class BlacklistFilter:
    def __init__(self, keywords: Iterable[str] = BLACKLIST_KEYWORDS) -> None:
        self.keywords: tuple[str, ...] = tuple(keywords)
        self._lowered = tuple(k.lower() for k in self.keywords)

    def match(self, text: str | None) -> str | None:
        """Return the first blacklisted keyword found in `text`, if any."""
        t = (text or "").lower()
        for keyword, low in zip(self.keywords, self._lowered):
            if low in t:
                return keyword
        return None


DEFAULT_RESOLVER = BrandResolver()
DEFAULT_BLACKLIST = BlacklistFilter()
