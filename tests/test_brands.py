from types import MappingProxyType

from yakson_agent.brands import BlacklistFilter, BrandResolver
from yakson_agent.tables import BrandTables, BrandTier


def test_canonicalize_matches_aliases_case_insensitively():
    resolver = BrandResolver()
    assert resolver.canonicalize("Tylenol 500mg 10 tablets") == "타이레놀"
    assert resolver.canonicalize("NOW FOODS Omega-3") == "나우푸드"
    assert resolver.canonicalize("") is None
    assert resolver.canonicalize(None) is None


def test_top_tier_scanned_first():
    # "종근당건강" is also a mid-tier alias, but the top-tier "종근당" alias matches first.
    resolver = BrandResolver()
    assert resolver.canonicalize("종근당건강 락토핏") == "종근당"
    assert resolver.get_tier("종근당") is BrandTier.TOP_CORP


def test_tier_priority_is_independent_of_scan_order():
    tables = BrandTables(
        top_corp=MappingProxyType({"Acme": ("acme",)}),
        known_mid=MappingProxyType({"Dual": ("dual",)}),
        otc=MappingProxyType({"Dual": ("dual",)}),
    )
    resolver = BrandResolver(tables)
    assert resolver.canonicalize("Dual pain relief") == "Dual"
    assert resolver.get_tier("Dual") is BrandTier.OTC
    assert resolver.get_tier("Acme") is BrandTier.TOP_CORP
    assert resolver.get_tier("Nobody") is BrandTier.UNKNOWN
    assert resolver.get_tier(None) is BrandTier.UNKNOWN


def test_trust_flags_for_otc_brand_in_title():
    flags = BrandResolver().detect_trust_flags("TITLE: 타이레놀 광고\nCHANNEL: HealthTube\nDESCRIPTION: ")
    assert flags.brand == "타이레놀"
    assert flags.is_otc and not flags.is_major_corp and not flags.is_known_brand
    assert flags.is_official_channel
    assert flags.floors_apply


def test_trust_flags_official_keyword_and_trusted_seller():
    resolver = BrandResolver()
    official = resolver.detect_trust_flags("CHANNEL: 약사 공식 채널")
    assert official.tier is BrandTier.UNKNOWN
    assert official.is_official_channel and official.floors_apply

    seller = resolver.detect_trust_flags("URL: https://www.coupang.com/vp/products/1")
    assert seller.is_trusted_seller and not seller.is_official_channel
    assert seller.floors_apply


def test_no_signals_no_floors():
    flags = BrandResolver().detect_trust_flags("zzz")
    assert flags.brand is None
    assert flags.tier is BrandTier.UNKNOWN
    assert not flags.floors_apply


def test_blacklist_returns_first_keyword():
    blacklist = BlacklistFilter()
    assert blacklist.match("필로폰 직구 판매") == "필로폰"
    assert blacklist.match("buy XANAX online") == "Xanax"
    assert blacklist.match("비타민D 1000IU") is None
    assert blacklist.match(None) is None


def test_blacklist_with_custom_keywords():
    blacklist = BlacklistFilter(["snake oil"])
    assert blacklist.match("Genuine Snake Oil tonic") == "snake oil"
    assert blacklist.match("필로폰") is None


def test_brand_tables_default_to_builtin_aliases():
    from yakson_agent.tables import KNOWN_MID_BRANDS, OTC_BRANDS, TOP_CORP_BRANDS

    tables = BrandTables()
    assert tables.top_corp is TOP_CORP_BRANDS
    assert tables.known_mid is KNOWN_MID_BRANDS
    assert tables.otc is OTC_BRANDS

    partial = BrandTables(otc=MappingProxyType({}))
    assert partial.top_corp is TOP_CORP_BRANDS
    assert len(partial.otc) == 0
