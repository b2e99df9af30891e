"""Static reference data: brand aliases, blacklist keywords, step labels,
per-category caps and per-category/per-tier floors.

Everything here is read-only. Components receive these tables through their
constructors (see `BrandTables`) so tests can substitute smaller ones.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class BrandTier(str, Enum):
    TOP_CORP = "top_corp"
    OTC = "otc"
    KNOWN_MID = "known_mid"
    UNKNOWN = "unknown"


AliasTable = Mapping[str, tuple[str, ...]]


def _frozen(table: dict[str, tuple[str, ...]]) -> AliasTable:
    return MappingProxyType(table)


# Large pharma / food / consumer-goods corporations.
TOP_CORP_BRANDS = _frozen({
    "정관장": ("정관장", "KGC 정관장", "KGC", "케이지씨"),
    "KGC인삼공사": ("KGC인삼공사", "Korea Ginseng Corp", "KGC Corporation"),
    "CJ제일제당": ("CJ제일제당", "CJ CheilJedang", "씨제이제일제당", "CJ"),
    "유한양행": ("유한양행", "Yuhan", "유한"),
    "종근당": ("종근당", "CKD", "Chong Kun Dang", "종근당건강"),
    "GC녹십자": ("GC녹십자", "녹십자", "Green Cross", "지씨녹십자"),
    "대웅제약": ("대웅제약", "Daewoong", "대웅", "대웅바이오"),
    "동아제약": ("동아제약", "Donga", "동아에스티"),
    "일동제약": ("일동제약", "Ildong", "일동"),
    "한미약품": ("한미약품", "Hanmi", "한미"),
    "광동제약": ("광동제약", "Kwangdong", "광동"),
    "일양약품": ("일양약품", "Ilyang", "일양"),
    "삼성제약": ("삼성제약", "Samsung Pharm"),
    "LG생활건강": ("LG생활건강", "LG H&H", "엘지생활건강", "LG"),
    "Amorepacific": ("Amorepacific", "아모레퍼시픽", "아모레"),
    "Pfizer": ("Pfizer", "Pfizer Inc.", "화이자", "화이자제약"),
    "Bayer": ("Bayer", "바이엘", "바이엘코리아"),
    "GSK": ("GSK", "GlaxoSmithKline", "글락소스미스클라인"),
    "Johnson & Johnson": ("Johnson & Johnson", "존슨앤드존슨", "존슨앤존슨", "존슨"),
    "Reckitt": ("Reckitt", "레킷벤키저", "레킷"),
    "Abbott": ("Abbott", "애보트", "애벗"),
    "Sanofi": ("Sanofi", "사노피"),
    "Novartis": ("Novartis", "노바티스"),
    "Merck": ("Merck", "머크"),
    "보령제약": ("보령제약", "보령"),
    "한독": ("한독",),
    "동국제약": ("동국제약",),
    "JW중외제약": ("JW중외제약", "중외제약"),
    "대원제약": ("대원제약",),
    "오뚜기": ("오뚜기", "Ottogi"),
    "농심": ("농심", "Nongshim"),
    "대상": ("대상", "Daesang"),
    "풀무원": ("풀무원", "Pulmuone"),
    "롯데": ("롯데", "Lotte"),
    "매일유업": ("매일유업", "Maeil"),
    "남양유업": ("남양유업", "Namyang"),
    "MSD": ("MSD",),
    "Roche": ("Roche", "로슈"),
    "Nestlé": ("Nestlé", "네슬레"),
    "P&G": ("P&G", "Procter & Gamble"),
    "암웨이": ("암웨이", "Amway"),
    "허벌라이프": ("허벌라이프", "Herbalife"),
})

# Well-known supplement brands.
KNOWN_MID_BRANDS = _frozen({
    "뉴트리원": ("뉴트리원", "Nutri One"),
    "닥터스베스트": ("닥터스베스트", "Doctor's Best", "Doctors Best"),
    "솔가": ("솔가", "Solgar"),
    "나우푸드": ("나우푸드", "NOW Foods"),
    "자로우": ("자로우", "Jarrow", "Jarrow Formulas"),
    "네이처스웨이": ("네이처스웨이", "Nature's Way", "Natures Way"),
    "네이처메이드": ("네이처메이드", "Nature Made"),
    "센트룸": ("센트룸", "Centrum"),
    "얼라이브": ("얼라이브", "Alive"),
    "칼슘디": ("칼슘디", "CalciumD"),
    "종근당건강": ("종근당건강", "종근당"),
    "뉴트리디데이": ("뉴트리디데이", "Nutri D-Day"),
    "뉴트리코어": ("뉴트리코어", "Nutricore"),
    "닥터린": ("닥터린", "Dr.Lin"),
    "비타민월드": ("비타민월드", "Vitamin World"),
    "마이프로틴": ("마이프로틴", "Myprotein"),
    "옵티멈뉴트리션": ("옵티멈뉴트리션", "Optimum Nutrition"),
    "머슬팜": ("머슬팜", "MusclePharm"),
    "뉴트리바이오틱스": ("뉴트리바이오틱스", "Nutribiotic"),
    "California Gold Nutrition": ("California Gold Nutrition", "CGN", "캘리포니아골드"),
    "스포츠리서치": ("스포츠리서치", "Sports Research"),
    "라이프익스텐션": ("라이프익스텐션", "Life Extension"),
    "유한건강생활": ("유한건강생활", "유한"),
    "경남제약": ("경남제약",),
    "한미양행": ("한미양행",),
})

# Over-the-counter medicines sold under their own product names.
OTC_BRANDS = _frozen({
    "타이레놀": ("타이레놀", "Tylenol", "타이레놀이알"),
    "게보린": ("게보린", "Gevorin"),
    "펜잘": ("펜잘", "Fenzal", "Fenzal Q"),
    "판피린": ("판피린", "Panpyrin"),
    "아스피린": ("아스피린", "Aspirin", "바이엘 아스피린"),
    "어린이타이레놀": ("어린이타이레놀", "어린이 타이레놀"),
    "부루펜": ("부루펜", "Brufen"),
    "이지엔6": ("이지엔6", "EaseN6", "이지엔"),
    "판콜": ("판콜", "Pancol"),
    "콜대원": ("콜대원",),
    "코푸시럽": ("코푸시럽", "코푸"),
    "베아제": ("베아제", "Beazyme"),
    "훼스탈": ("훼스탈", "Festal"),
    "닥터베아제": ("닥터베아제", "닥터 베아제"),
    "탈모논": ("탈모논",),
    "게보린쿨": ("게보린쿨", "게보린 쿨"),
    "애니펜": ("애니펜",),
    "어린이부루펜": ("어린이부루펜", "어린이 부루펜"),
    "훼라민큐": ("훼라민큐", "훼라민Q"),
    "삐콤씨": ("삐콤씨",),
    "비맥스": ("비맥스", "Bemax"),
    "센시아": ("센시아", "Sensia"),
    "벤포벨": ("벤포벨",),
    "케라시스": ("케라시스", "Kerasys"),
    "마데카솔": ("마데카솔", "Madecassol"),
    "후시딘": ("후시딘", "Fucidin"),
    "박트로반": ("박트로반", "Bactroban"),
    "듀오덤": ("듀오덤", "Duoderm"),
    "메디폼": ("메디폼", "Medifoam"),
    "이지엔6애니": ("이지엔6애니",),
    "그날엔": ("그날엔",),
    "탁센": ("탁센",),
})

BLACKLIST_KEYWORDS: tuple[str, ...] = (
    # narcotics
    "메스암페타민", "필로폰", "히로뽕", "대마초", "코카인", "헤로인", "엑스터시", "LSD", "MDMA",
    "펜타닐", "GHB", "케타민", "크랙", "아편", "모르핀", "옥시코돈", "펜터민",
    "methamphetamine", "cocaine", "heroin", "fentanyl",
    # diverted psychotropics
    "졸피뎀", "자낙스", "Xanax", "알프라졸람", "로라제팜", "클로나제팜", "리보트릴",
    # illegal diet pills
    "살빼는약", "마약다이어트", "비만약불법", "펜터민불법",
    # counterfeit medicine
    "가짜비아그라", "짝퉁", "위조의약품", "밀수", "counterfeit viagra",
    # outright scam claims
    "100%완치", "암완치", "HIV완치", "당뇨완치", "기적의약", "cures cancer",
    # product could not be found
    "제품을 찾을 수 없", "검색 결과 없", "No results found", "존재하지 않는 제품",
)

# Absolute-claim / illegality terms that gate the expression and efficacy steps.
RED_FLAG_TERMS: tuple[str, ...] = (
    "완치", "치료", "기적", "100%", "부작용 없음", "불법", "사기", "다단계", "피싱",
    "cures completely", "complete cure", "miracle", "no side effects", "illegal",
    "scam", "fraud", "pyramid scheme", "phishing",
)

# Trusted marketplaces recognised on seller/url/site-name lines.
TRUSTED_SELLERS: tuple[str, ...] = ("coupang", "smartstore", "naver", "amazon", "oliveyoung")

MAIN_INGREDIENT_KEYS: tuple[str, ...] = (
    "omega3", "vitamin_b", "vitamin_c", "vitamin_d", "vitamin_e", "collagen", "ginseng",
    "protein", "lutein", "magnesium", "zinc", "calcium", "probiotics", "milkthisle", "coq10",
)
TARGET_AUDIENCE_KEYS: tuple[str, ...] = ("kids", "women", "men", "senior", "pregnant")

AD_TYPES: tuple[str, ...] = ("product_itself", "brand_ad", "product_ad", "unknown")

SCORED_STEP_KEYS: tuple[str, ...] = (
    "step2_senderScore",
    "step3_productScore",
    "step4_expressionScore",
    "step5_efficacyScore",
    "step6_actionScore",
    "step7_visualScore",
    "step8_financialScore",
)

STEP_NAMES: Mapping[str, Mapping[str, tuple[str, ...]]] = MappingProxyType({
    "ko": MappingProxyType({
        "product_itself": (
            "제품 식별", "제조사 신뢰도 (30점)", "제품 신뢰도 (40점)", "공식 정보 검증 (10점)",
            "핵심 성분 분석 (15점)", "행동 유도 (N/A)", "시각적 신호 (N/A)", "금전 피해 (5점)",
        ),
        "brand_ad": (
            "광고 식별", "채널 신뢰도 (25점)", "브랜드 신뢰도 (15점)", "표현/내용 검증 (25점)",
            "효능/성분 위반 (10점)", "행동 유도 검증 (15점)", "시각적 신호 (5점)", "사기·금전 피해 (5점)",
        ),
        "product_ad": (
            "광고 식별", "발신자 신뢰도 (20점)", "제품 신뢰도 (30점)", "표현/내용 검증 (20점)",
            "효능/성분 위반 (20점)", "행동 유도 검증 (5점)", "시각적 신호 (3점)", "사기·금전 피해 (2점)",
        ),
        "unknown": (
            "콘텐츠 식별", "발신자 신뢰도 (20점)", "제품 신뢰도 (25점)", "표현/내용 검증 (20점)",
            "효능/성분 위반 (20점)", "행동 유도 검증 (8점)", "시각적 신호 (4점)", "사기·금전 피해 (3점)",
        ),
    }),
    "en": MappingProxyType({
        "product_itself": (
            "Product identification", "Manufacturer trust (30)", "Product trust (40)",
            "Official info check (10)", "Key ingredients (15)", "Call to action (N/A)",
            "Visual signals (N/A)", "Financial harm (5)",
        ),
        "brand_ad": (
            "Ad identification", "Channel trust (25)", "Brand trust (15)", "Claims check (25)",
            "Efficacy/ingredient violations (10)", "Call to action (15)", "Visual signals (5)",
            "Fraud/financial harm (5)",
        ),
        "product_ad": (
            "Ad identification", "Sender trust (20)", "Product trust (30)", "Claims check (20)",
            "Efficacy/ingredient violations (20)", "Call to action (5)", "Visual signals (3)",
            "Fraud/financial harm (2)",
        ),
        "unknown": (
            "Content identification", "Sender trust (20)", "Product trust (25)", "Claims check (20)",
            "Efficacy/ingredient violations (20)", "Call to action (8)", "Visual signals (4)",
            "Fraud/financial harm (3)",
        ),
    }),
})


def _steps(s2: int, s3: int, s4: int, s5: int, s6: int, s7: int, s8: int) -> Mapping[str, int]:
    return MappingProxyType(dict(zip(SCORED_STEP_KEYS, (s2, s3, s4, s5, s6, s7, s8))))


SCORE_CAPS: Mapping[str, Mapping[str, int]] = MappingProxyType({
    "product_itself": _steps(30, 40, 10, 15, 0, 0, 5),
    "brand_ad": _steps(25, 15, 25, 10, 15, 5, 5),
    "product_ad": _steps(20, 30, 20, 20, 5, 3, 2),
    "unknown": _steps(20, 25, 20, 20, 8, 4, 3),
})

# Floors per category and tier. BrandTier.UNKNOWN is the row used when only the
# official-channel or trusted-seller heuristic fired.
SCORE_FLOORS: Mapping[str, Mapping[BrandTier, Mapping[str, int]]] = MappingProxyType({
    "product_itself": MappingProxyType({
        BrandTier.TOP_CORP: _steps(29, 39, 10, 15, 0, 0, 5),
        BrandTier.OTC: _steps(28, 38, 10, 14, 0, 0, 5),
        BrandTier.KNOWN_MID: _steps(28, 37, 10, 14, 0, 0, 5),
        BrandTier.UNKNOWN: _steps(20, 30, 7, 12, 0, 0, 4),
    }),
    "brand_ad": MappingProxyType({
        BrandTier.TOP_CORP: _steps(24, 15, 24, 10, 15, 5, 5),
        BrandTier.OTC: _steps(23, 14, 23, 10, 15, 5, 5),
        BrandTier.KNOWN_MID: _steps(23, 14, 23, 10, 15, 5, 5),
        BrandTier.UNKNOWN: _steps(15, 10, 16, 8, 10, 3, 4),
    }),
    "product_ad": MappingProxyType({
        BrandTier.TOP_CORP: _steps(20, 30, 20, 20, 5, 3, 2),
        BrandTier.OTC: _steps(19, 29, 19, 19, 5, 3, 2),
        BrandTier.KNOWN_MID: _steps(19, 29, 19, 19, 5, 3, 2),
        BrandTier.UNKNOWN: _steps(12, 20, 15, 14, 3, 2, 1),
    }),
    "unknown": MappingProxyType({
        BrandTier.TOP_CORP: _steps(20, 25, 20, 20, 8, 4, 3),
        BrandTier.OTC: _steps(19, 24, 19, 19, 8, 4, 3),
        BrandTier.KNOWN_MID: _steps(19, 24, 19, 19, 8, 4, 3),
        BrandTier.UNKNOWN: _steps(10, 16, 14, 13, 5, 2, 1),
    }),
})


@dataclass(frozen=True)
class BrandTables:
    top_corp: AliasTable = field(default_factory=lambda: TOP_CORP_BRANDS)
    known_mid: AliasTable = field(default_factory=lambda: KNOWN_MID_BRANDS)
    otc: AliasTable = field(default_factory=lambda: OTC_BRANDS)


DEFAULT_BRAND_TABLES = BrandTables()
