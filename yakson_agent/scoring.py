"""Post-processing of raw model output into a bounded, deterministic result.

The model's JSON is untrusted: fields go missing, scores overshoot their
category bounds, and labels drift. `normalize_output` turns any candidate
(including non-dicts) into a fully populated `AnalysisResult`.

Order of operations is fixed:

1. blacklist short-circuit
2. field coercion (with evidence fallback)
3. red-flag gate on expression/efficacy
4. trust flag detection
5. per-category, per-tier floors
6. per-category caps
7. total + safety label
8. product name fallback to the identification result

The gate runs before the floors, so a trusted brand can lift a gated score
back up; caps run after the floors, so every step ends within its cap.
"""
from __future__ import annotations

import math
import re
from typing import Any

from .brands import DEFAULT_BLACKLIST, DEFAULT_RESOLVER, BlacklistFilter, BrandResolver, TrustFlags
from .models import AnalysisDetails, AnalysisResult, IdentificationStep, StepResult
from .tables import (
    AD_TYPES,
    MAIN_INGREDIENT_KEYS,
    RED_FLAG_TERMS,
    SCORE_CAPS,
    SCORE_FLOORS,
    SCORED_STEP_KEYS,
    STEP_NAMES,
    TARGET_AUDIENCE_KEYS,
    BrandTier,
)

MAX_EVIDENCE = 3

_FALLBACK_LINE_RE = re.compile(r"^(channel|url|product_name|seller|brand|title|description)", re.IGNORECASE)
_RED_FLAG_RE = re.compile("|".join(re.escape(t.lower()) for t in RED_FLAG_TERMS))

_TEXT = {
    "ko": {
        "safe": "안전",
        "caution": "주의",
        "risk": "위험",
        "unidentified": "식별 불가",
        "precautions": "복용에 주의하십시오.",
        "blocked_product": "위험 제품",
        "blocked_type": "위험 물질 감지",
        "blocked_reason": "이 제품은 위험 물질 또는 불법 제품으로 판단되었습니다. (키워드: {keyword})",
        "blocked_precautions": "절대 구매하거나 복용하지 마세요. 불법 의약품일 가능성이 있습니다.",
        "blocked_step1": "블랙리스트 키워드 감지",
        "blocked_step": "위험 물질로 판정",
        "floor_reason": "{label}({brand})으로 최소 신뢰 점수가 적용되었습니다.",
        "confirmed": "확인됨",
        "zero_marker": "0점",
        "tier_top_corp": "대기업",
        "tier_otc": "일반의약품 (OTC)",
        "tier_known_mid": "유명 브랜드",
        "tier_official": "공식 채널",
        "tier_generic": "일반",
    },
    "en": {
        "safe": "Safe",
        "caution": "Caution",
        "risk": "Risk",
        "unidentified": "Unidentified",
        "precautions": "Use with caution.",
        "blocked_product": "Dangerous product",
        "blocked_type": "Prohibited substance detected",
        "blocked_reason": "This product was judged to be a dangerous or illegal product. (keyword: {keyword})",
        "blocked_precautions": "Do not buy or take this product. It may be an illegal drug.",
        "blocked_step1": "Blacklisted keyword detected",
        "blocked_step": "Judged as a prohibited substance",
        "floor_reason": "Minimum trust score applied for {label} ({brand}).",
        "confirmed": "verified",
        "zero_marker": "0 points",
        "tier_top_corp": "major corporation",
        "tier_otc": "OTC medicine",
        "tier_known_mid": "known brand",
        "tier_official": "official channel",
        "tier_generic": "general",
    },
}


def _t(lang: str) -> dict[str, str]:
    return _TEXT["en"] if lang == "en" else _TEXT["ko"]


def clamp(value: Any, lo: int, hi: int) -> int:
    try:
        n = float(value or 0)
    except OverflowError:
        n = math.inf if value > 0 else -math.inf
    except (TypeError, ValueError):
        n = 0.0
    if math.isnan(n):
        n = 0.0
    return int(max(lo, min(hi, n)))


def as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        out: list[str] = []
        for item in value:
            if item is None:
                continue
            s = str(item).strip()
            if s:
                out.append(s)
        return out
    s = str(value).strip()
    return [s] if s else []


def fallback_evidence(source_text: str) -> list[str]:
    lines = (source_text or "").split("\n")
    return [line for line in lines if _FALLBACK_LINE_RE.match(line)][:MAX_EVIDENCE]


def resolve_ad_type(ad_type: str | None, raw: dict[str, Any]) -> str:
    candidate = ad_type or raw.get("adType") or "unknown"
    return candidate if candidate in AD_TYPES else "unknown"


def default_step_names(ad_type: str, lang: str) -> list[str]:
    names = STEP_NAMES["en" if lang == "en" else "ko"]
    return list(names.get(ad_type) or names["unknown"])


def safety_label(total: int, lang: str) -> str:
    text = _t(lang)
    if total >= 80:
        return text["safe"]
    if total >= 50:
        return text["caution"]
    return text["risk"]


def _ensure_step(obj: Any, fallback: list[str] | None = None) -> StepResult:
    data = obj if isinstance(obj, dict) else {}
    evidence = as_str_list(data.get("evidence"))
    if not evidence and fallback:
        evidence = list(fallback)
    return StepResult(
        score=clamp(data.get("score"), 0, 100),
        reason=str(data.get("reason") or ""),
        evidence=evidence[:MAX_EVIDENCE],
    )


def _ensure_identification(obj: Any, product_info: str) -> IdentificationStep:
    data = obj if isinstance(obj, dict) else {}
    return IdentificationStep(
        result=str(data.get("result") or product_info or ""),
        reason=str(data.get("reason") or ""),
        evidence=as_str_list(data.get("evidence"))[:MAX_EVIDENCE],
    )


def _filter_keys(value: Any, allowed: tuple[str, ...]) -> list[str]:
    seen: list[str] = []
    for item in as_str_list(value):
        if item in allowed and item not in seen:
            seen.append(item)
    return seen


def blacklisted_result(raw: dict[str, Any], keyword: str, ad_type: str, lang: str) -> AnalysisResult:
    text = _t(lang)
    blocked = StepResult(score=0, reason=text["blocked_step"], evidence=[])
    details = AnalysisDetails(
        step1_identification=IdentificationStep(
            result=text["blocked_product"], reason=text["blocked_step1"], evidence=[keyword]
        ),
        **{key: blocked.model_copy(deep=True) for key in SCORED_STEP_KEYS},
    )
    return AnalysisResult(
        product_info=str(raw.get("productInfo") or text["blocked_product"]),
        product_type=text["blocked_type"],
        total_score=0,
        overall_safety=text["risk"],
        safety_reason=text["blocked_reason"].format(keyword=keyword),
        precautions=text["blocked_precautions"],
        analysis_details=details,
        ad_type=ad_type,
        step_names=default_step_names(ad_type, lang),
    )


def apply_red_flag_gate(details: AnalysisDetails) -> bool:
    """Cap expression and efficacy at 2 when reasons/evidence contain red-flag terms."""
    text = " ".join(
        f"{step.reason} {' '.join(step.evidence)}" for step in details.scored_steps()
    ).lower()
    if not _RED_FLAG_RE.search(text):
        return False
    details.step4_expressionScore.score = min(details.step4_expressionScore.score, 2)
    details.step5_efficacyScore.score = min(details.step5_efficacyScore.score, 2)
    return True


def _tier_label(flags: TrustFlags, lang: str) -> str:
    text = _t(lang)
    if flags.is_major_corp:
        return text["tier_top_corp"]
    if flags.is_otc:
        return text["tier_otc"]
    if flags.is_known_brand:
        return text["tier_known_mid"]
    if flags.is_official_channel:
        return text["tier_official"]
    return text["tier_generic"]


def apply_trust_floors(
    details: AnalysisDetails,
    flags: TrustFlags,
    ad_type: str,
    source_text: str,
    lang: str = "ko",
) -> bool:
    """Raise step scores to the category/tier floor when any trust signal fired.

    For `product_itself`, call-to-action and visual steps are set to 0 instead.
    Returns whether floors were applied.
    """
    if not flags.floors_apply:
        return False

    floors = SCORE_FLOORS.get(ad_type, SCORE_FLOORS["unknown"])[flags.tier]
    for key in SCORED_STEP_KEYS:
        step: StepResult = getattr(details, key)
        if ad_type == "product_itself" and key in ("step6_actionScore", "step7_visualScore"):
            step.score = 0
        else:
            step.score = max(step.score, floors[key])

    text = _t(lang)
    fallback = fallback_evidence(source_text)
    for step in (details.step2_senderScore, details.step3_productScore):
        if not step.evidence and fallback:
            step.evidence = list(fallback)
        if not step.reason or text["zero_marker"] in step.reason:
            step.reason = text["floor_reason"].format(
                label=_tier_label(flags, lang), brand=flags.brand or text["confirmed"]
            )
    return True


def apply_caps(details: AnalysisDetails, ad_type: str) -> None:
    caps = SCORE_CAPS.get(ad_type, SCORE_CAPS["unknown"])
    for key in SCORED_STEP_KEYS:
        step: StepResult = getattr(details, key)
        step.score = clamp(step.score, 0, caps[key])


def normalize_output(
    raw: Any,
    lang: str = "ko",
    source_text: str = "",
    ad_type: str | None = "unknown",
    *,
    resolver: BrandResolver = DEFAULT_RESOLVER,
    blacklist: BlacklistFilter = DEFAULT_BLACKLIST,
) -> AnalysisResult:
    """Normalize an untrusted model candidate. Never raises on malformed input."""
    candidate: dict[str, Any] = raw if isinstance(raw, dict) else {}
    text = _t(lang)
    final_ad_type = resolve_ad_type(ad_type, candidate)
    product_info = str(candidate.get("productInfo") or "")

    keyword = blacklist.match(f"{source_text or ''} {product_info}")
    if keyword:
        return blacklisted_result(candidate, keyword, final_ad_type, lang)

    raw_details = candidate.get("analysisDetails")
    d: dict[str, Any] = raw_details if isinstance(raw_details, dict) else {}
    fallback = fallback_evidence(source_text)

    details = AnalysisDetails(
        step1_identification=_ensure_identification(d.get("step1_identification"), product_info),
        step2_senderScore=_ensure_step(d.get("step2_senderScore"), fallback),
        step3_productScore=_ensure_step(d.get("step3_productScore"), fallback),
        step4_expressionScore=_ensure_step(d.get("step4_expressionScore")),
        step5_efficacyScore=_ensure_step(d.get("step5_efficacyScore")),
        step6_actionScore=_ensure_step(d.get("step6_actionScore")),
        step7_visualScore=_ensure_step(d.get("step7_visualScore")),
        step8_financialScore=_ensure_step(d.get("step8_financialScore")),
    )

    apply_red_flag_gate(details)

    flags = resolver.detect_trust_flags(source_text or product_info)
    apply_trust_floors(details, flags, final_ad_type, source_text, lang)
    apply_caps(details, final_ad_type)

    total = clamp(sum(step.score for step in details.scored_steps()), 0, 100)

    step_names = as_str_list(candidate.get("stepNames"))
    if len(step_names) != 8:
        step_names = default_step_names(final_ad_type, lang)

    return AnalysisResult(
        product_info=product_info or details.step1_identification.result,
        product_type=str(candidate.get("productType") or text["unidentified"]),
        total_score=total,
        overall_safety=safety_label(total, lang),
        safety_reason=str(candidate.get("safetyReason") or ""),
        precautions=str(candidate.get("precautions") or text["precautions"]),
        analysis_details=details,
        is_mfds_registered=candidate.get("isMfdsRegistered") is True,
        is_gmp_certified=candidate.get("isGmpCertified") is True,
        is_organic=candidate.get("isOrganic") is True,
        main_ingredients=_filter_keys(candidate.get("mainIngredients"), MAIN_INGREDIENT_KEYS),
        target_audience=_filter_keys(candidate.get("targetAudience"), TARGET_AUDIENCE_KEYS),
        ad_type=final_ad_type,
        step_names=step_names,
        is_major_corp=flags.is_major_corp,
        is_known_brand=flags.is_known_brand,
        is_otc=flags.is_otc,
    )
