"""
Gemini boundary: prompt construction, response schema, and the model call.
The model output is never trusted here; `scoring.normalize_output` handles it.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from .config import GEMINI_MODEL, gemini_api_key
from .tables import MAIN_INGREDIENT_KEYS, TARGET_AUDIENCE_KEYS

logger = logging.getLogger(__name__)


def _step_schema(first_field: str) -> dict[str, Any]:
    field_type = "STRING" if first_field == "result" else "INTEGER"
    return {
        "type": "OBJECT",
        "properties": {
            first_field: {"type": field_type},
            "reason": {"type": "STRING"},
            "evidence": {"type": "ARRAY", "items": {"type": "STRING"}},
        },
        "required": [first_field, "reason"],
    }


_STEP_FIELDS = (
    ("step1_identification", "result"),
    ("step2_senderScore", "score"),
    ("step3_productScore", "score"),
    ("step4_expressionScore", "score"),
    ("step5_efficacyScore", "score"),
    ("step6_actionScore", "score"),
    ("step7_visualScore", "score"),
    ("step8_financialScore", "score"),
)

ANALYSIS_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "productInfo": {"type": "STRING"},
        "productType": {"type": "STRING"},
        "totalScore": {"type": "INTEGER"},
        "overallSafety": {"type": "STRING"},
        "safetyReason": {"type": "STRING"},
        "precautions": {"type": "STRING"},
        "isMfdsRegistered": {"type": "BOOLEAN"},
        "isGmpCertified": {"type": "BOOLEAN"},
        "isOrganic": {"type": "BOOLEAN"},
        "mainIngredients": {"type": "ARRAY", "items": {"type": "STRING", "enum": list(MAIN_INGREDIENT_KEYS)}},
        "targetAudience": {"type": "ARRAY", "items": {"type": "STRING", "enum": list(TARGET_AUDIENCE_KEYS)}},
        "adType": {"type": "STRING", "enum": ["brand_ad", "product_ad", "product_itself", "unknown"]},
        "stepNames": {"type": "ARRAY", "items": {"type": "STRING"}},
        "analysisDetails": {
            "type": "OBJECT",
            "properties": {name: _step_schema(first) for name, first in _STEP_FIELDS},
            "required": [name for name, _ in _STEP_FIELDS],
        },
    },
    "required": [
        "productInfo", "productType", "totalScore", "overallSafety", "safetyReason",
        "analysisDetails", "precautions", "isMfdsRegistered", "isGmpCertified", "isOrganic",
        "mainIngredients", "targetAudience", "adType", "stepNames",
    ],
}


_INGREDIENTS = ", ".join(f"'{k}'" for k in MAIN_INGREDIENT_KEYS)
_AUDIENCES = ", ".join(f"'{k}'" for k in TARGET_AUDIENCE_KEYS)


def _base_prompt_ko(user_input: str) -> str:
    return f"""
당신은 한국의 건강기능식품/의약품 광고 신뢰도 평가 AI(약손)입니다.
입력: "{user_input}"
규칙:
- JSON만 출력합니다.
- 각 step.evidence에는 SOURCE_TEXT의 **직접 문자열**을 넣으세요(없으면 0점 가능).
- 레드플래그(완치/치료/100%/기적/불법/사기/다단계/피싱 등)는 강한 감점.
- 점수 상한: S2 15, S3 25, S4 20, S5 20, S6 10, S7 5, S8 5. (유형별로 다름)
- 총점 등급: 80~100 안전 / 50~79 주의 / 0~49 위험.
- [뱃지 규칙] 뱃지 필드(isMfdsRegistered, isGmpCertified, isOrganic, mainIngredients, targetAudience)를 반드시 채우세요.
- [뱃지 규칙] mainIngredients: 반드시 다음 **영어 키** 리스트에서만 선택. (예: "활성형 비타민 B1" -> ["vitamin_b"]) [{_INGREDIENTS}]
- [뱃지 규칙] targetAudience: 반드시 다음 **영어 키** 리스트에서만 선택. (예: "어린이" -> ["kids"]) [{_AUDIENCES}]
- [항목명 규칙] "stepNames": 8개 항목의 표시 이름을 배열로 제공해야 합니다. (아래 제공된 stepNames 사용)
"""


def _base_prompt_en(user_input: str) -> str:
    return f"""
You are Yakson, an AI that rates the trustworthiness of health supplement and medicine ads.
Input: "{user_input}"
Rules:
- Output JSON only.
- Each step.evidence must quote strings taken directly from SOURCE_TEXT (score 0 if there are none).
- Red flags (cures, treatment claims, 100%, miracle, illegal, fraud, pyramid scheme, phishing) are heavy deductions.
- Total score bands: 80-100 Safe / 50-79 Caution / 0-49 Risk.
- Fill every badge field (isMfdsRegistered, isGmpCertified, isOrganic, mainIngredients, targetAudience).
- mainIngredients must only use these keys: [{_INGREDIENTS}]
- targetAudience must only use these keys: [{_AUDIENCES}]
- "stepNames" must be the 8 labels provided below.
"""


PROMPTS: dict[str, dict[str, str]] = {
    "ko": {
        "video": "유튜브 입력입니다. 아래 SOURCE_TEXT만 사용하세요. 외부 지식/추측 금지.",
        "commerce": "커머스 입력입니다. 아래 SOURCE_TEXT만 사용하세요. 외부 지식/추측 금지.",
        "brand_ad": "분석유형: 브랜드 광고.",
        "product_ad": "분석유형: 제품 광고.",
        "product_name": (
            "[작업] 제품명만 입력되었습니다. Google Search 도구를 사용하여 이 제품의 공식 정보를 찾으세요.\n"
            "[분석] 검색된 공식 정보(제조사, 식약처 인증, 성분, GMP, 유기농 여부)를 바탕으로 8단계 분석을 모두 수행하세요.\n"
            "[규칙] 광고가 아닌 제품 *자체*의 신뢰도를 분석합니다.\n"
            "[규칙] S6(행동유도), S7(시각신호) 점수는 0점으로 하고 \"제품명 검색으로 분석 항목 아님\"으로 사유를 기재하세요.\n"
            "[필수] 모든 뱃지 필드를 검색 결과에 따라 채우세요."
        ),
    },
    "en": {
        "video": "YouTube input. Use only the SOURCE_TEXT below; no outside knowledge or guessing.",
        "commerce": "Commerce input. Use only the SOURCE_TEXT below; no outside knowledge or guessing.",
        "brand_ad": "Analysis type: brand ad.",
        "product_ad": "Analysis type: product ad.",
        "product_name": (
            "Only a product name was given. Use Google Search to find the official product information "
            "and perform all 8 steps. Rate the product itself, not an ad. Set S6 and S7 scores to 0 "
            "(not applicable for a product-name search). Fill all badge fields."
        ),
    },
}


@dataclass(frozen=True)
class PromptBundle:
    system: str
    user: str
    use_search: bool


def _prompts(lang: str) -> dict[str, str]:
    return PROMPTS["en"] if lang == "en" else PROMPTS["ko"]


def _base(lang: str, user_input: str) -> str:
    return _base_prompt_en(user_input) if lang == "en" else _base_prompt_ko(user_input)


def _meta_line(ad_type: str, step_names: list[str]) -> str:
    return f'[adType: "{ad_type}", stepNames: {json.dumps(step_names, ensure_ascii=False)}]'


def build_video_prompts(user_input: str, source: str, ad_type: str, step_names: list[str], lang: str) -> PromptBundle:
    p = _prompts(lang)
    system = "\n".join([_base(lang, user_input), p.get(ad_type, ""), p["video"]])
    if lang == "en":
        tail = (
            '- Include the video title and channel in "productInfo".\n'
            "- Include the adType and stepNames above in the JSON and apply the per-type criteria and badge rules."
        )
    else:
        tail = (
            '- "productInfo" 필드에 영상 제목/채널 포함.\n'
            "- 위 adType과 stepNames를 JSON에 포함시키고, 광고 유형별 평가 기준과 뱃지/항목명 규칙을 적용하여 분석하세요."
        )
    user = f"""
[SOURCE_TEXT]
{source}
[/SOURCE_TEXT]
{"Requirements" if lang == "en" else "요구사항"}:
- {_meta_line(ad_type, step_names)}
{tail}
"""
    return PromptBundle(system=system, user=user, use_search=False)


def build_commerce_prompts(user_input: str, source: str, step_names: list[str], lang: str) -> PromptBundle:
    p = _prompts(lang)
    system = "\n".join([_base(lang, user_input), p["commerce"], p["product_ad"]])
    is_coupang = "coupang.com" in user_input.lower()
    if lang == "en":
        hint = (
            "This URL is rendered client-side, so PRODUCT_NAME is probably missing. Do not rely on the hint: "
            "search the URL below with Google Search to find the exact product name."
            if is_coupang
            else "If PRODUCT_NAME is missing or unclear in SOURCE_TEXT_HINT, use Google Search."
        )
        user = f"""
[CRITICAL INSTRUCTION]
{hint}
1. Check whether PRODUCT_NAME in SOURCE_TEXT_HINT is empty or unclear.
2. If it is, search this URL with Google Search: {user_input}
3. Put the exact product name in "productInfo" and "step1_identification.result".

[SOURCE_TEXT_HINT]
{source}
[/SOURCE_TEXT_HINT]

Additional requirements:
- {_meta_line("product_ad", step_names)}
- Evaluate as a product ad and apply all badge/label rules.
- If nothing can be found, fill in "Product needs verification: {user_input}".
"""
    else:
        hint = (
            "[쿠팡 링크 경고] 이 URL은 JavaScript로 렌더링되므로 SOURCE_TEXT_HINT에 제품명이 비어있을 가능성이 높습니다. "
            "SOURCE_TEXT_HINT만 믿지 말고 아래 URL을 Google Search로 반드시 검색하여 정확한 제품명을 찾으세요."
            if is_coupang
            else "SOURCE_TEXT_HINT에 제품명이 없거나 불명확하면, Google Search를 사용하세요."
        )
        user = f"""
[CRITICAL INSTRUCTION - 최우선 작업]
{hint}
1단계: 아래 SOURCE_TEXT_HINT의 "PRODUCT_NAME" 필드가 비어있거나 불명확한지 체크하세요.
2단계: 비어있거나 "쇼핑 페이지"만 있다면 다음 URL을 Google Search 도구로 반드시 검색하세요: {user_input}
3단계: 찾은 정확한 제품명을 "productInfo"와 "step1_identification.result" 필드에 입력하세요.

[SOURCE_TEXT_HINT - 참고용]
{source}
[/SOURCE_TEXT_HINT]

추가 요구사항:
- {_meta_line("product_ad", step_names)}
- 위 adType과 stepNames를 JSON에 포함시키고, 제품 광고 기준으로 평가하고 모든 뱃지/항목명 규칙을 적용하세요.
- 검색 결과가 없거나 불확실하면 "제품 확인 필요: {user_input}" 형태로라도 채우세요.
"""
    return PromptBundle(system=system, user=user, use_search=True)


def build_product_name_prompts(user_input: str, step_names: list[str], lang: str) -> PromptBundle:
    p = _prompts(lang)
    system = "\n".join([_base(lang, user_input), p["product_name"]])
    if lang == "en":
        user = f'Product Name: "{user_input}". Search for this product and perform the full 8-step analysis.'
    else:
        user = f'제품명: "{user_input}". 이 제품을 Google Search로 검색하고 8단계 분석을 완료하세요.'
    user += "\n" + _meta_line("product_itself", step_names)
    return PromptBundle(system=system, user=user, use_search=True)


def build_freeform_prompts(user_input: str, step_names: list[str], lang: str) -> PromptBundle:
    user = f"User input: {user_input}" if lang == "en" else f"사용자 입력: {user_input}"
    user += "\n" + _meta_line("unknown", step_names)
    return PromptBundle(system=_base(lang, user_input), user=user, use_search=True)


def error_candidate(user_input: str, lang: str, reason: str | None = None) -> dict[str, Any]:
    """Stand-in candidate used when the model returns nothing usable."""
    en = lang == "en"
    return {
        "productInfo": user_input,
        "productType": "Error" if en else "오류",
        "totalScore": 0,
        "overallSafety": "Risk" if en else "위험",
        "safetyReason": reason or ("Model returned non-JSON." if en else "모델이 JSON을 반환하지 않음."),
        "precautions": "Use with caution." if en else "복용에 주의하십시오.",
        "analysisDetails": {},
    }


def parse_model_text(text: str | None) -> dict[str, Any] | None:
    text = (text or "").strip()
    if not text:
        return None
    # Strip markdown fences.
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    text = text.strip()
    try:
        parsed = json.loads(text)
    except ValueError:
        # Grounded answers sometimes wrap the object in prose.
        m = re.search(r"\{.*\}", text, flags=re.DOTALL)
        try:
            parsed = json.loads(m.group(0)) if m else None
        except ValueError:
            parsed = None
    if not isinstance(parsed, dict):
        logger.error("Model returned non-JSON: %.200s", text)
        return None
    return parsed


async def generate(prompts: PromptBundle, timeout: float = 60.0) -> dict[str, Any] | None:
    """Call Gemini via the official google-genai SDK and parse the JSON response."""
    api_key = gemini_api_key()
    if not api_key:
        logger.error("GEMINI_API_KEY is not set")
        return None

    try:
        from google import genai
        from google.genai import types
    except ImportError as e:
        logger.error("google-genai not available: %s", e)
        return None

    try:
        client = genai.Client(api_key=api_key, http_options=types.HttpOptions(timeout=int(timeout * 1000)))

        # Search grounding cannot be combined with a response schema, so the
        # schema is only enforced on tool-less calls; the prompt carries the shape otherwise.
        if prompts.use_search:
            config = types.GenerateContentConfig(
                system_instruction=prompts.system,
                tools=[types.Tool(google_search=types.GoogleSearch())],
                temperature=0.2,
            )
        else:
            config = types.GenerateContentConfig(
                system_instruction=prompts.system,
                response_mime_type="application/json",
                response_schema=ANALYSIS_RESPONSE_SCHEMA,
                temperature=0.2,
            )

        resp = await client.aio.models.generate_content(
            model=GEMINI_MODEL,
            contents=[types.Content(role="user", parts=[types.Part.from_text(text=prompts.user)])],
            config=config,
        )
    except Exception as e:
        logger.error("Gemini call failed: %s", e)
        return None

    return parse_model_text(getattr(resp, "text", None))
