import json

import httpx
import pytest

from yakson_agent.analyzer import analyze
from yakson_agent.tables import SCORED_STEP_KEYS


class FakeGenerator:
    """Records the prompts it receives and returns a canned candidate."""

    def __init__(self, candidate):
        self.candidate = candidate
        self.calls = []

    async def __call__(self, prompts):
        self.calls.append(prompts)
        return self.candidate


def _candidate(product_info="", score=0):
    details = {key: {"score": score, "reason": "", "evidence": []} for key in SCORED_STEP_KEYS}
    details["step1_identification"] = {"result": product_info, "reason": "", "evidence": []}
    return {"productInfo": product_info, "productType": "건강기능식품", "analysisDetails": details}


def _coupang_page():
    ld = {"@type": "Product", "name": "락토핏 골드 50포", "brand": {"name": "종근당건강"}}
    return (
        f'<script type="application/ld+json">{json.dumps(ld, ensure_ascii=False)}</script>'
        + "<p>" + "x" * 600 + "</p>"
    )


@pytest.mark.asyncio
async def test_commerce_link_is_scored_as_product_ad(mock_client):
    gen = FakeGenerator(_candidate("락토핏 골드"))

    def handler(request):
        return httpx.Response(200, text=_coupang_page())

    async with mock_client(handler) as client:
        result = await analyze(
            "https://www.coupang.com/vp/products/123?itemId=1", "ko", client=client, generate_fn=gen
        )

    prompts = gen.calls[0]
    assert prompts.use_search
    assert "BRAND: 종근당건강" in prompts.user

    assert result.ad_type == "product_ad"
    assert result.is_major_corp
    assert result.total_score == 100
    assert result.product_info == "종근당 | 락토핏 골드"


@pytest.mark.asyncio
async def test_generic_commerce_name_replaced_by_extracted_name(mock_client):
    gen = FakeGenerator(_candidate("쇼핑 페이지"))

    def handler(request):
        return httpx.Response(200, text=_coupang_page())

    async with mock_client(handler) as client:
        result = await analyze("https://www.coupang.com/vp/products/7", "ko", client=client, generate_fn=gen)

    assert result.product_info == "종근당 | 락토핏 골드 50포"


@pytest.mark.asyncio
async def test_video_input_uses_source_only_prompt(mock_client):
    gen = FakeGenerator(_candidate(""))

    def handler(request):
        if request.url.path == "/oembed":
            return httpx.Response(200, json={"title": "비타민C 1000mg 리뷰", "author_name": "HealthTube"})
        return httpx.Response(404)

    async with mock_client(handler) as client:
        result = await analyze("https://www.youtube.com/watch?v=abc", "ko", client=client, generate_fn=gen)

    assert not gen.calls[0].use_search
    assert result.ad_type == "product_ad"
    assert result.product_info == "비타민C 1000mg 리뷰 (by HealthTube)"
    assert result.analysis_details.step2_senderScore.evidence[0] == "TITLE: 비타민C 1000mg 리뷰"


@pytest.mark.asyncio
async def test_product_name_without_model_name_keeps_user_input():
    gen = FakeGenerator(_candidate("", score=5))
    result = await analyze("Centrum Silver", "en", generate_fn=gen)

    assert result.ad_type == "product_itself"
    assert result.step_names[0] == "Product identification"
    assert result.product_info == "센트룸 | Centrum Silver"


@pytest.mark.asyncio
async def test_model_failure_becomes_error_result():
    gen = FakeGenerator(None)
    text = "see www.example.org for this pill"
    result = await analyze(text, "en", generate_fn=gen)

    assert gen.calls[0].use_search
    assert result.ad_type == "unknown"
    assert result.total_score == 0
    assert result.overall_safety == "Risk"
    assert result.product_type == "Error"
    assert result.product_info == text
