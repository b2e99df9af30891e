from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable

import httpx

from .ai_judge import (
    PromptBundle,
    build_commerce_prompts,
    build_freeform_prompts,
    build_product_name_prompts,
    build_video_prompts,
    error_candidate,
    generate,
)
from .brands import DEFAULT_RESOLVER, BrandResolver
from .classifier import InputKind, classify_input, classify_video_ad_context
from .extractors import extract_commerce_context, extract_video_context
from .models import AnalysisResult, CommerceContext, VideoContext
from .scoring import default_step_names, normalize_output

logger = logging.getLogger(__name__)

Generator = Callable[[PromptBundle], Awaitable[dict[str, Any] | None]]

_SHOPPING_PAGE = {"ko": "쇼핑 페이지", "en": "Shopping Page"}
_VIDEO = {"ko": "YouTube 영상", "en": "YouTube Video"}


def _post_fill_product_name(
    product_name: str,
    kind: InputKind,
    ctx: VideoContext | CommerceContext | None,
    user_input: str,
    lang: str,
) -> str:
    if kind is InputKind.VIDEO and isinstance(ctx, VideoContext):
        if not product_name:
            return f"{ctx.title or _VIDEO.get(lang, _VIDEO['ko'])} (by {ctx.author or 'unknown'})"
    elif kind is InputKind.COMMERCE and isinstance(ctx, CommerceContext):
        generic = not product_name or any(g in product_name for g in _SHOPPING_PAGE.values())
        if generic:
            return ctx.product_name or _SHOPPING_PAGE.get(lang, _SHOPPING_PAGE["ko"])
    elif kind is InputKind.PRODUCT_NAME:
        if not product_name:
            return user_input
    return product_name


async def analyze(
    user_input: str,
    lang: str = "ko",
    *,
    client: httpx.AsyncClient | None = None,
    generate_fn: Generator = generate,
    resolver: BrandResolver = DEFAULT_RESOLVER,
) -> AnalysisResult:
    """Classify the input, gather evidence, ask the model, and normalize its answer."""
    t0 = time.perf_counter()
    kind = classify_input(user_input)
    ctx: VideoContext | CommerceContext | None = None
    source = ""

    if kind is InputKind.VIDEO:
        ctx = await extract_video_context(user_input, lang, client=client)
        source = ctx.source
        ad_type = classify_video_ad_context(ctx.title, ctx.description)
        prompts = build_video_prompts(user_input, source, ad_type, default_step_names(ad_type, lang), lang)
    elif kind is InputKind.COMMERCE:
        ctx = await extract_commerce_context(user_input, lang, client=client)
        source = ctx.source
        ad_type = "product_ad"
        prompts = build_commerce_prompts(user_input, source, default_step_names(ad_type, lang), lang)
    elif kind is InputKind.PRODUCT_NAME:
        ad_type = "product_itself"
        prompts = build_product_name_prompts(user_input, default_step_names(ad_type, lang), lang)
    else:
        ad_type = "unknown"
        prompts = build_freeform_prompts(user_input, default_step_names(ad_type, lang), lang)

    t_extract = time.perf_counter()
    raw = await generate_fn(prompts)
    if raw is None:
        raw = error_candidate(user_input, lang)

    result = normalize_output(raw, lang, source, ad_type, resolver=resolver)

    product_name = _post_fill_product_name(result.product_info, kind, ctx, user_input, lang)
    canon = resolver.canonicalize(source or product_name)
    if canon and canon.lower() not in product_name.lower():
        product_name = f"{canon} | {product_name}"

    logger.info(
        "analyzed kind=%s ad_type=%s score=%d extract_ms=%d total_ms=%d",
        kind.value,
        ad_type,
        result.total_score,
        int((t_extract - t0) * 1000),
        int((time.perf_counter() - t0) * 1000),
    )
    return result.model_copy(update={"product_info": product_name})
