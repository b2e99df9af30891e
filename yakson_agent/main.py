from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from the repo root .env (so GEMINI_API_KEY works in local dev)
_HERE = Path(__file__).resolve()
_PROJECT_ROOT = _HERE.parents[1]
load_dotenv(_PROJECT_ROOT / ".env", override=False)

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402

from .analyzer import analyze  # noqa: E402
from .brands import DEFAULT_BLACKLIST, DEFAULT_RESOLVER  # noqa: E402
from .config import LOG_LEVEL, cors_allow_origins, gemini_api_key  # noqa: E402
from .models import AnalysisResult, AnalyzeRequest  # noqa: E402
from .scoring import normalize_output  # noqa: E402

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

_MISSING_INPUT = {
    "ko": "제품명 또는 구매 링크를 입력해주세요.",
    "en": "Please enter product name or link.",
}


def resolve_lang(body_lang: str | None, header_lang: str | None, accept_language: str | None) -> str:
    body = (body_lang or "").strip().lower()
    head = (header_lang or "").strip().lower()
    if body == "en" or head.startswith("en"):
        return "en"
    if body == "ko" or head.startswith("ko"):
        return "ko"
    return "en" if "en" in (accept_language or "").lower() else "ko"


@asynccontextmanager
async def lifespan(app: FastAPI):
    tables = DEFAULT_RESOLVER.tables
    logger.info(
        "Yakson agent ready: %d top-tier brands, %d OTC medicines, %d known brands, %d blacklist keywords, API key %s",
        len(tables.top_corp),
        len(tables.otc),
        len(tables.known_mid),
        len(DEFAULT_BLACKLIST.keywords),
        "loaded" if gemini_api_key() else "missing",
    )
    yield


app = FastAPI(title="Yakson Trust Agent", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allow_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.post("/api/analyze", response_model=AnalysisResult)
async def analyze_endpoint(request: Request, req: AnalyzeRequest | None = None):
    req = req or AnalyzeRequest()
    lang = resolve_lang(req.lang, request.headers.get("x-yakson-lang"), request.headers.get("accept-language"))
    user_input = (req.product_info or "").strip()
    if not user_input:
        return JSONResponse(status_code=400, content={"error": _MISSING_INPUT[lang]})

    try:
        return await analyze(user_input, lang)
    except Exception as e:
        logger.exception("Analysis failed for %r", user_input)
        en = lang == "en"
        fallback = normalize_output(
            {
                "productInfo": user_input,
                "productType": "Error" if en else "오류 발생",
                "safetyReason": f"Internal server error. ({e})" if en else f"서버 내부 오류({e})",
                "analysisDetails": {},
            },
            lang,
            "",
            "unknown",
        )
        return JSONResponse(status_code=500, content=fallback.model_dump(by_alias=True))
