from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AdType = Literal["product_itself", "brand_ad", "product_ad", "unknown"]
Lang = Literal["ko", "en"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyzeRequest(CamelModel):
    product_info: str | None = None
    lang: str | None = None


# Evidence bundles are immutable once built; they live in EXTRACT_CACHE.


class EvidenceBundle(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    source: str = ""


class VideoContext(EvidenceBundle):
    title: str = ""
    author: str = ""
    description: str = ""


class CommerceContext(EvidenceBundle):
    product_name: str = ""
    brand: str = ""
    manufacturer: str = ""
    seller: str = ""
    sku: str = ""
    category: str = ""
    description: str = ""


class StepResult(BaseModel):
    score: int = 0
    reason: str = ""
    evidence: list[str] = Field(default_factory=list)


class IdentificationStep(BaseModel):
    result: str = ""
    reason: str = ""
    evidence: list[str] = Field(default_factory=list)


class AnalysisDetails(BaseModel):
    step1_identification: IdentificationStep = Field(default_factory=IdentificationStep)
    step2_senderScore: StepResult = Field(default_factory=StepResult)
    step3_productScore: StepResult = Field(default_factory=StepResult)
    step4_expressionScore: StepResult = Field(default_factory=StepResult)
    step5_efficacyScore: StepResult = Field(default_factory=StepResult)
    step6_actionScore: StepResult = Field(default_factory=StepResult)
    step7_visualScore: StepResult = Field(default_factory=StepResult)
    step8_financialScore: StepResult = Field(default_factory=StepResult)

    def scored_steps(self) -> list[StepResult]:
        return [
            self.step2_senderScore,
            self.step3_productScore,
            self.step4_expressionScore,
            self.step5_efficacyScore,
            self.step6_actionScore,
            self.step7_visualScore,
            self.step8_financialScore,
        ]


class AnalysisResult(CamelModel):
    product_info: str = ""
    product_type: str = ""
    total_score: int = 0
    overall_safety: str = ""
    safety_reason: str = ""
    precautions: str = ""
    analysis_details: AnalysisDetails = Field(default_factory=AnalysisDetails)

    # badges
    is_mfds_registered: bool = False
    is_gmp_certified: bool = False
    is_organic: bool = False
    main_ingredients: list[str] = Field(default_factory=list)
    target_audience: list[str] = Field(default_factory=list)

    ad_type: AdType = "unknown"
    step_names: list[str] = Field(default_factory=list)

    # trust tier flags
    is_major_corp: bool = False
    is_known_brand: bool = False
    is_otc: bool = Field(False, alias="isOTC")
