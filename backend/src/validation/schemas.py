from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

IDEA_MIN_LENGTH = 10
IDEA_MAX_LENGTH = 5000
AUDIENCE_MAX_LENGTH = 500


class RevenueModel(str, Enum):
    subscription = "subscription"
    freemium = "freemium"
    one_time = "one_time"
    usage_based = "usage_based"
    marketplace_app = "marketplace_app"


class Verdict(str, Enum):
    strong = "strong"
    moderate = "moderate"
    weak = "weak"
    high_risk = "high_risk"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ValidateRequest(BaseModel):
    idea: str
    audience: Optional[str] = Field(None, max_length=AUDIENCE_MAX_LENGTH)
    model: Optional[RevenueModel] = None

    @field_validator("idea")
    @classmethod
    def idea_length(cls, v: str) -> str:
        if len(v.strip()) < IDEA_MIN_LENGTH:
            raise ValueError("Please describe your idea in at least 10 characters.")
        if len(v) > IDEA_MAX_LENGTH:
            raise ValueError("Idea description must be under 5,000 characters.")
        return v

    @field_validator("model", mode="before")
    @classmethod
    def blank_model_is_none(cls, v):
        return v or None


class ScoreResult(CamelModel):
    confidence: int = Field(..., ge=5, le=95)
    verdict: Verdict
    summary: str
    risks: list[str] = []
    strengths: list[str] = []
    recommendations: list[str] = []
    patterns_matched: int = 0
    category: str = "other"
    ecosystem: str = "standalone"

    @property
    def verdict_label(self) -> str:
        return VERDICT_LABELS[self.verdict]


VERDICT_LABELS = {
    Verdict.strong: "Strong signal. Worth building an MVP",
    Verdict.moderate: "Moderate signal. Validate assumptions before building",
    Verdict.weak: "Weak signal. Significant risks identified",
    Verdict.high_risk: "High risk. Major concerns found",
}


class BuildCta(CamelModel):
    message: str
    url: str = "/build"
    tier: str


class DeepValidationStatus(str, Enum):
    queued = "queued"
    limit_reached = "limit_reached"
    error = "error"
    not_eligible = "not_eligible"


class DeepValidation(CamelModel):
    status: DeepValidationStatus
    job_id: Optional[str] = None
    plan: Optional[str] = None
    used: Optional[int] = None
    limit: Optional[int] = None
    daily_used: Optional[int] = None
    daily_limit: Optional[int] = None
    message: str = ""


class ValidateResponse(CamelModel):
    confidence: int
    verdict: Verdict
    verdict_label: str
    summary: str
    risks: list[str]
    strengths: list[str]
    recommendations: list[str]
    patterns_matched: int
    category: str
    ecosystem: str
    validated_at: datetime
    build_cta: Optional[BuildCta] = None
    deep_validation: Optional[DeepValidation] = None
    usage_limit_hit: Optional[bool] = None


class BuildRequest(BaseModel):
    email: EmailStr
    idea: str = Field(..., min_length=IDEA_MIN_LENGTH, max_length=IDEA_MAX_LENGTH)
    name: Optional[str] = Field(None, max_length=200)
    budget: str = Field("pro", pattern=r"^(starter|pro|enterprise)$")
    timeline: str = Field("flexible", max_length=50)
    additional_context: Optional[str] = Field(None, max_length=2000, alias="additionalContext")

    model_config = ConfigDict(populate_by_name=True)
