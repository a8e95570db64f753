"""
VaaS Confidence Scorer

Deterministic heuristic scoring for a submitted idea. No network, no
database, no randomness: the same (idea, audience, model) always
produces the same ScoreResult.

    base 60
    - sum(weight * 15) over risks, capped at 40
    + 5 per strength
    + specificity: idea > 200 chars (+5), > 500 chars (+3), audience > 20 chars (+5)
    + revenue model: marketplace_app (+3), usage_based (+2)
    clamp to [5, 95], round half up

Category fallbacks keep every result actionable but are advisory: they
show up in risks/strengths without moving the score.
"""

import math
from dataclasses import dataclass
from typing import Optional

from src.validation.classifier import classify
from src.validation.patterns import (
    FAILURE_PATTERNS, STRENGTH_INDICATORS,
    NO_AUDIENCE_RISK, VAGUE_IDEA_RISK,
    fallback_risk, fallback_strength,
)
from src.validation.schemas import BuildCta, RevenueModel, ScoreResult, Verdict

BASE_CONFIDENCE = 60
RISK_WEIGHT_SCALE = 15
MAX_RISK_PENALTY = 40
STRENGTH_BONUS = 5
MIN_CONFIDENCE = 5
MAX_CONFIDENCE = 95

REVENUE_MODEL_BONUS = {
    RevenueModel.marketplace_app: 3,
    RevenueModel.usage_based: 2,
}

VERDICT_THRESHOLDS: tuple[tuple[int, Verdict], ...] = (
    (75, Verdict.strong),
    (55, Verdict.moderate),
    (35, Verdict.weak),
)


@dataclass(frozen=True)
class _Risk:
    text: str
    weight: float
    scored: bool = True


def _normalize_model(revenue_model) -> Optional[RevenueModel]:
    if revenue_model is None or revenue_model == "":
        return None
    if isinstance(revenue_model, RevenueModel):
        return revenue_model
    try:
        return RevenueModel(revenue_model)
    except ValueError:
        return None


def verdict_for(confidence: int) -> Verdict:
    for threshold, verdict in VERDICT_THRESHOLDS:
        if confidence >= threshold:
            return verdict
    return Verdict.high_risk


def clamp_confidence(raw: float) -> int:
    rounded = math.floor(raw + 0.5)
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, rounded))


def score(idea: str, audience: Optional[str] = None, revenue_model=None) -> ScoreResult:
    """Score an idea. Input is assumed to have passed request validation."""
    audience = audience or ""
    model = _normalize_model(revenue_model)
    buffer = f"{idea.lower()} {audience.lower()} {model.value if model else ''}"
    category, ecosystem = classify(idea)

    # Pattern matching: every entry, not just the first
    risks = [_Risk(fp.risk, fp.weight) for fp in FAILURE_PATTERNS if fp.matcher.search(buffer)]
    strengths = [si.strength for si in STRENGTH_INDICATORS if si.matcher.search(buffer)]
    matched_risk_count = len(risks)
    matched_strength_count = len(strengths)

    # Category fallback, keyed on pattern matches only
    if matched_risk_count == 0:
        fb = fallback_risk(category)
        risks.append(_Risk(fb.risk, fb.weight, scored=False))
    if matched_strength_count == 0:
        strengths.append(fallback_strength(category).strength)

    # Thin input
    if len(idea) < 100 and matched_risk_count == 0:
        risks.append(_Risk(VAGUE_IDEA_RISK.risk, VAGUE_IDEA_RISK.weight))
    if len(audience.strip()) < 5:
        risks.append(_Risk(NO_AUDIENCE_RISK.risk, NO_AUDIENCE_RISK.weight))

    confidence = float(BASE_CONFIDENCE)
    penalty = sum(r.weight * RISK_WEIGHT_SCALE for r in risks if r.scored)
    confidence -= min(penalty, MAX_RISK_PENALTY)
    confidence += matched_strength_count * STRENGTH_BONUS

    if len(idea) > 200:
        confidence += 5
    if len(idea) > 500:
        confidence += 3
    if len(audience) > 20:
        confidence += 5

    confidence += REVENUE_MODEL_BONUS.get(model, 0)

    final = clamp_confidence(confidence)
    risk_texts = [r.text for r in risks]

    return ScoreResult(
        confidence=final,
        verdict=verdict_for(final),
        summary=_summary(final, risk_texts, strengths),
        risks=risk_texts,
        strengths=strengths,
        recommendations=_recommendations(
            final, audience, model,
            has_risks=bool(risk_texts),
            has_matched_strengths=matched_strength_count > 0,
        ),
        patterns_matched=len(risk_texts) + len(strengths),
        category=category,
        ecosystem=ecosystem,
    )


def _recommendations(
    confidence: int, audience: str, model: Optional[RevenueModel],
    has_risks: bool, has_matched_strengths: bool,
) -> list[str]:
    recs = []
    if has_risks:
        recs.append("Research competitors deeply. Find the specific gap they're NOT solving")
    if len(audience) < 10:
        recs.append("Define your target audience more specifically (role, company size, pain frequency)")
    if confidence < 50:
        recs.append("Talk to 10 potential customers before writing any code")
        recs.append("Consider a different angle or niche within this space")
    if not has_matched_strengths:
        recs.append("Add a defensible moat: compliance, integrations, vertical focus, or data network effects")
    if model == RevenueModel.one_time:
        recs.append("Consider switching to subscription for predictable recurring revenue")
    recs.append("Build the smallest possible version and charge from day one")
    return recs


def _summary(confidence: int, risks: list[str], strengths: list[str]) -> str:
    if confidence >= 55:
        parts = ["Your idea shows promise."]
        if strengths:
            parts.append(f"Key strengths: {strengths[0].lower()}.")
        if risks:
            parts.append(f"Watch out for: {risks[0].split('.')[0].lower()}.")
        parts.append("Focus on validating your core assumption with real users.")
        return " ".join(parts)

    headline = risks[0] if risks else "The market is highly competitive."
    return (
        f"This space has significant headwinds. {headline} "
        "That doesn't mean it's impossible, but you'll need a very specific angle to succeed."
    )


def build_cta(confidence: int) -> Optional[BuildCta]:
    if confidence < 50:
        return None
    return BuildCta(
        message="Want us to build this for you? Our AI factory produces production-grade apps in days, not months.",
        tier="strong_candidate" if confidence >= 75 else "moderate_candidate",
    )
