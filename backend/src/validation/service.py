"""
VaaS Validation Service

Request pipeline once the rate gate has passed:

    score (sync, pure) -> deep validation decision (paid tiers)
      -> response value -> submission record (background)
"""

import time
from datetime import datetime, timezone
from typing import Optional

from src.billing.schemas import Subscriber
from src.billing.service import SubscriberStore
from src.validation.gate import run_deep_validation
from src.validation.limits import QuotaTracker
from src.validation.recorder import SubmissionRecord
from src.validation.schemas import (
    DeepValidationStatus, ScoreResult, ValidateRequest, ValidateResponse,
)
from src.validation.scorer import build_cta, score
from src.validation.trigger import DeepAnalysisTrigger


def _log(msg: str):
    print(f"[VaaS:Validate] {msg}", flush=True)


async def validate_idea(
    req: ValidateRequest,
    subscriber: Optional[Subscriber],
    store: SubscriberStore,
    quota: QuotaTracker,
    trigger: DeepAnalysisTrigger,
    signed_in: bool = False,
) -> tuple[ValidateResponse, ScoreResult]:
    start = time.time()
    result = score(req.idea, req.audience, req.model)
    _log(
        f"confidence={result.confidence} verdict={result.verdict.value} "
        f"patterns={result.patterns_matched} category={result.category}/{result.ecosystem}"
    )

    deep = None
    if signed_in or subscriber is not None:
        deep = await run_deep_validation(
            req.idea, req.audience, subscriber, store, quota, trigger,
        )
        _log(f"deep validation: {deep.status.value}")

    response = ValidateResponse(
        confidence=result.confidence,
        verdict=result.verdict,
        verdict_label=result.verdict_label,
        summary=result.summary,
        risks=result.risks,
        strengths=result.strengths,
        recommendations=result.recommendations,
        patterns_matched=result.patterns_matched,
        category=result.category,
        ecosystem=result.ecosystem,
        validated_at=datetime.now(timezone.utc),
        build_cta=build_cta(result.confidence),
        deep_validation=deep,
        usage_limit_hit=True if deep and deep.status == DeepValidationStatus.limit_reached else None,
    )
    _log(f"done in {time.time() - start:.3f}s")
    return response, result


def submission_record(
    req: ValidateRequest,
    result: ScoreResult,
    fingerprint: Optional[str],
    email: Optional[str],
) -> SubmissionRecord:
    return SubmissionRecord(
        idea=req.idea,
        audience=req.audience,
        revenue_model=req.model.value if req.model else None,
        confidence=result.confidence,
        verdict=result.verdict.value,
        risks=result.risks,
        strengths=result.strengths,
        recommendations=result.recommendations,
        patterns_matched=result.patterns_matched,
        category=result.category,
        ecosystem=result.ecosystem,
        fingerprint=fingerprint,
        email=email,
    )
