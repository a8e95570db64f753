"""
VaaS Validation Router

Rate limits:
  Per-minute (slowapi):    20/min validate, 5/min build (burst guard)
  Anonymous / free (IP):   5 validations/hour, 3 build requests/hour
  Pro:                     30 deep validations/month, 5/day
  Enterprise:              50 deep validations/month, 10/day

Paid subscribers skip the IP window; their instant score is never
blocked, only the deep validation is withheld once a cap is hit.
"""

import hashlib
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from src.auth.dependencies import get_current_user
from src.billing.schemas import Subscriber
from src.billing.service import SubscriberStore, get_subscriber_store
from src.config import Settings, get_settings
from src.middleware import limiter
from src.validation.limits import (
    PLAN_LIMITS, QuotaTracker, check_anonymous_rate, get_daily_quota, get_endpoint_limiter,
)
from src.validation.recorder import (
    SubmissionStore, fingerprint, get_submission_store, record_build_request,
    record_submission, summarize_trends,
)
from src.validation.schemas import BuildRequest, ValidateRequest
from src.validation.service import submission_record, validate_idea
from src.validation.trigger import DeepAnalysisTrigger, get_deep_trigger

logger = logging.getLogger(__name__)
router = APIRouter()

UPGRADE_HINT = {
    "message": "Upgrade to Pro for 30 deep validations a month with no hourly cap.",
    "url": "/pricing",
}


def _get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _hash_ip(ip: str) -> str:
    return hashlib.sha256(ip.encode()).hexdigest()


def _user_email(user: Optional[dict]) -> Optional[str]:
    if not user or not user.get("email"):
        return None
    return user["email"].strip().lower()


async def validate_rate_gate(
    request: Request,
    user: Optional[dict] = Depends(get_current_user),
    subscribers: SubscriberStore = Depends(get_subscriber_store),
) -> Optional[Subscriber]:
    """Resolve the paying subscriber, or charge the anonymous IP window.

    Runs as a dependency so an over-limit client is turned away before its
    body is validated.
    """
    email = _user_email(user)
    subscriber = subscribers.get_active_subscriber(email) if email else None
    if subscriber is None:
        check_anonymous_rate(
            get_endpoint_limiter("validate"), _hash_ip(_get_client_ip(request)),
            "Rate limited. Free tier: 5 validations/hour.",
            upgrade=UPGRADE_HINT,
        )
    return subscriber


async def build_rate_gate(request: Request):
    check_anonymous_rate(
        get_endpoint_limiter("build"), _hash_ip(_get_client_ip(request)),
        "Too many requests. Please try again later.",
    )


# ═══════════════════════════════════════
# POST /api/validate
# ═══════════════════════════════════════

@router.post("/validate")
@limiter.limit("20/minute")
async def validate(
    request: Request,
    req: ValidateRequest,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    subscriber: Optional[Subscriber] = Depends(validate_rate_gate),
    user: Optional[dict] = Depends(get_current_user),
    subscribers: SubscriberStore = Depends(get_subscriber_store),
    submissions: SubmissionStore = Depends(get_submission_store),
    quota: QuotaTracker = Depends(get_daily_quota),
    trigger: DeepAnalysisTrigger = Depends(get_deep_trigger),
):
    ip = _get_client_ip(request)
    email = _user_email(user)

    response, result = await validate_idea(
        req, subscriber, subscribers, quota, trigger, signed_in=email is not None,
    )

    fp = fingerprint(ip, request.headers.get("user-agent", ""), settings.fingerprint_salt)
    background_tasks.add_task(
        record_submission, submissions, submission_record(req, result, fp, email),
    )

    return response.model_dump(mode="json", by_alias=True, exclude_none=True)


# ═══════════════════════════════════════
# GET /api/limits
# ═══════════════════════════════════════

@router.get("/limits")
async def get_limits(
    request: Request,
    user: Optional[dict] = Depends(get_current_user),
    subscribers: SubscriberStore = Depends(get_subscriber_store),
    quota: QuotaTracker = Depends(get_daily_quota),
):
    """Remaining validations for the current subscriber or anonymous visitor."""
    email = _user_email(user)
    subscriber = subscribers.get_active_subscriber(email) if email else None
    if subscriber is not None:
        limits = PLAN_LIMITS[subscriber.plan]
        used = 0 if subscriber.period_expired() else subscriber.validations_used
        daily_used = quota.used(subscriber.email, subscriber.plan)
        return {
            "tier": subscriber.plan,
            "monthlyLimit": limits.monthly,
            "monthlyUsed": used,
            "remainingMonthly": max(0, limits.monthly - used),
            "dailyLimit": limits.daily,
            "remainingDaily": max(0, limits.daily - daily_used),
            "periodEnd": subscriber.current_period_end.isoformat() if subscriber.current_period_end else None,
        }

    validate_limiter = get_endpoint_limiter("validate")
    decision = validate_limiter.peek(_hash_ip(_get_client_ip(request)))
    return {
        "tier": "free" if email else "anonymous",
        "hourlyLimit": validate_limiter.limit,
        "remainingHourly": decision.remaining,
        "resetAt": int(decision.reset_at),
    }


# ═══════════════════════════════════════
# POST /api/build (build-request intake)
# ═══════════════════════════════════════

@router.post("/build")
@limiter.limit("5/minute")
async def request_build(
    request: Request,
    req: BuildRequest,
    background_tasks: BackgroundTasks,
    submissions: SubmissionStore = Depends(get_submission_store),
    _gate: None = Depends(build_rate_gate),
):
    background_tasks.add_task(record_build_request, submissions, {
        "email": str(req.email).strip().lower(),
        "name": req.name.strip() if req.name else None,
        "idea": req.idea.strip(),
        "budget": req.budget,
        "timeline": req.timeline,
        "additional_context": req.additional_context.strip() if req.additional_context else None,
        "status": "new",
    })
    return {
        "success": True,
        "message": "Build request received. We'll reach out within 24 hours with a quote.",
    }


# ═══════════════════════════════════════
# Public flywheel data
# ═══════════════════════════════════════

@router.get("/ideas")
async def get_ideas(submissions: SubmissionStore = Depends(get_submission_store)):
    """Anonymized submissions scoring 60+."""
    try:
        ideas = submissions.recent_high_scoring(min_confidence=60, limit=100)
    except Exception as e:
        logger.warning(f"Could not fetch ideas: {e}")
        ideas = []
    return {"ideas": ideas, "count": len(ideas)}


@router.get("/trends")
async def get_trends(submissions: SubmissionStore = Depends(get_submission_store)):
    try:
        rows = submissions.trend_rows()
    except Exception as e:
        logger.warning(f"Could not fetch trends: {e}")
        rows = []
    return summarize_trends(rows)
