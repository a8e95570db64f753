"""
Paid-tier deep validation gate.

    NOT_ELIGIBLE   free / anonymous / lookup failed
    ELIGIBLE       paid and under both the monthly and daily caps
      -> increment usage (optimistic)
      -> TRIGGER_SENT   orchestrator returned a job id
      -> ROLLBACK       trigger failed; usage decremented back
    LIMIT_REACHED  a cap is exhausted; the instant score is still served

Increment and rollback are a compensating pair, not a transaction.
Two concurrent requests from one subscriber can both pass the cap check
and over-admit by one; the monthly counter is corrected by the next
billing period reset.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Optional

from src.billing.schemas import Subscriber
from src.billing.service import SubscriberStore, mask_email
from src.validation.exceptions import PersistenceError, QuotaExceededError
from src.validation.limits import PLAN_LIMITS, QuotaTracker
from src.validation.schemas import DeepValidation, DeepValidationStatus
from src.validation.trigger import DeepAnalysisTrigger

logger = logging.getLogger(__name__)


class DeepValidationState(str, Enum):
    not_eligible = "NOT_ELIGIBLE"
    eligible = "ELIGIBLE"
    limit_reached = "LIMIT_REACHED"
    trigger_sent = "TRIGGER_SENT"
    rollback = "ROLLBACK"


_STATUS_FOR_STATE = {
    DeepValidationState.not_eligible: DeepValidationStatus.not_eligible,
    DeepValidationState.limit_reached: DeepValidationStatus.limit_reached,
    DeepValidationState.trigger_sent: DeepValidationStatus.queued,
    DeepValidationState.rollback: DeepValidationStatus.error,
}


def _finish(state: DeepValidationState, subscriber: Optional[Subscriber], **fields) -> DeepValidation:
    who = mask_email(subscriber.email) if subscriber else "anonymous"
    logger.info(f"Deep validation {state.value} for {who}")
    return DeepValidation(status=_STATUS_FOR_STATE[state], **fields)


def check_quota(subscriber: Subscriber, used: int, quota: QuotaTracker) -> None:
    """Raise QuotaExceededError if either the monthly or the daily cap is spent."""
    limits = PLAN_LIMITS[subscriber.plan]
    if used >= limits.monthly:
        raise QuotaExceededError(
            f"You've used all {limits.monthly} deep validations this billing period.",
            used=used, limit=limits.monthly,
        )
    if not quota.has_room(subscriber.email, subscriber.plan):
        raise QuotaExceededError(
            f"Daily limit of {limits.daily} deep validations reached. Try again tomorrow.",
            used=quota.used(subscriber.email, subscriber.plan), limit=limits.daily,
        )


async def run_deep_validation(
    idea: str,
    audience: Optional[str],
    subscriber: Optional[Subscriber],
    store: SubscriberStore,
    quota: QuotaTracker,
    trigger: DeepAnalysisTrigger,
    now: Optional[datetime] = None,
) -> DeepValidation:
    if subscriber is None or not subscriber.is_paid or subscriber.plan not in PLAN_LIMITS:
        return _finish(
            DeepValidationState.not_eligible, subscriber,
            message="Upgrade to Pro for an in-depth AI debate analysis delivered to your inbox.",
        )

    email, plan = subscriber.email, subscriber.plan
    limits = PLAN_LIMITS[plan]
    used = subscriber.validations_used

    if subscriber.period_expired(now):
        try:
            store.reset_usage(email)
            used = 0
        except PersistenceError as e:
            logger.warning(f"Could not reset usage for {mask_email(email)}: {e}")
            return DeepValidation(
                status=DeepValidationStatus.error, plan=plan, used=used, limit=limits.monthly,
                message="Deep analysis is temporarily unavailable. Your quota was not used.",
            )

    try:
        check_quota(subscriber, used, quota)
    except QuotaExceededError as e:
        return _finish(
            DeepValidationState.limit_reached, subscriber,
            plan=plan, used=used, limit=limits.monthly,
            daily_used=quota.used(email, plan), daily_limit=limits.daily,
            message=e.message,
        )

    # count it before calling out, give it back if the call fails
    logger.debug(f"Deep validation {DeepValidationState.eligible.value} for {mask_email(email)}")
    try:
        new_used = store.increment_usage(email, 1)
    except PersistenceError as e:
        logger.warning(f"Usage increment failed for {mask_email(email)}: {e}")
        return DeepValidation(
            status=DeepValidationStatus.error, plan=plan, used=used, limit=limits.monthly,
            message="Deep analysis is temporarily unavailable. Your quota was not used.",
        )
    quota.consume(email, plan)

    job_id = await trigger.trigger(idea, audience, email, plan)
    if job_id:
        return _finish(
            DeepValidationState.trigger_sent, subscriber,
            job_id=job_id, plan=plan, used=new_used, limit=limits.monthly,
            daily_used=quota.used(email, plan), daily_limit=limits.daily,
            message="Deep analysis started. The full debate report will be emailed to you.",
        )

    try:
        store.increment_usage(email, -1)
    except PersistenceError as e:
        logger.error(f"Usage rollback failed for {mask_email(email)}: {e}")
    quota.release(email, plan)
    return _finish(
        DeepValidationState.rollback, subscriber,
        plan=plan, used=used, limit=limits.monthly,
        daily_used=quota.used(email, plan), daily_limit=limits.daily,
        message="Deep analysis could not be started. Your quota was not used; please try again.",
    )
