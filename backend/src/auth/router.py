from fastapi import APIRouter, Depends
from src.auth.dependencies import get_current_user
from src.auth.schemas import UserProfile
from src.billing.service import SubscriberStore, get_subscriber_store
from src.validation.limits import PLAN_LIMITS
from typing import Optional

router = APIRouter()


@router.get("/me")
async def get_me(
    user: Optional[dict] = Depends(get_current_user),
    subscribers: SubscriberStore = Depends(get_subscriber_store),
):
    """Current user plus subscription state. Null user if not authenticated."""
    if user is None:
        return {"user": None}

    profile = UserProfile(id=user["id"], email=user.get("email"))
    subscriber = subscribers.get_active_subscriber(profile.email) if profile.email else None
    if subscriber is not None:
        profile.plan = subscriber.plan
        profile.validations_used = 0 if subscriber.period_expired() else subscriber.validations_used
        profile.validations_limit = PLAN_LIMITS[subscriber.plan].monthly
        profile.current_period_end = subscriber.current_period_end

    return {"user": profile.model_dump(mode="json")}
