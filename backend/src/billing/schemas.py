from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, EmailStr

PAID_PLANS = ("pro", "enterprise")


class Subscriber(BaseModel):
    email: EmailStr
    plan: str = "free"
    status: str = "active"
    validations_used: int = 0
    current_period_end: Optional[datetime] = None

    @property
    def is_paid(self) -> bool:
        return self.status == "active" and self.plan in PAID_PLANS

    def period_expired(self, now: Optional[datetime] = None) -> bool:
        if self.current_period_end is None:
            return False
        now = now or datetime.now(timezone.utc)
        end = self.current_period_end
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        return now > end
