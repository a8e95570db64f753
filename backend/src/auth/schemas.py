from datetime import datetime
from pydantic import BaseModel
from typing import Optional


class UserProfile(BaseModel):
    id: str
    email: Optional[str] = None
    plan: str = "free"
    validations_used: int = 0
    validations_limit: Optional[int] = None
    current_period_end: Optional[datetime] = None
