"""
Subscriber store backed by the Supabase `subscribers` table.

The billing webhooks own this table. The validation path only reads a
subscriber and nudges validations_used up or down by one.
"""

import logging
from typing import Optional

from src.billing.schemas import Subscriber
from src.config import get_supabase_client
from src.validation.exceptions import PersistenceError

logger = logging.getLogger(__name__)

TABLE = "subscribers"
_COLUMNS = "email, plan, status, validations_used, current_period_end"


def mask_email(email: str) -> str:
    local, _, domain = email.partition("@")
    return f"{local[:2]}***@{domain}" if domain else "***"


class SubscriberStore:
    def __init__(self, client=None):
        self.client = client

    def get_active_subscriber(self, email: str) -> Optional[Subscriber]:
        """Return the paid, active subscriber for email, or None.

        Lookup errors read as None so a broken database can never grant
        paid quota.
        """
        if not self.client or not email:
            return None
        try:
            result = self.client.table(TABLE).select(_COLUMNS) \
                .eq("email", email.lower()).limit(1).execute()
        except Exception as e:
            logger.warning(f"Subscriber lookup failed for {mask_email(email)}: {e}")
            return None
        if not result.data:
            return None
        try:
            subscriber = Subscriber(**result.data[0])
        except Exception as e:
            logger.warning(f"Unreadable subscriber row for {mask_email(email)}: {e}")
            return None
        return subscriber if subscriber.is_paid else None

    def increment_usage(self, email: str, delta: int) -> int:
        """Apply delta to validations_used (floored at 0) and return the new value."""
        if not self.client:
            raise PersistenceError("Subscriber store not configured")
        try:
            existing = self.client.table(TABLE).select("validations_used") \
                .eq("email", email.lower()).limit(1).execute()
            if not existing.data:
                raise PersistenceError(f"No subscriber row for {mask_email(email)}")
            current = existing.data[0].get("validations_used") or 0
            updated = max(0, current + delta)
            self.client.table(TABLE).update({"validations_used": updated}) \
                .eq("email", email.lower()).execute()
            return updated
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Could not update usage: {e}") from e

    def reset_usage(self, email: str) -> None:
        if not self.client:
            raise PersistenceError("Subscriber store not configured")
        try:
            self.client.table(TABLE).update({"validations_used": 0}) \
                .eq("email", email.lower()).execute()
        except Exception as e:
            raise PersistenceError(f"Could not reset usage: {e}") from e


def get_subscriber_store() -> SubscriberStore:
    return SubscriberStore(get_supabase_client())
