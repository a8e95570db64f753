from typing import Optional


class IdeaValidationError(Exception):
    """Malformed or out-of-range input. Rendered as HTTP 400."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RateLimitedError(Exception):
    """Per-IP window exhausted. Rendered as HTTP 429 with Retry-After."""

    def __init__(self, message: str, retry_after: int = 0, upgrade: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.retry_after = max(0, retry_after)
        self.upgrade = upgrade


class QuotaExceededError(Exception):
    def __init__(self, message: str, used: int, limit: int):
        super().__init__(message)
        self.message = message
        self.used = used
        self.limit = limit


class UpstreamTriggerError(Exception):
    pass


class PersistenceError(Exception):
    pass
