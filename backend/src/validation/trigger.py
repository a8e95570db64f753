"""
Deep-analysis trigger.

Queues a paid-tier debate run on the external orchestrator and returns
its job id. Results reach the subscriber by email from the orchestrator;
nothing comes back through this module besides the id.

The call is time-boxed. On expiry it is abandoned locally, although the
orchestrator may still run the job (at-least-once dispatch).
"""

import asyncio
import logging
import re
from typing import Optional

import httpx

from src.config import Settings, get_settings
from src.http_client import get_http_client
from src.validation.exceptions import UpstreamTriggerError

logger = logging.getLogger(__name__)

CHALLENGE_PATH = "/challenge/async"
NAME_MAX_CHARS = 60


def idea_name(idea: str) -> str:
    """Short venture name for the orchestrator: first sentence, trimmed."""
    first = re.split(r"(?<=[.!?])\s|\n", idea.strip(), maxsplit=1)[0].strip()
    if len(first) <= NAME_MAX_CHARS:
        return first.rstrip(".!?")
    cut = first[:NAME_MAX_CHARS].rsplit(" ", 1)[0]
    return f"{cut}…"


class DeepAnalysisTrigger:
    def __init__(
        self,
        base_url: str,
        secret: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.secret = secret
        self.timeout = timeout
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.secret)

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or get_http_client()

    async def trigger(self, idea: str, audience: Optional[str], email: str, plan: str) -> Optional[str]:
        """Return the orchestrator job id, or None if the job could not be queued."""
        if not self.configured:
            logger.warning("Deep analysis requested but orchestrator is not configured")
            return None
        try:
            return await asyncio.wait_for(
                self._post(idea, audience, email, plan), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Deep analysis trigger timed out after {self.timeout}s")
        except UpstreamTriggerError as e:
            logger.warning(f"Deep analysis trigger failed: {e}")
        except Exception:
            logger.exception("Unexpected deep analysis trigger error")
        return None

    async def _post(self, idea: str, audience: Optional[str], email: str, plan: str) -> str:
        payload = {
            "secret": self.secret,
            "name": idea_name(idea),
            "description": idea,
            "targetMarket": audience or "",
            "notifyEmail": email,
            "tier": plan,
        }
        try:
            resp = await self.client.post(
                f"{self.base_url}{CHALLENGE_PATH}", json=payload, timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise UpstreamTriggerError(f"timeout: {e}") from e
        except httpx.HTTPError as e:
            raise UpstreamTriggerError(f"transport: {e}") from e

        if resp.status_code < 200 or resp.status_code >= 300:
            raise UpstreamTriggerError(f"HTTP {resp.status_code}: {resp.text[:200]}")
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamTriggerError("response is not JSON") from e

        job_id = data.get("jobId") if isinstance(data, dict) else None
        if not job_id or not isinstance(job_id, (str, int)):
            raise UpstreamTriggerError("response has no jobId")
        logger.info(f"Deep analysis queued: job {job_id} ({plan})")
        return str(job_id)


def build_trigger(settings: Settings) -> DeepAnalysisTrigger:
    return DeepAnalysisTrigger(
        settings.orchestrator_url,
        settings.orchestrator_secret,
        timeout=settings.orchestrator_timeout,
    )


def get_deep_trigger() -> DeepAnalysisTrigger:
    return build_trigger(get_settings())
