from fastapi import Depends, HTTPException, Header
from typing import Optional
import logging
import httpx

from src.config import get_settings, Settings
from src.http_client import get_http_client

logger = logging.getLogger(__name__)


async def get_current_user(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> Optional[dict]:
    """Resolve the session user from a Supabase bearer token.

    Anonymous (None) for a missing, expired or unverifiable token. Only
    an unreachable auth service is an error, since a silent downgrade
    would hide a paid plan from a paying user.
    """
    if not authorization or not authorization.startswith("Bearer "):
        return None

    token = authorization.split(" ", 1)[1]
    if not settings.supabase_url:
        return None

    try:
        resp = await get_http_client().get(
            f"{settings.supabase_url}/auth/v1/user",
            headers={
                "Authorization": f"Bearer {token}",
                "apikey": settings.supabase_service_key,
            },
            timeout=5.0,
        )
        if resp.status_code == 200:
            return resp.json()
        if resp.status_code != 401:
            logger.warning(f"Supabase auth returned {resp.status_code}: {resp.text[:200]}")
        return None
    except httpx.ConnectError:
        logger.error("Cannot connect to Supabase auth")
        raise HTTPException(
            status_code=503,
            detail="Authentication service is temporarily unavailable. Please try again later."
        )
    except httpx.TimeoutException:
        logger.error("Supabase auth request timed out")
        raise HTTPException(
            status_code=503,
            detail="Authentication service timed out. Please try again."
        )
    except Exception as e:
        logger.error(f"Unexpected auth error: {e}")
        return None
