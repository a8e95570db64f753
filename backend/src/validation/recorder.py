"""
Submission recorder ("flywheel").

Every scored idea is appended to `vaas_submissions` for trend analysis.
Writes happen after the response value is built and are never awaited
by it; a failed write is logged and dropped.
"""

import hashlib
import logging
from collections import Counter
from typing import Optional

from pydantic import BaseModel

from src.config import get_supabase_client
from src.validation.exceptions import PersistenceError
from src.validation.patterns import PATTERN_LIBRARY_VERSION

logger = logging.getLogger(__name__)

SUBMISSIONS_TABLE = "vaas_submissions"
BUILD_REQUESTS_TABLE = "build_requests"
IDEA_STORE_CHARS = 2000
AUDIENCE_STORE_CHARS = 500


def fingerprint(ip: str, user_agent: str, salt: str) -> str:
    """Salted hash of IP + user agent. Stable per visitor, not reversible to either."""
    raw = f"{salt}:{ip}:{user_agent or ''}"
    return hashlib.sha256(raw.encode()).hexdigest()[:16]


class SubmissionRecord(BaseModel):
    idea: str
    audience: Optional[str] = None
    revenue_model: Optional[str] = None
    confidence: int
    verdict: str
    risks: list[str] = []
    strengths: list[str] = []
    recommendations: list[str] = []
    patterns_matched: int = 0
    category: str
    ecosystem: str
    fingerprint: Optional[str] = None
    email: Optional[str] = None
    source: str = "web"
    pattern_version: str = PATTERN_LIBRARY_VERSION

    def to_row(self) -> dict:
        row = self.model_dump()
        row["idea"] = self.idea[:IDEA_STORE_CHARS]
        if self.audience:
            row["audience"] = self.audience[:AUDIENCE_STORE_CHARS]
        return row


class SubmissionStore:
    def __init__(self, client=None):
        self.client = client

    def append(self, record: SubmissionRecord) -> None:
        if not self.client:
            return
        try:
            self.client.table(SUBMISSIONS_TABLE).insert(record.to_row()).execute()
        except Exception as e:
            raise PersistenceError(f"Could not insert submission: {e}") from e

    def append_build_request(self, row: dict) -> None:
        if not self.client:
            return
        try:
            self.client.table(BUILD_REQUESTS_TABLE).insert(row).execute()
        except Exception as e:
            raise PersistenceError(f"Could not insert build request: {e}") from e

    def recent_high_scoring(self, min_confidence: int = 60, limit: int = 100) -> list[dict]:
        """Anonymized submissions at or above min_confidence, best and newest first."""
        if not self.client:
            return []
        result = self.client.table(SUBMISSIONS_TABLE) \
            .select("idea, audience, revenue_model, confidence, verdict, category, ecosystem, created_at") \
            .gte("confidence", min_confidence) \
            .order("confidence", desc=True).order("created_at", desc=True) \
            .limit(limit).execute()
        return result.data or []

    def trend_rows(self, limit: int = 1000) -> list[dict]:
        if not self.client:
            return []
        result = self.client.table(SUBMISSIONS_TABLE) \
            .select("idea, confidence, category, ecosystem, created_at") \
            .order("created_at", desc=True).limit(limit).execute()
        return result.data or []


def summarize_trends(rows: list[dict]) -> dict:
    """Aggregate submission rows into the public trends payload."""
    total = len(rows)
    if not total:
        return {
            "totalSubmissions": 0, "avgConfidence": 0, "highConfidenceCount": 0,
            "topCategories": [], "topEcosystems": [], "recentHighScoring": [],
        }

    avg = round(sum(r.get("confidence", 0) for r in rows) / total)
    by_category: dict[str, list[int]] = {}
    for r in rows:
        if r.get("category"):
            by_category.setdefault(r["category"], []).append(r.get("confidence", 0))
    top_categories = sorted(
        (
            {"category": cat, "count": len(scores), "avgConfidence": round(sum(scores) / len(scores))}
            for cat, scores in by_category.items()
        ),
        key=lambda c: -c["count"],
    )[:10]
    ecosystems = Counter(r["ecosystem"] for r in rows if r.get("ecosystem"))

    return {
        "totalSubmissions": total,
        "avgConfidence": avg,
        "highConfidenceCount": sum(1 for r in rows if r.get("confidence", 0) >= 70),
        "topCategories": top_categories,
        "topEcosystems": [{"ecosystem": e, "count": c} for e, c in ecosystems.most_common(6)],
        "recentHighScoring": [
            {k: r.get(k) for k in ("idea", "confidence", "category", "created_at")}
            for r in rows if r.get("confidence", 0) >= 65
        ][:10],
    }


def record_submission(store: SubmissionStore, record: SubmissionRecord) -> None:
    """Background-task entry point. Never raises."""
    try:
        store.append(record)
    except PersistenceError as e:
        logger.warning(f"Submission capture failed: {e}")
    except Exception:
        logger.exception("Unexpected submission capture error")


def record_build_request(store: SubmissionStore, row: dict) -> None:
    try:
        store.append_build_request(row)
    except PersistenceError as e:
        logger.warning(f"Build request capture failed: {e}")
    except Exception:
        logger.exception("Unexpected build request capture error")


def get_submission_store() -> SubmissionStore:
    return SubmissionStore(get_supabase_client())
