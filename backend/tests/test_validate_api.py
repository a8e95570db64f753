"""
End-to-end tests for the validation endpoints through the FastAPI app.
"""
from fakes import FakeSubmissionStore

HIPAA_IDEA = (
    "A HIPAA compliance automation platform for small dental clinics that audits "
    "patient record workflows, flags policy gaps before inspections, and generates "
    "remediation checklists staff can complete in minutes, with audit-ready reports for regulators."
)
PRO_EMAIL = "founder@example.com"


def _post(client, body, ip="198.51.100.10", **headers):
    return client.post("/api/validate", json=body, headers={"X-Forwarded-For": ip, **headers})


def _sign_in(current_user, email=PRO_EMAIL):
    current_user["user"] = {"id": "user-1", "email": email}


def test_validate_response_shape(client):
    resp = _post(client, {"idea": HIPAA_IDEA, "audience": "Independent dental clinic owners", "model": "subscription"})

    assert resp.status_code == 200
    data = resp.json()
    for key in ("confidence", "verdict", "summary", "risks", "strengths",
                "recommendations", "patternsMatched", "validatedAt"):
        assert key in data
    assert data["verdict"] == "strong"
    assert data["patternsMatched"] == len(data["risks"]) + len(data["strengths"])
    assert data["buildCta"]["tier"] == "strong_candidate"
    # anonymous visitors get no deep validation block
    assert "deepValidation" not in data


def test_low_confidence_has_no_build_cta(client):
    resp = _post(client, {"idea": "A todo app for teams", "audience": "", "model": "one_time"})

    assert resp.status_code == 200
    assert resp.json()["verdict"] in ("weak", "high_risk")
    assert "buildCta" not in resp.json()


def test_anonymous_rate_limit_sixth_request_rejected(client):
    statuses = [_post(client, {"idea": "A todo app for teams"}).status_code for _ in range(6)]

    assert statuses == [200] * 5 + [429]


def test_rate_limited_response_carries_retry_and_upgrade(client):
    for _ in range(5):
        _post(client, {"idea": "A todo app for teams"})
    resp = _post(client, {"idea": "A todo app for teams"})

    assert resp.status_code == 429
    detail = resp.json()["detail"]
    assert "5 validations/hour" in detail["message"]
    assert detail["upgrade"]["url"] == "/pricing"
    assert int(resp.headers["Retry-After"]) > 0


def test_rate_limit_is_per_ip(client):
    for _ in range(5):
        _post(client, {"idea": "A todo app for teams"}, ip="203.0.113.1")

    assert _post(client, {"idea": "A todo app for teams"}, ip="203.0.113.2").status_code == 200


def test_rejected_request_is_not_scored_or_recorded(client, submission_store):
    for _ in range(6):
        _post(client, {"idea": "A todo app for teams"})

    assert len(submission_store.records) == 5


def test_over_limit_client_gets_429_before_body_checks(client):
    for _ in range(5):
        _post(client, {"idea": "A todo app for teams"})

    resp = _post(client, {"idea": "tiny"})

    assert resp.status_code == 429
    assert "5 validations/hour" in resp.json()["detail"]["message"]


def test_over_limit_build_request_gets_429_before_body_checks(client):
    body = {"email": "maker@example.com", "idea": "Build me a dental compliance app"}
    for _ in range(3):
        client.post("/api/build", json=body, headers={"X-Forwarded-For": "192.0.2.9"})

    resp = client.post("/api/build", json={"email": "not-an-email"}, headers={"X-Forwarded-For": "192.0.2.9"})

    assert resp.status_code == 429



def test_short_idea_is_400(client):
    resp = _post(client, {"idea": "  tiny   "})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Please describe your idea in at least 10 characters."


def test_long_idea_is_400(client):
    resp = _post(client, {"idea": "x" * 5001})
    assert resp.status_code == 400
    assert "5,000" in resp.json()["detail"]


def test_missing_idea_is_400(client):
    resp = _post(client, {"audience": "founders"})
    assert resp.status_code == 400


def test_invalid_revenue_model_is_400(client):
    resp = _post(client, {"idea": "A todo app for teams", "model": "barter"})
    assert resp.status_code == 400


def test_long_audience_is_400(client):
    resp = _post(client, {"idea": "A todo app for teams", "audience": "a" * 501})
    assert resp.status_code == 400


def test_submission_recorded_with_fingerprint(client, submission_store):
    _post(client, {"idea": HIPAA_IDEA, "model": "subscription"}, **{"User-Agent": "pytest-agent"})

    assert len(submission_store.records) == 1
    record = submission_store.records[0]
    assert record.revenue_model == "subscription"
    assert record.category == "healthtech"
    assert len(record.fingerprint) == 16
    assert "198.51.100.10" not in record.fingerprint
    assert record.email is None


def test_recorder_failure_does_not_change_response(client):
    from src.main import app
    from src.validation.recorder import get_submission_store

    app.dependency_overrides[get_submission_store] = lambda: FakeSubmissionStore(fail=True)

    resp = _post(client, {"idea": HIPAA_IDEA})

    assert resp.status_code == 200
    assert resp.json()["confidence"] >= 5


def test_pro_subscriber_deep_validation_queued(client, subscriber_store, fake_trigger, current_user):
    subscriber_store.add(PRO_EMAIL, plan="pro", used=10)
    _sign_in(current_user)

    resp = _post(client, {"idea": HIPAA_IDEA, "audience": "Dental clinic owners"})

    deep = resp.json()["deepValidation"]
    assert deep["status"] == "queued"
    assert deep["jobId"] == "job-123"
    assert deep["used"] == 11
    assert subscriber_store.used(PRO_EMAIL) == 11
    assert fake_trigger.calls[0]["email"] == PRO_EMAIL


def test_pro_subscriber_trigger_timeout_rolls_back(client, subscriber_store, fake_trigger, current_user):
    """29 of 30 used, orchestrator times out: status error, usage stays 29."""
    subscriber_store.add(PRO_EMAIL, plan="pro", used=29)
    fake_trigger.job_id = None
    _sign_in(current_user)

    resp = _post(client, {"idea": HIPAA_IDEA})

    assert resp.status_code == 200
    assert resp.json()["deepValidation"]["status"] == "error"
    assert subscriber_store.get_active_subscriber(PRO_EMAIL).validations_used == 29

    limits = client.get("/api/limits").json()
    assert limits["monthlyUsed"] == 29
    assert limits["remainingMonthly"] == 1


def test_monthly_cap_withholds_deep_validation_not_score(client, subscriber_store, fake_trigger, current_user):
    subscriber_store.add(PRO_EMAIL, plan="pro", used=30)
    _sign_in(current_user)

    resp = _post(client, {"idea": HIPAA_IDEA})

    assert resp.status_code == 200
    data = resp.json()
    assert data["confidence"] >= 5
    assert data["usageLimitHit"] is True
    assert data["deepValidation"]["status"] == "limit_reached"
    assert fake_trigger.calls == []


def test_paid_subscriber_skips_ip_window(client, subscriber_store, current_user):
    subscriber_store.add(PRO_EMAIL, plan="pro", used=0)
    _sign_in(current_user)

    responses = [_post(client, {"idea": HIPAA_IDEA}) for _ in range(7)]

    assert all(r.status_code == 200 for r in responses)
    statuses = [r.json()["deepValidation"]["status"] for r in responses]
    assert statuses == ["queued"] * 5 + ["limit_reached"] * 2


def test_signed_in_free_user_is_not_eligible_and_rate_limited(client, current_user):
    _sign_in(current_user, email="someone@example.com")

    first = _post(client, {"idea": HIPAA_IDEA})
    assert first.json()["deepValidation"]["status"] == "not_eligible"

    for _ in range(4):
        _post(client, {"idea": HIPAA_IDEA})
    assert _post(client, {"idea": HIPAA_IDEA}).status_code == 429


def test_limits_anonymous(client):
    _post(client, {"idea": "A todo app for teams"})
    _post(client, {"idea": "A todo app for teams"})

    limits = client.get("/api/limits", headers={"X-Forwarded-For": "198.51.100.10"}).json()

    assert limits["tier"] == "anonymous"
    assert limits["hourlyLimit"] == 5
    assert limits["remainingHourly"] == 3


def test_build_request_rate_limit(client, submission_store):
    body = {"email": "maker@example.com", "idea": "Build me a dental compliance app", "budget": "starter"}

    statuses = [
        client.post("/api/build", json=body, headers={"X-Forwarded-For": "192.0.2.5"}).status_code
        for _ in range(4)
    ]

    assert statuses == [200, 200, 200, 429]
    assert len(submission_store.build_requests) == 3
    assert submission_store.build_requests[0]["budget"] == "starter"


def test_build_request_requires_valid_email(client):
    resp = client.post("/api/build", json={"email": "not-an-email", "idea": "Build me a dental app"})
    assert resp.status_code == 400


def test_ideas_endpoint_filters_low_scores(submission_store, client):
    submission_store.rows.extend([
        {"idea": "a", "confidence": 82, "category": "fintech", "ecosystem": "standalone", "created_at": "t1"},
        {"idea": "b", "confidence": 41, "category": "edtech", "ecosystem": "standalone", "created_at": "t2"},
    ])

    data = client.get("/api/ideas").json()

    assert data["count"] == 1
    assert data["ideas"][0]["idea"] == "a"


def test_trends_endpoint(submission_store, client):
    submission_store.rows.append(
        {"idea": "a", "confidence": 82, "category": "fintech", "ecosystem": "standalone", "created_at": "t1"}
    )
    data = client.get("/api/trends").json()
    assert data["totalSubmissions"] == 1
    assert data["highConfidenceCount"] == 1


def test_me_reports_plan(client, subscriber_store, current_user):
    assert client.get("/api/auth/me").json() == {"user": None}

    subscriber_store.add(PRO_EMAIL, plan="enterprise", used=4)
    _sign_in(current_user)
    user = client.get("/api/auth/me").json()["user"]

    assert user["plan"] == "enterprise"
    assert user["validations_used"] == 4
    assert user["validations_limit"] == 50


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/").json()["service"] == "vaas-api"
