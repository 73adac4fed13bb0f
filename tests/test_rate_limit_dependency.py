"""HTTP-level tests for rate limit enforcement."""

from __future__ import annotations

from fastapi import Depends
from fastapi.testclient import TestClient

from newsletter.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from newsletter.core.config import RateLimitSettings
from newsletter.core.rate_limit import (
    RateLimitPolicy,
    build_rate_limiters,
    enforce_rate_limit,
    policy_limits,
)

DENIED_BODY = {
    "success": False,
    "error": "Rate limit exceeded. Please try again later.",
    "message": "",
}


def _mount_policy_routes(app) -> None:
    @app.post("/subscribe", dependencies=[Depends(enforce_rate_limit(RateLimitPolicy.EMAIL))])
    async def subscribe():
        return {"success": True, "message": "subscribed"}

    @app.post("/send", dependencies=[Depends(enforce_rate_limit(RateLimitPolicy.ADMIN))])
    async def send():
        return {"success": True, "message": "sent"}


class TestBuildRateLimiters:
    def test_default_policies(self) -> None:
        assert policy_limits(RateLimitSettings()) == {
            RateLimitPolicy.EMAIL: (5, 900),
            RateLimitPolicy.GENERAL: (100, 900),
            RateLimitPolicy.ADMIN: (10, 3600),
        }

    def test_one_independent_limiter_per_policy(self) -> None:
        limiters = build_rate_limiters(RateLimitSettings())

        assert set(limiters) == set(RateLimitPolicy)
        assert all(isinstance(l, InMemoryFixedWindowRateLimiter) for l in limiters.values())
        assert len({id(l) for l in limiters.values()}) == 3
        assert limiters[RateLimitPolicy.ADMIN].limit == 10
        assert limiters[RateLimitPolicy.ADMIN].window_seconds == 3600


class TestEnforceRateLimit:
    def test_sixth_subscription_request_is_rejected(self, app_factory) -> None:
        app = app_factory()
        _mount_policy_routes(app)
        client = TestClient(app)
        headers = {"X-Forwarded-For": "1.2.3.4"}

        statuses = [client.post("/subscribe", headers=headers).status_code for _ in range(6)]

        assert statuses == [200, 200, 200, 200, 200, 429]

    def test_denial_body_and_status(self, app_factory) -> None:
        app = app_factory(email_requests=1)
        _mount_policy_routes(app)
        client = TestClient(app)

        assert client.post("/subscribe").json() == {"success": True, "message": "subscribed"}
        response = client.post("/subscribe")

        assert response.status_code == 429
        assert response.json() == DENIED_BODY

    def test_clients_are_keyed_by_forwarded_address(self, app_factory) -> None:
        app = app_factory(email_requests=1)
        _mount_policy_routes(app)
        client = TestClient(app)

        assert client.post("/subscribe", headers={"X-Forwarded-For": "9.9.9.9"}).status_code == 200
        assert client.post("/subscribe", headers={"X-Forwarded-For": "9.9.9.9"}).status_code == 429
        assert client.post("/subscribe", headers={"X-Real-IP": "8.8.8.8"}).status_code == 200
        assert client.post("/subscribe").status_code == 200

    def test_policies_do_not_share_budget(self, app_factory) -> None:
        app = app_factory(email_requests=1, admin_requests=1)
        _mount_policy_routes(app)
        client = TestClient(app)

        assert client.post("/subscribe").status_code == 200
        assert client.post("/subscribe").status_code == 429

        assert client.post("/send").status_code == 200
        assert client.post("/send").status_code == 429

        assert client.get("/health").status_code == 200

    def test_apps_do_not_share_limiters(self, app_factory) -> None:
        first = app_factory(email_requests=1)
        second = app_factory(email_requests=1)
        _mount_policy_routes(first)
        _mount_policy_routes(second)

        assert TestClient(first).post("/subscribe").status_code == 200
        assert TestClient(first).post("/subscribe").status_code == 429
        assert TestClient(second).post("/subscribe").status_code == 200

    def test_disabled_rate_limiting_lets_everything_through(self, app_factory) -> None:
        app = app_factory(email_requests=1, enabled=False)
        _mount_policy_routes(app)
        client = TestClient(app)

        assert [client.post("/subscribe").status_code for _ in range(3)] == [200, 200, 200]
        assert len(app.state.rate_limiters[RateLimitPolicy.EMAIL]) == 0

    def test_denial_is_logged_with_hashed_client(self, app_factory, caplog) -> None:
        app = app_factory(email_requests=1)
        _mount_policy_routes(app)
        client = TestClient(app)
        headers = {"X-Forwarded-For": "203.0.113.7"}

        client.post("/subscribe", headers=headers)
        with caplog.at_level("WARNING", logger="newsletter.core.rate_limit"):
            client.post("/subscribe", headers=headers)

        records = [r for r in caplog.records if r.getMessage() == "rate_limit.exceeded"]
        assert len(records) == 1
        assert records[0].policy == "email"
        assert records[0].client_hash != "203.0.113.7"
        assert "203.0.113.7" not in caplog.text

    def test_apps_honour_their_own_settings(self, app_factory) -> None:
        strict = app_factory(email_requests=1)
        open_ = app_factory(email_requests=1, enabled=False)
        _mount_policy_routes(strict)
        _mount_policy_routes(open_)
        strict_client = TestClient(strict)
        open_client = TestClient(open_)

        assert [strict_client.post("/subscribe").status_code for _ in range(2)] == [200, 429]
        assert [open_client.post("/subscribe").status_code for _ in range(3)] == [200, 200, 200]

        assert strict.state.settings.rate_limit.enabled is True
        assert open_.state.settings.rate_limit.enabled is False
        assert strict.state.rate_limiters[RateLimitPolicy.EMAIL].limit == 1

    def test_create_app_leaves_process_settings_untouched(self, app_factory) -> None:
        from newsletter.core.config import settings as process_settings

        app = app_factory(email_requests=2, enabled=False)

        assert app.state.settings is not process_settings
        assert process_settings.rate_limit.enabled is True
        assert process_settings.rate_limit.email_requests == 5
