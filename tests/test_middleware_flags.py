from fastapi.testclient import TestClient

from storefront.api.main import create_app
from storefront.api.middleware.request_context import RateLimitMiddleware


def test_rate_limit_hits_on_storefront_api(monkeypatch):
    monkeypatch.setenv("STOREFRONT_RATE_LIMIT_ENABLED", "1")
    monkeypatch.setenv("STOREFRONT_RATE_LIMIT_RPM", "2")

    c = TestClient(create_app())
    headers = {"X-Forwarded-For": "1.2.3.4"}

    r1 = c.get("/storefront-api/customer/addresses", headers=headers)
    r2 = c.get("/storefront-api/customer/addresses", headers=headers)
    r3 = c.get("/storefront-api/customer/addresses", headers=headers)

    assert r1.status_code == 403
    assert r2.status_code == 403
    assert r3.status_code == 429
    assert r3.json()["detail"]["code"] == "FRAMEWORK_TOO_MANY_REQUESTS"
    assert "Retry-After" in r3.headers

    # health probes are never limited
    assert c.get("/health/live", headers=headers).status_code == 200


def test_security_headers_on_in_prod(monkeypatch):
    monkeypatch.setenv("STOREFRONT_ENV", "prod")
    monkeypatch.delenv("STOREFRONT_SECURITY_HEADERS_ENABLED", raising=False)

    c = TestClient(create_app())
    r = c.get("/health")
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["X-Content-Type-Options"] == "nosniff"


def test_security_headers_off_in_dev(monkeypatch):
    monkeypatch.setenv("STOREFRONT_ENV", "dev")
    monkeypatch.delenv("STOREFRONT_SECURITY_HEADERS_ENABLED", raising=False)

    c = TestClient(create_app())
    assert "X-Frame-Options" not in c.get("/health").headers


def test_rotating_forwarded_for_does_not_escape_the_limit(monkeypatch):
    monkeypatch.setenv("STOREFRONT_RATE_LIMIT_ENABLED", "1")
    monkeypatch.setenv("STOREFRONT_RATE_LIMIT_RPM", "2")
    monkeypatch.delenv("STOREFRONT_TRUSTED_PROXIES", raising=False)

    c = TestClient(create_app())
    codes = [
        c.get("/storefront-api/customer", headers={"X-Forwarded-For": f"10.0.0.{i}"}).status_code
        for i in range(3)
    ]
    assert codes == [403, 403, 429]


def test_forwarded_for_is_used_behind_trusted_proxy(monkeypatch):
    monkeypatch.setenv("STOREFRONT_RATE_LIMIT_ENABLED", "1")
    monkeypatch.setenv("STOREFRONT_RATE_LIMIT_RPM", "1")
    # TestClient connects from "testclient"
    monkeypatch.setenv("STOREFRONT_TRUSTED_PROXIES", "testclient")

    c = TestClient(create_app())
    assert c.get("/storefront-api/customer", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 403
    assert c.get("/storefront-api/customer", headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 403
    assert c.get("/storefront-api/customer", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429
    # a spoofed leftmost hop does not change the client seen by the proxy
    assert c.get("/storefront-api/customer", headers={"X-Forwarded-For": "6.6.6.6, 10.0.0.2"}).status_code == 429


def test_rate_limit_drops_previous_minutes():
    rl = RateLimitMiddleware(None, enabled=True, rpm=10)
    for i in range(5):
        rl.hit(f"10.0.0.{i}", minute=100)
    assert rl.tracked_clients() == 5

    assert rl.hit("10.0.0.9", minute=101) == 1
    assert rl.tracked_clients() == 1
    assert rl.hit("10.0.0.0", minute=101) == 1


def test_storefront_responses_are_not_cacheable_in_prod(monkeypatch):
    monkeypatch.setenv("STOREFRONT_ENV", "prod")
    monkeypatch.delenv("STOREFRONT_SECURITY_HEADERS_ENABLED", raising=False)

    c = TestClient(create_app())
    r = c.get("/storefront-api/customer")
    assert r.headers["Cache-Control"] == "no-store"
    assert r.headers["Content-Security-Policy"].startswith("default-src 'none'")
    assert "Cache-Control" not in c.get("/health").headers
