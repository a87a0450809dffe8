"""Prometheus export and JSON snapshot contract tests.

Counter values are process-global for Prometheus collectors, so only metric
names and monotonic in-process counters are asserted.
"""


def test_prometheus_metrics_endpoint_returns_200(client, register_and_login):
    register_and_login()
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "storefront_http_requests_total" in r.text
    assert "storefront_customer_logins_total" in r.text
    assert "storefront_searches_total" in r.text


def test_metrics_snapshot_counts_requests(client):
    client.get("/health/live")
    r = client.get("/metrics/snapshot")
    assert r.status_code == 200
    body = r.json()
    assert isinstance(body["requests"], dict)
    assert body["events"].get("health_live", 0) >= 1
    assert body["requests_total"] >= 1
    assert body["requests"]["requests_GET"] >= 1


def test_login_is_counted(client, register_and_login):
    register_and_login()
    body = client.get("/metrics/snapshot").json()
    assert body["events"].get("customer_login") == 1
    assert body["events"].get("customer_registered") == 1
