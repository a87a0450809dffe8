import os

import pytest
from fastapi.testclient import TestClient

from storefront.api.main import app
from storefront.api.state import build_services, set_services
from storefront.core.context.service import CONTEXT_TOKEN_HEADER, TokenConfig
from storefront.core.observability.metrics import reset_metrics

COUNTRY_ID = "a1b2c3d4e5f60718293a4b5c6d7e8f90"


@pytest.fixture(scope="session", autouse=True)
def _force_test_env():
    # Make runtime behave deterministically in tests
    os.environ.setdefault("STOREFRONT_ENV", "dev")


@pytest.fixture(autouse=True)
def services():
    svc = build_services(token_config=TokenConfig(signing_key="test-signing-key"))
    set_services(svc)
    reset_metrics()
    yield svc
    set_services(None)


@pytest.fixture()
def client():
    return TestClient(app)


def address_payload(**overrides):
    body = {
        "salutation": "mr",
        "firstName": "Ada",
        "lastName": "Lovelace",
        "street": "Main Street 1",
        "zipcode": "12345",
        "city": "London",
        "countryId": COUNTRY_ID,
    }
    body.update(overrides)
    return body


def registration_payload(email="ada@example.com", password="s3cret-pass", **overrides):
    body = {
        "salutation": "mrs",
        "firstName": "Ada",
        "lastName": "Lovelace",
        "email": email,
        "password": password,
        "billingAddress": address_payload(),
    }
    body.update(overrides)
    return body


@pytest.fixture()
def register_and_login(client):
    """Registers a customer through the API and returns (customer_id, headers)."""

    def _do(email="ada@example.com", password="s3cret-pass"):
        r = client.post("/storefront-api/customer", json=registration_payload(email=email, password=password))
        assert r.status_code == 200, r.text
        customer_id = r.json()["data"]

        r = client.post("/storefront-api/customer/login", json={"username": email, "password": password})
        assert r.status_code == 200, r.text
        token = r.json()[CONTEXT_TOKEN_HEADER]
        return customer_id, {CONTEXT_TOKEN_HEADER: token}

    return _do
