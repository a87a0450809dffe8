from storefront.core.context.service import CONTEXT_TOKEN_HEADER

from conftest import registration_payload


def test_every_storefront_response_carries_a_context_token(client):
    r = client.get("/storefront-api/customer")
    assert CONTEXT_TOKEN_HEADER in r.headers

    token = r.headers[CONTEXT_TOKEN_HEADER]
    r2 = client.get("/storefront-api/customer", headers={CONTEXT_TOKEN_HEADER: token})
    assert r2.headers[CONTEXT_TOKEN_HEADER] == token


def test_register_returns_customer_id_envelope(client):
    r = client.post("/storefront-api/customer", json=registration_payload())
    assert r.status_code == 200, r.text
    body = r.json()
    assert list(body.keys()) == ["data"]
    assert len(body["data"]) == 32


def test_register_duplicate_email_conflicts(client):
    assert client.post("/storefront-api/customer", json=registration_payload()).status_code == 200
    r = client.post("/storefront-api/customer", json=registration_payload())
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "CHECKOUT_CUSTOMER_ALREADY_EXISTS"


def test_register_validates_payload(client):
    r = client.post("/storefront-api/customer", json=registration_payload(email="not-an-email"))
    assert r.status_code == 422
    r = client.post("/storefront-api/customer", json=registration_payload(password=None))
    assert r.status_code == 422


def test_login_returns_token_and_detail_is_served(client, register_and_login):
    customer_id, headers = register_and_login()

    r = client.get("/storefront-api/customer", headers=headers)
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["id"] == customer_id
    assert data["firstName"] == "Ada"
    assert data["email"] == "ada@example.com"
    assert "passwordHash" not in data
    assert r.headers[CONTEXT_TOKEN_HEADER] == headers[CONTEXT_TOKEN_HEADER]


def test_login_failures(client, register_and_login):
    register_and_login()
    r = client.post("/storefront-api/customer/login", json={"username": "ada@example.com", "password": "nope"})
    assert r.status_code == 401
    r = client.post("/storefront-api/customer/login", json={"username": "who@example.com", "password": "nope"})
    assert r.status_code == 401
    r = client.post("/storefront-api/customer/login", json={"username": "ada@example.com"})
    assert r.status_code == 422


def test_detail_requires_login(client):
    r = client.get("/storefront-api/customer")
    assert r.status_code == 403
    assert r.json()["detail"]["code"] == "CHECKOUT_CUSTOMER_NOT_LOGGED_IN"


def test_logout(client, register_and_login):
    _, headers = register_and_login()
    r = client.post("/storefront-api/customer/logout", headers=headers)
    assert r.status_code == 204
    assert r.content == b""
    fresh = r.headers[CONTEXT_TOKEN_HEADER]
    assert fresh != headers[CONTEXT_TOKEN_HEADER]

    r = client.get("/storefront-api/customer", headers={CONTEXT_TOKEN_HEADER: fresh})
    assert r.status_code == 403
    assert r.headers[CONTEXT_TOKEN_HEADER] == fresh

    r = client.get("/storefront-api/customer", headers=headers)
    assert r.status_code == 403
    assert r.headers[CONTEXT_TOKEN_HEADER] != headers[CONTEXT_TOKEN_HEADER]


def test_profile_email_password_updates(client, register_and_login):
    _, headers = register_and_login()

    r = client.put(
        "/storefront-api/customer/profile",
        json={"salutation": "mrs", "firstName": "Augusta", "lastName": "King"},
        headers=headers,
    )
    assert r.status_code == 204

    r = client.put(
        "/storefront-api/customer/email",
        json={"email": "augusta@example.com", "emailConfirmation": "augusta@example.com"},
        headers=headers,
    )
    assert r.status_code == 204

    r = client.put(
        "/storefront-api/customer/password",
        json={"password": "n3w-pass", "passwordConfirmation": "n3w-pass"},
        headers=headers,
    )
    assert r.status_code == 204

    data = client.get("/storefront-api/customer", headers=headers).json()["data"]
    assert data["firstName"] == "Augusta"
    assert data["email"] == "augusta@example.com"

    r = client.post(
        "/storefront-api/customer/login", json={"username": "augusta@example.com", "password": "n3w-pass"}
    )
    assert r.status_code == 200


def test_empty_password_is_rejected(client, register_and_login):
    _, headers = register_and_login()
    r = client.put("/storefront-api/customer/password", json={"password": ""}, headers=headers)
    assert r.status_code == 422


def test_password_whitespace_is_kept(client, register_and_login):
    register_and_login(email="  Ada@Example.com ", password="  padded pass  ")

    r = client.post("/storefront-api/customer/login", json={"username": "ada@example.com", "password": "padded pass"})
    assert r.status_code == 401

    r = client.post("/storefront-api/customer/login", json={"username": "ada@example.com", "password": "  padded pass  "})
    assert r.status_code == 200


def test_email_confirmation_mismatch(client, register_and_login):
    _, headers = register_and_login()
    r = client.put(
        "/storefront-api/customer/email",
        json={"email": "a@example.com", "emailConfirmation": "b@example.com"},
        headers=headers,
    )
    assert r.status_code == 400


def test_updates_require_login(client):
    r = client.put(
        "/storefront-api/customer/profile",
        json={"firstName": "A", "lastName": "B"},
    )
    assert r.status_code == 403
