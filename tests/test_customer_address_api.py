from conftest import address_payload


def test_address_book_flow(client, register_and_login):
    _, headers = register_and_login()

    r = client.get("/storefront-api/customer/addresses", headers=headers)
    assert r.status_code == 200
    initial = r.json()["data"]
    assert len(initial) == 1
    assert initial[0]["countryId"]

    r = client.post("/storefront-api/customer/address", json=address_payload(city="Paris"), headers=headers)
    assert r.status_code == 200, r.text
    address_id = r.json()["data"]

    r = client.get(f"/storefront-api/customer/address/{address_id}", headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["city"] == "Paris"

    r = client.put(f"/storefront-api/customer/default-billing-address/{address_id}", headers=headers)
    assert r.status_code == 200
    assert r.json() == {"data": address_id}

    r = client.put(f"/storefront-api/customer/default-shipping-address/{address_id}", headers=headers)
    assert r.status_code == 200

    customer = client.get("/storefront-api/customer", headers=headers).json()["data"]
    assert customer["defaultBillingAddressId"] == address_id
    assert customer["defaultShippingAddressId"] == address_id

    # default address cannot be deleted; the previous one can
    r = client.delete(f"/storefront-api/customer/address/{address_id}", headers=headers)
    assert r.status_code == 400

    old_id = initial[0]["id"]
    r = client.delete(f"/storefront-api/customer/address/{old_id}", headers=headers)
    assert r.status_code == 200
    assert r.json() == {"data": old_id}

    r = client.get(f"/storefront-api/customer/address/{old_id}", headers=headers)
    assert r.status_code == 404


def test_invalid_ids_are_rejected(client, register_and_login):
    _, headers = register_and_login()
    for method, path in (
        ("get", "/storefront-api/customer/address/not-a-uuid"),
        ("delete", "/storefront-api/customer/address/not-a-uuid"),
        ("put", "/storefront-api/customer/default-billing-address/not-a-uuid"),
        ("put", "/storefront-api/customer/default-shipping-address/not-a-uuid"),
        ("get", "/storefront-api/customer/address/" + "a" * 32 + "%0A"),
        ("put", "/storefront-api/customer/default-billing-address/" + "a" * 32 + "%0A"),
    ):
        r = getattr(client, method)(path, headers=headers)
        assert r.status_code == 400, (method, path)
        assert r.json()["detail"]["code"] == "FRAMEWORK_INVALID_UUID"


def test_other_customers_address_is_not_found(client, register_and_login):
    _, eve = register_and_login(email="eve@example.com")
    eve_address = client.get("/storefront-api/customer/addresses", headers=eve).json()["data"][0]["id"]

    _, ada = register_and_login()
    r = client.get(f"/storefront-api/customer/address/{eve_address}", headers=ada)
    assert r.status_code == 404
    r = client.put(f"/storefront-api/customer/default-shipping-address/{eve_address}", headers=ada)
    assert r.status_code == 404


def test_address_book_requires_login(client):
    assert client.get("/storefront-api/customer/addresses").status_code == 403
    assert client.post("/storefront-api/customer/address", json=address_payload()).status_code == 403


def test_address_payload_is_validated(client, register_and_login):
    _, headers = register_and_login()
    r = client.post("/storefront-api/customer/address", json={"city": "Paris"}, headers=headers)
    assert r.status_code == 422
