from fastapi.testclient import TestClient

PROMOS = "/api/v1/promo-codes"
SPACE_PRICING = "/api/v1/spaces/space_1/pricing"

PROMO = {
    "code": "launch20",
    "type": "percentage",
    "value": 20,
    "valid_from": "2025-01-01T00:00:00Z",
    "valid_until": "2025-12-31T23:59:59Z",
    "usage_limit": 1,
    "restrictions": {"max_discount_amount": 150},
}

BOOKING = {"booking_date": "2025-06-04", "start_time": "14:00", "end_time": "16:00"}


def _create(client: TestClient, headers, body=PROMO):
    return client.post(PROMOS, headers=headers, json=body)


def _set_pricing(client: TestClient, headers):
    client.put(SPACE_PRICING, headers=headers, json={"pricing": {"base_price": 500}})


def test_create_requires_admin(client: TestClient, user_headers) -> None:
    assert _create(client, user_headers).status_code == 403


def test_create_and_get(client: TestClient, admin_headers, user_headers) -> None:
    response = _create(client, admin_headers)

    assert response.status_code == 201
    content = response.json()
    assert content["code"] == "LAUNCH20"
    assert content["status"] == "active"
    assert content["remaining_uses"] == 1
    assert content["is_valid"] is True

    response = client.get(f"{PROMOS}/launch20", headers=user_headers)
    assert response.status_code == 200
    assert response.json()["restrictions"]["max_discount_amount"] == 150


def test_duplicate_code_conflicts(client: TestClient, admin_headers) -> None:
    _create(client, admin_headers)
    assert _create(client, admin_headers).status_code == 409


def test_create_validates_promo(client: TestClient, admin_headers) -> None:
    too_much = {**PROMO, "value": 120}
    backwards = {**PROMO, "valid_until": "2024-01-01T00:00:00Z"}
    bad_code = {**PROMO, "code": "no spaces!"}

    assert _create(client, admin_headers, too_much).status_code == 422
    assert _create(client, admin_headers, backwards).status_code == 422
    assert _create(client, admin_headers, bad_code).status_code == 422


def test_unknown_code_is_404(client: TestClient, user_headers) -> None:
    response = client.get(f"{PROMOS}/MISSING", headers=user_headers)

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "MISSING"


def test_validate_previews_and_counts_view(client: TestClient, admin_headers, user_headers) -> None:
    _create(client, admin_headers)

    response = client.post(
        f"{PROMOS}/LAUNCH20/validate",
        headers=user_headers,
        json={"amount": 1000, "booking_date": "2025-06-04", "duration_hours": 2},
    )

    assert response.status_code == 200
    content = response.json()
    assert content["is_eligible"] is True
    assert content["discount_amount"] == 150
    assert content["final_amount"] == 850

    promo = client.get(f"{PROMOS}/LAUNCH20", headers=user_headers).json()
    assert promo["analytics"]["total_views"] == 1
    assert promo["current_usage"] == 0


def test_checkout_consumes_code(client: TestClient, admin_headers, user_headers) -> None:
    _create(client, admin_headers)
    _set_pricing(client, user_headers)

    first = client.post(
        f"{SPACE_PRICING}/checkout",
        headers=user_headers,
        json={**BOOKING, "promo_code": "launch20", "booking_id": "bk_1"},
    )
    second = client.post(
        f"{SPACE_PRICING}/checkout",
        headers=admin_headers,
        json={**BOOKING, "promo_code": "launch20", "booking_id": "bk_2"},
    )

    assert first.status_code == 200
    applied = first.json()
    assert applied["promo_code_applied"] == {"code": "LAUNCH20", "discount": 150, "type": "percentage"}
    assert applied["breakdown"]["promo_discount"] == 150
    assert applied["final_price"] == 850

    assert second.json()["promo_rejection"] == "EXHAUSTED"
    assert second.json()["final_price"] == 1000

    promo = client.get(f"{PROMOS}/LAUNCH20", headers=user_headers).json()
    assert promo["current_usage"] == 1
    assert promo["status"] == "exhausted"
    assert promo["analytics"]["failure_reasons"] == {"EXHAUSTED": 1}


def test_quote_does_not_consume_code(client: TestClient, admin_headers, user_headers) -> None:
    _create(client, admin_headers)
    _set_pricing(client, user_headers)

    for _ in range(2):
        quote = client.post(
            f"{SPACE_PRICING}/quote", headers=user_headers, json={**BOOKING, "promo_code": "LAUNCH20"}
        ).json()
        assert quote["final_price"] == 850

    promo = client.get(f"{PROMOS}/LAUNCH20", headers=user_headers).json()
    assert promo["current_usage"] == 0


def test_pause_resume_delete(client: TestClient, admin_headers, user_headers) -> None:
    _create(client, admin_headers)

    assert client.post(f"{PROMOS}/LAUNCH20/pause", headers=user_headers, json={}).status_code == 403

    paused = client.post(
        f"{PROMOS}/LAUNCH20/pause", headers=admin_headers, json={"reason": "abuse"}
    ).json()
    assert paused["status"] == "paused"
    assert paused["pause_reason"] == "abuse"

    verdict = client.post(f"{PROMOS}/LAUNCH20/validate", headers=user_headers, json={}).json()
    assert verdict["is_eligible"] is False
    assert verdict["reason"] == "INACTIVE"

    resumed = client.post(f"{PROMOS}/LAUNCH20/resume", headers=admin_headers).json()
    assert resumed["status"] == "active"

    assert client.delete(f"{PROMOS}/LAUNCH20", headers=admin_headers).status_code == 204
    assert client.get(f"{PROMOS}/LAUNCH20", headers=user_headers).status_code == 404
    assert client.delete(f"{PROMOS}/LAUNCH20", headers=admin_headers).status_code == 404
