"""API tests for reservation lifecycle endpoints."""

from __future__ import annotations

import uuid
from datetime import date, timedelta

import pytest

pytestmark = pytest.mark.asyncio

START = date.today() + timedelta(days=60)


async def _create(
    client, cabin_id: int, *, payment_method: str = "cash_on_arrival", offset: int = 0
) -> str:
    check_in = START + timedelta(days=offset)
    response = await client.post(
        "/api/v1/rpc/create_reservation",
        json={
            "cabin_id": cabin_id,
            "guest_name": "Reza Karimi",
            "guest_phone": "09351234567",
            "guests_count": 3,
            "check_in": check_in.isoformat(),
            "check_out": (check_in + timedelta(days=2)).isoformat(),
            "payment_method": payment_method,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["reservation_id"]


async def test_get_reservation(app_context: dict[str, object]) -> None:
    client = app_context["client"]
    reservation_id = await _create(client, app_context["cabin_id"])

    response = await client.get(f"/api/v1/reservations/{reservation_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == reservation_id
    assert data["status"] == "pending"
    assert data["payment_status"] == "unpaid"
    assert data["nights_count"] == 2
    assert data["check_in_date"] == START.isoformat()


async def test_unknown_reservation_returns_404(app_context: dict[str, object]) -> None:
    client = app_context["client"]
    missing = uuid.uuid4()

    fetched = await client.get(f"/api/v1/reservations/{missing}")
    confirmed = await client.post(f"/api/v1/reservations/{missing}/confirm")

    assert fetched.status_code == 404
    assert confirmed.status_code == 404
    assert confirmed.json()["detail"]["error"] == "RESERVATION_NOT_FOUND"


async def test_online_payment_flow(app_context: dict[str, object]) -> None:
    client = app_context["client"]
    reservation_id = await _create(
        client, app_context["cabin_id"], payment_method="online_zarinpal"
    )

    verified = await client.post(
        f"/api/v1/reservations/{reservation_id}/verify-payment",
        json={"reference": "A0000000000000000000000000123", "verified_by": "zarinpal"},
    )
    assert verified.status_code == 200
    assert verified.json()["status"] == "confirmed"
    assert verified.json()["payment_status"] == "paid"

    refunded = await client.post(f"/api/v1/reservations/{reservation_id}/refund")
    assert refunded.status_code == 200
    assert refunded.json()["payment_status"] == "refunded"


async def test_failed_payment_then_manual_confirm(app_context: dict[str, object]) -> None:
    client = app_context["client"]
    reservation_id = await _create(
        client, app_context["cabin_id"], payment_method="online_paypal"
    )

    failed = await client.post(f"/api/v1/reservations/{reservation_id}/fail-payment")
    confirmed = await client.post(f"/api/v1/reservations/{reservation_id}/confirm")
    completed = await client.post(f"/api/v1/reservations/{reservation_id}/complete")

    assert failed.json()["status"] == "pending"
    assert failed.json()["payment_status"] == "failed"
    assert confirmed.json()["status"] == "confirmed"
    assert completed.json()["status"] == "completed"


async def test_cancelled_reservation_rejects_transitions(
    app_context: dict[str, object],
) -> None:
    client = app_context["client"]
    reservation_id = await _create(client, app_context["cabin_id"])

    cancelled = await client.post(
        f"/api/v1/reservations/{reservation_id}/cancel",
        json={"reason": "Guest changed plans"},
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    for action in ("confirm", "complete", "fail-payment"):
        response = await client.post(f"/api/v1/reservations/{reservation_id}/{action}")
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "ILLEGAL_TRANSITION"

    cancelled_again = await client.post(
        f"/api/v1/reservations/{reservation_id}/cancel", json={}
    )
    assert cancelled_again.status_code == 409


async def test_cancel_frees_dates_for_rebooking(app_context: dict[str, object]) -> None:
    client = app_context["client"]
    cabin_id = app_context["cabin_id"]
    reservation_id = await _create(client, cabin_id)

    await client.post(f"/api/v1/reservations/{reservation_id}/cancel", json={})

    await _create(client, cabin_id)


async def test_start_payment_records_gateway_reference(
    app_context: dict[str, object],
) -> None:
    client = app_context["client"]
    reservation_id = await _create(
        client, app_context["cabin_id"], payment_method="online_zarinpal"
    )

    started = await client.post(
        f"/api/v1/reservations/{reservation_id}/start-payment",
        json={"reference": "A00000000000000000000000000123456789"},
    )
    repeated = await client.post(
        f"/api/v1/reservations/{reservation_id}/start-payment",
        json={"reference": "A00000000000000000000000000987654321"},
    )

    assert started.status_code == 200
    assert started.json()["status"] == "pending_payment"
    assert started.json()["payment_status"] == "pending"
    assert started.json()["payment_reference"] == "A00000000000000000000000000123456789"
    assert repeated.status_code == 409
    assert repeated.json()["detail"]["error"] == "ILLEGAL_TRANSITION"


async def test_list_reservations(app_context: dict[str, object]) -> None:
    client = app_context["client"]
    cabin_id = app_context["cabin_id"]
    older = await _create(client, cabin_id)
    newer = await _create(client, cabin_id, payment_method="online_paypal", offset=5)
    await client.post(f"/api/v1/reservations/{older}/cancel", json={})

    everything = await client.get("/api/v1/reservations")
    active = await client.get(
        "/api/v1/reservations",
        params={"cabin_id": cabin_id, "status": ["pending", "pending_payment", "confirmed"]},
    )
    other_cabin = await client.get("/api/v1/reservations", params={"cabin_id": cabin_id + 1})

    assert everything.status_code == 200
    assert [item["id"] for item in everything.json()] == [newer, older]
    assert everything.json()[0]["cabin"]["id"] == cabin_id
    assert everything.json()[0]["cabin"]["name_en"] == "Forest Cabin"
    assert [item["id"] for item in active.json()] == [newer]
    assert other_cabin.json() == []
