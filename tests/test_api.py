"""HTTP surface: routing, auth, error bodies."""

from datetime import timedelta
from decimal import Decimal

import httpx
import pytest

from hotelops.api.deps import get_backend, get_clock, get_idempotency, parse_if_match
from hotelops.core.exceptions import ValidationError
from hotelops.core.security import create_access_token
from hotelops.main import app

from .conftest import GUEST, HOUSEKEEPING, NOW, RECEPTIONIST

PREFIX = "/api/v1"


def auth(actor) -> dict[str, str]:
    token = create_access_token({"sub": actor.id, "role": actor.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(backend, clock, store):
    async def _backend():
        yield backend

    app.dependency_overrides[get_backend] = _backend
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_idempotency] = lambda: store
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


class TestIfMatch:
    @pytest.mark.parametrize("value, expected", [(None, None), ("3", 3), ('"3"', 3), ('W/"12"', 12)])
    def test_parses_versions(self, value, expected):
        assert parse_if_match(value) == expected

    @pytest.mark.parametrize("value", ["abc", "0"])
    def test_rejects_garbage(self, value):
        with pytest.raises(ValidationError):
            parse_if_match(value)


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_requires_token(client, make_booking):
    booking = await make_booking()
    response = await client.get(f"{PREFIX}/bookings/{booking.id}")
    assert response.status_code in (401, 403)


async def test_rejects_bad_token(client, make_booking):
    booking = await make_booking()
    response = await client.get(
        f"{PREFIX}/bookings/{booking.id}", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert response.status_code == 401
    assert response.json()["code"] == "authentication_failed"


async def test_booking_detail(client, make_booking):
    booking = await make_booking()
    response = await client.get(f"{PREFIX}/bookings/{booking.id}", headers=auth(RECEPTIONIST))
    assert response.status_code == 200
    body = response.json()
    assert body["booking"]["id"] == booking.id
    assert body["booking"]["kind"] == "room"
    assert body["allowed_transitions"] == ["cancelled", "checkedin"]
    assert Decimal(body["outstanding_balance"]) == Decimal("15000")


async def test_missing_booking_is_404(client):
    response = await client.get(f"{PREFIX}/bookings/nope", headers=auth(RECEPTIONIST))
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


async def test_guest_cancel_of_confirmed_is_403(client, make_booking):
    booking = await make_booking()
    response = await client.post(
        f"{PREFIX}/bookings/{booking.id}/transitions",
        json={"target": "cancelled"},
        headers=auth(GUEST),
    )
    assert response.status_code == 403
    body = response.json()
    assert body["code"] == "forbidden_transition"
    assert body["current"] == "confirmed"


async def test_check_out_with_balance_is_402(client, make_booking):
    booking = await make_booking(status="checkedin", total_amount=Decimal("20000"), total_paid=Decimal("15000"))
    response = await client.post(
        f"{PREFIX}/bookings/{booking.id}/transitions",
        json={"target": "completed"},
        headers=auth(RECEPTIONIST),
    )
    assert response.status_code == 402
    body = response.json()
    assert body["code"] == "payment_required"
    assert body["outstanding"] == "5000.00"


async def test_stale_if_match_is_409(client, make_booking):
    booking = await make_booking(status="pending")
    response = await client.post(
        f"{PREFIX}/bookings/{booking.id}/transitions",
        json={"target": "confirmed"},
        headers={**auth(RECEPTIONIST), "If-Match": str(booking.version + 1)},
    )
    assert response.status_code == 409
    assert response.json()["current_version"] == booking.version


async def test_confirm_with_if_match(client, make_booking):
    booking = await make_booking(status="pending")
    response = await client.post(
        f"{PREFIX}/bookings/{booking.id}/transitions",
        json={"target": "confirmed"},
        headers={**auth(RECEPTIONIST), "If-Match": str(booking.version), "Idempotency-Key": "k-1"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"
    assert response.json()["version"] == booking.version + 1


async def test_cancellation_penalty_preview(client, make_booking):
    booking = await make_booking(check_in_date=NOW + timedelta(hours=10))
    response = await client.get(
        f"{PREFIX}/bookings/{booking.id}/cancellation-penalty", headers=auth(GUEST)
    )
    assert response.status_code == 200
    body = response.json()
    assert body["amount"] == "5000.00"
    assert body["currency"] == "LKR"
    assert "24 hours" in body["policy"]


async def test_unconfirmed_cash_is_422(client, make_booking):
    booking = await make_booking()
    response = await client.post(
        f"{PREFIX}/bookings/{booking.id}/payments",
        json={"amount": "1000", "payment_method": "cash"},
        headers=auth(RECEPTIONIST),
    )
    assert response.status_code == 422
    assert response.json()["code"] == "precondition_failed"


async def test_card_payment_is_201(client, make_booking):
    booking = await make_booking()
    response = await client.post(
        f"{PREFIX}/bookings/{booking.id}/payments",
        json={"amount": "1000", "payment_method": "card"},
        headers=auth(GUEST),
    )
    assert response.status_code == 201
    assert response.json()["outstanding"] == "14000.00"

    balance = await client.get(f"{PREFIX}/bookings/{booking.id}/balance", headers=auth(GUEST))
    assert balance.json()["total_paid"] == "1000.00"


async def test_facility_detail(client, make_facility_booking):
    booking = await make_facility_booking()
    response = await client.get(f"{PREFIX}/facility-bookings/{booking.id}", headers=auth(GUEST))
    assert response.status_code == 200
    assert response.json()["allowed_transitions"] == []


async def test_checkout_state(client, make_booking):
    booking = await make_booking(status="checkedin", check_in_date=NOW - timedelta(hours=1))
    response = await client.get(f"{PREFIX}/bookings/{booking.id}/checkout", headers=auth(RECEPTIONIST))
    assert response.status_code == 200
    assert response.json()["step"] == "generate_invoice"


async def test_housekeeping_updates_service_request(client, backend, make_booking):
    booking = await make_booking(status="checkedin", check_in_date=NOW - timedelta(hours=1))
    request = await backend.create_service_request(
        booking_id=booking.id, service_type="housekeeping", unit_price=Decimal("0")
    )
    response = await client.patch(
        f"{PREFIX}/service-requests/{request.id}/status",
        json={"status": "in_progress", "assigned_to": HOUSEKEEPING.id},
        headers=auth(HOUSEKEEPING),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "in_progress"
    assert response.json()["assigned_to"] == HOUSEKEEPING.id

    skipped = await client.patch(
        f"{PREFIX}/service-requests/{request.id}/status",
        json={"status": "pending"},
        headers=auth(HOUSEKEEPING),
    )
    assert skipped.status_code == 403
