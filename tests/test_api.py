"""HTTP API tests using FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from hotel_ledger.api import create_app


@pytest.fixture
def client(ledger):
    return TestClient(create_app(ledger=ledger))


def booking(**overrides):
    body = {
        "propertyId": "P1",
        "roomId": "R1",
        "checkIn": "2024-06-01",
        "checkOut": "2024-06-04",
        "guestName": "Ada Lovelace",
        "guestEmail": "ada@example.com",
        "adults": 2,
    }
    body.update(overrides)
    return body


class TestReservationRoutes:
    """Tests for the /reservations endpoints."""

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_create_reservation(self, client):
        response = client.post("/reservations", json=booking())

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Reservation created"
        assert body["data"]["totalAmount"] == "300.00"
        assert body["data"]["status"] == "confirmed"
        assert body["data"]["guestName"] == "Ada Lovelace"
        assert body["data"]["checkOut"] == "2024-06-04"

    def test_conflict_returns_409(self, client):
        client.post("/reservations", json=booking())

        response = client.post(
            "/reservations",
            json=booking(checkIn="2024-06-02", checkOut="2024-06-05", adults=1),
        )

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "conflict"
        assert "2024-06-02" in body["message"]

    def test_invalid_range_returns_400(self, client):
        response = client.post("/reservations", json=booking(checkOut="2024-06-01"))

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_range"

    def test_over_capacity_returns_400(self, client):
        response = client.post("/reservations", json=booking(adults=2, children=1))

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_malformed_body_returns_422(self, client):
        response = client.post("/reservations", json={"propertyId": "P1"})

        assert response.status_code == 422

    def test_rate_unavailable_returns_422(self, client):
        response = client.post(
            "/reservations",
            json=booking(propertyId="P2", roomId="C2", checkIn="2024-12-23", checkOut="2024-12-26"),
        )

        assert response.status_code == 422
        assert response.json()["error"] == "rate_unavailable"

    def test_unknown_reservation_returns_404(self, client):
        response = client.get("/reservations/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_get_update_and_cancel(self, client):
        created = client.post("/reservations", json=booking()).json()["data"]
        reservation_id = created["reservationId"]

        fetched = client.get(f"/reservations/{reservation_id}")
        assert fetched.json()["data"]["reservationId"] == reservation_id

        updated = client.put(
            f"/reservations/{reservation_id}",
            json={"checkIn": "2024-06-10", "checkOut": "2024-06-12"},
        )
        assert updated.status_code == 200
        assert updated.json()["data"]["totalAmount"] == "200.00"

        cancelled = client.delete(f"/reservations/{reservation_id}")
        assert cancelled.json()["data"]["status"] == "cancelled"
        assert cancelled.json()["data"]["paymentStatus"] == "refunded"

        again = client.delete(f"/reservations/{reservation_id}")
        assert again.status_code == 409
        assert again.json()["error"] == "invalid_state"

    def test_lifecycle_routes(self, client):
        created = client.post("/reservations", json=booking(confirm=False)).json()["data"]
        reservation_id = created["reservationId"]
        assert created["status"] == "pending"

        assert client.post(f"/reservations/{reservation_id}/confirm").json()["data"]["status"] == "confirmed"
        assert client.post(f"/reservations/{reservation_id}/payment").json()["data"]["paymentStatus"] == "paid"
        assert client.post(f"/reservations/{reservation_id}/check-in").json()["data"]["status"] == "checked-in"
        assert client.post(f"/reservations/{reservation_id}/check-out").json()["data"]["status"] == "checked-out"

    def test_group_booking(self, client):
        response = client.post(
            "/reservations/group",
            json={
                "propertyId": "P1",
                "checkIn": "2024-06-01",
                "checkOut": "2024-06-03",
                "guestName": "Ada Lovelace",
                "guestEmail": "ada@example.com",
                "rooms": [{"roomId": "R1", "adults": 2}, {"roomId": "R2", "adults": 3}],
            },
        )

        assert response.status_code == 201
        assert response.json()["count"] == 2

    def test_list_reservations(self, client):
        client.post("/reservations", json=booking())
        client.post("/reservations", json=booking(roomId="R2", checkIn="2024-07-01", checkOut="2024-07-02"))

        everything = client.get("/reservations", params={"propertyId": "P1"}).json()
        june_only = client.get(
            "/reservations",
            params={"propertyId": "P1", "start": "2024-06-01", "end": "2024-06-30"},
        ).json()

        assert everything["count"] == 2
        assert june_only["count"] == 1
        assert june_only["data"][0]["roomId"] == "R1"

    def test_list_with_inverted_range(self, client):
        response = client.get(
            "/reservations",
            params={"propertyId": "P1", "start": "2024-06-30", "end": "2024-06-01"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_range"

    def test_busy_room_returns_503(self, client, store):
        with store.room_locks.hold(["R1"]):
            response = client.post("/reservations", json=booking())

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "1"
        assert response.json()["error"] == "busy"


class TestRoomRoutes:
    """Tests for availability, calendars, quotes and holds."""

    def test_available_rooms(self, client):
        client.post("/reservations", json=booking())

        response = client.get(
            "/rooms/available",
            params={"propertyId": "P1", "checkIn": "2024-06-02", "checkOut": "2024-06-03", "occupancy": 2},
        )

        body = response.json()
        assert body["count"] == 1
        assert body["data"][0]["room"]["roomId"] == "R2"
        assert body["data"][0]["quote"]["totalAmount"] == "180.00"

    def test_room_calendar(self, client):
        client.post("/reservations", json=booking())

        days = client.get(
            "/rooms/R1/calendar", params={"start": "2024-06-03", "end": "2024-06-05"}
        ).json()["data"]

        assert [day["status"] for day in days] == ["BOOKED", "OPEN"]
        assert days[1]["date"] == "2024-06-04"
        assert days[1]["rate"] == "100"

    def test_quote(self, client):
        response = client.get(
            "/quotes",
            params={"roomId": "C1", "checkIn": "2024-06-03", "checkOut": "2024-06-05", "occupancy": 2},
        )

        data = response.json()["data"]
        assert data["ratePlanId"] == "RP-C1-SUMMER"
        assert data["totalAmount"] == "240.00"
        assert data["cancellationPolicy"] == "moderate"

    def test_block_and_unblock(self, client):
        blocked = client.post(
            "/rooms/R1/blocks",
            json={"start": "2024-06-01", "end": "2024-06-03", "tag": "MAINTENANCE", "note": "Boiler"},
        )
        assert blocked.status_code == 201

        conflict = client.post("/reservations", json=booking())
        assert conflict.status_code == 409

        reopened = client.delete("/rooms/R1/blocks", params={"start": "2024-06-01", "end": "2024-06-03"})
        assert reopened.json()["data"] == {"reopened": 2}
        assert client.post("/reservations", json=booking()).status_code == 201


class TestReportRoutes:
    """Tests for the /reports endpoints."""

    def test_occupancy(self, client):
        client.post("/reservations", json=booking(checkIn="2024-06-02", checkOut="2024-06-05"))

        data = client.get(
            "/reports/occupancy",
            params={"propertyId": "P1", "start": "2024-06-01", "end": "2024-06-06"},
        ).json()["data"]

        assert data["totalRoomNights"] == 10
        assert data["bookedRoomNights"] == 3
        assert data["rate"] == pytest.approx(0.3)

    def test_revenue_with_status_filter(self, client):
        client.post("/reservations", json=booking())
        client.post(
            "/reservations",
            json=booking(roomId="R2", checkIn="2024-06-01", checkOut="2024-06-02", confirm=False),
        )

        default = client.get(
            "/reports/revenue",
            params={"propertyId": "P1", "start": "2024-06-01", "end": "2024-06-10"},
        ).json()["data"]
        everything = client.get(
            "/reports/revenue",
            params=[
                ("propertyId", "P1"),
                ("start", "2024-06-01"),
                ("end", "2024-06-10"),
                ("status", "confirmed"),
                ("status", "pending"),
            ],
        ).json()["data"]

        assert default["totalRevenue"] == "300.00"
        assert everything["totalRevenue"] == "480.00"
        assert everything["bookingCount"] == 2

    def test_sources(self, client):
        client.post("/reservations", json=booking(source="expedia"))

        data = client.get(
            "/reports/sources",
            params={"propertyId": "P1", "start": "2024-06-01", "end": "2024-06-10"},
        ).json()["data"]

        assert data["sources"][0]["source"] == "expedia"
        assert data["sources"][0]["revenue"] == "300.00"

    def test_unknown_property(self, client):
        response = client.get(
            "/reports/occupancy",
            params={"propertyId": "P9", "start": "2024-06-01", "end": "2024-06-06"},
        )

        assert response.status_code == 404
