"""
Integration Tests - HTTP API
"""
import pytest

from tests.factories import make_aggregate

pytestmark = pytest.mark.integration


@pytest.fixture
async def seeded_client(api_client, memory_store):
    """API client over a store with telecom data for two places"""
    await memory_store.insert_telecom_aggregates([
        make_aggregate(20000, domestic=18000, international=2000),
        make_aggregate(5000, place="Lake Pichola", city="Udaipur", district="Udaipur", domestic=4000, international=1000),
    ])
    return api_client


TICKET = {
    "touristType": "DOMESTIC",
    "phone": "9876543210",
    "countryCode": "+91",
    "visitors": 10,
    "fromCity": "Delhi",
    "state": "Rajasthan",
    "city": "Jaipur",
    "place": "Amber Fort",
}

HOTEL = {
    "serialNo": 1,
    "name": "Rambagh Palace",
    "address": "Bhawani Singh Rd",
    "city": "Jaipur",
    "rating": 4.7,
    "totalRooms": 80,
    "vacancy": 20,
    "nearbyPlaces": ["Hawa Mahal"],
}


class TestHealth:
    """Tests for health endpoints"""

    async def test_liveness(self, api_client):
        """Test the liveness check answers"""
        response = await api_client.get("/api/v1/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    async def test_health_with_memory_store(self, api_client):
        """Test health reports the memory store and disabled cache"""
        response = await api_client.get("/api/v1/health")
        body = response.json()

        assert response.status_code == 200
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["backend"] == "memory"
        assert body["checks"]["redis"] == {"status": "disabled"}
        assert body["checks"]["telecom"]["status"] == "empty"

    async def test_health_reports_latest_telecom_window(self, seeded_client):
        """Test health shows how fresh the telecom data is"""
        response = await seeded_client.get("/api/v1/health")

        assert response.json()["checks"]["telecom"] == {
            "status": "ok",
            "latest_window_start": "2024-05-01T10:00:00",
        }

    async def test_readiness(self, api_client):
        """Test the readiness check answers once the store is reachable"""
        response = await api_client.get("/api/v1/health/ready")
        assert response.json() == {"status": "ready"}

    async def test_request_id_header(self, api_client):
        """Test the request id is echoed back"""
        response = await api_client.get("/api/v1/info", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"
        assert response.json()["store_backend"] == "memory"


class TestTickets:
    """Tests for POST /tickets"""

    async def test_book_ticket(self, api_client):
        """Test a valid booking returns the ticket id"""
        response = await api_client.post("/api/v1/tickets", json=TICKET)
        body = response.json()

        assert response.status_code == 201
        assert body["success"] is True
        assert body["ticket_id"]

    async def test_snake_case_fields_accepted(self, api_client):
        """Test field names work without the camelCase aliases"""
        payload = {
            "tourist_type": "INTERNATIONAL",
            "phone": "+33 6 12 34 56 78",
            "visitors": 2,
            "country": "France",
            "state": "Rajasthan",
            "city": "Jaipur",
            "place": "Hawa Mahal",
        }

        response = await api_client.post("/api/v1/tickets", json=payload)

        assert response.status_code == 201

    async def test_invalid_booking(self, api_client):
        """Test validation failures are listed in a 422"""
        response = await api_client.post("/api/v1/tickets", json={**TICKET, "visitors": "ten", "place": ""})
        body = response.json()

        assert response.status_code == 422
        assert body["success"] is False
        assert set(body["errors"]) == {"visitors must be an integer", "place is required"}


class TestFootfall:
    """Tests for GET /footfall"""

    async def test_summary(self, seeded_client):
        """Test the summary merges bookings into telecom estimates"""
        await seeded_client.post("/api/v1/tickets", json=TICKET)

        response = await seeded_client.get("/api/v1/footfall", params={"state": "Rajasthan"})
        body = response.json()

        assert response.status_code == 200
        assert list(body["cities"]) == ["Jaipur", "Udaipur"]
        [amber] = body["cities"]["Jaipur"]["places"]
        assert amber["name"] == "Amber Fort"
        assert amber["crowd_count"] == 14003
        assert amber["crowd_level"] == "High"
        assert amber["ticket_footfall"] == 10
        assert (amber["domestic"], amber["international"]) == (18000, 2000)
        assert amber["confidence_score"] == 0.9
        assert amber["international_breakdown"] == {}
        assert amber["network_distribution"] == {}

    async def test_inverted_range(self, seeded_client):
        """Test start after end is rejected"""
        response = await seeded_client.get(
            "/api/v1/footfall",
            params={"start": "2024-05-02T00:00:00", "end": "2024-05-01T00:00:00"},
        )

        assert response.status_code == 422
        assert response.json()["errors"] == ["start must not be after end"]

    async def test_timezone_aware_range(self, seeded_client):
        """Test offsets are converted before filtering"""
        response = await seeded_client.get(
            "/api/v1/footfall",
            params={"start": "2024-05-01T15:30:00+05:30", "end": "2024-05-01T15:30:00+05:30"},
        )

        cities = response.json()["cities"]
        assert [p["name"] for p in cities["Jaipur"]["places"]] == ["Amber Fort"]

    async def test_series(self, seeded_client):
        """Test the crowd curve for one place"""
        response = await seeded_client.get(
            "/api/v1/footfall/series",
            params={"city": "Jaipur", "tourist_place": "Amber Fort"},
        )
        body = response.json()

        assert body["series"] == [
            {"time": "2024-05-01T10:00:00", "label": "10:00", "visitors": 14000},
        ]

    async def test_series_requires_place(self, seeded_client):
        """Test a missing place is a 422 with the reason"""
        response = await seeded_client.get("/api/v1/footfall/series", params={"city": "Jaipur"})

        assert response.status_code == 422
        assert response.json()["errors"] == ["city and tourist_place are required"]

    async def test_bad_interval(self, seeded_client):
        """Test an unknown interval is rejected"""
        response = await seeded_client.get(
            "/api/v1/footfall/series",
            params={"city": "Jaipur", "tourist_place": "Amber Fort", "interval": "day"},
        )

        assert response.status_code == 422

    async def test_analytics(self, seeded_client):
        """Test telecom visitor analytics"""
        response = await seeded_client.get("/api/v1/footfall/analytics")
        body = response.json()

        assert body["count"] == 2
        assert body["data"][0]["place"] == "Amber Fort"
        assert body["data"][0]["avg_confidence"] == 0.9


class TestRecommendations:
    """Tests for recommendation endpoints"""

    async def test_low_crowd(self, seeded_client):
        """Test quiet places first"""
        response = await seeded_client.get("/api/v1/recommendations/low-crowd")
        body = response.json()

        assert [p["name"] for p in body["places"]] == ["Lake Pichola", "Amber Fort"]
        assert body["count"] == 2

    async def test_high_crowd(self, seeded_client):
        """Test busy places carry a crowd level"""
        response = await seeded_client.get("/api/v1/recommendations/high-crowd")
        body = response.json()

        assert [(p["name"], p["crowd_level"]) for p in body["places"]] == [("Amber Fort", "High")]

    async def test_limit_bounds(self, seeded_client):
        """Test limit must be between 1 and 50"""
        response = await seeded_client.get("/api/v1/recommendations/low-crowd", params={"limit": 0})
        assert response.status_code == 422


class TestCheckin:
    """Tests for POST /checkin"""

    async def test_checkin(self, api_client):
        """Test a scan is recorded"""
        response = await api_client.post("/api/v1/checkin", json={
            "ticketId": "t-1",
            "locationId": "LOC-1",
            "visitorType": "DOMESTIC",
            "geoOptedIn": True,
            "geoLocation": {"latitude": 26.98, "longitude": 75.85},
        })
        body = response.json()

        assert response.status_code == 201
        assert body["event"]["event_type"] == "ENTRY"
        assert body["event"]["geo_location"]["latitude"] == 26.98

    async def test_invalid_checkin(self, api_client):
        """Test a missing visitor type is rejected"""
        response = await api_client.post("/api/v1/checkin", json={"ticketId": "t-1", "locationId": "LOC-1"})

        assert response.status_code == 422
        assert response.json()["errors"] == ["visitor_type is required"]


class TestHotels:
    """Tests for /hotels"""

    async def test_add_hotel(self, api_client):
        """Test a hotel is stored with its derived occupancy"""
        response = await api_client.post("/api/v1/hotels", json=HOTEL)
        body = response.json()

        assert response.status_code == 201
        assert body["hotel"]["occupancy_percent"] == 75
        assert body["hotel"]["category"] == "Hotel"
        assert body["hotel"]["nearby_places"] == ["Hawa Mahal"]

    async def test_same_serial_replaces(self, api_client):
        """Test posting a serial number again replaces the hotel"""
        await api_client.post("/api/v1/hotels", json=HOTEL)
        await api_client.post("/api/v1/hotels", json={**HOTEL, "vacancy": 80})

        body = (await api_client.get("/api/v1/hotels")).json()

        assert body["count"] == 1
        assert body["hotels"][0]["vacancy"] == 80

    async def test_list_hotels(self, api_client):
        """Test hotels are listed in serial order"""
        await api_client.post("/api/v1/hotels", json={**HOTEL, "serialNo": 2, "name": "Umaid Bhawan"})
        await api_client.post("/api/v1/hotels", json=HOTEL)

        response = await api_client.get("/api/v1/hotels")

        assert response.status_code == 200
        assert [h["name"] for h in response.json()["hotels"]] == ["Rambagh Palace", "Umaid Bhawan"]

    async def test_vacancy_above_rooms(self, api_client):
        """Test vacancy larger than the room count is rejected"""
        response = await api_client.post("/api/v1/hotels", json={**HOTEL, "vacancy": 81})

        assert response.status_code == 422
        assert response.json()["errors"] == ["vacancy cannot exceed total rooms"]

    async def test_occupancy_reaches_dashboard(self, api_client):
        """Test a posted hotel shows up in dashboard occupancy"""
        await api_client.post("/api/v1/hotels", json=HOTEL)

        body = (await api_client.get("/api/v1/dashboard/stats")).json()

        assert body["stats"]["hotel_occupancy"] == 75


class TestDashboard:
    """Tests for GET /dashboard/stats"""

    async def test_stats(self, seeded_client):
        """Test dashboard totals and window"""
        await seeded_client.post("/api/v1/tickets", json=TICKET)

        response = await seeded_client.get("/api/v1/dashboard/stats")
        body = response.json()

        assert body["stats"] == {
            "total_footfall": 25010,
            "domestic_visitors": 22010,
            "international_visitors": 3000,
            "hotel_occupancy": 0,
        }
        assert body["time_window"] == {"start": "2024-04-30T10:00:00", "end": "2024-05-01T10:00:00"}
