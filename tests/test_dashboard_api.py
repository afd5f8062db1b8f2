import pytest
from datetime import date

from fastapi.testclient import TestClient

from portfolio_dashboard.dependencies import get_repository
from portfolio_dashboard.main import app
from portfolio_dashboard.core.exceptions import DataAccessError
from portfolio_dashboard.core.security import get_current_user
from portfolio_dashboard.schemas.auth import AuthenticatedUser


@pytest.fixture()
def ledger(properties, add_financial):
    add_financial(1, date(2024, 1, 1), gross_rent=10000, insurance=6000, vacancy_rate=4, occupancy_rate=96)
    add_financial(1, date(2024, 7, 1), gross_rent=10000, insurance=6000, vacancy_rate=6, occupancy_rate=94)
    add_financial(2, date(2024, 1, 1), gross_rent=5000, insurance=1000, vacancy_rate=3, occupancy_rate=97)
    add_financial(1, date(2023, 1, 1), gross_rent=8000, insurance=4000)
    add_financial(1, date(2023, 9, 1), gross_rent=8000, insurance=4000)


def test_root_and_health(client):
    assert client.get("/").json()["success"] is True
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["success"] is True


def test_kpis(client, ledger):
    response = client.get("/api/dashboard/kpis", params={"year": 2024})
    assert response.status_code == 200
    data = response.json()["data"]

    assert data["year"] == 2024
    assert data["total_revenue"] == 25000
    assert data["total_noi"] == 12000
    assert data["property_count"] == 2
    assert data["portfolio_value"] == 1_500_000
    assert data["prev_noi"] == 8000
    assert data["noi_variance"] == pytest.approx(50.0)
    assert data["avg_vacancy"] == pytest.approx(13 / 3)


def test_kpis_year_to_date_window(client, ledger):
    response = client.get("/api/dashboard/kpis", params={"year": 2024, "through_month": 3})
    data = response.json()["data"]

    assert data["total_revenue"] == 15000
    assert data["total_noi"] == 8000
    assert data["prev_noi"] == 4000
    assert data["noi_variance"] == pytest.approx(100.0)


def test_kpis_for_year_without_data(client, properties):
    response = client.get("/api/dashboard/kpis", params={"year": 2010})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total_revenue"] == 0
    assert data["noi_variance"] == 0
    assert data["property_count"] == 0


@pytest.mark.parametrize("year", ["1999", "abc", str(date.today().year + 2)])
def test_invalid_year_is_rejected(client, year):
    response = client.get("/api/dashboard/kpis", params={"year": year})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid year parameter"


def test_next_year_is_accepted(client, properties):
    response = client.get("/api/dashboard/kpis", params={"year": date.today().year + 1})
    assert response.status_code == 200


def test_year_defaults_to_current_year(client, properties):
    response = client.get("/api/dashboard/kpis")
    assert response.json()["data"]["year"] == date.today().year


@pytest.mark.parametrize("month", ["0", "13", "x"])
def test_invalid_through_month(client, month):
    response = client.get("/api/dashboard/kpis", params={"year": 2024, "through_month": month})
    assert response.status_code == 400


def test_monthly_performance(client, ledger):
    response = client.get("/api/dashboard/monthly-performance", params={"year": 2024})
    assert response.status_code == 200
    data = response.json()["data"]

    assert [p["reporting_month"] for p in data] == ["2024-01-01", "2024-07-01"]
    assert data[0]["revenue"] == 15000
    assert data[0]["noi"] == 8000
    assert data[0]["avg_vacancy"] == pytest.approx(3.5)


def test_monthly_performance_dense(client, ledger):
    response = client.get("/api/dashboard/monthly-performance", params={"year": 2024, "dense": "true"})
    data = response.json()["data"]
    assert len(data) == 12
    assert data[1]["revenue"] == 0
    assert data[6]["revenue"] == 10000


def test_property_details(client, ledger):
    response = client.get("/api/dashboard/property-details", params={"year": 2024})
    assert response.status_code == 200
    data = response.json()["data"]

    assert [p["property_name"] for p in data] == ["Maple Court", "Sunset Apartments"]
    maple, sunset = data
    assert maple["noi_margin"] == pytest.approx(80.0)
    assert maple["performance_tier"] == "Excellent"
    assert sunset["months_reported"] == 2
    assert sunset["noi_margin"] == pytest.approx(40.0)
    assert sunset["avg_occupancy"] == pytest.approx(95.0)


def test_property_details_includes_idle_properties(client, properties):
    data = client.get("/api/dashboard/property-details", params={"year": 2024}).json()["data"]
    assert len(data) == 2
    assert all(p["performance_tier"] == "Poor" for p in data)


def test_properties_list(client, properties):
    response = client.get("/api/properties")
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert body["data"][0]["property_name"] == "Maple Court"


def test_storage_failure_maps_to_500():
    class BrokenRepository:
        def list_records(self, year=None, property_id=None):
            raise DataAccessError("Failed to fetch financial records: timeout")

        def list_properties(self):
            raise DataAccessError("Failed to fetch properties: timeout")

    app.dependency_overrides[get_repository] = lambda: BrokenRepository()
    app.dependency_overrides[get_current_user] = lambda: AuthenticatedUser(id="test-user")
    try:
        response = TestClient(app).get("/api/dashboard/kpis", params={"year": 2024})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Database error"
    assert "timeout" in body["message"]
