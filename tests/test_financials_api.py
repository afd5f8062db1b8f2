import csv
import io
import pytest
from datetime import date

from portfolio_dashboard.services.csv_io import CSV_HEADERS, EXPORT_HEADERS

HEADER = ",".join(CSV_HEADERS)

ENTRY = {
    "property_id": 1,
    "reporting_month": "2024-04",
    "gross_rent": 10000,
    "vacancy_loss": 500,
    "other_income": 250,
    "repairs_maintenance": 800,
    "utilities": 400,
    "property_management": 950,
    "property_taxes": 1200,
    "insurance": 300,
    "marketing": 100,
    "administrative": 150,
    "debt_service": 3500,
    "occupancy_rate": 95,
}


def test_manual_entry_saves_record(client, properties):
    response = client.post("/api/financials", json=ENTRY)
    assert response.status_code == 201

    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["property_name"] == "Sunset Apartments"
    assert data["reporting_month"] == "2024-04-01"
    assert data["total_income"] == 9750
    assert data["total_expenses"] == 3900
    assert data["noi"] == 5850
    assert data["cash_flow"] == 2350
    assert data["source"] == "Manual Entry"


def test_manual_entry_upserts_same_month(client, properties):
    first = client.post("/api/financials", json=ENTRY).json()["data"]
    second = client.post("/api/financials", json={**ENTRY, "gross_rent": 12000}).json()["data"]

    assert second["financial_id"] == first["financial_id"]
    records = client.get("/api/financials/records", params={"year": 2024}).json()
    assert records["total"] == 1
    assert records["data"][0]["gross_rent"] == 12000


def test_manual_entry_missing_property_is_400(client, properties):
    payload = {k: v for k, v in ENTRY.items() if k != "property_id"}
    response = client.post("/api/financials", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["kind"] == "MissingRequiredField"
    assert body["field"] == "property_id"


def test_manual_entry_invalid_month_is_400(client, properties):
    response = client.post("/api/financials", json={**ENTRY, "reporting_month": "someday"})
    assert response.status_code == 400
    assert response.json()["kind"] == "InvalidField"


def test_manual_entry_unknown_property_is_404(client, properties):
    response = client.post("/api/financials", json={**ENTRY, "property_id": 77})
    assert response.status_code == 404


def test_manual_entry_requires_json_object(client, properties):
    response = client.post("/api/financials", json=[1, 2, 3])
    assert response.status_code == 422


def test_list_records_by_property(client, properties):
    client.post("/api/financials", json=ENTRY)
    client.post("/api/financials", json={**ENTRY, "property_id": 2})

    response = client.get("/api/financials/records", params={"year": 2024, "propertyId": 2})
    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data) == 1
    assert data[0]["property_name"] == "Maple Court"


@pytest.mark.parametrize("property_id", ["0", "-1", "abc"])
def test_list_records_rejects_bad_property_filter(client, property_id):
    response = client.get("/api/financials/records", params={"year": 2024, "propertyId": property_id})
    assert response.status_code == 400


def test_delete_record(client, properties):
    saved = client.post("/api/financials", json=ENTRY).json()["data"]

    response = client.delete(f"/api/financials/records/{saved['financial_id']}")
    assert response.status_code == 200
    assert response.json()["success"] is True

    again = client.delete(f"/api/financials/records/{saved['financial_id']}")
    assert again.status_code == 404


def test_import_csv_partial_success(client, properties):
    text = "\n".join([
        HEADER,
        "1,2024-01,5000,250,100,200,150,400,300,200,50,100,2000,95",
        "abc,2024-02,5000,,,,,,,,,,,",
        "2,2024-02,4000,,,,,,,,,,,",
    ])
    response = client.post(
        "/api/financials/import",
        files={"file": ("financials.csv", text.encode("utf-8"), "text/csv")},
    )
    assert response.status_code == 200

    body = response.json()
    assert body["imported"] == 2
    assert body["failed"] == 1
    assert body["errors"][0]["row"] == 2
    assert body["errors"][0]["field"] == "property_id"


def test_import_csv_without_required_header_is_400(client, properties):
    response = client.post(
        "/api/financials/import",
        files={"file": ("bad.csv", b"GrossRent,Utilities\n100,20\n", "text/csv")},
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "MissingRequiredField"


def test_import_empty_file_is_400(client, properties):
    response = client.post("/api/financials/import", files={"file": ("empty.csv", b"", "text/csv")})
    assert response.status_code == 400


def test_template_download(client):
    response = client.get("/api/financials/template")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(response.content.decode("utf-8-sig"))))
    assert rows[0] == CSV_HEADERS
    assert rows[1][:2] == ["1", "2024-01"]


def test_export(client, properties):
    client.post("/api/financials", json=ENTRY)

    response = client.get("/api/financials/export", params={"year": 2024})
    assert response.status_code == 200
    rows = list(csv.reader(io.StringIO(response.content.decode("utf-8-sig"))))
    assert rows[0] == EXPORT_HEADERS
    assert len(rows) == 2
    assert rows[1][0] == "Sunset Apartments"
    assert float(rows[1][14]) == 5850


def test_records_reflect_current_year_by_default(client, properties):
    client.post("/api/financials", json={**ENTRY, "reporting_month": date.today().strftime("%Y-%m")})
    assert client.get("/api/financials/records").json()["total"] == 1


def test_connection_check_is_public(anonymous_client):
    response = anonymous_client.get("/api/test-connection")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["backend"] == "sql"
