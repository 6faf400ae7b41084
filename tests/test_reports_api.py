import json

from conftest import make_expense


def seed(store):
    store.put(make_expense(20, "Travel", "2024-02-15"))
    store.put(make_expense(50, "Food", "2024-01-05", description="Dinner"))
    store.put(make_expense(9, "Food", "2024-04-01"))


def test_generate_csv_report(client, expense_store, reports_bucket):
    seed(expense_store)

    response = client.post("/api/reports/generate", json={"startDate": "2024-01-01", "endDate": "2024-02-29"})

    assert response.status_code == 200
    data = response.json()
    assert data["format"] == "csv"
    assert data["expiresIn"] == 3600
    assert data["summary"] == {
        "totalExpenses": 2,
        "totalAmount": 70.0,
        "dateRange": {"startDate": "2024-01-01", "endDate": "2024-02-29"},
    }
    assert data["fileName"] == f"expense-report-2024-01-01-to-2024-02-29-{data['reportId']}.csv"

    key = f"reports/user-1/{data['fileName']}"
    assert data["downloadUrl"].startswith(f"https://reports-bucket.s3.amazonaws.com/{key}")
    stored = reports_bucket.objects[key]
    assert stored["content_type"] == "text/csv"
    assert stored["metadata"]["userId"] == "user-1"
    assert stored["metadata"]["startDate"] == "2024-01-01"
    lines = stored["body"].splitlines()
    assert lines[1].startswith('"2024-01-05","Food","Dinner"')
    assert lines[2].startswith('"2024-02-15","Travel"')


def test_generate_json_report(client, expense_store, reports_bucket):
    seed(expense_store)

    data = client.post(
        "/api/reports/generate",
        json={"startDate": "2024-01-01", "endDate": "2024-12-31", "format": "json"},
    ).json()

    stored = reports_bucket.objects[f"reports/user-1/{data['fileName']}"]
    assert stored["content_type"] == "application/json"
    report = json.loads(stored["body"])
    assert report["totalExpenses"] == 3
    assert report["totalAmount"] == 79.0


def test_generate_text_and_pdf_reports(client, expense_store, reports_bucket):
    seed(expense_store)

    txt = client.post("/api/reports/generate", json={"startDate": "2024-01-01", "endDate": "2024-12-31", "format": "txt"})
    pdf = client.post("/api/reports/generate", json={"startDate": "2024-01-01", "endDate": "2024-12-31", "format": "pdf"})

    assert txt.status_code == pdf.status_code == 200
    txt_body = reports_bucket.objects[f"reports/user-1/{txt.json()['fileName']}"]["body"]
    pdf_object = reports_bucket.objects[f"reports/user-1/{pdf.json()['fileName']}"]
    assert "Total Amount: $79.00" in txt_body
    assert pdf_object["content_type"] == "application/pdf"
    assert pdf_object["body"].startswith(b"%PDF")


def test_generate_report_validation(client):
    assert client.post("/api/reports/generate", json={"startDate": "2024-01-01"}).status_code == 400
    assert client.post(
        "/api/reports/generate",
        json={"startDate": "2024-01-01", "endDate": "2024-01-31", "format": "xlsx"},
    ).status_code == 400
    assert client.post(
        "/api/reports/generate",
        json={"startDate": "2024-02-01", "endDate": "2024-01-31"},
    ).status_code == 400


def test_list_reports_newest_first(client, expense_store, reports_bucket):
    seed(expense_store)
    first = client.post("/api/reports/generate", json={"startDate": "2024-01-01", "endDate": "2024-01-31"}).json()
    second = client.post("/api/reports/generate", json={"startDate": "2024-02-01", "endDate": "2024-02-29"}).json()
    reports_bucket.put("reports/user-2/someone-else.csv", "x", "text/csv")

    data = client.get("/api/reports").json()

    assert data["count"] == 2
    assert [r["fileName"] for r in data["reports"]] == [second["fileName"], first["fileName"]]
    assert data["reports"][0]["downloadUrl"].endswith("X-Amz-Expires=3600")
    assert data["reports"][0]["size"] > 0
