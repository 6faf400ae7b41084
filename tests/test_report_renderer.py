import json
from datetime import date

from expense_tracker.models.expense import Expense
from expense_tracker.utils.report_renderer import render_csv, render_json, render_pdf, render_report, render_text

GENERATED_AT = "2024-03-01T09:00:00+00:00"
START = date(2024, 1, 1)
END = date(2024, 1, 31)

sample_expenses = [
    Expense(user_id="u1", amount=12.5, category="Food", date=date(2024, 1, 20), description='Lunch "deluxe"'),
    Expense(user_id="u1", amount=40, category="Travel", date=date(2024, 1, 3), payment_method="credit"),
]


def test_csv_quotes_every_cell():
    lines = render_csv(sample_expenses).splitlines()
    assert lines[0] == '"Date","Category","Description","Amount","Payment Method"'
    assert lines[1] == '"2024-01-20","Food","Lunch ""deluxe""","12.50","cash"'
    assert lines[2] == '"2024-01-03","Travel","","40.00","credit"'


def test_report_is_sorted_by_date():
    body, content_type = render_report("csv", sample_expenses, START, END, GENERATED_AT)
    assert content_type == "text/csv"
    rows = body.splitlines()[1:]
    assert rows[0].startswith('"2024-01-03"')
    assert rows[1].startswith('"2024-01-20"')


def test_json_report_contents():
    data = json.loads(render_json(sample_expenses, START, END, GENERATED_AT))
    assert data["reportDate"] == GENERATED_AT
    assert data["dateRange"] == {"startDate": "2024-01-01", "endDate": "2024-01-31"}
    assert data["totalExpenses"] == 2
    assert data["totalAmount"] == 52.5
    assert data["summary"]["summary"]["totalSpending"] == 52.5
    assert [e["category"] for e in data["expenses"]] == ["Food", "Travel"]
    assert data["expenses"][0]["paymentMethod"] == "cash"


def test_text_report():
    text = render_text(sample_expenses, START, END, GENERATED_AT)
    assert text.startswith("EXPENSE REPORT\nPeriod: 2024-01-01 to 2024-01-31\n")
    assert "Total Expenses: 2" in text
    assert "Total Amount: $52.50" in text
    assert "1. 2024-01-20 - Food\n   Amount: $12.50\n   Description: Lunch \"deluxe\"\n   Payment: cash" in text
    # no description line for an expense without one
    assert "2. 2024-01-03 - Travel\n   Amount: $40.00\n   Payment: credit" in text


def test_rendering_is_deterministic():
    for fmt in ("csv", "json", "txt"):
        first, _ = render_report(fmt, sample_expenses, START, END, GENERATED_AT)
        second, _ = render_report(fmt, list(sample_expenses), START, END, GENERATED_AT)
        assert first == second


def test_pdf_report():
    body = render_pdf(sample_expenses, START, END, GENERATED_AT)
    assert isinstance(body, bytes)
    assert body.startswith(b"%PDF")


def test_empty_text_report():
    text = render_text([], START, END, GENERATED_AT)
    assert "Total Expenses: 0" in text
    assert "Total Amount: $0.00" in text
