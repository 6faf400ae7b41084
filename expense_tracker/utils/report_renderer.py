import csv
import io
import json
from datetime import date
from typing import List, Sequence, Tuple, Union

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from expense_tracker.models.expense import Expense
from expense_tracker.utils.analyzer import compute_analytics, sort_by_date, total_amount

CONTENT_TYPES = {
    "csv": "text/csv",
    "json": "application/json",
    "txt": "text/plain",
    "pdf": "application/pdf",
}

CSV_HEADERS = ["Date", "Category", "Description", "Amount", "Payment Method"]
RULE = "=" * 80


def render_csv(expenses: Sequence[Expense]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for e in expenses:
        writer.writerow([
            e.date.isoformat(),
            e.category,
            e.description or "",
            f"{e.amount:.2f}",
            e.payment_method or "cash",
        ])
    return output.getvalue()


def render_json(expenses: Sequence[Expense], start_date: date, end_date: date, generated_at: str) -> str:
    report = compute_analytics(expenses, start_date, end_date)
    return json.dumps(
        {
            "reportDate": generated_at,
            "dateRange": {"startDate": start_date.isoformat(), "endDate": end_date.isoformat()},
            "totalExpenses": len(expenses),
            "totalAmount": total_amount(expenses),
            "summary": report.model_dump(mode="json", by_alias=True),
            "expenses": [e.to_item() for e in expenses],
        },
        indent=2,
        ensure_ascii=False,
    )


def _report_lines(expenses: Sequence[Expense], start_date: date, end_date: date, generated_at: str) -> List[str]:
    lines = [
        "EXPENSE REPORT",
        f"Period: {start_date.isoformat()} to {end_date.isoformat()}",
        f"Generated: {generated_at}",
        "",
        RULE,
        "",
        f"Total Expenses: {len(expenses)}",
        f"Total Amount: ${total_amount(expenses):.2f}",
        "",
        RULE,
        "",
        "DETAILED TRANSACTIONS:",
        "",
    ]
    for index, e in enumerate(expenses, start=1):
        lines.append(f"{index}. {e.date.isoformat()} - {e.category}")
        lines.append(f"   Amount: ${e.amount:.2f}")
        if e.description:
            lines.append(f"   Description: {e.description}")
        lines.append(f"   Payment: {e.payment_method or 'cash'}")
        lines.append("")
    return lines


def render_text(expenses: Sequence[Expense], start_date: date, end_date: date, generated_at: str) -> str:
    return "\n".join(_report_lines(expenses, start_date, end_date, generated_at)) + "\n"


def render_pdf(expenses: Sequence[Expense], start_date: date, end_date: date, generated_at: str) -> bytes:
    pdf = FPDF()
    pdf.add_page()
    lines = _report_lines(expenses, start_date, end_date, generated_at)

    pdf.set_font("Helvetica", "B", 16)
    pdf.cell(0, 10, lines[0], new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    pdf.set_font("Courier", "", 9)
    for line in lines[1:]:
        if line == RULE:
            pdf.ln(2)
            pdf.line(pdf.l_margin, pdf.get_y(), pdf.w - pdf.r_margin, pdf.get_y())
            pdf.ln(2)
            continue
        # core fonts are latin-1 only
        safe = line.encode("latin-1", "replace").decode("latin-1")
        pdf.cell(0, 5, safe, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    return bytes(pdf.output())


def render_report(
    fmt: str,
    expenses: Sequence[Expense],
    start_date: date,
    end_date: date,
    generated_at: str,
) -> Tuple[Union[str, bytes], str]:
    """Render expenses in the requested format. Returns (body, content type)."""
    ordered = sort_by_date(expenses)
    if fmt == "csv":
        body: Union[str, bytes] = render_csv(ordered)
    elif fmt == "json":
        body = render_json(ordered, start_date, end_date, generated_at)
    elif fmt == "pdf":
        body = render_pdf(ordered, start_date, end_date, generated_at)
    else:
        body = render_text(ordered, start_date, end_date, generated_at)
    return body, CONTENT_TYPES.get(fmt, "text/plain")
