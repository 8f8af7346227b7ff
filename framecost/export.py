"""
Estimate export — plain-text summary and PDF.

Both renderers take a BatchEstimate ({frame_count, per_frame, totals}) and
print the same lines: each cost as the batch total with the per-frame figure
alongside, "(₹X/frame × N frames)". Uses fpdf2 (pure Python, no system
dependencies).
"""

import logging
from datetime import datetime

from fpdf import FPDF

from .config import settings
from .formatting import format_currency, format_duration, format_hours, frames_label

logger = logging.getLogger(__name__)

CHARGE_NAMES = {
    "finishing_cost": "Finishing",
    "helper_cost": "Helper",
    "transport_cost": "Transport",
    "consumables_cost": "Consumables",
}


def _per_frame_note(per_frame_text: str, frame_count: int) -> str:
    return f"({per_frame_text}/frame × {frame_count} {frames_label(frame_count)})"


def _cost_line(label: str, total, per_frame, frame_count: int) -> str:
    return "%s: %s %s" % (
        label, format_currency(total),
        _per_frame_note(format_currency(per_frame), frame_count))


def summary_lines(batch: dict) -> list:
    """Total lines shared by the text and PDF exports."""
    n = batch["frame_count"]
    per = batch["per_frame"]["total_summary"]
    tot = batch["totals"]["total_summary"]

    lines = [
        _cost_line("Total Material Cost", tot["total_material_cost"],
                   per["total_material_cost"], n),
        _cost_line("Total Operations Cost", tot["total_operations_cost"],
                   per["total_operations_cost"], n),
    ]
    if "total_labour_cost" in tot:
        lines.append(_cost_line("Total Labour Cost", tot["total_labour_cost"],
                                per["total_labour_cost"], n))
    if "total_charges" in tot:
        lines.append(_cost_line("Total Charges", tot["total_charges"],
                                per["total_charges"], n))
    lines.append(_cost_line("Grand Total Cost", tot["grand_total_cost"],
                            per["grand_total_cost"], n))
    lines.append("Total Fabrication Time: %s %s" % (
        format_duration(tot["total_fabrication_time_minutes"]),
        _per_frame_note(format_duration(per["total_fabrication_time_minutes"]), n)))
    return lines


def _detail_rows(batch: dict) -> list:
    """(label, quantity, time, cost) rows for the section tables, batch totals."""
    totals = batch["totals"]
    rows = [(
        "Material (%s)" % (totals.get("material_type") or "unspecified"),
        "%g" % totals["material_usage"]["total_required"],
        "",
        totals["material_usage"]["total_cost"],
    )]
    for label, section in (("Cutting", totals["cutting_details"]),
                           ("Welding", totals["welding_details"])):
        rows.append((label, "%g" % section["total_count"],
                     format_duration(section["total_time_minutes"]),
                     section["total_cost"]))
    for task in totals.get("other_tasks", []):
        rows.append((task["task_type"], "%g" % task["total_count"],
                     format_duration(task["total_time_minutes"]),
                     task["total_cost"]))
    if "labour_details" in totals:
        labour = totals["labour_details"]
        rows.append(("Labour", "%s h" % format_hours(labour["total_hours"]), "",
                     labour["total_cost"]))
    for key, amount in totals.get("charges", {}).items():
        rows.append((CHARGE_NAMES.get(key, key.replace("_", " ").title()), "", "", amount))
    return rows


def render_text(batch: dict, project_name: str = None) -> str:
    """Plain-text estimate summary, one fact per line."""
    n = batch["frame_count"]
    title = project_name or "Fabrication Estimate"
    out = [title, "=" * len(title)]
    material = batch["per_frame"].get("material_type")
    if material:
        out.append(f"Material: {material}")
    out.append(f"Frames: {n}")
    out.append("")

    for label, qty, time, cost in _detail_rows(batch):
        parts = [p for p in (qty, time) if p]
        detail = f" [{', '.join(parts)}]" if parts else ""
        out.append(f"{label}{detail}: {format_currency(cost)}")
    out.append("")
    out.extend(summary_lines(batch))

    assumptions = batch["per_frame"].get("assumptions") or []
    if assumptions:
        out.append("")
        out.append("Assumptions:")
        out.extend(f"  - {a}" for a in assumptions)
    return "\n".join(out) + "\n"


def _safe(text: str) -> str:
    """Replace Unicode chars that can't be rendered by built-in PDF fonts (latin-1)."""
    if not text:
        return ""
    return (
        text
        .replace("₹", "Rs. ")  # rupee sign
        .replace("—", " - ")   # em dash
        .replace("–", "-")     # en dash
        .replace("•", "-")     # bullet
        .encode("latin-1", errors="replace")
        .decode("latin-1")
    )


class EstimatePDF(FPDF):
    """Custom PDF class for fabrication estimate documents."""

    def __init__(self, company_name=""):
        super().__init__()
        self.company_name = company_name
        self.set_auto_page_break(auto=True, margin=20)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(150, 150, 150)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="C")

    def section_header(self, title):
        """Render a section header bar."""
        self.set_font("Helvetica", "B", 11)
        self.set_fill_color(45, 55, 72)
        self.set_text_color(255, 255, 255)
        self.cell(0, 8, f"  {title}", fill=True, new_x="LMARGIN", new_y="NEXT")
        self.set_text_color(0, 0, 0)
        self.ln(2)

    def table_header(self, cols):
        """cols: [(label, width), ...]"""
        self.set_font("Helvetica", "B", 8)
        self.set_fill_color(240, 240, 240)
        for label, width in cols:
            align = "L" if label == "Item" else "R"
            self.cell(width, 6, label, border="B", fill=True, align=align)
        self.ln()

    def table_row(self, values, widths):
        self.set_font("Helvetica", "", 8)
        for i, (val, width) in enumerate(zip(values, widths)):
            self.cell(width, 5.5, _safe(str(val)), align="L" if i == 0 else "R")
        self.ln()


def generate_estimate_pdf(batch: dict, project_name: str = None) -> bytes:
    """
    Generate a PDF estimate document.

    Args:
        batch: BatchEstimate dict from scale_to_batch()
        project_name: optional title line

    Returns:
        PDF bytes
    """
    pdf = EstimatePDF(company_name=settings.COMPANY_NAME)
    pdf.alias_nb_pages()
    pdf.add_page()
    pw = pdf.w - pdf.l_margin - pdf.r_margin  # printable width

    # ── Header ──
    pdf.set_font("Helvetica", "B", 18)
    pdf.cell(0, 10, _safe(pdf.company_name), new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 10)
    pdf.cell(0, 5, f"Date: {datetime.now().strftime('%B %d, %Y')}",
             new_x="LMARGIN", new_y="NEXT")
    pdf.ln(3)

    n = batch["frame_count"]
    pdf.set_font("Helvetica", "B", 13)
    pdf.cell(0, 8, _safe(project_name or "Fabrication Estimate"), new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 10)
    material = batch["per_frame"].get("material_type")
    if material:
        pdf.cell(0, 5, _safe(f"Material: {material}"), new_x="LMARGIN", new_y="NEXT")
    pdf.cell(0, 5, f"Frames: {n}", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    # ── Breakdown table (batch totals) ──
    pdf.section_header("COST BREAKDOWN")
    widths = [80, 30, 35, pw - 145]
    pdf.table_header(list(zip(["Item", "Qty", "Time", "Total"], widths)))
    for label, qty, time, cost in _detail_rows(batch):
        pdf.table_row([label, qty, time, format_currency(cost)], widths)
    pdf.ln(4)

    # ── Totals ──
    pdf.section_header("TOTALS")
    pdf.set_font("Helvetica", "", 9)
    for line in summary_lines(batch):
        pdf.set_x(pdf.l_margin)
        pdf.cell(pw, 5.5, _safe(line), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(3)

    assumptions = batch["per_frame"].get("assumptions") or []
    if assumptions:
        pdf.section_header("ASSUMPTIONS")
        pdf.set_font("Helvetica", "", 8)
        for a in assumptions:
            pdf.set_x(pdf.l_margin)
            pdf.cell(pw, 4.5, _safe(f"  - {a}"), new_x="LMARGIN", new_y="NEXT")

    logger.info("Generated estimate PDF: %d %s, project=%s",
                n, frames_label(n), project_name or "-")
    return bytes(pdf.output())
