"""
Case file PDF export.
Multi-page investigative summary: case details, evidence register,
witness list, activity log and the latest AI analyses.
"""

from __future__ import annotations
from typing import Dict, List
import datetime as dt
from fpdf import FPDF
from fpdf.enums import XPos, YPos


# =========================================================
# CONFIGURATION
# =========================================================

ANALYSIS_TITLES: Dict[str, str] = {
    "case_summary": "Case Summary",
    "timeline": "Timeline of Critical Windows",
    "relationships": "Key Relationships",
    "lead_generation": "Investigative Leads",
}

CONFIDENTIALITY_NOTICE = (
    "This case file contains law enforcement sensitive information. AI-generated analyses "
    "are investigative aids and must be corroborated before they are relied upon."
)

NEXT_LINE = dict(new_x=XPos.LMARGIN, new_y=YPos.NEXT)


# =========================================================
# SAFE TEXT
# =========================================================

def _safe_text(value: object) -> str:
    if value is None:
        return ""
    # core fonts are latin-1 only
    return str(value).encode("latin-1", "replace").decode("latin-1")


def _label(value: object) -> str:
    return _safe_text(value).replace("_", " ").title() or "N/A"


# =========================================================
# PDF CLASS WITH HEADER / FOOTER
# =========================================================

class CaseFilePDF(FPDF):
    def __init__(self, case_number: str, title: str, generated_at: str):
        super().__init__()

        self.case_number = case_number or "N/A"
        self.case_title = title or ""
        self.generated_at = generated_at

        self.set_auto_page_break(auto=True, margin=18)
        self.set_left_margin(16)
        self.set_right_margin(16)
        self.alias_nb_pages()

    def header(self):
        self.set_font("Helvetica", "B", 14)
        self.cell(0, 8, "INVESTIGATIVE CASE FILE", **NEXT_LINE)

        self.set_font("Helvetica", "", 9)
        self.cell(0, 6, _safe_text(f"Case: {self.case_number} - {self.case_title}"), **NEXT_LINE)
        self.cell(0, 6, f"Generated (UTC): {self.generated_at}", **NEXT_LINE)

        self._divider()
        self.ln(3)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.cell(0, 5, f"LAW ENFORCEMENT SENSITIVE    Page {self.page_no()}/{{nb}}")

    def _divider(self):
        y = self.get_y() + 1
        self.set_draw_color(180, 180, 180)
        self.line(self.l_margin, y, self.w - self.r_margin, y)


# =========================================================
# LAYOUT HELPERS
# =========================================================

def section_title(pdf: FPDF, text: str):
    pdf.set_font("Helvetica", "B", 12)
    pdf.cell(0, 7, text.upper(), **NEXT_LINE)
    pdf.set_font("Helvetica", "", 10)


def paragraph(pdf: FPDF, text: object, height: float = 5.5):
    pdf.multi_cell(0, height, _safe_text(text), **NEXT_LINE)


def section_divider(pdf: FPDF):
    y = pdf.get_y()
    pdf.set_draw_color(200, 200, 200)
    pdf.line(pdf.l_margin, y, pdf.w - pdf.r_margin, y)
    pdf.ln(6)


# =========================================================
# SECTIONS
# =========================================================

def render_case_details(pdf: FPDF, case: Dict[str, object]):
    section_title(pdf, "Case Details")
    for label, key in [
        ("Status", "status"),
        ("Priority", "priority"),
        ("Crime Type", "crimeType"),
        ("Crime Date", "crimeDate"),
        ("Location", "location"),
    ]:
        value = case.get(key)
        text = _label(value) if key in ("status", "priority") else _safe_text(value) or "N/A"
        paragraph(pdf, f"{label}: {text}")
    pdf.ln(2)
    paragraph(pdf, case.get("description") or "No description recorded.")
    pdf.ln(4)


def render_evidence(pdf: FPDF, evidence: List[Dict[str, object]]):
    section_title(pdf, "Evidence Register")
    if not evidence:
        paragraph(pdf, "No evidence recorded.")
    for item in evidence:
        pdf.set_font("Helvetica", "B", 10)
        paragraph(pdf, f"{item.get('evidenceNumber')} ({item.get('type')}) - {_label(item.get('status'))}")
        pdf.set_font("Helvetica", "", 10)
        paragraph(pdf, item.get("description") or "")
        if item.get("collectedBy"):
            paragraph(pdf, f"Collected by {item.get('collectedBy')} at {item.get('collectedAt') or 'unknown time'}")
        pdf.ln(2)
    pdf.ln(2)


def render_witnesses(pdf: FPDF, witnesses: List[Dict[str, object]]):
    section_title(pdf, "Witnesses")
    if not witnesses:
        paragraph(pdf, "No witnesses recorded.")
    for w in witnesses:
        pdf.set_font("Helvetica", "B", 10)
        paragraph(pdf, f"{w.get('firstName')} {w.get('lastName')} - {w.get('relationship') or 'relationship unknown'}")
        pdf.set_font("Helvetica", "", 10)
        paragraph(
            pdf,
            f"Reliability: {_label(w.get('reliability'))} | Interview: {_label(w.get('interviewStatus'))}",
        )
        if w.get("notes"):
            paragraph(pdf, w.get("notes"))
        pdf.ln(2)
    pdf.ln(2)


def render_activities(pdf: FPDF, activities: List[Dict[str, object]]):
    section_title(pdf, "Activity Log")
    if not activities:
        paragraph(pdf, "No activity recorded.")
    for a in activities:
        paragraph(pdf, f"[{a.get('createdAt')}] {_label(a.get('activityType'))}: {a.get('description')}", 5)
    pdf.ln(4)


def render_analyses(pdf: FPDF, analyses: List[Dict[str, object]]):
    section_title(pdf, "AI Analysis")
    latest: Dict[str, Dict[str, object]] = {}
    for a in analyses:
        latest.setdefault(a.get("analysisType"), a.get("content") or {})
    if not latest:
        paragraph(pdf, "No AI analysis has been generated for this case.")

    for analysis_type, title in ANALYSIS_TITLES.items():
        content = latest.get(analysis_type)
        if content is None:
            continue
        pdf.set_font("Helvetica", "B", 11)
        pdf.cell(0, 7, title, **NEXT_LINE)
        pdf.set_font("Helvetica", "", 10)

        if analysis_type == "case_summary":
            paragraph(pdf, content.get("summary"))
            for rec in content.get("recommendations") or []:
                paragraph(pdf, f"- {rec}")
        elif analysis_type == "timeline":
            for window in content.get("criticalWindows") or []:
                paragraph(pdf, f"{window.get('timeStart')} - {window.get('timeEnd')}: {window.get('description')}")
        elif analysis_type == "relationships":
            for rel in content.get("keyRelationships") or []:
                paragraph(pdf, f"{rel.get('name')} ({rel.get('relationship')}): {rel.get('conflictType')}")
        else:
            for i, lead in enumerate(content.get("leads") or [], 1):
                paragraph(pdf, f"{i}. {lead}")
        pdf.ln(3)


def render_notice(pdf: FPDF):
    section_title(pdf, "Notice")
    paragraph(pdf, CONFIDENTIALITY_NOTICE)


# =========================================================
# MAIN GENERATOR
# =========================================================

def generate_pdf(bundle: Dict[str, object]) -> bytes:
    """Render a case bundle (as produced by the JSON export) to PDF bytes."""
    case = bundle.get("case") or {}
    timestamp = dt.datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S UTC")

    pdf = CaseFilePDF(_safe_text(case.get("caseNumber")), _safe_text(case.get("title")), timestamp)

    pdf.add_page()
    render_case_details(pdf, case)
    section_divider(pdf)
    render_evidence(pdf, bundle.get("evidence") or [])
    section_divider(pdf)
    render_witnesses(pdf, bundle.get("witnesses") or [])

    pdf.add_page()
    render_analyses(pdf, bundle.get("analyses") or [])
    section_divider(pdf)
    render_activities(pdf, bundle.get("activities") or [])
    render_notice(pdf)

    pdf_bytes = bytes(pdf.output())
    if not pdf_bytes:
        raise ValueError("Empty PDF output")

    return pdf_bytes
