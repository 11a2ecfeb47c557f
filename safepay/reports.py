"""PDF exports: the per-transaction security report and the session project report."""

from __future__ import annotations

import time
from datetime import datetime
from typing import Optional, Sequence

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from safepay.dashboard import DashboardStats
from safepay.models import AnalysisResult
from safepay.utils import format_inr


SLATE_900 = (15, 23, 42)
SLATE_400 = (148, 163, 184)
SLATE_500 = (100, 116, 139)
RULE_GREY = (226, 232, 240)
WHITE = (255, 255, 255)

SECURITY_FOOTER = (
    "This document is a computer-generated fraud analysis report powered by SafePay AI Engine.",
    "Confidential - For Financial Security Audit Use Only",
)

# Core PDF fonts only cover Latin-1.
_LATIN1_FIXUPS = str.maketrans(
    {
        "₹": "INR ",
        "‘": "'",
        "’": "'",
        "“": '"',
        "”": '"',
        "–": "-",
        "—": "-",
        "•": "-",
        "…": "...",
    }
)


def to_latin1(text: str) -> str:
    return str(text).translate(_LATIN1_FIXUPS).encode("latin-1", "replace").decode("latin-1")


def report_filename(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}.pdf"


class SafePayPDF(FPDF):
    """A4 document with 20 mm margins and optional footer lines on every page."""

    def __init__(self, footer_lines: Sequence[str] = ()) -> None:
        super().__init__(orientation="P", unit="mm", format="A4")
        self.footer_lines = tuple(footer_lines)
        self.set_margins(20, 20, 20)
        self.set_auto_page_break(auto=True, margin=25)

    def footer(self) -> None:
        if not self.footer_lines:
            return
        self.set_y(-18)
        self.set_font("Helvetica", "", 9)
        self.set_text_color(*SLATE_500)
        for line in self.footer_lines:
            self.cell(0, 5, to_latin1(line), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def header_band(self, title: str, subtitle: str, height: float) -> None:
        self.set_fill_color(*SLATE_900)
        self.rect(0, 0, 210, height, "F")
        self.set_text_color(*WHITE)
        self.set_font("Helvetica", "B", 22)
        self.text(20, height - 15, to_latin1(title))
        self.set_font("Helvetica", "", 10)
        self.set_text_color(*SLATE_400)
        self.text(20, height - 6, to_latin1(subtitle))
        self.set_y(height + 8)

    def section(self, title: str, size: int = 16, rule: bool = True) -> None:
        self.set_font("Helvetica", "B", size)
        self.set_text_color(*SLATE_900)
        self.cell(0, 9, to_latin1(title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        if rule:
            self.set_draw_color(*RULE_GREY)
            y = self.get_y()
            self.line(20, y, 190, y)
        self.ln(4)

    def paragraph(self, text: str, size: int = 11, indent: float = 0, gap: float = 1) -> None:
        self.set_font("Helvetica", "", size)
        self.set_text_color(*SLATE_900)
        self.set_x(self.l_margin + indent)
        self.multi_cell(0, size * 0.5 + 1, to_latin1(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(gap)


def build_security_report(result: AnalysisResult, generated_at: Optional[datetime] = None) -> bytes:
    """Render the single-transaction security report as PDF bytes."""
    generated_at = generated_at or datetime.now()
    pdf = SafePayPDF(footer_lines=SECURITY_FOOTER)
    pdf.add_page()
    pdf.header_band(
        "SAFEPAY AI - SECURITY REPORT",
        f"Generated on: {generated_at:%d/%m/%Y, %H:%M:%S}",
        height=40,
    )

    pdf.section("1. Executive Assessment")
    pdf.paragraph(f"Final Status: {result.status.value}", size=12)
    pdf.paragraph(f"Risk Probability: {result.risk_score:.0f}%", size=12)
    pdf.paragraph(f"AI Confidence: {result.ml_confidence * 100:.1f}%", size=12)
    pdf.paragraph(f"Recommendation: {result.recommendation}", size=12, gap=6)

    pdf.section("2. AI Reasoning & Pattern Analysis")
    pdf.paragraph(result.reasoning, gap=6)

    insights = result.model_insights
    pdf.section("3. Algorithm Insights (Ensemble Data)")
    pdf.paragraph(f"Isolation Forest (Anomaly): {insights.isolation_forest_score:g}/100", indent=5)
    pdf.paragraph(f"XGBoost (Classification): {insights.xg_boost_probability:g}/100", indent=5)
    pdf.paragraph(f"LSTM (Sequence Analysis): {insights.lstm_sequence_score:g}/100", indent=5, gap=6)

    if result.detected_anomalies:
        pdf.section("4. Specific Anomalies Flagged")
        for anomaly in result.detected_anomalies:
            pdf.paragraph(f"- {anomaly}", indent=5)

    return bytes(pdf.output())


PROJECT_SECTIONS = (
    (
        "1. Abstract",
        [
            "The SafePay AI project is a real-time fraud detection and monitoring dashboard "
            "designed for online transactions. It uses the Gemini API to simulate complex ML "
            "ensemble reasoning, providing both risk scores and human-readable explanations.",
        ],
    ),
    (
        "2. Technology Stack",
        [
            "- Frontend: Flask with Jinja templates",
            "- AI Engine: Google Gemini API (google-genai)",
            "- Analytics: pandas, Matplotlib and seaborn for data visualization",
            "- PDF Engine: fpdf2 for automated reporting",
        ],
    ),
    (
        "3. Core Machine Learning Algorithms (Simulated)",
        [
            "- Isolation Forest: Used for detecting statistical anomalies in transaction amounts and locations.",
            "- XGBoost: A gradient boosting algorithm used for high-accuracy classification of fraud patterns.",
            "- LSTM (RNN): Analyzes the temporal sequence of user transactions to identify behavioral shifts.",
        ],
    ),
    (
        "4. System Architecture",
        [
            "The system follows a modular architecture where the simulator feeds data into an AI "
            "Orchestration layer. This layer applies specific domain logic (Geospatial deviation, "
            "Velocity checks) and returns a structured JSON assessment.",
        ],
    ),
)


def build_project_report(stats: DashboardStats) -> bytes:
    """Render the project overview with a summary of the user's session."""
    pdf = SafePayPDF()
    pdf.add_page()
    pdf.header_band("SAFEPAY AI: PROJECT REPORT", "AI-Powered Fraud Protection System", height=50)

    for title, paragraphs in PROJECT_SECTIONS:
        pdf.section(title, size=14, rule=False)
        for text in paragraphs:
            pdf.paragraph(text, size=10, gap=3)

    pdf.section("5. Executive Summary of Session", size=14, rule=False)
    pdf.paragraph(f"- Total Transactions Scanned: {stats.total}", size=10, gap=3)
    pdf.paragraph(f"- Critical Threats Detected: {stats.critical}", size=10, gap=3)
    pdf.paragraph(f"- Estimated Prevented Loss: {format_inr(stats.prevented_loss)}", size=10, gap=3)
    pdf.paragraph(f"- Average System Risk Index: {stats.avg_risk:.1f}%", size=10, gap=3)

    return bytes(pdf.output())
