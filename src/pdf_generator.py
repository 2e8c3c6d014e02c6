"""
PDF Generation Engine.

This module renders printable verification reports: one page per evaluated
capture with the test conditions, a measurement table coloured by verdict, and
the overall result. It uses the `fpdf2` library to generate PDFs in memory.
"""

import datetime

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from src.esd_lib.standards import result_rows
from src.esd_lib.types import CDMResult, EvaluationResult


class VerificationReport(FPDF):
    """
    FPDF Subclass for the waveform verification report.

    Features:
        - Automatic pagination.
        - Custom header/footer.
        - One section per evaluated capture.
    """

    def __init__(self, standard_name: str):
        super().__init__()
        self.standard_name = standard_name
        self.set_auto_page_break(auto=True, margin=15)
        self.set_title(f"{standard_name} Verification Report")

    def header(self):
        """Renders the header on every page."""
        self.set_font("Courier", "B", 10)
        self.cell(
            0,
            10,
            f"{self.standard_name} Verification Report",
            align="R",
            new_x=XPos.LMARGIN,
            new_y=YPos.NEXT,
        )
        self.line(10, 20, 200, 20)
        self.ln(10)

    def footer(self):
        """Renders the footer on every page."""
        self.set_y(-15)
        self.set_font("Courier", "I", 8)
        self.cell(0, 10, f"Page {self.page_no()}", align="C")

    def add_evaluation(self, source_name: str, result: EvaluationResult):
        """
        Adds a page for one evaluated capture.

        Args:
            source_name (str): The capture's display name.
            result (EvaluationResult): The evaluator's result.
        """
        self.add_page()
        # Core fonts are latin-1 only
        source_name = source_name.encode("latin-1", "replace").decode("latin-1")

        # Title Block
        self.set_font("Courier", "B", 14)
        self.cell(0, 10, f"Capture: {source_name}", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_font("Courier", "", 10)
        date_str = datetime.datetime.now().strftime("%Y-%m-%d")
        self.cell(0, 6, f"Date: {date_str}", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.cell(
            0, 6, f"Test Voltage: {result.signed_voltage:g} V", new_x=XPos.LMARGIN, new_y=YPos.NEXT
        )
        self.cell(
            0, 6, f"Samples: {len(result.waveform)}", new_x=XPos.LMARGIN, new_y=YPos.NEXT
        )
        if isinstance(result, CDMResult):
            target = "Large" if result.is_large_target else "Small"
            bandwidth = "High" if result.is_high_bandwidth else "Low"
            self.cell(
                0,
                6,
                f"Target: {target} / Bandwidth: {bandwidth}",
                new_x=XPos.LMARGIN,
                new_y=YPos.NEXT,
            )

        self.ln(4)

        # Table Headers
        self.set_font("Courier", "B", 10)
        self.cell(50, 8, "Measurement", 1)
        self.cell(35, 8, "Value", 1)
        self.cell(35, 8, "Minimum", 1)
        self.cell(35, 8, "Maximum", 1)
        self.cell(0, 8, "Result", 1, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

        # Table Rows
        self.set_font("Courier", "", 9)
        for row in result_rows(result):
            self.cell(50, 8, row["Measurement"], 1)
            self.cell(35, 8, row["Value"], 1)
            self.cell(35, 8, row["Minimum"], 1)
            self.cell(35, 8, row["Maximum"], 1)
            self._set_verdict_color(row["Result"])
            self.cell(0, 8, row["Result"], 1, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            self.set_text_color(0, 0, 0)

        self.ln(6)
        overall = "PASS" if result.is_passing else "FAIL"
        self.set_font("Courier", "B", 14)
        self._set_verdict_color(overall)
        self.cell(0, 10, f"Overall: {overall}", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_text_color(0, 0, 0)

    def _set_verdict_color(self, verdict: str):
        if verdict == "PASS":
            self.set_text_color(30, 140, 60)  # Green
        elif verdict == "FAIL":
            self.set_text_color(220, 50, 50)  # Red
        else:
            self.set_text_color(120, 120, 120)  # Grey


def generate_report_pdf(evaluations: list[tuple[str, EvaluationResult]], standard_name: str) -> bytes:
    """
    Generates the verification report.

    Args:
        evaluations (list[tuple[str, EvaluationResult]]): (source name, result) pairs.
        standard_name (str): Display name of the standard.

    Returns:
        bytes: The binary content of the PDF.
    """
    pdf = VerificationReport(standard_name)
    for source_name, result in evaluations:
        pdf.add_evaluation(source_name, result)
    return bytes(pdf.output())
