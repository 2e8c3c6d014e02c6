import csv
import io
from typing import Any

from src.esd_lib.standards import result_rows
from src.esd_lib.types import EvaluationResult


def generate_results_csv(evaluations: list[tuple[str, EvaluationResult]]) -> bytes:
    """
    Generates a CSV file with one row per measurement.

    Values are written unformatted (SI base units) so the file can be
    post-processed; the Result column carries PASS / FAIL / NOT MEASURED.

    Args:
        evaluations (list[tuple[str, EvaluationResult]]): (source name, result) pairs.

    Returns:
        bytes: The CSV content encoded as utf-8-sig.
    """
    csv_buf = io.StringIO()
    fields = ["Source", "Test Voltage", "Measurement", "Value", "Minimum", "Maximum", "Unit", "Result"]

    writer = csv.DictWriter(csv_buf, fieldnames=fields, extrasaction="ignore")
    writer.writeheader()

    for source, result in evaluations:
        for row in result_rows(result):
            writer.writerow(
                {
                    "Source": source,
                    "Test Voltage": result.signed_voltage,
                    "Measurement": row["Measurement"],
                    "Value": _blank_if_none(row["Raw Value"]),
                    "Minimum": _blank_if_none(row["Raw Minimum"]),
                    "Maximum": _blank_if_none(row["Raw Maximum"]),
                    "Unit": row["Unit"],
                    "Result": row["Result"],
                }
            )

    # encode "utf-8-sig" to ensure Excel opens it correctly
    return csv_buf.getvalue().encode("utf-8-sig")


def _blank_if_none(value: Any) -> Any:
    return "" if value is None else value


def generate_results_markdown(evaluations: list[tuple[str, EvaluationResult]], standard_name: str) -> str:
    """
    Renders the results as a Markdown checklist, one section per source.

    Args:
        evaluations: (source name, result) pairs.
        standard_name: Display name of the standard (e.g. "CDM JS-002").

    Returns:
        str: The Markdown document.
    """
    lines = [f"# {standard_name} Verification", ""]

    for source, result in evaluations:
        overall = "PASS" if result.is_passing else "FAIL"
        lines.append(f"## {source} ({result.signed_voltage:g} V): {overall}")
        lines.append("")
        lines.append("| | Measurement | Value | Minimum | Maximum |")
        lines.append("| --- | --- | --- | --- | --- |")
        for row in result_rows(result):
            box = "[x]" if row["Result"] == "PASS" else "[ ]"
            lines.append(
                f"| {box} | {row['Measurement']} | {row['Value']} | {row['Minimum']} | {row['Maximum']} |"
            )
        lines.append("")

    return "\n".join(lines)
