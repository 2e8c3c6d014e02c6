"""
Input handling and waveform import.

This module abstracts the source of a captured waveform (pasted text, uploaded
file, URL or bundled preset) from the two-column text parser. Oscilloscope
exports usually carry header and footer lines; anything that is not a
"time,amplitude" pair is skipped.
"""

import logging
import math
import os
import re
from typing import Any

import requests

from src.esd_lib.presets import WAVEFORM_PRESETS, preset_to_text
from src.esd_lib.waveform import Waveform

logger = logging.getLogger(__name__)

DELIMITER_PATTERN = re.compile(r"[,\t]")
OPEN_FAILURE_MESSAGE = "There was a problem opening the waveform."
SUPPORTED_EXTENSIONS = {".csv", ".txt", ".tsv", ".dat"}


def _parse_number(token: str) -> float | None:
    try:
        value = float(token)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_waveform_text(text: str) -> Waveform | None:
    """
    Parses two-column delimited text into a Waveform.

    Lines without a comma or tab are skipped, as are lines that do not split
    into exactly two numeric tokens.

    Args:
        text: Raw file contents.

    Returns:
        The parsed waveform, or None if no line held a numeric pair.
    """
    points = []
    skipped = 0

    for line in text.splitlines():
        if "," not in line and "\t" not in line:
            skipped += 1
            continue

        tokens = [t.strip() for t in DELIMITER_PATTERN.split(line)]
        if len(tokens) != 2:
            skipped += 1
            continue

        time, amplitude = _parse_number(tokens[0]), _parse_number(tokens[1])
        if time is None or amplitude is None:
            skipped += 1
            continue

        points.append((time, amplitude))

    if not points:
        logger.warning(f"No numeric time/amplitude pairs found ({skipped} lines skipped)")
        return None

    logger.debug(f"Parsed {len(points)} samples, skipped {skipped} lines")
    return Waveform(points)


def parse_waveform_file(file_path: str) -> Waveform | None:
    """Reads and parses a delimited waveform export from disk (None if unreadable)."""
    try:
        with open(file_path, encoding="utf-8-sig", errors="replace") as f:
            text = f.read()
    except OSError as e:
        logger.error(f"Error reading {file_path}: {e}")
        return None
    return parse_waveform_text(text)


def process_input_data(method: str, data: Any, source_name: str) -> tuple[Waveform | None, list[str]]:
    """
    Unified handler for Text, Preset, URL and File inputs.

    Args:
        method: The input method ("Paste Text", "Preset", "From URL", "Upload File").
        data: The raw data for the method (text, preset key, URL or UploadedFile).
        source_name: A display name for logging and error messages.

    Returns:
        A tuple containing:
            - Waveform | None: The parsed waveform, or None on any failure.
            - list[str]: User-facing error messages (empty on success).
    """
    if not data:
        return None, []

    try:
        if method == "Paste Text":
            text = str(data)

        elif method == "Preset":
            key = str(data)
            if key not in WAVEFORM_PRESETS:
                raise KeyError(f"Unknown preset: {key}")
            text = preset_to_text(key)

        elif method == "From URL":
            url = str(data).strip()
            response = requests.get(url, timeout=10)
            response.raise_for_status()
            text = response.text

        elif method == "Upload File":
            # data is expected to be a file-like object (Streamlit UploadedFile)
            if not hasattr(data, "name"):
                raise ValueError("Invalid file object provided.")
            ext = os.path.splitext(data.name)[1].lower()
            if ext and ext not in SUPPORTED_EXTENSIONS:
                raise ValueError(f"Unsupported file type: {ext}")
            text = data.getvalue().decode("utf-8-sig", errors="replace")

        else:
            return None, ["Unknown Method"]

    except Exception as e:
        logger.error(f"Error processing {source_name}: {e}")
        return None, [f"{OPEN_FAILURE_MESSAGE} ({e})"]

    waveform = parse_waveform_text(text)
    if waveform is None:
        logger.error(f"Error processing {source_name}: no samples")
        return None, [OPEN_FAILURE_MESSAGE]

    return waveform, []
