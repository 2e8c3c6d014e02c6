import logging
import uuid
from typing import Any

import streamlit as st

from src.esd_lib import (
    HBM0OhmOptions,
    NoiseCompensation,
    WAVEFORM_PRESETS,
    evaluate_waveform,
    get_preset_metadata,
    process_input_data,
    result_rows,
)
import src.esd_lib.constants as C
from src.exporters import generate_results_csv, generate_results_markdown
from src.pdf_generator import generate_report_pdf

logger = logging.getLogger(__name__)

INPUT_METHODS = ["Paste Text", "Upload File", "From URL", "Preset"]

st.set_page_config(page_title="ESD Waveform Verifier", page_icon="⚡")

st.title("⚡ ESD Waveform Verifier")
st.markdown("""
**Check tester captures against JS-002 (CDM) and JS-001 (HBM).**

Paste a two-column `time,current` export from your oscilloscope (or upload it).
Header lines are ignored; times in seconds, currents in amperes.
""")

if "evaluations" not in st.session_state:
    st.session_state.evaluations = []
if "errors" not in st.session_state:
    st.session_state.errors = []
if "evaluated_standard" not in st.session_state:
    st.session_state.evaluated_standard = None

# Initialize Slots
if "capture_slots" not in st.session_state:
    init_slots: list[dict[str, Any]] = [
        {"id": str(uuid.uuid4()), "name": "Capture 1", "method": "Paste Text"}
    ]
    st.session_state.capture_slots = init_slots


def add_slot():
    n = len(st.session_state.capture_slots) + 1
    st.session_state.capture_slots.append(
        {"id": str(uuid.uuid4()), "name": f"Capture {n}", "method": "Paste Text"}
    )


def remove_slot(idx):
    st.session_state.capture_slots.pop(idx)


st.divider()
st.subheader("1. Test Conditions")

c1, c2 = st.columns(2)
standard = c1.selectbox(
    "Standard",
    list(C.STANDARD_NAMES),
    format_func=lambda key: C.STANDARD_NAMES[key],
    key="standard",
)
voltage = c2.number_input(
    "Test Voltage (V)",
    min_value=-C.MAX_ABS_TEST_VOLTAGE,
    max_value=C.MAX_ABS_TEST_VOLTAGE,
    value=250.0,
    step=125.0,
    key="voltage",
    help="The sign selects the polarity.",
)

is_large_target = True
is_high_bandwidth = True
hbm_options = None

if standard == "cdm":
    c1, c2 = st.columns(2)
    is_large_target = c1.toggle("Large Verification Module", value=True, key="large_target")
    is_high_bandwidth = c2.toggle("High Bandwidth Scope (>= 6 GHz)", value=True, key="high_bw")

elif standard == "hbm0":
    with st.expander("HBM 0 Ohm Options"):
        detect_double_peak = st.checkbox("Double peak detection", value=False, key="double_peak")
        noise_label = st.radio(
            "Noise compensation",
            ["None", "Pre-trigger window", "Digital filter"],
            horizontal=True,
            key="noise",
        )
        noise_cutoff_ns = st.number_input(
            "Pre-trigger cutoff (ns)", value=0.0, key="noise_cutoff", disabled=noise_label != "Pre-trigger window"
        )
        noise_map = {
            "None": NoiseCompensation.NONE,
            "Pre-trigger window": NoiseCompensation.PRE_TRIGGER,
            "Digital filter": NoiseCompensation.DIGITAL_FILTER,
        }
        hbm_options = HBM0OhmOptions(
            detect_double_peak=detect_double_peak,
            noise_compensation=noise_map[noise_label],
            noise_cutoff_time=noise_cutoff_ns * 1e-9,
        )

st.divider()
st.subheader("2. Captures")

# Dynamic Slot UI
for i, slot in enumerate(st.session_state.capture_slots):
    with st.container():
        c1, c2, c3, c4 = st.columns([2, 2, 5, 1])

        slot["name"] = c1.text_input(
            f"Capture Name #{i + 1}",
            value=slot["name"],
            key=f"name_{slot['id']}",
        )

        slot["method"] = c2.radio(
            "Input Method",
            INPUT_METHODS,
            key=f"method_{slot['id']}",
            label_visibility="collapsed",
        )

        if slot["method"] == "Paste Text":
            slot["data"] = c3.text_area(
                "Waveform Text",
                height=120,
                key=f"text_{slot['id']}",
                label_visibility="collapsed",
                placeholder="time,current\n0.0,0.0\n1e-10,0.12\n...",
            )
        elif slot["method"] == "Upload File":
            slot["data"] = c3.file_uploader(
                "Upload Waveform",
                type=["csv", "txt", "tsv", "dat"],
                key=f"file_{slot['id']}",
                label_visibility="collapsed",
            )
        elif slot["method"] == "From URL":
            slot["data"] = c3.text_input(
                "Waveform URL",
                key=f"url_{slot['id']}",
                label_visibility="collapsed",
                placeholder="https://example.com/capture.csv",
            )
        else:
            # Offer the presets tagged for the selected standard first
            preset_standards, preset_names, preset_lookup = get_preset_metadata()
            tag = standard.upper()
            preset_standard = c3.selectbox(
                "Preset Standard",
                preset_standards,
                index=preset_standards.index(tag) if tag in preset_standards else 0,
                key=f"preset_std_{slot['id']}",
                label_visibility="collapsed",
            )
            preset_name = c3.selectbox(
                "Preset",
                preset_names.get(preset_standard, []),
                key=f"preset_{slot['id']}",
                label_visibility="collapsed",
            )
            slot["data"] = next(
                (
                    entry["full_key"]
                    for entry in preset_lookup
                    if entry["standard"] == preset_standard and entry["name"] == preset_name
                ),
                None,
            )
            if slot["data"]:
                preset = WAVEFORM_PRESETS[slot["data"]]
                c3.caption(f"{preset.description} (intended for {C.STANDARD_NAMES[preset.standard]} at {preset.signed_voltage:g} V)")

        if len(st.session_state.capture_slots) > 1:
            if c4.button("🗑️", key=f"del_{slot['id']}"):
                remove_slot(i)
                st.rerun()

st.button("➕ Add Another Capture", on_click=add_slot)

st.divider()

if st.button("Evaluate", type="primary", use_container_width=True, key="evaluate"):
    evaluations = []
    errors = []

    for slot in st.session_state.capture_slots:
        source = slot["name"].strip() or "Untitled Capture"
        waveform, slot_errors = process_input_data(slot["method"], slot.get("data"), source)
        errors.extend(f"{source}: {e}" for e in slot_errors)
        if waveform is None:
            continue

        try:
            result = evaluate_waveform(
                standard,
                waveform,
                voltage,
                is_large_target=is_large_target,
                is_high_bandwidth=is_high_bandwidth,
                hbm_options=hbm_options,
            )
        except (ValueError, LookupError) as e:
            logger.error(f"Evaluation of {source} failed: {e}")
            errors.append(f"{source}: {e}")
            continue

        evaluations.append((source, result))

    st.session_state.evaluations = evaluations
    st.session_state.errors = errors
    st.session_state.evaluated_standard = C.STANDARD_NAMES[standard]
    if evaluations:
        st.toast(f"Evaluated {len(evaluations)} capture(s)", icon="⚡")

for error in st.session_state.errors:
    st.error(f"❌ {error}")

# Results
if st.session_state.evaluations:
    evaluations = st.session_state.evaluations
    standard_name = st.session_state.evaluated_standard

    st.subheader("📋 Results")

    for source, result in evaluations:
        c1, c2, c3 = st.columns(3)
        c1.metric("Capture", source)
        c2.metric("Test Voltage", f"{result.signed_voltage:g} V")
        c3.metric("Verdict", "PASS" if result.is_passing else "FAIL")

        st.dataframe(
            result_rows(result),
            column_order=["Measurement", "Value", "Minimum", "Maximum", "Result"],
            use_container_width=True,
        )

        with st.expander("Show waveform"):
            st.line_chart(
                {"Time (s)": result.waveform.times, "Current (A)": result.waveform.amplitudes},
                x="Time (s)",
                y="Current (A)",
            )

    # Downloads
    st.subheader("💾 Export")
    c1, c2, c3 = st.columns(3)
    c1.download_button(
        "Download CSV",
        data=generate_results_csv(evaluations),
        file_name="esd_results.csv",
        mime="text/csv",
        type="primary",
    )
    c2.download_button(
        "Download PDF Report",
        data=generate_report_pdf(evaluations, standard_name),
        file_name="esd_report.pdf",
        mime="application/pdf",
    )
    c3.download_button(
        "Download Markdown",
        data=generate_results_markdown(evaluations, standard_name),
        file_name="esd_report.md",
        mime="text/markdown",
    )
