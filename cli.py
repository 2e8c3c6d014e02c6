import logging
import os
import sys

import click

import src.esd_lib.constants as C
from src.esd_lib import (
    HBM0OhmOptions,
    evaluate_waveform,
    parse_waveform_file,
    result_rows,
    validate_test_voltage,
)
from src.exporters import generate_results_csv, generate_results_markdown


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """ESD waveform verification against JS-002 (CDM) and JS-001 (HBM)."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--standard", "-s", type=click.Choice(sorted(C.STANDARD_NAMES)), required=True, help="Test standard"
)
@click.option("--voltage", "-V", type=float, required=True, help="Signed test voltage (V)")
@click.option("--small-target", is_flag=True, help="CDM: small verification module")
@click.option("--low-bandwidth", is_flag=True, help="CDM: oscilloscope below 6 GHz")
@click.option("--double-peak", is_flag=True, help="HBM 0 Ohm: enable double peak detection")
@click.option("--output", "-o", type=click.Path(file_okay=False), default="output", help="Output directory")
def evaluate(files, standard, voltage, small_target, low_bandwidth, double_peak, output):
    """Evaluate one or more two-column CSV captures."""
    try:
        validate_test_voltage(voltage)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--voltage") from e

    evaluations = []
    failures = 0

    click.echo(f"📂 Reading {len(files)} file(s)...")
    for path in files:
        name = os.path.basename(path)
        waveform = parse_waveform_file(path)
        if waveform is None:
            click.echo(f"   fail: {name} (no time/amplitude pairs)")
            failures += 1
            continue

        try:
            result = evaluate_waveform(
                standard,
                waveform,
                voltage,
                is_large_target=not small_target,
                is_high_bandwidth=not low_bandwidth,
                hbm_options=HBM0OhmOptions(detect_double_peak=double_peak),
            )
        except (ValueError, LookupError) as e:
            click.echo(f"   fail: {name} ({e})")
            failures += 1
            continue

        click.echo(f"   ok: {name} ({len(waveform)} samples)")
        evaluations.append((name, result))

    if not evaluations:
        click.echo("❌ Nothing to evaluate.")
        sys.exit(1)

    standard_name = C.STANDARD_NAMES[standard]
    click.echo(f"\n--- {standard_name} @ {voltage:g} V ---")
    for name, result in evaluations:
        click.echo(f"\n{name}: {'PASS' if result.is_passing else 'FAIL'}")
        for row in result_rows(result):
            click.echo(
                f"   {row['Result']:<12} {row['Measurement']:<20} {row['Value']:>12}"
                f"   [{row['Minimum']} .. {row['Maximum']}]"
            )
        if not result.is_passing:
            failures += 1

    os.makedirs(output, exist_ok=True)
    csv_path = os.path.join(output, "results.csv")
    md_path = os.path.join(output, "report.md")

    with open(csv_path, "wb") as f:
        f.write(generate_results_csv(evaluations))
    click.echo(f"\n✅ CSV: {csv_path}")

    with open(md_path, "w", encoding="utf-8") as f:
        f.write(generate_results_markdown(evaluations, standard_name))
    click.echo(f"✅ MD:  {md_path}")

    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    cli()
