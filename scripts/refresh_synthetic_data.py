#!/usr/bin/env python
"""
Refresh synthetic mixture CSV files from presets.

Writes data/synthetic/{preset_name}.csv for each selected preset (all
non-empty presets by default) and prints, per component, the prior mean
rate next to the mean of the rates actually drawn.
"""

from dataclasses import replace
from pathlib import Path

import numpy as np
import typer
from rich.console import Console
from rich.table import Table

from mixture_analysis.synthetic_data.data_models import GeneratedData
from mixture_analysis.synthetic_data.generators import (
    generate_mixture_observations,
    to_csv,
)
from mixture_analysis.synthetic_data.presets import PARAMS_DIR, get_preset

PROJECT_DIR = Path(__file__).parent.parent.absolute()
SYNTHETIC_DATA_DIR = PROJECT_DIR / "data" / "synthetic"

console = Console(force_terminal=True, legacy_windows=True)
app = typer.Typer()


def get_non_empty_presets() -> list[str]:
    """Return preset names for YAML files that are non-empty."""
    return sorted(
        path.stem
        for path in PARAMS_DIR.glob("*.yaml")
        if path.read_text().strip() != ""
    )


def component_table(name: str, data: GeneratedData) -> Table:
    """Prior and realised mean rate for each generated component."""
    table = Table(title=f"{name} ({data.observations.n_observations} obs)")
    table.add_column("Label", justify="right")
    table.add_column("Alpha", justify="right")
    table.add_column("Beta", justify="right")
    table.add_column("Trials", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Prior mean", justify="right")
    table.add_column("Drawn mean", justify="right")

    for label, spec in enumerate(data.config.components):
        drawn = data.true_rates[data.true_labels == label]
        table.add_row(
            str(label),
            f"{spec.alpha:g}",
            f"{spec.beta:g}",
            str(spec.trials),
            str(spec.size),
            f"{spec.alpha / (spec.alpha + spec.beta):.4f}",
            f"{float(np.mean(drawn)):.4f}",
        )
    return table


@app.command()
def main(
    presets: list[str] | None = typer.Option(
        None,
        "-p",
        "--preset",
        help="Preset to generate (repeatable, default: all non-empty)",
    ),
    output_dir: Path = typer.Option(
        SYNTHETIC_DATA_DIR,
        "-o",
        "--output-dir",
        help="Directory for the generated CSV files",
    ),
    seed: int | None = typer.Option(
        None,
        "-s",
        "--seed",
        help="Random seed (overrides the preset's seed)",
    ),
) -> None:
    """Generate CSV files for the selected presets."""
    selected = presets or get_non_empty_presets()
    if not selected:
        console.print("[red]No non-empty preset configurations found[/red]")
        raise typer.Exit(1)

    output_dir.mkdir(parents=True, exist_ok=True)

    for name in selected:
        try:
            config = get_preset(name)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1) from e
        if seed is not None:
            config = replace(config, random_seed=seed)

        data = generate_mixture_observations(config)
        output_path = output_dir / f"{name}.csv"
        to_csv(data, str(output_path))

        console.print(component_table(name, data))
        console.print(f"  -> [cyan]{output_path}[/cyan]")

    console.print(
        f"[bold green]Done.[/bold green] Generated {len(selected)} CSV "
        f"files in [cyan]{output_dir}[/cyan]"
    )


if __name__ == "__main__":
    app()
