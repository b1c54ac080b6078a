#!/usr/bin/env python
"""
Fit a beta-binomial mixture to count data and save the results.
"""

from dataclasses import replace
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mixture_analysis.core.data import load_csv_to_observations
from mixture_analysis.core.exceptions import MixtureError
from mixture_analysis.core.settings import RuntimeSettings
from mixture_analysis.mixture import (
    MixtureEstimator,
    MixtureFitResult,
    compute_posteriors,
    summarize_history,
)
from mixture_analysis.mixture.estimation.config import (
    MixtureConfig,
    load_mixture_config,
)

PROJECT_DIR = Path(__file__).parent.parent.absolute()
DEFAULT_OUTPUT_DIR = PROJECT_DIR / "data" / "fitted-models"

console = Console(force_terminal=True, legacy_windows=True)
app = typer.Typer()


def save_summary(result: MixtureFitResult, output_path: Path) -> None:
    """Save fit summary to json file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        f.write(result.to_summary().model_dump_json(indent=4))


def build_config(
    config_path: Path | None,
    n_components: int | None,
    seed: int | None,
    n_jobs: int | None = None,
) -> MixtureConfig:
    """Load the YAML config (or defaults) and apply overrides.

    Precedence for n_jobs: command line, then MIXTURE_N_JOBS, then the
    YAML file, then the default.
    """
    settings = RuntimeSettings()
    config = (
        load_mixture_config(config_path)
        if config_path is not None
        else MixtureConfig()
    )

    overrides: dict[str, int] = {}
    if n_components is not None:
        overrides["n_components"] = n_components
    if seed is not None:
        overrides["random_seed"] = seed
    if n_jobs is not None:
        overrides["n_jobs"] = n_jobs
    elif "n_jobs" in settings.model_fields_set:
        overrides["n_jobs"] = settings.n_jobs
    if not overrides:
        return config

    return replace(config, **overrides)


@app.command()
def main(
    input_path: Path = typer.Argument(
        ...,
        help="Path to CSV file with counts (columns: id, successes, trials)",
    ),
    output_dir: Path = typer.Option(
        DEFAULT_OUTPUT_DIR,
        "-o",
        "--output-dir",
        help="Output directory for fitted results",
    ),
    config_path: Path | None = typer.Option(
        None,
        "-c",
        "--config",
        help="YAML file with mixture configuration",
    ),
    n_components: int | None = typer.Option(
        None,
        "-k",
        "--n-components",
        help="Number of mixture components (overrides config)",
    ),
    seed: int | None = typer.Option(
        None,
        "-s",
        "--seed",
        help="Random seed for reproducibility (overrides config)",
    ),
    n_jobs: int | None = typer.Option(
        None,
        "-j",
        "--n-jobs",
        help="Worker threads for the component fits (overrides env/config)",
    ),
) -> None:
    """Fit a beta-binomial mixture and save posteriors, history and summary."""

    # Validate input
    if not input_path.exists():
        console.print(f"[red]File not found: {input_path}[/red]")
        raise typer.Exit(1)
    if input_path.suffix != ".csv":
        console.print("[red]Only .csv files are supported[/red]")
        raise typer.Exit(1)

    # Load data
    console.print("[dim]Loading data...[/dim]")
    try:
        observations = load_csv_to_observations(input_path)
        config = build_config(config_path, n_components, seed, n_jobs)
    except ValueError as e:
        console.print(f"[red]Error loading input: {e}[/red]")
        raise typer.Exit(1) from e

    console.print(
        Panel(
            f"[bold]Fit Beta-Binomial Mixture[/bold]\n\n"
            f"Input: [cyan]{input_path}[/cyan]\n"
            f"Observations: [cyan]{observations.n_observations}[/cyan]\n"
            f"Components: [cyan]{config.n_components}[/cyan]\n"
            f"Seed: [cyan]{config.random_seed}[/cyan]\n"
            f"Workers: [cyan]{config.n_jobs}[/cyan]\n"
            f"Convergence: [cyan]{config.convergence.mode.value}[/cyan]",
            title="Configuration",
        )
    )

    # Fit model
    console.print("[dim]Fitting mixture...[/dim]")
    try:
        result = MixtureEstimator(config).fit(observations)
    except MixtureError as e:
        console.print(f"[red]Fit failed: {e}[/red]")
        raise typer.Exit(1) from e

    console.print(
        f"  {result.convergence_status.value} "
        f"({result.n_iterations} iterations, LL={result.log_likelihood:.2f})"
    )

    table = Table(title="Components")
    table.add_column("Label", justify="right")
    table.add_column("Alpha", justify="right")
    table.add_column("Beta", justify="right")
    table.add_column("Mean", justify="right")
    table.add_column("Size", justify="right")
    sizes = result.final_state.component_sizes
    for component in result.components:
        table.add_row(
            str(component.label),
            f"{component.alpha:.3f}",
            f"{component.beta:.3f}",
            f"{component.mean:.4f}",
            str(int(sizes[component.label])),
        )
    console.print(table)

    # Save outputs
    output_dir.mkdir(parents=True, exist_ok=True)
    posteriors_path = output_dir / f"{input_path.stem}_posteriors.csv"
    history_path = output_dir / f"{input_path.stem}_history.csv"
    summary_path = output_dir / f"{input_path.stem}.json"

    posteriors = compute_posteriors(observations, result.components)
    posteriors.to_frame().to_csv(posteriors_path, index=False)
    summarize_history(result.states).to_csv(history_path, index=False)
    save_summary(result, summary_path)

    console.print(
        Panel(
            f"[bold green]Results saved[/bold green]\n\n"
            f"Posteriors: [cyan]{posteriors_path}[/cyan]\n"
            f"History: [cyan]{history_path}[/cyan]\n"
            f"Summary: [cyan]{summary_path}[/cyan]",
            title="Done",
        )
    )


if __name__ == "__main__":
    app()
