# Copyright 2025 Cisco Systems, Inc. and its affiliates
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Command-line interface for hubminer."""

import click
import sys
from typing import Optional, Tuple

from rich.console import Console
from rich.table import Table

from .config import Config
from .core.analyzer import HubnessAnalyzer
from .core.data import load_dataset
from .core.distances import compute_distance_matrix, save_distance_matrix
from .core.metrics import build_combined_metric, list_metrics
from .core.report import load_json_report
from .core.secondary import list_secondary
from .utils.logging import setup_logger, get_logger

console = Console()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.version_option(version="0.1.0", prog_name="hubminer")
def cli(verbose: bool):
    """hubminer - Hubness analysis of k-nearest neighbor sets.

    Computes distance matrices, exact k-NN sets, neighbor occurrence
    statistics and hubness-reducing secondary distances.
    """
    if verbose:
        setup_logger("hubminer", level=10)  # DEBUG
    else:
        setup_logger("hubminer", level=20)  # INFO


@cli.command()
@click.option("--dataset", "-d", required=True, type=click.Path(exists=True), help="Path to dataset file")
@click.option("--output", "-o", required=True, type=str, help="Path of the distance matrix file to write")
@click.option("--metric", "-m", type=click.Choice(list_metrics()), default="euclidean", help="Primary metric")
@click.option("--label-column", type=str, help="Label column for tables")
@click.option("--normalize", is_flag=True, help="Normalize float features to unit length")
@click.option("--threads", "-t", type=int, default=1, help="Worker threads")
def distances(
    dataset: str,
    output: str,
    metric: str,
    label_column: Optional[str],
    normalize: bool,
    threads: int,
):
    """Compute and save a distance matrix."""
    logger = get_logger()

    try:
        data = load_dataset(dataset, label_column=label_column, normalize=normalize)
        matrix = compute_distance_matrix(data, build_combined_metric(metric), num_threads=threads)
        save_distance_matrix(matrix, output)

        console.print(
            f"[bold green]Success:[/bold green] {matrix.n}x{matrix.n} distance matrix "
            f"saved to: [cyan]{output}[/cyan]"
        )

    except Exception as e:
        logger.error(f"Error computing distances: {e}", exc_info=True)
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)


@cli.command()
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to config YAML file")
@click.option("--dataset", "-d", type=click.Path(exists=True), help="Path to dataset file (overrides config)")
@click.option("--matrix", type=click.Path(exists=True), help="Path to a precomputed distance matrix")
@click.option("--output", "-o", type=str, help="Output directory (overrides config)")
@click.option("--k", "-k", "k_values", type=int, multiple=True, help="Neighborhood size(s)")
@click.option("--metric", "-m", type=click.Choice(list_metrics()), help="Primary metric")
@click.option("--secondary", "-s", type=click.Choice(list_secondary()), help="Secondary distance method")
@click.option("--threads", "-t", type=int, help="Worker threads")
@click.option("--summary-only", is_flag=True, help="Show only summary, don't save reports")
def analyze(
    config: Optional[str],
    dataset: Optional[str],
    matrix: Optional[str],
    output: Optional[str],
    k_values: Tuple[int, ...],
    metric: Optional[str],
    secondary: Optional[str],
    threads: Optional[int],
    summary_only: bool,
):
    """Analyze the hubness of k-NN sets."""
    logger = get_logger()

    try:
        cfg = Config.from_yaml(config) if config else Config()

        if dataset:
            cfg.input.dataset_path = dataset
        if matrix:
            cfg.input.distance_matrix_path = matrix
        if output:
            cfg.output.out_dir = output
        if k_values:
            cfg.neighbors.k = k_values[0]
            cfg.neighbors.k_values = list(k_values[1:])
        if metric:
            cfg.metric.name = metric
        if secondary:
            cfg.secondary.method = secondary
        if threads:
            cfg.distances.num_threads = threads

        analyzer = HubnessAnalyzer(cfg)
        analyzer.load_data()
        results = analyzer.analyze(save=not summary_only)

        json_report = results["json_report"]
        info = json_report["analysis_info"]

        table = Table(title="Hubness Analysis", show_header=True, header_style="bold magenta")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Dataset", str(info["dataset"]))
        table.add_row("Points", f"{info['num_points']:,}")
        table.add_row("Distance", str(info["metric"]))
        table.add_row("Secondary", str(info["secondary"] or "none"))
        table.add_row("Runtime", f"{info['runtime_seconds']:.2f} seconds")

        console.print("\n")
        console.print(table)

        k_table = Table(title="Occurrence Statistics", show_header=True, header_style="bold yellow")
        k_table.add_column("k", style="cyan")
        k_table.add_column("Skewness", style="green")
        k_table.add_column("Kurtosis", style="green")
        k_table.add_column("Hubs", style="red")
        k_table.add_column("Orphans", style="blue")
        k_table.add_column("Anti-hubs", style="blue")
        k_table.add_column("Bad Hubness", style="red")
        k_table.add_column("Max N_k", style="yellow")

        for summary in results["summaries"]:
            k_table.add_row(
                str(summary.k),
                f"{summary.skewness:.3f}",
                f"{summary.kurtosis:.3f}",
                f"{summary.hub_percentage:.2f}%",
                f"{summary.orphan_percentage:.2f}%",
                f"{summary.anti_hub_percentage:.2f}%",
                f"{summary.bad_hubness_percentage:.2f}%",
                str(summary.max_occurrence),
            )

        console.print("\n")
        console.print(k_table)

        if not summary_only:
            console.print(f"\n[bold green]Success:[/bold green] Report saved to: [cyan]{cfg.output.out_dir}[/cyan]")
            console.print(f"  - JSON: {cfg.output.out_dir}/report.json")

    except Exception as e:
        logger.error(f"Error during analysis: {e}", exc_info=True)
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)


@cli.command()
@click.option("--report", required=True, type=click.Path(exists=True), help="Path to JSON report")
@click.option("--k", "-k", type=int, help="Neighborhood size (defaults to the smallest in the report)")
@click.option("--top", "-n", type=int, default=10, help="Number of hubs to show")
def hubs(report: str, k: Optional[int], top: int):
    """Show the strongest hubs from a saved report."""
    try:
        report_data = load_json_report(report)
        results = report_data.get("results", {})

        if not results:
            console.print("[bold red]Report contains no results[/bold red]")
            return

        key = str(k) if k is not None else str(min(int(value) for value in results))
        if key not in results:
            console.print(f"[bold red]No results for k={key} in report[/bold red]")
            return

        summary = results[key]
        table = Table(title=f"Top Hubs (k={key})", show_header=True, header_style="bold red")
        table.add_column("Rank", style="cyan")
        table.add_column("Index", style="green")
        table.add_column("Occurrences", style="yellow")
        table.add_column("Bad Occurrences", style="red")
        table.add_column("Hub Z-Score", style="blue")

        for rank, hub in enumerate(summary.get("top_hubs", [])[:top], 1):
            table.add_row(
                str(rank),
                str(hub["index"]),
                str(hub["occurrences"]),
                str(hub["bad_occurrences"]),
                f"{hub['hub_z']:.2f}",
            )

        console.print("\n")
        console.print(table)
        console.print(
            f"Mean occurrence {summary['mean_occurrence']:.2f}, "
            f"skewness {summary['skewness']:.3f}"
        )

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
