"""CLI for the destination scorer.

Provides command-line access to recommendations, the personalization
context, catalog validation and the dominance diagnostic.
"""

import itertools
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree
import yaml

from .catalog import load_catalog, load_default_catalog, validate_catalog
from .config import resolve_config
from .engine import RecommendationEngine
from .exceptions import DestinationScorerError
from .rerank import dominance_share
from .schema import (
    PERSONALITY_CODES,
    Companion,
    Destination,
    RankedResult,
    RegionFilter,
    UserProfile,
)

console = Console()

TIER_COLORS = {
    "S": "bold green",
    "A": "green",
    "B": "cyan",
    "C": "yellow",
    "D": "dim",
}

code_option = click.option(
    "--code", "-m",
    required=True,
    type=click.Choice(sorted(PERSONALITY_CODES), case_sensitive=False),
    help="Four-letter personality code (e.g. INTP)"
)
birth_date_option = click.option(
    "--birth-date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Birth date (YYYY-MM-DD)"
)
birth_time_option = click.option(
    "--birth-time",
    help="Birth time (HH:MM, 24h)"
)
companion_option = click.option(
    "--companion",
    type=click.Choice([c.value for c in Companion]),
    help="Who you travel with"
)


@click.group()
@click.version_option(version="1.0.0", prog_name="destination-scorer")
@click.option("--debug", is_flag=True, help="Show debug logging")
def main(debug: bool):
    """Destination Scoring and Recommendation Engine.

    Ranks travel destinations against a personality code and an optional
    birth date/time element profile, with explainable scores.
    """
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


@main.command("recommend")
@code_option
@click.option("--month", type=click.IntRange(1, 12), help="Travel month (1-12)")
@click.option("--budget", type=click.IntRange(1, 5), help="Budget level (1-5)")
@companion_option
@click.option(
    "--region",
    type=click.Choice([r.value for r in RegionFilter]),
    default=RegionFilter.ALL.value,
    show_default=True,
    help="Region filter"
)
@birth_date_option
@birth_time_option
@click.option("--max-flight-hours", type=float, help="Longest acceptable flight (hours)")
@click.option(
    "--catalog", "-c",
    type=click.Path(exists=True),
    help="Path to a destinations JSON catalog (default: bundled sample)"
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    help="Path to a scorer-config.yaml"
)
@click.option("--limit", "-n", type=click.IntRange(min=1), help="Maximum number of results")
@click.option("--min-closeness", type=float, help="Hide results at or below this closeness")
@click.option("--min-share", type=float, help="Hide results at or below this share")
@click.option("--json-output", "-j", is_flag=True, help="Output raw JSON instead of formatted text")
@click.option("--out", "-o", type=click.Path(), help="Also write JSON results to this file")
@click.option("--verbose", "-v", is_flag=True, help="Show explanation notes")
def recommend_cmd(
    code: str,
    month: Optional[int],
    budget: Optional[int],
    companion: Optional[str],
    region: str,
    birth_date,
    birth_time: Optional[str],
    max_flight_hours: Optional[float],
    catalog: Optional[str],
    config_path: Optional[str],
    limit: Optional[int],
    min_closeness: Optional[float],
    min_share: Optional[float],
    json_output: bool,
    out: Optional[str],
    verbose: bool,
):
    """Recommend destinations for a profile.

    Examples:
        destination-scorer recommend -m INTP --month 10 --budget 2
        destination-scorer recommend -m ENFP --companion friends --region overseas -v
        destination-scorer recommend -m ISTJ --birth-date 1991-01-18 --birth-time 07:30 -j
    """
    profile = UserProfile(
        personality_code=code.upper(),
        travel_month=month,
        budget_level=budget,
        companion_type=companion,
        region_filter=region,
        birth_date=birth_date.date() if birth_date else None,
        birth_time=birth_time,
        max_flight_hours=max_flight_hours,
    )

    try:
        config = resolve_config(Path(config_path) if config_path else None)
        cat = load_catalog(catalog) if catalog else load_default_catalog()
        engine = RecommendationEngine(config, cat)
        results = engine.recommend(
            profile,
            limit=limit,
            min_closeness=min_closeness,
            min_share=min_share,
        )
    except (DestinationScorerError, ValidationError, yaml.YAMLError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    if json_output:
        output_json(results, out)
        return

    display_results(profile, results, verbose)
    if out:
        output_json(results, out)
        console.print(f"\n[green]Results saved to {out}[/green]")


@main.command("context")
@code_option
@birth_date_option
@birth_time_option
@companion_option
@click.option("--json-output", "-j", is_flag=True, help="Output raw JSON")
def context_cmd(
    code: str,
    birth_date,
    birth_time: Optional[str],
    companion: Optional[str],
    json_output: bool,
):
    """Show the trait vector, element distribution and pillar labels."""
    profile = UserProfile(
        personality_code=code.upper(),
        companion_type=companion,
        birth_date=birth_date.date() if birth_date else None,
        birth_time=birth_time,
    )
    context = RecommendationEngine().get_personalization_context(profile)

    if json_output:
        click.echo(context.model_dump_json(indent=2))
        return

    tree = Tree(f"[bold cyan]{profile.personality_code}[/bold cyan]")
    traits = tree.add("[bold]Traits[/bold]")
    for key, value in context.traits.items():
        traits.add(f"{key}: {value:.2f}")
    elements = tree.add("[bold]Elements[/bold]")
    for key, value in context.elements.items():
        elements.add(f"{key}: {value:.3f}")
    pillars = tree.add("[bold]Pillars[/bold]")
    p = context.pillars
    pillars.add(f"Year: {p.year_stem} {p.year_branch}")
    pillars.add(f"Month: {p.month_stem} {p.month_branch}")
    pillars.add(f"Hour: {p.hour_branch}")
    console.print(tree)


@main.command("validate")
@click.option(
    "--catalog", "-c",
    required=True,
    type=click.Path(),
    help="Path to a destinations JSON catalog"
)
def validate_cmd(catalog: str):
    """Validate a destination catalog file.

    Example:
        destination-scorer validate -c destinations.json
    """
    is_valid, issues = validate_catalog(catalog)
    if is_valid:
        console.print(f"[green]✓ Catalog valid: {catalog}[/green]")
        sys.exit(0)

    console.print(f"[red]✗ Catalog invalid: {catalog}[/red]")
    for issue in issues:
        console.print(f"  - {issue}")
    sys.exit(1)


@main.command("inspect")
@click.option(
    "--catalog", "-c",
    type=click.Path(exists=True),
    help="Path to a destinations JSON catalog (default: bundled sample)"
)
@click.option("--id", "destination_id", help="Show details for a specific destination")
@click.option("--region", type=click.Choice([r.value for r in RegionFilter]), help="Filter by region")
@click.option("--budget", type=click.IntRange(1, 5), help="Filter by budget level")
def inspect_cmd(
    catalog: Optional[str],
    destination_id: Optional[str],
    region: Optional[str],
    budget: Optional[int],
):
    """Inspect the destination catalog."""
    try:
        cat = load_catalog(catalog) if catalog else load_default_catalog()
    except DestinationScorerError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    console.print("\n[bold blue]Destination Catalog[/bold blue]")
    console.print(f"Version: {cat.version}")
    console.print(f"Total Destinations: {cat.total_destinations}")
    console.print()

    if destination_id:
        dest = cat.get(destination_id)
        if not dest:
            console.print(f"[red]Destination not found: {destination_id}[/red]")
            sys.exit(1)
        display_destination_detail(dest)
        return

    filtered = list(cat.destinations)
    if region and region != RegionFilter.ALL.value:
        filtered = [d for d in filtered if d.region.value == region]
    if budget:
        filtered = [d for d in filtered if d.budget_level == budget]

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Country")
    table.add_column("Region")
    table.add_column("Budget", justify="right")
    table.add_column("Best Months")
    for dest in filtered:
        table.add_row(
            dest.id,
            dest.name,
            dest.country,
            dest.region.value,
            str(dest.budget_level),
            ", ".join(str(m) for m in dest.best_months or []) or "-",
        )
    console.print(table)


@main.command("dominance")
@click.option(
    "--catalog", "-c",
    type=click.Path(exists=True),
    help="Path to a destinations JSON catalog (default: bundled sample)"
)
@click.option(
    "--region",
    type=click.Choice([r.value for r in RegionFilter]),
    default=RegionFilter.ALL.value,
    show_default=True,
    help="Region filter for every sampled profile"
)
@click.option("--budgets", default="1,2,3,4,5", show_default=True, help="Comma-separated budget levels")
@click.option("--months", default="2,6,10", show_default=True, help="Comma-separated travel months")
def dominance_cmd(catalog: Optional[str], region: str, budgets: str, months: str):
    """Report how often one destination or country wins top spot.

    Sweeps every personality code and companion type over the given
    budgets and months and prints the top-1 share of the most frequent
    destination and country.
    """
    try:
        cat = load_catalog(catalog) if catalog else load_default_catalog()
        budget_levels = [int(b) for b in budgets.split(",") if b.strip()]
        travel_months = [int(m) for m in months.split(",") if m.strip()]
    except (DestinationScorerError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    engine = RecommendationEngine(catalog=cat)
    top_ids = []
    top_countries = []
    for code, companion, budget, month in itertools.product(
        sorted(PERSONALITY_CODES), list(Companion), budget_levels, travel_months
    ):
        profile = UserProfile(
            personality_code=code,
            companion_type=companion,
            budget_level=budget,
            travel_month=month,
            region_filter=region,
        )
        results = engine.recommend(profile, limit=1)
        top_ids.append(results[0].destination.id if results else None)
        top_countries.append(results[0].destination.country if results else None)

    console.print(Panel(
        f"Samples: {len(top_ids)}\n"
        f"Top destination share: [bold]{dominance_share(top_ids):.3f}[/bold]\n"
        f"Top country share: [bold]{dominance_share(top_countries):.3f}[/bold]",
        title="Dominance",
    ))


@main.command("init-config")
@click.option(
    "--out", "-o",
    type=click.Path(),
    default="scorer-config.yaml",
    help="Output path for the configuration file"
)
@click.option(
    "--force", "-f",
    is_flag=True,
    help="Overwrite existing config file"
)
def init_config_cmd(out: str, force: bool):
    """Generate a default scorer configuration file.

    Example:
        destination-scorer init-config --out my-config.yaml
    """
    from .config import save_default_config

    out_path = Path(out)
    if out_path.exists() and not force:
        console.print(f"[red]Error:[/red] Config file already exists: {out}")
        console.print("Use --force to overwrite")
        sys.exit(1)

    save_default_config(out_path)
    console.print(f"[green]✓[/green] Config file created: {out}")
    console.print("\nThe scorer will look for config in this order:")
    console.print("  1. DESTINATION_SCORER_CONFIG environment variable")
    console.print("  2. ./scorer-config.yaml (current directory)")
    console.print("  3. ~/.config/destination-scorer/config.yaml")


def display_results(profile: UserProfile, results: list[RankedResult], verbose: bool):
    """Display ranked results as a table."""
    console.print(f"\n[bold blue]Recommendations for {profile.personality_code}[/bold blue]")
    if not results:
        console.print("[yellow]No destinations matched.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Destination", style="cyan")
    table.add_column("Country")
    table.add_column("Tier", justify="center")
    table.add_column("Share", justify="right")
    table.add_column("Pct", justify="right")
    table.add_column("Score", justify="right")

    for i, result in enumerate(results, 1):
        tier = result.tier.value
        color = TIER_COLORS.get(tier, "white")
        table.add_row(
            str(i),
            result.destination.name,
            result.destination.country,
            f"[{color}]{tier}[/{color}]",
            f"{result.share:.1%}",
            str(result.percentile),
            f"{result.raw_score:.3f}",
        )
    console.print(table)

    if verbose:
        for i, result in enumerate(results, 1):
            console.print(f"\n[bold cyan]{i}. {result.destination.name}[/bold cyan]")
            for note in result.explanation.notes:
                console.print(f"   [green]•[/green] {note}")


def display_destination_detail(dest: Destination):
    """Display detailed destination information."""
    tree = Tree(f"[bold cyan]{dest.name}[/bold cyan]")

    identity = tree.add("[bold]Identity[/bold]")
    identity.add(f"ID: {dest.id}")
    identity.add(f"Country: {dest.country} ({dest.region.value})")
    if dest.city:
        identity.add(f"City: {dest.city}")

    traits = tree.add("[bold]Trait Profile[/bold]")
    for key, value in dest.trait_profile.items():
        traits.add(f"{key}: {value:.2f}")

    elements = tree.add("[bold]Element Profile[/bold]")
    for key, value in dest.element_profile.items():
        elements.add(f"{key}: {value:.2f}")

    travel = tree.add("[bold]Travel[/bold]")
    travel.add(f"Budget Level: {dest.budget_level}")
    if dest.best_months:
        travel.add(f"Best Months: {', '.join(str(m) for m in dest.best_months)}")
    if dest.avg_flight_hours is not None:
        travel.add(f"Avg Flight Hours: {dest.avg_flight_hours}")
    if dest.themes:
        travel.add(f"Themes: {', '.join(t.value for t in dest.themes)}")

    if dest.must_try:
        must_try = tree.add("[bold]Must Try[/bold]")
        for item in dest.must_try:
            must_try.add(item)

    console.print(tree)


def output_json(results: list[RankedResult], out_path: Optional[str]):
    """Output results as JSON."""
    json_str = json.dumps([r.model_dump(mode="json") for r in results], indent=2, ensure_ascii=False)

    if out_path:
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(json_str)
    else:
        click.echo(json_str)


if __name__ == "__main__":
    main()
