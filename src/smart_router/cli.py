"""CLI interface for the smart router.

Settings come from ~/.smart-router/config.yaml, spend history from the
ledger file next to it.

Quick start:
    smart-router route "Prove that sqrt(2) is irrational"   # Show a routing decision
    smart-router models                                     # Catalog with prices
    smart-router stats                                      # Spend so far
    smart-router reset                                      # Zero the ledger
    smart-router config --default-tier complex              # Change settings
"""

import logging

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from smart_router import __version__
from smart_router.config import (
    PROVIDERS,
    RouterSettings,
    configured_providers,
    get_catalog,
    get_settings,
    load_config,
    save_config,
)
from smart_router.errors import SmartRouterError
from smart_router.ledger import CostLedger
from smart_router.routing import Message, SmartRouter, Tier

app = typer.Typer(
    name="smart-router",
    help="Route prompts to the cheapest capable LLM and track the spend",
    no_args_is_help=True,
)

console = Console()


def _load_settings() -> RouterSettings:
    try:
        return get_settings()
    except SmartRouterError as e:
        console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _open_ledger(settings: RouterSettings) -> CostLedger:
    return CostLedger(settings.ledger_path)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Complexity-based LLM routing with durable cost tracking."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def version() -> None:
    """Show version."""
    console.print(f"smart-router {__version__}")


# ─── Routing Commands ───────────────────────────────────────────

@app.command()
def route(
    prompt: str = typer.Argument(..., help="Prompt to classify"),
    default_tier: str = typer.Option(
        None, "--default-tier", "-t",
        help="Tier for ambiguous prompts: simple|medium|complex|reasoning"),
    json_output: bool = typer.Option(
        False, "--json", help="Print the decision as JSON"),
) -> None:
    """Show which model a prompt would be routed to, and why.

    Examples:
        smart-router route "What is 2+2?"
        smart-router route "Design a distributed cache" -t complex
        smart-router route "Summarize this" --json
    """
    settings = _load_settings()
    try:
        router = SmartRouter(get_catalog(settings))
        decision = router.route(
            [Message(role="user", content=prompt)],
            default_tier or settings.default_tier,
        )
    except SmartRouterError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    if json_output:
        console.print_json(data=decision.to_dict())
        return

    console.print(Panel(
        router.explain(decision),
        title=f"{decision.tier.name}",
        border_style="cyan",
        expand=False,
    ))

    if decision.scoring is not None:
        signals = decision.scoring.top_signals()
        if signals:
            factors = ", ".join(f"{k}={v:+.2f}" for k, v in signals)
            console.print(
                f"[dim]Score {decision.scoring.total:+.3f} (factors: {factors})[/dim]")


@app.command()
def models() -> None:
    """List all catalog models with pricing, grouped by tier."""
    settings = _load_settings()
    try:
        catalog = get_catalog(settings)
    except SmartRouterError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    available = set(configured_providers(settings))

    for tier in Tier:
        tier_models = [m for m in catalog if m.tier == tier]
        table = Table(title=f"{tier.name}")
        table.add_column("", width=2)
        table.add_column("Model", style="cyan")
        table.add_column("ID", style="dim")
        table.add_column("Provider")
        table.add_column("Cost (in/out per 1M)", justify="right", style="green")
        table.add_column("Context", justify="right")

        for m in tier_models:
            mark = "✅" if m.provider in available else "❌"
            table.add_row(
                mark,
                m.display_name,
                m.id,
                m.provider.value,
                f"${m.input_price_per_million:.2f}/${m.output_price_per_million:.2f}",
                f"{m.context_window:,}",
            )
        if not tier_models:
            table.add_row("", "[red]no models configured[/red]", "", "", "", "")
        console.print(table)

    missing = [p for p in catalog.providers() if p not in available]
    if missing:
        env_vars = ", ".join(PROVIDERS[p]["env_var"] for p in missing)
        console.print(f"[dim]Set {env_vars} to enable the ❌ providers.[/dim]")


# ─── Ledger Commands ────────────────────────────────────────────

@app.command()
def stats(
    plain: bool = typer.Option(
        False, "--plain", help="Print the plain-text summary"),
) -> None:
    """Show routing spend by tier and provider."""
    settings = _load_settings()
    ledger = _open_ledger(settings)

    if plain:
        console.print(ledger.summarize(), markup=False, highlight=False)
        return

    snapshot = ledger.snapshot()

    console.print()
    console.print(Panel("[bold]Smart Router Statistics[/bold]", border_style="cyan"))

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    avg = (
        snapshot.total_cost / snapshot.total_requests
        if snapshot.total_requests > 0 else 0.0
    )
    table.add_row("Requests", f"{snapshot.total_requests:,}")
    table.add_row("Total tokens", f"[cyan]{snapshot.total_tokens:,}[/cyan]")
    table.add_row(
        "Total cost", f"[{'green' if snapshot.total_cost < 1 else 'yellow'}]${snapshot.total_cost:.4f}[/]")
    table.add_row("Avg cost/req", f"${avg:.4f}")
    console.print(table)

    def share(cost: float) -> str:
        if snapshot.total_cost > 0:
            return f"{cost / snapshot.total_cost * 100:.1f}%"
        return "0.0%"

    console.print()
    tier_table = Table(title="By Tier")
    tier_table.add_column("Tier", style="cyan")
    tier_table.add_column("Input tokens", justify="right")
    tier_table.add_column("Output tokens", justify="right")
    tier_table.add_column("Cost", justify="right", style="green")
    tier_table.add_column("Share", justify="right")
    for tier, cost in snapshot.cost_by_tier.items():
        tokens = snapshot.tokens_by_tier[tier]
        tier_table.add_row(
            tier.name,
            f"{tokens.input:,}",
            f"{tokens.output:,}",
            f"${cost:.4f}",
            share(cost),
        )
    console.print(tier_table)

    provider_table = Table(title="By Provider")
    provider_table.add_column("Provider", style="cyan")
    provider_table.add_column("Cost", justify="right", style="green")
    provider_table.add_column("Share", justify="right")
    for provider, cost in snapshot.cost_by_provider.items():
        provider_table.add_row(provider.value, f"${cost:.4f}", share(cost))
    console.print(provider_table)


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset routing statistics to zero."""
    settings = _load_settings()
    if not yes and not typer.confirm("Reset all routing statistics?"):
        console.print("[dim]Aborted.[/dim]")
        raise typer.Exit(0)

    ledger = _open_ledger(settings)
    ledger.reset()
    console.print("[green]Statistics reset.[/green]")


# ─── Config Command ─────────────────────────────────────────────

@app.command()
def config(
    default_tier: str = typer.Option(
        None, "--default-tier", "-t",
        help="Tier for ambiguous prompts: simple|medium|complex|reasoning"),
    cost_tracking: bool = typer.Option(
        None, "--cost-tracking/--no-cost-tracking", help="Account completed calls"),
    enable_logging: bool = typer.Option(
        None, "--logging/--no-logging", help="Log routing explanations"),
) -> None:
    """Show or update router settings.

    Examples:
        smart-router config                      # Show settings
        smart-router config -t complex           # Default ambiguous prompts to COMPLEX
        smart-router config --no-cost-tracking   # Stop writing the ledger
    """
    try:
        raw = load_config()
    except SmartRouterError as e:
        console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    changed = False

    if default_tier is not None:
        try:
            raw["default_tier"] = Tier.parse(default_tier).value
        except SmartRouterError as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            raise typer.Exit(1)
        changed = True
    if cost_tracking is not None:
        raw["cost_tracking"] = cost_tracking
        changed = True
    if enable_logging is not None:
        raw["enable_logging"] = enable_logging
        changed = True

    if changed:
        save_config(raw)
        console.print("[green]Configuration saved.[/green]")

    settings = _load_settings()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("Default tier", settings.default_tier.name)
    table.add_row("Cost tracking", "on" if settings.cost_tracking else "off")
    table.add_row("Logging", "on" if settings.enable_logging else "off")
    table.add_row("Ledger", str(_open_ledger(settings).path))
    table.add_row("Catalog", str(settings.catalog_path or "built-in"))
    providers = configured_providers(settings)
    table.add_row(
        "Providers", ", ".join(p.value for p in providers) or "[dim]none[/dim]")
    console.print(table)


if __name__ == "__main__":
    app()
