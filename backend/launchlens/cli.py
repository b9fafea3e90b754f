"""Typer CLI — ``launchlens validate`` and ``launchlens config`` commands."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from .errors import ConfigError, LaunchLensError, MissingCredentialError
from .schemas.validation import DetailedResult, SimpleResult
from .services.config_store import API_KEY_SLOTS, CONFIG_KEYS, get_config, mask_key, validate_api_key
from .services.decision_synthesizer import validate_idea, validate_idea_detailed

# Load .env file from the working directory (if it exists)
load_dotenv()

app = typer.Typer(
    name="launchlens",
    help="LaunchLens — quick startup idea validation.",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Manage models and API keys (stored under ~/.launchlens).")
app.add_typer(config_app, name="config")

console = Console()
err_console = Console(stderr=True)

VERDICT_STYLES = {"YES": "bold green", "MAYBE": "bold yellow", "NO": "bold red", "UNCLEAR": "bold red"}

Result = Union[SimpleResult, DetailedResult]


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _print_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


def score_bar(score: float) -> str:
    """Ten-cell bar, green ≥7, yellow ≥4, red below."""
    filled = max(0, min(10, round(score)))
    colour = "green" if score >= 7 else "yellow" if score >= 4 else "red"
    return f"[{colour}]{'█' * filled}{'░' * (10 - filled)}[/]"


def _rule() -> None:
    console.print("=" * 60)


def _numbered(items: List[str]) -> None:
    for i, item in enumerate(items, 1):
        console.print(f"  {i}. {item}", markup=False, highlight=False)


def print_simple(result: SimpleResult) -> None:
    console.print()
    _rule()
    console.print(f"[{VERDICT_STYLES[result.decision]}]VERDICT: {result.decision}[/]")
    _rule()

    console.print("\n[bold]📊 REASONS:[/]")
    _numbered(result.reasons)

    if result.competitors:
        console.print("\n[bold]🏢 EXISTING COMPETITORS:[/]")
        for comp in result.competitors:
            console.print(f"  • {comp.name}: {comp.description}", markup=False, highlight=False)

    if result.decision == "NO" and result.alternatives:
        console.print("\n[bold]💡 BETTER ALTERNATIVES:[/]")
        _numbered(result.alternatives)

    if result.decision == "NO" and result.pivot_examples:
        console.print("\n[bold]🔄 SUCCESSFUL PIVOTS:[/]")
        for example in result.pivot_examples:
            console.print(f"  • {example.company}: {example.story}", markup=False, highlight=False)
    console.print()


def print_detailed(result: DetailedResult) -> None:
    breakdown = result.scores.breakdown
    console.print()
    _rule()
    console.print(
        f"[{VERDICT_STYLES[result.decision]}]VERDICT: {result.decision}[/] "
        f"(Score: {result.scores.overall}/10)"
    )
    _rule()

    console.print("\n[bold]📊 SCORING BREAKDOWN:[/]")
    console.print(f"  Market Opportunity:  {score_bar(breakdown.market_opportunity)} {breakdown.market_opportunity}/10")
    console.print(f"  Competition Balance: {score_bar(breakdown.competition)} {breakdown.competition}/10")
    console.print(f"  Entry Feasibility:   {score_bar(breakdown.entry_feasibility)} {breakdown.entry_feasibility}/10")

    market = result.market_analysis
    console.print("\n[bold]📈 MARKET ANALYSIS:[/]")
    console.print(f"  Market Size: {market.size}", markup=False, highlight=False)
    console.print(f"  Growth Rate: {market.growth}", markup=False, highlight=False)
    console.print(f"  Recent Funding: {market.funding}", markup=False, highlight=False)

    console.print("\n[bold]🎯 CUSTOMER PAIN:[/]")
    console.print(f"  Pain Level: {result.customer_pain.level}/10")
    if result.customer_pain.unmet_needs:
        console.print("  Unmet Needs:")
        for need in result.customer_pain.unmet_needs:
            console.print(f"    • {need}", markup=False, highlight=False)

    competition = result.competitor_analysis
    console.print("\n[bold]🏢 COMPETITION:[/]")
    console.print(f"  Number of Competitors: {competition.count}")
    console.print(f"  Market Concentration: {competition.concentration}")
    console.print(f"  Customer Satisfaction: {competition.quality}/10")
    if competition.competitors:
        console.print("  Top Competitors:")
        for comp in competition.competitors[:3]:
            console.print(f"    • {comp.name}: {comp.description}", markup=False, highlight=False)

    console.print("\n[bold]💡 ANALYSIS:[/]")
    _numbered(result.reasons)

    if result.strategy:
        console.print("\n[bold]🎯 STRATEGY:[/]")
        console.print(f"  {result.strategy}", markup=False, highlight=False)

    if result.alternatives:
        console.print("\n[bold]🔄 ALTERNATIVES:[/]")
        _numbered(result.alternatives)
    console.print()


async def _run(idea: str, *, detailed: bool, roast: bool, model: Optional[str]) -> Result:
    runner = validate_idea_detailed if detailed else validate_idea
    return await runner(idea, roast_mode=roast, model=model)


def _process_idea(
    idea: str, *, json_output: bool, detailed: bool, roast: bool, model: Optional[str]
) -> Result:
    """Validate one idea and render it unless JSON was requested.

    Errors are reported on stderr and re-raised for the caller to decide
    the exit code.
    """
    if not json_output:
        err_console.print(f"\n🔍 Validating: \"{idea}\"...", markup=False, highlight=False)
        if model:
            err_console.print(f"📊 Using model: {model}", markup=False)

    try:
        result = asyncio.run(_run(idea, detailed=detailed, roast=roast, model=model))
    except LaunchLensError as exc:
        err_console.print(f"[red]❌ Error:[/] {escape(str(exc))}", highlight=False)
        if isinstance(exc, MissingCredentialError):
            err_console.print(f"\n💡 Tip: Set your API key using: {exc.remediation}", markup=False)
        raise

    if not json_output:
        if isinstance(result, DetailedResult):
            print_detailed(result)
        else:
            print_simple(result)
    return result


def _process_file(
    path: Path, *, json_output: bool, detailed: bool, roast: bool, model: Optional[str]
) -> None:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        err_console.print(f"[red]❌ Error reading file:[/] {escape(str(exc))}")
        raise typer.Exit(code=1)

    ideas = [line.strip() for line in content.splitlines() if line.strip()]
    if not json_output:
        err_console.print(f"\n📋 Processing {len(ideas)} ideas from {path}...\n", markup=False)

    results: List[Dict[str, Any]] = []
    for idea in ideas:
        try:
            result = _process_idea(
                idea, json_output=json_output, detailed=detailed, roast=roast, model=model
            )
        except LaunchLensError as exc:
            results.append({"idea": idea, "error": str(exc)})
            continue
        results.append({"idea": idea, **result.model_dump(by_alias=True, mode="json")})

    if json_output:
        _print_json(results)
        return

    verdicts = [r.get("decision") for r in results]
    _rule()
    console.print("[bold]SUMMARY:[/]")
    console.print(f"  ✅ YES: {verdicts.count('YES')}")
    console.print(f"  ❌ NO: {verdicts.count('NO')}")
    console.print(f"  ⚠️  MAYBE: {verdicts.count('MAYBE')}")
    _rule()


@app.command()
def validate(
    idea: Optional[str] = typer.Argument(None, help="The startup idea to validate."),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format."),
    roast: bool = typer.Option(False, "--roast", help="Roast mode (extra harsh wording)."),
    detailed: bool = typer.Option(False, "--detailed", help="Detailed analysis with market scores."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="OpenAI model to use for this run."),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Validate ideas from a file (one per line)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Validate a startup idea.

    Examples:

        launchlens validate "AI-powered todo app for developers"

        launchlens validate --detailed "AI code review tool"

        launchlens validate --file ideas.txt --json
    """
    _setup_logging(verbose)
    options = dict(json_output=json_output, detailed=detailed, roast=roast, model=model)

    if file is not None:
        _process_file(file, **options)
        return

    if not idea:
        err_console.print("[red]❌ Error:[/] Please provide an idea or use --file")
        raise typer.Exit(code=1)

    try:
        result = _process_idea(idea, **options)
    except LaunchLensError as exc:
        if json_output:
            _print_json({"success": False, "error": str(exc)})
        raise typer.Exit(code=1)

    if json_output:
        _print_json(result.model_dump(by_alias=True, mode="json"))


@config_app.command("list")
def config_list() -> None:
    """List all configuration (API keys masked)."""
    console.print("\n[bold]📋 Current Configuration:[/]")
    console.print("=" * 40)
    for key, value in get_config().list().items():
        console.print(f"  {key}: {value}", markup=False, highlight=False)
    console.print()


@config_app.command("get")
def config_get(key: str = typer.Argument(..., help=f"One of: {', '.join(CONFIG_KEYS)}")) -> None:
    """Show one configuration value."""
    value = get_config().get(key)
    if value is None:
        console.print(f"[red]❌ {key} is not set[/]")
    elif key in API_KEY_SLOTS:
        console.print(f"{key}: {mask_key(value)}", markup=False, highlight=False)
    else:
        console.print(f"{key}: {value}", markup=False, highlight=False)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help=f"One of: {', '.join(CONFIG_KEYS)}"),
    value: str = typer.Argument(...),
) -> None:
    """Set a configuration value. API keys are checked with the provider first.

    Examples:

        launchlens config set openai-api-key sk-...

        launchlens config set model gpt-4
    """
    if key in API_KEY_SLOTS:
        provider, _ = API_KEY_SLOTS[key]
        label = "OpenAI" if provider == "openai" else "Perplexity"
        console.print(f"🔐 Validating {label} API key...")
        if not asyncio.run(validate_api_key(provider, value)):
            err_console.print(f"[red]❌ Invalid {label} API key[/]")
            raise typer.Exit(code=1)

    try:
        get_config().set(key, value)
    except ConfigError as exc:
        err_console.print(f"[red]❌ Error:[/] {escape(str(exc))}")
        raise typer.Exit(code=1)

    console.print(f"[green]✅ Successfully set {key}[/]")
    if key in API_KEY_SLOTS:
        console.print("🔒 API key encrypted and stored securely")


if __name__ == "__main__":
    app()
