# milestone_guard/cli.py
"""
CLI interface for milestone-guard.

Thin presentation layer over the tools/ service layer.
All commands delegate to the same functions that MCP wraps.
"""

import asyncio
from pathlib import Path

import typer
import yaml
from fastmcp.exceptions import ToolError
from rich.console import Console
from rich.table import Table

from milestone_guard.errors import MilestoneGuardError
from milestone_guard.logging_config import configure_logging

app = typer.Typer(
    name="milestone-guard",
    help="Validate work-stream milestones and assess their risk.",
    no_args_is_help=True,
)

console = Console()

_LEVEL_STYLES = {
    "low": "green",
    "medium": "yellow",
    "high": "red",
    "critical": "bold red",
}


def _run(coro):
    """Run async function from sync CLI context."""
    return asyncio.run(coro)


async def _get_engine():
    """Build and start an engine over the SQLite store in the user config dir."""
    from milestone_guard.config.loader import load_config
    from milestone_guard.engine import Engine

    engine = Engine(load_config())
    await engine.startup()
    return engine


def _level(level: str) -> str:
    style = _LEVEL_STYLES.get(level, "white")
    return f"[{style}]{level}[/{style}]"


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only show warnings and errors"),
):
    """Configure logging for every command."""
    verbosity = "verbose" if verbose else "quiet" if quiet else "normal"
    configure_logging(verbosity, json_lines=False)


def _load_milestone_documents(path: Path) -> list[dict]:
    """Read a JSON or YAML file holding a list of milestones (or {"milestones": [...]})."""
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if isinstance(data, dict):
        data = data.get("milestones")
    if not isinstance(data, list):
        raise ValueError("expected a list of milestones or a 'milestones' list")
    return data


@app.command("import")
def import_milestones(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON or YAML milestone file"),
):
    """Import milestones into the local store (existing ids are replaced)."""
    from milestone_guard.models.milestone import Milestone

    try:
        documents = _load_milestone_documents(file)
        milestones = [Milestone.model_validate(doc) for doc in documents]
    except (OSError, yaml.YAMLError, ValueError) as e:
        # pydantic's ValidationError is a ValueError
        _fail(f"Could not read {file}: {e}")

    async def _import():
        engine = await _get_engine()
        try:
            for milestone in milestones:
                await engine.store.save(milestone)
        finally:
            await engine.shutdown()

    _run(_import())
    typer.echo(f"Imported {len(milestones)} milestone(s) from {file}")


@app.command("list")
def list_cmd(
    stream_type: str = typer.Option(None, "--stream-type", "-s", help="Only this stream type"),
):
    """List stored milestones."""
    from milestone_guard.tools.list_milestones import list_milestones

    async def _list():
        engine = await _get_engine()
        try:
            return await list_milestones(stream_type, store=engine.store)
        finally:
            await engine.shutdown()

    try:
        result = _run(_list())
    except ToolError as e:
        _fail(str(e))

    if not result["milestones"]:
        typer.echo("No milestones found.")
        return

    table = Table(title=f"Milestones ({result['total']})")
    table.add_column("ID")
    table.add_column("Stream")
    table.add_column("Status")
    table.add_column("Progress", justify="right")
    table.add_column("Risk")
    table.add_column("Active risks", justify="right")
    table.add_column("Title")
    for m in result["milestones"]:
        table.add_row(
            m["id"],
            m["stream_type"],
            m["status"],
            f"{m['progress_percentage']:.0f}%",
            _level(m["risk_level"]),
            str(m["active_risk_factors"]),
            m["title"],
        )
    console.print(table)


def _print_validation(result: dict) -> None:
    verdict = "[green]VALIDATED[/green]" if result["is_validated"] else "[red]NOT VALIDATED[/red]"
    console.print(
        f"[bold]{result['milestone_id']}[/bold] ({result['stream_type']}): "
        f"score {result['overall_score']:.1f} {verdict}"
    )

    table = Table(show_header=True)
    table.add_column("Kind")
    table.add_column("Rule")
    table.add_column("Status")
    table.add_column("Value", justify="right")
    for gate in result["gate_results"]:
        table.add_row("gate", gate["name"], gate["status"], f"{gate['score']:g}")
    for criterion in result["criteria_results"]:
        value = criterion["value"]
        table.add_row(
            "criterion", criterion["name"], criterion["status"], "-" if value is None else f"{value:g}"
        )
    for threshold in result["threshold_results"]:
        table.add_row(
            "threshold",
            threshold["name"],
            threshold["status"],
            f"{threshold['value']:g} / {threshold['threshold']:g}",
        )
    console.print(table)

    for blocker in result["blockers"]:
        console.print(f"  {_level(blocker['severity'])} {blocker['description']}")


@app.command()
def validate(
    milestone_ids: list[str] = typer.Argument(..., help="Milestone IDs to validate"),
    concurrency: int = typer.Option(None, "--concurrency", "-c", help="Parallel validations"),
    strict: bool = typer.Option(False, "--strict", help="Exit 2 if any milestone is not validated"),
):
    """Validate milestones against their stream's rules."""
    from milestone_guard.tools.validate_milestone import validate_milestone
    from milestone_guard.tools.validate_milestones import validate_milestones

    async def _validate():
        engine = await _get_engine()
        try:
            if len(milestone_ids) == 1:
                result = await validate_milestone(milestone_ids[0], validator=engine.validator)
                return {"requested": 1, "results": [result], "errors": []}
            return await validate_milestones(milestone_ids, concurrency, validator=engine.validator)
        finally:
            await engine.shutdown()

    try:
        report = _run(_validate())
    except (ToolError, MilestoneGuardError) as e:
        _fail(str(e))

    for result in report["results"]:
        _print_validation(result)
    for error in report["errors"]:
        console.print(f"[red]{error['milestone_id']}[/red]: {error['error_type']}: {error['message']}")

    if report["errors"]:
        raise typer.Exit(1)
    if strict and not all(r["is_validated"] for r in report["results"]):
        raise typer.Exit(2)


@app.command()
def assess(milestone_id: str = typer.Argument(..., help="Milestone ID to assess")):
    """Assess one milestone's risk."""
    from milestone_guard.tools.assess_milestone_risk import assess_milestone_risk

    async def _assess():
        engine = await _get_engine()
        try:
            return await assess_milestone_risk(
                milestone_id, store=engine.store, risk_manager=engine.risk_manager
            )
        finally:
            await engine.shutdown()

    try:
        report = _run(_assess())
    except (ToolError, MilestoneGuardError) as e:
        _fail(str(e))

    assessment = report["assessment"]
    console.print(
        f"[bold]{assessment['milestone_id']}[/bold]: risk {_level(assessment['level'])} "
        f"(score {assessment['risk_score']:.2f}, scored {assessment['derived_level']}, "
        f"was {assessment['previous_level']})"
    )

    table = Table(title="Identified risks")
    table.add_column("Category")
    table.add_column("Factor")
    table.add_column("Probability")
    table.add_column("Impact")
    table.add_column("Strategy")
    strategies = {s["factor"]: s["strategy"] for s in assessment["strategies"]}
    for risk in assessment["identified_risks"]:
        table.add_row(
            risk["category"],
            risk["factor"],
            risk["probability"],
            _level(risk["impact"]),
            strategies.get(risk["factor"], "-"),
        )
    console.print(table)

    for event in report["escalations"]:
        console.print(f"Escalate to {', '.join(event['required_levels'])}: {event['reason']}")
    if report["mitigation_plan"]:
        plan = report["mitigation_plan"]
        console.print(
            f"Mitigation plan: {len(plan['action_plans'])} action plans over "
            f"{len(plan['timeline']['phases'])} phases"
        )


@app.command()
def portfolio(
    scope: str = typer.Option("all", "--scope", help="'all', a stream type, or 'streamType:<type>'"),
):
    """Assess risk across the milestone portfolio."""
    from milestone_guard.tools.conduct_risk_assessment import conduct_risk_assessment

    async def _portfolio():
        engine = await _get_engine()
        try:
            return await conduct_risk_assessment(scope, risk_manager=engine.risk_manager)
        finally:
            await engine.shutdown()

    try:
        result = _run(_portfolio())
    except (ToolError, MilestoneGuardError) as e:
        _fail(str(e))

    console.print(f"[bold]Portfolio ({result['scope']})[/bold]: {result['total_milestones']} milestones")

    summary = Table(title="Risk summary")
    for level in result["risk_summary"]:
        summary.add_column(_level(level), justify="right")
    summary.add_row(*(str(count) for count in result["risk_summary"].values()))
    console.print(summary)

    if result["category_breakdown"]:
        categories = Table(title="Risk categories")
        categories.add_column("Category")
        categories.add_column("Total", justify="right")
        categories.add_column("By impact")
        for entry in result["category_breakdown"].values():
            by_level = ", ".join(f"{lv}={n}" for lv, n in entry["by_level"].items())
            categories.add_row(entry["name"], str(entry["total"]), by_level)
        console.print(categories)

    for rec in result["overall_recommendations"]:
        console.print(f"{_level(rec['priority'])} {rec['title']}: {rec['description']}")
    console.print(
        f"{len(result['escalations'])} escalation(s), "
        f"{len(result['mitigation_plans'])} mitigation plan(s)"
    )


@app.command()
def serve():
    """Start the MCP server over stdio."""
    from milestone_guard.__main__ import main as serve_main

    asyncio.run(serve_main())


if __name__ == "__main__":
    app()
