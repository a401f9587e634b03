"""CLI for the Workload Review Engine.

Provides command-line access to review questions, the improvement plan,
milestones and consolidated reports of a Well-Architected workload.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from .app_logging import setup_logging
from .config import find_config_file, get_config, load_config, save_default_config
from .engine import ReviewEngine
from .report import console_link
from .schema import Category, RiskSeverity, Scope, WorkloadModel

console = Console()

SEVERITY_STYLES = {
    RiskSeverity.HIGH: "bold red",
    RiskSeverity.MEDIUM: "yellow",
    RiskSeverity.NONE: "dim",
}


@click.group()
@click.version_option(version="1.0.0", prog_name="workload-review")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a workload-review YAML configuration file"
)
@click.option("--region", help="AWS region (overrides configuration)")
@click.option("--profile", help="AWS credentials profile (overrides configuration)")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Optional[str],
    region: Optional[str],
    profile: Optional[str],
    verbose: bool,
):
    """Workload Review Engine.

    Retrieves Well-Architected review questions, derives risks and an
    improvement plan, and tracks progress between milestones.
    """
    if config_path:
        config = load_config(Path(config_path))
    else:
        found = find_config_file()
        config = load_config(found) if found else get_config()

    if region:
        config.aws.region = region
    if profile:
        config.aws.profile = profile

    setup_logging(
        level="DEBUG" if verbose else config.logging.level,
        dev_mode=config.logging.dev_mode,
    )
    ctx.obj = config


def _engine(ctx: click.Context) -> ReviewEngine:
    return ReviewEngine.from_config(ctx.obj)


def _scope(category: Optional[str], item: Optional[str]) -> Scope:
    if category and item:
        raise click.UsageError("--category and --item are mutually exclusive")
    if item:
        return Scope.for_item(item)
    if category:
        try:
            return Scope.for_category(Category.from_string(category))
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--category")
    return Scope.workload()


@main.command("questions")
@click.argument("workload_id")
@click.option("--category", "-c", help="Limit to one category (e.g. security, reliability)")
@click.option("--item", "-q", help="Retrieve a single question by ID")
@click.option("--json-output", "-j", is_flag=True, help="Output raw JSON instead of a table")
@click.pass_context
def questions_cmd(
    ctx: click.Context,
    workload_id: str,
    category: Optional[str],
    item: Optional[str],
    json_output: bool,
):
    """List review questions for a workload.

    Examples:
        workload-review questions 0123abcd
        workload-review questions 0123abcd --category security
        workload-review questions 0123abcd --item securely-operate
    """
    scope = _scope(category, item)
    try:
        questions = _engine(ctx).get_questions(workload_id, scope)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if json_output:
        click.echo(json.dumps([q.model_dump(mode="json") for q in questions], indent=2))
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Category")
    table.add_column("Title")
    table.add_column("Choices", justify="right")
    table.add_column("Risk")
    for q in questions:
        table.add_row(q.id, q.category.value, q.title, str(len(q.choices)), q.risk_tag or "-")
    console.print(table)
    console.print(f"\n[dim]{len(questions)} question(s)[/dim]")


@main.command("plan")
@click.argument("workload_id")
@click.option(
    "--iac", "-m",
    type=click.Path(exists=True, dir_okay=False),
    help="Workload model JSON used to attach affected resources"
)
@click.option("--json-output", "-j", is_flag=True, help="Output raw JSON instead of a table")
@click.pass_context
def plan_cmd(ctx: click.Context, workload_id: str, iac: Optional[str], json_output: bool):
    """Show the improvement plan derived from a workload's risks.

    Example:
        workload-review plan 0123abcd --iac workload-model.json
    """
    try:
        workload_model = WorkloadModel.from_file(iac) if iac else None
        plan = _engine(ctx).get_improvement_plan(workload_id, workload_model)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if json_output:
        click.echo(json.dumps([item.model_dump(mode="json") for item in plan], indent=2))
        return

    if not plan:
        console.print("[green]No risks identified.[/green]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Severity")
    table.add_column("Category")
    table.add_column("Question")
    table.add_column("Priority", justify="right")
    table.add_column("Effort")
    table.add_column("Resources", justify="right")
    for item in sorted(plan, key=lambda i: i.priority, reverse=True):
        severity = item.risk.severity
        table.add_row(
            item.id,
            f"[{SEVERITY_STYLES[severity]}]{severity.label}[/{SEVERITY_STYLES[severity]}]",
            item.risk.category.value,
            item.risk.question.title,
            str(item.priority),
            item.estimated_effort.value,
            str(len(item.affected_resources)),
        )
    console.print(table)


@main.command("milestone")
@click.argument("workload_id")
@click.option("--name", "-n", help="Milestone name (default: timestamped)")
@click.pass_context
def milestone_cmd(ctx: click.Context, workload_id: str, name: Optional[str]):
    """Record a milestone of the workload's current review state."""
    try:
        milestone_id = _engine(ctx).create_milestone(workload_id, name)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]✓[/green] Milestone {milestone_id} created")
    console.print(f"  {console_link(workload_id, ctx.obj.aws.region)}")


@main.command("compare")
@click.argument("workload_id")
@click.argument("milestone_1")
@click.argument("milestone_2")
@click.option("--json-output", "-j", is_flag=True, help="Output raw JSON instead of text")
@click.pass_context
def compare_cmd(
    ctx: click.Context,
    workload_id: str,
    milestone_1: str,
    milestone_2: str,
    json_output: bool,
):
    """Compare the risk counts of two milestones.

    Example:
        workload-review compare 0123abcd 1 2
    """
    try:
        comparison = _engine(ctx).compare_milestones(workload_id, milestone_1, milestone_2)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if json_output:
        click.echo(json.dumps(comparison.model_dump(mode="json"), indent=2))
        return

    console.print(f"\n[bold blue]Milestone {milestone_1} → {milestone_2}[/bold blue]")
    for line in comparison.improvements:
        console.print(f"  [green]↓[/green] {line}")
    for line in comparison.regressions:
        console.print(f"  [red]↑[/red] {line}")
    if not comparison.improvements and not comparison.regressions:
        console.print("  [dim]No change in High or Medium risk counts[/dim]")


@main.command("report")
@click.argument("workload_id")
@click.option(
    "--format", "-f", "report_format",
    default="pdf",
    help="Report format: pdf or json"
)
@click.option(
    "--out", "-o",
    required=True,
    type=click.Path(dir_okay=False),
    help="Output file for the report"
)
@click.pass_context
def report_cmd(ctx: click.Context, workload_id: str, report_format: str, out: str):
    """Download the consolidated report.

    Example:
        workload-review report 0123abcd --format pdf -o review.pdf
    """
    try:
        data = _engine(ctx).get_consolidated_report(workload_id, report_format)
        Path(out).write_bytes(data)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]✓[/green] Report saved to: {out} ({len(data)} bytes)")


@main.command("init-config")
@click.option(
    "--out", "-o",
    type=click.Path(dir_okay=False),
    default="workload-review.yaml",
    help="Where to write the configuration file"
)
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init_config_cmd(out: str, force: bool):
    """Write a default configuration file."""
    path = Path(out)
    if path.exists() and not force:
        console.print(f"[red]Error:[/red] {out} already exists (use --force to overwrite)")
        sys.exit(1)

    save_default_config(path)
    console.print(f"[green]✓[/green] Configuration saved to: {out}")


if __name__ == "__main__":
    main()
