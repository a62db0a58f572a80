import click
import yaml
from pathlib import Path
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import Config
from .consistency import ConsistencyAuditor
from .dependencies import DependencyResolver
from .exceptions import LivingStoryError
from .models import ALL_PHASES, IssueSeverity, to_phase
from .store import PhaseStore
from .utils.logger import setup_logger

console = Console()

SEVERITY_STYLES = {
    IssueSeverity.HIGH: "red",
    IssueSeverity.MEDIUM: "yellow",
    IssueSeverity.LOW: "cyan",
}


def load_story(path: Path) -> PhaseStore:
    """Load a YAML story file of the form ``phases: {<n>: {content: ...}}``."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise click.ClickException(f"{path} does not contain a mapping")
    try:
        return PhaseStore.from_dict(data.get("phases") or {})
    except (LivingStoryError, ValueError) as e:
        raise click.ClickException(f"Could not load {path}: {e}")


@click.group()
@click.option('--config', '-c', type=click.Path(), default='config.yaml',
              help='Path to configuration file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx: click.Context, config: str, verbose: bool):
    """Living Story - keep the five screenwriting phases in sync."""
    ctx.ensure_object(dict)

    config_path = Path(config)
    if config_path.exists():
        ctx.obj['config'] = Config.from_yaml(config_path)
    else:
        ctx.obj['config'] = Config()

    log_level = "DEBUG" if verbose else ctx.obj['config'].log_level
    logger = setup_logger(log_level, ctx.obj['config'].log_file)
    ctx.obj['logger'] = logger

    logger.debug(f"Living Story v{__version__}")
    if config_path.exists():
        logger.info(f"Config loaded from: {config_path}")


@cli.command()
@click.argument('phase', type=click.IntRange(0, 4))
def affected(phase: int):
    """Show the phases an edit to PHASE would make stale."""
    resolver = DependencyResolver()
    source = to_phase(phase)
    deps = resolver.dependencies_from(source)

    if not deps:
        console.print(f"[green]{source.label} has no downstream phases.[/green]")
        return

    table = Table(title=f"Edits to {source.label} affect")
    table.add_column("Phase", justify="right")
    table.add_column("Name")
    table.add_column("Strategy")
    table.add_column("Priority")
    for dep in deps:
        table.add_row(str(int(dep.target)), dep.target.label, dep.update_type, dep.priority)
    console.print(table)


@cli.command()
@click.argument('story_file', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def audit(ctx: click.Context, story_file: str):
    """Report cross-phase consistency issues in STORY_FILE."""
    logger = ctx.obj['logger']
    store = load_story(Path(story_file))
    issues = ConsistencyAuditor().audit(store)

    if not issues:
        console.print("[green]No consistency issues found.[/green]")
        return

    table = Table(title=f"{len(issues)} consistency issues")
    table.add_column("Severity")
    table.add_column("Kind")
    table.add_column("Phases")
    table.add_column("Description")
    table.add_column("Suggested fix")
    for issue in issues:
        style = SEVERITY_STYLES[issue.severity]
        table.add_row(
            f"[{style}]{issue.severity.value}[/{style}]",
            issue.kind.value,
            ", ".join(str(int(p)) for p in issue.affected_phases),
            issue.description,
            issue.suggested_fix or "",
        )
    console.print(table)

    high = [i for i in issues if i.severity is IssueSeverity.HIGH]
    if high:
        logger.error(f"{len(high)} high-severity issues")
        ctx.exit(1)


@cli.command()
@click.argument('story_file', type=click.Path(exists=True, dir_okay=False))
def status(story_file: str):
    """Show sync and lock status for every phase in STORY_FILE."""
    store = load_story(Path(story_file))

    table = Table(title="Phase status")
    table.add_column("Phase", justify="right")
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("Summary")
    for phase in ALL_PHASES:
        state = store.get(phase)
        if state.is_locked:
            label = "[blue]locked[/blue]"
        elif state.is_out_of_sync:
            label = "[yellow]out of sync[/yellow]"
        else:
            label = "[green]in sync[/green]"
        table.add_row(str(int(phase)), phase.label, label, state.content.summary_text())
    console.print(table)


def main():
    cli(obj={})


if __name__ == '__main__':
    main()
