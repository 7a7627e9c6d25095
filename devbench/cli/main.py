"""Command-line interface for devbench.

Python justification: Click for CLI parsing, asyncio for the run loop.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click

from devbench.adapters import AdapterError, build_cli_agent, build_judge_adapter
from devbench.config import ConfigLoader, ConfigurationError, DefaultsConfig, RunConfig
from devbench.core.results import EvaluationType, Language
from devbench.evaluation import CodeRunner, E2ERunner, EvaluationServices, RubricJudge
from devbench.executor import build_executors
from devbench.reporting import (
    CsvResultSink,
    MemoryResultSink,
    ResultSink,
    format_summary,
    summarize,
)
from devbench.runner import BenchmarkRunner
from devbench.tasks import TaskCatalog

logger = logging.getLogger(__name__)

MODES = ("api", "cli", "both")


def _split(value: str | None) -> list[str]:
    """Parse a comma-separated option into ids."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_services(defaults: DefaultsConfig, fixtures_dir: Path) -> EvaluationServices:
    """Create the code and e2e runners from configured timeouts (no judge yet)."""
    timeouts = defaults.timeouts
    return EvaluationServices(
        code_runner=CodeRunner(timeout_seconds=timeouts.test_seconds),
        e2e_runner=E2ERunner(
            install_timeout=timeouts.install_seconds,
            build_timeout=timeouts.build_seconds,
            server_ready_timeout=timeouts.server_ready_seconds,
            browser_test_timeout=timeouts.browser_test_seconds,
            shutdown_grace=timeouts.shutdown_grace_seconds,
        ),
        fixtures_dir=fixtures_dir,
    )


def build_judge(defaults: DefaultsConfig) -> RubricJudge:
    """Create the rubric judge from the judge settings."""
    judge = defaults.judge
    return RubricJudge(
        build_judge_adapter(judge),
        max_tokens=judge.max_tokens,
        response_char_limit=judge.response_char_limit,
        rate_limit_attempts=defaults.rate_limit_attempts,
        rate_limit_base_delay=defaults.rate_limit_base_delay,
    )


@click.group()
@click.version_option(version="0.1.0", prog_name="devbench")
def cli() -> None:
    """Devbench - coding benchmark for LLM APIs and CLI agents.

    Runs benchmark tasks against hosted models and local coding agents,
    scores every answer and streams results to CSV.
    """
    pass


@cli.command()
@click.option(
    "--mode",
    type=click.Choice(MODES),
    default="api",
    show_default=True,
    help="Benchmark API models, CLI agents, or both.",
)
@click.option("--models", help="Comma-separated model ids, or \"all\" (config/models.yaml).")
@click.option("--agents", help="Comma-separated agent ids, or \"all\" (config/agents.yaml).")
@click.option("--tasks", default="all", show_default=True, help="Comma-separated task ids.")
@click.option(
    "--languages",
    default="nodejs",
    show_default=True,
    help="Comma-separated languages (nodejs, java, dotnet).",
)
@click.option("--runs", "-r", type=int, help="Runs per combination (default from config).")
@click.option(
    "--concurrent", "-c", type=int, help="In-flight combinations per provider (default from config)."
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=Path("results"),
    show_default=True,
    help="Directory for CSV results.",
)
@click.option(
    "--config-dir",
    type=click.Path(path_type=Path),
    default=Path("config"),
    show_default=True,
    help="Directory holding models.yaml, agents.yaml and tasks/.",
)
@click.option(
    "--fixtures-dir",
    type=click.Path(path_type=Path),
    default=Path("fixtures"),
    show_default=True,
    help="Directory holding task fixtures.",
)
@click.option("--dry-run", is_flag=True, help="Log the planned combinations and exit.")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
def run(
    mode: str,
    models: str | None,
    agents: str | None,
    tasks: str,
    languages: str,
    runs: int | None,
    concurrent: int | None,
    output: Path,
    config_dir: Path,
    fixtures_dir: Path,
    dry_run: bool,
    verbose: bool,
) -> None:
    """Run the benchmark matrix.

    Examples:

        devbench run --models claude-sonnet --tasks j01 --runs 1

        devbench run --mode cli --agents gemini-cli --tasks j26

        devbench run --mode both --languages nodejs,java --dry-run
    """
    _configure_logging(verbose)

    model_ids = _split(models)
    agent_ids = _split(agents)
    if mode == "api" and not model_ids:
        raise click.UsageError("--models is required for --mode api.")
    if mode == "cli" and not agent_ids:
        raise click.UsageError("--agents is required for --mode cli.")
    if mode == "both" and not (model_ids or agent_ids):
        raise click.UsageError("--models and/or --agents are required for --mode both.")

    try:
        loader = ConfigLoader(config_dir)
        defaults = loader.load_defaults()
        config = RunConfig.from_defaults(
            defaults,
            tasks=_split(tasks),
            languages=[Language(lang) for lang in _split(languages)],
            runs_per_combo=runs,
            max_concurrent=concurrent,
            output_dir=output,
            fixtures_dir=fixtures_dir,
            dry_run=dry_run,
        )

        model_entries = loader.resolve_models(model_ids) if mode in ("api", "both") else []
        agent_entries = loader.resolve_agents(agent_ids) if mode in ("cli", "both") else []
        executors = build_executors(model_entries, agent_entries)
        services = build_services(defaults, config.fixtures_dir)
        catalog = TaskCatalog.from_definitions(loader.load_tasks(), services)
        selected = catalog.resolve(config.tasks)

        needs_judge = any(
            t.evaluation_type in (EvaluationType.RUBRIC, EvaluationType.HYBRID) for t in selected
        )
        if needs_judge and not config.dry_run:
            services.judge = build_judge(defaults)

        sink: ResultSink = (
            MemoryResultSink() if config.dry_run else CsvResultSink(config.output_dir)
        )
        runner = BenchmarkRunner(executors, sink)
        results = asyncio.run(runner.run(selected, config))
    except (AdapterError, ConfigurationError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not isinstance(sink, CsvResultSink):
        return

    click.echo()
    click.echo(format_summary(summarize(results)))
    failures = sum(1 for r in results if r.is_infrastructure_failure)
    click.echo(f"\n{len(results)} results written to {sink.path} ({failures} infrastructure failures)")


@cli.command("list-tasks")
@click.option(
    "--config-dir",
    type=click.Path(path_type=Path),
    default=Path("config"),
    show_default=True,
    help="Directory holding tasks/.",
)
@click.option("--verbose", "-v", is_flag=True, help="Show detailed task information.")
def list_tasks(config_dir: Path, verbose: bool) -> None:
    """List available benchmark tasks.

    Examples:

        devbench list-tasks

        devbench list-tasks --verbose
    """
    try:
        definitions = ConfigLoader(config_dir).load_tasks()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo("Available tasks:\n")
    for definition in definitions:
        if verbose:
            langs = ", ".join(lang.value for lang in definition.supported_languages)
            click.echo(f"  {definition.id}: {definition.name}")
            click.echo(f"    Evaluation: {definition.evaluation_type.value}")
            click.echo(f"    Languages: {langs}")
            click.echo(f"    Max turns: {definition.max_turns}")
            click.echo()
        else:
            click.echo(f"  {definition.id}: {definition.name}")


@cli.command("check-agents")
@click.option(
    "--config-dir",
    type=click.Path(path_type=Path),
    default=Path("config"),
    show_default=True,
    help="Directory holding agents.yaml.",
)
def check_agents(config_dir: Path) -> None:
    """Report whether each configured agent binary is on PATH.

    Examples:

        devbench check-agents
    """
    try:
        entries = ConfigLoader(config_dir).resolve_agents(["all"])
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo("CLI agents:\n")
    missing = 0
    for entry in entries:
        agent = build_cli_agent(entry)
        available = agent.is_available()
        missing += 0 if available else 1
        mark = "ok" if available else "missing"
        click.echo(f"  {entry.id} ({agent.binary}): {mark}")
    if missing:
        sys.exit(1)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
