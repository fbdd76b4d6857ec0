"""CLI entry point for NumberQuest."""

import logging
import random
from pathlib import Path

import click


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config.yaml (defaults to ~/.numberquest/config.yaml)",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: Path | None) -> None:
    """NumberQuest: adaptive arithmetic practice engine."""
    from numberquest.config.settings import Settings

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["settings"] = Settings.load(config_path)


@main.command()
@click.option("--level", "-l", type=int, default=1, show_default=True, help="Difficulty level (1-10)")
@click.option("--count", "-n", type=int, default=5, show_default=True, help="Number of problems")
@click.option("--seed", type=int, default=None, help="Seed for reproducible output")
@click.pass_context
def generate(ctx: click.Context, level: int, count: int, seed: int | None) -> None:
    """Print a batch of problems with their answer choices."""
    from numberquest.engine.generator import ProblemGenerator

    settings = ctx.obj["settings"]
    rng = random.Random(seed if seed is not None else settings.seed)
    generator = ProblemGenerator(config=settings.generator, rng=rng)

    for problem in generator.generate_problems(level, count):
        choices = ", ".join(str(c) for c in problem.answer_choices(rng))
        click.echo(
            f"  [{problem.difficulty_level}] {problem.formatted:<16} "
            f"choices: {choices}  ({problem.time_limit:.0f}s)"
        )


@main.command()
@click.argument("samples_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--level", "-l", type=int, default=1, show_default=True, help="Current difficulty level")
@click.pass_context
def analyze(ctx: click.Context, samples_file: Path, level: int) -> None:
    """Analyze a YAML list of answers and recommend a difficulty move.

    Each entry needs ``correct`` and ``response_time``; ``problem_id`` and
    ``hints_used`` are optional.
    """
    import yaml

    from numberquest.engine.adaptive import DifficultyEngine
    from numberquest.engine.performance import PerformanceSample

    with open(samples_file) as f:
        raw = yaml.safe_load(f) or []
    if not isinstance(raw, list):
        raise click.BadParameter("expected a list of samples", param_hint="SAMPLES_FILE")

    settings = ctx.obj["settings"]
    engine = DifficultyEngine(config=settings.engine)
    for i, entry in enumerate(raw):
        try:
            engine.record_performance(PerformanceSample(
                problem_id=str(entry.get("problem_id", i)),
                correct=bool(entry["correct"]),
                response_time=float(entry["response_time"]),
                hints_used=int(entry.get("hints_used", 0)),
            ))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise click.BadParameter(f"sample {i}: {e}", param_hint="SAMPLES_FILE") from e

    metrics = engine.analyze_performance()
    click.echo("Metrics:")
    click.echo(f"  samples:        {metrics.sample_count}")
    click.echo(f"  accuracy:       {metrics.accuracy:.0%}")
    click.echo(f"  average time:   {metrics.average_response_time:.2f}s")
    click.echo(f"  current streak: {metrics.current_streak}")
    click.echo(f"  trend:          {metrics.recent_performance_trend.value}")

    rec = engine.recommend_difficulty_adjustment(level)
    click.echo("Recommendation:")
    click.echo(f"  change:     {rec.change}")
    click.echo(f"  confidence: {rec.confidence:.2f}")
    click.echo(f"  next level: {rec.next_level(level, settings.engine.adaptive_step)}")
    click.echo(f"  reason:     {rec.reason}")
    for suggestion in rec.help_suggestions:
        click.echo(f"  - {suggestion}")

    summary = engine.generate_session_summary()
    click.echo("Summary:")
    click.echo(f"  {summary.correct_answers}/{summary.total_problems} correct, "
               f"{summary.help_used} with hints, {summary.average_time:.2f}s average")
    for achievement in summary.achievements:
        click.echo(f"  * {achievement}")


@main.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Run the JSON-lines bridge on stdin/stdout."""
    import asyncio

    from numberquest.server.__main__ import serve as run_server

    logging.getLogger("numberquest").setLevel(logging.INFO)
    asyncio.run(run_server(ctx.obj["settings"]))
