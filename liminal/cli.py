"""Click-based CLI for running scripted regulation sessions."""

import logging
from pathlib import Path
from typing import Any, Optional

import click
from pydantic import ValidationError

from liminal.config import LiminalSettings
from liminal.pipeline.session import Session
from liminal.simulate import ScriptedSignalSource, load_utterances

logger = logging.getLogger(__name__)

# Exit code when strict mode sees a baseline breach
STRICT_EXIT_CODE = 2

LAYER_SWITCHES = ("stabilizer", "sync", "awareness", "compassion", "silence", "guard", "alarm")


def build_settings(overrides: dict[str, Any]) -> LiminalSettings:
    """Apply CLI overrides on top of the environment settings.

    Args:
        overrides: Option values; None means "not given"

    Returns:
        Validated settings

    Raises:
        click.BadParameter: If an override is out of bounds
    """
    settings = LiminalSettings.from_env()
    given = {key: value for key, value in overrides.items() if value is not None}
    if not given:
        return settings
    try:
        return LiminalSettings.model_validate({**settings.model_dump(), **given})
    except ValidationError as e:
        raise click.BadParameter(str(e))


@click.group()
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging",
)
def cli(verbose: bool) -> None:
    """Liminal conversational self-regulation simulator."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.debug("CLI initialized")


def _layer_option(name: str):
    return click.option(
        f"--{name}/--no-{name}",
        default=None,
        help=f"Enable or disable the {name} layer",
    )


def _with_layer_switches(func):
    for name in reversed(LAYER_SWITCHES):
        func = _layer_option(name)(func)
    return func


@cli.command()
@click.option("--cycles", "-n", type=int, default=None, help="Turns to run (padded with the default utterance)")
@click.option("--script", "-s", default=None, help="Utterances separated by ';'")
@click.option(
    "--inputs",
    "-i",
    "inputs_path",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    default=None,
    help="File with one utterance per line",
)
@click.option("--baseline-drift", type=float, default=None, help="Target drift")
@click.option("--baseline-res", type=float, default=None, help="Target resonance")
@click.option("--strict/--no-strict", default=None, help="Exit with code 2 on any baseline breach")
@click.option("--json", "as_json", is_flag=True, help="Print one JSON record per turn")
@_with_layer_switches
def run(
    cycles: Optional[int],
    script: Optional[str],
    inputs_path: Optional[Path],
    baseline_drift: Optional[float],
    baseline_res: Optional[float],
    strict: Optional[bool],
    as_json: bool,
    **layers: Optional[bool],
) -> None:
    """Run a scripted session through the regulation pipeline.

    Examples:

        liminal run --cycles 8

        liminal run -s "hello; I keep coming back to this; hello" --no-silence

        liminal run -i turns.txt --json --strict
    """
    settings = build_settings(
        {
            "cycles": cycles,
            "baseline_drift": baseline_drift,
            "baseline_res": baseline_res,
            "strict": strict,
            **layers,
        }
    )

    utterances = load_utterances(script=script, inputs_path=inputs_path, cycles=settings.cycles)
    source = ScriptedSignalSource(utterances)
    session = Session(settings)

    for result in session.run(source):
        if as_json:
            click.echo(result.to_record().model_dump_json(exclude_none=True))
            continue
        adj = result.adjustments
        click.echo(
            f"[turn {result.index}] drift={adj.drift:.2f} res={adj.resonance:.2f} "
            f"pace={adj.pace:.2f} pause={adj.pause_ms}ms"
        )
        for status in result.statuses.values():
            click.echo(f"  {status}")

    if not as_json:
        if session.health is not None:
            click.echo("")
            for line in session.health.summary_lines():
                click.echo(line)
        summary = session.summary()
        click.echo(
            f"[session] turns={summary['turns']} mean_drift={summary['mean_drift']:.2f} "
            f"mean_res={summary['mean_resonance']:.2f} "
            f"slow_bias=({summary['slow_drift_bias']:+.3f}, {summary['slow_res_bias']:+.3f})"
        )

    if session.strict_failed:
        logger.warning("Strict mode: baseline breached, exiting with %d", STRICT_EXIT_CODE)
        raise SystemExit(STRICT_EXIT_CODE)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
