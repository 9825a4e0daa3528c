"""CLI entry point for raml-prerender."""

import logging
from pathlib import Path

import click
import yaml
from pydantic import ValidationError

from raml_prerender.config import PrerenderOptions, load_config
from raml_prerender.prerender.pipeline import Prerenderer

DEFAULT_CONFIG = "raml-prerender.yaml"


def _plan_outputs(sources: tuple[Path, ...], output: Path) -> list[tuple[Path, Path]]:
    """One source writes to ``output``; several write ``<name>.json`` files into it."""
    if len(sources) == 1:
        return [(sources[0], output)]
    jobs = [(source, output / source.with_suffix(".json").name) for source in sources]
    seen: dict[Path, Path] = {}
    for source, dest in jobs:
        if dest in seen:
            raise click.UsageError(f"{seen[dest]} and {source} would both be written to {dest}")
        seen[dest] = source
    return jobs


def _run_batch(jobs: list[tuple[Path, Path]], options: PrerenderOptions) -> None:
    result = Prerenderer(options=options).process_batch(jobs)
    destinations = {str(src): dest for src, dest in jobs}
    for source in result.processed:
        click.echo(f"  Created {destinations[source]}")
    if not result.ok:
        raise click.ClickException(f"{result.failure.source}: {result.failure.message}")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
def main(verbose: bool):
    """RAML Prerender: convert RAML into display-ready JSON for documentation sites."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("sources", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output JSON file, or directory when several sources are given.")
@click.option("--pretty-print", type=click.IntRange(min=0), default=None, help="Indent the output JSON by this many spaces.")
@click.option("--validate/--no-validate", default=True, help="Stop on RAML errors reported by the loader.")
def render(sources: tuple[Path, ...], output: Path, pretty_print: int | None, validate: bool):
    """Pre-render one or more RAML files to JSON."""
    options = PrerenderOptions(pretty_print=pretty_print, validate_raml=validate)
    jobs = _plan_outputs(sources, output)
    click.echo(f"Pre-rendering {len(jobs)} file(s)...")
    _run_batch(jobs, options)
    click.echo("All done.")


@main.command()
@click.argument("targets", nargs=-1)
@click.option("-c", "--config", "config_path", default=DEFAULT_CONFIG, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML file describing the targets.")
def build(targets: tuple[str, ...], config_path: Path):
    """Run the targets of a config file in order (all targets by default)."""
    try:
        config = load_config(config_path)
    except (ValidationError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid config {config_path}: {e}") from e

    names = targets or tuple(config.targets)
    unknown = [name for name in names if name not in config.targets]
    if unknown:
        raise click.UsageError(f"Unknown target(s): {', '.join(unknown)}")

    for name in names:
        try:
            options = config.target_options(name)
        except ValidationError as e:
            raise click.ClickException(f"Invalid options for target {name}: {e}") from e
        jobs = config.targets[name].expand(config_path.parent)
        click.echo(f"Running target {name} ({len(jobs)} file(s))...")
        _run_batch(jobs, options)
    click.echo("All done.")
