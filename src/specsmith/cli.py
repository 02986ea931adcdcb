"""CLI entry point for specsmith."""

import logging
from pathlib import Path

import click
import yaml

from specsmith.config import load_config
from specsmith.errors import GenerationError
from specsmith.generator.document import document_errors, validate_document
from specsmith.generator.spec import generate
from specsmith.metadata.loader import load_metadata

VERBOSITY_LEVELS = {
    0: logging.NOTSET,
    1: logging.DEBUG,
    2: logging.INFO,
    3: logging.WARNING,
    4: logging.ERROR,
    5: logging.CRITICAL,
}


@click.group()
@click.option("-v", "--verbosity", default=2, type=click.IntRange(0, 5), help="0 = output everything, 5 = fatal errors only.")
def main(verbosity: int):
    """specsmith — generate OpenAPI documents from controller and model metadata."""
    logging.basicConfig(level=VERBOSITY_LEVELS[verbosity], format="%(levelname)s %(name)s: %(message)s")


@main.command("generate")
@click.argument("metadata_path", type=click.Path(exists=True, path_type=Path))
@click.option("-c", "--config", "config_path", required=True, type=click.Path(exists=True, path_type=Path), help="Generator configuration (JSON or YAML).")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Output file; defaults to specGeneratorConfig.outputPath.")
@click.option("--format", "fmt", default=None, type=click.Choice(["json", "yaml"]), help="Output format.")
@click.option("--validate/--no-validate", default=True, help="Check the result against the OpenAPI 3.0 rules.")
def generate_spec(metadata_path: Path, config_path: Path, output: Path | None, fmt: str | None, validate: bool):
    """Generate an OpenAPI document from a metadata file."""
    try:
        config = load_config(config_path)
        click.echo(f"Loading metadata from {metadata_path}...")
        controllers, models = load_metadata(metadata_path)
        click.echo(f"Found {len(controllers)} controllers and {len(models)} models.")

        document = generate(controllers, models, config)
        spec = document.to_dict()
        if validate:
            validate_document(spec)
    except GenerationError as e:
        raise click.ClickException(str(e))

    output = output or (Path(config.spec_generator_config.output_path) if config.spec_generator_config.output_path else None)
    if output is None:
        raise click.UsageError("No output path given and specGeneratorConfig.outputPath is empty.")
    fmt = fmt or config.spec_generator_config.format

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(document.serialize(fmt), encoding="utf-8")
    click.echo(f"Specification saved to {output}")


@main.command()
@click.argument("spec_path", type=click.Path(exists=True, path_type=Path))
def validate(spec_path: Path):
    """Check an existing OpenAPI document file."""
    try:
        spec = yaml.safe_load(spec_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise click.ClickException(f"Cannot parse {spec_path}: {e}")

    if not isinstance(spec, dict):
        raise click.ClickException(f"{spec_path} is not an OpenAPI document")

    errors = document_errors(spec)
    for error in errors:
        click.echo(f"  {error}", err=True)
    if errors:
        raise click.ClickException(f"{spec_path} has {len(errors)} errors")
    click.echo(f"OK: {spec_path} is a valid OpenAPI document")
