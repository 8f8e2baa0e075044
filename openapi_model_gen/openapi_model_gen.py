import logging
from pathlib import Path

import click

from .cli_utils import load_document, reconstruct_command_line
from .errors import GenerationError
from .pipeline import BACKENDS, CodeGeneratorConfig, OutputMode, PipelineGenerator


@click.command()
@click.option("--name", "-n", default=None, type=str, help="Name of the root model for plain JSON Schema documents")
@click.option("--config", "-c", default=None, type=click.Path(exists=True, resolve_path=True), help="JSON or YAML configuration file")
@click.option("--format", "-f", "language", default="python", type=click.Choice(list(BACKENDS)), help="Output format")
@click.option("--force", is_flag=True, default=False, help="Overwrite the output file even if it was not generated")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log pipeline progress")
@click.argument("path", default=None, type=click.Path(exists=True, resolve_path=True))
@click.argument("output", default=None, type=click.Path(resolve_path=True))
def openapi_model_gen(name, config, language, force, verbose, path, output):
    """Generate typed models and their codecs from the schema at PATH into OUTPUT."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if config is not None:
        document = load_document(config) or {}
        if not isinstance(document, dict):
            raise click.ClickException(f"Configuration file {config} must contain an object")
        try:
            config = CodeGeneratorConfig.from_dict(document)
        except ValueError as e:
            raise click.ClickException(f"Invalid configuration: {e}") from e
    else:
        config = CodeGeneratorConfig()

    # CLI flag overrides the config file
    if force:
        config.output.mode = OutputMode.FORCE

    schema = Path(path).read_bytes()
    codegen = PipelineGenerator(
        name,
        schema,
        config,
        language,
        source=Path(path).name,
        command_line=reconstruct_command_line(openapi_model_gen),
    )

    try:
        result = codegen.write(output)
    except GenerationError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Generated {len(result.table)} models into {output}")
