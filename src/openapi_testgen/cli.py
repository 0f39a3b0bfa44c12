"""CLI entry point for openapi-testgen."""

import logging
import sys
from pathlib import Path

import click

from openapi_testgen.generator.model import GENERATOR_VERSION, Framework, GenerationResult, GeneratorConfig
from openapi_testgen.parser.base import ParseFailure
from openapi_testgen.parser.openapi import parse_spec
from openapi_testgen.pipeline import filter_endpoints, generate as generate_suite

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)


def _build_config(
    framework: str,
    base_url: str,
    package: str | None,
    negative: bool,
    edge_cases: bool,
    placeholders: bool,
) -> GeneratorConfig:
    config = GeneratorConfig(
        base_url=base_url.rstrip("/"),
        framework=Framework(framework),
        generate_negative_tests=negative,
        generate_edge_cases=edge_cases,
        use_placeholders=placeholders,
    )
    if package:
        # --package names the Java package for REST-Assured, the Python one otherwise
        field = "java_package" if config.framework is Framework.REST_ASSURED else "python_package"
        config = config.model_copy(update={field: package})
    return config


def _write_files(result: GenerationResult, output: Path, append: bool) -> int:
    output.mkdir(parents=True, exist_ok=True)
    written = 0
    for generated in result.files:
        file_path = output / generated.filename
        if append and file_path.exists():
            click.echo(f"  Skipped {file_path} (exists)")
            continue
        file_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(generated.content, bytes):
            file_path.write_bytes(generated.content)
        else:
            file_path.write_text(generated.content, encoding="utf-8")
        click.echo(f"  Created {file_path}")
        written += 1
    return written


@click.group()
@click.version_option(GENERATOR_VERSION, prog_name="openapi-testgen")
def main():
    """openapi-testgen: generate API test suites from OpenAPI/Swagger documents."""
    pass


@main.command()
@click.argument("spec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", required=True, type=click.Path(file_okay=False, path_type=Path), help="Output directory for generated files.")
@click.option(
    "--framework",
    default=Framework.PYTEST.value,
    envvar="TESTGEN_FRAMEWORK",
    show_default=True,
    type=click.Choice([f.value for f in Framework]),
    help="Target test framework.",
)
@click.option("--base-url", default="", envvar="TESTGEN_BASE_URL", help="Override the server URL declared in the document.")
@click.option("--package", default=None, help="Package for generated code (Python package, or Java package for rest-assured).")
@click.option("--negative/--no-negative", default=True, show_default=True, help="Generate negative scenarios.")
@click.option("--edge-cases", is_flag=True, help="Generate boundary-value scenarios.")
@click.option("--placeholders", is_flag=True, help="Use ${VAR} placeholders for path parameters.")
@click.option("--endpoint", "endpoint_filter", multiple=True, help="Only these endpoints: 'POST /pets', '/pets/*', operationId or tag. Repeatable.")
@click.option("--append", is_flag=True, help="Keep files that already exist in the output directory.")
@click.option("--validate-spec", is_flag=True, help="Validate the document against the OpenAPI schema first.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
def generate(
    spec_path: Path,
    output: Path,
    framework: str,
    base_url: str,
    package: str | None,
    negative: bool,
    edge_cases: bool,
    placeholders: bool,
    endpoint_filter: tuple[str, ...],
    append: bool,
    validate_spec: bool,
    verbose: bool,
):
    """Generate a test suite from an OpenAPI/Swagger document."""
    _configure_logging(verbose)
    config = _build_config(framework, base_url, package, negative, edge_cases, placeholders)

    click.echo(f"Generating {framework} tests from {spec_path}...")
    result = generate_suite(spec_path, config, endpoint_filter=endpoint_filter, validate_document=validate_spec)

    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)
    if not result.success:
        for error in result.errors:
            click.echo(f"Error: {error}", err=True)
        sys.exit(1)

    written = _write_files(result, output, append)
    stats = result.stats
    click.echo(
        f"Generated {stats.total_tests} tests "
        f"({stats.positive_tests} positive, {stats.negative_tests} negative, {stats.edge_tests} edge) "
        f"for {stats.total_endpoints} endpoints."
    )
    click.echo(f"Done! Wrote {written} files to {output}")


@main.command()
@click.argument("spec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--endpoint", "endpoint_filter", multiple=True, help="Filter as in 'generate'. Repeatable.")
@click.option("--validate-spec", is_flag=True, help="Validate the document against the OpenAPI schema first.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
def endpoints(spec_path: Path, endpoint_filter: tuple[str, ...], validate_spec: bool, verbose: bool):
    """List the endpoints declared in a document."""
    _configure_logging(verbose)
    parsed = parse_spec(spec_path, validate_document=validate_spec)
    if isinstance(parsed, ParseFailure):
        click.echo(f"Error: {parsed.message}", err=True)
        for detail in parsed.details:
            click.echo(f"  {detail}", err=True)
        sys.exit(1)

    for warning in parsed.warnings:
        click.echo(f"Warning: {warning}", err=True)

    click.echo(f"{parsed.title} {parsed.version} ({parsed.base_url})")
    selected = filter_endpoints(parsed.endpoints, endpoint_filter)
    for ep in selected:
        tags = ", ".join(ep.tags) or "-"
        click.echo(f"  {ep.method.value:<7} {ep.path}  {ep.operation_id or '-'}  [{tags}]")
    click.echo(f"Found {len(selected)} endpoints.")
