"""
CodePort CLI - Main entry point.

Provides commands for converting a multi-file project, inspecting the file
classification and generating a starter configuration.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from codeport.analyzer.classifier import classify_files
from codeport.config.loader import (
    ConfigurationError,
    create_config_from_args,
    generate_default_config,
    load_config_from_yaml,
)
from codeport.config.models import BatchResult, CodePortConfig, SourceFile
from codeport.state.manifest import Manifest
from codeport.translator.orchestrator import ProjectTransformOrchestrator

app = typer.Typer(
    name="codeport",
    help="Batch conversion of multi-file projects through an LLM with compiler-checked retries",
    no_args_is_help=True,
)

console = Console()

LANGUAGE_BY_EXTENSION = {
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".java": "java",
}


# =============================================================================
# Helper Functions
# =============================================================================


def validate_path(path: str, must_exist: bool = True) -> Path:
    """Validate and return a Path object."""
    p = Path(path)
    if must_exist and not p.exists():
        raise typer.BadParameter(f"Path does not exist: {path}")
    return p


def configure_logging(verbose: bool):
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(name)s: %(message)s")
    # Silence noisy HTTP libraries even in verbose mode
    for noisy in ("httpcore", "httpx", "openai._base_client", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def collect_source_files(
    root: Path, include_extensions: list[str], exclude_patterns: list[str]
) -> list[SourceFile]:
    """
    Read every matching file under root, sorted by relative path.

    Paths are stored relative to root with forward slashes.
    """
    files = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix not in include_extensions:
            continue
        relative = path.relative_to(root)
        if any(part in exclude_patterns for part in relative.parts):
            continue
        files.append(
            SourceFile(
                path=relative.as_posix(),
                language=LANGUAGE_BY_EXTENSION.get(path.suffix, path.suffix.lstrip(".")),
                content=path.read_text(encoding="utf-8", errors="replace"),
            )
        )
    return files


def write_results(batch: BatchResult, output_dir: Path) -> list[Path]:
    """Write each result's content to output_dir/<output_path>."""
    written = []
    for result in batch.results:
        target = output_dir / result.output_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(result.content, encoding="utf-8")
        written.append(target)
    return written


def display_config(cfg: CodePortConfig, verbose: bool = False):
    """Display the loaded configuration."""
    info_text = f"""
[bold cyan]Source:[/bold cyan] {cfg.project.source_root}
[bold cyan]Output:[/bold cyan] {cfg.project.output_dir}
[bold cyan]Direction:[/bold cyan] {cfg.transform.direction} (preset: {cfg.transform.preset})
[bold cyan]Oracle:[/bold cyan] {cfg.llm.provider.value}
    """
    console.print(Panel(info_text.strip(), title="Project Conversion", border_style="bold green"))

    if verbose:
        console.print("\n[bold]Configuration Details:[/bold]")
        console.print(f"  Model: {cfg.transform.model} (hint: {cfg.transform.model_hint.value})")
        console.print(f"  Max Attempts: {cfg.transform.max_attempts}")
        console.print(f"  Temperature: {cfg.transform.temperature}")
        console.print(f"  Compiler: {' '.join(cfg.compiler.command)}")
        console.print(f"  Parallel Workers: {cfg.orchestration.max_workers}")
        console.print(f"  Streaming: {cfg.orchestration.stream}")


# =============================================================================
# Commands
# =============================================================================


@app.command()
def convert(
    source: str = typer.Argument(..., help="Source project directory"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output directory [default: ./output]"),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to configuration YAML file; other options override it"
    ),
    instructions: Optional[str] = typer.Option(None, "--instructions", "-i", help="Base instructions for every file"),
    preset: Optional[str] = typer.Option(None, "--preset", "-p", help="Transformation preset"),
    max_attempts: Optional[int] = typer.Option(None, "--max-attempts", help="Attempt bound per file"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Parallel lane concurrency"),
    provider: Optional[str] = typer.Option(None, "--provider", help="Oracle provider (openai_compatible/openrouter/openai/ollama/fallback)"),
    stream: bool = typer.Option(False, "--stream", help="Use the streaming oracle variant"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Convert every source file of a project.

    Examples:
        codeport convert ./android_app -o ./ios_app
        codeport convert ./android_app -c codeport.yaml --stream
    """
    configure_logging(verbose)

    try:
        if config:
            console.print(f"[cyan]Loading configuration from {config}...[/cyan]")
            cfg = load_config_from_yaml(
                Path(config),
                overrides={
                    "project": {
                        "source_root": validate_path(source),
                        "output_dir": Path(output) if output else None,
                        "instructions": instructions,
                    },
                    "transform": {"preset": preset, "max_attempts": max_attempts},
                    "orchestration": {"max_workers": workers, "stream": True if stream else None},
                    "llm": {"provider": provider.lower() if provider else None},
                },
            )
        else:
            cfg = create_config_from_args(
                source_dir=validate_path(source),
                output_dir=Path(output or "./output"),
                instructions=instructions,
                preset=preset,
                max_attempts=max_attempts,
                max_workers=workers,
                stream=stream,
                provider=provider,
            )

        display_config(cfg, verbose)

        source_root = cfg.project.source_root
        files = collect_source_files(
            source_root, cfg.project.include_extensions, cfg.project.exclude_patterns
        )
        if not files:
            console.print(f"[yellow]No source files found under {source_root}[/yellow]")
            raise typer.Exit(1)

        orchestrator = ProjectTransformOrchestrator(cfg)
        batch = orchestrator.run(files)

        written = write_results(batch, cfg.project.output_dir)
        manifest_file = orchestrator.manifest.save(cfg.project.resolved_state_dir())
        mapping_file = cfg.project.resolved_state_dir() / "manifest.md"
        mapping_file.write_text(orchestrator.manifest.export_mapping_table(), encoding="utf-8")

        console.print(f"\n[green]✓[/green] Wrote {len(written)} file(s) to {cfg.project.output_dir}")
        console.print(f"[green]✓[/green] Manifest saved to {manifest_file}")

        for warning in batch.warnings:
            console.print(f"[yellow]⚠[/yellow] {warning.path}: {warning.message}")
        for error in batch.errors:
            console.print(f"[red]✗[/red] {error.path}: {error.error}")
        if not batch.success:
            raise typer.Exit(1)

    except ConfigurationError as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        raise typer.Exit(1)
    except ValueError as e:
        # Raised by oracle construction, e.g. a missing API key
        console.print(f"[bold red]Error:[/bold red] {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)


@app.command()
def classify(
    source: str = typer.Argument(..., help="Source project directory"),
    threshold: int = typer.Option(2, "--threshold", help="Score that forces the sequential lane"),
    extensions: str = typer.Option(".kt,.java", "--extensions", help="Comma-separated source extensions"),
):
    """
    Show classifier scores and the lane each file would run in.
    """
    root = validate_path(source)
    include = [e.strip() for e in extensions.split(",") if e.strip()]
    files = collect_source_files(root, include, [".git", "build", ".gradle"])
    classification = classify_files(files, threshold)

    table = Table(title=f"File Classification ({len(files)} files)")
    table.add_column("File", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Lane", style="green")

    for file in files:
        lane = classification.lane_of(file.path)
        table.add_row(file.path, str(classification.scores[file.path]), lane.value if lane else "-")

    console.print(table)


@app.command()
def manifest(
    state_dir: str = typer.Argument(..., help="State directory containing manifest.json"),
):
    """
    Print the mapping table of a saved manifest.
    """
    loaded = Manifest.load(validate_path(state_dir))
    console.print(loaded.export_mapping_table())


@app.command()
def init(
    output: str = typer.Option("./codeport.yaml", "--output", "-o", help="Output path for config file"),
):
    """
    Generate a default configuration file.

    Creates a codeport.yaml with sensible defaults that you can customize.
    """
    output_path = Path(output)

    if output_path.exists():
        if not typer.confirm(f"{output} already exists. Overwrite?"):
            console.print("[yellow]Cancelled.[/yellow]")
            raise typer.Abort()

    generate_default_config(output_path)
    console.print(f"[green]✓[/green] Generated configuration file: {output}")
    console.print("\nEdit this file to customize your conversion settings.")


# =============================================================================
# Entry Point
# =============================================================================


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
