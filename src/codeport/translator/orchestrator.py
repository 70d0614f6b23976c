"""
Project Transform Orchestrator.

Coordinates a whole conversion run:
1. Summarizing the project context
2. Classifying files into the sequential and parallel lanes
3. Running the attempt cycle per file, sequential lane first
4. Joining both lanes and applying the Global Synthesis Pass
5. Running the static navigation and SwiftData checks on the output
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from codeport.analyzer.classifier import classify_files
from codeport.analyzer.context import build_project_context
from codeport.config.models import (
    BatchResult,
    CodePortConfig,
    FileError,
    ProjectContext,
    SourceFile,
    StaticIssue,
    TransformResult,
)
from codeport.state.manifest import Manifest, ManifestSnapshot
from codeport.state.synthesis import GlobalSynthesisPass
from codeport.translator.attempt_cycle import TransformAttemptCycle
from codeport.translator.llm_client import TransformationOracle, create_oracle_client
from codeport.verifier.compiler import CompilerOracle, SubprocessCompilerOracle
from codeport.verifier.navigation import check_navigation
from codeport.verifier.schema import check_swiftdata_models
from codeport.verifier.shadow import load_shadow

logger = logging.getLogger(__name__)
console = Console()


class ProjectTransformOrchestrator:
    """Orchestrates a multi-file conversion run."""

    def __init__(
        self,
        config: CodePortConfig,
        oracle: TransformationOracle | None = None,
        compiler: CompilerOracle | None = None,
        manifest: Manifest | None = None,
        show_progress: bool = True,
    ):
        self.config = config
        self.oracle = oracle or create_oracle_client(config.llm)
        self.compiler = compiler or SubprocessCompilerOracle(config.compiler)
        self.manifest = manifest or Manifest()
        self.shadow = load_shadow(config.compiler.shadow_file)
        self.show_progress = show_progress

        self.stats = {
            "total": 0,
            "sequential": 0,
            "parallel": 0,
            "verified": 0,
            "unverified": 0,
            "fallback": 0,
            "errors": 0,
            "warnings": 0,
        }

    def _create_cycle(
        self, context: ProjectContext, manifest_view: ManifestSnapshot | None = None
    ) -> TransformAttemptCycle:
        return TransformAttemptCycle(
            oracle=self.oracle,
            compiler=self.compiler,
            manifest=self.manifest,
            options=self.config.transform,
            instructions=self.config.project.instructions,
            context=context,
            manifest_view=manifest_view,
            shadow=self.shadow,
            target_extension=self.config.project.target_extension,
            stream=self.config.orchestration.stream,
        )

    def run(self, files: list[SourceFile]) -> BatchResult:
        """
        Convert every file of a project.

        Args:
            files: Source files in input order

        Returns:
            BatchResult with one result or one error entry per input file
        """
        if self.show_progress:
            console.print(f"\n[bold cyan]CodePort: transforming {len(files)} files[/bold cyan]\n")

        context = build_project_context(files)
        classification = classify_files(files, self.config.orchestration.sequential_threshold)
        self.stats["total"] = len(files)
        self.stats["sequential"] = len(classification.sequential)
        self.stats["parallel"] = len(classification.parallel)
        logger.info(
            f"Classified {len(files)} files: {len(classification.sequential)} sequential, "
            f"{len(classification.parallel)} parallel"
        )

        results: dict[str, TransformResult] = {}
        errors: list[FileError] = []

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
            disable=not self.show_progress,
        ) as progress:
            task = progress.add_task("Sequential lane...", total=len(files))

            # Sequential lane: input order, live manifest
            for file in classification.sequential:
                try:
                    results[file.path] = self._create_cycle(context).run(file)
                except Exception as e:
                    logger.error(f"Transform failed for {file.path}: {e}")
                    errors.append(FileError(path=file.path, error=str(e)))
                progress.advance(task)

            # Parallel lane: everyone reads the same snapshot
            progress.update(task, description="Parallel lane...")
            snapshot = self.manifest.snapshot()
            max_workers = max(1, min(self.config.orchestration.max_workers, len(classification.parallel)))

            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures = {
                    executor.submit(self._create_cycle(context, snapshot).run, file): file
                    for file in classification.parallel
                }
                for future in as_completed(futures):
                    file = futures[future]
                    try:
                        results[file.path] = future.result()
                    except Exception as e:
                        logger.error(f"Transform failed for {file.path}: {e}")
                        errors.append(FileError(path=file.path, error=str(e)))
                    progress.advance(task)

        # Join: both lanes done, synthesize in input order
        ordered = [results[f.path] for f in files if f.path in results]
        synthesis = GlobalSynthesisPass(self.manifest, framework_fixups=self.config.synthesis.framework_fixups)
        final_results = synthesis.apply(ordered)
        warnings = self._run_static_checks(final_results)

        input_order = {f.path: i for i, f in enumerate(files)}
        errors.sort(key=lambda e: input_order.get(e.path, len(files)))

        self._update_stats(final_results, errors)
        if self.show_progress:
            self._display_results()

        return BatchResult(
            success=not errors,
            results=final_results,
            errors=errors,
            warnings=warnings,
            manifest=self.manifest.summary(),
        )

    def _run_static_checks(self, results: list[TransformResult]) -> list[StaticIssue]:
        if not self.config.synthesis.static_checks:
            return []

        warnings = [*check_navigation(results), *check_swiftdata_models(results)]
        for warning in warnings:
            logger.warning(f"[{warning.check}] {warning.path}: {warning.message}")
        self.stats["warnings"] = len(warnings)
        return warnings

    def _update_stats(self, results: list[TransformResult], errors: list[FileError]):
        self.stats["verified"] = sum(1 for r in results if r.verified)
        self.stats["fallback"] = sum(1 for r in results if r.fallback)
        self.stats["unverified"] = len(results) - self.stats["verified"] - self.stats["fallback"]
        self.stats["errors"] = len(errors)

    def _display_results(self):
        """Display run summary."""
        console.print("\n[bold]CodePort Summary[/bold]\n")

        stats_table = Table(show_header=False)
        stats_table.add_column("Metric", style="cyan")
        stats_table.add_column("Value", style="green")

        stats_table.add_row("Total Files", str(self.stats["total"]))
        stats_table.add_row("Sequential Lane", str(self.stats["sequential"]))
        stats_table.add_row("Parallel Lane", str(self.stats["parallel"]))
        stats_table.add_row("Verified", str(self.stats["verified"]))
        stats_table.add_row("Unverified", str(self.stats["unverified"]))
        stats_table.add_row("Fallback", str(self.stats["fallback"]))
        stats_table.add_row("Errors", str(self.stats["errors"]))
        stats_table.add_row("Static Warnings", str(self.stats["warnings"]))

        verified_rate = (
            (self.stats["verified"] / self.stats["total"] * 100) if self.stats["total"] > 0 else 0
        )
        stats_table.add_row("Verified Rate", f"{verified_rate:.1f}%")
        stats_table.add_row("Mapped Symbols", str(len(self.manifest)))

        console.print(stats_table)

        if self.stats["fallback"] > 0:
            console.print(
                f"\n[yellow]⚠ {self.stats['fallback']} file(s) contain fallback placeholders[/yellow]"
            )

        if self.stats["errors"] > 0:
            console.print(f"\n[red]✗ {self.stats['errors']} file(s) failed with errors[/red]")


def run_project_transform(
    config: CodePortConfig,
    files: list[SourceFile],
    oracle: TransformationOracle | None = None,
    compiler: CompilerOracle | None = None,
) -> tuple[BatchResult, Manifest]:
    """
    Convenience function to run a full conversion.

    Args:
        config: CodePort configuration
        files: Source files in input order
        oracle: Override for the transformation oracle
        compiler: Override for the compiler oracle

    Returns:
        Tuple of (batch_result, manifest)
    """
    orchestrator = ProjectTransformOrchestrator(config, oracle=oracle, compiler=compiler)
    batch = orchestrator.run(files)
    return batch, orchestrator.manifest
