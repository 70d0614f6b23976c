"""
Core configuration and data models for CodePort.

Defines all configuration structures and the records that flow through the
conversion pipeline using Pydantic for validation.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from codeport.rules import DEFAULT_SEQUENTIAL_THRESHOLD, MODULE_ERROR_MARKERS


class ModelHint(str, Enum):
    """High-level size/capability hint used for model routing."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class AttemptState(str, Enum):
    """States of the per-file transform attempt cycle."""

    PENDING = "pending"
    ATTEMPTING = "attempting"
    SANITIZING = "sanitizing"
    VALIDATING = "validating"
    RETRYING = "retrying"
    VERIFIED = "verified"
    EXHAUSTED = "exhausted"
    FALLBACK = "fallback"  # Oracle unreachable, placeholder emitted


class AttemptFailure(str, Enum):
    """Why a single attempt did not verify."""

    EMPTY_OUTPUT = "empty_output"
    SANITIZATION_EMPTIED = "sanitization_emptied"
    VALIDATION_FAILED = "validation_failed"
    ORACLE_UNREACHABLE = "oracle_unreachable"


class Lane(str, Enum):
    """Processing partitions produced by the file classifier."""

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


# ============================================================================
# Transformation Options
# ============================================================================


class TransformOptions(BaseModel):
    """Options record passed with every transformation oracle request."""

    direction: str = Field(default="kotlin_to_swiftui", description="Conceptual conversion direction")
    preset: str = Field(default="activity_entrypoint", description="Preset key (see presets.py)")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Sampling temperature")
    max_attempts: int = Field(default=3, ge=1, description="Attempt bound per file")
    model: str = Field(default="primary", description="Logical model selector")
    model_hint: ModelHint = Field(default=ModelHint.MEDIUM, description="Model size hint")
    max_tokens: int = Field(default=2048, gt=0, description="Completion token limit")
    allow_explanations: bool = Field(
        default=False, description="Whether the oracle may add explanations alongside code"
    )


# ============================================================================
# LLM Configuration
# ============================================================================


class LLMProvider(str, Enum):
    """Supported transformation oracle providers."""

    OPENAI_COMPATIBLE = "openai_compatible"  # Local server exposing /v1/chat/completions
    OPENROUTER = "openrouter"
    OPENAI = "openai"
    OLLAMA = "ollama"
    FALLBACK = "fallback"  # Deterministic placeholder, no network


class LLMConfig(BaseModel):
    """Configuration for the transformation oracle client."""

    provider: LLMProvider = Field(default=LLMProvider.OPENAI_COMPATIBLE, description="LLM provider")
    base_url: str | None = Field(
        default=None, description="Base URL of an OpenAI-compatible server (without /v1)"
    )
    host: str = Field(default="http://localhost:11434", description="Ollama server URL (for Ollama)")
    api_key: str | None = Field(default=None, description="API key (for OpenRouter/OpenAI)")
    model: str = Field(default="qwen2.5-coder:3b", description="Model used when options.model is 'default'")
    temperature: float = Field(default=0.1, ge=0.0, le=2.0, description="Fallback sampling temperature")
    context_window: int = Field(default=16384, description="Maximum context window size (Ollama)")
    timeout: int = Field(default=300, description="Request timeout in seconds")


# ============================================================================
# Compiler Configuration
# ============================================================================


class CompilerConfig(BaseModel):
    """Configuration for the compiler oracle."""

    command: list[str] = Field(
        default_factory=lambda: ["swiftc", "-parse"],
        description="Parse-only compiler invocation; file paths are appended",
    )
    timeout: int = Field(default=60, description="Compiler timeout in seconds")
    module_error_markers: list[str] = Field(
        default_factory=lambda: list(MODULE_ERROR_MARKERS),
        description="Diagnostics containing only these markers count as a pass",
    )
    shadow_file: Path | None = Field(
        default=None, description="Override for the built-in shadow definitions"
    )


# ============================================================================
# Orchestration / Synthesis Configuration
# ============================================================================


class OrchestrationConfig(BaseModel):
    """Configuration for lane scheduling."""

    sequential_threshold: int = Field(
        default=DEFAULT_SEQUENTIAL_THRESHOLD, description="Classifier score that forces the sequential lane"
    )
    max_workers: int = Field(default=4, ge=1, description="Concurrency bound for the parallel lane")
    stream: bool = Field(default=False, description="Use the streaming oracle variant")


class SynthesisConfig(BaseModel):
    """Configuration for the global synthesis pass."""

    framework_fixups: bool = Field(
        default=False, description="Also apply target-framework hallucination fixups"
    )
    static_checks: bool = Field(
        default=True, description="Run the navigation graph and SwiftData schema checks on the output"
    )


# ============================================================================
# Project Configuration
# ============================================================================


class ProjectConfig(BaseModel):
    """Source/target layout of a conversion run."""

    name: str = Field(default="codeport_project", description="Project name")
    source_root: Path = Field(default=Path("."), description="Source project root directory")
    output_dir: Path = Field(default=Path("./output"), description="Output directory")
    state_dir: Path | None = Field(
        default=None, description="Directory for manifest state (defaults to <output>/.codeport)"
    )
    include_extensions: list[str] = Field(
        default_factory=lambda: [".kt", ".java"], description="Source file extensions to convert"
    )
    exclude_patterns: list[str] = Field(
        default_factory=lambda: [".git", "build", ".gradle", "node_modules", ".idea"],
        description="Patterns to exclude from collection",
    )
    target_extension: str = Field(default=".swift", description="Extension of generated files")
    instructions: str = Field(
        default="Convert to clean SwiftUI. Use modern Swift concurrency.",
        description="Base instructions sent with every file",
    )

    def resolved_state_dir(self) -> Path:
        return self.state_dir or self.output_dir / ".codeport"


# ============================================================================
# Main Configuration
# ============================================================================


class CodePortConfig(BaseModel):
    """Root configuration model for CodePort."""

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    transform: TransformOptions = Field(default_factory=TransformOptions)
    compiler: CompilerConfig = Field(default_factory=CompilerConfig)
    orchestration: OrchestrationConfig = Field(default_factory=OrchestrationConfig)
    synthesis: SynthesisConfig = Field(default_factory=SynthesisConfig)


# ============================================================================
# Pipeline Records
# ============================================================================


class SourceFile(BaseModel):
    """One input file. Immutable once read."""

    model_config = ConfigDict(frozen=True)

    path: str
    language: str = "kotlin"
    content: str


class FileSummary(BaseModel):
    """Structural signals extracted from a single source file."""

    model_config = ConfigDict(frozen=True)

    path: str
    language: str
    role: str = "unknown"
    classes: list[str] = Field(default_factory=list)
    functions: list[str] = Field(default_factory=list)
    state_variables: list[str] = Field(default_factory=list)
    navigation_calls: list[str] = Field(default_factory=list)
    state_usage: list[str] = Field(default_factory=list)
    service_bindings: list[str] = Field(default_factory=list)
    deep_link_handlers: list[str] = Field(default_factory=list)
    persisted_keys: list[str] = Field(default_factory=list)
    payload_keys: list[str] = Field(default_factory=list)
    libraries: dict[str, str] = Field(
        default_factory=dict, description="Detected source library -> target framework hint"
    )


class ProjectContext(BaseModel):
    """Project-wide context passed to every oracle call."""

    model_config = ConfigDict(frozen=True)

    file_count: int
    files: list[FileSummary] = Field(default_factory=list)
    class_index: list[str] = Field(default_factory=list)
    navigation_signals: list[str] = Field(default_factory=list)
    state_usage_signals: list[str] = Field(default_factory=list)
    service_signals: list[str] = Field(default_factory=list)
    deep_link_signals: list[str] = Field(default_factory=list)
    persisted_key_signals: list[str] = Field(default_factory=list)
    external_payload_keys: list[str] = Field(default_factory=list)

    def summary_for(self, path: str) -> FileSummary | None:
        for summary in self.files:
            if summary.path == path:
                return summary
        return None


class ClassificationResult(BaseModel):
    """Partition of all source files into the two processing lanes."""

    sequential: list[SourceFile] = Field(default_factory=list)
    parallel: list[SourceFile] = Field(default_factory=list)
    scores: dict[str, int] = Field(default_factory=dict, description="Path -> classifier score")

    def lane_of(self, path: str) -> Lane | None:
        if any(f.path == path for f in self.sequential):
            return Lane.SEQUENTIAL
        if any(f.path == path for f in self.parallel):
            return Lane.PARALLEL
        return None


class ValidationResult(BaseModel):
    """Compiler oracle verdict for one candidate."""

    ok: bool
    diagnostic: str | None = None
    suggestion: str | None = None


class TransformAttempt(BaseModel):
    """One oracle round-trip for a file."""

    attempt_number: int
    raw_output: str = ""
    sanitized_output: str = ""
    validation: ValidationResult | None = None
    failure: AttemptFailure | None = None


class TransformResult(BaseModel):
    """Terminal artifact for one input file."""

    path: str
    output_path: str
    content: str
    verified: bool
    attempts: int
    fallback: bool = False
    history: list[TransformAttempt] = Field(default_factory=list)


class FileError(BaseModel):
    """A file whose cycle raised outside the retry loop."""

    path: str
    error: str


class StaticIssue(BaseModel):
    """A warning from a model-free check over the converted output."""

    check: str = Field(description="Check that raised it: navigation or schema")
    path: str = Field(description="Output path the issue was found in")
    subject: str = Field(description="Route, view or model the issue is about")
    message: str


class BatchResult(BaseModel):
    """Aggregate result of a conversion run."""

    success: bool
    results: list[TransformResult] = Field(default_factory=list)
    errors: list[FileError] = Field(default_factory=list)
    warnings: list[StaticIssue] = Field(default_factory=list)
    manifest: dict = Field(default_factory=dict, description="Manifest summary at the end of the run")
