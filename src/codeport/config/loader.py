"""
Configuration loader for CodePort.

Handles loading configuration from YAML files and environment variables.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from .models import CodePortConfig, LLMProvider, ProjectConfig
from .presets import PRESETS, resolve_transform_options


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""

    pass


def apply_environment(config: CodePortConfig) -> CodePortConfig:
    """Fill unset LLM fields from the environment (and a local .env file)."""
    load_dotenv()

    if config.llm.base_url is None:
        config.llm.base_url = os.environ.get("CODEPORT_LLM_BASE_URL") or None
    if config.llm.api_key is None:
        config.llm.api_key = os.environ.get("OPENAI_API_KEY") or None
    env_model = os.environ.get("CODEPORT_LLM_MODEL")
    if env_model:
        config.llm.model = env_model

    return config


def validate_config(config: CodePortConfig) -> CodePortConfig:
    """Cross-field checks that pydantic cannot express per field."""
    if config.transform.preset not in PRESETS:
        raise ConfigurationError(
            f"Unknown preset '{config.transform.preset}'. Valid presets: {sorted(PRESETS)}"
        )
    if not config.compiler.command:
        raise ConfigurationError("compiler.command must name a parse-only compiler invocation")
    if not config.project.target_extension.startswith("."):
        raise ConfigurationError(
            f"target_extension must start with '.', got '{config.project.target_extension}'"
        )
    return config


def merge_overrides(raw_config: dict[str, Any], overrides: dict[str, dict[str, Any]]) -> dict[str, Any]:
    """Overlay per-section overrides on raw config data, skipping unset (None) values."""
    merged = dict(raw_config)
    for section, values in overrides.items():
        explicit = {key: value for key, value in values.items() if value is not None}
        if explicit:
            merged[section] = {**(merged.get(section) or {}), **explicit}
    return merged


def load_config_from_yaml(
    config_path: Path, overrides: dict[str, dict[str, Any]] | None = None
) -> CodePortConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML file
        overrides: Section -> field values that take precedence over the file,
            e.g. command-line options; None values are ignored
    """
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if raw_config is None:
        raise ConfigurationError("Configuration file is empty")

    if overrides:
        raw_config = merge_overrides(raw_config, overrides)

    try:
        config = CodePortConfig(**raw_config)
        # Presets fill whatever the file did not set explicitly
        config.transform = resolve_transform_options(raw_config.get("transform") or {})
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed:\n{e}")

    return validate_config(apply_environment(config))


def create_config_from_args(
    source_dir: Path,
    output_dir: Path,
    instructions: str | None = None,
    preset: str | None = None,
    max_attempts: int | None = None,
    temperature: float | None = None,
    model: str | None = None,
    max_workers: int | None = None,
    stream: bool = False,
    provider: str | None = None,
    project_name: str | None = None,
    **kwargs: Any,
) -> CodePortConfig:
    """Create configuration from CLI arguments."""
    project_kwargs: dict[str, Any] = {
        "name": project_name or source_dir.name or "codeport_project",
        "source_root": source_dir,
        "output_dir": output_dir,
    }
    if instructions:
        project_kwargs["instructions"] = instructions

    transform = resolve_transform_options(
        {
            "preset": preset,
            "max_attempts": max_attempts,
            "temperature": temperature,
            "model": model,
        }
    )

    config_dict: dict[str, Any] = {
        "project": ProjectConfig(**project_kwargs),
        "transform": transform,
    }

    if "llm" in kwargs:
        config_dict["llm"] = kwargs["llm"]
    if "compiler" in kwargs:
        config_dict["compiler"] = kwargs["compiler"]
    if "synthesis" in kwargs:
        config_dict["synthesis"] = kwargs["synthesis"]

    try:
        config = CodePortConfig(**config_dict)
        if provider:
            config.llm.provider = LLMProvider(provider.lower())
    except (ValidationError, ValueError) as e:
        raise ConfigurationError(f"Invalid arguments: {e}")

    if max_workers is not None:
        config.orchestration.max_workers = max_workers
    config.orchestration.stream = stream

    return validate_config(apply_environment(config))


def generate_default_config(output_path: Path) -> None:
    """Generate a default configuration file."""
    default_config = {
        "project": {
            "name": "my_project",
            "source_root": "./android_input",
            "output_dir": "./ios_output",
            "include_extensions": [".kt", ".java"],
            "target_extension": ".swift",
            "instructions": "Convert to clean SwiftUI. Use modern Swift concurrency.",
        },
        "llm": {
            "provider": "openai_compatible",
            "base_url": "http://localhost:8080",
            "model": "qwen2.5-coder:3b",
            "timeout": 300,
        },
        "transform": {
            "preset": "activity_entrypoint",
            "temperature": 0.2,
            "max_attempts": 3,
            "model": "primary",
            "model_hint": "medium",
        },
        "compiler": {
            "command": ["swiftc", "-parse"],
            "timeout": 60,
        },
        "orchestration": {
            "sequential_threshold": 2,
            "max_workers": 4,
            "stream": False,
        },
        "synthesis": {
            "framework_fixups": False,
            "static_checks": True,
        },
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)
