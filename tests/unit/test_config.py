"""
Unit tests for configuration loading and transform option resolution.
"""

from pathlib import Path

import pytest
import yaml

from codeport.config.loader import (
    ConfigurationError,
    create_config_from_args,
    generate_default_config,
    load_config_from_yaml,
    merge_overrides,
)
from codeport.config.models import LLMProvider, ModelHint, TransformOptions
from codeport.config.presets import get_preset_options, resolve_transform_options


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("CODEPORT_LLM_BASE_URL", "CODEPORT_LLM_MODEL", "OPENAI_API_KEY"):
        monkeypatch.delenv(var, raising=False)


def test_transform_option_defaults():
    options = TransformOptions()
    assert options.direction == "kotlin_to_swiftui"
    assert options.preset == "activity_entrypoint"
    assert options.temperature == 0.2
    assert options.max_attempts == 3
    assert options.model == "primary"
    assert options.model_hint == ModelHint.MEDIUM
    assert options.max_tokens == 2048
    assert not options.allow_explanations


def test_preset_overrides_defaults():
    options = resolve_transform_options({"preset": "refactor_kotlin"})
    assert options.direction == "refactor_kotlin"
    assert options.model_hint == ModelHint.SMALL
    assert options.allow_explanations


def test_caller_overrides_preset():
    options = resolve_transform_options({"preset": "explain_code", "temperature": 0.7, "model": None})
    assert options.temperature == 0.7
    assert options.model == "primary"


def test_unknown_preset_has_no_overrides():
    assert get_preset_options("nope") == {}
    assert get_preset_options(None) == {}


def test_create_config_from_args(tmp_path):
    config = create_config_from_args(
        source_dir=tmp_path / "android",
        output_dir=tmp_path / "ios",
        instructions="Use MVVM",
        max_attempts=5,
        max_workers=2,
        provider="fallback",
    )

    assert config.project.instructions == "Use MVVM"
    assert config.transform.max_attempts == 5
    assert config.orchestration.max_workers == 2
    assert config.llm.provider == LLMProvider.FALLBACK
    assert config.project.resolved_state_dir() == tmp_path / "ios" / ".codeport"


def test_unknown_preset_rejected(tmp_path):
    with pytest.raises(ConfigurationError, match="Unknown preset"):
        create_config_from_args(source_dir=tmp_path, output_dir=tmp_path, preset="nope")


def test_invalid_provider_rejected(tmp_path):
    with pytest.raises(ConfigurationError):
        create_config_from_args(source_dir=tmp_path, output_dir=tmp_path, provider="carrier-pigeon")


def test_environment_fills_llm_fields(tmp_path, monkeypatch):
    monkeypatch.setenv("CODEPORT_LLM_BASE_URL", "http://llm:8080")
    monkeypatch.setenv("CODEPORT_LLM_MODEL", "custom-coder")

    config = create_config_from_args(source_dir=tmp_path, output_dir=tmp_path)

    assert config.llm.base_url == "http://llm:8080"
    assert config.llm.model == "custom-coder"


def test_generated_default_config_loads(tmp_path):
    path = tmp_path / "codeport.yaml"
    generate_default_config(path)

    config = load_config_from_yaml(path)

    assert config.project.name == "my_project"
    assert config.compiler.command == ["swiftc", "-parse"]
    assert config.transform.max_attempts == 3


def test_yaml_transform_section_resolves_preset(tmp_path):
    path = tmp_path / "codeport.yaml"
    path.write_text(yaml.safe_dump({"transform": {"preset": "compose_to_swiftui"}}))

    config = load_config_from_yaml(path)

    assert config.transform.direction == "compose_to_swiftui"
    assert config.transform.temperature == 0.25


def test_missing_and_empty_config_files(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_config_from_yaml(tmp_path / "missing.yaml")

    empty = tmp_path / "empty.yaml"
    empty.write_text("")
    with pytest.raises(ConfigurationError, match="empty"):
        load_config_from_yaml(empty)


def test_invalid_values_raise_configuration_error(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.safe_dump({"transform": {"max_attempts": 0}}))

    with pytest.raises(ConfigurationError, match="validation failed"):
        load_config_from_yaml(path)


def test_target_extension_must_start_with_dot(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.safe_dump({"project": {"target_extension": "swift"}}))

    with pytest.raises(ConfigurationError, match="target_extension"):
        load_config_from_yaml(Path(path))


def test_merge_overrides_skips_unset_values():
    raw = {"project": {"name": "app", "output_dir": "out"}, "orchestration": {"stream": True}}

    merged = merge_overrides(
        raw, {"project": {"output_dir": "ios", "instructions": None}, "orchestration": {"stream": None}}
    )

    assert merged["project"] == {"name": "app", "output_dir": "ios"}
    assert merged["orchestration"] == {"stream": True}
    assert raw["project"]["output_dir"] == "out"


def test_yaml_config_with_overrides(tmp_path):
    path = tmp_path / "codeport.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "project": {"source_root": "android", "output_dir": "ios"},
                "transform": {"temperature": 0.4},
                "orchestration": {"max_workers": 8},
            }
        )
    )

    config = load_config_from_yaml(
        path,
        overrides={
            "project": {"source_root": tmp_path / "app", "output_dir": None},
            "transform": {"max_attempts": 5},
            "orchestration": {"max_workers": 2},
            "llm": {"provider": "fallback"},
        },
    )

    assert config.project.source_root == tmp_path / "app"
    assert config.project.output_dir == Path("ios")
    assert config.transform.max_attempts == 5
    assert config.transform.temperature == 0.4
    assert config.orchestration.max_workers == 2
    assert config.llm.provider == LLMProvider.FALLBACK


def test_invalid_override_raises_configuration_error(tmp_path):
    path = tmp_path / "codeport.yaml"
    generate_default_config(path)

    with pytest.raises(ConfigurationError):
        load_config_from_yaml(path, overrides={"llm": {"provider": "carrier-pigeon"}})
