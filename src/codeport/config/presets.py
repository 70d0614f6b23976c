"""
Transformation presets.

A preset overrides a subset of the default TransformOptions; callers always
have the final say.
"""

from typing import Any

from codeport.config.models import TransformOptions

PRESETS: dict[str, dict[str, Any]] = {
    "activity_entrypoint": {
        "direction": "kotlin_to_swiftui",
        "temperature": 0.2,
        "model_hint": "medium",
    },
    "compose_to_swiftui": {
        "direction": "compose_to_swiftui",
        "temperature": 0.25,
        "model_hint": "medium",
    },
    "android_to_swiftui": {
        "direction": "android_to_swiftui",
        "temperature": 0.3,
        "model_hint": "medium",
    },
    "refactor_kotlin": {
        "direction": "refactor_kotlin",
        "temperature": 0.15,
        "model_hint": "small",
        "allow_explanations": True,
    },
    "explain_code": {
        "direction": "explain_code",
        "temperature": 0.1,
        "model_hint": "small",
        "allow_explanations": True,
    },
}


def get_preset_options(preset_key: str | None) -> dict[str, Any]:
    """Return the overrides for a preset, or an empty dict if unknown."""
    if not preset_key:
        return {}
    return dict(PRESETS.get(preset_key, {}))


def resolve_transform_options(
    client_options: dict[str, Any] | None = None,
    base: TransformOptions | None = None,
) -> TransformOptions:
    """
    Merge options in order: defaults <- preset overrides <- caller overrides.

    Args:
        client_options: Fields set explicitly by the caller
        base: Starting options (e.g. from the config file); library defaults if omitted

    Returns:
        Fully resolved TransformOptions
    """
    client_options = {k: v for k, v in (client_options or {}).items() if v is not None}
    base_values = (base or TransformOptions()).model_dump()

    preset_key = client_options.get("preset") or base_values.get("preset")
    merged = {**base_values, **get_preset_options(preset_key), **client_options}
    merged["preset"] = preset_key

    return TransformOptions(**merged)
