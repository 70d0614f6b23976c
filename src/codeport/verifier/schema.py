"""
SwiftData schema check.

Static, model-free pass over `@Model` types in the converted files.
"""

import logging
from dataclasses import dataclass, field

from codeport.config.models import StaticIssue, TransformResult
from codeport.rules import (
    ILLEGAL_MODEL_TYPES,
    INITIALIZER,
    MODEL_DECLARATION,
    RELATIONSHIP_INVERSE,
    STORED_PROPERTY,
)
from codeport.verifier.blocks import block_body, top_level_lines

logger = logging.getLogger(__name__)


@dataclass
class ModelProperty:
    name: str
    type: str
    has_default: bool
    attributes: str = ""


@dataclass
class SwiftDataModel:
    path: str
    name: str
    kind: str
    is_final: bool
    properties: list[ModelProperty] = field(default_factory=list)
    has_initializer: bool = False

    def property_named(self, name: str) -> ModelProperty | None:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None


def extract_models(path: str, content: str) -> list[SwiftDataModel]:
    """Every `@Model` type of a file with its stored properties."""
    models = []
    for match in MODEL_DECLARATION.finditer(content):
        modifiers, kind, name = match.group(1), match.group(2), match.group(3)
        model = SwiftDataModel(path=path, name=name, kind=kind, is_final="final" in modifiers.split())

        for line in top_level_lines(block_body(content, match.end() - 1)):
            if INITIALIZER.match(line):
                model.has_initializer = True
                continue
            prop = STORED_PROPERTY.match(line)
            # Static and computed properties are not persisted
            if not prop or "static" in prop.group(2).split() or prop.group(6) == "{":
                continue
            prop_type = prop.group(5).strip()
            model.properties.append(
                ModelProperty(
                    name=prop.group(4),
                    type=prop_type,
                    has_default=prop.group(6) == "=" or (prop.group(3) == "var" and prop_type.endswith("?")),
                    attributes=prop.group(1),
                )
            )
        models.append(model)
    return models


def _issue(model: SwiftDataModel, message: str) -> StaticIssue:
    return StaticIssue(check="schema", path=model.path, subject=model.name, message=message)


def check_swiftdata_models(results: list[TransformResult]) -> list[StaticIssue]:
    """
    Check `@Model` declarations of a converted project.

    Reports models that are not final classes, properties of types SwiftData
    cannot persist, models that need but lack an initializer, and
    `@Relationship(inverse:)` key paths that point nowhere.
    """
    models: list[SwiftDataModel] = []
    for result in results:
        if not result.fallback:
            models.extend(extract_models(result.output_path, result.content))

    by_name = {model.name: model for model in models}
    issues = []

    for model in models:
        if model.kind != "class":
            issues.append(_issue(model, f"@Model requires a class, found {model.kind} {model.name}"))
        elif not model.is_final:
            issues.append(_issue(model, f"@Model {model.name} should be declared as 'final class'"))

        for prop in model.properties:
            if ILLEGAL_MODEL_TYPES.search(prop.type):
                issues.append(
                    _issue(model, f"Property '{prop.name}: {prop.type}' is a UI type SwiftData cannot persist")
                )

            inverse = RELATIONSHIP_INVERSE.search(prop.attributes)
            if inverse:
                target, key = inverse.group(1), inverse.group(2)
                target_model = by_name.get(target)
                if target_model is None:
                    issues.append(_issue(model, f"Relationship '{prop.name}' has inverse on unknown model {target}"))
                elif target_model.property_named(key) is None:
                    issues.append(
                        _issue(model, f"Relationship '{prop.name}' has inverse {target}.{key}, which does not exist")
                    )

        uninitialized = [prop.name for prop in model.properties if not prop.has_default]
        if model.kind == "class" and uninitialized and not model.has_initializer:
            issues.append(
                _issue(model, f"@Model {model.name} has no initializer for: {', '.join(uninitialized)}")
            )

    logger.debug(f"SwiftData schema: {len(models)} models, {len(issues)} issues")
    return issues
