"""
Global Synthesis Pass.

Runs once after every attempt cycle of a run has terminated and rewrites each
result so all files agree on symbol names and primitive types.
"""

import logging
import re

from codeport.config.models import TransformResult
from codeport.rules import FRAMEWORK_FIXUPS, PRIMITIVE_NORMALIZATIONS
from codeport.state.manifest import Manifest, ManifestSnapshot

logger = logging.getLogger(__name__)


def resolve_chains(symbol_map: dict[str, str]) -> dict[str, str]:
    """
    Collapse A->B, B->C into A->C, B->C.

    Identity mappings are dropped, and so is every name whose chain loops
    back on itself, so no resolved target is also a key.
    """
    resolved: dict[str, str] = {}

    for source in symbol_map:
        seen = {source}
        target = symbol_map[source]
        cyclic = False
        while target in symbol_map and symbol_map[target] != target:
            if target in seen:
                cyclic = True
                break
            seen.add(target)
            target = symbol_map[target]

        if cyclic:
            logger.warning(f"Skipping cyclic mapping chain starting at '{source}'")
            continue
        if target != source:
            resolved[source] = target

    return resolved


class GlobalSynthesisPass:
    """Applies Manifest substitutions and type normalizations to every result."""

    def __init__(self, manifest: Manifest | ManifestSnapshot | dict[str, str], framework_fixups: bool = False):
        symbol_map = manifest if isinstance(manifest, dict) else manifest.symbol_map
        self.mapping = resolve_chains(dict(symbol_map))
        self.framework_fixups = framework_fixups
        self._pattern = self._compile(self.mapping)

    @staticmethod
    def _compile(mapping: dict[str, str]) -> re.Pattern[str] | None:
        if not mapping:
            return None
        # Longest first so overlapping names prefer the most specific match
        names = sorted(mapping, key=len, reverse=True)
        return re.compile(r"\b(?:" + "|".join(re.escape(n) for n in names) + r")\b")

    def apply_to_text(self, text: str) -> str:
        if self._pattern is not None:
            text = self._pattern.sub(lambda m: self.mapping[m.group(0)], text)

        for rule in PRIMITIVE_NORMALIZATIONS:
            text = rule.pattern.sub(rule.replacement, text)

        if self.framework_fixups:
            for rule in FRAMEWORK_FIXUPS:
                text = rule.pattern.sub(rule.replacement, text)

        return text

    def apply(self, results: list[TransformResult]) -> list[TransformResult]:
        """
        Rewrite every result's content.

        Args:
            results: Terminal results of both lanes

        Returns:
            New TransformResult objects in the same order
        """
        synthesized = []
        for result in results:
            content = self.apply_to_text(result.content)
            if content != result.content:
                logger.debug(f"Synthesis rewrote {result.path}")
            synthesized.append(result.model_copy(update={"content": content}))
        return synthesized
