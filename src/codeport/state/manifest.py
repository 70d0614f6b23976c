"""
Project Manifest for CodePort.

Cross-file naming record shared by every attempt cycle of a run. It only
grows: writes happen on a verified transition, under a lock, and a source
name keeps the first target name recorded for it.
"""

import threading
import time
from pathlib import Path

import orjson
from pydantic import BaseModel, ConfigDict, Field

from codeport.rules import SOURCE_DECLARATION, TARGET_DECLARATION

MANIFEST_FILENAME = "manifest.json"


class ManifestSnapshot(BaseModel):
    """Read-only copy of the Manifest handed to parallel-lane cycles."""

    model_config = ConfigDict(frozen=True)

    symbol_map: dict[str, str] = Field(default_factory=dict)
    definitions: list[str] = Field(default_factory=list)
    file_exports: dict[str, str] = Field(default_factory=dict)


class Manifest:
    """
    Source-name -> target-name mapping plus the set of defined target types.

    Usage:
        manifest = Manifest()

        # After a cycle verifies a file
        manifest.record_verified(source.content, sanitized, "UserViewModel.swift")

        # Freeze a view for the parallel lane
        snapshot = manifest.snapshot()

        # Persist
        manifest.save(state_dir)
    """

    def __init__(self):
        self.symbol_map: dict[str, str] = {}
        self.definitions: list[str] = []  # Ordered, no duplicates
        self.file_exports: dict[str, str] = {}
        self._lock = threading.Lock()

    # =========================================================================
    # Writes
    # =========================================================================

    def record(self, source_name: str, target_name: str, output_path: str) -> bool:
        """
        Record a verified mapping.

        Returns:
            True if source_name was new; an existing mapping is never overwritten
        """
        with self._lock:
            if target_name not in self.definitions:
                self.definitions.append(target_name)
            self.file_exports.setdefault(target_name, output_path)

            if source_name in self.symbol_map:
                return False
            self.symbol_map[source_name] = target_name
            return True

    def record_verified(self, original: str, sanitized: str, output_path: str) -> bool:
        """
        Extract the primary declarations of a verified file and record them.

        Args:
            original: Source file content
            sanitized: Verified target code
            output_path: Where the target file will be written

        Returns:
            True if a new mapping was added
        """
        source_match = SOURCE_DECLARATION.search(original)
        target_match = TARGET_DECLARATION.search(sanitized)
        if not source_match or not target_match:
            return False
        return self.record(source_match.group(1), target_match.group(1), output_path)

    # =========================================================================
    # Reads
    # =========================================================================

    def snapshot(self) -> ManifestSnapshot:
        with self._lock:
            return ManifestSnapshot(
                symbol_map=dict(self.symbol_map),
                definitions=list(self.definitions),
                file_exports=dict(self.file_exports),
            )

    def target_name(self, source_name: str) -> str | None:
        return self.symbol_map.get(source_name)

    def summary(self) -> dict:
        snapshot = self.snapshot()
        return {
            "symbol_map": snapshot.symbol_map,
            "definitions": snapshot.definitions,
            "file_exports": snapshot.file_exports,
        }

    # =========================================================================
    # Persistence
    # =========================================================================

    def save(self, state_dir: Path) -> Path:
        """
        Persist the manifest to disk.

        Returns:
            Path to the saved manifest file
        """
        state_dir.mkdir(parents=True, exist_ok=True)
        manifest_file = state_dir / MANIFEST_FILENAME

        data = {**self.summary(), "updated_at": time.time()}

        with open(manifest_file, "wb") as f:
            f.write(orjson.dumps(data, option=orjson.OPT_INDENT_2))

        return manifest_file

    @classmethod
    def load(cls, state_dir: Path) -> "Manifest":
        """
        Load a manifest from disk.

        Returns:
            Loaded Manifest (or empty if the file doesn't exist)
        """
        manifest = cls()
        manifest_file = state_dir / MANIFEST_FILENAME

        if not manifest_file.exists():
            return manifest

        with open(manifest_file, "rb") as f:
            data = orjson.loads(f.read())

        manifest.symbol_map.update(data.get("symbol_map", {}))
        for name in data.get("definitions", []):
            if name not in manifest.definitions:
                manifest.definitions.append(name)
        manifest.file_exports.update(data.get("file_exports", {}))

        return manifest

    # =========================================================================
    # Reporting
    # =========================================================================

    def export_mapping_table(self) -> str:
        """
        Export a human-readable mapping table in Markdown format.

        Returns:
            Markdown string with mapping table
        """
        lines = [
            "# Project Manifest",
            "",
            f"**Mapped Symbols**: {len(self.symbol_map)}",
            f"**Defined Types**: {len(self.definitions)}",
            "",
            "| Source Name | Target Name | File |",
            "|-------------|-------------|------|",
        ]

        for source_name in sorted(self.symbol_map):
            target_name = self.symbol_map[source_name]
            lines.append(
                f"| `{source_name}` | `{target_name}` | {self.file_exports.get(target_name, '')} |"
            )

        return "\n".join(lines)

    def __len__(self) -> int:
        """Return the number of mapped source names."""
        return len(self.symbol_map)

    def __contains__(self, source_name: str) -> bool:
        return source_name in self.symbol_map
