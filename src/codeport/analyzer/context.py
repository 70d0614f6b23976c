"""
Project Context Summarizer.

Extracts per-file structural signals and aggregates them into the
project-wide context injected into every oracle call, so the model sees the
whole project while it converts one file.
"""

import re

from codeport.config.models import FileSummary, ProjectContext, SourceFile
from codeport.rules import (
    DEEP_LINK_SIGNALS,
    FILE_ROLE_SIGNALS,
    FUNCTION_DECLARATION,
    LIBRARY_HINTS,
    NAVIGATION_SIGNALS,
    PAYLOAD_KEY,
    PERSISTED_KEY,
    SERVICE_SIGNALS,
    STATE_DECLARATION,
    STATE_USAGE_SIGNALS,
    TYPE_DECLARATION,
)


def _find_all(pattern: re.Pattern[str], content: str) -> list[str]:
    return [match.group(1) for match in pattern.finditer(content)]


def _signals_present(signals: tuple[str, ...], lowered: str) -> list[str]:
    return [signal for signal in signals if signal in lowered]


def classify_file_role(content: str) -> str:
    """Coarse role of a file (viewmodel, ui, service, navigation, data, utility)."""
    lowered = content.lower()
    for role, signals in FILE_ROLE_SIGNALS:
        if any(signal in lowered for signal in signals):
            return role
    return "unknown"


def detect_libraries(content: str) -> dict[str, str]:
    """Well-known source libraries referenced by the file, with target hints."""
    return {library: hint for library, hint in LIBRARY_HINTS.items() if library in content}


def summarize_file(file: SourceFile) -> FileSummary:
    """Extract the structural signals of a single file."""
    content = file.content
    lowered = content.lower()

    return FileSummary(
        path=file.path,
        language=file.language,
        role=classify_file_role(content),
        classes=_find_all(TYPE_DECLARATION, content),
        functions=_find_all(FUNCTION_DECLARATION, content),
        state_variables=_find_all(STATE_DECLARATION, content),
        navigation_calls=_signals_present(NAVIGATION_SIGNALS, lowered),
        state_usage=_signals_present(STATE_USAGE_SIGNALS, lowered),
        service_bindings=_signals_present(SERVICE_SIGNALS, lowered),
        deep_link_handlers=_signals_present(DEEP_LINK_SIGNALS, lowered),
        persisted_keys=_find_all(PERSISTED_KEY, content),
        payload_keys=_find_all(PAYLOAD_KEY, content),
        libraries=detect_libraries(content),
    )


def build_project_context(files: list[SourceFile]) -> ProjectContext:
    """
    Build the project-wide context for a run.

    Pure function of its input: summaries are computed independently and the
    aggregate lists keep input order.

    Args:
        files: All source files of the run

    Returns:
        ProjectContext shared read-only by every later stage
    """
    summaries = [summarize_file(f) for f in files]

    return ProjectContext(
        file_count=len(files),
        files=summaries,
        class_index=[c for s in summaries for c in s.classes],
        navigation_signals=[n for s in summaries for n in s.navigation_calls],
        state_usage_signals=[v for s in summaries for v in s.state_usage],
        service_signals=[b for s in summaries for b in s.service_bindings],
        deep_link_signals=[d for s in summaries for d in s.deep_link_handlers],
        persisted_key_signals=[k for s in summaries for k in s.persisted_keys],
        external_payload_keys=[k for s in summaries for k in s.payload_keys],
    )
