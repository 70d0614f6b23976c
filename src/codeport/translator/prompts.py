"""
Prompt construction for the transformation oracle.

Builds the role-tagged segments of a request: the system segment (role,
options, project context, rules), the user segment (instructions, hints,
manifest snapshot, other files, the file itself) and repair segments.
"""

from codeport.config.models import FileSummary, ProjectContext, SourceFile, TransformOptions
from codeport.state.manifest import ManifestSnapshot

CORE_RULES = """\
# CORE RULES (DO NOT BREAK)
1. Preserve all logic, state, and behavior.
2. Preserve navigation flows exactly.
3. Preserve ViewModel -> UI relationships.
4. Preserve asynchronous behavior and concurrency semantics.
5. Never mix Jetpack Compose components or parameters with SwiftUI.
6. Do NOT use Kotlin keywords (val, fun, remember) or Compose labels (modifier:, arrangement:).
7. Do NOT simplify or omit logic.
8. Do NOT hallucinate APIs.

# BANNED PATTERNS
- Never use "LazyRow" or "LazyColumn".
- Never use "Modifier." or "modifier:" syntax.
- Never output "Color(0x...)"; use Color(hex: "...").
- Never pass color or font arguments to a Text initializer; use trailing modifiers.

# FILE-BOUNDARY RULES
- You are transforming ONE file at a time.
- Do NOT invent, merge or split files.
- Preserve the file name unless target conventions require a rename.
"""

OUTPUT_RULES = """\
# OUTPUT RULES
- Output ONLY the transformed code.
- Start immediately with an import, an attribute such as @Model, or a declaration.
- Do NOT include backticks or Markdown block markers.
- Do NOT include commentary or explanations.
- Do NOT redefine types listed as already defined.
"""


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items) if items else "- None"


def _joined(items: list[str]) -> str:
    return ", ".join(items) if items else "None"


def format_project_context(context: ProjectContext) -> str:
    """Render the project-wide context block shared by every file of a run."""
    sections = [
        ("File List", [f.path for f in context.files]),
        ("Classes Across Project", context.class_index),
        ("Navigation Calls", context.navigation_signals),
        ("State Management Usage", context.state_usage_signals),
        ("Service Bindings", context.service_signals),
        ("Deep Link Handlers", context.deep_link_signals),
        ("Persisted Storage Keys", context.persisted_key_signals),
        ("External Payload Keys", context.external_payload_keys),
    ]

    prompt_parts = [
        "# PROJECT CONTEXT (DO NOT IGNORE)",
        "Use the following project-wide information to maintain cross-file consistency.",
        f"Total files: {context.file_count}",
    ]
    for title, items in sections:
        prompt_parts.append(f"\n## {title}")
        prompt_parts.append(_bullets(items))

    return "\n".join(prompt_parts)


def format_file_summary(summary: FileSummary) -> str:
    return "\n".join(
        [
            f"### FILE: {summary.path}",
            f"Role: {summary.role}",
            f"Classes: {_joined(summary.classes)}",
            f"Functions: {_joined(summary.functions)}",
            f"State Variables: {_joined(summary.state_variables)}",
            f"Navigation Calls: {_joined(summary.navigation_calls)}",
            f"State Usage: {_joined(summary.state_usage)}",
            f"Service Bindings: {_joined(summary.service_bindings)}",
            f"Deep Link Handlers: {_joined(summary.deep_link_handlers)}",
            f"Persisted Keys: {_joined(summary.persisted_keys)}",
            f"Payload Keys: {_joined(summary.payload_keys)}",
        ]
    )


def format_library_hints(libraries: dict[str, str]) -> str:
    if not libraries:
        return "No custom SDKs detected. Use the standard target frameworks."
    return "\n".join(f"- {library} -> {hint}" for library, hint in libraries.items())


def build_system_prompt(options: TransformOptions, context: ProjectContext | None = None) -> str:
    """Build the system segment for a file's conversation."""
    prompt_parts = [
        "# SYSTEM ROLE",
        "You are CodePort, a deterministic, architecture-faithful code transformation engine.",
        "Your goal is 1:1 behavioral parity with an idiomatic target implementation.",
        "",
        f"# TRANSFORMATION DIRECTION\n{options.direction}",
        "",
        f"# PRESET\n{options.preset}",
        "",
        "# MODEL BEHAVIOR PROFILE",
        f"Model key: {options.model}",
        f"Model hint: {options.model_hint.value}",
    ]

    if context is not None:
        prompt_parts.append("")
        prompt_parts.append(format_project_context(context))

    prompt_parts.append("")
    prompt_parts.append(CORE_RULES)

    if options.allow_explanations:
        prompt_parts.append("# OUTPUT RULES\n- Explanations are allowed, but keep all code in one contiguous block.")
    else:
        prompt_parts.append(OUTPUT_RULES)

    return "\n".join(prompt_parts)


def build_user_prompt(
    file: SourceFile,
    instructions: str,
    options: TransformOptions,
    context: ProjectContext | None = None,
    manifest: ManifestSnapshot | None = None,
) -> str:
    """
    Build the user segment for a file's first attempt.

    Args:
        file: File being converted
        instructions: Base instructions for the run
        options: Resolved transform options
        context: Project-wide context, if available
        manifest: Manifest state visible to this file

    Returns:
        Prompt text
    """
    prompt_parts = [f"# INSTRUCTIONS\n{instructions}"]

    prompt_parts.append(
        "\n# EXPLANATION MODE\n"
        + ("Explanations allowed." if options.allow_explanations else "Code only. No explanations.")
    )

    summary = context.summary_for(file.path) if context is not None else None
    prompt_parts.append("\n# EXTERNAL LIBRARY CONTEXT")
    prompt_parts.append(format_library_hints(summary.libraries if summary else {}))

    if manifest is not None and (manifest.symbol_map or manifest.definitions):
        prompt_parts.append("\n# EXISTING MAPPINGS (reuse these names)")
        prompt_parts.append(
            "\n".join(f"- {source} -> {target}" for source, target in manifest.symbol_map.items())
            or "- None"
        )
        prompt_parts.append(f"\n# ALREADY DEFINED TYPES\n{_joined(manifest.definitions)}")

    if context is not None:
        others = [s for s in context.files if s.path != file.path]
        if others:
            prompt_parts.append("\n# SUMMARIES OF OTHER FILES")
            prompt_parts.extend(format_file_summary(s) for s in others)

    prompt_parts.append(f"\n# FILE: {file.path} ({file.language})")
    prompt_parts.append(file.content)

    return "\n".join(prompt_parts)


def build_repair_message(diagnostic: str, suggestion: str | None = None) -> str:
    """Build the user segment that asks the oracle to fix a failed candidate."""
    prompt_parts = [
        "# PREVIOUS ATTEMPT FAILED",
        "The compiler rejected your last output with:",
        diagnostic,
    ]
    if suggestion:
        prompt_parts.append(f"\nSuggestion: {suggestion}")
    prompt_parts.append("\nReturn the complete corrected file. Output ONLY code.")
    return "\n".join(prompt_parts)
