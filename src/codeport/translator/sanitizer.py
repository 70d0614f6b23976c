"""
Oracle output sanitizer.

Reduces untrusted model output to a code-only payload. Steps run in a fixed
order and are pure; an empty return value means no code anchor was found.
"""

from codeport.rules import (
    CODE_ANCHORS,
    CODE_TAIL_LINES,
    FENCE,
    REQUIRED_IMPORTS,
    RESIDUAL_RULES,
    TRIVIAL_TAIL_LENGTH,
)


def strip_fences(text: str) -> str:
    """Remove markdown fence delimiters and their language tags, keeping the inner text."""
    return FENCE.sub("", text)


def find_code_start(text: str) -> int:
    """Index of the earliest start-of-code anchor, or -1 if there is none."""
    first_index = -1
    for rule in CODE_ANCHORS:
        match = rule.pattern.search(text)
        if match and (first_index == -1 or match.start() < first_index):
            first_index = match.start()
    return first_index


def _looks_like_code(tail: str) -> bool:
    rules = (*CODE_ANCHORS, *CODE_TAIL_LINES)
    return any(rule.pattern.search(tail) for rule in rules)


def drop_epilogue(text: str) -> str:
    """Drop conversational text after the last closing brace."""
    last_brace = text.rfind("}")
    if last_brace == -1:
        return text

    tail = text[last_brace + 1 :].strip()
    if len(tail) > TRIVIAL_TAIL_LENGTH and not _looks_like_code(tail):
        return text[: last_brace + 1]
    return text


def strip_residuals(text: str) -> str:
    """Remove source-language package lines and residual keywords."""
    for rule in RESIDUAL_RULES:
        text = rule.pattern.sub(rule.replacement, text)

    for marker, import_line in REQUIRED_IMPORTS:
        if marker in text and import_line not in text:
            text = f"{import_line}\n{text}"

    return text


def sanitize(raw: str | None) -> str:
    """
    Reduce raw oracle output to candidate code.

    Args:
        raw: Text returned by the transformation oracle

    Returns:
        Trimmed code, or "" when no start-of-code anchor exists
    """
    if not raw:
        return ""

    text = strip_fences(raw)

    start = find_code_start(text)
    if start == -1:
        return ""
    text = text[start:]

    text = drop_epilogue(text)
    text = strip_residuals(text)

    return text.strip()
