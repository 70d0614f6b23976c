"""
Brace-block helpers for the static checks over generated Swift.
"""

from collections.abc import Iterator


def block_body(text: str, open_index: int) -> str:
    """Text between the brace at open_index and its matching close (or end of text)."""
    depth = 0
    for index in range(open_index, len(text)):
        char = text[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[open_index + 1 : index]
    return text[open_index + 1 :]


def top_level_lines(body: str) -> Iterator[str]:
    """Lines of a block body that start outside any nested braces."""
    depth = 0
    for line in body.splitlines():
        if depth == 0:
            yield line
        depth += line.count("{") - line.count("}")
        depth = max(depth, 0)
