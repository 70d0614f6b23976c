"""
File Classifier.

Hybrid name/content scoring that decides whether a file should be converted
in the sequential lane (it likely depends on, or defines, identifiers other
files use) or in the parallel lane (self-contained).
"""

from codeport.config.models import ClassificationResult, SourceFile
from codeport.rules import (
    CLASSIFIER_CONTENT_KEYWORDS,
    CLASSIFIER_PATH_KEYWORDS,
    CONTENT_KEYWORD_WEIGHT,
    DEFAULT_SEQUENTIAL_THRESHOLD,
    PATH_KEYWORD_WEIGHT,
)


def score_file(file: SourceFile) -> int:
    """Score a file: +2 per path keyword, +1 per content keyword (case-insensitive)."""
    name = file.path.lower()
    content = file.content.lower()

    score = sum(PATH_KEYWORD_WEIGHT for keyword in CLASSIFIER_PATH_KEYWORDS if keyword in name)
    score += sum(CONTENT_KEYWORD_WEIGHT for keyword in CLASSIFIER_CONTENT_KEYWORDS if keyword in content)
    return score


def classify_files(
    files: list[SourceFile], threshold: int = DEFAULT_SEQUENTIAL_THRESHOLD
) -> ClassificationResult:
    """
    Partition files into the sequential and parallel lanes.

    Every file lands in exactly one partition and input order is preserved
    within each.

    Args:
        files: All source files of the run
        threshold: Minimum score for the sequential lane

    Returns:
        ClassificationResult with per-path scores
    """
    result = ClassificationResult()

    for file in files:
        score = score_file(file)
        result.scores[file.path] = score
        if score >= threshold:
            result.sequential.append(file)
        else:
            result.parallel.append(file)

    return result
