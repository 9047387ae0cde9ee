"""
Classification of scenario lines into executable steps.
"""

import re
from typing import Iterator, List, Optional

from autonomate.core.types import ClassifiedStep, StepKind
from autonomate.security.secrets import SecretStore

STRUCTURAL_PREFIXES = (
    "feature:",
    "scenario:",
    "scenario outline:",
    "background:",
    "examples:",
    "rule:",
)

ASSERTION_KEYWORD = "then"
ASSERTION_MARKERS = (" is displayed", " is visible")

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def is_structural_line(line: str) -> bool:
    """True for blank lines, comments and Gherkin structure keywords."""
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return True
    return stripped.lower().startswith(STRUCTURAL_PREFIXES)


def classify_step(text: str) -> StepKind:
    """Return VERIFICATION for ``Then`` lines or state assertions, ACTION otherwise."""
    lowered = text.strip().lower()
    if lowered.startswith(ASSERTION_KEYWORD) and (
        len(lowered) == len(ASSERTION_KEYWORD)
        or not lowered[len(ASSERTION_KEYWORD)].isalnum()
    ):
        return StepKind.VERIFICATION
    if any(marker in lowered for marker in ASSERTION_MARKERS):
        return StepKind.VERIFICATION
    return StepKind.ACTION


def iter_steps(
    script: Optional[str], secrets: Optional[SecretStore] = None
) -> Iterator[ClassifiedStep]:
    """
    Yield executable steps of ``script`` lazily, in order.

    Known secret values in each step are replaced by their placeholders
    before the step is yielded.
    """
    if not script:
        return

    number = 0
    for line_number, line in enumerate(_LINE_BREAK.split(script), start=1):
        if is_structural_line(line):
            continue
        number += 1
        text = line.strip()
        if secrets is not None:
            text = secrets.mask_literals(text)
        yield ClassifiedStep(
            number=number,
            line_number=line_number,
            text=text,
            kind=classify_step(text),
        )


def classify(script: Optional[str], secrets: Optional[SecretStore] = None) -> List[ClassifiedStep]:
    """Return every executable step of ``script``."""
    return list(iter_steps(script, secrets))
