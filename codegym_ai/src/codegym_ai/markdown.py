"""
Markdown Normalization

Model markdown is not guaranteed to be well formed. These helpers clean it up
before it reaches a renderer: unterminated code fences are closed, placeholder
"Code Block" labels are dropped, blank-line runs are collapsed, and a code
skeleton embedded in a problem statement can be pulled out into its own field.
"""

import re
from typing import Optional, Tuple

FENCE = "```"

_PLACEHOLDER_LINE = re.compile(r"^\s*(?:\*\*)?code block:?(?:\*\*)?:?\s*$", re.IGNORECASE)
_BLANK_RUN = re.compile(r"\n{3,}")
_SKELETON_SECTION = re.compile(
    r"\*\*\s*CODE SKELETON\s*:?\s*\*\*\s*:?\s*\n+```[^\n]*\n(?P<body>.*?)\n```[ \t]*\n?",
    re.IGNORECASE | re.DOTALL,
)
_EMPHASIS = re.compile(r"(\*\*|__)(?=\S)(.+?)(?<=\S)\1|(?<![\*\w])\*(?=\S)([^*\n]+?)(?<=\S)\*(?!\*)")


def normalize_markdown(text: Optional[str]) -> str:
    """
    Normalize model markdown so it renders without broken nesting.

    Args:
        text: Raw markdown from the model (None is treated as empty)

    Returns:
        Cleaned markdown
    """
    if not text:
        return ""

    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [line.rstrip() for line in text.split("\n")]
    lines = [line for line in lines if not _PLACEHOLDER_LINE.match(line)]
    text = "\n".join(lines)

    # An odd number of fences means the last block never closed
    if text.count(FENCE) % 2 == 1:
        text = text.rstrip("\n") + "\n" + FENCE

    text = _BLANK_RUN.sub("\n\n", text)
    return text.strip()


def extract_code_skeleton(statement: str) -> Tuple[str, str]:
    """
    Split a "**CODE SKELETON:**" fenced section out of a problem statement.

    Returns:
        (statement without the section, skeleton code). The skeleton is empty
        when the statement has no such section.
    """
    match = _SKELETON_SECTION.search(statement)
    if not match:
        return statement, ""
    skeleton = match.group("body").strip("\n")
    remaining = (statement[:match.start()] + statement[match.end():]).strip()
    return remaining, skeleton


def strip_emphasis(text: str) -> str:
    """Remove bold/italic markers, keeping the emphasized words."""
    def _keep(match):
        return match.group(2) if match.group(2) is not None else match.group(3)
    return _EMPHASIS.sub(_keep, text)


def strip_code_fence(code: Optional[str]) -> str:
    """Unwrap code that the model returned inside a single ``` fence."""
    if not code:
        return ""
    stripped = code.strip("\n")
    lines = stripped.split("\n")
    if len(lines) >= 2 and lines[0].strip().startswith(FENCE) and lines[-1].strip() == FENCE:
        return "\n".join(lines[1:-1])
    return stripped
