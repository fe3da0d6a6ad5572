"""Comment- and whitespace-insensitive normalisation of region bodies."""

import re

_LINE_COMMENT_RE = re.compile(r"//.*$", re.MULTILINE)
_BLOCK_COMMENT_RE = re.compile(r"/\*[\s\S]*?\*/")


def canonicalize(text: str) -> str:
    """
    Normalise ``text`` for comparison.

    Removes ``//`` comments, ``/* */`` comments, leading/trailing whitespace of
    every line, and lines left empty. Two bodies that differ only in comments
    or formatting canonicalise to the same string.
    """
    text = _LINE_COMMENT_RE.sub("", text)
    text = _BLOCK_COMMENT_RE.sub("", text)
    lines = (line.strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def canonical_lines(text: str) -> list[str]:
    canonical = canonicalize(text)
    return canonical.split("\n") if canonical else []
