"""
Parsing of strategy tags.

Strategies are persisted by a short tag: an upper-case variant name,
optionally followed by a parenthesised, comma separated parameter list,
e.g. "SIGMOID()", "ELU(0.5)" or "MEDIAN(12.5,40)".
"""

import re
from typing import List, Tuple

from neuralnet.errors import UnresolvableFunctionError

_TAG_PATTERN = re.compile(r"^\s*([A-Z][A-Z_]*)\s*(?:\((.*)\))?\s*$")


def parse_tag(tag: str, kind: str) -> Tuple[str, List[str]]:
    """
    Split a tag into its variant name and raw parameter strings.

    Args:
        tag: Tag string such as "ELU(0.5)"
        kind: Human readable strategy kind, used in error messages

    Returns:
        Tuple of (name, parameters). "RELU" and "RELU()" both yield
        ("RELU", []).

    Raises:
        UnresolvableFunctionError: If the tag is not well formed
    """
    if not isinstance(tag, str):
        raise UnresolvableFunctionError(f"{kind} tag must be a string, got {tag!r}")

    match = _TAG_PATTERN.match(tag)
    if match is None:
        raise UnresolvableFunctionError(f"{kind} couldn't be resolved from {tag!r}")

    name, raw_parameters = match.group(1), match.group(2)
    if raw_parameters is None or not raw_parameters.strip():
        return name, []

    return name, [part.strip() for part in raw_parameters.split(",")]


def parse_float(value: str, tag: str, kind: str) -> float:
    """Parse a numeric tag parameter, raising UnresolvableFunctionError on failure."""
    try:
        return float(value)
    except ValueError:
        raise UnresolvableFunctionError(
            f"Could not parse {kind} parameter {value!r} in {tag!r} as a number"
        ) from None
