"""
Best-effort parsing of mission step parameters
"""

import math
import re
from typing import List, Optional

# Leading decimal number, optionally signed, with optional exponent
_FLOAT_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INFINITY = re.compile(r"^[+-]?Infinity")


def parse_float(token: Optional[str]) -> float:
    """
    Parse the leading number of a token

    Trailing garbage is ignored ("1.5m" -> 1.5). Missing or non-numeric
    tokens give nan rather than raising.
    """
    if token is None:
        return math.nan

    token = token.strip()
    match = _FLOAT_PREFIX.match(token)
    if match:
        return float(match.group(0))

    match = _INFINITY.match(token)
    if match:
        return float(match.group(0))

    return math.nan


def split_fields(parameters: str, count: int) -> List[Optional[str]]:
    """
    Split a parameter string on whitespace into exactly count fields

    Missing fields are None, extra fields are dropped.
    """
    tokens: List[Optional[str]] = list(parameters.split())[:count]
    tokens.extend([None] * (count - len(tokens)))
    return tokens


def parse_coordinates(parameters: str, count: int = 2) -> List[float]:
    """Parse count whitespace-separated numbers, nan where malformed"""
    return [parse_float(token) for token in split_fields(parameters, count)]
