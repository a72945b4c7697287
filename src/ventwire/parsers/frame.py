"""
Frame tokenizer and section splitter.

Telemetry frames are comma-separated ASCII emitted by ventilator firmware:

    *,S,141125,1447,G,12.2,1.0,H,10.6,10.6,20.0,1.0,I,5.0,1.0,1.0,1.0,0.0,1.0,1.0,#

A single uppercase letter opens a section; every token after it, up to the
next letter, belongs to that section. Frames arrive over lossy links, so
nothing here raises: garbled tokens are kept as strings and truncated
sections are simply short.
"""

import logging
import math
import re

from ventwire.constants import FIELD_SEPARATOR, FRAMING_MARKERS
from ventwire.parsers.types import Sections, Token

logger = logging.getLogger(__name__)

# ASCII whitespace only: str.isspace() also accepts \x1c-\x1f, which float() rejects
_DECIMAL_RE = re.compile(
    r"[ \t\n\r\f\v]*[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?[ \t\n\r\f\v]*"
)


def is_section_marker(token: str) -> bool:
    """True if the token is exactly one character in A-Z."""
    return len(token) == 1 and "A" <= token <= "Z"


def parse_token(token: str) -> Token:
    """
    Decode a data token.

    Decimal literals (optional sign, optional fraction, optional exponent)
    become floats. Anything else, including ``nan``/``inf`` spellings and
    literals that overflow, is returned unchanged.
    """
    if not _DECIMAL_RE.fullmatch(token):
        return token

    try:
        value = float(token)
    except ValueError:
        return token
    if not math.isfinite(value):
        return token
    return value


def split_sections(frame: str) -> Sections:
    """
    Split a raw frame into sections keyed by marker letter.

    Args:
        frame: Raw telemetry string, with or without ``*``/``#`` framing

    Returns:
        Insertion-ordered mapping of section letter to decoded tokens. When
        a letter repeats, the last occurrence's tokens replace the earlier
        ones. Tokens before the first marker have no section and are dropped.
    """
    sections: Sections = {}
    current: str | None = None
    tokens: list[Token] = []
    orphaned = 0

    for part in frame.split(FIELD_SEPARATOR):
        if part in FRAMING_MARKERS:
            continue

        if is_section_marker(part):
            if current is not None:
                sections[current] = tokens
            current = part
            tokens = []
        elif current is not None:
            tokens.append(parse_token(part))
        else:
            orphaned += 1

    if current is not None:
        sections[current] = tokens

    if orphaned:
        logger.debug(f"Dropped {orphaned} token(s) preceding the first section marker")

    return sections
