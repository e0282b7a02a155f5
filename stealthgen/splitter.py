# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of stealthgen.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

"""
Signature splitter: pulls the function literal out of the first
``.evaluateOnNewDocument(...)`` call in an evasion source file.

Two argument shapes are understood:

    .evaluateOnNewDocument(function (a, b) { ... })
    .evaluateOnNewDocument((utils, opts) => { ... })
    .evaluateOnNewDocument(utils => { ... })
"""

import logging
from typing import Optional, Tuple

from .config import settings
from .gen_types import (
    ExtractedSignature,
    ExtractionError,
    MalformedSignature,
    MarkerNotFound,
    UnterminatedBlock,
)
from .scanner import DelimiterScanner

logger = logging.getLogger("stealthgen.splitter")

FUNCTION_KEYWORD = "function"
ARROW = "=>"


def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def _strip_parens(raw: str) -> str:
    # A leading "(" and a trailing ")" are removed independently.
    if raw.startswith("("):
        raw = raw[1:]
    if raw.endswith(")"):
        raw = raw[:-1]
    return raw


def _split_function(scanner: DelimiterScanner, pos: int) -> Tuple[str, int]:
    text = scanner.text
    open_p = scanner.find("(", pos)
    if open_p == -1:
        raise MalformedSignature("function keyword without a parameter list")

    if scanner.mode == "naive":
        close_p = scanner.find(")", open_p + 1)
    else:
        span = scanner.match(open_p, "(", ")")
        close_p = -1 if span is None else open_p + len(span) - 1
    if close_p == -1:
        raise MalformedSignature("unterminated parameter list")

    return text[open_p + 1:close_p], scanner.find("{", close_p + 1)


def _split_arrow(scanner: DelimiterScanner, pos: int) -> Tuple[str, int]:
    arrow = scanner.find_code(ARROW, pos)
    if arrow == -1:
        raise MalformedSignature("argument is neither a function nor an arrow function")
    raw = scanner.text[pos:arrow].strip()
    return _strip_parens(raw), scanner.find("{", arrow + len(ARROW))


def split_or_raise(text: str, marker: Optional[str] = None, mode: Optional[str] = None) -> ExtractedSignature:
    """
    Split the first marker call in ``text`` into parameters and body.

    Raises an ExtractionError subclass describing why nothing was found.
    """
    marker = marker or settings.MARKER
    scanner = DelimiterScanner(text, mode)

    idx = scanner.find_code(marker)
    if idx == -1:
        raise MarkerNotFound()
    pos = _skip_whitespace(text, idx + len(marker))

    if text.startswith(FUNCTION_KEYWORD, pos):
        params, body_start = _split_function(scanner, pos)
    else:
        params, body_start = _split_arrow(scanner, pos)

    if body_start == -1:
        raise MalformedSignature("no '{' after the parameter list")
    body = scanner.match(body_start)
    if body is None:
        raise UnterminatedBlock()

    return ExtractedSignature(parameters=params.strip(), body=body)


def split(text: str, marker: Optional[str] = None, mode: Optional[str] = None) -> Optional[ExtractedSignature]:
    """Like split_or_raise, but returns None when no payload can be extracted."""
    try:
        return split_or_raise(text, marker, mode)
    except ExtractionError as e:
        logger.debug(f"No signature: {e.detail}")
        return None
