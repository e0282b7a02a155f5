# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of stealthgen.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

"""
Delimiter scanning over raw JavaScript text.

Two modes share one interface:

  naive    Counts every delimiter character and searches with plain
           substring lookups. Braces inside strings or comments are counted.
  lexical  Lexes the text once with a small lark grammar (js_tokens.lark) and
           ignores delimiters and search hits that fall inside comments,
           string literals or template literals.
"""

import bisect
import logging
import os
import time
from typing import Dict, List, Optional, Tuple

from lark import Lark

from .config import settings

logger = logging.getLogger("stealthgen.scanner")

GRAMMAR_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "js_tokens.lark")

SCAN_MODES = ("naive", "lexical")
LITERAL_TOKENS = {"BLOCK_COMMENT", "LINE_COMMENT", "STRING", "TEMPLATE"}
DELIMITER_TOKENS = {"LBRACE", "RBRACE", "LPAR", "RPAR"}


def resolve_mode(mode: Optional[str] = None) -> str:
    mode = mode or settings.SCAN_MODE
    if mode not in SCAN_MODES:
        raise ValueError(f"Unknown scan mode: {mode!r} (expected one of {', '.join(SCAN_MODES)})")
    return mode


class JSLexer:
    """Lark basic lexer for js_tokens.lark. Grammars are compiled once per path."""

    _lexers: Dict[str, Lark] = {}

    def __init__(self, grammar_path: str = GRAMMAR_PATH):
        self.grammar_path = grammar_path
        if grammar_path not in self._lexers:
            with open(grammar_path, "r", encoding="utf-8") as f:
                grammar = f.read()
            self._lexers[grammar_path] = Lark(grammar, parser="lalr", lexer="basic")
        self.lexer = self._lexers[grammar_path]

    def tokens(self, text: str) -> list:
        start_time = time.time()
        tokens = list(self.lexer.lex(text))
        dur = (time.time() - start_time) * 1000
        logger.debug(f"Lexed {len(text)} chars into {len(tokens)} tokens in {dur:.2f}ms")
        return tokens


class DelimiterScanner:
    """Finds delimiters and their balanced partners in one source text."""

    def __init__(self, text: str, mode: Optional[str] = None):
        self.text = text
        self.mode = resolve_mode(mode)
        self._delim_pos: List[int] = []
        self._delim_chr: List[str] = []
        self._literal_starts: List[int] = []
        self._literal_spans: List[Tuple[int, int]] = []
        if self.mode == "lexical":
            self._index(JSLexer().tokens(text))

    def _index(self, tokens):
        for tok in tokens:
            if tok.type in DELIMITER_TOKENS:
                self._delim_pos.append(tok.start_pos)
                self._delim_chr.append(tok.value)
            elif tok.type in LITERAL_TOKENS:
                self._literal_starts.append(tok.start_pos)
                self._literal_spans.append((tok.start_pos, tok.end_pos))

    def in_code(self, pos: int) -> bool:
        """True unless ``pos`` lies inside a comment or a string/template literal."""
        if self.mode == "naive":
            return True
        i = bisect.bisect_right(self._literal_starts, pos) - 1
        if i < 0:
            return True
        start, end = self._literal_spans[i]
        return not (start <= pos < end)

    def find(self, char: str, start: int = 0) -> int:
        """Index of the first delimiter ``char`` at or after ``start``, or -1."""
        if self.mode == "naive":
            return self.text.find(char, start)
        i = bisect.bisect_left(self._delim_pos, start)
        while i < len(self._delim_pos):
            if self._delim_chr[i] == char:
                return self._delim_pos[i]
            i += 1
        return -1

    def find_code(self, needle: str, start: int = 0) -> int:
        """Like str.find, skipping hits that begin inside a literal or comment."""
        idx = self.text.find(needle, start)
        while idx != -1 and not self.in_code(idx):
            idx = self.text.find(needle, idx + 1)
        return idx

    def match(self, open_index: int, open_char: str = "{", close_char: str = "}") -> Optional[str]:
        """
        Balanced span starting at ``open_index``, inclusive of both delimiters.

        Returns None when the text ends before the depth returns to zero.
        """
        if open_index < 0 or open_index >= len(self.text) or self.text[open_index] != open_char:
            return None
        if self.mode == "naive":
            return _match_naive(self.text, open_index, open_char, close_char)

        i = bisect.bisect_left(self._delim_pos, open_index)
        if i >= len(self._delim_pos) or self._delim_pos[i] != open_index:
            # The opening delimiter sits inside a literal.
            return None
        depth = 0
        for pos, ch in zip(self._delim_pos[i:], self._delim_chr[i:]):
            if ch == open_char:
                depth += 1
            elif ch == close_char:
                depth -= 1
                if depth == 0:
                    return self.text[open_index:pos + 1]
        return None

    def is_balanced(self, open_char: str, close_char: str) -> bool:
        """Depth never drops below zero and ends at zero."""
        if self.mode == "naive":
            chars = self.text
        else:
            chars = self._delim_chr
        depth = 0
        for ch in chars:
            if ch == open_char:
                depth += 1
            elif ch == close_char:
                depth -= 1
                if depth < 0:
                    return False
        return depth == 0


def _match_naive(text: str, open_index: int, open_char: str, close_char: str) -> Optional[str]:
    depth = 0
    for i in range(open_index, len(text)):
        ch = text[i]
        if ch == open_char:
            depth += 1
        elif ch == close_char:
            depth -= 1
            if depth == 0:
                return text[open_index:i + 1]
    return None


def match_braces(text: str, open_index: int, mode: Optional[str] = None) -> Optional[str]:
    """Balanced ``{...}`` span starting at ``open_index``, or None if unterminated."""
    return DelimiterScanner(text, mode).match(open_index, "{", "}")


def is_balanced(text: str, open_char: str, close_char: str, mode: Optional[str] = None) -> bool:
    return DelimiterScanner(text, mode).is_balanced(open_char, close_char)
