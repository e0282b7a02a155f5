"""
stealthgen: bundles puppeteer-extra-plugin-stealth evasions into one script.

Layout:
  - gen_types.py   → SourceUnit, ExtractedPayload, AssembledScript, errors
  - scanner.py     → brace matching (naive or lark-lexed)
  - splitter.py    → .evaluateOnNewDocument(...) argument splitting
  - classifier.py  → does an evasion take the shared utils object
  - assembler.py   → guarded per-evasion blocks + prelude → one IIFE
  - emitter.py     → evasions.js and the go:embed wrapper
  - pipeline.py    → load, extract, assemble, emit
"""

from .gen_types import (
    AssembledScript,
    BuildResult,
    ExtractedPayload,
    ExtractedSignature,
    ExtractionError,
    SourceUnit,
    StealthGenError,
    UnitSkip,
)
from .scanner import match_braces
from .splitter import split
from .classifier import needs_shared
from .assembler import assemble

__version__ = "0.1.0"
