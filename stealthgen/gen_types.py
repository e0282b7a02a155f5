# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of stealthgen.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

"""
Core value types and the error taxonomy.

All value types are frozen: a pipeline run builds them once and never
mutates them afterwards.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


# ─── Errors ───────────────────────────────────────────────────────────────────

class StealthGenError(Exception):
    """Base exception for fatal generator errors."""
    exit_code = 1

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(StealthGenError):
    """Settings failed validation."""
    exit_code = 2


class MissingInputError(StealthGenError):
    """The evasion directory of the stealth plugin does not exist."""
    exit_code = 3


class MissingPreludeError(StealthGenError):
    """The shared utils prelude could not be found."""
    exit_code = 4


class NoPayloadsError(StealthGenError):
    """Extraction produced zero payloads across the whole batch."""
    exit_code = 5


class UnreadablePreludeError(StealthGenError):
    """The shared utils prelude exists but cannot be read or decoded."""
    exit_code = 7


class ArtifactWriteError(StealthGenError):
    """Writing one of the output artifacts failed."""
    exit_code = 6

    def __init__(self, path, error: OSError):
        super().__init__(f"Failed to write {path}: {error}")
        self.path = path
        self.error = error


class ExtractionError(Exception):
    """Per-unit extraction miss. Recoverable: the unit is skipped."""

    reason = "could not extract payload"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail or self.reason)
        self.detail = detail or self.reason


class MarkerNotFound(ExtractionError):
    reason = "call marker not found"


class MalformedSignature(ExtractionError):
    reason = "malformed function signature"


class UnterminatedBlock(ExtractionError):
    reason = "unterminated function body"


class InvalidPayload(ExtractionError):
    reason = "extracted payload is not well formed"


# ─── Values ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SourceUnit:
    """One evasion entry file: directory name plus raw text."""
    name: str
    text: str


@dataclass(frozen=True)
class ExtractedSignature:
    parameters: str
    body: str


@dataclass(frozen=True)
class ExtractedPayload:
    name: str
    parameters: str
    body: str
    needs_shared: bool = False
    scan_mode: Optional[str] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        # Imported here to keep gen_types free of import cycles.
        from .scanner import is_balanced

        body = self.body
        if not body or not body.startswith("{") or not body.endswith("}"):
            raise InvalidPayload(f"body of '{self.name}' is not a brace block")
        if not is_balanced(body, "{", "}", self.scan_mode):
            raise InvalidPayload(f"body of '{self.name}' has unbalanced braces")
        if not is_balanced(self.parameters, "(", ")", self.scan_mode):
            raise InvalidPayload(
                f"parameters of '{self.name}' have unbalanced parentheses: {self.parameters!r}"
            )

    @classmethod
    def from_signature(
        cls,
        name: str,
        signature: ExtractedSignature,
        needs_shared: bool,
        scan_mode: Optional[str] = None,
    ) -> "ExtractedPayload":
        return cls(
            name=name,
            parameters=signature.parameters,
            body=signature.body,
            needs_shared=needs_shared,
            scan_mode=scan_mode,
        )

    @property
    def convention(self) -> str:
        return "with utils" if self.needs_shared else "no args"


@dataclass(frozen=True)
class UnitSkip:
    """A unit that yielded no payload, with the reason reported to the user."""
    name: str
    reason: str

    def message(self) -> str:
        return f'could not extract payload from "{self.name}" ({self.reason}), skipping.'


@dataclass(frozen=True)
class AssembledScript:
    text: str
    payload_names: Tuple[str, ...]

    @property
    def size_kb(self) -> float:
        return len(self.text.encode("utf-8")) / 1024

    def __len__(self) -> int:
        return len(self.text)


@dataclass(frozen=True)
class BuildResult:
    """Outcome of one in-memory build, before anything is written."""
    script: AssembledScript
    payloads: List[ExtractedPayload] = field(default_factory=list)
    skipped: List[UnitSkip] = field(default_factory=list)
