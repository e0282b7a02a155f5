# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of stealthgen.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

"""
Amalgamation of extracted payloads into one self-invoking script.

Layout of the generated script:

    // AUTO-GENERATED ...
    (function () {

    <utils prelude>

    utils.init();

      // ── Evasion: <name>
      try {
        ((<params>) => { ... })(utils);
      } catch (e) { console.warn('[stealth] <name>:', e.message); }

      ...

    })();
"""

import logging
from typing import Iterable, List, Optional

from .config import settings
from .gen_types import AssembledScript, ExtractedPayload, NoPayloadsError

logger = logging.getLogger("stealthgen.assembler")

HEADER_TEMPLATE = "// AUTO-GENERATED — do not edit. Run: {command}"
OPEN_WRAPPER = "(function () {"
CLOSE_WRAPPER = "})();"


def header_line(command: Optional[str] = None) -> str:
    return HEADER_TEMPLATE.format(command=command or settings.REGEN_COMMAND)


# JS line terminators end both a // comment and a quoted string literal.
_LINE_TERMINATORS = {
    "\n": "\\n",
    "\r": "\\r",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _one_line(value: str) -> str:
    for raw, escaped in _LINE_TERMINATORS.items():
        value = value.replace(raw, escaped)
    return value


def _js_single_quoted(value: str) -> str:
    return _one_line(value.replace("\\", "\\\\").replace("'", "\\'"))


def wrap_payload(payload: ExtractedPayload, shared_ident: Optional[str] = None) -> str:
    """One try/catch guarded, immediately invoked block for a payload."""
    args = (shared_ident or settings.SHARED_IDENT) if payload.needs_shared else ""
    fn_literal = f"({payload.parameters}) => {payload.body}"
    call = f"({fn_literal})({args});"
    label = _js_single_quoted(payload.name)
    return (
        f"  // ── Evasion: {_one_line(payload.name)}\n"
        f"  try {{\n    {call}\n  }} catch (e) {{ console.warn('[stealth] {label}:', e.message); }}"
    )


def _sections(prelude: str, init_statement: str, blocks: List[str], header: str) -> List[str]:
    # Prelude and init always precede the first payload.
    return [
        header,
        OPEN_WRAPPER,
        "",
        prelude,
        "",
        init_statement,
        "",
        "\n\n".join(blocks),
        "",
        CLOSE_WRAPPER,
    ]


def assemble(
    prelude: str,
    init_statement: str,
    payloads: Iterable[ExtractedPayload],
    shared_ident: Optional[str] = None,
    header: Optional[str] = None,
) -> str:
    """
    Concatenate prelude, init statement and the payload blocks sorted by name.

    Raises NoPayloadsError for an empty payload sequence.
    """
    ordered = sorted(payloads, key=lambda p: p.name)
    if not ordered:
        raise NoPayloadsError("No evasion payloads extracted. Check the plugin source.")

    blocks = [wrap_payload(p, shared_ident) for p in ordered]
    script = "\n".join(_sections(prelude, init_statement, blocks, header or header_line()))
    logger.debug(f"Assembled {len(blocks)} payload blocks into {len(script)} chars")
    return script


def assemble_script(
    prelude: str,
    init_statement: str,
    payloads: Iterable[ExtractedPayload],
    shared_ident: Optional[str] = None,
    header: Optional[str] = None,
) -> AssembledScript:
    ordered = sorted(payloads, key=lambda p: p.name)
    text = assemble(prelude, init_statement, ordered, shared_ident, header)
    return AssembledScript(text=text, payload_names=tuple(p.name for p in ordered))
