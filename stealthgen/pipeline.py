# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of stealthgen.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

"""
End-to-end generation: load units, extract payloads, assemble, emit.

Per-unit extraction runs on a thread pool. Assembly waits for every unit and
sorts by name, so the output never depends on scheduling or on the order the
filesystem lists directories in.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from .assembler import assemble_script, header_line
from .classifier import needs_shared
from .config import Settings, settings as default_settings
from .emitter import check_artifacts, write_artifacts
from .gen_types import BuildResult, ExtractedPayload, ExtractionError, SourceUnit, UnitSkip
from .sources import load_prelude, load_units, parallel_map
from .splitter import split_or_raise

logger = logging.getLogger("stealthgen.pipeline")


def extract_unit(unit: SourceUnit, cfg: Optional[Settings] = None) -> Union[ExtractedPayload, UnitSkip]:
    """Extract one unit. Extraction misses come back as a UnitSkip."""
    cfg = cfg or default_settings
    try:
        signature = split_or_raise(unit.text, cfg.MARKER, cfg.SCAN_MODE)
        payload = ExtractedPayload.from_signature(
            unit.name,
            signature,
            needs_shared(unit.text, cfg.SHARED_TOKEN),
            cfg.SCAN_MODE,
        )
    except ExtractionError as e:
        skip = UnitSkip(unit.name, e.detail)
        logger.warning(skip.message())
        return skip

    logger.debug(f"Extracted {unit.name}: params={payload.parameters!r}, {payload.convention}")
    return payload


def extract_all(
    units: Iterable[SourceUnit],
    cfg: Optional[Settings] = None,
) -> Tuple[List[ExtractedPayload], List[UnitSkip]]:
    cfg = cfg or default_settings
    outcomes = parallel_map(lambda unit: extract_unit(unit, cfg), units, cfg.MAX_WORKERS)

    payloads = sorted((o for o in outcomes if isinstance(o, ExtractedPayload)), key=lambda p: p.name)
    skipped = sorted((o for o in outcomes if isinstance(o, UnitSkip)), key=lambda s: s.name)
    return payloads, skipped


def build(cfg: Optional[Settings] = None) -> BuildResult:
    """
    Build the script in memory.

    Raises MissingInputError, MissingPreludeError or NoPayloadsError.
    """
    cfg = cfg or default_settings
    units, missing_entry = load_units(cfg)
    for skip in missing_entry:
        logger.warning(skip.message())
    prelude = load_prelude(cfg)

    payloads, missed = extract_all(units, cfg)
    script = assemble_script(
        prelude,
        cfg.INIT_STATEMENT,
        payloads,
        cfg.SHARED_IDENT,
        header_line(cfg.REGEN_COMMAND),
    )
    skipped = sorted(missing_entry + missed, key=lambda s: s.name)
    return BuildResult(script=script, payloads=payloads, skipped=skipped)


def generate(cfg: Optional[Settings] = None) -> Tuple[BuildResult, Tuple[Path, Path]]:
    """Build and write both artifacts. Nothing is written if the build fails."""
    cfg = cfg or default_settings
    result = build(cfg)
    return result, write_artifacts(result.script, cfg)


def check(cfg: Optional[Settings] = None) -> Tuple[BuildResult, List[Path]]:
    """Build and compare against the artifacts on disk."""
    cfg = cfg or default_settings
    result = build(cfg)
    return result, check_artifacts(result.script, cfg)
