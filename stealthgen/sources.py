# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of stealthgen.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

"""
Reading the stealth plugin's evasion tree.

    evasions/
      _utils/index.js          shared prelude (reserved prefix, never a unit)
      chrome.app/index.js      one unit per directory
      navigator.webdriver/index.js
      ...
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar, Union

from .config import Settings, settings as default_settings
from .gen_types import MissingInputError, MissingPreludeError, SourceUnit, UnitSkip, UnreadablePreludeError

logger = logging.getLogger("stealthgen.sources")

T = TypeVar("T")
R = TypeVar("R")


def parallel_map(fn: Callable[[T], R], items: Iterable[T], max_workers: int = 1) -> List[R]:
    """Map ``fn`` over ``items`` on a thread pool, keeping input order."""
    items = list(items)
    if max_workers <= 1 or len(items) <= 1:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=min(max_workers, len(items))) as executor:
        return list(executor.map(fn, items))


def read_file(path: Path) -> str:
    # newline="" hands back the file's text exactly as stored.
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def require_input(cfg: Optional[Settings] = None) -> Path:
    cfg = cfg or default_settings
    evasion_dir = cfg.evasion_path()
    if not evasion_dir.is_dir():
        raise MissingInputError(
            f"puppeteer-extra-plugin-stealth not found at {evasion_dir}.\n"
            "Run:   npm install puppeteer-extra-plugin-stealth"
        )
    return evasion_dir


def discover_units(evasion_dir: Path, reserved_prefix: str = "_") -> List[str]:
    """Names of candidate unit directories, sorted."""
    return sorted(
        p.name for p in evasion_dir.iterdir()
        if p.is_dir() and not p.name.startswith(reserved_prefix)
    )


def strip_exports(text: str, pattern: Optional[str] = None) -> str:
    """Drop the first CommonJS export line so the prelude can be inlined."""
    pattern = pattern or default_settings.EXPORT_PATTERN
    return re.sub(pattern, "", text, count=1, flags=re.MULTILINE).rstrip()


def load_prelude(cfg: Optional[Settings] = None) -> str:
    cfg = cfg or default_settings
    path = cfg.prelude_path()
    if not path.is_file():
        raise MissingPreludeError(f"Shared utils prelude not found at {path}.")
    try:
        text = read_file(path)
    except (OSError, UnicodeDecodeError) as e:
        raise UnreadablePreludeError(f"Shared utils prelude at {path} could not be read: {e}") from e
    prelude = strip_exports(text, cfg.EXPORT_PATTERN)
    logger.debug(f"Loaded prelude from {path} ({len(prelude)} chars)")
    return prelude


def load_units(cfg: Optional[Settings] = None) -> Tuple[List[SourceUnit], List[UnitSkip]]:
    """
    Read every unit's entry file.

    A directory without a readable entry file is reported as a skip, not an error.
    """
    cfg = cfg or default_settings
    evasion_dir = require_input(cfg)
    names = discover_units(evasion_dir, cfg.RESERVED_PREFIX)

    def _load(name: str) -> Union[SourceUnit, UnitSkip]:
        path = evasion_dir / name / cfg.ENTRY_FILE
        if not path.is_file():
            return UnitSkip(name, f"no {cfg.ENTRY_FILE}")
        try:
            return SourceUnit(name, read_file(path))
        except (OSError, UnicodeDecodeError) as e:
            return UnitSkip(name, f"unreadable {cfg.ENTRY_FILE}: {e}")

    units: List[SourceUnit] = []
    skipped: List[UnitSkip] = []
    for outcome in parallel_map(_load, names, cfg.MAX_WORKERS):
        if isinstance(outcome, UnitSkip):
            skipped.append(outcome)
        else:
            units.append(outcome)
    logger.debug(f"Loaded {len(units)} units from {evasion_dir}, skipped {len(skipped)}")
    return units, skipped
