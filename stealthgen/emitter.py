# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of stealthgen.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

"""Writes the assembled script and the Go file that embeds it."""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .config import Settings, settings as default_settings
from .gen_types import ArtifactWriteError, AssembledScript

logger = logging.getLogger("stealthgen.emitter")


def render_descriptor(
    js_name: str,
    package: str = "stealth",
    var: str = "JS",
    command: Optional[str] = None,
) -> str:
    """Go source that exposes ``js_name`` as ``var`` through //go:embed."""
    command = command or default_settings.REGEN_COMMAND
    lines = [
        f"package {package}",
        "",
        'import _ "embed"',
        "",
        f"// {var} is the combined stealth evasion script from puppeteer-extra-plugin-stealth.",
        "// Inject via page.evaluateOnNewDocument to spoof browser fingerprinting.",
        f"// Regenerate: {command}",
        "//",
        f"//go:embed {js_name}",
        f"var {var} string",
        "",
    ]
    return "\n".join(lines)


def expected_artifacts(script: AssembledScript, cfg: Settings) -> Dict[Path, str]:
    """Output path -> exact file content, in write order."""
    return {
        cfg.js_path(): script.text,
        cfg.go_path(): render_descriptor(cfg.OUT_JS_NAME, cfg.GO_PACKAGE, cfg.GO_VAR, cfg.REGEN_COMMAND),
    }


def _write(path: Path, content: str):
    try:
        # newline="" keeps "\n" on every platform so output is byte-stable.
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
    except OSError as e:
        raise ArtifactWriteError(path, e) from e
    logger.info(f"Wrote {path} ({len(content)} chars)")


def write_artifacts(script: AssembledScript, cfg: Optional[Settings] = None) -> Tuple[Path, Path]:
    cfg = cfg or default_settings
    out_dir = cfg.out_path()
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ArtifactWriteError(out_dir, e) from e

    artifacts = expected_artifacts(script, cfg)
    for path, content in artifacts.items():
        _write(path, content)
    js_path, go_path = artifacts
    return js_path, go_path


def check_artifacts(script: AssembledScript, cfg: Optional[Settings] = None) -> List[Path]:
    """Artifacts that are missing or differ from a fresh build. Writes nothing."""
    cfg = cfg or default_settings
    stale = []
    for path, content in expected_artifacts(script, cfg).items():
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                current = f.read()
        except FileNotFoundError:
            logger.info(f"Missing artifact: {path}")
            stale.append(path)
            continue
        if current != content:
            logger.info(f"Stale artifact: {path}")
            stale.append(path)
    return stale
