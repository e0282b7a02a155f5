# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of stealthgen.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

"""
Generator settings.

Values come from STEALTHGEN_* environment variables or a local .env file.
Library code reads the module-level ``settings``; the CLI builds its own
instance through ``load_settings`` so it can apply flag overrides and report
validation errors.
"""

import logging
import re
from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .gen_types import ConfigurationError

logger = logging.getLogger("stealthgen.config")

ScanMode = Literal["naive", "lexical"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STEALTHGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Layout
    PROJECT_ROOT: Path = Path(".")
    EVASION_DIR: Path = Path("node_modules/puppeteer-extra-plugin-stealth/evasions")
    OUT_DIR: Path = Path("ext/stealth")
    OUT_JS_NAME: str = "evasions.js"
    OUT_GO_NAME: str = "stealth.go"
    ENTRY_FILE: str = "index.js"
    PRELUDE_DIR: str = "_utils"
    RESERVED_PREFIX: str = "_"

    # Go wrapper
    GO_PACKAGE: str = "stealth"
    GO_VAR: str = "JS"
    REGEN_COMMAND: str = "python -m stealthgen"

    # Extraction
    MARKER: str = Field(default=".evaluateOnNewDocument(", min_length=1)
    SHARED_TOKEN: str = Field(default="withUtils", min_length=1)
    SHARED_IDENT: str = Field(default="utils", min_length=1)
    INIT_STATEMENT: str = "utils.init();"
    EXPORT_PATTERN: str = r"^module\.exports\s*=\s*utils\s*;?\s*$"
    SCAN_MODE: ScanMode = "naive"

    # Runtime
    MAX_WORKERS: int = Field(default=8, ge=1)
    LOG_LEVEL: str = "WARNING"

    @field_validator("EXPORT_PATTERN")
    @classmethod
    def _compiles(cls, value: str) -> str:
        try:
            re.compile(value, re.MULTILINE)
        except re.error as e:
            raise ValueError(f"not a valid regular expression: {e}")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {value}")
        return level

    @model_validator(mode="after")
    def _distinct_outputs(self) -> "Settings":
        if self.OUT_JS_NAME == self.OUT_GO_NAME:
            raise ValueError(f"OUT_JS_NAME and OUT_GO_NAME must differ (both are {self.OUT_JS_NAME!r})")
        return self

    def _resolve(self, path: Path) -> Path:
        return path if path.is_absolute() else self.PROJECT_ROOT / path

    def evasion_path(self) -> Path:
        return self._resolve(self.EVASION_DIR)

    def prelude_path(self) -> Path:
        return self.evasion_path() / self.PRELUDE_DIR / self.ENTRY_FILE

    def out_path(self) -> Path:
        return self._resolve(self.OUT_DIR)

    def js_path(self) -> Path:
        return self.out_path() / self.OUT_JS_NAME

    def go_path(self) -> Path:
        return self.out_path() / self.OUT_GO_NAME


def load_settings(**overrides) -> Settings:
    """Build validated settings; keyword overrides win over env and .env."""
    overrides = {k: v for k, v in overrides.items() if v is not None}
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


try:
    settings = Settings()
except ValidationError as _e:
    # The CLI re-validates through load_settings() and reports the error.
    logger.warning(f"Ignoring invalid STEALTHGEN_* environment: {_e}")
    settings = Settings.model_construct()
