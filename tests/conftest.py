"""
conftest.py — Environment isolation and a fake stealth plugin tree.

1. ENV CLEANUP: every STEALTHGEN_* variable is removed before a test and the
   original values restored afterwards, so the host shell cannot leak into
   settings.
2. CWD: tests run inside tmp_path so a developer's .env is never read.
3. PLUGIN TREE: ``plugin_tree`` writes node_modules/puppeteer-extra-plugin-stealth
   under tmp_path and hands back settings pointing at it.
"""
import os
from pathlib import Path

import pytest

from stealthgen.config import load_settings

_ENV_PREFIX = "STEALTHGEN_"


@pytest.fixture(autouse=True)
def _clean_env_vars():
    """Snapshot and restore STEALTHGEN_* environment variables around each test."""
    saved = {k: v for k, v in os.environ.items() if k.startswith(_ENV_PREFIX)}
    for key in saved:
        del os.environ[key]

    yield

    for key in [k for k in os.environ if k.startswith(_ENV_PREFIX)]:
        del os.environ[key]
    os.environ.update(saved)


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


# ─── Sample sources ──────────────────────────────────────────────────────────

UTILS_JS = """\
const utils = {}

utils.init = () => {
  utils.ready = true
}

utils.replaceProperty = (obj, propName, descriptorOverrides = {}) => {
  return Object.defineProperty(obj, propName, {
    ...(Object.getOwnPropertyDescriptor(obj, propName) || {}),
    ...descriptorOverrides
  })
}

module.exports = utils
"""

ARROW_NO_PARAMS_JS = """\
'use strict'

const { PuppeteerExtraPlugin } = require('puppeteer-extra-plugin')

class Plugin extends PuppeteerExtraPlugin {
  get name() {
    return 'stealth/evasions/a'
  }

  async onPageCreated(page) {
    await page.evaluateOnNewDocument(() => {
      if (typeof navigator !== 'undefined' && navigator.webdriver === false) {
        return
      }
      globalThis.ranA = true
    })
  }
}

module.exports = function (pluginConfig) {
  return new Plugin(pluginConfig)
}
"""

FUNCTION_WITH_UTILS_JS = """\
'use strict'

const { PuppeteerExtraPlugin } = require('puppeteer-extra-plugin')
const withUtils = require('../_utils/withUtils')

class Plugin extends PuppeteerExtraPlugin {
  get name() {
    return 'stealth/evasions/b'
  }

  async onPageCreated(page) {
    await withUtils(page).evaluateOnNewDocument(function (utils) {
      globalThis.ranB = utils.ready === true
    })
  }
}

module.exports = function (pluginConfig) {
  return new Plugin(pluginConfig)
}
"""

NO_MARKER_JS = """\
'use strict'

const { PuppeteerExtraPlugin } = require('puppeteer-extra-plugin')

class Plugin extends PuppeteerExtraPlugin {
  get name() {
    return 'stealth/evasions/user-agent-override'
  }

  async onPageCreated(page) {
    await page.setUserAgent('Mozilla/5.0')
  }
}

module.exports = function (pluginConfig) {
  return new Plugin(pluginConfig)
}
"""


class PluginTree:
    """Builds a fake evasion directory under a project root."""

    def __init__(self, root: Path):
        self.root = root
        self.evasion_dir = root / "node_modules" / "puppeteer-extra-plugin-stealth" / "evasions"

    def add_prelude(self, text: str = UTILS_JS) -> "PluginTree":
        return self._write("_utils", text)

    def add_unit(self, name: str, text=None) -> "PluginTree":
        """Add a unit directory; ``text=None`` leaves it without index.js."""
        if text is None:
            (self.evasion_dir / name).mkdir(parents=True, exist_ok=True)
            return self
        return self._write(name, text)

    def _write(self, name: str, text: str) -> "PluginTree":
        unit_dir = self.evasion_dir / name
        unit_dir.mkdir(parents=True, exist_ok=True)
        with open(unit_dir / "index.js", "w", encoding="utf-8", newline="") as f:
            f.write(text)
        return self

    def settings(self, **overrides):
        return load_settings(PROJECT_ROOT=self.root, **overrides)

    @property
    def out_dir(self) -> Path:
        return self.root / "ext" / "stealth"


@pytest.fixture
def plugin_tree(tmp_path):
    """An empty project root; add the prelude and units per test."""
    return PluginTree(tmp_path / "project")


@pytest.fixture
def scenario_tree(plugin_tree):
    """Units a (arrow, no params), b (function + utils), c (no index.js)."""
    return (
        plugin_tree.add_prelude()
        .add_unit("a", ARROW_NO_PARAMS_JS)
        .add_unit("b", FUNCTION_WITH_UTILS_JS)
        .add_unit("c")
    )
