"""
addon_loader.py
Scans /addons/, imports every cw_* add-on safely,
returns (mods, dirs)
Each add-on can optionally define:
  • register(watcher, folder)  – add status / alert sinks
  • start(watcher, folder) -> coroutine
"""

from __future__ import annotations
import importlib.util
import logging
from pathlib import Path

PREFIX = "cw_"

log = logging.getLogger(__name__)


def discover(addons_dir: Path):
    mods = []
    dirs = []

    addons_dir = Path(addons_dir)
    if not addons_dir.is_dir():
        return mods, dirs

    for folder in sorted(addons_dir.iterdir()):
        if not folder.name.startswith(PREFIX):
            continue
        addon_py = folder / "addon.py"
        if not addon_py.exists():
            continue
        try:
            spec = importlib.util.spec_from_file_location(folder.name, addon_py)
            mod  = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(mod)
            mods.append(mod); dirs.append(folder)
        except Exception as e:
            log.error("[Addon load error] %s: %s", folder.name, e)

    return mods, dirs
