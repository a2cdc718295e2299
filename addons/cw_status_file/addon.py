"""
cw_status_file
• Writes the current chain status line ("Chain: 42 (2m 5s)") to a text file
  so tray widgets / stream overlays can pick it up
• status_path is read from addon_config.json (relative to this folder)
"""

import json, logging
from pathlib import Path

ADDON_NAME = "cw_status_file"

def _cfg(folder):
    f = Path(folder)/"addon_config.json"
    return json.loads(f.read_text(encoding="utf-8")) if f.exists() else {}

class StatusFile:
    def __init__(self, path):
        self.path = Path(path)
        self.last = None

    def __call__(self, text):
        if text == self.last:
            return
        self.path.write_text(text + "\n", encoding="utf-8")
        self.last = text

def register(watcher, folder):
    cfg  = _cfg(folder)
    path = Path(folder) / cfg.get("status_path", "chain_status.txt")
    watcher.add_status_sink(StatusFile(path))
    logging.info("[%s] writing status to %s", ADDON_NAME, path)
