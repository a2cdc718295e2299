"""
cw_discord_alert
• Forwards "CHAIN EXPIRING!" alerts to a Discord webhook
• webhook_url is read from addon_config.json in this folder
"""

import json, asyncio, logging
from pathlib import Path
import httpx

ADDON_NAME = "cw_discord_alert"

# ── helper readers ----------------------------------------------------------
def _cfg(folder):
    f = Path(folder)/"addon_config.json"
    return json.loads(f.read_text(encoding="utf-8")) if f.exists() else {}

def _content(title, body):
    return f"**{title}**\n{body}"

async def post_alert(url, title, body, client=None):
    own = client is None
    cli = client or httpx.AsyncClient(timeout=10)
    try:
        r = await cli.post(url, json={"content": _content(title, body)})
        r.raise_for_status()
        return r.status_code
    finally:
        if own:
            await cli.aclose()

# ── main register() ---------------------------------------------------------
def register(watcher, folder):
    cfg = _cfg(folder)
    url = (cfg.get("webhook_url") or "").strip()
    if not url:
        logging.info("[%s] no webhook_url configured, alerts stay local", ADDON_NAME)
        return

    def on_alert(title, body):
        async def _send():
            try:
                await post_alert(url, title, body)
            except httpx.HTTPError as e:
                logging.error("[%s] webhook post failed: %s", ADDON_NAME, e)
        watcher.scheduler.spawn(_send())

    watcher.add_alert_sink(on_alert)
