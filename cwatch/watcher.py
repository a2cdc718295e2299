# watcher.py

from __future__ import annotations

import sys
import math
import time
import signal
import asyncio
import logging
import datetime
import threading
import webbrowser
from pathlib import Path

from .addon_loader import discover
from .chain import ChainPoller, ChainState
from .config import ADDONS, LOG_DIR, ROOT, load_cfg
from .countdown import CountdownClock
from .credentials import require_api_key
from .display import ConsoleDisplay
from .errors import ApiError, ConfigError, NetworkError
from .notifier import WarningNotifier
from .rate_gate import RateGate
from .scheduler import AsyncioScheduler
from .targets import CandidatePool, TargetSampler, open_profile, profile_url
from .torn_api import TornClient

log = logging.getLogger(__name__)


# ── LOGGER ───────────────────────────────────────────────────────
def setup_logging(log_dir: Path = LOG_DIR, level=logging.INFO):
    log_dir.mkdir(exist_ok=True)
    logfile = log_dir / f"watcher_{datetime.date.today()}.txt"
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(logfile, encoding="utf-8"),
            logging.StreamHandler()
        ]
    )
    logging.info("------------- chain watcher starting -------------")


def format_status(count: int, remaining: int) -> str:
    minutes, seconds = divmod(remaining, 60)
    return f"Chain: {count} ({minutes}m {seconds}s)"


class ChainWatcher:
    """
    Wires poller, countdown, sampler, notifier and rate gate together.
    All state is owned here and only touched from the event loop.
    """

    def __init__(self, cfg: dict, api_key: str, pool: CandidatePool | None = None, *,
                 scheduler=None, display=None, clock=time.time, http_client=None,
                 rng=None, sleep=asyncio.sleep, opener=webbrowser.open):
        self.cfg = cfg
        self.clock = clock
        self.opener = opener
        self.scheduler = scheduler or AsyncioScheduler()
        self.display = display or ConsoleDisplay()

        self.status_sinks: list = []
        self.alert_sinks: list = [self._console_alert]
        self.cmds: dict[str, tuple] = {}
        self.pending_tasks: list = []
        self._timers: list = []
        self._sampling = None
        self._next_poll: float | None = None
        self._stop_event: asyncio.Event | None = None

        self.gate = RateGate(
            self.scheduler,
            limit=cfg["api_call_limit"],
            window=cfg["rate_limit_window"],
            clock=clock,
            on_count=self.display.show_api_calls,
            on_pause_tick=self.display.show_pause,
        )
        self.api = TornClient(api_key, self.gate, cfg["api_base"], client=http_client)
        self.poller = ChainPoller(self.api, self.gate, cfg["faction_id"])
        self.sampler = TargetSampler(
            pool or CandidatePool(), self.api, self.gate, rng=rng,
            request_delay=cfg["api_request_delay"], clock=clock, sleep=sleep,
        )
        self.notifier = WarningNotifier(
            self.display, self._alert, cooldown=cfg["notification_cooldown"], clock=clock,
        )
        self.countdown = CountdownClock(
            self.scheduler,
            clock=clock,
            threshold=cfg["warning_threshold"],
            on_tick=self._on_tick,
            on_stopped=self._on_stopped,
            on_warning_enter=self._on_warning_enter,
            on_warning=self._on_warning,
            on_warning_leave=self._on_warning_leave,
        )
        self._register_core_commands()

    # ── setup ───────────────────────────────────────────────────
    def load_pool(self, path: Path) -> CandidatePool:
        try:
            self.sampler.pool = CandidatePool.load(path)
        except ConfigError as e:
            log.error("Error loading targets: %s", e)
            self.display.show_error("Failed to load target database")
        return self.sampler.pool

    def add_status_sink(self, fn):
        self.status_sinks.append(fn)

    def add_alert_sink(self, fn):
        self.alert_sinks.append(fn)

    def register_addons(self, mods, dirs):
        for mod, folder in zip(mods, dirs):
            if hasattr(mod, "register"):
                try:
                    mod.register(self, folder)
                except Exception as e:
                    log.error("[%s] register %s", mod.__name__, e)
            if hasattr(mod, "start"):
                try:
                    coro = mod.start(self, folder)
                    if asyncio.iscoroutine(coro):
                        self.pending_tasks.append(coro)
                except Exception as e:
                    log.error("[%s] start %s", mod.__name__, e)

    # ── sinks ───────────────────────────────────────────────────
    def publish_status(self, text: str):
        for sink in self.status_sinks:
            try:
                sink(text)
            except Exception as e:
                log.error("status sink %r failed: %s", sink, e)

    def _alert(self, title: str, body: str):
        for sink in self.alert_sinks:
            try:
                sink(title, body)
            except Exception as e:
                log.error("alert sink %r failed: %s", sink, e)

    def _console_alert(self, title: str, body: str):
        self.display.stream.write("\a")
        log.warning("%s %s", title, body)

    # ── countdown callbacks ─────────────────────────────────────
    def _on_tick(self, count: int, remaining: int):
        self.display.show_chain(count, remaining)
        self.publish_status(format_status(count, remaining))

    def _on_stopped(self):
        self.display.show_no_chain("No active chain")
        self.display.hide_targets()
        self.publish_status("No active chain")

    def _on_warning_enter(self):
        # a run left over from before the episode must not share its SeenSet
        if self._sampling is not None and not self._sampling.done():
            log.info("Cancelling target fetch started before the warning")
            self._sampling.cancel()
        self._sampling = None
        self.sampler.reset_seen()
        self.pull_targets()

    def _on_warning(self, _remaining: int):
        self.notifier.raise_warning()

    def _on_warning_leave(self):
        self.notifier.clear()
        self.display.hide_targets()

    # ── operations ──────────────────────────────────────────────
    async def refresh(self) -> ChainState | None:
        """One poll; errors are shown inline and never stop the timers."""
        try:
            state = await self.poller.poll()
        except (NetworkError, ApiError) as e:
            log.error("Error fetching chain data: %s", e)
            self.display.show_error(str(e))
            return None
        if state is not None:
            self.countdown.update(state)
        return state

    def pull_targets(self):
        if self._sampling is not None and not self._sampling.done():
            log.info("Target fetch already running")
            return self._sampling
        self._sampling = self.scheduler.spawn(self.fetch_targets())
        return self._sampling

    async def fetch_targets(self):
        log.info("Fetching available targets...")
        self.display.show_targets_loading()
        try:
            targets = await self.sampler.sample(
                self.cfg["target_fetch_count"], self.cfg["max_target_attempts"]
            )
        except Exception as e:
            log.exception("Error fetching targets")
            self.display.show_targets_error(str(e))
            return []
        self.display.show_targets(targets)
        return targets

    def open_target(self, n: int) -> bool:
        targets = self.display.targets
        if not 1 <= n <= len(targets):
            self.display.show_error(f"No target #{n}")
            return False
        return open_profile(profile_url(targets[n - 1].id, self.cfg["profile_url"]), self.opener)

    # ── timers ──────────────────────────────────────────────────
    def _poll_tick(self):
        self._next_poll = self.clock() + self.cfg["refresh_interval"]
        if self.gate.is_paused():
            return None
        return self.refresh()

    def _refresh_countdown_tick(self):
        left = math.ceil(self._next_poll - self.clock()) if self._next_poll is not None else 0
        self.display.show_refresh_countdown(max(left, 0))

    def start(self):
        interval = self.cfg["refresh_interval"]
        self._next_poll = self.clock() + interval
        self._timers = [
            self.scheduler.schedule(interval, self._poll_tick),
            self.scheduler.schedule(1, self._refresh_countdown_tick),
        ]
        self.scheduler.spawn(self.refresh())
        for coro in self.pending_tasks:
            self.scheduler.spawn(coro)
        self.pending_tasks = []

    async def shutdown(self):
        log.info("Cleaning up resources...")
        for t in self._timers:
            t.cancel()
        self._timers = []
        self.gate.cancel()
        self.scheduler.cancel_all()
        await self.api.aclose()

    # ── console commands ────────────────────────────────────────
    def register(self, name, func, help_text):
        self.cmds[name.lower()] = (func, help_text)

    def _register_core_commands(self):
        self.register("refresh", self.cmd_refresh, "poll the chain now")
        self.register("next", self.cmd_next, "pull next targets")
        self.register("open", self.cmd_open, "open <n>: open target profile")
        self.register("status", self.cmd_status, "show the status line")
        self.register("help", self.cmd_help, "list commands")
        self.register("quit", self.cmd_quit, "stop the watcher")

    async def handle_command(self, line: str):
        if not line.strip():
            return
        cmd, *args = line.split()
        if (entry := self.cmds.get(cmd.lower())):
            func, _ = entry
            try:
                await func(args)
            except Exception as e:
                self.display.show_error(str(e))
        else:
            self.display.show_error(f"Unknown command '{cmd}', try 'help'")

    async def cmd_refresh(self, _):
        log.info("Manual refresh triggered")
        await self.refresh()

    async def cmd_next(self, _):
        log.info("Pull next targets triggered")
        # the run may be cancelled by a warning episode starting
        await asyncio.wait({self.pull_targets()})

    async def cmd_open(self, args):
        if not args or not args[0].isdigit():
            self.display.show_error("Usage: open <n>")
            return
        self.open_target(int(args[0]))

    async def cmd_status(self, _):
        self.display.say(self.display.status_line())

    async def cmd_help(self, _):
        for name, (_, text) in sorted(self.cmds.items()):
            self.display.say(f"  {name:<8} {text}")

    async def cmd_quit(self, _):
        self.stop()

    # ── main loop ───────────────────────────────────────────────
    def stop(self):
        if self._stop_event is not None:
            self._stop_event.set()

    def _read_stdin(self, loop):
        for line in sys.stdin:
            if loop.is_closed():
                break
            coro = self.handle_command(line)
            try:
                asyncio.run_coroutine_threadsafe(coro, loop)
            except RuntimeError:
                # loop closed between the check and the hand-off
                coro.close()
                break

    async def run(self):
        loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()

        def _sigint(_sig, _frm):
            loop.call_soon_threadsafe(self.stop)
        previous = signal.signal(signal.SIGINT, _sigint)

        threading.Thread(target=self._read_stdin, args=(loop,), daemon=True).start()
        try:
            self.start()
            await self._stop_event.wait()
        finally:
            signal.signal(signal.SIGINT, previous)
            await self.shutdown()


# ── MAIN entrypoint (called by bootstrap.py) ────────────────────
def main() -> int:
    setup_logging()
    try:
        cfg = load_cfg()
        api_key = require_api_key()
    except ConfigError as e:
        logging.error("%s", e)
        print(e)
        return 1

    watcher = ChainWatcher(cfg, api_key)
    watcher.load_pool(ROOT / cfg["candidates_file"])
    watcher.register_addons(*discover(ADDONS))

    asyncio.run(watcher.run())
    print("Good-bye.")
    return 0
