"""
display.py
Console front end. Keeps the latest value of every display slot and
redraws a single status line in place; events (targets, errors, warning)
get their own lines.
"""

from __future__ import annotations

import sys

from .targets import SampledTarget


class ConsoleDisplay:
    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self.chain_text = "Waiting for chain data..."
        self.error_text = ""
        self.warning_text = ""
        self.api_calls = 0
        self.pause_text = ""
        self.refresh_in: int | None = None
        self.targets: list[SampledTarget] = []
        self.targets_visible = False

    # ── low level output ────────────────────────────────────────
    def say(self, text: str):
        self.stream.write("\r" + text + "\n")
        self.stream.flush()

    def status_line(self) -> str:
        parts = [self.chain_text]
        if self.warning_text:
            parts.insert(0, f"!! {self.warning_text} !!")
        parts.append(f"API Calls: {self.api_calls}")
        if self.pause_text:
            parts.append(self.pause_text)
        elif self.refresh_in is not None:
            parts.append(f"Next refresh in {self.refresh_in} seconds")
        return " | ".join(parts)

    def render(self):
        self.stream.write("\r" + self.status_line().ljust(100))
        self.stream.flush()

    # ── chain ───────────────────────────────────────────────────
    def show_chain(self, count: int, remaining: int):
        minutes, seconds = divmod(remaining, 60)
        self.chain_text = f"Chain: {count} | Time remaining: {minutes} minutes, {seconds} seconds"
        self.error_text = ""
        self.render()

    def show_no_chain(self, text: str = "No active chain"):
        self.chain_text = text
        self.render()

    def show_error(self, message: str):
        self.error_text = message
        self.say(f"Error: {message}")

    # ── counters ────────────────────────────────────────────────
    def show_api_calls(self, count: int):
        self.api_calls = count

    def show_pause(self, seconds: int):
        self.pause_text = f"API calls paused. Resuming in {seconds} seconds..." if seconds > 0 else ""
        self.render()

    def show_refresh_countdown(self, seconds: int):
        self.refresh_in = seconds
        self.render()

    # ── warning banner ──────────────────────────────────────────
    def show_warning(self, text: str):
        if not self.warning_text:
            self.say(f"*** {text} ***")
        self.warning_text = text

    def hide_warning(self):
        self.warning_text = ""

    # ── targets ─────────────────────────────────────────────────
    def show_targets_loading(self):
        self.targets_visible = True
        self.say("Loading targets...")

    def show_targets(self, targets: list[SampledTarget]):
        self.targets = list(targets)
        self.targets_visible = True
        if not self.targets:
            self.say("No available targets found. Try again.")
            return
        self.say("Available targets:")
        for n, t in enumerate(self.targets, 1):
            self.say(f"  {n}) {t.label()}")
        self.say("  (type 'open <n>' to open a profile, 'next' to pull next targets)")

    def show_targets_error(self, message: str):
        self.say(f"Error loading targets: {message}")

    def hide_targets(self):
        self.targets = []
        self.targets_visible = False
