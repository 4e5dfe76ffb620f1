from __future__ import annotations

import html
import io
from contextlib import redirect_stderr, redirect_stdout
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Literal, Optional

import ipywidgets as w

from aircube_monitor.analysis.alerts import AlertEvent


Level = Literal["info", "warning", "error", "alert"]

_COLORS = {
    "light": {"info": "#222222", "warning": "#b26a00", "error": "#b00020", "alert": "#b00020", "bg": "#ffffff", "border": "#dddddd"},
    "dark": {"info": "#e6e6e6", "warning": "#ffb74d", "error": "#ff6e6e", "alert": "#ff6e6e", "bg": "#1e1e1e", "border": "#444444"},
}


@dataclass
class _Entry:
    level: Level
    message: str
    stamp: str = ""
    count: int = 1


class HtmlLog:
    """
    Dashboard event log rendered into a single HTML widget.

      - severity coloring (warnings orange, errors and alerts red, alerts in bold)
      - consecutive identical messages are coalesced (shows xN)
      - bounded history: oldest entries are dropped beyond ``max_entries``
      - newest entry first
      - Output-like capture proxy that routes printed lines by prefix
    """

    def __init__(self, *, title: str | None = None, height_px: int = 180, max_entries: int = 500, theme: str = "light") -> None:
        self._entries: List[_Entry] = []
        self._height_px = int(height_px)
        self._max_entries = int(max_entries)
        self._theme = theme if theme in _COLORS else "light"
        self.widget = w.HTML()
        if title:
            self.panel = w.VBox([w.HTML(f"<b>{html.escape(str(title))}</b>"), self.widget])
        else:
            self.panel = self.widget
        self.clear()

    @property
    def entries(self) -> List[tuple[str, str, int]]:
        """(level, message, count) tuples, oldest first."""
        return [(e.level, e.message, e.count) for e in self._entries]

    def set_theme(self, theme: str) -> None:
        self._theme = theme if theme in _COLORS else "light"
        self._render()

    def clear(self) -> None:
        self._entries.clear()
        self._render()

    def info(self, message: str) -> None:
        self._add("info", message)

    def warning(self, message: str) -> None:
        self._add("warning", message)

    def error(self, message: str) -> None:
        self._add("error", message)

    def alert(self, message: str, timestamp: Optional[float] = None) -> None:
        self._add("alert", message, timestamp)

    def warnings(self, messages: Iterable[str]) -> None:
        for m in messages:
            self.warning(m)

    def output_proxy(self) -> "_OutputProxy":
        """
        Return an Output-like proxy usable as:

            with log.output_proxy():
                print("CHECK: ...")

        Captured stdout/stderr lines are added to this log, one entry per line,
        with the level picked by :meth:`_classify`.
        """
        return _OutputProxy(self)

    def _classify(self, line: str) -> Level:
        s = (line or "").lstrip()
        if s.startswith(("ALERT:", "Critical Alert:")):
            return "alert"
        if s.startswith(("ERROR:", "Error:", "Exception:", "Traceback")):
            return "error"
        if s.startswith(("WARNING:", "Warning:", "CHECK:")):
            return "warning"
        return "info"

    def _add(self, level: Level, message: str, timestamp: Optional[float] = None) -> None:
        msg = "" if message is None else str(message)
        stamp = datetime.fromtimestamp(timestamp).strftime("%H:%M:%S") if timestamp is not None else ""

        last = self._entries[-1] if self._entries else None
        if last is not None and last.level == level and last.message == msg:
            last.count += 1
            last.stamp = stamp or last.stamp
            self._render()
            return

        self._entries.append(_Entry(level=level, message=msg, stamp=stamp))
        if len(self._entries) > self._max_entries:
            self._entries = self._entries[-self._max_entries :]
        self._render()

    def _render(self) -> None:
        pal = _COLORS[self._theme]
        rows = []
        for e in reversed(self._entries):
            prefix = f"[{e.stamp}] " if e.stamp else ""
            suffix = f" (x{e.count})" if e.count > 1 else ""
            weight = "bold" if e.level == "alert" else "normal"
            rows.append(
                f"<div style='color:{pal[e.level]}; font-weight:{weight}; white-space:pre-wrap; "
                f"font-family:ui-monospace, Menlo, Consolas, monospace;'>"
                f"{html.escape(prefix + e.message + suffix)}</div>"
            )
        inner = "".join(rows) if rows else "<div style='color:#888;'>No events yet.</div>"
        self.widget.value = (
            f"<div style='border:1px solid {pal['border']}; padding:8px; height:{self._height_px}px; "
            f"overflow-y:auto; background:{pal['bg']};'>{inner}</div>"
        )


class _OutputProxy:
    """
    Minimal ipywidgets.Output-like proxy:
      - context manager capturing stdout/stderr
      - clear_output() maps to HtmlLog.clear()
    """

    def __init__(self, log: HtmlLog) -> None:
        self._log = log
        self._buf = io.StringIO()
        self._cm_out = None
        self._cm_err = None

    def clear_output(self, wait: bool = False) -> None:
        _ = wait
        self._log.clear()

    def __enter__(self) -> "_OutputProxy":
        self._buf = io.StringIO()
        self._cm_out = redirect_stdout(self._buf)
        self._cm_err = redirect_stderr(self._buf)
        self._cm_out.__enter__()
        self._cm_err.__enter__()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            if self._cm_err is not None:
                self._cm_err.__exit__(exc_type, exc, tb)
        finally:
            if self._cm_out is not None:
                self._cm_out.__exit__(exc_type, exc, tb)
            self._cm_out = self._cm_err = None

        for line in self._buf.getvalue().splitlines():
            if line.strip():
                self._log._add(self._log._classify(line), line)

        # Exceptions raised inside the block propagate.
        return False


class HtmlLogNotifier:
    """Delivers alert events into an :class:`HtmlLog`."""

    def __init__(self, log: HtmlLog) -> None:
        self.log = log

    def notify(self, event: AlertEvent) -> None:
        self.log.alert(f"{event.title}: {event.message}", event.timestamp)
