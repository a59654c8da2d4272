"""
Progress events emitted while prerendering, and the ways of presenting them.

The orchestrator only emits RouteEvent records; reporters decide what is
printed and where.
"""
from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import List, Optional

STARTED = "started"
CAPTURED = "captured"
SAVED = "saved"
FAILED = "failed"
PAGE_ERROR = "page_error"

_BLUE = "\033[1;34m"
_GREEN = "\033[1;32m"
_RED = "\033[1;31m"
_RESET = "\033[0m"


def _isatty(stream) -> bool:
    return getattr(stream, "isatty", lambda: False)()


@dataclass(frozen=True)
class RouteEvent:
    kind: str
    route: str
    target: Optional[str] = None
    message: Optional[str] = None


class Reporter:
    def emit(self, event: RouteEvent) -> None:
        raise NotImplementedError


class NullReporter(Reporter):
    def emit(self, event: RouteEvent) -> None:
        pass


class CollectingReporter(Reporter):
    def __init__(self):
        self.events: List[RouteEvent] = []

    def emit(self, event: RouteEvent) -> None:
        self.events.append(event)

    def kinds(self, route: Optional[str] = None) -> List[str]:
        return [e.kind for e in self.events if route is None or e.route == route]


class ConsoleReporter(Reporter):
    """Tagged, coloured console lines.

    Progress lines are dropped when `suppress_output` is set; failures and
    page errors are always shown.
    """

    def __init__(self, suppress_output: bool = False, out=None, err=None, color: Optional[bool] = None):
        self.suppress_output = suppress_output
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        # Decided per stream so a redirected stdout stays free of escape codes
        self.out_color = color if color is not None else _isatty(self.out)
        self.err_color = color if color is not None else _isatty(self.err)

    def _paint(self, code: str, text: str, color: bool) -> str:
        return f"{code}{text}{_RESET}" if color else text

    def emit(self, event: RouteEvent) -> None:
        if event.kind == STARTED:
            line = self._paint(_BLUE, "Prerendering", self.out_color) + f" {event.route}"
        elif event.kind == CAPTURED:
            line = self._paint(_GREEN, "Prerendered", self.out_color) + f" {event.route} "
            line += self._paint(_BLUE, "Saving...", self.out_color)
        elif event.kind == SAVED:
            line = self._paint(_GREEN, "Saved", self.out_color) + f" to {event.target}"
        elif event.kind == FAILED:
            self._error(f"Failed to prerender {event.route}: {event.message}")
            return
        elif event.kind == PAGE_ERROR:
            self._error(
                f"Error on page {event.route}:\n{event.message}\n"
                "This may be why the awaited element never appears and the render times out."
            )
            return
        else:
            return
        if not self.suppress_output:
            self.out.write(f"[PRERENDER] {line}\n")

    def _error(self, text: str):
        self.err.write(self._paint(_RED, f"[PRERENDER] {text}", self.err_color) + "\n")
