"""GLib main-loop scheduling for marker frames."""

from typing import Callable

import gi
gi.require_version("GLib", "2.0")
from gi.repository import GLib


class GLibScheduler:
    """Frame scheduler backed by GLib timeouts."""

    def now_ms(self) -> float:
        return GLib.get_monotonic_time() / 1000.0

    def every(self, interval_ms: int, callback: Callable[[], bool]) -> int:
        """Call ``callback`` every ``interval_ms`` until it returns False."""
        return GLib.timeout_add(interval_ms, callback)

    def cancel(self, source_id: int):
        # The source may already be gone if its callback returned False
        source = GLib.main_context_default().find_source_by_id(source_id)
        if source is not None and not source.is_destroyed():
            GLib.source_remove(source_id)
