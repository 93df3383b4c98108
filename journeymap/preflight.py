"""Environment and dependency preflight checks.

GTK and libadwaita bindings come from the system, not from pip, so they
are checked before any GTK module is imported.
Set JOURNEYMAP_SKIP_PREFLIGHT=1 to bypass (useful for development).
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import Optional

from journeymap.config import get_data_dir


@dataclass(frozen=True)
class PreflightResult:
    ok: bool
    message: str


def _check_python_deps() -> Optional[str]:
    """Return an error message if required deps are missing."""
    try:
        import cairo  # type: ignore[import-not-found]  # noqa: F401
    except Exception as exc:  # pylint: disable=broad-except
        return (
            "Missing Python dependency 'pycairo'. "
            "Install it with pip (pycairo) and ensure cairo is available. "
            f"Underlying error: {exc}"
        )

    try:
        import gi  # type: ignore[import-not-found]

        gi.require_version("Gtk", "4.0")
        gi.require_version("Adw", "1")
        gi.require_version("Gdk", "4.0")
        from gi.repository import Gtk, Adw, Gdk  # type: ignore[import-not-found]  # noqa: F401
    except Exception as exc:  # pylint: disable=broad-except
        return (
            "Missing GTK/libadwaita bindings. Install GTK 4, libadwaita and "
            "PyGObject from your distribution (e.g. gtk4 libadwaita python3-gobject). "
            f"Underlying error: {exc}"
        )

    return None


def _has_display() -> bool:
    return bool(os.environ.get("WAYLAND_DISPLAY") or os.environ.get("DISPLAY"))


def _check_data_dir() -> Optional[str]:
    try:
        data_dir = get_data_dir()
    except OSError as exc:
        return f"Cannot create the Journeymap data directory: {exc}"
    if not os.access(data_dir, os.W_OK):
        return f"The Journeymap data directory {data_dir} is not writable."
    return None


def run_preflight(*, require_display: bool = True, check_deps: bool = True) -> PreflightResult:
    """Run checks and return a structured result."""
    if os.environ.get("JOURNEYMAP_SKIP_PREFLIGHT") == "1":
        return PreflightResult(True, "Preflight skipped via JOURNEYMAP_SKIP_PREFLIGHT=1")

    if require_display and not _has_display():
        return PreflightResult(
            False,
            "Journeymap needs a graphical session, but neither WAYLAND_DISPLAY nor "
            "DISPLAY is set. Set JOURNEYMAP_SKIP_PREFLIGHT=1 to bypass.",
        )

    if check_deps:
        dep_error = _check_python_deps()
        if dep_error:
            return PreflightResult(False, dep_error)

    data_error = _check_data_dir()
    if data_error:
        return PreflightResult(False, data_error)

    return PreflightResult(True, "Preflight OK")


def run_preflight_or_die(*, require_display: bool = True, check_deps: bool = True) -> None:
    result = run_preflight(require_display=require_display, check_deps=check_deps)
    if result.ok:
        return

    sys.stderr.write("\nJourneymap preflight check failed:\n")
    sys.stderr.write(result.message)
    sys.stderr.write("\n\n")
    raise SystemExit(1)
